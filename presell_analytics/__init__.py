"""Presell Analytics - attribution and funnel analytics for landing pages."""

__version__ = "0.1.0"
