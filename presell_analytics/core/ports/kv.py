"""
Local persistence port.

A small key-value interface for visitor-side state (first-touch attribution,
session id, per-page recorded marks).

Invariants:
- Implementations may raise on any call and may be cleared externally
- Callers never let a failure here escape into page rendering
"""

from __future__ import annotations

from typing import Protocol


class KeyValueStorePort(Protocol):
    """String key-value store (browser-local storage equivalent)."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Remove key. Removing a missing key is not an error."""
        ...
