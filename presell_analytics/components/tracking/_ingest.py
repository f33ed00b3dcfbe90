"""
Server-side event ingestion.

Validates a raw event payload (as posted by a page) and appends it to the
Event Store. A view with a session id opens the (page, session) record if
none exists; any other event with a session id advances last_seen.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, get_args

from presell_analytics.core.entities import (
    SCROLL_DEPTHS,
    AnalyticsEvent,
    EventType,
    SessionRecord,
)
from presell_analytics.core.ports.stores import EventStorePort, SessionStorePort
from presell_analytics.core.ports.time import TimePort

from .models import TrackingError

logger = logging.getLogger(__name__)

EVENT_TYPES: tuple[str, ...] = get_args(EventType)

MAX_TEXT_LENGTH = 2048

_TEXT_FIELDS = (
    "session_id",
    "element_id",
    "referrer",
    "user_agent",
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "landing_page_url",
)


# --- Validation ---


def validate_event_type(event_type: Any) -> list[TrackingError]:
    if not event_type:
        return [
            TrackingError(
                code="event_type_required",
                message="Event type is required",
                field_name="event_type",
            )
        ]
    if event_type not in EVENT_TYPES:
        return [
            TrackingError(
                code="invalid_event_type",
                message=f"Event type '{event_type}' is not allowed",
                field_name="event_type",
            )
        ]
    return []


def validate_scroll_depth(event_type: Any, depth: Any) -> list[TrackingError]:
    """Scroll events need a milestone depth; other events must not carry one."""
    if event_type == "scroll":
        if isinstance(depth, bool) or depth not in SCROLL_DEPTHS:
            return [
                TrackingError(
                    code="invalid_scroll_depth",
                    message=f"Scroll depth must be one of {list(SCROLL_DEPTHS)}",
                    field_name="scroll_depth",
                )
            ]
    elif depth is not None:
        return [
            TrackingError(
                code="unexpected_scroll_depth",
                message="Only scroll events carry a scroll depth",
                field_name="scroll_depth",
            )
        ]
    return []


def validate_element_id(event_type: Any, element_id: Any) -> list[TrackingError]:
    """Only click events carry an element id."""
    if element_id is not None and event_type != "click":
        return [
            TrackingError(
                code="unexpected_element_id",
                message="Only click events carry an element id",
                field_name="element_id",
            )
        ]
    return []


def validate_text_fields(data: Mapping[str, Any]) -> list[TrackingError]:
    errors = []
    for name in _TEXT_FIELDS:
        value = data.get(name)
        if value is None:
            continue
        if not isinstance(value, str):
            errors.append(
                TrackingError(
                    code="invalid_type",
                    message=f"Field '{name}' must be a string",
                    field_name=name,
                )
            )
        elif len(value) > MAX_TEXT_LENGTH:
            errors.append(
                TrackingError(
                    code="too_long",
                    message=f"Field '{name}' exceeds {MAX_TEXT_LENGTH} characters",
                    field_name=name,
                )
            )
    return errors


def validate_event(data: Mapping[str, Any]) -> list[TrackingError]:
    """Return every validation error for a raw event payload."""
    errors: list[TrackingError] = []

    page_id = data.get("page_id")
    if not isinstance(page_id, str) or not page_id.strip():
        errors.append(
            TrackingError(
                code="page_id_required",
                message="Page id is required",
                field_name="page_id",
            )
        )

    event_type = data.get("event_type")
    errors.extend(validate_event_type(event_type))
    errors.extend(validate_scroll_depth(event_type, data.get("scroll_depth")))
    errors.extend(validate_element_id(event_type, data.get("element_id")))
    errors.extend(validate_text_fields(data))
    return errors


# --- Service ---


class EventIngestor:
    """Validates and stores events posted by published pages."""

    def __init__(
        self,
        event_store: EventStorePort,
        session_store: SessionStorePort,
        clock: TimePort,
    ) -> None:
        self._events = event_store
        self._sessions = session_store
        self._clock = clock

    def _update_session(self, event: AnalyticsEvent) -> None:
        if not event.session_id:
            return
        try:
            if event.event_type == "view":
                self._sessions.insert(
                    SessionRecord(
                        page_id=event.page_id,
                        session_id=event.session_id,
                        first_seen=event.created_at,
                        last_seen=event.created_at,
                        referrer=event.referrer,
                        user_agent=event.user_agent,
                        utm_source=event.utm_source,
                        utm_medium=event.utm_medium,
                        utm_campaign=event.utm_campaign,
                        utm_term=event.utm_term,
                        utm_content=event.utm_content,
                        landing_page_url=event.landing_page_url,
                        created_at=event.created_at,
                    )
                )
            self._sessions.touch(event.page_id, event.session_id, event.created_at)
        except Exception as e:
            logger.warning("Error updating session for page %s: %s", event.page_id, e)

    def ingest(
        self, data: Mapping[str, Any]
    ) -> tuple[AnalyticsEvent | None, list[TrackingError]]:
        """
        Validate and store one event.

        Returns:
            Tuple of (event, errors). Event is None if validation or the
            write failed.
        """
        errors = validate_event(data)
        if errors:
            return None, errors

        event = AnalyticsEvent(
            page_id=data["page_id"],
            session_id=data.get("session_id") or None,
            event_type=data["event_type"],
            element_id=data.get("element_id") or None,
            scroll_depth=data.get("scroll_depth"),
            referrer=data.get("referrer") or None,
            user_agent=data.get("user_agent") or None,
            utm_source=data.get("utm_source") or None,
            utm_medium=data.get("utm_medium") or None,
            utm_campaign=data.get("utm_campaign") or None,
            utm_term=data.get("utm_term") or None,
            utm_content=data.get("utm_content") or None,
            landing_page_url=data.get("landing_page_url") or None,
            created_at=self._clock.now_utc(),
        )

        try:
            self._events.insert(event)
        except Exception as e:
            logger.warning("Error storing %s for page %s: %s", event.event_type, event.page_id, e)
            return None, [TrackingError(code="write_failed", message="Event could not be stored")]

        self._update_session(event)
        return event, []


def create_event_ingestor(
    event_store: EventStorePort,
    session_store: SessionStorePort,
    clock: TimePort,
) -> EventIngestor:
    """Create an EventIngestor."""
    return EventIngestor(event_store=event_store, session_store=session_store, clock=clock)
