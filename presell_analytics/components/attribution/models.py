"""
Attribution component models.

AttributionRecord is the canonical per-page-load attribution; the persisted
first-touch payload uses the same shape with first_touch_timestamp set.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any, Literal

from presell_analytics.core.services.utm import UtmFields

AttributionSource = Literal["url", "referrer", "stored", "none"]


@dataclass(frozen=True)
class AttributionRecord:
    """Attribution fields for one visit."""

    source: str | None = None
    medium: str | None = None
    campaign: str | None = None
    term: str | None = None
    content: str | None = None
    landing_page_url: str | None = None
    first_touch_timestamp: int | None = None  # epoch ms, set once persisted

    @classmethod
    def from_fields(
        cls,
        fields: UtmFields,
        landing_page_url: str | None,
        first_touch_timestamp: int | None = None,
    ) -> AttributionRecord:
        return cls(
            source=fields.source,
            medium=fields.medium,
            campaign=fields.campaign,
            term=fields.term,
            content=fields.content,
            landing_page_url=landing_page_url,
            first_touch_timestamp=first_touch_timestamp,
        )

    @property
    def fields(self) -> UtmFields:
        return UtmFields(
            source=self.source,
            medium=self.medium,
            campaign=self.campaign,
            term=self.term,
            content=self.content,
        )

    def to_payload(self) -> dict[str, Any]:
        """Serialize using utm_* keys (storage and event columns)."""
        return {
            "utm_source": self.source,
            "utm_medium": self.medium,
            "utm_campaign": self.campaign,
            "utm_term": self.term,
            "utm_content": self.content,
            "landing_page_url": self.landing_page_url,
            "first_touch_timestamp": self.first_touch_timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload(), sort_keys=True)

    @classmethod
    def from_json(cls, raw: str) -> AttributionRecord:
        """
        Parse a stored payload.

        Raises ValueError if raw is not a JSON object of the expected shape.
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("Stored attribution is not a JSON object")

        ts = data.get("first_touch_timestamp")
        if ts is not None and (isinstance(ts, bool) or not isinstance(ts, int | float)):
            raise ValueError(f"Invalid first_touch_timestamp: {ts!r}")
        if isinstance(ts, float) and not math.isfinite(ts):
            raise ValueError(f"Non-finite first_touch_timestamp: {ts!r}")

        fields = UtmFields.from_params(data)
        landing = data.get("landing_page_url")
        return cls.from_fields(
            fields,
            landing_page_url=landing if isinstance(landing, str) else None,
            first_touch_timestamp=int(ts) if ts is not None else None,
        )


@dataclass(frozen=True)
class AttributionResult:
    """Resolved attribution plus where it came from."""

    record: AttributionRecord
    source: AttributionSource
    recovered_landing_url: str | None = None
