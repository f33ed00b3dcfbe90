"""
AttributionStore - durable first-touch attribution with TTL.

Invariants:
- First touch wins: once a record is stored it is never overwritten
  until it expires
- Records older than the TTL are treated as absent and removed on read
- Storage failures never propagate; a corrupted payload reads as None
  and is left in place
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from presell_analytics.core.services.utm import UtmFields

from .models import AttributionRecord
from .ports import KeyValueStorePort, TimePort

logger = logging.getLogger(__name__)

MS_PER_DAY = 24 * 60 * 60 * 1000


@dataclass(frozen=True)
class AttributionStoreConfig:
    """Attribution storage configuration."""

    storage_key: str = "als_utm_data"
    ttl_days: int = 30


DEFAULT_STORE_CONFIG = AttributionStoreConfig()


class AttributionStore:
    """First-touch attribution persisted in a local key-value store."""

    def __init__(
        self,
        kv: KeyValueStorePort,
        clock: TimePort,
        config: AttributionStoreConfig | None = None,
    ) -> None:
        self._kv = kv
        self._clock = clock
        self._config = config or DEFAULT_STORE_CONFIG

    @property
    def ttl_ms(self) -> int:
        return self._config.ttl_days * MS_PER_DAY

    def _now_ms(self) -> int:
        return int(self._clock.now_utc().timestamp() * 1000)

    def read(self) -> AttributionRecord | None:
        """Return the stored first-touch record, or None if absent or expired."""
        key = self._config.storage_key
        try:
            raw = self._kv.get(key)
        except Exception as e:
            logger.warning("Could not read stored attribution: %s", e)
            return None

        if not raw:
            return None

        try:
            record = AttributionRecord.from_json(raw)
        except ValueError:
            logger.debug("Ignoring corrupted attribution payload under %r", key)
            return None

        if record.first_touch_timestamp is not None:
            age = self._now_ms() - record.first_touch_timestamp
            if age > self.ttl_ms:
                logger.debug("Stored attribution expired, clearing")
                try:
                    self._kv.remove(key)
                except Exception as e:
                    logger.warning("Could not clear expired attribution: %s", e)
                return None

        return record

    def write(self, fields: UtmFields, landing_page_url: str | None = None) -> bool:
        """
        Persist fields as the first touch.

        No-op (returns False) if a valid record already exists or fields
        carry no UTM signal. Returns True when a record was written.
        """
        if not fields.has_any():
            return False

        if self.read() is not None:
            logger.debug("First-touch attribution already stored, keeping original")
            return False

        record = AttributionRecord.from_fields(
            fields,
            landing_page_url=landing_page_url,
            first_touch_timestamp=self._now_ms(),
        )
        try:
            self._kv.set(self._config.storage_key, record.to_json())
        except Exception as e:
            logger.warning("Could not store first-touch attribution: %s", e)
            return False

        return True
