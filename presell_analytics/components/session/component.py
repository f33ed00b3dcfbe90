"""
Session identity - durable visitor session id and per-page recorded marks.

Invariants:
- A persisted session id is reused until storage is cleared
- If storage fails, every call returns a fresh non-persisted id
- Marking a page recorded never raises; a failed mark can only cause a
  redundant first-view record, never data loss
"""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass

from presell_analytics.core.ports.kv import KeyValueStorePort
from presell_analytics.core.ports.time import TimePort

logger = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class SessionConfig:
    """Session identity storage configuration."""

    session_key: str = "als_session_id"
    recorded_prefix: str = "als_session_recorded_"
    suffix_length: int = 9


DEFAULT_SESSION_CONFIG = SessionConfig()


def generate_session_id(now_ms: int, suffix_length: int = 9) -> str:
    """session_<epoch ms>_<random base36 suffix>."""
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(suffix_length))
    return f"session_{now_ms}_{suffix}"


class SessionIdentity:
    """Visitor session id and first-view guard backed by local storage."""

    def __init__(
        self,
        kv: KeyValueStorePort,
        clock: TimePort,
        config: SessionConfig | None = None,
    ) -> None:
        self._kv = kv
        self._clock = clock
        self._config = config or DEFAULT_SESSION_CONFIG

    def _new_id(self) -> str:
        now_ms = int(self._clock.now_utc().timestamp() * 1000)
        return generate_session_id(now_ms, self._config.suffix_length)

    def get_or_create_session_id(self) -> str:
        """Return the persisted session id, creating one if needed."""
        try:
            session_id = self._kv.get(self._config.session_key)
            if session_id:
                return session_id

            session_id = self._new_id()
            self._kv.set(self._config.session_key, session_id)
            logger.debug("Created new session id %s", session_id)
            return session_id
        except Exception as e:
            logger.warning("Session storage unavailable, using ephemeral id: %s", e)
            return self._new_id()

    def _recorded_key(self, page_id: str) -> str:
        return f"{self._config.recorded_prefix}{page_id}"

    def is_recorded(self, page_id: str) -> bool:
        """Check whether this session's first view of page_id was recorded."""
        try:
            return self._kv.get(self._recorded_key(page_id)) == "true"
        except Exception as e:
            logger.warning("Could not read recorded mark for page %s: %s", page_id, e)
            return False

    def mark_recorded(self, page_id: str) -> None:
        """Mark page_id as recorded for this session."""
        try:
            self._kv.set(self._recorded_key(page_id), "true")
        except Exception as e:
            logger.warning("Failed to mark session as recorded for page %s: %s", page_id, e)


# --- Factory ---


def create_session_identity(
    kv: KeyValueStorePort,
    clock: TimePort,
    config: SessionConfig | None = None,
) -> SessionIdentity:
    """Create a SessionIdentity."""
    return SessionIdentity(kv=kv, clock=clock, config=config)
