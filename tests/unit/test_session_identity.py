"""
Tests for session identity and the first-view guard.
"""

from __future__ import annotations

import re

from presell_analytics.adapters.memory import InMemoryKeyValueStore
from presell_analytics.components.session import (
    SessionConfig,
    SessionIdentity,
    create_session_identity,
    generate_session_id,
)
from tests.fakes import FailingKeyValueStore, FixedClock

SESSION_ID_PATTERN = re.compile(r"^session_\d+_[a-z0-9]{9}$")


class TestGenerateSessionId:
    """Session id format."""

    def test_format(self) -> None:
        session_id = generate_session_id(1718452800000)

        assert SESSION_ID_PATTERN.match(session_id)
        assert session_id.startswith("session_1718452800000_")

    def test_random_suffix(self) -> None:
        assert generate_session_id(1) != generate_session_id(1)


class TestGetOrCreate:
    """Session ids persist until storage is cleared."""

    def test_reuses_persisted_id(self, identity: SessionIdentity) -> None:
        first = identity.get_or_create_session_id()

        assert identity.get_or_create_session_id() == first
        assert SESSION_ID_PATTERN.match(first)

    def test_persisted_under_session_key(
        self, identity: SessionIdentity, kv: InMemoryKeyValueStore
    ) -> None:
        session_id = identity.get_or_create_session_id()

        assert kv.get("als_session_id") == session_id

    def test_new_id_after_clear(self, identity: SessionIdentity, kv: InMemoryKeyValueStore) -> None:
        first = identity.get_or_create_session_id()
        kv.clear()

        assert identity.get_or_create_session_id() != first

    def test_failing_storage_gives_fresh_ids(self, clock: FixedClock) -> None:
        identity = create_session_identity(FailingKeyValueStore(), clock)

        first = identity.get_or_create_session_id()
        second = identity.get_or_create_session_id()

        assert SESSION_ID_PATTERN.match(first)
        assert first != second


class TestRecordedMarks:
    """Per-page first-view guard."""

    def test_not_recorded_initially(self, identity: SessionIdentity) -> None:
        assert identity.is_recorded("page-1") is False

    def test_mark_is_per_page(self, identity: SessionIdentity, kv: InMemoryKeyValueStore) -> None:
        identity.mark_recorded("page-1")

        assert identity.is_recorded("page-1") is True
        assert identity.is_recorded("page-2") is False
        assert kv.get("als_session_recorded_page-1") == "true"

    def test_custom_keys(self, kv: InMemoryKeyValueStore, clock: FixedClock) -> None:
        identity = SessionIdentity(kv, clock, SessionConfig(recorded_prefix="seen_"))
        identity.mark_recorded("p")

        assert kv.get("seen_p") == "true"

    def test_failing_storage(self, clock: FixedClock) -> None:
        identity = create_session_identity(FailingKeyValueStore(), clock)

        identity.mark_recorded("page-1")
        assert identity.is_recorded("page-1") is False
