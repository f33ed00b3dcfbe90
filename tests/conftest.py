from __future__ import annotations

import pytest

from presell_analytics.adapters.memory import (
    InMemoryEventStore,
    InMemoryKeyValueStore,
    InMemorySessionStore,
)
from presell_analytics.components.attribution import (
    AttributionResolver,
    AttributionStore,
    create_attribution_resolver,
)
from presell_analytics.components.session import SessionIdentity, create_session_identity
from tests.fakes import FixedClock


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def event_store() -> InMemoryEventStore:
    return InMemoryEventStore()


@pytest.fixture
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def attribution_store(kv: InMemoryKeyValueStore, clock: FixedClock) -> AttributionStore:
    return AttributionStore(kv=kv, clock=clock)


@pytest.fixture
def resolver(attribution_store: AttributionStore) -> AttributionResolver:
    return create_attribution_resolver(attribution_store)


@pytest.fixture
def identity(kv: InMemoryKeyValueStore, clock: FixedClock) -> SessionIdentity:
    return create_session_identity(kv, clock)
