"""
Attribution component - UTM/referrer resolution and first-touch storage.
"""

from presell_analytics.core.services.referrer import (
    LinkShim,
    ReferrerConfig,
    ReferrerResolution,
    ReferrerRule,
    resolve_from_referrer,
)
from presell_analytics.core.services.utm import (
    UtmFields,
    append_utm_to_url,
    parse_utm_from_url,
)

from ._store import AttributionStore, AttributionStoreConfig
from .component import AttributionResolver, create_attribution_resolver
from .models import AttributionRecord, AttributionResult, AttributionSource

__all__ = [
    # Entry points
    "AttributionResolver",
    "create_attribution_resolver",
    # Store
    "AttributionStore",
    "AttributionStoreConfig",
    # Models
    "AttributionRecord",
    "AttributionResult",
    "AttributionSource",
    # Parsing re-exports
    "LinkShim",
    "ReferrerConfig",
    "ReferrerResolution",
    "ReferrerRule",
    "UtmFields",
    "append_utm_to_url",
    "parse_utm_from_url",
    "resolve_from_referrer",
]
