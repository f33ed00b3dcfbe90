"""
Attribution component - one canonical attribution record per page load.

Resolution priority (first match wins):
1. url       - UTM parameters on the current URL
2. referrer  - link-shim recovery, referrer UTM, or referrer host lookup
3. stored    - non-expired first-touch record from the AttributionStore
4. none      - all fields empty, landing page = current URL

URL and referrer signals are also offered to the AttributionStore, which
keeps only the first touch. The returned record therefore reflects this
event, while the store keeps the visitor's original channel.
"""

from __future__ import annotations

import logging

from presell_analytics.core.services.referrer import (
    DEFAULT_CONFIG as DEFAULT_REFERRER_CONFIG,
)
from presell_analytics.core.services.referrer import (
    ReferrerConfig,
    resolve_from_referrer,
)
from presell_analytics.core.services.utm import UtmFields, parse_utm_from_url

from ._store import AttributionStore
from .models import AttributionRecord, AttributionResult

logger = logging.getLogger(__name__)


class AttributionResolver:
    """Resolves attribution from explicit URL/referrer inputs plus the store."""

    def __init__(
        self,
        store: AttributionStore,
        referrer_config: ReferrerConfig | None = None,
    ) -> None:
        self._store = store
        self._referrer_config = referrer_config or DEFAULT_REFERRER_CONFIG

    @property
    def store(self) -> AttributionStore:
        return self._store

    def _remember(self, fields: UtmFields, landing_page_url: str | None) -> None:
        # Store never raises; a failed write only costs future-visit attribution
        self._store.write(fields, landing_page_url=landing_page_url)

    def resolve(self, current_url: str, referrer_url: str | None = None) -> AttributionResult:
        """Resolve attribution for a page load."""
        url_fields = parse_utm_from_url(current_url)
        if url_fields.has_any():
            logger.debug("UTM parameters found in URL: %s", url_fields)
            self._remember(url_fields, current_url)
            return AttributionResult(
                record=AttributionRecord.from_fields(url_fields, landing_page_url=current_url),
                source="url",
            )

        referrer = resolve_from_referrer(referrer_url, self._referrer_config)
        if referrer.has_any():
            logger.debug("Attribution recovered from referrer: %s", referrer)
            landing = referrer.recovered_landing_url or current_url
            self._remember(referrer.fields, landing)
            return AttributionResult(
                record=AttributionRecord.from_fields(referrer.fields, landing_page_url=landing),
                source="referrer",
                recovered_landing_url=referrer.recovered_landing_url,
            )

        stored = self._store.read()
        if stored is not None:
            logger.debug("Using stored first-touch attribution")
            return AttributionResult(record=stored, source="stored")

        logger.debug("No attribution in URL, referrer, or storage")
        return AttributionResult(
            record=AttributionRecord(landing_page_url=current_url),
            source="none",
        )


# --- Factory ---


def create_attribution_resolver(
    store: AttributionStore,
    referrer_config: ReferrerConfig | None = None,
) -> AttributionResolver:
    """Create an AttributionResolver."""
    return AttributionResolver(store=store, referrer_config=referrer_config)
