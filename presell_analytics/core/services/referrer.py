"""
Referrer resolution - infer traffic source from an HTTP referrer.

Resolution order (first match wins):
1. Link shim: the referrer host is a known outbound-link wrapper. The
   nested destination parameter is percent-decoded and its UTM fields
   are returned along with the decoded URL as the recovered landing URL.
2. UTM parameters carried on the referrer URL itself.
3. Hostname lookup in an ordered rule list (social / search engines).
4. Nothing recognized: empty fields.

Parse failures at any step yield empty fields, never an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import parse_qs, unquote, urlsplit

from presell_analytics.core.services.utm import (
    UtmFields,
    is_absolute_url,
    parse_utm_from_url,
)

logger = logging.getLogger(__name__)


# --- Rules ---


@dataclass(frozen=True)
class LinkShim:
    """An outbound-link wrapper host and the parameter holding the real URL."""

    host: str
    param: str = "u"


@dataclass(frozen=True)
class ReferrerRule:
    """Maps referrer hosts (exact or subdomain match) to a source/medium pair."""

    domains: tuple[str, ...]
    source: str
    medium: str

    def matches(self, host: str) -> bool:
        return any(host == d or host.endswith("." + d) for d in self.domains)


DEFAULT_LINK_SHIMS: tuple[LinkShim, ...] = (
    LinkShim("l.facebook.com", "u"),
    LinkShim("lm.facebook.com", "u"),
    LinkShim("l.instagram.com", "u"),
)

DEFAULT_REFERRER_RULES: tuple[ReferrerRule, ...] = (
    ReferrerRule(("facebook.com", "fb.com", "fb.me"), "facebook", "social"),
    ReferrerRule(("google.com",), "google", "organic"),
    ReferrerRule(("instagram.com",), "instagram", "social"),
    ReferrerRule(("twitter.com", "x.com", "t.co"), "twitter", "social"),
    ReferrerRule(("linkedin.com", "lnkd.in"), "linkedin", "social"),
    ReferrerRule(("bing.com",), "bing", "organic"),
    ReferrerRule(("duckduckgo.com",), "duckduckgo", "organic"),
    ReferrerRule(("search.yahoo.com",), "yahoo", "organic"),
)


@dataclass(frozen=True)
class ReferrerConfig:
    """Referrer resolution configuration."""

    link_shims: tuple[LinkShim, ...] = DEFAULT_LINK_SHIMS
    rules: tuple[ReferrerRule, ...] = DEFAULT_REFERRER_RULES


DEFAULT_CONFIG = ReferrerConfig()


# --- Result ---


@dataclass(frozen=True)
class ReferrerResolution:
    """UTM fields inferred from a referrer, plus any recovered landing URL."""

    fields: UtmFields = field(default_factory=UtmFields)
    recovered_landing_url: str | None = None

    def has_any(self) -> bool:
        return self.fields.has_any()


EMPTY_RESOLUTION = ReferrerResolution()


# --- Helpers ---


def referrer_host(url: str | None) -> str | None:
    """Lowercased hostname of url, or None if url is empty or malformed."""
    if not is_absolute_url(url):
        return None
    try:
        host = urlsplit(url).hostname  # type: ignore[arg-type]
    except ValueError:
        return None
    return host.lower() if host else None


def match_referrer_rule(
    host: str | None,
    config: ReferrerConfig = DEFAULT_CONFIG,
) -> ReferrerRule | None:
    """Return the first rule matching host, or None."""
    if not host:
        return None
    for rule in config.rules:
        if rule.matches(host):
            return rule
    return None


def _find_shim(host: str, config: ReferrerConfig) -> LinkShim | None:
    for shim in config.link_shims:
        if host == shim.host:
            return shim
    return None


def _unwrap_shim(referrer_url: str, shim: LinkShim) -> str | None:
    """Return the decoded destination URL nested in a shim referrer."""
    values = parse_qs(urlsplit(referrer_url).query).get(shim.param)
    if not values or not values[0]:
        return None
    # parse_qs decodes once; wrapped destinations may be encoded twice
    return unquote(values[0])


# --- Resolution ---


def resolve_from_referrer(
    referrer_url: str | None,
    config: ReferrerConfig = DEFAULT_CONFIG,
) -> ReferrerResolution:
    """Infer attribution fields from a referrer URL."""
    host = referrer_host(referrer_url)
    if host is None:
        return EMPTY_RESOLUTION

    try:
        shim = _find_shim(host, config)
        if shim is not None:
            destination = _unwrap_shim(referrer_url, shim)  # type: ignore[arg-type]
            if destination:
                logger.debug("Recovering UTM parameters from link shim: %s", destination)
                return ReferrerResolution(
                    fields=parse_utm_from_url(destination),
                    recovered_landing_url=destination,
                )

        utm = parse_utm_from_url(referrer_url)
        if utm.has_any():
            return ReferrerResolution(fields=utm)

        rule = match_referrer_rule(host, config)
        if rule is not None:
            return ReferrerResolution(fields=UtmFields(source=rule.source, medium=rule.medium))

    except ValueError:
        logger.debug("Could not resolve referrer %r", referrer_url)
        return EMPTY_RESOLUTION

    return EMPTY_RESOLUTION
