"""
UTM parameter parsing and propagation.

Key behaviors:
- Extract the five utm_* query parameters from an absolute URL
- Values are kept exactly as given (case preserved); empty values are absent
- Malformed URLs yield all-empty fields, never an exception
- Append the visitor's UTM fields to outbound links without clobbering
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any
from urllib.parse import parse_qs, parse_qsl, urlencode, urlsplit, urlunsplit

logger = logging.getLogger(__name__)

UTM_KEYS: tuple[str, ...] = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
)


# --- Data Models ---


@dataclass(frozen=True)
class UtmFields:
    """Partial attribution fields: each UTM value or None when unknown."""

    source: str | None = None
    medium: str | None = None
    campaign: str | None = None
    term: str | None = None
    content: str | None = None

    def has_any(self) -> bool:
        """Check if any UTM parameter is present."""
        return any(
            [
                self.source,
                self.medium,
                self.campaign,
                self.term,
                self.content,
            ]
        )

    def as_params(self) -> dict[str, str | None]:
        """Return fields keyed by their utm_* query parameter name."""
        return {
            "utm_source": self.source,
            "utm_medium": self.medium,
            "utm_campaign": self.campaign,
            "utm_term": self.term,
            "utm_content": self.content,
        }

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> UtmFields:
        """Build from a mapping keyed by utm_* names."""

        def get_param(key: str) -> str | None:
            value = params.get(key)
            if isinstance(value, str) and value:
                return value
            return None

        return cls(
            source=get_param("utm_source"),
            medium=get_param("utm_medium"),
            campaign=get_param("utm_campaign"),
            term=get_param("utm_term"),
            content=get_param("utm_content"),
        )


EMPTY_UTM = UtmFields()


# --- Parsing ---


def is_absolute_url(url: str | None) -> bool:
    """Check that url has a scheme and a host."""
    if not url:
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


def parse_utm_from_url(url: str | None) -> UtmFields:
    """
    Parse UTM parameters from the query string of url.

    Returns EMPTY_UTM when url is empty, relative or malformed.
    """
    if not is_absolute_url(url):
        return EMPTY_UTM

    try:
        query = parse_qs(urlsplit(url).query)  # type: ignore[arg-type]
    except ValueError:
        logger.debug("Could not parse query string of %r", url)
        return EMPTY_UTM

    return UtmFields.from_params({key: values[0] for key, values in query.items() if values})


# --- Propagation ---


def append_utm_to_url(url: str, fields: UtmFields) -> str:
    """
    Append UTM parameters to url when not already present.

    Existing parameters always win. If url cannot be parsed it is returned
    unchanged.
    """
    if not is_absolute_url(url):
        return url

    try:
        parts = urlsplit(url)
        pairs = parse_qsl(parts.query, keep_blank_values=True)
    except ValueError:
        logger.debug("Could not append UTM parameters to %r", url)
        return url

    present = {key for key, _ in pairs}
    added = False
    for key, value in fields.as_params().items():
        if value and key not in present:
            pairs.append((key, value))
            added = True

    if not added:
        return url

    return urlunsplit(parts._replace(query=urlencode(pairs)))
