from pydantic import BaseModel, Field

from presell_analytics.components.attribution import AttributionStoreConfig
from presell_analytics.components.funnel import FunnelConfig
from presell_analytics.components.session import SessionConfig
from presell_analytics.components.summary import SummaryConfig
from presell_analytics.core.services.referrer import (
    DEFAULT_LINK_SHIMS,
    DEFAULT_REFERRER_RULES,
    LinkShim,
    ReferrerConfig,
    ReferrerRule,
)


class LinkShimRule(BaseModel):
    host: str
    param: str = "u"


class ReferrerMappingRule(BaseModel):
    domains: list[str] = Field(min_length=1)
    source: str
    medium: str


def _default_shims() -> list[LinkShimRule]:
    return [LinkShimRule(host=s.host, param=s.param) for s in DEFAULT_LINK_SHIMS]


def _default_referrer_rules() -> list[ReferrerMappingRule]:
    return [
        ReferrerMappingRule(domains=list(r.domains), source=r.source, medium=r.medium)
        for r in DEFAULT_REFERRER_RULES
    ]


class AttributionRules(BaseModel):
    ttl_days: int = Field(default=30, gt=0)
    storage_key: str = "als_utm_data"
    session_key: str = "als_session_id"
    recorded_prefix: str = "als_session_recorded_"
    link_shims: list[LinkShimRule] = Field(default_factory=_default_shims)
    referrer_rules: list[ReferrerMappingRule] = Field(default_factory=_default_referrer_rules)


class FunnelRules(BaseModel):
    max_dwell_seconds: float = Field(default=3600.0, gt=0)


class SummaryRules(BaseModel):
    site_host: str | None = None
    display_timezone: str = "UTC"
    untracked_label: str = "untracked"


class AlertsRules(BaseModel):
    retrigger_window_seconds: int = Field(default=3600, ge=0)


class Rules(BaseModel):
    attribution: AttributionRules = Field(default_factory=AttributionRules)
    funnel: FunnelRules = Field(default_factory=FunnelRules)
    summary: SummaryRules = Field(default_factory=SummaryRules)
    alerts: AlertsRules = Field(default_factory=AlertsRules)

    def referrer_config(self) -> ReferrerConfig:
        return ReferrerConfig(
            link_shims=tuple(
                LinkShim(host=s.host.lower(), param=s.param) for s in self.attribution.link_shims
            ),
            rules=tuple(
                ReferrerRule(
                    domains=tuple(d.lower() for d in r.domains),
                    source=r.source,
                    medium=r.medium,
                )
                for r in self.attribution.referrer_rules
            ),
        )

    def store_config(self) -> AttributionStoreConfig:
        return AttributionStoreConfig(
            storage_key=self.attribution.storage_key,
            ttl_days=self.attribution.ttl_days,
        )

    def session_config(self) -> SessionConfig:
        return SessionConfig(
            session_key=self.attribution.session_key,
            recorded_prefix=self.attribution.recorded_prefix,
        )

    def funnel_config(self) -> FunnelConfig:
        return FunnelConfig(max_dwell_seconds=self.funnel.max_dwell_seconds)

    def summary_config(self) -> SummaryConfig:
        return SummaryConfig(
            site_host=self.summary.site_host,
            display_timezone=self.summary.display_timezone,
            untracked_label=self.summary.untracked_label,
            referrer=self.referrer_config(),
        )
