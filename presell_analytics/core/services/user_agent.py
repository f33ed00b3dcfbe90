"""
User agent classification - device class and browser name.

Both classifications walk an ordered rule list; the first rule with a
matching substring wins, so the tuple order is the priority order.

Key behaviors:
- Tablet rules come before mobile rules (tablet UAs often say "Mobile" or "Android")
- Edge comes before Chrome (Edge UAs also carry "Chrome/")
- Chrome comes before Safari (Chrome UAs also carry "Safari/")
- Empty or unrecognized user agents map to "Unknown"
"""

from __future__ import annotations

from dataclasses import dataclass

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class UARule:
    """Label assigned when any pattern occurs in the lowercased user agent."""

    label: str
    patterns: tuple[str, ...]
    unless: tuple[str, ...] = ()

    def matches(self, ua_lower: str) -> bool:
        if any(p in ua_lower for p in self.unless):
            return False
        return any(p in ua_lower for p in self.patterns)


DEVICE_RULES: tuple[UARule, ...] = (
    UARule("Tablet", ("ipad", "tablet", "kindle", "silk/", "playbook")),
    # Android without "mobile" is an Android tablet
    UARule("Tablet", ("android",), unless=("mobile",)),
    UARule(
        "Mobile",
        ("mobile", "iphone", "ipod", "android", "blackberry", "iemobile", "opera mini"),
    ),
    UARule("Desktop", ("windows nt", "macintosh", "mac os x", "x11", "linux", "cros")),
)

BROWSER_RULES: tuple[UARule, ...] = (
    UARule("Edge", ("edg/", "edge/", "edga/", "edgios/")),
    UARule("Opera", ("opr/", "opera")),
    UARule("Samsung Internet", ("samsungbrowser/",)),
    UARule("Chrome", ("chrome/", "crios/", "chromium/")),
    UARule("Firefox", ("firefox/", "fxios/")),
    UARule("Safari", ("safari/",)),
    UARule("Internet Explorer", ("msie ", "trident/")),
)


def _classify(user_agent: str | None, rules: tuple[UARule, ...]) -> str:
    if not user_agent:
        return UNKNOWN
    ua_lower = user_agent.lower()
    for rule in rules:
        if rule.matches(ua_lower):
            return rule.label
    return UNKNOWN


def classify_device(user_agent: str | None) -> str:
    """Classify as Mobile, Tablet, Desktop or Unknown."""
    return _classify(user_agent, DEVICE_RULES)


def classify_browser(user_agent: str | None) -> str:
    """Classify the browser family, or Unknown."""
    return _classify(user_agent, BROWSER_RULES)
