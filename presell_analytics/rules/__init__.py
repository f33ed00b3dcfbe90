from presell_analytics.rules.loader import load_rules, parse_rules
from presell_analytics.rules.models import Rules

__all__ = ["Rules", "load_rules", "parse_rules"]
