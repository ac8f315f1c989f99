"""
Measurement-only rule kind.
"""

from ..registry import register_rule_kind
from .base import QueryRule


class CountRule(QueryRule):
    """Count the nodes a query captures; never reports findings."""

    kind = "count"


register_rule_kind(CountRule)
