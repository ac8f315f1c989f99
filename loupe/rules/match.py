"""
Rule kind that reports every captured node.

Useful together with a regex constraint: the query does the selection and
each surviving capture becomes a finding.
"""

from typing import Any, List

from ..registry import register_rule_kind
from ..types import ScanContext, ScanResult
from .base import QueryRule


class MatchRule(QueryRule):
    """Flag every node the rule's query captures."""

    kind = "match"

    def validate_node(self, node: Any, ctx: ScanContext) -> List[ScanResult]:
        return [self.create_result(node, ctx)]


register_rule_kind(MatchRule)
