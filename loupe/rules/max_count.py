"""
Rule kind that limits how many times a construct may appear.
"""

from typing import Any, List

from ..registry import register_rule_kind
from ..types import ScanContext, ScanResult
from .base import QueryRule


class MaxCountRule(QueryRule):
    """Report once when the query captures more than ``limit`` nodes.

    The finding points at the first capture past the limit.
    """

    kind = "max_count"

    options_schema = {
        "type": "object",
        "properties": {
            "limit": {"type": "integer", "minimum": 0},
        },
        "required": ["limit"],
        "additionalProperties": False,
    }

    def validate_nodes(self, nodes: List[Any], ctx: ScanContext) -> List[ScanResult]:
        limit = int(self.meta.option("limit"))
        if len(nodes) <= limit:
            return []
        message = f"{self.message} ({len(nodes)} found, limit is {limit})".strip()
        return [self.create_result(nodes[limit], ctx, message=message,
                                   meta={"count": len(nodes), "limit": limit})]


register_rule_kind(MaxCountRule)
