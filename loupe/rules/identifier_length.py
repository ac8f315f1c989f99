"""
Rule kind that flags identifiers that are too short to be descriptive.
"""

from typing import Any, List

from ..metrics import record_measurement
from ..registry import register_rule_kind
from ..types import ScanContext, ScanResult
from .base import QueryRule

DEFAULT_MIN_LENGTH = 4


class IdentifierLengthRule(QueryRule):
    """Flag captured names shorter than ``min_length`` characters.

    Options:
        min_length: Shortest acceptable name (default 4, so names of three
            characters or fewer are flagged)
        allowed: Names that are never flagged, e.g. loop counters
    """

    kind = "identifier_length"

    options_schema = {
        "type": "object",
        "properties": {
            "min_length": {"type": "integer", "minimum": 1},
            "allowed": {"type": "array", "items": {"type": "string"}},
        },
        "additionalProperties": False,
    }

    @property
    def min_length(self) -> int:
        return int(self.meta.option("min_length", DEFAULT_MIN_LENGTH))

    def _is_too_short(self, name: str) -> bool:
        if name in self.meta.option("allowed", ()):
            return False
        return len(name) < self.min_length

    def validate_node(self, node: Any, ctx: ScanContext) -> List[ScanResult]:
        name = ctx.node_text(node)
        if not self._is_too_short(name):
            return []
        return [self.create_result(node, ctx, meta={"name": name, "min_length": self.min_length})]

    def measure_nodes(self, nodes: List[Any], ctx: ScanContext) -> None:
        super().measure_nodes(nodes, ctx)
        short = sum(1 for node in nodes if self._is_too_short(ctx.node_text(node)))
        record_measurement(self.rule_id, "too_short", short)


register_rule_kind(IdentifierLengthRule)
