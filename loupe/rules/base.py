"""
Base class for query-driven rules.

A rule supplies a tree-sitter pattern and up to three capabilities: a bulk
validator over all captured nodes, a per-node validator, and a measurement
callback. The scan manager decides when each one is called; rules only turn
nodes into findings or metrics.
"""

from typing import Any, Callable, Dict, FrozenSet, List, Optional

from ..metrics import record_measurement
from ..types import RuleMeta, ScanContext, ScanResult, clamp_severity

PreFilter = Callable[[Any], Any]


def identity_filter(root):
    return root


class QueryRule:
    """Rule that reports nothing by itself; subclasses override the capabilities they need.

    The base implementation measures the number of captured nodes.
    """

    kind: str = ""

    # JSON schema for the record's "options" object
    options_schema: Dict[str, Any] = {"type": "object", "additionalProperties": False}

    def __init__(self, meta: RuleMeta, pre_filter: Optional[PreFilter] = None):
        self._meta = meta
        self._pre_filter = pre_filter or identity_filter

    @property
    def meta(self) -> RuleMeta:
        return self._meta

    @property
    def rule_id(self) -> str:
        return self._meta.rule_id

    @property
    def name(self) -> str:
        return self._meta.name

    @property
    def category(self) -> str:
        return self._meta.category

    @property
    def context(self) -> FrozenSet[str]:
        return self._meta.context

    @property
    def query(self) -> str:
        return self._meta.query

    @property
    def regex(self) -> Optional[str]:
        return self._meta.regex

    @property
    def priority(self) -> int:
        return self._meta.priority

    @property
    def message(self) -> str:
        return self._meta.message

    def pre_filter(self, root):
        """Narrow the search scope before the query runs."""
        return self._pre_filter(root)

    def validate_nodes(self, nodes: List[Any], ctx: ScanContext) -> List[ScanResult]:
        """Validate all captured nodes at once."""
        return []

    def validate_node(self, node: Any, ctx: ScanContext) -> List[ScanResult]:
        """Validate a single captured node."""
        return []

    def measure_nodes(self, nodes: List[Any], ctx: ScanContext) -> None:
        """Record metrics for the captured nodes."""
        record_measurement(self.rule_id, "count", len(nodes))

    def create_result(self, node: Any, ctx: ScanContext, message: Optional[str] = None,
                      meta: Optional[Dict[str, Any]] = None) -> ScanResult:
        """Build a finding located at a node."""
        return ScanResult(
            rule=self.name,
            category=self.category,
            message=message or self.message,
            severity=clamp_severity(self.priority),
            file=ctx.file_path,
            start_byte=node.start_byte,
            end_byte=node.end_byte,
            source_fragment=ctx.node_text(node),
            meta=meta,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.rule_id!r})"
