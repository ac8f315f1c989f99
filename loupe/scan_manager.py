"""
Rule evaluation and result aggregation for one source file.

The ScanManager parses a source once, then evaluates an ordered list of rules
against the tree. scan() and measure() share a single pipeline: each rule's
query is composed, run over the rule's pre-filtered scope, and the captured
nodes are handed to the rule's validators (and, when measuring, to its
measurement callback). A rule whose query fails contributes nothing and never
stops the remaining rules.
"""

import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Union

from .config import CONTEXT_GATING_RULE, EngineConfig, get_rule_priority
from .errors import QueryCompileError, TreeConstructionError
from .metrics import record_rule_timing
from .query import QueryEngine, compose_query_text
from .registry import get_adapter
from .schema import dump_results_to_json
from .types import (
    MEASURE, SCAN, Capture, DumpResult, LanguageAdapter, ScanContext, ScanResult, clamp_severity,
)

logger = logging.getLogger(__name__)

DEFAULT_DUMP_QUERY = "(class_declaration) @decl"


def group_by_category(results: Sequence[ScanResult]) -> Dict[str, List[ScanResult]]:
    """Group findings by category, keeping first-seen category order and finding order."""
    grouped: Dict[str, List[ScanResult]] = {}
    for result in results:
        grouped.setdefault(result.category, []).append(result)
    return grouped


class ScanManager:
    """
    Scans one source file with a fixed set of rules.

    The tree, rules, source text and path are fixed at construction. Repeated
    scan() and measure() calls do not change the manager's state, so two
    consecutive scans return equal results.
    """

    def __init__(self, adapter: Union[LanguageAdapter, str], source_path: str, source_code: str,
                 rules: Sequence[Any], config: Optional[EngineConfig] = None):
        """
        Parse the source and prepare rule evaluation.

        Args:
            adapter: Language adapter, or a registered language id such as "java"
            source_path: Path reported on every finding
            source_code: Text to parse and scan
            rules: Rules to evaluate, in order
            config: Engine configuration (defaults apply when omitted)

        Raises:
            TreeConstructionError: If no syntax tree can be produced
        """
        self._config = config or EngineConfig()
        if isinstance(adapter, str):
            resolved = get_adapter(adapter)
            if resolved is None:
                raise TreeConstructionError(f"No adapter found for language '{adapter}'")
            adapter = resolved

        self._adapter = adapter
        self._source_path = source_path
        self._source_code = source_code
        self._rules = tuple(rules)

        tree = adapter.parse(source_code)
        if tree is None:
            raise TreeConstructionError(
                f"Could not parse {source_path}: no {adapter.language_id} parser available"
            )
        if tree.root_node.has_error and not self._config.allow_syntax_errors:
            raise TreeConstructionError(f"Syntax errors in {source_path}")
        self._tree = tree
        self._query_engine = QueryEngine(adapter.language)

    @property
    def rules(self) -> tuple:
        return self._rules

    @property
    def root_node(self):
        return self._tree.root_node

    def scan(self) -> List[ScanResult]:
        """Inspect the source for violations of the configured rules."""
        return self._common_scan(SCAN)

    def measure(self) -> List[ScanResult]:
        """Run the rules for measurement; rules with a measure context record their metrics."""
        return self._common_scan(MEASURE)

    async def scan_async(self) -> List[ScanResult]:
        """Awaitable scan(); evaluation order is unchanged."""
        return await asyncio.to_thread(self.scan)

    async def measure_async(self) -> List[ScanResult]:
        """Awaitable measure(); evaluation order is unchanged."""
        return await asyncio.to_thread(self.measure)

    def dump(self, query_string: str) -> str:
        """
        Run an ad-hoc query against the whole tree; a playground for new rules.

        Args:
            query_string: A tree-sitter query. An empty string selects every
                class declaration.

        Returns:
            JSON list of {capture, source_fragment, start_byte, end_byte}

        Raises:
            QueryCompileError: If the query is invalid
        """
        if query_string == "":
            query_string = DEFAULT_DUMP_QUERY
        captures = self._query_engine.run(query_string, self._tree.root_node)
        results = [
            DumpResult(
                capture=capture.name,
                source_fragment=self._adapter.node_text(
                    self._source_code, capture.node.start_byte, capture.node.end_byte),
                start_byte=capture.node.start_byte,
                end_byte=capture.node.end_byte,
            )
            for capture in captures
        ]
        return dump_results_to_json(results)

    def _common_scan(self, operation: str) -> List[ScanResult]:
        """
        Common pipeline used by both scan and measure.

        How findings are reported is up to the caller; this only produces the
        ordered list: rule order first, then each rule's validate_nodes
        results followed by its validate_node results in capture order.
        """
        ctx = ScanContext(
            file_path=self._source_path,
            source=self._source_code,
            root=self._tree.root_node,
            operation=operation,
        )
        limit = self._config.max_total_findings
        scan_results: List[ScanResult] = []

        for rule in self._rules:
            if self._config.context_gating == CONTEXT_GATING_RULE and operation not in rule.context:
                continue

            scan_results.extend(self._evaluate_rule(rule, ctx))

            if limit and len(scan_results) >= limit:
                logger.warning("Finding limit of %d reached for %s; remaining rules skipped",
                               limit, self._source_path)
                return scan_results[:limit]

        return scan_results

    def _evaluate_rule(self, rule: Any, ctx: ScanContext) -> List[ScanResult]:
        """Evaluate one rule and return its findings with the clamped severity applied."""
        rule_start = time.perf_counter()

        # A priority of 16452 would not map onto any severity level
        severity = clamp_severity(get_rule_priority(rule.rule_id, self._config, rule.priority))

        captures = self._run_query(rule)
        if captures is None:
            return []
        nodes = [capture.node for capture in captures]

        try:
            if ctx.operation == MEASURE and MEASURE in rule.context:
                rule.measure_nodes(nodes, ctx)

            rule_results = list(rule.validate_nodes(nodes, ctx))
            for node in nodes:
                rule_results.extend(rule.validate_node(node, ctx))
        except Exception:
            logger.exception("Rule '%s' failed on %s", rule.rule_id, self._source_path)
            return []

        rule_results = [replace(result, severity=severity) for result in rule_results]

        record_rule_timing(rule.rule_id, (time.perf_counter() - rule_start) * 1000, len(rule_results))
        return rule_results

    def _run_query(self, rule: Any) -> Optional[List[Capture]]:
        """Compose and execute a rule's query; None means the rule failed."""
        query_text = compose_query_text(rule.query, rule.regex)
        try:
            scope = rule.pre_filter(self._tree.root_node)
            return self._query_engine.run(query_text, scope)
        except QueryCompileError as e:
            logger.warning("A tree-sitter query error occurred in rule '%s': %s", rule.rule_id, e)
        except Exception as e:
            logger.warning("Rule '%s' could not be queried on %s: %s", rule.rule_id, self._source_path, e)
        return None
