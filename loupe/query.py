"""
Query composition and execution on top of tree-sitter.

The composer turns a rule's base pattern and optional regular expression into
the final query text. The engine compiles that text against a grammar and
returns the captures in the order tree-sitter reports them.
"""

import logging
from typing import Any, List, Optional

import tree_sitter
from tree_sitter import Query, QueryCursor

from .errors import QueryCompileError
from .types import Capture

logger = logging.getLogger(__name__)

# Capture name a regex constraint is bound to
REGEX_CAPTURE = "exp"


def escape_query_string(value: str) -> str:
    """Escape a value for use inside a double-quoted query string literal."""
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def compose_query_text(query: str, regex: Optional[str] = None) -> str:
    """
    Build the final pattern text for a rule.

    Args:
        query: Base structural pattern, e.g. '(variable_declarator (identifier) @exp)'
        regex: Optional regular expression the @exp capture must match

    Returns:
        The pattern unchanged when there is no regex, otherwise the pattern
        followed by a #match? predicate on @exp. When the query holds several
        top-level patterns the predicate belongs to the last one.
    """
    if not regex:
        return query
    return f'{query} (#match? @{REGEX_CAPTURE} "{escape_query_string(regex)}")'


class QueryEngine:
    """Runs tree-sitter queries for one grammar."""

    def __init__(self, language: Any):
        self.language = language

    def compile(self, query_text: str) -> Query:
        """Compile query text, raising QueryCompileError on bad syntax."""
        if self.language is None:
            raise QueryCompileError("No tree-sitter language available", query_text)
        try:
            return Query(self.language, query_text)
        except tree_sitter.QueryError as e:
            raise QueryCompileError(f"Invalid query: {e}", query_text) from e

    def execute(self, query: Query, node: Any) -> List[Capture]:
        """Execute a compiled query over a node.

        Captures are returned in source position order. Captures starting at
        the same byte keep the order in which tree-sitter yields their matches.
        """
        cursor = QueryCursor(query)
        captures: List[Capture] = []
        for _pattern_index, match_captures in cursor.matches(node):
            for name, nodes in match_captures.items():
                for captured in nodes:
                    captures.append(Capture(name=name, node=captured))
        captures.sort(key=lambda capture: capture.node.start_byte)
        logger.debug("Query returned %d captures", len(captures))
        return captures

    def run(self, query_text: str, node: Any) -> List[Capture]:
        """Compile and execute in one step."""
        return self.execute(self.compile(query_text), node)
