"""
Tests for query composition and execution.
"""

import os
import sys

import pytest

# Add the project root to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from loupe.errors import QueryCompileError
from loupe.java_adapter import JavaAdapter
from loupe.query import QueryEngine, compose_query_text, escape_query_string

SOURCE = """class Holder {
    void run() {
        int foo_one = 1;
        int bar = 2;
    }
}
"""


class TestComposeQueryText:
    """Test cases for compose_query_text."""

    def test_pattern_without_regex_is_unchanged(self):
        query = "(variable_declarator (identifier) @exp)"
        assert compose_query_text(query) == query
        assert compose_query_text(query, None) == query
        assert compose_query_text(query, "") == query

    def test_regex_is_bound_to_exp_capture(self):
        composed = compose_query_text("(identifier) @exp", "^foo")
        assert composed == '(identifier) @exp (#match? @exp "^foo")'

    def test_regex_quotes_and_backslashes_are_escaped(self):
        assert escape_query_string('a"b') == 'a\\"b'
        assert escape_query_string("\\d+") == "\\\\d+"
        composed = compose_query_text("(identifier) @exp", '") (#eq? @exp "x')
        # The injected quote stays inside the string literal
        assert composed.count('(#match?') == 1
        assert '\\") (#eq? @exp \\"x' in composed


class TestQueryEngine:
    """Test cases for QueryEngine against the Java grammar."""

    def setup_method(self):
        """Set up test fixtures."""
        self.adapter = JavaAdapter()
        self.tree = self.adapter.parse(SOURCE)
        self.engine = QueryEngine(self.adapter.language)

    def test_captures_follow_document_order(self):
        captures = self.engine.run("(variable_declarator (identifier) @exp)", self.tree.root_node)

        assert [c.name for c in captures] == ["exp", "exp"]
        assert [c.node.text.decode() for c in captures] == ["foo_one", "bar"]

    def test_regex_constraint_filters_captures(self):
        query = compose_query_text("(variable_declarator (identifier) @exp)", "foo_[a-z]+")
        captures = self.engine.run(query, self.tree.root_node)

        assert [c.node.text.decode() for c in captures] == ["foo_one"]

    def test_escaped_regex_still_matches(self):
        query = compose_query_text("(variable_declarator (identifier) @exp)", "\\w+_one")
        captures = self.engine.run(query, self.tree.root_node)

        assert [c.node.text.decode() for c in captures] == ["foo_one"]

    def test_multiple_captures_per_match(self):
        captures = self.engine.run(
            "(method_declaration name: (identifier) @name body: (block) @body)", self.tree.root_node)

        assert [c.name for c in captures] == ["name", "body"]

    @pytest.mark.parametrize("query", [
        "(variable_declarator (identifier) @exp",
        "(not_a_java_node) @exp",
    ])
    def test_invalid_queries_raise_compile_error(self, query):
        with pytest.raises(QueryCompileError) as excinfo:
            self.engine.compile(query)
        assert excinfo.value.query_text == query

    def test_missing_language_raises_compile_error(self):
        with pytest.raises(QueryCompileError):
            QueryEngine(None).compile("(identifier) @exp")


class TestCaptureOrder:
    """Test cases for capture ordering and multi-pattern queries."""

    SOURCE = """class Totals {
    void run() {
        int total = a + b;
    }
}
"""

    def setup_method(self):
        """Set up test fixtures."""
        adapter = JavaAdapter()
        self.root = adapter.parse(self.SOURCE).root_node
        self.engine = QueryEngine(adapter.language)

    def test_repeated_capture_name_keeps_position_order(self):
        query = (
            "(variable_declarator name: (identifier) @exp "
            "value: (binary_expression left: (identifier) @left right: (identifier) @exp))"
        )
        captures = self.engine.run(query, self.root)

        assert [c.node.text.decode() for c in captures] == ["total", "a", "b"]
        assert [c.name for c in captures] == ["exp", "left", "exp"]

    def test_regex_applies_to_last_pattern_only(self):
        query = compose_query_text(
            "(method_declaration name: (identifier) @name) "
            "(variable_declarator name: (identifier) @exp)",
            "^tot",
        )
        captures = self.engine.run(query, self.root)

        assert [c.node.text.decode() for c in captures] == ["run", "total"]

    def test_regex_excludes_non_matching_last_pattern_captures(self):
        query = compose_query_text(
            "(method_declaration name: (identifier) @name) "
            "(variable_declarator name: (identifier) @exp)",
            "^zzz",
        )
        captures = self.engine.run(query, self.root)

        assert [c.node.text.decode() for c in captures] == ["run"]
