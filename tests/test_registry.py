"""
Tests for rule registry loading and schema validation.
"""

import json
import os
import sys
from pathlib import Path

import pytest
import yaml

# Add the project root to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from loupe.errors import RuleSchemaError
from loupe.registry import build_rules, filter_rules, get_adapter_for_file, list_rule_kinds, load_rule_registry
from loupe.rules import CountRule, IdentifierLengthRule, MatchRule
from loupe.rules.filters import first_class

FIXTURES_DIR = Path(__file__).parent / "fixtures"

QUERY = "(variable_declarator (identifier) @exp)"


def document(*records, group="Variables"):
    return {"rules": [{"name": group, "queries": list(records)}]}


def record(**overrides):
    base = {"name": "Rule", "kind": "match", "query": QUERY, "priority": 1}
    base.update(overrides)
    return base


class TestLoadRuleRegistry:
    """Test cases for loading registry files."""

    def test_loads_fixture_rules_in_order(self):
        rules = load_rule_registry(str(FIXTURES_DIR / "variables_rules.yaml"))

        assert [rule.rule_id for rule in rules] == [
            "Variables/Total",
            "Variables/Length < 3",
            "Variables/Trivial RegEx",
        ]
        assert [type(rule) for rule in rules] == [CountRule, IdentifierLengthRule, MatchRule]

    def test_contexts_accept_strings_and_lists(self):
        total, length, regex = load_rule_registry(str(FIXTURES_DIR / "variables_rules.yaml"))

        assert total.context == frozenset({"measure"})
        assert length.context == frozenset({"scan", "measure"})
        assert regex.context == frozenset({"scan", "measure"})

    def test_record_fields_are_carried_onto_rule(self):
        _, length, regex = load_rule_registry(str(FIXTURES_DIR / "variables_rules.yaml"))

        assert length.priority == 3
        assert length.min_length == 4
        assert length.category == "Variables"
        assert regex.regex == "foo_[a-zA-Z0-9]*"
        assert regex.message.startswith("A trivial RegEx")

    def test_loads_json_registry(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps(document(record(name="Json rule", category="Custom"))))

        rules = load_rule_registry(str(path))

        assert [rule.rule_id for rule in rules] == ["Custom/Json rule"]

    def test_unreadable_file_is_schema_error(self, tmp_path):
        with pytest.raises(RuleSchemaError):
            load_rule_registry(str(tmp_path / "missing.yaml"))

    def test_malformed_yaml_is_schema_error(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text("rules: [unclosed")
        with pytest.raises(RuleSchemaError):
            load_rule_registry(str(path))

    def test_pre_filter_is_resolved_by_name(self, tmp_path):
        path = tmp_path / "rules.yaml"
        path.write_text(yaml.safe_dump(document(record(pre_filter="first_class"))))

        (rule,) = load_rule_registry(str(path))

        assert rule._pre_filter is first_class


class TestBuildRulesValidation:
    """Test cases for schema errors raised before evaluation."""

    @pytest.mark.parametrize("bad_record, expected", [
        ({"name": "No query", "kind": "match", "priority": 1}, "'query' is a required property"),
        (record(priority="high"), "'high' is not of type 'integer'"),
        (record(context="scan,publish"), "context"),
        (record(context=["scan", "deploy"]), "context"),
        (record(unexpected=True), "Additional properties"),
    ])
    def test_schema_violations(self, bad_record, expected):
        with pytest.raises(RuleSchemaError) as excinfo:
            build_rules(document(bad_record))
        assert any(expected in problem for problem in excinfo.value.problems)

    def test_missing_rules_key(self):
        with pytest.raises(RuleSchemaError):
            build_rules({"groups": []})

    def test_unknown_kind(self):
        with pytest.raises(RuleSchemaError) as excinfo:
            build_rules(document(record(kind="javascript_callback")))
        assert "unknown rule kind 'javascript_callback'" in str(excinfo.value)

    def test_unknown_pre_filter(self):
        with pytest.raises(RuleSchemaError) as excinfo:
            build_rules(document(record(pre_filter="everything")))
        assert "unknown pre_filter 'everything'" in str(excinfo.value)

    def test_invalid_regex(self):
        with pytest.raises(RuleSchemaError) as excinfo:
            build_rules(document(record(regex="foo_[")))
        assert "invalid regex" in str(excinfo.value)

    def test_kind_options_are_validated(self):
        with pytest.raises(RuleSchemaError) as excinfo:
            build_rules(document(
                record(name="Zero", kind="identifier_length", options={"min_length": 0}),
                record(name="Typo", kind="identifier_length", options={"min_lenght": 3}),
                record(name="No limit", kind="max_count"),
            ))
        problems = excinfo.value.problems
        assert len(problems) == 3
        assert problems[0].startswith("Variables/Zero: options")
        assert problems[1].startswith("Variables/Typo: options")
        assert problems[2].startswith("Variables/No limit: options")

    def test_duplicate_rule_ids(self):
        with pytest.raises(RuleSchemaError) as excinfo:
            build_rules(document(record(name="Same"), record(name="Same")))
        assert "duplicate rule id" in str(excinfo.value)

    def test_all_problems_are_reported_together(self):
        with pytest.raises(RuleSchemaError) as excinfo:
            build_rules(document(record(name="A", kind="nope"), record(name="B", regex="(")))
        assert len(excinfo.value.problems) == 2

    def test_category_defaults_to_group_name(self):
        rules = build_rules(document(record(), record(name="Other", category="Naming"), group="Style"))
        assert [rule.category for rule in rules] == ["Style", "Naming"]

    def test_rules_are_immutable(self):
        (rule,) = build_rules(document(record()))
        with pytest.raises(AttributeError):
            rule.meta.priority = 99


class TestRegistryLookups:
    """Test cases for kinds, adapters and rule filtering."""

    def test_builtin_kinds_are_registered(self):
        assert {"count", "match", "identifier_length", "max_count"} <= set(list_rule_kinds())

    def test_adapter_for_java_file(self):
        adapter = get_adapter_for_file("src/Account.java")
        assert adapter is not None
        assert adapter.language_id == "java"
        assert get_adapter_for_file("notes.txt") is None

    def test_filter_rules_by_pattern(self):
        rules = build_rules(document(
            record(name="Alpha"), record(name="Beta"), record(name="Gamma", category="Naming")))

        assert filter_rules(rules, ["*"]) == rules
        assert filter_rules(rules, []) == []
        assert [r.name for r in filter_rules(rules, ["Variables/*"])] == ["Alpha", "Beta"]
        assert [r.name for r in filter_rules(rules, ["Naming/*", "*/Alpha"])] == ["Alpha", "Gamma"]


def test_loaded_rules_scan_sample_file():
    from loupe.scan_manager import ScanManager

    rules = load_rule_registry(str(FIXTURES_DIR / "variables_rules.yaml"))
    source = (FIXTURES_DIR / "Sample.java").read_text()

    results = ScanManager("java", "Sample.java", source, rules).scan()

    assert [(r.rule, r.source_fragment, r.severity) for r in results] == [
        ("Length < 3", "x", 3),
        ("Length < 3", "y", 3),
        ("Trivial RegEx", "foo_bar123", 2),
    ]
