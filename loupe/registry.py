"""
Registry for rule kinds, pre-filters and language adapters.

This module provides a central registry to discover rule implementations and
to load rule registry files. A rule registry file is an ordered list of rule
groups; each record names the rule kind that implements it, so rule behavior
is selected from a fixed set of registered classes rather than arbitrary code.
"""

import fnmatch
import json
import logging
import os
import re
from typing import Any, Callable, Dict, List, Optional, Type

import yaml

from .errors import RuleSchemaError
from .schema import validate_options, validate_registry_document
from .types import LanguageAdapter, RuleMeta

logger = logging.getLogger(__name__)


class Registry:
    """Central registry for rule kinds, pre-filters and adapters."""

    def __init__(self):
        self._kinds: Dict[str, Type] = {}
        self._pre_filters: Dict[str, Callable[[Any], Any]] = {}
        self._adapters: Dict[str, LanguageAdapter] = {}

    def register_rule_kind(self, rule_class: Type) -> None:
        """Register a rule class under its ``kind`` name."""
        kind = getattr(rule_class, 'kind', '')
        if not kind:
            raise ValueError(f"Rule class {rule_class.__name__} does not declare a kind")
        if kind in self._kinds:
            # Skip duplicate registration silently to avoid import noise
            return
        self._kinds[kind] = rule_class

    def get_rule_kind(self, kind: str) -> Optional[Type]:
        return self._kinds.get(kind)

    def list_rule_kinds(self) -> List[str]:
        return sorted(self._kinds)

    def register_pre_filter(self, name: str, pre_filter: Callable[[Any], Any]) -> None:
        """Register a named pre-filter. Silently skips if already registered."""
        if name in self._pre_filters:
            return
        self._pre_filters[name] = pre_filter

    def get_pre_filter(self, name: str) -> Optional[Callable[[Any], Any]]:
        return self._pre_filters.get(name)

    def register_adapter(self, language: str, adapter: LanguageAdapter) -> None:
        """Register a language adapter. Silently skips if already registered."""
        if language in self._adapters:
            return
        self._adapters[language] = adapter

    def get_adapter(self, language: str) -> Optional[LanguageAdapter]:
        """Get adapter for a language."""
        return self._adapters.get(language)

    def get_adapter_for_file(self, file_path: str) -> Optional[LanguageAdapter]:
        """Get adapter for a file based on its extension."""
        ext = os.path.splitext(file_path)[1].lower()
        for adapter in self._adapters.values():
            if ext in adapter.file_extensions:
                return adapter
        return None

    def build_rule(self, record: Dict[str, Any], group_name: str):
        """
        Instantiate one rule from a schema-valid record.

        Args:
            record: Rule record from a registry document
            group_name: Name of the enclosing group, the default category

        Returns:
            A rule instance of the record's kind

        Raises:
            RuleSchemaError: If the kind, pre-filter, regex or options are invalid
        """
        label = f"{group_name}/{record.get('name', '?')}"
        problems = []

        rule_class = self.get_rule_kind(record["kind"])
        if rule_class is None:
            problems.append(f"{label}: unknown rule kind '{record['kind']}'")

        pre_filter = None
        if record.get("pre_filter"):
            pre_filter = self.get_pre_filter(record["pre_filter"])
            if pre_filter is None:
                problems.append(f"{label}: unknown pre_filter '{record['pre_filter']}'")

        regex = record.get("regex")
        if regex:
            try:
                re.compile(regex)
            except re.error as e:
                problems.append(f"{label}: invalid regex {regex!r}: {e}")

        options = record.get("options") or {}
        if rule_class is not None:
            problems.extend(f"{label}: options {problem}"
                            for problem in validate_options(options, rule_class.options_schema))

        if problems:
            raise RuleSchemaError("Invalid rule record", problems)

        meta = RuleMeta(
            name=record["name"],
            category=record.get("category") or group_name,
            query=record["query"],
            message=record.get("message", ""),
            context=record.get("context"),
            regex=regex,
            priority=record["priority"],
            options=options,
        )
        return rule_class(meta, pre_filter=pre_filter)

    def build_rules(self, document: Any) -> List[Any]:
        """
        Validate a registry document and build its rules in declaration order.

        All problems across the document are collected before raising, so a
        rule author sees every mistake at once.
        """
        problems = validate_registry_document(document)
        if problems:
            raise RuleSchemaError("Rule registry does not match the schema", problems)

        rules = []
        seen = set()
        for group in document["rules"]:
            for record in group["queries"]:
                try:
                    rule = self.build_rule(record, group["name"])
                except RuleSchemaError as e:
                    problems.extend(e.problems)
                    continue
                if rule.rule_id in seen:
                    problems.append(f"{rule.rule_id}: duplicate rule id")
                    continue
                seen.add(rule.rule_id)
                rules.append(rule)

        if problems:
            raise RuleSchemaError("Rule registry contains invalid rules", problems)
        return rules

    def clear(self) -> None:
        """Clear all registrations (mainly for testing)."""
        self._kinds.clear()
        self._pre_filters.clear()
        self._adapters.clear()


# Global registry instance
_global_registry = Registry()


def _load_builtins() -> None:
    """Import the built-in rule kinds, pre-filters and adapters so they register."""
    from . import rules  # noqa: F401
    from .java_adapter import default_java_adapter

    _global_registry.register_adapter(default_java_adapter.language_id, default_java_adapter)


def read_registry_document(path: str) -> Any:
    """Read a rule registry file (YAML, or JSON for .json files)."""
    with open(path, 'r', encoding='utf-8') as f:
        if path.endswith('.json'):
            return json.load(f)
        return yaml.safe_load(f)


def load_rule_registry(path: str) -> List[Any]:
    """
    Load, validate and instantiate the rules declared in a registry file.

    Args:
        path: Path to a YAML or JSON rule registry

    Returns:
        Rules in declaration order

    Raises:
        RuleSchemaError: If the file cannot be parsed or a record is invalid
    """
    try:
        document = read_registry_document(path)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise RuleSchemaError(f"Could not read rule registry {path}: {e}") from e

    rules = build_rules(document)
    logger.info("Loaded %d rules from %s", len(rules), path)
    return rules


def filter_rules(rules: List[Any], enabled_patterns: List[str]) -> List[Any]:
    """Keep rules whose id matches one of the fnmatch patterns, preserving order."""
    if not enabled_patterns:
        return []
    if enabled_patterns == ["*"]:
        return list(rules)
    return [rule for rule in rules
            if any(fnmatch.fnmatch(rule.rule_id, pattern) for pattern in enabled_patterns)]


# Convenience functions that operate on the global registry
def register_rule_kind(rule_class: Type) -> None:
    """Register a rule kind in the global registry."""
    _global_registry.register_rule_kind(rule_class)


def register_pre_filter(name: str, pre_filter: Callable[[Any], Any]) -> None:
    """Register a named pre-filter in the global registry."""
    _global_registry.register_pre_filter(name, pre_filter)


def register_adapter(language: str, adapter: LanguageAdapter) -> None:
    """Register a language adapter in the global registry."""
    _global_registry.register_adapter(language, adapter)


def get_adapter(language: str) -> Optional[LanguageAdapter]:
    """Get adapter for a language from the global registry."""
    _load_builtins()
    return _global_registry.get_adapter(language)


def get_adapter_for_file(file_path: str) -> Optional[LanguageAdapter]:
    """Get adapter for a file based on its extension from the global registry."""
    _load_builtins()
    return _global_registry.get_adapter_for_file(file_path)


def get_rule_kind(kind: str) -> Optional[Type]:
    """Get a rule class by kind from the global registry."""
    _load_builtins()
    return _global_registry.get_rule_kind(kind)


def list_rule_kinds() -> List[str]:
    """List registered rule kinds."""
    _load_builtins()
    return _global_registry.list_rule_kinds()


def build_rules(document: Any) -> List[Any]:
    """Validate a registry document and build its rules with the global registry."""
    _load_builtins()
    return _global_registry.build_rules(document)


def get_registry() -> Registry:
    """Get the global registry instance (for advanced usage)."""
    _load_builtins()
    return _global_registry
