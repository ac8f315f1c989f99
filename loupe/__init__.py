"""
Loupe tree-sitter engine package.

This package provides a rule-driven static-analysis engine built on
tree-sitter queries.
"""

from .types import (
    ResultType, MAX_SEVERITY, RuleMeta, Capture, ScanResult, DumpResult, ScanContext,
    LanguageAdapter, clamp_severity, severity_label, SCAN, MEASURE
)

from .errors import LoupeError, QueryCompileError, RuleSchemaError, TreeConstructionError

from .query import QueryEngine, compose_query_text, escape_query_string

from .registry import (
    Registry, register_rule_kind, register_pre_filter, register_adapter, get_adapter,
    get_adapter_for_file, get_rule_kind, list_rule_kinds, build_rules, load_rule_registry,
    filter_rules, get_registry
)

from .config import EngineConfig, load_config, get_default_config, save_config, find_config_file, get_rule_priority

from .scan_manager import ScanManager, group_by_category

__all__ = [
    # Types
    "ResultType", "MAX_SEVERITY", "RuleMeta", "Capture", "ScanResult", "DumpResult", "ScanContext",
    "LanguageAdapter", "clamp_severity", "severity_label", "SCAN", "MEASURE",

    # Errors
    "LoupeError", "QueryCompileError", "RuleSchemaError", "TreeConstructionError",

    # Queries
    "QueryEngine", "compose_query_text", "escape_query_string",

    # Registry
    "Registry", "register_rule_kind", "register_pre_filter", "register_adapter", "get_adapter",
    "get_adapter_for_file", "get_rule_kind", "list_rule_kinds", "build_rules", "load_rule_registry",
    "filter_rules", "get_registry",

    # Config
    "EngineConfig", "load_config", "get_default_config", "save_config", "find_config_file", "get_rule_priority",

    # Engine
    "ScanManager", "group_by_category",
]
