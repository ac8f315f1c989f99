"""
JSON schema validation for Loupe rule registries and findings.

This module provides JSON schema definitions and validation helpers so rule
records are checked before evaluation starts and findings conform to a
well-defined contract for downstream tools.
"""

from typing import Any, Dict, Iterable, List
import json

import jsonschema

from .types import OPERATIONS, DumpResult, ScanResult

_CONTEXT_ITEM = {"type": "string", "enum": sorted(OPERATIONS)}

# JSON Schema for one rule record inside a group's "queries" list
RULE_RECORD_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {
            "type": "string",
            "minLength": 1,
            "description": "Rule name, unique within its category"
        },
        "kind": {
            "type": "string",
            "minLength": 1,
            "description": "Registered rule implementation to instantiate"
        },
        "category": {
            "type": "string",
            "minLength": 1,
            "description": "Grouping label; defaults to the group name"
        },
        "context": {
            "description": "Operations the rule takes part in",
            "oneOf": [
                {"type": "string", "pattern": "^\\s*(scan|measure)\\s*(,\\s*(scan|measure)\\s*)*$"},
                {"type": "array", "items": _CONTEXT_ITEM, "uniqueItems": True},
            ]
        },
        "message": {"type": "string"},
        "query": {
            "type": "string",
            "minLength": 1,
            "description": "Base tree-sitter pattern"
        },
        "regex": {
            "type": "string",
            "minLength": 1,
            "description": "Regular expression the @exp capture must match"
        },
        "priority": {"type": "integer"},
        "pre_filter": {"type": "string", "minLength": 1},
        "options": {"type": "object"}
    },
    "required": ["name", "kind", "query", "priority"],
    "additionalProperties": False
}

# JSON Schema for a whole rule registry document
RULE_REGISTRY_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "rules": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "queries": {"type": "array", "items": RULE_RECORD_JSON_SCHEMA}
                },
                "required": ["name", "queries"],
                "additionalProperties": False
            }
        }
    },
    "required": ["rules"],
    "additionalProperties": False
}

# JSON Schema for a single serialized finding
FINDING_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "rule": {"type": "string"},
        "category": {"type": "string"},
        "message": {"type": "string"},
        "severity": {"type": "integer"},
        "severity_label": {"type": "string", "enum": ["none", "note", "warning", "error"]},
        "file": {"type": "string"},
        "start_byte": {"type": "integer", "minimum": 0},
        "end_byte": {"type": "integer", "minimum": 0},
        "source_fragment": {"type": "string"},
        "meta": {"type": "object"}
    },
    "required": ["rule", "category", "message", "severity", "file", "start_byte", "end_byte"],
    "additionalProperties": False
}


def _format_error(error: jsonschema.ValidationError) -> str:
    location = "/".join(str(part) for part in error.absolute_path)
    return f"{location or '<root>'}: {error.message}"


def validate_registry_document(document: Any) -> List[str]:
    """
    Validate a loaded rule registry document against the schema.

    Args:
        document: Parsed YAML/JSON content

    Returns:
        List of validation errors (empty if valid)
    """
    validator = jsonschema.Draft7Validator(RULE_REGISTRY_JSON_SCHEMA)
    errors = sorted(validator.iter_errors(document), key=lambda e: list(e.absolute_path))
    return [_format_error(error) for error in errors]


def validate_options(options: Dict[str, Any], options_schema: Dict[str, Any]) -> List[str]:
    """Validate a rule record's options against its kind's schema."""
    validator = jsonschema.Draft7Validator(options_schema)
    return [_format_error(error) for error in validator.iter_errors(options)]


def validate_findings(findings: List[Dict[str, Any]]) -> List[str]:
    """
    Validate serialized findings against the schema.

    Args:
        findings: List of finding dictionaries to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []
    for i, finding in enumerate(findings):
        try:
            jsonschema.validate(finding, FINDING_JSON_SCHEMA)
        except jsonschema.ValidationError as e:
            errors.append(f"Finding {i}: {e.message}")
    return errors


def findings_to_json(results: Iterable[ScanResult]) -> List[Dict[str, Any]]:
    """Convert findings to their JSON-ready dictionary form."""
    return [result.to_dict() for result in results]


def dump_results_to_json(results: Iterable[DumpResult]) -> str:
    """Serialize dump results to a JSON string."""
    return json.dumps([result.to_dict() for result in results])
