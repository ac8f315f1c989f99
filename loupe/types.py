"""
Core types for the Loupe tree-sitter engine.

This module provides shared dataclasses and types used across the engine,
adapters, and rules.
"""

import os
from dataclasses import dataclass, asdict
from enum import IntEnum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
from abc import ABC, abstractmethod


SCAN = "scan"
MEASURE = "measure"
OPERATIONS: FrozenSet[str] = frozenset({SCAN, MEASURE})
DEFAULT_CONTEXT: FrozenSet[str] = frozenset({SCAN})


class ResultType(IntEnum):
    """Ordered severity levels, mappable onto SARIF result levels."""
    NONE = 0
    NOTE = 1
    WARNING = 2
    VIOLATION = 3


MAX_SEVERITY = ResultType.VIOLATION

_SEVERITY_LABELS = {
    ResultType.NONE: "none",
    ResultType.NOTE: "note",
    ResultType.WARNING: "warning",
    ResultType.VIOLATION: "error",
}


def clamp_severity(priority: int) -> int:
    """Normalize a declared priority so it never exceeds the highest severity.

    A rule declaring a priority of 16452 is treated as a violation rather
    than rejected.
    """
    return min(int(priority), int(MAX_SEVERITY))


def severity_label(severity: int) -> str:
    """Map a severity value to its SARIF-style label ("none" for unknown levels)."""
    try:
        return _SEVERITY_LABELS[ResultType(severity)]
    except ValueError:
        return "none"


def normalize_context(context: Any) -> FrozenSet[str]:
    """Turn a rule context declaration into a set of operations.

    Accepts None, a comma separated string ("scan,measure") or an iterable
    of operation names. An empty declaration defaults to scan.
    """
    if context is None:
        return DEFAULT_CONTEXT
    if isinstance(context, str):
        parts = [part.strip() for part in context.split(",")]
    else:
        parts = [str(part).strip() for part in context]
    resolved = frozenset(part for part in parts if part)
    return resolved or DEFAULT_CONTEXT


@dataclass(frozen=True)
class RuleMeta:
    """Metadata describing what a rule matches and how its findings are reported.

    Attributes:
        name: Rule name, unique within its category (e.g., "Length < 3")
        category: Grouping label (e.g., "Variables")
        query: Base tree-sitter pattern
        message: Message attached to every finding
        context: Operations the rule takes part in ("scan" and/or "measure")
        regex: Optional regular expression the @exp capture must match
        priority: Declared severity; clamped to MAX_SEVERITY when evaluated
        options: Kind-specific settings from the rule record
    """
    name: str
    category: str
    query: str
    message: str = ""
    context: FrozenSet[str] = DEFAULT_CONTEXT
    regex: Optional[str] = None
    priority: int = int(ResultType.VIOLATION)
    options: Tuple[Tuple[str, Any], ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'context', normalize_context(self.context))
        if isinstance(self.options, dict):
            object.__setattr__(self, 'options', tuple(sorted(self.options.items())))

    @property
    def rule_id(self) -> str:
        return f"{self.category}/{self.name}"

    def option(self, key: str, default: Any = None) -> Any:
        return dict(self.options).get(key, default)


@dataclass(frozen=True)
class Capture:
    """A node bound to a named capture by a query match."""
    name: str
    node: Any


@dataclass(frozen=True)
class ScanResult:
    """A finding produced by a rule for one location in the source."""
    rule: str
    category: str
    message: str
    severity: int
    file: str
    start_byte: int
    end_byte: int
    source_fragment: str = ""
    meta: Optional[Dict[str, Any]] = None

    @property
    def severity_label(self) -> str:
        return severity_label(self.severity)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity_label"] = self.severity_label
        if data["meta"] is None:
            del data["meta"]
        return data


@dataclass(frozen=True)
class DumpResult:
    """A source fragment selected by an ad-hoc dump query."""
    capture: str
    source_fragment: str
    start_byte: int
    end_byte: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScanContext:
    """Context passed to rule validators and measurers during a scan."""
    file_path: str
    source: str
    root: Any
    operation: str = SCAN

    def node_text(self, node) -> str:
        """Get the source text covered by a node."""
        return slice_source(self.source, node.start_byte, node.end_byte)


def slice_source(source: str, start_byte: int, end_byte: int) -> str:
    """Extract text between byte offsets of a str source."""
    if isinstance(source, bytes):
        return source[start_byte:end_byte].decode("utf-8", errors="replace")
    return source.encode("utf-8")[start_byte:end_byte].decode("utf-8", errors="replace")


class LanguageAdapter(ABC):
    """Abstract base class for language adapters."""

    @property
    @abstractmethod
    def language_id(self) -> str:
        """Return the language identifier (e.g., 'java')."""
        pass

    @property
    @abstractmethod
    def file_extensions(self) -> Tuple[str, ...]:
        """Return supported file extensions (e.g., ('.java',))."""
        pass

    @property
    @abstractmethod
    def language(self) -> Any:
        """Return the tree-sitter Language used to compile queries."""
        pass

    @abstractmethod
    def parse(self, text: str) -> Any:
        """Parse text and return a tree-sitter tree."""
        pass

    def node_text(self, text: str, start_byte: int, end_byte: int) -> str:
        """Extract text between byte offsets."""
        return slice_source(text, start_byte, end_byte)

    def list_files(self, paths: List[str]) -> List[str]:
        """List all files matching this adapter's extensions in the given paths."""
        found = []
        for path in paths:
            if os.path.isfile(path):
                if path.endswith(self.file_extensions):
                    found.append(path)
            elif os.path.isdir(path):
                for root, dirs, files in os.walk(path):
                    dirs[:] = [d for d in dirs if not d.startswith('.')]
                    for name in files:
                        if name.endswith(self.file_extensions):
                            found.append(os.path.join(root, name))
        return sorted(found)
