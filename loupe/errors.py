"""
Exception types raised by the Loupe engine.

Only tree construction is allowed to fail a whole operation. Query errors are
absorbed per rule by the scan manager, and rule schema errors surface while a
rule registry is being loaded, before any evaluation starts.
"""

from typing import List, Optional


class LoupeError(Exception):
    """Base class for all engine errors."""


class QueryCompileError(LoupeError):
    """A tree-sitter query could not be compiled or executed."""

    def __init__(self, message: str, query_text: str = ""):
        super().__init__(message)
        self.query_text = query_text


class RuleSchemaError(LoupeError):
    """A rule registry record is malformed.

    Attributes:
        problems: Every problem found while validating the registry, so a
            rule author can fix them all in one pass.
    """

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = list(problems or [])
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


class TreeConstructionError(LoupeError):
    """The source could not be turned into a syntax tree."""
