"""
Java language adapter for tree-sitter.
"""
import logging
from typing import Any, Optional, Tuple

import tree_sitter

from .types import LanguageAdapter

logger = logging.getLogger(__name__)


class JavaAdapter(LanguageAdapter):
    """Tree-sitter adapter for the Java language."""

    def __init__(self):
        """Initialize Java adapter; the parser is created lazily."""
        self._language: Optional[tree_sitter.Language] = None
        self._parser: Optional[tree_sitter.Parser] = None

    @property
    def language_id(self) -> str:
        """Return the language identifier."""
        return "java"

    @property
    def file_extensions(self) -> Tuple[str, ...]:
        """Return supported file extensions."""
        return (".java",)

    @property
    def language(self) -> Optional[tree_sitter.Language]:
        """Return the tree-sitter Language, or None if the grammar is unavailable."""
        if self._language is None:
            try:
                from tree_sitter_java import language

                self._language = tree_sitter.Language(language())
            except ImportError as e:
                logger.warning("tree-sitter-java not available: %s", e)
        return self._language

    def _get_parser(self) -> Optional[tree_sitter.Parser]:
        """Get or create the tree-sitter parser."""
        if self._parser is None and self.language is not None:
            self._parser = tree_sitter.Parser(self.language)
            logger.debug("Java parser initialized successfully")
        return self._parser

    def parse(self, text: str) -> Any:
        """Parse text and return a tree-sitter tree, or None if parsing is impossible."""
        parser = self._get_parser()
        if parser is None:
            return None

        # Handle both str and bytes input
        if isinstance(text, bytes):
            text_bytes = text
        elif isinstance(text, str):
            text_bytes = text.encode('utf-8')
        else:
            return None

        return parser.parse(text_bytes)


# Create default instance
default_java_adapter = JavaAdapter()
