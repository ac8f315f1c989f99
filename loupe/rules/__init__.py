"""
Built-in rule kinds and pre-filters.

Importing this package registers them with the global registry.
"""

from .base import QueryRule, identity_filter
from .count import CountRule
from .match import MatchRule
from .identifier_length import IdentifierLengthRule
from .max_count import MaxCountRule
from . import filters

__all__ = ["QueryRule", "identity_filter", "CountRule", "MatchRule", "IdentifierLengthRule", "MaxCountRule", "filters"]
