"""
Named pre-filters a rule record can select to narrow its search scope.

Each filter maps the tree root to the node the rule's query runs over and
falls back to the root when nothing narrower exists.
"""

from collections import deque

from ..registry import register_pre_filter
from .base import identity_filter


def _first_descendant(root, node_type: str):
    """Breadth-first search for the first named descendant of a given type."""
    queue = deque([root])
    while queue:
        node = queue.popleft()
        if node.type == node_type:
            return node
        queue.extend(node.named_children)
    return None


def first_class(root):
    """Scope to the first class declaration in the file."""
    return _first_descendant(root, "class_declaration") or root


def first_class_body(root):
    """Scope to the body of the first class, excluding its header and annotations."""
    declaration = _first_descendant(root, "class_declaration")
    if declaration is None:
        return root
    return declaration.child_by_field_name("body") or declaration


register_pre_filter("identity", identity_filter)
register_pre_filter("first_class", first_class)
register_pre_filter("first_class_body", first_class_body)
