"""Tree-sitter helpers for Python source.

Small, stateless functions over tree-sitter nodes shared by the project
model and the symbol indexer.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, List, Optional

logger = logging.getLogger(__name__)

# Statements whose bodies still execute at module scope.
SCOPE_CONTAINERS = {
    "if_statement",
    "elif_clause",
    "else_clause",
    "try_statement",
    "except_clause",
    "finally_clause",
    "with_statement",
    "block",
}

DEFINITION_TYPES = ("function_definition", "class_definition")

_parser: Optional[Any] = None


def get_parser() -> Any:
    """Return a shared tree-sitter parser for Python.

    Raises ImportError when ``tree_sitter`` or ``tree_sitter_python`` is
    not installed.
    """
    global _parser
    if _parser is None:
        import tree_sitter_python  # type: ignore[import-untyped]
        from tree_sitter import Language, Parser as TSParser  # type: ignore[import-untyped]

        _parser = TSParser(Language(tree_sitter_python.language()))
        logger.debug("Loaded tree-sitter parser for python")
    return _parser


def node_text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace")


def iter_nodes(root: Any) -> Iterator[Any]:
    """Pre-order traversal without recursion."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def unwrap_decorated(node: Any) -> Any:
    if node.type == "decorated_definition":
        inner = node.child_by_field_name("definition")
        if inner is not None:
            return inner
    return node


def definition_name(node: Any) -> Optional[Any]:
    """Name identifier of a function/class definition (decorators unwrapped)."""
    actual = unwrap_decorated(node)
    if actual.type in DEFINITION_TYPES:
        return actual.child_by_field_name("name")
    return None


def decorator_names(node: Any) -> List[str]:
    """Dotted names of the decorators on a ``decorated_definition``."""
    if node.type != "decorated_definition":
        return []
    names = []
    for child in node.children:
        if child.type != "decorator":
            continue
        for expr in child.named_children:
            if expr.type == "call":
                func = expr.child_by_field_name("function")
                if func is not None:
                    expr = func
            names.append(node_text(expr))
    return names


def assignment_of(statement: Any) -> Optional[Any]:
    """The ``assignment`` node of an expression statement, if any."""
    if statement.type != "expression_statement":
        return None
    for child in statement.named_children:
        if child.type == "assignment":
            return child
    return None


def target_identifiers(target: Any) -> List[Any]:
    """Identifiers bound by an assignment target (tuples/lists unpacked)."""
    if target is None:
        return []
    if target.type == "identifier":
        return [target]
    if target.type in ("pattern_list", "tuple_pattern", "list_pattern", "tuple", "list",
                       "list_splat_pattern", "parenthesized_expression"):
        found: List[Any] = []
        for child in target.named_children:
            found.extend(target_identifiers(child))
        return found
    return []


def string_value(node: Any) -> Optional[str]:
    """Literal value of a plain (non f-) string node."""
    if node.type != "string":
        return None
    parts = []
    for child in node.children:
        if child.type == "string_content":
            parts.append(node_text(child))
        elif child.type == "interpolation":
            return None
    return "".join(parts)


def class_bases(class_node: Any) -> List[Any]:
    """Positional base-class expressions of a class definition."""
    args = class_node.child_by_field_name("superclasses")
    if args is None:
        return []
    return [a for a in args.named_children if a.type not in ("keyword_argument", "comment")]


def last_dotted_part(text: str) -> str:
    return text.rsplit(".", 1)[-1]


def enclosing(node: Any, types: tuple) -> Optional[Any]:
    current = node.parent
    while current is not None:
        if current.type in types:
            return current
        current = current.parent
    return None


def owning_class(def_node: Any) -> Optional[Any]:
    """Class whose body directly holds ``def_node`` (decorators allowed)."""
    parent = def_node.parent
    if parent is not None and parent.type == "decorated_definition":
        parent = parent.parent
    if parent is None or parent.type != "block":
        return None
    owner = parent.parent
    if owner is not None and owner.type == "class_definition":
        return owner
    return None
