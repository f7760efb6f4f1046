"""
component_order/references.py
═════════════════════════════

Reference extraction: the identifier names an expression reads.

The walk is a :func:`~component_order.estree.fold` over a fixed edge table,
so the shapes it understands are listed in one place:

    member access        object (and the property when computed)
    call / new           callee + arguments
    binary / logical     left + right
    conditional          test + consequent + alternate
    unary / await        argument
    array / spread       elements / argument
    object literal       property values only, never keys
    template literals    interpolations, tag
    wrappers             optional chain, parentheses, TS ``as`` / ``!`` /
                         ``satisfies`` / ``<T>`` assertions

Function literals are leaves: a handler body reading a later binding does
not order the handler after it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Set, Tuple

from .estree import EdgeSpec, fold, node_get, node_type


def _member_fields(node: Any) -> Tuple[str, ...]:
    if node_get(node, "computed", False):
        return ("object", "property")
    return ("object",)


REFERENCE_EDGES: Dict[str, EdgeSpec] = {
    "MemberExpression": _member_fields,
    "OptionalMemberExpression": _member_fields,
    "CallExpression": ("callee", "arguments"),
    "OptionalCallExpression": ("callee", "arguments"),
    "NewExpression": ("callee", "arguments"),
    "BinaryExpression": ("left", "right"),
    "LogicalExpression": ("left", "right"),
    "ConditionalExpression": ("test", "consequent", "alternate"),
    "UnaryExpression": ("argument",),
    "AwaitExpression": ("argument",),
    "ArrayExpression": ("elements",),
    "SpreadElement": ("argument",),
    "ObjectExpression": ("properties",),
    "Property": ("value",),
    "ObjectProperty": ("value",),
    "TemplateLiteral": ("expressions",),
    "TaggedTemplateExpression": ("tag", "quasi"),
    "ChainExpression": ("expression",),
    "ParenthesizedExpression": ("expression",),
    "TSAsExpression": ("expression",),
    "TSNonNullExpression": ("expression",),
    "TSSatisfiesExpression": ("expression",),
    "TSTypeAssertion": ("expression",),
}


# The accumulator is a dict used as an insertion-ordered set, so callers
# that need a stable order (edge order in the dependency graph) get
# first-occurrence order rather than hash order.
def _collect(node: Any, acc: Dict[str, None]) -> Dict[str, None]:
    if node_type(node) == "Identifier":
        acc.setdefault(node_get(node, "name"), None)
    return acc


def ordered_references(node: Any) -> List[str]:
    """Names read by *node*, each once, in first-occurrence order."""
    if node is None:
        return []
    return list(fold(node, _collect, {}, REFERENCE_EDGES))


def collect_references(node: Any) -> Set[str]:
    """Return the set of identifier names read by expression *node*."""
    return set(ordered_references(node))


def declaration_references(statement: Any) -> Tuple[str, ...]:
    """
    Names read by the initializers of a variable declaration.

    Only initializers are scanned; other statement kinds read nothing as
    far as ordering is concerned.
    """
    if node_type(statement) != "VariableDeclaration":
        return ()
    refs: Dict[str, None] = {}
    for decl in node_get(statement, "declarations", []):
        for name in ordered_references(node_get(decl, "init")):
            refs.setdefault(name, None)
    return tuple(refs)


__all__ = [
    "REFERENCE_EDGES",
    "collect_references",
    "declaration_references",
    "ordered_references",
]
