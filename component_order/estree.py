"""
component_order/estree.py
═════════════════════════

Read-only navigation helpers for ESTree syntax trees.

The engine never parses source text itself.  It consumes trees produced by
an external ESTree builder, in either of two shapes:

    ┌─────────────────────────────────────────────────────────────────┐
    │  Mapping nodes    — JSON dumps ({"type": ..., "range": [...]})  │
    │  Attribute nodes  — objects such as ``esprima`` node instances  │
    └─────────────────────────────────────────────────────────────────┘

Every accessor below goes through :func:`node_get`, so the rest of the
package is indifferent to which shape it was given.

Provided here:

    • node accessors           node_get / node_type / node_range
    • generic traversal        iter_children / fold (edge-table driven)
    • JSX detection            contains_jsx
    • binding helpers          pattern_names / parameter_names
    • function discovery       iter_functions → FunctionInfo
    • source text indexing     SourceText (line/column, indentation)

Like the rest of the package, these helpers treat ``None`` gracefully and
return empty results rather than raising, except :func:`node_range`, whose
callers cannot proceed without positions.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterator,
    List,
    Mapping,
    Optional,
    Set,
    Tuple,
    TypeVar,
    Union,
)

from .errors import AstShapeError

Node = Any
A = TypeVar("A")

# Fields that never hold child nodes worth descending into.
_NON_CHILD_KEYS: FrozenSet[str] = frozenset({
    "type", "range", "loc", "start", "end", "parent",
    "leadingComments", "trailingComments", "innerComments",
    "comments", "tokens", "errors",
})

FUNCTION_TYPES: FrozenSet[str] = frozenset({
    "FunctionDeclaration",
    "FunctionExpression",
    "ArrowFunctionExpression",
})

JSX_TYPES: FrozenSet[str] = frozenset({"JSXElement", "JSXFragment"})


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — NODE ACCESSORS
# ═══════════════════════════════════════════════════════════════════════════

def node_get(node: Node, key: str, default: Any = None) -> Any:
    """Return field *key* of *node* for mapping and attribute nodes alike."""
    if node is None:
        return default
    if isinstance(node, Mapping):
        return node.get(key, default)
    value = getattr(node, key, default)
    return default if value is None else value


def node_type(node: Node) -> str:
    return node_get(node, "type", "") or ""


def is_node(value: Any) -> bool:
    """True for anything that looks like an ESTree node."""
    if value is None or isinstance(value, (str, bytes, int, float)):
        return False
    return isinstance(node_get(value, "type"), str)


def node_range(node: Node) -> Tuple[int, int]:
    """
    Return the ``[start, end)`` character offsets of *node*.

    Accepts ESLint/esprima style ``range`` pairs and acorn/babel style
    ``start``/``end`` fields.

    Raises
    ------
    AstShapeError
        If the node carries no position information at all.
    """
    rng = node_get(node, "range")
    if rng is not None and len(rng) == 2:
        return int(rng[0]), int(rng[1])
    start = node_get(node, "start")
    end = node_get(node, "end")
    if isinstance(start, int) and isinstance(end, int):
        return start, end
    raise AstShapeError(
        f"{node_type(node) or 'node'} has no source range; "
        "parse with range information enabled",
        node,
    )


def identifier_name(node: Node) -> Optional[str]:
    if node_type(node) == "Identifier":
        return node_get(node, "name")
    return None


def callee_name(call: Node) -> Optional[str]:
    """
    Name of the function a call invokes.

    ``foo()`` → ``"foo"``; ``React.useState()`` → ``"useState"``.  Computed
    member callees and anything more complex yield ``None``.
    """
    if node_type(call) != "CallExpression":
        return None
    callee = node_get(call, "callee")
    if node_type(callee) == "Identifier":
        return node_get(callee, "name")
    if node_type(callee) == "MemberExpression" and not node_get(callee, "computed", False):
        return identifier_name(node_get(callee, "property"))
    return None


def is_function_literal(node: Node) -> bool:
    return node_type(node) in ("ArrowFunctionExpression", "FunctionExpression")


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — GENERIC TRAVERSAL
# ═══════════════════════════════════════════════════════════════════════════

def iter_children(node: Node) -> Iterator[Node]:
    """Yield the direct child nodes of *node* in field order."""
    if node is None:
        return
    if isinstance(node, Mapping):
        items = node.items()
    else:
        items = vars(node).items()
    for key, value in items:
        if key in _NON_CHILD_KEYS:
            continue
        if isinstance(value, (list, tuple)):
            for item in value:
                if is_node(item):
                    yield item
        elif is_node(value):
            yield value


# An edge table maps a node type to the fields a fold descends into, or to
# a callable computing those fields from the node.
EdgeSpec = Union[Tuple[str, ...], Callable[[Node], Tuple[str, ...]]]
EdgeTable = Mapping[str, EdgeSpec]


def _edge_children(node: Node, edges: EdgeTable) -> List[Node]:
    spec = edges.get(node_type(node), ())
    fields = spec(node) if callable(spec) else spec
    children: List[Node] = []
    for name in fields:
        value = node_get(node, name)
        if isinstance(value, (list, tuple)):
            children.extend(v for v in value if v is not None)
        elif value is not None:
            children.append(value)
    return children


def fold(
    root: Node,
    visit: Callable[[Node, A], A],
    initial: A,
    edges: EdgeTable,
) -> A:
    """
    Pre-order fold over the node shapes listed in *edges*.

    Only fields named in the edge table are descended; node types absent
    from the table are leaves.  *visit* receives each node and the running
    accumulator and returns the new accumulator.

    Example:
        >>> names = fold(expr, lambda n, acc: acc | {n["name"]}
        ...              if n["type"] == "Identifier" else acc,
        ...              frozenset(), REFERENCE_EDGES)
    """
    acc = initial
    stack: List[Node] = [root]
    while stack:
        node = stack.pop()
        if node is None:
            continue
        acc = visit(node, acc)
        # Reverse so the leftmost child is visited first (LIFO)
        stack.extend(reversed(_edge_children(node, edges)))
    return acc


# JSX is looked for directly, in a block's top-level ``return`` statements,
# and through conditional / logical / parenthesized wrappers.
JSX_EDGES: Dict[str, EdgeSpec] = {
    "BlockStatement": ("body",),
    "ReturnStatement": ("argument",),
    "ConditionalExpression": ("consequent", "alternate"),
    "LogicalExpression": ("left", "right"),
    "ParenthesizedExpression": ("expression",),
}


def contains_jsx(node: Node) -> bool:
    return fold(
        node,
        lambda n, found: found or node_type(n) in JSX_TYPES,
        False,
        JSX_EDGES,
    )


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — BINDINGS
# ═══════════════════════════════════════════════════════════════════════════

def pattern_names(pattern: Node) -> List[str]:
    """
    Every name bound by a declaration target, in source order.

    Handles identifiers, object patterns (property values and rest),
    array patterns (elements, holes and rest), defaults and nesting.
    """
    names: List[str] = []
    stack: List[Node] = [pattern]
    while stack:
        node = stack.pop()
        kind = node_type(node)
        if kind == "Identifier":
            names.append(node_get(node, "name"))
        elif kind == "ObjectPattern":
            for prop in reversed(node_get(node, "properties", [])):
                if node_type(prop) == "Property":
                    stack.append(node_get(prop, "value"))
                elif node_type(prop) == "RestElement":
                    stack.append(node_get(prop, "argument"))
        elif kind == "ArrayPattern":
            stack.extend(
                el for el in reversed(node_get(node, "elements", [])) if el is not None
            )
        elif kind == "RestElement":
            stack.append(node_get(node, "argument"))
        elif kind == "AssignmentPattern":
            stack.append(node_get(node, "left"))
    return names


def declared_names(statement: Node) -> List[str]:
    """Names a top-level statement declares (variables or a function id)."""
    kind = node_type(statement)
    if kind == "VariableDeclaration":
        names: List[str] = []
        for decl in node_get(statement, "declarations", []):
            names.extend(pattern_names(node_get(decl, "id")))
        return names
    if kind == "FunctionDeclaration":
        name = identifier_name(node_get(statement, "id"))
        return [name] if name else []
    return []


def _object_param_names(pattern: Node, into: Set[str]) -> None:
    for prop in node_get(pattern, "properties", []):
        if node_type(prop) == "Property":
            value = node_get(prop, "value")
            if node_type(value) == "Identifier":
                into.add(node_get(value, "name"))
            elif node_type(value) == "AssignmentPattern":
                left = identifier_name(node_get(value, "left"))
                if left:
                    into.add(left)
        elif node_type(prop) == "RestElement":
            arg = identifier_name(node_get(prop, "argument"))
            if arg:
                into.add(arg)


def parameter_names(params: Any) -> Set[str]:
    """
    Names bound by a function's parameter list.

    ``(props)``, ``({ title, count = 0, ...rest })`` and ``(props = {})``
    all contribute; nested patterns below the first level do not.
    """
    names: Set[str] = set()
    for param in params or []:
        kind = node_type(param)
        if kind == "Identifier":
            names.add(node_get(param, "name"))
        elif kind == "ObjectPattern":
            _object_param_names(param, names)
        elif kind == "AssignmentPattern":
            left = node_get(param, "left")
            if node_type(left) == "Identifier":
                names.add(node_get(left, "name"))
            elif node_type(left) == "ObjectPattern":
                _object_param_names(left, names)
    return names


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — FUNCTION DISCOVERY
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FunctionInfo:
    """
    A function-like node found in a program.

    Attributes
    ----------
    node   : the FunctionDeclaration / FunctionExpression / arrow node
    name   : binding name (own id, or the id of the enclosing declarator)
    parent : nearest enclosing FunctionInfo, ``None`` at module level
    """
    node: Node
    name: Optional[str]
    parent: Optional["FunctionInfo"] = None

    @property
    def body(self) -> Node:
        return node_get(self.node, "body")

    @property
    def params(self) -> List[Node]:
        return list(node_get(self.node, "params", []))

    @property
    def has_block_body(self) -> bool:
        return node_type(self.body) == "BlockStatement"

    @property
    def statements(self) -> List[Node]:
        if not self.has_block_body:
            return []
        return list(node_get(self.body, "body", []))

    def ancestors(self) -> Iterator["FunctionInfo"]:
        info = self.parent
        while info is not None:
            yield info
            info = info.parent


def _function_name(node: Node, parent: Node) -> Optional[str]:
    if node_type(parent) == "VariableDeclarator":
        name = identifier_name(node_get(parent, "id"))
        if name:
            return name
    return identifier_name(node_get(node, "id"))


def iter_functions(program: Node) -> Iterator[FunctionInfo]:
    """Yield every function in *program*, outer functions before inner."""
    stack: List[Tuple[Node, Node, Optional[FunctionInfo]]] = [(program, None, None)]
    while stack:
        node, parent, enclosing = stack.pop()
        if node_type(node) in FUNCTION_TYPES:
            enclosing = FunctionInfo(node, _function_name(node, parent), enclosing)
            yield enclosing
        children = list(iter_children(node))
        stack.extend((child, node, enclosing) for child in reversed(children))


# ═══════════════════════════════════════════════════════════════════════════
#  PART 5 — SOURCE TEXT
# ═══════════════════════════════════════════════════════════════════════════

_LEADING_WS = re.compile(r"[ \t]*")


class SourceText:
    """
    Source buffer with a line index.

    Offsets are character offsets into ``text``; lines and columns are
    1-based, as printed by :class:`~component_order.checkers.SourceLocation`.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self._line_starts: List[int] = [0]
        for match in re.finditer(r"\n", text):
            self._line_starts.append(match.end())

    def __len__(self) -> int:
        return len(self.text)

    def line_col(self, offset: int) -> Tuple[int, int]:
        idx = bisect.bisect_right(self._line_starts, offset) - 1
        return idx + 1, offset - self._line_starts[idx] + 1

    def line_start(self, offset: int) -> int:
        idx = bisect.bisect_right(self._line_starts, offset) - 1
        return self._line_starts[idx]

    def indentation_at(self, offset: int) -> str:
        """Leading whitespace of the line containing *offset*."""
        start = self.line_start(offset)
        return _LEADING_WS.match(self.text, start).group(0)

    @property
    def newline(self) -> str:
        """Line ending of the buffer: CRLF when the first break is one."""
        first = self.text.find("\n")
        if first > 0 and self.text[first - 1] == "\r":
            return "\r\n"
        return "\n"

    def get_text(self, node: Node) -> str:
        start, end = node_range(node)
        return self.text[start:end]


__all__ = [
    "FUNCTION_TYPES",
    "JSX_TYPES",
    "JSX_EDGES",
    "FunctionInfo",
    "SourceText",
    "callee_name",
    "contains_jsx",
    "declared_names",
    "fold",
    "identifier_name",
    "is_function_literal",
    "is_node",
    "iter_children",
    "iter_functions",
    "node_get",
    "node_range",
    "node_type",
    "parameter_names",
    "pattern_names",
]
