"""
component_order/classifier.py
═════════════════════════════

Statement categorisation for component and hook bodies.

Each top-level statement is assigned a :class:`~component_order.primitives.Bucket`
or left *uncategorized* (``None``).  Dispatch is a table keyed on the closed
:class:`StatementKind` enumeration with one handler per variant:

    ┌────────────────────────┬──────────────────────────────────────────┐
    │  VariableDeclaration   │  primitive call → its bucket             │
    │                        │  unlisted ``useX()`` → CUSTOM_PRIMITIVE  │
    │                        │  function literal → HANDLER              │
    │                        │  ``{a} = param[.x]`` → PARAM_DERIVED     │
    │                        │  ``{a} = props`` → PARAM_DESTRUCTURE     │
    │                        │  call of a local handler → HANDLER       │
    │                        │  anything else → DERIVED                 │
    │  FunctionDeclaration   │  HANDLER                                 │
    │  ExpressionStatement   │  effect call → EFFECT                    │
    │                        │  other ``useX()`` → CUSTOM_PRIMITIVE     │
    │  ReturnStatement       │  RETURN                                  │
    │  anything else         │  uncategorized                           │
    └────────────────────────┴──────────────────────────────────────────┘

The module also decides whether a function is a *component* (capitalised
name, renders JSX) or a *hook* (conventional primitive name, block body,
no JSX), and packages a function's statements as a :class:`FunctionBody`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Tuple,
)

from .errors import AstShapeError
from .estree import (
    FunctionInfo,
    callee_name,
    contains_jsx,
    declared_names,
    identifier_name,
    is_function_literal,
    node_get,
    node_range,
    node_type,
    parameter_names,
)
from .primitives import Bucket, PrimitiveTable, default_primitive_table
from .references import declaration_references

logger = logging.getLogger(__name__)


class StatementKind(Enum):
    """Closed set of statement shapes the classifier distinguishes."""
    VARIABLE_DECLARATION = "VariableDeclaration"
    FUNCTION_DECLARATION = "FunctionDeclaration"
    EXPRESSION = "ExpressionStatement"
    RETURN = "ReturnStatement"
    OTHER = "Other"

    @classmethod
    def of(cls, node: Any) -> "StatementKind":
        kind = node_type(node)
        for member in cls:
            if member.value == kind and member is not cls.OTHER:
                return member
        return cls.OTHER

    @property
    def is_categorizable(self) -> bool:
        return self is not StatementKind.OTHER


class FunctionRole(Enum):
    COMPONENT = "component"
    HOOK = "hook"


# Wrappers looked through when finding the source of a destructure.
_TRANSPARENT_WRAPPERS = frozenset({
    "ChainExpression", "TSNonNullExpression", "TSAsExpression",
    "TSSatisfiesExpression", "ParenthesizedExpression",
})


def _unwrap(node: Any) -> Any:
    while node_type(node) in _TRANSPARENT_WRAPPERS:
        node = node_get(node, "expression")
    return node


def _member_root(node: Any) -> Any:
    node = _unwrap(node)
    while node_type(node) in ("MemberExpression", "OptionalMemberExpression"):
        node = _unwrap(node_get(node, "object"))
    return node


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — STATEMENT MODEL
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Statement:
    """
    One top-level statement of a function body.

    Attributes
    ----------
    index      : position in the body
    node       : the ESTree statement node
    kind       : StatementKind
    declared   : names the statement binds, in source order
    references : names its declaration initializers read
    bucket     : own bucket, ``None`` when uncategorized
    """
    index: int
    node: Any
    kind: StatementKind
    declared: Tuple[str, ...] = ()
    references: Tuple[str, ...] = ()
    bucket: Optional[Bucket] = None

    @property
    def is_categorized(self) -> bool:
        return self.bucket is not None

    @property
    def range(self) -> Tuple[int, int]:
        return node_range(self.node)

    def __repr__(self) -> str:
        label = self.bucket.name if self.bucket is not None else "-"
        names = ",".join(self.declared)
        return f"Statement(#{self.index} {self.kind.name} {label} [{names}])"


@dataclass
class FunctionBody:
    """The analysed unit: one function's statements plus its context."""
    function: FunctionInfo
    role: FunctionRole
    statements: List[Statement] = field(default_factory=list)
    parameter_names: FrozenSet[str] = frozenset()

    @property
    def role_label(self) -> str:
        return self.role.value

    @property
    def categorizable(self) -> List[Statement]:
        return [s for s in self.statements if s.kind.is_categorizable]

    def __len__(self) -> int:
        return len(self.statements)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — CLASSIFIER
# ═══════════════════════════════════════════════════════════════════════════

_Handler = Callable[[Any, FrozenSet[str], FrozenSet[str]], Optional[Bucket]]


def local_handler_names(statements: Iterable[Any]) -> FrozenSet[str]:
    """Names of function declarations and function-literal bindings."""
    names = set()
    for stmt in statements:
        kind = node_type(stmt)
        if kind == "FunctionDeclaration":
            name = identifier_name(node_get(stmt, "id"))
            if name:
                names.add(name)
        elif kind == "VariableDeclaration":
            for decl in node_get(stmt, "declarations", []):
                name = identifier_name(node_get(decl, "id"))
                if name and is_function_literal(node_get(decl, "init")):
                    names.add(name)
    return frozenset(names)


class StatementClassifier:
    """
    Assigns buckets to statements using an explicit :class:`PrimitiveTable`.

    Usage
    -----
    >>> clf = StatementClassifier()
    >>> clf.classify(stmt_node, frozenset({"title"}))
    <Bucket.STATE: 4>
    """

    def __init__(self, table: Optional[PrimitiveTable] = None) -> None:
        self.table = table or default_primitive_table()
        self._handlers: Dict[StatementKind, _Handler] = {
            StatementKind.VARIABLE_DECLARATION: self._classify_variable,
            StatementKind.FUNCTION_DECLARATION: self._classify_function,
            StatementKind.EXPRESSION: self._classify_expression,
            StatementKind.RETURN: self._classify_return,
        }

    def classify(
        self,
        node: Any,
        parameter_names: FrozenSet[str] = frozenset(),
        local_handlers: FrozenSet[str] = frozenset(),
    ) -> Optional[Bucket]:
        """
        Bucket of statement *node*, or ``None`` when uncategorized.

        A node whose shape the handlers cannot read is treated as
        uncategorized rather than aborting the whole body.
        """
        handler = self._handlers.get(StatementKind.of(node))
        if handler is None:
            return None
        try:
            return handler(node, parameter_names, local_handlers)
        except (AttributeError, KeyError, TypeError, AstShapeError) as exc:
            logger.debug(
                "Treating %s as uncategorized: %s", node_type(node), exc
            )
            return None

    # ── per-kind handlers ────────────────────────────────────────────

    def _classify_return(self, node, params, handlers) -> Optional[Bucket]:
        return Bucket.RETURN

    def _classify_function(self, node, params, handlers) -> Optional[Bucket]:
        return Bucket.HANDLER

    def _classify_expression(self, node, params, handlers) -> Optional[Bucket]:
        expr = node_get(node, "expression")
        if node_type(expr) != "CallExpression":
            return None
        name = callee_name(expr)
        if self.table.is_effect(name):
            return Bucket.EFFECT
        if self.table.matches_convention(name):
            return Bucket.CUSTOM_PRIMITIVE
        return None

    def _classify_variable(self, node, params, handlers) -> Optional[Bucket]:
        declarations = node_get(node, "declarations", [])

        for decl in declarations:
            init = node_get(decl, "init")
            if init is None:
                continue
            if node_type(init) == "CallExpression":
                name = callee_name(init)
                bucket = self.table.bucket_for(name)
                if bucket is not None:
                    return bucket
                if self.table.matches_convention(name):
                    return Bucket.CUSTOM_PRIMITIVE
            if is_function_literal(init):
                return Bucket.HANDLER

        for decl in declarations:
            init = node_get(decl, "init")
            if node_type(node_get(decl, "id")) != "ObjectPattern" or init is None:
                continue
            source = _unwrap(init)
            root = _member_root(source)
            if node_type(root) == "Identifier" and node_get(root, "name") in params:
                return Bucket.PARAM_DERIVED
            if identifier_name(source) == "props":
                return Bucket.PARAM_DESTRUCTURE

        for decl in declarations:
            init = node_get(decl, "init")
            if node_type(init) != "CallExpression":
                continue
            callee = identifier_name(node_get(init, "callee"))
            if callee in handlers and not self.table.matches_convention(callee):
                return Bucket.HANDLER

        return Bucket.DERIVED

    # ── function roles ───────────────────────────────────────────────

    def function_role(self, info: FunctionInfo) -> Optional[FunctionRole]:
        """Component, hook, or ``None`` for functions the engine ignores."""
        name = info.name
        if not name:
            return None
        if "A" <= name[0] <= "Z":
            return FunctionRole.COMPONENT if contains_jsx(info.body) else None
        if self.table.matches_convention(name):
            if not info.has_block_body or contains_jsx(info.body):
                return None
            return FunctionRole.HOOK
        return None

    def build_body(
        self,
        info: FunctionInfo,
        role: Optional[FunctionRole] = None,
    ) -> Optional[FunctionBody]:
        """
        Classify every statement of *info*'s block body.

        Returns ``None`` for non-block bodies and for functions that are
        neither components nor hooks (when *role* is not forced).
        """
        role = role or self.function_role(info)
        if role is None or not info.has_block_body:
            return None

        nodes = info.statements
        params = frozenset(parameter_names(info.params))
        handlers = local_handler_names(nodes)
        statements: List[Statement] = []
        for index, node in enumerate(nodes):
            kind = StatementKind.of(node)
            statements.append(Statement(
                index=index,
                node=node,
                kind=kind,
                declared=tuple(declared_names(node)),
                references=declaration_references(node),
                bucket=self.classify(node, params, handlers),
            ))
        return FunctionBody(
            function=info,
            role=role,
            statements=statements,
            parameter_names=params,
        )


__all__ = [
    "FunctionBody",
    "FunctionRole",
    "Statement",
    "StatementClassifier",
    "StatementKind",
    "local_handler_names",
]
