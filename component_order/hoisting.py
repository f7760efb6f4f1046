"""
component_order/hoisting.py
═══════════════════════════

Module-constant hoisting.

A module-scope declarator that binds a plain identifier to a string,
number or boolean literal, and whose name is only ever mentioned inside a
single analysed function, belongs inside that function as derived state.
For each such constant a :class:`HoistCandidate` carries the two edits
that move it:

    removal     the whole statement plus its line break when it has a
                single declarator; otherwise the declarator and the comma
                joining it to its neighbour
    insertion   ``<kind> <declarator>;`` placed after the last primitive
                or derived statement and before the first handler

Names in SCREAMING_CASE are left alone; they are deliberate module
configuration.

This is a textual heuristic.  "Mentioned" means an identifier-bounded
match anywhere in the source text, so a local that shadows the constant,
or the name inside a string or comment, is counted as a use.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from .estree import (
    FunctionInfo,
    SourceText,
    callee_name,
    is_function_literal,
    node_get,
    node_range,
    node_type,
)
from .primitives import PrimitiveTable
from .serializer import TextEdit

logger = logging.getLogger(__name__)

_SCREAMING_CASE = re.compile(r"^[A-Z][A-Z0-9_]*$")


@dataclass(frozen=True)
class ModuleConstant:
    """A hoistable module-scope literal declarator."""
    name: str
    kind: str
    statement: Any
    declarator: Any

    @property
    def id_node(self) -> Any:
        return node_get(self.declarator, "id")


@dataclass(frozen=True)
class HoistCandidate:
    """
    A constant to move into *target*.

    Attributes
    ----------
    constant   : the module-level declarator
    target     : the function it moves into
    role_label : "component" or "hook", used in messages
    edits      : the removal edit, then the insertion edit
    """
    constant: ModuleConstant
    target: FunctionInfo
    role_label: str
    edits: Tuple[TextEdit, ...] = ()


def is_simple_literal(node: Any) -> bool:
    """String, number or boolean literal; never null or a regex."""
    if node_type(node) != "Literal" or node_get(node, "regex") is not None:
        return False
    return isinstance(node_get(node, "value"), (str, bool, int, float))


def iter_module_constants(program: Any) -> Iterator[ModuleConstant]:
    for statement in node_get(program, "body", []):
        if node_type(statement) != "VariableDeclaration":
            continue
        kind = node_get(statement, "kind", "const")
        for decl in node_get(statement, "declarations", []):
            target = node_get(decl, "id")
            if node_type(target) != "Identifier":
                continue
            name = node_get(target, "name")
            if _SCREAMING_CASE.match(name):
                continue
            if not is_simple_literal(node_get(decl, "init")):
                continue
            yield ModuleConstant(name, kind, statement, decl)


def _name_pattern(name: str) -> "re.Pattern[str]":
    return re.compile(r"(?<![\w$])" + re.escape(name) + r"(?![\w$])")


def _within(pos: int, span: Tuple[int, int]) -> bool:
    return span[0] <= pos < span[1]


def used_only_in(
    source: SourceText,
    constant: ModuleConstant,
    function: FunctionInfo,
) -> bool:
    """
    True when *constant*'s name appears inside *function* and nowhere else
    outside its own declarator.
    """
    fn_span = node_range(function.node)
    decl_span = node_range(constant.declarator)
    found_inside = False
    for match in _name_pattern(constant.name).finditer(source.text):
        pos = match.start()
        if _within(pos, decl_span):
            continue
        if _within(pos, fn_span):
            found_inside = True
            continue
        return False
    return found_inside


def removal_edit(source: SourceText, constant: ModuleConstant) -> TextEdit:
    statement = constant.statement
    declarations = list(node_get(statement, "declarations", []))
    if len(declarations) == 1:
        start, end = node_range(statement)
        if source.text.startswith("\r\n", end):
            end += 2
        elif source.text.startswith("\n", end):
            end += 1
        return TextEdit(start, end, "")

    position = next(
        i for i, d in enumerate(declarations) if d is constant.declarator
    )
    if position == len(declarations) - 1:
        previous = declarations[position - 1]
        return TextEdit(
            node_range(previous)[1], node_range(constant.declarator)[1], ""
        )
    following = declarations[position + 1]
    return TextEdit(
        node_range(constant.declarator)[0], node_range(following)[0], ""
    )


def insertion_index(statements: Sequence[Any], table: PrimitiveTable) -> int:
    """
    Index after the last primitive call or derived value, stopping at the
    first handler.  Only each declaration's first declarator is inspected.
    """
    index = 0
    for i, stmt in enumerate(statements):
        kind = node_type(stmt)
        if kind == "FunctionDeclaration":
            break
        if kind != "VariableDeclaration":
            continue
        declarations = node_get(stmt, "declarations", [])
        init = node_get(declarations[0], "init") if declarations else None
        if init is None:
            continue
        if table.matches_convention(callee_name(init)):
            index = i + 1
            continue
        if is_function_literal(init):
            break
        index = i + 1
    return index


def insertion_edit(
    source: SourceText,
    constant: ModuleConstant,
    function: FunctionInfo,
    table: PrimitiveTable,
) -> Optional[TextEdit]:
    statements = function.statements
    if not statements:
        return None
    indent = source.indentation_at(node_range(statements[0])[0])
    line = f"{constant.kind} {source.get_text(constant.declarator)};"

    nl = source.newline

    index = insertion_index(statements, table)
    if index < len(statements):
        at = node_range(statements[index])[0]
        return TextEdit(at, at, f"{line}{nl}{nl}{indent}")
    at = node_range(statements[-1])[1]
    return TextEdit(at, at, f"{nl}{nl}{indent}{line}")


def find_hoist_candidates(
    program: Any,
    source: SourceText,
    targets: Sequence[Tuple[FunctionInfo, str]],
    table: PrimitiveTable,
) -> List[HoistCandidate]:
    """
    Constants of *program* that belong inside one of *targets*.

    *targets* are ``(function, role_label)`` pairs of outermost analysed
    functions.  A constant used by two targets is mentioned outside each
    of them, so it matches neither.
    """
    candidates: List[HoistCandidate] = []
    constants = list(iter_module_constants(program))
    if not constants:
        return candidates

    for function, role_label in targets:
        if not function.has_block_body:
            continue
        for constant in constants:
            if not used_only_in(source, constant, function):
                continue
            insertion = insertion_edit(source, constant, function, table)
            if insertion is None:
                logger.debug(
                    "Not hoisting %s: %s has an empty body",
                    constant.name, function.name,
                )
                continue
            candidates.append(HoistCandidate(
                constant=constant,
                target=function,
                role_label=role_label,
                edits=(removal_edit(source, constant), insertion),
            ))
    return candidates


__all__ = [
    "HoistCandidate",
    "ModuleConstant",
    "find_hoist_candidates",
    "insertion_edit",
    "insertion_index",
    "is_simple_literal",
    "iter_module_constants",
    "removal_edit",
    "used_only_in",
]
