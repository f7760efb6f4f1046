"""
component_order — statement-order lint and fix for UI components and hooks
==========================================================================

Checks that the top-level statements of component and hook bodies in
ESTree syntax trees follow one canonical order (props, refs, state, ...,
handlers, effects, return) without ever moving a statement ahead of a
binding it reads, and computes the minimal reorder when they do not.

Core modules
------------
primitives
    Buckets and the primitive-name table (configuration).
estree
    Duck-typed ESTree accessors, generic fold, function discovery.
references
    Identifier names an initializer reads.
classifier
    Statement kinds, bucket assignment, component/hook detection.
dependency_graph
    Declared-name and use-before-declare edges within one body.
ordering
    Violation detection and the constrained reordering solver.
serializer
    Text edits rendering a reorder plan.
hoisting
    Module-level constants that belong inside a single function.
checkers
    Diagnostics, suppressions, checker lifecycle, runner, fix application.

Quick start
-----------
>>> import esprima
>>> from component_order import lint_source
>>> text = open("App.jsx").read()
>>> program = esprima.parseModule(text, {"jsx": True, "range": True})
>>> for diag in lint_source(program, text, "App.jsx").diagnostics:
...     print(diag.to_gcc_format())
"""

from __future__ import annotations

import importlib
import sys
from typing import Dict, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__all__: List[str] = []          # populated below

# ---------------------------------------------------------------------------
# Re-exported names: module → public symbols
# ---------------------------------------------------------------------------

_PUBLIC: Dict[str, List[str]] = {
    "errors": [
        "ComponentOrderError",
        "AstShapeError",
        "ConfigError",
        "FixConflictError",
    ],
    "primitives": [
        "Bucket",
        "PrimitiveTable",
        "default_primitive_table",
        "load_primitive_table",
    ],
    "estree": [
        "SourceText",
        "FunctionInfo",
        "iter_functions",
    ],
    "references": ["collect_references"],
    "classifier": [
        "Statement",
        "StatementKind",
        "StatementClassifier",
        "FunctionBody",
        "FunctionRole",
    ],
    "dependency_graph": ["BodyGraph", "DepEdge", "build_graph"],
    "ordering": ["ReorderPlan", "ViolationReport", "analyze", "compute_order", "detect"],
    "serializer": ["TextEdit", "serialize"],
    "hoisting": ["HoistCandidate", "find_hoist_candidates"],
    "checkers": [
        "Diagnostic",
        "DiagnosticSeverity",
        "SourceLocation",
        "SuppressionManager",
        "CheckerRunner",
        "CheckerRunResults",
        "apply_fixes",
        "fix_until_stable",
        "lint_source",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    mod = importlib.import_module(f"{__name__}.{module_rel_name}")
    current_module = sys.modules[__name__]
    for name in names:
        if not hasattr(mod, name):
            raise AttributeError(
                f"component_order.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, getattr(mod, name))
        __all__.append(name)


for _mod, _names in _PUBLIC.items():
    _import_names(_mod, _names)

del _mod, _names
