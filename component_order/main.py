#!/usr/bin/env python3
"""component_order/main.py — CLI entry-point for component-order-lint.

Usage examples
--------------
    # Lint a file (parsed with esprima)
    component-order src/App.jsx

    # Lint a whole tree and rewrite files in place
    component-order --fix src/

    # Lint an ESTree JSON dump produced by another parser
    component-order build/App.ast.json --source src/App.tsx

    # Machine-readable output, one JSON object per line
    component-order --format json src/

Exit codes
----------
    0   No diagnostics.
    1   One or more diagnostics were emitted (after fixing, with --fix).
    2   Infrastructure failure (missing dependency, bad file, parse error).

The module doubles as ``python -m component_order`` via the companion
``component_order/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
)

from . import __version__
from .checkers import (
    CheckerRunner,
    CheckerRunResults,
    SuppressionManager,
    apply_fixes,
    default_registry,
    fix_until_stable,
)
from .errors import ComponentOrderError
from .primitives import PrimitiveTable, default_primitive_table, load_primitive_table

_log = logging.getLogger("component_order")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_DIAGNOSTICS: int = 1
EXIT_INFRA: int = 2

SOURCE_SUFFIXES = (".js", ".jsx", ".mjs", ".cjs")
_SKIP_DIRS = frozenset({"node_modules", ".git", "dist", "build"})


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``component_order`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("component_order")
    root.setLevel(level)
    # main() may run more than once per process
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


def _collect_inputs(raw_paths: Sequence[str]) -> List[Path]:
    """Expand directories into the source files below them."""
    inputs: List[Path] = []
    for raw in raw_paths:
        p = _resolve_path(raw, "input")
        if p.is_dir():
            for child in sorted(p.rglob("*")):
                if any(part in _SKIP_DIRS for part in child.relative_to(p).parts):
                    continue
                if child.is_file() and child.suffix in SOURCE_SUFFIXES:
                    inputs.append(child)
        else:
            inputs.append(p)
    return inputs


# ===========================================================================
# Lazy-import helpers (keep top-level import light for --help speed)
# ===========================================================================

def _import_esprima():
    """Import ``esprima`` with a friendly error on failure."""
    try:
        import esprima  # type: ignore[import-untyped]
        return esprima
    except ImportError:
        _log.error(
            "esprima is not installed.  "
            "Install it with 'pip install esprima' or lint ESTree JSON dumps."
        )
        raise SystemExit(EXIT_INFRA)


def make_parser() -> Callable[[str], Any]:
    """Return ``text → Program`` backed by esprima, with ranges and JSX."""
    esprima = _import_esprima()
    options = {"jsx": True, "range": True, "loc": True}

    def parse(text: str) -> Any:
        return esprima.parseModule(text, options)

    return parse


# ===========================================================================
# Input loading
# ===========================================================================

def _load_dump(
    path: Path,
    source_override: Optional[str],
) -> Tuple[Any, str, Path]:
    """Read an ESTree JSON dump and the source file it was produced from.

    The dump is either the Program node itself or an object
    ``{"sourceFile": ..., "ast": {...}}``; a ``sourceFile`` key on the
    Program node is honoured too.  Relative source paths are resolved
    against the dump's directory.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        _log.error("Failed to read dump %s: %s", path, exc)
        raise SystemExit(EXIT_INFRA)

    program = data.get("ast", data) if isinstance(data, dict) else None
    if not isinstance(program, dict) or program.get("type") != "Program":
        _log.error("%s does not hold an ESTree Program", path)
        raise SystemExit(EXIT_INFRA)

    raw_source = source_override or data.get("sourceFile") or program.get("sourceFile")
    if not raw_source:
        _log.error("%s names no source file; pass --source", path)
        raise SystemExit(EXIT_INFRA)
    source_path = Path(raw_source).expanduser()
    if not source_path.is_absolute():
        source_path = path.parent / source_path
    source_path = _resolve_path(str(source_path), "source file")
    return program, source_path.read_text(encoding="utf-8"), source_path


def _lint_file(
    path: Path,
    runner: CheckerRunner,
    args: argparse.Namespace,
    parse: Optional[Callable[[str], Any]],
) -> CheckerRunResults:
    if path.suffix == ".json":
        program, text, source_path = _load_dump(path, args.source)
        file = str(source_path)
        results = runner.run(program, text, file, args.checkers)
        # A dump cannot be re-parsed here, so fixing is a single pass and
        # the reported diagnostics are those found before fixing.
        if args.fix and results.fixable_count:
            fixed, applied = apply_fixes(text, results.diagnostics)
            if applied:
                source_path.write_text(fixed, encoding="utf-8")
                _log.info("%s: applied %d fix(es); regenerate the dump "
                          "to re-check", file, applied)
        return results

    if parse is None:
        parse = make_parser()
    file = str(path)
    text = path.read_text(encoding="utf-8")
    if args.fix:
        outcome = fix_until_stable(text, parse, runner, file, args.checkers)
        if outcome.changed:
            path.write_text(outcome.source, encoding="utf-8")
            _log.info("%s: applied %d fix(es) in %d pass(es)",
                      file, outcome.applied, outcome.passes)
        return outcome.results
    return runner.run(parse(text), text, file, args.checkers)


# ===========================================================================
# Command implementation
# ===========================================================================

def _list_checkers() -> int:
    registry = default_registry()
    for name in registry.names:
        cls = registry.get_by_name(name)
        desc = cls.description if cls else ""
        ids = ", ".join(sorted(cls.error_ids)) if cls else ""
        print(f"  {name:20s} {desc}")
        print(f"  {'':20s} IDs: {ids}")
        print()
    return EXIT_OK


def _load_table(raw: Optional[str]) -> PrimitiveTable:
    if raw is None:
        return default_primitive_table()
    return load_primitive_table(_resolve_path(raw, "primitive table"))


def _emit(results: CheckerRunResults, fmt: str) -> None:
    if not results.diagnostics and fmt != "summary":
        return
    if fmt == "json":
        sys.stdout.write(results.to_json_lines() + "\n")
    elif fmt == "gcc":
        sys.stdout.write(results.to_gcc_format() + "\n")
    else:
        if results.diagnostics:
            sys.stdout.write(results.to_gcc_format() + "\n\n")
        sys.stdout.write(results.summary() + "\n")


def run(args: argparse.Namespace) -> int:
    """Lint every input and report; returns the exit code."""
    if args.list_checkers:
        return _list_checkers()
    if not args.paths:
        _log.error("no input paths given")
        return EXIT_INFRA

    try:
        table = _load_table(args.primitives)
    except ComponentOrderError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    suppressions = SuppressionManager()
    for eid in args.suppress or ():
        suppressions.add_global_suppression(eid)
    options: Dict[str, Any] = {
        "report_cycles": args.report_cycles,
        "hoist_constants": not args.no_hoist,
    }
    runner = CheckerRunner(suppressions=suppressions, options=options, table=table)

    inputs = _collect_inputs(args.paths)
    parse: Optional[Callable[[str], Any]] = None
    if any(p.suffix != ".json" for p in inputs):
        parse = make_parser()

    combined = CheckerRunResults()
    failed = 0
    for path in inputs:
        _log.info("Linting %s", path)
        try:
            combined.merge(_lint_file(path, runner, args, parse))
        except (ComponentOrderError, OSError, UnicodeDecodeError) as exc:
            _log.error("%s: %s", path, exc)
            failed += 1
        except Exception as exc:
            # esprima reports syntax errors with its own exception class
            _log.error("%s: cannot parse: %s", path, exc)
            _log.debug("parse failure", exc_info=True)
            failed += 1

    _emit(combined, args.format)
    if failed:
        return EXIT_INFRA
    return EXIT_DIAGNOSTICS if combined.diagnostics else EXIT_OK


# ===========================================================================
# Argument parser construction
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="component-order",
        description=(
            "Check and fix the top-level statement order of UI components\n"
            "and hooks in JavaScript sources or ESTree JSON dumps."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              component-order src/
              component-order --fix src/components/Card.jsx
              component-order --format json build/App.ast.json --source src/App.tsx
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "paths", nargs="*", metavar="PATH",
        help="Source files, directories, or .json ESTree dumps.",
    )
    parser.add_argument(
        "--format", choices=["gcc", "json", "summary"], default="gcc",
        help="Output format (default: gcc).",
    )
    parser.add_argument(
        "--fix", action="store_true",
        help="Apply fixes and write files back.",
    )
    parser.add_argument(
        "--primitives", metavar="FILE", default=None,
        help="JSON primitive table (bucket → call names).",
    )
    parser.add_argument(
        "--source", metavar="FILE", default=None,
        help="Source file for a JSON dump lacking a 'sourceFile' key.",
    )
    parser.add_argument(
        "--suppress", nargs="*", default=None, metavar="ID",
        help="Error IDs to suppress.",
    )
    parser.add_argument(
        "--checkers", nargs="*", default=None, metavar="NAME",
        help="Checker names to run (default: all).",
    )
    parser.add_argument(
        "--list-checkers", action="store_true",
        help="List available checkers and exit.",
    )
    parser.add_argument(
        "--report-cycles", action="store_true",
        help="Report statements kept in place by a dependency cycle.",
    )
    parser.add_argument(
        "--no-hoist", action="store_true",
        help="Do not check module-level constants.",
    )
    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        return run(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
