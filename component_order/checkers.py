"""
component_order/checkers.py
═══════════════════════════

Checker framework that turns the ordering engine and the constant hoister
into diagnostics with attached fixes.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   CheckerRunner                         │
  │  ┌───────────────────────┐  ┌────────────────────────┐  │
  │  │   CodeOrderChecker    │  │ ModuleConstantChecker  │  │
  │  └───────────┬───────────┘  └───────────┬────────────┘  │
  │              │                          │               │
  │  ┌───────────▼──────────────────────────▼────────────┐  │
  │  │              Evidence Collection                  │  │
  │  │  classifier │ dependency_graph │ ordering │ hoist │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │           SuppressionManager                      │  │
  │  │  // order-lint-disable-*  │ file-level │ global   │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │   Diagnostic Formatter (JSON / gcc) + apply_fixes │  │
  │  └───────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Each Checker follows a four-phase lifecycle:

  1. **configure()**        — read options
  2. **collect_evidence()** — classify bodies, build graphs, solve
  3. **diagnose()**         — turn evidence into diagnostics with fixes
  4. **report()**           — emit Diagnostics (filtered by suppressions)
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from fnmatch import fnmatch
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
    Union,
)

from .classifier import FunctionBody, FunctionRole, StatementClassifier
from .estree import FunctionInfo, SourceText, iter_functions, node_range
from .hoisting import HoistCandidate, find_hoist_candidates
from .ordering import OrderAnalysis, analyze
from .primitives import (
    PrimitiveTable,
    bucket_label,
    default_primitive_table,
)
from .serializer import TextEdit, apply_edits, serialize

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — DIAGNOSTIC MODEL
# ═════════════════════════════════════════════════════════════════════════

class DiagnosticSeverity(Enum):
    WARNING = "warning"
    STYLE = "style"
    INFORMATION = "information"


class Confidence(Enum):
    """
    How certain we are that the diagnostic is a true positive.

    HIGH   — derived from the syntax tree alone
    LOW    — textual heuristic, may be a false positive
    """
    HIGH = auto()
    LOW = auto()


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in source code (1-based line and column)."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Diagnostic:
    """
    A single diagnostic finding.

    Attributes
    ----------
    error_id     : Unique identifier (e.g., "codeOrder")
    message      : Human-readable description
    severity     : DiagnosticSeverity
    location     : Primary source location
    confidence   : Confidence level
    checker_name : Name of the checker that produced this
    fixes        : Text edits that resolve the finding, applied together
    evidence     : Machine-readable evidence dict for downstream tooling
    """
    error_id: str
    message: str
    severity: DiagnosticSeverity
    location: SourceLocation
    confidence: Confidence = Confidence.HIGH
    checker_name: str = ""
    fixes: Tuple[TextEdit, ...] = ()
    evidence: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_fixable(self) -> bool:
        return bool(self.fixes)

    def to_json_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "severity": self.severity.value,
            "message": self.message,
            "errorId": self.error_id,
            "checker": self.checker_name,
        }
        if self.fixes:
            result["fixes"] = [edit.to_dict() for edit in self.fixes]
        if self.evidence:
            result["evidence"] = self.evidence
        return result

    def to_json_str(self) -> str:
        """Single-line JSON string."""
        return json.dumps(self.to_json_dict(), ensure_ascii=False)

    def to_gcc_format(self) -> str:
        """GCC-style diagnostic string: file:line:col: severity: message."""
        sev = self.severity.value
        return f"{self.location}: {sev}: {self.message} [{self.error_id}]"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

_INLINE_DIRECTIVE = re.compile(
    r"//[ \t]*order-lint-disable-(next-line|line)\b([^\r\n]*)"
)


class SuppressionManager:
    """
    Manages diagnostic suppressions from multiple sources.

    Sources:
      1. Inline comments:  ``// order-lint-disable-next-line [ids]`` and
         ``// order-lint-disable-line [ids]`` (no ids suppresses everything)
      2. File-level suppressions (fnmatch patterns, passed programmatically)
      3. Global suppressions (command-line or config)

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.load_inline_suppressions(source, "src/App.jsx")
    >>> sm.add_file_suppression("moduleConstant", "src/legacy/*")
    >>> sm.add_global_suppression("orderCycle")
    >>> if not sm.is_suppressed(diagnostic):
    ...     emit(diagnostic)
    """

    def __init__(self) -> None:
        # {(file, line)} → set of error_ids suppressed at that location
        self._inline: Dict[Tuple[str, int], Set[str]] = defaultdict(set)
        # file pattern → set of error_ids
        self._file_level: Dict[str, Set[str]] = defaultdict(set)
        # globally suppressed error_ids
        self._global: Set[str] = set()

    def load_inline_suppressions(
        self,
        source: Union[str, SourceText],
        file: str,
    ) -> None:
        """
        Scan *source* for inline directives, replacing any previously
        loaded for *file*.
        """
        src = source if isinstance(source, SourceText) else SourceText(source)
        for key in [k for k in self._inline if k[0] == file]:
            del self._inline[key]

        for match in _INLINE_DIRECTIVE.finditer(src.text):
            line, _ = src.line_col(match.start())
            if match.group(1) == "next-line":
                line += 1
            ids = [t for t in re.split(r"[\s,]+", match.group(2)) if t]
            # A trailing "-- reason" ends the id list
            if "--" in ids:
                ids = ids[:ids.index("--")]
            self._inline[(file, line)].update(ids or ["*"])

    def add_file_suppression(self, error_id: str, file_pattern: str) -> None:
        """Suppress ``error_id`` in files matching ``file_pattern``."""
        self._file_level[file_pattern].add(error_id)

    def add_global_suppression(self, error_id: str) -> None:
        """Globally suppress ``error_id``."""
        self._global.add(error_id)

    def is_suppressed(self, diag: Diagnostic) -> bool:
        """Check whether a diagnostic should be suppressed."""
        eid = diag.error_id

        if eid in self._global or "*" in self._global:
            return True

        loc = diag.location
        suppressed_ids = self._inline.get((loc.file, loc.line), set())
        if eid in suppressed_ids or "*" in suppressed_ids:
            return True

        for pattern, ids in self._file_level.items():
            if eid in ids or "*" in ids:
                if pattern == loc.file or loc.file.endswith(pattern):
                    return True
                if fnmatch(loc.file, pattern):
                    return True

        return False

    def filter_diagnostics(
        self, diagnostics: Iterable[Diagnostic]
    ) -> List[Diagnostic]:
        """Return only non-suppressed diagnostics."""
        return [d for d in diagnostics if not self.is_suppressed(d)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — CHECKER BASE CLASS
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AnalysedFunction:
    """A component or hook with a block body, as seen by the checkers."""
    info: FunctionInfo
    role: FunctionRole
    outermost: bool = True

    @property
    def name(self) -> str:
        return self.info.name or "<anonymous>"


class Checker(ABC):
    """
    Abstract base class for all checkers.

    Lifecycle
    ─────────
      1. ``configure(ctx)``        — receive context, read options
      2. ``collect_evidence(ctx)``  — run or consume analyses
      3. ``diagnose(ctx)``          — correlate evidence into diagnostics
      4. ``report(ctx)``            — yield final diagnostics

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``error_ids``
      - Implement ``collect_evidence()`` and ``diagnose()``
      - Optionally override ``configure()`` for custom setup
    """

    # ── Metadata (override in subclasses) ────────────────────────────

    name: ClassVar[str] = "base-checker"
    description: ClassVar[str] = ""
    error_ids: ClassVar[FrozenSet[str]] = frozenset()
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.WARNING

    def __init__(self) -> None:
        self._diagnostics: List[Diagnostic] = []

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)

    def configure(self, ctx: CheckerContext) -> None:
        """
        Called before evidence collection.

        Override to read options.  Default implementation does nothing.
        """
        pass

    @abstractmethod
    def collect_evidence(self, ctx: CheckerContext) -> None:
        ...

    @abstractmethod
    def diagnose(self, ctx: CheckerContext) -> None:
        """
        Correlate evidence into Diagnostic objects.

        Append diagnostics to ``self._diagnostics``.
        """
        ...

    def report(self, ctx: CheckerContext) -> List[Diagnostic]:
        """Return final diagnostics, filtered by suppressions."""
        return ctx.suppressions.filter_diagnostics(self._diagnostics)

    def _emit(
        self,
        error_id: str,
        message: str,
        location: SourceLocation,
        severity: Optional[DiagnosticSeverity] = None,
        confidence: Confidence = Confidence.HIGH,
        fixes: Sequence[TextEdit] = (),
        evidence: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Helper to create and store a diagnostic."""
        self._diagnostics.append(Diagnostic(
            error_id=error_id,
            message=message,
            severity=severity or self.default_severity,
            location=location,
            confidence=confidence,
            checker_name=self.name,
            fixes=tuple(fixes),
            evidence=evidence or {},
        ))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


@dataclass
class CheckerContext:
    """
    Shared context passed to every checker during execution.

    Attributes
    ----------
    program      : ESTree Program node
    source       : SourceText of the file the program was parsed from
    file         : path used in diagnostic locations
    table        : PrimitiveTable used for classification
    suppressions : SuppressionManager
    analyses     : results shared between checkers (keyed by name)
    options      : user-provided options dict
    stats        : mutable dict for timing / counting statistics
    """
    program: Any
    source: SourceText
    file: str = "<input>"
    table: PrimitiveTable = field(default_factory=default_primitive_table)
    suppressions: SuppressionManager = field(default_factory=SuppressionManager)
    analyses: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    stats: Dict[str, Any] = field(default_factory=dict)

    def get_analysis(self, name: str) -> Any:
        return self.analyses.get(name)

    def set_analysis(self, name: str, result: Any) -> None:
        self.analyses[name] = result

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.options.get(key, default)

    @property
    def classifier(self) -> StatementClassifier:
        clf = self.get_analysis("classifier")
        if clf is None:
            clf = StatementClassifier(self.table)
            self.set_analysis("classifier", clf)
        return clf

    def locate(self, node: Any) -> SourceLocation:
        line, column = self.source.line_col(node_range(node)[0])
        return SourceLocation(file=self.file, line=line, column=column)


def analysed_functions(ctx: CheckerContext) -> List[AnalysedFunction]:
    """
    Components and hooks with block bodies, outer functions first.

    Computed once per context and shared through ``ctx.analyses``.
    """
    cached = ctx.get_analysis("functions")
    if cached is not None:
        return cached

    classifier = ctx.classifier
    roles: Dict[int, FunctionRole] = {}
    found: List[AnalysedFunction] = []
    for info in iter_functions(ctx.program):
        role = classifier.function_role(info)
        if role is None or not info.has_block_body:
            continue
        roles[id(info.node)] = role
        outermost = not any(id(a.node) in roles for a in info.ancestors())
        found.append(AnalysedFunction(info, role, outermost))

    ctx.set_analysis("functions", found)
    ctx.stats["functions"] = len(found)
    return found


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — CHECKER REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class CheckerRegistry:
    """
    Registry of available checkers with discovery and filtering.

    Usage
    -----
    >>> registry = CheckerRegistry()
    >>> registry.register(CodeOrderChecker)
    >>> checkers = registry.get_enabled()
    >>> checkers = registry.filter_by_error_id("useBeforeDeclare")
    """

    def __init__(self) -> None:
        self._checkers: Dict[str, Type[Checker]] = {}
        self._disabled: Set[str] = set()

    def register(self, checker_cls: Type[Checker]) -> None:
        self._checkers[checker_cls.name] = checker_cls

    def disable(self, name: str) -> None:
        self._disabled.add(name)

    def get_enabled(self) -> List[Type[Checker]]:
        return [
            cls for name, cls in self._checkers.items()
            if name not in self._disabled
        ]

    def get_by_name(self, name: str) -> Optional[Type[Checker]]:
        return self._checkers.get(name)

    def filter_by_error_id(self, error_id: str) -> List[Type[Checker]]:
        """Return checkers that can produce the given error_id."""
        return [
            cls for cls in self._checkers.values()
            if error_id in cls.error_ids
        ]

    @property
    def names(self) -> List[str]:
        return sorted(self._checkers.keys())


# ═════════════════════════════════════════════════════════════════════════
#  PART 5 — CHECKERS
# ═════════════════════════════════════════════════════════════════════════

ORDER_SUMMARY = (
    "refs → state → redux → router → context → custom hooks → derived → "
    "useMemo → useCallback → handlers → useEffect → return"
)


class CodeOrderChecker(Checker):
    """
    Checks the top-level statement order of components and hooks.

    One diagnostic per function at most.  When a body has both a
    use-before-declare and a category regression, the use-before-declare
    is reported; either way the fix is the full reorder.  A detected
    violation whose corrected order equals the current order (statements
    tied together by a dependency cycle) is not reported.
    """

    name: ClassVar[str] = "code-order"
    description: ClassVar[str] = "Canonical statement order in components and hooks"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({
        "codeOrder", "useBeforeDeclare", "orderCycle",
    })
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.STYLE

    def __init__(self) -> None:
        super().__init__()
        self._report_cycles = False
        self._evidence: List[Tuple[FunctionBody, OrderAnalysis]] = []

    def configure(self, ctx: CheckerContext) -> None:
        self._report_cycles = bool(ctx.get_option("report_cycles", False))

    def collect_evidence(self, ctx: CheckerContext) -> None:
        classifier = ctx.classifier
        analysed = 0
        for fn in analysed_functions(ctx):
            body = classifier.build_body(fn.info, fn.role)
            if body is None or len(body.categorizable) < 2:
                continue
            analysed += 1
            self._evidence.append((body, analyze(body.statements)))
        ctx.stats["bodies_analysed"] = analysed

    def diagnose(self, ctx: CheckerContext) -> None:
        for body, analysis in self._evidence:
            if analysis.cycles and self._report_cycles:
                self._emit_cycles(ctx, body, analysis)
            if not analysis.report.has_violation:
                continue
            if not analysis.needs_fix:
                logger.debug(
                    "%s: violation in %s resolves to the current order",
                    ctx.file, body.function.name,
                )
                continue

            fix = serialize(ctx.source, body.statements, analysis.plan)
            evidence = {
                "function": body.function.name,
                "role": body.role_label,
                "order": list(analysis.plan.order),
                "moved": analysis.plan.moved(),
            }
            report = analysis.report
            if report.dependency_violation is not None:
                dep = report.dependency_violation
                self._emit(
                    error_id="useBeforeDeclare",
                    message=(
                        f'"{dep.variable}" is used before it is declared. '
                        "Reorder statements so dependencies are declared "
                        f"first in {body.role_label}"
                    ),
                    location=ctx.locate(dep.statement.node),
                    severity=DiagnosticSeverity.WARNING,
                    fixes=[fix] if fix else [],
                    evidence=evidence,
                )
            else:
                cat = report.category_violation
                self._emit(
                    error_id="codeOrder",
                    message=(
                        f'"{bucket_label(cat.bucket)}" should come before '
                        f'"{bucket_label(cat.previous)}" in {body.role_label}. '
                        f"Order: {ORDER_SUMMARY}"
                    ),
                    location=ctx.locate(cat.statement.node),
                    fixes=[fix] if fix else [],
                    evidence=evidence,
                )

    def _emit_cycles(
        self,
        ctx: CheckerContext,
        body: FunctionBody,
        analysis: OrderAnalysis,
    ) -> None:
        for cycle in analysis.cycles:
            members = [body.statements[i] for i in cycle]
            names = sorted({n for s in members for n in s.declared})
            self._emit(
                error_id="orderCycle",
                message=(
                    f"Statements declaring {', '.join(names)} depend on each "
                    f"other in {body.role_label}; their order is kept"
                ),
                location=ctx.locate(members[0].node),
                severity=DiagnosticSeverity.INFORMATION,
                evidence={"function": body.function.name, "cycle": list(cycle)},
            )


class ModuleConstantChecker(Checker):
    """
    Flags module-level literal constants used by exactly one component or
    hook.  Textual: shadowing names can produce false positives.
    """

    name: ClassVar[str] = "module-constant"
    description: ClassVar[str] = "Module-level constants used by a single component or hook"
    error_ids: ClassVar[FrozenSet[str]] = frozenset({"moduleConstant"})
    default_severity: ClassVar[DiagnosticSeverity] = DiagnosticSeverity.STYLE

    def __init__(self) -> None:
        super().__init__()
        self._candidates: List[HoistCandidate] = []

    def collect_evidence(self, ctx: CheckerContext) -> None:
        if not ctx.get_option("hoist_constants", True):
            return
        targets = [
            (fn.info, fn.role.value)
            for fn in analysed_functions(ctx) if fn.outermost
        ]
        self._candidates = find_hoist_candidates(
            ctx.program, ctx.source, targets, ctx.table
        )

    def diagnose(self, ctx: CheckerContext) -> None:
        for cand in self._candidates:
            self._emit(
                error_id="moduleConstant",
                message=(
                    f'Constant "{cand.constant.name}" should be declared '
                    f"inside the {cand.role_label} as derived state, "
                    "not at module level"
                ),
                location=ctx.locate(cand.constant.id_node),
                confidence=Confidence.LOW,
                fixes=cand.edits,
                evidence={
                    "constant": cand.constant.name,
                    "function": cand.target.name,
                },
            )


# ═════════════════════════════════════════════════════════════════════════
#  PART 6 — CHECKER RUNNER
# ═════════════════════════════════════════════════════════════════════════

# Default registry with all built-in checkers
_DEFAULT_REGISTRY = CheckerRegistry()
_DEFAULT_REGISTRY.register(CodeOrderChecker)
_DEFAULT_REGISTRY.register(ModuleConstantChecker)


def default_registry() -> CheckerRegistry:
    return _DEFAULT_REGISTRY


@dataclass
class CheckerRunResults:
    """
    Aggregate results from running a suite of checkers.

    Attributes
    ----------
    diagnostics            : All diagnostics from all checkers
    diagnostics_by_checker : Diagnostics grouped by checker name
    stats                  : Timing and counting statistics
    checker_names          : Names of checkers that were run
    """
    diagnostics: List[Diagnostic] = field(default_factory=list)
    diagnostics_by_checker: Dict[str, List[Diagnostic]] = field(
        default_factory=lambda: defaultdict(list)
    )
    stats: Dict[str, Any] = field(default_factory=dict)
    checker_names: List[str] = field(default_factory=list)

    @property
    def warning_count(self) -> int:
        return sum(
            1 for d in self.diagnostics
            if d.severity == DiagnosticSeverity.WARNING
        )

    @property
    def fixable_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.is_fixable)

    @property
    def total_count(self) -> int:
        return len(self.diagnostics)

    def by_file(self, file: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.location.file == file]

    def by_error_id(self, error_id: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.error_id == error_id]

    def merge(self, other: "CheckerRunResults") -> None:
        """Fold *other* into this result, accumulating timings."""
        self.diagnostics.extend(other.diagnostics)
        for name, diags in other.diagnostics_by_checker.items():
            self.diagnostics_by_checker[name].extend(diags)
        for key, val in other.stats.items():
            if key in self.stats and isinstance(val, (int, float)):
                self.stats[key] += val
            else:
                self.stats[key] = val
        for name in other.checker_names:
            if name not in self.checker_names:
                self.checker_names.append(name)

    def to_json_lines(self) -> str:
        return "\n".join(d.to_json_str() for d in self.diagnostics)

    def to_gcc_format(self) -> str:
        return "\n".join(d.to_gcc_format() for d in self.diagnostics)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Checker run complete: {self.total_count} diagnostics "
            f"({self.warning_count} warnings, {self.fixable_count} fixable)",
        ]
        for name in self.checker_names:
            count = len(self.diagnostics_by_checker.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        return "\n".join(lines)


class CheckerRunner:
    """
    Runs a suite of checkers against one parsed file.

    Usage
    -----
    >>> runner = CheckerRunner()
    >>> results = runner.run(program, source_text, "src/App.jsx")
    >>> print(results.summary())

    >>> # Or select specific checkers:
    >>> results = runner.run(program, source_text, checkers=["code-order"])

    Parameters for constructor
    ─────────────────────────
    registry    : CheckerRegistry — source of checker classes
    suppressions: SuppressionManager — pre-loaded suppression rules
    options     : dict — ``report_cycles``, ``hoist_constants``
    table       : PrimitiveTable — primitive names and buckets
    """

    def __init__(
        self,
        registry: Optional[CheckerRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
        options: Optional[Dict[str, Any]] = None,
        table: Optional[PrimitiveTable] = None,
    ) -> None:
        self.registry = registry or _DEFAULT_REGISTRY
        self.suppressions = suppressions or SuppressionManager()
        self.options = options or {}
        self.table = table or default_primitive_table()

    def _select(self, checkers: Optional[Sequence[str]]) -> List[Type[Checker]]:
        if checkers is None:
            return self.registry.get_enabled()
        selected: List[Type[Checker]] = []
        for name in checkers:
            cls = self.registry.get_by_name(name)
            if cls is None:
                logger.warning("Unknown checker '%s' ignored", name)
                continue
            selected.append(cls)
        return selected

    def run(
        self,
        program: Any,
        source: Union[str, SourceText],
        file: str = "<input>",
        checkers: Optional[Sequence[str]] = None,
    ) -> CheckerRunResults:
        """
        Run checkers against a single parsed file.

        Parameters
        ----------
        program  : ESTree Program node (mapping or attribute nodes)
        source   : the text *program* was parsed from
        file     : path reported in diagnostics
        checkers : list of checker names to run (None = all enabled)
        """
        results = CheckerRunResults()
        src = source if isinstance(source, SourceText) else SourceText(source)

        self.suppressions.load_inline_suppressions(src, file)

        ctx = CheckerContext(
            program=program,
            source=src,
            file=file,
            table=self.table,
            suppressions=self.suppressions,
            options=self.options,
        )

        for cls in self._select(checkers):
            checker = cls()
            checker_name = cls.name
            results.checker_names.append(checker_name)

            t0 = time.monotonic()
            try:
                checker.configure(ctx)
                checker.collect_evidence(ctx)
                checker.diagnose(ctx)
                diags = checker.report(ctx)
            except Exception as exc:
                # Graceful degradation: report the failure, don't crash
                logger.debug("Checker %s failed on %s", checker_name, file,
                             exc_info=True)
                diags = [Diagnostic(
                    error_id="checkerInternalError",
                    message=f"Checker '{checker_name}' failed: {exc}",
                    severity=DiagnosticSeverity.INFORMATION,
                    location=SourceLocation(file=file),
                    checker_name=checker_name,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            results.diagnostics.extend(diags)
            results.diagnostics_by_checker[checker_name] = diags
            results.stats[f"{checker_name}_elapsed_ms"] = elapsed_ms

        results.stats.update(ctx.stats)
        return results


# ═════════════════════════════════════════════════════════════════════════
#  PART 7 — FIX APPLICATION
# ═════════════════════════════════════════════════════════════════════════

def _first_offset(diag: Diagnostic) -> int:
    return min(edit.start for edit in diag.fixes)


def apply_fixes(
    source: str,
    diagnostics: Iterable[Diagnostic],
) -> Tuple[str, int]:
    """
    Apply the fixes of *diagnostics* to *source*.

    Diagnostics are taken earliest first.  A diagnostic whose edits
    overlap an already accepted edit is skipped as a whole and left for
    another pass.

    Returns
    -------
    (new_source, applied) where *applied* counts diagnostics whose fixes
    were applied.

    Raises
    ------
    FixConflictError
        If an edit lies outside *source*.
    """
    fixable = sorted(
        (d for d in diagnostics if d.fixes),
        key=lambda d: (_first_offset(d), d.location.line, d.error_id),
    )
    accepted: List[TextEdit] = []
    applied = 0
    for diag in fixable:
        if any(e.overlaps(a) for e in diag.fixes for a in accepted):
            logger.debug("Deferring overlapping fix for %s at %s",
                         diag.error_id, diag.location)
            continue
        accepted.extend(diag.fixes)
        applied += 1
    if not accepted:
        return source, 0
    return apply_edits(source, accepted), applied


@dataclass
class FixOutcome:
    """Result of :func:`fix_until_stable`."""
    source: str
    applied: int
    passes: int
    results: CheckerRunResults

    @property
    def changed(self) -> bool:
        return self.applied > 0


def fix_until_stable(
    source: str,
    parse: Callable[[str], Any],
    runner: Optional[CheckerRunner] = None,
    file: str = "<input>",
    checkers: Optional[Sequence[str]] = None,
    max_passes: int = 10,
) -> FixOutcome:
    """
    Lint, apply fixes and re-parse until nothing is left to apply.

    *parse* turns source text into an ESTree program with ranges.  The
    returned ``results`` are those of the final lint over the returned
    source.
    """
    runner = runner or CheckerRunner()
    total = 0
    for passes in range(1, max_passes + 1):
        results = runner.run(parse(source), source, file, checkers)
        fixed, applied = apply_fixes(source, results.diagnostics)
        if applied == 0:
            return FixOutcome(source, total, passes, results)
        total += applied
        source = fixed
    logger.info("%s: fixes still pending after %d passes", file, max_passes)
    results = runner.run(parse(source), source, file, checkers)
    return FixOutcome(source, total, max_passes, results)


def lint_source(
    program: Any,
    source: Union[str, SourceText],
    file: str = "<input>",
    options: Optional[Dict[str, Any]] = None,
    table: Optional[PrimitiveTable] = None,
    suppress: Optional[Sequence[str]] = None,
) -> CheckerRunResults:
    """One-call convenience wrapper around :class:`CheckerRunner`."""
    sm = SuppressionManager()
    for eid in suppress or ():
        sm.add_global_suppression(eid)
    runner = CheckerRunner(suppressions=sm, options=options, table=table)
    return runner.run(program, source, file)


# ═════════════════════════════════════════════════════════════════════════
#  PART 8 — PUBLIC API
# ═════════════════════════════════════════════════════════════════════════

__all__ = [
    # Diagnostic model
    "Diagnostic",
    "DiagnosticSeverity",
    "Confidence",
    "SourceLocation",
    # Suppression
    "SuppressionManager",
    # Checker framework
    "AnalysedFunction",
    "Checker",
    "CheckerContext",
    "CheckerRegistry",
    "analysed_functions",
    "default_registry",
    # Checkers
    "CodeOrderChecker",
    "ModuleConstantChecker",
    # Runner
    "CheckerRunner",
    "CheckerRunResults",
    # Fixes
    "FixOutcome",
    "apply_fixes",
    "fix_until_stable",
    "lint_source",
]
