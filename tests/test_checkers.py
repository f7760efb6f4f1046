# tests/test_checkers.py
"""
Tests for the checker framework: diagnostics, suppressions, the runner
and fix application.
"""

import json

import pytest

from component_order.checkers import (
    ORDER_SUMMARY,
    Checker,
    CheckerContext,
    CheckerRegistry,
    CheckerRunner,
    CheckerRunResults,
    CodeOrderChecker,
    Confidence,
    Diagnostic,
    DiagnosticSeverity,
    ModuleConstantChecker,
    SourceLocation,
    SuppressionManager,
    analysed_functions,
    apply_fixes,
    default_registry,
    fix_until_stable,
    lint_source,
)
from component_order.estree import SourceText
from component_order.serializer import TextEdit
from tests.conftest import (
    CANONICAL,
    CYCLIC_VALUES,
    LOG_BETWEEN_WIDENED,
    LOG_BETWEEN_WIDENED_FIXED,
    MODULE_CONSTANT,
    MODULE_CONSTANT_FIXED,
    MUTUAL_HANDLERS,
    SPLIT_HANDLERS,
    SPLIT_HANDLERS_FIXED,
    STATE_AFTER_CONTEXT,
    STATE_AFTER_CONTEXT_FIXED,
    USE_BEFORE_DECLARE,
    USE_BEFORE_DECLARE_FIXED,
    parse_js,
)


def _run(src, file="App.jsx", **kwargs):
    options = kwargs.pop("options", None)
    runner = CheckerRunner(options=options, **kwargs)
    return runner.run(parse_js(src), src, file)


def _diag(error_id="codeOrder", line=1, fixes=(), file="App.jsx"):
    return Diagnostic(
        error_id=error_id,
        message="msg",
        severity=DiagnosticSeverity.STYLE,
        location=SourceLocation(file, line, 1),
        fixes=tuple(fixes),
    )


class TestCodeOrderChecker:

    def test_category_regression(self):
        results = _run(STATE_AFTER_CONTEXT)
        (diag,) = results.diagnostics
        assert diag.error_id == "codeOrder"
        assert diag.severity is DiagnosticSeverity.STYLE
        assert diag.message == (
            '"useState" should come before "context hooks" in component. '
            f"Order: {ORDER_SUMMARY}"
        )
        assert (diag.location.line, diag.location.column) == (3, 3)
        assert diag.evidence["function"] == "Profile"
        assert diag.evidence["order"] == [1, 0, 2]

    def test_fix_reorders_body(self):
        results = _run(STATE_AFTER_CONTEXT)
        fixed, applied = apply_fixes(STATE_AFTER_CONTEXT, results.diagnostics)
        assert applied == 1
        assert fixed == STATE_AFTER_CONTEXT_FIXED

    def test_use_before_declare(self):
        results = _run(USE_BEFORE_DECLARE)
        (diag,) = results.diagnostics
        assert diag.error_id == "useBeforeDeclare"
        assert diag.severity is DiagnosticSeverity.WARNING
        assert diag.message == (
            '"count" is used before it is declared. Reorder statements so '
            "dependencies are declared first in hook"
        )
        assert (diag.location.line, diag.location.column) == (2, 3)
        fixed, _ = apply_fixes(USE_BEFORE_DECLARE, results.diagnostics)
        assert fixed == USE_BEFORE_DECLARE_FIXED

    def test_statement_splitting_handlers_is_flagged(self):
        results = _run(SPLIT_HANDLERS)
        (diag,) = results.diagnostics
        assert diag.error_id == "codeOrder"
        assert diag.message.startswith(
            '"useState" should come before "handler functions" in component.'
        )
        assert (diag.location.line, diag.location.column) == (3, 3)
        fixed, applied = apply_fixes(SPLIT_HANDLERS, results.diagnostics)
        assert applied == 1
        assert fixed == SPLIT_HANDLERS_FIXED

    @pytest.mark.parametrize("src", [CANONICAL, MUTUAL_HANDLERS, CYCLIC_VALUES])
    def test_clean_or_unfixable_bodies(self, src):
        assert _run(src).diagnostics == []

    def test_report_cycles(self):
        results = _run(CYCLIC_VALUES, options={"report_cycles": True})
        (diag,) = results.diagnostics
        assert diag.error_id == "orderCycle"
        assert diag.severity is DiagnosticSeverity.INFORMATION
        assert diag.message == (
            "Statements declaring a, b depend on each other in hook; "
            "their order is kept"
        )
        assert not diag.is_fixable

    def test_short_bodies_skipped(self):
        src = "function useOne() {\n  return useState(0);\n}\n"
        results = _run(src)
        assert results.diagnostics == []
        assert results.stats["bodies_analysed"] == 0

    def test_nested_component_checked(self):
        src = (
            "function App() {\n"
            "  function Row() {\n"
            "    const theme = useContext(ThemeContext);\n"
            "    const [on, setOn] = useState(false);\n"
            "    return <li className={theme}>{on}</li>;\n"
            "  }\n"
            "  return <ul><Row /></ul>;\n"
            "}\n"
        )
        (diag,) = _run(src).diagnostics
        assert diag.evidence["function"] == "Row"
        assert diag.location.line == 4


class TestModuleConstantChecker:

    def test_diagnostic(self):
        results = _run(MODULE_CONSTANT)
        (diag,) = results.diagnostics
        assert diag.error_id == "moduleConstant"
        assert diag.message == (
            'Constant "limit" should be declared inside the component as '
            "derived state, not at module level"
        )
        assert (diag.location.line, diag.location.column) == (1, 7)
        assert len(diag.fixes) == 2

    def test_disabled_by_option(self):
        assert _run(MODULE_CONSTANT, options={"hoist_constants": False}).diagnostics == []

    def test_nested_use_targets_outer_function(self):
        src = (
            "const gap = 4;\n"
            "function App() {\n"
            "  function Inner() {\n"
            "    return <span>{gap}</span>;\n"
            "  }\n"
            "  return <div><Inner /></div>;\n"
            "}\n"
        )
        (diag,) = _run(src).diagnostics
        assert diag.evidence == {"constant": "gap", "function": "App"}

    def test_analysed_functions_marks_outermost(self):
        src = (
            "function App() {\n"
            "  function Inner() { return <span />; }\n"
            "  return <div />;\n"
            "}\n"
        )
        ctx = CheckerContext(program=parse_js(src), source=SourceText(src))
        found = analysed_functions(ctx)
        assert [(f.name, f.outermost) for f in found] == [
            ("App", True), ("Inner", False),
        ]
        assert analysed_functions(ctx) is found


class TestSuppressions:

    def test_inline_next_line(self):
        src = STATE_AFTER_CONTEXT.replace(
            "  const [count",
            "  // order-lint-disable-next-line codeOrder\n  const [count",
        )
        assert _run(src).diagnostics == []

    def test_inline_same_line_without_ids(self):
        src = STATE_AFTER_CONTEXT.replace(
            "useState(0);", "useState(0); // order-lint-disable-line"
        )
        assert _run(src).diagnostics == []

    def test_inline_other_id_does_not_suppress(self):
        src = STATE_AFTER_CONTEXT.replace(
            "  const [count",
            "  // order-lint-disable-next-line moduleConstant -- legacy\n  const [count",
        )
        assert [d.error_id for d in _run(src).diagnostics] == ["codeOrder"]

    def test_reason_ends_id_list(self):
        sm = SuppressionManager()
        sm.load_inline_suppressions(
            "x; // order-lint-disable-line codeOrder, useBeforeDeclare -- moduleConstant\n",
            "a.js",
        )
        assert sm.is_suppressed(_diag("codeOrder", file="a.js"))
        assert sm.is_suppressed(_diag("useBeforeDeclare", file="a.js"))
        assert not sm.is_suppressed(_diag("moduleConstant", file="a.js"))

    def test_reload_replaces_file_entries(self):
        sm = SuppressionManager()
        sm.load_inline_suppressions("// order-lint-disable-line\n", "a.js")
        assert sm.is_suppressed(_diag(file="a.js"))
        sm.load_inline_suppressions("clean();\n", "a.js")
        assert not sm.is_suppressed(_diag(file="a.js"))

    def test_file_level(self):
        sm = SuppressionManager()
        sm.add_file_suppression("codeOrder", "src/legacy/*")
        assert sm.is_suppressed(_diag(file="src/legacy/Old.jsx"))
        assert not sm.is_suppressed(_diag(file="src/New.jsx"))
        assert not sm.is_suppressed(_diag("moduleConstant", file="src/legacy/Old.jsx"))

    def test_global(self):
        results = lint_source(
            parse_js(STATE_AFTER_CONTEXT), STATE_AFTER_CONTEXT,
            suppress=["codeOrder"],
        )
        assert results.diagnostics == []


class _ExplodingChecker(Checker):
    name = "exploding"
    error_ids = frozenset({"boom"})

    def collect_evidence(self, ctx):
        raise RuntimeError("boom")

    def diagnose(self, ctx):
        pass


class TestRunner:

    def test_registry(self):
        registry = default_registry()
        assert registry.names == ["code-order", "module-constant"]
        assert registry.filter_by_error_id("orderCycle") == [CodeOrderChecker]
        assert registry.get_by_name("module-constant") is ModuleConstantChecker

    def test_disabled_checker(self):
        registry = CheckerRegistry()
        registry.register(CodeOrderChecker)
        registry.register(ModuleConstantChecker)
        registry.disable("module-constant")
        results = _run(MODULE_CONSTANT, registry=registry)
        assert results.checker_names == ["code-order"]
        assert results.diagnostics == []

    def test_select_by_name(self):
        runner = CheckerRunner()
        src = MODULE_CONSTANT
        results = runner.run(parse_js(src), src, "App.jsx", checkers=["code-order", "nope"])
        assert results.checker_names == ["code-order"]

    def test_failing_checker_reported(self):
        registry = CheckerRegistry()
        registry.register(_ExplodingChecker)
        registry.register(CodeOrderChecker)
        results = _run(STATE_AFTER_CONTEXT, registry=registry)
        assert [d.error_id for d in results.diagnostics] == [
            "checkerInternalError", "codeOrder",
        ]
        assert "boom" in results.diagnostics[0].message

    def test_every_severity_and_confidence_is_emitted(self):
        src = "\n".join([
            USE_BEFORE_DECLARE, STATE_AFTER_CONTEXT, CYCLIC_VALUES, MODULE_CONSTANT,
        ])
        results = _run(src, options={"report_cycles": True})
        assert sorted(d.error_id for d in results.diagnostics) == [
            "codeOrder", "moduleConstant", "orderCycle", "useBeforeDeclare",
        ]
        assert {d.severity for d in results.diagnostics} == set(DiagnosticSeverity)
        assert {d.confidence for d in results.diagnostics} == set(Confidence)

    def test_results_helpers(self):
        results = _run(STATE_AFTER_CONTEXT, file="src/Profile.jsx")
        assert results.fixable_count == 1
        assert results.total_count == 1
        assert len(results.by_error_id("codeOrder")) == 1
        assert results.by_file("src/Profile.jsx") == results.diagnostics
        assert "1 diagnostics" in results.summary()

    def test_merge(self):
        first = _run(STATE_AFTER_CONTEXT, file="a.jsx")
        second = _run(USE_BEFORE_DECLARE, file="b.jsx")
        combined = CheckerRunResults()
        combined.merge(first)
        combined.merge(second)
        assert combined.total_count == 2
        assert combined.warning_count == 1
        assert combined.checker_names == ["code-order", "module-constant"]
        assert len(combined.diagnostics_by_checker["code-order"]) == 2


class TestOutput:

    def test_gcc_format(self):
        (diag,) = _run(USE_BEFORE_DECLARE, file="src/useTotals.js").diagnostics
        assert diag.to_gcc_format().startswith(
            "src/useTotals.js:2:3: warning: \"count\" is used before"
        )
        assert diag.to_gcc_format().endswith("[useBeforeDeclare]")

    def test_json(self):
        (diag,) = _run(STATE_AFTER_CONTEXT, file="src/Profile.jsx").diagnostics
        data = json.loads(diag.to_json_str())
        assert data["file"] == "src/Profile.jsx"
        assert data["line"] == 3
        assert data["severity"] == "style"
        assert data["errorId"] == "codeOrder"
        assert data["checker"] == "code-order"
        assert data["fixes"][0]["text"].startswith("const [count")
        assert data["evidence"]["role"] == "component"

    def test_json_omits_empty_fields(self):
        data = _diag().to_json_dict()
        assert "fixes" not in data
        assert "evidence" not in data

    def test_location_without_column(self):
        assert str(SourceLocation("a.js", 4)) == "a.js:4"


class TestFixes:

    def test_overlapping_fix_deferred(self):
        first = _diag(line=1, fixes=[TextEdit(0, 4, "AAAA")])
        second = _diag(line=2, fixes=[TextEdit(2, 6, "BB")])
        fixed, applied = apply_fixes("0123456789", [second, first])
        assert applied == 1
        assert fixed == "AAAA456789"

    def test_independent_fixes_applied_together(self):
        first = _diag(fixes=[TextEdit(0, 1, "x")])
        second = _diag(fixes=[TextEdit(5, 6, "y")])
        fixed, applied = apply_fixes("0123456789", [first, second])
        assert (fixed, applied) == ("x1234y6789", 2)

    def test_nothing_to_fix(self):
        assert apply_fixes("abc", [_diag()]) == ("abc", 0)

    def test_fix_until_stable(self):
        outcome = fix_until_stable(MODULE_CONSTANT, parse_js, file="Pager.jsx")
        assert outcome.source == MODULE_CONSTANT_FIXED
        assert outcome.applied == 1
        assert outcome.passes == 2
        assert outcome.changed
        assert outcome.results.diagnostics == []

    def test_fixed_source_lints_clean(self):
        results = _run(LOG_BETWEEN_WIDENED)
        fixed, applied = apply_fixes(LOG_BETWEEN_WIDENED, results.diagnostics)
        assert applied == 1
        assert fixed == LOG_BETWEEN_WIDENED_FIXED

        relint = _run(fixed)
        assert relint.diagnostics == []
        assert apply_fixes(fixed, relint.diagnostics) == (fixed, 0)

        outcome = fix_until_stable(LOG_BETWEEN_WIDENED, parse_js)
        assert outcome.source == LOG_BETWEEN_WIDENED_FIXED
        assert (outcome.applied, outcome.passes) == (1, 2)

    def test_fix_until_stable_on_clean_source(self):
        outcome = fix_until_stable(CANONICAL, parse_js)
        assert not outcome.changed
        assert outcome.passes == 1
        assert outcome.source == CANONICAL

    def test_hoist_then_reorder(self):
        src = (
            "const label = 'Save';\n"
            "function Button() {\n"
            "  const theme = useContext(ThemeContext);\n"
            "  const [busy, setBusy] = useState(false);\n"
            "  return <button className={theme} disabled={busy}>{label}</button>;\n"
            "}\n"
        )
        outcome = fix_until_stable(src, parse_js)
        # the reorder overlaps the hoisted insertion, so it waits a pass
        assert outcome.applied == 2
        assert outcome.passes == 3
        assert outcome.results.diagnostics == []
        assert outcome.source == (
            "function Button() {\n"
            "  const [busy, setBusy] = useState(false);\n"
            "\n"
            "  const theme = useContext(ThemeContext);\n"
            "\n"
            "  const label = 'Save';\n"
            "\n"
            "  return <button className={theme} disabled={busy}>{label}</button>;\n"
            "}\n"
        )
