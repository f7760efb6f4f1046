# tests/test_serializer.py
"""
Tests for rendering reorder plans and applying text edits.
"""

import pytest

from component_order.errors import FixConflictError
from component_order.ordering import ReorderPlan, analyze
from component_order.serializer import (
    TextEdit,
    apply_edits,
    render_order,
    serialize,
)
from tests.conftest import (
    LOG_BETWEEN_WIDENED,
    LOG_BETWEEN_WIDENED_FIXED,
    SPLIT_HANDLERS,
    SPLIT_HANDLERS_FIXED,
    STATE_AFTER_CONTEXT,
    STATE_AFTER_CONTEXT_FIXED,
    USE_BEFORE_DECLARE,
    USE_BEFORE_DECLARE_FIXED,
    WITH_GUARD,
    WITH_GUARD_FIXED,
    body_of,
)


def _fix(src, name):
    body = body_of(src, name)
    plan = analyze(body.statements).plan
    edit = serialize(src, body.statements, plan)
    assert edit is not None
    return apply_edits(src, [edit])


class TestSerialize:

    @pytest.mark.parametrize("src,name,expected", [
        (STATE_AFTER_CONTEXT, "Profile", STATE_AFTER_CONTEXT_FIXED),
        (USE_BEFORE_DECLARE, "useTotals", USE_BEFORE_DECLARE_FIXED),
        (WITH_GUARD, "Feed", WITH_GUARD_FIXED),
        (SPLIT_HANDLERS, "Panel", SPLIT_HANDLERS_FIXED),
        (LOG_BETWEEN_WIDENED, "Badge", LOG_BETWEEN_WIDENED_FIXED),
    ])
    def test_rewrite(self, src, name, expected):
        assert _fix(src, name) == expected

    def test_rewrite_keeps_crlf_line_endings(self):
        src = STATE_AFTER_CONTEXT.replace("\n", "\r\n")
        fixed = _fix(src, "Profile")
        assert fixed == STATE_AFTER_CONTEXT_FIXED.replace("\n", "\r\n")
        assert "\n" not in fixed.replace("\r\n", "")

    def test_edit_spans_the_statements(self):
        body = body_of(STATE_AFTER_CONTEXT, "Profile")
        plan = analyze(body.statements).plan
        edit = serialize(STATE_AFTER_CONTEXT, body.statements, plan)
        assert edit.start == body.statements[0].range[0]
        assert edit.end == body.statements[-1].range[1]
        assert not edit.replacement.startswith(" ")

    def test_identity_plan_gives_no_edit(self):
        body = body_of(STATE_AFTER_CONTEXT, "Profile")
        plan = ReorderPlan(order=(0, 1, 2))
        assert serialize(STATE_AFTER_CONTEXT, body.statements, plan) is None

    def test_missing_plan_or_statements(self):
        body = body_of(STATE_AFTER_CONTEXT, "Profile")
        assert serialize(STATE_AFTER_CONTEXT, body.statements, None) is None
        assert serialize(STATE_AFTER_CONTEXT, [], ReorderPlan(order=(1, 0))) is None

    def test_render_identity_adds_bucket_gaps(self):
        body = body_of(STATE_AFTER_CONTEXT, "Profile")
        text = render_order(STATE_AFTER_CONTEXT, body.statements, (0, 1, 2))
        assert text.split("\n") == [
            "const theme = useContext(ThemeContext);",
            "",
            "  const [count, setCount] = useState(0);",
            "",
            "  return <div className={theme}>{count}</div>;",
        ]

    def test_render_empty(self):
        assert render_order("", [], ()) == ""


class TestTextEdit:

    def test_insertion(self):
        assert TextEdit(3, 3, "x").is_insertion
        assert not TextEdit(3, 4).is_insertion

    @pytest.mark.parametrize("a,b,expected", [
        (TextEdit(0, 5), TextEdit(5, 8), False),
        (TextEdit(0, 5), TextEdit(4, 8), True),
        (TextEdit(2, 3), TextEdit(0, 10), True),
        (TextEdit(4, 4, "x"), TextEdit(4, 4, "y"), True),
        (TextEdit(4, 4, "x"), TextEdit(5, 5, "y"), False),
        (TextEdit(4, 4, "x"), TextEdit(2, 6), True),
        (TextEdit(2, 2, "x"), TextEdit(2, 6), False),
    ])
    def test_overlaps(self, a, b, expected):
        assert a.overlaps(b) is expected
        assert b.overlaps(a) is expected

    def test_to_dict(self):
        assert TextEdit(1, 4, "abc").to_dict() == {"range": [1, 4], "text": "abc"}


class TestApplyEdits:

    def test_replace_and_insert(self):
        text = "hello world"
        edits = [TextEdit(6, 11, "there"), TextEdit(0, 0, "> ")]
        assert apply_edits(text, edits) == "> hello there"

    def test_deletion(self):
        assert apply_edits("abcdef", [TextEdit(1, 3)]) == "adef"

    def test_no_edits(self):
        assert apply_edits("same", []) == "same"

    def test_adjacent_edits(self):
        assert apply_edits("abcd", [TextEdit(0, 2, "X"), TextEdit(2, 4, "Y")]) == "XY"

    def test_overlap_rejected(self):
        with pytest.raises(FixConflictError):
            apply_edits("abcdef", [TextEdit(0, 3, "x"), TextEdit(2, 5, "y")])

    @pytest.mark.parametrize("edit", [TextEdit(-1, 2), TextEdit(2, 10), TextEdit(4, 3)])
    def test_out_of_bounds_rejected(self, edit):
        with pytest.raises(FixConflictError) as info:
            apply_edits("abcdef", [edit])
        assert info.value.start == edit.start
