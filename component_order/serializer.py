"""
component_order/serializer.py
═════════════════════════════

Renders a :class:`~component_order.ordering.ReorderPlan` back to source text
and applies text edits.

The rewrite is deliberately coarse: each statement's original text is
re-emitted untouched at the body's base indentation, a single blank line
separates consecutive categorized statements whose own buckets differ, and
the whole span from the first statement's start to the last statement's end
is replaced in one :class:`TextEdit`.  There is no line-by-line patching.

Comments sitting *between* statements fall inside the replaced span and
are not carried over.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union

from .classifier import Statement
from .errors import FixConflictError
from .estree import SourceText
from .primitives import Bucket

SourceLike = Union[str, SourceText]


@dataclass(frozen=True, order=True)
class TextEdit:
    """Replace ``text[start:end]`` with *replacement*."""
    start: int
    end: int
    replacement: str = ""

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end

    def overlaps(self, other: "TextEdit") -> bool:
        if self.is_insertion and other.is_insertion:
            return self.start == other.start
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> dict:
        return {"range": [self.start, self.end], "text": self.replacement}


def _as_source(source: SourceLike) -> SourceText:
    return source if isinstance(source, SourceText) else SourceText(source)


def render_order(
    source: SourceLike,
    statements: Sequence[Statement],
    order: Sequence[int],
) -> str:
    """
    Text of *statements* laid out in *order*.

    The result starts at the first statement's column (no leading
    indentation) and has no trailing newline, ready to replace the range
    ``[statements[0].start, statements[-1].end)``.  Lines are joined with
    the buffer's own line ending.
    """
    src = _as_source(source)
    if not statements:
        return ""
    indent = src.indentation_at(statements[0].range[0])

    pieces: List[str] = []
    last: Optional[Bucket] = None
    for index in order:
        stmt = statements[index]
        bucket = stmt.bucket
        if last is not None and bucket is not None and bucket != last:
            pieces.append("")
        pieces.append(indent + src.get_text(stmt.node).strip())
        if bucket is not None:
            last = bucket

    return src.newline.join(pieces)[len(indent):]


def serialize(
    source: SourceLike,
    statements: Sequence[Statement],
    plan,
) -> Optional[TextEdit]:
    """
    Single edit rewriting the body in *plan*'s order.

    ``None`` when the plan is the identity permutation: a no-op fix is
    never produced.
    """
    if not statements or plan is None or plan.is_identity:
        return None
    start = statements[0].range[0]
    end = statements[-1].range[1]
    return TextEdit(start, end, render_order(source, statements, plan.order))


def apply_edits(text: str, edits: Iterable[TextEdit]) -> str:
    """
    Apply non-overlapping *edits* to *text*.

    Raises
    ------
    FixConflictError
        If an edit is out of bounds or two edits overlap.
    """
    ordered = sorted(edits)
    for edit in ordered:
        if not 0 <= edit.start <= edit.end <= len(text):
            raise FixConflictError(
                f"edit [{edit.start}, {edit.end}) outside 0..{len(text)}",
                edit.start, edit.end,
            )
    for prev, cur in zip(ordered, ordered[1:]):
        if prev.overlaps(cur):
            raise FixConflictError(
                f"edits [{prev.start}, {prev.end}) and "
                f"[{cur.start}, {cur.end}) overlap",
                cur.start, cur.end,
            )

    out: List[str] = []
    cursor = 0
    for edit in ordered:
        out.append(text[cursor:edit.start])
        out.append(edit.replacement)
        cursor = edit.end
    out.append(text[cursor:])
    return "".join(out)


__all__ = ["TextEdit", "apply_edits", "render_order", "serialize"]
