# tests/conftest.py
"""
Shared helpers for the component_order test-suite.

Two kinds of input are used:

  * real ESTree trees from ``esprima`` (``parse_js`` / ``body_of``) for
    anything that needs source ranges;
  * bare :class:`Statement` records (``make_statements``) for the graph
    and solver, which only look at declared names, references and buckets.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from component_order.classifier import (
    FunctionBody,
    Statement,
    StatementClassifier,
    StatementKind,
)
from component_order.estree import iter_functions
from component_order.primitives import Bucket

PARSE_OPTIONS = {"jsx": True, "range": True, "loc": True}


# ---------------------------------------------------------------------------
# esprima-backed builders
# ---------------------------------------------------------------------------

def parse_js(src: str) -> Any:
    esprima = pytest.importorskip("esprima")
    return esprima.parseModule(src, PARSE_OPTIONS)


def expr_of(src: str) -> Any:
    """The expression node of ``(src);``."""
    program = parse_js(f"({src});")
    return program.body[0].expression


def find_function(program: Any, name: str):
    for info in iter_functions(program):
        if info.name == name:
            return info
    raise LookupError(name)


def body_of(
    src: str,
    name: Optional[str] = None,
    classifier: Optional[StatementClassifier] = None,
) -> FunctionBody:
    """Classified body of function *name* (default: the first function)."""
    program = parse_js(src)
    info = find_function(program, name) if name else next(iter_functions(program))
    clf = classifier or StatementClassifier()
    body = clf.build_body(info)
    assert body is not None, f"{info.name} is neither a component nor a hook"
    return body


def buckets_of(body: FunctionBody) -> List[Optional[Bucket]]:
    return [s.bucket for s in body.statements]


def to_plain(node: Any) -> Any:
    """Convert esprima node objects into JSON-ready dicts and lists."""
    if isinstance(node, (list, tuple)):
        return [to_plain(item) for item in node]
    if isinstance(node, (str, int, float, bool)) or node is None:
        return node
    if isinstance(node, dict):
        return {k: to_plain(v) for k, v in node.items()}
    return {k: to_plain(v) for k, v in vars(node).items()}


# ---------------------------------------------------------------------------
# Record builders for the graph and the solver
# ---------------------------------------------------------------------------

StatementSpec = Tuple[Sequence[str], Sequence[str], Optional[Bucket]]


def make_statements(specs: Sequence[StatementSpec]) -> List[Statement]:
    """
    Build statements from ``(declared, references, bucket)`` triples.

    Each gets a 10-character dummy range so it can also be serialized
    against a synthetic buffer if needed.
    """
    statements: List[Statement] = []
    for index, (declared, refs, bucket) in enumerate(specs):
        statements.append(Statement(
            index=index,
            node={"type": "VariableDeclaration", "range": [index * 10, index * 10 + 9]},
            kind=StatementKind.VARIABLE_DECLARATION,
            declared=tuple(declared),
            references=tuple(refs),
            bucket=bucket,
        ))
    return statements


def reorder(statements: Sequence[Statement], order: Sequence[int]) -> List[Statement]:
    """Statements rearranged by *order* and re-indexed."""
    return [
        Statement(
            index=pos,
            node=statements[idx].node,
            kind=statements[idx].kind,
            declared=statements[idx].declared,
            references=statements[idx].references,
            bucket=statements[idx].bucket,
        )
        for pos, idx in enumerate(order)
    ]


# ---------------------------------------------------------------------------
# Sample sources
# ---------------------------------------------------------------------------

STATE_AFTER_CONTEXT = """\
function Profile() {
  const theme = useContext(ThemeContext);
  const [count, setCount] = useState(0);
  return <div className={theme}>{count}</div>;
}
"""

STATE_AFTER_CONTEXT_FIXED = """\
function Profile() {
  const [count, setCount] = useState(0);

  const theme = useContext(ThemeContext);

  return <div className={theme}>{count}</div>;
}
"""

USE_BEFORE_DECLARE = """\
function useTotals(items) {
  const total = count * 2;
  const count = items.length;
  return total;
}
"""

USE_BEFORE_DECLARE_FIXED = """\
function useTotals(items) {
  const count = items.length;
  const total = count * 2;

  return total;
}
"""

MUTUAL_HANDLERS = """\
function Panel() {
  const open = () => close();
  const close = () => open();
  return <div onClick={open} />;
}
"""

CYCLIC_VALUES = """\
function useLoop() {
  const a = b + 1;
  const b = a + 1;
  return a;
}
"""

CANONICAL = """\
function Card({ title }) {
  const ref = useRef(null);
  const [open, setOpen] = useState(false);
  const label = title.toUpperCase();
  const handleClick = () => setOpen(!open);
  useEffect(() => {
    ref.current.focus();
  }, []);
  return <div ref={ref} onClick={handleClick}>{label}</div>;
}
"""

OUTER_SCOPE = """\
const API_URL = "/items";

function List() {
  const items = useItems(API_URL);
  const [page, setPage] = useState(0);
  return <ul data-page={page}>{items}</ul>;
}
"""

WITH_GUARD = """\
function Feed() {
  const posts = usePosts();
  const [filter, setFilter] = useState("");
  if (!posts) {
    return null;
  }
  return <div>{filter}</div>;
}
"""

WITH_GUARD_FIXED = """\
function Feed() {
  const [filter, setFilter] = useState("");

  const posts = usePosts();
  if (!posts) {
    return null;
  }

  return <div>{filter}</div>;
}
"""

MODULE_CONSTANT = """\
const limit = 10;
function Pager() {
  const [page, setPage] = useState(0);
  const next = () => setPage(Math.min(page + 1, limit));
  return <div onClick={next}>{page}</div>;
}
"""

MODULE_CONSTANT_FIXED = """\
function Pager() {
  const [page, setPage] = useState(0);
  const limit = 10;

  const next = () => setPage(Math.min(page + 1, limit));
  return <div onClick={next}>{page}</div>;
}
"""

SPLIT_HANDLERS = """\
function Panel() {
  const open = () => close();
  const [shown, setShown] = useState(false);
  const close = () => open();
  return <div onClick={open}>{shown}</div>;
}
"""

SPLIT_HANDLERS_FIXED = """\
function Panel() {
  const [shown, setShown] = useState(false);

  const open = () => close();
  const close = () => open();

  return <div onClick={open}>{shown}</div>;
}
"""

LOG_BETWEEN_WIDENED = """\
function Badge() {
  const label = greet.name;
  console.log("render");
  const greet = () => "hi";
  const ref = useRef(label);
  return <div ref={ref}>{label}</div>;
}
"""

LOG_BETWEEN_WIDENED_FIXED = """\
function Badge() {
  const greet = () => "hi";

  const label = greet.name;
  console.log("render");

  const ref = useRef(label);

  return <div ref={ref}>{label}</div>;
}
"""
