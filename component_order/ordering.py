"""
component_order/ordering.py
═══════════════════════════

Violation detection and the constrained reordering solver.

Detection
─────────
One left-to-right scan reports the first *category regression* (a
categorized statement whose bucket is below the highest bucket seen so far),
and the dependency graph reports the first *dependency inversion* (a
statement reading a name a later statement declares).  Both checks always
run; either, both or neither may be present.

Solving
───────
The target order must be bucket-monotonic and dependency-respecting while
disturbing the original order as little as possible:

  1. **base bucket**       own bucket; an uncategorized statement inherits
                           the next categorized statement's bucket, or
                           RETURN when none follows
  2. **effective bucket**  base widened to the largest effective bucket of
                           any dependency, transitively (fixpoint); an
                           uncategorized statement is lifted to the
                           effective bucket of the next categorized one,
                           so it travels with that statement's group
  3. **grouping**          statements grouped by effective bucket, groups
                           emitted in ascending order
  4. **within a group**    depth-first topological order over intra-group
                           edges, visiting in original index order;
                           mutually dependent statements (a strongly
                           connected component) are emitted together in
                           original relative order, i.e. the closing back
                           edge is skipped

Every step tiebreaks on original index, so the solver is deterministic, and
a body that is already monotonic and dependency-sound comes back as the
identity permutation.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import (
    Dict,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
)

from .classifier import Statement
from .dependency_graph import BodyGraph, build_graph
from .primitives import Bucket

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — VIOLATIONS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CategoryViolation:
    """*statement* (bucket *bucket*) appears after a *previous*-bucket one."""
    statement: Statement
    bucket: Bucket
    previous: Bucket


@dataclass(frozen=True)
class DependencyViolation:
    """*statement* reads *variable* before *producer* declares it."""
    statement: Statement
    variable: str
    producer: Statement


@dataclass
class ViolationReport:
    category_violation: Optional[CategoryViolation] = None
    dependency_violation: Optional[DependencyViolation] = None

    @property
    def has_violation(self) -> bool:
        return (
            self.category_violation is not None
            or self.dependency_violation is not None
        )


def detect(statements: Sequence[Statement], graph: BodyGraph) -> ViolationReport:
    """Report the first category regression and the first inversion."""
    report = ViolationReport()

    highest: Optional[Bucket] = None
    for stmt in statements:
        if stmt.bucket is None:
            continue
        if highest is not None and stmt.bucket < highest:
            report.category_violation = CategoryViolation(
                stmt, stmt.bucket, highest)
            break
        highest = stmt.bucket

    edge = graph.first_inversion()
    if edge is not None:
        report.dependency_violation = DependencyViolation(
            statement=statements[edge.consumer],
            variable=edge.variable,
            producer=statements[edge.producer],
        )

    return report


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — EFFECTIVE BUCKETS
# ═══════════════════════════════════════════════════════════════════════════

def base_buckets(statements: Sequence[Statement]) -> List[Bucket]:
    """Own buckets, with uncategorized statements inheriting forward."""
    result: List[Bucket] = [Bucket.RETURN] * len(statements)
    following = Bucket.RETURN
    for index in range(len(statements) - 1, -1, -1):
        own = statements[index].bucket
        if own is not None:
            following = own
        result[index] = following
    return result


def effective_buckets(
    statements: Sequence[Statement],
    graph: BodyGraph,
) -> List[Bucket]:
    """
    Base buckets widened upward by every transitive dependency.

    Iterates to a fixpoint; values only ever grow and are bounded by
    RETURN, so cycles terminate.  Each round also lifts an uncategorized
    statement to the effective bucket of the next categorized statement
    (RETURN when none follows).  Inheriting the neighbour's *own* bucket
    instead would let a rewrite regroup the statement on the next run.
    """
    effective = base_buckets(statements)
    changed = True
    while changed:
        changed = False
        for index in range(len(statements)):
            for producer in graph.depends_on(index):
                if effective[producer] > effective[index]:
                    effective[index] = effective[producer]
                    changed = True

        following = Bucket.RETURN
        for index in range(len(statements) - 1, -1, -1):
            if statements[index].bucket is not None:
                following = effective[index]
            elif effective[index] < following:
                effective[index] = following
                changed = True
    return effective


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — TOPOLOGICAL ORDER WITHIN A GROUP
# ═══════════════════════════════════════════════════════════════════════════

def strongly_connected_components(
    members: Sequence[int],
    deps: Dict[int, List[int]],
) -> List[List[int]]:
    """
    Tarjan's SCCs of the subgraph induced by *members*.

    Each component is returned sorted by index; components come out in
    reverse topological order (producers before consumers).
    """
    counter = [0]
    stack: List[int] = []
    lowlink: Dict[int, int] = {}
    index_of: Dict[int, int] = {}
    on_stack: Set[int] = set()
    result: List[List[int]] = []

    def strongconnect(v: int) -> None:
        index_of[v] = counter[0]
        lowlink[v] = counter[0]
        counter[0] += 1
        stack.append(v)
        on_stack.add(v)

        for w in deps.get(v, ()):
            if w not in index_of:
                strongconnect(w)
                lowlink[v] = min(lowlink[v], lowlink[w])
            elif w in on_stack:
                lowlink[v] = min(lowlink[v], index_of[w])

        if lowlink[v] == index_of[v]:
            scc: List[int] = []
            while True:
                w = stack.pop()
                on_stack.discard(w)
                scc.append(w)
                if w == v:
                    break
            result.append(sorted(scc))

    for v in sorted(members):
        if v not in index_of:
            strongconnect(v)
    return result


def _order_group(
    members: Sequence[int],
    graph: BodyGraph,
) -> Tuple[List[int], List[Tuple[int, ...]]]:
    member_set = set(members)
    deps: Dict[int, List[int]] = {
        i: [d for d in graph.depends_on(i) if d in member_set]
        for i in members
    }
    components = strongly_connected_components(members, deps)
    component_of: Dict[int, int] = {}
    for cid, component in enumerate(components):
        for i in component:
            component_of[i] = cid
    cycles = [tuple(c) for c in components if len(c) > 1]

    emitted: Set[int] = set()
    order: List[int] = []

    def visit(cid: int) -> None:
        if cid in emitted:
            return
        emitted.add(cid)
        for i in components[cid]:
            for d in deps[i]:
                if component_of[d] != cid:
                    visit(component_of[d])
        order.extend(components[cid])

    for i in sorted(members):
        visit(component_of[i])
    return order, cycles


@dataclass(frozen=True)
class ReorderPlan:
    """
    Target permutation of statement indices.

    Attributes
    ----------
    order     : statement indices in their new order
    effective : effective bucket per original index
    cycles    : groups of mutually dependent statements kept in original
                relative order
    """
    order: Tuple[int, ...]
    effective: Tuple[Bucket, ...] = ()
    cycles: Tuple[Tuple[int, ...], ...] = ()

    @property
    def is_identity(self) -> bool:
        return all(idx == pos for pos, idx in enumerate(self.order))

    def position_of(self, index: int) -> int:
        return self.order.index(index)

    def moved(self) -> List[int]:
        """Original indices whose position changes."""
        return [idx for pos, idx in enumerate(self.order) if idx != pos]


def compute_order(
    statements: Sequence[Statement],
    graph: BodyGraph,
) -> ReorderPlan:
    """Bucket-monotonic, dependency-respecting permutation of *statements*."""
    effective = effective_buckets(statements, graph)

    groups: Dict[Bucket, List[int]] = defaultdict(list)
    for index, bucket in enumerate(effective):
        groups[bucket].append(index)

    order: List[int] = []
    cycles: List[Tuple[int, ...]] = []
    for bucket in sorted(groups):
        group_order, group_cycles = _order_group(groups[bucket], graph)
        order.extend(group_order)
        cycles.extend(group_cycles)

    if cycles:
        logger.debug("Kept original order for cyclic statements %s", cycles)

    return ReorderPlan(
        order=tuple(order),
        effective=tuple(effective),
        cycles=tuple(cycles),
    )


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — ONE-SHOT ANALYSIS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class OrderAnalysis:
    """Graph, violations and (when needed) the plan for one body."""
    graph: BodyGraph
    report: ViolationReport
    plan: Optional[ReorderPlan] = None
    cycles: Tuple[Tuple[int, ...], ...] = field(default_factory=tuple)

    @property
    def needs_fix(self) -> bool:
        return (
            self.report.has_violation
            and self.plan is not None
            and not self.plan.is_identity
        )


def analyze(statements: Sequence[Statement]) -> OrderAnalysis:
    """
    Build the graph, detect violations and solve when something is wrong.

    The plan is only computed when a violation exists.  Any dependency
    cycle contains a forward edge, so a body without violations has no
    cycles either.
    """
    graph = build_graph(statements)
    report = detect(statements, graph)
    if not report.has_violation:
        return OrderAnalysis(graph, report)
    plan = compute_order(statements, graph)
    return OrderAnalysis(graph, report, plan, plan.cycles)


__all__ = [
    "CategoryViolation",
    "DependencyViolation",
    "OrderAnalysis",
    "ReorderPlan",
    "ViolationReport",
    "analyze",
    "base_buckets",
    "compute_order",
    "detect",
    "effective_buckets",
    "strongly_connected_components",
]
