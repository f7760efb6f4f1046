"""
component_order/dependency_graph.py
═══════════════════════════════════

Intra-body dependency graph for one component or hook.

    ┌──────────────────────────────────────────────────────────────────┐
    │  declared_at : name  → index of the statement declaring it       │
    │  depends_on  : index → indices of the statements it reads from   │
    │  edges       : DepEdge(consumer, producer, variable)             │
    └──────────────────────────────────────────────────────────────────┘

Construction is two passes over the statement list:

  1. every declared name is recorded against its statement index; a later
     declaration of the same name overwrites the earlier one (last writer
     wins);
  2. every name a statement's initializers read is resolved through
     ``declared_at``.  Self references and names not declared in this body
     (imports, globals, outer-scope captures) impose no constraint.

An edge whose producer comes *after* its consumer is a dependency
inversion: the consumer uses a binding before it is declared.

Usage example::

    graph = build_graph(body.statements)
    for edge in graph.inversions():
        print(f"#{edge.consumer} reads {edge.variable} from #{edge.producer}")
    print(graph.to_dot(body.statements))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (
    Any,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Set,
)

from .primitives import bucket_label


@dataclass(frozen=True)
class DepEdge:
    """
    *consumer* reads *variable*, which *producer* declares.

    Attributes
    ----------
    consumer : index of the reading statement
    producer : index of the declaring statement
    variable : the name through which the dependence exists
    """
    consumer: int
    producer: int
    variable: str

    @property
    def is_inversion(self) -> bool:
        return self.producer > self.consumer

    def __repr__(self) -> str:
        return f"DepEdge(#{self.consumer}→#{self.producer} [{self.variable}])"


@dataclass
class BodyGraph:
    """Dependency graph over the statements of one function body."""
    size: int = 0
    declared_at: Dict[str, int] = field(default_factory=dict)
    edges: List[DepEdge] = field(default_factory=list)
    _depends_on: Dict[int, List[int]] = field(default_factory=dict, repr=False)

    def depends_on(self, index: int) -> List[int]:
        """Producer indices of *index*, in first-reference order."""
        return list(self._depends_on.get(index, ()))

    def inversions(self) -> Iterator[DepEdge]:
        """Edges pointing forward, in consumer-index then edge order."""
        for edge in self.edges:
            if edge.is_inversion:
                yield edge

    def first_inversion(self) -> Optional[DepEdge]:
        return next(self.inversions(), None)

    def to_dot(
        self,
        statements: Optional[Sequence[Any]] = None,
        title: str = "body",
    ) -> str:
        """
        Export the graph in Graphviz DOT format.

        Inverted edges are drawn red.  When *statements* are given, node
        labels carry the statement's bucket and declared names.
        """
        lines: List[str] = [
            f'digraph "{title}" {{',
            "  rankdir=TB;",
            '  node [shape=box, fontname="Courier", fontsize=10];',
        ]
        for index in range(self.size):
            label = f"#{index}"
            if statements is not None and index < len(statements):
                stmt = statements[index]
                names = ", ".join(getattr(stmt, "declared", ()))
                label += f"\\n{bucket_label(getattr(stmt, 'bucket', None))}"
                if names:
                    label += f"\\n{names}"
            lines.append(f'  n{index} [label="{label}"];')
        for edge in self.edges:
            style = ' color="red"' if edge.is_inversion else ""
            lines.append(
                f'  n{edge.producer} -> n{edge.consumer} '
                f'[label="{edge.variable}"{style}];'
            )
        lines.append("}")
        return "\n".join(lines)


def build_graph(statements: Sequence[Any]) -> BodyGraph:
    """
    Build the dependency graph of a statement list.

    *statements* are :class:`~component_order.classifier.Statement` objects
    (anything with ``declared`` and ``references`` sequences will do).
    """
    graph = BodyGraph(size=len(statements))

    # Pass 1: last declaration of a name wins
    for index, stmt in enumerate(statements):
        for name in stmt.declared:
            graph.declared_at[name] = index

    # Pass 2: resolve reads
    for index, stmt in enumerate(statements):
        producers: List[int] = []
        seen: Set[int] = set()
        for name in stmt.references:
            producer = graph.declared_at.get(name)
            if producer is None or producer == index:
                continue
            graph.edges.append(DepEdge(index, producer, name))
            if producer not in seen:
                seen.add(producer)
                producers.append(producer)
        graph._depends_on[index] = producers

    return graph


__all__ = ["BodyGraph", "DepEdge", "build_graph"]
