"""Generic dependency graph between binding scope paths."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from ._algorithms import find_cycle, topological_sort


@dataclass(frozen=True, slots=True)
class DependencyGraph[T]:
    """A directed graph of "depends on" relationships.

    Unlike a build graph, cycles are representable: user-authored bindings can
    reference each other in a loop, and the graph must be able to report it.

    - predecessors[b] = {a} means "b depends on a"
    - successors[a] = {b} means "a is depended on by b"

    """

    _predecessors: dict[T, frozenset[T]] = field(default_factory=dict)
    _successors: dict[T, frozenset[T]] = field(default_factory=dict)

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[T, T]], nodes: Iterable[T] = ()) -> DependencyGraph[T]:
        """Build a graph from (dependency, dependent) edges.

        Args:
            edges: Edges ``(a, b)`` meaning "b depends on a".
            nodes: Extra nodes to include even when they have no edges.

        Returns:
            A new DependencyGraph instance.

        Example:
            >>> graph = DependencyGraph.from_edges([("a", "b")], nodes=["c"])
            >>> sorted(graph.nodes)
            ['a', 'b', 'c']

        """
        predecessors: defaultdict[T, set[T]] = defaultdict(set)
        successors: defaultdict[T, set[T]] = defaultdict(set)
        for node in nodes:
            predecessors.setdefault(node, set())
            successors.setdefault(node, set())

        for src, dst in edges:
            predecessors[dst].add(src)
            successors[src].add(dst)
            predecessors.setdefault(src, set())
            successors.setdefault(dst, set())

        return cls(
            _predecessors={k: frozenset(v) for k, v in predecessors.items()},
            _successors={k: frozenset(v) for k, v in successors.items()},
        )

    @property
    def nodes(self) -> frozenset[T]:
        return frozenset(self._predecessors) | frozenset(self._successors)

    def predecessors(self, node: T) -> frozenset[T]:
        """Direct dependencies of ``node``."""
        return self._predecessors.get(node, frozenset())

    def successors(self, node: T) -> frozenset[T]:
        """Direct dependents of ``node``."""
        return self._successors.get(node, frozenset())

    def ancestors(self, node: T) -> frozenset[T]:
        """All transitive dependencies of ``node`` (including itself when it lies on a cycle)."""
        visited: set[T] = set()
        stack = list(self.predecessors(node))
        while stack:
            current = stack.pop()
            if current not in visited:
                visited.add(current)
                stack.extend(self.predecessors(current))
        return frozenset(visited)

    def descendants(self, node: T) -> frozenset[T]:
        """All transitive dependents of ``node``."""
        visited: set[T] = set()
        stack = list(self.successors(node))
        while stack:
            current = stack.pop()
            if current not in visited:
                visited.add(current)
                stack.extend(self.successors(current))
        return frozenset(visited)

    def topological_order(self) -> list[T]:
        """Return nodes with dependencies before dependents.

        Raises:
            ValueError: If the graph contains a cycle.

        """
        return topological_sort(dict(self._successors))

    def cyclic_nodes(self) -> frozenset[T]:
        """Nodes that lie on at least one cycle."""
        return frozenset(n for n in self.nodes if n in self.ancestors(n))

    def find_cycle(self) -> list[T] | None:
        """One cycle as a closed path, or None for an acyclic graph."""
        return find_cycle(dict(self._successors))

    def subgraph(self, nodes: frozenset[T]) -> DependencyGraph[T]:
        """Restrict the graph to ``nodes``, keeping edges between them."""
        return DependencyGraph(
            _predecessors={n: self._predecessors.get(n, frozenset()) & nodes for n in nodes},
            _successors={n: self._successors.get(n, frozenset()) & nodes for n in nodes},
        )

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node: object) -> bool:
        return node in self._predecessors or node in self._successors
