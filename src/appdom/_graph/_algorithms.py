"""Graph algorithms for binding dependency graphs."""

from collections import defaultdict, deque
from collections.abc import Collection, Hashable, Mapping


def topological_sort[T: Hashable](successors: Mapping[T, Collection[T]]) -> list[T]:
    """Sort a graph topologically (dependencies before dependents).

    Args:
        successors: Mapping from node to collection of nodes that depend on it.
            An edge (a -> b) means "b depends on a".

    Returns:
        List of nodes in topological order. Among nodes whose dependencies are
        all satisfied, insertion order of ``successors`` is kept.

    Raises:
        ValueError: If the graph contains a cycle.

    Example:
        >>> topological_sort({"a": ["b"], "b": ["c"], "c": []})
        ['a', 'b', 'c']

    """
    indegree: defaultdict[T, int] = defaultdict(int)
    for node, deps in successors.items():
        indegree[node] = indegree.get(node, 0)
        for dep in deps:
            indegree[dep] += 1

    queue = deque([node for node, deg in indegree.items() if deg == 0])
    order: list[T] = []

    while queue:
        node = queue.popleft()
        order.append(node)
        for successor in successors.get(node, []):
            indegree[successor] -= 1
            if indegree[successor] == 0:
                queue.append(successor)

    if len(order) != len(indegree):
        msg = "Cycle detected in graph"
        raise ValueError(msg)

    return order


def find_cycle[T: Hashable](successors: Mapping[T, Collection[T]]) -> list[T] | None:
    """Return one cycle of the graph as a path ``[a, b, ..., a]``, or None.

    Example:
        >>> find_cycle({"a": ["b"], "b": ["a"]})
        ['a', 'b', 'a']

    """
    visiting: list[T] = []
    on_path: set[T] = set()
    done: set[T] = set()

    def visit(node: T) -> list[T] | None:
        visiting.append(node)
        on_path.add(node)
        for successor in successors.get(node, []):
            if successor in on_path:
                return [*visiting[visiting.index(successor) :], successor]
            if successor not in done:
                cycle = visit(successor)
                if cycle is not None:
                    return cycle
        visiting.pop()
        on_path.discard(node)
        done.add(node)
        return None

    for start in successors:
        if start not in done:
            cycle = visit(start)
            if cycle is not None:
                return cycle
    return None
