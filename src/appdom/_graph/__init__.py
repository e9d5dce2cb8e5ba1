"""Dependency graphs between bindings.

This module contains:
- DependencyGraph[T]: A generic, immutable directed graph that can report cycles
- topological_sort / find_cycle: Algorithms over successor mappings
"""

from ._algorithms import find_cycle, topological_sort
from ._dependency_graph import DependencyGraph

__all__ = ["DependencyGraph", "find_cycle", "topological_sort"]
