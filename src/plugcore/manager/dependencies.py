"""Dependency resolution via depth-first topological sort."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence

from plugcore.errors import CircularDependencyError, MissingDependencyError

logger = logging.getLogger(__name__)

__all__ = ["find_dependents", "resolve_dependencies"]


def resolve_dependencies(module_id: str, graph: Mapping[str, Sequence[str]]) -> list[str]:
    """Resolve the activation order for one module.

    Walks the dependency graph depth-first from ``module_id`` using an
    explicit stack. A node is appended only after all of its dependencies,
    so the result is a topological order ending with ``module_id`` in which
    every ID appears exactly once.

    Args:
        module_id: The module to resolve.
        graph: Mapping of module ID to its ordered dependency IDs.

    Returns:
        List of module IDs, dependencies first.

    Raises:
        MissingDependencyError: If a reached ID is not in the graph.
        CircularDependencyError: If a module is its own transitive dependency.
    """
    order: list[str] = []
    resolved: set[str] = set()
    # Nodes on the current DFS path. Kept apart from `resolved` so a diamond
    # (shared dependency reached twice) is not mistaken for a cycle.
    visiting: set[str] = set()
    path: list[str] = []
    stack: list[tuple[str, Iterator[str]]] = []

    def enter(node: str, required_by: str | None) -> None:
        if node not in graph:
            raise MissingDependencyError(dependency_id=node, required_by=required_by)
        visiting.add(node)
        path.append(node)
        stack.append((node, iter(graph[node])))

    enter(module_id, None)

    while stack:
        node, deps = stack[-1]
        for dep in deps:
            if dep in resolved:
                continue
            if dep in visiting:
                cycle = path[path.index(dep):] + [dep]
                raise CircularDependencyError(cycle_path=cycle)
            enter(dep, node)
            break
        else:
            stack.pop()
            path.pop()
            visiting.discard(node)
            resolved.add(node)
            order.append(node)

    logger.debug("Resolved dependencies for '%s': %s", module_id, order)
    return order


def find_dependents(module_id: str, graph: Mapping[str, Sequence[str]]) -> list[str]:
    """Return IDs of modules that list ``module_id`` as a direct dependency.

    Order follows the iteration order of ``graph``; ``module_id`` itself is
    never included.
    """
    return [mid for mid, deps in graph.items() if mid != module_id and module_id in deps]
