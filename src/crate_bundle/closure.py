# src/crate_bundle/closure.py
"""Topological order and transitive dependency sets of the unit graph."""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping, Sequence

from .errors import CyclicDependencyError
from .types import UnitId
from .utils_logs import get_logger

DependencyMap = Mapping[UnitId, Sequence[UnitId]]


def _nodes(deps: DependencyMap) -> list[UnitId]:
    seen: set[UnitId] = set(deps)
    for targets in deps.values():
        seen.update(targets)
    return sorted(seen)


def topological_order(deps: DependencyMap) -> list[UnitId]:
    """Order units so that every unit comes before the units it depends on.

    Kahn's algorithm over in-degrees, where B's in-degree counts the units
    depending on B. Raises CyclicDependencyError if some units can never
    reach in-degree zero.
    """
    nodes = _nodes(deps)
    indeg: dict[UnitId, int] = dict.fromkeys(nodes, 0)
    for targets in deps.values():
        for target in dict.fromkeys(targets):
            indeg[target] += 1

    queue = deque(u for u in nodes if indeg[u] == 0)
    order: list[UnitId] = []
    while queue:
        unit = queue.popleft()
        order.append(unit)
        for target in dict.fromkeys(deps.get(unit, ())):
            indeg[target] -= 1
            if indeg[target] == 0:
                queue.append(target)

    if len(order) != len(nodes):
        raise CyclicDependencyError(u for u in nodes if indeg[u] > 0)
    return order


def transitive_closure(deps: DependencyMap) -> dict[UnitId, frozenset[UnitId]]:
    """Map each unit to every unit it needs, directly or indirectly."""
    logger = get_logger()
    closure: dict[UnitId, frozenset[UnitId]] = {}
    for unit in reversed(topological_order(deps)):
        needed: set[UnitId] = set()
        for dep in deps.get(unit, ()):
            needed.add(dep)
            needed.update(closure[dep])
        closure[unit] = frozenset(needed)
        logger.trace("[CLOSURE] %s needs %d unit(s)", unit, len(needed))
    return closure
