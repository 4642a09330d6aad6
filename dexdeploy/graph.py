import heapq
import typing
from collections import OrderedDict
from enum import Enum
from typing import Dict, Iterable, List

from dexdeploy.errors import CycleError, DuplicateDeclarationError, UnknownUnitError
from dexdeploy.params import Unit


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


class Graph:
    """Declared units plus the dependency edges derived from their parameters."""

    def __init__(self, units: typing.OrderedDict[str, Unit], edges: Dict[str, List[str]]):
        self.units = units
        self.edges = edges  # unit -> dependencies

    def __getitem__(self, name: str) -> Unit:
        return self.units[name]

    def __contains__(self, name: str) -> bool:
        return name in self.units

    def __len__(self) -> int:
        return len(self.units)

    @property
    def names(self) -> List[str]:
        return list(self.units)

    def dependencies(self, name: str) -> List[str]:
        return list(self.edges[name])

    def dependents(self, name: str) -> List[str]:
        return [unit for unit, deps in self.edges.items() if name in deps]

    def order(self) -> List[str]:
        """
        Returns the execution order: dependencies before dependents,
        ties broken by declaration order.
        """
        position = {name: index for index, name in enumerate(self.units)}
        remaining = {name: len(deps) for name, deps in self.edges.items()}
        eligible = [position[name] for name, count in remaining.items() if count == 0]
        heapq.heapify(eligible)

        order = list()
        names = self.names
        while eligible:
            name = names[heapq.heappop(eligible)]
            order.append(name)
            for dependent in self.dependents(name):
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    heapq.heappush(eligible, position[dependent])
        return order


def _detect_cycles(edges: Dict[str, List[str]]) -> None:
    marks = {name: _Mark.UNVISITED for name in edges}
    path: List[str] = list()

    def visit(name: str) -> None:
        marks[name] = _Mark.IN_PROGRESS
        path.append(name)
        for dependency in edges[name]:
            if marks[dependency] is _Mark.IN_PROGRESS:
                raise CycleError(path[path.index(dependency) :])
            if marks[dependency] is _Mark.UNVISITED:
                visit(dependency)
        path.pop()
        marks[name] = _Mark.DONE

    for name in edges:
        if marks[name] is _Mark.UNVISITED:
            visit(name)


def build(units: Iterable[Unit]) -> Graph:
    """
    Builds the dependency graph for an ordered sequence of unit declarations.
    Raises UnknownUnitError, DuplicateDeclarationError or CycleError
    before anything is deployed.
    """
    declared = OrderedDict()
    for unit in units:
        if unit.name in declared:
            raise DuplicateDeclarationError(unit.name)
        declared[unit.name] = unit

    edges = OrderedDict()
    for name, unit in declared.items():
        dependencies = unit.dependencies
        for dependency in dependencies:
            if dependency not in declared:
                raise UnknownUnitError(unit_name=name, reference=dependency)
        edges[name] = dependencies

    _detect_cycles(edges)
    return Graph(units=declared, edges=edges)
