"""Dependency graph over installed packages.

``forward[A]`` is the set of names package ``A`` declares in its
``dependencies`` or ``peerDependencies``; ``reverse[B]`` is the set of
packages declaring ``B``. Both indexes are built in one pass over the
records, so lookups during classification are O(1) and the whole
classification stays linear in packages plus edges.

Edges may point at names that are not installed; they are kept so that
reverse lookups stay complete.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Tuple

from depgauge.models.package import PackageRecord


class DependencyGraph:
    """Immutable forward and reverse dependency indexes.

    Example:
        >>> graph = DependencyGraph.from_records(records.values())
        >>> graph.dependents("react")
        ('old-ui-kit', 'react-dom')
    """

    __slots__ = ("_forward", "_reverse", "_sorted_reverse")

    def __init__(
        self,
        forward: Mapping[str, Iterable[str]],
        reverse: Mapping[str, Iterable[str]],
    ) -> None:
        self._forward: Mapping[str, FrozenSet[str]] = MappingProxyType(
            {name: frozenset(deps) for name, deps in forward.items()}
        )
        self._reverse: Mapping[str, FrozenSet[str]] = MappingProxyType(
            {name: frozenset(deps) for name, deps in reverse.items()}
        )
        self._sorted_reverse: Mapping[str, Tuple[str, ...]] = MappingProxyType(
            {name: tuple(sorted(deps)) for name, deps in self._reverse.items()}
        )

    @classmethod
    def from_records(cls, records: Iterable[PackageRecord]) -> "DependencyGraph":
        forward: Dict[str, Set[str]] = {}
        reverse: Dict[str, Set[str]] = {}

        for record in records:
            targets = forward.setdefault(record.name, set())
            for dep_name in (*record.dependency_ranges, *record.peer_dependency_ranges):
                targets.add(dep_name)
                reverse.setdefault(dep_name, set()).add(record.name)

        return cls(forward, reverse)

    @property
    def forward(self) -> Mapping[str, FrozenSet[str]]:
        return self._forward

    @property
    def reverse(self) -> Mapping[str, FrozenSet[str]]:
        return self._reverse

    def dependencies(self, name: str) -> FrozenSet[str]:
        return self._forward.get(name, frozenset())

    def dependents(self, name: str) -> Tuple[str, ...]:
        """Packages requiring ``name``, in lexicographic order."""
        return self._sorted_reverse.get(name, ())

    def edge_count(self) -> int:
        return sum(len(deps) for deps in self._forward.values())

    def __contains__(self, name: object) -> bool:
        return name in self._forward

    def __len__(self) -> int:
        return len(self._forward)

    def __repr__(self) -> str:
        return f"DependencyGraph(nodes={len(self)}, edges={self.edge_count()})"

    def requirers_of_any(self, names: Iterable[str]) -> List[str]:
        """Sorted packages declaring at least one of ``names``."""
        found: Set[str] = set()
        for name in names:
            found.update(self._reverse.get(name, ()))
        return sorted(found)
