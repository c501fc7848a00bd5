from __future__ import annotations

import pytest

from depgauge.core.graph import DependencyGraph
from depgauge.models.package import PackageRecord


def _records() -> list:
    return [
        PackageRecord("react", "17.0.2", "^17.0.0", dependency_ranges={"loose-envify": "^1.1.0"}),
        PackageRecord("react-dom", "17.0.2", "^17.0.0", peer_dependency_ranges={"react": "17.0.2"}),
        PackageRecord("old-ui-kit", "1.2.0", peer_dependency_ranges={"react": "^17.0.0"}),
        PackageRecord("loose-envify", "1.4.0", dependency_ranges={"js-tokens": "^4.0.0"}),
    ]


@pytest.mark.unit
class TestDependencyGraph:
    def test_forward_and_reverse_are_consistent(self) -> None:
        graph = DependencyGraph.from_records(_records())

        for source, targets in graph.forward.items():
            for target in targets:
                assert source in graph.reverse[target]
        for target, sources in graph.reverse.items():
            for source in sources:
                assert target in graph.forward[source]

    def test_dependents_are_sorted(self) -> None:
        graph = DependencyGraph.from_records(_records())

        assert graph.dependents("react") == ("old-ui-kit", "react-dom")
        assert graph.dependents("nobody-needs-me") == ()

    def test_edges_to_uninstalled_packages_are_kept(self) -> None:
        graph = DependencyGraph.from_records(_records())

        assert graph.dependents("js-tokens") == ("loose-envify",)
        assert "js-tokens" not in graph

    def test_counts(self) -> None:
        graph = DependencyGraph.from_records(_records())

        assert len(graph) == 4
        assert graph.edge_count() == 4
        assert repr(graph) == "DependencyGraph(nodes=4, edges=4)"

    def test_requirers_of_any(self) -> None:
        graph = DependencyGraph.from_records(_records())

        assert graph.requirers_of_any(["react", "loose-envify"]) == [
            "old-ui-kit",
            "react",
            "react-dom",
        ]

    def test_indexes_are_read_only(self) -> None:
        graph = DependencyGraph.from_records(_records())

        with pytest.raises(TypeError):
            graph.forward["new"] = frozenset()  # type: ignore[index]
