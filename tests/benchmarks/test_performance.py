"""Performance benchmark suite for pagestate.

Measures the tree edit distance on generated pages:
- 10-item lists (~30 nodes)
- 100-item lists (~300 nodes)
- 500-item lists (~1500 nodes)
- 500-row pages (~2000 nodes, every row changed) under a fixed time budget

Run with: pytest tests/benchmarks/ --benchmark-only -v
Skip during normal test runs: pytest --benchmark-disable
"""

from __future__ import annotations

import time

from pagestate import compare, tree_distance

# Wall-clock ceiling for one comparison of two ~2000-node pages.
BUDGET_2000_NODES_S = 5.0


class TestPerformance10Item:
    """Benchmark suite for 10-item pages."""

    def test_10item_similar(self, benchmark, pair_10item_similar):  # type: ignore[no-untyped-def]
        left, right = pair_10item_similar
        result = benchmark(compare, left, right)
        # one relabeled text node
        assert result.distance == 1.0

    def test_10item_dissimilar(self, benchmark, pair_10item_dissimilar):  # type: ignore[no-untyped-def]
        left, right = pair_10item_dissimilar
        result = benchmark(compare, left, right)
        assert result.distance > 0.0


class TestPerformance100Item:
    """Benchmark suite for 100-item pages."""

    def test_100item_similar(self, benchmark, pair_100item_similar):  # type: ignore[no-untyped-def]
        left, right = pair_100item_similar
        result = benchmark(compare, left, right)
        assert result.distance == 1.0

    def test_100item_dissimilar(self, benchmark, pair_100item_dissimilar):  # type: ignore[no-untyped-def]
        left, right = pair_100item_dissimilar
        result = benchmark(compare, left, right)
        assert result.distance > 0.0


class TestPerformance500Item:
    """Benchmark suite for 500-item pages. Distance only, no alignment."""

    def test_500item_similar(self, benchmark, pair_500item_similar):  # type: ignore[no-untyped-def]
        left, right = pair_500item_similar
        distance = benchmark(tree_distance, left, right)
        assert distance == 1.0

    def test_500item_dissimilar(self, benchmark, pair_500item_dissimilar):  # type: ignore[no-untyped-def]
        left, right = pair_500item_dissimilar
        distance = benchmark(tree_distance, left, right)
        assert distance > 0.0


class TestPerformance2000Node:
    """A single comparison of two ~2000-node pages with 500 changed rows."""

    def test_2000node_distance(self, benchmark, pair_2000node_rows):  # type: ignore[no-untyped-def]
        left, right = pair_2000node_rows
        distance = benchmark.pedantic(
            tree_distance, args=(left, right), rounds=1, iterations=1
        )
        # one relabeled text node per row
        assert distance == 500.0

    def test_2000node_distance_within_budget(self, pair_2000node_rows):  # type: ignore[no-untyped-def]
        left, right = pair_2000node_rows
        t0 = time.perf_counter()
        distance = tree_distance(left, right)
        elapsed = time.perf_counter() - t0
        assert distance == 500.0
        assert elapsed < BUDGET_2000_NODES_S, (
            f"tree_distance took {elapsed:.2f}s on ~2000 nodes"
        )

    def test_2000node_compare_within_budget(self, pair_2000node_rows):  # type: ignore[no-untyped-def]
        left, right = pair_2000node_rows
        t0 = time.perf_counter()
        result = compare(left, right)
        elapsed = time.perf_counter() - t0
        assert result.distance == 500.0
        assert len(result.changed_left) == 500
        assert elapsed < BUDGET_2000_NODES_S, (
            f"compare took {elapsed:.2f}s on ~2000 nodes"
        )
