"""ComparisonResult dataclass for document comparison output."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["ComparisonResult"]


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """Rich result of a compare() call.

    Attributes:
        distance: Tree edit distance between the two bodies.  0.0 is identical.
        alignment: Witnessing mapping as 1-based post-order position pairs;
            0 on one side marks an insert or delete.
        changed_left: Skeleton XPaths of left nodes that were removed or
            relabeled.
        changed_right: Skeleton XPaths of right nodes that were inserted or
            relabeled.
        computation_time_ms: Wall-clock duration of the comparison in milliseconds.
    """

    distance: float
    alignment: list[tuple[int, int]]
    changed_left: list[str]
    changed_right: list[str]
    computation_time_ms: float
