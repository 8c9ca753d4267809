"""Unit cost model for ordered tree edit distance.

- cost_insert / cost_delete: unit cost (1.0) for inserting/deleting a node.
- cost_relabel: 0.0 when the two labels are identical, 1.0 otherwise.

Labels are compared exactly; case-insensitive comparison is a concern of the
diff layer, not of the distance.
"""

from __future__ import annotations

from typing import Protocol


def cost_insert(label: str) -> float:
    """Unit cost for inserting a node."""
    return 1.0


def cost_delete(label: str) -> float:
    """Unit cost for deleting a node."""
    return 1.0


def cost_relabel(label_a: str, label_b: str) -> float:
    """Zero when labels match, unit cost otherwise."""
    return 0.0 if label_a == label_b else 1.0


class CostModel(Protocol):
    """Structural protocol for pluggable edit costs."""

    def delete(self, label: str) -> float: ...

    def insert(self, label: str) -> float: ...

    def relabel(self, label_a: str, label_b: str) -> float: ...


class UnitCostModel:
    """Default cost model: every insert, delete and relabel costs 1."""

    def delete(self, label: str) -> float:
        return cost_delete(label)

    def insert(self, label: str) -> float:
        return cost_insert(label)

    def relabel(self, label_a: str, label_b: str) -> float:
        return cost_relabel(label_a, label_b)
