"""UsefulnessPolicy: default size/area predicate for fragments.

A fragment is useful when its rectangle is at least ``min_width`` wide,
``min_height`` tall and covers at least ``min_area`` square pixels.  A
fragment without geometry is never useful.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pagestate.fragments.fragment import Fragment

__all__ = ["UsefulnessPolicy"]


@dataclass(frozen=True, slots=True)
class UsefulnessPolicy:
    """Immutable minimum-size policy.

    Attributes:
        min_width:  Minimum width in pixels (>= 0).
        min_height: Minimum height in pixels (>= 0).
        min_area:   Minimum area in square pixels (>= 0).
    """

    min_width: int = 10
    min_height: int = 10
    min_area: int = 1000

    def __post_init__(self) -> None:
        for name in ("min_width", "min_height", "min_area"):
            value = getattr(self, name)
            if value < 0:
                msg = f"{name} must be >= 0, got {value}"
                raise ValueError(msg)

    def __call__(self, fragment: Fragment) -> bool:
        rect = fragment.rect
        if rect is None:
            return False
        return (
            rect.width >= self.min_width
            and rect.height >= self.min_height
            and rect.area >= self.min_area
        )
