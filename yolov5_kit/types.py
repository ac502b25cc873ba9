from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Box:
    """
    Axis-aligned rectangle in original-image pixels: (left, top, width, height).

    Width/height are never negative. Use `Box.from_corners` when the corners
    may come in swapped.
    """

    left: float
    top: float
    width: float
    height: float

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Box width/height must be >= 0, got ({self.width}, {self.height})")

    @classmethod
    def from_corners(cls, x1: float, y1: float, x2: float, y2: float) -> "Box":
        left, right = (x1, x2) if x1 <= x2 else (x2, x1)
        top, bottom = (y1, y2) if y1 <= y2 else (y2, y1)
        return cls(left=float(left), top=float(top), width=float(right - left), height=float(bottom - top))

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.left, self.top, self.right, self.bottom

    def as_ltwh(self) -> Tuple[float, float, float, float]:
        return self.left, self.top, self.width, self.height


@dataclass(frozen=True)
class Detection:
    """
    One detected object: box in original-image coordinates, combined
    confidence (objectness * class score) and class index.
    """

    box: Box
    confidence: float
    class_index: int

    def __post_init__(self) -> None:
        if isinstance(self.class_index, bool) or int(self.class_index) != self.class_index or self.class_index < 0:
            raise ValueError(f"class_index must be a non-negative integer, got {self.class_index!r}")

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.box.as_xyxy()
