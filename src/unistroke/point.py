"""2D point value type used by strokes."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    """An immutable 2D coordinate.

    Equality is exact component-wise comparison, so two points that differ
    only by floating-point noise are not equal.
    """
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, scale: float) -> Point:
        return Point(self.x * scale, self.y * scale)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> Point:
        return Point(self.x / divisor, self.y / divisor)

    def __iter__(self):
        yield self.x
        yield self.y

    def dot(self, other: Point) -> float:
        return self.x * other.x + self.y * other.y

    def magnitude(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def sqr_magnitude(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalized(self) -> Point:
        """Unit-length copy. Raises ZeroDivisionError for the zero vector."""
        return self / self.magnitude()

    def distance_to(self, other: Point) -> float:
        return Point.distance(self, other)

    @staticmethod
    def distance(a: Point, b: Point) -> float:
        """Euclidean distance between two points."""
        dx = b.x - a.x
        dy = b.y - a.y
        return math.sqrt(dx * dx + dy * dy)
