"""Single-stroke normalization and template matching ($1 unistroke recognizer).

A Stroke is a named, ordered sequence of 2D points. Every transformation
returns a new Stroke, so a raw stroke can be pushed through the standard
normalization sequence and matched against templates normalized the same way.

Usage:
    query = Stroke.from_points("", captured_xy).normalized()
    templates = [t.normalized() for t in library]
    result = query.recognize(templates)
    print(f"{result.name} (score={result.score:.2f})")

Reference: Wobbrock, Wilson & Li, "Gestures without Libraries, Toolkits or
Training" (UIST 2007).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from functools import cached_property
from typing import Iterable, Iterator, Union

import numpy as np

from unistroke.errors import InvalidStroke, NoTemplates, SizeMismatch
from unistroke.point import Point

# Golden ratio conjugate used to place the golden-section probes.
PHI = 0.5 * (-1.0 + math.sqrt(5.0))

DEFAULT_NUM_POINTS = 64
DEFAULT_SQUARE_SIZE = 250.0
ANGLE_RANGE = math.radians(45.0)
ANGLE_PRECISION = math.radians(2.0)

PointLike = Union[Point, tuple[float, float], list[float]]


@dataclass(frozen=True)
class RecognitionResult:
    """Best-matching template for a query stroke."""
    template: Stroke
    distance: float
    score: float  # 1.0 = identical, falls toward 0 (or below) as shapes diverge

    @property
    def name(self) -> str:
        return self.template.name


def score_for_distance(distance: float, reference_size: float) -> float:
    """Convert a path distance into a similarity score.

    The distance is measured against half the diagonal of a
    reference_size x reference_size box.
    """
    half_diagonal = 0.5 * math.sqrt(reference_size * reference_size * 2.0)
    return 1.0 - distance / half_diagonal


@dataclass(frozen=True)
class Stroke:
    """A named stroke: the path of one continuous pointer drag, first to last.

    Equality compares the name and the exact point sequence. Ordering
    compares names only, so a list of strokes sorts alphabetically.
    """
    name: str = ""
    points: tuple[Point, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not isinstance(self.points, tuple):
            object.__setattr__(self, "points", tuple(self.points))

    @classmethod
    def from_points(cls, name: str, points: Iterable[PointLike]) -> Stroke:
        """Build a stroke from Points or (x, y) pairs."""
        return cls(name, tuple(
            p if isinstance(p, Point) else Point(float(p[0]), float(p[1]))
            for p in points
        ))

    @classmethod
    def from_array(cls, name: str, array: np.ndarray) -> Stroke:
        """Build a stroke from an (N, 2) array."""
        return cls(name, tuple(Point(float(x), float(y)) for x, y in array))

    def as_array(self) -> np.ndarray:
        """Return the points as an (N, 2) float64 array (a copy)."""
        return self._array.copy()

    @cached_property
    def _array(self) -> np.ndarray:
        if not self.points:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array([(p.x, p.y) for p in self.points], dtype=np.float64)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def __lt__(self, other: Stroke) -> bool:
        if not isinstance(other, Stroke):
            return NotImplemented
        return self.name < other.name

    def __gt__(self, other: Stroke) -> bool:
        if not isinstance(other, Stroke):
            return NotImplemented
        return self.name > other.name

    def _require_points(self, operation: str):
        if not self.points:
            raise InvalidStroke(f"Cannot {operation}: the stroke has no points")

    def _with_array(self, array: np.ndarray) -> Stroke:
        return Stroke.from_array(self.name, array)

    # ── Geometric queries ─────────────────────────────────────────────

    def centroid(self) -> Point:
        """Arithmetic mean of all points."""
        self._require_points("find the centroid")
        with np.errstate(invalid="ignore", over="ignore"):
            cx, cy = self._array.mean(axis=0)
        return Point(float(cx), float(cy))

    def bounding_box(self) -> tuple[Point, Point]:
        """Return (top_left, bottom_right) = ((min_x, min_y), (max_x, max_y))."""
        self._require_points("find the bounding box")
        lo = self._array.min(axis=0)
        hi = self._array.max(axis=0)
        return Point(float(lo[0]), float(lo[1])), Point(float(hi[0]), float(hi[1]))

    def path_length(self) -> float:
        """Sum of distances between consecutive points. 0 for fewer than 2 points."""
        if len(self.points) < 2:
            return 0.0
        return sum(
            Point.distance(a, b) for a, b in zip(self.points, self.points[1:])
        )

    # ── Normalization pipeline ────────────────────────────────────────

    def resample(self, num_points: int = DEFAULT_NUM_POINTS) -> Stroke:
        """Resample into num_points points evenly spaced by arc length."""
        self._require_points("resample the stroke")
        if num_points < 2:
            raise ValueError(f"num_points must be at least 2, got {num_points}")

        interval = self.path_length() / (num_points - 1)
        resampled = [self.points[0]]

        # Zero-length path: every sample sits on the single location.
        if interval > 0.0:
            working = list(self.points)
            accumulated = 0.0
            i = 1
            while i < len(working) and len(resampled) < num_points:
                prev, curr = working[i - 1], working[i]
                d = Point.distance(prev, curr)
                if accumulated + d >= interval:
                    t = (interval - accumulated) / d
                    new_point = Point(
                        prev.x + t * (curr.x - prev.x),
                        prev.y + t * (curr.y - prev.y),
                    )
                    resampled.append(new_point)
                    # Next segment starts at the emitted point.
                    working.insert(i, new_point)
                    accumulated = 0.0
                else:
                    accumulated += d
                i += 1

        # Floating-point drift can leave the walk short of the last sample.
        while len(resampled) < num_points:
            resampled.append(self.points[-1])

        return Stroke(self.name, tuple(resampled))

    def indicative_angle(self) -> float:
        """Angle in radians from the first point to the centroid."""
        self._require_points("find the indicative angle")
        c = self.centroid()
        first = self.points[0]
        return math.atan2(c.y - first.y, c.x - first.x)

    def rotate_by(self, angle: float) -> Stroke:
        """Rotate every point about the centroid by angle radians."""
        self._require_points("rotate the stroke")
        c = self.centroid()
        cos_a, sin_a = math.cos(angle), math.sin(angle)
        with np.errstate(invalid="ignore", over="ignore"):
            dx = self._array[:, 0] - c.x
            dy = self._array[:, 1] - c.y
            rotated = np.column_stack((
                dx * cos_a - dy * sin_a + c.x,
                dx * sin_a + dy * cos_a + c.y,
            ))
        return self._with_array(rotated)

    def scale_to(self, size: float = DEFAULT_SQUARE_SIZE) -> Stroke:
        """Stretch x and y independently so the bounding box becomes size x size.

        Not aspect-preserving. A zero-width or zero-height bounding box yields
        inf/nan coordinates on that axis instead of raising.
        """
        self._require_points("scale the stroke")
        top_left, bottom_right = self.bounding_box()
        extent = np.array(
            [bottom_right.x - top_left.x, bottom_right.y - top_left.y],
            dtype=np.float64,
        )
        with np.errstate(divide="ignore", invalid="ignore"):
            scaled = self._array * size / extent
        return self._with_array(scaled)

    def translate_to(self, origin: Point = Point()) -> Stroke:
        """Shift the stroke so its centroid lands on origin."""
        self._require_points("translate the stroke")
        c = self.centroid()
        with np.errstate(invalid="ignore", over="ignore"):
            shifted = self._array + (origin.x - c.x, origin.y - c.y)
        return self._with_array(shifted)

    def normalized(
        self,
        num_points: int = DEFAULT_NUM_POINTS,
        size: float = DEFAULT_SQUARE_SIZE,
        origin: Point = Point(),
    ) -> Stroke:
        """Apply resample → de-rotate → scale → translate.

        The indicative angle is taken after resampling and before scaling,
        since scaling and translation distort the first-point/centroid angle.
        """
        stroke = self.resample(num_points)
        stroke = stroke.rotate_by(-stroke.indicative_angle())
        stroke = stroke.scale_to(size)
        return stroke.translate_to(origin)

    # ── Matching ──────────────────────────────────────────────────────

    def path_distance(self, other: Stroke) -> float:
        """Mean distance between corresponding points of two equal-length strokes."""
        if len(self.points) != len(other.points):
            raise SizeMismatch(
                f"Cannot find the path distance: strokes have {len(self.points)} "
                f"and {len(other.points)} points"
            )
        if not self.points:
            raise InvalidStroke("Cannot find the path distance: both strokes are empty")

        with np.errstate(invalid="ignore", over="ignore"):
            deltas = self._array - other._array
            return float(np.mean(np.sqrt(np.sum(deltas * deltas, axis=1))))

    def distance_at_angle(self, other: Stroke, angle: float) -> float:
        """Path distance after rotating this stroke by angle radians."""
        return self.rotate_by(angle).path_distance(other)

    def distance_at_best_angle(
        self,
        other: Stroke,
        angle_low: float = -ANGLE_RANGE,
        angle_high: float = ANGLE_RANGE,
        angle_tolerance: float = ANGLE_PRECISION,
    ) -> float:
        """Minimum distance_at_angle over [angle_low, angle_high].

        Golden-section search; assumes the distance is unimodal over the
        interval, which holds for small windows around zero rotation.
        """
        if not angle_tolerance > 0:
            raise ValueError(f"angle_tolerance must be positive, got {angle_tolerance}")

        x1 = PHI * angle_low + (1.0 - PHI) * angle_high
        f1 = self.distance_at_angle(other, x1)
        x2 = (1.0 - PHI) * angle_low + PHI * angle_high
        f2 = self.distance_at_angle(other, x2)

        while abs(angle_high - angle_low) > angle_tolerance:
            if f1 < f2:
                angle_high = x2
                x2, f2 = x1, f1
                x1 = PHI * angle_low + (1.0 - PHI) * angle_high
                f1 = self.distance_at_angle(other, x1)
            else:
                angle_low = x1
                x1, f1 = x2, f2
                x2 = (1.0 - PHI) * angle_low + PHI * angle_high
                f2 = self.distance_at_angle(other, x2)

        return min(f1, f2)

    def recognize(
        self,
        templates: Iterable[Stroke],
        reference_size: float = DEFAULT_SQUARE_SIZE,
        angle_range: float = ANGLE_RANGE,
        angle_tolerance: float = ANGLE_PRECISION,
    ) -> RecognitionResult:
        """Find the template closest to this stroke.

        Both this stroke and the templates must already be normalized to
        the same point count. Ties go to the first template in order.
        Templates whose distance is nan (degenerate, zero-extent shapes)
        never win unless no template has a finite distance.

        Raises:
            NoTemplates: if templates is empty.
        """
        first: tuple[Stroke, float] | None = None
        best: Stroke | None = None
        best_distance = math.inf

        for template in templates:
            distance = self.distance_at_best_angle(
                template, -angle_range, angle_range, angle_tolerance
            )
            if first is None:
                first = (template, distance)
            if distance < best_distance:
                best = template
                best_distance = distance

        if first is None:
            raise NoTemplates("Cannot recognize the stroke: no templates given")
        if best is None:
            best, best_distance = first

        return RecognitionResult(
            template=best,
            distance=best_distance,
            score=score_for_distance(best_distance, reference_size),
        )
