"""Template library — named strokes persisted to a plain-text file.

File format (one token group per line):

    2                 number of strokes
    circle            stroke name (whole line, may contain spaces)
    64                number of points
    10.0<TAB>20.0     x and y of each point
    ...

Strokes are kept sorted by name. Duplicate names are allowed; removing a
name removes every stroke that carries it.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterable, Iterator, Optional

import numpy as np

from unistroke.errors import LibraryFormatError
from unistroke.point import Point
from unistroke.stroke import DEFAULT_NUM_POINTS, DEFAULT_SQUARE_SIZE, Stroke

logger = logging.getLogger("unistroke.library")


class TemplateLibrary:
    """An ordered, name-sorted collection of template strokes."""

    def __init__(self, strokes: Iterable[Stroke] = ()):
        self._strokes: list[Stroke] = sorted(strokes)

    def add(self, stroke: Stroke):
        """Add a stroke, keeping the library sorted by name.

        Strokes with equal names keep their insertion order.
        """
        self._strokes.append(stroke)
        self._strokes.sort()

    def remove(self, name: str) -> int:
        """Remove every stroke named name. Returns how many were removed."""
        before = len(self._strokes)
        self._strokes = [s for s in self._strokes if s.name != name]
        return before - len(self._strokes)

    def find(self, name: str) -> Optional[Stroke]:
        """Return the first stroke named name, or None."""
        for stroke in self._strokes:
            if stroke.name == name:
                return stroke
        return None

    def names(self) -> list[str]:
        return [s.name for s in self._strokes]

    def normalized(
        self,
        num_points: int = DEFAULT_NUM_POINTS,
        size: float = DEFAULT_SQUARE_SIZE,
        origin: Point = Point(),
    ) -> list[Stroke]:
        """Normalized copies of every stroke, in library order."""
        return [s.normalized(num_points, size, origin) for s in self._strokes]

    # ── Persistence ───────────────────────────────────────────────────

    @classmethod
    def load(cls, path: str | Path) -> TemplateLibrary:
        """Load a library file. A missing file is created empty."""
        path = Path(path)
        if not path.exists():
            logger.warning("Cannot open %s, creating a new one", path)
            cls().save(path)
            return cls()

        with open(path) as f:
            lines = f.read().splitlines()

        library = cls(_parse(lines))
        logger.info("Loaded %d strokes from %s", len(library), path)
        return library

    def save(self, path: str | Path):
        """Write the library in the plain-text stroke format."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        out = [str(len(self._strokes))]
        for stroke in self._strokes:
            out.append(stroke.name)
            out.append(str(len(stroke)))
            out.extend(f"{p.x!r}\t{p.y!r}" for p in stroke.points)

        with open(path, "w") as f:
            f.write("\n".join(out) + "\n")
        logger.info("Saved %d strokes to %s", len(self._strokes), path)

    # ── Container protocol ────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._strokes)

    def __iter__(self) -> Iterator[Stroke]:
        return iter(self._strokes)

    def __contains__(self, name: object) -> bool:
        return any(s.name == name for s in self._strokes)

    def __getitem__(self, index: int) -> Stroke:
        return self._strokes[index]

    @classmethod
    def with_defaults(cls) -> TemplateLibrary:
        """Create a library with built-in single-stroke shapes."""
        library = cls()

        # Circle, clockwise from the top (screen coordinates, y down)
        angles = np.linspace(-math.pi / 2, 3 * math.pi / 2, 64)
        circle = np.column_stack([100 + 100 * np.cos(angles), 100 + 100 * np.sin(angles)])
        library.add(Stroke.from_array("circle", circle))

        library.add(_polyline("square", [(0, 0), (100, 0), (100, 100), (0, 100), (0, 0)]))
        library.add(_polyline("triangle", [(50, 0), (100, 100), (0, 100), (50, 0)]))
        library.add(_polyline("check", [(0, 60), (35, 100), (100, 0)]))
        library.add(_polyline("caret", [(0, 100), (50, 0), (100, 100)]))
        library.add(_polyline("zigzag", [(0, 0), (25, 100), (50, 0), (75, 100), (100, 0)]))

        # Five-pointed star drawn without lifting the pen
        star = [
            (50 + 50 * math.cos(math.radians(-90 + 144 * k)),
             50 + 50 * math.sin(math.radians(-90 + 144 * k)))
            for k in range(6)
        ]
        library.add(_polyline("star", star))

        # Pigtail: a rising stroke with a single loop
        t = np.linspace(0, 2 * math.pi, 64)
        pigtail = np.column_stack([40 * t - 60 * np.sin(t), 100 - 60 * (1 - np.cos(t)) / 2 - 8 * t])
        library.add(Stroke.from_array("pigtail", pigtail))

        return library


def _polyline(name: str, corners: list[tuple[float, float]], per_segment: int = 16) -> Stroke:
    """Densify a polyline so each segment contributes per_segment samples."""
    pts = [np.array(corners[0], dtype=np.float64)]
    for a, b in zip(corners, corners[1:]):
        a, b = np.asarray(a, dtype=np.float64), np.asarray(b, dtype=np.float64)
        for t in np.linspace(0, 1, per_segment + 1)[1:]:
            pts.append(a + t * (b - a))
    return Stroke.from_array(name, np.array(pts))


def _parse(lines: list[str]) -> list[Stroke]:
    """Parse the plain-text library format into strokes."""
    pos = 0

    def next_line(what: str) -> str:
        nonlocal pos
        if pos >= len(lines):
            raise LibraryFormatError(f"unexpected end of file, expected {what}", pos + 1)
        line = lines[pos]
        pos += 1
        return line

    def next_int(what: str) -> int:
        line = next_line(what)
        try:
            value = int(line.strip())
        except ValueError:
            raise LibraryFormatError(f"expected {what}, got {line!r}", pos) from None
        if value < 0:
            raise LibraryFormatError(f"{what} must not be negative", pos)
        return value

    count = next_int("stroke count")
    strokes = []
    for _ in range(count):
        name = next_line("stroke name")
        n_points = next_int("point count")
        points = []
        for _ in range(n_points):
            line = next_line("point coordinates")
            parts = line.split()
            if len(parts) != 2:
                raise LibraryFormatError(f"expected 'x y', got {line!r}", pos)
            try:
                points.append(Point(float(parts[0]), float(parts[1])))
            except ValueError:
                raise LibraryFormatError(f"invalid coordinates {line!r}", pos) from None
        strokes.append(Stroke(name, tuple(points)))
    return strokes
