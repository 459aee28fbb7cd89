"""Stroke capture — accumulate pointer samples into a Stroke.

Feed pointer positions while the button is held; samples that repeat the
previous position (a stationary cursor) are dropped.

Usage:
    recorder = StrokeRecorder()
    recorder.start()
    # On every pointer-move event while the button is down:
    recorder.add_point(x, y)
    # On button release:
    stroke = recorder.stop()

Captured points can also be written to and read from disk as plain
``x y`` lines or a JSON list of pairs.
"""

from __future__ import annotations

import json
from pathlib import Path

from unistroke.errors import StrokeError
from unistroke.point import Point
from unistroke.stroke import Stroke


class StrokeRecorder:
    """Accumulates the points of one pointer drag."""

    def __init__(self):
        self._points: list[Point] = []
        self._name = ""
        self._recording = False

    def start(self, name: str = ""):
        """Begin a new stroke, discarding any previous points."""
        self._points = []
        self._name = name
        self._recording = True

    def add_point(self, x: float, y: float) -> bool:
        """Add a sample. Returns False if it was ignored."""
        if not self._recording:
            return False
        point = Point(float(x), float(y))
        if self._points and self._points[-1] == point:
            return False
        self._points.append(point)
        return True

    def stop(self) -> Stroke:
        """Stop recording and return the captured stroke."""
        self._recording = False
        return self.stroke

    def clear(self):
        """Drop captured points without changing the recording state."""
        self._points = []

    @property
    def stroke(self) -> Stroke:
        return Stroke(self._name, tuple(self._points))

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def point_count(self) -> int:
        return len(self._points)


def load_points(path: str | Path, name: str = "") -> Stroke:
    """Read a stroke from a points file.

    ``.json`` files hold a list of [x, y] pairs; anything else is read as
    one ``x y`` pair per line, skipping blank lines and ``#`` comments.
    """
    path = Path(path)

    if path.suffix == ".json":
        with open(path) as f:
            data = json.load(f)
        try:
            return Stroke.from_points(name, data)
        except (TypeError, IndexError, ValueError) as e:
            raise StrokeError(f"{path}: expected a list of [x, y] pairs ({e})") from e

    points = []
    with open(path) as f:
        for lineno, line in enumerate(f, start=1):
            line = line.split("#", 1)[0].strip()
            if not line:
                continue
            parts = line.replace(",", " ").split()
            if len(parts) != 2:
                raise StrokeError(f"{path}:{lineno}: expected 'x y', got {line!r}")
            try:
                points.append(Point(float(parts[0]), float(parts[1])))
            except ValueError:
                raise StrokeError(f"{path}:{lineno}: invalid coordinates {line!r}") from None
    return Stroke(name, tuple(points))


def save_points(stroke: Stroke, path: str | Path):
    """Write a stroke's points as JSON or plain ``x y`` lines."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix == ".json":
        with open(path, "w") as f:
            json.dump([[p.x, p.y] for p in stroke.points], f)
        return

    with open(path, "w") as f:
        for p in stroke.points:
            f.write(f"{p.x!r} {p.y!r}\n")
