"""Recognizer configuration, loadable from YAML.

Example ``unistroke.yml``:

    num_points: 64
    square_size: 250
    angle_range: 45        # degrees, searched on both sides of zero
    angle_precision: 2     # degrees
    min_points: 10
    min_score: 0.8
    workers: 4
    library_path: mystrokes.txt
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, asdict, fields
from pathlib import Path

import yaml

from unistroke.point import Point

logger = logging.getLogger("unistroke.config")


@dataclass
class RecognizerConfig:
    num_points: int = 64
    square_size: float = 250.0
    angle_range: float = 45.0  # degrees
    angle_precision: float = 2.0  # degrees
    origin: tuple[float, float] = (0.0, 0.0)
    min_points: int = 10  # strokes shorter than this are "too short"
    min_score: float = 0.0
    workers: int = 1
    library_path: str = "mystrokes.txt"

    def __post_init__(self):
        self.origin = (float(self.origin[0]), float(self.origin[1]))
        if self.num_points < 2:
            raise ValueError(f"num_points must be at least 2, got {self.num_points}")
        if self.square_size <= 0:
            raise ValueError(f"square_size must be positive, got {self.square_size}")
        if self.angle_precision <= 0:
            raise ValueError(f"angle_precision must be positive, got {self.angle_precision}")
        if self.angle_range < 0:
            raise ValueError(f"angle_range must not be negative, got {self.angle_range}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")

    @property
    def angle_range_radians(self) -> float:
        return math.radians(self.angle_range)

    @property
    def angle_precision_radians(self) -> float:
        return math.radians(self.angle_precision)

    @property
    def origin_point(self) -> Point:
        return Point(*self.origin)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["origin"] = list(self.origin)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> RecognizerConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, path: str | Path) -> RecognizerConfig:
        """Load config from a YAML mapping. An empty file gives the defaults."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
