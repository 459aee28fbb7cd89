"""Template recognition over a set of normalized strokes.

Two entry points:

- ``recognize(query, templates, ...)``: stateless; expects the query and the
  templates to be normalized already. Can fan the per-template best-angle
  searches out over a thread pool.
- ``Recognizer``: holds a config and a set of templates normalized once on
  registration; normalizes raw query strokes itself.

Usage:
    recognizer = Recognizer(RecognizerConfig(), TemplateLibrary.with_defaults())
    result = recognizer.recognize(Stroke.from_points("", captured_xy))
    if result:
        print(f"{result.name} (score={result.score:.2f})")
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from unistroke.config import RecognizerConfig
from unistroke.errors import NoTemplates
from unistroke.stroke import (
    ANGLE_PRECISION,
    ANGLE_RANGE,
    DEFAULT_SQUARE_SIZE,
    RecognitionResult,
    Stroke,
    score_for_distance,
)

logger = logging.getLogger("unistroke.recognizer")


def recognize(
    query: Stroke,
    templates: Iterable[Stroke],
    reference_size: float = DEFAULT_SQUARE_SIZE,
    angle_range: float = ANGLE_RANGE,
    angle_tolerance: float = ANGLE_PRECISION,
    workers: Optional[int] = None,
) -> RecognitionResult:
    """Match a normalized query against normalized templates.

    With workers > 1 each template is searched on a thread pool. Distances
    are reduced in template order once all searches finish, so ties still
    go to the first template.

    Raises:
        NoTemplates: if templates is empty.
    """
    templates = list(templates)
    if not workers or workers <= 1 or len(templates) < 2:
        return query.recognize(templates, reference_size, angle_range, angle_tolerance)

    def search(template: Stroke) -> float:
        return query.distance_at_best_angle(
            template, -angle_range, angle_range, angle_tolerance
        )

    with ThreadPoolExecutor(max_workers=workers) as pool:
        distances = list(pool.map(search, templates))

    best_index = 0
    best_distance = math.inf
    for i, distance in enumerate(distances):
        if distance < best_distance:
            best_index = i
            best_distance = distance

    # every distance nan or inf: fall back to the first template
    best_distance = distances[best_index]
    return RecognitionResult(
        template=templates[best_index],
        distance=best_distance,
        score=score_for_distance(best_distance, reference_size),
    )


class Recognizer:
    """Recognizes raw strokes against a set of registered templates.

    Templates are normalized once when added and kept alongside the raw
    stroke, so a match reports the template as it was stored.
    """

    def __init__(
        self,
        config: Optional[RecognizerConfig] = None,
        templates: Iterable[Stroke] = (),
    ):
        self.config = config or RecognizerConfig()
        self._raw: list[Stroke] = []
        self._normalized: list[Stroke] = []
        for template in templates:
            self.add_template(template)

    def normalize(self, stroke: Stroke) -> Stroke:
        """Apply the configured normalization sequence to a stroke."""
        return stroke.normalized(
            num_points=self.config.num_points,
            size=self.config.square_size,
            origin=self.config.origin_point,
        )

    def add_template(self, template: Stroke):
        """Register a raw template stroke."""
        self._normalized.append(self.normalize(template))
        self._raw.append(template)

    def remove_template(self, name: str) -> int:
        """Drop every template with this name. Returns the number removed."""
        keep = [i for i, t in enumerate(self._raw) if t.name != name]
        removed = len(self._raw) - len(keep)
        self._raw = [self._raw[i] for i in keep]
        self._normalized = [self._normalized[i] for i in keep]
        return removed

    def recognize(self, stroke: Stroke) -> Optional[RecognitionResult]:
        """Normalize and match a raw stroke.

        Returns None when the stroke is shorter than config.min_points or
        when the best score falls below config.min_score.

        Raises:
            NoTemplates: if no templates are registered.
        """
        if len(stroke) < self.config.min_points:
            logger.debug(
                "Stroke too short to recognize (%d < %d points)",
                len(stroke), self.config.min_points,
            )
            return None
        if not self._normalized:
            raise NoTemplates("Cannot recognize the stroke: no templates registered")

        query = self.normalize(stroke)
        result = recognize(
            query,
            self._normalized,
            reference_size=self.config.square_size,
            angle_range=self.config.angle_range_radians,
            angle_tolerance=self.config.angle_precision_radians,
            workers=self.config.workers,
        )

        # Report the stored template rather than its normalized copy.
        index = next(i for i, t in enumerate(self._normalized) if t is result.template)
        result = RecognitionResult(
            template=self._raw[index],
            distance=result.distance,
            score=result.score,
        )

        if math.isnan(result.score) or result.score < self.config.min_score:
            logger.debug(
                "Best match %s scored %.3f, below threshold %.3f",
                result.name, result.score, self.config.min_score,
            )
            return None

        logger.debug("Recognized %s (score=%.3f)", result.name, result.score)
        return result

    @property
    def templates(self) -> list[Stroke]:
        return list(self._raw)

    def __len__(self) -> int:
        return len(self._raw)
