"""Tests for stroke geometry, normalization and matching."""

import math
import warnings

import numpy as np
import pytest

from unistroke.errors import InvalidStroke, NoTemplates, SizeMismatch
from unistroke.library import TemplateLibrary
from unistroke.point import Point
from unistroke.stroke import Stroke, score_for_distance


def make_square(x0=0.0, y0=0.0, side=100.0, step=5.0, name="square"):
    """Clockwise square from the top-left corner, sampled every `step` units."""
    n = int(side / step)
    pts = []
    pts += [(x0 + i * step, y0) for i in range(n)]
    pts += [(x0 + side, y0 + i * step) for i in range(n)]
    pts += [(x0 + side - i * step, y0 + side) for i in range(n)]
    pts += [(x0, y0 + side - i * step) for i in range(n + 1)]
    return Stroke.from_points(name, pts)


def random_stroke(seed, n=30):
    rng = np.random.default_rng(seed)
    return Stroke.from_array("random", np.cumsum(rng.normal(0, 10, size=(n, 2)), axis=0))


class TestConstruction:
    def test_from_points_accepts_pairs_and_points(self):
        s = Stroke.from_points("a", [(0, 0), Point(1, 2), [3, 4]])
        assert s.points == (Point(0, 0), Point(1, 2), Point(3, 4))

    def test_points_stored_as_tuple(self):
        s = Stroke("a", [Point(0, 0)])
        assert isinstance(s.points, tuple)

    def test_as_array_is_copy(self):
        s = Stroke.from_points("a", [(1, 2), (3, 4)])
        arr = s.as_array()
        arr[0, 0] = 99
        assert s.points[0] == Point(1, 2)
        assert s.as_array().shape == (2, 2)

    def test_len_and_iter(self):
        s = Stroke.from_points("a", [(1, 2), (3, 4)])
        assert len(s) == 2
        assert list(s) == [Point(1, 2), Point(3, 4)]


class TestEqualityAndOrdering:
    def test_equal_requires_name_and_points(self):
        a = Stroke.from_points("a", [(0, 0), (1, 1)])
        assert a == Stroke.from_points("a", [(0, 0), (1, 1)])
        assert a != Stroke.from_points("b", [(0, 0), (1, 1)])
        assert a != Stroke.from_points("a", [(1, 1), (0, 0)])

    def test_ordering_by_name_only(self):
        a = Stroke.from_points("apple", [(5, 5)])
        b = Stroke.from_points("banana", [(0, 0)])
        assert a < b
        assert b > a
        assert sorted([b, a]) == [a, b]

    def test_same_name_not_less(self):
        a = Stroke.from_points("x", [(0, 0)])
        b = Stroke.from_points("x", [(1, 1)])
        assert not a < b
        assert not b < a


class TestGeometry:
    def test_centroid(self):
        s = Stroke.from_points("", [(0, 0), (4, 0), (4, 2)])
        c = s.centroid()
        assert c.x == pytest.approx(8 / 3)
        assert c.y == pytest.approx(2 / 3)

    def test_bounding_box(self):
        s = Stroke.from_points("", [(1, 5), (3, 1), (-2, 8)])
        top_left, bottom_right = s.bounding_box()
        assert top_left == Point(-2, 1)
        assert bottom_right == Point(3, 8)

    def test_bounding_box_new_max_after_new_min_on_other_axis(self):
        # Second point sets a new min x and a new max y at the same time.
        s = Stroke.from_points("", [(0, 0), (-1, 5), (2, -3)])
        top_left, bottom_right = s.bounding_box()
        assert top_left == Point(-1, -3)
        assert bottom_right == Point(2, 5)

    def test_path_length(self):
        s = Stroke.from_points("", [(0, 0), (3, 4), (3, 10)])
        assert s.path_length() == pytest.approx(11.0)

    def test_path_length_short_strokes(self):
        assert Stroke().path_length() == 0.0
        assert Stroke.from_points("", [(5, 5)]).path_length() == 0.0


class TestEmptyStroke:
    @pytest.mark.parametrize("operation", [
        lambda s: s.centroid(),
        lambda s: s.bounding_box(),
        lambda s: s.resample(),
        lambda s: s.indicative_angle(),
        lambda s: s.rotate_by(0.5),
        lambda s: s.scale_to(),
        lambda s: s.translate_to(),
        lambda s: s.normalized(),
    ])
    def test_raises_invalid_stroke(self, operation):
        with pytest.raises(InvalidStroke):
            operation(Stroke("empty"))

    def test_invalid_stroke_is_value_error(self):
        with pytest.raises(ValueError):
            Stroke().centroid()


class TestResample:
    def test_right_angle_path(self):
        s = Stroke.from_points("L", [(0, 0), (10, 0), (10, 10)])
        r = s.resample(3)
        assert r.name == "L"
        np.testing.assert_allclose(r.as_array(), [[0, 0], [10, 0], [10, 10]], atol=1e-9)

    @pytest.mark.parametrize("k", [2, 3, 16, 64, 128])
    def test_exact_point_count(self, k):
        for seed in range(5):
            assert len(random_stroke(seed).resample(k)) == k

    def test_even_spacing(self):
        r = make_square().resample(41)
        gaps = np.linalg.norm(np.diff(r.as_array(), axis=0), axis=1)
        np.testing.assert_allclose(gaps, 10.0, atol=1e-6)

    def test_first_and_last_points(self):
        s = random_stroke(7)
        r = s.resample(32)
        assert r.points[0] == s.points[0]
        np.testing.assert_allclose(r.as_array()[-1], s.as_array()[-1], atol=1e-6)

    def test_single_point(self):
        r = Stroke.from_points("dot", [(3, 4)]).resample(8)
        assert r.points == (Point(3, 4),) * 8

    def test_zero_length_path(self):
        r = Stroke.from_points("", [(1, 1), (1, 1), (1, 1)]).resample(5)
        assert len(r) == 5
        assert set(r.points) == {Point(1, 1)}

    def test_too_few_target_points(self):
        with pytest.raises(ValueError):
            make_square().resample(1)

    def test_does_not_mutate_source(self):
        s = make_square()
        before = s.points
        s.resample(10)
        assert s.points == before


class TestTransforms:
    def test_indicative_angle(self):
        s = Stroke.from_points("", [(0, 0), (2, 2)])
        assert s.indicative_angle() == pytest.approx(math.pi / 4)

    def test_rotate_quarter_turn(self):
        s = Stroke.from_points("", [(0, 0), (2, 0)])
        r = s.rotate_by(math.pi / 2)
        np.testing.assert_allclose(r.as_array(), [[1, -1], [1, 1]], atol=1e-9)

    def test_rotate_preserves_centroid(self):
        for seed in range(5):
            s = random_stroke(seed)
            c0 = s.centroid()
            c1 = s.rotate_by(1.234 * seed - 2.0).centroid()
            assert c1.x == pytest.approx(c0.x, abs=1e-9)
            assert c1.y == pytest.approx(c0.y, abs=1e-9)

    def test_rotate_keeps_name(self):
        assert make_square(name="sq").rotate_by(0.3).name == "sq"

    def test_scale_non_uniform(self):
        s = Stroke.from_points("", [(0, 0), (10, 5)])
        scaled = s.scale_to(250)
        np.testing.assert_allclose(scaled.as_array(), [[0, 0], [250, 250]])

    def test_scale_zero_height_gives_nan_or_inf(self):
        s = Stroke.from_points("", [(0, 0), (10, 0)])
        scaled = s.scale_to(250)
        assert scaled.points[1].x == pytest.approx(250)
        assert math.isnan(scaled.points[0].y)
        assert math.isnan(scaled.points[1].y)

    def test_scale_zero_height_nonzero_y_gives_inf(self):
        s = Stroke.from_points("", [(0, 3), (10, 3)])
        assert math.isinf(s.scale_to(250).points[0].y)

    @pytest.mark.parametrize("origin", [Point(), Point(300, 300), Point(-12.5, 7)])
    def test_translate_to_origin(self, origin):
        for seed in range(3):
            c = random_stroke(seed).translate_to(origin).centroid()
            assert c.x == pytest.approx(origin.x, abs=1e-9)
            assert c.y == pytest.approx(origin.y, abs=1e-9)

    def test_transforms_return_new_strokes(self):
        s = make_square()
        before = s.points
        s.rotate_by(1.0)
        s.scale_to(10)
        s.translate_to(Point(5, 5))
        assert s.points == before

    def test_normalized_pipeline(self):
        n = make_square(x0=40, y0=80, side=60).normalized()
        assert len(n) == 64
        c = n.centroid()
        assert c.x == pytest.approx(0, abs=1e-9)
        assert c.y == pytest.approx(0, abs=1e-9)
        top_left, bottom_right = n.bounding_box()
        assert bottom_right.x - top_left.x == pytest.approx(250)
        assert bottom_right.y - top_left.y == pytest.approx(250)


class TestPathDistance:
    def test_self_distance_zero(self):
        s = random_stroke(1)
        assert s.path_distance(s) == 0.0

    def test_symmetric(self):
        a = random_stroke(1).resample(32)
        b = random_stroke(2).resample(32)
        assert a.path_distance(b) == pytest.approx(b.path_distance(a))

    def test_mean_of_pointwise_distances(self):
        a = Stroke.from_points("", [(0, 0), (0, 0)])
        b = Stroke.from_points("", [(3, 4), (0, 1)])
        assert a.path_distance(b) == pytest.approx(3.0)

    def test_size_mismatch(self):
        with pytest.raises(SizeMismatch):
            random_stroke(1, n=10).path_distance(random_stroke(2, n=11))

    def test_both_empty(self):
        with pytest.raises(InvalidStroke):
            Stroke().path_distance(Stroke())

    def test_distance_at_angle(self):
        s = make_square().resample(32)
        assert s.distance_at_angle(s, 0.0) == pytest.approx(0.0, abs=1e-9)
        assert s.distance_at_angle(s, 0.5) > 0


class TestBestAngle:
    def test_identical_near_zero(self):
        q = make_square().normalized()
        d = q.distance_at_best_angle(q, -math.radians(45), math.radians(45), math.radians(2))
        assert d < 7.5
        assert score_for_distance(d, 250) > 0.95

    def test_finds_small_rotation(self):
        template = make_square().resample(64).translate_to()
        rotated = template.rotate_by(math.radians(-20))
        d_best = rotated.distance_at_best_angle(template)
        assert d_best < rotated.distance_at_angle(template, 0.0) / 4


class TestRecognize:
    def test_square_beats_circle(self):
        library = TemplateLibrary.with_defaults()
        square = library.find("square").normalized()
        circle = library.find("circle").normalized()

        query = make_square(x0=200, y0=150, side=50, step=2.5).normalized()
        result = query.recognize([circle, square])

        assert result.name == "square"
        assert result.template is square
        assert result.score > query.recognize([circle]).score
        assert result.score > 0.9

    def test_score_from_final_minimum(self):
        square = make_square().normalized()
        query = make_square(side=80, step=4).normalized()
        result = query.recognize([square])
        assert result.score == pytest.approx(score_for_distance(result.distance, 250))

    def test_tie_goes_to_first(self):
        base = make_square().normalized()
        first = Stroke("first", base.points)
        second = Stroke("second", base.points)
        assert base.recognize([first, second]).name == "first"
        assert base.recognize([second, first]).name == "second"

    def test_no_templates(self):
        with pytest.raises(NoTemplates):
            make_square().normalized().recognize([])

    def test_accepts_generator(self):
        square = make_square().normalized()
        result = square.recognize(t for t in [square])
        assert result.name == "square"


class TestScore:
    def test_zero_distance_scores_one(self):
        assert score_for_distance(0.0, 250) == 1.0

    def test_half_diagonal_scores_zero(self):
        assert score_for_distance(0.5 * math.sqrt(2) * 250, 250) == pytest.approx(0.0)


def horizontal_line(name="a_line"):
    return Stroke.from_points(name, [(x, 100) for x in range(0, 200, 10)])


class TestDegenerateTemplates:
    def test_zero_height_normalizes_without_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            line = horizontal_line().normalized()
            d = make_square().normalized().distance_at_best_angle(line)
        assert math.isnan(d)

    def test_nan_template_first_is_skipped(self):
        line = horizontal_line().normalized()
        square = make_square().normalized()
        query = make_square(x0=200, y0=150, side=50, step=2.5).normalized()
        result = query.recognize([line, square])
        assert result.name == "square"
        assert result.score > 0.9

    def test_only_nan_templates_falls_back_to_first(self):
        query = make_square().normalized()
        result = query.recognize([horizontal_line("one").normalized(), horizontal_line("two").normalized()])
        assert result.name == "one"
        assert math.isnan(result.score)


class TestAngleTolerance:
    @pytest.mark.parametrize("tolerance", [0.0, -0.1])
    def test_non_positive_tolerance_rejected(self, tolerance):
        q = make_square().normalized()
        with pytest.raises(ValueError):
            q.distance_at_best_angle(q, angle_tolerance=tolerance)
