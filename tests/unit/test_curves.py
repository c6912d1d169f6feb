"""Unit tests for cubic curve operations."""

import pytest

from pathalgebra.core.curves import (
    bounding_box,
    curve_intersects_curve,
    curve_intersects_ray,
    find_self_intersection,
    is_line_like,
    nearest_t,
    normal_at,
    point_at,
    subdivide,
    tangent_at,
)
from pathalgebra.domain import Coord


def line(x1: float, y1: float, x2: float, y2: float):
    start, end = Coord(x1, y1), Coord(x2, y2)
    return (start, start.lerp(end, 1.0 / 3.0), start.lerp(end, 2.0 / 3.0), end)


ARCH = (Coord(0, 0), Coord(0, 10), Coord(10, 10), Coord(10, 0))
LOOP = (Coord(0, 0), Coord(12, 12), Coord(-2, 12), Coord(10, 0))


class TestEvaluation:
    """Tests for point, tangent and normal evaluation."""

    def test_point_at_ends(self) -> None:
        """Test the curve passes through its end points."""
        assert point_at(ARCH, 0.0) == Coord(0, 0)
        assert point_at(ARCH, 1.0) == Coord(10, 0)

    def test_point_at_middle(self) -> None:
        """Test the midpoint of a symmetric arch."""
        middle = point_at(ARCH, 0.5)
        assert middle.x == pytest.approx(5.0)
        assert middle.y == pytest.approx(7.5)

    def test_tangent_and_normal(self) -> None:
        """Test the normal is perpendicular to the tangent."""
        tangent = tangent_at(ARCH, 0.3)
        normal = normal_at(ARCH, 0.3)
        assert tangent.dot(normal) == pytest.approx(0.0, abs=1e-9)

    def test_tangent_at_degenerate_end(self) -> None:
        """Test a control point on the end point still gives a direction."""
        curve = (Coord(0, 0), Coord(0, 0), Coord(10, 10), Coord(10, 0))
        tangent = tangent_at(curve, 0.0)
        assert tangent.length() > 0.0

    def test_bounding_box_is_tight(self) -> None:
        """Test bounds use the curve extrema, not the control points."""
        min_x, min_y, max_x, max_y = bounding_box(ARCH)
        assert (min_x, min_y, max_x) == (0.0, 0.0, 10.0)
        assert max_y == pytest.approx(7.5)


class TestSubdivision:
    """Tests for splitting curves."""

    def test_subdivide_shares_middle_point(self) -> None:
        """Test both halves meet at the split point."""
        first, second = subdivide(ARCH, 0.25)
        assert first[0] == ARCH[0]
        assert second[3] == ARCH[3]
        assert first[3] == second[0] == point_at(ARCH, 0.25)

    def test_is_line_like(self) -> None:
        """Test straight segments are recognised."""
        assert is_line_like(line(0, 0, 10, 0), 0.001)
        assert not is_line_like(ARCH, 0.001)


class TestIntersections:
    """Tests for curve/curve, curve/ray and self intersections."""

    def test_crossing_lines(self) -> None:
        """Test two crossing straight segments."""
        hits = curve_intersects_curve(line(0, 0, 10, 10), line(0, 10, 10, 0), 0.01)
        assert len(hits) == 1
        t1, t2 = hits[0]
        assert t1 == pytest.approx(0.5)
        assert t2 == pytest.approx(0.5)

    def test_disjoint_lines(self) -> None:
        """Test lines that do not meet."""
        assert curve_intersects_curve(line(0, 0, 10, 0), line(0, 5, 10, 5), 0.01) == []

    def test_line_through_arch(self) -> None:
        """Test a horizontal line crossing an arch twice."""
        hits = curve_intersects_curve(ARCH, line(-5, 3, 15, 3), 0.01)
        assert len(hits) == 2
        for t1, t2 in hits:
            assert point_at(ARCH, t1).is_near_to(point_at(line(-5, 3, 15, 3), t2), 0.01)

    def test_two_curves(self) -> None:
        """Test an arch against an upside down arch."""
        other = (Coord(0, 8), Coord(0, -2), Coord(10, -2), Coord(10, 8))
        hits = curve_intersects_curve(ARCH, other, 0.001)
        assert len(hits) == 2
        for t1, t2 in hits:
            assert point_at(ARCH, t1).is_near_to(point_at(other, t2), 0.01)

    def test_ray_through_arch(self) -> None:
        """Test a vertical ray through the top of an arch."""
        hits = curve_intersects_ray(ARCH, Coord(5, -10), Coord(5, 0))
        assert len(hits) == 1
        curve_t, _, position = hits[0]
        assert curve_t == pytest.approx(0.5)
        assert position.y == pytest.approx(7.5)

    def test_ray_along_line(self) -> None:
        """Test a curve lying along the ray reports nothing."""
        assert curve_intersects_ray(line(0, 0, 10, 0), Coord(-5, 0), Coord(20, 0)) == []

    def test_self_intersection(self) -> None:
        """Test a looping cubic crosses itself."""
        loop = find_self_intersection(LOOP, 0.01)
        assert loop is not None
        t1, t2 = loop
        assert 0.0 < t1 < t2 < 1.0
        assert t1 + t2 == pytest.approx(1.0)
        assert point_at(LOOP, t1).is_near_to(point_at(LOOP, t2), 0.01)

    def test_no_self_intersection(self) -> None:
        """Test a simple arch has no loop."""
        assert find_self_intersection(ARCH, 0.01) is None

    def test_nearest_t(self) -> None:
        """Test projecting a point onto a curve."""
        t = nearest_t(ARCH, Coord(5, 20))
        assert t == pytest.approx(0.5, abs=1e-6)
