"""Unit tests for ray casting against path graphs."""

import pytest

from pathalgebra.core.collision import self_collide
from pathalgebra.core.ray_cast import ray_collisions
from pathalgebra.domain import Coord, GraphPath, PathBuilder, PathLabel


def square_graph() -> GraphPath:
    path = PathBuilder.rectangle(0, 0, 4, 4)
    return GraphPath.from_path(path, PathLabel.for_path(0, path))


class TestRayCollisions:
    """Tests for ray_collisions."""

    def test_ray_through_square(self) -> None:
        """Test a ray crosses both sides of a square in order."""
        hits = ray_collisions(square_graph(), (Coord(-1, 2), Coord(5, 2)))

        assert len(hits) == 2
        assert hits[0].location.is_near_to(Coord(0, 2), 1e-9)
        assert hits[1].location.is_near_to(Coord(4, 2), 1e-9)
        assert hits[0].ray_t < hits[1].ray_t
        assert hits[0].crossing_sign == -hits[1].crossing_sign

    def test_hits_behind_start_are_ignored(self) -> None:
        """Test a ray starting inside only sees what is ahead."""
        hits = ray_collisions(square_graph(), (Coord(2, 2), Coord(5, 2)))
        assert len(hits) == 1
        assert hits[0].location.is_near_to(Coord(4, 2), 1e-9)

    def test_ray_missing_graph(self) -> None:
        """Test a ray that passes by."""
        assert ray_collisions(square_graph(), (Coord(-1, 10), Coord(5, 10))) == []

    def test_degenerate_ray(self) -> None:
        """Test a ray with no direction finds nothing."""
        assert ray_collisions(square_graph(), (Coord(1, 1), Coord(1, 1))) == []

    def test_ray_through_corners(self) -> None:
        """Test crossings at vertices are reported once each."""
        hits = ray_collisions(square_graph(), (Coord(-1, -1), Coord(5, 5)))

        assert len(hits) == 2
        assert hits[0].location == Coord(0, 0)
        assert hits[1].location == Coord(4, 4)
        assert hits[0].curve_t == 0.0
        assert sum(hit.crossing_sign for hit in hits) == 0

    def test_ray_along_edge(self) -> None:
        """Test a ray running along an edge only grazes the square."""
        hits = ray_collisions(square_graph(), (Coord(-1, 0), Coord(5, 0)))
        assert hits == []

    def test_ray_touching_corner(self) -> None:
        """Test a ray touching a single corner does not cross."""
        hits = ray_collisions(square_graph(), (Coord(-1, 9), Coord(9, -1)))
        assert hits == []

    def test_tangent_to_curve(self) -> None:
        """Test a ray touching the top of an arch is not a crossing."""
        path = PathBuilder().move_to(0, 0).curve_to((0, 10), (10, 10), (10, 0)).build().closed()
        graph = GraphPath.from_path(path, PathLabel.for_path(0, path))
        hits = ray_collisions(graph, (Coord(-1, 7.5), Coord(20, 7.5)))
        assert hits == []

    def test_even_count_for_figure_eight(self) -> None:
        """Test a ray through a self-crossing path after collision."""
        path = PathBuilder.polygon([(0, 0), (4, 4), (4, 0), (0, 4)])
        graph = GraphPath.from_path(path, PathLabel.for_path(0, path))
        self_collide(graph, 0.01)

        for y in (0.5, 1.0, 2.0, 3.0):
            hits = ray_collisions(graph, (Coord(-1, y), Coord(5, y)))
            assert len(hits) % 2 == 0

    @pytest.mark.parametrize("y", [1.0, 2.0, 3.0])
    def test_crossing_through_intersection_point(self, y: float) -> None:
        """Test collisions at a shared point carry the intersection flag."""
        path = PathBuilder.polygon([(0, 0), (4, 4), (4, 0), (0, 4)])
        graph = GraphPath.from_path(path, PathLabel.for_path(0, path))
        self_collide(graph, 0.01)

        hits = ray_collisions(graph, (Coord(-1, y), Coord(5, y)))
        on_point = [hit for hit in hits if hit.location.is_near_to(Coord(2, 2), 1e-6)]
        if y == 2.0:
            assert on_point
            assert all(hit.is_intersection for hit in on_point)
        else:
            assert not on_point
