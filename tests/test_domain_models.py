"""Tests for domain models to verify they work correctly."""

import pytest

from pathalgebra.domain import (
    BezierPath,
    Coord,
    EdgeKind,
    EdgeRef,
    GraphPath,
    PathBuilder,
    PathDirection,
    PathLabel,
)
from pathalgebra.exceptions import ConsistencyError, DegeneratePathError


def square_graph(x1: float = 0.0, y1: float = 0.0, x2: float = 4.0, y2: float = 4.0) -> GraphPath:
    path = PathBuilder.rectangle(x1, y1, x2, y2)
    return GraphPath.from_path(path, PathLabel.for_path(0, path))


class TestCoord:
    """Tests for Coord class."""

    def test_coord_arithmetic(self) -> None:
        """Test vector addition, subtraction and scaling."""
        a = Coord(1.0, 2.0)
        b = Coord(3.0, 5.0)
        assert a + b == Coord(4.0, 7.0)
        assert b - a == Coord(2.0, 3.0)
        assert a * 2.0 == Coord(2.0, 4.0)
        assert 2.0 * a == Coord(2.0, 4.0)
        assert -a == Coord(-1.0, -2.0)

    def test_dot_and_cross(self) -> None:
        """Test dot and cross products."""
        assert Coord(1.0, 0.0).dot(Coord(0.0, 1.0)) == 0.0
        assert Coord(1.0, 0.0).cross(Coord(0.0, 1.0)) == 1.0
        assert Coord(0.0, 1.0).cross(Coord(1.0, 0.0)) == -1.0

    def test_is_near_to(self) -> None:
        """Test the distance comparison is inclusive."""
        assert Coord(0.0, 0.0).is_near_to(Coord(0.0, 0.5), 0.5)
        assert not Coord(0.0, 0.0).is_near_to(Coord(0.0, 0.51), 0.5)

    def test_rounded(self) -> None:
        """Test snapping to a grid."""
        assert Coord(1.004, 2.996).rounded(0.01) == Coord(1.0, 3.0)
        assert Coord(0.26, -0.26).rounded(0.5) == Coord(0.5, -0.5)

    def test_normalized(self) -> None:
        """Test unit vectors and the zero vector."""
        assert Coord(3.0, 4.0).normalized() == Coord(0.6, 0.8)
        assert Coord(0.0, 0.0).normalized() == Coord(0.0, 0.0)

    def test_unpacks_as_pair(self) -> None:
        """Test coordinates unpack like fontTools points."""
        x, y = Coord(1.5, 2.5)
        assert (x, y) == (1.5, 2.5)

    def test_coord_serialization(self) -> None:
        """Test coordinate serialization and deserialization."""
        c1 = Coord(100.0, 200.0)
        assert Coord.from_dict(c1.to_dict()) == c1
        assert Coord.from_tuple(c1.to_tuple()) == c1

    def test_coord_immutable(self) -> None:
        """Test that coordinates are immutable."""
        c = Coord(1.0, 2.0)
        with pytest.raises(AttributeError):
            c.x = 3.0  # type: ignore


class TestBezierPath:
    """Tests for BezierPath class."""

    def test_rectangle_vertices(self) -> None:
        """Test rectangles are explicitly closed."""
        path = PathBuilder.rectangle(0, 0, 4, 4)
        assert path.vertices() == [
            Coord(0, 0),
            Coord(4, 0),
            Coord(4, 4),
            Coord(0, 4),
            Coord(0, 0),
        ]
        assert path.is_closed()

    def test_direction(self) -> None:
        """Test winding direction from signed area."""
        path = PathBuilder.rectangle(0, 0, 4, 4)
        assert path.signed_area() == pytest.approx(16.0)
        assert path.direction() == PathDirection.ANTICLOCKWISE
        assert path.reversed().direction() == PathDirection.CLOCKWISE

    def test_reversed(self) -> None:
        """Test reversing keeps the start point and visits vertices backwards."""
        path = PathBuilder.rectangle(0, 0, 4, 4)
        reversed_path = path.reversed()
        assert reversed_path.vertices() == [
            Coord(0, 0),
            Coord(0, 4),
            Coord(4, 4),
            Coord(4, 0),
            Coord(0, 0),
        ]
        assert reversed_path.reversed() == path

    def test_rotated(self) -> None:
        """Test starting the same outline at another vertex."""
        path = PathBuilder.rectangle(0, 0, 4, 4)
        rotated = path.rotated(1)
        assert rotated.start == Coord(4, 0)
        assert rotated.vertices()[-1] == Coord(4, 0)
        assert rotated.signed_area() == pytest.approx(path.signed_area())

    def test_closed_adds_line(self) -> None:
        """Test an open path gets a closing line."""
        path = PathBuilder().move_to(0, 0).line_to(4, 0).line_to(4, 4).build()
        assert not path.is_closed()
        closed = path.closed()
        assert closed.is_closed()
        assert len(closed.segments) == 3
        assert closed.closed() is closed

    def test_empty_path(self) -> None:
        """Test a path without segments."""
        path = PathBuilder().move_to(1, 1).build()
        assert path.is_empty()
        assert not path.is_closed()
        assert path.signed_area() == 0.0

    def test_bounding_box(self) -> None:
        """Test the control polygon bounds."""
        path = PathBuilder().move_to(0, 0).curve_to((0, 10), (10, 10), (10, 0)).build()
        assert path.bounding_box() == (0.0, 0.0, 10.0, 10.0)

    def test_builder_requires_move_to(self) -> None:
        """Test adding segments before move_to fails."""
        with pytest.raises(DegeneratePathError):
            PathBuilder().line_to(1, 1)
        with pytest.raises(DegeneratePathError):
            PathBuilder().build()

    def test_polygon(self) -> None:
        """Test polygons are closed back to the first point."""
        path = PathBuilder.polygon([(0, 0), (4, 0), (2, 3)])
        assert len(path.segments) == 3
        assert path.is_closed()

    def test_path_serialization(self) -> None:
        """Test path serialization and deserialization."""
        path = PathBuilder().move_to(0, 0).curve_to((1, 2), (3, 2), (4, 0)).build().closed()
        assert BezierPath.from_dict(path.to_dict()) == path

    def test_label_for_path(self) -> None:
        """Test labels carry the path number and direction."""
        path = PathBuilder.rectangle(0, 0, 4, 4).reversed()
        label = PathLabel.for_path(3, path)
        assert label == PathLabel(3, PathDirection.CLOCKWISE)


class TestGraphPath:
    """Tests for GraphPath class."""

    def test_from_path(self) -> None:
        """Test one point and one edge per distinct vertex."""
        graph = square_graph()
        assert graph.num_points() == 4
        assert graph.num_edges() == 4
        assert graph.points[0].connected_from == [3]
        assert graph.edge(EdgeRef(3, 0)).end_idx == 0
        graph.check_following_edge_consistency()

    def test_from_path_closes_open_path(self) -> None:
        """Test an open path gets a closing edge."""
        path = PathBuilder().move_to(0, 0).line_to(4, 0).line_to(4, 4).build()
        graph = GraphPath.from_path(path, PathLabel.for_path(0, path))
        assert graph.num_points() == 3
        assert graph.num_edges() == 3

    def test_from_path_collapses_close_vertices(self) -> None:
        """Test consecutive vertices within close_distance become one."""
        path = PathBuilder.polygon([(0, 0), (4, 0), (4, 0.001), (4, 4)])
        graph = GraphPath.from_path(path, PathLabel.for_path(0, path), close_distance=0.01)
        assert graph.num_points() == 3

    def test_from_empty_path(self) -> None:
        """Test an empty path gives an empty graph."""
        path = PathBuilder().move_to(0, 0).build()
        graph = GraphPath.from_path(path, PathLabel.for_path(0, path))
        assert graph.num_points() == 0
        assert graph.bounding_box() is None
        assert graph.max_path_number() == -1

    def test_merge_offsets_indices(self) -> None:
        """Test merging shifts the second graph's indices."""
        merged = square_graph().merge(square_graph(10, 10, 14, 14))
        assert merged.num_points() == 8
        assert merged.edge(EdgeRef(7, 0)).end_idx == 4
        assert merged.points[4].connected_from == [7]
        merged.check_following_edge_consistency()

    def test_merge_does_not_modify_inputs(self) -> None:
        """Test inputs are copied when merging."""
        graph = square_graph()
        merged = graph.merge(square_graph(10, 10, 14, 14))
        merged.set_edge_kind(EdgeRef(0, 0), EdgeKind.EXTERIOR)
        assert graph.edge_kind(EdgeRef(0, 0)) == EdgeKind.UNCATEGORISED

    def test_get_edge_reversed(self) -> None:
        """Test reversed references swap ends and control points."""
        graph = square_graph()
        forward = graph.get_edge(EdgeRef(0, 0))
        backward = graph.get_edge(EdgeRef(0, 0, True))
        assert (forward.start, forward.end) == (Coord(0, 0), Coord(4, 0))
        assert (backward.start, backward.end) == (Coord(4, 0), Coord(0, 0))
        assert backward.cp1 == forward.cp2
        assert backward.cp2 == forward.cp1
        assert graph.edge_start_idx(EdgeRef(0, 0, True)) == 1
        assert graph.edge_end_idx(EdgeRef(0, 0, True)) == 0

    def test_edges_for_point(self) -> None:
        """Test forward and reverse edges at a point."""
        graph = square_graph()
        assert graph.edges_for_point(1) == [EdgeRef(1, 0)]
        assert graph.reverse_edges_for_point(1) == [EdgeRef(0, 0, True)]

    def test_following_and_preceding(self) -> None:
        """Test following-edge links round a closed path."""
        graph = square_graph()
        assert graph.following_edge_ref(EdgeRef(3, 0)) == EdgeRef(0, 0)
        assert graph.preceding_edge_ref(EdgeRef(0, 0)) == EdgeRef(3, 0)

    def test_kind_counts_and_reset(self) -> None:
        """Test counting and resetting edge kinds."""
        graph = square_graph()
        graph.set_edge_kind(EdgeRef(0, 0), EdgeKind.EXTERIOR)
        graph.set_edge_kind(EdgeRef(1, 0), EdgeKind.INTERIOR)
        counts = graph.kind_counts()
        assert counts[EdgeKind.EXTERIOR] == 1
        assert counts[EdgeKind.INTERIOR] == 1
        assert counts[EdgeKind.UNCATEGORISED] == 2

        graph.reset_edge_kinds()
        assert graph.kind_counts()[EdgeKind.UNCATEGORISED] == 4

    def test_round(self) -> None:
        """Test rounding snaps positions and control points."""
        path = PathBuilder.polygon([(0.004, 0), (4, 0.003), (4, 4)])
        graph = GraphPath.from_path(path, PathLabel.for_path(0, path))
        graph.round(0.01)
        assert graph.point_position(0) == Coord(0.0, 0.0)
        assert graph.point_position(1) == Coord(4.0, 0.0)

    def test_bounding_box(self) -> None:
        """Test bounds skip orphaned points."""
        graph = square_graph(1, 2, 5, 6)
        assert graph.bounding_box() == (1.0, 2.0, 5.0, 6.0)

    def test_consistency_detects_broken_link(self) -> None:
        """Test a following edge pointing nowhere is reported."""
        graph = square_graph()
        graph.edge(EdgeRef(0, 0)).following_edge_idx = 5
        with pytest.raises(ConsistencyError, match="following_edges"):
            graph.check_following_edge_consistency()

    def test_consistency_detects_shared_following_edge(self) -> None:
        """Test two edges following the same edge is reported."""
        graph = square_graph()
        graph.edge(EdgeRef(2, 0)).end_idx = 0
        with pytest.raises(ConsistencyError):
            graph.check_following_edge_consistency()
