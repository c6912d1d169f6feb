"""Unit tests for winding-number edge classification and gap healing."""

import pytest

from pathalgebra.config import GeometryConfig
from pathalgebra.core.arithmetic import intersect_predicate, subtract_predicate, union_predicate
from pathalgebra.core.classify import (
    _group_coincident,
    classification_ray,
    edge_has_gap,
    edge_kinds_summary,
    heal_exterior_gaps,
    set_edge_kind_connected,
    set_edge_kinds_by_ray_casting,
)
from pathalgebra.core.collision import collide
from pathalgebra.core.ray_cast import ray_collisions
from pathalgebra.domain import (
    Coord,
    EdgeKind,
    EdgeRef,
    GraphEdge,
    GraphPath,
    GraphPoint,
    PathBuilder,
    PathLabel,
)
from pathalgebra.exceptions import ConsistencyError


def rect_graph(x1: float, y1: float, x2: float, y2: float, path_number: int = 0) -> GraphPath:
    path = PathBuilder.rectangle(x1, y1, x2, y2)
    return GraphPath.from_path(path, PathLabel.for_path(path_number, path))


def overlapping_squares() -> GraphPath:
    return collide(rect_graph(1, 1, 5, 5, 0), rect_graph(4, 4, 9, 9, 1), 0.1)


def open_edge_graph() -> GraphPath:
    """A single edge that does not close into a path."""
    path = PathBuilder.rectangle(0, 0, 4, 4)
    label = PathLabel.for_path(0, path)
    start, end = Coord(0, 0), Coord(4, 0)
    graph = GraphPath(
        [
            GraphPoint(
                position=start,
                forward_edges=[
                    GraphEdge(
                        cp1=start.lerp(end, 1.0 / 3.0),
                        cp2=start.lerp(end, 2.0 / 3.0),
                        end_idx=1,
                        label=label,
                    )
                ],
            ),
            GraphPoint(position=end),
        ]
    )
    graph.recalculate_reverse_connections()
    return graph


class TestSetEdgeKindConnected:
    """Tests for classifying unbranched chains of edges."""

    def test_whole_loop(self) -> None:
        """Test an unbranched loop is classified at once."""
        graph = rect_graph(0, 0, 4, 4)
        set_edge_kind_connected(graph, EdgeRef(0, 0), EdgeKind.INTERIOR)
        assert graph.kind_counts()[EdgeKind.INTERIOR] == 4

    def test_stops_at_branch_points(self) -> None:
        """Test the chain stops where paths cross."""
        graph = overlapping_squares()
        set_edge_kind_connected(graph, EdgeRef(0, 0), EdgeKind.EXTERIOR)
        assert graph.kind_counts()[EdgeKind.EXTERIOR] == 4

    def test_reversed_reference(self) -> None:
        """Test the direction of the reference is ignored."""
        graph = rect_graph(0, 0, 4, 4)
        set_edge_kind_connected(graph, EdgeRef(2, 0, True), EdgeKind.EXTERIOR)
        assert graph.kind_counts()[EdgeKind.EXTERIOR] == 4


class TestRayCasting:
    """Tests for set_edge_kinds_by_ray_casting."""

    def test_single_square(self) -> None:
        """Test every edge of a lone square is exterior."""
        graph = rect_graph(0, 0, 4, 4)
        rays = set_edge_kinds_by_ray_casting(graph, union_predicate())
        assert rays == 1
        assert graph.kind_counts()[EdgeKind.EXTERIOR] == 4

    def test_clockwise_square(self) -> None:
        """Test path direction does not change the outcome."""
        path = PathBuilder.rectangle(0, 0, 4, 4).reversed()
        graph = GraphPath.from_path(path, PathLabel.for_path(0, path))
        set_edge_kinds_by_ray_casting(graph, union_predicate(), strict=True)
        assert graph.kind_counts()[EdgeKind.EXTERIOR] == 4

    @pytest.mark.parametrize(
        ("predicate", "exterior", "interior"),
        [
            (union_predicate(), 8, 4),
            (intersect_predicate(), 4, 8),
            (subtract_predicate(), 6, 6),
        ],
    )
    def test_overlapping_squares(self, predicate, exterior: int, interior: int) -> None:
        """Test edge counts for each boolean operation."""
        graph = overlapping_squares()
        set_edge_kinds_by_ray_casting(graph, predicate, strict=True)

        counts = edge_kinds_summary(graph)
        assert counts["EXTERIOR"] == exterior
        assert counts["INTERIOR"] == interior
        assert counts["UNCATEGORISED"] == 0
        assert counts["VISITED"] == 0

    def test_classification_is_idempotent(self) -> None:
        """Test a classified graph casts no more rays."""
        graph = overlapping_squares()
        set_edge_kinds_by_ray_casting(graph, union_predicate())
        before = graph.kind_counts()

        assert set_edge_kinds_by_ray_casting(graph, union_predicate()) == 0
        assert graph.kind_counts() == before

    def test_union_edges_outside_other_square(self) -> None:
        """Test the exterior edges of a union are the ones outside the other square."""
        graph = overlapping_squares()
        set_edge_kinds_by_ray_casting(graph, union_predicate())

        for edge in graph.all_edges(EdgeKind.EXTERIOR):
            middle = edge.start.lerp(edge.end, 0.5)
            in_first = 1 < middle.x < 5 and 1 < middle.y < 5
            in_second = 4 < middle.x < 9 and 4 < middle.y < 9
            assert not (in_first and in_second)

    def test_open_edge_strict(self) -> None:
        """Test an unbalanced ray is an error in strict mode."""
        with pytest.raises(ConsistencyError, match="winding"):
            set_edge_kinds_by_ray_casting(open_edge_graph(), union_predicate(), strict=True)

    def test_open_edge_repaired(self) -> None:
        """Test an unbalanced ray is tolerated when not strict."""
        graph = open_edge_graph()
        assert set_edge_kinds_by_ray_casting(graph, union_predicate()) == 1
        assert graph.edge_kind(EdgeRef(0, 0)) == EdgeKind.EXTERIOR

    def test_contradicting_crossing_strict(self) -> None:
        """Test a ray that leaves the shape across an interior edge is an error."""
        graph = rect_graph(0, 0, 4, 4)
        graph.set_edge_kind(EdgeRef(2, 0), EdgeKind.INTERIOR)

        with pytest.raises(ConsistencyError, match="INTERIOR"):
            set_edge_kinds_by_ray_casting(graph, union_predicate(), strict=True)

    def test_contradicting_crossing_repaired(self) -> None:
        """Test an interior edge the ray changes sides across becomes exterior."""
        graph = rect_graph(0, 0, 4, 4)
        graph.set_edge_kind(EdgeRef(2, 0), EdgeKind.INTERIOR)

        set_edge_kinds_by_ray_casting(graph, union_predicate())
        assert graph.kind_counts()[EdgeKind.EXTERIOR] == 4


class TestCoincidentGroups:
    """Tests for grouping the crossings of overlapping edges."""

    def test_shared_edge_is_one_group(self) -> None:
        """Test the two copies of an edge shared by touching squares are crossed together."""
        graph = collide(rect_graph(0, 0, 4, 4, 0), rect_graph(4, 0, 8, 4, 1), 0.01)
        collisions = ray_collisions(graph, (Coord(-1, 2), Coord(10, 2)))

        groups = _group_coincident(graph, collisions, 0.01)
        assert [len(group) for group in groups] == [1, 2, 1]

    def test_hits_beside_a_crossing_are_separate(self) -> None:
        """Test edges crossed a few thousandths apart next to an intersection are not grouped."""
        graph = overlapping_squares()
        collisions = ray_collisions(graph, (Coord(-1, -1.996), Coord(10, 9.004)))

        assert len(collisions) == 4
        assert collisions[1].location.is_near_to(collisions[2].location, 0.01)
        groups = _group_coincident(graph, collisions, 0.01)
        assert len(groups) == 4


class TestClassificationRay:
    """Tests for choosing the ray that classifies an edge."""

    def test_ray_starts_outside_graph(self) -> None:
        """Test the ray starts outside the bounds and ends on the edge."""
        graph = rect_graph(0, 0, 4, 4)
        start, end = classification_ray(graph, EdgeRef(0, 0))

        assert not (0 <= start.x <= 4 and 0 <= start.y <= 4)
        assert end.y == pytest.approx(0.0)
        assert 0 < end.x < 4

    def test_ray_avoids_vertices(self) -> None:
        """Test the probe moves off a vertex lying on the midpoint normal."""
        triangle = PathBuilder.polygon([(1, 5), (3, 5), (2, 6)])
        graph = rect_graph(0, 0, 4, 4).merge(
            GraphPath.from_path(triangle, PathLabel.for_path(1, triangle))
        )
        config = GeometryConfig()
        _, end = classification_ray(graph, EdgeRef(0, 0), config)

        assert end.x == pytest.approx(1.6)
        assert all(
            abs(end.x - point.position.x) >= config.vertex_clearance
            for point in graph.points
            if point.forward_edges
        )


class TestHealing:
    """Tests for bridging gaps in the exterior edges."""

    def test_edge_has_gap(self) -> None:
        """Test an exterior edge into a point with no exterior continuation."""
        graph = rect_graph(0, 0, 4, 4)
        for ref in (EdgeRef(0, 0), EdgeRef(1, 0), EdgeRef(2, 0)):
            graph.set_edge_kind(ref, EdgeKind.EXTERIOR)
        graph.set_edge_kind(EdgeRef(3, 0), EdgeKind.INTERIOR)

        assert edge_has_gap(graph, EdgeRef(2, 0))
        assert not edge_has_gap(graph, EdgeRef(1, 0))
        assert not edge_has_gap(graph, EdgeRef(3, 0))

    def test_heal_single_gap(self) -> None:
        """Test a missing edge is bridged."""
        graph = rect_graph(0, 0, 4, 4)
        for ref in (EdgeRef(0, 0), EdgeRef(1, 0), EdgeRef(2, 0)):
            graph.set_edge_kind(ref, EdgeKind.EXTERIOR)
        graph.set_edge_kind(EdgeRef(3, 0), EdgeKind.INTERIOR)

        assert heal_exterior_gaps(graph)
        assert graph.kind_counts()[EdgeKind.EXTERIOR] == 4

    def test_nothing_to_heal(self) -> None:
        """Test a closed exterior loop is left alone."""
        graph = rect_graph(0, 0, 4, 4)
        set_edge_kinds_by_ray_casting(graph, union_predicate())
        assert heal_exterior_gaps(graph)
        assert graph.kind_counts()[EdgeKind.EXTERIOR] == 4

    def test_gap_too_long(self) -> None:
        """Test a gap longer than the search depth is reported."""
        path = PathBuilder.polygon([(0, 0), (1, 0), (2, 0), (3, 0), (4, 0), (4, 4), (0, 4)])
        graph = GraphPath.from_path(path, PathLabel.for_path(0, path))
        for ref in graph.all_edge_refs():
            graph.set_edge_kind(ref, EdgeKind.INTERIOR)
        graph.set_edge_kind(EdgeRef(0, 0), EdgeKind.EXTERIOR)

        assert not heal_exterior_gaps(graph, max_depth=3)
