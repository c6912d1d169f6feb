"""Arena graph of labeled cubic edges.

A GraphPath stores every vertex of one or more paths in a flat list. Each
vertex owns its outgoing edges, and every cross-reference is an index into
these lists, so the graph can be split, merged and rewired in place without
any object cycles.

Key types:
- EdgeKind: Classification state of an edge
- GraphEdge: A directed cubic segment owned by its start point
- GraphPoint: A vertex with its outgoing edges
- EdgeRef: Index-based reference to an edge, optionally reversed
- EdgeView: Read-only snapshot of an edge as seen through an EdgeRef
- GraphPath: The graph itself
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import NamedTuple

from pathalgebra.domain.coord import Coord
from pathalgebra.domain.path import BezierPath, PathLabel
from pathalgebra.exceptions import ConsistencyError

CLOSE_DISTANCE = 0.01


class EdgeKind(Enum):
    """Classification state of an edge.

    Edges start UNCATEGORISED, become VISITED while a classification ray is
    cast from them, and end as INTERIOR or EXTERIOR of the result.
    """

    UNCATEGORISED = auto()
    VISITED = auto()
    INTERIOR = auto()
    EXTERIOR = auto()


@dataclass
class GraphEdge:
    """A directed cubic Bezier segment.

    The start point is the GraphPoint that owns this edge.

    Attributes:
        cp1: First control point
        cp2: Second control point
        end_idx: Index of the end point
        label: Source path of this edge
        kind: Classification state
        following_edge_idx: Index, within the end point's edges, of the edge
            that continues the same sub-path
    """

    cp1: Coord
    cp2: Coord
    end_idx: int
    label: PathLabel
    kind: EdgeKind = EdgeKind.UNCATEGORISED
    following_edge_idx: int = 0


@dataclass
class GraphPoint:
    """A vertex of the graph.

    Attributes:
        position: Location of the vertex
        forward_edges: Edges starting at this vertex, in order
        connected_from: Indices of the points with an edge ending here
    """

    position: Coord
    forward_edges: list[GraphEdge] = field(default_factory=list)
    connected_from: list[int] = field(default_factory=list)


class EdgeRef(NamedTuple):
    """Reference to an edge by the index of its start point and its position there.

    A reversed reference describes the same edge walked from end to start.
    """

    start_idx: int
    edge_idx: int
    reverse: bool = False

    def reversed(self) -> "EdgeRef":
        """Reference to the same edge in the other direction."""
        return EdgeRef(self.start_idx, self.edge_idx, not self.reverse)


class EdgeView(NamedTuple):
    """Snapshot of an edge as seen through an EdgeRef."""

    ref: EdgeRef
    start_idx: int
    end_idx: int
    start: Coord
    cp1: Coord
    cp2: Coord
    end: Coord
    kind: EdgeKind
    label: PathLabel

    def curve(self) -> tuple[Coord, Coord, Coord, Coord]:
        """The four control points of this edge."""
        return (self.start, self.cp1, self.cp2, self.end)


class GraphPath:
    """A graph of cubic edges built from closed paths.

    Points are never removed once created. Merging nearby points can leave a
    point with no edges at all (an orphaned point); such points are harmless
    and are skipped when the result is extracted.
    """

    def __init__(self, points: list[GraphPoint] | None = None) -> None:
        self.points: list[GraphPoint] = points if points is not None else []

    def __repr__(self) -> str:
        return f"GraphPath(points={self.num_points()}, edges={self.num_edges()})"

    @classmethod
    def from_path(
        cls,
        path: BezierPath,
        label: PathLabel,
        close_distance: float = CLOSE_DISTANCE,
    ) -> "GraphPath":
        """Build a graph containing a single closed path.

        Consecutive vertices closer than close_distance (with their control
        points) are collapsed. If the path does not return to its start point
        it is closed with a straight edge.

        Args:
            path: Path to convert
            label: Label given to every edge
            close_distance: Distance under which two vertices are the same

        Returns:
            Graph with one point per distinct vertex and one edge per segment
        """
        segments: list[tuple[Coord, Coord, Coord]] = []
        last = path.start
        for cp1, cp2, end in path.points():
            if (
                end.is_near_to(last, close_distance)
                and cp1.is_near_to(last, close_distance)
                and cp2.is_near_to(last, close_distance)
            ):
                continue
            segments.append((cp1, cp2, end))
            last = end

        if not segments:
            return cls()

        closes = segments[-1][2].is_near_to(path.start, close_distance)
        if not closes:
            end = segments[-1][2]
            segments.append(
                (end.lerp(path.start, 1.0 / 3.0), end.lerp(path.start, 2.0 / 3.0), path.start)
            )

        points = [GraphPoint(position=path.start)]
        points.extend(GraphPoint(position=end) for _, _, end in segments[:-1])

        for point_idx, (cp1, cp2, _) in enumerate(segments):
            end_idx = (point_idx + 1) % len(points)
            points[point_idx].forward_edges.append(
                GraphEdge(cp1=cp1, cp2=cp2, end_idx=end_idx, label=label)
            )

        graph = cls(points)
        graph.recalculate_reverse_connections()
        return graph

    @classmethod
    def from_merged_paths(
        cls,
        paths: Iterable[tuple[BezierPath, PathLabel]],
        close_distance: float = CLOSE_DISTANCE,
    ) -> "GraphPath":
        """Build a graph from several labeled paths without colliding them."""
        graph = cls()
        for path, label in paths:
            graph = graph.merge(cls.from_path(path, label, close_distance))
        return graph

    def merge(self, other: "GraphPath") -> "GraphPath":
        """Concatenate another graph onto this one.

        Indices in the other graph are shifted past this graph's points. No
        intersections are detected. Neither input is modified.

        Args:
            other: Graph to append

        Returns:
            New graph containing the points of both
        """
        offset = len(self.points)
        points = [_copy_point(point, 0) for point in self.points]
        points.extend(_copy_point(point, offset) for point in other.points)
        return GraphPath(points)

    def copy(self) -> "GraphPath":
        """Deep copy of this graph."""
        return GraphPath([_copy_point(point, 0) for point in self.points])

    def num_points(self) -> int:
        """Number of points, including orphaned ones."""
        return len(self.points)

    def num_edges(self) -> int:
        """Number of edges in the graph."""
        return sum(len(point.forward_edges) for point in self.points)

    def point_position(self, point_idx: int) -> Coord:
        """Location of a point."""
        return self.points[point_idx].position

    def edges_for_point(self, point_idx: int) -> list[EdgeRef]:
        """References to the edges leaving a point."""
        return [
            EdgeRef(point_idx, edge_idx)
            for edge_idx in range(len(self.points[point_idx].forward_edges))
        ]

    def reverse_edges_for_point(self, point_idx: int) -> list[EdgeRef]:
        """Reversed references to the edges arriving at a point."""
        refs = []
        for from_idx in self.points[point_idx].connected_from:
            for edge_idx, edge in enumerate(self.points[from_idx].forward_edges):
                if edge.end_idx == point_idx:
                    refs.append(EdgeRef(from_idx, edge_idx, True))
        return refs

    def all_edge_refs(self, kind: EdgeKind | None = None) -> Iterator[EdgeRef]:
        """Iterate over references to every edge, optionally of one kind."""
        for point_idx, point in enumerate(self.points):
            for edge_idx, edge in enumerate(point.forward_edges):
                if kind is None or edge.kind == kind:
                    yield EdgeRef(point_idx, edge_idx)

    def all_edges(self, kind: EdgeKind | None = None) -> Iterator[EdgeView]:
        """Iterate over every edge, optionally only those of one kind."""
        for ref in self.all_edge_refs(kind):
            yield self.get_edge(ref)

    def edge(self, ref: EdgeRef) -> GraphEdge:
        """The stored edge a reference points at (direction is ignored)."""
        return self.points[ref.start_idx].forward_edges[ref.edge_idx]

    def edge_start_idx(self, ref: EdgeRef) -> int:
        """Index of the point a reference starts at."""
        return self.edge(ref).end_idx if ref.reverse else ref.start_idx

    def edge_end_idx(self, ref: EdgeRef) -> int:
        """Index of the point a reference ends at."""
        return ref.start_idx if ref.reverse else self.edge(ref).end_idx

    def get_edge(self, ref: EdgeRef) -> EdgeView:
        """Snapshot of an edge, in the direction of the reference."""
        edge = self.edge(ref)
        start_idx = ref.start_idx
        end_idx = edge.end_idx
        cp1, cp2 = edge.cp1, edge.cp2
        if ref.reverse:
            start_idx, end_idx = end_idx, start_idx
            cp1, cp2 = cp2, cp1

        return EdgeView(
            ref=ref,
            start_idx=start_idx,
            end_idx=end_idx,
            start=self.points[start_idx].position,
            cp1=cp1,
            cp2=cp2,
            end=self.points[end_idx].position,
            kind=edge.kind,
            label=edge.label,
        )

    def edge_curve(self, ref: EdgeRef) -> tuple[Coord, Coord, Coord, Coord]:
        """Control points of an edge, in the direction of the reference."""
        return self.get_edge(ref).curve()

    def edge_kind(self, ref: EdgeRef) -> EdgeKind:
        """Classification state of an edge."""
        return self.edge(ref).kind

    def set_edge_kind(self, ref: EdgeRef, kind: EdgeKind) -> None:
        """Set the classification state of a single edge."""
        self.edge(ref).kind = kind

    def reset_edge_kinds(self) -> None:
        """Mark every edge as uncategorised again."""
        for point in self.points:
            for edge in point.forward_edges:
                edge.kind = EdgeKind.UNCATEGORISED

    def kind_counts(self) -> dict[EdgeKind, int]:
        """Number of edges in each classification state."""
        counts = {kind: 0 for kind in EdgeKind}
        for point in self.points:
            for edge in point.forward_edges:
                counts[edge.kind] += 1
        return counts

    def following_edge_ref(self, ref: EdgeRef) -> EdgeRef:
        """The edge that continues the sub-path after a forward edge."""
        edge = self.edge(ref)
        return EdgeRef(edge.end_idx, edge.following_edge_idx)

    def preceding_edge_ref(self, ref: EdgeRef) -> EdgeRef | None:
        """The edge whose following edge is the given forward edge, if any."""
        point = self.points[ref.start_idx]
        for from_idx in point.connected_from:
            for edge_idx, edge in enumerate(self.points[from_idx].forward_edges):
                if edge.end_idx == ref.start_idx and edge.following_edge_idx == ref.edge_idx:
                    return EdgeRef(from_idx, edge_idx)
        return None

    def orphaned_points(self) -> list[int]:
        """Indices of points that no edge starts or ends at."""
        return [
            point_idx
            for point_idx, point in enumerate(self.points)
            if not point.forward_edges and not point.connected_from
        ]

    def recalculate_reverse_connections(self) -> None:
        """Rebuild every point's connected_from list from the forward edges."""
        for point in self.points:
            point.connected_from = []

        for point_idx, point in enumerate(self.points):
            for edge in point.forward_edges:
                self.points[edge.end_idx].connected_from.append(point_idx)

        for point in self.points:
            point.connected_from = sorted(set(point.connected_from))

    def round(self, accuracy: float) -> None:
        """Snap every position and control point to a grid of size accuracy."""
        for point in self.points:
            point.position = point.position.rounded(accuracy)
            for edge in point.forward_edges:
                edge.cp1 = edge.cp1.rounded(accuracy)
                edge.cp2 = edge.cp2.rounded(accuracy)

    def bounding_box(self) -> tuple[float, float, float, float] | None:
        """Bounds of every point and control point, or None for an empty graph."""
        coords = []
        for point in self.points:
            if not point.forward_edges and not point.connected_from:
                continue
            coords.append(point.position)
            for edge in point.forward_edges:
                coords.extend((edge.cp1, edge.cp2))

        if not coords:
            return None

        xs = [c.x for c in coords]
        ys = [c.y for c in coords]
        return (min(xs), min(ys), max(xs), max(ys))

    def max_path_number(self) -> int:
        """Highest path number on any edge, or -1 for a graph without edges."""
        return max(
            (edge.label.path_number for point in self.points for edge in point.forward_edges),
            default=-1,
        )

    def check_following_edge_consistency(self) -> None:
        """Verify that the following-edge links form a consistent permutation.

        Every edge must end at an existing point, name an existing edge at
        that point, and no two edges may name the same following edge.

        Raises:
            ConsistencyError: If any link is broken
        """
        used: set[tuple[int, int]] = set()

        for point_idx, point in enumerate(self.points):
            for edge_idx, edge in enumerate(point.forward_edges):
                if not 0 <= edge.end_idx < len(self.points):
                    raise ConsistencyError(
                        "following_edges",
                        f"edge {point_idx}:{edge_idx} ends at missing point {edge.end_idx}",
                    )

                end_edges = self.points[edge.end_idx].forward_edges
                if not 0 <= edge.following_edge_idx < len(end_edges):
                    raise ConsistencyError(
                        "following_edges",
                        f"edge {point_idx}:{edge_idx} follows missing edge "
                        f"{edge.end_idx}:{edge.following_edge_idx}",
                    )

                slot = (edge.end_idx, edge.following_edge_idx)
                if slot in used:
                    raise ConsistencyError(
                        "following_edges",
                        f"edge {edge.end_idx}:{edge.following_edge_idx} is followed from more than one edge",
                    )
                used.add(slot)


def _copy_point(point: GraphPoint, offset: int) -> GraphPoint:
    return GraphPoint(
        position=point.position,
        forward_edges=[
            replace(edge, end_idx=edge.end_idx + offset) for edge in point.forward_edges
        ],
        connected_from=[idx + offset for idx in point.connected_from],
    )
