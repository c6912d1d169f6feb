"""Boundary extraction from a classified graph.

The EXTERIOR edges of a classified graph form the outline of the result.
They are gathered back into closed paths in two stages. Loops that can be
walked using only following-edge links are taken as they are. Whatever
remains is joined with a breadth-first search for the shortest loop back
to each start point.
"""

import logging

from pathalgebra.domain.coord import Coord
from pathalgebra.domain.graph import EdgeKind, EdgeRef, EdgeView, GraphPath
from pathalgebra.domain.path import BezierPath
from pathalgebra.exceptions import ConsistencyError

logger = logging.getLogger(__name__)

Segment = tuple[Coord, Coord, Coord]


def _forward(ref: EdgeRef) -> EdgeRef:
    return EdgeRef(ref.start_idx, ref.edge_idx)


def _following_loops(graph: GraphPath, used: set[EdgeRef]) -> list[BezierPath]:
    """Closed chains of exterior edges joined by their following-edge links."""
    paths = []
    for start_ref in graph.all_edge_refs(EdgeKind.EXTERIOR):
        if start_ref in used:
            continue

        chain = [start_ref]
        current = graph.following_edge_ref(start_ref)
        while current != start_ref:
            if current in used or graph.edge_kind(current) != EdgeKind.EXTERIOR or current in chain:
                chain = []
                break
            chain.append(current)
            current = graph.following_edge_ref(current)

        if not chain:
            continue

        used.update(chain)
        start = graph.point_position(start_ref.start_idx)
        segments = [graph.get_edge(ref) for ref in chain]
        paths.append(BezierPath(start, tuple((e.cp1, e.cp2, e.end) for e in segments)))
    return paths


def _has_single_exterior_edge(graph: GraphPath, point_idx: int, used: set[EdgeRef]) -> bool:
    edges = graph.edges_for_point(point_idx) + graph.reverse_edges_for_point(point_idx)
    exterior = [
        ref
        for ref in edges
        if graph.edge_kind(ref) == EdgeKind.EXTERIOR and _forward(ref) not in used
    ]
    return len(exterior) == 1


def _unused_exterior_edges(graph: GraphPath, point_idx: int, used: set[EdgeRef]) -> list[EdgeRef]:
    """Exterior edges touching a point, arriving edges (reversed) first."""
    edges = graph.reverse_edges_for_point(point_idx) + graph.edges_for_point(point_idx)
    return [
        ref
        for ref in edges
        if graph.edge_kind(ref) == EdgeKind.EXTERIOR and _forward(ref) not in used
    ]


def _find_loop(
    graph: GraphPath,
    first: EdgeRef,
    used: set[EdgeRef],
) -> dict[int, tuple[int, EdgeView]] | None:
    """Breadth-first search for a loop of exterior edges starting with a given edge.

    Edges are followed in either direction, so a loop whose edges do not
    all point the same way is still found. The search ends when it gets
    back to the point the first edge starts from.

    Returns:
        For each point reached, the point it was reached from and the edge
        taken (in the direction it was taken), or None if no loop returns
        to the start of the first edge
    """
    start_idx = graph.edge_start_idx(first)
    previous_point: dict[int, tuple[int, EdgeView]] = {
        graph.edge_end_idx(first): (start_idx, graph.get_edge(first))
    }
    to_check = [(first, graph.edge_end_idx(first))]

    while start_idx not in previous_point and to_check:
        next_to_check = []

        for arrived_by, current_idx in to_check:
            candidates = [
                ref
                for ref in graph.edges_for_point(current_idx)
                + graph.reverse_edges_for_point(current_idx)
                if _forward(ref) not in used and _forward(ref) != _forward(arrived_by)
            ]

            exterior = [ref for ref in candidates if graph.edge_kind(ref) == EdgeKind.EXTERIOR]
            if exterior:
                candidates = exterior
            else:
                # Bridge a gap through an edge into a point with one exterior edge
                candidates = [
                    ref
                    for ref in candidates
                    if _has_single_exterior_edge(graph, graph.edge_end_idx(ref), used)
                ]

            for ref in candidates:
                next_idx = graph.edge_end_idx(ref)
                if next_idx in previous_point:
                    continue
                previous_point[next_idx] = (current_idx, graph.get_edge(ref))
                next_to_check.append((ref, next_idx))

        to_check = next_to_check

    if start_idx not in previous_point:
        return None
    return previous_point


def _loop_path(
    graph: GraphPath,
    point_idx: int,
    previous_point: dict[int, tuple[int, EdgeView]],
    used: set[EdgeRef],
) -> BezierPath:
    """Unwind a loop found by _find_loop into a path, marking its edges used."""
    # Unwinding visits the loop backwards, so each edge is reversed again
    segments: list[Segment] = []
    current_idx = point_idx
    while True:
        last_idx, edge = previous_point[current_idx]
        segments.append((edge.cp2, edge.cp1, edge.start))
        used.add(_forward(edge.ref))
        current_idx = last_idx
        if current_idx == point_idx:
            break
    return BezierPath(graph.point_position(point_idx), tuple(segments))


def exterior_paths(graph: GraphPath, strict: bool = False) -> list[BezierPath]:
    """Collect the EXTERIOR edges of a classified graph into closed paths.

    Each edge is used by at most one path. Orphaned points are skipped.
    Edges are followed in whichever direction closes the loop, so a path
    can trace some of its edges backwards.

    Args:
        graph: Graph whose edges have been classified
        strict: Raise if any exterior edge is left out of every path

    Returns:
        Closed paths tracing the exterior edges

    Raises:
        ConsistencyError: In strict mode, if some exterior edges cannot be
            closed into a loop
    """
    used: set[EdgeRef] = set()
    paths = _following_loops(graph, used)
    orphans = set(graph.orphaned_points())

    for point_idx in range(graph.num_points()):
        if point_idx in orphans:
            continue

        while True:
            for first in _unused_exterior_edges(graph, point_idx, used):
                previous_point = _find_loop(graph, first, used)
                if previous_point is not None:
                    paths.append(_loop_path(graph, point_idx, previous_point, used))
                    break
            else:
                break

    unused = [ref for ref in graph.all_edge_refs(EdgeKind.EXTERIOR) if ref not in used]
    if unused:
        details = f"{len(unused)} exterior edges could not be closed into a path"
        if strict:
            raise ConsistencyError("extraction", details)
        logger.warning("Incomplete extraction: %s", details)

    logger.debug("Extracted %d exterior paths", len(paths))
    return paths
