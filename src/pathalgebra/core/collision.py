"""Collision detection and subdivision of path graphs.

Colliding two graphs finds every place where an edge of one crosses an edge
of the other, splits both edges there and joins them through a shared
point. Afterwards the graph is planar: edges only meet at points.

Each pass works in four steps:
1. Find intersecting edge pairs (bounding-box sweep, then curve intersection)
2. Create or reuse a point for every collision
3. Split every affected edge at its sorted collision parameters, keeping
   the following-edge links continuous
4. Merge points closer than the accuracy and drop the zero-length loops
   that merging leaves behind

Passes repeat until nothing new is found or the pass limit is reached.
"""

import logging
import math
from dataclasses import dataclass

from pathalgebra.config.settings import GeometryConfig
from pathalgebra.core.curves import (
    Curve,
    bounding_box,
    curve_intersects_curve,
    find_self_intersection,
    point_at,
    subdivide,
)
from pathalgebra.domain.coord import Coord
from pathalgebra.domain.graph import EdgeRef, EdgeView, GraphEdge, GraphPath, GraphPoint
from pathalgebra.exceptions import ToleranceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Collision:
    """Where two edges meet.

    Attributes:
        edge_1: First edge of the collision
        edge_2: Second edge of the collision
        edge_1_t: Curve parameter on the first edge
        edge_2_t: Curve parameter on the second edge
    """

    edge_1: EdgeRef
    edge_2: EdgeRef
    edge_1_t: float
    edge_2_t: float


@dataclass(frozen=True, slots=True)
class _SweepEdge:
    ref: EdgeRef
    curve: Curve
    bounds: tuple[float, float, float, float]


def collide(
    graph: GraphPath,
    other: GraphPath,
    accuracy: float,
    config: GeometryConfig | None = None,
) -> GraphPath:
    """Merge two graphs and split their edges wherever they cross.

    Intersections within either input graph are left alone; use
    self_collide for those.

    Args:
        graph: First graph
        other: Graph to collide against the first
        accuracy: Distance within which curves are considered to meet
        config: Tolerances (defaults are used if omitted)

    Returns:
        New graph containing both inputs, subdivided at every crossing

    Raises:
        ToleranceError: If accuracy is not a positive finite number
    """
    _check_accuracy("collide", accuracy)

    offset = graph.num_points()
    merged = graph.merge(other)
    detect_collisions(merged, range(0, offset), range(offset, merged.num_points()), accuracy, config)
    return merged


def self_collide(
    graph: GraphPath,
    accuracy: float,
    config: GeometryConfig | None = None,
) -> bool:
    """Split a graph's edges wherever they cross each other or themselves.

    Args:
        graph: Graph to update in place
        accuracy: Distance within which curves are considered to meet
        config: Tolerances (defaults are used if omitted)

    Returns:
        True if the graph was changed
    """
    _check_accuracy("self_collide", accuracy)

    everything = range(0, graph.num_points())
    return detect_collisions(graph, everything, everything, accuracy, config)


def detect_collisions(
    graph: GraphPath,
    collide_from: range,
    collide_to: range,
    accuracy: float,
    config: GeometryConfig | None = None,
) -> bool:
    """Find and apply collisions between the edges of two ranges of points.

    Equal ranges collide every edge in the range with every other edge and
    with itself. Different ranges only collide edges of one against edges
    of the other.

    Later passes tell the two sides apart by their path numbers, so they
    only run when the ranges carry different path numbers.

    Args:
        graph: Graph to update in place
        collide_from: Point indices of the first set of edges
        collide_to: Point indices of the second set of edges
        accuracy: Distance within which curves are considered to meet
        config: Tolerances (defaults are used if omitted)

    Returns:
        True if any edge was split or any points were merged
    """
    _check_accuracy("detect_collisions", accuracy)
    config = config or GeometryConfig()

    is_self = collide_from == collide_to
    from_refs = _edge_refs_in(graph, collide_from)
    to_refs = from_refs if is_self else _edge_refs_in(graph, collide_to)

    from_numbers = {graph.edge(ref).label.path_number for ref in from_refs}
    to_numbers = {graph.edge(ref).label.path_number for ref in to_refs}
    can_repeat = is_self or not (from_numbers & to_numbers)

    changed = False
    for pass_number in range(config.max_collision_passes):
        collisions = _find_collisions(graph, from_refs, to_refs, is_self, accuracy, config)
        logger.debug("Collision pass %d found %d collisions", pass_number + 1, len(collisions))

        if collisions:
            _apply_collisions(graph, collisions)
            changed = True

        graph.recalculate_reverse_connections()
        if combine_overlapping_points(graph, accuracy):
            changed = True
        remove_all_very_short_edges(graph, accuracy)
        graph.check_following_edge_consistency()

        if not collisions or not can_repeat:
            break

        all_refs = list(graph.all_edge_refs())
        if is_self:
            from_refs = to_refs = all_refs
        else:
            from_refs = [r for r in all_refs if graph.edge(r).label.path_number in from_numbers]
            to_refs = [r for r in all_refs if graph.edge(r).label.path_number in to_numbers]
    else:
        logger.debug("Collisions did not settle after %d passes", config.max_collision_passes)

    return changed


def _check_accuracy(operation: str, accuracy: float) -> None:
    if not (accuracy > 0.0 and math.isfinite(accuracy)):
        raise ToleranceError(operation, accuracy)


def _edge_refs_in(graph: GraphPath, points: range) -> list[EdgeRef]:
    return [ref for point_idx in points for ref in graph.edges_for_point(point_idx)]


def _sweep_edges(graph: GraphPath, refs: list[EdgeRef]) -> list[_SweepEdge]:
    """Edges with their curves and bounds, ordered by minimum x."""
    edges = []
    for ref in refs:
        curve = graph.edge_curve(ref)
        edges.append(_SweepEdge(ref, curve, bounding_box(curve)))
    edges.sort(key=lambda edge: edge.bounds[0])
    return edges


def _candidate_pairs(
    source: list[_SweepEdge],
    target: list[_SweepEdge],
    is_self: bool,
    slack: float,
) -> list[tuple[_SweepEdge, _SweepEdge]]:
    """Pairs of edges whose bounding boxes overlap."""
    pairs = []
    for src_idx, src in enumerate(source):
        start = src_idx + 1 if is_self else 0
        for tgt in target[start:]:
            if tgt.bounds[0] > src.bounds[2] + slack:
                if is_self:
                    break
                continue
            if (
                tgt.bounds[2] + slack < src.bounds[0]
                or tgt.bounds[1] > src.bounds[3] + slack
                or tgt.bounds[3] + slack < src.bounds[1]
            ):
                continue
            pairs.append((src, tgt))
    return pairs


def _find_collisions(
    graph: GraphPath,
    from_refs: list[EdgeRef],
    to_refs: list[EdgeRef],
    is_self: bool,
    accuracy: float,
    config: GeometryConfig,
) -> list[Collision]:
    source = _sweep_edges(graph, from_refs)
    target = source if is_self else _sweep_edges(graph, to_refs)

    collisions = []
    for src, tgt in _candidate_pairs(source, target, is_self, accuracy):
        hits = curve_intersects_curve(src.curve, tgt.curve, accuracy, config.small_distance)
        if not hits:
            continue

        hits = _remove_and_round_close_collisions(hits, src.curve, tgt.curve, config)
        for src_t, tgt_t in hits:
            # A hit at the end of an edge shows up again at the start of the following edge
            if src_t >= 1.0 or tgt_t >= 1.0 or (src_t <= 0.0 and tgt_t <= 0.0):
                continue
            collisions.append(Collision(src.ref, tgt.ref, src_t, tgt_t))

    if is_self:
        for edge in source:
            loop = find_self_intersection(edge.curve, accuracy)
            if loop is not None:
                collisions.append(Collision(edge.ref, edge.ref, loop[0], loop[1]))

    return collisions


def _remove_and_round_close_collisions(
    hits: list[tuple[float, float]],
    src: Curve,
    tgt: Curve,
    config: GeometryConfig,
) -> list[tuple[float, float]]:
    """Drop pairs of near-identical hits and snap hits near the ends to 0 or 1.

    Two hits at almost the same place usually come from a curve touching or
    grazing another one, and dividing there would only leave tiny edges.
    They are removed in pairs, so a genuine crossing always keeps one hit.
    """
    hits = list(hits)
    positions = [point_at(src, t) for t, _ in hits]

    idx = 0
    while idx + 1 < len(hits):
        (t1, u1), (t2, u2) = hits[idx], hits[idx + 1]
        if (
            positions[idx].is_near_to(positions[idx + 1], config.close_distance)
            and abs(t1 - t2) < config.small_t_distance
            and abs(u1 - u2) < config.small_t_distance
        ):
            del hits[idx : idx + 2]
            del positions[idx : idx + 2]
        else:
            idx += 1

    snapped = []
    for (src_t, tgt_t), position in zip(hits, positions, strict=True):
        src_t = _snap_t(src_t, position, src, config)
        tgt_t = _snap_t(tgt_t, position, tgt, config)
        snapped.append((src_t, tgt_t))
    return snapped


def _snap_t(t: float, position: Coord, curve: Curve, config: GeometryConfig) -> float:
    if 0.0 < t < config.small_t_distance and position.is_near_to(curve[0], config.close_distance):
        return 0.0
    if 1.0 - config.small_t_distance < t < 1.0 and position.is_near_to(
        curve[3], config.close_distance
    ):
        return 1.0
    return t


def _apply_collisions(graph: GraphPath, collisions: list[Collision]) -> None:
    points_by_collision = _create_collision_points(graph, collisions)
    by_edge = _organize_collisions_by_edge(points_by_collision)

    for (point_idx, edge_idx), splits in sorted(by_edge.items()):
        _split_edge(graph, point_idx, edge_idx, splits)


def _create_collision_points(
    graph: GraphPath,
    collisions: list[Collision],
) -> list[tuple[Collision, int]]:
    """Pick the point every collision passes through, creating points where needed.

    A collision at the start of an edge uses that edge's start point, and
    one within accuracy of an end point of either edge reuses that end
    point, so no near-zero-length edges are created.
    """
    result = []
    for collision in collisions:
        edge_1 = graph.get_edge(collision.edge_1)
        edge_2 = graph.get_edge(collision.edge_2)
        t1, t2 = collision.edge_1_t, collision.edge_2_t

        if t1 <= 0.0:
            point_idx = edge_1.start_idx
        elif t2 <= 0.0:
            point_idx = edge_2.start_idx
        else:
            position = point_at(edge_1.curve(), t1)
            point_idx = -1
            for candidate_idx, candidate, owner in (
                (edge_1.start_idx, edge_1.start, 1),
                (edge_1.end_idx, edge_1.end, 1),
                (edge_2.start_idx, edge_2.start, 2),
                (edge_2.end_idx, edge_2.end, 2),
            ):
                if position.distance_to(candidate) < _reuse_distance(edge_1, edge_2):
                    point_idx = candidate_idx
                    if owner == 1:
                        t1 = 0.0 if candidate_idx == edge_1.start_idx else 1.0
                    else:
                        t2 = 0.0 if candidate_idx == edge_2.start_idx else 1.0
                    break

            if point_idx < 0:
                point_idx = graph.num_points()
                graph.points.append(GraphPoint(position=position))

        result.append((Collision(collision.edge_1, collision.edge_2, t1, t2), point_idx))
    return result


def _reuse_distance(edge_1: EdgeView, edge_2: EdgeView) -> float:
    """Tolerance for snapping a collision onto an existing end point.

    Kept well below the length of either edge so a short edge is never
    collapsed onto itself.
    """
    shortest = min(edge_1.start.distance_to(edge_1.end), edge_2.start.distance_to(edge_2.end))
    return min(1e-6 + shortest * 1e-4, 1e-3)


def _organize_collisions_by_edge(
    collisions: list[tuple[Collision, int]],
) -> dict[tuple[int, int], list[tuple[float, int]]]:
    """Group collision parameters and points by the edge they split."""
    by_edge: dict[tuple[int, int], list[tuple[float, int]]] = {}
    for collision, point_idx in collisions:
        for ref, t in ((collision.edge_1, collision.edge_1_t), (collision.edge_2, collision.edge_2_t)):
            splits = by_edge.setdefault((ref.start_idx, ref.edge_idx), [])
            if (t, point_idx) not in splits:
                splits.append((t, point_idx))
    return by_edge


def _split_edge(
    graph: GraphPath,
    point_idx: int,
    edge_idx: int,
    splits: list[tuple[float, int]],
) -> None:
    """Divide one edge at a list of (t, point index) collisions.

    The first piece replaces the original edge so links pointing at it stay
    valid. Later pieces are appended to the collision points, and the final
    piece inherits the original end point and following edge.
    """
    splits = sorted(
        (t, idx) for t, idx in splits if 0.0 < t < 1.0 and idx != point_idx
    )
    if not splits:
        return

    original = graph.points[point_idx].forward_edges[edge_idx]
    final_end_idx = original.end_idx
    final_following_idx = original.following_edge_idx
    kind, label = original.kind, original.label

    remaining = graph.edge_curve(EdgeRef(point_idx, edge_idx))
    remaining_t = 1.0
    previous: tuple[int, int] | None = None
    last_point_idx = point_idx

    for t, end_idx in splits:
        local_t = (t - (1.0 - remaining_t)) / remaining_t
        piece, remaining = subdivide(remaining, min(max(local_t, 0.0), 1.0))

        if previous is None:
            # The original edge becomes the first piece
            original.cp1, original.cp2 = piece[1], piece[2]
            original.end_idx = end_idx
            previous = (point_idx, edge_idx)
        else:
            new_edge_idx = len(graph.points[last_point_idx].forward_edges)
            graph.points[previous[0]].forward_edges[previous[1]].following_edge_idx = new_edge_idx
            graph.points[last_point_idx].forward_edges.append(
                GraphEdge(cp1=piece[1], cp2=piece[2], end_idx=end_idx, label=label, kind=kind)
            )
            previous = (last_point_idx, new_edge_idx)

        remaining_t = 1.0 - t
        last_point_idx = end_idx

    final_edge_idx = len(graph.points[last_point_idx].forward_edges)
    graph.points[previous[0]].forward_edges[previous[1]].following_edge_idx = final_edge_idx
    graph.points[last_point_idx].forward_edges.append(
        GraphEdge(
            cp1=remaining[1],
            cp2=remaining[2],
            end_idx=final_end_idx,
            label=label,
            kind=kind,
            following_edge_idx=final_following_idx,
        )
    )


def _nearby_points(graph: GraphPath, accuracy: float) -> list[tuple[int, int]]:
    """Pairs of distinct points closer than accuracy, found with an x sweep."""
    order = sorted(range(graph.num_points()), key=lambda idx: graph.points[idx].position.x)
    pairs = []
    for i, idx1 in enumerate(order):
        p1 = graph.points[idx1].position
        for idx2 in order[i + 1 :]:
            p2 = graph.points[idx2].position
            if p2.x - p1.x >= accuracy:
                break
            if (p2.x - p1.x) ** 2 + (p2.y - p1.y) ** 2 < accuracy * accuracy:
                pairs.append((idx1, idx2))
    return pairs


def combine_overlapping_points(graph: GraphPath, accuracy: float) -> bool:
    """Merge points that are within accuracy of each other.

    The end point of an edge that nearly touches its start is first moved on
    top of the start. Each nearby pair is then moved to its midpoint and
    remapped onto the lower index; the higher point's edges move across,
    and links into it are shifted past the edges already at the target.
    A point that has already moved only merges again if it is still close,
    so a chain of points is not averaged into one.

    Args:
        graph: Graph to update in place
        accuracy: Distance under which points are merged

    Returns:
        True if any points were merged
    """
    for point_idx, point in enumerate(graph.points):
        for edge in point.forward_edges:
            if edge.end_idx != point_idx and graph.points[edge.end_idx].position.is_near_to(
                point.position, accuracy
            ):
                graph.points[edge.end_idx].position = point.position

    nearby = _nearby_points(graph, accuracy)
    if not nearby:
        return False

    targets = list(range(graph.num_points()))
    moved: dict[int, Coord] = {}

    for orig_1, orig_2 in nearby:
        target_1, target_2 = targets[orig_1], targets[orig_2]
        pos_1 = moved.get(orig_1, graph.points[orig_1].position)
        pos_2 = moved.get(orig_2, graph.points[orig_2].position)
        already_moved = orig_1 in moved or orig_2 in moved

        if not already_moved or pos_1.is_near_to(pos_2, accuracy):
            position = Coord((pos_1.x + pos_2.x) / 2.0, (pos_1.y + pos_2.y) / 2.0)
            target = min(target_1, target_2)
            targets[orig_1] = targets[orig_2] = target
            moved[orig_1] = moved[orig_2] = position

    def resolve(idx: int) -> int:
        while targets[idx] != idx:
            idx = targets[idx]
        return idx

    edge_offset = [0] * graph.num_points()
    for original_idx in sorted(moved):
        graph.points[original_idx].position = moved[original_idx]
        target = resolve(original_idx)
        targets[original_idx] = target
        if target == original_idx:
            continue

        edge_offset[original_idx] = len(graph.points[target].forward_edges)
        graph.points[target].forward_edges.extend(graph.points[original_idx].forward_edges)
        graph.points[original_idx].forward_edges = []

    for point in graph.points:
        for edge in point.forward_edges:
            new_end = targets[edge.end_idx]
            if new_end != edge.end_idx:
                edge.following_edge_idx += edge_offset[edge.end_idx]
                edge.end_idx = new_end

    graph.recalculate_reverse_connections()
    logger.debug("Combined %d pairs of overlapping points", len(nearby))
    return True


def _edge_is_very_short(graph: GraphPath, ref: EdgeRef, max_distance: float) -> bool:
    edge = graph.edge(ref)
    if edge.end_idx != ref.start_idx:
        return False
    position = graph.points[ref.start_idx].position
    return edge.cp1.is_near_to(position, max_distance) and edge.cp2.is_near_to(
        position, max_distance
    )


def remove_edge(graph: GraphPath, ref: EdgeRef) -> None:
    """Remove an edge, linking the edge before it to the edge after it.

    Args:
        graph: Graph to update in place
        ref: Forward reference to the edge to remove
    """
    point = graph.points[ref.start_idx]
    edge = point.forward_edges[ref.edge_idx]

    previous = graph.preceding_edge_ref(ref)
    if previous is not None and previous != ref:
        previous_edge = graph.edge(previous)
        previous_edge.end_idx = edge.end_idx
        previous_edge.following_edge_idx = edge.following_edge_idx

    del point.forward_edges[ref.edge_idx]

    for other_point in graph.points:
        for other in other_point.forward_edges:
            if other.end_idx == ref.start_idx and other.following_edge_idx > ref.edge_idx:
                other.following_edge_idx -= 1

    graph.recalculate_reverse_connections()


def remove_all_very_short_edges(graph: GraphPath, max_distance: float) -> int:
    """Remove zero-length loop edges left behind by merging points.

    An edge is very short when it starts and ends at the same point and both
    of its control points are within max_distance of that point.

    Returns:
        Number of edges removed
    """
    removed = 0
    for point_idx in range(graph.num_points()):
        edge_idx = 0
        while edge_idx < len(graph.points[point_idx].forward_edges):
            ref = EdgeRef(point_idx, edge_idx)
            if _edge_is_very_short(graph, ref, max_distance):
                remove_edge(graph, ref)
                removed += 1
            else:
                edge_idx += 1
    return removed
