"""Winding-number classification of graph edges.

Every edge is decided to be on the boundary of the result (EXTERIOR) or
not (INTERIOR) by casting a ray across it and counting, per source path,
the signed crossings met on the way. A predicate over those counts decides
whether a location is inside the result; an edge where the predicate
changes value is a boundary edge.
"""

import logging
from collections.abc import Callable, Sequence

from pathalgebra.config.settings import GeometryConfig
from pathalgebra.core.curves import curve_intersects_ray, normal_at, point_at, tangent_at
from pathalgebra.core.ray_cast import Ray, RayCollision, ray_collisions
from pathalgebra.domain.coord import Coord
from pathalgebra.domain.graph import EdgeKind, EdgeRef, GraphPath
from pathalgebra.domain.path import PathDirection
from pathalgebra.exceptions import ConsistencyError

logger = logging.getLogger(__name__)

InsidePredicate = Callable[[Sequence[int]], bool]

# Edges that lead nowhere are bridged by at most this many edges
MAX_HEAL_DEPTH = 3

# Curve parameters tried, in order, for the point a classification ray passes through
PROBE_PARAMETERS = (0.5, 0.4, 0.6, 0.3, 0.7, 0.2, 0.8)

# Smallest sine between a probe ray and any curve it crosses
_MIN_CROSSING_SINE = 1e-3

_UNDECIDED = (EdgeKind.UNCATEGORISED, EdgeKind.VISITED)


def set_edge_kind_connected(graph: GraphPath, ref: EdgeRef, kind: EdgeKind) -> None:
    """Set the kind of an edge and of the unbranched chain of edges around it.

    The chain continues forwards through end points with a single outgoing
    edge and backwards through start points with a single incoming edge,
    and stops at any edge that is already classified.

    Args:
        graph: Graph to update
        ref: Edge to classify (direction is ignored)
        kind: Kind to set
    """
    start = EdgeRef(ref.start_idx, ref.edge_idx)
    graph.set_edge_kind(start, kind)

    current = start
    while True:
        end_idx = graph.edge(current).end_idx
        if len(graph.points[end_idx].forward_edges) != 1:
            break
        current = EdgeRef(end_idx, 0)
        if graph.edge_kind(current) not in _UNDECIDED:
            break
        graph.set_edge_kind(current, kind)

    current = start
    while True:
        point = graph.points[current.start_idx]
        if len(point.forward_edges) != 1:
            break
        incoming = graph.reverse_edges_for_point(current.start_idx)
        if len(incoming) != 1:
            break
        current = EdgeRef(incoming[0].start_idx, incoming[0].edge_idx)
        if graph.edge_kind(current) not in _UNDECIDED:
            break
        graph.set_edge_kind(current, kind)


def edge_kinds_summary(graph: GraphPath) -> dict[str, int]:
    """Number of edges of each kind, keyed by kind name."""
    return {kind.name: count for kind, count in graph.kind_counts().items()}


def _ray_through(
    point: Coord,
    normal: Coord,
    bounds: tuple[float, float, float, float],
) -> Ray:
    """Ray along a normal through a point, starting outside the given bounds."""
    min_x, min_y, max_x, max_y = bounds
    reach = ((max_x - min_x) ** 2 + (max_y - min_y) ** 2) ** 0.5 + 1.0
    return (point - normal * reach, point)


def _probe_is_clear(graph: GraphPath, ray: Ray, config: GeometryConfig) -> bool:
    """Check that a ray passes clear of every vertex and crosses every curve cleanly."""
    start, end = ray
    direction = (end - start).normalized()
    side_normal = Coord(-direction.y, direction.x)

    for point in graph.points:
        if not point.forward_edges:
            continue
        if abs(side_normal.dot(point.position - start)) < config.vertex_clearance:
            return False

    for ref in graph.all_edge_refs():
        curve = graph.edge_curve(ref)
        for t, _, _ in curve_intersects_ray(curve, start, end):
            tangent = tangent_at(curve, t).normalized()
            if abs(tangent.cross(direction)) < _MIN_CROSSING_SINE:
                return False
    return True


def classification_ray(graph: GraphPath, ref: EdgeRef, config: GeometryConfig | None = None) -> Ray:
    """The ray used to classify an edge.

    The ray crosses the edge along its normal at the first probe parameter
    whose ray avoids every vertex and tangent; the midpoint is used if none
    does. The ray starts outside the bounds of the graph.

    Args:
        graph: Graph containing the edge
        ref: Edge to classify
        config: Tolerances (defaults are used if omitted)

    Returns:
        (start, point on edge) pair
    """
    config = config or GeometryConfig()
    curve = graph.edge_curve(ref)
    bounds = graph.bounding_box() or (0.0, 0.0, 0.0, 0.0)

    def ray_at(t: float) -> Ray:
        normal = normal_at(curve, t).normalized()
        return _ray_through(point_at(curve, t), normal, bounds)

    for t in PROBE_PARAMETERS:
        ray = ray_at(t)
        if _probe_is_clear(graph, ray, config):
            return ray

    logger.debug("No clear probe for edge %s, using its midpoint", ref)
    return ray_at(0.5)


def _edges_coincide(
    graph: GraphPath,
    first: RayCollision,
    second: RayCollision,
    distance: float,
) -> bool:
    """Check if two crossed edges lie on top of each other where the ray crosses them."""
    if first.edge[:2] == second.edge[:2]:
        return True

    view1, view2 = graph.get_edge(first.edge), graph.get_edge(second.edge)
    if view1.start.is_near_to(view2.start, distance) and view1.end.is_near_to(view2.end, distance):
        return True
    if view1.start.is_near_to(view2.end, distance) and view1.end.is_near_to(view2.start, distance):
        return True

    tangent1 = tangent_at(view1.curve(), first.curve_t).normalized()
    tangent2 = tangent_at(view2.curve(), second.curve_t).normalized()
    return abs(tangent1.cross(tangent2)) < _MIN_CROSSING_SINE


def _group_coincident(
    graph: GraphPath,
    collisions: list[RayCollision],
    distance: float,
) -> list[list[RayCollision]]:
    """Split ordered collisions into groups of crossings of overlapping edges.

    A collision joins the group before it only if it is at the same place
    and its edge coincides with every edge already in the group. Edges that
    merely pass close to each other (near a vertex where they cross) are
    crossed separately.
    """
    groups: list[list[RayCollision]] = []
    for collision in collisions:
        if groups and all(
            member.location.is_near_to(collision.location, distance)
            and _edges_coincide(graph, member, collision, distance)
            for member in groups[-1]
        ):
            groups[-1].append(collision)
        else:
            groups.append([collision])
    return groups


def _crossing_delta(graph: GraphPath, collision: RayCollision) -> tuple[int, int]:
    label = graph.edge(collision.edge).label
    sign = collision.crossing_sign
    if label.direction == PathDirection.ANTICLOCKWISE:
        sign = -sign
    return label.path_number, sign


def _classify_along_ray(
    graph: GraphPath,
    collisions: list[RayCollision],
    is_inside: InsidePredicate,
    num_paths: int,
    config: GeometryConfig,
    strict: bool = False,
) -> list[int]:
    """Classify the edges crossed by one ray and return the final counts.

    Crossings of edges that are already classified are checked instead:
    a place where the inside state changes must have an EXTERIOR edge.

    Raises:
        ConsistencyError: In strict mode, if a crossing contradicts an
            earlier classification
    """
    counts = [0] * num_paths

    for group in _group_coincident(graph, collisions, config.close_distance):
        inside_before_group = is_inside(counts)
        deltas = [_crossing_delta(graph, collision) for collision in group]
        after = list(counts)
        for path_number, sign in deltas:
            after[path_number] += sign
        group_changes = is_inside(after) != inside_before_group

        exterior_found = False
        checked: list[EdgeRef] = []
        classified_here = False
        for collision, (path_number, sign) in zip(group, deltas, strict=True):
            was_inside = is_inside(counts)
            counts[path_number] += sign
            flips = is_inside(counts) != was_inside

            if collision.is_intersection:
                continue

            kind = graph.edge_kind(collision.edge)
            if kind not in _UNDECIDED:
                exterior_found = exterior_found or kind == EdgeKind.EXTERIOR
                checked.append(collision.edge)
                continue

            if group_changes and flips and not exterior_found:
                kind = EdgeKind.EXTERIOR
                exterior_found = True
            else:
                kind = EdgeKind.INTERIOR
            set_edge_kind_connected(graph, collision.edge, kind)
            classified_here = True

        if group_changes and checked and not (exterior_found or classified_here):
            details = (
                f"edge {checked[0].start_idx}:{checked[0].edge_idx} is "
                f"{graph.edge_kind(checked[0]).name} but a ray changes from "
                f"{'inside' if inside_before_group else 'outside'} across it"
            )
            if strict:
                raise ConsistencyError("winding", details)
            logger.warning("Contradictory classification, %s", details)
            set_edge_kind_connected(graph, checked[0], EdgeKind.EXTERIOR)

    return counts


def set_edge_kinds_by_ray_casting(
    graph: GraphPath,
    is_inside: InsidePredicate,
    config: GeometryConfig | None = None,
    strict: bool = False,
) -> int:
    """Classify every uncategorised edge as INTERIOR or EXTERIOR.

    For each uncategorised edge a ray is cast across it from outside the
    graph. Every crossing on the ray adds +1 or -1 to the counter of the
    path that was crossed (the sign is normalized by path direction), and
    is_inside is evaluated on the counters before and after it. An edge
    where the result changes is EXTERIOR; any other edge crossed is
    INTERIOR. Overlapping edges crossed at the same place are classified
    together so that only one of them can become EXTERIOR. Crossings of
    edges classified by an earlier ray are checked against that decision.

    Args:
        graph: Graph to classify in place
        is_inside: Predicate over the per-path crossing counts
        config: Tolerances (defaults are used if omitted)
        strict: Raise instead of repairing when a ray is inconsistent

    Returns:
        Number of rays cast

    Raises:
        ConsistencyError: In strict mode, if a ray's counters do not return
            to zero, the edge it was cast for is left unclassified, or a
            crossing contradicts an earlier classification
    """
    config = config or GeometryConfig()
    num_paths = max(graph.max_path_number() + 1, 2)
    rays_cast = 0

    for point_idx in range(graph.num_points()):
        for edge_idx in range(len(graph.points[point_idx].forward_edges)):
            target = EdgeRef(point_idx, edge_idx)
            if graph.edge_kind(target) != EdgeKind.UNCATEGORISED:
                continue

            graph.set_edge_kind(target, EdgeKind.VISITED)
            ray = classification_ray(graph, target, config)
            collisions = ray_collisions(graph, ray, config)
            counts = _classify_along_ray(graph, collisions, is_inside, num_paths, config, strict)
            rays_cast += 1

            problems = []
            if any(counts):
                problems.append(f"crossing counts {counts} did not return to zero")
            if graph.edge_kind(target) == EdgeKind.VISITED:
                problems.append("the edge was not crossed")
            if not problems:
                continue

            details = f"ray for edge {point_idx}:{edge_idx}: " + "; ".join(problems)
            if strict:
                raise ConsistencyError("winding", details)

            logger.warning("Inconsistent classification %s", details)
            if graph.edge_kind(target) == EdgeKind.VISITED:
                graph.set_edge_kind(target, EdgeKind.EXTERIOR)

    logger.debug("Cast %d classification rays", rays_cast)
    return rays_cast


def edge_has_gap(graph: GraphPath, ref: EdgeRef) -> bool:
    """Check if an exterior edge leads to a point with no other exterior edge.

    Edges back to the point the edge started from do not count.
    """
    if graph.edge_kind(ref) != EdgeKind.EXTERIOR:
        return False

    start_idx = graph.edge_start_idx(ref)
    end_idx = graph.edge_end_idx(ref)
    for other in graph.edges_for_point(end_idx) + graph.reverse_edges_for_point(end_idx):
        if graph.edge_end_idx(other) == start_idx:
            continue
        if graph.edge_kind(other) == EdgeKind.EXTERIOR:
            return False
    return True


def _heal_edge_with_gap(graph: GraphPath, ref: EdgeRef, max_depth: int) -> bool:
    """Bridge a gap after an edge with a short run of forward edges.

    A breadth-first search from the end of the edge looks for another
    exterior edge that also ends in a gap. The edges along the way become
    exterior.
    """
    end_point_idx = graph.edge(ref).end_idx
    preceding: dict[int, EdgeRef] = {}
    to_process = [(ref.start_idx, end_point_idx)]
    target_idx = None

    for _ in range(max_depth):
        next_to_process = []
        for from_idx, point_idx in to_process:
            for candidate in graph.edges_for_point(point_idx):
                candidate_end = graph.edge_end_idx(candidate)
                if candidate_end == from_idx or candidate_end in preceding:
                    continue

                is_exterior = graph.edge_kind(candidate) == EdgeKind.EXTERIOR
                if is_exterior and not edge_has_gap(graph, candidate.reversed()):
                    continue

                preceding[candidate_end] = candidate
                if is_exterior:
                    target_idx = candidate_end
                    break
                next_to_process.append((point_idx, candidate_end))

            if target_idx is not None:
                break

        if target_idx is not None:
            break
        to_process = next_to_process

    if target_idx is None:
        return False

    current_idx = target_idx
    while current_idx != end_point_idx:
        previous = preceding[current_idx]
        graph.set_edge_kind(previous, EdgeKind.EXTERIOR)
        current_idx = previous.start_idx
    return True


def heal_exterior_gaps(graph: GraphPath, max_depth: int = MAX_HEAL_DEPTH) -> bool:
    """Reconnect exterior edges that end without a continuation.

    Rounding or a missed intersection can leave the exterior edges of a
    result with a gap. Each gap is bridged by marking up to max_depth
    edges as exterior, when such a bridge exists.

    Args:
        graph: Classified graph to update in place
        max_depth: Longest bridge to search for

    Returns:
        True if every gap was healed
    """
    all_healed = True
    for ref in list(graph.all_edge_refs()):
        if edge_has_gap(graph, ref) and not _heal_edge_with_gap(graph, ref, max_depth):
            all_healed = False

    if not all_healed:
        logger.debug("Some exterior gaps could not be healed")
    return all_healed
