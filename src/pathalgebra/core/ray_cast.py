"""Ray-casting queries against a path graph.

A ray is a pair of points; it starts at the first and runs through the
second without end. ray_collisions reports every place where the ray
crosses an edge of the graph, with crossings at vertices resolved so that
each real crossing of a closed path is reported exactly once.
"""

import logging
import math
from dataclasses import dataclass

from pathalgebra.config.settings import GeometryConfig
from pathalgebra.core.curves import Curve, curve_intersects_ray, normal_at, point_at, tangent_at
from pathalgebra.domain.coord import Coord
from pathalgebra.domain.graph import EdgeRef, GraphPath

logger = logging.getLogger(__name__)

Ray = tuple[Coord, Coord]

# Largest parameter distance from an end point still counted as a hit at that end
_END_T = 1e-6

# Sine of the angle under which a crossing counts as tangential
_TANGENT_SINE = 1e-7


@dataclass(frozen=True, slots=True)
class RayCollision:
    """A place where a ray crosses an edge.

    Attributes:
        edge: The edge that was crossed
        curve_t: Curve parameter of the crossing on the edge
        ray_t: Ray parameter (0 at the ray start, 1 at the second ray point)
        location: Position of the crossing
        crossing_sign: Sign of the dot product of the ray direction with
            the edge normal at the crossing (+1 or -1)
        is_intersection: True if the crossing is at the start of an edge
            whose start point has more than one outgoing edge
    """

    edge: EdgeRef
    curve_t: float
    ray_t: float
    location: Coord
    crossing_sign: int
    is_intersection: bool = False


class _RayFrame:
    """Signed distances from the line through a ray."""

    def __init__(self, ray: Ray, tolerance: float) -> None:
        self.start, end = ray
        self.direction = end - self.start
        self.length_squared = self.direction.dot(self.direction)
        length = math.sqrt(self.length_squared)
        self.normal = Coord(-self.direction.y / length, self.direction.x / length)
        self.tolerance = tolerance

    def offset(self, point: Coord) -> float:
        return self.normal.dot(point - self.start)

    def side(self, point: Coord) -> int:
        offset = self.offset(point)
        if abs(offset) <= self.tolerance:
            return 0
        return 1 if offset > 0.0 else -1

    def ray_t(self, point: Coord) -> float:
        return (point - self.start).dot(self.direction) / self.length_squared

    def is_ahead(self, point: Coord) -> bool:
        return (point - self.start).dot(self.direction) >= 0.0

    def is_collinear(self, curve: Curve) -> bool:
        return all(self.side(point) == 0 for point in curve)


def _first_side(frame: _RayFrame, points: tuple[Coord, ...]) -> int:
    for point in points:
        side = frame.side(point)
        if side != 0:
            return side
    return 0


def _is_tangential(frame: _RayFrame, curve: Curve, t: float) -> bool:
    """Check if a ray only touches a curve at t without crossing it."""
    tangent = tangent_at(curve, t)
    length = tangent.length()
    if length == 0.0:
        return False

    sine = abs(tangent.cross(frame.direction)) / (length * math.sqrt(frame.length_squared))
    if sine > _TANGENT_SINE:
        return False

    before = frame.offset(point_at(curve, max(t - 1e-3, 0.0)))
    after = frame.offset(point_at(curve, min(t + 1e-3, 1.0)))
    return before * after > 0.0


def _crossing_sign(frame: _RayFrame, curve: Curve, t: float) -> int:
    along = frame.direction.dot(normal_at(curve, t))
    if along != 0.0:
        return 1 if along > 0.0 else -1
    # Fall back to the side the curve leaves towards
    return -frame.side(point_at(curve, min(t + 1e-3, 1.0)))


def ray_collisions(
    graph: GraphPath,
    ray: Ray,
    config: GeometryConfig | None = None,
) -> list[RayCollision]:
    """Find every crossing between a ray and the edges of a graph.

    Crossings behind the ray start are discarded. Edges lying along the ray
    report nothing. Where the ray passes through a vertex, the path through
    that vertex is followed past any edges lying along the ray: a single
    crossing is reported at the start of the edge that leaves the ray if
    the path changes sides, and nothing if it only glances the ray.

    For a ray starting outside every closed path in the graph, the number
    of collisions returned is even.

    Args:
        graph: Graph to query
        ray: Start point of the ray and a second point it passes through
        config: Tolerances (defaults are used if omitted)

    Returns:
        Collisions ordered by ray parameter
    """
    config = config or GeometryConfig()
    if ray[0].is_near_to(ray[1], 0.0):
        return []

    frame = _RayFrame(ray, config.small_distance)

    vertices_on_ray = {
        point_idx
        for point_idx, point in enumerate(graph.points)
        if (point.forward_edges or point.connected_from)
        and frame.side(point.position) == 0
        and frame.is_ahead(point.position)
    }

    collisions: list[RayCollision] = []
    for ref in graph.all_edge_refs():
        view = graph.get_edge(ref)
        curve = view.curve()
        if frame.is_collinear(curve):
            continue

        for curve_t, ray_t, location in curve_intersects_ray(curve, *ray):
            if not frame.is_ahead(location):
                continue
            if view.start_idx in vertices_on_ray and (
                curve_t <= _END_T or location.is_near_to(view.start, config.small_distance)
            ):
                continue
            if view.end_idx in vertices_on_ray and (
                curve_t >= 1.0 - _END_T or location.is_near_to(view.end, config.small_distance)
            ):
                continue
            if _is_tangential(frame, curve, curve_t):
                continue

            collisions.append(
                RayCollision(
                    edge=ref,
                    curve_t=curve_t,
                    ray_t=ray_t,
                    location=location,
                    crossing_sign=_crossing_sign(frame, curve, curve_t),
                )
            )

    for point_idx in sorted(vertices_on_ray):
        collisions.extend(_vertex_collisions(graph, frame, point_idx))

    collisions.sort(key=lambda hit: (hit.ray_t, hit.edge.start_idx, hit.edge.edge_idx, hit.curve_t))
    return collisions


def _vertex_collisions(graph: GraphPath, frame: _RayFrame, point_idx: int) -> list[RayCollision]:
    """Crossings of the ray through a vertex that lies on it."""
    collisions = []
    max_steps = graph.num_edges()

    for incoming in graph.reverse_edges_for_point(point_idx):
        arriving = EdgeRef(incoming.start_idx, incoming.edge_idx)
        arriving_view = graph.get_edge(arriving)
        if frame.is_collinear(arriving_view.curve()):
            continue

        side_in = _first_side(frame, (arriving_view.cp2, arriving_view.cp1, arriving_view.start))

        leaving = graph.following_edge_ref(arriving)
        leaving_view = graph.get_edge(leaving)
        steps = 0
        while frame.is_collinear(leaving_view.curve()) and steps < max_steps:
            leaving = graph.following_edge_ref(leaving)
            leaving_view = graph.get_edge(leaving)
            steps += 1

        if steps >= max_steps:
            logger.debug("Path through point %d never leaves the ray", point_idx)
            continue

        side_out = _first_side(frame, (leaving_view.cp1, leaving_view.cp2, leaving_view.end))
        if side_in == side_out or side_in == 0 or side_out == 0:
            continue

        location = leaving_view.start
        if not frame.is_ahead(location):
            continue

        collisions.append(
            RayCollision(
                edge=leaving,
                curve_t=0.0,
                ray_t=frame.ray_t(location),
                location=location,
                crossing_sign=-side_out,
                is_intersection=len(graph.points[leaving.start_idx].forward_edges) > 1,
            )
        )

    return collisions
