"""Core algorithms for pathalgebra.

This module contains the planar-subdivision engine and the operations
built on it:

- Curve primitives (evaluation, bounds, intersections)
- Collision detection and edge subdivision
- Ray casting and winding-number classification
- Boundary extraction
- Boolean operators (add, subtract, intersect, cut)

Every operation works on a GraphPath owned by the caller; nothing is
cached between calls.

Key functions:
- collide / self_collide: Subdivide edges where paths cross
- ray_collisions: Crossings between a ray and a graph
- set_edge_kinds_by_ray_casting: Classify edges as interior or exterior
- exterior_paths: Turn exterior edges back into closed paths
- path_add / path_sub / path_intersect / path_cut: Boolean operators
"""

from pathalgebra.core.arithmetic import (
    CombineOperation,
    PathCombine,
    PathCut,
    PathIntersection,
    path_add,
    path_add_chain,
    path_combine,
    path_cut,
    path_full_intersect,
    path_intersect,
    path_remove_interior_points,
    path_remove_overlapped_points,
    path_sub,
)
from pathalgebra.core.classify import (
    MAX_HEAL_DEPTH,
    edge_kinds_summary,
    heal_exterior_gaps,
    set_edge_kind_connected,
    set_edge_kinds_by_ray_casting,
)
from pathalgebra.core.collision import (
    Collision,
    collide,
    combine_overlapping_points,
    detect_collisions,
    remove_all_very_short_edges,
    self_collide,
)
from pathalgebra.core.extract import exterior_paths
from pathalgebra.core.ray_cast import RayCollision, ray_collisions

__all__ = [
    # Classification
    "MAX_HEAL_DEPTH",
    # Collision
    "Collision",
    # Arithmetic
    "CombineOperation",
    "PathCombine",
    "PathCut",
    "PathIntersection",
    # Ray casting
    "RayCollision",
    "collide",
    "combine_overlapping_points",
    "detect_collisions",
    "edge_kinds_summary",
    "exterior_paths",
    "heal_exterior_gaps",
    "path_add",
    "path_add_chain",
    "path_combine",
    "path_cut",
    "path_full_intersect",
    "path_intersect",
    "path_remove_interior_points",
    "path_remove_overlapped_points",
    "path_sub",
    "ray_collisions",
    "remove_all_very_short_edges",
    "self_collide",
    "set_edge_kind_connected",
    "set_edge_kinds_by_ray_casting",
]
