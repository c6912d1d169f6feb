"""pathalgebra - Boolean operations on cubic Bezier paths.

pathalgebra combines closed cubic Bezier paths with union, subtraction,
intersection and cut operations. Paths are turned into a planar graph,
subdivided wherever they intersect, classified with winding-number ray
casting and walked again to produce the result.

Example:
    >>> from pathalgebra import PathBuilder, path_add
    >>> square = PathBuilder.rectangle(0.0, 0.0, 4.0, 4.0)
    >>> other = PathBuilder.rectangle(2.0, 2.0, 6.0, 6.0)
    >>> len(path_add([square], [other], 0.01))
    1
"""

from pathalgebra.core.arithmetic import (
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
from pathalgebra.domain import BezierPath, Coord, PathBuilder

__version__ = "0.1.0"
__author__ = "Dimosthenis Kaponis"

__all__ = [
    "BezierPath",
    "Coord",
    "PathBuilder",
    "PathCombine",
    "PathCut",
    "PathIntersection",
    "__author__",
    "__version__",
    "path_add",
    "path_add_chain",
    "path_combine",
    "path_cut",
    "path_full_intersect",
    "path_intersect",
    "path_remove_interior_points",
    "path_remove_overlapped_points",
    "path_sub",
]
