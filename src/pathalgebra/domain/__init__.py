"""Domain models for pathalgebra.

This module contains the data types shared by every algorithm: coordinates,
closed Bezier paths and the arena graph that paths are converted into.

Key classes:
- Coord: A 2D point or vector
- BezierPath: A closed path of cubic segments
- PathBuilder: Incremental path construction
- PathDirection / PathLabel: Identity and winding of a source path
- GraphPath: Arena of points and labeled edges
- EdgeKind / EdgeRef / EdgeView: Edge classification and references
"""

from pathalgebra.domain.coord import Coord
from pathalgebra.domain.graph import (
    EdgeKind,
    EdgeRef,
    EdgeView,
    GraphEdge,
    GraphPath,
    GraphPoint,
)
from pathalgebra.domain.path import BezierPath, PathBuilder, PathDirection, PathLabel

__all__: list[str] = [
    # Enums
    "EdgeKind",
    "PathDirection",
    # Core types
    "BezierPath",
    "Coord",
    "EdgeRef",
    "EdgeView",
    "GraphEdge",
    "GraphPath",
    "GraphPoint",
    "PathBuilder",
    "PathLabel",
]
