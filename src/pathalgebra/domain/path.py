"""Closed cubic Bezier paths and the labels attached to them.

This module defines the input and output type of the arithmetic operations:
- BezierPath: A closed path made of cubic Bezier segments
- PathBuilder: Incremental construction of paths
- PathDirection: Winding direction of a path
- PathLabel: Source path number plus direction, carried by graph edges
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, NamedTuple

from pathalgebra.domain.coord import Coord
from pathalgebra.exceptions import DegeneratePathError

Segment = tuple[Coord, Coord, Coord]


class PathDirection(Enum):
    """Winding direction of a closed path.

    Directions are measured with the y axis pointing up, so a path with a
    negative signed area is clockwise.
    """

    CLOCKWISE = auto()
    ANTICLOCKWISE = auto()


@dataclass(frozen=True)
class BezierPath:
    """A closed path made of cubic Bezier segments.

    The path starts at `start` and each segment is a tuple of
    (control point 1, control point 2, end point). If the final end point is
    not the start point the path is implicitly closed by a straight line.

    Attributes:
        start: First on-curve point of the path
        segments: Cubic segments following the start point
    """

    start: Coord
    segments: tuple[Segment, ...] = field(default_factory=tuple)

    @classmethod
    def from_points(cls, start: Coord, points: Iterable[Segment]) -> "BezierPath":
        """Create a path from a start point and (cp1, cp2, end) triples."""
        return cls(start=start, segments=tuple(tuple(segment) for segment in points))  # type: ignore[misc]

    def points(self) -> Iterator[Segment]:
        """Iterate over the (cp1, cp2, end) segments of this path."""
        return iter(self.segments)

    def vertices(self) -> list[Coord]:
        """Return the on-curve points of this path, starting with the start point."""
        return [self.start] + [end for _, _, end in self.segments]

    def is_empty(self) -> bool:
        """Check if the path has no segments."""
        return not self.segments

    def is_closed(self, max_distance: float = 0.0) -> bool:
        """Check if the last segment returns to the start point."""
        if not self.segments:
            return False
        return self.segments[-1][2].is_near_to(self.start, max_distance)

    def closed(self) -> "BezierPath":
        """Return this path with an explicit closing line, if it needs one."""
        if not self.segments or self.is_closed():
            return self

        last = self.segments[-1][2]
        return BezierPath(
            start=self.start,
            segments=self.segments + (_line_segment(last, self.start),),
        )

    def signed_area(self) -> float:
        """Calculate signed area of the control polygon using the shoelace formula.

        The sign of the area indicates winding direction:
        - Positive area: anticlockwise winding
        - Negative area: clockwise winding

        Returns:
            Signed area of the control polygon
        """
        polygon = [self.start]
        for cp1, cp2, end in self.segments:
            polygon.extend((cp1, cp2, end))

        n = len(polygon)
        if n < 3:
            return 0.0

        area = 0.0
        for i in range(n):
            j = (i + 1) % n
            area += polygon[i].x * polygon[j].y
            area -= polygon[j].x * polygon[i].y

        return area / 2.0

    def is_clockwise(self) -> bool:
        """Check if this path winds clockwise."""
        return self.signed_area() < 0.0

    def direction(self) -> PathDirection:
        """Winding direction of this path."""
        return PathDirection.CLOCKWISE if self.is_clockwise() else PathDirection.ANTICLOCKWISE

    def bounding_box(self) -> tuple[float, float, float, float]:
        """Calculate the bounding box of the control polygon.

        The control polygon always contains the curve, so this is a
        conservative bound.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        xs = [self.start.x]
        ys = [self.start.y]
        for segment in self.segments:
            xs.extend(p.x for p in segment)
            ys.extend(p.y for p in segment)

        return (min(xs), min(ys), max(xs), max(ys))

    def reversed(self) -> "BezierPath":
        """Return the same outline traversed in the opposite direction."""
        path = self.closed()
        if not path.segments:
            return path

        starts = path.vertices()[:-1]
        segments = tuple(
            (cp2, cp1, start)
            for (cp1, cp2, _), start in zip(reversed(path.segments), reversed(starts), strict=True)
        )
        return BezierPath(start=path.segments[-1][2], segments=segments)

    def rotated(self, offset: int) -> "BezierPath":
        """Return the same outline starting at another vertex.

        Args:
            offset: Index of the vertex that becomes the new start point

        Returns:
            An explicitly closed path that starts at vertex `offset`
        """
        path = self.closed()
        if not path.segments:
            return path

        offset %= len(path.segments)
        segments = path.segments[offset:] + path.segments[:offset]
        start = path.segments[offset - 1][2] if offset else path.start
        return BezierPath(start=start, segments=segments)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary with the start point and a list of segments
        """
        return {
            "start": self.start.to_dict(),
            "segments": [[p.to_dict() for p in segment] for segment in self.segments],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BezierPath":
        """Deserialize from dictionary.

        Args:
            data: Dictionary with start and segments fields

        Returns:
            BezierPath instance
        """
        segments = [
            tuple(Coord.from_dict(p) for p in segment) for segment in data["segments"]
        ]
        return cls.from_points(Coord.from_dict(data["start"]), segments)  # type: ignore[arg-type]


def _line_segment(start: Coord, end: Coord) -> Segment:
    """Cubic segment that traces a straight line."""
    return (start.lerp(end, 1.0 / 3.0), start.lerp(end, 2.0 / 3.0), end)


class PathBuilder:
    """Builds a BezierPath one segment at a time.

    Example:
        path = PathBuilder().move_to(0, 0).line_to(10, 0).line_to(10, 10).build()
    """

    def __init__(self) -> None:
        self._start: Coord | None = None
        self._current: Coord | None = None
        self._segments: list[Segment] = []

    def move_to(self, x: float, y: float) -> "PathBuilder":
        """Set the start point. Must be called before any other segment."""
        self._start = Coord(float(x), float(y))
        self._current = self._start
        self._segments = []
        return self

    def line_to(self, x: float, y: float) -> "PathBuilder":
        """Add a straight segment to (x, y)."""
        current = self._require_current()
        end = Coord(float(x), float(y))
        self._segments.append(_line_segment(current, end))
        self._current = end
        return self

    def curve_to(
        self,
        cp1: tuple[float, float],
        cp2: tuple[float, float],
        end: tuple[float, float],
    ) -> "PathBuilder":
        """Add a cubic segment."""
        self._require_current()
        segment = (Coord.from_tuple(cp1), Coord.from_tuple(cp2), Coord.from_tuple(end))
        self._segments.append(segment)
        self._current = segment[2]
        return self

    def build(self) -> BezierPath:
        """Return the path built so far."""
        if self._start is None:
            raise DegeneratePathError("path has no start point")
        return BezierPath(start=self._start, segments=tuple(self._segments))

    def _require_current(self) -> Coord:
        if self._current is None:
            raise DegeneratePathError("move_to must be called before adding segments")
        return self._current

    @classmethod
    def rectangle(cls, x1: float, y1: float, x2: float, y2: float) -> BezierPath:
        """Build an explicitly closed rectangle from (x1, y1) to (x2, y2).

        The corners are visited in the order (x1, y1), (x2, y1), (x2, y2),
        (x1, y2), which is anticlockwise when x1 < x2 and y1 < y2.
        """
        return (
            cls()
            .move_to(x1, y1)
            .line_to(x2, y1)
            .line_to(x2, y2)
            .line_to(x1, y2)
            .line_to(x1, y1)
            .build()
        )

    @classmethod
    def polygon(cls, points: Iterable[tuple[float, float]]) -> BezierPath:
        """Build an explicitly closed polygon through the given points."""
        points = list(points)
        if not points:
            raise DegeneratePathError("polygon has no points")

        builder = cls().move_to(*points[0])
        for x, y in points[1:]:
            builder.line_to(x, y)
        builder.line_to(*points[0])
        return builder.build()


class PathLabel(NamedTuple):
    """Identifies which input path an edge came from, and its direction."""

    path_number: int
    direction: PathDirection

    @classmethod
    def for_path(cls, path_number: int, path: BezierPath) -> "PathLabel":
        """Create a label for a path, working out its direction."""
        return cls(path_number, path.direction())
