"""Two-dimensional coordinates.

Coord is used both as a position and as a vector, the same way a path's
control points and its tangents share one representation.
"""

import math
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Coord:
    """A point or vector in 2D space.

    Immutable and hashable for use in sets/dicts.

    Attributes:
        x: X coordinate
        y: Y coordinate
    """

    x: float
    y: float

    def __iter__(self) -> Iterator[float]:
        # fontTools unpacks points as (x, y) pairs
        yield self.x
        yield self.y

    def __add__(self, other: "Coord") -> "Coord":
        return Coord(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Coord") -> "Coord":
        return Coord(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> "Coord":
        return Coord(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __neg__(self) -> "Coord":
        return Coord(-self.x, -self.y)

    def dot(self, other: "Coord") -> float:
        """Dot product with another vector."""
        return self.x * other.x + self.y * other.y

    def cross(self, other: "Coord") -> float:
        """Z component of the cross product with another vector."""
        return self.x * other.y - self.y * other.x

    def length(self) -> float:
        """Length of this vector."""
        return math.hypot(self.x, self.y)

    def distance_to(self, other: "Coord") -> float:
        """Euclidean distance to another point."""
        return math.hypot(self.x - other.x, self.y - other.y)

    def is_near_to(self, other: "Coord", max_distance: float) -> bool:
        """Check whether another point is within a distance of this one.

        Args:
            other: Point to compare against
            max_distance: Largest distance still considered near

        Returns:
            True if the points are at most max_distance apart

        Examples:
            >>> Coord(1.0, 1.0).is_near_to(Coord(1.0, 1.05), 0.1)
            True
            >>> Coord(1.0, 1.0).is_near_to(Coord(2.0, 1.0), 0.1)
            False
        """
        dx = self.x - other.x
        dy = self.y - other.y
        return dx * dx + dy * dy <= max_distance * max_distance

    def normalized(self) -> "Coord":
        """Unit vector in the same direction (zero stays zero)."""
        length = self.length()
        if length == 0.0:
            return self
        return Coord(self.x / length, self.y / length)

    def lerp(self, other: "Coord", t: float) -> "Coord":
        """Linear interpolation towards another point."""
        return Coord(self.x + (other.x - self.x) * t, self.y + (other.y - self.y) * t)

    def rounded(self, accuracy: float) -> "Coord":
        """Snap both components to the nearest multiple of accuracy.

        Examples:
            >>> Coord(1.004, 2.996).rounded(0.01)
            Coord(x=1.0, y=3.0)
        """
        return Coord(
            round(round(self.x / accuracy) * accuracy, 12),
            round(round(self.y / accuracy) * accuracy, 12),
        )

    def to_tuple(self) -> tuple[float, float]:
        """Convert to simple (x, y) tuple.

        Returns:
            Tuple of (x, y) coordinates
        """
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, value: tuple[float, float]) -> "Coord":
        """Create a coordinate from an (x, y) tuple."""
        return cls(float(value[0]), float(value[1]))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary with x and y fields
        """
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Coord":
        """Deserialize from dictionary.

        Args:
            data: Dictionary with x and y fields

        Returns:
            Coord instance
        """
        return cls(x=data["x"], y=data["y"])
