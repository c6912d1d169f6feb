"""Configuration settings for pathalgebra."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class FillRule(str, Enum):
    """How a per-path crossing count decides whether a point is filled."""

    NON_ZERO = "non_zero"
    EVEN_ODD = "even_odd"

    def is_filled(self, count: int) -> bool:
        """Check whether a crossing count is inside under this rule.

        Args:
            count: Signed crossing count for one source path

        Returns:
            True if the count means the point is inside that path
        """
        if self is FillRule.EVEN_ODD:
            return count % 2 != 0
        return count != 0


class GeometryConfig(BaseModel):
    """Tolerances used while building and colliding path graphs.

    All distances are in the same units as the path coordinates.
    """

    accuracy: float = Field(
        default=0.01,
        gt=0.0,
        le=10.0,
        description="Distance under which two intersections or vertices are the same",
    )
    close_distance: float = Field(
        default=0.01,
        gt=0.0,
        le=1.0,
        description="Distance under which consecutive path vertices are collapsed",
    )
    small_distance: float = Field(
        default=0.001,
        gt=0.0,
        le=0.1,
        description="Distance under which a control point is considered to lie on a line",
    )
    small_t_distance: float = Field(
        default=0.001,
        gt=0.0,
        le=0.1,
        description="Curve parameter distance under which a collision is snapped to an endpoint",
    )
    vertex_clearance: float = Field(
        default=0.01,
        gt=0.0,
        le=1.0,
        description="Minimum distance a classification ray keeps from graph vertices",
    )
    max_collision_passes: int = Field(
        default=3,
        ge=1,
        le=16,
        description="Maximum number of collide/subdivide passes before giving up on a fixed point",
    )


class ArithmeticConfig(BaseModel):
    """Configuration for the boolean operators."""

    fill_rule: FillRule = Field(
        default=FillRule.EVEN_ODD,
        description="Rule applied to each operand's crossing count",
    )
    normalize_direction: bool = Field(
        default=True,
        description=(
            "Count crossings relative to each path's own winding; when false the "
            "winding of the input is used as given"
        ),
    )
    strict: bool = Field(
        default=False,
        description="Raise ConsistencyError instead of repairing inconsistent graphs",
    )
    heal_gaps: bool = Field(
        default=True,
        description="Bridge gaps in the exterior edges before extracting the result",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class PathAlgebraSettings(BaseModel):
    """Main application settings."""

    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    arithmetic: ArithmeticConfig = Field(default_factory=ArithmeticConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> PathAlgebraSettings:
    """Get default application settings."""
    return PathAlgebraSettings()
