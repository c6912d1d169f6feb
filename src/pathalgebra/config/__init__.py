"""Configuration management for pathalgebra.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments, keyword arguments to the
arithmetic functions, or defaults.

Key classes:
- GeometryConfig: Tolerances for graph construction and collision
- ArithmeticConfig: Fill rule and strictness of the boolean operators
- LoggingConfig: Logging settings
- PathAlgebraSettings: Main application settings
"""

from pathalgebra.config.settings import (
    ArithmeticConfig,
    FillRule,
    GeometryConfig,
    LoggingConfig,
    PathAlgebraSettings,
    get_default_settings,
)

__all__ = [
    "ArithmeticConfig",
    "FillRule",
    "GeometryConfig",
    "LoggingConfig",
    "PathAlgebraSettings",
    "get_default_settings",
]
