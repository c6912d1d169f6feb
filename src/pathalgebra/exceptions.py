"""Exception hierarchy for pathalgebra."""


class PathAlgebraError(Exception):
    """Base exception for all pathalgebra errors."""

    pass


class GeometryError(PathAlgebraError):
    """Errors in geometric calculations."""

    pass


class ToleranceError(GeometryError):
    """A tolerance that cannot be used for the requested operation."""

    def __init__(self, operation: str, accuracy: float) -> None:
        self.operation = operation
        self.accuracy = accuracy
        super().__init__(
            f"Invalid accuracy {accuracy!r} for '{operation}': must be a positive finite number"
        )


class DegeneratePathError(GeometryError):
    """Path data that cannot describe a closed outline."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Degenerate path: {reason}")


class TopologyError(PathAlgebraError):
    """Errors in the structure of a path graph."""

    pass


class ConsistencyError(TopologyError):
    """A graph invariant does not hold.

    Raised when the following-edge links stop forming a permutation, when a
    classification ray finishes with a non-zero crossing count (which means
    an intersection was missed while colliding the paths) or crosses an edge
    against its earlier classification, and when exterior edges cannot be
    closed into paths.
    """

    def __init__(self, check: str, details: str) -> None:
        self.check = check
        self.details = details
        super().__init__(f"Graph consistency check '{check}' failed: {details}")


class PathFormatError(PathAlgebraError):
    """Path data in an external format could not be read."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Could not read path data '{source}': {reason}")


class FontError(PathAlgebraError):
    """Errors related to reading outlines from fonts."""

    pass


class FontLoadError(FontError):
    """Error loading a font file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load font '{path}': {reason}")


class GlyphNotFoundError(FontError):
    """Requested glyph not found in font."""

    def __init__(self, glyph_name: str) -> None:
        self.glyph_name = glyph_name
        super().__init__(f"Glyph '{glyph_name}' not found in font")
