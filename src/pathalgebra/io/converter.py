"""Converters between fontTools pens and BezierPath.

fontTools describes outlines as a stream of pen commands. This module
turns such a stream into BezierPaths and draws BezierPaths back onto any
pen, so outlines can move between fonts, SVG path data and the path
algebra.
"""

from typing import Any

from fontTools.pens.basePen import AbstractPen, BasePen
from fontTools.pens.recordingPen import replayRecording

from pathalgebra.domain.coord import Coord
from pathalgebra.domain.path import BezierPath, PathBuilder


class BezierPathPen(BasePen):
    """A pen that collects what is drawn on it as BezierPaths.

    Quadratic segments (including TrueType runs with implied on-curve
    points) are converted to cubic segments by BasePen. Every contour is
    closed, whether it ends with closePath or endPath.

    Example:
        pen = BezierPathPen()
        glyph_set["A"].draw(pen)
        paths = pen.paths
    """

    def __init__(self, glyphSet: Any = None) -> None:
        super().__init__(glyphSet)
        self.paths: list[BezierPath] = []
        self._builder: PathBuilder | None = None

    def _moveTo(self, pt: tuple[float, float]) -> None:
        self.flush()
        self._builder = PathBuilder().move_to(*pt)

    def _lineTo(self, pt: tuple[float, float]) -> None:
        self._require_builder().line_to(*pt)

    def _curveToOne(
        self,
        pt1: tuple[float, float],
        pt2: tuple[float, float],
        pt3: tuple[float, float],
    ) -> None:
        self._require_builder().curve_to(pt1, pt2, pt3)

    def _closePath(self) -> None:
        self.flush()

    def _endPath(self) -> None:
        self.flush()

    def _require_builder(self) -> PathBuilder:
        if self._builder is None:
            self._builder = PathBuilder().move_to(*self._getCurrentPoint())
        return self._builder

    def flush(self) -> None:
        """Store the contour being drawn, if any."""
        if self._builder is None:
            return

        path = self._builder.build()
        self._builder = None
        if not path.is_empty():
            self.paths.append(path.closed())


def recording_to_paths(recording: list[tuple[str, tuple[Any, ...]]]) -> list[BezierPath]:
    """Convert a RecordingPen recording to a list of BezierPaths.

    The RecordingPen records drawing commands like:
    - ('moveTo', ((x, y),))
    - ('lineTo', ((x, y),))
    - ('qCurveTo', ((x1, y1), (x2, y2), ...))  # Quadratic
    - ('curveTo', ((x1, y1), (x2, y2), (x3, y3)))  # Cubic
    - ('closePath', ())

    Args:
        recording: List of drawing commands from RecordingPen

    Returns:
        One closed path per contour
    """
    pen = BezierPathPen()
    replayRecording(recording, pen)
    pen.flush()
    return pen.paths


def draw_paths(paths: list[BezierPath], pen: AbstractPen) -> None:
    """Draw paths onto a fontTools pen as closed cubic contours.

    Args:
        paths: Paths to draw
        pen: Any fontTools pen (SVGPathPen, RecordingPen, T2CharStringPen, ...)
    """
    for path in paths:
        if path.is_empty():
            continue

        pen.moveTo(path.start.to_tuple())
        segments = list(path.points())
        last_start = segments[-2][2] if len(segments) > 1 else path.start
        if len(segments) > 1 and segments[-1][2] == path.start and _is_line(last_start, segments[-1]):
            # closePath draws the final straight segment
            segments = segments[:-1]

        previous = path.start
        for cp1, cp2, end in segments:
            if _is_line(previous, (cp1, cp2, end)):
                pen.lineTo(end.to_tuple())
            else:
                pen.curveTo(cp1.to_tuple(), cp2.to_tuple(), end.to_tuple())
            previous = end
        pen.closePath()


def _is_line(start: Coord, segment: tuple[Coord, Coord, Coord]) -> bool:
    """Check if a segment has its control points on the chord at 1/3 and 2/3."""
    cp1, cp2, end = segment
    return cp1.is_near_to(start.lerp(end, 1.0 / 3.0), 1e-9) and cp2.is_near_to(
        start.lerp(end, 2.0 / 3.0), 1e-9
    )
