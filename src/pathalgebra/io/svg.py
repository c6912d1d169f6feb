"""SVG path data reading and writing.

Path data strings (the `d` attribute of an SVG path element) are parsed
with fontTools.svgLib and written with fontTools' SVGPathPen. Every
subpath becomes one closed BezierPath; quadratic segments and arcs are
converted to cubic segments on the way in.
"""

from fontTools.pens.svgPathPen import SVGPathPen
from fontTools.svgLib.path import parse_path

from pathalgebra.domain.path import BezierPath
from pathalgebra.exceptions import PathFormatError
from pathalgebra.io.converter import BezierPathPen, draw_paths


def parse_svg_path(data: str, source: str = "<string>") -> list[BezierPath]:
    """Parse SVG path data into closed paths.

    Args:
        data: Path data, e.g. "M0 0 L10 0 L10 10 Z"
        source: Where the data came from, for error messages

    Returns:
        One closed path per subpath

    Raises:
        PathFormatError: If the data cannot be parsed
    """
    pen = BezierPathPen()
    try:
        parse_path(data, pen)
    except (ValueError, IndexError, AssertionError) as e:
        raise PathFormatError(source, str(e) or type(e).__name__) from e
    pen.flush()
    return pen.paths


def _format_number(value: float) -> str:
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def format_svg_path(paths: list[BezierPath]) -> str:
    """Write paths as SVG path data.

    Straight segments are written as line commands and every path is
    closed with Z.

    Args:
        paths: Paths to write

    Returns:
        Path data string (empty for no paths)
    """
    pen = SVGPathPen(None, ntos=_format_number)
    draw_paths(paths, pen)
    return pen.getCommands()
