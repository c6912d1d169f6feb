"""Path I/O layer for pathalgebra.

This module moves outlines between external formats and BezierPath
using fonttools.

Key responsibilities:
- Parse and write SVG path data
- Convert fontTools pen commands to and from BezierPaths
- Load glyph outlines from TTF/OTF fonts

Key classes:
- BezierPathPen: fontTools pen that collects BezierPaths
- FontReader: Load fonts and extract glyph outlines
"""

from pathalgebra.io.converter import BezierPathPen, draw_paths, recording_to_paths
from pathalgebra.io.reader import FontReader
from pathalgebra.io.svg import format_svg_path, parse_svg_path

__all__ = [
    "BezierPathPen",
    "FontReader",
    "draw_paths",
    "format_svg_path",
    "parse_svg_path",
    "recording_to_paths",
]
