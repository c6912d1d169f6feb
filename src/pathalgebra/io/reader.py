"""Font reader for loading glyph outlines from TTF/OTF fonts.

This module provides the FontReader class for loading font files and
extracting glyph outlines as BezierPaths.
"""

from pathlib import Path

from fontTools.ttLib import TTFont, TTLibError

from pathalgebra.domain.path import BezierPath
from pathalgebra.exceptions import FontLoadError, GlyphNotFoundError
from pathalgebra.io.converter import BezierPathPen


class FontReader:
    """Loads TTF/OTF fonts and extracts glyph outlines.

    Outlines of CFF fonts are reversed on read so that every path follows
    the TrueType winding convention (outer contours clockwise).

    Example:
        with FontReader(Path("font.ttf")) as reader:
            paths = reader.glyph_paths("A")
    """

    def __init__(self, font_path: Path) -> None:
        """Initialize the font reader.

        Args:
            font_path: Path to the TTF or OTF font file
        """
        self._font_path = font_path
        self._font: TTFont | None = None

    def load(self) -> None:
        """Load the font file.

        Raises:
            FontLoadError: If the file does not exist or is not a valid font
        """
        if not self._font_path.exists():
            raise FontLoadError(str(self._font_path), "file not found")

        try:
            self._font = TTFont(str(self._font_path))
        except (TTLibError, OSError) as e:
            raise FontLoadError(str(self._font_path), str(e)) from e

    def _require_font(self) -> TTFont:
        if self._font is None:
            raise RuntimeError("Font not loaded. Call load() first.")
        return self._font

    @property
    def format(self) -> str:
        """Return font format.

        Returns:
            'TrueType' for TTF fonts, 'OpenType' for OTF fonts

        Raises:
            RuntimeError: If font has not been loaded yet
        """
        font = self._require_font()
        if "CFF " in font or "CFF2" in font:
            return "OpenType"
        return "TrueType"

    @property
    def units_per_em(self) -> int:
        """Return font's units per em.

        Raises:
            RuntimeError: If font has not been loaded yet
        """
        return self._require_font()["head"].unitsPerEm  # type: ignore[attr-defined]

    def glyph_names(self) -> list[str]:
        """Names of all glyphs, in glyph order."""
        return list(self._require_font().getGlyphOrder())

    def glyph_paths(self, name: str) -> list[BezierPath]:
        """Outline of a glyph as closed paths.

        Args:
            name: Name of the glyph

        Returns:
            One path per contour (empty for glyphs without outlines)

        Raises:
            GlyphNotFoundError: If the font has no glyph with this name
            RuntimeError: If font has not been loaded yet
        """
        font = self._require_font()
        glyph_set = font.getGlyphSet()
        if name not in glyph_set:
            raise GlyphNotFoundError(name)

        pen = BezierPathPen(glyph_set)
        glyph_set[name].draw(pen)
        pen.flush()

        if self.format == "OpenType":
            return [path.reversed() for path in pen.paths]
        return pen.paths

    def close(self) -> None:
        """Close the font file and free resources."""
        if self._font is not None:
            self._font.close()
            self._font = None

    def __enter__(self) -> "FontReader":
        """Context manager entry."""
        self.load()
        return self

    def __exit__(self, _exc_type: object, _exc_val: object, _exc_tb: object) -> None:
        """Context manager exit."""
        self.close()
