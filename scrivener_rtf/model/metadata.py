"""Document-level tables extracted from an RTF header."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from scrivener_rtf.model.elements import RtfColor
from scrivener_rtf.utils.logger import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RtfFont:
    """A font table entry (``{\\f1\\froman Times New Roman;}``)."""

    index: int
    name: str
    family: Optional[str] = None
    charset: Optional[int] = None


@dataclass(slots=True)
class RtfMetadata:
    """Font and color tables kept for round-tripping.

    Index 0 of the color table is conventionally the "auto" entry and is
    stored as ``None``.
    """

    font_table: List[RtfFont] = field(default_factory=list)
    color_table: List[Optional[RtfColor]] = field(default_factory=list)
    default_font_index: int = 0

    @classmethod
    def empty(cls) -> "RtfMetadata":
        return cls()

    def copy(self) -> "RtfMetadata":
        return RtfMetadata(list(self.font_table), list(self.color_table), self.default_font_index)

    def get_font_by_index(self, index: int) -> Optional[RtfFont]:
        for font in self.font_table:
            if font.index == index:
                return font
        return None

    def get_color_by_index(self, index: int) -> Optional[RtfColor]:
        if index < 0 or index >= len(self.color_table):
            return None
        return self.color_table[index]

    def index_of_font(self, name: str) -> int:
        for font in self.font_table:
            if font.name == name:
                return font.index
        return -1

    def index_of_color(self, color: RtfColor, start: int = 0) -> int:
        for index in range(start, len(self.color_table)):
            if self.color_table[index] == color:
                return index
        return -1

    def default_font(self) -> Optional[RtfFont]:
        """The ``\\deff`` font, or the first declared font when that index is missing."""
        return self.get_font_by_index(self.default_font_index) or (self.font_table[0] if self.font_table else None)

    # ------------------------------------------------------------------
    # Reference resolution used while parsing
    def resolve_font(self, index: Optional[int]) -> Optional[str]:
        if index is None:
            return None
        font = self.get_font_by_index(index)
        if font is not None:
            return font.name
        fallback = self.default_font()
        LOGGER.debug("Font index %d not in font table; using %s", index, fallback.name if fallback else "no font")
        return fallback.name if fallback else None

    def resolve_color(self, index: Optional[int], fallback: Optional[RtfColor] = None) -> Optional[RtfColor]:
        """Resolve a ``\\cf``/``\\highlight`` index; 0 and auto entries mean "no color"."""
        if index is None or index == 0:
            return None
        if 0 < index < len(self.color_table):
            return self.color_table[index]
        LOGGER.debug("Color index %d not in color table (%d entries)", index, len(self.color_table))
        return fallback

    # ------------------------------------------------------------------
    # Table extension used while serializing
    def with_fonts(self, names: Iterable[str]) -> "RtfMetadata":
        """Return a copy whose font table declares every name in ``names``."""
        extended = self.copy()
        for name in names:
            if extended.index_of_font(name) >= 0:
                continue
            next_index = max((font.index for font in extended.font_table), default=-1) + 1
            extended.font_table.append(RtfFont(index=next_index, name=name))
        return extended

    def with_colors(self, colors: Iterable[RtfColor]) -> "RtfMetadata":
        """Return a copy whose color table holds every color at an index above 0."""
        extended = self.copy()
        for color in colors:
            if extended.index_of_color(color, start=1) >= 1:
                continue
            if not extended.color_table:
                extended.color_table.append(None)
            extended.color_table.append(color)
        return extended
