"""Scrivener style tags and the built-in style definitions they refer to."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional

from scrivener_rtf.model.elements import RunStyle


class StyleTagType(Enum):
    PARAGRAPH_STYLE = "Ps"
    CHARACTER_STYLE = "Cs"


@dataclass(frozen=True, slots=True)
class ScrivenerStyleTag:
    """A ``<$Scr_Cs::N>`` style marker found in paragraph text.

    Offsets index the paragraph text before any tag was removed.
    """

    tag_type: StyleTagType
    style_index: int
    is_end: bool
    raw_tag: str
    start_offset: int
    end_offset: int


@dataclass(frozen=True, slots=True)
class StyleTagAnnotation:
    """Where a style tag was stripped from the visible text."""

    paragraph_index: int
    tag: ScrivenerStyleTag
    clean_offset: int

    @property
    def original_offset(self) -> int:
        return self.tag.start_offset


@dataclass(frozen=True, slots=True)
class ScrivenerStyleDefinition:
    """How a Scrivener style renders."""

    name: str
    is_bold: bool = False
    is_italic: bool = False
    is_underline: bool = False
    font_size: Optional[float] = None
    is_heading: bool = False
    heading_level: int = 0

    def apply_to(self, style: RunStyle) -> RunStyle:
        """Layer this style's emphasis on top of an existing run style."""
        changes: Dict[str, object] = {}
        if self.is_bold:
            changes["bold"] = True
        if self.is_italic:
            changes["italic"] = True
        if self.is_underline:
            changes["underline"] = True
        return style.merged(**changes) if changes else style


class ScrivenerStyleCatalog:
    """Style definitions keyed by the index carried in a tag."""

    def __init__(
        self,
        paragraph_styles: Mapping[int, ScrivenerStyleDefinition],
        character_styles: Mapping[int, ScrivenerStyleDefinition],
    ) -> None:
        self._paragraph_styles = dict(paragraph_styles)
        self._character_styles = dict(character_styles)

    @classmethod
    def builtin(cls) -> "ScrivenerStyleCatalog":
        return cls(BUILTIN_PARAGRAPH_STYLES, BUILTIN_CHARACTER_STYLES)

    def get_paragraph_style(self, index: int) -> Optional[ScrivenerStyleDefinition]:
        return self._paragraph_styles.get(index)

    def get_character_style(self, index: int) -> Optional[ScrivenerStyleDefinition]:
        return self._character_styles.get(index)

    def get(self, tag: ScrivenerStyleTag) -> Optional[ScrivenerStyleDefinition]:
        if tag.tag_type is StyleTagType.PARAGRAPH_STYLE:
            return self.get_paragraph_style(tag.style_index)
        return self.get_character_style(tag.style_index)


BUILTIN_PARAGRAPH_STYLES: Mapping[int, ScrivenerStyleDefinition] = {
    0: ScrivenerStyleDefinition("Title", is_bold=True, font_size=24, is_heading=True, heading_level=1),
    1: ScrivenerStyleDefinition("Heading 1", is_bold=True, font_size=18, is_heading=True, heading_level=1),
    2: ScrivenerStyleDefinition("Heading 2", is_bold=True, font_size=16, is_heading=True, heading_level=2),
    3: ScrivenerStyleDefinition("Body", font_size=12),
    4: ScrivenerStyleDefinition("Block Quote", is_italic=True, font_size=12),
}

BUILTIN_CHARACTER_STYLES: Mapping[int, ScrivenerStyleDefinition] = {
    0: ScrivenerStyleDefinition("Default"),
    1: ScrivenerStyleDefinition("Emphasis", is_italic=True),
    2: ScrivenerStyleDefinition("Strong", is_bold=True),
    3: ScrivenerStyleDefinition("Underline", is_underline=True),
    4: ScrivenerStyleDefinition("Note", is_italic=True),
}
