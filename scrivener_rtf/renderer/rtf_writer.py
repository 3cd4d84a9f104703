"""Serialize styled paragraphs back to RTF."""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from scrivener_rtf.errors import SerializationError
from scrivener_rtf.model.elements import PLAIN_STYLE, Paragraph, RtfColor, RunStyle, coalesce_runs
from scrivener_rtf.model.metadata import RtfMetadata
from scrivener_rtf.renderer.utils import FONT_NAME_RESERVED, control_word, escape_font_name, escape_text
from scrivener_rtf.utils.logger import get_logger
from scrivener_rtf.utils.units import points_to_half_points

LOGGER = get_logger(__name__)

DEFAULT_FONT_NAME = "Calibri"
DEFAULT_FONT_SIZE = 12.0
# One half-point, the smallest size \fs can express.
MIN_FONT_SIZE = 0.5

_BODY_PREAMBLE = "\\viewkind4\\uc1\\pard "
_PARAGRAPH_END = "\\par\n"


class RtfWriter:
    """Write paragraphs and header tables as an RTF document.

    Every paragraph starts from the plain state and only attributes that
    change between runs emit control words. Fonts and colors the runs use
    but the tables lack are appended, so existing indices keep their meaning.
    """

    def __init__(self, paragraphs: Sequence[Paragraph], metadata: Optional[RtfMetadata] = None) -> None:
        self._paragraphs = list(paragraphs)
        self._source_metadata = metadata or RtfMetadata.empty()
        self._metadata: Optional[RtfMetadata] = None

    @property
    def metadata(self) -> RtfMetadata:
        """The tables as written, including any appended entries."""
        if self._metadata is None:
            self._metadata = self._build_metadata()
        return self._metadata

    def convert(self) -> str:
        self._validate()
        metadata = self.metadata
        parts: List[str] = [self._header(metadata), _BODY_PREAMBLE]
        for paragraph in self._paragraphs:
            parts.append(self._paragraph(paragraph, metadata))
        parts.append("}")
        return "".join(parts)

    def convert_bytes(self) -> bytes:
        # Every non-ASCII character is escaped, so the output is pure ASCII.
        return self.convert().encode("ascii")

    # ------------------------------------------------------------------
    # Validation
    def _validate(self) -> None:
        for font in self._source_metadata.font_table:
            _validate_font_name(font.name, f"font table entry {font.index}")
        for paragraph_index, paragraph in enumerate(self._paragraphs):
            for run in paragraph.runs:
                where = f"paragraph {paragraph_index}"
                if not isinstance(run.text, str):
                    raise SerializationError(f"{where}: run text must be str, got {type(run.text).__name__}")
                if "\n" in run.text or "\r" in run.text:
                    raise SerializationError(f"{where}: run text contains a line break")
                self._validate_style(run.style, where)

    @staticmethod
    def _validate_style(style: RunStyle, where: str) -> None:
        if style.font_size is not None and style.font_size < MIN_FONT_SIZE:
            raise SerializationError(
                f"{where}: font size must be at least {MIN_FONT_SIZE}pt, got {style.font_size}"
            )
        if style.superscript and style.subscript:
            raise SerializationError(f"{where}: run is both superscript and subscript")
        if style.font_family is not None:
            _validate_font_name(style.font_family, where)
        for color in (style.text_color, style.background_color):
            if color is None:
                continue
            for component in (color.red, color.green, color.blue):
                if not isinstance(component, int) or not 0 <= component <= 255:
                    raise SerializationError(f"{where}: color component {component!r} outside 0-255")

    # ------------------------------------------------------------------
    # Header
    def _build_metadata(self) -> RtfMetadata:
        fonts: List[str] = []
        colors: List[RtfColor] = []
        for paragraph in self._paragraphs:
            for run in paragraph.runs:
                style = run.style
                if style.font_family is not None and style.font_family not in fonts:
                    fonts.append(style.font_family)
                for color in (style.text_color, style.background_color):
                    if color is not None and color not in colors:
                        colors.append(color)

        metadata = self._source_metadata
        if not metadata.font_table:
            metadata = metadata.with_fonts([DEFAULT_FONT_NAME])
        extended = metadata.with_fonts(fonts).with_colors(colors)
        added = len(extended.font_table) - len(metadata.font_table)
        if added:
            LOGGER.debug("Appended %d font(s) to the font table", added)
        return extended

    @staticmethod
    def _header(metadata: RtfMetadata) -> str:
        default_font = metadata.default_font()
        default_index = default_font.index if default_font is not None else 0
        parts = [f"{{\\rtf1\\ansi\\ansicpg1252\\deff{default_index}", "{\\fonttbl"]
        for font in metadata.font_table:
            entry = control_word("f", font.index)
            if font.family:
                entry += control_word("f" + font.family)
            if font.charset is not None:
                entry += control_word("fcharset", font.charset)
            parts.append(f"{{{entry} {escape_font_name(font.name)};}}")
        parts.append("}")
        if metadata.color_table:
            parts.append("{\\colortbl")
            for color in metadata.color_table:
                if color is not None:
                    parts.append(f"\\red{color.red}\\green{color.green}\\blue{color.blue}")
                parts.append(";")
            parts.append("}")
        parts.append("\n")
        return "".join(parts)

    # ------------------------------------------------------------------
    # Body
    def _paragraph(self, paragraph: Paragraph, metadata: RtfMetadata) -> str:
        parts: List[str] = []
        state = PLAIN_STYLE
        for run in coalesce_runs(paragraph.runs):
            words = self._transition(state, run.style, metadata)
            if words:
                parts.append("".join(words) + " ")
            parts.append(escape_text(run.text))
            state = run.style
        if state != PLAIN_STYLE:
            parts.append("\\plain")
        parts.append(_PARAGRAPH_END)
        return "".join(parts)

    def _transition(self, previous: RunStyle, style: RunStyle, metadata: RtfMetadata) -> List[str]:
        """Control words that turn ``previous`` formatting into ``style``."""
        words: List[str] = []
        # RTF cannot unset a font or size on its own; reset and rebuild instead.
        if (previous.font_size is not None and style.font_size is None) or (
            previous.font_family is not None and style.font_family is None
        ):
            words.append("\\plain")
            previous = PLAIN_STYLE

        words.extend(_toggle("b", previous.bold, style.bold))
        words.extend(_toggle("i", previous.italic, style.italic))
        if previous.underline != style.underline:
            words.append("\\ul" if style.underline else "\\ulnone")
        words.extend(_toggle("strike", previous.strikethrough, style.strikethrough))
        if (previous.superscript, previous.subscript) != (style.superscript, style.subscript):
            if style.superscript:
                words.append("\\super")
            elif style.subscript:
                words.append("\\sub")
            else:
                words.append("\\nosupersub")

        if style.font_family is not None and style.font_family != previous.font_family:
            words.append(control_word("f", metadata.index_of_font(style.font_family)))
        if style.font_size is not None and style.font_size != previous.font_size:
            words.append(control_word("fs", points_to_half_points(style.font_size)))
        if style.text_color != previous.text_color:
            words.append(control_word("cf", _color_index(metadata, style.text_color)))
        if style.background_color != previous.background_color:
            words.append(control_word("highlight", _color_index(metadata, style.background_color)))
        return words


def _validate_font_name(name: str, where: str) -> None:
    if not name.strip():
        raise SerializationError(f"{where}: font family name is empty")
    if FONT_NAME_RESERVED.intersection(name):
        raise SerializationError(f"{where}: font family name {name!r} contains a reserved character")


def _toggle(word: str, was_on: bool, is_on: bool) -> Iterable[str]:
    if was_on == is_on:
        return ()
    return (control_word(word) if is_on else control_word(word, 0),)


def _color_index(metadata: RtfMetadata, color: Optional[RtfColor]) -> int:
    if color is None:
        return 0
    return metadata.index_of_color(color, start=1)


def serialize_rtf(paragraphs: Sequence[Paragraph], metadata: Optional[RtfMetadata] = None) -> str:
    """Convenience wrapper around :meth:`RtfWriter.convert`."""
    return RtfWriter(paragraphs, metadata).convert()
