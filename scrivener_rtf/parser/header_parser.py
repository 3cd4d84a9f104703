"""Extract the font table, color table, and default font from an RTF header."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from scrivener_rtf.model.elements import RtfColor
from scrivener_rtf.model.metadata import RtfFont, RtfMetadata
from scrivener_rtf.parser.tokenizer import RtfToken, TokenKind
from scrivener_rtf.utils.encoding import decode_cp1252_byte
from scrivener_rtf.utils.logger import get_logger

LOGGER = get_logger(__name__)

FONT_FAMILIES = {
    "fnil": "nil",
    "froman": "roman",
    "fswiss": "swiss",
    "fmodern": "modern",
    "fscript": "script",
    "fdecor": "decor",
    "ftech": "tech",
    "fbidi": "bidi",
}


@dataclass(slots=True)
class _FontEntry:
    index: int
    family: Optional[str] = None
    charset: Optional[int] = None
    name_parts: List[str] = field(default_factory=list)

    def build(self) -> Optional[RtfFont]:
        name = "".join(self.name_parts).strip()
        if not name:
            return None
        return RtfFont(index=self.index, name=name, family=self.family, charset=self.charset)


class HeaderParser:
    """Parses header tables independently of the document body."""

    def __init__(self, tokens: Sequence[RtfToken]) -> None:
        self._tokens = tokens

    def parse(self) -> RtfMetadata:
        metadata = RtfMetadata(
            font_table=self._parse_font_table(),
            color_table=self._parse_color_table(),
            default_font_index=self._find_default_font(),
        )
        LOGGER.debug(
            "Parsed RTF header: %d fonts, %d colors, default font %d",
            len(metadata.font_table),
            len(metadata.color_table),
            metadata.default_font_index,
        )
        return metadata

    def _find_default_font(self) -> int:
        for token in self._tokens:
            if token.kind is TokenKind.CONTROL_WORD and token.word == "deff" and token.param is not None:
                return token.param
            if token.kind is TokenKind.TEXT and token.raw.strip():
                break
        return 0

    def _group_contents(self, destination: str) -> Optional[Tuple[int, int]]:
        """Token range inside the first group whose destination word is ``destination``."""
        tokens = self._tokens
        for index, token in enumerate(tokens):
            if token.kind is not TokenKind.GROUP_START:
                continue
            first = index + 1
            while first < len(tokens) and tokens[first].kind is TokenKind.TEXT and not tokens[first].raw.strip():
                first += 1
            if first >= len(tokens) or tokens[first].word != destination:
                continue
            depth = 1
            for end in range(first + 1, len(tokens)):
                kind = tokens[end].kind
                if kind is TokenKind.GROUP_START:
                    depth += 1
                elif kind is TokenKind.GROUP_END:
                    depth -= 1
                    if depth == 0:
                        return first + 1, end
            return first + 1, len(tokens)
        return None

    def _parse_font_table(self) -> List[RtfFont]:
        bounds = self._group_contents("fonttbl")
        if bounds is None:
            return []

        fonts: List[RtfFont] = []
        current: Optional[_FontEntry] = None
        depth = 0
        skip_depth: Optional[int] = None

        def finish() -> None:
            nonlocal current
            if current is not None:
                font = current.build()
                if font is not None:
                    fonts.append(font)
            current = None

        for token in self._tokens[bounds[0]:bounds[1]]:
            kind = token.kind
            if kind is TokenKind.GROUP_START:
                depth += 1
                if skip_depth is None and depth >= 2:
                    skip_depth = depth
                continue
            if kind is TokenKind.GROUP_END:
                if skip_depth is not None and depth == skip_depth:
                    skip_depth = None
                depth -= 1
                if depth == 0:
                    finish()
                continue
            if skip_depth is not None:
                continue
            if kind is TokenKind.CONTROL_SYMBOL and token.symbol == "*":
                skip_depth = depth
                continue
            if kind is TokenKind.CONTROL_WORD:
                if token.word == "f" and token.param is not None:
                    finish()
                    current = _FontEntry(index=token.param)
                elif current is not None and token.word in FONT_FAMILIES:
                    current.family = FONT_FAMILIES[token.word]
                elif current is not None and token.word == "fcharset":
                    current.charset = token.param
                continue
            if current is None:
                continue
            if kind is TokenKind.HEX_ESCAPE:
                current.name_parts.append(decode_cp1252_byte(token.hex_value or 0))
            elif kind is TokenKind.TEXT:
                for char in token.raw:
                    if char == ";":
                        finish()
                        break
                    if char not in "\r\n":
                        current.name_parts.append(char)
        finish()
        return fonts

    def _parse_color_table(self) -> List[Optional[RtfColor]]:
        bounds = self._group_contents("colortbl")
        if bounds is None:
            return []

        colors: List[Optional[RtfColor]] = []
        components: dict = {}
        for token in self._tokens[bounds[0]:bounds[1]]:
            if token.kind is TokenKind.CONTROL_WORD and token.word in ("red", "green", "blue"):
                components[token.word] = max(0, min(255, token.param or 0))
            elif token.kind is TokenKind.TEXT:
                for _ in range(token.raw.count(";")):
                    colors.append(self._build_color(components))
                    components = {}
        if components:
            colors.append(self._build_color(components))
        return colors

    @staticmethod
    def _build_color(components: dict) -> Optional[RtfColor]:
        if not components:
            return None
        return RtfColor(components.get("red", 0), components.get("green", 0), components.get("blue", 0))
