"""Parse RTF into styled paragraphs and header metadata."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Union

from scrivener_rtf.errors import MalformedRtfError
from scrivener_rtf.model.document_model import RtfDocument
from scrivener_rtf.model.elements import BLACK, Paragraph, RunStyle, StyledRun
from scrivener_rtf.model.metadata import RtfMetadata
from scrivener_rtf.parser.header_parser import HeaderParser
from scrivener_rtf.parser.style_tags import decode_document_tags
from scrivener_rtf.parser.tokenizer import RtfToken, TokenKind, tokenize_rtf
from scrivener_rtf.utils.encoding import decode_cp1252_byte, decode_rtf_bytes
from scrivener_rtf.utils.logger import get_logger
from scrivener_rtf.utils.units import half_points_to_points

LOGGER = get_logger(__name__)

RTF_SIGNATURE = "{\\rtf"

IGNORED_DESTINATIONS = frozenset(
    {
        "fonttbl",
        "colortbl",
        "stylesheet",
        "info",
        "pict",
        "object",
        "datastore",
        "themedata",
        "colorschememapping",
        "latentstyles",
        "datafield",
        "formfield",
        "listtable",
        "listoverridetable",
        "generator",
        "header",
        "footer",
    }
)

# Control words that stand for a single character.
SYMBOL_WORDS = {
    "emdash": "—",
    "endash": "–",
    "lquote": "‘",
    "rquote": "’",
    "ldblquote": "“",
    "rdblquote": "”",
    "bullet": "•",
    "emspace": " ",
    "enspace": " ",
}

UNDERLINE_ON_WORDS = frozenset({"ul", "uld", "uldb", "uldash", "ulth", "ulw", "ulwave"})
PARAGRAPH_BREAK_WORDS = frozenset({"par", "line"})


@dataclass(slots=True)
class _FormatState:
    """Character formatting as RTF tracks it: table indices, not resolved values."""

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    superscript: bool = False
    subscript: bool = False
    font_size: Optional[float] = None
    font_index: Optional[int] = None
    color_index: Optional[int] = None
    highlight_index: Optional[int] = None

    def copy(self) -> "_FormatState":
        return replace(self)


class _ParagraphBuilder:
    """Accumulates characters into runs and runs into paragraphs."""

    def __init__(self) -> None:
        self.paragraphs: List[Paragraph] = []
        self._runs: List[StyledRun] = []
        self._chars: List[str] = []
        self._style: Optional[RunStyle] = None

    def append(self, char: str, style: RunStyle) -> None:
        if style != self._style:
            self._flush_run()
            self._style = style
        self._chars.append(char)

    def end_paragraph(self, allow_empty: bool) -> None:
        self._flush_run()
        if self._runs or allow_empty:
            self.paragraphs.append(Paragraph(self._runs))
        self._runs = []

    def _flush_run(self) -> None:
        if self._chars and self._style is not None:
            self._runs.append(StyledRun("".join(self._chars), self._style))
        self._chars = []


class _BodyReader:
    """State machine interpreting body tokens.

    A format state is pushed on ``{`` and popped on ``}``, which gives RTF's
    group-scoped formatting.
    """

    def __init__(self, metadata: RtfMetadata) -> None:
        self.metadata = metadata
        self.builder = _ParagraphBuilder()
        self.issues: List[str] = []
        self._state = _FormatState()
        self._state_stack: List[_FormatState] = []
        self._ignore_stack: List[bool] = []
        self._ignore_group = False
        self._group_start = False
        self._uc_skip = 1
        self._pending_skip = 0
        self._pending_high_surrogate: Optional[int] = None
        self._style: Optional[RunStyle] = None
        self._style_cache: Dict[tuple, RunStyle] = {}

    def feed(self, token: RtfToken) -> None:
        kind = token.kind
        if kind is TokenKind.GROUP_START:
            self._state_stack.append(self._state.copy())
            self._ignore_stack.append(self._ignore_group)
            self._group_start = True
        elif kind is TokenKind.GROUP_END:
            self._end_group()
        elif kind is TokenKind.TEXT:
            self._read_text(token.raw)
        elif kind is TokenKind.HEX_ESCAPE:
            self._emit(decode_cp1252_byte(token.hex_value or 0))
            self._group_start = False
        elif kind is TokenKind.CONTROL_SYMBOL:
            self._read_symbol(token)
            self._group_start = False
        else:
            self._read_control_word(token.word or "", token.param)
            self._group_start = False

    def finish(self) -> List[Paragraph]:
        if self._state_stack:
            self.issues.append(f"{len(self._state_stack)} unclosed group(s)")
        self._flush_surrogate()
        self.builder.end_paragraph(allow_empty=False)
        return self.builder.paragraphs

    # ------------------------------------------------------------------
    # Token handlers
    def _end_group(self) -> None:
        if self._state_stack:
            self._state = self._state_stack.pop()
            self._ignore_group = self._ignore_stack.pop()
        else:
            self.issues.append("unbalanced closing brace")
            self._ignore_group = False
        self._style = None
        self._group_start = False

    def _read_text(self, raw: str) -> None:
        for char in raw:
            if char in "\r\n\t":
                continue
            if self._group_start and char == " ":
                continue
            self._emit(char)
            self._group_start = False

    def _read_symbol(self, token: RtfToken) -> None:
        if token.is_truncated:
            self.issues.append("truncated control word at end of input")
            return
        symbol = token.symbol
        if symbol in ("\\", "{", "}"):
            self._emit(symbol)
        elif symbol == "~":
            self._emit(" ")
        elif symbol == "_":
            self._emit("-")
        elif symbol == "*":
            self._ignore_group = True
        elif symbol in ("\n", "\r"):
            # Cocoa RTF writes paragraph breaks as a backslash-newline.
            self._break_paragraph()
        else:
            LOGGER.debug("Skipping control symbol %r", token.raw)

    def _read_control_word(self, word: str, param: Optional[int]) -> None:
        if self._group_start and word in IGNORED_DESTINATIONS:
            self._ignore_group = True
            return

        if self._apply_formatting(word, param):
            self._style = None
            return

        if word in PARAGRAPH_BREAK_WORDS:
            self._break_paragraph()
        elif word == "tab":
            self._emit("\t", counts_as_ansi=False)
        elif word in SYMBOL_WORDS:
            self._emit(SYMBOL_WORDS[word])
        elif word == "uc" and param is not None:
            self._uc_skip = max(0, min(16, param))
        elif word == "u" and param is not None:
            unit = param + 65536 if param < 0 else param
            if 0 <= unit <= 0xFFFF:
                self._emit_utf16_unit(unit)
            else:
                LOGGER.debug("Ignoring out-of-range unicode escape \\u%d", param)
            self._pending_skip = self._uc_skip

    def _apply_formatting(self, word: str, param: Optional[int]) -> bool:
        """Update the format state; returns False when ``word`` is not a formatting word."""
        state = self._state
        if word == "b":
            state.bold = param != 0
        elif word == "i":
            state.italic = param != 0
        elif word in UNDERLINE_ON_WORDS:
            state.underline = param != 0
        elif word == "ulnone":
            state.underline = False
        elif word == "strike":
            state.strikethrough = param != 0
        elif word == "super":
            state.superscript, state.subscript = True, False
        elif word == "sub":
            state.subscript, state.superscript = True, False
        elif word == "nosupersub":
            state.superscript = state.subscript = False
        elif word == "fs":
            # Non-positive or missing sizes mean no size.
            state.font_size = half_points_to_points(param) if param is not None and param > 0 else None
        elif word == "f":
            if param is not None:
                state.font_index = param
        elif word == "cf":
            state.color_index = param
        elif word in ("highlight", "cb"):
            state.highlight_index = param
        elif word == "plain":
            self._state = _FormatState()
        else:
            return False
        return True

    # ------------------------------------------------------------------
    # Character emission
    def _break_paragraph(self) -> None:
        if self._ignore_group:
            return
        self._flush_surrogate()
        self.builder.end_paragraph(allow_empty=True)

    def _emit(self, char: str, counts_as_ansi: bool = True) -> None:
        if counts_as_ansi and self._pending_skip > 0:
            self._pending_skip -= 1
            return
        if self._ignore_group:
            return
        self._flush_surrogate()
        self.builder.append(char, self._current_style())

    def _emit_utf16_unit(self, unit: int) -> None:
        if self._ignore_group:
            return
        if 0xDC00 <= unit <= 0xDFFF and self._pending_high_surrogate is not None:
            high = self._pending_high_surrogate
            self._pending_high_surrogate = None
            code_point = 0x10000 + ((high - 0xD800) << 10) + (unit - 0xDC00)
            self.builder.append(chr(code_point), self._current_style())
            return
        self._flush_surrogate()
        if 0xD800 <= unit <= 0xDBFF:
            self._pending_high_surrogate = unit
        elif 0xDC00 <= unit <= 0xDFFF:
            self.builder.append("�", self._current_style())
        else:
            self.builder.append(chr(unit), self._current_style())

    def _flush_surrogate(self) -> None:
        if self._pending_high_surrogate is not None:
            self._pending_high_surrogate = None
            self.builder.append("�", self._current_style())

    def _current_style(self) -> RunStyle:
        if self._style is None:
            state = self._state
            key = (
                state.bold,
                state.italic,
                state.underline,
                state.strikethrough,
                state.superscript,
                state.subscript,
                state.font_size,
                state.font_index,
                state.color_index,
                state.highlight_index,
            )
            style = self._style_cache.get(key)
            if style is None:
                style = RunStyle(
                    bold=state.bold,
                    italic=state.italic,
                    underline=state.underline,
                    strikethrough=state.strikethrough,
                    superscript=state.superscript,
                    subscript=state.subscript,
                    font_family=self.metadata.resolve_font(state.font_index),
                    font_size=state.font_size,
                    text_color=self.metadata.resolve_color(state.color_index, fallback=BLACK),
                    background_color=self.metadata.resolve_color(state.highlight_index),
                )
                self._style_cache[key] = style
            self._style = style
        return self._style


class RtfParser:
    """Converts RTF source into an :class:`RtfDocument`.

    Lenient by default: malformed input is recovered and logged. With
    ``strict=True`` structural problems raise :class:`MalformedRtfError`.
    """

    def __init__(self, source: Union[str, bytes], *, strict: bool = False) -> None:
        self._rtf = decode_rtf_bytes(source)
        self._strict = strict

    @property
    def is_rtf(self) -> bool:
        return self._rtf.lstrip().startswith(RTF_SIGNATURE)

    def parse_header(self) -> RtfMetadata:
        """Extract font and color tables without converting the body."""
        if not self.is_rtf:
            return RtfMetadata.empty()
        return HeaderParser(tokenize_rtf(self._rtf)).parse()

    def parse(self) -> RtfDocument:
        if not self.is_rtf:
            if self._strict:
                raise MalformedRtfError("Input does not start with an {\\rtf header")
            return RtfDocument(paragraphs=self._parse_plain_text())

        tokens = tokenize_rtf(self._rtf)
        metadata = HeaderParser(tokens).parse()
        reader = _BodyReader(metadata)
        for token in tokens:
            reader.feed(token)
        paragraphs = reader.finish()

        if reader.issues:
            message = "; ".join(reader.issues)
            if self._strict:
                raise MalformedRtfError(message)
            LOGGER.warning("Recovered from malformed RTF: %s", message)

        if not paragraphs:
            paragraphs = [Paragraph()]
        return RtfDocument(paragraphs=paragraphs, metadata=metadata)

    def _parse_plain_text(self) -> List[Paragraph]:
        text = self._rtf.replace("\r\n", "\n").replace("\r", "\n")
        if text.endswith("\n"):
            text = text[:-1]
        return [Paragraph.from_text(line) for line in text.split("\n")]


def parse_rtf(
    source: Union[str, bytes],
    *,
    decode_style_tags: bool = True,
    strict: bool = False,
) -> RtfDocument:
    """Parse RTF and, by default, strip Scrivener style tags from the visible text."""
    document = RtfParser(source, strict=strict).parse()
    if decode_style_tags:
        document = decode_document_tags(document)
    return document
