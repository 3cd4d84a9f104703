"""In-memory representation of styled paragraphs and runs."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Iterable, List, Optional, Sequence


@dataclass(frozen=True, slots=True)
class RtfColor:
    """An opaque RGB color as stored in an RTF color table."""

    red: int
    green: int
    blue: int

    def to_hex(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"

    @classmethod
    def from_hex(cls, value: str) -> "RtfColor":
        """Build a color from ``#rrggbb`` notation."""
        digits = value.lstrip("#")
        if len(digits) != 6:
            raise ValueError(f"Expected #rrggbb color, got {value!r}")
        return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


BLACK = RtfColor(0, 0, 0)


@dataclass(frozen=True, slots=True)
class RunStyle:
    """Character formatting shared by every character of a run.

    Font family and colors hold resolved values rather than table indices so
    that a style survives being moved between documents with different tables.
    """

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikethrough: bool = False
    superscript: bool = False
    subscript: bool = False
    font_family: Optional[str] = None
    font_size: Optional[float] = None
    text_color: Optional[RtfColor] = None
    background_color: Optional[RtfColor] = None

    @property
    def has_formatting(self) -> bool:
        return self != PLAIN_STYLE

    def merged(self, **changes: object) -> "RunStyle":
        """Return a copy with the given attributes replaced."""
        return replace(self, **changes)

    def active_attributes(self) -> dict:
        """Attributes that differ from the plain style, keyed by field name."""
        return {
            item.name: getattr(self, item.name)
            for item in fields(self)
            if getattr(self, item.name) != getattr(PLAIN_STYLE, item.name)
        }


PLAIN_STYLE = RunStyle()


@dataclass(slots=True)
class StyledRun:
    """A contiguous span of text carrying one set of formatting attributes."""

    text: str
    style: RunStyle = field(default_factory=RunStyle)


@dataclass(slots=True)
class Paragraph:
    """One block of the document, made of ordered, non-overlapping runs."""

    runs: List[StyledRun] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str, style: Optional[RunStyle] = None) -> "Paragraph":
        if not text:
            return cls()
        return cls([StyledRun(text, style or PLAIN_STYLE)])

    @classmethod
    def from_char_styles(cls, text: str, styles: Sequence[RunStyle]) -> "Paragraph":
        """Rebuild runs from a per-character style list."""
        if len(text) != len(styles):
            raise ValueError("text and style list must have the same length")
        runs: List[StyledRun] = []
        for char, style in zip(text, styles):
            if runs and runs[-1].style == style:
                runs[-1].text += char
            else:
                runs.append(StyledRun(char, style))
        return cls(runs)

    @property
    def plain_text(self) -> str:
        return "".join(run.text for run in self.runs)

    @property
    def length(self) -> int:
        return sum(len(run.text) for run in self.runs)

    @property
    def is_empty(self) -> bool:
        return self.length == 0

    def char_styles(self) -> List[RunStyle]:
        """Expand the runs into one style per character."""
        styles: List[RunStyle] = []
        for run in self.runs:
            styles.extend([run.style] * len(run.text))
        return styles

    def style_at(self, offset: int) -> RunStyle:
        """Style a character typed at ``offset`` would inherit."""
        styles = self.char_styles()
        if not styles:
            return self.runs[0].style if self.runs else PLAIN_STYLE
        if offset <= 0:
            return styles[0]
        return styles[min(offset, len(styles)) - 1]

    def normalized(self) -> "Paragraph":
        return Paragraph(coalesce_runs(self.runs))

    def copy(self) -> "Paragraph":
        return Paragraph([StyledRun(run.text, run.style) for run in self.runs])

    # ------------------------------------------------------------------
    # Editing helpers
    def insert_text(self, offset: int, text: str, style: Optional[RunStyle] = None) -> None:
        """Insert text at ``offset``, inheriting the preceding character's style by default."""
        self._check_offset(offset)
        if "\n" in text or "\r" in text:
            raise ValueError("Paragraph text cannot contain line breaks; split the paragraph instead")
        if not text:
            return
        inserted_style = style if style is not None else self.style_at(offset)
        styles = self.char_styles()
        plain = self.plain_text
        new_styles = styles[:offset] + [inserted_style] * len(text) + styles[offset:]
        self.runs = Paragraph.from_char_styles(plain[:offset] + text + plain[offset:], new_styles).runs

    def delete_range(self, start: int, end: int) -> None:
        self._check_range(start, end)
        styles = self.char_styles()
        plain = self.plain_text
        self.runs = Paragraph.from_char_styles(plain[:start] + plain[end:], styles[:start] + styles[end:]).runs

    def apply_style(self, start: int, end: int, **changes: object) -> None:
        """Set the given attributes on every character in ``[start, end)``."""
        self._check_range(start, end)
        styles = self.char_styles()
        for index in range(start, end):
            styles[index] = styles[index].merged(**changes)
        self.runs = Paragraph.from_char_styles(self.plain_text, styles).runs

    def split_at(self, offset: int) -> "Paragraph":
        """Cut the paragraph at ``offset``; ``self`` keeps the head and the tail is returned."""
        self._check_offset(offset)
        styles = self.char_styles()
        plain = self.plain_text
        tail = Paragraph.from_char_styles(plain[offset:], styles[offset:])
        self.runs = Paragraph.from_char_styles(plain[:offset], styles[:offset]).runs
        return tail

    def _check_offset(self, offset: int) -> None:
        if not 0 <= offset <= self.length:
            raise IndexError(f"offset {offset} outside paragraph of length {self.length}")

    def _check_range(self, start: int, end: int) -> None:
        if not 0 <= start <= end <= self.length:
            raise IndexError(f"range [{start}, {end}) outside paragraph of length {self.length}")


def coalesce_runs(runs: Iterable[StyledRun]) -> List[StyledRun]:
    """Drop empty runs and merge neighbours that share a style."""
    merged: List[StyledRun] = []
    for run in runs:
        if not run.text:
            continue
        if merged and merged[-1].style == run.style:
            merged[-1] = StyledRun(merged[-1].text + run.text, run.style)
        else:
            merged.append(StyledRun(run.text, run.style))
    return merged
