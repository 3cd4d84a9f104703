"""Recognise, strip, and re-insert Scrivener style tags.

Scrivener embeds compile-time style markers such as ``<$Scr_Cs::2>`` (start
of character style 2) and ``<!$Scr_Ps::0>`` (end of paragraph style 0) as
literal text. They are removed from the visible text and recorded as
annotations. The annotations carry text offsets, so they are only valid
until the paragraph text is edited.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from scrivener_rtf.model.document_model import RtfDocument
from scrivener_rtf.model.elements import Paragraph, RunStyle
from scrivener_rtf.model.style_model import (
    ScrivenerStyleCatalog,
    ScrivenerStyleTag,
    StyleTagAnnotation,
    StyleTagType,
)
from scrivener_rtf.utils.logger import get_logger

LOGGER = get_logger(__name__)

TAG_PATTERN = re.compile(r"<(!?)\$Scr_(Ps|Cs)::(\d+)>")


@dataclass(slots=True)
class DecodedText:
    """Text with every style tag removed."""

    clean_text: str
    tags: List[ScrivenerStyleTag] = field(default_factory=list)
    # clean-text offset -> tags removed at that offset, in source order
    tag_positions: Dict[int, List[ScrivenerStyleTag]] = field(default_factory=dict)

    @property
    def has_tags(self) -> bool:
        return bool(self.tags)


class ScrivenerStyleDecoder:
    """Parses style tags and applies the character styles they delimit."""

    def __init__(self, catalog: Optional[ScrivenerStyleCatalog] = None) -> None:
        self._catalog = catalog or ScrivenerStyleCatalog.builtin()

    @staticmethod
    def has_tags(text: str) -> bool:
        return TAG_PATTERN.search(text) is not None

    @staticmethod
    def parse_tags(text: str) -> List[ScrivenerStyleTag]:
        return [
            ScrivenerStyleTag(
                tag_type=StyleTagType(match.group(2)),
                style_index=int(match.group(3)),
                is_end=match.group(1) == "!",
                raw_tag=match.group(0),
                start_offset=match.start(),
                end_offset=match.end(),
            )
            for match in TAG_PATTERN.finditer(text)
        ]

    def decode(self, text: str) -> DecodedText:
        tags = self.parse_tags(text)
        if not tags:
            return DecodedText(clean_text=text)

        parts: List[str] = []
        positions: Dict[int, List[ScrivenerStyleTag]] = {}
        last_end = 0
        clean_offset = 0
        for tag in tags:
            parts.append(text[last_end:tag.start_offset])
            clean_offset += tag.start_offset - last_end
            positions.setdefault(clean_offset, []).append(tag)
            last_end = tag.end_offset
        parts.append(text[last_end:])
        return DecodedText(clean_text="".join(parts), tags=tags, tag_positions=positions)

    @staticmethod
    def encode(decoded: DecodedText) -> str:
        """Put the tags back at their recorded clean-text positions."""
        text = decoded.clean_text
        parts: List[str] = []
        last = 0
        for position in sorted(decoded.tag_positions):
            position = max(0, min(position, len(text)))
            parts.append(text[last:position])
            parts.extend(tag.raw_tag for tag in decoded.tag_positions[position])
            last = position
        parts.append(text[last:])
        return "".join(parts)

    # ------------------------------------------------------------------
    # Paragraph-level decoding
    def decode_paragraphs(
        self, paragraphs: Sequence[Paragraph]
    ) -> Tuple[List[Paragraph], List[StyleTagAnnotation]]:
        """Strip tags from each paragraph and apply the character styles they mark."""
        decoded_paragraphs: List[Paragraph] = []
        annotations: List[StyleTagAnnotation] = []
        for index, paragraph in enumerate(paragraphs):
            text = paragraph.plain_text
            decoded = self.decode(text)
            if not decoded.has_tags:
                decoded_paragraphs.append(paragraph)
                continue

            styles = paragraph.char_styles()
            removed = set()
            for tag in decoded.tags:
                removed.update(range(tag.start_offset, tag.end_offset))
            kept = [style for offset, style in enumerate(styles) if offset not in removed]
            self._apply_character_styles(decoded, kept)
            decoded_paragraphs.append(Paragraph.from_char_styles(decoded.clean_text, kept))

            for clean_offset, tags in sorted(decoded.tag_positions.items()):
                annotations.extend(StyleTagAnnotation(index, tag, clean_offset) for tag in tags)

        if annotations:
            LOGGER.debug("Stripped %d Scrivener style tag(s)", len(annotations))
        return decoded_paragraphs, annotations

    def _apply_character_styles(self, decoded: DecodedText, styles: List[RunStyle]) -> None:
        open_styles: Dict[int, int] = {}
        for position in sorted(decoded.tag_positions):
            for tag in decoded.tag_positions[position]:
                if tag.tag_type is not StyleTagType.CHARACTER_STYLE:
                    continue
                if not tag.is_end:
                    open_styles[tag.style_index] = position
                    continue
                start = open_styles.pop(tag.style_index, None)
                if start is not None and position > start:
                    self._style_range(tag.style_index, styles, start, position)
        for style_index, start in open_styles.items():
            self._style_range(style_index, styles, start, len(styles))

    def _style_range(self, style_index: int, styles: List[RunStyle], start: int, end: int) -> None:
        definition = self._catalog.get_character_style(style_index)
        if definition is None:
            LOGGER.debug("Unknown Scrivener character style %d", style_index)
            return
        for offset in range(start, end):
            styles[offset] = definition.apply_to(styles[offset])

    # ------------------------------------------------------------------
    # Re-insertion
    def restore_paragraphs(
        self, paragraphs: Sequence[Paragraph], annotations: Sequence[StyleTagAnnotation]
    ) -> List[Paragraph]:
        """Re-insert tags at their visible offsets.

        Only meaningful while the text is unchanged since decoding.
        """
        by_paragraph: Dict[int, List[StyleTagAnnotation]] = {}
        for annotation in annotations:
            by_paragraph.setdefault(annotation.paragraph_index, []).append(annotation)

        restored: List[Paragraph] = []
        for index, paragraph in enumerate(paragraphs):
            pending = by_paragraph.get(index)
            if not pending:
                restored.append(paragraph)
                continue
            text = paragraph.plain_text
            styles = paragraph.char_styles()
            chars: List[str] = []
            char_styles: List[RunStyle] = []
            positions: Dict[int, List[StyleTagAnnotation]] = {}
            for annotation in pending:
                positions.setdefault(min(annotation.clean_offset, len(text)), []).append(annotation)
            for offset in range(len(text) + 1):
                for annotation in positions.get(offset, []):
                    raw = annotation.tag.raw_tag
                    chars.append(raw)
                    char_styles.extend([paragraph.style_at(offset)] * len(raw))
                if offset < len(text):
                    chars.append(text[offset])
                    char_styles.append(styles[offset])
            restored.append(Paragraph.from_char_styles("".join(chars), char_styles))
        return restored


def decode_document_tags(
    document: RtfDocument, decoder: Optional[ScrivenerStyleDecoder] = None
) -> RtfDocument:
    """Return a copy of ``document`` with style tags stripped and annotated."""
    decoder = decoder or ScrivenerStyleDecoder()
    paragraphs, annotations = decoder.decode_paragraphs(document.paragraphs)
    return RtfDocument(paragraphs=paragraphs, metadata=document.metadata, annotations=annotations)
