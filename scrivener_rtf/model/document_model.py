"""Aggregate model combining paragraphs, tables, and style-tag annotations."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from scrivener_rtf.model.elements import Paragraph
from scrivener_rtf.model.metadata import RtfMetadata
from scrivener_rtf.model.style_model import StyleTagAnnotation


@dataclass(slots=True)
class RtfDocument:
    """Parsed document representation handed between parser, writer, and session."""

    paragraphs: List[Paragraph]
    metadata: RtfMetadata = field(default_factory=RtfMetadata.empty)
    annotations: List[StyleTagAnnotation] = field(default_factory=list)

    @property
    def plain_text(self) -> str:
        """Newline-joined paragraph texts, for search, word counts, and spell checking."""
        return "\n".join(paragraph.plain_text for paragraph in self.paragraphs)

    @property
    def is_empty(self) -> bool:
        return all(paragraph.is_empty for paragraph in self.paragraphs)
