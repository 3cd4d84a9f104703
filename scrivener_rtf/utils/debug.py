"""Persist parsed RTF documents as JSON for debugging."""
from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from scrivener_rtf.model.document_model import RtfDocument
from scrivener_rtf.model.elements import RtfColor


class DebugDumper:
    """Writes the paragraph model and header tables onto disk for inspection."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def dump(self, document: RtfDocument) -> Path:
        """Write ``rtf_document.json``; returns its path."""
        self.directory.mkdir(parents=True, exist_ok=True)
        payload: Dict[str, Any] = {"summary": self._summary(document)}
        payload.update(self._serialize(document))
        target = self.directory / "rtf_document.json"
        target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        return target

    @staticmethod
    def _summary(document: RtfDocument) -> Dict[str, Any]:
        return {
            "paragraphs": len(document.paragraphs),
            "runs": sum(len(paragraph.runs) for paragraph in document.paragraphs),
            "fonts": [font.name for font in document.metadata.font_table],
            "style_tags": len(document.annotations),
        }

    def _serialize(self, value: Any) -> Any:
        # Colors read better as #rrggbb than as component dicts.
        if isinstance(value, RtfColor):
            return value.to_hex()
        if isinstance(value, Enum):
            return value.value
        if is_dataclass(value) and not isinstance(value, type):
            return {item.name: self._serialize(getattr(value, item.name)) for item in fields(value)}
        if isinstance(value, dict):
            return {key: self._serialize(item) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._serialize(item) for item in value]
        return value
