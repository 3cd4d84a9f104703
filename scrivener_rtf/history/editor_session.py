"""Editing session owning the live paragraph model and its history."""
from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Sequence, Union

from scrivener_rtf.errors import PlainTextEditError, SerializationError
from scrivener_rtf.history.edit_history import DEFAULT_HISTORY_LIMIT, EditHistory
from scrivener_rtf.model.elements import Paragraph, RunStyle
from scrivener_rtf.model.metadata import RtfMetadata
from scrivener_rtf.model.style_model import StyleTagAnnotation
from scrivener_rtf.parser.plain_text import normalize_newlines, update_rtf_plain_text_preserving_formatting
from scrivener_rtf.parser.rtf_parser import parse_rtf
from scrivener_rtf.parser.style_tags import ScrivenerStyleDecoder
from scrivener_rtf.renderer.rtf_writer import RtfWriter
from scrivener_rtf.utils.logger import get_logger

LOGGER = get_logger(__name__)

ChangeCallback = Callable[[str], None]


class SpellChecker(Protocol):
    def check_text(self, text: str) -> object:
        ...


class EditorSession:
    """One open document: paragraphs, header tables, annotations, history.

    Callers either use the editing helpers or mutate :attr:`paragraphs`
    directly and then call :meth:`document_changed`.
    """

    def __init__(
        self,
        source: Union[str, bytes] = "",
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        on_change: Optional[ChangeCallback] = None,
        spell_checker: Optional[SpellChecker] = None,
        decode_style_tags: bool = True,
    ) -> None:
        self._history = EditHistory(history_limit)
        self._on_change = on_change
        self._spell_checker = spell_checker
        self._decode_style_tags = decode_style_tags
        self._paragraphs: List[Paragraph] = []
        self._metadata = RtfMetadata.empty()
        self._annotations: List[StyleTagAnnotation] = []
        self._edited = False
        self.spell_check_result: object = None
        self.load(source)

    # ------------------------------------------------------------------
    # Document switching
    def load(self, source: Union[str, bytes]) -> None:
        """Replace the document; history and annotations start over."""
        document = parse_rtf(source, decode_style_tags=self._decode_style_tags)
        self._paragraphs = document.paragraphs
        self._metadata = document.metadata
        self._annotations = list(document.annotations)
        self._edited = False
        self._history.reset(self.rtf)
        LOGGER.debug(
            "Loaded document with %d paragraph(s) and %d style tag(s)",
            len(self._paragraphs),
            len(self._annotations),
        )

    # ------------------------------------------------------------------
    # State
    @property
    def paragraphs(self) -> List[Paragraph]:
        return self._paragraphs

    @property
    def metadata(self) -> RtfMetadata:
        return self._metadata

    @property
    def annotations(self) -> List[StyleTagAnnotation]:
        return list(self._annotations)

    @property
    def history(self) -> EditHistory:
        return self._history

    @property
    def plain_text(self) -> str:
        return "\n".join(paragraph.plain_text for paragraph in self._paragraphs)

    @property
    def rtf(self) -> str:
        """Serialization of the current model."""
        writer = RtfWriter(self._paragraphs, self._metadata)
        rtf = writer.convert()
        self._metadata = writer.metadata
        return rtf

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    @property
    def is_edited(self) -> bool:
        return self._edited

    # ------------------------------------------------------------------
    # Change notification
    def document_changed(self) -> str:
        """Record the current model after the caller mutated it.

        Returns the new serialization. Nothing is recorded while history is
        replaying a snapshot or when the serialization did not change.
        """
        rtf = self.rtf
        if not self._history.record(rtf):
            return rtf
        self._mark_edited()
        self._notify(rtf)
        return rtf

    def _notify(self, rtf: str) -> None:
        if self._on_change is not None:
            self._on_change(rtf)
        if self._spell_checker is not None:
            self.spell_check_result = self._spell_checker.check_text(self.plain_text)

    def _mark_edited(self) -> None:
        if self._edited:
            return
        self._edited = True
        if self._annotations:
            LOGGER.warning(
                "Discarding %d Scrivener style tag annotation(s); offsets are stale after editing",
                len(self._annotations),
            )
            self._annotations = []

    # ------------------------------------------------------------------
    # Undo / redo
    def undo(self) -> bool:
        return self._replay(self._history.undo)

    def redo(self) -> bool:
        return self._replay(self._history.redo)

    def _replay(self, step: Callable[[str, Callable[[str], None]], bool]) -> bool:
        if not step(self.rtf, self._restore):
            return False
        self._mark_edited()
        self._notify(self._history.last_saved)
        return True

    def _restore(self, snapshot: str) -> None:
        # Strict parsing raises before any state is replaced.
        document = parse_rtf(snapshot, decode_style_tags=False, strict=True)
        self._paragraphs = document.paragraphs
        self._metadata = document.metadata

    # ------------------------------------------------------------------
    # Editing helpers
    def insert_text(
        self, paragraph_index: int, offset: int, text: str, style: Optional[RunStyle] = None
    ) -> str:
        """Insert text; line breaks in ``text`` split the paragraph."""
        paragraph = self._paragraph(paragraph_index)
        lines = normalize_newlines(text).split("\n")
        inserted_style = style if style is not None else paragraph.style_at(offset)

        def change() -> None:
            paragraph.insert_text(offset, lines[0], inserted_style)
            index, position = paragraph_index, offset + len(lines[0])
            for line in lines[1:]:
                tail = self._paragraphs[index].split_at(position)
                index += 1
                self._paragraphs.insert(index, tail)
                tail.insert_text(0, line, inserted_style)
                position = len(line)

        return self._apply_edit(change)

    def delete_range(self, paragraph_index: int, start: int, end: int) -> str:
        paragraph = self._paragraph(paragraph_index)
        return self._apply_edit(lambda: paragraph.delete_range(start, end))

    def apply_style(self, paragraph_index: int, start: int, end: int, **changes: object) -> str:
        paragraph = self._paragraph(paragraph_index)
        return self._apply_edit(lambda: paragraph.apply_style(start, end, **changes))

    def split_paragraph(self, paragraph_index: int, offset: int) -> str:
        paragraph = self._paragraph(paragraph_index)

        def change() -> None:
            self._paragraphs.insert(paragraph_index + 1, paragraph.split_at(offset))

        return self._apply_edit(change)

    def replace_paragraphs(self, paragraphs: Sequence[Paragraph]) -> str:
        replacement = [paragraph.copy() for paragraph in paragraphs] or [Paragraph()]

        def change() -> None:
            self._paragraphs = replacement

        return self._apply_edit(change)

    def _apply_edit(self, change: Callable[[], None]) -> str:
        """Run ``change`` and record it; an unwritable result is rolled back."""
        before = [paragraph.copy() for paragraph in self._paragraphs]
        metadata = self._metadata
        try:
            change()
            return self.document_changed()
        except SerializationError:
            self._paragraphs = before
            self._metadata = metadata
            raise

    def set_plain_text(self, text: str) -> str:
        """Replace the visible text, keeping the formatting of unchanged spans."""
        # Every serialized paragraph ends with \par, hence the trailing newline.
        desired = normalize_newlines(text) + "\n"
        current = self.rtf

        def change() -> None:
            try:
                updated = update_rtf_plain_text_preserving_formatting(current, desired)
            except PlainTextEditError as exc:
                LOGGER.warning("Formatting could not be preserved for plain-text edit: %s", exc)
                self._paragraphs = [Paragraph.from_text(line) for line in desired[:-1].split("\n")]
            else:
                document = parse_rtf(updated, decode_style_tags=False)
                self._paragraphs = document.paragraphs
                self._metadata = document.metadata

        return self._apply_edit(change)

    def _paragraph(self, index: int) -> Paragraph:
        if not 0 <= index < len(self._paragraphs):
            raise IndexError(f"paragraph {index} outside document of {len(self._paragraphs)} paragraph(s)")
        return self._paragraphs[index]

    # ------------------------------------------------------------------
    # Export
    def export_rtf(self, restore_style_tags: bool = True) -> str:
        """Serialize for saving; Scrivener tags are restored only while unedited."""
        if restore_style_tags and self._annotations and not self._edited:
            decoder = ScrivenerStyleDecoder()
            paragraphs = decoder.restore_paragraphs(self._paragraphs, self._annotations)
            return RtfWriter(paragraphs, self._metadata).convert()
        return self.rtf
