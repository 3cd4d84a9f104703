"""Exceptions raised by the RTF conversion and history engine."""
from __future__ import annotations


class RtfError(Exception):
    """Base class for all engine errors."""


class MalformedRtfError(RtfError):
    """RTF input is structurally broken and strict parsing was requested."""


class SerializationError(RtfError, ValueError):
    """The paragraph model is in a state that cannot be written as RTF."""


class SnapshotRestoreError(RtfError):
    """A history snapshot could not be replayed; the document was left unchanged."""


class PlainTextEditError(RtfError, ValueError):
    """A plain-text edit could not be applied without disturbing the RTF structure."""
