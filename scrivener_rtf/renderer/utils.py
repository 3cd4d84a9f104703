"""Common helpers shared by the RTF writer and the plain-text converters."""
from __future__ import annotations

from typing import Optional

from scrivener_rtf.utils.encoding import signed_utf16, to_utf16_units

_LITERAL_ESCAPES = {"\\": "\\\\", "{": "\\{", "}": "\\}"}

# Characters that delimit entries or groups inside the font table.
FONT_NAME_RESERVED = frozenset(";{}\\")


def control_word(word: str, param: Optional[int] = None) -> str:
    """Format ``\\word`` or ``\\wordN``."""
    return f"\\{word}" if param is None else f"\\{word}{param}"


def escape_text(text: str) -> str:
    """Escape run text so the RTF tokenizer reads it back unchanged.

    Printable ASCII is written verbatim; everything else becomes ``\\uN?``
    with ``?`` as the one-character ANSI fallback.
    """
    parts = []
    for char in text:
        if char in _LITERAL_ESCAPES:
            parts.append(_LITERAL_ESCAPES[char])
        elif char == "\t":
            parts.append("\\tab ")
        elif " " <= char <= "~":
            parts.append(char)
        else:
            parts.extend(f"\\u{signed_utf16(unit)}?" for unit in to_utf16_units(char))
    return "".join(parts)


def escape_font_name(name: str) -> str:
    """Escape a font table name.

    Names containing :data:`FONT_NAME_RESERVED` characters cannot be written
    and raise ``ValueError``; the writer rejects them before this point.
    """
    reserved = FONT_NAME_RESERVED.intersection(name)
    if reserved:
        raise ValueError(f"font name {name!r} contains reserved character(s) {''.join(sorted(reserved))!r}")
    parts = []
    for char in name:
        if " " <= char <= "~":
            parts.append(char)
        else:
            try:
                encoded = char.encode("cp1252")
            except UnicodeEncodeError:
                parts.append("?")
                continue
            parts.append(f"\\'{encoded[0]:02x}")
    return "".join(parts)
