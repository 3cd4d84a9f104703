"""Character-set helpers for legacy RTF content."""
from __future__ import annotations

from typing import Union

from scrivener_rtf.utils.logger import get_logger

LOGGER = get_logger(__name__)

# Windows-1252 code points for the 0x80-0x9F range; every other byte maps to
# the Latin-1 code point of the same value.
CP1252_HIGH_BYTES = {
    0x80: 0x20AC, 0x82: 0x201A, 0x83: 0x0192, 0x84: 0x201E,
    0x85: 0x2026, 0x86: 0x2020, 0x87: 0x2021, 0x88: 0x02C6,
    0x89: 0x2030, 0x8A: 0x0160, 0x8B: 0x2039, 0x8C: 0x0152,
    0x8E: 0x017D, 0x91: 0x2018, 0x92: 0x2019, 0x93: 0x201C,
    0x94: 0x201D, 0x95: 0x2022, 0x96: 0x2013, 0x97: 0x2014,
    0x98: 0x02DC, 0x99: 0x2122, 0x9A: 0x0161, 0x9B: 0x203A,
    0x9C: 0x0153, 0x9E: 0x017E, 0x9F: 0x0178,
}


def decode_cp1252_byte(value: int) -> str:
    """Decode a single ``\\'hh`` escape value."""
    return chr(CP1252_HIGH_BYTES.get(value, value))


def decode_rtf_bytes(data: Union[bytes, bytearray, str]) -> str:
    """Return RTF source as text, accepting raw bytes from storage."""
    if isinstance(data, str):
        return data
    raw = bytes(data)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        LOGGER.debug("RTF bytes are not UTF-8; decoding as Windows-1252")
        return "".join(decode_cp1252_byte(byte) for byte in raw)


def to_utf16_units(char: str) -> list[int]:
    """Split a character into the UTF-16 code units RTF ``\\u`` escapes use."""
    code_point = ord(char)
    if code_point <= 0xFFFF:
        return [code_point]
    code_point -= 0x10000
    return [0xD800 + (code_point >> 10), 0xDC00 + (code_point & 0x3FF)]


def signed_utf16(unit: int) -> int:
    """RTF writes ``\\u`` parameters as signed 16-bit integers."""
    return unit - 0x10000 if unit > 0x7FFF else unit
