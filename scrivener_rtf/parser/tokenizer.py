"""Split RTF source into group, control, and text tokens."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

_TEXT_PATTERN = re.compile(r"[^{}\\]+")
_CONTROL_WORD_PATTERN = re.compile(r"([A-Za-z]+)([-+]?\d+)? ?")
_HEX_ESCAPE_PATTERN = re.compile(r"'([0-9A-Fa-f]{2})")


class TokenKind(Enum):
    GROUP_START = "group_start"
    GROUP_END = "group_end"
    CONTROL_WORD = "control_word"
    CONTROL_SYMBOL = "control_symbol"
    HEX_ESCAPE = "hex_escape"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class RtfToken:
    """One lexical unit of an RTF stream.

    ``raw`` is the exact source slice, so joining every token's ``raw``
    reproduces the input.
    """

    kind: TokenKind
    raw: str
    offset: int
    word: Optional[str] = None
    param: Optional[int] = None

    @property
    def symbol(self) -> Optional[str]:
        """The character after the backslash of a control symbol."""
        if self.kind is TokenKind.CONTROL_SYMBOL and len(self.raw) > 1:
            return self.raw[1]
        return None

    @property
    def hex_value(self) -> Optional[int]:
        if self.kind is TokenKind.HEX_ESCAPE:
            return int(self.raw[2:4], 16)
        return None

    @property
    def is_truncated(self) -> bool:
        """A lone backslash at the very end of the stream."""
        return self.kind is TokenKind.CONTROL_SYMBOL and len(self.raw) < 2


def tokenize_rtf(rtf: str) -> List[RtfToken]:
    """Tokenize ``rtf`` without interpreting any control word."""
    tokens: List[RtfToken] = []
    length = len(rtf)
    i = 0
    while i < length:
        ch = rtf[i]
        if ch == "{":
            tokens.append(RtfToken(TokenKind.GROUP_START, ch, i))
            i += 1
            continue
        if ch == "}":
            tokens.append(RtfToken(TokenKind.GROUP_END, ch, i))
            i += 1
            continue
        if ch != "\\":
            match = _TEXT_PATTERN.match(rtf, i)
            assert match is not None
            tokens.append(RtfToken(TokenKind.TEXT, match.group(0), i))
            i = match.end()
            continue

        start = i
        if i + 1 >= length:
            tokens.append(RtfToken(TokenKind.CONTROL_SYMBOL, rtf[start:], start))
            break

        hex_match = _HEX_ESCAPE_PATTERN.match(rtf, i + 1)
        if hex_match:
            i = hex_match.end()
            tokens.append(RtfToken(TokenKind.HEX_ESCAPE, rtf[start:i], start))
            continue

        word_match = _CONTROL_WORD_PATTERN.match(rtf, i + 1)
        if word_match:
            param = word_match.group(2)
            i = word_match.end()
            tokens.append(
                RtfToken(
                    TokenKind.CONTROL_WORD,
                    rtf[start:i],
                    start,
                    word=word_match.group(1),
                    param=int(param) if param is not None else None,
                )
            )
            continue

        i += 2
        tokens.append(RtfToken(TokenKind.CONTROL_SYMBOL, rtf[start:i], start))
    return tokens
