"""Plain-text views of RTF and plain-text edits applied back onto RTF.

The converters here work on the token stream rather than on the paragraph
model: every visible character remembers which slices of which tokens
produced it, so an edit can be spliced into the original source and leave
unknown groups, header tables, and formatting untouched.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from scrivener_rtf.errors import PlainTextEditError
from scrivener_rtf.parser.rtf_parser import IGNORED_DESTINATIONS, RTF_SIGNATURE, SYMBOL_WORDS
from scrivener_rtf.parser.tokenizer import TokenKind, tokenize_rtf
from scrivener_rtf.renderer.rtf_writer import DEFAULT_FONT_NAME, DEFAULT_FONT_SIZE
from scrivener_rtf.renderer.utils import escape_text
from scrivener_rtf.utils.encoding import decode_cp1252_byte
from scrivener_rtf.utils.logger import get_logger
from scrivener_rtf.utils.units import points_to_half_points

LOGGER = get_logger(__name__)

_SYMBOL_CHARS = {"\\": "\\", "{": "{", "}": "}", "~": " ", "_": "-"}


@dataclass(slots=True)
class _SpliceToken:
    kind: TokenKind
    raw: str


@dataclass(slots=True)
class _Slice:
    token_index: int
    start: int
    end: int


@dataclass(slots=True)
class _CharRef:
    """Source slices that together produced one visible character."""

    slices: List[_Slice] = field(default_factory=list)


@dataclass(slots=True)
class _TextMapping:
    tokens: List[_SpliceToken]
    text: str
    refs: List[_CharRef]


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _is_rtf(text: str) -> bool:
    return text.lstrip().startswith(RTF_SIGNATURE)


def _map_plain_text(rtf: str) -> _TextMapping:
    """Extract visible text and record where each character came from."""
    tokens = [_SpliceToken(token.kind, token.raw) for token in tokenize_rtf(rtf)]
    chars: List[str] = []
    refs: List[_CharRef] = []

    ignore_stack: List[bool] = []
    ignore_group = False
    group_start = False
    uc_skip = 1
    pending_skip = 0
    fallback_owner: Optional[_CharRef] = None

    def emit(char: str, slices: List[_Slice], counts_as_ansi: bool = True) -> Optional[_CharRef]:
        nonlocal pending_skip, fallback_owner
        if counts_as_ansi and pending_skip > 0:
            pending_skip -= 1
            if fallback_owner is not None:
                fallback_owner.slices.extend(slices)
                if pending_skip == 0:
                    fallback_owner = None
            return None
        if ignore_group:
            return None
        ref = _CharRef(list(slices))
        chars.append(char)
        refs.append(ref)
        return ref

    for index, token in enumerate(tokens):
        whole = [_Slice(index, 0, len(token.raw))]
        kind = token.kind
        if kind is TokenKind.GROUP_START:
            ignore_stack.append(ignore_group)
            group_start = True
            continue
        if kind is TokenKind.GROUP_END:
            ignore_group = ignore_stack.pop() if ignore_stack else False
            group_start = False
            continue
        if kind is TokenKind.TEXT:
            for offset, char in enumerate(token.raw):
                if char in "\r\n\t" or (group_start and char == " "):
                    continue
                emit(char, [_Slice(index, offset, offset + 1)])
                group_start = False
            continue

        group_start_before = group_start
        group_start = False
        if kind is TokenKind.HEX_ESCAPE:
            emit(decode_cp1252_byte(int(token.raw[2:4], 16)), whole)
            continue
        if kind is TokenKind.CONTROL_SYMBOL:
            symbol = token.raw[1:2]
            if symbol in _SYMBOL_CHARS:
                emit(_SYMBOL_CHARS[symbol], whole)
            elif symbol == "*":
                ignore_group = True
            elif symbol in ("\n", "\r"):
                emit("\n", whole, counts_as_ansi=False)
            continue

        word, param = _split_control_word(token.raw)
        if group_start_before and word in IGNORED_DESTINATIONS:
            ignore_group = True
        elif word in ("par", "line"):
            emit("\n", whole, counts_as_ansi=False)
        elif word == "tab":
            emit("\t", whole, counts_as_ansi=False)
        elif word in SYMBOL_WORDS:
            emit(SYMBOL_WORDS[word], whole)
        elif word == "uc" and param is not None:
            uc_skip = max(0, min(16, param))
        elif word == "u" and param is not None:
            unit = param + 65536 if param < 0 else param
            owner = _emit_unit(chars, refs, unit, whole, ignore_group)
            fallback_owner = owner if uc_skip else None
            pending_skip = uc_skip

    text = "".join("\ufffd" if 0xD800 <= ord(char) <= 0xDFFF else char for char in chars)
    return _TextMapping(tokens=tokens, text=text, refs=refs)


def _emit_unit(
    chars: List[str], refs: List[_CharRef], unit: int, slices: List[_Slice], ignored: bool
) -> Optional[_CharRef]:
    if ignored or not 0 <= unit <= 0xFFFF:
        return None
    if 0xDC00 <= unit <= 0xDFFF and chars and 0xD800 <= ord(chars[-1]) <= 0xDBFF:
        high = ord(chars[-1])
        chars[-1] = chr(0x10000 + ((high - 0xD800) << 10) + (unit - 0xDC00))
        refs[-1].slices.extend(slices)
        return refs[-1]
    ref = _CharRef(list(slices))
    chars.append(chr(unit))
    refs.append(ref)
    return ref


def _split_control_word(raw: str) -> Tuple[str, Optional[int]]:
    body = raw[1:].rstrip(" ")
    end = 0
    while end < len(body) and body[end].isalpha():
        end += 1
    digits = body[end:]
    return body[:end], int(digits) if digits else None


# ----------------------------------------------------------------------
# Public converters
def rtf_to_plain_text(rtf: str) -> str:
    """Visible text of ``rtf``; every ``\\par`` becomes a newline.

    Input that is not RTF is returned with its line endings normalised.
    """
    if not _is_rtf(rtf):
        return normalize_newlines(rtf)
    return _map_plain_text(rtf).text


def encode_plain_text_fragment(text: str) -> str:
    """RTF body fragment for ``text``; newlines become ``\\par``."""
    return "\\par\n".join(escape_text(line) for line in normalize_newlines(text).split("\n"))


def plain_text_to_rtf(text: str) -> str:
    """Wrap plain text in a minimal single-font RTF document."""
    return (
        f"{{\\rtf1\\ansi\\deff0{{\\fonttbl{{\\f0 {DEFAULT_FONT_NAME};}}}}"
        f"\\viewkind4\\uc1\\pard\\f0\\fs{points_to_half_points(DEFAULT_FONT_SIZE)} "
        f"{encode_plain_text_fragment(text)}}}"
    )


# ----------------------------------------------------------------------
# In-place plain-text edits
def _single_replacement(old: str, new: str) -> Tuple[int, int, str]:
    """Smallest ``old[start:end] -> insert`` edit turning ``old`` into ``new``."""
    prefix = 0
    limit = min(len(old), len(new))
    while prefix < limit and old[prefix] == new[prefix]:
        prefix += 1
    old_end, new_end = len(old), len(new)
    while old_end > prefix and new_end > prefix and old[old_end - 1] == new[new_end - 1]:
        old_end -= 1
        new_end -= 1
    return prefix, old_end, new[prefix:new_end]


def _cursor_for_offset(mapping: _TextMapping, offset: int) -> Tuple[int, int]:
    """Token index and in-token offset where text at ``offset`` should go."""
    tokens, refs = mapping.tokens, mapping.refs
    if not refs:
        for index in range(len(tokens) - 1, -1, -1):
            if tokens[index].kind is TokenKind.GROUP_END:
                return index, 0
        return len(tokens), 0
    if offset <= 0:
        first = refs[0].slices[0]
        return first.token_index, first.start
    if offset >= len(refs):
        last = refs[-1].slices[-1]
        token = tokens[last.token_index]
        if token.kind is not TokenKind.TEXT and last.start == 0 and last.end == len(token.raw):
            return last.token_index + 1, 0
        return last.token_index, last.end
    first = refs[offset].slices[0]
    return first.token_index, first.start


def _delete_slices(tokens: List[_SpliceToken], slices: List[_Slice]) -> None:
    by_token: dict = {}
    for item in slices:
        by_token.setdefault(item.token_index, []).append(item)
    for token_index in sorted(by_token, reverse=True):
        token = tokens[token_index]
        raw = token.raw
        for item in sorted(by_token[token_index], key=lambda s: s.start, reverse=True):
            raw = raw[: item.start] + raw[item.end:]
        token.raw = raw


def _insert_fragment(tokens: List[_SpliceToken], cursor: Tuple[int, int], fragment: str) -> None:
    inserted = [_SpliceToken(token.kind, token.raw) for token in tokenize_rtf(fragment)]
    if not inserted:
        return
    token_index = max(0, min(cursor[0], len(tokens)))
    insert_at = token_index
    if token_index < len(tokens) and tokens[token_index].kind is TokenKind.TEXT:
        raw = tokens[token_index].raw
        split = max(0, min(cursor[1], len(raw)))
        replacement = []
        if raw[:split]:
            replacement.append(_SpliceToken(TokenKind.TEXT, raw[:split]))
            insert_at += 1
        replacement.extend(inserted)
        if raw[split:]:
            replacement.append(_SpliceToken(TokenKind.TEXT, raw[split:]))
        tokens[token_index:token_index + 1] = replacement
    else:
        tokens[token_index:token_index] = inserted

    # A control word directly before the insertion needs its delimiter.
    previous = _previous_non_empty(tokens, insert_at)
    if (
        previous is not None
        and previous.kind is TokenKind.CONTROL_WORD
        and not previous.raw.endswith(" ")
        and (fragment[:1].isalnum() or fragment[:1] == " ")
    ):
        previous.raw += " "


def _previous_non_empty(tokens: List[_SpliceToken], index: int) -> Optional[_SpliceToken]:
    for position in range(min(index, len(tokens)) - 1, -1, -1):
        if tokens[position].raw:
            return tokens[position]
    return None


def update_rtf_plain_text_preserving_formatting(rtf: str, plain_text: str) -> str:
    """Apply a plain-text edit to ``rtf`` as one replacement, keeping formatting.

    The edited span is the difference between the common prefix and suffix
    of the old and new text. Raises :class:`PlainTextEditError` when the
    spliced RTF would not read back as ``plain_text``.
    """
    if not _is_rtf(rtf):
        return plain_text_to_rtf(plain_text)

    mapping = _map_plain_text(rtf)
    desired = normalize_newlines(plain_text)
    if mapping.text == desired:
        return rtf

    start, end, insert = _single_replacement(mapping.text, desired)
    if end > len(mapping.refs):
        raise PlainTextEditError("Plain-text edit range is out of bounds for this RTF")

    cursor = _cursor_for_offset(mapping, start)
    doomed: List[_Slice] = []
    for ref in mapping.refs[start:end]:
        doomed.extend(ref.slices)
    _delete_slices(mapping.tokens, doomed)
    _insert_fragment(mapping.tokens, cursor, encode_plain_text_fragment(insert) if insert else "")

    updated = "".join(token.raw for token in mapping.tokens)
    if rtf_to_plain_text(updated) != desired:
        raise PlainTextEditError("Plain-text edit could not be applied without altering the RTF structure")
    LOGGER.debug("Replaced plain-text span [%d, %d) with %d character(s)", start, end, len(insert))
    return updated
