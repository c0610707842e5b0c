from __future__ import annotations

import math
import re

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))",
)
_HOLLERITH_PREFIX = re.compile(r"\s*(\d+)H")


def decode_hollerith(token: str) -> str | None:
    # No H marker -> None, so a missing string stays apart from an empty one.
    marker = token.find("H")
    if marker == -1:
        return None
    count = _int_prefix(token[:marker])
    if count is None or count <= 0:
        return ""
    start = marker + 1
    return token[start : start + count]


def decode_float(token: str) -> float:
    match = _FLOAT_PREFIX.match(token.replace("D", "e"))
    if match is None:
        return math.nan
    return float(match.group(1))


def decode_fixed_int(line: str, start: int, width: int) -> int | None:
    return _int_prefix(line[start : start + width])


def split_records(
    buffer: str, field_delimiter: str, term_delimiter: str
) -> list[tuple[int, list[str]]]:
    """Split free-format data into terminated records of raw tokens.

    Returns ``(offset, tokens)`` per record, where ``offset`` is the buffer
    position the record starts at. The body of an ``nH`` string is skipped
    whole, so delimiters inside string text never end a field. Text after the
    last terminator is dropped.
    """
    records: list[tuple[int, list[str]]] = []
    tokens: list[str] = []
    record_start = 0
    token_start = 0
    position = 0
    while position < len(buffer):
        if position == token_start:
            match = _HOLLERITH_PREFIX.match(buffer, position)
            if match is not None:
                position = match.end() + int(match.group(1))
                continue
        if buffer.startswith(term_delimiter, position):
            tokens.append(buffer[token_start:position])
            records.append((record_start, tokens))
            tokens = []
            position += len(term_delimiter)
            record_start = token_start = position
        elif buffer.startswith(field_delimiter, position):
            tokens.append(buffer[token_start:position])
            position += len(field_delimiter)
            token_start = position
        else:
            position += 1
    return records


def _int_prefix(text: str) -> int | None:
    match = _INT_PREFIX.match(text)
    if match is None:
        return None
    return int(match.group(1))
