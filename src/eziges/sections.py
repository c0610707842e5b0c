from __future__ import annotations

import re
from dataclasses import dataclass, field

from .context import DecodeContext
from .fields import decode_fixed_int

RECORD_WIDTH = 80
SECTION_TAG_COLUMN = 72
MIN_LINE_LENGTH = SECTION_TAG_COLUMN + 1
DATA_WIDTH = 72
PARAMETER_DATA_WIDTH = 64

SECTION_TAGS = ("S", "G", "D", "P", "T")

_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class ParameterLine:
    offset: int
    sequence: int | None


@dataclass(frozen=True)
class SectionBuffers:
    start: str = ""
    global_: str = ""
    directory: str = ""
    parameter: str = ""
    terminate: str = ""
    # Where each Parameter line's content begins inside ``parameter``.
    parameter_lines: tuple[ParameterLine, ...] = ()
    line_counts: dict[str, int] = field(default_factory=dict)


def split_lines(text: str) -> list[str]:
    return [line for line in _LINE_BREAK.split(text) if line]


def split_sections(
    text: str, context: DecodeContext | None = None
) -> tuple[SectionBuffers, DecodeContext]:
    if context is None:
        context = DecodeContext()

    chunks: dict[str, list[str]] = {tag: [] for tag in SECTION_TAGS}
    counts = {tag: 0 for tag in SECTION_TAGS}
    parameter_lines: list[ParameterLine] = []
    parameter_offset = 0

    for index, line in enumerate(split_lines(text)):
        if len(line) < MIN_LINE_LENGTH:
            context = context.warn(
                "short-line",
                f"line too short ({len(line)} chars): {line[:50]!r}",
                line=index,
            )
            continue

        line = line[:RECORD_WIDTH]
        tag = line[SECTION_TAG_COLUMN]
        if tag not in chunks:
            context = context.warn(
                "unknown-section",
                f"unknown section type {tag!r} (char code {ord(tag)})",
                line=index,
            )
            continue

        counts[tag] += 1
        if tag == "D":
            # Fixed columns span the 160 character pair, so keep every column.
            chunks[tag].append(line.ljust(RECORD_WIDTH))
        elif tag == "P":
            content = line[:PARAMETER_DATA_WIDTH].strip()
            parameter_lines.append(
                ParameterLine(
                    offset=parameter_offset,
                    sequence=decode_fixed_int(line, SECTION_TAG_COLUMN + 1, 7),
                )
            )
            parameter_offset += len(content)
            chunks[tag].append(content)
        else:
            chunks[tag].append(line[:DATA_WIDTH].strip())

    buffers = SectionBuffers(
        start="".join(chunks["S"]),
        global_="".join(chunks["G"]),
        directory="".join(chunks["D"]),
        parameter="".join(chunks["P"]),
        terminate="".join(chunks["T"]),
        parameter_lines=tuple(parameter_lines),
        line_counts=counts,
    )
    return buffers, context
