from __future__ import annotations

from eziges.context import DecodeContext
from eziges.sections import split_lines, split_sections
from tests._iges_helpers import IgesBuilder, record


def _point_file(**kwargs) -> str:
    return IgesBuilder().add(116, [10, 20, 30]).build(**kwargs)


def test_split_lines_drops_blank_lines_for_both_line_endings() -> None:
    assert split_lines("a\r\nb\n\nc\n") == ["a", "b", "c"]


def test_split_sections_routes_lines_by_tag() -> None:
    buffers, context = split_sections(_point_file())

    assert buffers.start == "eziges test model"
    assert buffers.global_.startswith("1H,,1H;,6HEZIGES")
    assert len(buffers.directory) == 160
    assert buffers.parameter == "116,10,20,30;"
    assert buffers.terminate.startswith("S0000001G")
    assert buffers.line_counts["S"] == 1
    assert buffers.line_counts["D"] == 2
    assert buffers.line_counts["P"] == 1
    assert buffers.line_counts["T"] == 1
    assert context.diagnostics == ()


def test_split_sections_accepts_crlf_line_endings() -> None:
    unix, _ = split_sections(_point_file())
    windows, _ = split_sections(_point_file(line_ending="\r\n"))

    assert windows.directory == unix.directory
    assert windows.parameter == unix.parameter


def test_short_lines_are_skipped_with_a_diagnostic() -> None:
    text = "too short\n" + _point_file() + "x" * 72 + "\n"
    buffers, context = split_sections(text)

    assert context.codes() == ["short-line", "short-line"]
    assert context.diagnostics[0].line == 0
    assert buffers.parameter == "116,10,20,30;"


def test_file_of_only_short_lines_yields_diagnostics_only() -> None:
    text = "\n".join(["abc", "x" * 50, "y" * 72])
    buffers, context = split_sections(text)

    assert context.codes() == ["short-line"] * 3
    assert buffers.directory == ""
    assert buffers.parameter == ""


def test_unknown_section_tag_is_skipped() -> None:
    text = record("mystery", "X", 1) + "\n" + _point_file()
    buffers, context = split_sections(text)

    assert context.codes() == ["unknown-section"]
    assert "mystery" not in buffers.start


def test_columns_past_80_are_ignored() -> None:
    text = record("comment", "S", 1) + "TRAILING GARBAGE\n"
    buffers, _ = split_sections(text)

    assert buffers.start == "comment"


def test_parameter_lines_drop_sequence_columns() -> None:
    line = f"{'110,1.,2.,3.,4.,5.,6.;':<64s}{1:8d}P{1:7d}"
    buffers, _ = split_sections(line)

    assert buffers.parameter == "110,1.,2.,3.,4.,5.,6.;"
    assert buffers.parameter_lines[0].offset == 0
    assert buffers.parameter_lines[0].sequence == 1


def test_directory_lines_are_kept_at_full_width() -> None:
    first = f"{110:8d}{1:8d}" + " " * 56 + "D      1"
    second = f"{110:8d}" + " " * 64 + "D      2"
    buffers, _ = split_sections(first + "\n" + second[:76] + "\n")

    assert len(buffers.directory) == 160
    assert buffers.directory[80:88] == "     110"


def test_split_sections_threads_existing_context() -> None:
    parent = DecodeContext().warn("hollerith", "earlier problem")
    _, context = split_sections("short\n", parent)

    assert context.codes() == ["hollerith", "short-line"]
    assert parent.codes() == ["hollerith"]
