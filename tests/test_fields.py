from __future__ import annotations

import math

import pytest

from eziges.fields import decode_fixed_int, decode_float, decode_hollerith, split_records


def test_decode_hollerith_returns_declared_characters() -> None:
    assert decode_hollerith("4HABCD") == "ABCD"
    assert decode_hollerith("3HABCDEF") == "ABC"


def test_decode_hollerith_without_marker_is_none() -> None:
    assert decode_hollerith("1234") is None
    assert decode_hollerith("") is None


def test_decode_hollerith_keeps_empty_apart_from_missing() -> None:
    assert decode_hollerith("0H") == ""
    assert decode_hollerith("H") == ""
    assert decode_hollerith("0H") is not None


def test_decode_hollerith_short_token_is_best_effort() -> None:
    assert decode_hollerith("10HABC") == "ABC"


def test_decode_hollerith_delimiter_characters() -> None:
    assert decode_hollerith("1H,") == ","
    assert decode_hollerith("1H;") == ";"


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("1.5D+02", 150.0),
        ("1.5e+02", 150.0),
        ("1.5E+02", 150.0),
        ("-2.5D-1", -0.25),
        ("0.D0", 0.0),
        ("10", 10.0),
        ("  12.5  ", 12.5),
        (".5", 0.5),
        ("3.0abc", 3.0),
    ],
)
def test_decode_float(token: str, expected: float) -> None:
    assert decode_float(token) == pytest.approx(expected)


@pytest.mark.parametrize("token", ["", "   ", "abc", "HABCD", "D"])
def test_decode_float_non_numeric_is_nan(token: str) -> None:
    assert math.isnan(decode_float(token))


def test_decode_float_lowercase_d_is_not_an_exponent() -> None:
    assert decode_float("1.5d+02") == 1.5


def test_decode_fixed_int_reads_padded_fields() -> None:
    line = "     110       1       0"
    assert decode_fixed_int(line, 0, 8) == 110
    assert decode_fixed_int(line, 8, 8) == 1
    assert decode_fixed_int(line, 16, 8) == 0


@pytest.mark.parametrize("text", ["        ", "", "   abc  ", "-"])
def test_decode_fixed_int_blank_or_malformed_is_none(text: str) -> None:
    assert decode_fixed_int(text, 0, 8) is None


def test_decode_fixed_int_out_of_range_slice_is_none() -> None:
    assert decode_fixed_int("12", 10, 8) is None


def test_decode_fixed_int_negative_and_trailing_text() -> None:
    assert decode_fixed_int("      -3", 0, 8) == -3
    assert decode_fixed_int("12abc   ", 0, 8) == 12


def test_split_records_offsets_and_trailing_text() -> None:
    records = split_records("116,1.,2.;110,0;partial", ",", ";")

    assert records == [(0, ["116", "1.", "2."]), (10, ["110", "0"])]


def test_split_records_skips_delimiters_inside_strings() -> None:
    records = split_records("212,1,3HA;B,4H,;,x;116,1.,2.,3.;", ",", ";")

    assert [tokens for _, tokens in records] == [
        ["212", "1", "3HA;B", "4H,;,x"],
        ["116", "1.", "2.", "3."],
    ]


def test_split_records_string_running_past_end() -> None:
    assert split_records("212,9HAB;", ",", ";") == []
