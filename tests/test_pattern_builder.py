from __future__ import annotations

import re

import pytest

from core.rules.models import PatternBuilderState
from core.rules.pattern_builder import (
    build_regex_from_pattern,
    compile_rule_pattern,
    describe_pattern,
    ensure_rule_pattern,
    escape_literal,
    parse_regex_to_pattern,
)
from core.utils.errors import IncompleteRuleError


def test_build_starts_with_or_group_case_insensitive() -> None:
    state = PatternBuilderState("starts_with", "m_, f_", case_sensitive=False)

    assert build_regex_from_pattern(state) == "(?i)(^m_|^f_)"


@pytest.mark.parametrize(
    ("match_type", "value", "expected"),
    [
        ("contains", "foo", "foo"),
        ("starts_with", "first_", "^first_"),
        ("ends_with", "_name", "_name$"),
        ("contains", "a.b", r"a\.b"),
        ("exact", "$1", r"^\$1$"),
        ("contains", "date, time", "(date|time)"),
        ("regex", r"^\d+$", r"^\d+$"),
    ],
)
def test_build_regex_per_match_type(match_type: str, value: str, expected: str) -> None:
    assert build_regex_from_pattern(PatternBuilderState(match_type, value)) == expected  # type: ignore[arg-type]


@pytest.mark.parametrize("value", ["", "   ", " , ,"])
def test_build_returns_empty_for_blank_values(value: str) -> None:
    assert build_regex_from_pattern(PatternBuilderState("contains", value, case_sensitive=False)) == ""


def test_escape_literal_escapes_regex_metacharacters_only() -> None:
    assert escape_literal("a.b*c(d)[e]{f}|g^h$i+j?k\\") == r"a\.b\*c\(d\)\[e\]\{f\}\|g\^h\$i\+j\?k\\"
    assert escape_literal("ชื่อ_1") == "ชื่อ_1"


@pytest.mark.parametrize(
    ("regex", "expected"),
    [
        ("^first_", PatternBuilderState("starts_with", "first_")),
        ("_name$", PatternBuilderState("ends_with", "_name")),
        ("^dob$", PatternBuilderState("exact", "dob")),
        ("(?i)date", PatternBuilderState("contains", "date", case_sensitive=False)),
        (r"a\.b", PatternBuilderState("contains", "a.b")),
    ],
)
def test_parse_simple_patterns(regex: str, expected: PatternBuilderState) -> None:
    assert parse_regex_to_pattern(regex) == expected


@pytest.mark.parametrize("regex", [r"\d+", "(^m_|^f_)", "^a(b)", "x[0-9]$", r"^\$1$", r"id\w"])
def test_parse_complex_patterns_reopen_as_regex(regex: str) -> None:
    assert parse_regex_to_pattern(regex) == PatternBuilderState("regex", regex, True)


def test_parse_or_group_keeps_original_text_including_flag() -> None:
    assert parse_regex_to_pattern("(?i)(^m_|^f_)") == PatternBuilderState("regex", "(?i)(^m_|^f_)", True)


def test_parse_empty_is_none() -> None:
    assert parse_regex_to_pattern("") is None


@pytest.mark.parametrize(
    "state",
    [
        PatternBuilderState("starts_with", "m_"),
        PatternBuilderState("ends_with", "_date", case_sensitive=False),
        PatternBuilderState("contains", "province"),
        PatternBuilderState("exact", "dob", case_sensitive=False),
    ],
)
def test_single_literal_states_survive_build_and_parse(state: PatternBuilderState) -> None:
    assert parse_regex_to_pattern(build_regex_from_pattern(state)) == state


def test_describe_pattern_in_thai() -> None:
    assert describe_pattern("^first_") == 'เริ่มต้นด้วย "first_"'
    assert describe_pattern("(?i)_name$") == 'ลงท้ายด้วย "_name" (ไม่สนใจตัวพิมพ์)'
    assert describe_pattern("date") == 'มีคำว่า "date"'
    assert describe_pattern("^dob$") == 'ตรงกับ "dob"'
    assert describe_pattern(r"\d+") == r"Regex: \d+"
    assert describe_pattern("") == ""


def test_ensure_rule_pattern_rejects_blank_values() -> None:
    with pytest.raises(IncompleteRuleError, match="dates") as exc_info:
        ensure_rule_pattern(PatternBuilderState("contains", " , "), "dates")

    assert exc_info.value.rule_name == "dates"
    assert isinstance(exc_info.value, ValueError)


def test_ensure_rule_pattern_returns_regex() -> None:
    assert ensure_rule_pattern(PatternBuilderState("ends_with", "_date")) == "_date$"


def test_compile_rule_pattern_honours_leading_case_flag() -> None:
    pattern = compile_rule_pattern("(?i)^dob$")

    assert pattern.search("DOB")
    assert not compile_rule_pattern("^dob$").search("DOB")


def test_compile_rule_pattern_raises_for_invalid_regex() -> None:
    with pytest.raises(re.error):
        compile_rule_pattern("(unclosed")
