from __future__ import annotations

import json
import logging

import pytest

from core.fields.models import FieldCheck, FieldDefinition, FieldValidation
from core.fields.validation import (
    MSG_NOT_AN_OPTION,
    MSG_NOT_NUMBER,
    MSG_PATTERN,
    MSG_REQUIRED,
    validate_field,
)


def _field(**rules: object) -> FieldDefinition:
    return FieldDefinition(placeholder="f", validation=FieldValidation(**rules))


def test_no_validation_accepts_anything() -> None:
    assert validate_field("", FieldDefinition(placeholder="f")) == FieldCheck(valid=True)


def test_required_is_checked_before_everything_else() -> None:
    field = _field(required=True, pattern=r"^\d+$")

    assert validate_field("", field) == FieldCheck(valid=False, error=MSG_REQUIRED)
    assert validate_field("abc", field) == FieldCheck(valid=False, error=MSG_PATTERN)


def test_empty_optional_value_skips_other_rules() -> None:
    assert validate_field("", _field(min_length=3, options=["a"])).valid is True


@pytest.mark.parametrize(
    ("value", "rules", "error"),
    [
        ("12", {"min_length": 3}, "ต้องมีอย่างน้อย 3 ตัวอักษร"),
        ("12345", {"max_length": 4}, "ต้องไม่เกิน 4 ตัวอักษร"),
        ("abc", {"min": 0}, MSG_NOT_NUMBER),
        ("-1", {"min": 0, "max": 150}, "ค่าต้องไม่น้อยกว่า 0"),
        ("151", {"min": 0, "max": 150}, "ค่าต้องไม่เกิน 150"),
        ("2.6", {"max": 2.5}, "ค่าต้องไม่เกิน 2.5"),
        ("นาง", {"options": ["นาย"]}, MSG_NOT_AN_OPTION),
    ],
)
def test_failing_constraints_return_thai_messages(value: str, rules: dict[str, object], error: str) -> None:
    assert validate_field(value, _field(**rules)) == FieldCheck(valid=False, error=error)


def test_numeric_range_reads_leading_number() -> None:
    assert validate_field("12abc", _field(min=0, max=150)).valid is True
    assert validate_field(" 1e2", _field(max=150)).valid is True


def test_pattern_and_length_both_apply() -> None:
    field = _field(pattern=r"^\d+$", min_length=4)

    assert validate_field("123", field).error == "ต้องมีอย่างน้อย 4 ตัวอักษร"
    assert validate_field("1234", field).valid is True


def test_invalid_pattern_is_logged_and_ignored(caplog) -> None:
    field = _field(pattern="([")

    with caplog.at_level(logging.WARNING, logger="formfield.validation"):
        assert validate_field("x", field).valid is True

    event = json.loads(caplog.records[-1].getMessage())
    assert event["event"] == "validation_pattern_invalid"
    assert event["field"] == "f"
