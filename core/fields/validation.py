"""Validate a single form value against its definition's constraints."""

from __future__ import annotations

import logging
import math
import re

from core.fields.models import FieldCheck, FieldDefinition
from core.utils.events import log_event

logger = logging.getLogger("formfield.validation")

MSG_REQUIRED = "กรุณากรอกข้อมูล"
MSG_PATTERN = "รูปแบบข้อมูลไม่ถูกต้อง"
MSG_NOT_NUMBER = "กรุณากรอกตัวเลข"
MSG_NOT_AN_OPTION = "กรุณาเลือกจากตัวเลือกที่กำหนด"

_LEADING_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def validate_field(value: str, definition: FieldDefinition) -> FieldCheck:
    """Check ``value`` and return the first failing constraint's Thai message.

    Order: required, pattern, min length, max length, numeric range, options.
    An empty value passes unless required.
    """

    rules = definition.validation
    if rules is None:
        return FieldCheck(valid=True)

    if rules.required and not value:
        return FieldCheck(valid=False, error=MSG_REQUIRED)
    if not value:
        return FieldCheck(valid=True)

    if rules.pattern:
        try:
            matched = re.search(rules.pattern, value) is not None
        except re.error as exc:
            log_event(
                logger,
                logging.WARNING,
                "validation_pattern_invalid",
                field=definition.key,
                pattern=rules.pattern,
                error=str(exc),
            )
            matched = True
        if not matched:
            return FieldCheck(valid=False, error=MSG_PATTERN)

    if rules.min_length and len(value) < rules.min_length:
        return FieldCheck(valid=False, error=f"ต้องมีอย่างน้อย {rules.min_length} ตัวอักษร")
    if rules.max_length and len(value) > rules.max_length:
        return FieldCheck(valid=False, error=f"ต้องไม่เกิน {rules.max_length} ตัวอักษร")

    if rules.min is not None or rules.max is not None:
        number = _parse_number(value)
        if number is None:
            return FieldCheck(valid=False, error=MSG_NOT_NUMBER)
        if rules.min is not None and number < rules.min:
            return FieldCheck(valid=False, error=f"ค่าต้องไม่น้อยกว่า {_format_bound(rules.min)}")
        if rules.max is not None and number > rules.max:
            return FieldCheck(valid=False, error=f"ค่าต้องไม่เกิน {_format_bound(rules.max)}")

    if rules.options and value not in rules.options:
        return FieldCheck(valid=False, error=MSG_NOT_AN_OPTION)

    return FieldCheck(valid=True)


def _parse_number(value: str) -> float | None:
    """Parse a leading decimal number the way form inputs report it ("12abc" reads as 12)."""

    match = _LEADING_FLOAT_RE.match(value)
    if not match:
        return None
    number = float(match.group(1))
    return None if math.isnan(number) else number


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)
