"""Compile structured match descriptions into rule regexes, and read simple ones back."""

from __future__ import annotations

import re

from core.rules.models import PatternBuilderState
from core.utils.errors import IncompleteRuleError

CASE_INSENSITIVE_FLAG = "(?i)"

_SPECIAL_CHAR_RE = re.compile(r"[.*+?^${}()|\[\]\\]")
_ESCAPED_CHAR_RE = re.compile(r"\\(.)")
_COMPLEX_MARKERS = ("(", "[", "*", "+")
_CLASS_SHORTHANDS = (r"\d", r"\w")

_DESCRIPTION_TEMPLATES = {
    "starts_with": 'เริ่มต้นด้วย "{value}"',
    "ends_with": 'ลงท้ายด้วย "{value}"',
    "contains": 'มีคำว่า "{value}"',
    "exact": 'ตรงกับ "{value}"',
}
_CASE_INSENSITIVE_NOTE = " (ไม่สนใจตัวพิมพ์)"


def escape_literal(value: str) -> str:
    """Backslash-escape regex metacharacters, leaving everything else untouched."""

    return _SPECIAL_CHAR_RE.sub(lambda match: "\\" + match.group(0), value)


def unescape_literal(value: str) -> str:
    return _ESCAPED_CHAR_RE.sub(lambda match: match.group(1), value)


def build_regex_from_pattern(state: PatternBuilderState) -> str:
    """Serialize builder state to the regex string that gets persisted.

    Comma-separated values are OR'd into one group. Returns ``""`` when no value remains after
    trimming, which callers must treat as an incomplete rule.
    """

    if state.match_type == "regex":
        return state.value

    values = [item.strip() for item in state.value.split(",")]
    values = [item for item in values if item]
    if not values:
        return ""

    escaped = [escape_literal(item) for item in values]
    if state.match_type == "starts_with":
        patterns = [f"^{item}" for item in escaped]
    elif state.match_type == "ends_with":
        patterns = [f"{item}$" for item in escaped]
    elif state.match_type == "exact":
        patterns = [f"^{item}$" for item in escaped]
    else:
        patterns = escaped

    combined = f"({'|'.join(patterns)})" if len(patterns) > 1 else patterns[0]
    prefix = "" if state.case_sensitive else CASE_INSENSITIVE_FLAG
    return f"{prefix}{combined}"


def parse_regex_to_pattern(regex: str) -> PatternBuilderState | None:
    """Best-effort reconstruction of builder state from a stored regex.

    Simple anchored or unanchored literals come back as their match type; anything else,
    including OR groups produced by ``build_regex_from_pattern``, reopens as raw ``regex``.
    """

    if not regex:
        return None

    case_sensitive = True
    pattern = regex
    if pattern.startswith(CASE_INSENSITIVE_FLAG):
        case_sensitive = False
        pattern = pattern[len(CASE_INSENSITIVE_FLAG) :]

    starts = pattern.startswith("^")
    ends = pattern.endswith("$")

    if starts and ends and len(pattern) >= 2:
        interior = pattern[1:-1]
        if "^" not in interior and "$" not in interior:
            return PatternBuilderState("exact", unescape_literal(interior), case_sensitive)

    if starts and not ends:
        value = unescape_literal(pattern[1:])
        if not _has_complex_marker(value):
            return PatternBuilderState("starts_with", value, case_sensitive)

    if ends and not starts:
        value = unescape_literal(pattern[:-1])
        if not _has_complex_marker(value):
            return PatternBuilderState("ends_with", value, case_sensitive)

    if not starts and not ends:
        value = unescape_literal(pattern)
        if not _has_complex_marker(value) and not any(item in pattern for item in _CLASS_SHORTHANDS):
            return PatternBuilderState("contains", value, case_sensitive)

    return PatternBuilderState("regex", regex, True)


def describe_pattern(regex: str) -> str:
    """Human-readable Thai description of a stored rule pattern."""

    state = parse_regex_to_pattern(regex)
    if state is None:
        return regex
    if state.match_type == "regex":
        return f"Regex: {state.value}"

    note = "" if state.case_sensitive else _CASE_INSENSITIVE_NOTE
    return _DESCRIPTION_TEMPLATES[state.match_type].format(value=state.value) + note


def ensure_rule_pattern(state: PatternBuilderState, rule_name: str | None = None) -> str:
    """Build the regex for ``state``, refusing to hand back an empty (match-everything) pattern."""

    regex = build_regex_from_pattern(state)
    if not regex:
        label = f" '{rule_name}'" if rule_name else ""
        raise IncompleteRuleError(
            f"Rule{label} has no usable pattern values.", rule_name=rule_name
        )
    return regex


def compile_rule_pattern(regex: str) -> re.Pattern[str]:
    """Compile a stored rule regex with Python ``re``.

    A leading ``(?i)`` is honoured as a flag. Raises ``re.error`` for invalid patterns.
    """

    flags = 0
    body = regex
    if body.startswith(CASE_INSENSITIVE_FLAG):
        flags = re.IGNORECASE
        body = body[len(CASE_INSENSITIVE_FLAG) :]
    return re.compile(body, flags)


def _has_complex_marker(value: str) -> bool:
    return any(marker in value for marker in _COMPLEX_MARKERS)
