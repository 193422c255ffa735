"""Placeholder parser for HTML templates exported from source documents."""

from __future__ import annotations

import re

from core.render.preview import decode_brace_entities
from core.templates.models import Occurrence, ParseResult, UnsupportedOccurrence
from core.utils.errors import TemplateError

_TOKEN_RE = re.compile(r"\{\{([^{}]*)\}\}")
_DELIMITER_RE = re.compile(r"\{\{|\}\}")
_OPEN = "{{"
_CLOSE = "}}"


def parse_template_placeholders(html: str, strict: bool = False) -> ParseResult:
    """Parse ``{{key}}`` placeholders from template HTML.

    Rules:
    - Entity-encoded braces (``&#123;``/``&#125;``) are decoded first.
    - ``{{}}`` is reported as ``empty_token``.
    - A key containing markup (a token split by tags) is reported as ``split_by_markup``.
    - Unbalanced delimiters are reported as ``unclosed_token`` or ``stray_close``.

    Args:
        html: raw template HTML.
        strict: When True, raise TemplateError if any unsupported item exists.

    Returns:
        ParseResult with unique fields in first-seen order, occurrences and unsupported items.
    """

    text = decode_brace_entities(html)
    result = ParseResult()
    seen_fields: set[str] = set()

    for match in _TOKEN_RE.finditer(text):
        field_name = match.group(1)
        if not field_name.strip():
            result.unsupported.append(
                UnsupportedOccurrence("empty_token", match.group(0), match.start(), match.end())
            )
            continue
        if "<" in field_name or ">" in field_name:
            result.unsupported.append(
                UnsupportedOccurrence("split_by_markup", match.group(0), match.start(), match.end())
            )
            continue

        result.occurrences.append(Occurrence(field_name, match.start(), match.end()))
        if field_name not in seen_fields:
            result.fields.append(field_name)
            seen_fields.add(field_name)

    for kind, start, end, token in _find_unbalanced_delimiters(text):
        result.unsupported.append(UnsupportedOccurrence(kind, token, start, end))

    if strict and result.unsupported:
        raise TemplateError("Unsupported placeholders found in template", result=result)

    return result


def _find_unbalanced_delimiters(text: str) -> list[tuple[str, int, int, str]]:
    issues: list[tuple[str, int, int, str]] = []
    open_position: int | None = None

    for match in _DELIMITER_RE.finditer(text):
        if match.group(0) == _OPEN:
            if open_position is not None:
                issues.append(("unclosed_token", open_position, match.start(), text[open_position : match.start()]))
            open_position = match.start()
            continue

        if open_position is None:
            issues.append(("stray_close", match.start(), match.end(), _CLOSE))
        else:
            open_position = None

    if open_position is not None:
        issues.append(("unclosed_token", open_position, len(text), text[open_position:]))

    return issues
