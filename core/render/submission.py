"""Assemble the flat ``{"{{key}}": value}`` payload consumed by the document generator."""

from __future__ import annotations

import math
from collections.abc import Mapping

from core.config.models import DEFAULT_SETTINGS, EngineSettings
from core.fields.definitions import resolve_visible_definitions
from core.fields.merged import split_merged_value
from core.fields.models import FieldDefinition, Progress, strip_braces
from core.fields.radio import expand_radio_group_value, suppressed_child_keys
from core.render.preview import display_value
from core.utils.errors import MissingRequiredFieldsError


def token_for(key: str) -> str:
    return f"{{{{{key}}}}}"


def build_submission_payload(
    form_data: Mapping[str, str],
    definitions: Mapping[str, FieldDefinition],
    settings: EngineSettings = DEFAULT_SETTINGS,
    *,
    strict: bool = False,
) -> dict[str, str]:
    """Expand structured form values into one entry per document placeholder.

    Merged values are split, radio selections expanded and dates formatted. Child fields of
    unselected radio options are sent empty. A hidden constituent's own value only fills
    its token when no primary definition produced it.

    With ``strict`` set, missing required values raise ``MissingRequiredFieldsError``.
    """

    suppressed = suppressed_child_keys(definitions, form_data)
    payload: dict[str, str] = {}
    deferred: dict[str, str] = {}

    for key, raw in form_data.items():
        definition = definitions.get(key)
        raw_value = raw or ""

        if key in suppressed:
            deferred[token_for(key)] = ""
        elif definition is not None and definition.merged_keys:
            parts = split_merged_value(raw_value, definition.merged_keys, definition.separator or "")
            for part_key, part_value in parts.items():
                payload[token_for(part_key)] = part_value
        elif definition is not None and definition.options_for_radio:
            expanded = expand_radio_group_value(
                raw_value, definition.options_for_radio, settings.default_radio_mark
            )
            for option_key, option_value in expanded.items():
                payload[token_for(strip_braces(option_key))] = option_value
        else:
            deferred[token_for(key)] = display_value(raw_value, definition, settings)

    for token, value in deferred.items():
        payload.setdefault(token, value)

    if strict:
        missing = find_missing_required(form_data, definitions)
        if missing:
            raise MissingRequiredFieldsError(
                f"Missing required fields: {', '.join(missing)}",
                missing_required=missing,
                payload=payload,
            )

    return payload


def find_missing_required(
    form_data: Mapping[str, str],
    definitions: Mapping[str, FieldDefinition],
) -> list[str]:
    """Keys of visible required fields whose value is blank."""

    missing: list[str] = []
    for key, definition in resolve_visible_definitions(definitions, form_data).items():
        if definition.validation is None or not definition.validation.required:
            continue
        if not (form_data.get(key) or "").strip():
            missing.append(key)
    return missing


def calculate_progress(form_data: Mapping[str, str]) -> Progress:
    total = len(form_data)
    filled = sum(1 for value in form_data.values() if (value or "").strip())
    percentage = 0 if total == 0 else math.floor(filled * 100 / total + 0.5)
    return Progress(filled=filled, total=total, percentage=percentage)
