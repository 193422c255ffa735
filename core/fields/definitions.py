"""Field definition helpers: detection, visibility, enhancement and grouping."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from core.fields.models import (
    FieldDefinition,
    FieldValidation,
    GroupedSection,
    strip_braces,
)
from core.fields.radio import active_child_keys
from core.rules.models import ConfigurableDataType
from core.utils.events import log_event

logger = logging.getLogger("formfield.fields")

DEFAULT_SECTION_NAME = "ทั่วไป"
UNORDERED_POSITION = 9999

_RADIO_OPTION_KEYS = ("radioOptions", "radio_options")

ENTITY_LABELS = {
    "child": "เด็ก/ผู้เกิด",
    "mother": "มารดา",
    "father": "บิดา",
    "informant": "ผู้แจ้งเกิด",
    "registrar": "นายทะเบียน",
    "general": "ทั่วไป",
}

_ENTITY_PREFIXES = (
    ("m_", "mother"),
    ("f_", "father"),
    ("b_", "informant"),
    ("r_", "registrar"),
)
_CHILD_KEYS = frozenset({"first_name", "last_name", "name_prefix", "id_number", "dob", "place_of_birth"})
_NUMBER_KEY_RES = (
    re.compile(r"^4d_\d+$"),
    re.compile(r"^n\d+$"),
    re.compile(r"^\$\d+$"),
    re.compile(r"^\$\d+_D$"),
)
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


def detect_entity(key: str) -> str:
    for prefix, entity in _ENTITY_PREFIXES:
        if key.startswith(prefix):
            return entity
    if key in _CHILD_KEYS:
        return "child"
    return "general"


def detect_field_type(placeholder: str) -> FieldDefinition:
    """Classify a placeholder by its name when no pattern rule applies.

    Checks run in a fixed order; the first matching name fragment wins.
    """

    key = strip_braces(placeholder)
    lower = key.lower()
    base = {"placeholder": placeholder, "entity": detect_entity(key)}

    def typed(data_type: str, input_type: str, **extra: Any) -> FieldDefinition:
        return FieldDefinition(**base, data_type=data_type, input_type=input_type, **extra)

    if "_id" in lower or lower in ("id_number", "id"):
        return typed("id_number", "text")
    if "name_prefix" in lower or "_prefix" in lower:
        return typed("name_prefix", "select")
    if "_age" in lower or lower == "age":
        return typed("number", "number", validation=FieldValidation(min=0, max=150))
    if lower == "dob" or "date" in lower:
        return typed("date", "date")
    if lower == "time" or "_time" in lower:
        return typed("time", "time")
    if "weekday" in lower:
        return typed("weekday", "select")
    if "_prov" in lower or "province" in lower:
        return typed("province", "select")
    # subdistrict before district so "sub_district" is not read as a district
    if any(token in lower for token in ("subdistrict", "sub_district", "sub-district", "tambon", "ตำบล", "แขวง")):
        return typed("subdistrict", "text")
    if any(token in lower for token in ("district", "amphoe", "อำเภอ", "เขต")):
        return typed("district", "text")
    if "country" in lower:
        return typed("country", "text")
    if "address" in lower:
        return typed("address", "textarea")
    if "officer_name" in lower or lower == "officer":
        return typed("officer_name", "select")
    if any(token in lower for token in ("first_name", "last_name", "maiden_name", "_name")):
        return typed("name", "text")
    if "house_code" in lower or "house_no" in lower:
        return typed("house_code", "text")
    if "zodiac" in lower:
        return typed("zodiac", "select")
    if "luna" in lower:
        return typed("lunar_month", "select")
    if "regis_office" in lower or "office" in lower:
        return typed("text", "text")
    if "place_of_birth" in lower:
        return typed("address", "text")
    if any(pattern.match(key) for pattern in _NUMBER_KEY_RES):
        if key.startswith("4d_"):
            return typed(
                "number",
                "text",
                validation=FieldValidation(pattern=r"^\d{4}$", max_length=4),
                description="รหัส 4 หลัก",
            )
        return typed("number", "text")
    if lower == "child_no":
        return typed("number", "number", validation=FieldValidation(min=1, max=20))

    return FieldDefinition(**base)


def generate_field_definitions(placeholders: Iterable[str]) -> dict[str, FieldDefinition]:
    """Detect a definition for every placeholder, keyed by the bare placeholder key."""

    return {strip_braces(item): detect_field_type(item) for item in placeholders}


def is_hidden_definition(definition: FieldDefinition) -> bool:
    return definition.is_hidden


def filter_visible_definitions(definitions: Mapping[str, FieldDefinition]) -> dict[str, FieldDefinition]:
    """Drop merged constituents, non-master radio options and radio child fields."""

    return {key: item for key, item in definitions.items() if not is_hidden_definition(item)}


def resolve_visible_definitions(
    definitions: Mapping[str, FieldDefinition],
    form_data: Mapping[str, str],
) -> dict[str, FieldDefinition]:
    """Visible definitions plus the child fields of currently selected radio options."""

    children = active_child_keys(definitions, form_data)
    return {
        key: item
        for key, item in definitions.items()
        if not is_hidden_definition(item) or key in children
    }


def enhance_field_definitions(
    definitions: Mapping[str, FieldDefinition],
    data_types: Iterable[ConfigurableDataType],
) -> dict[str, FieldDefinition]:
    """Fill formats, options, validation and labels from the matching configurable data type."""

    by_code: dict[str, ConfigurableDataType] = {}
    for data_type in data_types:
        by_code.setdefault(data_type.code, data_type)

    enhanced: dict[str, FieldDefinition] = {}
    for key, definition in definitions.items():
        config = by_code.get(definition.data_type)
        if config is None:
            enhanced[key] = definition
            continue

        changes: dict[str, Any] = {}
        if definition.input_type == "digit" and not definition.digit_format and config.default_value:
            changes["digit_format"] = config.default_value
        if definition.input_type == "location" and not definition.location_output_format and config.default_value:
            changes["location_output_format"] = config.default_value

        validation = definition.validation
        if definition.input_type == "select" and config.options:
            options = parse_options_json(config.options, source=config.code)
            if options:
                validation = merge_validation(validation, {"options": options})
        if config.validation:
            extra = parse_validation_json(config.validation, source=config.code)
            if extra:
                validation = merge_validation(validation, extra, source=config.code)
        if validation is not definition.validation:
            changes["validation"] = validation

        if config.name:
            changes["data_type_label"] = config.name

        enhanced[key] = definition.model_copy(update=changes) if changes else definition
    return enhanced


def parse_options_json(raw: str, *, source: str) -> list[str]:
    """Decode a stored options JSON array; malformed input is logged and treated as no options."""

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        log_event(logger, logging.WARNING, "options_json_invalid", source=source, error=str(exc))
        return []

    if not isinstance(parsed, list):
        log_event(logger, logging.WARNING, "options_json_invalid", source=source, error="not a list")
        return []

    options: list[str] = []
    for item in parsed:
        if isinstance(item, dict):
            item = item.get("value", "")
        if item is None:
            continue
        options.append(str(item))
    return options


def parse_validation_json(raw: str, *, source: str) -> dict[str, Any]:
    """Decode a stored validation JSON object; malformed input is logged and treated as absent."""

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        log_event(logger, logging.WARNING, "validation_json_invalid", source=source, error=str(exc))
        return {}

    if not isinstance(parsed, dict):
        log_event(logger, logging.WARNING, "validation_json_invalid", source=source, error="not an object")
        return {}
    return parsed


def merge_validation(
    current: FieldValidation | None,
    extra: Mapping[str, Any],
    *,
    source: str = "",
) -> FieldValidation | None:
    """Overlay ``extra`` (camelCase or snake_case keys) on ``current``; invalid overlays are ignored."""

    base = current.model_dump(by_alias=True, exclude_none=True) if current else {}
    try:
        return FieldValidation.model_validate({**base, **extra})
    except ValidationError as exc:
        log_event(
            logger,
            logging.WARNING,
            "validation_json_invalid",
            source=source,
            error=exc.errors(include_url=False)[0]["msg"],
        )
        return current


def group_fields_by_saved_group(definitions: Mapping[str, FieldDefinition]) -> list[GroupedSection]:
    """Build form sections from saved ``name|colorIndex`` groups, ordered by lowest field order."""

    sections: dict[str, dict[str, Any]] = {}
    for definition in definitions.values():
        if is_hidden_definition(definition):
            continue

        raw_group = definition.group or DEFAULT_SECTION_NAME
        if "|" in raw_group:
            name, color = raw_group.split("|")[:2]
        else:
            name, color = raw_group, "0"
        order = _order_of(definition)

        section = sections.setdefault(
            name, {"fields": [], "min_order": order, "color_index": _leading_int(color)}
        )
        section["fields"].append(definition)
        section["min_order"] = min(section["min_order"], order)

    ordered = sorted(sections.items(), key=lambda item: item[1]["min_order"])
    return [
        GroupedSection(
            name=name,
            fields=tuple(sorted(section["fields"], key=_order_of)),
            color_index=section["color_index"],
        )
        for name, section in ordered
    ]


def initial_form_data(placeholders: Iterable[str]) -> dict[str, str]:
    """Empty form values for every placeholder key."""

    return {strip_braces(item): "" for item in placeholders}


def coerce_definitions(raw: Mapping[str, Any]) -> dict[str, FieldDefinition]:
    """Validate stored definition JSON.

    A malformed ``validation`` block or radio option is dropped on its own so the
    merge and radio configuration of the entry survive. Entries whose structural
    fields are invalid degrade to a plain text field.
    """

    definitions: dict[str, FieldDefinition] = {}
    for key, item in raw.items():
        if isinstance(item, FieldDefinition):
            definitions[key] = item
            continue
        if not isinstance(item, Mapping):
            log_event(logger, logging.WARNING, "definition_invalid", key=key, error="not an object")
            definitions[key] = FieldDefinition(placeholder=key)
            continue
        definitions[key] = _coerce_definition(key, {"placeholder": key, **item})
    return definitions


def _coerce_definition(key: str, item: dict[str, Any]) -> FieldDefinition:
    try:
        return FieldDefinition.model_validate(item)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        log_event(logger, logging.WARNING, "definition_invalid", key=key, error=errors[0]["msg"])
        repaired = _drop_invalid_parts(item, errors)

    if repaired is None:
        return FieldDefinition(placeholder=key)
    try:
        return FieldDefinition.model_validate(repaired)
    except ValidationError:
        return FieldDefinition(placeholder=key)


def _drop_invalid_parts(item: dict[str, Any], errors: list[Any]) -> dict[str, Any] | None:
    """Remove the failing validation block and radio options, or None if anything else failed."""

    repaired = dict(item)
    bad_options: set[int] = set()
    for error in errors:
        loc = error["loc"]
        field = loc[0] if loc else None
        if field == "validation":
            repaired.pop("validation", None)
        elif field in _RADIO_OPTION_KEYS and len(loc) > 1 and isinstance(loc[1], int):
            bad_options.add(loc[1])
        else:
            return None

    if bad_options:
        options_key = next(name for name in _RADIO_OPTION_KEYS if name in repaired)
        repaired[options_key] = [
            option for index, option in enumerate(repaired[options_key]) if index not in bad_options
        ]
    return repaired


def _order_of(definition: FieldDefinition) -> int:
    return definition.order if definition.order is not None else UNORDERED_POSITION


def _leading_int(text: str) -> int:
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else 0
