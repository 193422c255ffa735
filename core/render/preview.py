"""Live HTML preview: substitute current form values into a template's ``{{key}}`` tokens."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from core.config.models import DEFAULT_SETTINGS, EngineSettings, SectionColor
from core.fields.dates import format_date_to_display
from core.fields.merged import split_merged_value
from core.fields.models import FieldDefinition, GroupedSection, strip_braces
from core.fields.radio import expand_radio_group_value, suppressed_child_keys

_REMAINING_TOKEN_RE = re.compile(r"\{\{([^}]+)\}\}")
_SPECIAL_CHAR_RE = re.compile(r"[.*+?^${}()|\[\]\\]")

ColorMap = Mapping[str, SectionColor]


def decode_brace_entities(html: str) -> str:
    return html.replace("&#123;", "{").replace("&#125;", "}")


def highlight_value(value: str, color: SectionColor) -> str:
    return (
        f'<mark style="background-color: {color.bg}; color: {color.text}; '
        f'padding: 2px 6px; border-radius: 4px; font-weight: 500;">{value}</mark>'
    )


def highlight_empty(color: SectionColor, marker: str = "___") -> str:
    return (
        f'<mark style="background-color: {color.bg}; color: {color.text}; '
        f'padding: 2px 6px; border-radius: 4px; opacity: 0.7;">{marker}</mark>'
    )


def build_field_color_map(
    sections: Iterable[GroupedSection],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> dict[str, SectionColor]:
    """Assign every field in a section that section's palette color."""

    colors: dict[str, SectionColor] = {}
    for section in sections:
        color = settings.section_color(section.color_index)
        for definition in section.fields:
            colors[definition.key] = color
    return colors


def display_value(raw_value: str, definition: FieldDefinition | None, settings: EngineSettings = DEFAULT_SETTINGS) -> str:
    """Format a stored value for display; only non-merged date fields change."""

    if definition is not None and definition.input_type == "date" and raw_value and not definition.is_merged:
        return format_date_to_display(raw_value, definition.date_format or settings.default_date_format)
    return raw_value


def render_preview(
    template: str,
    form_data: Mapping[str, str],
    definitions: Mapping[str, FieldDefinition],
    active_field: str | None = None,
    color_map: ColorMap | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> str:
    """Return ``template`` with every ``{{key}}`` token resolved against ``form_data``.

    Known fields are substituted first (merged fields per constituent, radio groups per
    option). Tokens left over are looked up case-insensitively in ``form_data`` and dropped
    when nothing matches. Only the active field's values are wrapped in a ``<mark>``.
    """

    colors = color_map or {}
    html = decode_brace_entities(template)
    covered = _covered_keys(definitions)
    suppressed = suppressed_child_keys(definitions, form_data)

    for key in form_data:
        if key in covered:
            continue

        definition = definitions.get(key)
        raw_value = "" if key in suppressed else (form_data.get(key) or "")
        is_active = active_field == key
        section_color = colors.get(key, settings.default_color)

        if definition is not None and definition.merged_keys:
            parts = split_merged_value(raw_value, definition.merged_keys, definition.separator or "")
            for part_key in definition.merged_keys:
                html = _replace_token(
                    html, part_key, parts[part_key], is_active, colors.get(part_key, section_color), settings
                )
        elif definition is not None and definition.options_for_radio:
            options = definition.options_for_radio
            expanded = expand_radio_group_value(raw_value, options, settings.default_radio_mark)
            for option in options:
                html = _replace_token(
                    html,
                    strip_braces(option.placeholder),
                    expanded[option.placeholder],
                    is_active,
                    colors.get(option.placeholder, section_color),
                    settings,
                )
        else:
            html = _replace_token(
                html, key, display_value(raw_value, definition, settings), is_active, section_color, settings
            )

    return _resolve_remaining_tokens(html, form_data, definitions, suppressed, settings)


def _covered_keys(definitions: Mapping[str, FieldDefinition]) -> set[str]:
    """Keys rendered through another definition: merged constituents and non-master radio options."""

    covered: set[str] = set()
    for key, definition in definitions.items():
        if definition.merged_keys:
            covered.update(item for item in definition.merged_keys if item != key)
        elif definition.options_for_radio:
            covered.update(
                strip_braces(option.placeholder)
                for option in definition.options_for_radio
                if strip_braces(option.placeholder) != key
            )
    return covered


def _replace_token(
    html: str,
    key: str,
    value: str,
    is_active: bool,
    color: SectionColor,
    settings: EngineSettings,
) -> str:
    if value:
        replacement = highlight_value(value, color) if is_active else value
    else:
        replacement = highlight_empty(color, settings.empty_marker) if is_active else ""

    token = _SPECIAL_CHAR_RE.sub(lambda match: "\\" + match.group(0), f"{{{{{key}}}}}")
    return re.sub(token, lambda _match: replacement, html, flags=re.IGNORECASE)


def _resolve_remaining_tokens(
    html: str,
    form_data: Mapping[str, str],
    definitions: Mapping[str, FieldDefinition],
    suppressed: set[str],
    settings: EngineSettings,
) -> str:
    lowered: dict[str, str] = {}
    for key in form_data:
        lowered.setdefault(key.lower(), key)

    def resolve(match: re.Match[str]) -> str:
        key = lowered.get(match.group(1).lower())
        if key is None or key in suppressed or not form_data.get(key):
            return ""
        return display_value(form_data[key], definitions.get(key), settings)

    return _REMAINING_TOKEN_RE.sub(resolve, html)
