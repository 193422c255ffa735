"""Radio group codec: mutually exclusive option placeholders behind one form field.

The stored value of a radio field is the placeholder key of the selected option. Expansion
turns it into one value per option placeholder; only the selected one is non-empty.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence

from core.fields.models import (
    RADIO_CHILD_PREFIX,
    RADIO_HIDDEN_PREFIX,
    FieldDefinition,
    RadioGroupConfig,
    RadioOption,
    strip_braces,
)

DEFAULT_RADIO_MARK = "/"

_DOLLAR_BASE_RE = re.compile(r"^(\$\d+)$")
_DOLLAR_NUMBER_RE = re.compile(r"^\$(\d+)$")


def expand_radio_group_value(
    selected_placeholder: str | None,
    options: Sequence[RadioOption],
    default_mark: str = DEFAULT_RADIO_MARK,
) -> dict[str, str]:
    """Map every option placeholder to its value: the option's mark if selected, else ``""``."""

    return {
        option.placeholder: (option.value or default_mark)
        if selected_placeholder and option.placeholder == selected_placeholder
        else ""
        for option in options
    }


def get_radio_group_selected_value(form_values: Mapping[str, str], options: Sequence[RadioOption]) -> str:
    """Recover the selected option from an expanded flat map; ``""`` when none is set."""

    for option in options:
        value = form_values.get(option.placeholder)
        if value and value.strip():
            return option.placeholder
    return ""


def create_radio_group_definition(
    group_id: str,
    label: str,
    options: Sequence[RadioOption],
) -> FieldDefinition:
    """Build the master definition of a radio group, keyed by the first option's placeholder."""

    master = options[0].placeholder if options else group_id
    return FieldDefinition(
        placeholder=master,
        data_type="text",
        entity="general",
        input_type="radio",
        label=label,
        is_radio_group=True,
        radio_group_id=group_id,
        radio_options=list(options),
    )


def selected_option(definition: FieldDefinition, form_data: Mapping[str, str]) -> RadioOption | None:
    selected = form_data.get(definition.key) or ""
    for option in definition.options_for_radio:
        if option.placeholder == selected:
            return option
    return None


def active_child_keys(
    definitions: Mapping[str, FieldDefinition],
    form_data: Mapping[str, str],
) -> set[str]:
    """Child field keys of currently selected options; these are shown and submitted."""

    active: set[str] = set()
    for definition in definitions.values():
        option = selected_option(definition, form_data)
        if option is not None and option.child_fields:
            active.update(strip_braces(item) for item in option.child_fields)
    return active


def suppressed_child_keys(
    definitions: Mapping[str, FieldDefinition],
    form_data: Mapping[str, str],
) -> set[str]:
    """Child field keys of unselected options. Their values are kept but never rendered or submitted."""

    children: set[str] = set()
    for definition in definitions.values():
        for option in definition.options_for_radio:
            children.update(strip_braces(item) for item in option.child_fields or [])
    return children - active_child_keys(definitions, form_data)


def apply_radio_groups(
    definitions: Mapping[str, FieldDefinition],
    groups: Iterable[RadioGroupConfig],
) -> dict[str, FieldDefinition]:
    """Return a new definitions map with ``groups`` as the complete radio configuration.

    Any previous radio setup is cleared first. Groups with fewer than two options or without
    a master present in ``definitions`` are skipped.
    """

    updated: dict[str, FieldDefinition] = {}
    for key, definition in definitions.items():
        changes: dict[str, object] = {}
        if definition.is_radio_group:
            changes.update(is_radio_group=False, radio_group_id=None, radio_options=None)
        if definition.group and definition.group.startswith((RADIO_HIDDEN_PREFIX, RADIO_CHILD_PREFIX)):
            changes["group"] = None
        updated[key] = definition.model_copy(update=changes) if changes else definition

    for group in groups:
        if len(group.options) < 2:
            continue
        master_key = group.master_placeholder or group.options[0].placeholder
        if master_key not in updated:
            continue

        updated[master_key] = updated[master_key].model_copy(
            update={
                "input_type": "radio",
                "label": group.label,
                "is_radio_group": True,
                "radio_group_id": group.group_id,
                "radio_options": list(group.options),
            }
        )

        for option in group.options:
            if option.placeholder != master_key and option.placeholder in updated:
                updated[option.placeholder] = updated[option.placeholder].model_copy(
                    update={"group": f"{RADIO_HIDDEN_PREFIX}{group.group_id}"}
                )
            for child_key in option.child_fields or []:
                if child_key in updated:
                    updated[child_key] = updated[child_key].model_copy(
                        update={"group": f"{RADIO_CHILD_PREFIX}{group.group_id}_{option.placeholder}"}
                    )

    return updated


def existing_radio_groups(definitions: Mapping[str, FieldDefinition]) -> list[RadioGroupConfig]:
    """Read the radio configuration currently stored on ``definitions`` back into group configs."""

    return [
        RadioGroupConfig(
            group_id=definition.radio_group_id or key,
            label=definition.label or key,
            options=tuple(definition.options_for_radio),
            master_placeholder=key,
        )
        for key, definition in definitions.items()
        if definition.options_for_radio
    ]


def potential_child_fields(placeholder: str, all_keys: Iterable[str]) -> list[str]:
    """Suggest child fields for a ``$N`` option: every key starting with ``$N_``."""

    match = _DOLLAR_BASE_RE.match(placeholder)
    if not match:
        return []
    base = f"{match.group(1)}_"
    return [key for key in all_keys if key.startswith(base)]


def detect_potential_radio_groups(definitions: Mapping[str, FieldDefinition]) -> list[RadioGroupConfig]:
    """Suggest radio groups from checkbox ``$N`` fields paired as ($1,$2), ($3,$4), ..."""

    pairs: dict[int, list[str]] = {}
    for key, definition in definitions.items():
        if definition.input_type != "checkbox":
            continue
        match = _DOLLAR_NUMBER_RE.match(key)
        if match:
            pairs.setdefault((int(match.group(1)) - 1) // 2, []).append(key)

    suggestions: list[RadioGroupConfig] = []
    for pair_index, keys in pairs.items():
        if len(keys) != 2:
            continue
        ordered = sorted(keys, key=_dollar_number)
        suggestions.append(
            RadioGroupConfig(
                group_id=f"dollar_radio_{pair_index}",
                label=f"Radio group for {', '.join(ordered)}",
                options=tuple(RadioOption(placeholder=key, label=key) for key in ordered),
                master_placeholder=ordered[0],
            )
        )
    return suggestions


def _dollar_number(key: str) -> int:
    return int(_DOLLAR_NUMBER_RE.match(key).group(1))
