from __future__ import annotations

import pytest

from core.fields.definitions import generate_field_definitions
from core.fields.models import FieldDefinition, RadioGroupConfig, RadioOption
from core.fields.radio import (
    active_child_keys,
    apply_radio_groups,
    create_radio_group_definition,
    detect_potential_radio_groups,
    existing_radio_groups,
    expand_radio_group_value,
    get_radio_group_selected_value,
    potential_child_fields,
    suppressed_child_keys,
)

OPTIONS = [
    RadioOption(placeholder="$1", label="ชาย", value="/"),
    RadioOption(placeholder="$2", label="หญิง", value="/"),
]


def test_expand_marks_only_the_selected_option() -> None:
    assert expand_radio_group_value("$2", OPTIONS) == {"$1": "", "$2": "/"}


@pytest.mark.parametrize("selected", ["", "$9", None])
def test_expand_with_unmatched_selection_is_all_empty(selected: str | None) -> None:
    assert expand_radio_group_value(selected, OPTIONS) == {"$1": "", "$2": ""}


def test_expand_yields_exactly_one_non_empty_value_for_each_option() -> None:
    options = OPTIONS + [RadioOption(placeholder="$3", value="✓")]

    for option in options:
        expanded = expand_radio_group_value(option.placeholder, options)
        assert [key for key, value in expanded.items() if value] == [option.placeholder]


def test_expand_uses_checkmark_when_option_value_is_empty() -> None:
    options = [RadioOption(placeholder="$1"), RadioOption(placeholder="$2")]

    assert expand_radio_group_value("$1", options) == {"$1": "/", "$2": ""}
    assert expand_radio_group_value("$1", options, default_mark="X") == {"$1": "X", "$2": ""}


def test_get_selected_value_reads_first_non_blank_option() -> None:
    assert get_radio_group_selected_value({"$1": " ", "$2": "✓"}, OPTIONS) == "$2"
    assert get_radio_group_selected_value({"$1": "", "$2": ""}, OPTIONS) == ""
    assert get_radio_group_selected_value({}, OPTIONS) == ""


def test_create_radio_group_definition_uses_first_option_as_master() -> None:
    definition = create_radio_group_definition("sex", "เพศ / Sex", OPTIONS)

    assert definition.placeholder == "$1"
    assert definition.input_type == "radio"
    assert definition.is_radio_group is True
    assert definition.radio_group_id == "sex"
    assert definition.radio_options == OPTIONS
    assert create_radio_group_definition("empty", "x", []).placeholder == "empty"


def _radio_config(**overrides: object) -> RadioGroupConfig:
    values: dict[str, object] = {
        "group_id": "g1",
        "label": "เพศ",
        "options": (
            RadioOption(placeholder="$1", label="ชาย", value="/"),
            RadioOption(placeholder="$3", label="อื่น ๆ", value="/", child_fields=["$3_D"]),
        ),
    }
    values.update(overrides)
    return RadioGroupConfig(**values)  # type: ignore[arg-type]


def test_apply_radio_groups_converts_master_and_hides_options_and_children() -> None:
    definitions = generate_field_definitions(["$1", "$3", "$3_D", "$4"])

    updated = apply_radio_groups(definitions, [_radio_config()])

    master = updated["$1"]
    assert master.input_type == "radio"
    assert master.label == "เพศ"
    assert master.is_radio_group is True
    assert master.radio_group_id == "g1"
    assert updated["$3"].group == "radio_hidden_g1"
    assert updated["$3_D"].group == "radio_child_g1_$3"
    assert updated["$4"] == definitions["$4"]
    assert definitions["$1"].is_radio_group is False


def test_apply_radio_groups_clears_previous_configuration() -> None:
    definitions = apply_radio_groups(generate_field_definitions(["$1", "$3", "$3_D"]), [_radio_config()])

    cleared = apply_radio_groups(definitions, [])

    assert cleared["$1"].is_radio_group is False
    assert cleared["$1"].radio_options is None
    assert cleared["$3"].group is None
    assert cleared["$3_D"].group is None


def test_apply_radio_groups_skips_small_groups_and_missing_masters() -> None:
    definitions = generate_field_definitions(["$1", "$3"])

    single = _radio_config(options=(RadioOption(placeholder="$1"),))
    orphan = _radio_config(master_placeholder="$99")

    assert apply_radio_groups(definitions, [single, orphan]) == definitions


def test_existing_radio_groups_reads_back_applied_configuration() -> None:
    updated = apply_radio_groups(generate_field_definitions(["$1", "$3", "$3_D"]), [_radio_config()])

    groups = existing_radio_groups(updated)

    assert len(groups) == 1
    assert groups[0].group_id == "g1"
    assert groups[0].master_placeholder == "$1"
    assert [option.placeholder for option in groups[0].options] == ["$1", "$3"]


def test_child_fields_follow_the_current_selection() -> None:
    definitions = apply_radio_groups(generate_field_definitions(["$1", "$3", "$3_D"]), [_radio_config()])

    assert active_child_keys(definitions, {"$1": "$3"}) == {"$3_D"}
    assert suppressed_child_keys(definitions, {"$1": "$3"}) == set()
    assert active_child_keys(definitions, {"$1": "$1", "$3_D": "kept"}) == set()
    assert suppressed_child_keys(definitions, {"$1": "$1", "$3_D": "kept"}) == {"$3_D"}


def test_potential_child_fields_for_dollar_placeholders() -> None:
    keys = ["$3_D", "$3_M", "$30", "$4_D", "name"]

    assert potential_child_fields("$3", keys) == ["$3_D", "$3_M"]
    assert potential_child_fields("name", keys) == []


def test_detect_potential_radio_groups_pairs_checkboxes() -> None:
    definitions = {
        key: FieldDefinition(placeholder=key, input_type="checkbox") for key in ("$2", "$1", "$3")
    }
    definitions["$4"] = FieldDefinition(placeholder="$4")

    suggestions = detect_potential_radio_groups(definitions)

    assert len(suggestions) == 1
    assert suggestions[0].group_id == "dollar_radio_0"
    assert suggestions[0].master_placeholder == "$1"
    assert [option.placeholder for option in suggestions[0].options] == ["$1", "$2"]


def test_detect_potential_radio_groups_orders_pairs_numerically() -> None:
    definitions = {key: FieldDefinition(placeholder=key, input_type="checkbox") for key in ("$10", "$9")}

    suggestion = detect_potential_radio_groups(definitions)[0]

    assert suggestion.master_placeholder == "$9"
    assert [option.placeholder for option in suggestion.options] == ["$9", "$10"]
