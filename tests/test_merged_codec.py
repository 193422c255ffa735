from __future__ import annotations

import pytest

from core.config.models import EngineSettings
from core.fields.definitions import generate_field_definitions
from core.fields.merged import (
    apply_merge,
    create_merged_field_definition,
    detect_mergeable_groups,
    join_merged_values,
    remove_merge,
    split_merged_value,
)
from core.fields.models import FieldValidation, MergeableGroup


def _group() -> MergeableGroup:
    return MergeableGroup(
        pattern="$1-$3",
        prefix="$",
        start_num=1,
        end_num=3,
        fields=("$1", "$2", "$3"),
        suggested_label="ตัวเลข 3 หลัก ($1-$3)",
    )


def test_split_with_separator_maps_parts_positionally() -> None:
    assert split_merged_value("12-34", ["$1", "$2"], "-") == {"$1": "12", "$2": "34"}


def test_split_pads_missing_parts_and_drops_extra_parts() -> None:
    assert split_merged_value("12", ["a", "b", "c"], "-") == {"a": "12", "b": "", "c": ""}
    assert split_merged_value("1-2-3", ["a", "b"], "-") == {"a": "1", "b": "2"}


def test_split_without_separator_assigns_one_character_per_key() -> None:
    assert split_merged_value("123", ["a", "b", "c", "d"]) == {"a": "1", "b": "2", "c": "3", "d": ""}
    assert split_merged_value("", ["a", "b"]) == {"a": "", "b": ""}


def test_join_is_inverse_of_split() -> None:
    assert join_merged_values({"a": "12", "b": "34"}, ["a", "b"], "-") == "12-34"
    assert join_merged_values({"a": "1"}, ["a", "b", "c"]) == "1"


@pytest.mark.parametrize(
    ("values", "separator"),
    [
        ({"a": "12", "b": "34", "c": "5"}, "-"),
        ({"a": "", "b": "x", "c": ""}, " / "),
        ({"a": "1", "b": "2", "c": "3"}, ""),
        ({"a": "กข", "b": "", "c": "ค"}, "|"),
    ],
)
def test_merged_round_trip_for_values_without_separator(values: dict[str, str], separator: str) -> None:
    keys = ["a", "b", "c"]

    assert split_merged_value(join_merged_values(values, keys, separator), keys, separator) == values


def test_values_containing_the_separator_mis_split() -> None:
    joined = join_merged_values({"a": "1-2", "b": "3"}, ["a", "b"], "-")

    assert split_merged_value(joined, ["a", "b"], "-") == {"a": "1", "b": "2"}


def test_detect_mergeable_groups_finds_runs_of_three_or_more() -> None:
    placeholders = ["{{$1}}", "$2", "$3", "$5", "n1", "n2", "4d_1", "4d_2", "4d_3", "name"]

    groups = detect_mergeable_groups(placeholders)

    assert [group.pattern for group in groups] == ["$1-$3", "4d_1-4d_3"]
    assert groups[0].fields == ("$1", "$2", "$3")
    assert groups[0].suggested_label == "ตัวเลข 3 หลัก ($1-$3)"
    assert groups[0].suggested_separator == ""
    assert groups[1].suggested_label == "รหัส 4 หลัก 3 หลัก (4d_1-4d_3)"


def test_detect_mergeable_groups_sorts_numerically() -> None:
    groups = detect_mergeable_groups(["$10", "$9", "$8", "$11"])

    assert len(groups) == 1
    assert groups[0].pattern == "$8-$11"
    assert groups[0].start_num == 8
    assert groups[0].end_num == 11
    assert groups[0].fields == ("$8", "$9", "$10", "$11")


def test_detect_mergeable_groups_honours_configured_minimum() -> None:
    settings = EngineSettings(merge_min_sequence=2)

    groups = detect_mergeable_groups(["n1", "n2", "d7"], settings)

    assert [group.pattern for group in groups] == ["n1-n2"]
    assert groups[0].suggested_label == "ตัวเลข n 2 หลัก (n1-n2)"


def test_create_merged_field_definition_builds_primary_only() -> None:
    definition = create_merged_field_definition(_group(), separator="-")

    assert definition.placeholder == "$1"
    assert definition.input_type == "merged"
    assert definition.is_merged is True
    assert definition.merged_fields == ["$1", "$2", "$3"]
    assert definition.merge_pattern == "$1-$3"
    assert definition.separator == "-"
    assert definition.label == "ตัวเลข 3 หลัก ($1-$3)"
    assert definition.description == "รวม 3 ช่อง: $1-$3"
    assert definition.group == "$_merged"
    assert definition.validation == FieldValidation(min_length=3, max_length=6)


def test_create_merged_field_definition_uses_custom_label_and_default_separator() -> None:
    definition = create_merged_field_definition(_group(), label="เลขประจำตัว")

    assert definition.label == "เลขประจำตัว"
    assert definition.separator == ""


def test_apply_merge_hides_constituents_without_mutating_input() -> None:
    definitions = generate_field_definitions(["$1", "$2", "$3", "name"])

    merged = apply_merge(definitions, _group(), separator="-")

    assert merged["$1"].is_merged is True
    assert merged["$2"].group == "merged_hidden_$1-$3"
    assert merged["$3"].group == "merged_hidden_$1-$3"
    assert merged["name"] == definitions["name"]
    assert definitions["$2"].group is None


def test_apply_merge_adds_missing_constituents_as_hidden() -> None:
    merged = apply_merge(generate_field_definitions(["$1"]), _group())

    assert merged["$3"].is_hidden
    assert merged["$3"].placeholder == "$3"


def test_remove_merge_restores_plain_definitions() -> None:
    merged = apply_merge(generate_field_definitions(["$1", "$2", "$3"]), _group())

    restored = remove_merge(merged, "$1")

    assert restored["$1"].is_merged is False
    assert restored["$2"].group is None
    assert restored["$3"].data_type == "number"
    assert remove_merge(restored, "$2") == restored
