"""Data models for form field definitions and their codecs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

MERGED_HIDDEN_PREFIX = "merged_hidden_"
RADIO_HIDDEN_PREFIX = "radio_hidden_"
RADIO_CHILD_PREFIX = "radio_child_"
HIDDEN_GROUP_PREFIXES = (MERGED_HIDDEN_PREFIX, RADIO_HIDDEN_PREFIX, RADIO_CHILD_PREFIX)

CharType = Literal["digit", "letter", "any"]
SegmentKind = Literal["input", "separator"]


class _StoredModel(BaseModel):
    """Base for models persisted as camelCase JSON by the template backend."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class FieldValidation(_StoredModel):
    """Optional per-field validation constraints."""

    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    min: float | None = None
    max: float | None = None
    options: list[str] | None = None
    required: bool | None = None


class RadioOption(_StoredModel):
    """One selectable option of a radio group."""

    placeholder: str
    label: str = ""
    value: str = ""
    child_fields: list[str] | None = None


class FieldDefinition(_StoredModel):
    """The unit of a form field, possibly covering several placeholders."""

    placeholder: str
    data_type: str = "text"
    entity: str = "general"
    input_type: str = "text"
    validation: FieldValidation | None = None
    label: str | None = None
    description: str | None = None
    group: str | None = None
    group_order: int | None = None
    order: int | None = None
    default_value: str | None = None
    date_format: str | None = None
    data_type_label: str | None = None

    is_merged: bool = False
    merged_fields: list[str] | None = None
    separator: str | None = None
    merge_pattern: str | None = None

    is_radio_group: bool = False
    radio_group_id: str | None = None
    radio_options: list[RadioOption] | None = None

    digit_format: str | None = None
    location_output_format: str | None = None

    @property
    def key(self) -> str:
        """Placeholder key without surrounding braces."""

        return strip_braces(self.placeholder)

    @property
    def is_hidden(self) -> bool:
        return bool(self.group) and self.group.startswith(HIDDEN_GROUP_PREFIXES)

    @property
    def merged_keys(self) -> list[str]:
        """Constituent keys when this is a usable merged field, else empty."""

        if self.is_merged and self.merged_fields:
            return [strip_braces(item) for item in self.merged_fields]
        return []

    @property
    def options_for_radio(self) -> list[RadioOption]:
        """Radio options when this is a usable radio group, else empty."""

        if self.is_radio_group and self.radio_options:
            return list(self.radio_options)
        return []

    def to_json(self) -> dict[str, object]:
        """Serialize with the backend's camelCase keys."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class DigitSegment:
    """A parsed run of a digit format: an input run or a literal separator."""

    kind: SegmentKind
    char_type: CharType
    length: int
    literal: str = ""


@dataclass(frozen=True)
class MergeableGroup:
    """Numerically sequential placeholders that can be merged into one field."""

    pattern: str
    prefix: str
    start_num: int
    end_num: int
    fields: tuple[str, ...]
    suggested_label: str
    suggested_separator: str = ""


@dataclass(frozen=True)
class RadioGroupConfig:
    """Editor-side description of one radio group before it is applied to definitions."""

    group_id: str
    label: str
    options: tuple[RadioOption, ...]
    master_placeholder: str | None = None


@dataclass(frozen=True)
class AddressSelection:
    """Administrative boundary names picked for a location field."""

    province: str
    district: str
    subdistrict: str
    province_en: str = ""
    district_en: str = ""
    subdistrict_en: str = ""


@dataclass(frozen=True)
class FieldCheck:
    """Outcome of validating one value."""

    valid: bool
    error: str | None = None


@dataclass(frozen=True)
class GroupedSection:
    """A form section built from saved ``name|colorIndex`` group values."""

    name: str
    fields: tuple[FieldDefinition, ...]
    color_index: int = 0


@dataclass(frozen=True)
class Progress:
    filled: int
    total: int
    percentage: int


def strip_braces(placeholder: str) -> str:
    """Remove every ``{{``/``}}`` from a placeholder token."""

    return placeholder.replace("{{", "").replace("}}", "")
