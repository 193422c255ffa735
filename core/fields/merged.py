"""Merged field codec: one form value spread over several consecutive placeholders."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence

from core.config.models import DEFAULT_SETTINGS, EngineSettings
from core.fields.definitions import detect_field_type
from core.fields.models import (
    MERGED_HIDDEN_PREFIX,
    FieldDefinition,
    FieldValidation,
    MergeableGroup,
    strip_braces,
)

# (pattern, prefix, label) per placeholder family that can form a numeric sequence.
_SEQUENCE_FAMILIES: tuple[tuple[re.Pattern[str], str, str], ...] = (
    (re.compile(r"^\$(\d+)$"), "$", "ตัวเลข"),
    (re.compile(r"^n(\d+)$"), "n", "ตัวเลข n"),
    (re.compile(r"^4d_(\d+)$"), "4d_", "รหัส 4 หลัก"),
    (re.compile(r"^d(\d+)$"), "d", "หลักที่"),
    (re.compile(r"^num(\d+)$"), "num", "ตัวเลข"),
    (re.compile(r"^digit(\d+)$"), "digit", "หลัก"),
)


def split_merged_value(flat_value: str, field_keys: Sequence[str], separator: str = "") -> dict[str, str]:
    """Split one stored value into a value per constituent key.

    A non-empty separator splits positionally; missing trailing parts become empty and extra
    parts are dropped. An empty separator assigns one character per key.
    """

    value = flat_value or ""
    parts = value.split(separator) if separator else list(value)
    return {
        key: parts[index] if index < len(parts) else ""
        for index, key in enumerate(field_keys)
    }


def join_merged_values(values: Mapping[str, str], field_keys: Sequence[str], separator: str = "") -> str:
    """Join constituent values in key order.

    Values containing ``separator`` will not split back the same way.
    """

    return separator.join(values.get(key) or "" for key in field_keys)


def detect_mergeable_groups(
    placeholders: Iterable[str],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> list[MergeableGroup]:
    """Find runs of numerically consecutive placeholders sharing a known prefix."""

    keys = list(dict.fromkeys(strip_braces(item) for item in placeholders))
    groups: list[MergeableGroup] = []

    for pattern, prefix, label in _SEQUENCE_FAMILIES:
        numbered: list[tuple[int, str]] = []
        for key in keys:
            match = pattern.match(key)
            if match:
                numbered.append((int(match.group(1)), key))

        if len(numbered) < 2:
            continue

        numbered.sort(key=lambda item: item[0])
        for run in _consecutive_runs(numbered):
            if len(run) < settings.merge_min_sequence:
                continue
            start_num = run[0][0]
            end_num = run[-1][0]
            signature = f"{prefix}{start_num}-{prefix}{end_num}"
            groups.append(
                MergeableGroup(
                    pattern=signature,
                    prefix=prefix,
                    start_num=start_num,
                    end_num=end_num,
                    fields=tuple(key for _, key in run),
                    suggested_label=f"{label} {len(run)} หลัก ({signature})",
                )
            )

    return groups


def create_merged_field_definition(
    group: MergeableGroup,
    label: str | None = None,
    separator: str | None = None,
) -> FieldDefinition:
    """Build the primary definition of a merged field.

    Only the primary is returned; hiding the other constituents is up to the caller
    (see ``apply_merge``).
    """

    total = len(group.fields)
    return FieldDefinition(
        placeholder=group.fields[0],
        data_type="text",
        entity="general",
        input_type="merged",
        label=label or group.suggested_label,
        description=f"รวม {total} ช่อง: {group.pattern}",
        group=f"{group.prefix}_merged",
        is_merged=True,
        merged_fields=list(group.fields),
        separator=group.suggested_separator if separator is None else separator,
        merge_pattern=group.pattern,
        validation=FieldValidation(min_length=total, max_length=total * 2),
    )


def apply_merge(
    definitions: Mapping[str, FieldDefinition],
    group: MergeableGroup,
    label: str | None = None,
    separator: str | None = None,
) -> dict[str, FieldDefinition]:
    """Return a new definitions map with ``group`` merged into its first placeholder."""

    merged = create_merged_field_definition(group, label, separator)
    hidden_group = f"{MERGED_HIDDEN_PREFIX}{group.pattern}"

    updated = dict(definitions)
    updated[merged.key] = merged
    for key in group.fields[1:]:
        existing = updated.get(key) or detect_field_type(key)
        updated[key] = existing.model_copy(update={"group": hidden_group})
    return updated


def remove_merge(definitions: Mapping[str, FieldDefinition], primary_key: str) -> dict[str, FieldDefinition]:
    """Return a new map where the merged field at ``primary_key`` is replaced by plain fields.

    Constituents get freshly detected definitions. A key that is not a merged field is a no-op.
    """

    primary = definitions.get(primary_key)
    if primary is None or not primary.merged_keys:
        return dict(definitions)

    updated = dict(definitions)
    for key in primary.merged_keys:
        updated[key] = detect_field_type(key)
    return updated


def _consecutive_runs(numbered: list[tuple[int, str]]) -> list[list[tuple[int, str]]]:
    runs: list[list[tuple[int, str]]] = [[numbered[0]]]
    for item in numbered[1:]:
        if item[0] == runs[-1][-1][0] + 1:
            runs[-1].append(item)
        else:
            runs.append([item])
    return runs
