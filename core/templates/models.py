"""Data models for template parsing, fingerprinting, and definition storage."""

from __future__ import annotations

from dataclasses import dataclass, field

from core.fields.models import FieldDefinition


@dataclass(frozen=True)
class Occurrence:
    """A well-formed ``{{key}}`` token and its character span in the decoded template."""

    field_name: str
    start: int
    end: int


@dataclass(frozen=True)
class UnsupportedOccurrence:
    """A placeholder-like token that cannot be resolved safely."""

    kind: str
    text: str
    start: int
    end: int


@dataclass
class ParseResult:
    """Placeholder parsing output."""

    fields: list[str] = field(default_factory=list)
    occurrences: list[Occurrence] = field(default_factory=list)
    unsupported: list[UnsupportedOccurrence] = field(default_factory=list)


@dataclass
class FingerprintPayload:
    """Canonical payload used for template fingerprint generation."""

    text: str
    occurrences: list[Occurrence] = field(default_factory=list)
    unsupported: list[UnsupportedOccurrence] = field(default_factory=list)


@dataclass
class TemplateDefinitions:
    """Stored field definitions keyed by template fingerprint."""

    fingerprint: str
    placeholders: list[str] = field(default_factory=list)
    definitions: dict[str, FieldDefinition] = field(default_factory=dict)
    note: str | None = None


@dataclass
class DefinitionStoreData:
    """On-disk JSON structure for stored definitions."""

    version: int = 1
    templates: dict[str, TemplateDefinitions] = field(default_factory=dict)
