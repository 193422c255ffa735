"""Data models for pattern rules and configurable data types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict

MatchType = Literal["starts_with", "ends_with", "contains", "exact", "regex"]


class _RuleModel(BaseModel):
    """Base for rule rows as returned by the admin backend (snake_case JSON)."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class FieldRule(_RuleModel):
    """Auto-classification rule: a placeholder-name regex and the field settings it applies.

    ``validation`` and ``options`` hold JSON strings exactly as persisted.
    """

    name: str
    pattern: str = ""
    description: str = ""
    priority: int = 0
    is_active: bool = True
    data_type: str = ""
    input_type: str = ""
    entity: str = ""
    group_name: str = ""
    validation: str = ""
    options: str = ""


class EntityRule(_RuleModel):
    """Rule assigning an entity code to placeholders whose name matches ``pattern``."""

    name: str
    code: str
    pattern: str = ""
    description: str = ""
    priority: int = 0
    is_active: bool = True
    color: str = ""
    icon: str = ""


class ConfigurableDataType(_RuleModel):
    """Admin-managed data type; supplies options, validation and defaults to field definitions."""

    code: str
    name: str = ""
    description: str = ""
    pattern: str = ""
    input_type: str = ""
    validation: str = ""
    options: str = ""
    default_value: str = ""
    priority: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class PatternBuilderState:
    """Structured editor state of a rule pattern; only its regex projection is stored."""

    match_type: MatchType
    value: str
    case_sensitive: bool = True
