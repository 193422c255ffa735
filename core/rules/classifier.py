"""Apply pattern rules to placeholder names to produce field definitions."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

from core.fields.definitions import (
    detect_field_type,
    merge_validation,
    parse_options_json,
    parse_validation_json,
)
from core.fields.models import FieldDefinition, strip_braces
from core.rules.models import EntityRule, FieldRule
from core.rules.pattern_builder import compile_rule_pattern
from core.utils.events import log_event

logger = logging.getLogger("formfield.rules")

_RuleT = TypeVar("_RuleT", FieldRule, EntityRule)


def classify_placeholders(
    placeholders: Iterable[str],
    rules: Iterable[FieldRule],
    entity_rules: Iterable[EntityRule] = (),
) -> dict[str, FieldDefinition]:
    """Build a definition per placeholder from the first matching rule by descending priority.

    Placeholders no rule matches fall back to name-based detection. Entity rules, when given,
    override the entity of every placeholder they match.
    """

    field_rules = _compile_rules(rules)
    entity_matchers = _compile_rules(entity_rules)

    definitions: dict[str, FieldDefinition] = {}
    for placeholder in placeholders:
        key = strip_braces(placeholder)
        rule = _first_match(field_rules, key)
        definition = apply_field_rule(placeholder, rule) if rule else detect_field_type(placeholder)

        entity_rule = _first_match(entity_matchers, key)
        if entity_rule is not None:
            definition = definition.model_copy(update={"entity": entity_rule.code})

        definitions[key] = definition
    return definitions


def apply_field_rule(placeholder: str, rule: FieldRule) -> FieldDefinition:
    """Turn a matched rule into a definition, keeping detected values for blank rule columns."""

    detected = detect_field_type(placeholder)
    changes: dict[str, Any] = {
        "data_type": rule.data_type or detected.data_type,
        "input_type": rule.input_type or detected.input_type,
        "entity": rule.entity or detected.entity,
    }
    if rule.group_name:
        changes["group"] = rule.group_name

    validation = detected.validation
    if rule.validation:
        extra = parse_validation_json(rule.validation, source=rule.name)
        if extra:
            validation = merge_validation(validation, extra, source=rule.name)
    if rule.options:
        options = parse_options_json(rule.options, source=rule.name)
        if options:
            validation = merge_validation(validation, {"options": options}, source=rule.name)
    changes["validation"] = validation

    return detected.model_copy(update=changes)


def _compile_rules(rules: Iterable[_RuleT]) -> list[tuple[re.Pattern[str], _RuleT]]:
    ordered = sorted(
        (rule for rule in rules if rule.is_active and rule.pattern),
        key=lambda rule: rule.priority,
        reverse=True,
    )
    compiled: list[tuple[re.Pattern[str], _RuleT]] = []
    for rule in ordered:
        try:
            compiled.append((compile_rule_pattern(rule.pattern), rule))
        except re.error as exc:
            log_event(
                logger,
                logging.WARNING,
                "rule_pattern_invalid",
                rule=rule.name,
                pattern=rule.pattern,
                error=str(exc),
            )
    return compiled


def _first_match(compiled: Sequence[tuple[re.Pattern[str], _RuleT]], key: str) -> _RuleT | None:
    for pattern, rule in compiled:
        if pattern.search(key):
            return rule
    return None
