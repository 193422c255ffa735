"""Custom exceptions for core logic."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.templates.models import ParseResult


class TemplateError(Exception):
    """Raised when template placeholders are malformed in strict mode."""

    def __init__(self, message: str, *, result: ParseResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class MissingRequiredFieldsError(Exception):
    """Raised when required fields are empty while building a submission payload."""

    def __init__(
        self,
        message: str,
        *,
        missing_required: list[str],
        payload: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.missing_required = missing_required
        self.payload = payload


class IncompleteRuleError(ValueError):
    """Raised when a rule pattern is empty and must not be evaluated or persisted."""

    def __init__(self, message: str, *, rule_name: str | None = None) -> None:
        super().__init__(message)
        self.rule_name = rule_name
