"""Settings loading utilities for preview rendering and payload building."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.config.models import EngineSettings

_COLOR_TOKEN_MAP = {
    "SECTION_YELLOW": {"bg": "#FEF3C7", "text": "#92400E"},
    "SECTION_BLUE": {"bg": "#DBEAFE", "text": "#1E40AF"},
    "SECTION_PINK": {"bg": "#FCE7F3", "text": "#9D174D"},
    "SECTION_GREEN": {"bg": "#D1FAE5", "text": "#065F46"},
    "SECTION_PURPLE": {"bg": "#E0E7FF", "text": "#3730A3"},
    "SECTION_RED": {"bg": "#FEE2E2", "text": "#991B1B"},
    "SECTION_GRAY": {"bg": "#F3F4F6", "text": "#374151"},
    "SECTION_CYAN": {"bg": "#CFFAFE", "text": "#155E75"},
}


def load_settings(path: Path | None = None) -> EngineSettings:
    """Load and validate engine settings from YAML."""

    settings_path = path or Path(__file__).with_name("settings.yaml")

    try:
        raw = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Settings file not found: {settings_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in settings file: {settings_path}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Settings file must contain a mapping: {settings_path}")

    normalized = _normalize_color_tokens(raw, settings_path)

    try:
        return EngineSettings.model_validate(normalized)
    except ValidationError as exc:
        raise ValueError(f"Invalid settings schema: {settings_path}") from exc


def _normalize_color_tokens(raw: dict[object, object], settings_path: Path) -> dict[object, object]:
    normalized = dict(raw)

    colors = normalized.get("section_colors")
    if isinstance(colors, list):
        normalized["section_colors"] = [
            _resolve_color(item, settings_path) for item in colors
        ]

    default_color = normalized.get("default_color")
    if default_color is not None:
        normalized["default_color"] = _resolve_color(default_color, settings_path)

    return normalized


def _resolve_color(value: object, settings_path: Path) -> object:
    if not isinstance(value, str):
        return value
    if value in _COLOR_TOKEN_MAP:
        return dict(_COLOR_TOKEN_MAP[value])
    raise ValueError(
        f"Invalid color token '{value}' in {settings_path}. "
        "Use a {bg, text} mapping or a supported SECTION_* token."
    )
