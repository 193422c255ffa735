"""Typer CLI entrypoint for formfield-engine."""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Any, cast

import typer

from apps.cli.io import (
    dump_json,
    read_form_data,
    read_json_list,
    read_json_object,
    write_json_atomic,
    write_text_atomic,
    write_yaml_atomic,
)
from core.config.models import EngineSettings
from core.config.settings_loader import load_settings
from core.fields.definitions import (
    coerce_definitions,
    enhance_field_definitions,
    filter_visible_definitions,
    group_fields_by_saved_group,
)
from core.fields.digit_format import decode, encode, input_segments, parse_format
from core.fields.merged import detect_mergeable_groups
from core.fields.models import FieldDefinition
from core.render.preview import build_field_color_map, render_preview
from core.render.submission import build_submission_payload, calculate_progress
from core.rules.classifier import classify_placeholders
from core.rules.models import (
    ConfigurableDataType,
    EntityRule,
    FieldRule,
    MatchType,
    PatternBuilderState,
)
from core.rules.pattern_builder import describe_pattern, ensure_rule_pattern, parse_regex_to_pattern
from core.templates.definition_store import DefinitionStore
from core.templates.models import TemplateDefinitions
from core.templates.placeholder_parser import parse_template_placeholders
from core.templates.template_fingerprint import compute_template_fingerprint
from core.utils.errors import IncompleteRuleError, MissingRequiredFieldsError, TemplateError

app = typer.Typer(help="Form field engine CLI", rich_markup_mode=None)
pattern_app = typer.Typer(help="Build and inspect rule patterns.", rich_markup_mode=None)
store_app = typer.Typer(help="Inspect and update the definition store.", rich_markup_mode=None)
app.add_typer(pattern_app, name="pattern")
app.add_typer(store_app, name="store")

MATCH_TYPES = ("starts_with", "ends_with", "contains", "exact", "regex")

TemplateOption = Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)]
SettingsOption = Annotated[
    Path | None,
    typer.Option(envvar="FORMFIELD_SETTINGS", help="Engine settings YAML."),
]
StoreOption = Annotated[
    Path,
    typer.Option(envvar="FORMFIELD_STORE", help="Definition store JSON file."),
]
OutOption = Annotated[
    Path | None,
    typer.Option("--out", help="Write output to this file instead of stdout."),
]


@app.callback()
def cli_callback(
    verbose: Annotated[bool, typer.Option("--verbose", help="Log engine warnings to stderr.")] = False,
) -> None:
    """CLI root callback; configures logging for the engine modules."""

    logging.basicConfig(
        level=logging.INFO if verbose else logging.ERROR,
        format="%(levelname)s %(name)s %(message)s",
    )


@app.command("placeholders")
def placeholders_command(
    template: TemplateOption,
    strict: Annotated[bool, typer.Option("--strict", help="Fail on unsupported tokens.")] = False,
    out: OutOption = None,
) -> None:
    """List the placeholders of an HTML template with its fingerprint."""

    try:
        html = template.read_text(encoding="utf-8")
        result = parse_template_placeholders(html, strict=strict)
        payload = {
            "fingerprint": compute_template_fingerprint(html),
            "fields": result.fields,
            "occurrences": [asdict(item) for item in result.occurrences],
            "unsupported": [asdict(item) for item in result.unsupported],
        }
    except TemplateError as exc:
        count = len(exc.result.unsupported) if exc.result is not None else 0
        typer.echo(f"ERROR: template unsupported placeholders (count={count})")
        raise typer.Exit(code=3) from exc
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    if result.unsupported:
        typer.echo(
            "WARNING(unsupported): unsupported placeholders detected "
            f"(count={len(result.unsupported)}).",
            err=True,
        )
    typer.echo(f"INFO: found {len(result.fields)} placeholders", err=True)
    _emit_json(payload, out)


@app.command("detect-merges")
def detect_merges_command(
    template: TemplateOption,
    settings: SettingsOption = None,
    out: OutOption = None,
) -> None:
    """Suggest merged fields from numerically sequential placeholders."""

    try:
        engine_settings = load_settings(settings)
        fields = parse_template_placeholders(template.read_text(encoding="utf-8")).fields
        groups = detect_mergeable_groups(fields, engine_settings)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"INFO: found {len(groups)} mergeable groups", err=True)
    _emit_json([asdict(group) for group in groups], out)


@app.command("classify")
def classify_command(
    template: TemplateOption,
    rules: Annotated[Path | None, typer.Option(exists=True, dir_okay=False, help="Field rules JSON list.")] = None,
    entity_rules: Annotated[
        Path | None,
        typer.Option("--entity-rules", exists=True, dir_okay=False, help="Entity rules JSON list."),
    ] = None,
    data_types: Annotated[
        Path | None,
        typer.Option("--data-types", exists=True, dir_okay=False, help="Configurable data types JSON list."),
    ] = None,
    out: OutOption = None,
) -> None:
    """Generate field definitions for a template from pattern rules and name detection."""

    try:
        fields = parse_template_placeholders(template.read_text(encoding="utf-8")).fields
        rule_models = [FieldRule.model_validate(item) for item in _optional_list(rules, "Rules")]
        entity_models = [
            EntityRule.model_validate(item) for item in _optional_list(entity_rules, "Entity rules")
        ]
        definitions = classify_placeholders(fields, rule_models, entity_models)
        type_models = [
            ConfigurableDataType.model_validate(item)
            for item in _optional_list(data_types, "Data types")
        ]
        if type_models:
            definitions = enhance_field_definitions(definitions, type_models)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"INFO: classified {len(definitions)} placeholders", err=True)
    _emit_json(_definitions_json(definitions), out)


@app.command("preview")
def preview_command(
    template: TemplateOption,
    data: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, help="Form data JSON object.")],
    definitions: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, help="Field definitions JSON.")],
    active: Annotated[str | None, typer.Option(help="Key of the field being edited.")] = None,
    settings: SettingsOption = None,
    out: OutOption = None,
) -> None:
    """Render the live preview HTML for the given form values."""

    try:
        engine_settings = load_settings(settings)
        form_data = read_form_data(data)
        field_definitions = _load_definitions(definitions)
        sections = group_fields_by_saved_group(filter_visible_definitions(field_definitions))
        html = render_preview(
            template.read_text(encoding="utf-8"),
            form_data,
            field_definitions,
            active_field=active,
            color_map=build_field_color_map(sections, engine_settings),
            settings=engine_settings,
        )
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    progress = calculate_progress(form_data)
    typer.echo(f"INFO: progress {progress.filled}/{progress.total} ({progress.percentage}%)", err=True)
    if out is None:
        typer.echo(html)
        return
    write_text_atomic(out, html)
    typer.echo(f"INFO: wrote preview to {out}", err=True)


@app.command("payload")
def payload_command(
    data: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, help="Form data JSON object.")],
    definitions: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, help="Field definitions JSON.")],
    strict: Annotated[bool, typer.Option("--strict", help="Fail when required fields are empty.")] = False,
    settings: SettingsOption = None,
    out: OutOption = None,
) -> None:
    """Build the flat placeholder payload for document generation."""

    try:
        payload = build_submission_payload(
            read_form_data(data),
            _load_definitions(definitions),
            load_settings(settings),
            strict=strict,
        )
    except MissingRequiredFieldsError as exc:
        typer.echo(f"ERROR: missing required fields: {', '.join(exc.missing_required)}")
        if out is not None and exc.payload is not None:
            write_json_atomic(out, exc.payload)
        raise typer.Exit(code=2) from exc
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"INFO: payload has {len(payload)} placeholders", err=True)
    _emit_json(payload, out)


@app.command("digit")
def digit_command(
    digit_format: Annotated[str, typer.Argument(help="Digit format such as AA-XXXX.")],
    value: Annotated[str, typer.Argument(help="Stored or typed value.")] = "",
) -> None:
    """Show how a value splits over a digit format and how it re-encodes."""

    segments = parse_format(digit_format)
    parts = decode(value, segments)
    typer.echo(
        dump_json(
            {
                "segments": [asdict(segment) for segment in segments],
                "cells": sum(segment.length for segment in input_segments(segments)),
                "parts": parts,
                "encoded": encode(parts, segments),
            }
        )
    )


@app.command("settings")
def settings_command(
    settings: SettingsOption = None,
    out: OutOption = None,
) -> None:
    """Validate engine settings and print the effective values."""

    try:
        engine_settings: EngineSettings = load_settings(settings)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    payload = engine_settings.model_dump(mode="json")
    if out is None:
        typer.echo(dump_json(payload))
        return
    write_yaml_atomic(out, payload)
    typer.echo(f"INFO: wrote settings to {out}")


@pattern_app.command("build")
def pattern_build_command(
    match_type: Annotated[str, typer.Option("--match-type", help="One of: " + ", ".join(MATCH_TYPES))],
    value: Annotated[str, typer.Option(help="Comma-separated values, or a raw regex.")],
    case_insensitive: Annotated[bool, typer.Option("--case-insensitive")] = False,
    name: Annotated[str | None, typer.Option(help="Rule name for error messages.")] = None,
) -> None:
    """Compile a structured match description into the regex to persist."""

    normalized = match_type.lower().strip()
    if normalized not in MATCH_TYPES:
        typer.echo(f"ERROR: --match-type must be one of: {', '.join(MATCH_TYPES)}.")
        raise typer.Exit(code=1)

    state = PatternBuilderState(
        match_type=cast(MatchType, normalized),
        value=value,
        case_sensitive=not case_insensitive,
    )
    try:
        regex = ensure_rule_pattern(state, rule_name=name)
    except IncompleteRuleError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=4) from exc

    typer.echo(regex)


@pattern_app.command("parse")
def pattern_parse_command(
    regex: Annotated[str, typer.Argument(help="Stored rule regex.")],
) -> None:
    """Reconstruct the editor state of a stored regex."""

    state = parse_regex_to_pattern(regex)
    if state is None:
        typer.echo("ERROR: empty pattern")
        raise typer.Exit(code=4)

    typer.echo(dump_json({**asdict(state), "description": describe_pattern(regex)}))


@store_app.command("list")
def store_list_command(store: StoreOption) -> None:
    """List stored templates."""

    try:
        entries = DefinitionStore(store).list_all()
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    for entry in entries:
        note = f" note={entry.note}" if entry.note else ""
        typer.echo(f"{entry.fingerprint} fields={len(entry.definitions)}{note}")
    typer.echo(f"INFO: {len(entries)} stored templates")


@store_app.command("show")
def store_show_command(
    fingerprint: Annotated[str, typer.Argument()],
    store: StoreOption,
) -> None:
    """Print the stored definitions of one template."""

    try:
        entry = DefinitionStore(store).get(fingerprint)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    if entry is None:
        typer.echo(f"ERROR: no stored definitions for {fingerprint}")
        raise typer.Exit(code=1)

    typer.echo(
        dump_json(
            {
                "fingerprint": entry.fingerprint,
                "placeholders": entry.placeholders,
                "definitions": _definitions_json(entry.definitions),
                "note": entry.note,
            }
        )
    )


@store_app.command("save")
def store_save_command(
    template: TemplateOption,
    definitions: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, help="Field definitions JSON.")],
    store: StoreOption,
    note: Annotated[str | None, typer.Option()] = None,
) -> None:
    """Replace the stored definitions of a template, keyed by its fingerprint."""

    try:
        html = template.read_text(encoding="utf-8")
        entry = TemplateDefinitions(
            fingerprint=compute_template_fingerprint(html),
            placeholders=parse_template_placeholders(html).fields,
            definitions=_load_definitions(definitions),
            note=note,
        )
        DefinitionStore(store).replace(entry)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"INFO: stored {len(entry.definitions)} definitions for {entry.fingerprint}")


@store_app.command("delete")
def store_delete_command(
    fingerprint: Annotated[str, typer.Argument()],
    store: StoreOption,
) -> None:
    """Remove the stored definitions of one template."""

    try:
        removed = DefinitionStore(store).delete(fingerprint)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    if not removed:
        typer.echo(f"ERROR: no stored definitions for {fingerprint}")
        raise typer.Exit(code=1)
    typer.echo(f"INFO: deleted {fingerprint}")


def _load_definitions(path: Path) -> dict[str, FieldDefinition]:
    return coerce_definitions(read_json_object(path, label="Definitions"))


def _optional_list(path: Path | None, label: str) -> list[Any]:
    if path is None:
        return []
    return read_json_list(path, label=label)


def _definitions_json(definitions: dict[str, FieldDefinition]) -> dict[str, Any]:
    return {key: definition.to_json() for key, definition in definitions.items()}


def _emit_json(payload: Any, out: Path | None) -> None:
    if out is None:
        typer.echo(dump_json(payload))
        return
    write_json_atomic(out, payload)
    typer.echo(f"INFO: wrote {out}", err=True)


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
