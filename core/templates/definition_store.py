"""Local JSON store for field definitions keyed by template fingerprint."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.fields.definitions import coerce_definitions
from core.templates.models import DefinitionStoreData, TemplateDefinitions

_STORE_VERSION = 1


class DefinitionStore:
    """Persist per-template field definitions in a JSON file.

    Definitions are replaced wholesale on every write, never patched field by field.
    """

    def __init__(self, store_path: Path) -> None:
        self._store_path = store_path

    def get(self, fingerprint: str) -> TemplateDefinitions | None:
        snapshot = self._load()
        return snapshot.templates.get(fingerprint)

    def replace(self, entry: TemplateDefinitions) -> None:
        snapshot = self._load()
        snapshot.templates[entry.fingerprint] = entry
        self._save(snapshot)

    def list_all(self) -> list[TemplateDefinitions]:
        snapshot = self._load()
        return [snapshot.templates[key] for key in sorted(snapshot.templates.keys())]

    def delete(self, fingerprint: str) -> bool:
        snapshot = self._load()
        if fingerprint not in snapshot.templates:
            return False
        del snapshot.templates[fingerprint]
        self._save(snapshot)
        return True

    def _load(self) -> DefinitionStoreData:
        if not self._store_path.exists():
            return DefinitionStoreData(version=_STORE_VERSION)

        try:
            raw = json.loads(self._store_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid definition store JSON: {self._store_path}") from exc

        if not isinstance(raw, dict):
            raise ValueError(f"Definition store must contain a JSON object: {self._store_path}")

        templates: dict[str, TemplateDefinitions] = {}
        for fingerprint, item in raw.get("templates", {}).items():
            templates[fingerprint] = TemplateDefinitions(
                fingerprint=item.get("fingerprint", fingerprint),
                placeholders=list(item.get("placeholders", [])),
                definitions=coerce_definitions(item.get("definitions", {})),
                note=item.get("note"),
            )

        version = int(raw.get("version", _STORE_VERSION))
        return DefinitionStoreData(version=version, templates=templates)

    def _save(self, snapshot: DefinitionStoreData) -> None:
        self._store_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._store_path.with_suffix(f"{self._store_path.suffix}.tmp")

        payload = {
            "version": snapshot.version,
            "templates": {
                key: _entry_to_json(snapshot.templates[key]) for key in sorted(snapshot.templates.keys())
            },
        }
        temp_path.write_text(
            json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False),
            encoding="utf-8",
        )
        temp_path.replace(self._store_path)


def _entry_to_json(entry: TemplateDefinitions) -> dict[str, Any]:
    return {
        "fingerprint": entry.fingerprint,
        "placeholders": list(entry.placeholders),
        "definitions": {key: item.to_json() for key, item in entry.definitions.items()},
        "note": entry.note,
    }
