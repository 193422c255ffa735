from __future__ import annotations

import json
from pathlib import Path

import pytest

from core.fields.models import FieldDefinition, FieldValidation, RadioOption
from core.templates.definition_store import DefinitionStore
from core.templates.models import TemplateDefinitions


def _entry(fingerprint: str = "fp-1", **definitions: FieldDefinition) -> TemplateDefinitions:
    return TemplateDefinitions(
        fingerprint=fingerprint,
        placeholders=list(definitions),
        definitions=dict(definitions),
    )


def test_store_initializes_empty_data(tmp_path: Path) -> None:
    store = DefinitionStore(tmp_path / "definitions.json")

    assert store.list_all() == []
    assert store.get("missing") is None


def test_store_round_trips_structured_definitions(tmp_path: Path) -> None:
    store = DefinitionStore(tmp_path / "definitions.json")
    entry = TemplateDefinitions(
        fingerprint="fp-1",
        placeholders=["$1", "$2", "$3"],
        definitions={
            "$1": FieldDefinition(
                placeholder="$1",
                input_type="merged",
                is_merged=True,
                merged_fields=["$1", "$2"],
                separator="-",
                validation=FieldValidation(min_length=2, max_length=4),
            ),
            "$3": FieldDefinition(
                placeholder="{{$3}}",
                input_type="radio",
                is_radio_group=True,
                radio_group_id="g",
                radio_options=[RadioOption(placeholder="$3", value="/", child_fields=["$3_D"])],
            ),
        },
        note="สูติบัตร",
    )

    store.replace(entry)

    assert store.get("fp-1") == entry


def test_store_writes_camel_case_definition_json(tmp_path: Path) -> None:
    path = tmp_path / "definitions.json"
    DefinitionStore(path).replace(_entry(a=FieldDefinition(placeholder="a", is_merged=True, merged_fields=["a"])))

    raw = json.loads(path.read_text(encoding="utf-8"))

    assert raw["version"] == 1
    assert raw["templates"]["fp-1"]["definitions"]["a"]["mergedFields"] == ["a"]
    assert list(tmp_path.glob("*.tmp")) == []


def test_store_replace_overwrites_whole_entry(tmp_path: Path) -> None:
    store = DefinitionStore(tmp_path / "definitions.json")
    store.replace(_entry(a=FieldDefinition(placeholder="a"), b=FieldDefinition(placeholder="b")))
    store.replace(_entry(b=FieldDefinition(placeholder="b", data_type="date")))

    loaded = store.get("fp-1")

    assert loaded is not None
    assert list(loaded.definitions) == ["b"]
    assert loaded.definitions["b"].data_type == "date"


def test_store_list_all_is_sorted_by_fingerprint(tmp_path: Path) -> None:
    store = DefinitionStore(tmp_path / "definitions.json")
    store.replace(_entry("fp-2"))
    store.replace(_entry("fp-1"))

    assert [item.fingerprint for item in store.list_all()] == ["fp-1", "fp-2"]


def test_store_delete_removes_entry(tmp_path: Path) -> None:
    store = DefinitionStore(tmp_path / "definitions.json")
    store.replace(_entry())

    assert store.delete("fp-1") is True
    assert store.get("fp-1") is None
    assert store.delete("fp-1") is False


def test_store_degrades_invalid_definitions(tmp_path: Path) -> None:
    path = tmp_path / "definitions.json"
    path.write_text(
        json.dumps({"templates": {"fp-1": {"definitions": {"x": {"isRadioGroup": []}}}}}),
        encoding="utf-8",
    )

    loaded = DefinitionStore(path).get("fp-1")

    assert loaded is not None
    assert loaded.fingerprint == "fp-1"
    assert loaded.definitions["x"] == FieldDefinition(placeholder="x")


def test_store_raises_on_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "definitions.json"
    path.write_text("{invalid", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid definition store JSON"):
        DefinitionStore(path).list_all()


def test_store_raises_on_non_object_json(tmp_path: Path) -> None:
    path = tmp_path / "definitions.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a JSON object"):
        DefinitionStore(path).list_all()
