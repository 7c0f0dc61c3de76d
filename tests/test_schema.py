"""Tests for schema versions, presets, and the acceptance gate.

WHY: The schema decides which decoded records reach the caller. A wrong
required-field check silently drops good records or lets incomplete
ones through.

HOW: accepts() is tested per required name, acknowledges() against the
presets, and load_schema() against JSON files in tmp_path.
"""

import json
from datetime import date

import pytest
from pydantic import ValidationError

from vertical_csv.core.ir import Address, Project, Record
from vertical_csv.core.schema import (
    SCHEMAS,
    V1,
    V2,
    V3,
    V4,
    SchemaVersion,
    accepts,
    get_schema,
    list_schemas,
    load_schema,
)


def _complete_record():
    return Record(
        name="Ada", age=36, email="ada@x.com", phone="555", department="R&D",
        start_date=date(2019, 3, 1), skills=["Go"], languages=["en"],
        address=Address(city="London"), projects=[Project(name="Engine")],
        notes="n",
    )


class TestAccepts:

    def test_base_fields_present(self):
        assert accepts(Record(name="Ada", age=36, email="ada@x.com"), V1)

    @pytest.mark.parametrize("record", [
        Record(age=36, email="ada@x.com"),
        Record(name="   ", age=36, email="ada@x.com"),
        Record(name="Ada", email="ada@x.com"),
        Record(name="Ada", age=36),
    ])
    def test_missing_base_field_rejected(self, record):
        assert not accepts(record, V1)

    @pytest.mark.parametrize("schema", [V1, V2, V3, V4])
    def test_presets_share_required_fields(self, schema):
        assert accepts(Record(name="Ada", age=36, email="ada@x.com"), schema)
        assert not accepts(Record(name="Ada", email="ada@x.com"), schema)

    @pytest.mark.parametrize("name, cleared", [
        ("Phone", {"phone": None}),
        ("Department", {"department": ""}),
        ("StartDate", {"start_date": None}),
        ("Notes", {"notes": None}),
        ("Address", {"address": None}),
        ("Skills", {"skills": []}),
        ("Languages", {"languages": []}),
        ("Projects", {"projects": []}),
    ])
    def test_each_required_check(self, name, cleared):
        schema = SchemaVersion(version=9, required_fields=(name,))
        record = _complete_record()
        assert accepts(record, schema)
        for attr, value in cleared.items():
            setattr(record, attr, value)
        assert not accepts(record, schema)

    def test_accepts_leaves_record_unchanged(self):
        record = Record(name="Ada", skills=["Go", ""])
        before = Record(name="Ada", skills=["Go", ""])
        assert not accepts(record, V4)
        assert record == before

    def test_required_names_are_case_insensitive(self):
        schema = SchemaVersion(version=9, required_fields=("EMAIL",))
        assert not accepts(Record(name="Ada"), schema)

    def test_unknown_required_name_is_satisfied(self):
        schema = SchemaVersion(version=9, required_fields=("Salary",))
        assert accepts(Record(), schema)

    def test_no_required_fields_accepts_everything(self):
        assert accepts(Record(), SchemaVersion(version=0))


class TestAcknowledges:

    def test_v1_declares_only_base_fields(self):
        assert V1.acknowledges("Name")
        assert not V1.acknowledges("Phone")

    def test_later_versions_add_scalars(self):
        assert V2.acknowledges("phone")
        assert not V2.acknowledges("Department")
        assert V3.acknowledges("StartDate")

    @pytest.mark.parametrize("label", [
        "Skills[0]", "languages[12]", "Projects[3].Role", "PROJECTS[0].ENDDATE",
        "Address.City", "Notes",
    ])
    def test_v4_structural_names(self, label):
        assert V4.acknowledges(label)

    @pytest.mark.parametrize("label", ["Salary", "Projects[0].Budget", "Skills[x]"])
    def test_v4_undeclared_names(self, label):
        assert not V4.acknowledges(label)


class TestPresets:

    def test_registry(self):
        assert sorted(SCHEMAS) == [1, 2, 3, 4]
        assert [s.version for s in list_schemas()] == [1, 2, 3, 4]

    def test_get_schema(self):
        assert get_schema(3) is V3

    def test_unknown_version(self):
        with pytest.raises(KeyError, match="Unknown schema version 7"):
            get_schema(7)

    def test_schema_is_immutable(self):
        with pytest.raises(ValidationError):
            V1.version = 5


class TestLoadSchema:

    def test_camel_case_keys(self, tmp_path):
        path = tmp_path / "v5.json"
        path.write_text(json.dumps({
            "version": 5,
            "requiredFields": ["Name", "Skills"],
            "optionalFieldPatterns": [r"^Skills\[\d+\]$"],
        }), encoding="utf-8")

        schema = load_schema(path)

        assert schema.version == 5
        assert schema.required_fields == ("Name", "Skills")
        assert schema.acknowledges("skills[4]")
        assert not accepts(Record(name="Ada"), schema)
        assert accepts(Record(name="Ada", skills=["Go"]), schema)

    def test_snake_case_keys(self, tmp_path):
        path = tmp_path / "v6.json"
        path.write_text(json.dumps({
            "version": 6,
            "required_fields": ["Email"],
            "optional_fields": ["Phone"],
        }), encoding="utf-8")

        schema = load_schema(path)

        assert schema.optional_fields == ("Phone",)
        assert schema.acknowledges("PHONE")

    def test_invalid_document(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"requiredFields": "Name"}), encoding="utf-8")
        with pytest.raises(ValidationError):
            load_schema(path)

    def test_invalid_pattern_is_a_validation_error(self, tmp_path):
        path = tmp_path / "bad-pattern.json"
        path.write_text(json.dumps({
            "version": 5,
            "optionalFieldPatterns": ["^Skills\\[(\\d+\\]$"],
        }), encoding="utf-8")
        with pytest.raises(ValidationError, match="Invalid optional field pattern"):
            load_schema(path)

    def test_invalid_pattern_in_constructor(self):
        with pytest.raises(ValidationError):
            SchemaVersion(version=5, optional_field_patterns=("(",))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_schema(tmp_path / "missing.json")
