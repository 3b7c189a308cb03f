"""Tests for DataCite JSON Schema validation."""

import json
import logging

import pytest

from datacite_curation.config import Settings
from datacite_curation.errors import ExportRejectedError, UnsupportedSchemaVersionError
from datacite_curation.schema import Creator, Date, DateType, Person, Publisher, Resource, Title
from datacite_curation.serializer import DataCiteJsonSerializer
from datacite_curation.transformers.datacite_xml import DataCiteXmlTransformer
from datacite_curation.transformers.legacy import LegacyTransformer
from datacite_curation.transformers.legacy_source import SqlLegacySource
from datacite_curation.validation import (
    Ok,
    SchemaValidationError,
    SchemaValidator,
    load_schema,
)


def minimal_resource(**overrides) -> Resource:
    fields = {
        "identifier": "10.1234/abcd",
        "publication_year": 2024,
        "resource_type_general": "Dataset",
        "publisher": Publisher(name="GFZ Data Services"),
        "titles": [Title(title="Main title")],
        "creators": [Creator(agent=Person(given_name="Jane", family_name="Doe"))],
    }
    fields.update(overrides)
    return Resource(**fields)


def export(resource: Resource, version: str = "4.6") -> dict:
    return DataCiteJsonSerializer(version).serialize(resource)


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()


class TestSchemaValidator:
    """Test suite for SchemaValidator."""

    def test_minimal_document_is_ok(self, validator):
        """Test that a resource with every mandatory field validates."""
        result = validator.validate(export(minimal_resource()))
        assert isinstance(result, Ok)
        assert result.ok
        assert result.schema_version == "4.6"
        assert result.raise_for_errors() is None

    def test_missing_titles(self, validator):
        """Test the error reported for a resource without titles."""
        result = validator.validate(export(minimal_resource(titles=[])))
        assert isinstance(result, SchemaValidationError)
        assert not result.ok
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.path == "/data/attributes/titles"
        assert error.keyword == "required"
        assert error.message == "Required field 'titles' is missing (Path: /data/attributes/titles)"
        assert error.context.raw_message == "'titles' is a required property"

    def test_all_errors_reported_in_stable_order(self, validator):
        """Test that every violation is collected and sorted by path."""
        document = {"data": {"type": "dois", "attributes": {}}}
        result = validator.validate(document)
        assert [error.path for error in result.errors] == [
            "/data/attributes/creators",
            "/data/attributes/publicationYear",
            "/data/attributes/publisher",
            "/data/attributes/schemaVersion",
            "/data/attributes/titles",
            "/data/attributes/types",
        ]
        assert validator.validate(document) == result

    def test_invalid_date_pattern(self, validator):
        """Test that a date value outside the ISO 8601 subset is rejected."""
        resource = minimal_resource(
            dates=[Date(date_type=DateType.CREATED, start_date="May 2010")]
        )
        result = validator.validate(export(resource))
        assert [(e.path, e.keyword) for e in result.errors] == [
            ("/data/attributes/dates/0/date", "pattern")
        ]
        assert result.errors[0].message.startswith("Field 'date' has an invalid format")

    def test_array_index_in_field_name(self, validator):
        """Test that errors on array items name the parent field and index."""
        document = export(minimal_resource())
        document["data"]["attributes"]["titles"].append("not an object")
        result = validator.validate(document)
        assert result.errors[0].path == "/data/attributes/titles/1"
        assert result.errors[0].message == (
            "Field 'titles[1]' has an invalid type (Path: /data/attributes/titles/1)"
        )

    def test_unexpected_property(self, validator):
        """Test that unknown attributes are reported."""
        document = export(minimal_resource())
        document["data"]["attributes"]["colour"] = "blue"
        result = validator.validate(document)
        assert result.errors[0].keyword == "additionalProperties"
        assert "colour" in result.errors[0].context.raw_message

    def test_strict_mode_requires_doi(self):
        """Test that strict validation requires an identifier."""
        document = export(minimal_resource(identifier=None))
        assert isinstance(SchemaValidator().validate(document), Ok)

        result = SchemaValidator(strict=True).validate(document)
        assert isinstance(result, SchemaValidationError)
        assert result.errors[0].path == "/data/attributes/identifiers"
        assert "DOI is required" in result.errors[0].message

    def test_raise_for_errors(self, validator):
        """Test that a failed result raises ExportRejectedError on demand."""
        result = validator.validate(export(minimal_resource(titles=[])))
        with pytest.raises(ExportRejectedError) as exc_info:
            result.raise_for_errors()
        assert exc_info.value.errors == result.errors

    def test_failure_logged_with_doi(self, validator, caplog):
        """Test that a failed validation is logged with the DOI."""
        with caplog.at_level(logging.ERROR):
            validator.validate(export(minimal_resource(titles=[])))
        assert "10.1234/abcd" in caplog.text
        assert "titles" in caplog.text

    def test_unsupported_version(self, validator):
        """Test that an unknown schema version is rejected."""
        with pytest.raises(UnsupportedSchemaVersionError):
            validator.validate(export(minimal_resource()), "3.1")

    def test_schema_45_rejects_coverage(self, validator, sample_datacite_xml: str):
        """Test that a 4.6-only dateType fails against the 4.5 schema."""
        resource = DataCiteXmlTransformer().transform(sample_datacite_xml)
        result = validator.validate(export(resource, "4.6"), "4.5")
        assert [(e.path, e.keyword) for e in result.errors] == [
            ("/data/attributes/dates/3/dateType", "enum")
        ]

    def test_schema_dir_override(self, tmp_path):
        """Test that a schema directory from the settings replaces the bundled schema."""
        schema = load_schema("4.6")
        schema["definitions"]["attributes"]["required"].append("version")
        (tmp_path / "datacite-v4.6.json").write_text(json.dumps(schema), encoding="utf-8")

        validator = SchemaValidator.from_settings(Settings(schema_dir=tmp_path))
        result = validator.validate(export(minimal_resource()))
        assert [error.path for error in result.errors] == ["/data/attributes/version"]


class TestEndToEnd:
    """Import, export and validate complete records."""

    @pytest.mark.parametrize("version", ["4.5", "4.6"])
    def test_datacite_xml(self, validator, sample_datacite_xml: str, version: str):
        """Test that the sample XML document exports to valid DataCite JSON."""
        resource = DataCiteXmlTransformer().transform(sample_datacite_xml)
        result = validator.validate(export(resource, version), version)
        assert isinstance(result, Ok), result

    def test_legacy_dataset(self, validator, legacy_engine):
        """Test that the legacy dataset exports to valid DataCite JSON."""
        resource = LegacyTransformer(SqlLegacySource(legacy_engine)).transform(42)
        result = validator.validate(export(resource))
        assert isinstance(result, Ok), result
