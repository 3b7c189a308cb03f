"""Validate exported DataCite JSON against the versioned JSON Schema.

Validation never stops at the first problem and never raises: the result
is either ``Ok`` or a ``SchemaValidationError`` listing every violation in
a stable order, so a curator can fix everything in one pass.
"""

import json
import logging
import re
from importlib import resources
from pathlib import Path
from typing import Literal

from jsonschema import Draft7Validator
from pydantic import BaseModel, Field

from .config import DEFAULT_SCHEMA_VERSION, SUPPORTED_SCHEMA_VERSIONS, Settings
from .errors import ExportRejectedError, UnsupportedSchemaVersionError

logger = logging.getLogger(__name__)

MAX_LOGGED_ERRORS = 10
REQUIRED_PROPERTY = re.compile(r"^'(?P<name>[^']+)' is a required property")

MESSAGES = {
    "required": "Required field '{field}' is missing",
    "type": "Field '{field}' has an invalid type",
    "enum": "Field '{field}' has an invalid value",
    "const": "Field '{field}' has an invalid value",
    "pattern": "Field '{field}' has an invalid format",
    "format": "Field '{field}' has an invalid format",
    "minLength": "Field '{field}' is too short",
    "maxLength": "Field '{field}' is too long",
    "minItems": "Field '{field}' requires at least one entry",
    "maxItems": "Field '{field}' has too many entries",
    "minimum": "Field '{field}' is below the allowed minimum",
    "maximum": "Field '{field}' is above the allowed maximum",
    "additionalProperties": "Field '{field}' contains unexpected properties",
    "minProperties": "Field '{field}' must not be empty",
    "maxProperties": "Field '{field}' has too many properties",
    "not": "Field '{field}' has an invalid value",
}


class ValidationContext(BaseModel):
    raw_message: str


class ValidationError(BaseModel):
    """One schema violation; ``path`` is a JSON pointer into the document."""

    path: str
    message: str
    keyword: str
    context: ValidationContext


class Ok(BaseModel):
    ok: Literal[True] = True
    schema_version: str

    def raise_for_errors(self) -> None:
        return None


class SchemaValidationError(BaseModel):
    """All violations found in one document, never empty."""

    ok: Literal[False] = False
    schema_version: str
    errors: list[ValidationError] = Field(min_length=1)

    def raise_for_errors(self) -> None:
        raise ExportRejectedError(self.errors)


ValidationResult = Ok | SchemaValidationError


def _field_name(segments: list[str]) -> str:
    """Last path segment, or ``parent[index]`` when it is an array index."""
    if not segments:
        return "document"
    last = segments[-1]
    if last.isdigit() and len(segments) > 1:
        return f"{segments[-2]}[{last}]"
    return last


def _pointer(segments: list[str]) -> str:
    return "".join("/" + s.replace("~", "~0").replace("/", "~1") for s in segments)


def load_schema(version: str, schema_dir: Path | None = None) -> dict:
    """Load the bundled (or overridden) DataCite JSON Schema for ``version``."""
    if version not in SUPPORTED_SCHEMA_VERSIONS:
        raise UnsupportedSchemaVersionError(version, SUPPORTED_SCHEMA_VERSIONS)

    filename = f"datacite-v{version}.json"
    if schema_dir is not None:
        text = (Path(schema_dir) / filename).read_text(encoding="utf-8")
    else:
        bundled = resources.files("datacite_curation") / "schemas" / filename
        text = bundled.read_text(encoding="utf-8")
    return json.loads(text)


def _compiled(version: str, schema_dir: Path | None = None) -> Draft7Validator:
    schema = load_schema(version, schema_dir)
    Draft7Validator.check_schema(schema)
    return Draft7Validator(schema)


def _attributes(document) -> dict:
    if not isinstance(document, dict):
        return {}
    data = document.get("data")
    if not isinstance(data, dict):
        return {}
    attributes = data.get("attributes")
    return attributes if isinstance(attributes, dict) else {}


class SchemaValidator:
    """Validate DataCite JSON documents; strict mode also requires a DOI."""

    def __init__(self, schema_dir: Path | None = None, strict: bool = False):
        self.schema_dir = schema_dir
        self.strict = strict

    @classmethod
    def from_settings(cls, settings: Settings, strict: bool = False) -> "SchemaValidator":
        return cls(schema_dir=settings.schema_dir, strict=strict)

    def validate(
        self, document: dict, schema_version: str = DEFAULT_SCHEMA_VERSION
    ) -> ValidationResult:
        validator = _compiled(schema_version, self.schema_dir)

        errors = [self._convert(error) for error in validator.iter_errors(document)]
        if self.strict:
            errors.extend(self._strict_errors(document))

        errors.sort(key=lambda e: (e.path, e.keyword, e.context.raw_message))
        if not errors:
            return Ok(schema_version=schema_version)

        self._log_failure(document, errors)
        return SchemaValidationError(schema_version=schema_version, errors=errors)

    def _convert(self, error) -> ValidationError:
        segments = [str(part) for part in error.absolute_path]
        if error.validator == "required":
            match = REQUIRED_PROPERTY.match(error.message)
            if match:
                segments.append(match.group("name"))

        template = MESSAGES.get(error.validator, "Field '{field}' is invalid")
        path = _pointer(segments)
        return ValidationError(
            path=path,
            message=f"{template.format(field=_field_name(segments))} (Path: {path or '/'})",
            keyword=str(error.validator),
            context=ValidationContext(raw_message=error.message),
        )

    def _strict_errors(self, document: dict) -> list[ValidationError]:
        attributes = _attributes(document)
        if attributes.get("identifiers") or attributes.get("doi"):
            return []
        path = "/data/attributes/identifiers"
        return [
            ValidationError(
                path=path,
                message=(
                    "Required field 'identifiers' is missing. "
                    f"DOI is required for DataCite registration. (Path: {path})"
                ),
                keyword="required",
                context=ValidationContext(raw_message="'identifiers' is a required property"),
            )
        ]

    def _log_failure(self, document: dict, errors: list[ValidationError]) -> None:
        attributes = _attributes(document)
        doi = attributes.get("doi") or "(no DOI)"
        shown = "; ".join(error.message for error in errors[:MAX_LOGGED_ERRORS])
        logger.error(
            f"DataCite JSON for {doi} failed schema validation with {len(errors)} error(s): {shown}"
        )
