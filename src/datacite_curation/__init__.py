"""DataCite metadata curation: XML and legacy import, JSON export and schema validation."""

from .schema import (
    Affiliation,
    Contributor,
    ContributorRole,
    Creator,
    Date,
    DateType,
    Description,
    DescriptionType,
    FundingReference,
    GeoBox,
    GeoLocation,
    GeoPoint,
    GeoPolygon,
    Institution,
    License,
    Person,
    Publisher,
    RelatedIdentifier,
    Resource,
    Subject,
    Title,
    TitleType,
)
from .serializer import DataCiteJsonSerializer
from .validation import Ok, SchemaValidationError, SchemaValidator, ValidationError

__all__ = [
    "Affiliation",
    "Contributor",
    "ContributorRole",
    "Creator",
    "DataCiteJsonSerializer",
    "Date",
    "DateType",
    "Description",
    "DescriptionType",
    "FundingReference",
    "GeoBox",
    "GeoLocation",
    "GeoPoint",
    "GeoPolygon",
    "Institution",
    "License",
    "Ok",
    "Person",
    "Publisher",
    "RelatedIdentifier",
    "Resource",
    "SchemaValidationError",
    "SchemaValidator",
    "Subject",
    "Title",
    "TitleType",
    "ValidationError",
]
