"""Pydantic schema for the normalized DataCite resource shared by every importer and exporter."""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class TitleType(str, Enum):
    """DataCite titleType. MainTitle is the canonical, attribute-less type."""

    MAIN_TITLE = "MainTitle"
    ALTERNATIVE_TITLE = "AlternativeTitle"
    SUBTITLE = "Subtitle"
    TRANSLATED_TITLE = "TranslatedTitle"
    OTHER = "Other"


class DescriptionType(str, Enum):
    """DataCite descriptionType."""

    ABSTRACT = "Abstract"
    METHODS = "Methods"
    SERIES_INFORMATION = "SeriesInformation"
    TABLE_OF_CONTENTS = "TableOfContents"
    TECHNICAL_INFO = "TechnicalInfo"
    OTHER = "Other"


class DateType(str, Enum):
    """DataCite dateType. Coverage was introduced with kernel 4.6."""

    ACCEPTED = "Accepted"
    AVAILABLE = "Available"
    COLLECTED = "Collected"
    COPYRIGHTED = "Copyrighted"
    COVERAGE = "Coverage"
    CREATED = "Created"
    ISSUED = "Issued"
    SUBMITTED = "Submitted"
    UPDATED = "Updated"
    VALID = "Valid"
    WITHDRAWN = "Withdrawn"
    OTHER = "Other"


class ContributorRole(str, Enum):
    """Contributor role slugs used by the curation application."""

    CONTACT_PERSON = "contact-person"
    DATA_COLLECTOR = "data-collector"
    DATA_CURATOR = "data-curator"
    DATA_MANAGER = "data-manager"
    DISTRIBUTOR = "distributor"
    EDITOR = "editor"
    HOSTING_INSTITUTION = "hosting-institution"
    PRODUCER = "producer"
    PROJECT_LEADER = "project-leader"
    PROJECT_MANAGER = "project-manager"
    PROJECT_MEMBER = "project-member"
    REGISTRATION_AGENCY = "registration-agency"
    REGISTRATION_AUTHORITY = "registration-authority"
    RELATED_PERSON = "related-person"
    RESEARCHER = "researcher"
    RESEARCH_GROUP = "research-group"
    RIGHTS_HOLDER = "rights-holder"
    SPONSOR = "sponsor"
    SUPERVISOR = "supervisor"
    TRANSLATOR = "translator"
    WORK_PACKAGE_LEADER = "work-package-leader"
    OTHER = "other"

    @property
    def contributor_type(self) -> str:
        """DataCite contributorType value, e.g. ``DataCurator``."""
        return "".join(part.capitalize() for part in self.value.split("-"))

    @property
    def institution_only(self) -> bool:
        return self in INSTITUTION_ONLY_ROLES

    @classmethod
    def from_contributor_type(cls, value: str | None) -> "ContributorRole":
        """Map a DataCite contributorType back to a role; unknown values become OTHER."""
        if not value:
            return cls.OTHER
        key = value.strip().lower()
        for role in cls:
            if role.contributor_type.lower() == key:
                return role
        return cls.OTHER


INSTITUTION_ONLY_ROLES = frozenset(
    {
        ContributorRole.DISTRIBUTOR,
        ContributorRole.HOSTING_INSTITUTION,
        ContributorRole.REGISTRATION_AGENCY,
        ContributorRole.REGISTRATION_AUTHORITY,
        ContributorRole.RESEARCH_GROUP,
        ContributorRole.SPONSOR,
    }
)


class Publisher(BaseModel):
    """Publishing organisation with optional identifier (DataCite 4.5+)."""

    name: str
    identifier: str | None = Field(default=None, description="e.g. a ROR URL")
    identifier_scheme: str | None = None
    scheme_uri: str | None = None
    lang: str | None = None


class Title(BaseModel):
    title: str
    title_type: TitleType = TitleType.MAIN_TITLE
    lang: str | None = None


class Description(BaseModel):
    description: str
    description_type: DescriptionType = DescriptionType.ABSTRACT
    lang: str | None = None


class Date(BaseModel):
    """Typed date, a single value or a (possibly open) range.

    A single date is stored as ``start_date`` with an empty ``end_date``.
    Partial precision (``YYYY``, ``YYYY-MM``) is kept verbatim.
    """

    date_type: DateType
    start_date: str = Field(default="", description="Partial ISO 8601 value or empty")
    end_date: str = Field(default="", description="Partial ISO 8601 value or empty")
    date_information: str | None = None

    @property
    def is_range(self) -> bool:
        return bool(self.end_date)


class Subject(BaseModel):
    """Subject as found in the source, before classification.

    ``text`` is the display value (the leaf of ``path`` for controlled
    terms); ``path`` holds the ``" > "`` joined hierarchy when known.
    """

    text: str
    path: str | None = None
    language: str | None = None
    subject_scheme: str | None = None
    scheme_uri: str | None = None
    value_uri: str | None = None
    classification_code: str | None = None


class Affiliation(BaseModel):
    """Institutional affiliation of a person or institution."""

    name: str
    identifier: str | None = Field(default=None, description="ROR URL or other identifier")
    identifier_scheme: str | None = None
    scheme_uri: str | None = None


class Person(BaseModel):
    kind: Literal["person"] = "person"
    given_name: str | None = None
    family_name: str | None = None
    name_identifier: str | None = Field(default=None, description="Bare ORCID iD or other id")
    name_identifier_scheme: str | None = None
    affiliations: list[Affiliation] = Field(default_factory=list)

    @property
    def display_name(self) -> str | None:
        if self.family_name and self.given_name:
            return f"{self.family_name}, {self.given_name}"
        return self.family_name or self.given_name


class Institution(BaseModel):
    kind: Literal["institution"] = "institution"
    name: str
    name_identifier: str | None = Field(default=None, description="ROR URL or other id")
    name_identifier_scheme: str | None = None
    affiliations: list[Affiliation] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.name


Agent = Annotated[Person | Institution, Field(discriminator="kind")]


class Creator(BaseModel):
    """Creator in author order, with optional contact details."""

    agent: Agent
    position: int = 0
    contact_email: str | None = None
    contact_website: str | None = None

    @property
    def is_contact(self) -> bool:
        return self.contact_email is not None


class Contributor(BaseModel):
    agent: Agent
    position: int = 0
    roles: list[ContributorRole] = Field(default_factory=list)


class RelatedIdentifier(BaseModel):
    identifier: str
    identifier_type: str | None = Field(default=None, description="e.g. DOI, URL, Handle")
    relation_type: str | None = Field(default=None, description="e.g. IsCitedBy, References")
    resource_type_general: str | None = None


class FundingReference(BaseModel):
    funder_name: str
    funder_identifier: str | None = None
    funder_identifier_type: str | None = None
    award_number: str | None = None
    award_uri: str | None = None
    award_title: str | None = None


class GeoPoint(BaseModel):
    longitude: float
    latitude: float


class GeoBox(BaseModel):
    west: float
    east: float
    south: float
    north: float


class GeoPolygon(BaseModel):
    """Closed polygon ring; the first and last points coincide."""

    points: list[GeoPoint] = Field(default_factory=list)
    in_polygon_point: GeoPoint | None = None


class GeoLocation(BaseModel):
    """Spatial coverage: any of place name, point, box and polygon."""

    place: str | None = None
    point: GeoPoint | None = None
    box: GeoBox | None = None
    polygon: GeoPolygon | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.place or self.point or self.box or self.polygon)


class License(BaseModel):
    """Rights statement, usually an SPDX licence."""

    rights: str | None = None
    rights_uri: str | None = None
    rights_identifier: str | None = Field(default=None, description="SPDX id, e.g. CC-BY-4.0")
    rights_identifier_scheme: str | None = None
    scheme_uri: str | None = None
    lang: str | None = None


class Resource(BaseModel):
    """Normalized DataCite resource.

    Every list defaults to empty so incomplete drafts can be represented;
    completeness is only enforced when the exported document is validated.
    """

    identifier: str | None = Field(default=None, description="DOI without resolver prefix")
    publication_year: int | None = None
    resource_type_general: str | None = Field(
        default=None, description="DataCite resourceTypeGeneral (e.g., 'Dataset')"
    )
    resource_type: str | None = Field(default=None, description="Free text resource type")
    version: str | None = None
    language: str | None = None
    publisher: Publisher | None = None

    titles: list[Title] = Field(default_factory=list)
    descriptions: list[Description] = Field(default_factory=list)
    dates: list[Date] = Field(default_factory=list)
    subjects: list[Subject] = Field(default_factory=list)
    creators: list[Creator] = Field(default_factory=list)
    contributors: list[Contributor] = Field(default_factory=list)
    related_identifiers: list[RelatedIdentifier] = Field(default_factory=list)
    funding_references: list[FundingReference] = Field(default_factory=list)
    geo_locations: list[GeoLocation] = Field(default_factory=list)
    licenses: list[License] = Field(default_factory=list)
    sizes: list[str] = Field(default_factory=list)
    formats: list[str] = Field(default_factory=list)

    @property
    def main_title(self) -> str | None:
        for title in self.titles:
            if title.title_type is TitleType.MAIN_TITLE:
                return title.title
        return None
