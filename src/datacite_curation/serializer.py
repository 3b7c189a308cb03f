"""Resource to DataCite JSON (REST API ``dois`` document) serializer."""

import json
import logging

from . import dates
from .config import DEFAULT_SCHEMA_VERSION, SUPPORTED_SCHEMA_VERSIONS, Settings
from .errors import DateFormatError, UnsupportedSchemaVersionError
from .names import identifier_scheme, scheme_uri
from .schema import (
    Affiliation,
    ContributorRole,
    DateType,
    GeoPoint,
    Institution,
    Person,
    Resource,
    TitleType,
)
from .vocabulary import ControlledKeyword, classify_subject

logger = logging.getLogger(__name__)

SCHEMA_VERSION_URI = "http://datacite.org/schema/kernel-4"

# Values introduced with kernel 4.6, exported as Other for older targets
DATE_TYPES_SINCE = {DateType.COVERAGE: "4.6"}
CONTRIBUTOR_ROLES_SINCE = {ContributorRole.TRANSLATOR: "4.6"}


def _compact(data: dict) -> dict:
    """Drop None, empty strings and empty containers."""
    return {key: value for key, value in data.items() if value not in (None, "", [], {})}


def _version_key(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


class DataCiteJsonSerializer:
    """Serialize a Resource into the DataCite JSON envelope.

    Output only depends on the Resource and the target schema version, so
    serializing the same Resource twice gives equal documents.
    """

    def __init__(self, schema_version: str = DEFAULT_SCHEMA_VERSION):
        if schema_version not in SUPPORTED_SCHEMA_VERSIONS:
            raise UnsupportedSchemaVersionError(schema_version, SUPPORTED_SCHEMA_VERSIONS)
        self.schema_version = schema_version

    @classmethod
    def from_settings(cls, settings: Settings) -> "DataCiteJsonSerializer":
        return cls(settings.schema_version)

    def _supports(self, since: str) -> bool:
        return _version_key(self.schema_version) >= _version_key(since)

    def serialize(self, resource: Resource) -> dict:
        attributes = {}

        if resource.identifier:
            attributes["doi"] = resource.identifier
            attributes["identifiers"] = [
                {"identifier": resource.identifier, "identifierType": "DOI"}
            ]

        attributes["titles"] = self._titles(resource)
        if resource.publisher:
            attributes["publisher"] = _compact(
                {
                    "name": resource.publisher.name,
                    "publisherIdentifier": resource.publisher.identifier,
                    "publisherIdentifierScheme": resource.publisher.identifier_scheme,
                    "schemeUri": resource.publisher.scheme_uri,
                    "lang": resource.publisher.lang,
                }
            )
        if resource.publication_year is not None:
            attributes["publicationYear"] = str(resource.publication_year)
        attributes["types"] = _compact(
            {
                "resourceTypeGeneral": resource.resource_type_general,
                "resourceType": resource.resource_type,
            }
        )
        attributes["creators"] = self._creators(resource)
        attributes["contributors"] = self._contributors(resource)
        attributes["subjects"] = self._subjects(resource)
        attributes["descriptions"] = [
            _compact(
                {
                    "description": description.description,
                    "descriptionType": description.description_type.value,
                    "lang": description.lang,
                }
            )
            for description in resource.descriptions
            if description.description.strip()
        ]
        attributes["dates"] = self._dates(resource)
        attributes["language"] = resource.language
        attributes["version"] = resource.version
        attributes["rightsList"] = [
            _compact(
                {
                    "rights": rights.rights,
                    "rightsUri": rights.rights_uri,
                    "rightsIdentifier": rights.rights_identifier,
                    "rightsIdentifierScheme": rights.rights_identifier_scheme,
                    "schemeUri": rights.scheme_uri,
                    "lang": rights.lang,
                }
            )
            for rights in resource.licenses
        ]
        attributes["geoLocations"] = self._geo_locations(resource)
        attributes["relatedIdentifiers"] = [
            _compact(
                {
                    "relatedIdentifier": related.identifier,
                    "relatedIdentifierType": related.identifier_type,
                    "relationType": related.relation_type,
                    "resourceTypeGeneral": related.resource_type_general,
                }
            )
            for related in resource.related_identifiers
        ]
        attributes["fundingReferences"] = [
            _compact(
                {
                    "funderName": funding.funder_name,
                    "funderIdentifier": funding.funder_identifier,
                    "funderIdentifierType": (
                        funding.funder_identifier_type or "Other"
                        if funding.funder_identifier
                        else None
                    ),
                    "awardNumber": funding.award_number,
                    "awardUri": funding.award_uri,
                    "awardTitle": funding.award_title,
                }
            )
            for funding in resource.funding_references
        ]
        attributes["sizes"] = list(resource.sizes)
        attributes["formats"] = list(resource.formats)
        attributes["schemaVersion"] = SCHEMA_VERSION_URI

        return {"data": {"type": "dois", "attributes": _compact(attributes)}}

    def to_json(self, resource: Resource, indent: int | None = None) -> str:
        return json.dumps(
            self.serialize(resource), indent=indent, sort_keys=True, ensure_ascii=False
        )

    def _titles(self, resource: Resource) -> list[dict]:
        return [
            _compact(
                {
                    "title": title.title,
                    "titleType": (
                        None if title.title_type is TitleType.MAIN_TITLE else title.title_type.value
                    ),
                    "lang": title.lang,
                }
            )
            for title in resource.titles
            if title.title.strip()
        ]

    def _affiliation(self, affiliation: Affiliation) -> dict:
        data = {"name": affiliation.name}
        if affiliation.identifier:
            scheme = identifier_scheme(affiliation.identifier, affiliation.identifier_scheme)
            data["affiliationIdentifier"] = affiliation.identifier
            data["affiliationIdentifierScheme"] = scheme
            data["schemeUri"] = affiliation.scheme_uri or scheme_uri(scheme)
        return _compact(data)

    def _agent(self, agent: Person | Institution) -> dict:
        if isinstance(agent, Institution):
            data = {"name": agent.name, "nameType": "Organizational"}
        else:
            data = {
                "name": agent.display_name,
                "nameType": "Personal",
                "givenName": agent.given_name,
                "familyName": agent.family_name,
            }

        if agent.name_identifier:
            scheme = identifier_scheme(agent.name_identifier, agent.name_identifier_scheme)
            if scheme:
                data["nameIdentifiers"] = [
                    _compact(
                        {
                            "nameIdentifier": agent.name_identifier,
                            "nameIdentifierScheme": scheme,
                            "schemeUri": scheme_uri(scheme),
                        }
                    )
                ]
            else:
                logger.warning(
                    f"Dropping nameIdentifier {agent.name_identifier!r} of {data['name']!r}: "
                    "no nameIdentifierScheme"
                )
        data["affiliation"] = [self._affiliation(a) for a in agent.affiliations]
        return data

    def _creators(self, resource: Resource) -> list[dict]:
        creators = sorted(resource.creators, key=lambda c: c.position)
        return [_compact(self._agent(creator.agent)) for creator in creators]

    def _contributor_type(self, role: ContributorRole) -> str:
        since = CONTRIBUTOR_ROLES_SINCE.get(role)
        if since and not self._supports(since):
            return ContributorRole.OTHER.contributor_type
        return role.contributor_type

    def _contributors(self, resource: Resource) -> list[dict]:
        entries = []
        for contributor in sorted(resource.contributors, key=lambda c: c.position):
            # DataCite carries a single contributorType; one entry per role
            for role in contributor.roles or [ContributorRole.OTHER]:
                data = self._agent(contributor.agent)
                data["contributorType"] = self._contributor_type(role)
                entries.append(_compact(data))
        return entries

    def _subjects(self, resource: Resource) -> list[dict]:
        subjects = []
        for subject in resource.subjects:
            if not subject.text.strip():
                continue
            data = {
                "subject": subject.text.strip(),
                "subjectScheme": subject.subject_scheme,
                "schemeUri": subject.scheme_uri,
                "valueUri": subject.value_uri,
                "classificationCode": subject.classification_code,
                "lang": subject.language,
            }
            classified = classify_subject(subject)
            if isinstance(classified, ControlledKeyword):
                data["subjectScheme"] = classified.vocabulary.value
                data["schemeUri"] = subject.scheme_uri or classified.vocabulary.scheme_uri
            subjects.append(_compact(data))
        return subjects

    def _dates(self, resource: Resource) -> list[dict]:
        result = []
        for date in resource.dates:
            try:
                value = dates.encode(date.start_date, date.end_date)
            except DateFormatError:
                logger.warning(f"Not exporting empty {date.date_type.value} date")
                continue

            date_type = date.date_type
            since = DATE_TYPES_SINCE.get(date_type)
            if since and not self._supports(since):
                date_type = DateType.OTHER
            result.append(
                _compact(
                    {
                        "date": value,
                        "dateType": date_type.value,
                        "dateInformation": date.date_information,
                    }
                )
            )
        return result

    @staticmethod
    def _point(point: GeoPoint) -> dict:
        return {"pointLongitude": point.longitude, "pointLatitude": point.latitude}

    def _geo_locations(self, resource: Resource) -> list[dict]:
        locations = []
        for location in resource.geo_locations:
            data = {"geoLocationPlace": location.place}
            if location.point:
                data["geoLocationPoint"] = self._point(location.point)
            if location.box:
                data["geoLocationBox"] = {
                    "westBoundLongitude": location.box.west,
                    "eastBoundLongitude": location.box.east,
                    "southBoundLatitude": location.box.south,
                    "northBoundLatitude": location.box.north,
                }
            if location.polygon and len(location.polygon.points) >= 4:
                polygon = [{"polygonPoint": self._point(p)} for p in location.polygon.points]
                if location.polygon.in_polygon_point:
                    in_point = self._point(location.polygon.in_polygon_point)
                    polygon.append({"inPolygonPoint": in_point})
                data["geoLocationPolygon"] = polygon
            data = _compact(data)
            if data:
                locations.append(data)
        return locations
