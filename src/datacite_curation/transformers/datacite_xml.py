"""DataCite XML (kernel 4.x) to Resource transformer."""

import logging
from pathlib import Path

from lxml import etree

from .. import dates, names
from ..errors import DateFormatError, MalformedXmlError
from ..schema import (
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
from ..vocabulary import (
    ControlledKeyword,
    classify_subject,
    format_hierarchical_path,
    parse_hierarchical_path,
)
from .base_transformer import Transformer

logger = logging.getLogger(__name__)


def _parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
        huge_tree=False,
    )


def _local(element) -> str | None:
    if not isinstance(element.tag, str):
        return None
    return etree.QName(element).localname


def _children(element, name: str) -> list:
    if element is None:
        return []
    return [child for child in element if _local(child) == name]


def _child(element, name: str):
    found = _children(element, name)
    return found[0] if found else None


def _text(element, collapse: bool = True) -> str | None:
    if element is None:
        return None
    value = "".join(element.itertext())
    value = " ".join(value.split()) if collapse else value.strip()
    return value or None


def _attr(element, name: str) -> str | None:
    """Attribute by local name, so ``xml:lang`` is found as ``lang``."""
    if element is None:
        return None
    for key, value in element.attrib.items():
        if etree.QName(key).localname == name:
            value = value.strip()
            return value or None
    return None


def _float(element, name: str) -> float | None:
    value = _text(_child(element, name))
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name} value {value!r}")
        return None


def _enum(enum_cls, value: str | None, default):
    if not value:
        return default
    for member in enum_cls:
        if member.value.lower() == value.lower():
            return member
    logger.warning(f"Unknown {enum_cls.__name__} {value!r}, using Other")
    return enum_cls.OTHER


class DataCiteXmlTransformer(Transformer):
    """Transform a DataCite XML document into a Resource.

    Elements are matched by local name, so documents in any kernel-4
    namespace (or none, or wrapped in an OAI-PMH envelope) are accepted.
    Only a document that is not well-formed aborts the import; a broken
    element is skipped with a warning and the rest is kept.
    """

    def transform(self, single_object: bytes | str) -> Resource:
        root = self._parse(single_object)
        resource = self._find_resource(root)

        identifier = None
        for element in _children(resource, "identifier"):
            if (_attr(element, "identifierType") or "DOI").upper() == "DOI":
                identifier = _text(element)
                break

        resource_type = _child(resource, "resourceType")

        return Resource(
            identifier=identifier,
            publication_year=self._extract_publication_year(resource),
            resource_type_general=_attr(resource_type, "resourceTypeGeneral"),
            resource_type=_text(resource_type),
            version=_text(_child(resource, "version")),
            language=_text(_child(resource, "language")),
            publisher=self._extract_publisher(resource),
            titles=self._extract_titles(resource),
            descriptions=self._extract_descriptions(resource),
            dates=self._extract_dates(resource),
            subjects=self._extract_subjects(resource),
            creators=self._extract_creators(resource),
            contributors=self._extract_contributors(resource),
            related_identifiers=self._extract_related_identifiers(resource),
            funding_references=self._extract_funding(resource),
            geo_locations=self._extract_geo_locations(resource),
            licenses=self._extract_licenses(resource),
            sizes=self._extract_values(resource, "sizes", "size"),
            formats=self._extract_values(resource, "formats", "format"),
        )

    def transform_file(self, path: Path | str) -> Resource:
        with open(path, "rb") as f:
            return self.transform(f.read())

    def _parse(self, data: bytes | str):
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not data or not data.strip():
            raise MalformedXmlError("Empty XML document")
        try:
            return etree.fromstring(data, parser=_parser())
        except etree.XMLSyntaxError as e:
            raise MalformedXmlError(f"XML is not well-formed: {e}", line=e.lineno) from e

    def _find_resource(self, root):
        if _local(root) == "resource":
            return root
        for element in root.iter():
            if _local(element) == "resource":
                return element
        # Fall back to the document root so a bare fragment still yields fields
        logger.warning(f"No <resource> element found, reading from <{_local(root)}>")
        return root

    def _extract_publication_year(self, resource) -> int | None:
        value = _text(_child(resource, "publicationYear"))
        if value is None:
            return None
        try:
            return int(value[:4])
        except ValueError:
            logger.warning(f"Ignoring invalid publicationYear {value!r}")
            return None

    def _extract_publisher(self, resource) -> Publisher | None:
        element = _child(resource, "publisher")
        name = _text(element)
        if name is None:
            return None
        return Publisher(
            name=name,
            identifier=_attr(element, "publisherIdentifier"),
            identifier_scheme=_attr(element, "publisherIdentifierScheme"),
            scheme_uri=_attr(element, "schemeURI"),
            lang=_attr(element, "lang"),
        )

    def _extract_titles(self, resource) -> list[Title]:
        titles = []
        for element in _children(_child(resource, "titles"), "title"):
            text = _text(element)
            if text is None:
                logger.warning("Skipping title without text")
                continue
            titles.append(
                Title(
                    title=text,
                    title_type=_enum(TitleType, _attr(element, "titleType"), TitleType.MAIN_TITLE),
                    lang=_attr(element, "lang"),
                )
            )
        # Main title first, remaining titles in document order
        return sorted(titles, key=lambda t: t.title_type is not TitleType.MAIN_TITLE)

    def _extract_descriptions(self, resource) -> list[Description]:
        descriptions = []
        for element in _children(_child(resource, "descriptions"), "description"):
            text = _text(element, collapse=False)
            if text is None:
                continue
            descriptions.append(
                Description(
                    description=text,
                    description_type=_enum(
                        DescriptionType,
                        _attr(element, "descriptionType"),
                        DescriptionType.ABSTRACT,
                    ),
                    lang=_attr(element, "lang"),
                )
            )
        return descriptions

    def _extract_dates(self, resource) -> list[Date]:
        result = []
        for element in _children(_child(resource, "dates"), "date"):
            raw = _text(element)
            date_type = _enum(DateType, _attr(element, "dateType"), DateType.OTHER)
            try:
                start, end = dates.decode(raw)
            except DateFormatError as e:
                logger.warning(f"Skipping {date_type.value} date: {e}")
                continue

            for token in (start, end):
                if token and not dates.is_partial_iso(token):
                    logger.warning(f"{date_type.value} date {raw!r} is not ISO 8601, kept verbatim")

            date = dates.date_from_parts(date_type, start, end, _attr(element, "dateInformation"))
            if date is not None:
                result.append(date)
        return result

    def _extract_subjects(self, resource) -> list[Subject]:
        subjects = []
        for element in _children(_child(resource, "subjects"), "subject"):
            text = _text(element)
            if text is None:
                logger.warning("Skipping subject without text")
                continue

            subject = Subject(
                text=text,
                language=_attr(element, "lang"),
                subject_scheme=_attr(element, "subjectScheme"),
                scheme_uri=_attr(element, "schemeURI"),
                value_uri=_attr(element, "valueURI"),
                classification_code=_attr(element, "classificationCode"),
            )

            classified = classify_subject(subject)
            if isinstance(classified, ControlledKeyword):
                segments = parse_hierarchical_path(text, classified.vocabulary)
                if segments:
                    subject = subject.model_copy(
                        update={
                            "text": segments[-1],
                            "path": format_hierarchical_path(segments, classified.vocabulary),
                        }
                    )
            subjects.append(subject)
        return subjects

    def _extract_affiliations(self, element) -> list[Affiliation]:
        affiliations = []
        for affiliation in _children(element, "affiliation"):
            identifier = _attr(affiliation, "affiliationIdentifier")
            scheme = _attr(affiliation, "affiliationIdentifierScheme")
            if names.is_ror(identifier, scheme):
                identifier = names.canonical_ror(identifier) or identifier
                scheme = "ROR"

            name = _text(affiliation) or identifier
            if name is None:
                logger.warning("Skipping affiliation without name or identifier")
                continue
            affiliations.append(
                Affiliation(
                    name=name,
                    identifier=identifier,
                    identifier_scheme=scheme,
                    scheme_uri=_attr(affiliation, "schemeURI"),
                )
            )
        return affiliations

    def _extract_agent(self, element, prefix: str, roles: list[ContributorRole]):
        """Build a Person or Institution from a creator/contributor element."""
        name_element = _child(element, f"{prefix}Name")
        name = _text(name_element)
        name_type = _attr(name_element, "nameType")
        affiliations = self._extract_affiliations(element)

        identifier, scheme = None, None
        for name_identifier in _children(element, "nameIdentifier"):
            value = _text(name_identifier)
            if value:
                identifier = value
                scheme = _attr(name_identifier, "nameIdentifierScheme")
                break

        if name_type is None:
            is_institution = bool(roles) and all(role.institution_only for role in roles)
        else:
            is_institution = name_type.lower() == "organizational"

        if is_institution:
            if name is None:
                return None
            if names.is_ror(identifier, scheme):
                identifier = names.canonical_ror(identifier) or identifier
                scheme = "ROR"
            return Institution(
                name=name,
                name_identifier=identifier,
                name_identifier_scheme=scheme,
                affiliations=affiliations,
            )

        given = _text(_child(element, "givenName"))
        family = _text(_child(element, "familyName"))
        if given is None or family is None:
            split = names.split_person_name(name)
            given = given or split.given_name
            family = family or split.family_name
        if given is None and family is None:
            return None

        if identifier and (names.identifier_scheme(identifier, scheme) or "").upper() == "ORCID":
            identifier = names.canonical_orcid(identifier) or identifier
            scheme = "ORCID"
        return Person(
            given_name=given,
            family_name=family,
            name_identifier=identifier,
            name_identifier_scheme=scheme,
            affiliations=affiliations,
        )

    def _extract_creators(self, resource) -> list[Creator]:
        creators = []
        for element in _children(_child(resource, "creators"), "creator"):
            agent = self._extract_agent(element, "creator", [])
            if agent is None:
                logger.warning("Skipping creator without a name")
                continue
            creators.append(Creator(agent=agent, position=len(creators)))
        return creators

    def _extract_contributors(self, resource) -> list[Contributor]:
        contributors = []
        for element in _children(_child(resource, "contributors"), "contributor"):
            raw_types = (_attr(element, "contributorType") or "").replace(";", ",")
            roles = [
                ContributorRole.from_contributor_type(value)
                for value in raw_types.split(",")
                if value.strip()
            ] or [ContributorRole.OTHER]

            agent = self._extract_agent(element, "contributor", roles)
            if agent is None:
                logger.warning("Skipping contributor without a name")
                continue
            contributors.append(Contributor(agent=agent, position=len(contributors), roles=roles))
        return contributors

    def _extract_related_identifiers(self, resource) -> list[RelatedIdentifier]:
        related = []
        for element in _children(_child(resource, "relatedIdentifiers"), "relatedIdentifier"):
            value = _text(element)
            if value is None:
                continue
            related.append(
                RelatedIdentifier(
                    identifier=value,
                    identifier_type=_attr(element, "relatedIdentifierType"),
                    relation_type=_attr(element, "relationType"),
                    resource_type_general=_attr(element, "resourceTypeGeneral"),
                )
            )
        return related

    def _extract_funding(self, resource) -> list[FundingReference]:
        funding = []
        for element in _children(_child(resource, "fundingReferences"), "fundingReference"):
            funder_name = _text(_child(element, "funderName"))
            if funder_name is None:
                logger.warning("Skipping funding reference without funderName")
                continue
            funder_identifier = _child(element, "funderIdentifier")
            award_number = _child(element, "awardNumber")
            funding.append(
                FundingReference(
                    funder_name=funder_name,
                    funder_identifier=_text(funder_identifier),
                    funder_identifier_type=_attr(funder_identifier, "funderIdentifierType"),
                    award_number=_text(award_number),
                    award_uri=_attr(award_number, "awardURI"),
                    award_title=_text(_child(element, "awardTitle")),
                )
            )
        return funding

    def _extract_point(self, element) -> GeoPoint | None:
        if element is None:
            return None
        longitude = _float(element, "pointLongitude")
        latitude = _float(element, "pointLatitude")
        if longitude is None or latitude is None:
            return None
        return GeoPoint(longitude=longitude, latitude=latitude)

    def _extract_geo_locations(self, resource) -> list[GeoLocation]:
        locations = []
        for element in _children(_child(resource, "geoLocations"), "geoLocation"):
            box = None
            box_element = _child(element, "geoLocationBox")
            if box_element is not None:
                bounds = [
                    _float(box_element, name)
                    for name in (
                        "westBoundLongitude",
                        "eastBoundLongitude",
                        "southBoundLatitude",
                        "northBoundLatitude",
                    )
                ]
                if None not in bounds:
                    box = GeoBox(west=bounds[0], east=bounds[1], south=bounds[2], north=bounds[3])

            polygon = None
            polygon_element = _child(element, "geoLocationPolygon")
            if polygon_element is not None:
                points = [
                    point
                    for point in (
                        self._extract_point(point_element)
                        for point_element in _children(polygon_element, "polygonPoint")
                    )
                    if point is not None
                ]
                if points:
                    polygon = GeoPolygon(
                        points=points,
                        in_polygon_point=self._extract_point(
                            _child(polygon_element, "inPolygonPoint")
                        ),
                    )

            location = GeoLocation(
                place=_text(_child(element, "geoLocationPlace")),
                point=self._extract_point(_child(element, "geoLocationPoint")),
                box=box,
                polygon=polygon,
            )
            if location.is_empty:
                logger.warning("Skipping empty geoLocation")
                continue
            locations.append(location)
        return locations

    def _extract_licenses(self, resource) -> list[License]:
        licenses = []
        for element in _children(_child(resource, "rightsList"), "rights"):
            rights = License(
                rights=_text(element),
                rights_uri=_attr(element, "rightsURI"),
                rights_identifier=_attr(element, "rightsIdentifier"),
                rights_identifier_scheme=_attr(element, "rightsIdentifierScheme"),
                scheme_uri=_attr(element, "schemeURI"),
                lang=_attr(element, "lang"),
            )
            if not (rights.rights or rights.rights_identifier or rights.rights_uri):
                continue
            licenses.append(rights)
        return licenses

    def _extract_values(self, resource, container: str, name: str) -> list[str]:
        elements = _children(_child(resource, container), name)
        return [value for value in (_text(element) for element in elements) if value]
