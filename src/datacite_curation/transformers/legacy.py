"""Legacy metadata database to Resource transformer."""

import logging
import re
from typing import NamedTuple

from .. import dates, names
from ..errors import LegacyDatasetNotFoundError
from ..schema import (
    Affiliation,
    Contributor,
    ContributorRole,
    Creator,
    Date,
    DateType,
    Description,
    DescriptionType,
    Institution,
    License,
    Person,
    Publisher,
    Resource,
    Subject,
    Title,
    TitleType,
)
from ..vocabulary import controlled_term_to_subject, free_keyword_to_subject, legacy_keyword_to_term
from .base_transformer import Transformer
from .legacy_source import LegacyAgentRow, LegacySource

logger = logging.getLogger(__name__)

CREATOR_ROLE = "Creator"
CONTACT_ROLES = {"pointofcontact", "contactperson"}

# Legacy role codes, compared case-insensitively without punctuation
ROLE_MAP = {
    "pointofcontact": ContributorRole.CONTACT_PERSON,
    "contactperson": ContributorRole.CONTACT_PERSON,
    "datacollector": ContributorRole.DATA_COLLECTOR,
    "datacurator": ContributorRole.DATA_CURATOR,
    "curator": ContributorRole.DATA_CURATOR,
    "datamanager": ContributorRole.DATA_MANAGER,
    "distributor": ContributorRole.DISTRIBUTOR,
    "editor": ContributorRole.EDITOR,
    "hostinginstitution": ContributorRole.HOSTING_INSTITUTION,
    "producer": ContributorRole.PRODUCER,
    "projectleader": ContributorRole.PROJECT_LEADER,
    "projectmanager": ContributorRole.PROJECT_MANAGER,
    "projectmember": ContributorRole.PROJECT_MEMBER,
    "registrationagency": ContributorRole.REGISTRATION_AGENCY,
    "registrationauthority": ContributorRole.REGISTRATION_AUTHORITY,
    "relatedperson": ContributorRole.RELATED_PERSON,
    "researcher": ContributorRole.RESEARCHER,
    "researchgroup": ContributorRole.RESEARCH_GROUP,
    "rightsholder": ContributorRole.RIGHTS_HOLDER,
    "sponsor": ContributorRole.SPONSOR,
    "supervisor": ContributorRole.SUPERVISOR,
    "translator": ContributorRole.TRANSLATOR,
    "workpackageleader": ContributorRole.WORK_PACKAGE_LEADER,
}

DATE_TYPE_MAP = {
    "accepted": DateType.ACCEPTED,
    "available": DateType.AVAILABLE,
    "collected": DateType.COLLECTED,
    "copyrighted": DateType.COPYRIGHTED,
    "coverage": DateType.COVERAGE,
    "created": DateType.CREATED,
    "creation": DateType.CREATED,
    "issued": DateType.ISSUED,
    "publication": DateType.ISSUED,
    "submitted": DateType.SUBMITTED,
    "updated": DateType.UPDATED,
    "revision": DateType.UPDATED,
    "valid": DateType.VALID,
    "withdrawn": DateType.WITHDRAWN,
}

LICENSE_MAP = {
    "CC BY 4.0": "CC-BY-4.0",
    "CC BY-NC 4.0": "CC-BY-NC-4.0",
    "CC BY-SA 4.0": "CC-BY-SA-4.0",
    "CC BY 3.0": "CC-BY-3.0",
    "CC BY-NC 3.0": "CC-BY-NC-3.0",
    "CC BY-SA 3.0": "CC-BY-SA-3.0",
    "CC BY-NC-SA 4.0": "CC-BY-NC-SA-4.0",
    "CC BY-NC-SA 3.0": "CC-BY-NC-SA-3.0",
    "CC BY-NC": "CC-BY-NC-4.0",
    "CC BY NC 4.0": "CC-BY-NC-4.0",
    "CC0 1.0": "CC0-1.0",
    "CC0": "CC0-1.0",
    "CC0 Universal 1.0": "CC0-1.0",
    "Creative Commons Attribution 4.0 International": "CC-BY-4.0",
    "Apache License 2.0": "Apache-2.0",
    "Apache License Version 2.0": "Apache-2.0",
    "Apache License, version 2.0": "Apache-2.0",
    "Apache License, Version 2.0 (ALv2)": "Apache-2.0",
    "MIT License": "MIT",
    "MIT Licence": "MIT",
    "GNU General Public License, version 3": "GPL-3.0-only",
    "GNU General Public License, Version 3, 29 June 2007": "GPL-3.0-only",
    "GNU Lesser General Public License v2.1": "LGPL-2.1-only",
    "GNU Lesser General Public License v 2.1": "LGPL-2.1-only",
    "GNU Lesser General Public License Version 3 (29 June 2007)": "LGPL-3.0-only",
    "GNU Affero General Public License (AGPL) (Version 3, 19 November 2007)": "AGPL-3.0-only",
    'BSD 2-clause "Simplified" License': "BSD-2-Clause",
    "BSD 3-clause License": "BSD-3-Clause",
    "BSD 3-Clause License": "BSD-3-Clause",
    "BSD-3 Clause License": "BSD-3-Clause",
    "EUPL v1.2": "EUPL-1.2",
    "EUPL-1.2": "EUPL-1.2",
    "European Union Public Licence (EUPL) v. 1.2": "EUPL-1.2",
    "European Union Public Licence (EUPL) v.1.2": "EUPL-1.2",
    "Open Data Commons Open Database License (ODbL)": "ODbL-1.0",
}

# Free-text licence statements with copyright lines appended
LICENSE_PATTERNS = [
    (re.compile(r"Apache Licen[cs]e,?\s*Version 2\.0", re.IGNORECASE), "Apache-2.0"),
    (re.compile(r"GNU Affero General Public Licen[cs]e", re.IGNORECASE), "AGPL-3.0-only"),
    (
        re.compile(
            r"GNU General Public License,?\s*Version 3[^;]*(;?\s*Copyright|29 June 2007)",
            re.IGNORECASE,
        ),
        "GPL-3.0-only",
    ),
    (re.compile(r"BSD 3-Clause[^;]*(;?\s*Copyright)", re.IGNORECASE), "BSD-3-Clause"),
    (re.compile(r"\bMIT Licen[cs]e\b", re.IGNORECASE), "MIT"),
    (re.compile(r"European Union Public Licence.*1\.2", re.IGNORECASE), "EUPL-1.2"),
    (re.compile(r"public domain \(CC0\)", re.IGNORECASE), "CC0-1.0"),
]
CC_PATTERN = re.compile(r"CC\s+BY(?:[- ]NC)?(?:-SA)?(?:-ND)?\s*(\d+\.\d+)?", re.IGNORECASE)
ATTRIBUTION_PATTERN = re.compile(
    r"Attribution(?:-NonCommercial)?(?:-ShareAlike)?(?:-NoDerivatives)?"
    r"\s+(\d+\.\d+)\s+International",
    re.IGNORECASE,
)
SPDX_URIS = "https://spdx.org/licenses/"


def map_role(code: str | None) -> ContributorRole:
    key = re.sub(r"[^a-z]", "", (code or "").lower())
    return ROLE_MAP.get(key, ContributorRole.OTHER)


def _cc_variant(name: str, version: str) -> str:
    suffix = ""
    if re.search(r"\b(NC|Non-?Commercial)\b", name, re.IGNORECASE):
        suffix += "-NC"
    if re.search(r"\b(SA|Share-?Alike)\b", name, re.IGNORECASE):
        suffix += "-SA"
    if re.search(r"\b(ND|No-?Derivatives?|NoDerivs?)\b", name, re.IGNORECASE):
        suffix += "-ND"
    return f"CC-BY{suffix}-{version}"


def map_license(name: str | None) -> str | None:
    """Map a legacy licence name to an SPDX identifier, or None."""
    if not name:
        return None
    name = name.strip()
    if name in LICENSE_MAP:
        return LICENSE_MAP[name]

    for pattern, spdx in LICENSE_PATTERNS:
        if pattern.search(name):
            return spdx

    match = CC_PATTERN.search(name)
    if match:
        return _cc_variant(name, match.group(1) or "4.0")

    match = ATTRIBUTION_PATTERN.search(name)
    if match:
        return _cc_variant(name, match.group(1))

    logger.warning(f"No SPDX identifier for legacy licence {name!r}")
    return None


def _is_contact(row: LegacyAgentRow) -> bool:
    return any(re.sub(r"[^a-z]", "", r.lower()) in CONTACT_ROLES for r in row.roles)


def _agent_name(row: LegacyAgentRow) -> str:
    if row.combined_name and row.combined_name.strip():
        return row.combined_name
    return " ".join(part for part in (row.given_name, row.family_name) if part)


class LegacyAgents(NamedTuple):
    creators: list[Creator]
    contributors: list[Contributor]


class LegacyTransformer(Transformer):
    """Map legacy database rows for one dataset onto a Resource."""

    def __init__(self, source: LegacySource):
        super().__init__()
        self.source = source

    def transform(self, single_object: int) -> Resource:
        return self.load_resource(single_object)

    def load_agents(self, dataset_id: int) -> LegacyAgents:
        rows = sorted(self.source.fetch_agents(dataset_id), key=lambda r: r.agent_order)

        creator_rows = [
            row for row in rows if CREATOR_ROLE in row.roles or row.role == CREATOR_ROLE
        ]
        creator_orders = {row.agent_order for row in creator_rows}
        other_rows = [row for row in rows if row.agent_order not in creator_orders]
        creator_names = {names.normalise_name(_agent_name(row)) for row in creator_rows}

        # Contact entries duplicated under the creator's name, keyed by normalised name
        contact_rows = {}
        for row in rows:
            if _is_contact(row):
                contact_rows.setdefault(names.normalise_name(_agent_name(row)), row)

        creators = []
        for row in creator_rows:
            agent = self._build_agent(row, [])
            if agent is None:
                logger.warning(
                    f"Skipping nameless creator {row.agent_order} of dataset {dataset_id}"
                )
                continue

            creator = Creator(agent=agent, position=len(creators))
            contact = row if _is_contact(row) else contact_rows.get(
                names.normalise_name(_agent_name(row))
            )
            if contact is not None:
                creator.contact_email = row.email or contact.email
                creator.contact_website = row.website or contact.website
            creators.append(creator)

        contributors = []
        for row in other_rows:
            if names.normalise_name(_agent_name(row)) in creator_names:
                continue

            roles = []
            for code in row.roles or ([row.role] if row.role else []):
                mapped = map_role(code)
                if mapped not in roles:
                    roles.append(mapped)
            if not roles:
                roles = [ContributorRole.OTHER]

            agent = self._build_agent(row, roles)
            if agent is None:
                logger.warning(
                    f"Skipping nameless contributor {row.agent_order} of dataset {dataset_id}"
                )
                continue
            contributors.append(Contributor(agent=agent, position=len(contributors), roles=roles))

        return LegacyAgents(creators, contributors)

    def _build_agent(self, row: LegacyAgentRow, roles: list[ContributorRole]):
        affiliations = [
            Affiliation(
                name=affiliation.name,
                identifier=affiliation.ror_id,
                identifier_scheme="ROR" if affiliation.ror_id else None,
                scheme_uri="https://ror.org" if affiliation.ror_id else None,
            )
            for affiliation in row.affiliations
        ]

        name_type = (row.name_type or "").strip().lower()
        combined = (row.combined_name or "").strip() or None

        if name_type == "organizational" or (
            not name_type
            and not (row.given_name or row.family_name)
            and not (combined and "," in combined)
            and roles
            and all(role.institution_only for role in roles)
        ):
            name = combined or _agent_name(row)
            if not name:
                return None
            identifier = row.identifier
            scheme = row.identifier_type
            if names.is_ror(identifier, scheme):
                identifier = names.canonical_ror(identifier) or identifier
                scheme = "ROR"
            return Institution(
                name=name,
                name_identifier=identifier,
                name_identifier_scheme=scheme,
                affiliations=affiliations,
            )

        given, family = row.given_name, row.family_name
        if not (given or family):
            given, family = names.split_person_name(combined)
        if not (given or family):
            return None

        identifier, scheme = row.identifier, row.identifier_type
        orcid = names.canonical_orcid(identifier)
        if orcid and (scheme or "ORCID").upper() == "ORCID":
            identifier, scheme = orcid, "ORCID"
        return Person(
            given_name=given,
            family_name=family,
            name_identifier=identifier or None,
            name_identifier_scheme=scheme if identifier else None,
            affiliations=affiliations,
        )

    def load_dates(self, dataset_id: int) -> list[Date]:
        result = []
        for row in self.source.fetch_dates(dataset_id):
            date_type = DATE_TYPE_MAP.get((row.date_type or "").strip().lower(), DateType.OTHER)
            date = dates.date_from_parts(
                date_type, dates.normalise_token(row.start), dates.normalise_token(row.end)
            )
            if date is None:
                continue
            result.append(date)
        return result

    def load_resource(self, dataset_id: int) -> Resource:
        """Load everything known about one legacy dataset."""
        dataset = self.source.fetch_dataset(dataset_id)
        if dataset is None:
            raise LegacyDatasetNotFoundError(dataset_id)

        agents = self.load_agents(dataset_id)

        titles = [
            Title(title=row.title.strip(), title_type=self._title_type(row.title_type))
            for row in self.source.fetch_titles(dataset_id)
            if row.title.strip()
        ]
        titles.sort(key=lambda t: t.title_type is not TitleType.MAIN_TITLE)

        descriptions = [
            Description(
                description=row.description.strip(),
                description_type=self._description_type(row.description_type),
            )
            for row in self.source.fetch_descriptions(dataset_id)
            if row.description.strip()
        ]

        licenses = []
        for name in self.source.fetch_licenses(dataset_id):
            spdx = map_license(name)
            licenses.append(
                License(
                    rights=name.strip(),
                    rights_identifier=spdx,
                    rights_identifier_scheme="SPDX" if spdx else None,
                    rights_uri=f"{SPDX_URIS}{spdx}.html" if spdx else None,
                    scheme_uri=SPDX_URIS if spdx else None,
                )
            )

        return Resource(
            identifier=dataset.identifier,
            publication_year=dataset.publication_year,
            resource_type_general=dataset.resource_type_general or "Dataset",
            version=dataset.version,
            language=(dataset.language or "en").strip().lower(),
            publisher=Publisher(name=dataset.publisher) if dataset.publisher else None,
            titles=titles,
            descriptions=descriptions,
            dates=self.load_dates(dataset_id),
            subjects=self._load_subjects(dataset_id, dataset.keywords),
            creators=agents.creators,
            contributors=agents.contributors,
            licenses=licenses,
        )

    def _load_subjects(self, dataset_id: int, keywords: str | None) -> list[Subject]:
        subjects = [
            free_keyword_to_subject(keyword)
            for keyword in (keywords or "").split(",")
            if keyword.strip()
        ]
        for row in self.source.fetch_keywords(dataset_id):
            converted = legacy_keyword_to_term(row.keyword, row.thesaurus, row.uri, row.description)
            if converted is None:
                continue
            vocabulary, term = converted
            subjects.append(controlled_term_to_subject(term, vocabulary))
        return subjects

    @staticmethod
    def _title_type(value: str | None) -> TitleType:
        if not value:
            return TitleType.MAIN_TITLE
        for title_type in TitleType:
            if title_type.value.lower() == value.strip().lower():
                return title_type
        return TitleType.OTHER

    @staticmethod
    def _description_type(value: str | None) -> DescriptionType:
        if not value:
            return DescriptionType.ABSTRACT
        for description_type in DescriptionType:
            if description_type.value.lower() == value.strip().lower():
                return description_type
        return DescriptionType.OTHER
