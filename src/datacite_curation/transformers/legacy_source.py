"""Read-only access to the legacy metadata database."""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field
from sqlalchemy import and_, column, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from ..config import Settings, create_legacy_engine
from ..errors import LegacySourceUnavailableError
from ..names import canonical_ror, is_ror

logger = logging.getLogger(__name__)


class LegacyAffiliationRow(BaseModel):
    name: str
    ror_id: str | None = None


class LegacyAgentRow(BaseModel):
    """One resourceagent entry with its roles, contact info and affiliations."""

    id: int = Field(description="Legacy resource id the agent belongs to")
    role: str | None = Field(default=None, description="Primary role code, Creator when present")
    roles: list[str] = Field(default_factory=list)
    agent_order: int
    name_type: str | None = None
    given_name: str | None = None
    family_name: str | None = None
    combined_name: str | None = None
    identifier: str | None = None
    identifier_type: str | None = None
    email: str | None = None
    website: str | None = None
    affiliations: list[LegacyAffiliationRow] = Field(default_factory=list)


class LegacyDateRow(BaseModel):
    date_type: str | None = None
    start: Any = None
    end: Any = None


class LegacyDatasetRow(BaseModel):
    id: int
    identifier: str | None = None
    publication_year: int | None = None
    version: str | None = None
    language: str | None = None
    resource_type_general: str | None = None
    publisher: str | None = None
    keywords: str | None = Field(default=None, description="Comma separated free keywords")


class LegacyTitleRow(BaseModel):
    title: str
    title_type: str | None = None


class LegacyDescriptionRow(BaseModel):
    description: str
    description_type: str | None = None


class LegacyKeywordRow(BaseModel):
    keyword: str
    thesaurus: str
    uri: str | None = None
    description: str | None = None


class LegacySource(ABC):
    """Read interface over the legacy database, keyed by resource id."""

    @abstractmethod
    def fetch_agents(self, dataset_id: int) -> list[LegacyAgentRow]:
        raise NotImplementedError()

    @abstractmethod
    def fetch_dates(self, dataset_id: int) -> list[LegacyDateRow]:
        raise NotImplementedError()

    @abstractmethod
    def fetch_dataset(self, dataset_id: int) -> LegacyDatasetRow | None:
        raise NotImplementedError()

    @abstractmethod
    def fetch_titles(self, dataset_id: int) -> list[LegacyTitleRow]:
        raise NotImplementedError()

    @abstractmethod
    def fetch_descriptions(self, dataset_id: int) -> list[LegacyDescriptionRow]:
        raise NotImplementedError()

    @abstractmethod
    def fetch_licenses(self, dataset_id: int) -> list[str]:
        raise NotImplementedError()

    @abstractmethod
    def fetch_keywords(self, dataset_id: int) -> list[LegacyKeywordRow]:
        raise NotImplementedError()


resource_table = table(
    "resource",
    column("id"),
    column("identifier"),
    column("publicationyear"),
    column("version"),
    column("language"),
    column("resourcetypegeneral"),
    column("publisher"),
    column("keywords"),
)
resourceagent_table = table(
    "resourceagent",
    column("resource_id"),
    column("order"),
    column("name"),
    column("firstname"),
    column("lastname"),
    column("nametype"),
    column("identifier"),
    column("identifiertype"),
)
role_table = table(
    "role", column("resourceagent_resource_id"), column("resourceagent_order"), column("role")
)
affiliation_table = table(
    "affiliation",
    column("resourceagent_resource_id"),
    column("resourceagent_order"),
    column("order"),
    column("name"),
    column("identifier"),
    column("identifiertype"),
)
contactinfo_table = table(
    "contactinfo",
    column("resourceagent_resource_id"),
    column("resourceagent_order"),
    column("email"),
    column("website"),
)
date_table = table(
    "date", column("resource_id"), column("datetype"), column("start"), column("end")
)
title_table = table("title", column("resource_id"), column("title"), column("titletype"))
description_table = table(
    "description", column("resource_id"), column("description"), column("descriptiontype")
)
license_table = table("license", column("resource_id"), column("name"))
thesauruskeyword_table = table(
    "thesauruskeyword", column("resource_id"), column("keyword"), column("thesaurus")
)
thesaurusvalue_table = table(
    "thesaurusvalue", column("keyword"), column("thesaurus"), column("uri"), column("description")
)


class SqlLegacySource(LegacySource):
    """LegacySource backed by a SQLAlchemy engine (MySQL in production).

    Connection failures and pool timeouts surface as
    ``LegacySourceUnavailableError``. Other ``DBAPIError`` subclasses, such as
    ``ProgrammingError`` or ``IntegrityError``, propagate unchanged.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqlLegacySource":
        return cls(create_legacy_engine(settings))

    def _fetch(self, statement) -> list:
        try:
            with self.engine.connect() as connection:
                return list(connection.execute(statement).mappings())
        except (OperationalError, InterfaceError, PoolTimeoutError) as e:
            logger.error(f"Legacy database unavailable: {e}")
            raise LegacySourceUnavailableError(str(e)) from e

    def fetch_agents(self, dataset_id: int) -> list[LegacyAgentRow]:
        agents = self._fetch(
            select(
                resourceagent_table,
                contactinfo_table.c.email,
                contactinfo_table.c.website,
            )
            .select_from(
                resourceagent_table.outerjoin(
                    contactinfo_table,
                    and_(
                        contactinfo_table.c.resourceagent_resource_id
                        == resourceagent_table.c.resource_id,
                        contactinfo_table.c.resourceagent_order == resourceagent_table.c["order"],
                    ),
                )
            )
            .where(resourceagent_table.c.resource_id == dataset_id)
            .order_by(resourceagent_table.c["order"])
        )
        roles = self._fetch(
            select(role_table.c.resourceagent_order, role_table.c.role)
            .where(role_table.c.resourceagent_resource_id == dataset_id)
            .order_by(role_table.c.resourceagent_order, role_table.c.role)
        )
        affiliations = self._fetch(
            select(affiliation_table)
            .where(affiliation_table.c.resourceagent_resource_id == dataset_id)
            .order_by(affiliation_table.c.resourceagent_order, affiliation_table.c["order"])
        )

        roles_by_agent: dict[int, list[str]] = {}
        for row in roles:
            if row["role"]:
                roles_by_agent.setdefault(row["resourceagent_order"], []).append(row["role"])

        affiliations_by_agent: dict[int, list[LegacyAffiliationRow]] = {}
        for row in affiliations:
            identifier = (row["identifier"] or "").strip()
            name = (row["name"] or "").strip() or identifier
            if not name:
                logger.warning(
                    "Skipping affiliation without name or identifier for agent "
                    f"{row['resourceagent_order']} of dataset {dataset_id}"
                )
                continue
            ror_id = None
            if is_ror(row["identifier"], row["identifiertype"]):
                ror_id = canonical_ror(row["identifier"]) or row["identifier"]
            affiliations_by_agent.setdefault(row["resourceagent_order"], []).append(
                LegacyAffiliationRow(name=name, ror_id=ror_id)
            )

        result = []
        seen = set()
        for row in agents:
            order = row["order"]
            # several contactinfo rows for one agent would repeat it
            if order in seen:
                continue
            seen.add(order)

            agent_roles = roles_by_agent.get(order, [])
            result.append(
                LegacyAgentRow(
                    id=row["resource_id"],
                    role="Creator" if "Creator" in agent_roles else next(iter(agent_roles), None),
                    roles=agent_roles,
                    agent_order=order,
                    name_type=row["nametype"],
                    given_name=row["firstname"],
                    family_name=row["lastname"],
                    combined_name=row["name"],
                    identifier=row["identifier"],
                    identifier_type=row["identifiertype"],
                    email=row["email"],
                    website=row["website"],
                    affiliations=affiliations_by_agent.get(order, []),
                )
            )
        return result

    def fetch_dates(self, dataset_id: int) -> list[LegacyDateRow]:
        rows = self._fetch(
            select(date_table.c.datetype, date_table.c.start, date_table.c.end).where(
                date_table.c.resource_id == dataset_id
            )
        )
        return [
            LegacyDateRow(date_type=row["datetype"], start=row["start"], end=row["end"])
            for row in rows
        ]

    def fetch_dataset(self, dataset_id: int) -> LegacyDatasetRow | None:
        rows = self._fetch(select(resource_table).where(resource_table.c.id == dataset_id))
        if not rows:
            return None
        row = rows[0]
        year = row["publicationyear"]
        return LegacyDatasetRow(
            id=row["id"],
            identifier=row["identifier"],
            publication_year=int(year) if year else None,
            version=row["version"],
            language=row["language"],
            resource_type_general=row["resourcetypegeneral"],
            publisher=row["publisher"],
            keywords=row["keywords"],
        )

    def fetch_titles(self, dataset_id: int) -> list[LegacyTitleRow]:
        rows = self._fetch(
            select(title_table.c.title, title_table.c.titletype).where(
                title_table.c.resource_id == dataset_id
            )
        )
        return [
            LegacyTitleRow(title=row["title"], title_type=row["titletype"])
            for row in rows
            if row["title"]
        ]

    def fetch_descriptions(self, dataset_id: int) -> list[LegacyDescriptionRow]:
        rows = self._fetch(
            select(description_table.c.description, description_table.c.descriptiontype).where(
                description_table.c.resource_id == dataset_id
            )
        )
        return [
            LegacyDescriptionRow(
                description=row["description"], description_type=row["descriptiontype"]
            )
            for row in rows
            if row["description"]
        ]

    def fetch_licenses(self, dataset_id: int) -> list[str]:
        rows = self._fetch(
            select(license_table.c.name).where(license_table.c.resource_id == dataset_id)
        )
        return [row["name"] for row in rows if row["name"]]

    def fetch_keywords(self, dataset_id: int) -> list[LegacyKeywordRow]:
        rows = self._fetch(
            select(
                thesauruskeyword_table.c.keyword,
                thesauruskeyword_table.c.thesaurus,
                thesaurusvalue_table.c.uri,
                thesaurusvalue_table.c.description,
            )
            .select_from(
                thesauruskeyword_table.outerjoin(
                    thesaurusvalue_table,
                    and_(
                        thesaurusvalue_table.c.keyword == thesauruskeyword_table.c.keyword,
                        thesaurusvalue_table.c.thesaurus == thesauruskeyword_table.c.thesaurus,
                    ),
                )
            )
            .where(thesauruskeyword_table.c.resource_id == dataset_id)
        )
        return [
            LegacyKeywordRow(
                keyword=row["keyword"],
                thesaurus=row["thesaurus"],
                uri=row["uri"],
                description=row["description"],
            )
            for row in rows
            if row["keyword"] and row["thesaurus"]
        ]
