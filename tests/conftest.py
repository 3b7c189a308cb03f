"""Shared test fixtures for datacite-curation."""

from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool


SAMPLE_DATACITE_XML = """<?xml version="1.0" encoding="UTF-8"?>
<resource xmlns="http://datacite.org/schema/kernel-4"
          xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
          xsi:schemaLocation="http://datacite.org/schema/kernel-4 http://schema.datacite.org/meta/kernel-4.6/metadata.xsd">
  <identifier identifierType="DOI">10.5880/GFZ.1.2.2024.001</identifier>
  <creators>
    <creator>
      <creatorName nameType="Personal">Doe, Jane</creatorName>
      <givenName>Jane</givenName>
      <familyName>Doe</familyName>
      <nameIdentifier nameIdentifierScheme="ORCID" schemeURI="https://orcid.org">https://orcid.org/0000-0002-1825-0097</nameIdentifier>
      <affiliation affiliationIdentifier="https://ror.org/04z8jg394" affiliationIdentifierScheme="ROR" schemeURI="https://ror.org">GFZ German Research Centre for Geosciences</affiliation>
      <affiliation affiliationIdentifier="https://ror.org/03bnmw459" affiliationIdentifierScheme="ROR">University of Potsdam</affiliation>
    </creator>
    <creator>
      <creatorName nameType="Organizational">GFZ Data Services</creatorName>
    </creator>
  </creators>
  <titles>
    <title xml:lang="en" titleType="Subtitle">Waveforms from 2010 to 2020</title>
    <title xml:lang="en">Seismic monitoring of the Eifel volcanic field</title>
  </titles>
  <publisher xml:lang="en" publisherIdentifier="https://ror.org/04z8jg394" publisherIdentifierScheme="ROR" schemeURI="https://ror.org/">GFZ Data Services</publisher>
  <publicationYear>2024</publicationYear>
  <resourceType resourceTypeGeneral="Dataset">Seismic waveforms</resourceType>
  <subjects>
    <subject>Seismology</subject>
    <subject subjectScheme="Science Keywords" schemeURI="https://gcmd.earthdata.nasa.gov/kms/concepts/concept_scheme/sciencekeywords" valueURI="https://gcmd.earthdata.nasa.gov/kms/concept/a5b6c1a6-04d1-4c8c-9b4e-8f1d8a2f0c3e" xml:lang="en">Science Keywords &gt; EARTH SCIENCE &gt; SOLID EARTH &gt; EARTHQUAKES</subject>
    <subject subjectScheme="EPOS MSL vocabulary" schemeURI="https://epos-msl.uu.nl/voc" valueURI="https://epos-msl.uu.nl/voc/materials/1.3/sedimentary_rock-coal">Material &gt; sedimentary rock &gt; coal</subject>
    <subject subjectScheme="DDC" classificationCode="551.22">Earthquakes</subject>
    <subject>   </subject>
  </subjects>
  <contributors>
    <contributor contributorType="ContactPerson">
      <contributorName nameType="Personal">Smith, John</contributorName>
      <givenName>John</givenName>
      <familyName>Smith</familyName>
      <affiliation>GFZ German Research Centre for Geosciences</affiliation>
    </contributor>
    <contributor contributorType="HostingInstitution">
      <contributorName>GFZ German Research Centre for Geosciences</contributorName>
      <nameIdentifier nameIdentifierScheme="ROR">https://ror.org/04z8jg394</nameIdentifier>
    </contributor>
  </contributors>
  <dates>
    <date dateType="Collected">2010/2020</date>
    <date dateType="Available">/2017-03-01</date>
    <date dateType="Issued">2024</date>
    <date dateType="Coverage" dateInformation="Temporal coverage of the waveforms">2010-01-01/2020-12-31</date>
    <date dateType="Created"></date>
  </dates>
  <language>en</language>
  <relatedIdentifiers>
    <relatedIdentifier relatedIdentifierType="DOI" relationType="IsCitedBy" resourceTypeGeneral="JournalArticle">10.1016/j.jvolgeores.2021.107216</relatedIdentifier>
    <relatedIdentifier relatedIdentifierType="URL" relationType="References"></relatedIdentifier>
  </relatedIdentifiers>
  <sizes>
    <size>12 GB</size>
  </sizes>
  <formats>
    <format>application/vnd.fdsn.mseed</format>
  </formats>
  <version>1.0</version>
  <rightsList>
    <rights xml:lang="en" rightsURI="https://creativecommons.org/licenses/by/4.0/legalcode" rightsIdentifier="CC-BY-4.0" rightsIdentifierScheme="SPDX" schemeURI="https://spdx.org/licenses/">Creative Commons Attribution 4.0 International</rights>
  </rightsList>
  <descriptions>
    <description xml:lang="en" descriptionType="Abstract">Continuous waveforms recorded by
      the temporary Eifel network.</description>
    <description descriptionType="Methods">Broadband stations sampled at 100 Hz.</description>
  </descriptions>
  <geoLocations>
    <geoLocation>
      <geoLocationPlace>Eifel, Germany</geoLocationPlace>
      <geoLocationPoint>
        <pointLongitude>6.85</pointLongitude>
        <pointLatitude>50.35</pointLatitude>
      </geoLocationPoint>
      <geoLocationBox>
        <westBoundLongitude>6.0</westBoundLongitude>
        <eastBoundLongitude>7.5</eastBoundLongitude>
        <southBoundLatitude>50.0</southBoundLatitude>
        <northBoundLatitude>50.8</northBoundLatitude>
      </geoLocationBox>
    </geoLocation>
    <geoLocation>
      <geoLocationPolygon>
        <polygonPoint><pointLongitude>6.0</pointLongitude><pointLatitude>50.0</pointLatitude></polygonPoint>
        <polygonPoint><pointLongitude>7.5</pointLongitude><pointLatitude>50.0</pointLatitude></polygonPoint>
        <polygonPoint><pointLongitude>7.5</pointLongitude><pointLatitude>50.8</pointLatitude></polygonPoint>
        <polygonPoint><pointLongitude>6.0</pointLongitude><pointLatitude>50.0</pointLatitude></polygonPoint>
        <inPolygonPoint><pointLongitude>7.0</pointLongitude><pointLatitude>50.2</pointLatitude></inPolygonPoint>
      </geoLocationPolygon>
    </geoLocation>
  </geoLocations>
  <fundingReferences>
    <fundingReference>
      <funderName>Deutsche Forschungsgemeinschaft</funderName>
      <funderIdentifier funderIdentifierType="ROR">https://ror.org/018mejw64</funderIdentifier>
      <awardNumber awardURI="https://gepris.dfg.de/gepris/projekt/123456">DFG-123456</awardNumber>
      <awardTitle>Eifel Plume Project</awardTitle>
    </fundingReference>
    <fundingReference>
      <awardNumber>orphan-award</awardNumber>
    </fundingReference>
  </fundingReferences>
</resource>
"""


LEGACY_SCHEMA = [
    """CREATE TABLE resource (
        id INTEGER PRIMARY KEY, identifier TEXT, publicationyear INTEGER, version TEXT,
        language TEXT, resourcetypegeneral TEXT, publisher TEXT, keywords TEXT
    )""",
    """CREATE TABLE resourceagent (
        resource_id INTEGER, "order" INTEGER, name TEXT, firstname TEXT, lastname TEXT,
        nametype TEXT, identifier TEXT, identifiertype TEXT
    )""",
    "CREATE TABLE role (resourceagent_resource_id INTEGER, resourceagent_order INTEGER, role TEXT)",
    """CREATE TABLE affiliation (
        resourceagent_resource_id INTEGER, resourceagent_order INTEGER, "order" INTEGER,
        name TEXT, identifier TEXT, identifiertype TEXT
    )""",
    """CREATE TABLE contactinfo (
        resourceagent_resource_id INTEGER, resourceagent_order INTEGER, email TEXT, website TEXT
    )""",
    'CREATE TABLE date (resource_id INTEGER, datetype TEXT, start TEXT, "end" TEXT)',
    "CREATE TABLE title (resource_id INTEGER, title TEXT, titletype TEXT)",
    "CREATE TABLE description (resource_id INTEGER, description TEXT, descriptiontype TEXT)",
    "CREATE TABLE license (resource_id INTEGER, name TEXT)",
    "CREATE TABLE thesauruskeyword (resource_id INTEGER, keyword TEXT, thesaurus TEXT)",
    "CREATE TABLE thesaurusvalue (keyword TEXT, thesaurus TEXT, uri TEXT, description TEXT)",
]

LEGACY_DATA = [
    """INSERT INTO resource VALUES (
        42, '10.5880/GFZ.2.4.2015.001', 2015, '1.0', 'EN', 'Dataset', 'GFZ Data Services',
        'seismology, ambient noise,  '
    )""",
    # Creator with two affiliations
    """INSERT INTO resourceagent VALUES
        (42, 1, 'Doe, Jane', 'Jane', 'Doe', NULL, '0000-0002-1825-0097', 'ORCID'),
        (42, 2, 'Miller, Anna', NULL, NULL, NULL, NULL, NULL),
        (42, 3, 'Jane Doe', NULL, NULL, NULL, NULL, NULL),
        (42, 4, 'Smith, John', 'John', 'Smith', NULL, NULL, NULL),
        (42, 5, 'GFZ German Research Centre for Geosciences', NULL, NULL, NULL,
         'https://ror.org/04z8jg394', 'ROR'),
        (42, 6, 'Kim Lee', NULL, NULL, NULL, NULL, NULL)""",
    """INSERT INTO role VALUES
        (42, 1, 'Creator'),
        (42, 2, 'Creator'),
        (42, 3, 'pointOfContact'),
        (42, 4, 'DataCurator'),
        (42, 4, 'Editor'),
        (42, 5, 'HostingInstitution'),
        (42, 6, 'Photographer')""",
    """INSERT INTO affiliation VALUES
        (42, 1, 1, 'GFZ', 'https://ror.org/04z8jg394', 'ROR'),
        (42, 1, 2, 'OGS', '05fb7zt41', 'ROR'),
        (42, 4, 1, 'University of Potsdam', NULL, NULL)""",
    """INSERT INTO contactinfo VALUES
        (42, 3, 'jane.doe@example.org', 'https://example.org/jane')""",
    """INSERT INTO date VALUES
        (42, 'Collected', '2010-01-01 00:00:00', '2012-06-30 00:00:00'),
        (42, 'Available', NULL, '2017-03-01'),
        (42, 'Created', NULL, NULL),
        (42, 'publication', '2015', NULL)""",
    """INSERT INTO title VALUES
        (42, 'Alternative name', 'AlternativeTitle'),
        (42, 'Ambient noise records from Eifel', NULL)""",
    "INSERT INTO description VALUES (42, 'Records of ambient seismic noise.', 'Abstract')",
    """INSERT INTO license VALUES
        (42, 'CC BY 4.0'),
        (42, 'Some home-grown licence')""",
    """INSERT INTO thesauruskeyword VALUES
        (42, 'EARTH SCIENCE > SOLID EARTH > SEISMOLOGY', 'NASA/GCMD Earth Science Keywords'),
        (42, 'Sand > Quartz Sand', 'EPOS WP16 Analogue Material'),
        (42, 'Something', 'Unknown Thesaurus')""",
    """INSERT INTO thesaurusvalue VALUES
        ('EARTH SCIENCE > SOLID EARTH > SEISMOLOGY', 'NASA/GCMD Earth Science Keywords',
         'http://gcmdservices.gsfc.nasa.gov/kms/concept/C9B43D20-1B5B-4A9D-8D11-2A1B2E44C0A1', NULL),
        ('Sand > Quartz Sand', 'EPOS WP16 Analogue Material',
         'http://epos/WP16Vocabulary/AnalogueMaterial/Sand/Quartz', 'Quartz sand'),
        ('Something', 'Unknown Thesaurus', NULL, NULL)""",
    # Dataset without any agents
    "INSERT INTO resource VALUES (7, NULL, 2001, NULL, NULL, NULL, NULL, NULL)",
]


@pytest.fixture
def sample_datacite_xml() -> str:
    """Namespaced DataCite 4.6 document covering every supported element."""
    return SAMPLE_DATACITE_XML


@pytest.fixture
def sample_datacite_xml_file(sample_datacite_xml: str, tmp_path: Path) -> Path:
    """Write the sample document to a temporary file."""
    xml_file = tmp_path / "datacite.xml"
    xml_file.write_text(sample_datacite_xml, encoding="utf-8")
    return xml_file


@pytest.fixture
def legacy_engine():
    """In-memory SQLite copy of the legacy metadata database."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    with engine.begin() as connection:
        for statement in LEGACY_SCHEMA + LEGACY_DATA:
            connection.exec_driver_sql(statement)
    yield engine
    engine.dispose()
