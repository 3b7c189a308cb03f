"""Tests for person-name splitting and identifier canonicalisation."""

import pytest

from datacite_curation import names


class TestSplitPersonName:
    """Tests for names.split_person_name."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Doe, Jane", ("Jane", "Doe")),
            ("Doe,Jane Q.", ("Jane Q.", "Doe")),
            ("van der Berg, Anna, PhD", ("Anna, PhD", "van der Berg")),
            ("Jane Doe", ("Jane", "Doe")),
            ("Jane  Quinn   Doe", ("Jane Quinn", "Doe")),
            ("Doe", (None, "Doe")),
            ("Doe,", (None, "Doe")),
        ],
    )
    def test_split(self, raw, expected):
        assert names.split_person_name(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty(self, raw):
        assert names.split_person_name(raw) == (None, None)


class TestNormaliseName:
    def test_order_case_and_accents_ignored(self):
        assert names.normalise_name("Müller, Jörg") == names.normalise_name("jorg muller")

    def test_different_names_differ(self):
        assert names.normalise_name("Doe, Jane") != names.normalise_name("Doe, John")


class TestIdentifiers:
    """Tests for ORCID and ROR canonicalisation."""

    @pytest.mark.parametrize(
        "value",
        [
            "0000-0002-1825-0097",
            "https://orcid.org/0000-0002-1825-0097",
            "http://orcid.org/0000-0002-1825-0097/",
        ],
    )
    def test_canonical_orcid(self, value):
        assert names.canonical_orcid(value) == "0000-0002-1825-0097"

    def test_orcid_checksum_x(self):
        assert names.canonical_orcid("0000-0002-1694-233x") == "0000-0002-1694-233X"

    def test_not_an_orcid(self):
        assert names.canonical_orcid("not an orcid") is None
        assert names.canonical_orcid(None) is None

    @pytest.mark.parametrize(
        "value",
        [
            "https://ror.org/04z8jg394",
            "ror.org/04z8jg394",
            "https://ror.org/04Z8JG394/",
            "04z8jg394",
        ],
    )
    def test_canonical_ror(self, value):
        assert names.canonical_ror(value) == "https://ror.org/04z8jg394"

    def test_not_a_ror(self):
        assert names.canonical_ror("https://example.org/04z8jg394") is None
        assert names.canonical_ror("") is None

    def test_is_ror(self):
        assert names.is_ror("https://ror.org/04z8jg394")
        assert names.is_ror("04z8jg394", "ROR")
        assert not names.is_ror("04z8jg394")
        assert not names.is_ror(None, "ROR")

    def test_scheme_uri(self):
        assert names.scheme_uri("orcid") == "https://orcid.org"
        assert names.scheme_uri("ROR") == "https://ror.org"
        assert names.scheme_uri("Other") is None
        assert names.scheme_uri(None) is None

    @pytest.mark.parametrize(
        "identifier,scheme,expected",
        [
            ("https://isni.org/isni/0000000121032683", "ISNI", "ISNI"),
            ("https://ror.org/04z8jg394", None, "ROR"),
            ("0000-0002-1825-0097", None, "ORCID"),
            ("https://orcid.org/0000-0002-1825-0097", None, "ORCID"),
            ("https://isni.org/isni/0000000121032683", None, None),
            ("ABC-12345", None, None),
            ("04z8jg394", None, None),
            ("urn:x:0000-0002-1825-0097", None, None),
            (None, None, None),
        ],
    )
    def test_identifier_scheme(self, identifier, scheme, expected):
        """Test that only a declared or recognisable scheme is reported."""
        assert names.identifier_scheme(identifier, scheme) == expected
