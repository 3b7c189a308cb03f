"""Free and controlled keywords.

Subjects arrive as loose attribute bags (``subjectScheme``, ``schemeURI``,
``valueURI``). ``classify_subject`` turns each one into exactly one of
``FreeKeyword``, ``ControlledKeyword`` or ``IncompleteSubject`` so callers
never re-inspect raw attributes.

Hierarchical paths use ``" > "`` as separator. GCMD paths may start with
the vocabulary type (``Science Keywords > EARTH SCIENCE > ...``); that
prefix is stripped on parse and re-added on format. MSL paths carry none.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel

from .errors import UnrecognizedVocabularySchemeError
from .schema import Subject

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " > "
GCMD_CONCEPT_BASE = "https://gcmd.earthdata.nasa.gov/kms/concept/"
GCMD_SCHEME_BASE = "https://gcmd.earthdata.nasa.gov/kms/concepts/concept_scheme/"
MSL_SCHEME_URI = "https://epos-msl.uu.nl/voc"
MSL_VOCABULARY_VERSION = "1.3"

UUID_PATTERN = re.compile(
    r"([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})", re.IGNORECASE
)


class Vocabulary(str, Enum):
    """Controlled vocabularies, valued by their DataCite ``subjectScheme``."""

    SCIENCE_KEYWORDS = "Science Keywords"
    PLATFORMS = "Platforms"
    INSTRUMENTS = "Instruments"
    MSL = "EPOS MSL vocabulary"

    @property
    def is_gcmd(self) -> bool:
        return self is not Vocabulary.MSL

    @property
    def scheme_uri(self) -> str:
        if self is Vocabulary.MSL:
            return MSL_SCHEME_URI
        return GCMD_SCHEME_BASE + self.value.replace(" ", "").lower()

    @property
    def path_prefix(self) -> str | None:
        """Type prefix of GCMD paths, e.g. ``Science Keywords``."""
        return self.value if self.is_gcmd else None

    @classmethod
    def from_scheme(cls, scheme: str | None) -> "Vocabulary | None":
        """Exact match on the subjectScheme identifier."""
        if not scheme:
            return None
        for vocabulary in cls:
            if vocabulary.value == scheme.strip():
                return vocabulary
        return None


GCMD_PREFIX_PATTERN = re.compile(
    r"^\s*(?:"
    + "|".join(re.escape(v.value) for v in Vocabulary if v.is_gcmd)
    + r")\s*>\s*",
    re.IGNORECASE,
)


class ControlledTerm(BaseModel):
    """A keyword from a controlled vocabulary, as the curation editor handles it."""

    id: str
    text: str
    path: str
    language: str = "en"
    scheme: str
    scheme_uri: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class FreeKeyword:
    subject: Subject

    @property
    def text(self) -> str:
        return self.subject.text.strip()


@dataclass(frozen=True)
class ControlledKeyword:
    subject: Subject
    vocabulary: Vocabulary

    @property
    def term(self) -> ControlledTerm:
        return _subject_to_term(self.subject, self.vocabulary)


@dataclass(frozen=True)
class IncompleteSubject:
    """Subject with partial scheme information; kept as-is and surfaced to curators."""

    subject: Subject
    error: UnrecognizedVocabularySchemeError


SubjectClassification = FreeKeyword | ControlledKeyword | IncompleteSubject


def _has(value: str | None) -> bool:
    return bool(value and value.strip())


def classify_subject(subject: Subject) -> SubjectClassification:
    scheme, scheme_uri, value_uri = subject.subject_scheme, subject.scheme_uri, subject.value_uri

    if not (_has(scheme) or _has(scheme_uri) or _has(value_uri)):
        return FreeKeyword(subject)

    vocabulary = Vocabulary.from_scheme(scheme)
    if vocabulary is not None and _has(value_uri):
        return ControlledKeyword(subject, vocabulary)

    if not _has(scheme):
        reason = "scheme URI or value URI without a subject scheme"
    elif vocabulary is None:
        reason = "unrecognized subject scheme"
    else:
        reason = "controlled vocabulary term without a value URI"
    return IncompleteSubject(
        subject, UnrecognizedVocabularySchemeError(subject.text, scheme, reason)
    )


def extract_free_keywords(subjects: list[Subject]) -> list[str]:
    keywords = []
    for subject in subjects:
        classified = classify_subject(subject)
        if isinstance(classified, FreeKeyword) and classified.text:
            keywords.append(classified.text)
    return keywords


def extract_controlled_keywords(
    subjects: list[Subject], vocabulary: Vocabulary
) -> list[ControlledTerm]:
    terms = []
    for subject in subjects:
        classified = classify_subject(subject)
        if isinstance(classified, ControlledKeyword) and classified.vocabulary is vocabulary:
            terms.append(classified.term)
    return terms


def find_incomplete_subjects(subjects: list[Subject]) -> list[IncompleteSubject]:
    incomplete = []
    for subject in subjects:
        classified = classify_subject(subject)
        if isinstance(classified, IncompleteSubject):
            incomplete.append(classified)
    return incomplete


def parse_hierarchical_path(raw: str | None, vocabulary: Vocabulary | None = None) -> list[str]:
    """Split ``"Science Keywords > EARTH SCIENCE > ATMOSPHERE"`` into segments.

    The GCMD type prefix is removed unless the path belongs to a non-GCMD
    vocabulary.
    """
    if not raw:
        return []
    if vocabulary is None or vocabulary.is_gcmd:
        raw = GCMD_PREFIX_PATTERN.sub("", raw, count=1)
    return [segment.strip() for segment in raw.split(">") if segment.strip()]


def format_hierarchical_path(segments: list[str], vocabulary: Vocabulary | None = None) -> str:
    path = PATH_SEPARATOR.join(segment.strip() for segment in segments if segment.strip())
    if vocabulary is not None and vocabulary.path_prefix and path:
        return f"{vocabulary.path_prefix}{PATH_SEPARATOR}{path}"
    return path


def _subject_to_term(subject: Subject, vocabulary: Vocabulary) -> ControlledTerm:
    segments = parse_hierarchical_path(subject.path or subject.text, vocabulary)
    path = PATH_SEPARATOR.join(segments)
    return ControlledTerm(
        id=subject.value_uri.strip(),
        text=segments[-1] if segments else subject.text.strip(),
        path=path or subject.text.strip(),
        language=subject.language or "en",
        scheme=vocabulary.value,
        scheme_uri=subject.scheme_uri or vocabulary.scheme_uri,
    )


def controlled_term_to_subject(term: ControlledTerm, vocabulary: Vocabulary) -> Subject:
    segments = parse_hierarchical_path(term.path, vocabulary)
    return Subject(
        text=segments[-1] if segments else term.text,
        path=format_hierarchical_path(segments, vocabulary) or None,
        language=term.language,
        subject_scheme=vocabulary.value,
        scheme_uri=term.scheme_uri or vocabulary.scheme_uri,
        value_uri=term.id,
    )


def free_keyword_to_subject(text: str, language: str | None = None) -> Subject:
    return Subject(text=text.strip(), language=language)


def extract_gcmd_uuid(uri: str | None) -> str | None:
    """Return the concept UUID of a GCMD URI, lower-cased."""
    if not uri:
        return None
    match = UUID_PATTERN.search(uri)
    return match.group(1).lower() if match else None


def gcmd_concept_uri(uuid: str) -> str:
    return GCMD_CONCEPT_BASE + uuid


# Legacy thesaurus names, as stored in the old metadata database.
LEGACY_GCMD_THESAURI = {
    "NASA/GCMD Earth Science Keywords": Vocabulary.SCIENCE_KEYWORDS,
    "GCMD Platforms": Vocabulary.PLATFORMS,
    "GCMD Instruments": Vocabulary.INSTRUMENTS,
}

MSL_THESAURUS_CATEGORIES = {
    f"EPOS WP16 {lab} {category}": mapped
    for lab in ("Analogue", "Rock Physics")
    for category, mapped in (
        ("Material", "Material"),
        ("Apparatus", "Apparatus"),
        ("Monitoring", "Monitoring"),
        ("Software", "Software"),
        ("Measured Property", "Measured Property"),
        ("Main Setting", "Main Setting"),
        ("Geologic Feature", "Geologic Feature"),
        ("Geologic Structure", "Geologic Structure"),
        ("Process/Hazard", "Process"),
    )
}

MSL_CATEGORY_PATHS = {
    "Material": "materials",
    "Apparatus": "apparatus",
    "Monitoring": "monitoring",
    "Software": "software",
    "Measured Property": "measured-properties",
    "Main Setting": "main-settings",
    "Geologic Feature": "geologic-features",
    "Geologic Structure": "geologic-structures",
    "Process": "processes",
}

OLD_MSL_URI = re.compile(r"/WP16Vocabulary/[^/]+/(.+)$")


def legacy_thesaurus_vocabulary(name: str | None) -> Vocabulary | None:
    if not name:
        return None
    name = name.strip()
    if name in LEGACY_GCMD_THESAURI:
        return LEGACY_GCMD_THESAURI[name]
    if name in MSL_THESAURUS_CATEGORIES:
        return Vocabulary.MSL
    return None


def msl_value_uri(old_uri: str | None, path: str, category: str) -> str:
    """Rebuild an MSL value URI in the current vocabulary layout.

    ``http://epos/WP16Vocabulary/AnalogueMaterial/Sand/Quartz`` becomes
    ``https://epos-msl.uu.nl/voc/materials/1.3/sand-quartz``. Without a usable
    old URI the slug is derived from the path (``Sand > Quartz Sand`` ->
    ``sand-quartz_sand``).
    """
    vocab_path = MSL_CATEGORY_PATHS.get(category, "unknown")
    match = OLD_MSL_URI.search(old_uri or "")
    if match:
        slug = "-".join(match.group(1).split("/")).lower()
    else:
        segments = [segment.strip() for segment in path.split(">") if segment.strip()]
        slug = "-".join(segments).lower().replace(" ", "_")
    return f"{MSL_SCHEME_URI}/{vocab_path}/{MSL_VOCABULARY_VERSION}/{slug}"


def legacy_keyword_to_term(
    keyword: str, thesaurus: str, uri: str | None, description: str | None = None
) -> tuple[Vocabulary, ControlledTerm] | None:
    """Convert one legacy thesaurus keyword; None when it cannot be mapped."""
    vocabulary = legacy_thesaurus_vocabulary(thesaurus)
    if vocabulary is None:
        logger.warning(f"Skipping keyword {keyword!r}: unknown thesaurus {thesaurus!r}")
        return None

    segments = parse_hierarchical_path(keyword, vocabulary)
    if not segments:
        return None

    if vocabulary.is_gcmd:
        uuid = extract_gcmd_uuid(uri)
        if uuid is None:
            logger.warning(f"Skipping GCMD keyword {keyword!r}: no concept UUID in {uri!r}")
            return None
        value_uri = gcmd_concept_uri(uuid)
    else:
        value_uri = msl_value_uri(uri, keyword, MSL_THESAURUS_CATEGORIES[thesaurus.strip()])

    term = ControlledTerm(
        id=value_uri,
        text=segments[-1],
        path=PATH_SEPARATOR.join(segments),
        scheme=vocabulary.value,
        scheme_uri=vocabulary.scheme_uri,
        description=description,
    )
    return vocabulary, term
