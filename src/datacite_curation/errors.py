"""Error taxonomy shared by the importers, codecs, serializer and validator.

Import errors are localised: only a document that is not well-formed XML
aborts an import. Schema validation problems are never raised from
``SchemaValidator.validate``; they come back as data (see
``datacite_curation.validation.SchemaValidationError``).
"""


class CurationError(Exception):
    """Base class for every error raised by this package."""


class MalformedXmlError(CurationError):
    """The inbound document is not well-formed XML."""

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message)
        self.line = line


class DateFormatError(CurationError, ValueError):
    """A date string (or start/end pair) cannot be decoded or encoded."""

    def __init__(self, raw: str | None, reason: str):
        super().__init__(f"Invalid date {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


class UnrecognizedVocabularySchemeError(CurationError):
    """A subject is neither a free keyword nor a controlled term.

    Instances are attached to ``IncompleteSubject`` values rather than
    raised, so callers can surface them to curators.
    """

    def __init__(self, text: str, scheme: str | None, reason: str):
        super().__init__(f"Subject {text!r} (scheme {scheme!r}): {reason}")
        self.text = text
        self.scheme = scheme
        self.reason = reason


class LegacySourceUnavailableError(CurationError):
    """The legacy metadata database cannot be reached."""

    retryable = True

    def __init__(self, message: str = "Legacy metadata database is unavailable"):
        super().__init__(message)


class LegacyDatasetNotFoundError(CurationError, LookupError):
    def __init__(self, dataset_id: int):
        super().__init__(f"Legacy dataset {dataset_id} not found")
        self.dataset_id = dataset_id


class UnsupportedSchemaVersionError(CurationError, ValueError):
    def __init__(self, version: str, supported: tuple[str, ...]):
        super().__init__(
            f"Unsupported DataCite schema version {version!r}; "
            f"expected one of {', '.join(supported)}"
        )
        self.version = version
        self.supported = supported


class ExportRejectedError(CurationError):
    """Raised on demand by ``SchemaValidationError.raise_for_errors``."""

    def __init__(self, errors: list):
        summary = "; ".join(error.message for error in errors[:3])
        super().__init__(f"{len(errors)} schema violation(s): {summary}")
        self.errors = errors
