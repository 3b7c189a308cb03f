"""Encode and decode DataCite date strings.

DataCite writes a date range as ``start/end`` (RKMS-ISO8601). Either side
may be empty for an open range, e.g. ``/2017-03-01``. Values are kept
verbatim: ``2010`` stays ``2010`` rather than becoming ``2010-01-01``.
"""

import datetime
import re
from typing import NamedTuple

from .errors import DateFormatError
from .schema import Date, DateType

PARTIAL_ISO = re.compile(
    r"^\d{4}"
    r"(-(0[1-9]|1[0-2])"
    r"(-(0[1-9]|[12]\d|3[01])"
    r"(T([01]\d|2[0-3]):[0-5]\d(:[0-5]\d(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?)?)?)?$"
)


class DateRange(NamedTuple):
    start: str
    end: str


def decode(raw: str) -> DateRange:
    """Split a DataCite date value into ``(start, end)``.

    A value without a slash is a single date: ``("2010", "")``.
    """
    if raw is None or not raw.strip():
        raise DateFormatError(raw, "empty date")

    parts = raw.split("/")
    if len(parts) > 2:
        raise DateFormatError(raw, "more than one '/' separator")

    start = parts[0].strip()
    end = parts[1].strip() if len(parts) == 2 else ""
    if not start and not end:
        raise DateFormatError(raw, "range without start or end")

    return DateRange(start, end)


def encode(start: str | None, end: str | None) -> str:
    start = (start or "").strip()
    end = (end or "").strip()

    if not start and not end:
        raise DateFormatError(f"{start}/{end}", "range without start or end")
    if not end:
        return start
    return f"{start}/{end}"


def is_partial_iso(value: str) -> bool:
    return bool(PARTIAL_ISO.match(value or ""))


def normalise_token(value) -> str:
    """Turn a database value into a date token.

    ``datetime.date`` values become ``YYYY-MM-DD``. Datetimes at midnight
    (the legacy database stores plain dates that way) lose their time part.
    """
    if value is None:
        return ""
    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time(0, 0) and value.tzinfo is None:
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, datetime.date):
        return value.isoformat()

    token = str(value).strip()
    if token.endswith(" 00:00:00"):
        token = token[: -len(" 00:00:00")]
    elif " " in token and is_partial_iso(token.replace(" ", "T", 1)):
        token = token.replace(" ", "T", 1)
    return token


def date_from_parts(
    date_type: DateType,
    start: str | None,
    end: str | None,
    date_information: str | None = None,
) -> Date | None:
    """Build a Date, or None when neither bound carries a value."""
    start = (start or "").strip()
    end = (end or "").strip()
    if not start and not end:
        return None
    return Date(
        date_type=date_type,
        start_date=start,
        end_date=end,
        date_information=date_information or None,
    )
