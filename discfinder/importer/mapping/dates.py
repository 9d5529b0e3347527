"""
Loose date parsing for legacy exports.

Glide and spreadsheet exports mix US-style dates with and without times,
12- and 24-hour clocks, and ISO 8601 strings. Values that match none of the
accepted forms are logged for operator review and mapped to ``None``.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone

logger = logging.getLogger(__name__)

LEGACY_DATE_FORMATS: tuple[str, ...] = (
    "%m/%d/%Y, %I:%M:%S %p",
    "%m/%d/%Y, %I:%M %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%Y/%m/%d",
    "%Y-%m-%d %H:%M:%S",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_legacy_date(value: object | None) -> datetime | None:
    """
    Parse a legacy date string into an aware UTC datetime.

    Naive values are taken as UTC. Quotes and surrounding whitespace are
    stripped first. Returns ``None`` for blank or unparseable input.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    text = str(value).replace('"', "").strip()
    if not text:
        return None

    iso_candidate = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return _as_utc(datetime.fromisoformat(iso_candidate))
    except ValueError:
        pass

    for fmt in LEGACY_DATE_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue

    logger.warning("Rejected legacy date value %r", text, extra={"importer_rejected_date": text})
    return None
