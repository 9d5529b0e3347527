"""
Record mappers: one raw legacy row in, one typed record out.

Each mapper accepts the ``values`` mapping produced by an adapter (literal
legacy header -> raw string) and returns a frozen dataclass plus the list of
field-level warnings raised while mapping. Mappers never raise on bad field
content; only a missing identifying column is reported as an error by the
pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Mapping

from discfinder.models.enums import ContactMethod, ReturnStatus, UserRole

from .dates import parse_legacy_date
from .phone import DEFAULT_COUNTRY_CODE, normalize_phone
from .roles import map_optional_role, map_source_status, parse_sort_order
from .text import clean_string, describe_disc, extract_pdga_number, parse_int

ROW_ID_COLUMNS = ("🔒 Row ID", "ID")
DEFAULT_LOCATION_FOUND = "Exact location unknown."
UNKNOWN_ATTEMPTER = "Unknown"

RawValues = Mapping[str, object | None]


def _value(values: RawValues, *columns: str) -> str | None:
    for column in columns:
        text = clean_string(values.get(column))
        if text is not None:
            return text
    return None


def legacy_row_id(values: RawValues) -> str | None:
    return _value(values, *ROW_ID_COLUMNS)


def _phone(value: str | None, country_code: str, warnings: list[str], column: str) -> str | None:
    result = normalize_phone(value, country_code=country_code)
    if result is None:
        return None
    if result.warning:
        warnings.append(f"{column}: {result.warning} ({value})")
    return result.value


def _date(value: str | None, warnings: list[str], column: str) -> datetime | None:
    parsed = parse_legacy_date(value)
    if value is not None and parsed is None:
        warnings.append(f"{column}: unparseable date {value!r}")
    return parsed


@dataclass(frozen=True)
class LegacyProfileRecord:
    email: str
    full_name: str | None = None
    role: UserRole | None = None
    legacy_row_id: str | None = None
    default_source_legacy_id: str | None = None
    pdga_number: int | None = None
    facebook_profile: str | None = None
    instagram_handle: str | None = None
    sms_number: str | None = None
    phone_number: str | None = None
    avatar_url: str | None = None
    warnings: tuple[str, ...] = field(default=(), compare=False)


@dataclass(frozen=True)
class LegacySourceRecord:
    legacy_row_id: str | None
    name: str | None
    sort_order: int
    is_active: bool
    msg1_found_just_entered: str | None = None
    msg2_reminder: str | None = None


@dataclass(frozen=True)
class LegacyFoundDiscRecord:
    legacy_row_id: str | None
    rack_id: int | None
    brand: str
    mold: str | None
    color: str
    description: str | None
    phone_number: str | None
    name_on_disc: str | None
    owner_pdga_number: int | None
    private_identifier: str | None
    location_found: str
    source_legacy_id: str | None
    found_date: date
    entry_date: datetime | None
    entered_by_name: str | None
    returned_at: datetime | None
    returned_by_name: str | None
    return_status: ReturnStatus
    image_urls: tuple[str, ...] = ()
    warnings: tuple[str, ...] = field(default=(), compare=False)


@dataclass(frozen=True)
class LegacyContactAttemptRecord:
    found_disc_legacy_id: str
    attempted_at: datetime
    contact_method: ContactMethod
    message_content: str
    attempted_by_name: str
    response_received: bool = False
    response_content: str | None = None
    notes: str | None = None


def map_profile_record(values: RawValues, *, country_code: str = DEFAULT_COUNTRY_CODE) -> LegacyProfileRecord | None:
    """Map a profile row; ``None`` when the row has no usable email."""

    email = clean_string(values.get("Email"))
    if email is None or "@" not in email:
        return None

    warnings: list[str] = []
    pdga_raw = clean_string(values.get("PDGA #"))
    pdga_number = parse_int(pdga_raw)
    if pdga_raw is not None and pdga_number is None:
        pdga_number = extract_pdga_number(pdga_raw)
        if pdga_number is None:
            warnings.append(f"PDGA #: not a membership number ({pdga_raw})")

    return LegacyProfileRecord(
        email=email.lower(),
        full_name=_value(values, "Name"),
        role=map_optional_role(values.get("Role")),
        legacy_row_id=legacy_row_id(values),
        default_source_legacy_id=_value(values, "DefaultSourceRowID"),
        pdga_number=pdga_number,
        facebook_profile=_value(values, "Facebook Profile"),
        instagram_handle=_value(values, "Instagram"),
        sms_number=_phone(
            _value(values, "Phone Number for Text Messages"),
            country_code,
            warnings,
            "Phone Number for Text Messages",
        ),
        phone_number=_phone(_value(values, "Phone"), country_code, warnings, "Phone"),
        avatar_url=_value(values, "Photo"),
        warnings=tuple(warnings),
    )


def map_source_record(values: RawValues, *, index: int = 0) -> LegacySourceRecord:
    return LegacySourceRecord(
        legacy_row_id=legacy_row_id(values),
        name=_value(values, "Source"),
        sort_order=parse_sort_order(values.get("Sort"), index),
        is_active=map_source_status(values.get("Status")),
        msg1_found_just_entered=_value(values, "Text Message - Initial"),
        msg2_reminder=_value(values, "Text Message - Reminder"),
    )


def map_found_disc_record(
    values: RawValues,
    *,
    country_code: str = DEFAULT_COUNTRY_CODE,
    default_location: str = DEFAULT_LOCATION_FOUND,
    today: date | None = None,
) -> LegacyFoundDiscRecord:
    warnings: list[str] = []
    description = _value(values, "Description")
    descriptor = describe_disc(description, values.get("Mold"))

    entry_date = _date(_value(values, "Entry Date"), warnings, "Entry Date")
    returned_at = _date(_value(values, "Returned Date"), warnings, "Returned Date")
    owner_name = _value(values, "Disc Owner Name")
    image_urls = tuple(url for url in (_value(values, "Image"), _value(values, "Image2")) if url)

    return LegacyFoundDiscRecord(
        legacy_row_id=legacy_row_id(values),
        rack_id=parse_int(values.get("ID")),
        brand=descriptor.brand,
        mold=descriptor.mold,
        color=descriptor.color,
        description=description,
        phone_number=_phone(_value(values, "Disc Owner Phone"), country_code, warnings, "Disc Owner Phone"),
        name_on_disc=owner_name,
        owner_pdga_number=extract_pdga_number(owner_name),
        private_identifier=_value(values, "Private Identifier"),
        location_found=default_location,
        source_legacy_id=_value(values, "SourceID"),
        found_date=entry_date.date() if entry_date else (today or date.today()),
        entry_date=entry_date,
        entered_by_name=_value(values, "Entered By"),
        returned_at=returned_at,
        returned_by_name=_value(values, "Returned By"),
        return_status=ReturnStatus.RETURNED_TO_OWNER if returned_at else ReturnStatus.FOUND,
        image_urls=image_urls,
        warnings=tuple(warnings),
    )


def map_contact_attempt_records(values: RawValues, *, now: datetime | None = None) -> list[LegacyContactAttemptRecord]:
    """
    Fan one found-disc row out into zero to four contact attempts.

    Notes and the initial text fall back to the entry date, then to ``now``.
    The last text and a claim response are only emitted when dated.
    """

    row_id = legacy_row_id(values)
    if row_id is None:
        return []

    fallback = now or datetime.now(timezone.utc)
    entry_date = parse_legacy_date(values.get("Entry Date"))
    attempted_by = _value(values, "Entered By") or UNKNOWN_ATTEMPTER
    attempts: list[LegacyContactAttemptRecord] = []

    notes = _value(values, "Contact Notes")
    if notes:
        attempts.append(
            LegacyContactAttemptRecord(
                found_disc_legacy_id=row_id,
                attempted_at=entry_date or fallback,
                contact_method=ContactMethod.NOTES,
                message_content=notes,
                attempted_by_name=attempted_by,
                notes="Legacy contact notes",
            )
        )

    initial_text = _value(values, "Initial Text Message Sent")
    initial_date = parse_legacy_date(values.get("Initial Text Message Sent Date")) or entry_date
    if initial_text:
        attempts.append(
            LegacyContactAttemptRecord(
                found_disc_legacy_id=row_id,
                attempted_at=initial_date or fallback,
                contact_method=ContactMethod.SMS,
                message_content=initial_text,
                attempted_by_name=attempted_by,
                notes="Initial text message",
            )
        )

    last_text = _value(values, "Last Text Sent")
    last_date = parse_legacy_date(values.get("Last Text Sent Date"))
    if last_text and last_date:
        attempts.append(
            LegacyContactAttemptRecord(
                found_disc_legacy_id=row_id,
                attempted_at=last_date,
                contact_method=ContactMethod.SMS,
                message_content=last_text,
                attempted_by_name=attempted_by,
                notes="Last text message",
            )
        )

    claimed_proof = _value(values, "Claimed Proof")
    claimed_date = parse_legacy_date(values.get("Claimed Date"))
    if claimed_proof and claimed_date:
        attempts.append(
            LegacyContactAttemptRecord(
                found_disc_legacy_id=row_id,
                attempted_at=claimed_date,
                contact_method=ContactMethod.RESPONSE,
                message_content="Disc owner provided claim proof",
                attempted_by_name="Disc Owner",
                response_received=True,
                response_content=claimed_proof,
                notes="Owner response/claim proof",
            )
        )

    return attempts
