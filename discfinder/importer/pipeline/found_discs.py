"""
Found-disc import and audit-name backfill.

Found discs are keyed by legacy row id. A ``SourceID`` that matches no
source is stored as a null reference and counted in
``ImportResult.unmapped_sources`` so an operator can backfill sources and
re-run the import.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from typing import Literal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from discfinder.importer.adapters import LegacyRow
from discfinder.importer.mapping import LegacyFoundDiscRecord, map_found_disc_record
from discfinder.importer.metrics import record_import_row
from discfinder.models import FoundDisc, Profile, Source, db
from discfinder.utils.importer import get_importer_setting

from .merge import coalesce_merge
from .result import ImportResult, RowThrottle, finish_row

logger = logging.getLogger(__name__)

FoundDiscAction = Literal["created", "updated", "skipped_existing"]

FOUND_DISC_MERGE_FIELDS = (
    "rack_id",
    "brand",
    "mold",
    "color",
    "description",
    "phone_number",
    "name_on_disc",
    "owner_pdga_number",
    "private_identifier",
    "source_id",
    "found_date",
    "entry_date",
    "image_urls",
    "return_status",
    "returned_at",
    "entered_by_profile_id",
    "entered_by_name",
    "returned_by_profile_id",
    "returned_by_name",
)


@dataclass(frozen=True)
class FoundDiscImportOutcome:
    action: FoundDiscAction
    found_disc: FoundDisc


class ProfileNameResolver:
    """Resolve legacy free-text names to profile ids when exactly one profile matches."""

    def __init__(self) -> None:
        self._cache: dict[str, int | None] = {}

    def resolve(self, name: str | None) -> int | None:
        if not name:
            return None
        key = name.strip().lower()
        if key not in self._cache:
            matches = (
                db.session.query(Profile.id)
                .filter(func.lower(func.trim(Profile.full_name)) == key)
                .limit(2)
                .all()
            )
            self._cache[key] = matches[0][0] if len(matches) == 1 else None
        return self._cache[key]


def _payload(
    record: LegacyFoundDiscRecord,
    source_id: int | None,
    resolver: ProfileNameResolver,
    *,
    for_update: bool,
) -> dict[str, object]:
    payload: dict[str, object] = {
        "rack_id": record.rack_id,
        "brand": record.brand,
        "mold": record.mold,
        "color": record.color,
        "description": record.description,
        "phone_number": record.phone_number,
        "name_on_disc": record.name_on_disc,
        "owner_pdga_number": record.owner_pdga_number,
        "private_identifier": record.private_identifier,
        "source_id": source_id,
        "found_date": record.found_date,
        "entry_date": record.entry_date,
        "image_urls": list(record.image_urls) or None,
        "return_status": record.return_status,
        "returned_at": record.returned_at,
        "entered_by_profile_id": resolver.resolve(record.entered_by_name),
        "entered_by_name": record.entered_by_name,
        "returned_by_profile_id": resolver.resolve(record.returned_by_name),
        "returned_by_name": record.returned_by_name,
    }
    if for_update and record.returned_at is None:
        # A legacy row without a returned date says nothing about the current
        # disposition; keep whatever status the disc has moved to since.
        payload["return_status"] = None
    if for_update and record.entry_date is None:
        payload["found_date"] = None
    return payload


def resolve_source(reference: str | None, result: ImportResult | None = None) -> int | None:
    if not reference:
        return None
    source = Source.find_by_legacy_id(reference)
    if source is None:
        if result is not None:
            result.unmapped_sources[reference] += 1
        logger.warning(
            "Unmapped legacy source reference %s",
            reference,
            extra={"importer_entity": "found_discs", "importer_unmapped_source": reference},
        )
        return None
    return source.id


def import_legacy_found_disc(
    record: LegacyFoundDiscRecord,
    *,
    source_id: int | None = None,
    resolver: ProfileNameResolver | None = None,
    skip_existing: bool = False,
) -> FoundDiscImportOutcome:
    """Upsert one found disc by legacy row id. Flushes, never commits."""

    resolver = resolver or ProfileNameResolver()
    existing = FoundDisc.query.filter_by(legacy_row_id=record.legacy_row_id).first()
    if existing is not None:
        if skip_existing:
            return FoundDiscImportOutcome("skipped_existing", existing)
        coalesce_merge(existing, _payload(record, source_id, resolver, for_update=True), FOUND_DISC_MERGE_FIELDS)
        db.session.flush()
        return FoundDiscImportOutcome("updated", existing)

    payload = _payload(record, source_id, resolver, for_update=False)
    payload["image_urls"] = payload["image_urls"] or []
    found_disc = FoundDisc(
        legacy_row_id=record.legacy_row_id,
        location_found=record.location_found,
        **payload,
    )
    db.session.add(found_disc)
    db.session.flush()
    return FoundDiscImportOutcome("created", found_disc)


def import_found_discs(
    rows: Iterable[LegacyRow],
    *,
    dry_run: bool = False,
    skip_existing: bool = False,
    throttle: RowThrottle | None = None,
    today: date | None = None,
) -> ImportResult:
    result = ImportResult(entity="found_discs", dry_run=dry_run)
    throttle = throttle or RowThrottle.from_config()
    resolver = ProfileNameResolver()
    country_code = get_importer_setting("IMPORTER_DEFAULT_COUNTRY_CODE")
    default_location = get_importer_setting("IMPORTER_DEFAULT_LOCATION_FOUND")

    for row in rows:
        result.increment("rows_processed")
        record = map_found_disc_record(
            row.values,
            country_code=country_code,
            default_location=default_location,
            today=today,
        )
        if not record.legacy_row_id:
            result.increment("rows_skipped_missing_id")
            result.add_error(row.row_number, None, "Missing legacy row id")
            record_import_row("found_discs", "failed")
            continue

        for warning in record.warnings:
            result.add_warning(row.row_number, record.legacy_row_id, warning)

        try:
            source_id = resolve_source(record.source_legacy_id, result)
            outcome = import_legacy_found_disc(
                record,
                source_id=source_id,
                resolver=resolver,
                skip_existing=skip_existing,
            )
            finish_row(dry_run=dry_run)
        except IntegrityError as exc:
            db.session.rollback()
            result.increment("rows_conflicted")
            logger.info("Found disc %s already imported: %s", record.legacy_row_id, exc.orig)
            record_import_row("found_discs", "conflict")
        except SQLAlchemyError as exc:
            db.session.rollback()
            result.add_error(row.row_number, record.legacy_row_id, f"Database error: {exc}")
            logger.error("Failed to import found disc %s: %s", record.legacy_row_id, exc, exc_info=True)
            record_import_row("found_discs", "failed")
        else:
            result.increment(outcome.action)
            record_import_row("found_discs", outcome.action)
            logger.debug("Found disc %s -> %s", record.legacy_row_id, outcome.action)
        throttle.tick()

    return result


def backfill_audit_profiles(*, dry_run: bool = False) -> dict[str, int]:
    """
    Link ``entered_by_name`` / ``returned_by_name`` to profiles.

    Discs imported before their people signed up only carry names; once those
    profiles exist, an unambiguous full-name match fills in the profile ids.
    """

    resolver = ProfileNameResolver()
    counts = {"entered_by_linked": 0, "returned_by_linked": 0, "discs_scanned": 0}

    candidates = FoundDisc.query.filter(
        ((FoundDisc.entered_by_profile_id.is_(None)) & (FoundDisc.entered_by_name.isnot(None)))
        | ((FoundDisc.returned_by_profile_id.is_(None)) & (FoundDisc.returned_by_name.isnot(None)))
    ).order_by(FoundDisc.id).all()

    for found_disc in candidates:
        counts["discs_scanned"] += 1
        if found_disc.entered_by_profile_id is None:
            profile_id = resolver.resolve(found_disc.entered_by_name)
            if profile_id is not None:
                found_disc.entered_by_profile_id = profile_id
                counts["entered_by_linked"] += 1
        if found_disc.returned_by_profile_id is None:
            profile_id = resolver.resolve(found_disc.returned_by_name)
            if profile_id is not None:
                found_disc.returned_by_profile_id = profile_id
                counts["returned_by_linked"] += 1

    finish_row(dry_run=dry_run)
    return counts
