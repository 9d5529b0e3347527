"""
Contact-attempt import.

One found-disc export row fans out into up to four append-only attempts.
The legacy data has no key for individual attempts, so every attempt gets a
fingerprint of (found disc, fan-out slot, method, timestamp, content). Two slots
of one row never collide. By default an attempt whose fingerprint is already
stored is skipped; ``allow_duplicates=True`` restores pure append behaviour
where each run adds every attempt again.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from discfinder.importer.adapters import LegacyRow
from discfinder.importer.mapping import LegacyContactAttemptRecord, legacy_row_id, map_contact_attempt_records
from discfinder.importer.metrics import record_import_row
from discfinder.models import ContactAttempt, FoundDisc, db

from .found_discs import ProfileNameResolver
from .result import ImportResult, RowThrottle, finish_row

logger = logging.getLogger(__name__)


def _utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def attempt_fingerprint(found_disc_id: int, record: LegacyContactAttemptRecord) -> str:
    material = "|".join(
        (
            str(found_disc_id),
            record.notes or "",
            record.contact_method.value,
            _utc_iso(record.attempted_at),
            record.message_content.strip(),
        )
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def _fingerprint_exists(fingerprint: str) -> bool:
    return db.session.query(ContactAttempt.id).filter(ContactAttempt.fingerprint == fingerprint).first() is not None


def import_contact_attempts(
    rows: Iterable[LegacyRow],
    *,
    dry_run: bool = False,
    allow_duplicates: bool = False,
    throttle: RowThrottle | None = None,
) -> ImportResult:
    """
    Import contact attempts for already-imported found discs.

    Rows whose disc has not been imported are reported as orphans.
    """

    result = ImportResult(entity="contact_attempts", dry_run=dry_run)
    throttle = throttle or RowThrottle.from_config()
    resolver = ProfileNameResolver()

    for row in rows:
        result.increment("rows_processed")
        row_id = legacy_row_id(row.values)
        if row_id is None:
            result.add_error(row.row_number, None, "Missing legacy row id")
            record_import_row("contact_attempts", "failed")
            continue

        found_disc = FoundDisc.query.filter_by(legacy_row_id=row_id).first()
        fallback_time = None
        if found_disc is not None:
            fallback_time = found_disc.entry_date or found_disc.created_at
        attempts = map_contact_attempt_records(row.values, now=fallback_time)
        if not attempts:
            result.increment("rows_without_attempts")
            continue
        if found_disc is None:
            result.orphans.append(row_id)
            result.increment("rows_orphaned")
            record_import_row("contact_attempts", "orphan")
            continue

        try:
            for attempt in attempts:
                fingerprint = attempt_fingerprint(found_disc.id, attempt)
                if not allow_duplicates and _fingerprint_exists(fingerprint):
                    result.increment("attempts_skipped_duplicate")
                    continue
                db.session.add(
                    ContactAttempt(
                        found_disc_id=found_disc.id,
                        attempted_at=attempt.attempted_at,
                        contact_method=attempt.contact_method,
                        message_content=attempt.message_content,
                        attempted_by_profile_id=resolver.resolve(attempt.attempted_by_name),
                        attempted_by_name=attempt.attempted_by_name,
                        response_received=attempt.response_received,
                        response_content=attempt.response_content,
                        notes=f"{attempt.notes} from disc {row_id}" if attempt.notes else None,
                        fingerprint=fingerprint,
                    )
                )
                db.session.flush()
                result.increment("attempts_created")
                record_import_row("contact_attempts", "created")
            finish_row(dry_run=dry_run)
        except SQLAlchemyError as exc:
            db.session.rollback()
            result.add_error(row.row_number, row_id, f"Database error: {exc}")
            logger.error("Failed to import contact attempts for %s: %s", row_id, exc, exc_info=True)
            record_import_row("contact_attempts", "failed")
        throttle.tick()

    if allow_duplicates and result.counts["attempts_created"]:
        logger.warning(
            "Contact attempts imported with duplicates allowed; re-running this file will append them again",
            extra={"importer_entity": "contact_attempts", "importer_allow_duplicates": True},
        )
    return result
