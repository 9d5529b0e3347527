"""
Profile import: resolve each legacy member against canonical and staged
identities and write it to exactly one place.

Resolution order for one record:

1. A canonical ``Profile`` matching by email or legacy row id is
   coalesce-updated.
2. Otherwise a ``StagedProfile`` matching by the same dual key is
   coalesce-updated.
3. Otherwise a new ``StagedProfile`` is inserted with
   ``needs_activation=True``.

Re-running a batch therefore never creates a second row for an email or a
legacy row id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Literal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from discfinder.importer.adapters import LegacyRow
from discfinder.importer.mapping import LegacyProfileRecord, map_profile_record
from discfinder.importer.metrics import record_import_row
from discfinder.models import Profile, Source, StagedProfile, UserRole, db
from discfinder.utils.importer import get_importer_setting

from .merge import coalesce_merge
from .result import ImportResult, RowThrottle, finish_row

logger = logging.getLogger(__name__)

ProfileAction = Literal["updated_canonical", "updated_staged", "staged"]

# Attributes carried from a legacy record onto either identity table.
PROFILE_MERGE_FIELDS = (
    "full_name",
    "role",
    "legacy_row_id",
    "pdga_number",
    "facebook_profile",
    "instagram_handle",
    "sms_number",
    "phone_number",
    "avatar_url",
    "default_source_id",
)


@dataclass(frozen=True)
class ProfileImportOutcome:
    action: ProfileAction
    key: int
    target: Profile | StagedProfile
    changed_fields: tuple[str, ...] = ()


def _dual_key_lookup(model, email: str, legacy_row_id: str | None):
    """Match on email first, then on legacy row id."""

    match = model.query.filter(model.email == email).first()
    if match is not None or not legacy_row_id:
        return match
    return model.query.filter(model.legacy_row_id == legacy_row_id).first()


def _record_payload(record: LegacyProfileRecord, default_source_id: int | None) -> dict[str, object]:
    return {
        "full_name": record.full_name,
        "role": record.role,
        "legacy_row_id": record.legacy_row_id,
        "pdga_number": record.pdga_number,
        "facebook_profile": record.facebook_profile,
        "instagram_handle": record.instagram_handle,
        "sms_number": record.sms_number,
        "phone_number": record.phone_number,
        "avatar_url": record.avatar_url,
        "default_source_id": default_source_id,
    }


def resolve_default_source(record: LegacyProfileRecord, result: ImportResult | None = None) -> int | None:
    if not record.default_source_legacy_id:
        return None
    source = Source.find_by_legacy_id(record.default_source_legacy_id)
    if source is None:
        if result is not None:
            result.unmapped_sources[record.default_source_legacy_id] += 1
        return None
    return source.id


def import_legacy_profile(record: LegacyProfileRecord, *, default_source_id: int | None = None) -> ProfileImportOutcome:
    """
    Write one mapped profile record to canonical or staged storage.

    Flushes but does not commit; the caller owns the transaction.
    """

    payload = _record_payload(record, default_source_id)

    canonical = _dual_key_lookup(Profile, record.email, record.legacy_row_id)
    if canonical is not None:
        changed = coalesce_merge(canonical, payload, PROFILE_MERGE_FIELDS)
        db.session.flush()
        return ProfileImportOutcome("updated_canonical", canonical.id, canonical, tuple(changed))

    staged = _dual_key_lookup(StagedProfile, record.email, record.legacy_row_id)
    if staged is not None:
        changed = coalesce_merge(staged, payload, PROFILE_MERGE_FIELDS)
        db.session.flush()
        return ProfileImportOutcome("updated_staged", staged.id, staged, tuple(changed))

    staged = StagedProfile(email=record.email, needs_activation=True)
    coalesce_merge(staged, payload, PROFILE_MERGE_FIELDS)
    if staged.role is None:
        staged.role = UserRole.GUEST
    db.session.add(staged)
    db.session.flush()
    return ProfileImportOutcome("staged", staged.id, staged)


def import_profiles(
    rows: Iterable[LegacyRow],
    *,
    dry_run: bool = False,
    throttle: RowThrottle | None = None,
) -> ImportResult:
    """Import a batch of legacy profile rows sequentially, one commit per row."""

    result = ImportResult(entity="profiles", dry_run=dry_run)
    throttle = throttle or RowThrottle.from_config()
    country_code = get_importer_setting("IMPORTER_DEFAULT_COUNTRY_CODE")

    for row in rows:
        result.increment("rows_processed")
        record = map_profile_record(row.values, country_code=country_code)
        if record is None:
            result.add_error(row.row_number, None, "Missing or invalid Email")
            record_import_row("profiles", "failed")
            continue

        for warning in record.warnings:
            result.add_warning(row.row_number, record.email, warning)

        try:
            default_source_id = resolve_default_source(record, result)
            outcome = import_legacy_profile(record, default_source_id=default_source_id)
            finish_row(dry_run=dry_run)
        except IntegrityError as exc:
            db.session.rollback()
            result.increment("rows_conflicted")
            logger.info(
                "Profile %s already imported under a different key: %s",
                record.email,
                exc.orig,
                extra={"importer_entity": "profiles", "importer_record_key": record.email},
            )
            record_import_row("profiles", "conflict")
        except SQLAlchemyError as exc:
            db.session.rollback()
            result.add_error(row.row_number, record.email, f"Database error: {exc}")
            logger.error("Failed to import profile %s: %s", record.email, exc, exc_info=True)
            record_import_row("profiles", "failed")
        else:
            result.increment(outcome.action)
            record_import_row("profiles", outcome.action)
            logger.debug("Profile %s -> %s (%s)", record.email, outcome.action, outcome.key)
        throttle.tick()

    return result
