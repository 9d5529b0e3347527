"""
Source-location import.

Sources are matched by legacy row id; failing that, a source created by hand
with the same name (case-insensitive) adopts the legacy id so later found-disc
rows resolve to it. Anything else is inserted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from discfinder.importer.adapters import LegacyRow
from discfinder.importer.mapping import LegacySourceRecord, map_source_record
from discfinder.importer.metrics import record_import_row
from discfinder.models import Source, db

from .merge import coalesce_merge
from .result import ImportResult, RowThrottle, finish_row

logger = logging.getLogger(__name__)

SourceAction = Literal["created", "updated", "adopted"]

SOURCE_MERGE_FIELDS = (
    "name",
    "legacy_row_id",
    "sort_order",
    "is_active",
    "msg1_found_just_entered",
    "msg2_reminder",
)

PLACEHOLDER_SORT_ORDER = 900


@dataclass(frozen=True)
class SourceImportOutcome:
    action: SourceAction
    source: Source


def _payload(record: LegacySourceRecord) -> dict[str, object]:
    return {
        "name": record.name,
        "legacy_row_id": record.legacy_row_id,
        "sort_order": record.sort_order,
        "is_active": record.is_active,
        "msg1_found_just_entered": record.msg1_found_just_entered,
        "msg2_reminder": record.msg2_reminder,
    }


def import_legacy_source(record: LegacySourceRecord) -> SourceImportOutcome:
    """Upsert one source by legacy id, then by name. Flushes, never commits."""

    payload = _payload(record)

    existing = Source.find_by_legacy_id(record.legacy_row_id)
    if existing is not None:
        coalesce_merge(existing, payload, SOURCE_MERGE_FIELDS)
        db.session.flush()
        return SourceImportOutcome("updated", existing)

    by_name = Source.find_by_name(record.name)
    if by_name is not None and by_name.legacy_row_id in (None, record.legacy_row_id):
        coalesce_merge(by_name, payload, SOURCE_MERGE_FIELDS)
        db.session.flush()
        return SourceImportOutcome("adopted", by_name)

    source = Source(
        name=record.name,
        legacy_row_id=record.legacy_row_id,
        sort_order=record.sort_order,
        is_active=record.is_active,
        msg1_found_just_entered=record.msg1_found_just_entered,
        msg2_reminder=record.msg2_reminder,
    )
    db.session.add(source)
    db.session.flush()
    return SourceImportOutcome("created", source)


def import_sources(
    rows: Iterable[LegacyRow],
    *,
    dry_run: bool = False,
    throttle: RowThrottle | None = None,
) -> ImportResult:
    result = ImportResult(entity="sources", dry_run=dry_run)
    throttle = throttle or RowThrottle.from_config()

    for index, row in enumerate(rows):
        result.increment("rows_processed")
        record = map_source_record(row.values, index=index)
        if not record.legacy_row_id:
            result.add_error(row.row_number, record.name, "Missing legacy row id")
            record_import_row("sources", "failed")
            continue
        if not record.name:
            result.add_error(row.row_number, record.legacy_row_id, "Missing source name")
            record_import_row("sources", "failed")
            continue

        try:
            outcome = import_legacy_source(record)
            finish_row(dry_run=dry_run)
        except IntegrityError as exc:
            db.session.rollback()
            result.increment("rows_conflicted")
            logger.info("Source %s already imported: %s", record.legacy_row_id, exc.orig)
            record_import_row("sources", "conflict")
        except SQLAlchemyError as exc:
            db.session.rollback()
            result.add_error(row.row_number, record.legacy_row_id, f"Database error: {exc}")
            logger.error("Failed to import source %s: %s", record.legacy_row_id, exc, exc_info=True)
            record_import_row("sources", "failed")
        else:
            result.increment(outcome.action)
            record_import_row("sources", outcome.action)
        throttle.tick()

    return result


def create_missing_sources(references: Mapping[str, int] | Iterable[str], *, dry_run: bool = False) -> list[Source]:
    """
    Insert placeholder sources for unmapped legacy references.

    Placeholders are named ``Legacy Source <id>`` and sort after curated
    sources so an operator can rename them later. Existing references are left
    alone, so calling this twice is harmless.
    """

    created: list[Source] = []
    for reference in references:
        if not reference or Source.find_by_legacy_id(reference) is not None:
            continue
        source = Source(
            name=f"Legacy Source {reference}",
            legacy_row_id=reference,
            description="Placeholder created for an unmapped legacy source reference.",
            sort_order=PLACEHOLDER_SORT_ORDER,
            is_active=True,
        )
        db.session.add(source)
        created.append(source)

    if dry_run:
        db.session.rollback()
        return created
    db.session.commit()
    logger.info("Created %d placeholder source(s) for unmapped references", len(created))
    return created
