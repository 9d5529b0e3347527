"""
Import run bookkeeping.

Each CLI import opens an ``ImportRun`` before reading the file and closes it
with the batch counts and a capped list of row errors. Partial row failures
finish as ``partially_failed``; only a setup-level exception marks a run
``failed``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from discfinder.importer.metrics import record_import_run
from discfinder.models import db
from discfinder.models.importer import ImportEntity, ImportRun, ImportRunStatus

from .result import ImportResult

logger = logging.getLogger(__name__)

MAX_STORED_ERRORS = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def start_run(
    entity: ImportEntity,
    *,
    source_file: str | None,
    adapter: str = "csv",
    dry_run: bool = False,
    params: dict | None = None,
) -> ImportRun:
    run = ImportRun(
        entity=entity,
        adapter=adapter,
        source_file=source_file,
        dry_run=dry_run,
        status=ImportRunStatus.RUNNING,
        started_at=_utcnow(),
        counts_json={},
        ingest_params_json=dict(params or {}),
    )
    db.session.add(run)
    db.session.commit()
    logger.info(
        "Import run %s started for %s",
        run.id,
        entity.value,
        extra={"importer_run_id": run.id, "importer_entity": entity.value, "importer_dry_run": dry_run},
    )
    return run


def finish_run(run_id: int, result: ImportResult) -> ImportRun:
    run = db.session.get(ImportRun, run_id)
    run.status = ImportRunStatus.PARTIALLY_FAILED if result.has_failures else ImportRunStatus.SUCCEEDED
    finished_at = _utcnow()
    run.finished_at = finished_at
    payload = result.as_dict(error_limit=MAX_STORED_ERRORS)
    run.counts_json = payload["counts"]
    run.errors_json = payload["errors"]
    if result.has_failures:
        run.error_summary = f"{len(result.errors)} row(s) failed"
    db.session.commit()

    started_at = run.started_at
    if started_at is not None:
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=timezone.utc)
        record_import_run(run.entity.value, (finished_at - started_at).total_seconds())
    logger.info(
        "Import run %s finished with status %s",
        run.id,
        run.status.value,
        extra={"importer_run_id": run.id, "importer_counts": payload["counts"]},
    )
    return run


def fail_run(run_id: int, exc: BaseException) -> ImportRun | None:
    db.session.rollback()
    run = db.session.get(ImportRun, run_id)
    if run is None:
        return None
    run.status = ImportRunStatus.FAILED
    run.error_summary = str(exc)
    run.finished_at = _utcnow()
    db.session.commit()
    logger.error("Import run %s failed: %s", run_id, exc, extra={"importer_run_id": run_id})
    return run


@dataclass(frozen=True)
class RunFilters:
    entity: ImportEntity | None = None
    status: ImportRunStatus | None = None
    limit: int = 20


def list_runs(filters: RunFilters | None = None) -> list[ImportRun]:
    filters = filters or RunFilters()
    query = ImportRun.query
    if filters.entity is not None:
        query = query.filter(ImportRun.entity == filters.entity)
    if filters.status is not None:
        query = query.filter(ImportRun.status == filters.status)
    return query.order_by(ImportRun.id.desc()).limit(max(1, filters.limit)).all()
