"""
Importer CLI.

``flask importer <entity> --file PATH`` runs one legacy import inline, one
commit per row, and prints the batch counts plus the first
``IMPORTER_ERROR_PREVIEW_LIMIT`` row errors. ``--dry-run`` performs every
lookup and write, then rolls each row back. ``--summary-json`` additionally
emits a machine-readable payload.

Row problems never stop a run; they are counted and listed. Problems that stop
the run before rows can be read (missing file, missing required header,
unreadable export) fail the run and exit non-zero.
"""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Callable, Iterable, Optional

import click
from flask.cli import AppGroup, ScriptInfo
from sqlalchemy.exc import SQLAlchemyError

from discfinder.importer.adapters import ADAPTER_FORMATS, CSVAdapterError, LegacyRow, build_adapter
from discfinder.importer.contracts import get_contract
from discfinder.importer.mapping import clean_string, legacy_row_id
from discfinder.importer.pipeline import (
    ImportResult,
    RunFilters,
    backfill_audit_profiles,
    collect_import_statistics,
    compute_import_progress,
    create_missing_sources,
    fail_run,
    find_orphan_contact_rows,
    find_unmapped_source_references,
    finish_run,
    import_contact_attempts,
    import_found_discs,
    import_profiles,
    import_sources,
    list_runs,
    start_run,
    summarize_source_mapping,
    validate_found_disc_rows,
)
from discfinder.models.importer import ImportEntity, ImportRun, ImportRunStatus
from discfinder.utils.importer import get_importer_setting, is_importer_enabled

_FILE_OPTION = click.option(
    "--file",
    "file_path",
    required=True,
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="Path to the legacy export.",
)
_DRY_RUN_OPTION = click.option("--dry-run", is_flag=True, help="Resolve and write every row, then roll it back.")
_SUMMARY_JSON_OPTION = click.option(
    "--summary-json",
    is_flag=True,
    help="Emit a machine-readable summary payload after completion.",
)


@click.group(name="importer", cls=AppGroup, invoke_without_command=True)
@click.pass_context
def importer_cli(ctx):
    """
    Legacy data import commands.

    Run ``sources`` before ``profiles`` and ``found-discs`` so legacy source
    references resolve, and ``found-discs`` before ``contact-attempts``.
    """
    info = ctx.ensure_object(ScriptInfo)
    app = info.load_app()
    if not is_importer_enabled(app):
        raise click.ClickException(
            "Importer is disabled via IMPORTER_ENABLED=false. " "Enable it to run importer CLI commands."
        )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def get_disabled_importer_command() -> click.Command:
    """
    Return a stand-in for ``flask importer`` that informs the operator the importer is disabled.

    Any subcommand and options are accepted so the message shows for every invocation.
    """

    @click.command(
        name="importer",
        context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
    )
    @click.argument("args", nargs=-1, type=click.UNPROCESSED)
    def disabled_importer(args):
        raise click.ClickException("Importer commands are unavailable because IMPORTER_ENABLED=false.")

    return disabled_importer


def _read_rows(file_path: Path, entity: ImportEntity, input_format: str = "csv"):
    """Open ``file_path`` and return (adapter, open handle)."""
    handle = file_path.open("r", encoding="utf-8", newline="")
    return build_adapter(handle, get_contract(entity), input_format=input_format), handle


def _absorb_adapter_problems(adapter, result: ImportResult) -> None:
    stats = adapter.statistics
    if stats.rows_skipped_blank:
        result.increment("rows_skipped_blank", stats.rows_skipped_blank)
    if stats.rows_skipped_malformed:
        result.increment("rows_skipped_malformed", stats.rows_skipped_malformed)
    for problem in adapter.malformed_rows:
        result.add_error(getattr(problem, "row_number", None), None, f"Malformed row: {problem}")


def _execute_import(
    entity: ImportEntity,
    file_path: Path,
    runner: Callable[[Iterable[LegacyRow]], ImportResult],
    *,
    dry_run: bool,
    input_format: str = "csv",
    params: dict | None = None,
) -> tuple[ImportRun, ImportResult]:
    run = start_run(
        entity,
        source_file=str(file_path),
        adapter=input_format,
        dry_run=dry_run,
        params=params,
    )
    run_id = run.id
    click.echo(f"Import run {run_id} started for {entity.value} from {file_path} (dry_run={dry_run}).")

    try:
        adapter, handle = _read_rows(file_path, entity, input_format)
        with handle:
            result = runner(adapter.iter_rows())
        _absorb_adapter_problems(adapter, result)
        run = finish_run(run_id, result)
    except (CSVAdapterError, OSError, UnicodeDecodeError, SQLAlchemyError) as exc:
        fail_run(run_id, exc)
        raise click.ClickException(f"Import run {run_id} failed: {exc}") from exc
    return run, result


def _format_summary(run: ImportRun, result: ImportResult, *, preview_limit: int) -> str:
    status_value = run.status.value if hasattr(run.status, "value") else str(run.status)
    lines = [f"Run {run.id} completed with status {status_value} (dry_run={result.dry_run})."]
    width = max((len(key) for key in result.counts), default=0)
    for key, value in sorted(result.counts.items()):
        lines.append(f"  {key.ljust(width)} : {value}")
    if result.unmapped_sources:
        refs = ", ".join(f"{ref} ({count})" for ref, count in result.unmapped_sources.most_common())
        lines.append(f"  unmapped sources : {refs}")
    if result.orphans:
        lines.append(f"  orphaned row ids : {', '.join(result.orphans[:preview_limit])}")
    if result.errors:
        shown = result.error_preview(preview_limit)
        lines.append(f"Errors ({len(shown)} of {len(result.errors)} shown):")
        lines.extend(f"  - {error}" for error in shown)
    return "\n".join(lines)


def _emit(run: ImportRun, result: ImportResult, summary_json: bool) -> None:
    preview_limit = int(get_importer_setting("IMPORTER_ERROR_PREVIEW_LIMIT"))
    click.echo(_format_summary(run, result, preview_limit=preview_limit))
    if summary_json:
        payload = {"run_id": run.id, "status": run.status.value, **result.as_dict(error_limit=preview_limit)}
        click.echo(json.dumps(payload, indent=2, sort_keys=True))


@importer_cli.command("sources")
@_FILE_OPTION
@_DRY_RUN_OPTION
@_SUMMARY_JSON_OPTION
def importer_sources(file_path: Path, dry_run: bool, summary_json: bool):
    """Import legacy sources (courses and drop-off points)."""
    run, result = _execute_import(
        ImportEntity.SOURCES,
        file_path,
        lambda rows: import_sources(rows, dry_run=dry_run),
        dry_run=dry_run,
    )
    _emit(run, result, summary_json)


@importer_cli.command("profiles")
@_FILE_OPTION
@click.option(
    "--format",
    "input_format",
    type=click.Choice(ADAPTER_FORMATS),
    default="csv",
    show_default=True,
    help="Export format: a CSV download or a Glide JSON export.",
)
@_DRY_RUN_OPTION
@_SUMMARY_JSON_OPTION
def importer_profiles(file_path: Path, input_format: str, dry_run: bool, summary_json: bool):
    """Import legacy members into canonical or staged profiles."""
    run, result = _execute_import(
        ImportEntity.PROFILES,
        file_path,
        lambda rows: import_profiles(rows, dry_run=dry_run),
        dry_run=dry_run,
        input_format=input_format,
        params={"format": input_format},
    )
    _emit(run, result, summary_json)


@importer_cli.command("found-discs")
@_FILE_OPTION
@click.option(
    "--skip-existing",
    is_flag=True,
    help="Leave discs that were already imported untouched instead of updating them.",
)
@_DRY_RUN_OPTION
@_SUMMARY_JSON_OPTION
def importer_found_discs(file_path: Path, skip_existing: bool, dry_run: bool, summary_json: bool):
    """Import legacy found-disc rows."""
    run, result = _execute_import(
        ImportEntity.FOUND_DISCS,
        file_path,
        lambda rows: import_found_discs(rows, dry_run=dry_run, skip_existing=skip_existing),
        dry_run=dry_run,
        params={"skip_existing": skip_existing},
    )
    _emit(run, result, summary_json)


@importer_cli.command("contact-attempts")
@_FILE_OPTION
@click.option(
    "--allow-duplicates",
    is_flag=True,
    help="Append every attempt even if an identical one was imported before.",
)
@_DRY_RUN_OPTION
@_SUMMARY_JSON_OPTION
def importer_contact_attempts(file_path: Path, allow_duplicates: bool, dry_run: bool, summary_json: bool):
    """Import contact history from the found-disc export."""
    if allow_duplicates:
        click.echo(
            "Warning: --allow-duplicates is set. Re-running this import appends every contact attempt again.",
            err=True,
        )
    run, result = _execute_import(
        ImportEntity.CONTACT_ATTEMPTS,
        file_path,
        lambda rows: import_contact_attempts(rows, dry_run=dry_run, allow_duplicates=allow_duplicates),
        dry_run=dry_run,
        params={"allow_duplicates": allow_duplicates},
    )
    _emit(run, result, summary_json)


@importer_cli.command("validate")
@_FILE_OPTION
@click.option(
    "--create-sources",
    is_flag=True,
    help="Create placeholder sources for every unmapped source reference.",
)
@_SUMMARY_JSON_OPTION
def importer_validate(file_path: Path, create_sources: bool, summary_json: bool):
    """Report data-quality issues in a found-disc export without importing it."""
    try:
        adapter, handle = _read_rows(file_path, ImportEntity.FOUND_DISCS)
        with handle:
            rows = list(adapter.iter_rows())
    except (CSVAdapterError, OSError, UnicodeDecodeError) as exc:
        raise click.ClickException(f"Could not read {file_path}: {exc}") from exc

    report = validate_found_disc_rows(rows)
    references = [clean_string(row.get("SourceID")) for row in rows]
    mapping = summarize_source_mapping(references)
    orphans = find_orphan_contact_rows(rows)

    click.echo(f"Validated {report.total_rows} row(s) from {file_path}.")
    for issue, count in sorted(report.issues.items()):
        click.echo(f"  {issue} : {count}")
    for row_id, count in report.duplicate_row_ids.items():
        click.echo(f"  duplicate row id {row_id} appears {count} times")
    click.echo(
        f"Source references: {mapping['distinct_references']} distinct, "
        f"{mapping['mapped_references']} mapped, {mapping['unmapped_references']} unmapped "
        f"({mapping['rows_with_unmapped_reference']} row(s))."
    )
    for item in mapping["top_unmapped"]:
        click.echo(f"  unmapped {item['reference']} : {item['count']}")
    click.echo(f"Rows with contact history but no imported disc: {len(orphans)}")

    created = []
    if create_sources:
        unmapped = [item.reference for item in find_unmapped_source_references(references)]
        try:
            created = create_missing_sources(unmapped)
        except SQLAlchemyError as exc:
            raise click.ClickException(f"Could not create placeholder sources: {exc}") from exc
        click.echo(f"Created {len(created)} placeholder source(s).")

    if summary_json:
        payload = {
            "quality": report.as_dict(),
            "source_mapping": mapping,
            "orphan_contact_rows": orphans,
            "created_sources": [source.legacy_row_id for source in created],
        }
        click.echo(json.dumps(payload, indent=2, sort_keys=True))


@importer_cli.command("status")
@click.option(
    "--file",
    "file_path",
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="Found-disc export to compare against; rows with a legacy id are counted.",
)
@click.option("--total", type=int, help="External record count to compare against.")
@_SUMMARY_JSON_OPTION
def importer_status(file_path: Optional[Path], total: Optional[int], summary_json: bool):
    """Compare imported found discs with the legacy record count."""
    if total is None and file_path is None:
        raise click.ClickException("Provide --file or --total.")
    if total is None:
        try:
            adapter, handle = _read_rows(file_path, ImportEntity.FOUND_DISCS)
            with handle:
                ids = {legacy_row_id(row.values) for row in adapter.iter_rows()}
        except (CSVAdapterError, OSError, UnicodeDecodeError) as exc:
            raise click.ClickException(f"Could not read {file_path}: {exc}") from exc
        total = len(ids - {None})

    progress = compute_import_progress(total)
    statistics = collect_import_statistics()
    click.echo(
        f"Imported {progress.imported} of {progress.total} legacy found disc(s) "
        f"({progress.percent}%), {progress.remaining} remaining."
    )
    for key, value in statistics.items():
        click.echo(f"  {key} : {value}")
    if summary_json:
        click.echo(json.dumps({"progress": progress.as_dict(), "statistics": statistics}, indent=2, sort_keys=True))


@importer_cli.command("backfill-audit")
@_DRY_RUN_OPTION
def importer_backfill_audit(dry_run: bool):
    """Link entered-by and returned-by names on found discs to profiles."""
    try:
        counts = backfill_audit_profiles(dry_run=dry_run)
    except SQLAlchemyError as exc:
        raise click.ClickException(f"Audit backfill failed: {exc}") from exc
    click.echo(
        f"Scanned {counts['discs_scanned']} disc(s): linked {counts['entered_by_linked']} entered-by and "
        f"{counts['returned_by_linked']} returned-by profile(s) (dry_run={dry_run})."
    )


@importer_cli.command("runs")
@click.option("--entity", type=click.Choice([entity.value for entity in ImportEntity]), help="Filter by entity.")
@click.option("--status", type=click.Choice([status.value for status in ImportRunStatus]), help="Filter by status.")
@click.option("--limit", default=20, show_default=True, type=int)
def importer_runs(entity: Optional[str], status: Optional[str], limit: int):
    """List recent import runs."""
    filters = RunFilters(
        entity=ImportEntity(entity) if entity else None,
        status=ImportRunStatus(status) if status else None,
        limit=limit,
    )
    runs = list_runs(filters)
    if not runs:
        click.echo("No import runs recorded.")
        return
    for run in runs:
        counts = Counter(run.counts_json or {})
        click.echo(
            f"{run.id:>5}  {run.entity.value:<17} {run.status.value:<17} "
            f"dry_run={run.dry_run}  processed={counts.get('rows_processed', 0)}  "
            f"failed={counts.get('rows_failed', 0)}  {run.source_file or ''}"
        )
