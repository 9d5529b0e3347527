from __future__ import annotations

import json

from discfinder.importer import init_importer
from discfinder.models import ContactAttempt, FoundDisc, ImportRun, ImportRunStatus, Source, StagedProfile

SOURCES_CSV = "🔒 Row ID,Source,Sort,Status\nS-1,Swope Park,1,Active\nS-2,Blue Valley,2,Active\n"
PROFILES_CSV = "🔒 Row ID,Email,Name,Role\nP-1,alice@example.com,Alice,user\nP-2,,Nobody,\n"
FOUND_DISCS_CSV = (
    "🔒 Row ID,Description,SourceID,Entry Date,Entered By,Contact Notes\n"
    "R-1,Innova Destroyer red,S-1,01/15/2023,Carol,Left voicemail\n"
    "R-2,Discraft Buzzz,XYZ,01/16/2023,Carol,\n"
)


def _json_payload(output):
    return json.loads(output[output.index("{") :])


def test_sources_command_imports_and_records_run(runner, write_csv):
    path = write_csv(SOURCES_CSV, "sources.csv")

    result = runner.invoke(args=["importer", "sources", "--file", str(path)])

    assert result.exit_code == 0, result.output
    assert "status succeeded" in result.output
    assert "created" in result.output
    assert Source.query.count() == 2
    run = ImportRun.query.one()
    assert run.status == ImportRunStatus.SUCCEEDED
    assert run.source_file == str(path)


def test_profiles_dry_run_with_summary_json(runner, write_csv):
    path = write_csv(PROFILES_CSV, "users.csv")

    result = runner.invoke(args=["importer", "profiles", "--file", str(path), "--dry-run", "--summary-json"])

    assert result.exit_code == 0, result.output
    payload = _json_payload(result.output)
    assert payload["dry_run"] is True
    assert payload["status"] == "partially_failed"
    assert payload["counts"]["staged"] == 1
    assert payload["counts"]["rows_failed"] == 1
    assert payload["errors"][0]["row_number"] == 3
    assert StagedProfile.query.count() == 0


def test_profiles_from_glide_export(runner, write_csv):
    export = json.dumps([{"$rowID": "G-1", "Email": "glide@example.com", "Name": "Glide User"}])
    path = write_csv(export, "users.json")

    result = runner.invoke(args=["importer", "profiles", "--file", str(path), "--format", "glide"])

    assert result.exit_code == 0, result.output
    staged = StagedProfile.query.one()
    assert staged.legacy_row_id == "G-1"
    assert ImportRun.query.one().adapter == "glide"


def test_missing_required_header_fails_run(runner, write_csv):
    path = write_csv("Description,SourceID\nInnova Roc,S-1\n", "discs.csv")

    result = runner.invoke(args=["importer", "found-discs", "--file", str(path)])

    assert result.exit_code != 0
    assert "Missing required columns" in result.output
    assert ImportRun.query.one().status == ImportRunStatus.FAILED


def test_found_discs_then_contact_attempts(runner, write_csv):
    runner.invoke(args=["importer", "sources", "--file", str(write_csv(SOURCES_CSV, "sources.csv"))])
    path = write_csv(FOUND_DISCS_CSV, "discs.csv")

    discs = runner.invoke(args=["importer", "found-discs", "--file", str(path)])
    contacts = runner.invoke(args=["importer", "contact-attempts", "--file", str(path)])

    assert discs.exit_code == 0, discs.output
    assert "unmapped sources : XYZ (1)" in discs.output
    assert FoundDisc.query.count() == 2
    assert contacts.exit_code == 0, contacts.output
    assert ContactAttempt.query.count() == 1


def test_allow_duplicates_warns_operator(runner, write_csv):
    path = write_csv(FOUND_DISCS_CSV, "discs.csv")
    runner.invoke(args=["importer", "found-discs", "--file", str(path)])

    result = runner.invoke(args=["importer", "contact-attempts", "--file", str(path), "--allow-duplicates"])

    assert result.exit_code == 0, result.output
    assert "--allow-duplicates is set" in result.output


def test_skip_existing_flag(runner, write_csv):
    path = write_csv(FOUND_DISCS_CSV, "discs.csv")
    runner.invoke(args=["importer", "found-discs", "--file", str(path)])

    result = runner.invoke(args=["importer", "found-discs", "--file", str(path), "--skip-existing", "--summary-json"])

    assert _json_payload(result.output)["counts"]["skipped_existing"] == 2


def test_validate_reports_and_creates_placeholder_sources(runner, write_csv):
    path = write_csv(FOUND_DISCS_CSV, "discs.csv")

    result = runner.invoke(args=["importer", "validate", "--file", str(path), "--create-sources"])

    assert result.exit_code == 0, result.output
    assert "Validated 2 row(s)" in result.output
    assert "unmapped XYZ : 1" in result.output
    assert "Rows with contact history but no imported disc: 1" in result.output
    assert Source.find_by_legacy_id("XYZ").name == "Legacy Source XYZ"
    assert FoundDisc.query.count() == 0


def test_status_compares_with_export(runner, write_csv):
    path = write_csv(FOUND_DISCS_CSV, "discs.csv")
    runner.invoke(args=["importer", "found-discs", "--file", str(path)])
    FoundDisc.query.filter_by(legacy_row_id="R-2").delete()

    result = runner.invoke(args=["importer", "status", "--file", str(path)])

    assert result.exit_code == 0, result.output
    assert "Imported 1 of 2 legacy found disc(s) (50.0%), 1 remaining." in result.output


def test_status_requires_file_or_total(runner):
    result = runner.invoke(args=["importer", "status"])

    assert result.exit_code != 0
    assert "Provide --file or --total" in result.output


def test_runs_and_backfill_commands(runner, write_csv):
    runner.invoke(args=["importer", "sources", "--file", str(write_csv(SOURCES_CSV, "sources.csv"))])

    runs = runner.invoke(args=["importer", "runs", "--entity", "sources"])
    backfill = runner.invoke(args=["importer", "backfill-audit", "--dry-run"])

    assert "sources" in runs.output
    assert "succeeded" in runs.output
    assert backfill.exit_code == 0, backfill.output
    assert "Scanned 0 disc(s)" in backfill.output


def test_disabled_importer_rejects_every_invocation(app, runner, write_csv):
    app.config["IMPORTER_ENABLED"] = False
    init_importer(app)

    bare = runner.invoke(args=["importer"])
    result = runner.invoke(args=["importer", "sources", "--file", str(write_csv(SOURCES_CSV)), "--dry-run"])

    assert bare.exit_code != 0
    assert "Importer commands are unavailable" in bare.output
    assert result.exit_code == 1
    assert "IMPORTER_ENABLED=false" in result.output
    assert ImportRun.query.count() == 0
