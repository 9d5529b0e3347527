from __future__ import annotations

from discfinder.importer.adapters import LegacyRow
from discfinder.importer.pipeline import import_contact_attempts, import_found_discs
from discfinder.models import ContactAttempt, ContactMethod


def _rows(*records):
    return [LegacyRow(row_number=index + 2, values=dict(values)) for index, values in enumerate(records)]


CONTACT_ROW = {
    "🔒 Row ID": "R-1",
    "Description": "Innova Destroyer red",
    "Entry Date": "01/15/2023",
    "Entered By": "Carol Finder",
    "Contact Notes": "Left voicemail",
    "Initial Text Message Sent": "We found your disc",
    "Initial Text Message Sent Date": "01/16/2023",
    "Claimed Proof": "Photo of receipt",
    "Claimed Date": "01/20/2023",
}


def test_attempts_are_created_for_imported_disc():
    import_found_discs(_rows(CONTACT_ROW))

    result = import_contact_attempts(_rows(CONTACT_ROW))

    assert result.counts["attempts_created"] == 3
    methods = sorted(attempt.contact_method.value for attempt in ContactAttempt.query.all())
    assert methods == sorted([ContactMethod.NOTES.value, ContactMethod.SMS.value, ContactMethod.RESPONSE.value])
    notes = ContactAttempt.query.filter_by(contact_method=ContactMethod.NOTES).one()
    assert notes.notes == "Legacy contact notes from disc R-1"
    assert notes.attempted_by_name == "Carol Finder"


def test_rerun_skips_attempts_already_imported():
    import_found_discs(_rows(CONTACT_ROW))
    import_contact_attempts(_rows(CONTACT_ROW))

    result = import_contact_attempts(_rows(CONTACT_ROW))

    assert result.counts["attempts_skipped_duplicate"] == 3
    assert result.counts["attempts_created"] == 0
    assert ContactAttempt.query.count() == 3


def test_undated_attempts_dedupe_across_runs():
    row = {"🔒 Row ID": "R-2", "Contact Notes": "Called twice"}
    import_found_discs(_rows(row))

    import_contact_attempts(_rows(row))
    import_contact_attempts(_rows(row))

    assert ContactAttempt.query.count() == 1


def test_allow_duplicates_appends_and_warns(caplog):
    import_found_discs(_rows(CONTACT_ROW))
    import_contact_attempts(_rows(CONTACT_ROW))

    with caplog.at_level("WARNING", logger="discfinder.importer.pipeline.contact_attempts"):
        result = import_contact_attempts(_rows(CONTACT_ROW), allow_duplicates=True)

    assert result.counts["attempts_created"] == 3
    assert ContactAttempt.query.count() == 6
    assert "duplicates allowed" in caplog.text


def test_rows_for_missing_discs_are_orphans():
    result = import_contact_attempts(_rows(dict(CONTACT_ROW, **{"🔒 Row ID": "R-404"})))

    assert result.orphans == ["R-404"]
    assert result.counts["rows_orphaned"] == 1
    assert ContactAttempt.query.count() == 0


def test_rows_without_history_are_counted():
    import_found_discs(_rows({"🔒 Row ID": "R-3", "Description": "Discraft Buzzz"}))

    result = import_contact_attempts(_rows({"🔒 Row ID": "R-3", "Description": "Discraft Buzzz"}))

    assert result.counts["rows_without_attempts"] == 1
    assert ContactAttempt.query.count() == 0


def test_dry_run_creates_nothing():
    import_found_discs(_rows(CONTACT_ROW))

    result = import_contact_attempts(_rows(CONTACT_ROW), dry_run=True)

    assert result.counts["attempts_created"] == 3
    assert ContactAttempt.query.count() == 0


def test_identical_texts_in_one_row_are_separate_attempts():
    row = {
        "🔒 Row ID": "R-2",
        "Description": "Discraft Buzzz",
        "Entry Date": "01/15/2023",
        "Initial Text Message Sent": "We found your disc",
        "Initial Text Message Sent Date": "01/16/2023",
        "Last Text Sent": "We found your disc",
        "Last Text Sent Date": "01/16/2023",
    }
    import_found_discs(_rows(row))

    first = import_contact_attempts(_rows(row))
    second = import_contact_attempts(_rows(row))

    assert first.counts["attempts_created"] == 2
    assert first.counts["attempts_skipped_duplicate"] == 0
    assert second.counts["attempts_skipped_duplicate"] == 2
    assert ContactAttempt.query.filter_by(contact_method=ContactMethod.SMS).count() == 2
