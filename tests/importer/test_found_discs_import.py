from __future__ import annotations

from datetime import date

from discfinder.importer.adapters import LegacyRow
from discfinder.importer.pipeline import backfill_audit_profiles, import_found_discs
from discfinder.models import FoundDisc, Profile, ReturnStatus, UserRole, db


def _rows(*records):
    return [LegacyRow(row_number=index + 2, values=dict(values)) for index, values in enumerate(records)]


def _disc_row(row_id="R-1", **overrides):
    values = {
        "🔒 Row ID": row_id,
        "Description": "Innova Destroyer red",
        "SourceID": "S-1",
        "Entry Date": "01/15/2023",
        "Entered By": "Carol Finder",
        "Image": "https://img.example.com/a.jpg",
    }
    values.update(overrides)
    return values


def test_found_disc_is_created_with_resolved_source(source_factory):
    source = source_factory(name="Swope Park", legacy_row_id="S-1")

    result = import_found_discs(_rows(_disc_row()))

    disc = FoundDisc.query.one()
    assert result.counts["created"] == 1
    assert disc.source_id == source.id
    assert (disc.brand, disc.mold, disc.color) == ("Innova", "Destroyer", "red")
    assert disc.found_date == date(2023, 1, 15)
    assert disc.return_status == ReturnStatus.FOUND
    assert disc.image_urls == ["https://img.example.com/a.jpg"]
    assert disc.location_found == "Exact location unknown."


def test_unmapped_source_is_counted_and_disc_still_imported(caplog):
    with caplog.at_level("WARNING", logger="discfinder.importer.pipeline.found_discs"):
        result = import_found_discs(_rows(_disc_row(SourceID="XYZ")))

    disc = FoundDisc.query.one()
    assert disc.source_id is None
    assert result.unmapped_sources["XYZ"] == 1
    assert not result.has_failures
    assert "XYZ" in caplog.text


def test_reimport_updates_without_duplicating():
    import_found_discs(_rows(_disc_row()))
    result = import_found_discs(_rows(_disc_row(Description="Innova Destroyer blue", Image="")))

    disc = FoundDisc.query.one()
    assert result.counts["updated"] == 1
    assert disc.color == "blue"
    assert disc.image_urls == ["https://img.example.com/a.jpg"]


def test_skip_existing_leaves_disc_untouched():
    import_found_discs(_rows(_disc_row()))
    result = import_found_discs(_rows(_disc_row(Description="Discraft Buzzz")), skip_existing=True)

    assert result.counts["skipped_existing"] == 1
    assert FoundDisc.query.one().brand == "Innova"


def test_reimport_keeps_disposition_set_since():
    import_found_discs(_rows(_disc_row()))
    disc = FoundDisc.query.one()
    disc.update_return_status(ReturnStatus.SOLD, notes="Sold at the swap meet")
    db.session.commit()

    import_found_discs(_rows(_disc_row()))

    assert FoundDisc.query.one().return_status == ReturnStatus.SOLD


def test_returned_row_sets_returned_status():
    import_found_discs(_rows(_disc_row(**{"Returned Date": "02/01/2023", "Returned By": "Dave"})))

    disc = FoundDisc.query.one()
    assert disc.return_status == ReturnStatus.RETURNED_TO_OWNER
    assert disc.returned_by_name == "Dave"


def test_rows_without_id_are_skipped():
    result = import_found_discs(_rows(_disc_row(row_id="")))

    assert result.counts["rows_skipped_missing_id"] == 1
    assert result.rows_failed == 1
    assert FoundDisc.query.count() == 0


def test_missing_entry_date_uses_import_day():
    import_found_discs(_rows(_disc_row(**{"Entry Date": ""})), today=date(2024, 5, 1))

    assert FoundDisc.query.one().found_date == date(2024, 5, 1)


def test_entered_by_links_to_unique_profile(make_account):
    make_account("carol@example.com", role=UserRole.RAKERDIVER, full_name="Carol Finder")

    import_found_discs(_rows(_disc_row()))

    profile = Profile.query.filter_by(email="carol@example.com").one()
    assert FoundDisc.query.one().entered_by_profile_id == profile.id


def test_backfill_links_names_once_profiles_exist(make_account):
    import_found_discs(_rows(_disc_row(**{"Returned Date": "02/01/2023", "Returned By": "Dave Returner"})))
    assert FoundDisc.query.one().entered_by_profile_id is None

    make_account("carol@example.com", role=UserRole.USER, full_name="Carol Finder")
    make_account("dave@example.com", role=UserRole.USER, full_name="Dave Returner")

    counts = backfill_audit_profiles()

    disc = FoundDisc.query.one()
    assert counts == {"entered_by_linked": 1, "returned_by_linked": 1, "discs_scanned": 1}
    assert disc.entered_by_profile_id is not None
    assert disc.returned_by_profile_id is not None


def test_backfill_dry_run_rolls_back(make_account):
    import_found_discs(_rows(_disc_row()))
    make_account("carol@example.com", role=UserRole.USER, full_name="Carol Finder")

    counts = backfill_audit_profiles(dry_run=True)

    assert counts["entered_by_linked"] == 1
    assert FoundDisc.query.one().entered_by_profile_id is None
