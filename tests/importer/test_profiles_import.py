from __future__ import annotations

from discfinder.importer.adapters import LegacyRow
from discfinder.importer.pipeline import RowThrottle, import_profiles
from discfinder.models import Profile, StagedProfile, UserRole, db


def _rows(*records):
    return [LegacyRow(row_number=index + 2, values=dict(values)) for index, values in enumerate(records)]


def test_new_member_is_staged_as_guest():
    result = import_profiles(_rows({"Email": "New@Example.com", "Name": "New Member", "🔒 Row ID": "P-1"}))

    staged = StagedProfile.query.one()
    assert staged.email == "new@example.com"
    assert staged.full_name == "New Member"
    assert staged.role == UserRole.GUEST
    assert staged.needs_activation is True
    assert result.counts["staged"] == 1
    assert result.counts["rows_processed"] == 1
    assert Profile.query.count() == 0


def test_reimport_is_idempotent():
    rows = _rows({"Email": "a@example.com", "Name": "A", "Role": "user", "🔒 Row ID": "P-1"})
    import_profiles(rows)
    second = import_profiles(rows)

    assert StagedProfile.query.count() == 1
    assert second.counts["updated_staged"] == 1
    assert second.counts["staged"] == 0


def test_blank_fields_never_clobber_existing_values():
    import_profiles(_rows({"Email": "a@example.com", "Name": "Alice", "PDGA #": "12345", "🔒 Row ID": "P-1"}))
    import_profiles(_rows({"Email": "a@example.com", "Name": "", "PDGA #": "", "Instagram": "@alice", "🔒 Row ID": "P-1"}))

    staged = StagedProfile.query.one()
    assert staged.full_name == "Alice"
    assert staged.pdga_number == 12345
    assert staged.instagram_handle == "@alice"


def test_canonical_profile_is_updated_instead_of_staging(make_account):
    account = make_account("member@example.com", role=UserRole.USER, full_name="Member")

    result = import_profiles(
        _rows({"Email": "member@example.com", "Name": "", "Phone": "555-123-4567", "🔒 Row ID": "P-7"})
    )

    profile = Profile.query.filter_by(account_id=account.id).one()
    assert profile.full_name == "Member"
    assert profile.phone_number == "+15551234567"
    assert profile.legacy_row_id == "P-7"
    assert StagedProfile.query.count() == 0
    assert result.counts["updated_canonical"] == 1


def test_legacy_row_id_matches_when_email_changed():
    import_profiles(_rows({"Email": "old@example.com", "Name": "Old", "🔒 Row ID": "P-1"}))
    result = import_profiles(_rows({"Email": "new@example.com", "Name": "Renamed", "🔒 Row ID": "P-1"}))

    staged = StagedProfile.query.one()
    assert staged.email == "old@example.com"
    assert staged.full_name == "Renamed"
    assert result.counts["updated_staged"] == 1


def test_rows_without_email_are_reported_and_skipped():
    result = import_profiles(
        _rows(
            {"Email": "", "Name": "Nobody"},
            {"Email": "ok@example.com", "Name": "Ok"},
        )
    )

    assert result.rows_failed == 1
    assert result.errors[0].row_number == 2
    assert StagedProfile.query.count() == 1


def test_default_source_reference_resolves_or_is_counted(source_factory):
    source = source_factory(name="Swope Park", legacy_row_id="S-1")

    result = import_profiles(
        _rows(
            {"Email": "a@example.com", "DefaultSourceRowID": "S-1"},
            {"Email": "b@example.com", "DefaultSourceRowID": "S-404"},
        )
    )

    assert StagedProfile.query.filter_by(email="a@example.com").one().default_source_id == source.id
    assert StagedProfile.query.filter_by(email="b@example.com").one().default_source_id is None
    assert result.unmapped_sources["S-404"] == 1


def test_dry_run_writes_nothing():
    result = import_profiles(_rows({"Email": "a@example.com", "Name": "A"}), dry_run=True)

    assert result.counts["staged"] == 1
    assert result.dry_run is True
    assert StagedProfile.query.count() == 0


def test_unique_conflict_counts_as_already_imported(make_account, caplog):
    make_account("first@example.com", role=UserRole.USER)
    make_account("second@example.com", role=UserRole.USER)
    Profile.query.filter_by(email="first@example.com").one().legacy_row_id = "P-1"
    db.session.commit()

    with caplog.at_level("INFO", logger="discfinder.importer.pipeline.profiles"):
        result = import_profiles(_rows({"Email": "second@example.com", "Name": "Second", "🔒 Row ID": "P-1"}))

    assert result.counts["rows_conflicted"] == 1
    assert not result.has_failures
    assert "already imported" in caplog.text
    assert Profile.query.filter_by(email="second@example.com").one().legacy_row_id is None


def test_throttle_pauses_every_n_rows():
    pauses = []
    throttle = RowThrottle(0.5, 2, sleep=pauses.append)

    import_profiles(
        _rows(*({"Email": f"user{index}@example.com"} for index in range(5))),
        throttle=throttle,
    )

    assert pauses == [0.5, 0.5]
    assert StagedProfile.query.count() == 5
