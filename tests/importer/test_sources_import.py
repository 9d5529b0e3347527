from __future__ import annotations

from discfinder.importer.adapters import LegacyRow
from discfinder.importer.pipeline import create_missing_sources, import_sources
from discfinder.models import Source


def _rows(*records):
    return [LegacyRow(row_number=index + 2, values=dict(values)) for index, values in enumerate(records)]


def test_sources_are_created_then_updated():
    rows = _rows(
        {"🔒 Row ID": "S-1", "Source": "Swope Park", "Sort": "1", "Status": "Active"},
        {"🔒 Row ID": "S-2", "Source": "Blue Valley", "Sort": "", "Status": "Retired"},
    )
    first = import_sources(rows)
    second = import_sources(rows)

    assert first.counts["created"] == 2
    assert second.counts["updated"] == 2
    assert Source.query.count() == 2
    blue_valley = Source.find_by_legacy_id("S-2")
    assert blue_valley.is_active is False
    assert blue_valley.sort_order == 10


def test_hand_made_source_adopts_legacy_id(source_factory):
    existing = source_factory(name="Swope Park", legacy_row_id=None)

    result = import_sources(
        _rows({"🔒 Row ID": "S-1", "Source": "swope park", "Text Message - Initial": "We found your disc!"})
    )

    assert result.counts["adopted"] == 1
    adopted = Source.find_by_legacy_id("S-1")
    assert adopted.id == existing.id
    assert adopted.msg1_found_just_entered == "We found your disc!"


def test_rows_missing_id_or_name_are_errors():
    result = import_sources(_rows({"🔒 Row ID": "", "Source": "No Id"}, {"🔒 Row ID": "S-3", "Source": ""}))

    assert result.rows_failed == 2
    assert [error.message for error in result.errors] == ["Missing legacy row id", "Missing source name"]
    assert Source.query.count() == 0


def test_placeholder_sources_for_unmapped_references(source_factory):
    source_factory(name="Swope Park", legacy_row_id="S-1")

    created = create_missing_sources(["S-1", "XYZ", ""])
    again = create_missing_sources(["XYZ"])

    assert [source.legacy_row_id for source in created] == ["XYZ"]
    assert again == []
    placeholder = Source.find_by_legacy_id("XYZ")
    assert placeholder.name == "Legacy Source XYZ"
    assert placeholder.sort_order == 900
