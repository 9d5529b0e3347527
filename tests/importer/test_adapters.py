from __future__ import annotations

import io
import json

import pytest

from discfinder.importer.adapters import (
    CSVAdapterError,
    CSVHeaderError,
    GlideExportAdapter,
    GlideExportError,
    LegacyCSVAdapter,
    build_adapter,
)
from discfinder.importer.contracts import (
    FOUND_DISC_CONTRACT,
    PROFILE_CONTRACT,
    SOURCE_CONTRACT,
    get_contract,
    normalize_header,
)
from discfinder.models import ImportEntity


def test_csv_adapter_streams_rows_keyed_by_header():
    handle = io.StringIO("Email,Name,Role\nalice@example.com,Alice,admin\nbob@example.com,Bob,\n")
    adapter = LegacyCSVAdapter(handle, PROFILE_CONTRACT)

    rows = list(adapter.iter_rows())

    assert [row.row_number for row in rows] == [2, 3]
    assert rows[0].get("Email") == "alice@example.com"
    assert rows[1].get("Role") == ""
    assert adapter.header == ("Email", "Name", "Role")
    assert adapter.statistics.rows_processed == 2


def test_csv_adapter_strips_byte_order_mark_from_header():
    handle = io.StringIO("\ufeffEmail,Name\nalice@example.com,Alice\n")
    rows = list(LegacyCSVAdapter(handle, PROFILE_CONTRACT).iter_rows())
    assert rows[0].get("Email") == "alice@example.com"
    assert normalize_header("\ufeff Email ") == "Email"


def test_missing_required_header_raises():
    handle = io.StringIO("Name,Role\nAlice,admin\n")
    with pytest.raises(CSVHeaderError) as excinfo:
        list(LegacyCSVAdapter(handle, PROFILE_CONTRACT).iter_rows())
    assert excinfo.value.missing == ("Email",)


def test_row_id_alias_satisfies_found_disc_contract():
    handle = io.StringIO("ID,Description\n17,Innova Roc\n")
    rows = list(LegacyCSVAdapter(handle, FOUND_DISC_CONTRACT).iter_rows())
    assert rows[0].get("ID") == "17"

    with pytest.raises(CSVHeaderError) as excinfo:
        list(LegacyCSVAdapter(io.StringIO("Description\nInnova Roc\n"), FOUND_DISC_CONTRACT).iter_rows())
    assert excinfo.value.missing == ("🔒 Row ID or ID",)


def test_duplicate_headers_are_rejected():
    handle = io.StringIO("Source,Source\nA,B\n")
    with pytest.raises(CSVHeaderError) as excinfo:
        list(LegacyCSVAdapter(handle, SOURCE_CONTRACT).iter_rows())
    assert excinfo.value.duplicates == ("Source",)


def test_blank_and_malformed_rows_are_skipped_not_fatal():
    handle = io.StringIO("Email,Name\nalice@example.com,Alice\n,\nbob@example.com\ncarol@example.com,Carol\n")
    adapter = LegacyCSVAdapter(handle, PROFILE_CONTRACT)

    rows = list(adapter.iter_rows())

    assert [row.get("Email") for row in rows] == ["alice@example.com", "carol@example.com"]
    assert adapter.statistics.rows_skipped_blank == 1
    assert adapter.statistics.rows_skipped_malformed == 1
    assert adapter.malformed_rows[0].row_number == 4


def test_empty_file_reports_required_columns():
    with pytest.raises(CSVHeaderError):
        list(LegacyCSVAdapter(io.StringIO(""), PROFILE_CONTRACT).iter_rows())


def test_glide_adapter_maps_column_ids():
    payload = [
        {
            "$rowID": "G-1",
            "Name": "Alice",
            "Email": "alice@example.com",
            "Role": "user",
            "tGL3F": "S-1",
            "OhhU3": 5551234567,
            "Dscqd": 12345.0,
        },
        {"$rowID": None, "Name": "", "Email": ""},
    ]
    adapter = GlideExportAdapter(io.StringIO(json.dumps({"rows": payload})), PROFILE_CONTRACT)

    rows = list(adapter.iter_rows())

    assert len(rows) == 1
    values = rows[0].values
    assert values["🔒 Row ID"] == "G-1"
    assert values["DefaultSourceRowID"] == "S-1"
    assert values["Phone Number for Text Messages"] == "5551234567"
    assert values["PDGA #"] == "12345"
    assert adapter.statistics.rows_skipped_blank == 1


def test_glide_adapter_rejects_invalid_json():
    with pytest.raises(GlideExportError):
        list(GlideExportAdapter(io.StringIO("{not json"), PROFILE_CONTRACT).iter_rows())


def test_build_adapter_by_format():
    contract = get_contract(ImportEntity.PROFILES)
    assert isinstance(build_adapter(io.StringIO(""), contract), LegacyCSVAdapter)
    assert isinstance(build_adapter(io.StringIO("[]"), contract, input_format="glide"), GlideExportAdapter)
    with pytest.raises(CSVAdapterError):
        build_adapter(io.StringIO(""), contract, input_format="xlsx")
