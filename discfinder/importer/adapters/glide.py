"""Adapter for Glide table JSON exports.

Glide's table API returns rows keyed by internal column ids (``tGL3F``,
``OhhU3``...). The adapter renames them to the literal CSV headers so the
profile pipeline treats a Glide export and a CSV export identically.
"""

from __future__ import annotations

import json
from typing import IO, Iterator, Mapping

from discfinder.importer.contracts import LegacyContract

from .csv_legacy import CSVAdapterError, CSVStatistics, LegacyRow, validate_headers

# Glide column id -> legacy CSV header, for the member profile table.
GLIDE_PROFILE_COLUMNS: Mapping[str, str] = {
    "$rowID": "🔒 Row ID",
    "Name": "Name",
    "Email": "Email",
    "Photo": "Photo",
    "Role": "Role",
    "tGL3F": "DefaultSourceRowID",
    "OhhU3": "Phone Number for Text Messages",
    "Dscqd": "PDGA #",
    "n1NEI": "Facebook Profile",
}


class GlideExportError(CSVAdapterError):
    """Raised when a Glide export is not a list of row objects."""


def _stringify(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class GlideExportAdapter:
    """Reads a Glide JSON export and yields :class:`LegacyRow` objects."""

    def __init__(
        self,
        file_obj: IO[str],
        contract: LegacyContract,
        *,
        column_map: Mapping[str, str] = GLIDE_PROFILE_COLUMNS,
    ) -> None:
        self._file_obj = file_obj
        self.contract = contract
        self.column_map = dict(column_map)
        self.statistics = CSVStatistics()
        self.malformed_rows: list = []
        self._header: tuple[str, ...] | None = None

    @property
    def header(self) -> tuple[str, ...] | None:
        return self._header

    def _load(self) -> list:
        self._file_obj.seek(0)
        try:
            payload = json.load(self._file_obj)
        except json.JSONDecodeError as exc:
            raise GlideExportError(f"Glide export is not valid JSON: {exc}") from exc
        if isinstance(payload, dict):
            payload = payload.get("rows", payload.get("data"))
        if not isinstance(payload, list):
            raise GlideExportError("Glide export must be a list of row objects.")
        return payload

    def iter_rows(self) -> Iterator[LegacyRow]:
        rows = self._load()
        self._header = validate_headers(tuple(self.column_map.values()), self.contract)

        for row_number, raw in enumerate(rows, start=1):
            self.statistics.rows_read += 1
            if not isinstance(raw, dict):
                self.statistics.rows_skipped_malformed += 1
                continue
            values = {
                header: _stringify(raw.get(column_id))
                for column_id, header in self.column_map.items()
            }
            if all(value is None or not value.strip() for value in values.values()):
                self.statistics.rows_skipped_blank += 1
                continue
            self.statistics.rows_processed += 1
            yield LegacyRow(row_number=row_number, values=values)
