"""CSV adapter for legacy Glide exports.

Validates the header row against an entity contract and streams rows as
``LegacyRow`` mappings keyed by the literal legacy header. Rows whose column
count differs from the header are skipped and counted rather than failing
the whole file.
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from typing import IO, Iterator, Sequence

from discfinder.importer.contracts import LegacyContract, normalize_header


class CSVAdapterError(Exception):
    """Base exception for CSV adapter failures."""


class CSVHeaderError(CSVAdapterError):
    """Raised when the CSV header row does not meet contract requirements."""

    def __init__(self, *, missing: Sequence[str] | None = None, duplicates: Sequence[str] | None = None) -> None:
        details: list[str] = []
        if missing:
            details.append(f"Missing required columns: {', '.join(missing)}.")
        if duplicates:
            details.append(
                "Duplicate columns detected: " + ", ".join(sorted(duplicates)) + ". Each header may appear only once."
            )

        message = "CSV header validation failed. " + " ".join(details) if details else "CSV header validation failed."
        super().__init__(message)
        self.missing = tuple(missing or ())
        self.duplicates = tuple(duplicates or ())


class CSVRowError(CSVAdapterError):
    """Raised when an individual row cannot be parsed."""

    def __init__(self, row_number: int, message: str) -> None:
        super().__init__(f"Row {row_number}: {message}")
        self.row_number = row_number


@dataclass(frozen=True)
class LegacyRow:
    """One data row keyed by literal legacy header."""

    row_number: int
    values: dict[str, str | None]

    def get(self, column: str, default: str | None = None) -> str | None:
        return self.values.get(column, default)


@dataclass
class CSVStatistics:
    """Accumulated statistics from CSV parsing."""

    rows_read: int = 0
    rows_processed: int = 0
    rows_skipped_blank: int = 0
    rows_skipped_malformed: int = 0


def validate_headers(raw_headers: Sequence[str], contract: LegacyContract) -> tuple[str, ...]:
    headers = tuple(normalize_header(header) for header in raw_headers)
    present = set(headers)
    duplicates = sorted({header for header in headers if header and headers.count(header) > 1})

    missing: list[str] = []
    for spec in contract.required_fields():
        if not any(candidate in present for candidate in spec.headers()):
            missing.append(" or ".join(spec.headers()))

    if missing or duplicates:
        raise CSVHeaderError(missing=missing, duplicates=duplicates)
    return headers


def _row_is_blank(values: Sequence[str]) -> bool:
    return all(value.strip() == "" for value in values)


class LegacyCSVAdapter:
    """CSV reader that enforces a legacy export contract."""

    def __init__(self, file_obj: IO[str], contract: LegacyContract, *, skip_blank_rows: bool = True) -> None:
        self._file_obj = file_obj
        self.contract = contract
        self.skip_blank_rows = skip_blank_rows
        self._header: tuple[str, ...] | None = None
        self.statistics = CSVStatistics()
        self.malformed_rows: list[CSVRowError] = []

    @property
    def header(self) -> tuple[str, ...] | None:
        return self._header

    def iter_rows(self) -> Iterator[LegacyRow]:
        self._file_obj.seek(0)
        reader = csv.reader(self._file_obj, delimiter=",", quotechar='"')
        try:
            raw_headers = next(reader)
        except StopIteration:
            raise CSVHeaderError(missing=[spec.name for spec in self.contract.required_fields()]) from None

        header = validate_headers(raw_headers, self.contract)
        self._header = header

        # Row numbers follow the spreadsheet convention: the header is row 1.
        for row_number, values in enumerate(reader, start=2):
            self.statistics.rows_read += 1
            if self.skip_blank_rows and _row_is_blank(values):
                self.statistics.rows_skipped_blank += 1
                continue
            if len(values) != len(header):
                self.statistics.rows_skipped_malformed += 1
                self.malformed_rows.append(
                    CSVRowError(row_number, f"expected {len(header)} columns, found {len(values)}")
                )
                continue

            self.statistics.rows_processed += 1
            yield LegacyRow(
                row_number=row_number,
                values={column: value for column, value in zip(header, values) if column},
            )
