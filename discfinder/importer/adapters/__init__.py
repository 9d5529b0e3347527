"""Importer adapter implementations for legacy exports."""

from __future__ import annotations

from typing import IO

from discfinder.importer.contracts import LegacyContract

from .csv_legacy import (
    CSVAdapterError,
    CSVHeaderError,
    CSVRowError,
    CSVStatistics,
    LegacyCSVAdapter,
    LegacyRow,
    validate_headers,
)
from .glide import GLIDE_PROFILE_COLUMNS, GlideExportAdapter, GlideExportError

ADAPTER_FORMATS = ("csv", "glide")


def build_adapter(file_obj: IO[str], contract: LegacyContract, *, input_format: str = "csv"):
    """Return the adapter for ``input_format`` (``csv`` or ``glide``)."""

    normalized = (input_format or "csv").lower()
    if normalized == "csv":
        return LegacyCSVAdapter(file_obj, contract)
    if normalized == "glide":
        return GlideExportAdapter(file_obj, contract)
    raise CSVAdapterError(f"Unsupported input format '{input_format}'. Expected one of: {', '.join(ADAPTER_FORMATS)}.")


__all__ = [
    "ADAPTER_FORMATS",
    "CSVAdapterError",
    "CSVHeaderError",
    "CSVRowError",
    "CSVStatistics",
    "GLIDE_PROFILE_COLUMNS",
    "GlideExportAdapter",
    "GlideExportError",
    "LegacyCSVAdapter",
    "LegacyRow",
    "build_adapter",
    "validate_headers",
]
