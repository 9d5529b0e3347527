"""
Result bookkeeping shared by the legacy import pipelines.
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable

from flask import current_app, has_app_context

from discfinder.models import db


@dataclass(frozen=True)
class RowError:
    """A problem with one input row. Never raised; collected on the result."""

    row_number: int | None
    record_key: str | None
    message: str

    def as_dict(self) -> dict[str, object]:
        return {"row_number": self.row_number, "record_key": self.record_key, "message": self.message}

    def __str__(self) -> str:
        location = f"row {self.row_number}" if self.row_number is not None else "row ?"
        key = f" [{self.record_key}]" if self.record_key else ""
        return f"{location}{key}: {self.message}"


@dataclass
class ImportResult:
    """Counts, errors and diagnostics for one import batch."""

    entity: str
    dry_run: bool = False
    counts: Counter = field(default_factory=Counter)
    errors: list[RowError] = field(default_factory=list)
    warnings: list[RowError] = field(default_factory=list)
    unmapped_sources: Counter = field(default_factory=Counter)
    orphans: list[str] = field(default_factory=list)

    def increment(self, key: str, amount: int = 1) -> None:
        self.counts[key] += amount

    def add_error(self, row_number: int | None, record_key: str | None, message: str) -> None:
        self.errors.append(RowError(row_number, record_key, message))
        self.counts["rows_failed"] += 1

    def add_warning(self, row_number: int | None, record_key: str | None, message: str) -> None:
        self.warnings.append(RowError(row_number, record_key, message))

    @property
    def rows_failed(self) -> int:
        return self.counts["rows_failed"]

    @property
    def has_failures(self) -> bool:
        return bool(self.errors)

    def error_preview(self, limit: int = 10) -> list[RowError]:
        return self.errors[:limit]

    def as_dict(self, *, error_limit: int | None = None) -> dict[str, object]:
        errors = self.errors if error_limit is None else self.errors[:error_limit]
        return {
            "entity": self.entity,
            "dry_run": self.dry_run,
            "counts": dict(sorted(self.counts.items())),
            "errors": [error.as_dict() for error in errors],
            "errors_total": len(self.errors),
            "warnings_total": len(self.warnings),
            "unmapped_sources": dict(self.unmapped_sources.most_common()),
            "orphans": list(self.orphans),
        }


class RowThrottle:
    """
    Pause after every ``every`` rows to stay under backend rate limits.

    Correctness never depends on the pause; tests configure a zero delay.
    """

    def __init__(self, delay_seconds: float, every: int, *, sleep: Callable[[float], None] = time.sleep) -> None:
        self.delay_seconds = max(0.0, float(delay_seconds or 0.0))
        self.every = max(1, int(every or 1))
        self._sleep = sleep
        self._seen = 0

    @classmethod
    def from_config(cls) -> "RowThrottle":
        if not has_app_context():
            return cls(0.0, 1)
        config = current_app.config
        return cls(config.get("IMPORTER_ROW_DELAY_SECONDS", 0.0), config.get("IMPORTER_THROTTLE_EVERY", 10))

    def tick(self) -> None:
        self._seen += 1
        if self.delay_seconds and self._seen % self.every == 0:
            self._sleep(self.delay_seconds)


def finish_row(*, dry_run: bool) -> None:
    """Commit the row's work, or discard it on a dry run."""

    if dry_run:
        db.session.rollback()
    else:
        db.session.commit()
