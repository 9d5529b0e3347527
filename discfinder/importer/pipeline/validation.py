"""
Read-only diagnostics over legacy exports and imported data.

Nothing here writes to the database; the importer CLI's ``validate`` and
``status`` commands are thin wrappers around these helpers.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from sqlalchemy import func

from discfinder.importer.adapters import LegacyRow
from discfinder.importer.mapping import clean_string, legacy_row_id, map_contact_attempt_records, parse_legacy_date
from discfinder.models import ContactAttempt, FoundDisc, Source, db


@dataclass(frozen=True)
class UnmappedReference:
    reference: str
    count: int


@dataclass(frozen=True)
class ImportProgress:
    total: int
    imported: int

    @property
    def remaining(self) -> int:
        return max(0, self.total - self.imported)

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 0.0
        return round(self.imported / self.total * 100, 1)

    def as_dict(self) -> dict[str, object]:
        return {"total": self.total, "imported": self.imported, "remaining": self.remaining, "percent": self.percent}


@dataclass
class DataQualityReport:
    total_rows: int = 0
    issues: Counter = field(default_factory=Counter)
    duplicate_row_ids: dict[str, int] = field(default_factory=dict)
    invalid_dates: list[tuple[str | None, str, str]] = field(default_factory=list)

    def as_dict(self, *, sample_limit: int = 10) -> dict[str, object]:
        return {
            "total_rows": self.total_rows,
            "issues": dict(sorted(self.issues.items())),
            "duplicate_row_ids": dict(self.duplicate_row_ids),
            "invalid_dates": [
                {"row_id": row_id, "column": column, "value": value}
                for row_id, column, value in self.invalid_dates[:sample_limit]
            ],
        }


def find_duplicate_legacy_ids(legacy_ids: Iterable[str | None]) -> dict[str, int]:
    """Ids seen more than once within one batch, in first-seen order."""

    counts: Counter = Counter()
    order: list[str] = []
    for legacy_id in legacy_ids:
        if not legacy_id:
            continue
        if legacy_id not in counts:
            order.append(legacy_id)
        counts[legacy_id] += 1
    return {legacy_id: counts[legacy_id] for legacy_id in order if counts[legacy_id] > 1}


def _known_source_ids() -> set[str]:
    rows = db.session.query(Source.legacy_row_id).filter(Source.legacy_row_id.isnot(None)).all()
    return {row[0] for row in rows}


def find_unmapped_source_references(references: Iterable[str | None]) -> list[UnmappedReference]:
    """
    Legacy source references that match no source, most used first.

    Ties are broken by reference so the report is stable.
    """

    usage = Counter(reference for reference in references if reference)
    known = _known_source_ids()
    unmapped = [UnmappedReference(reference, count) for reference, count in usage.items() if reference not in known]
    return sorted(unmapped, key=lambda item: (-item.count, item.reference))


def summarize_source_mapping(references: Iterable[str | None], *, top: int = 10) -> dict[str, object]:
    refs = [reference for reference in references if reference]
    usage = Counter(refs)
    known = _known_source_ids()
    unmapped = find_unmapped_source_references(refs)
    return {
        "distinct_references": len(usage),
        "mapped_references": sum(1 for reference in usage if reference in known),
        "unmapped_references": len(unmapped),
        "rows_with_unmapped_reference": sum(item.count for item in unmapped),
        "top_references": [{"reference": ref, "count": count} for ref, count in usage.most_common(top)],
        "top_unmapped": [{"reference": item.reference, "count": item.count} for item in unmapped[:top]],
    }


def compute_import_progress(external_total: int, model=FoundDisc) -> ImportProgress:
    """Compare an external record count with rows carrying a legacy id."""

    imported = db.session.query(func.count(model.id)).filter(model.legacy_row_id.isnot(None)).scalar() or 0
    return ImportProgress(total=external_total, imported=int(imported))


def collect_import_statistics() -> dict[str, int]:
    """Counts for the imported found-disc set that a bare ratio does not show."""

    total = db.session.query(func.count(FoundDisc.id)).scalar() or 0
    legacy = db.session.query(func.count(FoundDisc.id)).filter(FoundDisc.legacy_row_id.isnot(None)).scalar() or 0
    with_contacts = db.session.query(func.count(func.distinct(ContactAttempt.found_disc_id))).scalar() or 0
    with_images = sum(1 for (urls,) in db.session.query(FoundDisc.image_urls).all() if urls)
    unmapped_source = (
        db.session.query(func.count(FoundDisc.id))
        .filter(FoundDisc.legacy_row_id.isnot(None), FoundDisc.source_id.is_(None))
        .scalar()
        or 0
    )
    return {
        "found_discs_total": int(total),
        "found_discs_legacy": int(legacy),
        "found_discs_with_images": int(with_images),
        "found_discs_with_contact_attempts": int(with_contacts),
        "found_discs_without_source": int(unmapped_source),
        "contact_attempts_total": int(db.session.query(func.count(ContactAttempt.id)).scalar() or 0),
    }


_DATE_COLUMNS = ("Entry Date", "Returned Date")


def validate_found_disc_rows(rows: Iterable[LegacyRow]) -> DataQualityReport:
    report = DataQualityReport()
    row_ids: list[str | None] = []

    for row in rows:
        report.total_rows += 1
        row_id = legacy_row_id(row.values)
        row_ids.append(row_id)
        if row_id is None:
            report.issues["missing_row_id"] += 1
        if clean_string(row.get("Description")) is None:
            report.issues["missing_description"] += 1
        if clean_string(row.get("SourceID")) is None:
            report.issues["missing_source_id"] += 1
        if clean_string(row.get("Image")) is None and clean_string(row.get("Image2")) is None:
            report.issues["missing_images"] += 1
        for column in _DATE_COLUMNS:
            raw = clean_string(row.get(column))
            if raw is not None and parse_legacy_date(raw) is None:
                report.issues["invalid_dates"] += 1
                report.invalid_dates.append((row_id, column, raw))

    report.duplicate_row_ids = find_duplicate_legacy_ids(row_ids)
    if report.duplicate_row_ids:
        report.issues["duplicate_row_ids"] = len(report.duplicate_row_ids)
    return report


def find_orphan_contact_rows(rows: Iterable[LegacyRow | Mapping[str, object]]) -> list[str]:
    """Legacy ids carrying contact history that have no imported found disc."""

    row_ids: list[str] = []
    seen: set[str] = set()
    for row in rows:
        values = row.values if isinstance(row, LegacyRow) else row
        row_id = legacy_row_id(values)
        if not row_id or row_id in seen or not map_contact_attempt_records(values):
            continue
        seen.add(row_id)
        row_ids.append(row_id)
    if not row_ids:
        return []
    imported = {
        value
        for (value,) in db.session.query(FoundDisc.legacy_row_id).filter(FoundDisc.legacy_row_id.in_(row_ids)).all()
    }
    return [row_id for row_id in row_ids if row_id not in imported]
