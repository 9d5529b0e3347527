"""
SQLAlchemy models for importer run bookkeeping.

Every CLI import records one row here so operators can see which legacy file
was loaded, how many rows landed where, and the first errors encountered.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Enum
from sqlalchemy.orm import Mapped, mapped_column

from ..base import BaseModel, db


class ImportRunStatus(str, enum.Enum):
    """Lifecycle states for an import run."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    PARTIALLY_FAILED = "partially_failed"
    FAILED = "failed"


class ImportEntity(str, enum.Enum):
    """Legacy entity types the importer understands."""

    PROFILES = "profiles"
    FOUND_DISCS = "found_discs"
    SOURCES = "sources"
    CONTACT_ATTEMPTS = "contact_attempts"


class ImportRun(BaseModel):
    """Metadata describing a single importer execution."""

    __tablename__ = "import_runs"

    id: Mapped[int] = mapped_column(primary_key=True)
    entity: Mapped[ImportEntity] = mapped_column(
        Enum(ImportEntity, name="import_entity_enum"),
        nullable=False,
        index=True,
    )
    adapter: Mapped[str] = mapped_column(db.String(50), nullable=False, default="csv")
    source_file: Mapped[str | None] = mapped_column(db.String(1000), nullable=True)
    status: Mapped[ImportRunStatus] = mapped_column(
        Enum(ImportRunStatus, name="import_run_status_enum"),
        nullable=False,
        default=ImportRunStatus.PENDING,
        index=True,
    )
    dry_run: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=False)
    started_at: Mapped[datetime | None] = mapped_column(db.DateTime(timezone=True))
    finished_at: Mapped[datetime | None] = mapped_column(db.DateTime(timezone=True))
    counts_json: Mapped[dict | None] = mapped_column(db.JSON, nullable=True)
    errors_json: Mapped[list | None] = mapped_column(
        db.JSON,
        nullable=True,
        comment="Capped list of row errors (row_number, record_key, message).",
    )
    error_summary: Mapped[str | None] = mapped_column(db.Text, nullable=True)
    ingest_params_json: Mapped[dict | None] = mapped_column(db.JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<ImportRun {self.id} {self.entity} {self.status}>"
