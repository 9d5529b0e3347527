"""
Importer-specific SQLAlchemy models.
"""

from .schema import ImportEntity, ImportRun, ImportRunStatus

__all__ = ["ImportEntity", "ImportRun", "ImportRunStatus"]
