"""Importer pipeline helpers."""

from __future__ import annotations

from .contact_attempts import attempt_fingerprint, import_contact_attempts
from .found_discs import (
    FoundDiscImportOutcome,
    ProfileNameResolver,
    backfill_audit_profiles,
    import_found_discs,
    import_legacy_found_disc,
)
from .merge import coalesce_merge, merge
from .profiles import PROFILE_MERGE_FIELDS, ProfileImportOutcome, import_legacy_profile, import_profiles
from .result import ImportResult, RowError, RowThrottle
from .run_service import RunFilters, fail_run, finish_run, list_runs, start_run
from .sources import SourceImportOutcome, create_missing_sources, import_legacy_source, import_sources
from .validation import (
    DataQualityReport,
    ImportProgress,
    UnmappedReference,
    collect_import_statistics,
    compute_import_progress,
    find_duplicate_legacy_ids,
    find_orphan_contact_rows,
    find_unmapped_source_references,
    summarize_source_mapping,
    validate_found_disc_rows,
)

__all__ = [
    "DataQualityReport",
    "FoundDiscImportOutcome",
    "ImportProgress",
    "ImportResult",
    "PROFILE_MERGE_FIELDS",
    "ProfileImportOutcome",
    "ProfileNameResolver",
    "RowError",
    "RowThrottle",
    "RunFilters",
    "SourceImportOutcome",
    "UnmappedReference",
    "attempt_fingerprint",
    "backfill_audit_profiles",
    "coalesce_merge",
    "collect_import_statistics",
    "compute_import_progress",
    "create_missing_sources",
    "fail_run",
    "find_duplicate_legacy_ids",
    "find_orphan_contact_rows",
    "find_unmapped_source_references",
    "finish_run",
    "import_contact_attempts",
    "import_found_discs",
    "import_legacy_found_disc",
    "import_legacy_profile",
    "import_legacy_source",
    "import_profiles",
    "import_sources",
    "list_runs",
    "merge",
    "start_run",
    "summarize_source_mapping",
    "validate_found_disc_rows",
]
