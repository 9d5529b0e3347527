"""Legacy export contract helpers for importer adapters."""

from __future__ import annotations

from .legacy import (
    CONTACT_ATTEMPT_CONTRACT,
    FOUND_DISC_CONTRACT,
    PROFILE_CONTRACT,
    SOURCE_CONTRACT,
    FieldSpec,
    LegacyContract,
    get_contract,
    normalize_header,
)

__all__ = [
    "FieldSpec",
    "LegacyContract",
    "PROFILE_CONTRACT",
    "FOUND_DISC_CONTRACT",
    "SOURCE_CONTRACT",
    "CONTACT_ATTEMPT_CONTRACT",
    "get_contract",
    "normalize_header",
]
