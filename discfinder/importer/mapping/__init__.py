"""Field mapping and normalization for legacy exports."""

from __future__ import annotations

from .dates import parse_legacy_date
from .phone import PhoneResult, normalize_phone, normalize_phone_number
from .records import (
    LegacyContactAttemptRecord,
    LegacyFoundDiscRecord,
    LegacyProfileRecord,
    LegacySourceRecord,
    legacy_row_id,
    map_contact_attempt_records,
    map_found_disc_record,
    map_profile_record,
    map_source_record,
)
from .roles import map_optional_role, map_role, map_source_status, parse_sort_order
from .text import (
    UNKNOWN,
    BrandMold,
    DiscDescriptor,
    clean_string,
    describe_disc,
    extract_brand_and_mold,
    extract_color,
    extract_pdga_number,
    parse_int,
)

__all__ = [
    "UNKNOWN",
    "BrandMold",
    "DiscDescriptor",
    "LegacyContactAttemptRecord",
    "LegacyFoundDiscRecord",
    "LegacyProfileRecord",
    "LegacySourceRecord",
    "PhoneResult",
    "clean_string",
    "describe_disc",
    "extract_brand_and_mold",
    "extract_color",
    "extract_pdga_number",
    "legacy_row_id",
    "map_contact_attempt_records",
    "map_found_disc_record",
    "map_optional_role",
    "map_profile_record",
    "map_role",
    "map_source_record",
    "map_source_status",
    "normalize_phone",
    "normalize_phone_number",
    "parse_int",
    "parse_legacy_date",
    "parse_sort_order",
]
