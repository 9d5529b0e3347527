"""Legacy export contracts.

Each contract lists the literal header strings found in the legacy Glide
exports. A required field is satisfied by its own header or by any of its
aliases (``🔒 Row ID`` or plain ``ID`` for the row identifier). Headers not in
a contract are tolerated and ignored; legacy exports carry many columns the
importer has no use for.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from discfinder.models.importer import ImportEntity


@dataclass(frozen=True)
class FieldSpec:
    """Metadata describing one legacy column."""

    name: str
    description: str
    required: bool = False
    aliases: Tuple[str, ...] = ()

    def headers(self) -> Tuple[str, ...]:
        """Return the literal header plus aliases for validation."""

        return (self.name, *self.aliases)


@dataclass(frozen=True)
class LegacyContract:
    entity: ImportEntity
    fields: Tuple[FieldSpec, ...]

    def required_fields(self) -> Tuple[FieldSpec, ...]:
        return tuple(spec for spec in self.fields if spec.required)


ROW_ID_FIELD = FieldSpec(
    name="🔒 Row ID",
    description="Opaque legacy row identifier used as the import idempotence key.",
    aliases=("ID",),
)

PROFILE_CONTRACT = LegacyContract(
    entity=ImportEntity.PROFILES,
    fields=(
        FieldSpec(name="Email", description="Login email; the staging key.", required=True),
        FieldSpec(name="Name", description="Display name."),
        FieldSpec(name="Role", description="admin, user, rakerdiver; anything else maps to guest."),
        ROW_ID_FIELD,
        FieldSpec(name="DefaultSourceRowID", description="Legacy id of the member's default source."),
        FieldSpec(name="PDGA #", description="PDGA membership number."),
        FieldSpec(name="Facebook Profile", description="Facebook profile URL."),
        FieldSpec(name="Instagram", description="Instagram handle."),
        FieldSpec(name="Phone Number for Text Messages", description="SMS number."),
        FieldSpec(name="Phone", description="Voice phone number."),
        FieldSpec(name="Photo", description="Avatar URL."),
    ),
)

FOUND_DISC_CONTRACT = LegacyContract(
    entity=ImportEntity.FOUND_DISCS,
    fields=(
        FieldSpec(
            name=ROW_ID_FIELD.name,
            description=ROW_ID_FIELD.description,
            required=True,
            aliases=ROW_ID_FIELD.aliases,
        ),
        FieldSpec(name="Description", description="Free text; brand, mold and color are extracted from it."),
        FieldSpec(name="Mold", description="Explicit mold overriding the extracted one."),
        FieldSpec(name="SourceID", description="Legacy row id of the source location."),
        FieldSpec(name="Entry Date", description="When the disc was logged."),
        FieldSpec(name="Entered By", description="Name of the person who logged the disc."),
        FieldSpec(name="Returned Date", description="When the disc went back to its owner."),
        FieldSpec(name="Returned By", description="Name of the person who returned it."),
        FieldSpec(name="Image", description="Primary image URL."),
        FieldSpec(name="Image2", description="Secondary image URL."),
        FieldSpec(name="Disc Owner Name", description="Name written on the disc."),
        FieldSpec(name="Disc Owner Phone", description="Phone number written on the disc."),
        FieldSpec(name="Private Identifier", description="Internal marking not shown publicly."),
        FieldSpec(name="Contact Notes", description="Free-text outreach notes."),
        FieldSpec(name="Initial Text Message Sent", description="Body of the first SMS."),
        FieldSpec(name="Initial Text Message Sent Date", description="When the first SMS went out."),
        FieldSpec(name="Last Text Sent", description="Body of the most recent SMS."),
        FieldSpec(name="Last Text Sent Date", description="When the most recent SMS went out."),
        FieldSpec(name="Claimed Proof", description="Owner's proof of ownership."),
        FieldSpec(name="Claimed Date", description="When the owner responded."),
    ),
)

SOURCE_CONTRACT = LegacyContract(
    entity=ImportEntity.SOURCES,
    fields=(
        ROW_ID_FIELD,
        FieldSpec(name="Source", description="Display name.", required=True),
        FieldSpec(name="Sort", description="Sort order."),
        FieldSpec(name="Status", description="Active or Enabled means active."),
        FieldSpec(name="Text Message - Initial", description="Initial SMS template."),
        FieldSpec(name="Text Message - Reminder", description="Reminder SMS template."),
    ),
)

# Contact attempts are fanned out of the found-disc export.
CONTACT_ATTEMPT_CONTRACT = LegacyContract(
    entity=ImportEntity.CONTACT_ATTEMPTS,
    fields=FOUND_DISC_CONTRACT.fields,
)

_CONTRACTS = {
    contract.entity: contract
    for contract in (PROFILE_CONTRACT, FOUND_DISC_CONTRACT, SOURCE_CONTRACT, CONTACT_ATTEMPT_CONTRACT)
}


def get_contract(entity: ImportEntity | str) -> LegacyContract:
    return _CONTRACTS[ImportEntity(entity)]


def normalize_header(header: str | None) -> str:
    """Strip whitespace and a UTF-8 byte-order mark from a header cell."""

    return (header or "").strip().lstrip("\ufeff").strip()
