# discfinder/models/enums.py

"""
Controlled vocabularies shared by the models, importer, and routes.
"""

import enum


class UserRole(str, enum.Enum):
    """Role tag carried by every identity, ordered from least to most privileged."""

    GUEST = "guest"
    USER = "user"
    RAKERDIVER = "rakerdiver"
    ADMIN = "admin"

    @property
    def is_elevated(self):
        return self is UserRole.ADMIN


class ReturnStatus(str, enum.Enum):
    """Disposition lifecycle of a found disc"""

    FOUND = "Found"
    RETURNED_TO_OWNER = "Returned to Owner"
    DONATED = "Donated"
    SOLD = "Sold"
    TRASHED = "Trashed"
    FOR_SALE_USED = "For Sale Used"

    @classmethod
    def from_label(cls, value):
        """Resolve either the display label or the member name; None when unknown."""
        if value is None:
            return None
        token = str(value).strip()
        for member in cls:
            if token.lower() in (member.value.lower(), member.name.lower()):
                return member
        return None


class ContactMethod(str, enum.Enum):
    SMS = "SMS"
    PHONE = "Phone"
    EMAIL = "Email"
    IN_PERSON = "In Person"
    NOTES = "Notes"
    RESPONSE = "Response"


class ReconciliationStatus(str, enum.Enum):
    """Review state of a failed signup link awaiting an operator"""

    OPEN = "open"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"
