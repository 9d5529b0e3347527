# discfinder/models/__init__.py
"""
Database models package
"""

from .account import UserAccount
from .base import BaseModel, db
from .contact_attempt import ContactAttempt
from .enums import ContactMethod, ReconciliationStatus, ReturnStatus, UserRole
from .found_disc import FoundDisc
from .identity import AdminBootstrapGrant, LinkReconciliationTask
from .importer import ImportEntity, ImportRun, ImportRunStatus
from .profile import PROFILE_ATTRIBUTE_FIELDS, Profile, StagedProfile
from .source import Source

__all__ = [
    "db",
    "BaseModel",
    "UserAccount",
    "Profile",
    "StagedProfile",
    "PROFILE_ATTRIBUTE_FIELDS",
    "Source",
    "FoundDisc",
    "ContactAttempt",
    "AdminBootstrapGrant",
    "LinkReconciliationTask",
    "ImportRun",
    "ImportRunStatus",
    "ImportEntity",
    # Enums
    "UserRole",
    "ReturnStatus",
    "ContactMethod",
    "ReconciliationStatus",
]
