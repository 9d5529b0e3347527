# discfinder/models/profile.py

from flask import current_app
from sqlalchemy import Enum
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseModel, db
from .enums import UserRole

# Optional legacy attributes shared by canonical and staged identities.
PROFILE_ATTRIBUTE_FIELDS = (
    "full_name",
    "role",
    "legacy_row_id",
    "pdga_number",
    "facebook_profile",
    "instagram_handle",
    "sms_number",
    "phone_number",
    "avatar_url",
    "default_source_id",
)


class ProfileAttributesMixin:
    full_name = db.Column(db.String(200), nullable=True)
    pdga_number = db.Column(db.Integer, nullable=True)
    facebook_profile = db.Column(db.String(500), nullable=True)
    instagram_handle = db.Column(db.String(200), nullable=True)
    sms_number = db.Column(db.String(32), nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)
    avatar_url = db.Column(db.String(1000), nullable=True)

    def attribute_payload(self):
        return {field: getattr(self, field) for field in PROFILE_ATTRIBUTE_FIELDS}


class Profile(ProfileAttributesMixin, BaseModel):
    """Canonical identity: an active person linked to a credential"""

    __tablename__ = "profiles"

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("user_accounts.id"), unique=True, nullable=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    role = db.Column(
        Enum(UserRole, name="user_role_enum"),
        default=UserRole.USER,
        nullable=False,
        index=True,
    )
    legacy_row_id = db.Column(db.String(100), unique=True, nullable=True, index=True)
    default_source_id = db.Column(db.Integer, db.ForeignKey("sources.id"), nullable=True)

    account = db.relationship("UserAccount", back_populates="profile")
    default_source = db.relationship("Source")

    def __repr__(self):
        return f"<Profile {self.email}>"

    @staticmethod
    def find_by_email(email):
        """Find profile by email with error handling"""
        try:
            return Profile.query.filter_by(email=email).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding profile by email {email}: {str(e)}")
            return None

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role.value if self.role else None,
            "legacy_row_id": self.legacy_row_id,
            "pdga_number": self.pdga_number,
            "facebook_profile": self.facebook_profile,
            "instagram_handle": self.instagram_handle,
            "sms_number": self.sms_number,
            "phone_number": self.phone_number,
            "avatar_url": self.avatar_url,
            "default_source_id": self.default_source_id,
        }


class StagedProfile(ProfileAttributesMixin, BaseModel):
    """Staged identity: a legacy person who has not signed up yet"""

    __tablename__ = "imported_profiles_staging"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    role = db.Column(Enum(UserRole, name="user_role_enum"), default=UserRole.GUEST, nullable=False)
    legacy_row_id = db.Column(db.String(100), nullable=True, index=True)
    default_source_id = db.Column(db.Integer, db.ForeignKey("sources.id"), nullable=True)
    needs_activation = db.Column(db.Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<StagedProfile {self.email}>"
