# discfinder/models/identity.py

"""
Bookkeeping tables for the signup identity linker: bootstrap administrator
grants and reconciliation tasks recorded when a link attempt fails.
"""

from sqlalchemy import Enum

from .base import BaseModel, db
from .enums import ReconciliationStatus


class AdminBootstrapGrant(BaseModel):
    """One-time elevated-role grant consumed by the first signup for an email"""

    __tablename__ = "admin_bootstrap_grants"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    granted_by = db.Column(db.String(200), nullable=False)
    consumed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    consumed_by_profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    consumed_by = db.relationship("Profile")

    def __repr__(self):
        return f"<AdminBootstrapGrant {self.email}>"

    @property
    def is_consumed(self):
        return self.consumed_at is not None


class LinkReconciliationTask(BaseModel):
    """Failed staged-to-canonical link awaiting operator review"""

    __tablename__ = "link_reconciliation_tasks"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    account_id = db.Column(db.Integer, db.ForeignKey("user_accounts.id"), nullable=True)
    # Plain integer: the staged row may be gone by the time someone looks
    staged_profile_id = db.Column(db.Integer, nullable=True)
    stage = db.Column(db.String(50), nullable=False, default="link")
    error_message = db.Column(db.Text, nullable=False)
    status = db.Column(
        Enum(ReconciliationStatus, name="reconciliation_status_enum"),
        default=ReconciliationStatus.OPEN,
        nullable=False,
        index=True,
    )
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    resolution_notes = db.Column(db.Text, nullable=True)

    account = db.relationship("UserAccount")

    def __repr__(self):
        return f"<LinkReconciliationTask {self.id} {self.email} {self.status}>"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "account_id": self.account_id,
            "staged_profile_id": self.staged_profile_id,
            "stage": self.stage,
            "error_message": self.error_message,
            "status": self.status.value if self.status else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "resolution_notes": self.resolution_notes,
        }
