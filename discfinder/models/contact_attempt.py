# discfinder/models/contact_attempt.py

from sqlalchemy import Enum, Index

from .base import BaseModel, db
from .enums import ContactMethod


class ContactAttempt(BaseModel):
    """Append-only log of one attempt to reach a disc owner"""

    __tablename__ = "contact_attempts"

    id = db.Column(db.Integer, primary_key=True)
    found_disc_id = db.Column(
        db.Integer,
        db.ForeignKey("found_discs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    attempted_at = db.Column(db.DateTime(timezone=True), nullable=False)
    contact_method = db.Column(Enum(ContactMethod, name="contact_method_enum"), nullable=False)
    message_content = db.Column(db.Text, nullable=True)
    attempted_by_profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    attempted_by_name = db.Column(db.String(200), nullable=True)
    response_received = db.Column(db.Boolean, default=False, nullable=False)
    response_content = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    # sha256 of disc/method/time/content; indexed but not unique so duplicates can be allowed
    fingerprint = db.Column(db.String(64), nullable=True)

    found_disc = db.relationship("FoundDisc", back_populates="contact_attempts")
    attempted_by = db.relationship("Profile")

    __table_args__ = (Index("idx_contact_attempt_fingerprint", "fingerprint"),)

    def __repr__(self):
        return f"<ContactAttempt {self.contact_method} disc={self.found_disc_id}>"
