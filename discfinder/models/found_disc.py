# discfinder/models/found_disc.py

from sqlalchemy import Enum, Index

from .base import BaseModel, db, utc_now
from .enums import ReturnStatus


class FoundDisc(BaseModel):
    """A physical disc reported found, with its disposition lifecycle"""

    __tablename__ = "found_discs"

    id = db.Column(db.Integer, primary_key=True)
    legacy_row_id = db.Column(db.String(100), unique=True, nullable=True, index=True)
    rack_id = db.Column(db.Integer, unique=True, nullable=True)

    # Reporter is nullable for legacy-imported records
    finder_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)

    # Descriptive attributes
    brand = db.Column(db.String(100), nullable=False, default="Unknown")
    mold = db.Column(db.String(100), nullable=True)
    color = db.Column(db.String(50), nullable=False, default="Unknown")
    condition = db.Column(db.String(50), nullable=True)
    description = db.Column(db.Text, nullable=True)
    private_identifier = db.Column(db.String(200), nullable=True)

    # Owner clues
    name_on_disc = db.Column(db.String(200), nullable=True)
    phone_number = db.Column(db.String(32), nullable=True, index=True)
    owner_email = db.Column(db.String(255), nullable=True)
    owner_pdga_number = db.Column(db.Integer, nullable=True)

    # Where and when
    location_found = db.Column(db.String(500), nullable=False)
    source_id = db.Column(db.Integer, db.ForeignKey("sources.id"), nullable=True)
    found_date = db.Column(db.Date, nullable=False)
    entry_date = db.Column(db.DateTime(timezone=True), nullable=True)
    image_urls = db.Column(db.JSON, nullable=False, default=list)

    # Disposition
    return_status = db.Column(
        Enum(ReturnStatus, name="return_status_enum"),
        default=ReturnStatus.FOUND,
        nullable=False,
        index=True,
    )
    returned_at = db.Column(db.DateTime(timezone=True), nullable=True)
    returned_notes = db.Column(db.Text, nullable=True)

    # Audit: profile reference plus denormalized name for pre-auth legacy data
    entered_by_profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    entered_by_name = db.Column(db.String(200), nullable=True)
    returned_by_profile_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=True)
    returned_by_name = db.Column(db.String(200), nullable=True)

    source = db.relationship("Source", back_populates="found_discs")
    finder = db.relationship("Profile", foreign_keys=[finder_id])
    entered_by = db.relationship("Profile", foreign_keys=[entered_by_profile_id])
    returned_by = db.relationship("Profile", foreign_keys=[returned_by_profile_id])
    contact_attempts = db.relationship(
        "ContactAttempt",
        back_populates="found_disc",
        cascade="all, delete-orphan",
        order_by="ContactAttempt.attempted_at",
    )

    __table_args__ = (Index("idx_found_disc_status_date", "return_status", "found_date"),)

    def __repr__(self):
        return f"<FoundDisc {self.legacy_row_id or self.id} {self.brand} {self.mold or ''}>"

    def update_return_status(self, status, *, notes=None, returned_by=None, returned_by_name=None):
        """Move the disc through its disposition lifecycle."""
        self.return_status = status
        self.returned_notes = notes
        if status == ReturnStatus.FOUND:
            self.returned_at = None
            self.returned_by_profile_id = None
            self.returned_by_name = None
            return
        self.returned_at = utc_now()
        if returned_by is not None:
            self.returned_by_profile_id = returned_by.id
            self.returned_by_name = returned_by.full_name or returned_by.email
        elif returned_by_name:
            self.returned_by_name = returned_by_name

    def to_dict(self):
        return {
            "id": self.id,
            "legacy_row_id": self.legacy_row_id,
            "rack_id": self.rack_id,
            "brand": self.brand,
            "mold": self.mold,
            "color": self.color,
            "description": self.description,
            "location_found": self.location_found,
            "source_id": self.source_id,
            "found_date": self.found_date.isoformat() if self.found_date else None,
            "image_urls": list(self.image_urls or []),
            "return_status": self.return_status.value if self.return_status else None,
            "returned_at": self.returned_at.isoformat() if self.returned_at else None,
            "returned_notes": self.returned_notes,
            "entered_by_name": self.entered_by_name,
            "returned_by_name": self.returned_by_name,
        }
