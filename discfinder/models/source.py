# discfinder/models/source.py

from flask import current_app
from sqlalchemy import Index, func
from sqlalchemy.exc import SQLAlchemyError

from .base import BaseModel, db


class Source(BaseModel):
    """Admin-curated place or event where discs are found or turned in"""

    __tablename__ = "sources"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    sort_order = db.Column(db.Integer, default=0, nullable=False)
    legacy_row_id = db.Column(db.String(100), unique=True, nullable=True, index=True)
    # SMS templates sent to owners
    msg1_found_just_entered = db.Column(db.Text, nullable=True)
    msg2_reminder = db.Column(db.Text, nullable=True)

    found_discs = db.relationship("FoundDisc", back_populates="source")

    __table_args__ = (Index("idx_source_active_sort", "is_active", "sort_order"),)

    def __repr__(self):
        return f"<Source {self.name}>"

    @staticmethod
    def find_by_legacy_id(legacy_row_id):
        """Find source by legacy row id with error handling"""
        if not legacy_row_id:
            return None
        try:
            return Source.query.filter_by(legacy_row_id=legacy_row_id).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding source by legacy id {legacy_row_id}: {str(e)}")
            return None

    @staticmethod
    def find_by_name(name):
        """Case-insensitive lookup by display name"""
        if not name:
            return None
        try:
            return Source.query.filter(func.lower(Source.name) == name.strip().lower()).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding source by name {name}: {str(e)}")
            return None
