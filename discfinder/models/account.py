# discfinder/models/account.py

from flask import current_app
from flask_login import UserMixin
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from .base import BaseModel, db
from .enums import UserRole


class UserAccount(BaseModel, UserMixin):
    """Authentication credential backing a canonical profile"""

    __tablename__ = "user_accounts"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    last_login = db.Column(db.DateTime(timezone=True), nullable=True)

    profile = db.relationship("Profile", back_populates="account", uselist=False)

    def __repr__(self):
        return f"<UserAccount {self.email}>"

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def role(self):
        if self.profile is None or self.profile.role is None:
            return UserRole.GUEST
        return self.profile.role

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    @staticmethod
    def find_by_email(email):
        """Find account by email with error handling"""
        if not email:
            return None
        try:
            return UserAccount.query.filter_by(email=email.strip().lower()).first()
        except SQLAlchemyError as e:
            current_app.logger.error(f"Database error finding account by email {email}: {str(e)}")
            return None
