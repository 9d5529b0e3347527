"""
Account registration and authentication.

Registration commits the credential first and only then runs the identity
linker, so a linker failure can never roll back a completed signup.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from discfinder.models import UserAccount, db
from discfinder.models.base import utc_now

from .identity_linker import LinkOutcome, link_new_identity

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class AccountError(Exception):
    """Registration or authentication was refused."""

    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def register_account(email: str, password: str, full_name: str | None = None) -> tuple[UserAccount, LinkOutcome]:
    normalized = (email or "").strip().lower()
    if "@" not in normalized:
        raise AccountError("A valid email address is required")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise AccountError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if UserAccount.find_by_email(normalized) is not None:
        raise AccountError("An account with this email already exists", status_code=409)

    account = UserAccount(email=normalized, is_active=True)
    account.set_password(password)
    try:
        db.session.add(account)
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise AccountError("An account with this email already exists", status_code=409) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Failed to create account for %s: %s", normalized, exc, exc_info=True)
        raise AccountError("Could not create account", status_code=500) from exc

    logger.info("Account %s created for %s", account.id, normalized)
    outcome = link_new_identity(account, full_name)
    return account, outcome


def authenticate(email: str, password: str) -> UserAccount | None:
    account = UserAccount.find_by_email(email)
    if account is None or not account.is_active or not account.check_password(password or ""):
        return None
    try:
        account.last_login = utc_now()
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.warning("Could not record last login for %s: %s", account.email, exc)
    return account
