"""
One-time bootstrap administrator grants.

The first administrator of a fresh deployment is named in
``BOOTSTRAP_ADMIN_EMAILS`` and seeded into ``admin_bootstrap_grants`` by
``flask admin seed-bootstrap``. A grant is consumed by the first signup for
its email and records which profile received it.
"""

from __future__ import annotations

import logging
from typing import Iterable

from flask import current_app

from discfinder.models import AdminBootstrapGrant, Profile, UserRole, db
from discfinder.models.base import utc_now

logger = logging.getLogger(__name__)


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def grant_bootstrap_admin(email: str, *, granted_by: str) -> tuple[AdminBootstrapGrant, bool]:
    """
    Record a bootstrap grant for ``email``.

    Returns the grant and whether it was newly created. Flushes, never commits.
    """

    normalized = _normalize_email(email)
    if "@" not in normalized:
        raise ValueError(f"Invalid email address for bootstrap grant: {email!r}")

    grant = AdminBootstrapGrant.query.filter_by(email=normalized).first()
    if grant is not None:
        return grant, False

    grant = AdminBootstrapGrant(email=normalized, granted_by=granted_by)
    db.session.add(grant)
    db.session.flush()
    logger.info("Bootstrap admin grant recorded for %s by %s", normalized, granted_by)
    return grant, True


def seed_bootstrap_grants(emails: Iterable[str] | None = None, *, granted_by: str = "config") -> list[AdminBootstrapGrant]:
    """Seed grants from ``emails`` or the ``BOOTSTRAP_ADMIN_EMAILS`` setting and commit."""

    if emails is None:
        emails = current_app.config.get("BOOTSTRAP_ADMIN_EMAILS", ())
    created = []
    for email in emails:
        grant, was_created = grant_bootstrap_admin(email, granted_by=granted_by)
        if was_created:
            created.append(grant)
    db.session.commit()
    return created


def consume_bootstrap_grant(profile: Profile) -> bool:
    """
    Promote ``profile`` to admin if an unconsumed grant exists for its email.

    Flushes, never commits; the caller's transaction makes the promotion and
    the consumption atomic.
    """

    grant = AdminBootstrapGrant.query.filter_by(email=_normalize_email(profile.email), consumed_at=None).first()
    if grant is None:
        return False

    profile.role = UserRole.ADMIN
    grant.consumed_at = utc_now()
    grant.consumed_by_profile_id = profile.id
    db.session.flush()
    logger.warning(
        "Bootstrap admin grant for %s consumed by profile %s",
        grant.email,
        profile.id,
        extra={"linker_bootstrap_grant_id": grant.id, "linker_profile_id": profile.id},
    )
    return True
