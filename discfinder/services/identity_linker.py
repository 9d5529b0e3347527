"""
Signup identity linker.

Runs once per newly created ``UserAccount`` and guarantees the account ends
up with exactly one canonical ``Profile``:

* LINKED: a staged legacy identity exists for the email. Its attributes are
  carried onto a new canonical profile and the staged row is deleted in the
  same transaction.
* DIRECT: no staged identity (or linking it failed). A fresh profile is
  created with the signup name and the standard member role, or the admin
  role when an unconsumed bootstrap grant exists for the email.
* EXISTING: the account already has a profile; nothing is written.
* FAILED: even the direct profile could not be written.

A failed link never blocks signup. The link transaction is rolled back, a
``LinkReconciliationTask`` records the failure, and the linker falls through
to the direct path so the person still gets a profile. Operators resolve
open tasks later with :func:`retry_reconciliation`.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from discfinder.importer.metrics import record_identity_link
from discfinder.importer.pipeline.merge import coalesce_merge
from discfinder.models import (
    LinkReconciliationTask,
    Profile,
    ReconciliationStatus,
    StagedProfile,
    UserAccount,
    UserRole,
    db,
)
from discfinder.models.base import utc_now

from .bootstrap import consume_bootstrap_grant

logger = logging.getLogger(__name__)

# Carried from the staged identity onto the canonical profile. full_name and
# role are handled separately.
LINKED_ATTRIBUTE_FIELDS = (
    "legacy_row_id",
    "pdga_number",
    "facebook_profile",
    "instagram_handle",
    "sms_number",
    "phone_number",
    "avatar_url",
    "default_source_id",
)


class LinkState(str, enum.Enum):
    LINKED = "linked"
    DIRECT = "direct"
    EXISTING = "existing"
    FAILED = "failed"


class ReconciliationError(Exception):
    """Raised when a reconciliation task cannot be retried or dismissed."""


@dataclass(frozen=True)
class LinkOutcome:
    state: LinkState
    profile: Profile | None = None
    reconciliation_task: LinkReconciliationTask | None = None

    def as_dict(self):
        return {
            "state": self.state.value,
            "profile": self.profile.to_dict() if self.profile is not None else None,
            "reconciliation_task_id": self.reconciliation_task.id if self.reconciliation_task is not None else None,
        }


def _clean_name(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _link_staged(account: UserAccount, staged: StagedProfile, signup_full_name: str | None) -> Profile:
    profile = Profile(
        account_id=account.id,
        email=account.email,
        full_name=_clean_name(signup_full_name) or staged.full_name,
        role=staged.role if staged.role is not None else UserRole.USER,
    )
    coalesce_merge(profile, staged.attribute_payload(), LINKED_ATTRIBUTE_FIELDS)
    db.session.add(profile)
    db.session.delete(staged)
    db.session.flush()
    consume_bootstrap_grant(profile)
    db.session.commit()
    return profile


def _create_direct(account: UserAccount, signup_full_name: str | None) -> Profile:
    profile = Profile(
        account_id=account.id,
        email=account.email,
        full_name=_clean_name(signup_full_name) or "",
        role=UserRole.USER,
    )
    db.session.add(profile)
    db.session.flush()
    consume_bootstrap_grant(profile)
    db.session.commit()
    return profile


def _record_task(email, account_id, staged_id, exc, *, stage) -> LinkReconciliationTask | None:
    task = LinkReconciliationTask(
        email=email,
        account_id=account_id,
        staged_profile_id=staged_id,
        stage=stage,
        error_message=str(exc) or exc.__class__.__name__,
        status=ReconciliationStatus.OPEN,
    )
    try:
        db.session.add(task)
        db.session.commit()
    except SQLAlchemyError as task_exc:
        db.session.rollback()
        logger.error("Could not record reconciliation task for %s: %s", email, task_exc, exc_info=True)
        return None
    return task


def link_new_identity(account: UserAccount, signup_full_name: str | None = None) -> LinkOutcome:
    """Give ``account`` its canonical profile; see the module docstring for the states."""

    existing = Profile.query.filter_by(account_id=account.id).first()
    if existing is not None:
        record_identity_link(LinkState.EXISTING.value)
        return LinkOutcome(LinkState.EXISTING, existing)

    # The session is rolled back on failure, which expires ORM instances.
    email = account.email
    account_id = account.id
    staged_id = None
    task = None

    try:
        staged = StagedProfile.query.filter_by(email=email).first()
        if staged is not None:
            staged_id = staged.id
            profile = _link_staged(account, staged, signup_full_name)
            logger.info(
                "Linked signup %s to staged identity %s",
                email,
                staged_id,
                extra={"linker_state": LinkState.LINKED.value, "linker_profile_id": profile.id},
            )
            record_identity_link(LinkState.LINKED.value)
            return LinkOutcome(LinkState.LINKED, profile)
    except Exception as exc:
        db.session.rollback()
        logger.warning(
            "Linking signup %s to staged identity %s failed, falling back to direct signup: %s",
            email,
            staged_id,
            exc,
            exc_info=True,
        )
        task = _record_task(email, account_id, staged_id, exc, stage="link")

    account = db.session.get(UserAccount, account_id)
    try:
        profile = _create_direct(account, signup_full_name)
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Direct profile creation for %s failed: %s", email, exc, exc_info=True)
        failed_task = _record_task(email, account_id, staged_id, exc, stage="direct")
        record_identity_link(LinkState.FAILED.value)
        return LinkOutcome(LinkState.FAILED, None, failed_task or task)

    logger.info(
        "Created profile %s for direct signup %s",
        profile.id,
        email,
        extra={"linker_state": LinkState.DIRECT.value, "linker_profile_id": profile.id},
    )
    record_identity_link(LinkState.DIRECT.value)
    return LinkOutcome(LinkState.DIRECT, profile, task)


def list_reconciliation_tasks(status: ReconciliationStatus | None = ReconciliationStatus.OPEN, limit: int = 50):
    query = LinkReconciliationTask.query
    if status is not None:
        query = query.filter(LinkReconciliationTask.status == status)
    return query.order_by(LinkReconciliationTask.id.asc()).limit(max(1, limit)).all()


def _get_open_task(task_id: int) -> LinkReconciliationTask:
    task = db.session.get(LinkReconciliationTask, task_id)
    if task is None:
        raise ReconciliationError(f"Reconciliation task {task_id} not found")
    if task.status != ReconciliationStatus.OPEN:
        raise ReconciliationError(f"Reconciliation task {task_id} is already {task.status.value}")
    return task


def retry_reconciliation(task_id: int, *, resolved_by: str | None = None) -> LinkOutcome:
    """
    Re-apply a failed link.

    The account's profile (created through the direct fallback, or created now
    if it is still missing) absorbs the staged identity's attributes. Values
    already on the profile win, except that the default member role given by
    the direct fallback is replaced by the staged role. The staged row is
    deleted and the task resolved.
    """

    task = _get_open_task(task_id)
    account = task.account or UserAccount.find_by_email(task.email)
    if account is None:
        raise ReconciliationError(f"No account exists for {task.email}")

    profile = Profile.query.filter_by(account_id=account.id).first()
    if profile is None:
        outcome = link_new_identity(account)
        if outcome.state == LinkState.FAILED:
            raise ReconciliationError(f"Profile creation for {task.email} failed again")
        profile = outcome.profile
        task = db.session.get(LinkReconciliationTask, task_id)

    try:
        staged = StagedProfile.query.filter_by(email=account.email).first()
        if staged is not None:
            fill = {name: value for name, value in staged.attribute_payload().items() if getattr(profile, name) in (None, "")}
            fill.pop("role", None)
            coalesce_merge(profile, fill, LINKED_ATTRIBUTE_FIELDS + ("full_name",))
            # The direct fallback only ever assigns the default member role.
            if profile.role == UserRole.USER and staged.role is not None:
                profile.role = staged.role
            db.session.delete(staged)
        task.status = ReconciliationStatus.RESOLVED
        task.resolved_at = utc_now()
        task.resolution_notes = f"Retried by {resolved_by}" if resolved_by else "Retried"
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Retry of reconciliation task %s failed: %s", task_id, exc, exc_info=True)
        raise ReconciliationError(f"Retry failed: {exc}") from exc

    logger.info("Reconciliation task %s resolved for %s", task_id, account.email)
    record_identity_link(LinkState.LINKED.value)
    return LinkOutcome(LinkState.LINKED, profile, task)


def dismiss_reconciliation(task_id: int, *, notes: str | None = None) -> LinkReconciliationTask:
    task = _get_open_task(task_id)
    task.status = ReconciliationStatus.DISMISSED
    task.resolved_at = utc_now()
    task.resolution_notes = notes or "Dismissed"
    db.session.commit()
    return task
