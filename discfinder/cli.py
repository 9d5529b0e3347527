"""
``flask admin`` commands: bootstrap administrator grants and signup
reconciliation tasks.
"""

from __future__ import annotations

import getpass

import click
from flask.cli import AppGroup
from sqlalchemy.exc import SQLAlchemyError

from discfinder.models import ReconciliationStatus, db
from discfinder.services import (
    ReconciliationError,
    dismiss_reconciliation,
    grant_bootstrap_admin,
    list_reconciliation_tasks,
    retry_reconciliation,
    seed_bootstrap_grants,
)

admin_cli = AppGroup("admin", help="Administrative maintenance commands.")


def _operator() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "cli"


@admin_cli.command("grant-bootstrap")
@click.argument("email")
@click.option("--granted-by", default=None, help="Operator recorded on the grant (defaults to the OS user).")
def grant_bootstrap(email: str, granted_by: str | None):
    """Allow the first signup for EMAIL to become an administrator."""
    try:
        grant, created = grant_bootstrap_admin(email, granted_by=granted_by or _operator())
        db.session.commit()
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise click.ClickException(f"Could not record grant: {exc}") from exc

    if not created:
        state = "consumed" if grant.is_consumed else "pending"
        click.echo(f"Grant for {grant.email} already exists ({state}).")
    else:
        click.echo(f"Bootstrap admin grant recorded for {grant.email}.")


@admin_cli.command("seed-bootstrap")
def seed_bootstrap():
    """Record grants for every address in BOOTSTRAP_ADMIN_EMAILS."""
    try:
        created = seed_bootstrap_grants()
    except (ValueError, SQLAlchemyError) as exc:
        db.session.rollback()
        raise click.ClickException(f"Could not seed bootstrap grants: {exc}") from exc
    click.echo(f"Seeded {len(created)} bootstrap admin grant(s).")


@admin_cli.group("reconciliation")
def reconciliation_group():
    """Review signups whose legacy identity could not be linked."""


@reconciliation_group.command("list")
@click.option(
    "--status",
    type=click.Choice([status.value for status in ReconciliationStatus] + ["all"]),
    default=ReconciliationStatus.OPEN.value,
    show_default=True,
)
@click.option("--limit", default=50, show_default=True, type=int)
def reconciliation_list(status: str, limit: int):
    tasks = list_reconciliation_tasks(None if status == "all" else ReconciliationStatus(status), limit=limit)
    if not tasks:
        click.echo("No reconciliation tasks.")
        return
    for task in tasks:
        click.echo(f"{task.id:>5}  {task.status.value:<9} {task.stage:<6} {task.email}  {task.error_message}")


@reconciliation_group.command("retry")
@click.argument("task_id", type=int)
def reconciliation_retry(task_id: int):
    """Re-apply the staged identity for TASK_ID and resolve it."""
    try:
        outcome = retry_reconciliation(task_id, resolved_by=_operator())
    except ReconciliationError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Task {task_id} resolved; profile {outcome.profile.id} linked for {outcome.profile.email}.")


@reconciliation_group.command("dismiss")
@click.argument("task_id", type=int)
@click.option("--notes", default=None, help="Why the task needs no further action.")
def reconciliation_dismiss(task_id: int, notes: str | None):
    try:
        dismiss_reconciliation(task_id, notes=notes)
    except ReconciliationError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Task {task_id} dismissed.")


def init_admin_cli(app) -> None:
    if admin_cli.name in app.cli.commands:
        app.cli.commands.pop(admin_cli.name)
    app.cli.add_command(admin_cli)
