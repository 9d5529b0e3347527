from discfinder.models import AdminBootstrapGrant, LinkReconciliationTask, Profile, ReconciliationStatus, UserRole, db
from discfinder.services import link_new_identity


def _open_task(make_account, staged_profile_factory):
    make_account("holder@example.com", role=UserRole.USER)
    holder = Profile.query.filter_by(email="holder@example.com").one()
    holder.legacy_row_id = "L-1"
    db.session.commit()
    staged_profile_factory("new@example.com", legacy_row_id="L-1")
    return holder, link_new_identity(make_account("new@example.com")).reconciliation_task.id


def test_grant_bootstrap_command(runner):
    first = runner.invoke(args=["admin", "grant-bootstrap", "Boss@Example.com", "--granted-by", "ops"])
    second = runner.invoke(args=["admin", "grant-bootstrap", "boss@example.com"])

    assert first.exit_code == 0, first.output
    assert "Bootstrap admin grant recorded for boss@example.com." in first.output
    assert "Grant for boss@example.com already exists (pending)." in second.output
    assert AdminBootstrapGrant.query.one().granted_by == "ops"


def test_grant_bootstrap_rejects_invalid_email(runner):
    result = runner.invoke(args=["admin", "grant-bootstrap", "nobody"])

    assert result.exit_code != 0
    assert "Invalid email address" in result.output


def test_seed_bootstrap_command(app, runner):
    app.config["BOOTSTRAP_ADMIN_EMAILS"] = ("one@example.com",)

    result = runner.invoke(args=["admin", "seed-bootstrap"])

    assert result.exit_code == 0, result.output
    assert "Seeded 1 bootstrap admin grant(s)." in result.output


def test_reconciliation_commands(runner, make_account, staged_profile_factory):
    holder, task_id = _open_task(make_account, staged_profile_factory)

    listing = runner.invoke(args=["admin", "reconciliation", "list"])
    assert "new@example.com" in listing.output

    failed = runner.invoke(args=["admin", "reconciliation", "retry", str(task_id)])
    assert failed.exit_code != 0

    holder.legacy_row_id = None
    db.session.commit()
    retried = runner.invoke(args=["admin", "reconciliation", "retry", str(task_id)])

    assert retried.exit_code == 0, retried.output
    assert f"Task {task_id} resolved" in retried.output
    assert db.session.get(LinkReconciliationTask, task_id).status == ReconciliationStatus.RESOLVED
    assert "No reconciliation tasks." in runner.invoke(args=["admin", "reconciliation", "list"]).output


def test_reconciliation_dismiss_command(runner, make_account, staged_profile_factory):
    _, task_id = _open_task(make_account, staged_profile_factory)

    result = runner.invoke(args=["admin", "reconciliation", "dismiss", str(task_id), "--notes", "Duplicate"])
    missing = runner.invoke(args=["admin", "reconciliation", "dismiss", "999"])

    assert result.exit_code == 0, result.output
    assert db.session.get(LinkReconciliationTask, task_id).resolution_notes == "Duplicate"
    assert missing.exit_code != 0
    assert "not found" in missing.output
