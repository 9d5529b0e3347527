from datetime import date

from discfinder.models import FoundDisc, LinkReconciliationTask, Profile, ReconciliationStatus, ReturnStatus, UserRole, db
from discfinder.services import link_new_identity


def _open_task(make_account, staged_profile_factory):
    make_account("holder@example.com", role=UserRole.USER)
    holder = Profile.query.filter_by(email="holder@example.com").one()
    holder.legacy_row_id = "L-1"
    db.session.commit()
    staged_profile_factory("new@example.com", legacy_row_id="L-1", pdga_number=4242)
    outcome = link_new_identity(make_account("new@example.com"))
    return holder, outcome.reconciliation_task.id


def _found_disc():
    found_disc = FoundDisc(legacy_row_id="R-1", location_found="Swope Park", found_date=date(2023, 1, 15))
    db.session.add(found_disc)
    db.session.commit()
    return found_disc


def test_admin_routes_require_login(client):
    assert client.get("/api/admin/imports/status").status_code == 401


def test_admin_routes_require_admin_role(client, make_account):
    make_account("member@example.com", "correct-horse", role=UserRole.USER)
    client.post("/api/auth/login", json={"email": "member@example.com", "password": "correct-horse"})

    response = client.get("/api/admin/reconciliation")

    assert response.status_code == 403


def test_import_status_reports_progress(admin_client):
    _found_disc()

    response = admin_client.get("/api/admin/imports/status?total=4")

    assert response.status_code == 200
    data = response.get_json()
    assert data["runs"] == []
    assert data["statistics"]["found_discs_total"] == 1
    assert data["progress"]["imported"] == 1
    assert data["progress"]["percent"] == 25.0


def test_list_reconciliation_tasks(admin_client, make_account, staged_profile_factory):
    _, task_id = _open_task(make_account, staged_profile_factory)

    response = admin_client.get("/api/admin/reconciliation")
    unknown = admin_client.get("/api/admin/reconciliation?status=bogus")

    assert [task["id"] for task in response.get_json()["tasks"]] == [task_id]
    assert unknown.status_code == 400


def test_retry_reconciliation_endpoint(admin_client, make_account, staged_profile_factory):
    holder, task_id = _open_task(make_account, staged_profile_factory)

    conflict = admin_client.post(f"/api/admin/reconciliation/{task_id}/retry")
    assert conflict.status_code == 409

    holder.legacy_row_id = None
    db.session.commit()
    response = admin_client.post(f"/api/admin/reconciliation/{task_id}/retry")

    assert response.status_code == 200
    data = response.get_json()
    assert data["task"]["status"] == "resolved"
    assert data["task"]["resolution_notes"] == "Retried by admin@example.com"
    assert data["link"]["profile"]["pdga_number"] == 4242


def test_dismiss_reconciliation_endpoint(admin_client, make_account, staged_profile_factory):
    _, task_id = _open_task(make_account, staged_profile_factory)

    response = admin_client.post(f"/api/admin/reconciliation/{task_id}/dismiss", json={"notes": "Same person"})
    again = admin_client.post(f"/api/admin/reconciliation/{task_id}/dismiss")

    assert response.status_code == 200
    assert db.session.get(LinkReconciliationTask, task_id).status == ReconciliationStatus.DISMISSED
    assert again.status_code == 409


def test_update_return_status(admin_client):
    found_disc = _found_disc()

    response = admin_client.patch(
        f"/api/admin/found-discs/{found_disc.id}/return-status",
        json={"return_status": "Returned to Owner", "notes": "Picked up at the course"},
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data["return_status"] == "Returned to Owner"
    assert data["returned_at"] is not None
    assert data["returned_by_name"] == "Admin User"
    assert data["returned_notes"] == "Picked up at the course"


def test_update_return_status_validation(admin_client):
    found_disc = _found_disc()

    unknown = admin_client.patch(f"/api/admin/found-discs/{found_disc.id}/return-status", json={"return_status": "Lost"})
    missing = admin_client.patch("/api/admin/found-discs/999/return-status", json={"return_status": "Sold"})

    assert unknown.status_code == 400
    assert ReturnStatus.SOLD.value in unknown.get_json()["allowed"]
    assert missing.status_code == 404


def test_back_to_found_clears_return_details(admin_client):
    found_disc = _found_disc()
    url = f"/api/admin/found-discs/{found_disc.id}/return-status"
    admin_client.patch(url, json={"return_status": "Returned to Owner", "notes": "Picked up at the course"})

    response = admin_client.patch(url, json={"return_status": "Found"})

    assert response.status_code == 200
    data = response.get_json()
    assert data["return_status"] == "Found"
    assert data["returned_at"] is None
    assert data["returned_by_name"] is None
    assert data["returned_notes"] is None
