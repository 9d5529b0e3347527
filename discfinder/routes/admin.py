# discfinder/routes/admin.py

"""
Administrator JSON endpoints: import progress, identity reconciliation and
found-disc disposition changes.
"""

from flask import current_app, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from discfinder.importer.pipeline import RunFilters, collect_import_statistics, compute_import_progress, list_runs
from discfinder.models import FoundDisc, ReconciliationStatus, ReturnStatus, db
from discfinder.services import (
    ReconciliationError,
    dismiss_reconciliation,
    list_reconciliation_tasks,
    retry_reconciliation,
)
from discfinder.utils.permissions import admin_required


def _run_to_dict(run):
    return {
        "id": run.id,
        "entity": run.entity.value,
        "adapter": run.adapter,
        "status": run.status.value,
        "dry_run": run.dry_run,
        "source_file": run.source_file,
        "started_at": run.started_at.isoformat() if run.started_at else None,
        "finished_at": run.finished_at.isoformat() if run.finished_at else None,
        "counts": run.counts_json or {},
        "error_summary": run.error_summary,
    }


def register_admin_routes(app):
    """Register admin routes"""

    @app.route("/api/admin/imports/status", methods=["GET"])
    @admin_required
    def api_import_status():
        """Recent runs and found-disc progress; ``?total=N`` adds a progress ratio."""
        try:
            payload = {
                "runs": [_run_to_dict(run) for run in list_runs(RunFilters(limit=request.args.get("limit", 20, type=int)))],
                "statistics": collect_import_statistics(),
            }
            total = request.args.get("total", type=int)
            if total is not None:
                payload["progress"] = compute_import_progress(total).as_dict()
            return jsonify(payload)
        except SQLAlchemyError as e:
            current_app.logger.error(f"Error loading import status: {str(e)}", exc_info=True)
            return jsonify({"error": "An error occurred while loading import status"}), 500

    @app.route("/api/admin/reconciliation", methods=["GET"])
    @admin_required
    def api_reconciliation_tasks():
        status_arg = request.args.get("status", ReconciliationStatus.OPEN.value)
        if status_arg == "all":
            status = None
        else:
            try:
                status = ReconciliationStatus(status_arg)
            except ValueError:
                return jsonify({"error": f"Unknown status '{status_arg}'"}), 400
        tasks = list_reconciliation_tasks(status, limit=request.args.get("limit", 50, type=int))
        return jsonify({"tasks": [task.to_dict() for task in tasks]})

    @app.route("/api/admin/reconciliation/<int:task_id>/retry", methods=["POST"])
    @admin_required
    def api_retry_reconciliation(task_id):
        try:
            outcome = retry_reconciliation(task_id, resolved_by=current_user.email)
        except ReconciliationError as e:
            return jsonify({"error": str(e)}), 409
        current_app.logger.info(f"Reconciliation task {task_id} retried by {current_user.email}")
        return jsonify({"task": outcome.reconciliation_task.to_dict(), "link": outcome.as_dict()})

    @app.route("/api/admin/reconciliation/<int:task_id>/dismiss", methods=["POST"])
    @admin_required
    def api_dismiss_reconciliation(task_id):
        payload = request.get_json(silent=True) or {}
        try:
            task = dismiss_reconciliation(task_id, notes=payload.get("notes"))
        except ReconciliationError as e:
            return jsonify({"error": str(e)}), 409
        return jsonify({"task": task.to_dict()})

    @app.route("/api/admin/found-discs/<int:disc_id>/return-status", methods=["PATCH"])
    @admin_required
    def api_update_return_status(disc_id):
        found_disc = db.session.get(FoundDisc, disc_id)
        if found_disc is None:
            return jsonify({"error": "Found disc not found"}), 404

        payload = request.get_json(silent=True) or {}
        status = ReturnStatus.from_label(payload.get("return_status"))
        if status is None:
            allowed = [member.value for member in ReturnStatus]
            return jsonify({"error": "Unknown return status", "allowed": allowed}), 400

        try:
            found_disc.update_return_status(
                status,
                notes=payload.get("notes"),
                returned_by=current_user.profile,
            )
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Error updating return status for disc {disc_id}: {str(e)}", exc_info=True)
            return jsonify({"error": "An error occurred while updating the disc"}), 500
        return jsonify(found_disc.to_dict())
