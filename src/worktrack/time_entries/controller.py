from __future__ import annotations

from flask import Flask, request

from ..common.http import api_view, current_user_id, current_workspace_id, json_ok, login_required, request_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    entries = container.time_entry_service

    @app.route("/api/time-tracking/entries", methods=["GET"], endpoint="time_entries_list")
    @api_view
    def time_entries_list():
        rows = entries.list_entries(
            user_id=current_user_id(),
            workspace_id=current_workspace_id(),
            task_id=request.args.get("taskId"),
            project_id=request.args.get("projectId"),
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
            limit=request.args.get("limit"),
        )
        return json_ok([e.to_dict() for e in rows])

    @app.route("/api/time-tracking/entries/<entry_id>", methods=["DELETE"], endpoint="time_entries_delete")
    @api_view
    def time_entries_delete(entry_id: str):
        entries.delete_entry(user_id=current_user_id(), entry_id=entry_id)
        return json_ok(None, message="Time entry deleted successfully")

    @app.route("/api/time-tracking/entries/<entry_id>", methods=["PUT"], endpoint="time_entries_update")
    @api_view
    def time_entries_update(entry_id: str):
        payload = request_json()
        entry = entries.update_description(
            user_id=current_user_id(),
            entry_id=entry_id,
            description=payload.get("description"),
        )
        return json_ok(entry.to_dict(), message="Time entry updated successfully")

    @app.route("/api/time-tracking/task/<task_id>/total", methods=["GET"], endpoint="time_entries_task_total")
    @api_view
    @login_required
    def time_entries_task_total(task_id: str):
        total = entries.task_total(task_id=task_id, workspace_id=current_workspace_id())
        return json_ok(total.to_dict())

    @app.route("/api/time-tracking/user/<user_id>/filtered", methods=["GET"], endpoint="time_entries_user_filtered")
    @api_view
    @login_required
    def time_entries_user_filtered(user_id: str):
        page = entries.list_user_entries(
            user_id=user_id,
            workspace_id=current_workspace_id(),
            timeframe=request.args.get("timeframe"),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return json_ok(page.to_dict())
