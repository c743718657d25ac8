from __future__ import annotations

from flask import Flask, request

from ..common.http import api_view, current_workspace_id, json_ok, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service

    @app.route("/api/attendance/calculate", methods=["POST"], endpoint="attendance_calculate")
    @api_view
    @login_required
    def attendance_calculate():
        result = attendance.compute_daily(workspace_id=current_workspace_id(), day=request.args.get("date"))
        return json_ok(result.to_dict())

    @app.route("/api/attendance/daily", methods=["GET", "POST"], endpoint="attendance_daily")
    @api_view
    @login_required
    def attendance_daily():
        result = attendance.get_daily(workspace_id=current_workspace_id(), day=request.args.get("date"))
        return json_ok(result.to_dict())

    @app.route("/api/attendance/monthly", methods=["GET", "POST"], endpoint="attendance_monthly")
    @api_view
    @login_required
    def attendance_monthly():
        result = attendance.compute_monthly(workspace_id=current_workspace_id(), month=request.args.get("month"))
        return json_ok(result.to_dict())

    @app.route("/api/attendance/user/<user_id>/monthly", methods=["GET"], endpoint="attendance_user_monthly")
    @api_view
    @login_required
    def attendance_user_monthly(user_id: str):
        result = attendance.user_monthly(
            user_id=user_id,
            workspace_id=current_workspace_id(),
            month=request.args.get("month"),
        )
        return json_ok(result.to_dict())

    @app.route("/api/attendance/user/<user_id>", methods=["GET"], endpoint="attendance_user_history")
    @api_view
    @login_required
    def attendance_user_history(user_id: str):
        result = attendance.user_history(
            user_id=user_id,
            workspace_id=current_workspace_id(),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return json_ok(result.to_dict())
