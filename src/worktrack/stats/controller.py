from __future__ import annotations

from flask import Flask, request

from ..common.http import api_view, current_user_id, current_workspace_id, json_ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/time-tracking/stats", methods=["GET"], endpoint="time_tracking_stats")
    @api_view
    def time_tracking_stats():
        caller_id = current_user_id()
        stats = container.stats_service.dashboard(
            user_id=request.args.get("userId") or caller_id,
            workspace_id=current_workspace_id(),
            timeframe=request.args.get("timeframe"),
        )
        return json_ok(stats.to_dict())
