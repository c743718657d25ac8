from __future__ import annotations

from flask import Flask

from ..common.http import api_view, current_user_id, current_workspace_id, json_ok, rate_limited, request_json
from ..container import Container


def register(app: Flask, container: Container) -> None:
    timers = container.timer_service

    @app.route("/api/time-tracking/start", methods=["POST"], endpoint="timer_start")
    @api_view
    @rate_limited("timer")
    def timer_start():
        user_id = current_user_id()
        payload = request_json()
        timer = timers.start(
            user_id=user_id,
            workspace_id=current_workspace_id(),
            task_id=str(payload.get("taskId") or payload.get("task_id") or ""),
            description=payload.get("description") or "",
        )
        return json_ok(timer.to_dict(now=container.clock.now()), message="Timer started successfully")

    @app.route("/api/time-tracking/resume/<entry_id>", methods=["POST"], endpoint="timer_resume")
    @api_view
    @rate_limited("timer")
    def timer_resume(entry_id: str):
        timer = timers.resume(entry_id=entry_id, user_id=current_user_id(), workspace_id=current_workspace_id())
        return json_ok(timer.to_dict(now=container.clock.now()), message="Timer resumed successfully")

    @app.route("/api/time-tracking/stop/<timer_id>", methods=["POST"], endpoint="timer_stop")
    @api_view
    @rate_limited("timer")
    def timer_stop(timer_id: str):
        entry = timers.stop(
            timer_id=timer_id,
            user_id=current_user_id(),
            workspace_id=current_workspace_id(required=False),
        )
        return json_ok(entry.to_dict(), message="Timer stopped successfully")

    @app.route("/api/time-tracking/active", methods=["GET"], endpoint="timer_active")
    @api_view
    def timer_active():
        timer = timers.get_active(current_user_id())
        if timer is None:
            return json_ok(None)
        return json_ok(timer.to_dict(now=container.clock.now()))
