from __future__ import annotations

from flask import Flask

from ..common.http import api_view, json_ok, login_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/targets/batch-update", methods=["POST"], endpoint="targets_batch_update")
    @api_view
    @login_required
    def targets_batch_update():
        result = container.target_service.batch_update()
        return json_ok(result.to_dict(), message=result.message)
