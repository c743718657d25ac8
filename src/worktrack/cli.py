"""Flask CLI commands for scheduled jobs.

Example (cron)::

    flask --app worktrack.main compute-attendance --workspace ws_1
    flask --app worktrack.main sweep-targets
"""

from __future__ import annotations

import json

import click
from flask import Flask

from .container import Container
from .core.exceptions import DomainError


def register_commands(app: Flask, container: Container) -> None:
    @app.cli.command("init-db")
    def init_db():
        """Apply schema.sql to the configured database."""
        from .database.bootstrap import apply_schema, list_tables

        db_config = app.config["DB_CONFIG"]
        apply_schema(db_config)
        click.echo(f"OK: schema applied (tables={len(list_tables(db_config))})")

    @app.cli.command("compute-attendance")
    @click.option("--workspace", "workspace_ids", multiple=True, required=True, help="Workspace id (repeatable).")
    @click.option("--date", "day", default=None, help="YYYY-MM-DD, defaults to today (UTC).")
    def compute_attendance(workspace_ids: tuple[str, ...], day: str | None):
        """Recompute daily attendance records."""
        failed = False
        for workspace_id in workspace_ids:
            try:
                result = container.attendance_service.compute_daily(workspace_id=workspace_id, day=day)
            except DomainError as e:
                failed = True
                click.echo(f"{workspace_id}: {e}", err=True)
                continue
            click.echo(
                f"{workspace_id} {result.date}: present={result.present_count} "
                f"absent={result.absent_count} rate={result.attendance_rate:.1f}%"
            )
        if failed:
            raise SystemExit(1)

    @app.cli.command("sweep-targets")
    def sweep_targets():
        """Recompute target statuses."""
        result = container.target_service.batch_update()
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
