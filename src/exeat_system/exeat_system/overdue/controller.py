from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import STAFF_HEADER, header_id, json_body
from ..core.enums import ApproverRole
from ..core.exceptions import AuthorizationError, ValidationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    sweeps = {
        "expire-overdue": container.sweep_service.run_expiry_sweep,
        "monitor-overdue": container.sweep_service.run_overdue_monitor_sweep,
    }

    @app.route("/api/admin/commands/<name>", methods=["POST"], endpoint="run_command")
    def run_command(name: str):
        staff_id = header_id(STAFF_HEADER)
        if not container.policy.holds(staff_id, ApproverRole.ADMIN):
            raise AuthorizationError("Only admins can run maintenance commands")

        run = sweeps.get(name)
        if run is None:
            raise ValidationError(f"Unknown command: {name}")

        dry_run = json_body().get("dry_run", False)
        if not isinstance(dry_run, bool):
            raise ValidationError("dry_run must be a JSON boolean")

        summary = run(dry_run=dry_run)
        return jsonify(summary.as_dict())
