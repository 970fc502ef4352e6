from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import (
    STAFF_HEADER,
    STUDENT_HEADER,
    body_date,
    header_id,
    json_body,
    parse_enum,
    to_jsonable,
)
from ..core.enums import ApproverRole, Decision, ExeatStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .model import Actor


def register(app: Flask, container: Container) -> None:
    service = container.exeat_service

    def _actor(body: dict) -> Actor:
        role = parse_enum(ApproverRole, body.get("role"), "role")
        # Parents act through the consent link and carry no staff identity.
        staff_id = header_id(STAFF_HEADER, required=role != ApproverRole.PARENT)
        return Actor(staff_id=staff_id, role=role)

    def _decide(request_id: int, decision: Decision):
        body = json_body()
        expected = body.get("expected_status")
        result = service.apply_approval(
            request_id=request_id,
            actor=_actor(body),
            decision=decision,
            comment=body.get("comment"),
            method=body.get("method"),
            expected_status=parse_enum(ExeatStatus, expected, "expected_status") if expected else None,
        )
        return jsonify(to_jsonable(result))

    @app.route("/api/exeats", methods=["POST"], endpoint="submit_exeat")
    def submit_exeat():
        body = json_body()
        req = service.submit(
            student_id=header_id(STUDENT_HEADER),
            category=body.get("category") or "",
            reason=body.get("reason") or "",
            destination=body.get("destination") or "",
            departure_date=body_date(body, "departure_date", "Departure date"),
            return_date=body_date(body, "return_date", "Return date"),
            is_medical=bool(body.get("is_medical", False)),
            matric_no=body.get("matric_no"),
            preferred_mode_of_contact=body.get("preferred_mode_of_contact"),
            parent_surname=body.get("parent_surname"),
            parent_othernames=body.get("parent_othernames"),
            parent_phone_no=body.get("parent_phone_no"),
            parent_email=body.get("parent_email"),
            student_accommodation=body.get("student_accommodation"),
        )
        return jsonify(to_jsonable(req)), 201

    @app.route("/api/exeats/<int:request_id>", methods=["GET"], endpoint="get_exeat")
    def get_exeat(request_id: int):
        return jsonify(to_jsonable(service.get(request_id)))

    @app.route("/api/exeats/<int:request_id>/approvals", methods=["GET"], endpoint="exeat_approvals")
    def exeat_approvals(request_id: int):
        return jsonify(to_jsonable(service.list_approvals(request_id)))

    @app.route("/api/students/<int:student_id>/exeats", methods=["GET"], endpoint="student_exeats")
    def student_exeats(student_id: int):
        return jsonify(to_jsonable(service.list_for_student(student_id=student_id)))

    @app.route("/api/exeats/<int:request_id>/approve", methods=["POST"], endpoint="approve_exeat")
    def approve_exeat(request_id: int):
        return _decide(request_id, Decision.APPROVE)

    @app.route("/api/exeats/<int:request_id>/reject", methods=["POST"], endpoint="reject_exeat")
    def reject_exeat(request_id: int):
        return _decide(request_id, Decision.REJECT)

    @app.route("/api/exeats/<int:request_id>/fast-track", methods=["POST"], endpoint="fast_track_exeat")
    def fast_track_exeat(request_id: int):
        body = json_body()
        result = service.fast_track(
            request_id=request_id,
            staff_id=header_id(STAFF_HEADER),
            action=body.get("action") or "",
        )
        return jsonify(to_jsonable(result))

    @app.route("/api/exeats/<int:request_id>/cancel", methods=["POST"], endpoint="cancel_exeat")
    def cancel_exeat(request_id: int):
        req = service.cancel(request_id=request_id, student_id=header_id(STUDENT_HEADER))
        return jsonify(to_jsonable(req))

    @app.route("/api/exeats/<int:request_id>/appeal", methods=["POST"], endpoint="appeal_exeat")
    def appeal_exeat(request_id: int):
        body = json_body()
        req = service.appeal(
            request_id=request_id,
            student_id=header_id(STUDENT_HEADER),
            reason=body.get("appeal_reason") or "",
        )
        return jsonify(to_jsonable(req))

    @app.route("/api/exeats/bulk", methods=["POST"], endpoint="bulk_exeats")
    def bulk_exeats():
        body = json_body()
        ids = body.get("request_ids")
        if not isinstance(ids, list) or not ids:
            raise ValidationError("request_ids must be a non-empty list")
        result = service.bulk_apply(
            request_ids=ids,
            actor=_actor(body),
            decision=parse_enum(Decision, body.get("decision"), "decision"),
            comment=body.get("comment"),
        )
        return jsonify(to_jsonable(result))
