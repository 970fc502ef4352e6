from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import STAFF_HEADER, STUDENT_HEADER, header_id, json_body, to_jsonable
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.debt_service

    @app.route("/api/students/<int:student_id>/debts", methods=["GET"], endpoint="student_debts")
    def student_debts(student_id: int):
        return jsonify(to_jsonable(service.list_for_student(student_id=student_id)))

    @app.route("/api/debts/<int:debt_id>", methods=["GET"], endpoint="get_debt")
    def get_debt(debt_id: int):
        return jsonify(to_jsonable(service.get(debt_id)))

    @app.route("/api/debts/<int:debt_id>/pay", methods=["POST"], endpoint="pay_debt")
    def pay_debt(debt_id: int):
        body = json_body()
        debt = service.mark_paid(
            debt_id=debt_id,
            student_id=header_id(STUDENT_HEADER),
            payment_reference=body.get("payment_reference") or "",
            processing_charge=body.get("processing_charge", 0),
            payment_proof=body.get("payment_proof"),
        )
        return jsonify(to_jsonable(debt))

    @app.route("/api/debts/<int:debt_id>/clear", methods=["POST"], endpoint="clear_debt")
    def clear_debt(debt_id: int):
        body = json_body()
        debt = service.clear(debt_id=debt_id, staff_id=header_id(STAFF_HEADER), notes=body.get("notes") or "")
        return jsonify(to_jsonable(debt))
