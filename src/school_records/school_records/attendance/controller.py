from __future__ import annotations

from flask import Flask

from ..access.memo import LinkageMemo
from ..common.http import int_field, json_body, login_required, ok, principal_from_session, to_payload
from ..container import Container
from ..core.exceptions import ValidationError
from .model import AttendanceEvent


def event_payload(event: AttendanceEvent) -> dict:
    return {**to_payload(event), "status_label": event.status.label}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/class-subjects/<int:class_subject_id>/periods", methods=["GET"], endpoint="list_periods")
    @login_required
    def list_periods(class_subject_id: int):
        return ok(container.attendance_service.list_periods(principal_from_session(), class_subject_id))

    @app.route("/api/class-subjects/<int:class_subject_id>/periods", methods=["POST"], endpoint="add_period")
    @login_required
    def add_period(class_subject_id: int):
        data = json_body()
        period = container.attendance_service.add_period(
            principal_from_session(),
            class_subject_id=class_subject_id,
            period_date=data.get("period_date"),
            label=data.get("label", ""),
        )
        return ok(period, 201)

    @app.route("/api/periods/<int:period_id>", methods=["PUT"], endpoint="update_period")
    @login_required
    def update_period(period_id: int):
        data = json_body()
        period = container.attendance_service.update_period(
            principal_from_session(),
            period_id=period_id,
            period_date=data.get("period_date"),
            label=data.get("label", ""),
        )
        return ok(period)

    @app.route("/api/periods/<int:period_id>", methods=["DELETE"], endpoint="delete_period")
    @login_required
    def delete_period(period_id: int):
        container.attendance_service.delete_period(principal_from_session(), period_id)
        return ok({"period_id": period_id})

    @app.route("/api/periods/<int:period_id>/attendance", methods=["GET"], endpoint="period_attendance")
    @login_required
    def period_attendance(period_id: int):
        events = container.attendance_service.list_period_attendance(principal_from_session(), period_id)
        return ok([event_payload(e) for e in events])

    @app.route("/api/periods/<int:period_id>/attendance", methods=["PUT"], endpoint="save_attendance")
    @login_required
    def save_attendance(period_id: int):
        data = json_body()
        event = container.attendance_service.save_attendance(
            principal_from_session(),
            enrollment_id=int_field(data, "enrollment_id"),
            period_id=period_id,
            status=data.get("status"),
        )
        return ok(event_payload(event))

    @app.route("/api/periods/<int:period_id>/attendance/bulk", methods=["POST"], endpoint="bulk_attendance")
    @login_required
    def bulk_attendance(period_id: int):
        raw = json_body().get("entries")
        if isinstance(raw, dict):
            entries = list(raw.items())
        elif isinstance(raw, list):
            entries = [
                (e.get("enrollment_id"), e.get("status")) if isinstance(e, dict) else (None, None)
                for e in raw
            ]
        else:
            raise ValidationError("entries must be a list or an object")

        result = container.attendance_service.bulk_attendance(
            principal_from_session(),
            period_id=period_id,
            entries=entries,
        )
        return ok(result)

    @app.route("/api/students/<int:student_id>/attendance", methods=["GET"], endpoint="student_attendance")
    @login_required
    def student_attendance(student_id: int):
        report = container.attendance_service.compute_attendance_report(
            principal_from_session(),
            student_id,
            memo=LinkageMemo(),
        )
        return ok(
            {
                "student_id": report.student_id,
                "stats": to_payload(report.stats),
                "events": [event_payload(e) for e in report.events],
            }
        )
