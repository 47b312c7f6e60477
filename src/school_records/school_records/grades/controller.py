from __future__ import annotations

from flask import Flask, request

from ..access.memo import LinkageMemo
from ..common.http import int_field, json_body, login_required, ok, principal_from_session
from ..container import Container
from ..core.constants import DEFAULT_GRADE_WEIGHT


def register(app: Flask, container: Container) -> None:
    @app.route("/api/class-subjects/<int:class_subject_id>/grade-items", methods=["GET"], endpoint="list_grade_items")
    @login_required
    def list_grade_items(class_subject_id: int):
        items = container.grade_service.list_grade_items(principal_from_session(), class_subject_id)
        return ok(items)

    @app.route("/api/class-subjects/<int:class_subject_id>/grade-items", methods=["POST"], endpoint="add_grade_item")
    @login_required
    def add_grade_item(class_subject_id: int):
        data = json_body()
        item = container.grade_service.add_grade_item(
            principal_from_session(),
            class_subject_id=class_subject_id,
            name=data.get("name", ""),
            max_points=data.get("max_points"),
            weight=data.get("weight", DEFAULT_GRADE_WEIGHT),
        )
        return ok(item, 201)

    @app.route("/api/grade-items/<int:item_id>", methods=["PUT"], endpoint="update_grade_item")
    @login_required
    def update_grade_item(item_id: int):
        data = json_body()
        item = container.grade_service.update_grade_item(
            principal_from_session(),
            item_id=item_id,
            name=data.get("name", ""),
            max_points=data.get("max_points"),
            weight=data.get("weight", DEFAULT_GRADE_WEIGHT),
        )
        return ok(item)

    @app.route("/api/grade-items/<int:item_id>", methods=["DELETE"], endpoint="delete_grade_item")
    @login_required
    def delete_grade_item(item_id: int):
        container.grade_service.delete_grade_item(principal_from_session(), item_id)
        return ok({"item_id": item_id})

    @app.route("/api/grades", methods=["PUT"], endpoint="save_grade")
    @login_required
    def save_grade():
        data = json_body()
        grade = container.grade_service.save_grade(
            principal_from_session(),
            enrollment_id=int_field(data, "enrollment_id"),
            item_id=int_field(data, "item_id"),
            points=data.get("points"),
            comment=data.get("comment"),
        )
        return ok(grade)

    @app.route("/api/students/<int:student_id>/grades", methods=["GET"], endpoint="student_grades")
    @login_required
    def student_grades(student_id: int):
        report = container.grade_report_service.compute_grade_report(
            principal_from_session(),
            student_id,
            request.args.get("class_id", type=int),
            memo=LinkageMemo(),
        )
        return ok(report)

    @app.route("/api/class-subjects/<int:class_subject_id>/grade-report", methods=["GET"], endpoint="class_subject_grades")
    @login_required
    def class_subject_grades(class_subject_id: int):
        report = container.grade_report_service.compute_class_subject_report(principal_from_session(), class_subject_id)
        return ok(report)
