from __future__ import annotations

import io

import pytest
from flask import Flask

from src.school_records.school_records.attendance.controller import register as register_attendance
from src.school_records.school_records.container import Container
from src.school_records.school_records.common.http import register_error_handlers
from src.school_records.school_records.core.enums import AttendanceStatus
from src.school_records.school_records.grades.controller import register as register_grades
from src.school_records.school_records.justifications.controller import register as register_justifications


@pytest.fixture
def app(tmp_path, guard, roster, grades_repo, attendance_repo, justifications_repo,
        grade_service, report_service, attendance_service, justification_service):
    app = Flask(__name__)
    app.secret_key = "test"
    app.config["TESTING"] = True
    app.config["UPLOAD_DIR"] = str(tmp_path)

    container = Container(
        conn=None,
        guard=guard,
        roster_repo=roster,
        grades_repo=grades_repo,
        attendance_repo=attendance_repo,
        justifications_repo=justifications_repo,
        grade_service=grade_service,
        grade_report_service=report_service,
        attendance_service=attendance_service,
        justification_service=justification_service,
    )
    register_error_handlers(app)
    register_grades(app, container)
    register_attendance(app, container)
    register_justifications(app, container)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, principal):
    with client.session_transaction() as s:
        s["user_id"] = principal.user_id
        s["role"] = principal.role.value
        s["linkage_id"] = principal.linkage_id


@pytest.fixture
def absence(attendance_repo):
    return attendance_repo.put_event(enrollment_id=1000, class_subject_id=100, status=AttendanceStatus.ABSENT)


def test_requires_login(client):
    resp = client.get("/api/students/1/grades")
    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_unknown_role_is_forbidden(client):
    with client.session_transaction() as s:
        s["user_id"] = 5
        s["role"] = "janitor"
    assert client.get("/api/students/1/grades").status_code == 403


def test_grade_entry_and_report(client, people):
    login(client, people.math_teacher)
    resp = client.post("/api/class-subjects/100/grade-items", json={"name": "Test 1", "max_points": 20})
    assert resp.status_code == 201
    item_id = resp.get_json()["data"]["item_id"]

    resp = client.put("/api/grades", json={"enrollment_id": 1000, "item_id": item_id, "points": 18})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["points"] == 18

    login(client, people.parent)
    resp = client.get("/api/students/1/grades")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["student_id"] == 1


def test_forbidden_carries_operation(client, people):
    login(client, people.classmate)
    resp = client.get("/api/students/1/grades")
    body = resp.get_json()

    assert resp.status_code == 403
    assert body["kind"] == "Forbidden"
    assert body["operation"] == "read_grades"


def test_missing_period_is_404(client, people):
    login(client, people.admin)
    resp = client.get("/api/periods/999/attendance")
    body = resp.get_json()

    assert resp.status_code == 404
    assert body["kind"] == "NotFound"
    assert body["entity_id"] == 999


def test_bad_body_is_400(client, people):
    login(client, people.math_teacher)
    resp = client.put("/api/grades", json={"item_id": 1, "points": 3})
    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "ValidationError"


def test_attendance_payload_has_label(client, attendance_repo, people):
    period_id = attendance_repo.create_period(class_subject_id=100, period_date=None, label="2nd")
    login(client, people.math_teacher)

    resp = client.put(f"/api/periods/{period_id}/attendance", json={"enrollment_id": 1000, "status": "Late"})
    data = resp.get_json()["data"]

    assert resp.status_code == 200
    assert data["status"] == "L"
    assert data["status_label"] == "Late"
    assert data["justification"]["decision"] == "UNSUBMITTED"


def test_bulk_attendance_reports_bad_entries(client, attendance_repo, people):
    period_id = attendance_repo.create_period(class_subject_id=100, period_date=None, label="3rd")
    login(client, people.math_teacher)

    resp = client.post(
        f"/api/periods/{period_id}/attendance/bulk",
        json={"entries": {"1000": "P", "1001": "X", "2000": "A"}},
    )
    data = resp.get_json()["data"]

    assert resp.status_code == 200
    assert data["saved"] == 1
    assert len(data["errors"]) == 2


def test_decide_unsubmitted_is_409(client, absence, people):
    login(client, people.math_teacher)
    resp = client.post(f"/api/attendance/{absence.event_id}/justification/decision", json={"decision": "approve"})
    body = resp.get_json()

    assert resp.status_code == 409
    assert body["operation"] == "decide_justification"
    assert body["entity_id"] == absence.event_id


def test_persistent_conflict_is_503(client, absence, justifications_repo, people):
    justifications_repo.conflicts_to_raise = 2
    login(client, people.student)
    resp = client.post(f"/api/attendance/{absence.event_id}/justification", json={"text": "Fever"})

    assert resp.status_code == 503
    assert resp.get_json()["kind"] == "ConflictRetryable"


def test_justification_round_trip(client, absence, tmp_path, people):
    login(client, people.student)
    resp = client.post(
        f"/api/attendance/{absence.event_id}/justification",
        data={"text": "Doctor's note", "file": (io.BytesIO(b"%PDF-1.4 note"), "note.pdf", "application/pdf")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 200
    ref = resp.get_json()["data"]["justification"]["file_reference"]
    assert (tmp_path / ref).read_bytes() == b"%PDF-1.4 note"

    login(client, people.parent)
    resp = client.get(f"/api/attendance/{absence.event_id}/justification/file")
    assert resp.status_code == 200
    assert resp.data == b"%PDF-1.4 note"
    resp.close()

    login(client, people.math_teacher)
    resp = client.post(
        f"/api/attendance/{absence.event_id}/justification/decision",
        json={"decision": "reject", "reason": "Unreadable"},
    )
    assert resp.get_json()["data"]["justification"]["decision"] == "REJECTED"

    login(client, people.math_teacher)
    resp = client.get("/api/justifications?decision=rejected")
    assert [e["event_id"] for e in resp.get_json()["data"]] == [absence.event_id]


def test_rejected_upload_is_not_stored(client, absence, tmp_path, people):
    login(client, people.student)
    resp = client.post(
        f"/api/attendance/{absence.event_id}/justification",
        data={"file": (io.BytesIO(b"MZ"), "virus.exe", "application/octet-stream")},
        content_type="multipart/form-data",
    )
    assert resp.status_code == 400
    assert list(tmp_path.iterdir()) == []


def test_unknown_decision_filter(client, people):
    login(client, people.admin)
    assert client.get("/api/justifications?decision=maybe").status_code == 400


def test_unknown_route_keeps_http_status(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def upload(client, event_id, content, name="note.pdf"):
    return client.post(
        f"/api/attendance/{event_id}/justification",
        data={"file": (io.BytesIO(content), name, "application/pdf")},
        content_type="multipart/form-data",
    )


def test_upload_is_removed_when_saving_fails(client, absence, tmp_path, justification_service, monkeypatch, people):
    def broken(*args, **kwargs):
        raise RuntimeError("MySQL server has gone away")

    monkeypatch.setattr(justification_service, "submit_justification", broken)
    login(client, people.student)

    resp = upload(client, absence.event_id, b"%PDF-1.4 note")
    assert resp.status_code == 500
    assert resp.get_json()["kind"] == "InternalError"
    assert list(tmp_path.iterdir()) == []


def test_resubmitted_file_replaces_rejected_one(client, absence, tmp_path, people):
    login(client, people.student)
    first = upload(client, absence.event_id, b"%PDF-1.4 blurry").get_json()["data"]["justification"]["file_reference"]

    login(client, people.math_teacher)
    client.post(
        f"/api/attendance/{absence.event_id}/justification/decision",
        json={"decision": "reject", "reason": "Unreadable"},
    )

    login(client, people.student)
    resp = upload(client, absence.event_id, b"%PDF-1.4 sharp")
    second = resp.get_json()["data"]["justification"]["file_reference"]

    assert resp.status_code == 200
    assert second != first
    assert [p.name for p in tmp_path.iterdir()] == [second]
    assert (tmp_path / second).read_bytes() == b"%PDF-1.4 sharp"
