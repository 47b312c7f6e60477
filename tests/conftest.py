from __future__ import annotations

import dataclasses
from datetime import date
from types import SimpleNamespace

import pytest

from src.school_records.school_records.access.guard import AccessGuard
from src.school_records.school_records.access.model import Principal
from src.school_records.school_records.attendance.model import AttendanceEvent, Period
from src.school_records.school_records.attendance.service import AttendanceService
from src.school_records.school_records.core.enums import AttendanceStatus, JustificationDecision, Role
from src.school_records.school_records.core.exceptions import ConflictRetryable, InvalidTransition, NotFound
from src.school_records.school_records.grades.model import Grade, GradeItem, GradeReportRow
from src.school_records.school_records.grades.report_service import GradeReportService
from src.school_records.school_records.grades.service import GradeService
from src.school_records.school_records.justifications.model import Justification
from src.school_records.school_records.justifications.service import JustificationService
from src.school_records.school_records.roster.model import ClassSubject, Enrollment


class FakeRoster:
    """Two classes, three class subjects, three students, one linked parent."""

    def __init__(self):
        self.class_codes = {10: "1A", 20: "2B"}
        self.class_subjects = {
            100: ClassSubject(100, class_id=10, subject_id=1, teacher_id=7, subject_name="Math", class_code="1A"),
            101: ClassSubject(101, class_id=10, subject_id=2, teacher_id=8, subject_name="Physics", class_code="1A"),
            200: ClassSubject(200, class_id=20, subject_id=1, teacher_id=8, subject_name="Math", class_code="2B"),
        }
        self.enrollments = {
            1000: Enrollment(1000, student_id=1, class_id=10),
            1001: Enrollment(1001, student_id=2, class_id=10),
            2000: Enrollment(2000, student_id=3, class_id=20),
        }
        self.parent_links = {(1, 50)}
        self.parent_lookups = 0

    def get_enrollment(self, enrollment_id):
        return self.enrollments.get(int(enrollment_id))

    def get_class_subject(self, class_subject_id):
        return self.class_subjects.get(int(class_subject_id))

    def list_enrollments_for_class(self, class_id):
        return [e for e in self.enrollments.values() if e.class_id == int(class_id)]

    def list_enrollments_for_student(self, student_id):
        return [e for e in self.enrollments.values() if e.student_id == int(student_id)]

    def list_parent_ids_for_student(self, student_id):
        self.parent_lookups += 1
        return [p for s, p in self.parent_links if s == int(student_id)]

    def list_student_ids_for_parent(self, parent_id):
        return [s for s, p in self.parent_links if p == int(parent_id)]


class FakeGradeRepo:
    def __init__(self, roster: FakeRoster):
        self._roster = roster
        self._next_item = 1
        self._next_grade = 1
        self.items: dict[int, GradeItem] = {}
        self.grades: dict[tuple, Grade] = {}

    def get_grade_item(self, item_id):
        return self.items.get(int(item_id))

    def list_grade_items_for_class_subject(self, class_subject_id):
        return [i for i in self.items.values() if i.class_subject_id == int(class_subject_id)]

    def create_grade_item(self, *, class_subject_id, name, max_points, weight):
        item_id = self._next_item
        self._next_item += 1
        self.items[item_id] = GradeItem(item_id, int(class_subject_id), name, float(max_points), float(weight))
        return item_id

    def update_grade_item(self, *, item_id, name, max_points, weight):
        old = self.items[int(item_id)]
        self.items[int(item_id)] = GradeItem(old.item_id, old.class_subject_id, name, float(max_points), float(weight))
        return True

    def delete_grade_item(self, item_id):
        self.grades = {k: g for k, g in self.grades.items() if g.item_id != int(item_id)}
        return self.items.pop(int(item_id), None) is not None

    def highest_points_for_item(self, item_id):
        points = [g.points for g in self.grades.values() if g.item_id == int(item_id)]
        return max(points) if points else None

    def upsert_grade(self, *, enrollment_id, item_id, points, comment):
        key = (int(enrollment_id), int(item_id))
        existing = self.grades.get(key)
        grade_id = existing.grade_id if existing else self._next_grade
        if not existing:
            self._next_grade += 1
        self.grades[key] = Grade(grade_id, key[0], key[1], float(points), comment)
        return self.grades[key]

    def _row(self, g: Grade) -> GradeReportRow:
        e = self._roster.enrollments[g.enrollment_id]
        item = self.items[g.item_id]
        cs = self._roster.class_subjects[item.class_subject_id]
        return GradeReportRow(
            enrollment_id=e.enrollment_id,
            student_id=e.student_id,
            class_id=e.class_id,
            class_code=self._roster.class_codes[e.class_id],
            class_subject_id=cs.class_subject_id,
            subject_id=cs.subject_id,
            subject_name=cs.subject_name,
            item_id=item.item_id,
            item_name=item.name,
            max_points=item.max_points,
            weight=item.weight,
            points=g.points,
            comment=g.comment,
        )

    def list_report_rows_for_student(self, student_id, class_id=None):
        rows = [self._row(g) for g in self.grades.values()]
        return [
            r for r in rows
            if r.student_id == int(student_id) and (class_id is None or r.class_id == int(class_id))
        ]

    def list_report_rows_for_class_subject(self, class_subject_id):
        return [r for r in (self._row(g) for g in self.grades.values()) if r.class_subject_id == int(class_subject_id)]


class FakeAttendanceRepo:
    def __init__(self, roster: FakeRoster):
        self._roster = roster
        self._next_period = 1
        self._next_event = 1
        self.periods: dict[int, Period] = {}
        self.events: dict[int, AttendanceEvent] = {}

    def get_period(self, period_id):
        return self.periods.get(int(period_id))

    def list_periods_for_class_subject(self, class_subject_id):
        return [p for p in self.periods.values() if p.class_subject_id == int(class_subject_id)]

    def create_period(self, *, class_subject_id, period_date, label):
        pid = self._next_period
        self._next_period += 1
        self.periods[pid] = Period(pid, int(class_subject_id), period_date, label)
        return pid

    def update_period(self, *, period_id, period_date, label):
        old = self.periods[int(period_id)]
        self.periods[int(period_id)] = Period(old.period_id, old.class_subject_id, period_date, label)
        return True

    def delete_period(self, period_id):
        self.events = {k: e for k, e in self.events.items() if e.period_id != int(period_id)}
        return self.periods.pop(int(period_id), None) is not None

    def _find(self, enrollment_id, period_id):
        for e in self.events.values():
            if e.enrollment_id == int(enrollment_id) and e.period_id == int(period_id):
                return e
        return None

    def upsert_attendance_event(self, *, enrollment_id, period_id, status):
        existing = self._find(enrollment_id, period_id)
        if existing:
            self.events[existing.event_id] = dataclasses.replace(existing, status=status)
            return self.events[existing.event_id]

        period = self.periods[int(period_id)]
        cs = self._roster.class_subjects[period.class_subject_id]
        enrollment = self._roster.enrollments[int(enrollment_id)]
        event = AttendanceEvent(
            event_id=self._next_event,
            enrollment_id=enrollment.enrollment_id,
            period_id=period.period_id,
            student_id=enrollment.student_id,
            class_subject_id=cs.class_subject_id,
            teacher_id=cs.teacher_id,
            status=status,
            period_date=period.period_date,
            period_label=period.label,
            subject_name=cs.subject_name,
        )
        self._next_event += 1
        self.events[event.event_id] = event
        return event

    def load_attendance_event(self, event_id):
        return self.events.get(int(event_id))

    def list_attendance_for_enrollment(self, enrollment_id):
        return [e for e in self.events.values() if e.enrollment_id == int(enrollment_id)]

    def list_attendance_for_period(self, period_id):
        return [e for e in self.events.values() if e.period_id == int(period_id)]

    # test helper
    def put_event(self, *, enrollment_id, class_subject_id, status, justification=None, when=date(2026, 3, 2)):
        period_id = self.create_period(class_subject_id=class_subject_id, period_date=when, label="1st")
        event = self.upsert_attendance_event(enrollment_id=enrollment_id, period_id=period_id, status=status)
        if justification is not None:
            event = dataclasses.replace(event, justification=justification)
            self.events[event.event_id] = event
        return event


class FakeJustificationRepo:
    def __init__(self, attendance: FakeAttendanceRepo):
        self._attendance = attendance
        self.conflicts_to_raise = 0
        self.saves = 0

    def save_justification_decision(self, *, event_id, expected_from, new_state):
        if self.conflicts_to_raise > 0:
            self.conflicts_to_raise -= 1
            raise ConflictRetryable("Deadlock found when trying to get lock")

        event = self._attendance.events.get(int(event_id))
        if not event:
            raise NotFound("Attendance event not found", entity_id=int(event_id))
        if event.justification.decision != expected_from:
            raise InvalidTransition("Justification changed meanwhile", entity_id=int(event_id))

        self.saves += 1
        updated = dataclasses.replace(event, justification=new_state)
        self._attendance.events[updated.event_id] = updated
        return updated

    def list_justifications(self, *, scope, decision=None, limit=500):
        out = []
        for e in self._attendance.events.values():
            if e.status != AttendanceStatus.ABSENT or e.justification.decision == JustificationDecision.UNSUBMITTED:
                continue
            if decision is not None and e.justification.decision != decision:
                continue
            if not scope.unrestricted:
                if scope.teacher_id is not None and e.teacher_id != scope.teacher_id:
                    continue
                if scope.teacher_id is None and e.student_id not in scope.student_ids:
                    continue
            out.append(e)
        return out[:limit]


@pytest.fixture
def people():
    return SimpleNamespace(
        admin=Principal(Role.ADMIN, user_id=1),
        math_teacher=Principal(Role.TEACHER, user_id=17, linkage_id=7),
        physics_teacher=Principal(Role.TEACHER, user_id=18, linkage_id=8),
        student=Principal(Role.STUDENT, user_id=21, linkage_id=1),
        classmate=Principal(Role.STUDENT, user_id=22, linkage_id=2),
        parent=Principal(Role.PARENT, user_id=31, linkage_id=50),
        stranger_parent=Principal(Role.PARENT, user_id=32, linkage_id=51),
    )


@pytest.fixture
def roster():
    return FakeRoster()


@pytest.fixture
def grades_repo(roster):
    return FakeGradeRepo(roster)


@pytest.fixture
def attendance_repo(roster):
    return FakeAttendanceRepo(roster)


@pytest.fixture
def justifications_repo(attendance_repo):
    return FakeJustificationRepo(attendance_repo)


@pytest.fixture
def guard():
    return AccessGuard()


@pytest.fixture
def grade_service(grades_repo, roster, guard):
    return GradeService(grades_repo, roster, guard)


@pytest.fixture
def report_service(grades_repo, roster, guard):
    return GradeReportService(grades_repo, roster, guard)


@pytest.fixture
def attendance_service(attendance_repo, roster, guard):
    return AttendanceService(attendance_repo, roster, guard)


@pytest.fixture
def justification_service(justifications_repo, attendance_repo, roster, guard):
    return JustificationService(justifications_repo, attendance_repo, roster, guard)


@pytest.fixture
def pending():
    return Justification.submitted(text="I was sick")
