from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..justifications.model import Justification
from .model import AttendanceEvent, Period
from .repository import AttendanceRepository

EVENT_SELECT = """
    SELECT a.att_id, a.enroll_id, a.period_id, a.status,
           a.justification, a.justification_file, a.justification_decision, a.reject_reason,
           e.student_id, p.class_subject_id, p.period_date, p.period_label,
           cs.teacher_id, s.name AS subject_name
    FROM attendance a
    JOIN enrollments e ON e.enroll_id = a.enroll_id
    JOIN periods p ON p.period_id = a.period_id
    JOIN class_subjects cs ON cs.class_subject_id = p.class_subject_id
    JOIN subjects s ON s.subject_id = cs.subject_id
"""


def to_event(r: dict) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=int(r["att_id"]),
        enrollment_id=int(r["enroll_id"]),
        period_id=int(r["period_id"]),
        student_id=int(r["student_id"]),
        class_subject_id=int(r["class_subject_id"]),
        teacher_id=int(r["teacher_id"]),
        status=AttendanceStatus(r["status"]),
        period_date=r.get("period_date"),
        period_label=r.get("period_label") or "",
        subject_name=r.get("subject_name") or "",
        justification=Justification.from_row(r),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_period(r: dict) -> Period:
        return Period(
            period_id=int(r["period_id"]),
            class_subject_id=int(r["class_subject_id"]),
            period_date=r["period_date"],
            label=r["period_label"],
        )

    def get_period(self, period_id: int) -> Optional[Period]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT period_id, class_subject_id, period_date, period_label FROM periods WHERE period_id=%s",
                (int(period_id),),
            )
            r = fetchone(cur)
            return self._to_period(r) if r else None

    def list_periods_for_class_subject(self, class_subject_id: int) -> Sequence[Period]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT period_id, class_subject_id, period_date, period_label
                FROM periods
                WHERE class_subject_id=%s
                ORDER BY period_date DESC, period_id DESC
                """,
                (int(class_subject_id),),
            )
            return [self._to_period(r) for r in fetchall(cur)]

    def create_period(self, *, class_subject_id: int, period_date: date, label: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO periods(class_subject_id, period_date, period_label) VALUES(%s,%s,%s)",
                (int(class_subject_id), period_date, label),
            )
            return int(cur.lastrowid)

    def update_period(self, *, period_id: int, period_date: date, label: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE periods SET period_date=%s, period_label=%s WHERE period_id=%s",
                (period_date, label, int(period_id)),
            )
            return cur.rowcount > 0

    def delete_period(self, period_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM periods WHERE period_id=%s", (int(period_id),))
            return cur.rowcount > 0

    def upsert_attendance_event(self, *, enrollment_id: int, period_id: int, status: AttendanceStatus) -> AttendanceEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance(enroll_id, period_id, status)
                VALUES(%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status)
                """,
                (int(enrollment_id), int(period_id), status.value),
            )
            cur.execute(
                f"{EVENT_SELECT} WHERE a.enroll_id=%s AND a.period_id=%s",
                (int(enrollment_id), int(period_id)),
            )
            return to_event(fetchone(cur))

    def load_attendance_event(self, event_id: int) -> Optional[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{EVENT_SELECT} WHERE a.att_id=%s", (int(event_id),))
            r = fetchone(cur)
            return to_event(r) if r else None

    def list_attendance_for_enrollment(self, enrollment_id: int) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{EVENT_SELECT} WHERE a.enroll_id=%s ORDER BY p.period_date DESC, p.period_id DESC",
                (int(enrollment_id),),
            )
            return [to_event(r) for r in fetchall(cur)]

    def list_attendance_for_period(self, period_id: int) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{EVENT_SELECT} WHERE a.period_id=%s ORDER BY a.enroll_id", (int(period_id),))
            return [to_event(r) for r in fetchall(cur)]
