from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ClassSubject, Enrollment
from .repository import RosterRepository


class MySQLRosterRepository(RosterRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_enrollment(r: dict) -> Enrollment:
        return Enrollment(
            enrollment_id=int(r["enroll_id"]),
            student_id=int(r["student_id"]),
            class_id=int(r["class_id"]),
        )

    def get_enrollment(self, enrollment_id: int) -> Optional[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT enroll_id, student_id, class_id FROM enrollments WHERE enroll_id=%s",
                (int(enrollment_id),),
            )
            r = fetchone(cur)
            return self._to_enrollment(r) if r else None

    def get_class_subject(self, class_subject_id: int) -> Optional[ClassSubject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT cs.class_subject_id, cs.class_id, cs.subject_id, cs.teacher_id,
                       s.name AS subject_name, c.class_code
                FROM class_subjects cs
                JOIN subjects s ON s.subject_id = cs.subject_id
                JOIN classes c ON c.class_id = cs.class_id
                WHERE cs.class_subject_id=%s
                """,
                (int(class_subject_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return ClassSubject(
                class_subject_id=int(r["class_subject_id"]),
                class_id=int(r["class_id"]),
                subject_id=int(r["subject_id"]),
                teacher_id=int(r["teacher_id"]),
                subject_name=r["subject_name"],
                class_code=r["class_code"],
            )

    def list_enrollments_for_class(self, class_id: int) -> Sequence[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.enroll_id, e.student_id, e.class_id
                FROM enrollments e
                JOIN students st ON st.student_id = e.student_id
                WHERE e.class_id=%s
                ORDER BY st.last_name, st.first_name
                """,
                (int(class_id),),
            )
            return [self._to_enrollment(r) for r in fetchall(cur)]

    def list_enrollments_for_student(self, student_id: int) -> Sequence[Enrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT enroll_id, student_id, class_id FROM enrollments WHERE student_id=%s ORDER BY enroll_id",
                (int(student_id),),
            )
            return [self._to_enrollment(r) for r in fetchall(cur)]

    def list_parent_ids_for_student(self, student_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT parent_id FROM student_parent WHERE student_id=%s", (int(student_id),))
            return [int(r["parent_id"]) for r in fetchall(cur)]

    def list_student_ids_for_parent(self, parent_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT student_id FROM student_parent WHERE parent_id=%s", (int(parent_id),))
            return [int(r["student_id"]) for r in fetchall(cur)]
