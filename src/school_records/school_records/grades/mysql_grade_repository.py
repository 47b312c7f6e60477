from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone
from .model import Grade, GradeItem, GradeReportRow
from .repository import GradeRepository

_REPORT_SELECT = """
    SELECT e.enroll_id, e.student_id, e.class_id, c.class_code,
           cs.class_subject_id, cs.subject_id, s.name AS subject_name,
           gi.item_id, gi.name AS item_name, gi.max_points, gi.weight,
           g.points, g.comment
    FROM grades g
    JOIN grade_items gi ON gi.item_id = g.item_id
    JOIN class_subjects cs ON cs.class_subject_id = gi.class_subject_id
    JOIN subjects s ON s.subject_id = cs.subject_id
    JOIN enrollments e ON e.enroll_id = g.enroll_id
    JOIN classes c ON c.class_id = e.class_id
"""


class MySQLGradeRepository(GradeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _to_item(r: dict) -> GradeItem:
        return GradeItem(
            item_id=int(r["item_id"]),
            class_subject_id=int(r["class_subject_id"]),
            name=r["name"],
            max_points=as_float(r["max_points"]),
            weight=as_float(r["weight"]),
        )

    @staticmethod
    def _to_grade(r: dict) -> Grade:
        return Grade(
            grade_id=int(r["grade_id"]),
            enrollment_id=int(r["enroll_id"]),
            item_id=int(r["item_id"]),
            points=as_float(r["points"]),
            comment=r.get("comment"),
        )

    @staticmethod
    def _to_report_row(r: dict) -> GradeReportRow:
        return GradeReportRow(
            enrollment_id=int(r["enroll_id"]),
            student_id=int(r["student_id"]),
            class_id=int(r["class_id"]),
            class_code=r["class_code"],
            class_subject_id=int(r["class_subject_id"]),
            subject_id=int(r["subject_id"]),
            subject_name=r["subject_name"],
            item_id=int(r["item_id"]),
            item_name=r["item_name"],
            max_points=as_float(r["max_points"]),
            weight=as_float(r["weight"]),
            points=as_float(r["points"]),
            comment=r.get("comment"),
        )

    def get_grade_item(self, item_id: int) -> Optional[GradeItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT item_id, class_subject_id, name, max_points, weight FROM grade_items WHERE item_id=%s",
                (int(item_id),),
            )
            r = fetchone(cur)
            return self._to_item(r) if r else None

    def list_grade_items_for_class_subject(self, class_subject_id: int) -> Sequence[GradeItem]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT item_id, class_subject_id, name, max_points, weight
                FROM grade_items
                WHERE class_subject_id=%s
                ORDER BY item_id
                """,
                (int(class_subject_id),),
            )
            return [self._to_item(r) for r in fetchall(cur)]

    def create_grade_item(self, *, class_subject_id: int, name: str, max_points: float, weight: float) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO grade_items(class_subject_id, name, max_points, weight) VALUES(%s,%s,%s,%s)",
                (int(class_subject_id), name, float(max_points), float(weight)),
            )
            return int(cur.lastrowid)

    def update_grade_item(self, *, item_id: int, name: str, max_points: float, weight: float) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE grade_items SET name=%s, max_points=%s, weight=%s WHERE item_id=%s",
                (name, float(max_points), float(weight), int(item_id)),
            )
            return cur.rowcount > 0

    def delete_grade_item(self, item_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM grade_items WHERE item_id=%s", (int(item_id),))
            return cur.rowcount > 0

    def highest_points_for_item(self, item_id: int) -> Optional[float]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT MAX(points) AS top FROM grades WHERE item_id=%s", (int(item_id),))
            r = fetchone(cur)
            if not r or r.get("top") is None:
                return None
            return as_float(r["top"])

    def upsert_grade(self, *, enrollment_id: int, item_id: int, points: float, comment: Optional[str]) -> Grade:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO grades(enroll_id, item_id, points, comment)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE points=VALUES(points), comment=VALUES(comment)
                """,
                (int(enrollment_id), int(item_id), float(points), comment),
            )
            cur.execute(
                "SELECT grade_id, enroll_id, item_id, points, comment FROM grades WHERE enroll_id=%s AND item_id=%s",
                (int(enrollment_id), int(item_id)),
            )
            return self._to_grade(fetchone(cur))

    def list_report_rows_for_student(self, student_id: int, class_id: Optional[int] = None) -> Sequence[GradeReportRow]:
        clauses = ["e.student_id=%s"]
        params: list[object] = [int(student_id)]
        if class_id is not None:
            clauses.append("e.class_id=%s")
            params.append(int(class_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_REPORT_SELECT} WHERE {where} ORDER BY c.class_code, s.name, gi.item_id",
                tuple(params),
            )
            return [self._to_report_row(r) for r in fetchall(cur)]

    def list_report_rows_for_class_subject(self, class_subject_id: int) -> Sequence[GradeReportRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_REPORT_SELECT} WHERE cs.class_subject_id=%s AND e.class_id=cs.class_id ORDER BY e.enroll_id, gi.item_id",
                (int(class_subject_id),),
            )
            return [self._to_report_row(r) for r in fetchall(cur)]
