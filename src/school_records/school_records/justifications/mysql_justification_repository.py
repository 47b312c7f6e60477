from __future__ import annotations

from typing import Optional, Sequence

from ..access.model import ListingScope
from ..attendance.model import AttendanceEvent
from ..attendance.mysql_attendance_repository import EVENT_SELECT, to_event
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import AttendanceStatus, JustificationDecision
from ..core.exceptions import InvalidTransition, NotFound
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Justification
from .repository import JustificationRepository


# Same derivation as Justification.from_row for rows whose decision is still NULL.
DECISION_SQL = (
    "COALESCE(NULLIF(a.justification_decision, ''), CASE WHEN COALESCE(TRIM(a.justification), '') <> '' "
    "OR COALESCE(a.justification_file, '') <> '' THEN 'PENDING' ELSE 'UNSUBMITTED' END)"
)


class MySQLJustificationRepository(JustificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def save_justification_decision(
        self,
        *,
        event_id: int,
        expected_from: JustificationDecision,
        new_state: Justification,
    ) -> AttendanceEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT justification, justification_file, justification_decision, reject_reason "
                "FROM attendance WHERE att_id=%s FOR UPDATE",
                (int(event_id),),
            )
            r = fetchone(cur)
            if not r:
                raise NotFound("Attendance event not found", entity_id=int(event_id))
            stored = Justification.from_row(r).decision
            if stored != expected_from:
                raise InvalidTransition(
                    f"Justification changed to {stored.value.lower()} meanwhile",
                    entity_id=int(event_id),
                )

            cur.execute(
                """
                UPDATE attendance
                SET justification=%s, justification_file=%s, justification_decision=%s, reject_reason=%s
                WHERE att_id=%s AND justification_decision <=> %s
                """,
                (
                    new_state.text,
                    new_state.file_reference,
                    new_state.decision.value,
                    new_state.reject_reason,
                    int(event_id),
                    r["justification_decision"],
                ),
            )
            if cur.rowcount == 0:
                raise InvalidTransition("Justification changed meanwhile", entity_id=int(event_id))

            cur.execute(f"{EVENT_SELECT} WHERE a.att_id=%s", (int(event_id),))
            return to_event(fetchone(cur))

    def list_justifications(
        self,
        *,
        scope: ListingScope,
        decision: Optional[JustificationDecision] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[AttendanceEvent]:
        if scope.is_empty:
            return []

        clauses = ["a.status=%s", f"{DECISION_SQL} <> %s"]
        params: list[object] = [AttendanceStatus.ABSENT.value, JustificationDecision.UNSUBMITTED.value]

        if decision is not None:
            clauses.append(f"{DECISION_SQL}=%s")
            params.append(decision.value)
        if not scope.unrestricted:
            if scope.teacher_id is not None:
                clauses.append("cs.teacher_id=%s")
                params.append(int(scope.teacher_id))
            else:
                ids = sorted(scope.student_ids)
                clauses.append(f"e.student_id IN ({', '.join(['%s'] * len(ids))})")
                params.extend(ids)

        where = " AND ".join(clauses)
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{EVENT_SELECT} WHERE {where} ORDER BY p.period_date DESC, a.att_id DESC LIMIT %s",
                tuple(params),
            )
            return [to_event(r) for r in fetchall(cur)]
