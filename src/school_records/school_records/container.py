from __future__ import annotations

from dataclasses import dataclass

from .access.guard import AccessGuard
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import MAX_ATTACHMENT_BYTES
from .database.connection import DBConfig, DatabaseConnection
from .grades.mysql_grade_repository import MySQLGradeRepository
from .grades.report_service import GradeReportService
from .grades.service import GradeService
from .justifications.attachments import AttachmentPolicy
from .justifications.mysql_justification_repository import MySQLJustificationRepository
from .justifications.service import JustificationService
from .roster.mysql_roster_repository import MySQLRosterRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection
    guard: AccessGuard

    roster_repo: MySQLRosterRepository
    grades_repo: MySQLGradeRepository
    attendance_repo: MySQLAttendanceRepository
    justifications_repo: MySQLJustificationRepository

    grade_service: GradeService
    grade_report_service: GradeReportService
    attendance_service: AttendanceService
    justification_service: JustificationService


def build_container(*, db_config: dict, max_attachment_bytes: int = MAX_ATTACHMENT_BYTES) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    guard = AccessGuard()

    roster_repo = MySQLRosterRepository(conn)
    grades_repo = MySQLGradeRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    justifications_repo = MySQLJustificationRepository(conn)

    grade_service = GradeService(grades_repo, roster_repo, guard)
    grade_report_service = GradeReportService(grades_repo, roster_repo, guard)
    attendance_service = AttendanceService(attendance_repo, roster_repo, guard)
    justification_service = JustificationService(
        justifications_repo,
        attendance_repo,
        roster_repo,
        guard,
        attachments=AttachmentPolicy(max_bytes=max_attachment_bytes),
    )

    return Container(
        conn=conn,
        guard=guard,
        roster_repo=roster_repo,
        grades_repo=grades_repo,
        attendance_repo=attendance_repo,
        justifications_repo=justifications_repo,
        grade_service=grade_service,
        grade_report_service=grade_report_service,
        attendance_service=attendance_service,
        justification_service=justification_service,
    )
