from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


class AttendanceStatus(str, Enum):
    """Attendance status as stored in the database (single-letter codes)."""

    PRESENT = "P"
    ABSENT = "A"
    LATE = "L"

    @property
    def label(self) -> str:
        return {
            AttendanceStatus.PRESENT: "Present",
            AttendanceStatus.ABSENT: "Absent",
            AttendanceStatus.LATE: "Late",
        }[self]


class JustificationDecision(str, Enum):
    """Lifecycle state of an absence justification."""

    UNSUBMITTED = "UNSUBMITTED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class JustificationTrigger(str, Enum):
    SUBMIT = "submit"
    RESUBMIT = "resubmit"
    APPROVE = "approve"
    REJECT = "reject"


class Operation(str, Enum):
    """Operations checked by the access guard."""

    READ_GRADES = "read_grades"
    WRITE_GRADE = "write_grade"
    WRITE_GRADE_ITEM = "write_grade_item"
    READ_CLASS_REPORT = "read_class_report"
    READ_ATTENDANCE = "read_attendance"
    WRITE_ATTENDANCE = "write_attendance"
    WRITE_PERIOD = "write_period"
    READ_JUSTIFICATION = "read_justification"
    SUBMIT_JUSTIFICATION = "submit_justification"
    DECIDE_JUSTIFICATION = "decide_justification"
