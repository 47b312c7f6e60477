from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import AttendanceStatus
from ..justifications.model import Justification


@dataclass(frozen=True)
class Period:
    period_id: int
    class_subject_id: int
    period_date: date
    label: str


@dataclass(frozen=True)
class AttendanceEvent:
    """Attendance of one enrollment at one period.

    Student, class subject and teacher are denormalized from the roster so the
    event carries its own ownership chain.
    """

    event_id: int
    enrollment_id: int
    period_id: int
    student_id: int
    class_subject_id: int
    teacher_id: int
    status: AttendanceStatus
    period_date: Optional[date] = None
    period_label: str = ""
    subject_name: str = ""
    justification: Justification = field(default_factory=Justification.unsubmitted)
