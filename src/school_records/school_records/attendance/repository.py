from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceEvent, Period


class AttendanceRepository(Protocol):
    # Periods
    def get_period(self, period_id: int) -> Optional[Period]:
        raise NotImplementedError

    def list_periods_for_class_subject(self, class_subject_id: int) -> Sequence[Period]:
        raise NotImplementedError

    def create_period(self, *, class_subject_id: int, period_date: date, label: str) -> int:
        raise NotImplementedError

    def update_period(self, *, period_id: int, period_date: date, label: str) -> bool:
        raise NotImplementedError

    def delete_period(self, period_id: int) -> bool:
        """Delete the period; its attendance rows go with it (FK cascade)."""

        raise NotImplementedError

    # Events
    def upsert_attendance_event(self, *, enrollment_id: int, period_id: int, status: AttendanceStatus) -> AttendanceEvent:
        """Insert or update the single event of (enrollment, period) atomically.

        Only the status changes on update; the justification is kept.
        """

        raise NotImplementedError

    def load_attendance_event(self, event_id: int) -> Optional[AttendanceEvent]:
        raise NotImplementedError

    def list_attendance_for_enrollment(self, enrollment_id: int) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def list_attendance_for_period(self, period_id: int) -> Sequence[AttendanceEvent]:
        raise NotImplementedError
