from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from ..access.guard import AccessGuard
from ..access.memo import LinkageMemo
from ..access.model import Principal
from ..access.resolver import OwnershipResolver
from ..app_logger import get_logger
from ..common.datetime_utils import parse_iso_date
from ..common.errors import service_operation
from ..common.retry import retry_on_conflict
from ..common.validators import require_non_empty
from ..core.enums import AttendanceStatus, Operation
from ..core.exceptions import NotFound, ValidationError
from ..roster.model import ClassSubject
from ..roster.repository import RosterRepository
from .aggregator import AttendanceAggregator, AttendanceStats
from .model import AttendanceEvent, Period
from .repository import AttendanceRepository

log = get_logger("attendance")


@dataclass(frozen=True)
class AttendanceReport:
    student_id: int
    stats: AttendanceStats
    events: List[AttendanceEvent]


@dataclass(frozen=True)
class BulkEntryError:
    enrollment_id: object
    message: str


@dataclass(frozen=True)
class BulkResult:
    saved: int
    errors: List[BulkEntryError] = field(default_factory=list)


def parse_status(value: object) -> AttendanceStatus:
    """Accept an AttendanceStatus, its code (P/A/L) or its label."""
    if isinstance(value, AttendanceStatus):
        return value
    raw = str(value or "").strip()
    for status in AttendanceStatus:
        if raw.upper() == status.value or raw.lower() == status.label.lower():
            return status
    raise ValidationError(f"Invalid attendance status: {raw or '(empty)'}")


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        roster: RosterRepository,
        guard: AccessGuard,
        *,
        aggregator: Optional[AttendanceAggregator] = None,
    ):
        self._attendance = attendance
        self._roster = roster
        self._guard = guard
        self._resolver = OwnershipResolver(roster)
        self._aggregator = aggregator or AttendanceAggregator()

    def _class_subject(self, class_subject_id: int, op: Operation) -> ClassSubject:
        cs = self._roster.get_class_subject(int(class_subject_id))
        if not cs:
            raise NotFound("Class subject not found", operation=op.value, entity_id=int(class_subject_id))
        return cs

    def _period(self, period_id: int, op: Operation) -> Period:
        period = self._attendance.get_period(int(period_id))
        if not period:
            raise NotFound("Period not found", operation=op.value, entity_id=int(period_id))
        return period

    def _authorize_on(self, principal: Principal, op: Operation, class_subject_id: int) -> ClassSubject:
        cs = self._class_subject(class_subject_id, op)
        self._guard.authorize(principal, op, self._resolver.for_class_subject(cs))
        return cs

    # Periods
    @service_operation(Operation.WRITE_PERIOD.value)
    def add_period(self, principal: Principal, *, class_subject_id: int, period_date: object, label: str) -> Period:
        self._authorize_on(principal, Operation.WRITE_PERIOD, class_subject_id)
        when = parse_iso_date(period_date, "Period date")
        label = require_non_empty(label, "Period label")

        period_id = self._attendance.create_period(class_subject_id=int(class_subject_id), period_date=when, label=label)
        log.info("period #%s added to class subject #%s", period_id, class_subject_id)
        return Period(period_id=period_id, class_subject_id=int(class_subject_id), period_date=when, label=label)

    @service_operation(Operation.WRITE_PERIOD.value)
    def update_period(self, principal: Principal, *, period_id: int, period_date: object, label: str) -> Period:
        """Correct date and label only; attendance already taken stays attached."""
        period = self._period(period_id, Operation.WRITE_PERIOD)
        self._authorize_on(principal, Operation.WRITE_PERIOD, period.class_subject_id)
        when = parse_iso_date(period_date, "Period date")
        label = require_non_empty(label, "Period label")

        self._attendance.update_period(period_id=period.period_id, period_date=when, label=label)
        return Period(period_id=period.period_id, class_subject_id=period.class_subject_id, period_date=when, label=label)

    @service_operation(Operation.WRITE_PERIOD.value)
    def delete_period(self, principal: Principal, period_id: int) -> None:
        period = self._period(period_id, Operation.WRITE_PERIOD)
        self._authorize_on(principal, Operation.WRITE_PERIOD, period.class_subject_id)
        self._attendance.delete_period(period.period_id)
        log.info("period #%s deleted with its attendance", period.period_id)

    @service_operation(Operation.READ_ATTENDANCE.value)
    def list_periods(self, principal: Principal, class_subject_id: int) -> Sequence[Period]:
        cs = self._authorize_on(principal, Operation.READ_ATTENDANCE, class_subject_id)
        return self._attendance.list_periods_for_class_subject(cs.class_subject_id)

    # Events
    def _save_checked(self, period: Period, cs: ClassSubject, enrollment_id: object, status: object) -> AttendanceEvent:
        op = Operation.WRITE_ATTENDANCE
        try:
            eid = int(enrollment_id)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise ValidationError("Enrollment id must be a number", operation=op.value)

        enrollment = self._roster.get_enrollment(eid)
        if not enrollment:
            raise NotFound("Enrollment not found", operation=op.value, entity_id=eid)
        if enrollment.class_id != cs.class_id:
            raise ValidationError(
                "Enrollment does not belong to the class of this period",
                operation=op.value,
                entity_id=eid,
            )

        value = parse_status(status)
        return retry_on_conflict(
            lambda: self._attendance.upsert_attendance_event(
                enrollment_id=eid,
                period_id=period.period_id,
                status=value,
            ),
            operation=op.value,
        )

    @service_operation(Operation.WRITE_ATTENDANCE.value)
    def save_attendance(self, principal: Principal, *, enrollment_id: int, period_id: int, status: object) -> AttendanceEvent:
        period = self._period(period_id, Operation.WRITE_ATTENDANCE)
        cs = self._authorize_on(principal, Operation.WRITE_ATTENDANCE, period.class_subject_id)
        return self._save_checked(period, cs, enrollment_id, status)

    @service_operation(Operation.WRITE_ATTENDANCE.value)
    def bulk_attendance(
        self,
        principal: Principal,
        *,
        period_id: int,
        entries: Iterable[Tuple[object, object]],
    ) -> BulkResult:
        """Save many (enrollment_id, status) pairs for one period.

        Bad entries are reported and skipped; authorization failure aborts the batch.
        """
        period = self._period(period_id, Operation.WRITE_ATTENDANCE)
        cs = self._authorize_on(principal, Operation.WRITE_ATTENDANCE, period.class_subject_id)

        saved = 0
        errors: List[BulkEntryError] = []
        for enrollment_id, status in entries:
            try:
                self._save_checked(period, cs, enrollment_id, status)
                saved += 1
            except (ValidationError, NotFound) as exc:
                errors.append(BulkEntryError(enrollment_id=enrollment_id, message=str(exc)))

        if errors:
            log.info("bulk attendance for period #%s: %d saved, %d rejected", period.period_id, saved, len(errors))
        return BulkResult(saved=saved, errors=errors)

    @service_operation(Operation.READ_ATTENDANCE.value)
    def list_period_attendance(self, principal: Principal, period_id: int) -> Sequence[AttendanceEvent]:
        period = self._period(period_id, Operation.READ_ATTENDANCE)
        self._authorize_on(principal, Operation.READ_ATTENDANCE, period.class_subject_id)
        return self._attendance.list_attendance_for_period(period.period_id)

    @service_operation(Operation.READ_ATTENDANCE.value)
    def compute_attendance_report(
        self,
        principal: Principal,
        student_id: int,
        *,
        memo: Optional[LinkageMemo] = None,
    ) -> AttendanceReport:
        memo = memo or LinkageMemo()
        self._guard.authorize(principal, Operation.READ_ATTENDANCE, self._resolver.for_student(student_id, memo))

        events: List[AttendanceEvent] = []
        for enrollment in self._roster.list_enrollments_for_student(int(student_id)):
            events.extend(self._attendance.list_attendance_for_enrollment(enrollment.enrollment_id))

        events.sort(key=lambda e: (e.period_date or date.min, e.event_id), reverse=True)
        return AttendanceReport(student_id=int(student_id), stats=self._aggregator.stats(events), events=events)
