from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.enums import Role
from ..roster.model import ClassSubject, Enrollment
from ..roster.repository import RosterRepository
from .memo import LinkageMemo
from .model import ListingScope, Principal, ResourceOwnership

if TYPE_CHECKING:
    from ..attendance.model import AttendanceEvent


class OwnershipResolver:
    """Builds the ownership chain of a record so the guard can stay pure.

    Parent linkage comes from the roster through the caller's per-request memo.
    """

    def __init__(self, roster: RosterRepository):
        self._roster = roster

    def _parents(self, student_id: int, memo: LinkageMemo):
        return memo.parents_of(student_id, self._roster.list_parent_ids_for_student)

    def for_student(self, student_id: int, memo: LinkageMemo) -> ResourceOwnership:
        return ResourceOwnership(
            entity="student",
            entity_id=int(student_id),
            student_id=int(student_id),
            parent_ids=self._parents(student_id, memo),
        )

    def for_enrollment(self, enrollment: Enrollment, memo: LinkageMemo) -> ResourceOwnership:
        return ResourceOwnership(
            entity="enrollment",
            entity_id=enrollment.enrollment_id,
            student_id=enrollment.student_id,
            parent_ids=self._parents(enrollment.student_id, memo),
        )

    @staticmethod
    def for_class_subject(class_subject: ClassSubject) -> ResourceOwnership:
        return ResourceOwnership(
            entity="class_subject",
            entity_id=class_subject.class_subject_id,
            teacher_id=class_subject.teacher_id,
        )

    def for_attendance_event(self, event: "AttendanceEvent", memo: LinkageMemo) -> ResourceOwnership:
        return ResourceOwnership(
            entity="attendance",
            entity_id=event.event_id,
            student_id=event.student_id,
            teacher_id=event.teacher_id,
            parent_ids=self._parents(event.student_id, memo),
        )

    def listing_scope(self, principal: Principal, memo: LinkageMemo) -> ListingScope:
        if principal.role == Role.ADMIN:
            return ListingScope(unrestricted=True)
        if principal.teacher_id is not None:
            return ListingScope(teacher_id=principal.teacher_id)
        if principal.student_id is not None:
            return ListingScope(student_ids=frozenset({principal.student_id}))
        if principal.parent_id is not None:
            return ListingScope(
                student_ids=memo.students_of(principal.parent_id, self._roster.list_student_ids_for_parent)
            )
        return ListingScope()
