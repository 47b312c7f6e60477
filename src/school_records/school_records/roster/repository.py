from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ClassSubject, Enrollment


class RosterRepository(Protocol):
    """Read-only view of who belongs where (enrollments, assignments, parent links)."""

    def get_enrollment(self, enrollment_id: int) -> Optional[Enrollment]:
        raise NotImplementedError

    def get_class_subject(self, class_subject_id: int) -> Optional[ClassSubject]:
        raise NotImplementedError

    def list_enrollments_for_class(self, class_id: int) -> Sequence[Enrollment]:
        raise NotImplementedError

    def list_enrollments_for_student(self, student_id: int) -> Sequence[Enrollment]:
        raise NotImplementedError

    def list_parent_ids_for_student(self, student_id: int) -> Sequence[int]:
        raise NotImplementedError

    def list_student_ids_for_parent(self, parent_id: int) -> Sequence[int]:
        raise NotImplementedError
