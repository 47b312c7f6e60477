from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Enrollment:
    """A student's membership in a class; owns all per-student academic records."""

    enrollment_id: int
    student_id: int
    class_id: int


@dataclass(frozen=True)
class ClassSubject:
    """A (class, subject, teacher) assignment: the unit of teaching authority."""

    class_subject_id: int
    class_id: int
    subject_id: int
    teacher_id: int
    subject_name: str = ""
    class_code: str = ""
