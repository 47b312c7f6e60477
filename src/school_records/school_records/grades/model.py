from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GradeItem:
    item_id: int
    class_subject_id: int
    name: str
    max_points: float
    weight: float = 1.0


@dataclass(frozen=True)
class Grade:
    grade_id: int
    enrollment_id: int
    item_id: int
    points: float
    comment: Optional[str] = None


@dataclass(frozen=True)
class GradeReportRow:
    """One graded item of a student, joined with its subject and class."""

    enrollment_id: int
    student_id: int
    class_id: int
    class_code: str
    class_subject_id: int
    subject_id: int
    subject_name: str
    item_id: int
    item_name: str
    max_points: float
    weight: float
    points: float
    comment: Optional[str] = None
