from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Grade, GradeItem, GradeReportRow


class GradeRepository(Protocol):
    # Grade items
    def get_grade_item(self, item_id: int) -> Optional[GradeItem]:
        raise NotImplementedError

    def list_grade_items_for_class_subject(self, class_subject_id: int) -> Sequence[GradeItem]:
        raise NotImplementedError

    def create_grade_item(self, *, class_subject_id: int, name: str, max_points: float, weight: float) -> int:
        raise NotImplementedError

    def update_grade_item(self, *, item_id: int, name: str, max_points: float, weight: float) -> bool:
        raise NotImplementedError

    def delete_grade_item(self, item_id: int) -> bool:
        """Delete the item; its grades go with it (FK cascade)."""

        raise NotImplementedError

    def highest_points_for_item(self, item_id: int) -> Optional[float]:
        raise NotImplementedError

    # Grades
    def upsert_grade(self, *, enrollment_id: int, item_id: int, points: float, comment: Optional[str]) -> Grade:
        """Insert or update the single grade of (enrollment, item) atomically."""

        raise NotImplementedError

    def list_report_rows_for_student(self, student_id: int, class_id: Optional[int] = None) -> Sequence[GradeReportRow]:
        raise NotImplementedError

    def list_report_rows_for_class_subject(self, class_subject_id: int) -> Sequence[GradeReportRow]:
        raise NotImplementedError
