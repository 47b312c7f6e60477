from __future__ import annotations

from typing import Optional, Sequence

from ..access.guard import AccessGuard
from ..access.model import Principal
from ..access.resolver import OwnershipResolver
from ..app_logger import get_logger
from ..common.errors import service_operation
from ..common.retry import retry_on_conflict
from ..common.validators import optional_text, require_non_empty, require_number, require_positive
from ..core.constants import DEFAULT_GRADE_WEIGHT
from ..core.enums import Operation
from ..core.exceptions import NotFound, ValidationError
from ..roster.model import ClassSubject
from ..roster.repository import RosterRepository
from .model import Grade, GradeItem
from .repository import GradeRepository

log = get_logger("grades")


class GradeService:
    """Grade item management and grade entry for teachers and admins."""

    def __init__(self, grades: GradeRepository, roster: RosterRepository, guard: AccessGuard):
        self._grades = grades
        self._roster = roster
        self._guard = guard
        self._resolver = OwnershipResolver(roster)

    def _class_subject(self, class_subject_id: int, operation: Operation) -> ClassSubject:
        cs = self._roster.get_class_subject(int(class_subject_id))
        if not cs:
            raise NotFound("Class subject not found", operation=operation.value, entity_id=int(class_subject_id))
        return cs

    def _item(self, item_id: int, operation: Operation) -> GradeItem:
        item = self._grades.get_grade_item(int(item_id))
        if not item:
            raise NotFound("Grade item not found", operation=operation.value, entity_id=int(item_id))
        return item

    def _authorize_item_write(self, principal: Principal, class_subject_id: int) -> ClassSubject:
        cs = self._class_subject(class_subject_id, Operation.WRITE_GRADE_ITEM)
        self._guard.authorize(principal, Operation.WRITE_GRADE_ITEM, self._resolver.for_class_subject(cs))
        return cs

    @staticmethod
    def _item_fields(name: str, max_points: object, weight: object) -> tuple:
        return (
            require_non_empty(name, "Name"),
            require_positive(max_points, "Max points"),
            require_positive(weight, "Weight"),
        )

    @service_operation(Operation.WRITE_GRADE_ITEM.value)
    def add_grade_item(
        self,
        principal: Principal,
        *,
        class_subject_id: int,
        name: str,
        max_points: object,
        weight: object = DEFAULT_GRADE_WEIGHT,
    ) -> GradeItem:
        self._authorize_item_write(principal, class_subject_id)
        name, max_points_f, weight_f = self._item_fields(name, max_points, weight)

        item_id = self._grades.create_grade_item(
            class_subject_id=int(class_subject_id),
            name=name,
            max_points=max_points_f,
            weight=weight_f,
        )
        log.info("grade item #%s created in class subject #%s", item_id, class_subject_id)
        return GradeItem(
            item_id=item_id,
            class_subject_id=int(class_subject_id),
            name=name,
            max_points=max_points_f,
            weight=weight_f,
        )

    @service_operation(Operation.WRITE_GRADE_ITEM.value)
    def update_grade_item(
        self,
        principal: Principal,
        *,
        item_id: int,
        name: str,
        max_points: object,
        weight: object = DEFAULT_GRADE_WEIGHT,
    ) -> GradeItem:
        item = self._item(item_id, Operation.WRITE_GRADE_ITEM)
        self._authorize_item_write(principal, item.class_subject_id)
        name, max_points_f, weight_f = self._item_fields(name, max_points, weight)

        top = self._grades.highest_points_for_item(item.item_id)
        if top is not None and top > max_points_f:
            raise ValidationError(
                f"Max points cannot be lower than an existing grade ({top:g})",
                operation=Operation.WRITE_GRADE_ITEM.value,
                entity_id=item.item_id,
            )

        self._grades.update_grade_item(item_id=item.item_id, name=name, max_points=max_points_f, weight=weight_f)
        return GradeItem(
            item_id=item.item_id,
            class_subject_id=item.class_subject_id,
            name=name,
            max_points=max_points_f,
            weight=weight_f,
        )

    @service_operation(Operation.WRITE_GRADE_ITEM.value)
    def delete_grade_item(self, principal: Principal, item_id: int) -> None:
        item = self._item(item_id, Operation.WRITE_GRADE_ITEM)
        self._authorize_item_write(principal, item.class_subject_id)
        self._grades.delete_grade_item(item.item_id)
        log.info("grade item #%s deleted with its grades", item.item_id)

    @service_operation(Operation.READ_CLASS_REPORT.value)
    def list_grade_items(self, principal: Principal, class_subject_id: int) -> Sequence[GradeItem]:
        cs = self._class_subject(class_subject_id, Operation.READ_CLASS_REPORT)
        self._guard.authorize(principal, Operation.READ_CLASS_REPORT, self._resolver.for_class_subject(cs))
        return self._grades.list_grade_items_for_class_subject(cs.class_subject_id)

    @service_operation(Operation.WRITE_GRADE.value)
    def save_grade(
        self,
        principal: Principal,
        *,
        enrollment_id: int,
        item_id: int,
        points: object,
        comment: Optional[str] = None,
    ) -> Grade:
        """Create or overwrite the grade of one enrollment on one item."""
        op = Operation.WRITE_GRADE
        item = self._item(item_id, op)
        cs = self._class_subject(item.class_subject_id, op)
        self._guard.authorize(principal, op, self._resolver.for_class_subject(cs))

        enrollment = self._roster.get_enrollment(int(enrollment_id))
        if not enrollment:
            raise NotFound("Enrollment not found", operation=op.value, entity_id=int(enrollment_id))
        if enrollment.class_id != cs.class_id:
            raise ValidationError(
                "Enrollment does not belong to the class of this grade item",
                operation=op.value,
                entity_id=enrollment.enrollment_id,
            )

        value = require_number(points, "Points")
        if not (0 <= value <= item.max_points):
            raise ValidationError(
                f"Points must be between 0 and {item.max_points:g}",
                operation=op.value,
                entity_id=item.item_id,
            )

        note = optional_text(comment)
        return retry_on_conflict(
            lambda: self._grades.upsert_grade(
                enrollment_id=enrollment.enrollment_id,
                item_id=item.item_id,
                points=value,
                comment=note,
            ),
            operation=op.value,
        )
