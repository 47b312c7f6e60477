from __future__ import annotations

from typing import Callable, Dict, Mapping

from ..app_logger import get_logger
from ..core.enums import Operation, Role
from ..core.exceptions import Forbidden
from .model import Principal, ResourceOwnership

log = get_logger("access")

Predicate = Callable[[Principal, ResourceOwnership], bool]


def _teaches(principal: Principal, target: ResourceOwnership) -> bool:
    return principal.teacher_id is not None and target.teacher_id == principal.teacher_id


def _owns(principal: Principal, target: ResourceOwnership) -> bool:
    return principal.student_id is not None and target.student_id == principal.student_id


def _parent_of(principal: Principal, target: ResourceOwnership) -> bool:
    return principal.parent_id is not None and principal.parent_id in target.parent_ids


# Admins bypass the table. Anything missing from it is denied.
CAPABILITIES: Mapping[Role, Dict[Operation, Predicate]] = {
    Role.TEACHER: {
        Operation.WRITE_GRADE: _teaches,
        Operation.WRITE_GRADE_ITEM: _teaches,
        Operation.WRITE_ATTENDANCE: _teaches,
        Operation.WRITE_PERIOD: _teaches,
        Operation.DECIDE_JUSTIFICATION: _teaches,
        Operation.READ_CLASS_REPORT: _teaches,
        Operation.READ_ATTENDANCE: _teaches,
        Operation.READ_JUSTIFICATION: _teaches,
    },
    Role.STUDENT: {
        Operation.READ_GRADES: _owns,
        Operation.READ_ATTENDANCE: _owns,
        Operation.READ_JUSTIFICATION: _owns,
        Operation.SUBMIT_JUSTIFICATION: _owns,
    },
    Role.PARENT: {
        Operation.READ_GRADES: _parent_of,
        Operation.READ_ATTENDANCE: _parent_of,
        Operation.READ_JUSTIFICATION: _parent_of,
    },
}


def can_perform(principal: Principal, operation: Operation, target: ResourceOwnership) -> bool:
    """Pure capability lookup: no I/O, no caching."""
    if principal.role == Role.ADMIN:
        return True

    rules = CAPABILITIES.get(principal.role)
    if not rules:
        return False

    predicate = rules.get(operation)
    if predicate is None:
        return False
    return bool(predicate(principal, target))


class AccessGuard:
    """Raising front for :func:`can_perform`, used by every service entry point."""

    def can_perform(self, principal: Principal, operation: Operation, target: ResourceOwnership) -> bool:
        return can_perform(principal, operation, target)

    def authorize(self, principal: Principal, operation: Operation, target: ResourceOwnership) -> None:
        if can_perform(principal, operation, target):
            return
        log.warning(
            "denied %s on %s #%s for %s user #%s",
            operation.value,
            target.entity,
            target.entity_id,
            getattr(principal.role, "value", principal.role),
            principal.user_id,
        )
        raise Forbidden(
            f"Not allowed to {operation.value.replace('_', ' ')}",
            operation=operation.value,
            entity_id=target.entity_id,
        )
