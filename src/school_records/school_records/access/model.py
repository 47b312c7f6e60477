from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Principal:
    """Who is acting. Built once per request by the transport layer.

    ``linkage_id`` is the role-specific id: teacher_id for teachers,
    student_id for students, parent_id for parents; unused for admins.
    """

    role: Role
    user_id: int
    linkage_id: Optional[int] = None

    def _linked(self, role: Role) -> Optional[int]:
        return self.linkage_id if self.role == role else None

    @property
    def teacher_id(self) -> Optional[int]:
        return self._linked(Role.TEACHER)

    @property
    def student_id(self) -> Optional[int]:
        return self._linked(Role.STUDENT)

    @property
    def parent_id(self) -> Optional[int]:
        return self._linked(Role.PARENT)


@dataclass(frozen=True)
class ResourceOwnership:
    """Ownership chain of the record an operation targets."""

    entity: str
    entity_id: Optional[int] = None
    student_id: Optional[int] = None
    teacher_id: Optional[int] = None
    parent_ids: FrozenSet[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class ListingScope:
    """Row filter for role-scoped listings. ``unrestricted`` only for admins."""

    unrestricted: bool = False
    teacher_id: Optional[int] = None
    student_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.unrestricted and self.teacher_id is None and not self.student_ids
