from __future__ import annotations

from typing import Callable, Dict, FrozenSet, Iterable


class LinkageMemo:
    """Per-request memo of parent/student linkage sets.

    Create one per request and pass it down explicitly; it must never outlive
    the request that created it.
    """

    def __init__(self) -> None:
        self._parents_by_student: Dict[int, FrozenSet[int]] = {}
        self._students_by_parent: Dict[int, FrozenSet[int]] = {}

    def parents_of(self, student_id: int, loader: Callable[[int], Iterable[int]]) -> FrozenSet[int]:
        key = int(student_id)
        if key not in self._parents_by_student:
            self._parents_by_student[key] = frozenset(int(p) for p in loader(key))
        return self._parents_by_student[key]

    def students_of(self, parent_id: int, loader: Callable[[int], Iterable[int]]) -> FrozenSet[int]:
        key = int(parent_id)
        if key not in self._students_by_parent:
            self._students_by_parent[key] = frozenset(int(s) for s in loader(key))
        return self._students_by_parent[key]
