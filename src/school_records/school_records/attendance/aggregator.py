from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..core.enums import AttendanceStatus, JustificationDecision
from .model import AttendanceEvent


@dataclass(frozen=True)
class AttendanceStats:
    total: int
    present: int
    absent: int
    late: int
    justified: int
    pending: int
    rejected: int
    unjustified: int
    present_pct: float
    absent_pct: float
    late_pct: float
    justified_pct: float
    attendance_rate: float


def _pct(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part / whole * 100.0, 1)


class AttendanceAggregator:
    """Counts and percentages over a set of attendance events.

    Justification counters look at absences only: a justified late arrival
    never moves justified_pct.
    """

    def stats(self, events: Iterable[AttendanceEvent]) -> AttendanceStats:
        present = absent = late = 0
        justified = pending = rejected = unjustified = 0

        for e in events:
            if e.status == AttendanceStatus.PRESENT:
                present += 1
            elif e.status == AttendanceStatus.LATE:
                late += 1
            elif e.status == AttendanceStatus.ABSENT:
                absent += 1
                decision = e.justification.decision
                if decision == JustificationDecision.APPROVED:
                    justified += 1
                elif decision == JustificationDecision.PENDING:
                    pending += 1
                elif decision == JustificationDecision.REJECTED:
                    rejected += 1
                else:
                    unjustified += 1

        total = present + absent + late
        return AttendanceStats(
            total=total,
            present=present,
            absent=absent,
            late=late,
            justified=justified,
            pending=pending,
            rejected=rejected,
            unjustified=unjustified,
            present_pct=_pct(present, total),
            absent_pct=_pct(absent, total),
            late_pct=_pct(late, total),
            justified_pct=_pct(justified, absent),
            attendance_rate=_pct(present + late, total),
        )
