from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from ..access.guard import AccessGuard
from ..access.memo import LinkageMemo
from ..access.model import Principal
from ..access.resolver import OwnershipResolver
from ..common.errors import service_operation
from ..core.enums import Operation
from ..core.exceptions import NotFound
from ..roster.repository import RosterRepository
from .calculator.base import GradeCalculator, WeightedScore
from .calculator.five_point_calculator import FivePointGradeCalculator
from .model import GradeReportRow
from .repository import GradeRepository


@dataclass(frozen=True)
class ItemScore:
    item_id: int
    name: str
    points: float
    max_points: float
    weight: float
    percentage: float
    comment: Optional[str] = None


@dataclass(frozen=True)
class SubjectGrades:
    class_subject_id: int
    class_id: int
    subject_id: int
    subject_name: str
    items: List[ItemScore]
    average: float
    letter: Optional[int]


@dataclass(frozen=True)
class SubjectSummary:
    """One subject across every class it was taken in."""

    subject_id: int
    subject_name: str
    classes: List[SubjectGrades]
    average: float
    letter: Optional[int]


@dataclass(frozen=True)
class ClassGrades:
    class_id: int
    class_code: str
    subjects: List[SubjectGrades]
    average: float
    letter: Optional[int]


@dataclass(frozen=True)
class GradeReport:
    student_id: int
    classes: List[ClassGrades]
    subjects: List[SubjectSummary]
    average: float
    letter: Optional[int]


@dataclass(frozen=True)
class StudentAverage:
    enrollment_id: int
    student_id: int
    average: float
    letter: Optional[int]
    graded_items: int


@dataclass(frozen=True)
class ClassSubjectReport:
    class_subject_id: int
    class_id: int
    subject_name: str
    students: List[StudentAverage]
    average: float
    letter: Optional[int]


class GradeReportService:
    """Read-only grade aggregation. Everything is recomputed per call."""

    def __init__(
        self,
        grades: GradeRepository,
        roster: RosterRepository,
        guard: AccessGuard,
        *,
        calculator: Optional[GradeCalculator] = None,
    ):
        self._grades = grades
        self._roster = roster
        self._guard = guard
        self._resolver = OwnershipResolver(roster)
        self._calculator = calculator or FivePointGradeCalculator()

    def _score(self, row: GradeReportRow) -> ItemScore:
        return ItemScore(
            item_id=row.item_id,
            name=row.item_name,
            points=row.points,
            max_points=row.max_points,
            weight=row.weight,
            percentage=self._calculator.percentage_of(row.points, row.max_points),
            comment=row.comment,
        )

    def _summarize(self, scores: Iterable[ItemScore]) -> tuple:
        """(average rounded to 2 places, letter or None when nothing is graded)."""
        scores = list(scores)
        if not scores:
            return 0.0, None
        avg = round(self._calculator.weighted_average(WeightedScore(s.percentage, s.weight) for s in scores), 2)
        return avg, self._letter(avg)

    def _letter(self, average: float) -> int:
        """Letter for the average exactly as reported (already rounded)."""
        # Over-max legacy rows can push past 100; the letter scale tops out there.
        return self._calculator.letter_grade(min(max(average, 0.0), 100.0))

    @service_operation(Operation.READ_GRADES.value)
    def compute_grade_report(
        self,
        principal: Principal,
        student_id: int,
        class_id: Optional[int] = None,
        *,
        memo: Optional[LinkageMemo] = None,
    ) -> GradeReport:
        memo = memo or LinkageMemo()
        self._guard.authorize(principal, Operation.READ_GRADES, self._resolver.for_student(student_id, memo))

        rows = self._grades.list_report_rows_for_student(int(student_id), class_id)

        by_class: "OrderedDict[int, Dict[int, List[GradeReportRow]]]" = OrderedDict()
        for r in rows:
            by_class.setdefault(r.class_id, OrderedDict()).setdefault(r.class_subject_id, []).append(r)

        classes: List[ClassGrades] = []
        all_scores: List[ItemScore] = []
        for cid, subjects in by_class.items():
            subject_reports: List[SubjectGrades] = []
            class_scores: List[ItemScore] = []
            for cs_id, subject_rows in subjects.items():
                scores = [self._score(r) for r in subject_rows]
                avg, letter = self._summarize(scores)
                first = subject_rows[0]
                subject_reports.append(
                    SubjectGrades(
                        class_subject_id=cs_id,
                        class_id=cid,
                        subject_id=first.subject_id,
                        subject_name=first.subject_name,
                        items=scores,
                        average=avg,
                        letter=letter,
                    )
                )
                class_scores.extend(scores)

            avg, letter = self._summarize(class_scores)
            classes.append(
                ClassGrades(
                    class_id=cid,
                    class_code=next(iter(subjects.values()))[0].class_code,
                    subjects=subject_reports,
                    average=avg,
                    letter=letter,
                )
            )
            all_scores.extend(class_scores)

        avg, letter = self._summarize(all_scores)
        return GradeReport(
            student_id=int(student_id),
            classes=classes,
            subjects=self._by_subject(classes),
            average=avg,
            letter=letter,
        )

    def _by_subject(self, classes: List[ClassGrades]) -> List[SubjectSummary]:
        grouped: "OrderedDict[int, List[SubjectGrades]]" = OrderedDict()
        for class_grades in classes:
            for subject in class_grades.subjects:
                grouped.setdefault(subject.subject_id, []).append(subject)

        summaries: List[SubjectSummary] = []
        for subject_id, entries in grouped.items():
            # weighted over every item of the subject, not an average of class averages
            avg, letter = self._summarize(score for entry in entries for score in entry.items)
            summaries.append(
                SubjectSummary(
                    subject_id=subject_id,
                    subject_name=entries[0].subject_name,
                    classes=entries,
                    average=avg,
                    letter=letter,
                )
            )
        return summaries

    @service_operation(Operation.READ_CLASS_REPORT.value)
    def compute_class_subject_report(self, principal: Principal, class_subject_id: int) -> ClassSubjectReport:
        cs = self._roster.get_class_subject(int(class_subject_id))
        if not cs:
            raise NotFound(
                "Class subject not found",
                operation=Operation.READ_CLASS_REPORT.value,
                entity_id=int(class_subject_id),
            )
        self._guard.authorize(principal, Operation.READ_CLASS_REPORT, self._resolver.for_class_subject(cs))

        by_enrollment: Dict[int, List[ItemScore]] = {}
        for r in self._grades.list_report_rows_for_class_subject(cs.class_subject_id):
            by_enrollment.setdefault(r.enrollment_id, []).append(self._score(r))

        students: List[StudentAverage] = []
        graded_averages: List[WeightedScore] = []
        for enrollment in self._roster.list_enrollments_for_class(cs.class_id):
            scores = by_enrollment.get(enrollment.enrollment_id, [])
            avg, letter = self._summarize(scores)
            students.append(
                StudentAverage(
                    enrollment_id=enrollment.enrollment_id,
                    student_id=enrollment.student_id,
                    average=avg,
                    letter=letter,
                    graded_items=len(scores),
                )
            )
            if scores:
                graded_averages.append(WeightedScore(percentage=avg, weight=1.0))

        class_avg = round(self._calculator.weighted_average(graded_averages), 2)
        return ClassSubjectReport(
            class_subject_id=cs.class_subject_id,
            class_id=cs.class_id,
            subject_name=cs.subject_name,
            students=students,
            average=class_avg,
            letter=self._letter(class_avg) if graded_averages else None,
        )

