from __future__ import annotations

import pytest

from src.school_records.school_records.core.exceptions import Forbidden, NotFound
from src.school_records.school_records.roster.model import Enrollment


@pytest.fixture
def graded(grade_service, people):
    """Student 1: Math 16/20 (w1) + 30/50 (w2); Physics 9/10. Student 2: Math 20/20 only."""
    quiz = grade_service.add_grade_item(people.math_teacher, class_subject_id=100, name="Quiz", max_points=20)
    test = grade_service.add_grade_item(people.math_teacher, class_subject_id=100, name="Test", max_points=50, weight=2)
    lab = grade_service.add_grade_item(people.physics_teacher, class_subject_id=101, name="Lab", max_points=10)

    grade_service.save_grade(people.math_teacher, enrollment_id=1000, item_id=quiz.item_id, points=16)
    grade_service.save_grade(people.math_teacher, enrollment_id=1000, item_id=test.item_id, points=30)
    grade_service.save_grade(people.physics_teacher, enrollment_id=1000, item_id=lab.item_id, points=9)
    grade_service.save_grade(people.math_teacher, enrollment_id=1001, item_id=quiz.item_id, points=20)
    return quiz, test, lab


def test_grade_report_groups_by_class_then_subject(report_service, people, graded):
    report = report_service.compute_grade_report(people.student, 1)

    assert report.student_id == 1
    assert [c.class_code for c in report.classes] == ["1A"]
    subjects = {s.subject_name: s for s in report.classes[0].subjects}

    math = subjects["Math"]
    # (80*1 + 60*2) / 3
    assert math.average == pytest.approx(66.67, abs=0.01)
    assert math.letter == 3
    assert [i.percentage for i in math.items] == [pytest.approx(80.0), pytest.approx(60.0)]

    physics = subjects["Physics"]
    assert physics.average == 90.0
    assert physics.letter == 5

    # all items of the class: (80 + 120 + 90) / 4
    assert report.classes[0].average == pytest.approx(72.5)
    assert report.classes[0].letter == 3
    assert report.average == report.classes[0].average


def test_grade_report_without_grades_uses_zero_sentinel(report_service, people):
    report = report_service.compute_grade_report(people.admin, 3)
    assert report.classes == []
    assert report.average == 0
    assert report.letter is None


def test_grade_report_filters_by_class(report_service, people, graded):
    assert report_service.compute_grade_report(people.student, 1, class_id=20).classes == []


def test_parent_reads_linked_child_only(report_service, people, graded):
    assert report_service.compute_grade_report(people.parent, 1).classes
    with pytest.raises(Forbidden):
        report_service.compute_grade_report(people.parent, 2)
    with pytest.raises(Forbidden):
        report_service.compute_grade_report(people.stranger_parent, 1)


def test_student_cannot_read_classmate_report(report_service, people, graded):
    with pytest.raises(Forbidden) as exc:
        report_service.compute_grade_report(people.student, 2)
    assert exc.value.operation == "read_grades"


def test_class_subject_report_lists_every_enrolled_student(report_service, people, graded):
    report = report_service.compute_class_subject_report(people.math_teacher, 100)

    by_student = {s.student_id: s for s in report.students}
    assert set(by_student) == {1, 2}
    assert by_student[1].average == pytest.approx(66.67, abs=0.01)
    assert by_student[2].average == 100.0
    assert by_student[2].letter == 5
    assert report.average == pytest.approx((66.666667 + 100.0) / 2, abs=0.01)


def test_class_subject_report_with_ungraded_student(report_service, people, graded):
    report = report_service.compute_class_subject_report(people.physics_teacher, 101)
    by_student = {s.student_id: s for s in report.students}

    assert by_student[2].graded_items == 0
    assert by_student[2].letter is None
    assert report.average == 90.0


def test_class_subject_report_requires_teacher_of_subject(report_service, people, graded):
    with pytest.raises(Forbidden):
        report_service.compute_class_subject_report(people.physics_teacher, 100)
    with pytest.raises(NotFound):
        report_service.compute_class_subject_report(people.admin, 404)


def test_letter_follows_the_reported_average(grade_service, report_service, people):
    exam = grade_service.add_grade_item(people.math_teacher, class_subject_id=100, name="Exam", max_points=1000)
    grade_service.save_grade(people.math_teacher, enrollment_id=1000, item_id=exam.item_id, points=889.96)

    report = report_service.compute_grade_report(people.student, 1)
    math = report.classes[0].subjects[0]
    assert (math.average, math.letter) == (89.0, 5)
    assert (report.average, report.letter) == (89.0, 5)

    class_report = report_service.compute_class_subject_report(people.math_teacher, 100)
    assert (class_report.average, class_report.letter) == (89.0, 5)


def test_subject_average_spans_classes(grade_service, report_service, roster, people):
    roster.enrollments[2001] = Enrollment(2001, student_id=1, class_id=20)
    first = grade_service.add_grade_item(people.math_teacher, class_subject_id=100, name="Quiz", max_points=20)
    second = grade_service.add_grade_item(people.physics_teacher, class_subject_id=200, name="Test", max_points=10, weight=2)
    grade_service.save_grade(people.math_teacher, enrollment_id=1000, item_id=first.item_id, points=16)
    grade_service.save_grade(people.physics_teacher, enrollment_id=2001, item_id=second.item_id, points=5)

    report = report_service.compute_grade_report(people.student, 1)

    assert {c.class_code: c.average for c in report.classes} == {"1A": 80.0, "2B": 50.0}
    assert len(report.subjects) == 1
    math = report.subjects[0]
    assert (math.subject_id, math.subject_name) == (1, "Math")
    assert {(entry.class_id, entry.class_subject_id) for entry in math.classes} == {(10, 100), (20, 200)}
    # (80*1 + 50*2) / 3
    assert math.average == 60.0
    assert math.letter == 2


def test_subjects_of_one_class_stay_separate(report_service, people, graded):
    report = report_service.compute_grade_report(people.student, 1)
    assert {s.subject_name: s.average for s in report.subjects} == {
        "Math": pytest.approx(66.67, abs=0.01),
        "Physics": 90.0,
    }
