"""Tests for class results, ranking and annual results."""

import random
from decimal import Decimal

import pytest

from app.grading import (
    GradeSnapshot,
    GradingConfig,
    Scope,
    StudentSnapshot,
    SubjectSnapshot,
    compute_annual_results,
    compute_class_results,
    compute_student_result,
)

CLASS_ID = 10
S1 = Scope.for_period(1)

MATHS = SubjectSnapshot(id=1, name="Mathématiques", coefficient=2, max_score=20)
FRANCAIS = SubjectSnapshot(id=2, name="Français", coefficient=1, max_score=20)


def roster(count):
    return [
        StudentSnapshot(id=i, first_name=f"Eleve{i}", last_name="TRAORE", matricule=f"ELEVE{i:03d}")
        for i in range(1, count + 1)
    ]


def grade(student_id, value, subject_id=1, exam_type="devoir", semester="1er_semestre", exam_id=None):
    return GradeSnapshot(
        student_id=student_id,
        subject_id=subject_id,
        grade_value=value,
        exam_type=exam_type,
        semester=semester,
        exam_id=exam_id,
    )


def summary(results):
    return {r.student_id: (r.overall_average, r.rank) for r in results.results}


class TestClassRanking:
    def test_three_students_one_subject(self):
        results = compute_class_results(
            CLASS_ID, S1, roster(3), [MATHS], [grade(1, 14), grade(2, 16), grade(3, 10)]
        )

        assert [r.student_id for r in results.results] == [2, 1, 3]
        assert [r.rank for r in results.results] == [1, 2, 3]
        assert [r.overall_average for r in results.results] == [
            Decimal("16.00"),
            Decimal("14.00"),
            Decimal("10.00"),
        ]
        first = results.results[0]
        assert first.total_points == Decimal("32.00")
        assert first.total_coefficients == Decimal("2")
        assert all(r.total_students == 3 for r in results.results)

    def test_ties_share_rank_in_roster_order(self):
        results = compute_class_results(
            CLASS_ID, S1, roster(3), [MATHS], [grade(1, 15), grade(2, 15), grade(3, 12)]
        )
        assert [(r.student_id, r.rank) for r in results.results] == [(1, 1), (2, 1), (3, 3)]

    def test_weighted_overall_average(self):
        grades = [grade(1, 14), grade(1, 8, subject_id=2)]
        results = compute_class_results(CLASS_ID, S1, roster(1), [MATHS, FRANCAIS], grades)

        result = results.get(1)
        assert result.total_points == Decimal("36.00")
        assert result.total_coefficients == Decimal("3")
        assert result.overall_average == Decimal("12.00")
        assert result.subject(2).combined_avg == Decimal("8.00")

    def test_ungraded_subject_does_not_count_as_zero(self):
        results = compute_class_results(CLASS_ID, S1, roster(1), [MATHS, FRANCAIS], [grade(1, 14)])
        result = results.get(1)
        assert result.overall_average == Decimal("14.00")
        assert result.subject(2) is None

    def test_student_without_grades_is_listed_last_unranked(self):
        students = roster(5)
        grades = [grade(i, 10 + i) for i in range(2, 6)]
        results = compute_class_results(CLASS_ID, S1, students, [MATHS], grades)

        last = results.results[-1]
        assert last.student_id == 1
        assert last.rank is None
        assert last.has_grades is False
        assert last.overall_average == Decimal("0")
        assert last.appreciation == "N/A"
        assert results.total_students == 4
        assert all(r.total_students == 4 for r in results.results)
        assert [r.rank for r in results.results[:4]] == [1, 2, 3, 4]

    def test_huge_numbers_do_not_break_the_ranking(self):
        subjects = [
            SubjectSnapshot(id=1, name="Mathématiques", coefficient="1e40", max_score=20),
            SubjectSnapshot(id=2, name="Dessin", coefficient=1, max_score="1e-30"),
        ]
        grades = [grade(1, "1e30"), grade(1, 12, subject_id=2), grade(2, 15)]
        results = compute_class_results(CLASS_ID, S1, roster(2), subjects, grades)

        assert summary(results) == {2: (Decimal("15.00"), 1), 1: (Decimal("0"), None)}
        assert results.get(2).subject(1).coefficient == Decimal("1")

    def test_empty_class(self):
        results = compute_class_results(CLASS_ID, S1, [], [MATHS], [])
        assert results.results == []
        assert results.statistics.class_average is None

    def test_grade_order_does_not_change_results(self):
        grades = [
            grade(1, 14), grade(1, 9, exam_type="composition"), grade(1, 13, subject_id=2),
            grade(2, 16), grade(2, 11, subject_id=2, exam_type="composition"),
            grade(3, 10), grade(3, 17, exam_type="composition"),
        ]
        expected = summary(compute_class_results(CLASS_ID, S1, roster(3), [MATHS, FRANCAIS], grades))

        shuffled = list(grades)
        random.Random(4).shuffle(shuffled)
        actual = summary(compute_class_results(CLASS_ID, S1, roster(3), [FRANCAIS, MATHS], shuffled))
        assert actual == expected

    def test_grades_outside_roster_or_subjects_are_ignored(self):
        grades = [grade(1, 12), grade(99, 20), grade(1, 20, subject_id=42)]
        results = compute_class_results(CLASS_ID, S1, roster(1), [MATHS], grades)
        assert results.get(1).overall_average == Decimal("12.00")
        assert results.get(99) is None


class TestScopes:
    def test_period_scope_filters_semester(self):
        grades = [grade(1, 12), grade(1, 18, semester="2eme_semestre")]
        results = compute_class_results(CLASS_ID, S1, roster(1), [MATHS], grades)
        assert results.get(1).overall_average == Decimal("12.00")

    def test_untagged_grades_count_unless_strict(self):
        grades = [grade(1, 12), grade(1, 16, semester=None)]
        lenient = compute_class_results(CLASS_ID, S1, roster(1), [MATHS], grades)
        assert lenient.get(1).overall_average == Decimal("14.00")

        strict = compute_class_results(
            CLASS_ID, S1, roster(1), [MATHS], grades, GradingConfig(strict_period_match=True)
        )
        assert strict.get(1).overall_average == Decimal("12.00")

    def test_period_scope_combines_devoir_and_composition(self):
        grades = [grade(1, 12), grade(1, 16, exam_type="composition")]
        results = compute_class_results(CLASS_ID, S1, roster(1), [MATHS], grades)
        entry = results.get(1).subject(1)
        assert entry.devoir_avg == Decimal("12.00")
        assert entry.composition_avg == Decimal("16.00")
        assert entry.combined_avg == Decimal("14.00")

    def test_exam_scope_uses_only_that_exam(self):
        grades = [grade(1, 12, exam_id=7), grade(1, 20, exam_id=8), grade(1, 4)]
        scope = Scope.for_exam(7, "Devoir 1")
        results = compute_class_results(CLASS_ID, scope, roster(1), [MATHS], grades)
        assert results.get(1).overall_average == Decimal("12.00")


class TestStatistics:
    def test_class_statistics(self):
        results = compute_class_results(
            CLASS_ID, S1, roster(4), [MATHS], [grade(1, 14), grade(2, 16), grade(3, 8)]
        )
        stats = results.statistics
        assert stats.graded_students == 3
        assert stats.class_average == Decimal("12.67")
        assert stats.highest_average == Decimal("16.00")
        assert stats.lowest_average == Decimal("8.00")
        assert stats.pass_count == 2
        assert stats.subject_averages == {1: Decimal("12.67")}
        assert stats.appreciation_counts == {"Excellent": 1, "Très Bien": 1, "Passable": 1}


class TestInvalidInput:
    def test_class_id_is_required(self):
        with pytest.raises(ValueError):
            compute_class_results(None, S1, roster(1), [MATHS], [])

    def test_scope_must_be_a_scope(self):
        with pytest.raises(ValueError):
            compute_class_results(CLASS_ID, "1er_semestre", roster(1), [MATHS], [])

    def test_student_must_be_in_roster(self):
        with pytest.raises(ValueError):
            compute_student_result(CLASS_ID, S1, 99, roster(2), [MATHS], [grade(1, 12)])


def test_student_result_matches_class_ranking():
    grades = [grade(1, 14), grade(2, 16), grade(3, 10)]
    result = compute_student_result(CLASS_ID, S1, 1, roster(3), [MATHS], grades)
    assert result.rank == 2
    assert result.total_students == 3
    assert result.overall_average == Decimal("14.00")


class TestAnnualResults:
    def test_annual_average_of_available_periods(self):
        grades = [
            grade(1, 12),
            grade(1, 14, semester="2eme_semestre"),
            grade(2, 15),
        ]
        annual = compute_annual_results(CLASS_ID, roster(3), [MATHS], grades)

        assert [r.student_id for r in annual.results] == [2, 1, 3]
        assert [r.rank for r in annual.results] == [1, 2, None]

        first = annual.get(1)
        assert first.annual_average == Decimal("13.00")
        assert first.total_students == 2
        assert [p.average for p in first.periods] == [Decimal("12.00"), Decimal("14.00")]
        assert [p.rank for p in first.periods] == [2, 1]
        assert [p.total_students for p in first.periods] == [2, 1]
        assert first.periods[0].label == "PREMIER SEMESTRE"

        second = annual.get(2)
        assert second.annual_average == Decimal("15.00")
        assert second.periods[1].average is None
        assert second.periods[1].rank is None

        assert annual.get(3).has_grades is False
        assert annual.get(3).appreciation == "N/A"

    def test_trimester_school_has_three_periods(self):
        config = GradingConfig(period_system="trimestre")
        grades = [grade(1, 10, semester="1er_trimestre"), grade(1, 13, semester="3eme_trimestre")]
        annual = compute_annual_results(CLASS_ID, roster(1), [MATHS], grades, config)

        result = annual.get(1)
        assert len(result.periods) == 3
        assert len(annual.period_results) == 3
        assert result.periods[1].average is None
        assert result.annual_average == Decimal("11.50")
