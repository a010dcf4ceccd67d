"""Tests for period tag normalization."""

import pytest

from app.grading.periods import (
    canonical_period,
    matches_period,
    parse_period,
    period_count,
    period_label,
    period_tag,
)
from app.models.school import PeriodSystem


@pytest.mark.parametrize(
    "tag",
    ["S1", "s1", "semestre1", "Semestre 1", "1er_semestre", "1er semestre", "Premier semestre", "1"],
)
def test_first_semester_spellings(tag):
    """Every common spelling folds to the same canonical token."""
    assert canonical_period(tag) == "1er_semestre"


def test_trimester_spellings():
    assert canonical_period("T2") == "2eme_trimestre"
    assert canonical_period("2ème trimestre") == "2eme_trimestre"
    assert canonical_period("troisième trimestre") == "3eme_trimestre"


def test_bare_number_takes_school_system():
    assert canonical_period("3", PeriodSystem.TRIMESTRE) == "3eme_trimestre"
    assert canonical_period("2", "semestre") == "2eme_semestre"


def test_blank_and_unknown_tags():
    assert canonical_period(None) is None
    assert canonical_period("   ") is None
    # Unrecognized text is kept as written
    assert canonical_period("S4") == "S4"
    assert canonical_period("rattrapage") == "rattrapage"
    assert parse_period("rattrapage") is None


def test_parse_period_reports_kind():
    assert parse_period("T1") == (1, "trimestre")
    assert parse_period("2") == (2, None)
    assert parse_period("S0") is None


def test_untagged_grades_match_every_period_unless_strict():
    assert matches_period(None, 1)
    assert matches_period("", 2)
    assert not matches_period(None, 1, strict=True)


def test_matches_period_compares_canonical_forms():
    assert matches_period("1er semestre", 1)
    assert matches_period("S2", 2)
    assert not matches_period("S1", 2)
    # A trimester tag never matches a semester period
    assert not matches_period("T1", 1, "semestre")
    assert matches_period("T1", 1, "trimestre")


def test_period_count_and_labels():
    assert period_count() == 2
    assert period_count("trimestre") == 3
    assert period_count(PeriodSystem.TRIMESTRE) == 3
    assert period_tag(1) == "1er_semestre"
    assert period_tag(3, "trimestre") == "3eme_trimestre"
    assert period_label(1) == "PREMIER SEMESTRE"
    assert period_label(2, PeriodSystem.TRIMESTRE) == "DEUXIEME TRIMESTRE"
