"""Tests for appreciation bands."""

from decimal import Decimal

import pytest

from app.grading.appreciation import NOT_AVAILABLE, appreciation_legend, get_appreciation


@pytest.mark.parametrize(
    "grade, expected",
    [
        (20, "Excellent"),
        (16, "Excellent"),
        (Decimal("15.99"), "Très Bien"),
        (14, "Très Bien"),
        (12, "Bien"),
        (10, "Assez Bien"),
        (9, "Passable"),
        (6, "Insuffisant"),
        (Decimal("5.99"), "Médiocre"),
        (0, "Médiocre"),
    ],
)
def test_bands_on_twenty(grade, expected):
    assert get_appreciation(grade) == expected


def test_bands_follow_scale():
    assert get_appreciation(8, 10) == "Excellent"
    assert get_appreciation(50, 100) == "Assez Bien"


def test_string_grades_are_parsed():
    assert get_appreciation("12,5") == "Bien"
    assert get_appreciation(" 16 ") == "Excellent"


@pytest.mark.parametrize(
    "grade, scale",
    [(0, 0), (12, -20), (None, 20), ("abc", 20), (float("nan"), 20), (12, None), (True, 20)],
)
def test_unusable_input_is_not_available(grade, scale):
    """Never raises, whatever the input."""
    assert get_appreciation(grade, scale) == NOT_AVAILABLE


def test_legend_on_twenty():
    legend = appreciation_legend()
    assert legend[0] == ("Excellent", ">= 16")
    assert legend[1] == ("Très Bien", ">= 14")
    assert legend[-1] == ("Médiocre", "< 6")
    assert len(legend) == 7


def test_legend_on_ten():
    legend = dict(appreciation_legend(10))
    assert legend["Excellent"] == ">= 8"
    assert legend["Passable"] == ">= 4"
