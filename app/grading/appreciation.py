"""Appreciation bands printed on bulletins and results tables."""

from typing import Any

from app.grading.numbers import to_decimal

NOT_AVAILABLE = "N/A"
LOWEST_BAND = "Médiocre"

# (minimum percentage, label), highest band first
APPRECIATION_BANDS: tuple[tuple[int, str], ...] = (
    (80, "Excellent"),
    (70, "Très Bien"),
    (60, "Bien"),
    (50, "Assez Bien"),
    (40, "Passable"),
    (30, "Insuffisant"),
)


def get_appreciation(grade: Any, max_scale: Any = 20) -> str:
    """Return the appreciation label for ``grade`` out of ``max_scale``.

    Returns "N/A" when either value is not a number or the scale is not
    positive; never raises.
    """
    value = to_decimal(grade)
    scale = to_decimal(max_scale)
    if value is None or scale is None or scale <= 0:
        return NOT_AVAILABLE

    percentage = value / scale * 100
    for threshold, label in APPRECIATION_BANDS:
        if percentage >= threshold:
            return label
    return LOWEST_BAND


def appreciation_legend(max_scale: Any = 20) -> list[tuple[str, str]]:
    """Legend rows ("Excellent", ">= 16") expressed on ``max_scale``."""
    scale = to_decimal(max_scale) or to_decimal(20)
    rows = []
    for threshold, label in APPRECIATION_BANDS:
        bound = (scale * threshold / 100).normalize()
        rows.append((label, f">= {bound:f}"))
    lowest = (scale * APPRECIATION_BANDS[-1][0] / 100).normalize()
    rows.append((LOWEST_BAND, f"< {lowest:f}"))
    return rows
