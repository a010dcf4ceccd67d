"""Tests for class ranking."""

from decimal import Decimal

from app.grading.ranking import competition_ranks, ranking_order


def d(*values):
    return [None if v is None else Decimal(str(v)) for v in values]


def test_ranks_by_descending_average():
    assert competition_ranks(d(14, 16, 10)) == [2, 1, 3]


def test_ties_share_a_rank_and_skip_the_next():
    assert competition_ranks(d(15, 15, 12)) == [1, 1, 3]
    assert competition_ranks(d(12, 15, 15, 15)) == [4, 1, 1, 1]


def test_unranked_entries_do_not_count():
    assert competition_ranks(d(None, 11, 13)) == [None, 2, 1]
    assert competition_ranks(d(None, None)) == [None, None]


def test_order_keeps_input_order_for_ties():
    assert ranking_order(d(14, None, 16, 14)) == [2, 0, 3, 1]


def test_order_of_empty_class():
    assert ranking_order([]) == []
