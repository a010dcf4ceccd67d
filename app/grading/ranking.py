"""Class ranking."""

from collections.abc import Sequence
from decimal import Decimal


def competition_ranks(averages: Sequence[Decimal | None]) -> list[int | None]:
    """Rank each average as 1 + the number of strictly greater averages.

    Equal averages share a rank and the next rank is skipped ("1, 1, 3").
    Entries that are None are not ranked and do not count.
    """
    ranked = [value for value in averages if value is not None]
    return [
        None if value is None else 1 + sum(1 for other in ranked if other > value)
        for value in averages
    ]


def ranking_order(averages: Sequence[Decimal | None]) -> list[int]:
    """Indices of ``averages`` in bulletin order.

    Best average first, ties in input order, unranked entries last.
    """
    ranked = sorted(
        (index for index, value in enumerate(averages) if value is not None),
        key=lambda index: -averages[index],
    )
    unranked = [index for index, value in enumerate(averages) if value is None]
    return ranked + unranked
