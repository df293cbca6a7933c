"""Aggregate rating computation.

Averages are rounded half up to two places, the same precision the product
``rating`` column stores.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable

from ..common.money import to_money

RATING_SCALE = (1, 2, 3, 4, 5)


@dataclass(frozen=True)
class RatingSummary:
    count: int
    average: Decimal
    distribution: Dict[int, int]


def summarize_ratings(ratings: Iterable[int]) -> RatingSummary:
    distribution = {star: 0 for star in RATING_SCALE}
    for rating in ratings:
        if rating not in distribution:
            raise ValueError(f"rating out of range: {rating!r}")
        distribution[rating] += 1

    count = sum(distribution.values())
    points = sum(star * n for star, n in distribution.items())
    average = to_money(Decimal(points) / count) if count else Decimal("0.00")
    return RatingSummary(count=count, average=average, distribution=distribution)
