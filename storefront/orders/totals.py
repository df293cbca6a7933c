"""Order total computation.

Totals are rounded to cents when computed, so the persisted figures are the
ones the customer saw. ``total_amount`` is always the sum of the three rounded
components.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, NamedTuple

from ..common.config import Settings
from ..common.money import to_money


class LineAmount(NamedTuple):
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class PricingPolicy:
    free_shipping_threshold: Decimal = Decimal("100.00")
    flat_shipping_cost: Decimal = Decimal("10.00")
    tax_rate: Decimal = Decimal("0.08")

    @classmethod
    def from_settings(cls, config: Settings) -> "PricingPolicy":
        return cls(
            free_shipping_threshold=config.FREE_SHIPPING_THRESHOLD,
            flat_shipping_cost=config.FLAT_SHIPPING_COST,
            tax_rate=config.TAX_RATE,
        )


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    shipping_cost: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def compute_totals(lines: Iterable[LineAmount], policy: PricingPolicy = PricingPolicy()) -> OrderTotals:
    subtotal = to_money(sum((to_money(line.unit_price) * line.quantity for line in lines), Decimal("0")))
    # Free shipping only strictly above the threshold
    shipping = Decimal("0.00") if subtotal > policy.free_shipping_threshold else to_money(policy.flat_shipping_cost)
    tax = to_money(subtotal * policy.tax_rate)
    return OrderTotals(
        subtotal=subtotal,
        shipping_cost=shipping,
        tax_amount=tax,
        total_amount=subtotal + shipping + tax,
    )
