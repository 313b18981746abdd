# backend/utils/pricing.py
"""Price arithmetic for weight-priced and composed products, and promotions.

Everything here is a pure function of its arguments. Values are kept at full
float precision; rounding only happens for display through ``round_money``.
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional, Tuple, Union

COMPOSED_MARKUP = 1.3


@dataclass(frozen=True)
class PriceBreakdown:
    material_cost: float
    labor_cost: float
    cost_price: float
    sale_price: float


def compute_price_breakdown(weight: float, material_rate: float, labor_rate: float, margin: float) -> PriceBreakdown:
    """Derive costs and sale price from a weight in grams and per-gram rates.

    A zero weight or rate yields zero costs; negative values are rejected by
    the request schemas, not here.
    """
    material_cost = weight * material_rate
    labor_cost = weight * labor_rate
    cost_price = material_cost + labor_cost
    return PriceBreakdown(
        material_cost=material_cost,
        labor_cost=labor_cost,
        cost_price=cost_price,
        sale_price=cost_price + margin,
    )


def preserve_minimum_price(previous_sale_price: float, previous_minimum: Optional[float], new_sale_price: float) -> float:
    """Shift the minimum sale price so it keeps the same distance below the sale price."""
    delta = previous_sale_price - (previous_minimum or 0.0)
    return max(0.0, new_sale_price - delta)


def composed_purchase_cost(components: Iterable[Tuple[float, float]]) -> float:
    """Sum of purchase_price * quantity over (purchase_price, quantity) pairs."""
    return sum(price * quantity for price, quantity in components)


def suggested_composed_price(purchase_cost: float) -> float:
    return round(purchase_cost * COMPOSED_MARKUP, 2)


def is_promotion_active(start_date: date, end_date: date, now: Union[date, datetime, None] = None) -> bool:
    # Both bounds are inclusive; a datetime is compared on its calendar day
    if now is None:
        now = date.today()
    if isinstance(now, datetime):
        now = now.date()
    return start_date <= now <= end_date


def effective_price(sale_price: float, promotion_type: str, value: float) -> float:
    """Displayed unit price once a promotion applies.

    Fixed-amount discounts are not floored and can go below zero.
    """
    kind = getattr(promotion_type, "value", promotion_type)
    if kind == "percentage":
        return sale_price * (1 - value / 100)
    if kind == "fixed_amount":
        return sale_price - value
    if kind == "bundle":
        return sale_price
    raise ValueError(f"Unknown promotion type: {kind}")


def round_money(amount: Optional[float]) -> float:
    return round(amount or 0.0, 2)
