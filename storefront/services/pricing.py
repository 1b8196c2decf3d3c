# storefront/services/pricing.py
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from storefront.domain.values import CartLine, Promotion

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

PERCENTAGE = "percentage"
FIXED = "fixed"


def round_money(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(line: CartLine) -> Decimal:
    return round_money(Decimal(line.unit_price) * line.quantity)


def cart_total(lines: Iterable[CartLine]) -> Decimal:
    """Pre-discount total, rounded once at the end."""
    total = sum((Decimal(li.unit_price) * li.quantity for li in lines), ZERO)
    return round_money(total)


def apply_promotion(total: Decimal, promo: Promotion | None) -> Decimal:
    """
    percentage -> total * (1 - pct/100), fixed -> total - value.
    Missing, inactive or unknown-kind promotions leave the total unchanged. Never below 0.
    """
    if promo is None or not promo.active:
        return round_money(total)

    value = Decimal(promo.value)

    if promo.kind == PERCENTAGE:
        discounted = round_money(total * (1 - value / HUNDRED))
    elif promo.kind == FIXED:
        discounted = round_money(total - value)
    else:
        return round_money(total)

    return max(ZERO, discounted)
