"""
Promo evaluation - decides whether a code applies to a subtotal and by how much.

Shared by the promo check endpoint and order creation so both agree on the
discount for the same subtotal.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from django.utils import timezone

from apps.web.restaurant.models import DiscountType, Promo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PromoEvaluation:
    """Outcome of checking a promo code against a subtotal."""

    valid: bool
    message: str
    promo: Promo | None = None
    discount_amount: int = 0


def find_promo(code: str) -> Promo | None:
    """Look up a promo by code, case-insensitively."""
    return Promo.objects.filter(code=code.strip().upper()).first()


def calculate_discount(promo: Promo, subtotal: int) -> int:
    """
    Discount for a subtotal, ignoring eligibility rules.

    Percentage discounts are capped by max_discount when set; every
    discount is capped at the subtotal and rounded down to whole Rupiah.
    """
    if promo.discount_type == DiscountType.FIXED:
        discount = float(promo.discount_value)
    else:
        discount = subtotal * promo.discount_value / 100
        if promo.max_discount and discount > promo.max_discount:
            discount = float(promo.max_discount)

    discount = min(discount, float(subtotal))
    return int(discount)


def evaluate_promo(
    code: str, subtotal: int, now: datetime | None = None
) -> PromoEvaluation:
    """
    Check a promo code against a cart subtotal.

    Rules are applied in order: existence, active flag, validity window,
    usage limit, minimum purchase.

    Args:
        code: Code as typed by the customer
        subtotal: Cart subtotal in Rupiah
        now: Evaluation time (default: current time)

    Returns:
        PromoEvaluation with the discount when valid, otherwise the
        customer-facing rejection reason
    """
    now = now or timezone.now()
    promo = find_promo(code)

    if promo is None:
        return PromoEvaluation(valid=False, message="Promo code not found")

    if not promo.is_active:
        return PromoEvaluation(valid=False, message="Promo code is not active")

    if promo.start_date > now or promo.end_date < now:
        logger.info(
            "Promo outside validity window: code=%s start=%s end=%s now=%s",
            promo.code,
            promo.start_date.isoformat(),
            promo.end_date.isoformat(),
            now.isoformat(),
        )
        return PromoEvaluation(
            valid=False, message="Promo code has expired or has not started yet"
        )

    if promo.usage_limit > 0 and promo.usage_count >= promo.usage_limit:
        return PromoEvaluation(valid=False, message="Promo quota has been used up")

    if subtotal < promo.min_purchase:
        return PromoEvaluation(
            valid=False,
            message=f"Minimum purchase is Rp {format_rupiah(promo.min_purchase)}",
        )

    discount = calculate_discount(promo, subtotal)
    logger.info("Promo valid: code=%s discount=%s", promo.code, discount)
    return PromoEvaluation(
        valid=True,
        message="Promo applied!",
        promo=promo,
        discount_amount=discount,
    )


def format_rupiah(amount: int) -> str:
    """Format with Indonesian thousands separators, e.g. 50000 -> 50.000."""
    return f"{amount:,}".replace(",", ".")
