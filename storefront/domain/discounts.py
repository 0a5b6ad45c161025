# storefront/domain/discounts.py
"""
Pure discount rules: applicability, amount by type and shipping waivers.

Discounts are read duck-typed (``type``, ``value``, ``min_spend``,
``max_uses``, ``used_count``, ``valid_from``, ``valid_until``, ``active``),
so the ORM row is passed in directly.
"""
from datetime import datetime
from typing import Any, Optional

from storefront.domain.enums import DiscountType
from storefront.domain.errors import DiscountError, DiscountReason
from storefront.utils.dates import as_utc
from storefront.utils.money import format_price


def validate_discount(
    discount: Any,
    subtotal: int,
    now: datetime,
    ignore_usage: bool = False,
) -> Optional[DiscountReason]:
    """Return the first reason the discount cannot be used, or None."""
    if not discount.active:
        return DiscountReason.INACTIVE

    valid_from = as_utc(discount.valid_from)
    valid_until = as_utc(discount.valid_until)
    if valid_from is not None and valid_from > now:
        return DiscountReason.NOT_YET_VALID
    if valid_until is not None and valid_until < now:
        return DiscountReason.EXPIRED

    if not ignore_usage and discount.max_uses is not None and discount.used_count >= discount.max_uses:
        return DiscountReason.MAX_USES_REACHED

    if discount.min_spend and subtotal < discount.min_spend:
        return DiscountReason.BELOW_MIN_SPEND

    if discount.type not in {t.value for t in DiscountType}:
        return DiscountReason.INVALID_TYPE

    return None


def reason_message(reason: DiscountReason, discount: Any = None) -> str:
    if reason is DiscountReason.BELOW_MIN_SPEND and discount is not None:
        return f"Minimum spend of {format_price(discount.min_spend)} required for this discount"
    return {
        DiscountReason.NOT_FOUND: "Discount code not found",
        DiscountReason.INACTIVE: "Discount code is inactive",
        DiscountReason.NOT_YET_VALID: "Discount code is not yet valid",
        DiscountReason.EXPIRED: "Discount code has expired",
        DiscountReason.MAX_USES_REACHED: "Discount code has reached maximum uses",
        DiscountReason.BELOW_MIN_SPEND: "Minimum spend not reached for this discount",
        DiscountReason.INVALID_TYPE: "Invalid discount type",
    }[reason]


def compute_discount_amount(discount: Any, subtotal: int) -> int:
    """
    Amount by type, in minor units.

    percentage: value is a percent, rounded half-up, capped at subtotal.
    fixed:      value in minor units, capped at subtotal.
    shipping:   value is returned as-is; it is a signal for the shipping
                charge, not a reduction of the subtotal (0 waives it fully).
    """
    kind = discount.type
    if kind == DiscountType.PERCENTAGE.value:
        return min((subtotal * discount.value + 50) // 100, subtotal)
    if kind == DiscountType.FIXED.value:
        return min(discount.value, subtotal)
    if kind == DiscountType.SHIPPING.value:
        return discount.value
    raise DiscountError(DiscountReason.INVALID_TYPE, reason_message(DiscountReason.INVALID_TYPE))


def cart_discount_amount(discount: Any, subtotal: int) -> int:
    """Portion of the discount taken off the cart subtotal."""
    if discount.type == DiscountType.SHIPPING.value:
        return 0
    return compute_discount_amount(discount, max(subtotal, 0))


def apply_shipping_discount(shipping_amount: int, signal: int) -> int:
    """Shipping charge left after a shipping discount signal."""
    if signal <= 0:
        return 0
    return max(shipping_amount - signal, 0)
