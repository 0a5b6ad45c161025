# storefront/domain/pricing.py
from collections.abc import Mapping
from typing import Any, Sequence

from storefront.domain.errors import CartValidationError
from storefront.domain.schemas import CartSummary


def _field(item: Any, name: str) -> int:
    if isinstance(item, Mapping):
        return item[name]
    return getattr(item, name)


def calculate_summary(items: Sequence[Any], discount_amount: int = 0) -> CartSummary:
    """
    Price a list of lines.

    Lines may be mappings or objects exposing ``price`` and ``quantity``
    in minor units. An empty list prices to all zeros, discount included.
    """
    if not isinstance(items, (list, tuple)):
        raise CartValidationError("Invalid items array")
    if not isinstance(discount_amount, int) or isinstance(discount_amount, bool) or discount_amount < 0:
        raise CartValidationError("Invalid discount amount")

    if not items:
        return CartSummary()

    subtotal = sum(_field(i, "price") * _field(i, "quantity") for i in items)
    item_count = sum(_field(i, "quantity") for i in items)

    return CartSummary(
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=subtotal - discount_amount,
        item_count=item_count,
    )
