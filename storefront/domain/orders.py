# storefront/domain/orders.py
from typing import Any, Optional

from storefront.domain.enums import OrderStatus
from storefront.domain.errors import OrderValidationError
from storefront.domain.schemas import CartItemView, CreateOrderIn, OrderItemIn
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

FORWARD_FLOW = [
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.PAID,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
]
TERMINAL = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}


def validate_order(data: CreateOrderIn) -> None:
    """Check order preconditions in order; the first failing rule is raised."""
    address = data.shipping.address

    if len(data.items) == 0:
        raise OrderValidationError("Order must have at least one item")
    if data.subtotal <= 0:
        raise OrderValidationError("Order subtotal must be greater than 0")
    if data.tax_amount < 0:
        raise OrderValidationError("Tax amount cannot be negative")
    if data.shipping.amount < 0:
        raise OrderValidationError("Shipping amount cannot be negative")
    if data.discount_amount and data.discount_amount < 0:
        raise OrderValidationError("Discount amount cannot be negative")
    if not address.email:
        raise OrderValidationError("Shipping email is required")
    if not address.first_name or not address.last_name:
        raise OrderValidationError("Shipping name is required")
    if not (address.address1 and address.city and address.postal_code and address.country):
        raise OrderValidationError("Complete shipping address is required")

    if address.state is None:
        address.state = ""


def order_total(subtotal: int, tax_amount: int, shipping_amount: int, discount_amount: int = 0) -> int:
    return subtotal + tax_amount + shipping_amount - (discount_amount or 0)


def _filled(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_valid_order_item(item: OrderItemIn) -> bool:
    problems = []
    if not _filled(item.product_id):
        problems.append("product_id")
    if not _filled(item.variant_id):
        problems.append("variant_id")
    if not _filled(item.product_name):
        problems.append("product_name")
    if not _filled(item.variant_name):
        problems.append("variant_name")
    if not item.quantity > 0:
        problems.append("quantity")
    if not item.price >= 0:
        problems.append("price")

    if problems:
        logger.warning("Dropping invalid order item", variant_id=item.variant_id, invalid=problems)
        return False
    return True


def map_cart_item_to_order_item(cart_item: CartItemView) -> OrderItemIn:
    product = cart_item.product
    return OrderItemIn(
        product_id=product.id if product else cart_item.product_id,
        variant_id=cart_item.variant_id,
        quantity=cart_item.quantity,
        price=cart_item.price,
        product_name=product.name if product else cart_item.name,
        variant_name=cart_item.variant_name,
        composites=cart_item.composites or None,
    )


def can_transition(current: str, new: str) -> bool:
    """
    pending_payment -> paid -> processing -> shipped -> delivered, forward
    only. cancelled and refunded leave any non-terminal state; a delivered
    order can only be refunded. payment_failed sits beside pending_payment
    and recovers to paid.
    """
    try:
        current_status, new_status = OrderStatus(current), OrderStatus(new)
    except ValueError:
        return False

    if current_status in TERMINAL or current_status == new_status:
        return False
    if current_status == OrderStatus.DELIVERED:
        return new_status == OrderStatus.REFUNDED
    if new_status in TERMINAL:
        return True
    if new_status == OrderStatus.PAYMENT_FAILED:
        return current_status == OrderStatus.PENDING_PAYMENT
    if current_status == OrderStatus.PAYMENT_FAILED:
        return new_status == OrderStatus.PAID
    return FORWARD_FLOW.index(new_status) > FORWARD_FLOW.index(current_status)


def payment_method_label(intent_ref: Optional[str]) -> str:
    return "stripe" if intent_ref else "unknown"
