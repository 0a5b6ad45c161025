# storefront/domain/errors.py
"""
Domain error taxonomy.

Services raise only these; storage exceptions are re-wrapped into the
nearest kind before they leave a public operation.
"""
from enum import Enum


class ShopError(Exception):
    pass


class ValidationError(ShopError, ValueError):
    """Bad primitive input, raised before any storage access."""


class CartError(ShopError):
    pass


class CartValidationError(ValidationError, CartError):
    pass


class CartNotFoundError(CartError):
    pass


class VariantError(ShopError):
    pass


class StockError(CartError):
    def __init__(self, variant_id: str, requested: int, available: int):
        self.variant_id = variant_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock available. Requested: {requested}, Available: {available}"
        )


class DiscountReason(str, Enum):
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    MAX_USES_REACHED = "max_uses_reached"
    BELOW_MIN_SPEND = "below_min_spend"
    INVALID_TYPE = "invalid_type"


class DiscountError(CartError):
    def __init__(self, reason: DiscountReason, message: str):
        self.reason = reason
        super().__init__(message)


class OrderError(ShopError):
    pass


class OrderNotFoundError(OrderError):
    pass


class OrderValidationError(ValidationError, OrderError):
    pass


class InvalidStatusTransition(OrderError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot move order from {current} to {requested}")
