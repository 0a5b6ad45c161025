# storefront/domain/enums.py
from enum import Enum


class CartStatus(str, Enum):
    ACTIVE = "active"
    MERGED = "merged"
    CONVERTED = "converted_to_order"
    ABANDONED = "abandoned"


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_FAILED = "payment_failed"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class RefundStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class DiscountType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    SHIPPING = "shipping"


class AddressType(str, Enum):
    SHIPPING = "shipping"
    BILLING = "billing"


class InventoryTransactionType(str, Enum):
    ORDER = "order"
    RESTOCK = "restock"
    ADJUSTMENT = "adjustment"


class StockStatus(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"
