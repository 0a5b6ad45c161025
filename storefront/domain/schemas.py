# storefront/domain/schemas.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain.enums import OrderStatus, PaymentStatus, StockStatus


class CompositeItem(BaseModel):
    """Sub-item of a bundled cart or order line."""

    variant_id: str = Field(..., min_length=1)
    name: str
    quantity: int = Field(1, ge=1)


# ---------------------------------------------------------------- cart


class ProductRef(BaseModel):
    id: str
    name: str
    slug: str = ""


class CartItemView(BaseModel):
    """Line of a cart as shown to the shopper."""

    id: str
    cart_id: str
    variant_id: str
    product_id: str
    quantity: int
    price: int
    name: str
    variant_name: str
    sku: str = ""
    image_url: str = ""
    stock_status: StockStatus = StockStatus.IN_STOCK
    composites: List[CompositeItem] = []
    product: Optional[ProductRef] = None


class CartSummary(BaseModel):
    subtotal: int = 0
    discount_amount: int = 0
    total: int = 0
    item_count: int = 0


class CartView(CartSummary):
    """Cart with its lines and pricing summary."""

    id: str
    status: str
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    items: List[CartItemView] = []
    discount_code: Optional[str] = None


class GetCartIn(BaseModel):
    session_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None


class AddItemIn(BaseModel):
    """Schema for adding a variant to a cart."""

    variant_id: str = Field(..., min_length=1)
    quantity: int = Field(1, gt=0, description="Quantity to add (must be > 0)")
    composites: Optional[List[CompositeItem]] = None


class UpdateItemIn(BaseModel):
    quantity: int = Field(..., gt=0, description="New line quantity (must be > 0)")


class ApplyDiscountIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)


class MergeCartIn(BaseModel):
    session_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)


# ---------------------------------------------------------------- orders
# Order inputs carry no constraints of their own: OrderService checks them
# in a fixed order so the first violated rule is the one reported.


class OrderItemIn(BaseModel):
    product_id: str = ""
    variant_id: str = ""
    quantity: int = 0
    price: int = 0
    product_name: str = ""
    variant_name: str = ""
    composites: Optional[List[CompositeItem]] = None


class AddressIn(BaseModel):
    first_name: str = ""
    last_name: str = ""
    address1: str = ""
    address2: Optional[str] = None
    city: str = ""
    state: Optional[str] = None
    postal_code: str = ""
    country: str = ""
    email: str = ""
    phone: Optional[str] = None


class ShippingIn(BaseModel):
    method: str = "standard"
    amount: int = 0
    address: AddressIn


class PaymentIn(BaseModel):
    method: str = "card"
    intent_id: Optional[str] = None
    card_last4: Optional[str] = None
    card_brand: Optional[str] = None


class CreateOrderIn(BaseModel):
    """Everything needed to place an order."""

    user_id: Optional[str] = None
    cart_id: Optional[str] = None
    items: List[OrderItemIn]
    shipping: ShippingIn
    payment: PaymentIn = PaymentIn()
    subtotal: int
    tax_amount: int = 0
    discount_amount: int = 0
    currency: str = "USD"


class CheckoutIn(BaseModel):
    """Schema for placing an order straight from a cart."""

    shipping: ShippingIn
    payment: PaymentIn = PaymentIn()
    tax_amount: int = Field(0, ge=0)
    user_id: Optional[str] = None


class OrderItemView(BaseModel):
    id: str
    product_id: str
    variant_id: Optional[str] = None
    quantity: int
    unit_price: int
    total_price: int
    name: str
    variant_name: str
    composites: Optional[List[CompositeItem]] = None


class AddressView(BaseModel):
    first_name: str
    last_name: str
    address1: str
    address2: Optional[str] = None
    city: str
    state: str = ""
    postal_code: str
    country: str
    email: str
    phone: Optional[str] = None


class OrderView(BaseModel):
    """Read model of a placed order."""

    id: str
    order_number: str
    user_id: Optional[str] = None
    cart_id: Optional[str] = None
    status: str
    email: str
    subtotal: int
    tax_amount: int
    shipping_amount: int
    discount_amount: int
    total: int
    currency: str
    shipping_method: str
    payment_method: str
    payment_intent_ref: Optional[str] = None
    items: List[OrderItemView]
    shipping_address: AddressView
    created_at: datetime
    updated_at: datetime


class StatusHistoryEntry(BaseModel):
    status: str
    note: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentTransactionView(BaseModel):
    id: str
    order_id: str
    status: str
    amount: int
    currency: str
    payment_intent_ref: str
    payment_method: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RefundView(BaseModel):
    id: str
    order_id: str
    transaction_id: str
    amount: int
    reason: Optional[str] = None
    status: str
    refund_ref: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UpdateStatusIn(BaseModel):
    status: OrderStatus
    note: Optional[str] = None


class CreatePaymentIn(BaseModel):
    amount: int = Field(..., ge=0)
    method: str = Field(..., min_length=1)
    intent_ref: Optional[str] = None
    status: PaymentStatus = PaymentStatus.PENDING


class CreateRefundIn(BaseModel):
    transaction_id: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    reason: Optional[str] = None
    refund_ref: Optional[str] = None
