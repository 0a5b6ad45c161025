# storefront/data/models/order.py
from sqlalchemy import Column, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models._columns import created_at_column, id_column, updated_at_column
from storefront.domain.enums import OrderStatus


class OrderModel(Base):
    __tablename__ = "orders"

    id = id_column()
    user_id = Column(String(36), nullable=True, index=True)
    cart_id = Column(String(36), nullable=True)

    status = Column(String(32), nullable=False, default=OrderStatus.PENDING_PAYMENT.value, index=True)

    # snapshot of the shipping contact, not the user profile
    email = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)

    subtotal = Column(Integer, nullable=False)
    tax_amount = Column(Integer, nullable=False, default=0)
    shipping_amount = Column(Integer, nullable=False, default=0)
    discount_amount = Column(Integer, nullable=False, default=0)
    total = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    shipping_method = Column(String(50), nullable=False, default="standard")
    payment_method = Column(String(50), nullable=True)
    payment_intent_ref = Column(String(255), nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    items = relationship("OrderItemModel", order_by="OrderItemModel.created_at")
    addresses = relationship("OrderAddressModel")


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = id_column()
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(String(36), nullable=False, index=True)
    variant_id = Column(String(36), nullable=True, index=True)

    quantity = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    variant_name = Column(String(255), nullable=False)
    composites = Column(JSON, nullable=True)

    created_at = created_at_column()


class OrderAddressModel(Base):
    __tablename__ = "order_addresses"

    id = id_column()
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # shipping, billing

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    address1 = Column(String(255), nullable=False)
    address2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False, default="")
    postal_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)


class OrderStatusHistoryModel(Base):
    """Append-only audit trail of status changes."""

    __tablename__ = "order_status_history"

    id = id_column()
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(String(32), nullable=False)
    note = Column(Text, nullable=True)
    created_at = created_at_column()


class PaymentTransactionModel(Base):
    __tablename__ = "payment_transactions"

    id = id_column()
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")
    amount = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    payment_intent_ref = Column(String(255), nullable=False, index=True)
    payment_method = Column(String(100), nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()


class RefundModel(Base):
    __tablename__ = "refunds"

    id = id_column()
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    transaction_id = Column(String(36), ForeignKey("payment_transactions.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    refund_ref = Column(String(255), nullable=True)

    created_at = created_at_column()
