# storefront/data/models/cart.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models._columns import created_at_column, id_column, updated_at_column
from storefront.domain.enums import CartStatus
from storefront.utils.dates import utcnow


class CartModel(Base):
    __tablename__ = "carts"

    id = id_column()
    session_id = Column(String(255), nullable=True, index=True)
    user_id = Column(String(36), nullable=True, index=True)

    status = Column(String(32), nullable=False, default=CartStatus.ACTIVE.value, index=True)
    discount_code = Column(String(100), nullable=True)
    discount_amount = Column(Integer, nullable=False, default=0)

    last_activity_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = created_at_column()
    updated_at = updated_at_column()


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = id_column()
    cart_id = Column(String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    variant_id = Column(String(36), ForeignKey("product_variants.id"), nullable=False, index=True)
    product_id = Column(String(36), nullable=False)

    quantity = Column(Integer, nullable=False)
    # minor units, captured when the line was added
    price = Column(Integer, nullable=False)
    composites = Column(JSON, nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    variant = relationship("ProductVariantModel", lazy="joined")

    __table_args__ = (UniqueConstraint("cart_id", "variant_id", name="u_cart_variant"),)
