# storefront/data/models/catalogue.py
from sqlalchemy import Column, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from storefront.data.database import Base
from storefront.data.models._columns import created_at_column, id_column, updated_at_column


class ProductModel(Base):
    __tablename__ = "products"

    id = id_column()
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    variants = relationship("ProductVariantModel", back_populates="product")


class ProductImageModel(Base):
    __tablename__ = "product_images"

    id = id_column()
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    url = Column(String(1024), nullable=False)
    alt = Column(String(255), nullable=True)
    position = Column(Integer, nullable=False, default=0)


class ProductVariantModel(Base):
    __tablename__ = "product_variants"

    id = id_column()
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    sku = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=False)

    price = Column(Integer, nullable=False)
    # optional per-locale overrides, e.g. {"en-GB": 2300}
    prices = Column(JSON, nullable=True)
    # opening stock; movements live in inventory_transactions
    stock_quantity = Column(Integer, nullable=False, default=0)
    attributes = Column(JSON, nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    product = relationship("ProductModel", back_populates="variants", lazy="joined")
