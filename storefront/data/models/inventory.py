# storefront/data/models/inventory.py
from sqlalchemy import Column, ForeignKey, Integer, String, Text

from storefront.data.database import Base
from storefront.data.models._columns import created_at_column, id_column


class InventoryTransactionModel(Base):
    """Stock ledger row: negative quantities leave stock, positive ones add to it."""

    __tablename__ = "inventory_transactions"

    id = id_column()
    product_id = Column(String(36), nullable=False, index=True)
    variant_id = Column(String(36), ForeignKey("product_variants.id"), nullable=True, index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=True, index=True)
    type = Column(String(20), nullable=False)  # order, restock, adjustment
    quantity = Column(Integer, nullable=False)
    note = Column(Text, nullable=True)
    created_at = created_at_column()
