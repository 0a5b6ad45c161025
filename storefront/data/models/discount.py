# storefront/data/models/discount.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from storefront.data.database import Base
from storefront.data.models._columns import created_at_column, id_column, updated_at_column
from storefront.utils.dates import utcnow


class DiscountModel(Base):
    __tablename__ = "discounts"

    id = id_column()
    code = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    type = Column(String(20), nullable=False)  # percentage, fixed, shipping
    # percentage: 10 = 10%; fixed and shipping: minor units
    value = Column(Integer, nullable=False)
    min_spend = Column(Integer, nullable=True)
    max_uses = Column(Integer, nullable=True)
    used_count = Column(Integer, nullable=False, default=0)

    valid_from = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    active = Column(Boolean, nullable=False, default=True)

    created_at = created_at_column()
    updated_at = updated_at_column()
