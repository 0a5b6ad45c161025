# storefront/repos/inventory_repo.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from storefront.data.models.catalogue import ProductVariantModel
from storefront.data.models.inventory import InventoryTransactionModel


class InventoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_transaction(self, transaction: InventoryTransactionModel) -> InventoryTransactionModel:
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def ledger_total(self, variant_id: str) -> int:
        stmt = select(func.coalesce(func.sum(InventoryTransactionModel.quantity), 0)).where(
            InventoryTransactionModel.variant_id == variant_id
        )
        return int(self.db.execute(stmt).scalar_one())

    def stock_level(self, variant: ProductVariantModel) -> int:
        """Opening stock plus every ledger movement for the variant."""
        return variant.stock_quantity + self.ledger_total(variant.id)
