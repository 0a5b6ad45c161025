# storefront/services/stock_validator.py
from sqlalchemy.orm import Session

from storefront.domain.errors import VariantError
from storefront.domain.stock import StockCheck
from storefront.repos.catalogue_repo import CatalogueRepo
from storefront.repos.inventory_repo import InventoryRepo


class StockValidator:
    """
    Compares a requested quantity with what a variant has left.

    The variant row is read FOR UPDATE, so a caller running inside a
    transaction holds the lock until it commits its own write.
    """

    def __init__(self, db: Session):
        self.catalogue = CatalogueRepo(db)
        self.inventory = InventoryRepo(db)

    def check_availability(self, variant_id: str, requested_quantity: int, already_reserved: int = 0) -> StockCheck:
        variant = self.catalogue.get_variant(variant_id, for_update=True)
        if not variant:
            raise VariantError("Product variant not found")

        return StockCheck(
            variant_id=variant_id,
            requested=requested_quantity + already_reserved,
            available=self.inventory.stock_level(variant),
        )
