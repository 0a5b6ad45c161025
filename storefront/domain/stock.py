# storefront/domain/stock.py
from typing import NamedTuple

from storefront.domain.enums import StockStatus
from storefront.domain.errors import StockError
from storefront.utils.settings import LOW_STOCK_THRESHOLD


def stock_status(quantity: int, low_threshold: int = LOW_STOCK_THRESHOLD) -> StockStatus:
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if quantity < low_threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


class StockCheck(NamedTuple):
    """Outcome of an availability check. Never mutates anything."""

    variant_id: str
    requested: int
    available: int

    @property
    def ok(self) -> bool:
        return self.requested <= self.available

    def raise_for_status(self) -> None:
        if not self.ok:
            raise StockError(self.variant_id, self.requested, self.available)
