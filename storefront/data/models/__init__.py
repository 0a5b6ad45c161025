# import all models so SQLAlchemy registers them on Base.metadata

from storefront.data.models.cart import CartModel, CartItemModel
from storefront.data.models.catalogue import ProductModel, ProductImageModel, ProductVariantModel
from storefront.data.models.discount import DiscountModel
from storefront.data.models.inventory import InventoryTransactionModel
from storefront.data.models.order import (
    OrderModel,
    OrderItemModel,
    OrderAddressModel,
    OrderStatusHistoryModel,
    PaymentTransactionModel,
    RefundModel,
)

__all__ = [
    "CartModel",
    "CartItemModel",
    "ProductModel",
    "ProductImageModel",
    "ProductVariantModel",
    "DiscountModel",
    "InventoryTransactionModel",
    "OrderModel",
    "OrderItemModel",
    "OrderAddressModel",
    "OrderStatusHistoryModel",
    "PaymentTransactionModel",
    "RefundModel",
]
