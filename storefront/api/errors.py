# storefront/api/errors.py
from fastapi import HTTPException

from storefront.domain.errors import (
    CartNotFoundError,
    DiscountError,
    InvalidStatusTransition,
    OrderNotFoundError,
    ShopError,
    StockError,
    ValidationError,
    VariantError,
)


def to_http(e: ShopError) -> HTTPException:
    """Translate a domain error into the HTTP error the routers raise."""
    detail = {"error": type(e).__name__, "message": str(e)}

    if isinstance(e, ValidationError):
        return HTTPException(status_code=422, detail=detail)
    if isinstance(e, (CartNotFoundError, OrderNotFoundError, VariantError)):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(e, StockError):
        detail.update(variant_id=e.variant_id, requested=e.requested, available=e.available)
        return HTTPException(status_code=409, detail=detail)
    if isinstance(e, DiscountError):
        detail["reason"] = e.reason.value
        return HTTPException(status_code=409, detail=detail)
    if isinstance(e, InvalidStatusTransition):
        detail.update(current=e.current, requested=e.requested)
        return HTTPException(status_code=409, detail=detail)
    return HTTPException(status_code=400, detail=detail)
