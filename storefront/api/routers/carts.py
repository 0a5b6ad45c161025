# storefront/api/routers/carts.py
from typing import Optional

from fastapi import APIRouter, Depends, Header

from storefront.api.deps import get_cart_service
from storefront.api.errors import to_http
from storefront.domain.errors import ShopError
from storefront.domain.schemas import (
    AddItemIn,
    ApplyDiscountIn,
    CartSummary,
    CartView,
    MergeCartIn,
    UpdateItemIn,
)
from storefront.services.cart_service import CartService

router = APIRouter(prefix="/carts", tags=["carts"])


@router.post("", response_model=CartView)
def get_or_create_cart(
    x_session_id: str = Header(...),
    x_user_id: Optional[str] = Header(None),
    svc: CartService = Depends(get_cart_service),
):
    """Return the shopper's active cart, creating it on first visit."""
    try:
        return svc.get_or_create(x_session_id, x_user_id)
    except ShopError as e:
        raise to_http(e)


@router.get("/summary", response_model=CartSummary)
def get_cart_summary(
    x_session_id: str = Header(...),
    x_user_id: Optional[str] = Header(None),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_summary(x_session_id, x_user_id)


@router.post("/merge", response_model=CartView)
def merge_carts(payload: MergeCartIn, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.merge_on_login(payload.session_id, payload.user_id)
    except ShopError as e:
        raise to_http(e)


@router.get("/{cart_id}", response_model=CartView)
def get_cart(cart_id: str, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.summarize(cart_id)
    except ShopError as e:
        raise to_http(e)


@router.post("/{cart_id}/items", response_model=CartView)
def add_item(cart_id: str, payload: AddItemIn, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.add_item(cart_id, payload.variant_id, payload.quantity, payload.composites)
    except ShopError as e:
        raise to_http(e)


@router.delete("/{cart_id}/items", response_model=CartView)
def clear_cart(cart_id: str, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.clear(cart_id)
    except ShopError as e:
        raise to_http(e)


@router.patch("/items/{item_id}", response_model=CartView)
def update_item(item_id: str, payload: UpdateItemIn, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.update_item_quantity(item_id, payload.quantity)
    except ShopError as e:
        raise to_http(e)


@router.delete("/items/{item_id}", response_model=CartView)
def remove_item(item_id: str, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.remove_item(item_id)
    except ShopError as e:
        raise to_http(e)


@router.post("/{cart_id}/discount", response_model=CartView)
def apply_discount(cart_id: str, payload: ApplyDiscountIn, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.apply_discount(cart_id, payload.code)
    except ShopError as e:
        raise to_http(e)


@router.delete("/{cart_id}/discount", response_model=CartView)
def remove_discount(cart_id: str, svc: CartService = Depends(get_cart_service)):
    try:
        return svc.remove_discount(cart_id)
    except ShopError as e:
        raise to_http(e)
