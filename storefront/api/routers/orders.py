# storefront/api/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from storefront.api.deps import get_order_service
from storefront.api.errors import to_http
from storefront.domain.errors import ShopError
from storefront.domain.schemas import (
    CheckoutIn,
    CreateOrderIn,
    CreatePaymentIn,
    CreateRefundIn,
    OrderView,
    PaymentTransactionView,
    RefundView,
    StatusHistoryEntry,
    UpdateStatusIn,
)
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("", response_model=OrderView, status_code=201)
def create_order(payload: CreateOrderIn, svc: OrderService = Depends(get_order_service)):
    """
    Place an order from explicit lines and totals.
    The confirmation email is sent asynchronously.
    """
    try:
        return svc.create_order(payload)
    except ShopError as e:
        raise to_http(e)


@router.post("/from-cart/{cart_id}", response_model=OrderView, status_code=201)
def checkout_cart(cart_id: str, payload: CheckoutIn, svc: OrderService = Depends(get_order_service)):
    """Place an order from the current contents of a cart."""
    try:
        return svc.create_order_from_cart(
            cart_id,
            shipping=payload.shipping,
            payment=payload.payment,
            tax_amount=payload.tax_amount,
            user_id=payload.user_id,
        )
    except ShopError as e:
        raise to_http(e)


@router.get("", response_model=List[OrderView])
def list_orders(
    user_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    svc: OrderService = Depends(get_order_service),
):
    if user_id:
        return svc.get_by_user_id(user_id)
    if status:
        return svc.get_by_status(status)
    raise HTTPException(status_code=422, detail="user_id or status is required")


@router.get("/{order_id}", response_model=OrderView)
def get_order(order_id: str, svc: OrderService = Depends(get_order_service)):
    order = svc.get_by_id(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.post("/{order_id}/status", response_model=OrderView)
def update_status(order_id: str, payload: UpdateStatusIn, svc: OrderService = Depends(get_order_service)):
    try:
        return svc.update_status(order_id, payload.status, payload.note)
    except ShopError as e:
        raise to_http(e)


@router.get("/{order_id}/history", response_model=List[StatusHistoryEntry])
def get_history(order_id: str, svc: OrderService = Depends(get_order_service)):
    return svc.get_status_history(order_id)


@router.post("/{order_id}/payments", response_model=PaymentTransactionView, status_code=201)
def create_payment(order_id: str, payload: CreatePaymentIn, svc: OrderService = Depends(get_order_service)):
    try:
        return svc.create_payment_transaction(
            order_id,
            amount=payload.amount,
            method=payload.method,
            intent_ref=payload.intent_ref,
            status=payload.status,
        )
    except ShopError as e:
        raise to_http(e)


@router.get("/{order_id}/payments", response_model=List[PaymentTransactionView])
def list_payments(order_id: str, svc: OrderService = Depends(get_order_service)):
    return svc.get_payment_transactions(order_id)


@router.post("/{order_id}/refunds", response_model=RefundView, status_code=201)
def create_refund(order_id: str, payload: CreateRefundIn, svc: OrderService = Depends(get_order_service)):
    try:
        return svc.create_refund(
            order_id,
            transaction_id=payload.transaction_id,
            amount=payload.amount,
            reason=payload.reason,
            refund_ref=payload.refund_ref,
        )
    except ShopError as e:
        raise to_http(e)


@router.get("/{order_id}/refunds", response_model=List[RefundView])
def list_refunds(order_id: str, svc: OrderService = Depends(get_order_service)):
    return svc.get_refunds(order_id)
