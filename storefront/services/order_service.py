# storefront/services/order_service.py
from typing import Any, Callable, List, TypeVar
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.inventory import InventoryTransactionModel
from storefront.data.models.order import (
    OrderAddressModel,
    OrderItemModel,
    OrderModel,
    OrderStatusHistoryModel,
    PaymentTransactionModel,
    RefundModel,
)
from storefront.domain.discounts import apply_shipping_discount
from storefront.domain.enums import (
    AddressType,
    DiscountType,
    InventoryTransactionType,
    OrderStatus,
    PaymentStatus,
    RefundStatus,
)
from storefront.domain.errors import (
    InvalidStatusTransition,
    OrderError,
    OrderNotFoundError,
    OrderValidationError,
    ShopError,
)
from storefront.domain.orders import (
    can_transition,
    is_valid_order_item,
    map_cart_item_to_order_item,
    order_total,
    payment_method_label,
    validate_order,
)
from storefront.domain.schemas import (
    AddressView,
    CreateOrderIn,
    OrderItemView,
    OrderView,
    PaymentIn,
    PaymentTransactionView,
    RefundView,
    ShippingIn,
    StatusHistoryEntry,
)
from storefront.repos.catalogue_repo import CatalogueRepo
from storefront.repos.composites import dump_composites, parse_composites
from storefront.repos.inventory_repo import InventoryRepo
from storefront.repos.order_repo import OrderRepo
from storefront.repos.transaction import run_in_transaction
from storefront.services.cart_service import CartService
from storefront.services.discount_service import DiscountService
from storefront.services.notification_service import NotificationService
from storefront.services.stock_validator import StockValidator
from storefront.utils.dates import utcnow
from storefront.utils.logging import get_logger
from storefront.utils.money import format_order_number

logger = get_logger(__name__)

T = TypeVar("T")


def _require_id(value: Any, label: str) -> None:
    if not value or not isinstance(value, str):
        raise OrderValidationError(f"Invalid {label}")


def _require_amount(amount: Any, minimum: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < minimum:
        raise OrderValidationError("Invalid amount")


class OrderService:
    """
    Order placement, the status state machine, payments and refunds.

    Writes run in one transaction each and fail loudly. Reads never raise
    on storage trouble: lists come back empty and lookups come back None.
    """

    def __init__(self, db: Session, notification_service: NotificationService | None = None):
        self.db = db
        self.repo = OrderRepo(db)
        self.inventory = InventoryRepo(db)
        self.catalogue = CatalogueRepo(db)
        self.discounts = DiscountService(db)
        self.stock = StockValidator(db)
        # shares the session so a cart is retired in the order's transaction
        self.carts = CartService(db)
        self.notification_service = notification_service or NotificationService()

    def _write(self, fn: Callable[[], T], failure: str) -> T:
        try:
            return run_in_transaction(self.db, fn)
        except ShopError:
            raise
        except SQLAlchemyError as e:
            logger.error(failure, error=str(e))
            raise OrderError(failure) from e

    # commands

    def create_order(self, data: CreateOrderIn) -> OrderView:
        """
        Place an order.

        Preconditions are checked before the transaction opens. The order,
        its lines, the shipping address, the first history entry and the
        stock ledger rows are then written together or not at all. The
        confirmation is sent afterwards and never undoes the order.
        """
        validate_order(data)

        order_id = self._write(lambda: self._place(data), "Failed to create order")
        view = self._load_view(order_id)

        logger.info("Order created", order_id=order_id, order_number=view.order_number, total=view.total)
        self._notify(view)
        return view

    def create_order_from_cart(
        self,
        cart_id: str,
        shipping: ShippingIn,
        payment: PaymentIn | None = None,
        tax_amount: int = 0,
        user_id: str | None = None,
    ) -> OrderView:
        _require_id(cart_id, "cart ID")

        def work() -> str:
            # locks the cart; a second checkout of the same cart fails here
            self.carts.retire(cart_id)
            data = self._from_cart(cart_id, shipping, payment or PaymentIn(), tax_amount, user_id)
            validate_order(data)
            return self._place(data)

        order_id = self._write(work, "Failed to create order")
        view = self._load_view(order_id)

        logger.info("Order created from cart", order_id=order_id, cart_id=cart_id, total=view.total)
        self._notify(view)
        return view

    def _from_cart(
        self,
        cart_id: str,
        shipping: ShippingIn,
        payment: PaymentIn,
        tax_amount: int,
        user_id: str | None,
    ) -> CreateOrderIn:
        cart = self.carts.summarize(cart_id)

        if cart.discount_code:
            discount = self.discounts.resolve(cart.discount_code)
            if discount is not None and discount.type == DiscountType.SHIPPING.value:
                waived = apply_shipping_discount(shipping.amount, discount.value)
                shipping = shipping.model_copy(update={"amount": waived})

        return CreateOrderIn(
            user_id=user_id or cart.user_id,
            cart_id=cart.id,
            items=[map_cart_item_to_order_item(i) for i in cart.items],
            shipping=shipping,
            payment=payment,
            subtotal=cart.subtotal,
            tax_amount=tax_amount,
            discount_amount=cart.discount_amount,
        )

    def _place(self, data: CreateOrderIn) -> str:
        address = data.shipping.address
        discount_amount = data.discount_amount or 0

        order = self.repo.create_order(
            OrderModel(
                user_id=data.user_id,
                cart_id=data.cart_id,
                status=OrderStatus.PENDING_PAYMENT.value,
                email=address.email,
                first_name=address.first_name,
                last_name=address.last_name,
                subtotal=data.subtotal,
                tax_amount=data.tax_amount,
                shipping_amount=data.shipping.amount,
                discount_amount=discount_amount,
                total=order_total(data.subtotal, data.tax_amount, data.shipping.amount, discount_amount),
                currency=data.currency,
                shipping_method=data.shipping.method,
                payment_method=data.payment.method,
                payment_intent_ref=data.payment.intent_id,
            )
        )

        items = [i for i in data.items if is_valid_order_item(i)]
        if not items:
            raise OrderValidationError("Order must have at least one valid item")

        self.repo.add_items(
            [
                OrderItemModel(
                    order_id=order.id,
                    product_id=i.product_id,
                    variant_id=i.variant_id,
                    quantity=i.quantity,
                    price=i.price,
                    name=i.product_name,
                    variant_name=i.variant_name,
                    composites=dump_composites(i.composites),
                )
                for i in items
            ]
        )

        self.repo.add_address(
            OrderAddressModel(
                order_id=order.id,
                type=AddressType.SHIPPING.value,
                first_name=address.first_name,
                last_name=address.last_name,
                address1=address.address1,
                address2=address.address2,
                city=address.city,
                state=address.state or "",
                postal_code=address.postal_code,
                country=address.country,
                phone=address.phone,
            )
        )

        self.repo.add_status_history(
            OrderStatusHistoryModel(
                order_id=order.id,
                status=OrderStatus.PENDING_PAYMENT.value,
                note="Order created",
            )
        )

        # stock leaves through the ledger, the variant row stays as is
        for item in items:
            if self.catalogue.get_variant(item.variant_id) is None:
                logger.warning("Order line has no catalogue variant", order_id=order.id, variant_id=item.variant_id)
                continue
            # carts do not reserve stock, so the level is checked again under the row lock
            self.stock.check_availability(item.variant_id, item.quantity).raise_for_status()
            self.inventory.add_transaction(
                InventoryTransactionModel(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    order_id=order.id,
                    type=InventoryTransactionType.ORDER.value,
                    quantity=-item.quantity,
                    note=f"Order {order.id}",
                )
            )

        return order.id

    def _notify(self, view: OrderView) -> None:
        try:
            self.notification_service.send_order_confirmation(view)
        except Exception as e:
            # the order is committed; a lost confirmation must not undo it
            logger.warning("Failed to send order confirmation", order_id=view.id, error=str(e))

    def update_status(self, order_id: str, new_status: OrderStatus | str, note: str | None = None) -> OrderView:
        _require_id(order_id, "order ID")
        try:
            status = OrderStatus(new_status)
        except ValueError:
            raise OrderValidationError(f"Invalid order status: {new_status}")

        def work() -> None:
            order = self._require_order(order_id)
            self._transition(order, status, note)

        self._write(work, "Failed to update order status")
        logger.info("Order status updated", order_id=order_id, status=status.value)
        return self._load_view(order_id)

    def _require_order(self, order_id: str) -> OrderModel:
        order = self.repo.get_order(order_id, for_update=True)
        if not order:
            raise OrderNotFoundError("Order not found")
        return order

    def _transition(self, order: OrderModel, status: OrderStatus, note: str | None) -> None:
        """The one place an order's status is written after creation."""
        if not can_transition(order.status, status.value):
            raise InvalidStatusTransition(order.status, status.value)

        order.status = status.value
        order.updated_at = utcnow()
        self.repo.add_status_history(OrderStatusHistoryModel(order_id=order.id, status=status.value, note=note))

    def create_payment_transaction(
        self,
        order_id: str,
        amount: int,
        method: str,
        intent_ref: str | None = None,
        status: PaymentStatus | str = PaymentStatus.PENDING,
    ) -> PaymentTransactionView:
        _require_id(order_id, "order ID")
        _require_amount(amount, 0)
        if not method or not isinstance(method, str):
            raise OrderValidationError("Invalid payment method")
        try:
            payment_status = PaymentStatus(status)
        except ValueError:
            raise OrderValidationError(f"Invalid payment status: {status}")

        def work() -> PaymentTransactionModel:
            order = self._require_order(order_id)
            return self.repo.add_payment(
                PaymentTransactionModel(
                    order_id=order.id,
                    status=payment_status.value,
                    amount=amount,
                    currency=order.currency,
                    payment_intent_ref=intent_ref or f"pi_{uuid4().hex}",
                    payment_method=method,
                )
            )

        payment = self._write(work, "Failed to create payment transaction")
        logger.info("Payment transaction created", order_id=order_id, transaction_id=payment.id, amount=amount)
        return PaymentTransactionView.model_validate(payment)

    def create_refund(
        self,
        order_id: str,
        transaction_id: str,
        amount: int,
        reason: str | None = None,
        refund_ref: str | None = None,
    ) -> RefundView:
        """Record a refund against a payment and move the order to refunded."""
        _require_id(order_id, "order ID")
        _require_id(transaction_id, "transaction ID")
        _require_amount(amount, 1)
        reason = reason or "Refund requested"

        def work() -> RefundModel:
            order = self._require_order(order_id)

            payment = self.repo.get_payment(transaction_id)
            if not payment or payment.order_id != order.id:
                raise OrderNotFoundError("Payment transaction not found")
            if self.repo.refunded_total(payment.id) + amount > payment.amount:
                raise OrderValidationError("Refund amount exceeds the transaction amount")

            refund = self.repo.add_refund(
                RefundModel(
                    order_id=order.id,
                    transaction_id=payment.id,
                    amount=amount,
                    reason=reason,
                    status=RefundStatus.PENDING.value,
                    refund_ref=refund_ref,
                )
            )
            self._transition(order, OrderStatus.REFUNDED, note=reason)
            return refund

        refund = self._write(work, "Failed to create refund")
        logger.info("Refund created", order_id=order_id, refund_id=refund.id, amount=amount)
        return RefundView.model_validate(refund)

    # queries

    def _load_view(self, order_id: str) -> OrderView:
        try:
            order = self.repo.get_order_with_lines(order_id)
        except SQLAlchemyError as e:
            logger.error("Failed to load order", order_id=order_id, error=str(e))
            raise OrderError("Failed to load order") from e

        view = self._to_view(order) if order else None
        if view is None:
            raise OrderNotFoundError("Order not found")
        return view

    def _to_view(self, order: OrderModel) -> OrderView | None:
        address = next((a for a in order.addresses if a.type == AddressType.SHIPPING.value), None)
        if not order.items or address is None:
            logger.warning("Order is missing items or shipping address", order_id=order.id)
            return None

        return OrderView(
            id=order.id,
            order_number=format_order_number(order.id, order.created_at),
            user_id=order.user_id,
            cart_id=order.cart_id,
            status=order.status,
            email=order.email,
            subtotal=order.subtotal,
            tax_amount=order.tax_amount,
            shipping_amount=order.shipping_amount,
            discount_amount=order.discount_amount,
            total=order.total,
            currency=order.currency,
            shipping_method=order.shipping_method,
            payment_method=order.payment_method or payment_method_label(order.payment_intent_ref),
            payment_intent_ref=order.payment_intent_ref,
            items=[
                OrderItemView(
                    id=i.id,
                    product_id=i.product_id,
                    variant_id=i.variant_id,
                    quantity=i.quantity,
                    unit_price=i.price,
                    total_price=i.price * i.quantity,
                    name=i.name,
                    variant_name=i.variant_name,
                    composites=parse_composites(i.composites) or None,
                )
                for i in order.items
            ],
            shipping_address=AddressView(
                first_name=address.first_name,
                last_name=address.last_name,
                address1=address.address1,
                address2=address.address2,
                city=address.city,
                state=address.state or "",
                postal_code=address.postal_code,
                country=address.country,
                email=order.email,
                phone=address.phone,
            ),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    def _read(self, fn: Callable[[], T], fallback: T, failure: str, **context) -> T:
        try:
            return fn()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(failure, error=str(e), **context)
            return fallback

    def get_by_id(self, order_id: str) -> OrderView | None:
        def load() -> OrderView | None:
            order = self.repo.get_order_with_lines(order_id)
            return self._to_view(order) if order else None

        return self._read(load, None, "Failed to get order", order_id=order_id)

    def get_by_user_id(self, user_id: str) -> List[OrderView]:
        def load() -> List[OrderView]:
            views = (self._to_view(o) for o in self.repo.list_by_user(user_id))
            return [v for v in views if v is not None]

        return self._read(load, [], "Failed to get orders for user", user_id=user_id)

    def get_by_status(self, status: OrderStatus | str) -> List[OrderView]:
        value = status.value if isinstance(status, OrderStatus) else status

        def load() -> List[OrderView]:
            views = (self._to_view(o) for o in self.repo.list_by_status(value))
            return [v for v in views if v is not None]

        return self._read(load, [], "Failed to get orders by status", status=value)

    def get_status_history(self, order_id: str) -> List[StatusHistoryEntry]:
        return self._read(
            lambda: [StatusHistoryEntry.model_validate(h) for h in self.repo.get_status_history(order_id)],
            [],
            "Failed to get order status history",
            order_id=order_id,
        )

    def get_payment_transactions(self, order_id: str) -> List[PaymentTransactionView]:
        return self._read(
            lambda: [PaymentTransactionView.model_validate(p) for p in self.repo.list_payments(order_id)],
            [],
            "Failed to get payment transactions",
            order_id=order_id,
        )

    def get_refunds(self, order_id: str) -> List[RefundView]:
        return self._read(
            lambda: [RefundView.model_validate(r) for r in self.repo.list_refunds(order_id)],
            [],
            "Failed to get refunds",
            order_id=order_id,
        )
