"""Tests for order placement: validation, atomic writes and checkout from a cart."""

import re

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from storefront.data.models import (
    CartModel,
    InventoryTransactionModel,
    OrderAddressModel,
    OrderItemModel,
    OrderModel,
    OrderStatusHistoryModel,
)
from storefront.domain.enums import CartStatus, OrderStatus
from storefront.domain.errors import CartError, CartNotFoundError, OrderError, OrderValidationError, StockError
from storefront.repos.inventory_repo import InventoryRepo
from storefront.services.order_service import OrderService
from storefront.services.stock_validator import StockValidator
from tests.factories import FakeNotifications, make_item, make_order_input, make_shipping


def count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def assert_nothing_written(db):
    for model in (OrderModel, OrderItemModel, OrderAddressModel, OrderStatusHistoryModel, InventoryTransactionModel):
        assert count(db, model) == 0, model.__tablename__


class TestCreateOrder:
    def test_total_and_initial_state(self, orders, catalogue):
        order = orders.create_order(make_order_input(catalogue.variant()))

        assert order.total == 115
        assert order.subtotal == 100
        assert order.tax_amount == 10
        assert order.shipping_amount == 5
        assert order.status == OrderStatus.PENDING_PAYMENT.value
        assert re.fullmatch(r"ON-\d{8}-[0-9A-F]{4}", order.order_number)

    def test_view_carries_lines_and_address(self, orders, catalogue):
        order = orders.create_order(make_order_input(catalogue.variant()))

        assert len(order.items) == 1
        assert order.items[0].unit_price == 100
        assert order.items[0].total_price == 100
        assert order.shipping_address.city == "London"
        assert order.shipping_address.state == ""
        assert order.email == "ada@example.com"

    def test_writes_history_and_ledger(self, db, orders, catalogue):
        variant = catalogue.variant(stock=10)
        data = make_order_input(variant, items=[make_item(variant, quantity=3)], subtotal=300)

        order = orders.create_order(data)

        history = orders.get_status_history(order.id)
        assert [(h.status, h.note) for h in history] == [("pending_payment", "Order created")]
        ledger = db.execute(select(InventoryTransactionModel)).scalars().all()
        assert [(t.variant_id, t.order_id, t.type, t.quantity) for t in ledger] == [
            (variant.id, order.id, "order", -3)
        ]
        assert StockValidator(db).check_availability(variant.id, 1).available == 7

    def test_line_without_catalogue_variant_skips_ledger(self, db, orders):
        orders.create_order(make_order_input())

        assert count(db, OrderModel) == 1
        assert count(db, InventoryTransactionModel) == 0

    def test_invalid_lines_are_dropped(self, orders, catalogue):
        variant = catalogue.variant()
        data = make_order_input(variant, items=[make_item(variant), make_item(variant, product_name="")])

        order = orders.create_order(data)

        assert len(order.items) == 1

    def test_all_lines_invalid_fails_whole_order(self, db, orders):
        data = make_order_input(items=[make_item(quantity=0), make_item(variant_name="")])

        with pytest.raises(OrderValidationError, match="at least one valid item"):
            orders.create_order(data)
        assert_nothing_written(db)

    def test_empty_items_fail_before_any_write(self, db, orders):
        with pytest.raises(OrderValidationError, match="Order must have at least one item"):
            orders.create_order(make_order_input(items=[]))
        assert_nothing_written(db)

    def test_invalid_address_fails_before_any_write(self, db, orders):
        with pytest.raises(OrderValidationError, match="Complete shipping address is required"):
            orders.create_order(make_order_input(shipping=make_shipping(city="")))
        assert_nothing_written(db)

    def test_failure_at_ledger_step_rolls_everything_back(self, db, orders, catalogue, monkeypatch):
        variant = catalogue.variant()

        def boom(self, transaction):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(InventoryRepo, "add_transaction", boom)

        with pytest.raises(OrderError, match="Failed to create order"):
            orders.create_order(make_order_input(variant))
        assert_nothing_written(db)


class TestConfirmation:
    def test_confirmation_is_sent(self, orders, notifications, catalogue):
        order = orders.create_order(make_order_input(catalogue.variant()))
        assert [o.id for o in notifications.sent] == [order.id]

    def test_failed_confirmation_keeps_order(self, db, catalogue):
        service = OrderService(db, notification_service=FakeNotifications(fail=True))

        order = service.create_order(make_order_input(catalogue.variant()))

        assert service.get_by_id(order.id) is not None


class TestCreateOrderFromCart:
    @pytest.fixture()
    def cart(self, carts, catalogue):
        variant = catalogue.variant(price=2500, stock=10)
        cart = carts.get_or_create("sess-1", "user-1")
        carts.add_item(cart.id, variant.id, 2)
        return cart

    def test_places_order_from_cart_contents(self, carts, orders, catalogue, cart):
        catalogue.discount("SAVE10", value=10)
        carts.apply_discount(cart.id, "SAVE10")

        order = orders.create_order_from_cart(cart.id, make_shipping(amount=500), tax_amount=400)

        assert order.cart_id == cart.id
        assert order.user_id == "user-1"
        assert order.subtotal == 5000
        assert order.discount_amount == 500
        assert order.total == 5000 + 400 + 500 - 500
        assert order.items[0].quantity == 2
        assert order.items[0].name == "Cotton Tee"

    def test_cart_is_converted(self, carts, orders, cart):
        orders.create_order_from_cart(cart.id, make_shipping())
        assert carts.summarize(cart.id).status == CartStatus.CONVERTED.value

    def test_cart_converts_at_most_once(self, db, orders, cart):
        orders.create_order_from_cart(cart.id, make_shipping())

        with pytest.raises(CartError, match="already been converted"):
            orders.create_order_from_cart(cart.id, make_shipping())
        assert count(db, OrderModel) == 1

    def test_shipping_code_waives_shipping(self, carts, orders, catalogue, cart):
        catalogue.discount("FREESHIP", type="shipping", value=0)
        carts.apply_discount(cart.id, "FREESHIP")

        order = orders.create_order_from_cart(cart.id, make_shipping(amount=599))

        assert order.shipping_amount == 0
        assert order.total == 5000

    def test_empty_cart_is_rejected_and_stays_active(self, db, carts, orders):
        cart = carts.get_or_create("sess-empty")

        with pytest.raises(OrderValidationError, match="Order must have at least one item"):
            orders.create_order_from_cart(cart.id, make_shipping())

        db.expire_all()
        assert db.get(CartModel, cart.id).status == CartStatus.ACTIVE.value
        assert count(db, OrderModel) == 0

    def test_missing_cart(self, orders):
        with pytest.raises(CartNotFoundError):
            orders.create_order_from_cart("no-such-cart", make_shipping())


class TestCheckoutStock:
    def test_second_checkout_of_same_stock_fails(self, db, carts, orders, catalogue):
        variant = catalogue.variant(stock=5)
        first = carts.get_or_create("sess-a")
        carts.add_item(first.id, variant.id, 5)
        second = carts.get_or_create("sess-b")
        carts.add_item(second.id, variant.id, 5)

        orders.create_order_from_cart(first.id, make_shipping())
        with pytest.raises(StockError) as exc:
            orders.create_order_from_cart(second.id, make_shipping())

        assert exc.value.available == 0
        assert count(db, OrderModel) == 1
        assert StockValidator(db).check_availability(variant.id, 0).available == 0
        db.expire_all()
        assert db.get(CartModel, second.id).status == CartStatus.ACTIVE.value

    def test_order_over_stock_writes_nothing(self, db, orders, catalogue):
        variant = catalogue.variant(stock=2)
        data = make_order_input(variant, items=[make_item(variant, quantity=3)], subtotal=300)

        with pytest.raises(StockError):
            orders.create_order(data)
        assert_nothing_written(db)

    def test_repeated_variant_lines_count_together(self, db, orders, catalogue):
        variant = catalogue.variant(stock=3)
        data = make_order_input(variant, items=[make_item(variant, quantity=2), make_item(variant, quantity=2)], subtotal=400)

        with pytest.raises(StockError):
            orders.create_order(data)
        assert_nothing_written(db)
