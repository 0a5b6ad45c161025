"""Tests for the cart pricing calculator."""

from types import SimpleNamespace

import pytest

from storefront.domain.errors import CartValidationError
from storefront.domain.pricing import calculate_summary


class TestCalculateSummary:
    def test_empty_list_prices_to_zero(self):
        summary = calculate_summary([], discount_amount=500)
        assert summary.subtotal == 0
        assert summary.discount_amount == 0
        assert summary.total == 0
        assert summary.item_count == 0

    def test_subtotal_is_sum_of_price_times_quantity(self):
        items = [{"price": 2500, "quantity": 2}, {"price": 999, "quantity": 3}]
        summary = calculate_summary(items)
        assert summary.subtotal == 2500 * 2 + 999 * 3
        assert summary.item_count == 5

    def test_total_is_subtotal_minus_discount(self):
        summary = calculate_summary([{"price": 2500, "quantity": 2}], discount_amount=1000)
        assert summary.subtotal == 5000
        assert summary.discount_amount == 1000
        assert summary.total == 4000

    def test_accepts_objects_with_price_and_quantity(self):
        items = [SimpleNamespace(price=1200, quantity=1), SimpleNamespace(price=300, quantity=4)]
        assert calculate_summary(items).subtotal == 2400

    def test_accepts_tuples(self):
        assert calculate_summary(({"price": 100, "quantity": 1},)).total == 100


class TestCalculateSummaryValidation:
    def test_rejects_non_list_items(self):
        with pytest.raises(CartValidationError, match="Invalid items array"):
            calculate_summary({"price": 100, "quantity": 1})

    def test_rejects_none_items(self):
        with pytest.raises(CartValidationError):
            calculate_summary(None)

    def test_rejects_negative_discount(self):
        with pytest.raises(CartValidationError, match="Invalid discount amount"):
            calculate_summary([{"price": 100, "quantity": 1}], discount_amount=-1)

    def test_rejects_float_discount(self):
        with pytest.raises(CartValidationError):
            calculate_summary([{"price": 100, "quantity": 1}], discount_amount=10.5)

    def test_rejects_bool_discount(self):
        with pytest.raises(CartValidationError):
            calculate_summary([{"price": 100, "quantity": 1}], discount_amount=True)
