"""Builders and collaborator fakes shared by the test modules."""

from datetime import timedelta

from storefront.data.models import DiscountModel, ProductImageModel, ProductModel, ProductVariantModel
from storefront.domain.schemas import AddressIn, CreateOrderIn, OrderItemIn, ShippingIn
from storefront.utils.dates import utcnow


class Catalogue:
    """Builds committed catalogue and discount rows."""

    def __init__(self, db):
        self.db = db
        self._seq = 0

    def variant(self, price=2500, stock=10, name="Medium", product_name="Cotton Tee", image=None):
        self._seq += 1
        product = ProductModel(name=product_name, slug=f"product-{self._seq}")
        self.db.add(product)
        self.db.flush()
        if image:
            self.db.add(ProductImageModel(product_id=product.id, url=image, position=0))
        variant = ProductVariantModel(
            product_id=product.id,
            sku=f"SKU-{self._seq}",
            name=name,
            price=price,
            stock_quantity=stock,
        )
        self.db.add(variant)
        self.db.commit()
        return variant

    def discount(self, code, type="percentage", value=10, **fields):
        fields.setdefault("valid_from", utcnow() - timedelta(days=1))
        discount = DiscountModel(code=code, type=type, value=value, **fields)
        self.db.add(discount)
        self.db.commit()
        return discount


class FakeNotifications:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send_order_confirmation(self, order):
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.sent.append(order)


class FakeLock:
    def __init__(self, held=False):
        self.held = held
        self.acquired = []
        self.released = []

    def acquire_merge_lock(self, session_id, owner, ttl):
        if self.held:
            return False
        self.acquired.append((session_id, owner))
        return True

    def release_merge_lock(self, session_id, owner):
        self.released.append((session_id, owner))
        return True


def make_address(**overrides):
    fields = dict(
        first_name="Ada",
        last_name="Lovelace",
        address1="12 St James's Square",
        city="London",
        postal_code="SW1Y 4JH",
        country="GB",
        email="ada@example.com",
    )
    fields.update(overrides)
    return AddressIn(**fields)


def make_shipping(amount=5, **address_overrides):
    return ShippingIn(method="standard", amount=amount, address=make_address(**address_overrides))


def make_item(variant=None, **overrides):
    fields = dict(
        product_id=variant.product_id if variant else "prod-1",
        variant_id=variant.id if variant else "var-1",
        quantity=1,
        price=100,
        product_name="Cotton Tee",
        variant_name="Medium",
    )
    fields.update(overrides)
    return OrderItemIn(**fields)


def make_order_input(variant=None, **overrides):
    fields = dict(
        user_id="user-1",
        items=[make_item(variant)],
        shipping=make_shipping(amount=5),
        subtotal=100,
        tax_amount=10,
        discount_amount=0,
    )
    fields.update(overrides)
    return CreateOrderIn(**fields)
