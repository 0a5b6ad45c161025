from sqlalchemy import func, select

from storefront.data.models import DiscountModel, ProductModel, ProductVariantModel
from storefront.data.seed import seed


def count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def test_seeds_empty_catalogue(db, carts):
    seed(db)

    assert count(db, ProductModel) == 2
    assert count(db, ProductVariantModel) == 3
    codes = db.execute(select(DiscountModel.code)).scalars().all()
    assert sorted(codes) == ["FREESHIP", "TENOFF", "WELCOME10"]


def test_seeded_codes_apply(db, carts):
    seed(db)
    variant = db.execute(select(ProductVariantModel).where(ProductVariantModel.sku == "MUG-1")).scalar_one()
    cart = carts.get_or_create("sess-1")
    carts.add_item(cart.id, variant.id, 1)

    view = carts.apply_discount(cart.id, "WELCOME10")

    assert view.discount_amount == 120


def test_does_nothing_when_products_exist(db, catalogue):
    catalogue.variant()

    seed(db)

    assert count(db, ProductModel) == 1
    assert count(db, DiscountModel) == 0
