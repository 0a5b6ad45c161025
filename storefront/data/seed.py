# storefront/data/seed.py
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.database import SessionLocal
from storefront.data.models import DiscountModel, ProductImageModel, ProductModel, ProductVariantModel
from storefront.domain.enums import DiscountType


def seed(db: Session | None = None):
    """Load a small demo catalogue and a few codes; does nothing if products exist."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.execute(select(ProductModel.id).limit(1)).first():
            return

        tee = ProductModel(name="Organic Cotton Tee", slug="organic-cotton-tee")
        mug = ProductModel(name="Enamel Mug", slug="enamel-mug")
        db.add_all([tee, mug])
        db.flush()

        db.add_all(
            [
                ProductImageModel(product_id=tee.id, url="/images/tee-front.jpg", alt="Tee, front", position=0),
                ProductImageModel(product_id=tee.id, url="/images/tee-back.jpg", alt="Tee, back", position=1),
                ProductImageModel(product_id=mug.id, url="/images/mug.jpg", alt="Mug", position=0),
                ProductVariantModel(product_id=tee.id, sku="TEE-S", name="Small", price=2500, stock_quantity=20),
                ProductVariantModel(product_id=tee.id, sku="TEE-M", name="Medium", price=2500, stock_quantity=3),
                ProductVariantModel(product_id=mug.id, sku="MUG-1", name="Default", price=1200, stock_quantity=50),
                DiscountModel(code="WELCOME10", type=DiscountType.PERCENTAGE.value, value=10),
                DiscountModel(code="TENOFF", type=DiscountType.FIXED.value, value=1000, min_spend=5000, max_uses=100),
                DiscountModel(code="FREESHIP", type=DiscountType.SHIPPING.value, value=0),
            ]
        )
        db.commit()
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    seed()
