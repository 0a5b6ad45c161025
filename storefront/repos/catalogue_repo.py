# storefront/repos/catalogue_repo.py
from typing import Dict, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.data.models.catalogue import ProductImageModel, ProductVariantModel


class CatalogueRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_variant(self, variant_id: str, for_update: bool = False) -> ProductVariantModel | None:
        stmt = select(ProductVariantModel).where(ProductVariantModel.id == variant_id)
        if for_update:
            # lock the variant row only, not the eagerly joined product
            stmt = stmt.with_for_update(of=ProductVariantModel)
        return self.db.execute(stmt).unique().scalar_one_or_none()

    def first_image_urls(self, product_ids: Iterable[str]) -> Dict[str, str]:
        ids = set(product_ids)
        if not ids:
            return {}

        stmt = (
            select(ProductImageModel)
            .where(ProductImageModel.product_id.in_(ids))
            .order_by(ProductImageModel.product_id, ProductImageModel.position)
        )
        urls: Dict[str, str] = {}
        for image in self.db.execute(stmt).scalars():
            urls.setdefault(image.product_id, image.url)
        return urls
