# storefront/repos/discount_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from storefront.data.models.discount import DiscountModel
from storefront.utils.dates import utcnow


class DiscountRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> DiscountModel | None:
        return self.db.execute(select(DiscountModel).where(DiscountModel.code == code)).scalar_one_or_none()

    def increment_usage(self, discount: DiscountModel) -> bool:
        """
        Take one use. The cap is re-checked inside the UPDATE itself, so two
        concurrent callers cannot both take the last use.
        """
        stmt = (
            update(DiscountModel)
            .where(DiscountModel.id == discount.id)
            .where((DiscountModel.max_uses.is_(None)) | (DiscountModel.used_count < DiscountModel.max_uses))
            .values(used_count=DiscountModel.used_count + 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        rowcount = self.db.execute(stmt).rowcount
        self.db.expire(discount, ["used_count", "updated_at"])
        return rowcount == 1

    def release_usage(self, discount: DiscountModel) -> None:
        stmt = (
            update(DiscountModel)
            .where(DiscountModel.id == discount.id, DiscountModel.used_count > 0)
            .values(used_count=DiscountModel.used_count - 1, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self.db.execute(stmt)
        self.db.expire(discount, ["used_count", "updated_at"])
