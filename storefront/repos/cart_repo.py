# storefront/repos/cart_repo.py
from datetime import datetime
from typing import List

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel, CartItemModel
from storefront.domain.enums import CartStatus
from storefront.utils.dates import utcnow


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    # carts

    def get_cart(self, cart_id: str, for_update: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(CartModel.id == cart_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def _active(self):
        return select(CartModel).where(CartModel.status == CartStatus.ACTIVE.value).order_by(
            CartModel.created_at, CartModel.id
        )

    def find_by_user_and_session(self, user_id: str, session_id: str) -> CartModel | None:
        stmt = self._active().where(CartModel.user_id == user_id, CartModel.session_id == session_id)
        return self.db.execute(stmt).scalars().first()

    def find_by_user(self, user_id: str) -> CartModel | None:
        return self.db.execute(self._active().where(CartModel.user_id == user_id)).scalars().first()

    def find_by_session(self, session_id: str) -> CartModel | None:
        return self.db.execute(self._active().where(CartModel.session_id == session_id)).scalars().first()

    def find_anonymous_by_session(self, session_id: str) -> CartModel | None:
        stmt = self._active().where(CartModel.session_id == session_id, CartModel.user_id.is_(None))
        return self.db.execute(stmt).scalars().first()

    def list_by_session(self, session_id: str) -> List[CartModel]:
        return list(self.db.execute(self._active().where(CartModel.session_id == session_id)).scalars())

    def list_by_user(self, user_id: str) -> List[CartModel]:
        return list(self.db.execute(self._active().where(CartModel.user_id == user_id)).scalars())

    def list_inactive_since(self, before: datetime) -> List[CartModel]:
        stmt = self._active().where(CartModel.last_activity_at < before)
        return list(self.db.execute(stmt).scalars())

    def create_cart(self, session_id: str | None, user_id: str | None = None) -> CartModel:
        now = utcnow()
        cart = CartModel(
            session_id=session_id,
            user_id=user_id,
            status=CartStatus.ACTIVE.value,
            discount_code=None,
            discount_amount=0,
            last_activity_at=now,
            created_at=now,
            updated_at=now,
        )
        self.db.add(cart)
        self.db.flush()
        return cart

    def delete_cart(self, cart: CartModel) -> None:
        self.delete_items(cart.id)
        self.db.delete(cart)
        self.db.flush()

    def touch(self, cart: CartModel) -> None:
        now = utcnow()
        cart.updated_at = now
        cart.last_activity_at = now
        self.db.flush()

    # items

    def get_item(self, item_id: str) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id)

    def get_item_by_variant(self, cart_id: str, variant_id: str) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.cart_id == cart_id,
            CartItemModel.variant_id == variant_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cart_items(self, cart_id: str) -> List[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.created_at, CartItemModel.id)
        )
        return list(self.db.execute(stmt).unique().scalars())

    def count_items(self, cart_id: str) -> int:
        stmt = select(func.count()).select_from(CartItemModel).where(CartItemModel.cart_id == cart_id)
        return self.db.execute(stmt).scalar_one()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def move_item(self, item: CartItemModel, cart_id: str) -> None:
        item.cart_id = cart_id
        item.updated_at = utcnow()
        self.db.flush()

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def delete_items(self, cart_id: str) -> None:
        self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session="fetch")
        )
        self.db.flush()
