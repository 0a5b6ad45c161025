# storefront/services/cart_service.py
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, TypeVar

from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel, CartItemModel
from storefront.domain.discounts import reason_message
from storefront.domain.enums import CartStatus
from storefront.domain.errors import (
    CartError,
    CartNotFoundError,
    CartValidationError,
    DiscountError,
    DiscountReason,
    ShopError,
)
from storefront.domain.pricing import calculate_summary
from storefront.domain.schemas import CartItemView, CartSummary, CartView, CompositeItem, ProductRef
from storefront.domain.stock import stock_status
from storefront.repos.cart_repo import CartRepo
from storefront.repos.catalogue_repo import CatalogueRepo
from storefront.repos.composites import dump_composites, parse_composites
from storefront.repos.inventory_repo import InventoryRepo
from storefront.repos.transaction import run_in_transaction
from storefront.services.discount_service import DiscountService
from storefront.services.lock_service import LockService
from storefront.services.stock_validator import StockValidator
from storefront.utils.dates import utcnow
from storefront.utils.logging import get_logger
from storefront.utils.settings import CART_ABANDON_AFTER_SECONDS, MERGE_LOCK_TTL_SECONDS

logger = get_logger(__name__)

T = TypeVar("T")


def _require_id(value: Any, label: str) -> None:
    if not value or not isinstance(value, str):
        raise CartValidationError(f"Invalid {label}")


def _require_quantity(quantity: Any) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise CartValidationError("Invalid quantity")


def _coerce_composites(composites: Iterable[Any] | None) -> List[CompositeItem]:
    if not composites:
        return []
    try:
        return [CompositeItem.model_validate(c) if not isinstance(c, CompositeItem) else c for c in composites]
    except (PydanticValidationError, TypeError) as e:
        raise CartValidationError("Invalid composites") from e


class CartService:
    """
    Cart lifecycle: get-or-create by identity, line changes, discounts,
    merge on login and the summarized read view.

    Every command runs in one transaction on the injected session and
    returns the fresh CartView. Storage failures surface as CartError.
    """

    def __init__(self, db: Session, lock_service: LockService | None = None):
        self.db = db
        self.repo = CartRepo(db)
        self.catalogue = CatalogueRepo(db)
        self.inventory = InventoryRepo(db)
        self.stock = StockValidator(db)
        self.discounts = DiscountService(db)
        self.lock_service = lock_service

    def _write(self, fn: Callable[[], T], failure: str) -> T:
        try:
            return run_in_transaction(self.db, fn)
        except ShopError:
            raise
        except SQLAlchemyError as e:
            logger.error(failure, error=str(e))
            raise CartError(failure) from e

    def _require_active_cart(self, cart_id: str) -> CartModel:
        cart = self.repo.get_cart(cart_id, for_update=True)
        if not cart:
            raise CartNotFoundError("Cart not found")
        if cart.status != CartStatus.ACTIVE.value:
            raise CartError("Cart cannot be modified")
        return cart

    def _require_item(self, cart_item_id: str) -> CartItemModel:
        item = self.repo.get_item(cart_item_id)
        if not item:
            raise CartNotFoundError("Cart item not found")
        return item

    def _subtotal(self, cart_id: str) -> int:
        return calculate_summary(self.repo.get_cart_items(cart_id)).subtotal

    def _check_composites(self, composites: List[CompositeItem], line_quantity: int) -> None:
        # each bundled part needs its own stock for every unit of the line
        for composite in composites:
            self.stock.check_availability(composite.variant_id, composite.quantity * line_quantity).raise_for_status()

    def _reprice(self, cart: CartModel) -> None:
        self.db.flush()
        self.discounts.refresh(cart, self._subtotal(cart.id))
        self.repo.touch(cart)

    # queries

    def summarize(self, cart_id: str) -> CartView:
        _require_id(cart_id, "cart ID")

        try:
            cart = self.repo.get_cart(cart_id)
            if not cart:
                raise CartNotFoundError("Cart not found")

            items = self.repo.get_cart_items(cart_id)
            images = self.catalogue.first_image_urls(i.variant.product_id for i in items if i.variant)
            views = [self._item_view(i, images) for i in items]
        except SQLAlchemyError as e:
            logger.error("Failed to load cart", cart_id=cart_id, error=str(e))
            raise CartError("Failed to load cart") from e

        summary = calculate_summary(views, cart.discount_amount or 0)

        return CartView(
            id=cart.id,
            status=cart.status,
            session_id=cart.session_id,
            user_id=cart.user_id,
            items=views,
            discount_code=cart.discount_code,
            **summary.model_dump(),
        )

    def _item_view(self, item: CartItemModel, images: Dict[str, str]) -> CartItemView:
        variant = item.variant
        product = variant.product if variant else None
        level = self.inventory.stock_level(variant) if variant else 0

        return CartItemView(
            id=item.id,
            cart_id=item.cart_id,
            variant_id=item.variant_id,
            product_id=item.product_id,
            quantity=item.quantity,
            price=item.price,
            name=product.name if product else (variant.name if variant else "Product"),
            variant_name=variant.name if variant else "",
            sku=variant.sku if variant else "",
            image_url=images.get(item.product_id, ""),
            stock_status=stock_status(level),
            composites=parse_composites(item.composites),
            product=ProductRef(id=product.id, name=product.name, slug=product.slug) if product else None,
        )

    def get_summary(self, session_id: str, user_id: str | None = None) -> CartSummary:
        """Pricing summary for a header badge; degrades to zeros on any failure."""
        try:
            view = self.get_or_create(session_id, user_id)
        except ShopError as e:
            logger.error("Failed to get cart summary", session_id=session_id, error=str(e))
            return CartSummary()
        return CartSummary(
            subtotal=view.subtotal,
            discount_amount=view.discount_amount,
            total=view.total,
            item_count=view.item_count,
        )

    # commands

    def get_or_create(self, session_id: str, user_id: str | None = None) -> CartView:
        """
        Find the shopper's active cart, searching by (user and session), then
        user, then session, or create one. Duplicate active carts for the
        same identity are collapsed first.
        """
        _require_id(session_id, "session ID")
        if user_id is not None:
            _require_id(user_id, "user ID")

        def work() -> str:
            cart = self._find_cart(session_id, user_id)
            if cart is None:
                cart = self.repo.create_cart(session_id, user_id)
                logger.info("Created cart", cart_id=cart.id, session_id=session_id, user_id=user_id)
            return cart.id

        cart_id = self._write(work, "Failed to get or create cart")
        return self.summarize(cart_id)

    def _find_cart(self, session_id: str, user_id: str | None) -> CartModel | None:
        self._reconcile(self.repo.list_by_session(session_id))
        if user_id:
            self._reconcile(self.repo.list_by_user(user_id))

            cart = self.repo.find_by_user_and_session(user_id, session_id)
            if cart:
                return cart

            cart = self.repo.find_by_user(user_id)
            if cart:
                cart.session_id = session_id
                self.repo.touch(cart)
                return cart

        cart = self.repo.find_by_session(session_id)
        if cart is None:
            return None

        if user_id and cart.user_id is None:
            cart.user_id = user_id
            self.repo.touch(cart)
        elif user_id and cart.user_id != user_id:
            # the session's cart belongs to somebody else
            return None
        return cart

    def _reconcile(self, carts: List[CartModel]) -> None:
        """Keep the oldest cart with items per owner; delete the other duplicates."""
        by_owner: Dict[str | None, List[CartModel]] = {}
        for cart in carts:
            by_owner.setdefault(cart.user_id, []).append(cart)

        for dupes in by_owner.values():
            if len(dupes) < 2:
                continue
            keep = next((c for c in dupes if self.repo.count_items(c.id) > 0), dupes[0])
            for cart in dupes:
                if cart.id != keep.id:
                    self.discounts.release(cart)
                    self.repo.delete_cart(cart)
            logger.warning("Removed duplicate carts", kept=keep.id, removed=len(dupes) - 1)

    def add_item(
        self,
        cart_id: str,
        variant_id: str,
        quantity: int = 1,
        composites: Iterable[Any] | None = None,
    ) -> CartView:
        _require_id(cart_id, "cart ID")
        _require_id(variant_id, "product variant ID")
        _require_quantity(quantity)
        composite_items = _coerce_composites(composites)

        def work() -> None:
            cart = self._require_active_cart(cart_id)
            existing = self.repo.get_item_by_variant(cart_id, variant_id)
            reserved = existing.quantity if existing else 0

            # check and write share the variant row lock until commit
            self.stock.check_availability(variant_id, quantity, reserved).raise_for_status()
            line_composites = composite_items or (parse_composites(existing.composites) if existing else [])
            self._check_composites(line_composites, reserved + quantity)
            variant = self.catalogue.get_variant(variant_id)

            if existing:
                logger.info(
                    f"Variant {variant_id} already in cart, quantity "
                    f"{existing.quantity} -> {existing.quantity + quantity}"
                )
                existing.quantity += quantity
                existing.updated_at = utcnow()
                if composite_items:
                    existing.composites = dump_composites(composite_items)
            else:
                self.repo.add_cart_item(
                    CartItemModel(
                        cart_id=cart_id,
                        variant_id=variant_id,
                        product_id=variant.product_id,
                        quantity=quantity,
                        price=variant.price,
                        composites=dump_composites(composite_items),
                    )
                )

            self._reprice(cart)

        self._write(work, "Failed to add item to cart")
        logger.info("Item added", cart_id=cart_id, variant_id=variant_id, quantity=quantity)
        return self.summarize(cart_id)

    def update_item_quantity(self, cart_item_id: str, quantity: int) -> CartView:
        """Set a line's quantity. Zero is rejected: use remove_item to drop a line."""
        _require_id(cart_item_id, "cart item ID")
        _require_quantity(quantity)

        def work() -> str:
            item = self._require_item(cart_item_id)
            cart = self._require_active_cart(item.cart_id)

            self.stock.check_availability(item.variant_id, quantity).raise_for_status()
            self._check_composites(parse_composites(item.composites), quantity)

            item.quantity = quantity
            item.updated_at = utcnow()
            self._reprice(cart)
            return cart.id

        cart_id = self._write(work, "Failed to update cart item quantity")
        logger.info("Item quantity updated", cart_item_id=cart_item_id, quantity=quantity)
        return self.summarize(cart_id)

    def remove_item(self, cart_item_id: str) -> CartView:
        _require_id(cart_item_id, "cart item ID")

        def work() -> str:
            item = self._require_item(cart_item_id)
            cart = self._require_active_cart(item.cart_id)
            self.repo.delete_cart_item(item)
            self._reprice(cart)
            return cart.id

        cart_id = self._write(work, "Failed to remove cart item")
        logger.info("Item removed", cart_item_id=cart_item_id, cart_id=cart_id)
        return self.summarize(cart_id)

    def clear(self, cart_id: str) -> CartView:
        _require_id(cart_id, "cart ID")

        def work() -> None:
            cart = self._require_active_cart(cart_id)
            self.repo.delete_items(cart_id)
            self.discounts.release(cart)
            self.repo.touch(cart)

        self._write(work, "Failed to clear cart")
        logger.info("Cart cleared", cart_id=cart_id)
        return self.summarize(cart_id)

    def apply_discount(self, cart_id: str, code: str) -> CartView:
        _require_id(cart_id, "cart ID")
        if not code or not isinstance(code, str) or not code.strip():
            raise CartValidationError("Invalid discount code")
        code = code.strip()

        def work() -> None:
            cart = self._require_active_cart(cart_id)
            discount = self.discounts.resolve(code)
            if discount is None:
                raise DiscountError(DiscountReason.NOT_FOUND, reason_message(DiscountReason.NOT_FOUND))

            self.discounts.apply(cart, discount, self._subtotal(cart_id))
            self.repo.touch(cart)

        self._write(work, "Failed to apply discount to cart")
        return self.summarize(cart_id)

    def remove_discount(self, cart_id: str) -> CartView:
        _require_id(cart_id, "cart ID")

        def work() -> None:
            cart = self._require_active_cart(cart_id)
            self.discounts.release(cart)
            self.repo.touch(cart)

        self._write(work, "Failed to remove discount from cart")
        logger.info("Discount removed", cart_id=cart_id)
        return self.summarize(cart_id)

    def merge_on_login(self, session_id: str, user_id: str) -> CartView:
        """
        Fold the anonymous session cart into the user's cart after login.

        Same-variant lines add up, other lines move across, and the
        resulting cart is keyed to both identities. Running it again for the
        same pair is a no-op returning the same cart.
        """
        _require_id(session_id, "session ID")
        _require_id(user_id, "user ID")

        locked = self._acquire_merge_lock(session_id, user_id)
        if locked is False:
            # another request for this session is merging right now
            cart = self.repo.find_by_user(user_id)
            if cart is None:
                raise CartError("Cart merge already in progress")
            return self.summarize(cart.id)

        try:
            cart_id = self._write(lambda: self._merge(session_id, user_id), "Failed to merge carts")
        finally:
            if locked:
                self._release_merge_lock(session_id, user_id)

        return self.summarize(cart_id)

    def _merge(self, session_id: str, user_id: str) -> str:
        anonymous = self.repo.find_anonymous_by_session(session_id)
        user_cart = self.repo.find_by_user(user_id)

        if anonymous is None and user_cart is None:
            cart = self.repo.create_cart(session_id, user_id)
            logger.info("Created cart on login", cart_id=cart.id, user_id=user_id)
            return cart.id

        if anonymous is None:
            if user_cart.session_id != session_id:
                user_cart.session_id = session_id
                self.repo.touch(user_cart)
            return user_cart.id

        if user_cart is None:
            anonymous.user_id = user_id
            self.repo.touch(anonymous)
            return anonymous.id

        for item in self.repo.get_cart_items(anonymous.id):
            existing = self.repo.get_item_by_variant(user_cart.id, item.variant_id)
            if existing:
                existing.quantity += item.quantity
                existing.updated_at = utcnow()
                self.repo.delete_cart_item(item)
            else:
                self.repo.move_item(item, user_cart.id)

        if user_cart.discount_code:
            self.discounts.release(anonymous)
        elif anonymous.discount_code:
            # the use already taken by the anonymous cart moves with the code
            user_cart.discount_code = anonymous.discount_code
            anonymous.discount_code = None
            anonymous.discount_amount = 0

        self.db.flush()
        if user_cart.discount_code:
            self._revalidate_discount(user_cart)

        user_cart.session_id = session_id
        anonymous.status = CartStatus.MERGED.value
        self._reprice(user_cart)
        self.repo.delete_cart(anonymous)

        logger.info("Merged carts", source=anonymous.id, target=user_cart.id, user_id=user_id)
        return user_cart.id

    def _revalidate_discount(self, cart: CartModel) -> None:
        discount = self.discounts.resolve(cart.discount_code)
        reason = (
            self.discounts.validate(discount, self._subtotal(cart.id), ignore_usage=True)
            if discount is not None
            else DiscountReason.NOT_FOUND
        )
        if reason is not None:
            logger.info("Dropping discount after merge", cart_id=cart.id, code=cart.discount_code, reason=reason.value)
            self.discounts.release(cart)

    def _acquire_merge_lock(self, session_id: str, user_id: str) -> bool | None:
        if self.lock_service is None:
            return None
        try:
            return self.lock_service.acquire_merge_lock(session_id, owner=user_id, ttl=MERGE_LOCK_TTL_SECONDS)
        except RedisError as e:
            logger.warning("Merge lock unavailable, merging without it", session_id=session_id, error=str(e))
            return None

    def _release_merge_lock(self, session_id: str, user_id: str) -> None:
        try:
            self.lock_service.release_merge_lock(session_id, owner=user_id)
        except RedisError as e:
            logger.warning("Failed to release merge lock", session_id=session_id, error=str(e))

    def retire(self, cart_id: str) -> CartModel:
        """
        Mark the cart converted. Runs inside the caller's transaction; the
        cart row stays locked until that transaction ends.
        """
        cart = self.repo.get_cart(cart_id, for_update=True)
        if not cart:
            raise CartNotFoundError("Cart not found")
        if cart.status == CartStatus.CONVERTED.value:
            raise CartError("Cart has already been converted to an order")
        if cart.status != CartStatus.ACTIVE.value:
            raise CartError("Cart cannot be modified")

        cart.status = CartStatus.CONVERTED.value
        self.repo.touch(cart)
        return cart

    def abandon_stale(self, before: datetime | None = None) -> int:
        """Abandon active carts idle since ``before`` and give back their discount uses."""
        cutoff = before or utcnow() - timedelta(seconds=CART_ABANDON_AFTER_SECONDS)

        def work() -> int:
            carts = self.repo.list_inactive_since(cutoff)
            for cart in carts:
                self.discounts.release(cart)
                cart.status = CartStatus.ABANDONED.value
                cart.updated_at = utcnow()
            self.db.flush()
            return len(carts)

        count = self._write(work, "Failed to abandon stale carts")
        logger.info(f"Abandoned {count} carts", cutoff=cutoff.isoformat())
        return count
