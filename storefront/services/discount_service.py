# storefront/services/discount_service.py
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from storefront.data.models.cart import CartModel
from storefront.data.models.discount import DiscountModel
from storefront.domain.discounts import (
    cart_discount_amount,
    compute_discount_amount,
    reason_message,
    validate_discount,
)
from storefront.domain.errors import DiscountError, DiscountReason
from storefront.repos.discount_repo import DiscountRepo
from storefront.utils.dates import utcnow
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class DiscountService:
    """
    Resolves, validates and applies discount codes.

    Nothing here commits: ``apply`` and ``release`` are meant to run inside
    the caller's transaction together with the cart update they belong to.
    """

    def __init__(self, db: Session):
        self.repo = DiscountRepo(db)

    def resolve(self, code: str) -> Optional[DiscountModel]:
        return self.repo.get_by_code(code)

    def validate(
        self,
        discount: DiscountModel,
        cart_subtotal: int,
        now: datetime | None = None,
        ignore_usage: bool = False,
    ) -> Optional[DiscountReason]:
        return validate_discount(discount, cart_subtotal, now or utcnow(), ignore_usage=ignore_usage)

    def ensure_valid(self, discount: DiscountModel, cart_subtotal: int, ignore_usage: bool = False) -> None:
        reason = self.validate(discount, cart_subtotal, ignore_usage=ignore_usage)
        if reason is not None:
            raise DiscountError(reason, reason_message(reason, discount))

    def compute_amount(self, discount: DiscountModel, cart_subtotal: int) -> int:
        return compute_discount_amount(discount, cart_subtotal)

    def apply(self, cart: CartModel, discount: DiscountModel, cart_subtotal: int) -> int:
        """
        Record ``discount`` on ``cart`` and return the cart-level amount.

        Re-applying the code already on the cart only recomputes the amount.
        A different code replaces the current one and gives its use back.
        """
        same_code = cart.discount_code == discount.code
        self.ensure_valid(discount, cart_subtotal, ignore_usage=same_code)
        amount = cart_discount_amount(discount, cart_subtotal)

        if not same_code:
            if not self.repo.increment_usage(discount):
                raise DiscountError(
                    DiscountReason.MAX_USES_REACHED,
                    reason_message(DiscountReason.MAX_USES_REACHED),
                )
            if cart.discount_code:
                self.release(cart)

        cart.discount_code = discount.code
        cart.discount_amount = amount
        logger.info("Discount applied", cart_id=cart.id, code=discount.code, amount=amount)
        return amount

    def release(self, cart: CartModel) -> None:
        """Give back the use held by the cart's code and detach it from the cart."""
        if cart.discount_code:
            discount = self.resolve(cart.discount_code)
            if discount is not None:
                self.repo.release_usage(discount)
        cart.discount_code = None
        cart.discount_amount = 0

    def refresh(self, cart: CartModel, cart_subtotal: int) -> None:
        """Recompute the stored amount after the cart contents changed."""
        if not cart.discount_code:
            return
        discount = self.resolve(cart.discount_code)
        if discount is not None:
            cart.discount_amount = cart_discount_amount(discount, cart_subtotal)
