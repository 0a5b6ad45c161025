# storefront/repos/order_repo.py
from typing import List

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from storefront.data.models.order import (
    OrderAddressModel,
    OrderItemModel,
    OrderModel,
    OrderStatusHistoryModel,
    PaymentTransactionModel,
    RefundModel,
)


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def _with_lines(self):
        return (
            select(OrderModel)
            .options(selectinload(OrderModel.items), selectinload(OrderModel.addresses))
            .execution_options(populate_existing=True)
        )

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: str, for_update: bool = False) -> OrderModel | None:
        stmt = select(OrderModel).where(OrderModel.id == order_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_order_with_lines(self, order_id: str) -> OrderModel | None:
        return self.db.execute(self._with_lines().where(OrderModel.id == order_id)).scalar_one_or_none()

    def list_by_user(self, user_id: str) -> List[OrderModel]:
        stmt = self._with_lines().where(OrderModel.user_id == user_id).order_by(OrderModel.created_at.desc())
        return list(self.db.execute(stmt).scalars())

    def list_by_status(self, status: str) -> List[OrderModel]:
        stmt = self._with_lines().where(OrderModel.status == status).order_by(OrderModel.created_at.desc())
        return list(self.db.execute(stmt).scalars())

    def add_items(self, items: List[OrderItemModel]) -> None:
        self.db.add_all(items)
        self.db.flush()

    def add_address(self, address: OrderAddressModel) -> OrderAddressModel:
        self.db.add(address)
        self.db.flush()
        return address

    # status history is append-only: rows are added, never updated or deleted
    def add_status_history(self, entry: OrderStatusHistoryModel) -> OrderStatusHistoryModel:
        self.db.add(entry)
        self.db.flush()
        return entry

    def get_status_history(self, order_id: str) -> List[OrderStatusHistoryModel]:
        stmt = (
            select(OrderStatusHistoryModel)
            .where(OrderStatusHistoryModel.order_id == order_id)
            .order_by(OrderStatusHistoryModel.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def add_payment(self, payment: PaymentTransactionModel) -> PaymentTransactionModel:
        self.db.add(payment)
        self.db.flush()
        return payment

    def get_payment(self, transaction_id: str) -> PaymentTransactionModel | None:
        return self.db.get(PaymentTransactionModel, transaction_id)

    def list_payments(self, order_id: str) -> List[PaymentTransactionModel]:
        stmt = (
            select(PaymentTransactionModel)
            .where(PaymentTransactionModel.order_id == order_id)
            .order_by(PaymentTransactionModel.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars())

    def add_refund(self, refund: RefundModel) -> RefundModel:
        self.db.add(refund)
        self.db.flush()
        return refund

    def refunded_total(self, transaction_id: str) -> int:
        stmt = select(func.coalesce(func.sum(RefundModel.amount), 0)).where(
            RefundModel.transaction_id == transaction_id
        )
        return int(self.db.execute(stmt).scalar_one())

    def list_refunds(self, order_id: str) -> List[RefundModel]:
        stmt = select(RefundModel).where(RefundModel.order_id == order_id).order_by(RefundModel.created_at.desc())
        return list(self.db.execute(stmt).scalars())
