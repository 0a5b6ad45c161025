# storefront/repos/transaction.py
from typing import Callable, TypeVar

from sqlalchemy.orm import Session

T = TypeVar("T")


def run_in_transaction(db: Session, fn: Callable[[], T]) -> T:
    """Run ``fn`` as one unit: commit if it returns, roll back if it raises."""
    try:
        result = fn()
        db.commit()
    except BaseException:
        db.rollback()
        raise
    return result
