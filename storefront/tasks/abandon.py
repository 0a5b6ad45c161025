# storefront/tasks/abandon.py
from datetime import datetime

from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.services.cart_service import CartService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.abandon.abandon_stale_carts_task")
def abandon_stale_carts_task(before: str | None = None):
    """Periodic sweep; ``before`` is an ISO timestamp overriding the idle cutoff."""
    logger.info("Abandon stale carts task started")

    db = SessionLocal()
    try:
        cutoff = datetime.fromisoformat(before) if before else None
        count = CartService(db).abandon_stale(cutoff)
    finally:
        db.close()

    return {"abandoned": count}
