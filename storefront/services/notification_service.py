# storefront/services/notification_service.py
from storefront.celery_worker import celery_app
from storefront.domain.schemas import OrderView
from storefront.services.email_client import EmailClient
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Hands order notifications to the Celery worker."""

    @staticmethod
    def send_order_confirmation(order: OrderView):
        send_order_confirmation_task.delay(order.model_dump(mode="json"))


@celery_app.task(
    name="storefront.services.notification_service.send_order_confirmation_task",
    ignore_result=True,
)
def send_order_confirmation_task(order: dict):
    logger.info("Sending order confirmation", order_id=order["id"], order_number=order["order_number"])
    EmailClient().send_order_confirmation(order)
    return {"order_id": order["id"], "status": "sent"}
