# storefront/services/email_client.py
import requests

from storefront.utils.retry import http_retry
from storefront.utils.settings import EMAIL_SERVICE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class EmailClient:
    def __init__(self, base_url: str | None = None, timeout: int = 5):
        self.base_url = (base_url or EMAIL_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def send_order_confirmation(self, order: dict) -> dict:
        url = f"{self.base_url}/messages/order-confirmation"
        logger.info(f"EmailClient POST {url}", order_id=order.get("id"))

        resp = requests.post(
            url,
            json={"to": order["email"], "order": order},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()
