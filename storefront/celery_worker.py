# storefront/celery_worker.py
from celery import Celery

from storefront.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND
from storefront.utils.logging import configure_logging

configure_logging()

celery_app = Celery(
    "storefront",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# import task modules explicitly so Celery registers them
celery_app.conf.imports = (
    "storefront.tasks.abandon",
    "storefront.services.notification_service",
)

celery_app.conf.beat_schedule = {
    "abandon-stale-carts-hourly": {
        "task": "storefront.tasks.abandon.abandon_stale_carts_task",
        "schedule": 60.0 * 60,
    },
}

celery_app.conf.timezone = "UTC"
