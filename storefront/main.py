# storefront/main.py
import uvicorn

from storefront.api import create_app
from storefront.data.database import init_db
from storefront.data.seed import seed
from storefront.utils import settings
from storefront.utils.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

init_db()
logger.info("Database tables ready")

if settings.SEED_DEMO_DATA:
    seed()
    logger.info("Demo catalogue seeded")

app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
