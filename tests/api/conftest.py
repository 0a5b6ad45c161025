import pytest
from fastapi.testclient import TestClient

from storefront.api import create_app
from storefront.api.deps import get_lock_service, get_notification_service
from storefront.data.database import get_db


@pytest.fixture()
def client(db, lock, notifications):
    app = create_app()

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_lock_service] = lambda: lock
    app.dependency_overrides[get_notification_service] = lambda: notifications

    with TestClient(app) as client:
        yield client
