import os

# must be set before storefront reads its settings
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["EMAIL_SERVICE_URL"] = "http://email.test"

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from storefront.data.database import init_db  # noqa: E402
from storefront.services.cart_service import CartService  # noqa: E402
from storefront.services.order_service import OrderService  # noqa: E402
from tests.factories import Catalogue, FakeLock, FakeNotifications  # noqa: E402


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def catalogue(db):
    return Catalogue(db)


@pytest.fixture()
def notifications():
    return FakeNotifications()


@pytest.fixture()
def lock():
    return FakeLock()


@pytest.fixture()
def carts(db, lock):
    return CartService(db, lock_service=lock)


@pytest.fixture()
def orders(db, notifications):
    return OrderService(db, notification_service=notifications)
