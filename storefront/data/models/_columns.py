# storefront/data/models/_columns.py
import uuid

from sqlalchemy import Column, DateTime, String

from storefront.utils.dates import utcnow


def new_id() -> str:
    return str(uuid.uuid4())


def id_column():
    return Column(String(36), primary_key=True, default=new_id)


def created_at_column():
    return Column(DateTime(timezone=True), nullable=False, default=utcnow)


def updated_at_column():
    return Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
