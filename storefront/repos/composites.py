# storefront/repos/composites.py
import json
from typing import Any, List

from pydantic import ValidationError as PydanticValidationError

from storefront.domain.schemas import CompositeItem
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def parse_composites(raw: Any) -> List[CompositeItem]:
    """
    Read a stored composites payload.

    Older rows hold a JSON string, newer ones a list; anything shaped like a
    sequence is accepted. Unreadable payloads yield an empty list.
    """
    if raw is None or raw == "":
        return []

    try:
        if isinstance(raw, str):
            raw = json.loads(raw) if raw.strip() else []
        if isinstance(raw, dict):
            raw = [raw[k] for k in sorted(raw, key=int)] if all(str(k).isdigit() for k in raw) else [raw]
        if not isinstance(raw, (list, tuple)):
            raw = list(raw)
        return [_to_item(entry) for entry in raw]
    except (ValueError, TypeError, KeyError, PydanticValidationError) as e:
        logger.warning("Unreadable composites payload", error=str(e))
        return []


def _to_item(entry: Any) -> CompositeItem:
    if isinstance(entry, CompositeItem):
        return entry
    data = dict(entry)
    # legacy rows were written with camelCase keys
    if "variantId" in data and "variant_id" not in data:
        data["variant_id"] = data.pop("variantId")
    return CompositeItem.model_validate(data)


def dump_composites(items: List[CompositeItem] | None) -> list | None:
    if not items:
        return None
    return [c.model_dump() for c in items]
