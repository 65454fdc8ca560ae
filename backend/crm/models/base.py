# backend/crm/models/base.py
"""Document helpers shared by the lead, student, payment and attendance models."""
import logging
from datetime import datetime

from crm import config
from crm.exceptions import MissingIndexError, ValidationError

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now().isoformat(timespec="milliseconds")


def check_pagination(limit: int, offset: int, direction: str):
    if not 1 <= limit <= config.MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {config.MAX_PAGE_SIZE}")
    if offset < 0:
        raise ValidationError("offset must not be negative")
    if direction not in ("asc", "desc"):
        raise ValidationError("orderDirection must be 'asc' or 'desc'")


async def list_documents(store, collection: str, limit: int = config.DEFAULT_PAGE_SIZE,
                         offset: int = 0, order_by: str = "createdAt",
                         direction: str = "desc") -> list[dict]:
    """Return one page of a collection ordered by ``order_by``."""
    check_pagination(limit, offset, direction)
    return await store.query(
        collection, order_by=order_by, direction=direction, limit=limit, offset=offset
    )


async def get_document(store, collection: str, doc_id: str) -> dict | None:
    return await store.get(collection, doc_id)


async def create_document(store, collection: str, data: dict) -> dict:
    record = await store.add(collection, {**data, "createdAt": now_iso()})
    logger.info("Created %s/%s", collection, record["id"])
    return record


async def update_document(store, collection: str, doc_id: str, data: dict) -> dict:
    """Patch a document and return the written fields without re-reading it.

    Raises NotFoundError when the document does not exist.
    """
    updated = {**data, "updatedAt": now_iso()}
    await store.update(collection, doc_id, updated)
    logger.info("Updated %s/%s", collection, doc_id)
    return {"id": doc_id, **updated}


async def delete_document(store, collection: str, doc_id: str) -> bool:
    deleted = await store.delete(collection, doc_id)
    if deleted:
        logger.info("Deleted %s/%s", collection, doc_id)
    return deleted


def _in_range(value, start, end) -> bool:
    if value is None:
        return False
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


async def query_with_fallback(store, collection: str, equals: dict, range_field: str,
                              start=None, end=None, direction: str = "asc",
                              limit: int | None = None) -> list[dict]:
    """Equality + range query ordered by ``range_field``.

    When the store lacks the composite index for it, every document matching
    ``equals`` is loaded and the range, ordering and limit are applied here.
    Other store errors propagate.
    """
    filters = [(field, "==", value) for field, value in equals.items()]
    if start is not None:
        filters.append((range_field, ">=", start))
    if end is not None:
        filters.append((range_field, "<=", end))

    try:
        return await store.query(
            collection, filters=filters, order_by=range_field, direction=direction, limit=limit
        )
    except MissingIndexError as exc:
        logger.warning("Composite index missing, filtering client-side: %s", exc)

    docs = await store.query(
        collection, filters=[(field, "==", value) for field, value in equals.items()]
    )
    docs = [doc for doc in docs if _in_range(doc.get(range_field), start, end)]
    docs.sort(key=lambda doc: _sort_key(doc[range_field]), reverse=direction == "desc")
    if limit is not None:
        docs = docs[:limit]
    return docs


def _sort_key(value):
    # unparseable values sort after every timestamp
    if isinstance(value, str):
        try:
            return (0, datetime.fromisoformat(value).replace(tzinfo=None), "")
        except ValueError:
            pass
    return (1, datetime.min, str(value))
