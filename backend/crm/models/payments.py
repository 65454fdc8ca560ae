# backend/crm/models/payments.py
from datetime import datetime, time

from crm import config
from crm.exceptions import ValidationError
from crm.models.base import (
    create_document, delete_document, get_document, list_documents, query_with_fallback,
)

COLLECTION = config.PAYMENTS_COLLECTION


def _as_iso(value, end_of_day=False) -> str:
    """Normalize a date or datetime (or ISO string) to a naive ISO timestamp."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}") from None
    if not isinstance(value, datetime):
        value = datetime.combine(value, time(23, 59, 59) if end_of_day else time.min)
    elif end_of_day and value.time() == time.min:
        # a bare date means the whole day
        value = datetime.combine(value.date(), time(23, 59, 59))
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.isoformat(timespec="seconds")


async def get_payments(store, limit=config.DEFAULT_PAGE_SIZE, offset=0,
                       order_by="createdAt", direction="desc"):
    return await list_documents(store, COLLECTION, limit, offset, order_by, direction)


async def get_payment_by_id(store, payment_id: str):
    return await get_document(store, COLLECTION, payment_id)


async def get_payments_by_student_id(store, student_id: str):
    """Payments of one student, newest first."""
    return await query_with_fallback(
        store, COLLECTION, {"studentId": student_id}, "createdAt", direction="desc"
    )


async def get_payments_by_date_range(store, start_date, end_date, limit=config.DEFAULT_PAGE_SIZE):
    start = _as_iso(start_date)
    end = _as_iso(end_date, end_of_day=True)
    if start > end:
        raise ValidationError("startDate must not be after endDate")
    if not 1 <= limit <= config.MAX_PAGE_SIZE:
        raise ValidationError(f"limit must be between 1 and {config.MAX_PAGE_SIZE}")

    return await store.query(
        COLLECTION,
        filters=[("paymentDate", ">=", start), ("paymentDate", "<=", end)],
        order_by="paymentDate",
        direction="desc",
        limit=limit,
    )


async def create_payment(store, data: dict):
    if not data.get("studentId"):
        raise ValidationError("studentId is required")
    amount = data.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not amount > 0:
        raise ValidationError("amount must be greater than zero")
    payment_date = data.get("paymentDate") or datetime.now()
    return await create_document(
        store, COLLECTION, {**data, "paymentDate": _as_iso(payment_date)}
    )


async def delete_payment(store, payment_id: str) -> bool:
    return await delete_document(store, COLLECTION, payment_id)
