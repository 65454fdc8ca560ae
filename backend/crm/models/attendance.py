# backend/crm/models/attendance.py
"""Attendance records: one document per student per calendar day.

Record ids are ``"{studentId}_{YYYY-MM-DD}"`` (the student id percent-encoded,
so ids containing ``/`` stay one path segment) and writes go through the
store's transactional upsert, so marking the same day twice (even from two
concurrent requests) touches a single document. Dates are stored as local
ISO-8601 strings with second precision, which keeps string range queries
and chronological order in agreement.
"""
import calendar
import logging
import math
from datetime import date, datetime, time
from enum import Enum
from urllib.parse import quote

from crm import config
from crm.exceptions import ValidationError
from crm.models.base import delete_document, now_iso, query_with_fallback

logger = logging.getLogger(__name__)

COLLECTION = config.ATTENDANCE_COLLECTION


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LEAVE = "leave"


def parse_status(value) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in AttendanceStatus)
        raise ValidationError(f"Invalid status {value!r}; expected one of: {allowed}") from None


def to_local_datetime(value) -> datetime:
    """Parse a date/datetime/ISO string into a naive local datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"Invalid date: {value!r}") from None
    else:
        raise ValidationError("date is required")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.replace(microsecond=0)


def _iso(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def day_bounds(day: date) -> tuple[str, str]:
    return _iso(datetime.combine(day, time.min)), _iso(datetime.combine(day, time(23, 59, 59)))


def month_bounds(year: int, month: int) -> tuple[str, str, int]:
    """Inclusive ISO bounds of a month plus its number of days."""
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    if not 1 <= year <= 9999:
        raise ValidationError("year is out of range")
    total_days = calendar.monthrange(year, month)[1]
    start, _ = day_bounds(date(year, month, 1))
    _, end = day_bounds(date(year, month, total_days))
    return start, end, total_days


def record_id(student_id: str, day: date) -> str:
    return f"{quote(student_id, safe='')}_{day.isoformat()}"


def _require_student(student_id):
    if not isinstance(student_id, str) or not student_id.strip():
        raise ValidationError("studentId is required")


async def mark_attendance(store, student_id: str, date, status, notes: str = "") -> dict:
    """Create or update the student's record for the calendar day of ``date``."""
    _require_student(student_id)
    status = parse_status(status)
    marked_at = to_local_datetime(date)
    timestamp = now_iso()
    notes = notes or ""

    on_create = {
        "studentId": student_id,
        "date": _iso(marked_at),
        "status": status.value,
        "notes": notes,
        "createdAt": timestamp,
        "updatedAt": timestamp,
    }
    on_update = {"status": status.value, "notes": notes, "updatedAt": timestamp}

    doc_id = record_id(student_id, marked_at.date())
    record, created = await store.upsert(COLLECTION, doc_id, on_create, on_update)
    logger.info("%s attendance %s (%s)", "Created" if created else "Updated", doc_id, status.value)
    return record


async def get_student_attendance(store, student_id: str, year: int, month: int) -> list[dict]:
    """All records of a student within a month, oldest first."""
    _require_student(student_id)
    start, end, _ = month_bounds(year, month)
    return await query_with_fallback(
        store, COLLECTION, {"studentId": student_id}, "date", start, end
    )


async def get_attendance_by_date_range(store, student_id: str, start_date, end_date) -> list[dict]:
    _require_student(student_id)
    first = to_local_datetime(start_date).date()
    last = to_local_datetime(end_date).date()
    if first > last:
        raise ValidationError("startDate must not be after endDate")
    start, _ = day_bounds(first)
    _, end = day_bounds(last)
    return await query_with_fallback(
        store, COLLECTION, {"studentId": student_id}, "date", start, end
    )


async def get_attendance_summary(store, student_id: str, year: int, month: int) -> dict:
    """Monthly counts; percentage is present days over calendar days."""
    records = await get_student_attendance(store, student_id, year, month)
    _, _, total_days = month_bounds(year, month)

    counts = {status: 0 for status in AttendanceStatus}
    for record in records:
        if record.get("status") in counts:
            counts[AttendanceStatus(record["status"])] += 1

    present = counts[AttendanceStatus.PRESENT]
    # half-up rounding, 12.5 -> 13
    percentage = math.floor(present / total_days * 100 + 0.5) if total_days > 0 else 0
    return {
        "totalDays": total_days,
        "present": present,
        "absent": counts[AttendanceStatus.ABSENT],
        "leave": counts[AttendanceStatus.LEAVE],
        "percentage": percentage,
    }


async def delete_monthly_attendance(store, student_id: str, year: int, month: int) -> dict:
    _require_student(student_id)
    start, end, _ = month_bounds(year, month)

    records = await store.query(COLLECTION, filters=[("studentId", "==", student_id)])
    doc_ids = [
        record["id"] for record in records
        if isinstance(record.get("date"), str) and start <= record["date"] <= end
    ]
    if not doc_ids:
        return {"deletedCount": 0}

    deleted = await store.delete_many(COLLECTION, doc_ids)
    logger.info("Deleted %d attendance records for %s in %04d-%02d", deleted, student_id, year, month)
    return {"deletedCount": deleted}


async def delete_attendance(store, attendance_id: str) -> bool:
    return await delete_document(store, COLLECTION, attendance_id)
