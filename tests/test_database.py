from __future__ import annotations

import pytest
from google.api_core import exceptions as google_exceptions

from crm.database import MemoryStore, translate_errors
from crm.exceptions import MissingIndexError, NotFoundError, StoreUnavailableError, ValidationError


def test_translate_missing_index():
    with pytest.raises(MissingIndexError):
        with translate_errors("query attendance"):
            raise google_exceptions.FailedPrecondition(
                "The query requires an index. You can create it here: https://console.firebase.google.com/..."
            )


def test_translate_other_failed_precondition_is_not_an_index_error():
    with pytest.raises(StoreUnavailableError) as excinfo:
        with translate_errors("update leads/1"):
            raise google_exceptions.FailedPrecondition("transaction aborted")
    assert not isinstance(excinfo.value, MissingIndexError)


def test_translate_not_found():
    with pytest.raises(NotFoundError):
        with translate_errors("update leads/1"):
            raise google_exceptions.NotFound("No document to update")


def test_translate_unavailable_keeps_message():
    with pytest.raises(StoreUnavailableError, match="get leads/1"):
        with translate_errors("get leads/1"):
            raise google_exceptions.ServiceUnavailable("connection reset")


async def test_memory_store_requires_composite_index_for_range_on_other_field():
    store = MemoryStore(indexes=())
    await store.add("attendance", {"studentId": "S1", "date": "2024-03-01T00:00:00"})

    with pytest.raises(MissingIndexError):
        await store.query(
            "attendance",
            filters=[("studentId", "==", "S1"), ("date", ">=", "2024-03-01T00:00:00")],
        )
    with pytest.raises(MissingIndexError):
        await store.query("attendance", filters=[("studentId", "==", "S1")], order_by="date")

    # single-field queries never need a composite index
    assert len(await store.query("attendance", filters=[("studentId", "==", "S1")])) == 1
    assert len(await store.query("attendance", order_by="date")) == 1


async def test_memory_store_with_declared_index():
    store = MemoryStore(indexes=[("studentId", "date")])
    await store.add("attendance", {"studentId": "S1", "date": "2024-03-02T00:00:00"})
    await store.add("attendance", {"studentId": "S1", "date": "2024-03-01T00:00:00"})

    docs = await store.query(
        "attendance",
        filters=[("studentId", "==", "S1"), ("date", "<=", "2024-03-31T23:59:59")],
        order_by="date",
    )
    assert [d["date"] for d in docs] == ["2024-03-01T00:00:00", "2024-03-02T00:00:00"]


async def test_memory_store_pagination_and_missing_order_field():
    store = MemoryStore()
    for n in range(5):
        await store.add("leads", {"name": f"lead-{n}", "createdAt": f"2024-01-0{n + 1}"})
    await store.add("leads", {"name": "no-timestamp"})

    page = await store.query("leads", order_by="createdAt", direction="desc", limit=2, offset=1)

    assert [d["name"] for d in page] == ["lead-3", "lead-2"]


async def test_memory_store_returns_copies():
    store = MemoryStore()
    created = await store.add("leads", {"name": "Ada", "tags": ["a"]})

    fetched = await store.get("leads", created["id"])
    fetched["tags"].append("b")

    assert (await store.get("leads", created["id"]))["tags"] == ["a"]


async def test_memory_store_update_missing_raises():
    with pytest.raises(NotFoundError):
        await MemoryStore().update("leads", "missing", {"name": "x"})


async def test_memory_store_delete_many():
    store = MemoryStore()
    ids = [(await store.add("attendance", {"n": n}))["id"] for n in range(3)]

    assert await store.delete_many("attendance", ids[:2]) == 2
    assert await store.delete_many("attendance", []) == 0
    assert [d["id"] for d in await store.query("attendance")] == [ids[2]]


async def test_memory_store_upsert():
    store = MemoryStore()

    record, created = await store.upsert("attendance", "S1_2024-03-05", {"status": "present", "createdAt": "t0"}, {"status": "absent"})
    assert created is True
    assert record == {"id": "S1_2024-03-05", "status": "present", "createdAt": "t0"}

    record, created = await store.upsert("attendance", "S1_2024-03-05", {"status": "leave", "createdAt": "t1"}, {"status": "absent"})
    assert created is False
    assert record == {"id": "S1_2024-03-05", "status": "absent", "createdAt": "t0"}


@pytest.mark.parametrize("doc_id", ["team/7", "__name__", ".", "..", ""])
async def test_memory_store_rejects_ids_firestore_cannot_store(doc_id):
    store = MemoryStore()

    with pytest.raises(ValidationError):
        await store.upsert("attendance", doc_id, {"status": "present"}, {"status": "absent"})
    with pytest.raises(ValidationError):
        await store.get("leads", doc_id)
    with pytest.raises(ValidationError):
        await store.delete_many("attendance", [doc_id])
