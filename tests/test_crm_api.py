from __future__ import annotations

import pytest

from crm.exceptions import ValidationError
from crm.models import payments


@pytest.mark.parametrize("resource", ["leads", "students"])
def test_crud_roundtrip(client, auth_headers, resource):
    created = client.post(
        f"/api/{resource}", json={"name": "Ada Lovelace", "phone": "+44 20 7946 0000"}, headers=auth_headers
    )
    assert created.status_code == 201
    doc = created.json()["data"]
    assert doc["id"]
    assert doc["createdAt"]

    fetched = client.get(f"/api/{resource}/{doc['id']}", headers=auth_headers)
    assert fetched.json()["data"]["name"] == "Ada Lovelace"

    updated = client.put(f"/api/{resource}/{doc['id']}", json={"name": "Ada King"}, headers=auth_headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["name"] == "Ada King"
    assert "updatedAt" in updated.json()["data"]

    assert client.delete(f"/api/{resource}/{doc['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/{resource}/{doc['id']}", headers=auth_headers).status_code == 404
    assert client.delete(f"/api/{resource}/{doc['id']}", headers=auth_headers).status_code == 404


def test_new_lead_defaults_to_status_new(client, auth_headers):
    resp = client.post(
        "/api/leads", json={"name": "Grace", "phone": "5550101234", "source": "walk-in"}, headers=auth_headers
    )

    assert resp.json()["data"]["status"] == "New"
    assert resp.json()["data"]["source"] == "walk-in"


@pytest.mark.parametrize("body", [
    {"phone": "5550101234"},
    {"name": "Grace"},
    {"name": "   ", "phone": "5550101234"},
    {"name": "Grace", "phone": "call me"},
])
def test_lead_validation(client, auth_headers, body):
    resp = client.post("/api/leads", json=body, headers=auth_headers)

    assert resp.status_code == 400


def test_student_rejects_invalid_email(client, auth_headers):
    resp = client.post(
        "/api/students", json={"name": "Alan", "phone": "5550101234", "email": "nope"}, headers=auth_headers
    )

    assert resp.status_code == 400


def test_update_missing_document_is_404(client, auth_headers):
    resp = client.put("/api/students/missing", json={"name": "x"}, headers=auth_headers)

    assert resp.status_code == 404


def test_update_without_fields_is_400(client, auth_headers):
    resp = client.put("/api/leads/any", json={}, headers=auth_headers)

    assert resp.status_code == 400


def test_list_pagination(client, store, auth_headers):
    for n in range(5):
        store.collections.setdefault("students", {})[f"s{n}"] = {
            "name": f"student-{n}", "phone": "5550101234", "createdAt": f"2024-01-0{n + 1}T00:00:00.000",
        }

    resp = client.get("/api/students", params={"limit": 2, "offset": 1}, headers=auth_headers)

    body = resp.json()
    assert [s["name"] for s in body["data"]] == ["student-3", "student-2"]
    assert body["meta"] == {"count": 2, "limit": 2, "offset": 1}

    asc = client.get("/api/students", params={"limit": 1, "orderDirection": "asc"}, headers=auth_headers)
    assert asc.json()["data"][0]["name"] == "student-0"


@pytest.mark.parametrize("params", [{"limit": 0}, {"offset": -1}, {"orderDirection": "sideways"}])
def test_list_rejects_bad_pagination(client, auth_headers, params):
    resp = client.get("/api/leads", params=params, headers=auth_headers)

    assert resp.status_code == 400


def test_payments_flow(client, auth_headers):
    created = client.post(
        "/api/payments",
        json={"studentId": "S1", "amount": 1500, "paymentDate": "2024-03-10", "method": "cash"},
        headers=auth_headers,
    )
    assert created.status_code == 201
    payment = created.json()["data"]
    assert payment["paymentDate"] == "2024-03-10T00:00:00"

    client.post(
        "/api/payments",
        json={"studentId": "S1", "amount": 200, "paymentDate": "2024-05-01"},
        headers=auth_headers,
    )

    in_range = client.get(
        "/api/payments/date-range", params={"startDate": "2024-03-01", "endDate": "2024-03-31"}, headers=auth_headers
    )
    assert in_range.status_code == 200
    assert [p["amount"] for p in in_range.json()["data"]] == [1500]
    assert in_range.json()["meta"]["startDate"] == "2024-03-01"

    by_student = client.get("/api/payments/student/S1", headers=auth_headers)
    assert len(by_student.json()["data"]) == 2

    assert client.get(f"/api/payments/{payment['id']}", headers=auth_headers).json()["data"]["method"] == "cash"
    assert client.delete(f"/api/payments/{payment['id']}", headers=auth_headers).status_code == 200
    assert client.get(f"/api/payments/{payment['id']}", headers=auth_headers).status_code == 404


@pytest.mark.parametrize("amount", [0, -10])
def test_payment_amount_must_be_positive(client, auth_headers, amount):
    resp = client.post("/api/payments", json={"studentId": "S1", "amount": amount}, headers=auth_headers)

    assert resp.status_code == 400


async def test_student_payments_newest_first_without_index(unindexed_store):
    for created_at, amount in [("2024-01-02T00:00:00", 2), ("2024-01-03T00:00:00", 3), ("2024-01-01T00:00:00", 1)]:
        await unindexed_store.add("payments", {"studentId": "S1", "amount": amount, "createdAt": created_at})
    await unindexed_store.add("payments", {"studentId": "S2", "amount": 99, "createdAt": "2024-01-04T00:00:00"})

    result = await payments.get_payments_by_student_id(unindexed_store, "S1")

    assert [p["amount"] for p in result] == [3, 2, 1]


async def test_payment_date_range_includes_whole_end_day(store):
    await payments.create_payment(store, {"studentId": "S1", "amount": 10, "paymentDate": "2024-03-31T18:00:00"})

    result = await payments.get_payments_by_date_range(store, "2024-03-01", "2024-03-31")

    assert len(result) == 1


def test_health_and_root(client):
    assert client.get("/api").json()["message"].startswith("Hello")
    health = client.get("/api/health").json()
    assert health["status"] == "healthy"


@pytest.mark.parametrize("data", [
    {"studentId": "S1"},
    {"studentId": "S1", "amount": 0},
    {"studentId": "S1", "amount": -5},
    {"studentId": "S1", "amount": "100"},
])
async def test_create_payment_requires_positive_amount(store, data):
    with pytest.raises(ValidationError):
        await payments.create_payment(store, data)

    assert await store.query("payments") == []
