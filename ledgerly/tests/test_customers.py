"""
Integration tests for the customer directory.

Covers balances, archive/restore, hard delete, plan limits and
cross-tenant isolation.
"""

import pytest
from sqlalchemy import select, func

from ledgerly.app.models.audit_log import AuditLog
from ledgerly.app.models.config_entry import ConfigEntry
from ledgerly.app.models.transaction import Transaction


async def create_customer(client, headers, name="Ali Veli", **extra):
    response = await client.post("/api/customers", json={"name": name, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["customer"]


async def add_transaction(client, headers, customer_id, type_, amount, **extra):
    response = await client.post("/api/transactions", json={
        "customerId": customer_id,
        "type": type_,
        "amount": amount,
        **extra
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["transaction"]


@pytest.mark.asyncio
async def test_create_customer_normalizes_input(client, merchant):
    headers, user_id = merchant
    customer = await create_customer(client, headers, name="  Ali Veli  ", phone="", notes="  regular ")

    assert customer["name"] == "Ali Veli"
    assert customer["phone"] is None
    assert customer["notes"] == "regular"
    assert customer["balance"] == 0
    assert customer["user_id"] == user_id
    assert customer["is_deleted"] is False


@pytest.mark.asyncio
async def test_create_customer_validation(client, merchant):
    headers, _ = merchant

    response = await client.post("/api/customers", json={"name": ""}, headers=headers)
    assert response.status_code == 422

    response = await client.post("/api/customers", json={"name": "x" * 101}, headers=headers)
    assert response.status_code == 422

    response = await client.post("/api/customers", json={"name": "Ok", "phone": "1" * 21}, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_balance_is_debts_minus_payments(client, merchant):
    headers, _ = merchant
    customer = await create_customer(client, headers)

    await add_transaction(client, headers, customer["id"], "debt", 150)
    await add_transaction(client, headers, customer["id"], "debt", 49.5)
    payment = await add_transaction(client, headers, customer["id"], "payment", 100)

    response = await client.get(f"/api/customers/{customer['id']}", headers=headers)
    assert response.status_code == 200
    data = response.json()["customer"]
    assert data["balance"] == pytest.approx(99.5)
    assert data["transaction_count"] == 3
    assert data["last_transaction_date"] is not None

    # Deleting a transaction takes it out of the balance
    response = await client.request("DELETE", "/api/transactions", json={"transactionId": payment["id"]}, headers=headers)
    assert response.status_code == 200

    response = await client.get(f"/api/customers/{customer['id']}", headers=headers)
    assert response.json()["customer"]["balance"] == pytest.approx(199.5)


@pytest.mark.asyncio
async def test_list_reports_quota_and_search(client, merchant):
    headers, _ = merchant
    await create_customer(client, headers, name="Ali Veli", phone="5551234")
    await create_customer(client, headers, name="Zeynep Kaya")

    response = await client.get("/api/customers", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["totalCount"] == 2
    assert [c["name"] for c in data["customers"]] == ["Zeynep Kaya", "Ali Veli"]
    assert data["subscription"] == {
        "plan": "free",
        "customerLimit": 5,
        "customersUsed": 2,
        "customersRemaining": 3,
    }

    response = await client.get("/api/customers", params={"search": "zEyNeP"}, headers=headers)
    assert [c["name"] for c in response.json()["customers"]] == ["Zeynep Kaya"]

    response = await client.get("/api/customers", params={"search": "5551"}, headers=headers)
    assert [c["name"] for c in response.json()["customers"]] == ["Ali Veli"]


@pytest.mark.asyncio
async def test_update_customer(client, merchant):
    headers, _ = merchant
    customer = await create_customer(client, headers, phone="555")

    response = await client.patch("/api/customers", json={
        "customerId": customer["id"],
        "address": "Istanbul"
    }, headers=headers)
    assert response.status_code == 200
    updated = response.json()["customer"]
    assert updated["address"] == "Istanbul"
    assert updated["name"] == "Ali Veli"
    assert updated["phone"] == "555"

    response = await client.patch("/api/customers", json={
        "customerId": customer["id"],
        "name": None
    }, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_archive_is_idempotent_and_restorable(client, merchant):
    headers, _ = merchant
    customer = await create_customer(client, headers)
    await add_transaction(client, headers, customer["id"], "debt", 10)

    for _ in range(2):
        response = await client.request("DELETE", "/api/customers", json={"customerId": customer["id"]}, headers=headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}

    response = await client.get("/api/customers", headers=headers)
    assert response.json()["customers"] == []
    assert response.json()["totalCount"] == 1

    response = await client.get("/api/customers", params={"includeArchived": "true"}, headers=headers)
    archived = response.json()["customers"]
    assert len(archived) == 1
    assert archived[0]["is_deleted"] is True
    assert archived[0]["balance"] == 10

    response = await client.post(f"/api/customers/{customer['id']}/restore", headers=headers)
    assert response.status_code == 200
    assert response.json()["customer"]["is_deleted"] is False


@pytest.mark.asyncio
async def test_hard_delete_removes_transactions(client, merchant, db_session):
    headers, user_id = merchant
    customer = await create_customer(client, headers)
    keep = await create_customer(client, headers, name="Keep Me")
    await add_transaction(client, headers, customer["id"], "debt", 10)
    await add_transaction(client, headers, customer["id"], "payment", 5)
    await add_transaction(client, headers, keep["id"], "debt", 7)

    response = await client.request("DELETE", "/api/customers", json={
        "customerId": customer["id"],
        "hardDelete": True
    }, headers=headers)
    assert response.status_code == 200

    response = await client.get(f"/api/customers/{customer['id']}", headers=headers)
    assert response.status_code == 404

    count = (await db_session.execute(
        select(func.count(Transaction.id)).where(Transaction.user_id == user_id)
    )).scalar()
    assert count == 1

    logs = (await db_session.execute(
        select(AuditLog).where(AuditLog.action == "CUSTOMER_DELETED")
    )).scalars().all()
    assert logs[0].meta_data == {"customer_id": customer["id"], "transactions_removed": 2}


@pytest.mark.asyncio
async def test_customer_limit_counts_active_customers(client, merchant):
    headers, _ = merchant
    customers = [await create_customer(client, headers, name=f"Customer {i}") for i in range(5)]

    response = await client.post("/api/customers", json={"name": "One Too Many"}, headers=headers)
    assert response.status_code == 403
    body = response.json()
    assert body["error_code"] == "ERR_PLAN_002"
    assert body["details"]["limit"] == 5

    # Archiving frees a slot
    await client.request("DELETE", "/api/customers", json={"customerId": customers[0]["id"]}, headers=headers)
    await create_customer(client, headers, name="Fits Now")


@pytest.mark.asyncio
async def test_restore_respects_customer_limit(client, merchant):
    headers, _ = merchant
    customers = [await create_customer(client, headers, name=f"Customer {i}") for i in range(5)]
    archived_id = customers[0]["id"]

    await client.request("DELETE", "/api/customers", json={"customerId": archived_id}, headers=headers)
    await create_customer(client, headers, name="Took The Slot")

    response = await client.post(f"/api/customers/{archived_id}/restore", headers=headers)
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_PLAN_002"

    response = await client.get("/api/customers", headers=headers)
    assert response.json()["subscription"]["customersUsed"] == 5

    response = await client.get(f"/api/customers/{archived_id}", headers=headers)
    assert response.json()["customer"]["is_deleted"] is True


@pytest.mark.asyncio
async def test_customer_limit_names_cheapest_upgrade(client, merchant):
    headers, _ = merchant
    for i in range(5):
        await create_customer(client, headers, name=f"Customer {i}")

    response = await client.post("/api/customers", json={"name": "One Too Many"}, headers=headers)
    assert response.status_code == 403
    assert response.json()["details"] == {
        "plan": "free", "limit": 5, "used": 5, "upgrade_required": "basic"
    }


@pytest.mark.asyncio
async def test_customer_limit_config_override(client, merchant, db_session):
    headers, _ = merchant
    db_session.add(ConfigEntry(key="plans.free.customer_limit", value=1))
    await db_session.commit()

    await create_customer(client, headers)
    response = await client.post("/api/customers", json={"name": "Second"}, headers=headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_pro_plan_raises_limit(client, pro_merchant):
    headers, _ = pro_merchant
    for i in range(6):
        await create_customer(client, headers, name=f"Customer {i}")

    response = await client.get("/api/customers", headers=headers)
    assert response.json()["subscription"]["customerLimit"] == 500


@pytest.mark.asyncio
async def test_foreign_customer_is_not_found(client, merchant, other_merchant):
    headers, _ = merchant
    other_headers, _ = other_merchant
    customer = await create_customer(client, headers)

    response = await client.get(f"/api/customers/{customer['id']}", headers=other_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Customer not found or access denied."

    response = await client.patch("/api/customers", json={
        "customerId": customer["id"],
        "name": "Hijacked"
    }, headers=other_headers)
    assert response.status_code == 404

    response = await client.request("DELETE", "/api/customers", json={
        "customerId": customer["id"],
        "hardDelete": True
    }, headers=other_headers)
    assert response.status_code == 404

    response = await client.get("/api/customers", headers=other_headers)
    assert response.json()["customers"] == []

    response = await client.get(f"/api/customers/{customer['id']}", headers=headers)
    assert response.json()["customer"]["name"] == "Ali Veli"


@pytest.mark.asyncio
async def test_customer_transactions_newest_first(client, merchant):
    headers, _ = merchant
    customer = await create_customer(client, headers)
    await add_transaction(client, headers, customer["id"], "debt", 1, date="2024-01-01T10:00:00Z")
    await add_transaction(client, headers, customer["id"], "debt", 2, date="2024-03-01T10:00:00Z")
    await add_transaction(client, headers, customer["id"], "payment", 3, date="2024-02-01T10:00:00Z")

    response = await client.get(f"/api/customers/{customer['id']}/transactions", headers=headers)
    assert response.status_code == 200
    assert [t["amount"] for t in response.json()["transactions"]] == [2, 3, 1]
