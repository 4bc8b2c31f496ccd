"""
Integration tests for debt and payment records.
"""

import pytest


@pytest.fixture
async def customer(client, merchant):
    headers, _ = merchant
    response = await client.post("/api/customers", json={"name": "Mehmet"}, headers=headers)
    assert response.status_code == 201
    return response.json()["customer"]


@pytest.mark.asyncio
async def test_create_and_get_transaction(client, merchant, customer):
    headers, _ = merchant
    response = await client.post("/api/transactions", json={
        "customerId": customer["id"],
        "type": "debt",
        "amount": "120.50",
        "note": " bread and milk ",
        "date": "2024-05-01T09:30:00Z"
    }, headers=headers)
    assert response.status_code == 201
    created = response.json()["transaction"]
    assert created["amount"] == 120.5
    assert created["description"] == "bread and milk"
    assert created["customer_name"] == "Mehmet"
    assert created["transaction_date"].startswith("2024-05-01")

    response = await client.get(f"/api/transactions/{created['id']}", headers=headers)
    assert response.status_code == 200
    assert response.json()["transaction"]["type"] == "debt"


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5, 1000000000, 10.123])
async def test_invalid_amount_rejected(client, merchant, customer, amount):
    headers, _ = merchant
    response = await client.post("/api/transactions", json={
        "customerId": customer["id"],
        "type": "payment",
        "amount": amount
    }, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_invalid_type_rejected(client, merchant, customer):
    headers, _ = merchant
    response = await client.post("/api/transactions", json={
        "customerId": customer["id"],
        "type": "refund",
        "amount": 10
    }, headers=headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_cannot_book_on_foreign_customer(client, customer, other_merchant):
    other_headers, _ = other_merchant
    response = await client.post("/api/transactions", json={
        "customerId": customer["id"],
        "type": "debt",
        "amount": 10
    }, headers=other_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Customer not found or access denied."


@pytest.mark.asyncio
async def test_update_transaction(client, merchant, customer):
    headers, _ = merchant
    response = await client.post("/api/transactions", json={
        "customerId": customer["id"], "type": "debt", "amount": 10, "note": "old"
    }, headers=headers)
    transaction_id = response.json()["transaction"]["id"]

    response = await client.patch("/api/transactions", json={
        "transactionId": transaction_id,
        "amount": 25,
        "note": None
    }, headers=headers)
    assert response.status_code == 200
    updated = response.json()["transaction"]
    assert updated["amount"] == 25
    assert updated["description"] is None
    assert updated["type"] == "debt"


@pytest.mark.asyncio
async def test_move_transaction_requires_owned_customer(client, merchant, customer, other_merchant):
    headers, _ = merchant
    other_headers, _ = other_merchant
    foreign = await client.post("/api/customers", json={"name": "Foreign"}, headers=other_headers)

    response = await client.post("/api/transactions", json={
        "customerId": customer["id"], "type": "debt", "amount": 10
    }, headers=headers)
    transaction_id = response.json()["transaction"]["id"]

    response = await client.patch("/api/transactions", json={
        "transactionId": transaction_id,
        "customerId": foreign.json()["customer"]["id"]
    }, headers=headers)
    assert response.status_code == 404

    response = await client.get(f"/api/transactions/{transaction_id}", headers=headers)
    assert response.json()["transaction"]["customer_id"] == customer["id"]


@pytest.mark.asyncio
async def test_delete_foreign_or_missing_transaction(client, merchant, customer, other_merchant):
    headers, _ = merchant
    other_headers, _ = other_merchant
    response = await client.post("/api/transactions", json={
        "customerId": customer["id"], "type": "debt", "amount": 10
    }, headers=headers)
    transaction_id = response.json()["transaction"]["id"]

    response = await client.request("DELETE", "/api/transactions", json={"transactionId": transaction_id}, headers=other_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Transaction not found or access denied."

    response = await client.request("DELETE", "/api/transactions", json={"transactionId": 99999}, headers=headers)
    assert response.status_code == 404

    response = await client.get(f"/api/transactions/{transaction_id}", headers=headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_list_filters_and_paginates(client, merchant, customer):
    headers, _ = merchant
    second = (await client.post("/api/customers", json={"name": "Second"}, headers=headers)).json()["customer"]

    for day, customer_id in [(1, customer["id"]), (2, second["id"]), (3, customer["id"])]:
        await client.post("/api/transactions", json={
            "customerId": customer_id,
            "type": "debt",
            "amount": day,
            "date": f"2024-01-0{day}T12:00:00Z"
        }, headers=headers)

    response = await client.get("/api/transactions", headers=headers)
    assert [t["amount"] for t in response.json()["transactions"]] == [3, 2, 1]

    response = await client.get("/api/transactions", params={"customerId": customer["id"]}, headers=headers)
    assert [t["amount"] for t in response.json()["transactions"]] == [3, 1]

    response = await client.get("/api/transactions", params={"limit": 1, "offset": 1}, headers=headers)
    assert [t["amount"] for t in response.json()["transactions"]] == [2]
