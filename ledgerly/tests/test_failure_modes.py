"""
Failure Injection Tests.

Validates behaviour when Redis or the database misbehave.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

import ledgerly.app.core.redis_client as redis_client_module
from ledgerly.app.main import app
from ledgerly.app.core.token_revocation import revoke_token, is_token_revoked
from ledgerly.app.models.transaction import Transaction
from ledgerly.app.schemas.customer import CustomerCreate
from ledgerly.app.schemas.transaction import TransactionCreate
from ledgerly.app.services.customers import CustomerService
from ledgerly.app.services.dashboard import DashboardService
from ledgerly.app.services.transactions import TransactionService


def broken_redis():
    client = MagicMock()
    client.exists = AsyncMock(side_effect=ConnectionError("redis down"))
    client.setex = AsyncMock(side_effect=ConnectionError("redis down"))
    client.ping = AsyncMock(side_effect=ConnectionError("redis down"))
    return client


@pytest.mark.asyncio
async def test_revocation_fails_open_when_redis_is_down(mocker):
    mocker.patch.object(redis_client_module, "redis_client", broken_redis())

    assert await revoke_token("some-token", 1) is False
    assert await is_token_revoked("some-token") is False


@pytest.mark.asyncio
async def test_requests_still_served_without_redis(client, merchant, mocker):
    headers, _ = merchant
    mocker.patch.object(redis_client_module, "redis_client", broken_redis())

    response = await client.get("/api/customers", headers=headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_health_degraded_without_redis(client, mocker):
    from ledgerly.app.core.redis_client import get_redis

    broken = broken_redis()
    mocker.patch.dict(app.dependency_overrides, {get_redis: lambda: broken})

    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "degraded"


@pytest.mark.asyncio
async def test_hard_delete_rolls_back_on_error(db_session, merchant, mocker):
    _, user_id = merchant
    customer = await CustomerService.create_customer(db_session, user_id, CustomerCreate(name="Atomic"))
    await TransactionService.create_transaction(
        db_session, user_id, TransactionCreate(customerId=customer["id"], type="debt", amount=10)
    )

    mocker.patch.object(AsyncSession, "delete", side_effect=RuntimeError("disk full"))
    with pytest.raises(RuntimeError):
        await CustomerService.delete_customer(db_session, user_id, customer["id"])
    mocker.stopall()

    count = (await db_session.execute(
        select(func.count(Transaction.id)).where(Transaction.customer_id == customer["id"])
    )).scalar()
    assert count == 1
    still_there = await CustomerService.get_customer(db_session, user_id, customer["id"])
    assert still_there["balance"] == 10


@pytest.mark.asyncio
async def test_unhandled_error_returns_generic_500(merchant, mocker):
    headers, _ = merchant
    mocker.patch.object(DashboardService, "get_stats", AsyncMock(side_effect=RuntimeError("boom")))

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/api/dashboard/stats", headers=headers)

    assert response.status_code == 500
    assert response.json() == {
        "error_code": "ERR_INTERNAL_SERVER",
        "message": "An internal server error occurred",
        "details": {}
    }
