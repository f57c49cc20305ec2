"""Tests for the REST API."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api import create_app
from tests.conftest import ALICE, BOB, CAROL, STRANGER, mock_pool

NEWCOMER = "0x" + "d4" * 32


def create_campaign(client, **overrides):
    body = {
        "type": "donation",
        "name": "Community garden",
        "description": "Seeds and tools",
        "createdBy": ALICE,
        "goal": 100,
        "contractId": 1,
    }
    body.update(overrides)
    return client.post("/api/v1/create-campaign", json=body)


def memo_body(**overrides):
    body = {
        "contractId": 1,
        "creator_address": ALICE,
        "user_address": BOB,
        "memo": "Good luck",
        "transaction_hash": "0xhash1",
        "type": "donation",
        "amount": 100_000_000,
    }
    body.update(overrides)
    return body


def test_create_user_and_profile(client):
    response = client.post("/api/v1/create-user", json={"address": NEWCOMER})
    assert response.status_code == 201
    assert response.json()["address"] == NEWCOMER

    duplicate = client.post("/api/v1/create-user", json={"address": NEWCOMER})
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "user already exists"

    profile = client.post("/api/v1/profile", json={"address": NEWCOMER})
    assert profile.status_code == 200


@pytest.mark.parametrize("address", ["0x1234", "0x" + "d4" * 31 + "d|"])
def test_malformed_address_rejected(client, address):
    response = client.post("/api/v1/create-user", json={"address": address})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert response.json()["details"]


def test_update_profile(client):
    response = client.put("/api/v1/update-profile", json={"address": ALICE, "nickname": "alice"})
    assert response.status_code == 200
    assert response.json()["nickname"] == "alice"

    missing = client.put("/api/v1/update-profile", json={"address": STRANGER, "bio": "hi"})
    assert missing.status_code == 404


def test_campaign_lifecycle(client):
    created = create_campaign(client)
    assert created.status_code == 201
    campaign_id = created.json()["id"]

    memo = client.post("/api/v1/create-memo", json=memo_body())
    assert memo.status_code == 201

    duplicate = client.post("/api/v1/create-memo", json=memo_body())
    assert duplicate.status_code == 409

    campaign = client.get(f"/api/v1/campaign/{campaign_id}", params={"viewer": ALICE}).json()
    assert campaign["total_raised"] == 1.0
    assert campaign["goal"] == 100
    assert campaign["supporter_count"] == 1
    assert campaign["is_owner"] is True

    memos = client.get(f"/api/v1/campaign/{campaign_id}/memos").json()
    assert memos["total_items"] == 1
    assert memos["items"][0]["memo"] == "Good luck"


def test_total_raised_is_a_json_number(client):
    campaign_id = create_campaign(client).json()["id"]
    client.post("/api/v1/create-memo", json=memo_body())
    client.post("/api/v1/create-memo", json=memo_body(transaction_hash="0xhash2", amount=50_000_000))

    campaign = client.get(f"/api/v1/campaign/{campaign_id}").json()

    assert campaign["total_raised"] == 1.5
    assert isinstance(campaign["total_raised"], float)
    assert campaign["price"] is None


def test_memo_for_unknown_campaign(client):
    response = client.post("/api/v1/create-memo", json=memo_body(contractId=7))

    assert response.status_code == 404
    assert response.json()["message"] == "campaign not found"


def test_memo_with_invalid_type(client):
    response = client.post("/api/v1/create-memo", json=memo_body(type="refund"))
    assert response.status_code == 400


def test_list_campaigns(client):
    create_campaign(client, name="first")
    create_campaign(client, name="second", createdBy=BOB, type="product", price=3, contractId=None)

    everything = client.get("/api/v1/campaigns", params={"page": 1, "limit": 10}).json()
    products = client.get("/api/v1/campaigns", params={"type": "product"}).json()
    mine = client.get("/api/v1/user/campaigns", params={"address": ALICE}).json()

    assert [c["name"] for c in everything["items"]] == ["second", "first"]
    assert [c["name"] for c in products["items"]] == ["second"]
    assert [c["name"] for c in mine["items"]] == ["first"]


def test_list_campaigns_bad_limit(client):
    response = client.get("/api/v1/campaigns", params={"limit": 500})
    assert response.status_code == 400


def test_campaign_contract_lookup(client):
    create_campaign(client, contractId=None)

    response = client.get("/api/v1/campaign-contract", params={"contractId": 1, "creatorAddress": ALICE})

    assert response.status_code == 200
    assert response.json()["contract_id"] == 1


def test_assign_contract_requires_owner(client):
    campaign_id = create_campaign(client, contractId=None).json()["id"]

    forbidden = client.put(
        f"/api/v1/campaign/{campaign_id}/contract",
        json={"contractId": 1, "creatorAddress": BOB}
    )
    assigned = client.put(
        f"/api/v1/campaign/{campaign_id}/contract",
        json={"contractId": 1, "creatorAddress": ALICE}
    )

    assert forbidden.status_code == 403
    assert assigned.status_code == 200
    assert assigned.json()["contract_id"] == 1


def test_messages_endpoints(client):
    sent = client.post("/api/v1/messages", json={
        "sender_address": ALICE, "receiver_address": BOB, "message": "hello"
    })
    assert sent.status_code == 201

    client.post("/api/v1/messages", json={
        "sender_address": BOB, "receiver_address": ALICE, "message": "hi"
    })

    inbox = client.get("/api/v1/messages/user", params={"address": ALICE}).json()
    assert [m["message"] for m in inbox["items"]] == ["hi", "hello"]

    thread = client.get(f"/api/v1/messages/conversation/{BOB}/{ALICE}").json()
    assert [m["message"] for m in thread["items"]] == ["hello", "hi"]
    assert thread["total_pages"] == 1

    empty = client.get(f"/api/v1/messages/conversation/{ALICE}/{CAROL}").json()
    assert empty["total_items"] == 0


def test_message_validation(client):
    too_long = client.post("/api/v1/messages", json={
        "sender_address": ALICE, "receiver_address": BOB, "message": "x" * 1001
    })
    to_self = client.post("/api/v1/messages", json={
        "sender_address": ALICE, "receiver_address": ALICE, "message": "hi"
    })
    bad_page = client.get("/api/v1/messages/user", params={"address": ALICE, "page": 0})

    assert too_long.status_code == 400
    assert to_self.status_code == 400
    assert bad_page.status_code == 400


def test_improve_campaign_not_configured(client):
    response = client.post("/api/v1/improve-campaign", json={
        "field": "name", "context": "garden", "currentValue": "Garden"
    })

    assert response.status_code == 500
    assert response.json()["message"] == "Internal server error"


def test_internal_error_details_hidden(services):
    services.messages.conversations.list_for_participant = AsyncMock(
        side_effect=RuntimeError("password=secret")
    )
    client = TestClient(create_app(services=services))

    response = client.get("/api/v1/messages/user", params={"address": ALICE})

    assert response.status_code == 500
    assert "secret" not in response.text


def test_health(services):
    services.pool, conn = mock_pool()
    conn.fetchval.return_value = 1

    response = TestClient(create_app(services=services)).get("/api/v1/system/health")

    assert response.status_code == 200
    assert response.json()["database_status"] == "connected"


def test_health_without_database(client):
    response = client.get("/api/v1/system/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
