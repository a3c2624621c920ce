import asyncio
import hashlib
import hmac
import json

import pytest

from dabil.services import wallet_service

from tests.factories import UserFactory


@pytest.fixture
def member(db_session):
    user = UserFactory(loyalty_account__points_balance=1000)
    db_session.commit()
    return user


def _sign(body: bytes, secret: str = "sk_test_dabil") -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha512).hexdigest()


def test_fund_then_verify(client, member, auth_headers):
    headers = auth_headers(member)

    started = client.post("/api/v1/wallet/fund", json={"amount": 1500}, headers=headers)
    assert started.status_code == 200
    reference = started.json()["data"]["reference"]
    assert started.json()["data"]["authorization_url"]

    assert client.get("/api/v1/wallet/balance", headers=headers).json()["data"]["balance"] == 0.0

    verified = client.get(f"/api/v1/wallet/verify/{reference}", headers=headers)
    assert verified.status_code == 200
    assert verified.json()["data"]["new_balance"] == 1500.0
    assert verified.json()["data"]["already_processed"] is False

    repeat = client.get(f"/api/v1/wallet/verify/{reference}", headers=headers).json()
    assert repeat["data"]["already_processed"] is True
    assert repeat["message"] == "Payment already processed"

    balance = client.get("/api/v1/wallet/balance", headers=headers).json()["data"]
    assert balance["balance"] == 1500.0
    assert balance["total_funded"] == 1500.0


def test_fund_below_minimum(client, member, auth_headers):
    response = client.post("/api/v1/wallet/fund", json={"amount": 50}, headers=auth_headers(member))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_gateway_outage_surfaces_as_502(client, gateway, member, auth_headers):
    gateway.fail_initialize = True
    response = client.post("/api/v1/wallet/fund", json={"amount": 1000}, headers=auth_headers(member))
    assert response.status_code == 502
    assert response.json()["error"]["code"] == "GATEWAY_ERROR"


def test_transactions_are_listed_newest_first(client, member, auth_headers):
    headers = auth_headers(member)
    reference = client.post("/api/v1/wallet/fund", json={"amount": 1000}, headers=headers).json()["data"]["reference"]
    client.get(f"/api/v1/wallet/verify/{reference}", headers=headers)
    client.post("/api/v1/wallet/redeem", json={"points": 400}, headers=headers)

    data = client.get("/api/v1/wallet/transactions", params={"limit": 10}, headers=headers).json()["data"]

    types = [t["type"] for t in data["transactions"]]
    assert sorted(types) == ["bonus", "credit"]
    assert data["pagination"]["totalItems"] == 2
    assert data["pagination"]["hasNext"] is False


def test_redeem_points(client, member, auth_headers):
    response = client.post("/api/v1/wallet/redeem", json={"points": 400}, headers=auth_headers(member))

    assert response.status_code == 200
    data = response.json()["data"]
    assert data == {
        "points_redeemed": 400,
        "wallet_credited": 100.0,
        "new_wallet_balance": 100.0,
        "points_balance": 600,
    }


def test_redeem_rejects_partial_units(client, member, auth_headers):
    response = client.post("/api/v1/wallet/redeem", json={"points": 401}, headers=auth_headers(member))
    assert response.status_code == 400


def test_webhook_rejects_bad_signature(client):
    body = json.dumps({"event": "charge.success", "data": {"reference": "x"}}).encode()
    response = client.post("/api/v1/wallet/webhook", content=body, headers={"x-paystack-signature": "forged"})
    assert response.status_code == 401


def test_webhook_credits_wallet_once(client, member, auth_headers):
    headers = auth_headers(member)
    reference = client.post("/api/v1/wallet/fund", json={"amount": 2000}, headers=headers).json()["data"]["reference"]
    body = json.dumps({"event": "charge.success", "data": {"reference": reference}}).encode()

    first = client.post("/api/v1/wallet/webhook", content=body, headers={"x-paystack-signature": _sign(body)})
    second = client.post("/api/v1/wallet/webhook", content=body, headers={"x-paystack-signature": _sign(body)})

    assert first.status_code == 200
    assert first.json()["data"]["already_processed"] is False
    assert second.json()["data"]["already_processed"] is True
    assert client.get("/api/v1/wallet/balance", headers=headers).json()["data"]["balance"] == 2000.0


def test_webhook_ignores_other_events(client):
    body = json.dumps({"event": "transfer.success", "data": {}}).encode()
    response = client.post("/api/v1/wallet/webhook", content=body, headers={"x-paystack-signature": _sign(body)})
    assert response.status_code == 200
    assert response.json()["message"] == "Event ignored"


def test_verify_someone_elses_reference(client, db_session, member, auth_headers):
    reference = client.post("/api/v1/wallet/fund", json={"amount": 1000}, headers=auth_headers(member)).json()["data"]["reference"]
    stranger = UserFactory()
    db_session.commit()

    response = client.get(f"/api/v1/wallet/verify/{reference}", headers=auth_headers(stranger))
    assert response.status_code == 403


def test_webhook_confirms_off_the_event_loop(client, member, auth_headers, monkeypatch):
    seen = []
    confirm = wallet_service.confirm_funding

    def recording_confirm(*args, **kwargs):
        try:
            asyncio.get_running_loop()
            seen.append("event loop")
        except RuntimeError:
            seen.append("worker thread")
        return confirm(*args, **kwargs)

    monkeypatch.setattr(wallet_service, "confirm_funding", recording_confirm)
    reference = client.post("/api/v1/wallet/fund", json={"amount": 1000}, headers=auth_headers(member)).json()["data"]["reference"]
    body = json.dumps({"event": "charge.success", "data": {"reference": reference}}).encode()

    response = client.post("/api/v1/wallet/webhook", content=body, headers={"x-paystack-signature": _sign(body)})

    assert response.status_code == 200
    assert seen == ["worker thread"]


def test_webhook_acknowledges_unknown_reference(client):
    body = json.dumps({"event": "charge.success", "data": {"reference": "not_ours"}}).encode()
    response = client.post("/api/v1/wallet/webhook", content=body, headers={"x-paystack-signature": _sign(body)})

    assert response.status_code == 200
    assert response.json()["message"] == "Event ignored"
    assert response.json()["data"]["reference"] == "not_ours"


def test_webhook_acknowledges_failed_funding(client, gateway, member, auth_headers):
    headers = auth_headers(member)
    reference = client.post("/api/v1/wallet/fund", json={"amount": 1000}, headers=headers).json()["data"]["reference"]
    gateway.transactions[reference]["status"] = "failed"
    assert client.get(f"/api/v1/wallet/verify/{reference}", headers=headers).status_code == 502

    body = json.dumps({"event": "charge.success", "data": {"reference": reference}}).encode()
    response = client.post("/api/v1/wallet/webhook", content=body, headers={"x-paystack-signature": _sign(body)})

    assert response.status_code == 200
    assert response.json()["message"] == "Event ignored"
    assert client.get("/api/v1/wallet/balance", headers=headers).json()["data"]["balance"] == 0.0
