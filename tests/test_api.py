"""Tests for the HTTP surface."""

import time

import pytest
from fastapi.testclient import TestClient

from api.config import ServiceConfig
from api.server import create_app
from conftest import FakeRedis, FakeSource
from ingestion.events import IncomingTransaction

SECRET = "s3cret"


@pytest.fixture
def redis_client():
    return FakeRedis()


@pytest.fixture
def source():
    now = int(time.time())
    return FakeSource([IncomingTransaction(value_nano=5_000_000_000, utime=now - 60, tx_hash="t1")])


@pytest.fixture
def client(redis_client, source, tmp_path):
    config = ServiceConfig(
        owner_wallet="UQowner",
        admin_secret=SECRET,
        static_dir=str(tmp_path / "missing"),
    )
    app = create_app(config, redis_client=redis_client, transaction_source=source)
    with TestClient(app) as c:
        yield c


class TestCheckDeposit:

    def test_match_credits(self, client, redis_client):
        response = client.post("/api/checkDeposit", json={"uid": "u1", "amount": 5})

        assert response.status_code == 200
        assert response.json() == {"ok": True, "credited": 4.5}
        assert redis_client.hashes["users:u1"]["balances:ton"] == "4.500000"
        assert "firstDepositAt" in redis_client.hashes["users:u1"]

    def test_no_match(self, client):
        response = client.post("/api/checkDeposit", json={"uid": "u1", "amount": 7})

        assert response.json() == {"ok": False}

    def test_upstream_down(self, client, source):
        source.transactions = None

        response = client.post("/api/checkDeposit", json={"uid": "u1", "amount": 5})

        assert response.status_code == 200
        assert response.json() == {"ok": False}

    @pytest.mark.parametrize("body", [{}, {"uid": "u1"}, {"amount": 5}, {"uid": "", "amount": 5}])
    def test_bad_params(self, client, body):
        response = client.post("/api/checkDeposit", json=body)

        assert response.status_code == 200
        assert response.json() == {"ok": False, "error": "bad params"}

    def test_malformed_body(self, client):
        response = client.post(
            "/api/checkDeposit",
            content="not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json() == {"ok": False, "error": "bad params"}


class TestWithdrawals:

    def test_request_then_process(self, client, redis_client):
        response = client.post(
            "/api/requestWithdrawal",
            json={"uid": "u1", "address": "UQdest", "amount": "1.5"},
        )
        assert response.json() == {"ok": True}

        response = client.post("/api/admin/processPayout", json={"secret": SECRET})
        assert response.status_code == 200
        assert response.json() == {"ok": True, "processed": 1}

        (request_hash,) = [h for k, h in redis_client.hashes.items() if k.startswith("withdrawQueue:")]
        assert request_hash["status"] == "done"
        assert request_hash["amount"] == "1.5"
        assert "processedAt" in request_hash

    def test_missing_address(self, client, redis_client):
        response = client.post("/api/requestWithdrawal", json={"uid": "u1", "amount": 1})

        assert response.json() == {"ok": False, "error": "bad params"}
        assert redis_client.writes == 0

    def test_wrong_secret_forbidden(self, client, redis_client):
        client.post("/api/requestWithdrawal", json={"uid": "u1", "address": "UQdest", "amount": 1})

        response = client.post("/api/admin/processPayout", json={"secret": "guess"})

        assert response.status_code == 403
        assert response.json() == {"ok": False}
        assert redis_client.zsets["withdrawQueue:queued"]

    def test_missing_secret_forbidden(self, client):
        response = client.post("/api/admin/processPayout", json={})

        assert response.status_code == 403

    def test_empty_queue(self, client):
        response = client.post("/api/admin/processPayout", json={"secret": SECRET})

        assert response.json() == {"ok": True, "processed": 0}


class TestStatus:

    def test_status_reports_redis(self, client):
        response = client.get("/api/status")

        body = response.json()
        assert body["ok"] is True
        assert body["services"]["redis"]["status"] == "connected"


class TestStaticFiles:

    def test_serves_index(self, redis_client, source, tmp_path):
        (tmp_path / "index.html").write_text("<h1>bridge</h1>")
        config = ServiceConfig(owner_wallet="UQowner", admin_secret=SECRET, static_dir=str(tmp_path))
        app = create_app(config, redis_client=redis_client, transaction_source=source)

        with TestClient(app) as c:
            assert "bridge" in c.get("/").text
            assert c.post("/api/admin/processPayout", json={"secret": SECRET}).status_code == 200
