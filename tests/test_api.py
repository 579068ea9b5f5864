"""Tests for the worker HTTP API."""

import httpx
import pytest
from fastapi.testclient import TestClient

from token_scanner.api.app import create_app
from token_scanner.core.config import ScannerConfig
from token_scanner.providers.rate_limiter import RateLimiter
from token_scanner.scanner.batch_scanner import BatchScanner

from conftest import UNKNOWN_EVM, WETH, StubResolver

API_KEY = "test-key-123456789"


@pytest.fixture
def config() -> ScannerConfig:
    return ScannerConfig(api_keys=[API_KEY], max_tokens_per_request=5)


@pytest.fixture
def rate_limiter() -> RateLimiter:
    limiter = RateLimiter(limit=290, window_ms=60_000)
    limiter.register("dexscreener")
    return limiter


@pytest.fixture
def client(config, rate_limiter, weth_record) -> TestClient:
    scanner = BatchScanner(
        StubResolver({WETH: weth_record}),
        max_tokens=config.max_tokens_per_request,
    )
    app = create_app(config=config, scanner=scanner, rate_limiter=rate_limiter)
    return TestClient(app)


def auth(key: str = API_KEY) -> dict[str, str]:
    return {"X-API-Key": key}


class TestScanEndpoint:
    """Tests for POST /scan."""

    def test_scan(self, client):
        response = client.post("/scan", json={"tokens": [WETH, UNKNOWN_EVM]}, headers=auth())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"][0] == {
            "address": WETH,
            "symbol": "WETH",
            "marketCapUSD": 9_500_000_000,
            "liquidityUSD": 120_000_000,
            "chain": "ethereum",
            "status": "active",
        }
        assert body["data"][1]["symbol"] == "UNKNOWN"
        assert body["data"][1]["status"] == "unbonded"
        assert body["meta"]["active"] == 1
        assert body["meta"]["unbonded"] == 1
        assert body["meta"]["total"] == 2
        assert "durationMs" in body["meta"]

    def test_bearer_token_accepted(self, client):
        response = client.post(
            "/scan",
            json={"tokens": [WETH]},
            headers={"Authorization": f"Bearer {API_KEY}"},
        )
        assert response.status_code == 200

    def test_missing_key(self, client):
        response = client.post("/scan", json={"tokens": [WETH]})
        assert response.status_code == 401
        assert response.json()["success"] is False
        assert "API key required" in response.json()["error"]

    def test_invalid_key(self, client):
        response = client.post("/scan", json={"tokens": [WETH]}, headers=auth("wrong"))
        assert response.status_code == 403
        assert response.json() == {"success": False, "error": "Invalid API key"}

    def test_auth_can_be_disabled(self, rate_limiter):
        config = ScannerConfig(require_api_key=False)
        app = create_app(
            config=config,
            scanner=BatchScanner(StubResolver()),
            rate_limiter=rate_limiter,
        )
        response = TestClient(app).post("/scan", json={"tokens": ["x"]})
        assert response.status_code == 200

    @pytest.mark.parametrize(
        "body, message",
        [
            ({}, "must be an array"),
            ({"tokens": "0xabc"}, "must be an array"),
            ({"tokens": []}, "cannot be empty"),
            ({"tokens": ["a"] * 6}, "Maximum 5 tokens"),
        ],
    )
    def test_validation_errors(self, client, body, message):
        response = client.post("/scan", json=body, headers=auth())

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert message in response.json()["error"]

    def test_non_json_body(self, client):
        response = client.post(
            "/scan",
            content=b"not json",
            headers={**auth(), "Content-Type": "application/json"},
        )
        assert response.status_code == 400


class TestInfoEndpoints:
    """Tests for /health, /rate-limit and unknown paths."""

    def test_health(self, client, rate_limiter):
        rate_limiter.record_now("dexscreener")

        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["status"] == "healthy"
        assert body["config"] == {
            "concurrencyLimit": 300,
            "requestTimeout": 3000,
            "retryAttempts": 1,
            "maxTokensPerRequest": 5,
        }
        assert body["rateLimits"]["dexscreener"] == {
            "current": 1,
            "limit": 290,
            "remaining": 289,
            "windowMs": 60_000,
        }
        assert "timestamp" in body

    def test_rate_limit(self, client):
        response = client.get("/rate-limit")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert "dexscreener" in response.json()["rateLimits"]

    def test_unknown_path(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "Endpoint not found",
            "path": "/nope",
        }

    @pytest.mark.parametrize("method, path", [("GET", "/scan"), ("POST", "/health")])
    def test_wrong_method_is_not_found(self, client, method, path):
        response = client.request(method, path)

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": "Endpoint not found",
            "path": path,
        }


class TestDefaultWiring:
    """Tests for the scanner wired on startup."""

    def test_startup_builds_scanner(self, route_async_clients, dexscreener_weth_response):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=dexscreener_weth_response)

        route_async_clients(handler)
        config = ScannerConfig(api_keys=[API_KEY])

        with TestClient(create_app(config)) as client:
            health = client.get("/health").json()
            assert "dexscreener" in health["rateLimits"]

            response = client.post("/scan", json={"tokens": [WETH]}, headers=auth())

            assert response.status_code == 200
            record = response.json()["data"][0]
            assert record["symbol"] == "WETH"
            assert record["chain"] == "ethereum"
            assert client.get("/rate-limit").json()["rateLimits"]["dexscreener"]["current"] == 1

        assert seen[0].url.host == "api.dexscreener.com"
