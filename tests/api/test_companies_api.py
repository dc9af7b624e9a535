"""
API tests for company financials endpoints.

Tests cover:
- GET /companies/{symbol}
- Owner header handling and error status mapping
- Health and root endpoints
"""

from tests.conftest import eastern_datetime, run

HEADERS = {"X-User-Id": "u1"}


class TestGetCompany:
    """Tests for GET /companies/{symbol}."""

    def test_returns_financials(self, client, provider):
        """
        GIVEN an empty cache
        WHEN I request a company
        THEN statements are returned and the provider was called once
        """
        response = client.get("/companies/acme", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["symbol"] == "ACME"
        assert data["name"] == "ACME Corp."
        assert data["income_statement"][0]["date"] == "2024-11-01"
        assert provider.calls == ["ACME"]

    def test_second_request_served_from_cache(self, client, provider):
        client.get("/companies/ACME", headers=HEADERS)
        response = client.get("/companies/ACME", headers=HEADERS)

        assert response.status_code == 200
        assert provider.calls == ["ACME"]

    def test_force_refresh(self, client, provider):
        client.get("/companies/ACME", headers=HEADERS)
        client.get("/companies/ACME", headers=HEADERS, params={"force_refresh": True})

        assert provider.calls == ["ACME", "ACME"]

    def test_owner_header_required(self, client, provider):
        response = client.get("/companies/ACME")

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert provider.calls == []

    def test_provider_failure_is_bad_gateway(self, client, provider):
        """
        GIVEN a provider that cannot reach the network
        WHEN I request an uncached company
        THEN the API answers 502 with a data source error
        """
        provider.error = ConnectionError("Network unavailable")

        response = client.get("/companies/ACME", headers=HEADERS)

        assert response.status_code == 502
        assert response.json()["error"] == "DATA_SOURCE_ERROR"


class TestServiceEndpoints:
    """Tests for health and root endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"


def test_cached_entry_carries_earnings_estimate(client, cache_service):
    client.get("/companies/ACME", headers=HEADERS)

    entry = run(cache_service.strategy.get("u1", "ACME"))
    assert entry.metadata.next_earnings_estimate == eastern_datetime(2025, 5, 15, 0, 0)
