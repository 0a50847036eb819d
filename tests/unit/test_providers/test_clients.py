"""Unit tests for provider API clients using a mocked transport."""

import json
from urllib.parse import parse_qs
from datetime import date, datetime, timezone
from decimal import Decimal

import httpx
import pytest

from lifedash.config import settings
from lifedash.core.exceptions import UpstreamUnavailableError, ValidationError
from lifedash.models.provider_connection import ProviderConnection
from lifedash.providers import build_client
from lifedash.providers.capitalone import CapitalOneClient
from lifedash.providers.dexcom import DexcomClient
from lifedash.providers.google_fit import GoogleFitClient
from lifedash.providers.oauth import refresh_access_token
from lifedash.providers.quickbooks import QuickBooksClient


def _http(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestProviderClient:
    async def test_sends_bearer_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"accounts": []})

        async with _http(handler) as http:
            client = CapitalOneClient(http, "tok-123", "https://api.example.com/")
            assert await client.fetch_accounts() == []

        assert seen["auth"] == "Bearer tok-123"
        assert seen["url"] == "https://api.example.com/accounts"

    async def test_error_status_raises_upstream_unavailable(self):
        async with _http(lambda request: httpx.Response(503)) as http:
            client = DexcomClient(http, "tok", "https://dexcom.example.com")
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await client.fetch_egvs(datetime.now(timezone.utc), datetime.now(timezone.utc))

        assert exc_info.value.error_code == "SYNC_002"
        assert exc_info.value.http_status == 502
        assert exc_info.value.details["status_code"] == 503

    async def test_transport_error_raises_upstream_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _http(handler) as http:
            client = GoogleFitClient(http, "tok", "https://fit.example.com")
            with pytest.raises(UpstreamUnavailableError):
                await client.fetch_step_count(date(2024, 3, 5))

    async def test_non_object_payload_raises_upstream_unavailable(self):
        async with _http(lambda request: httpx.Response(200, json=["unexpected"])) as http:
            client = CapitalOneClient(http, "tok", "https://api.example.com")
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await client.fetch_accounts()
        assert exc_info.value.error_code == "SYNC_002"

    async def test_invalid_json_raises_upstream_unavailable(self):
        async with _http(lambda request: httpx.Response(200, text="<html>")) as http:
            client = CapitalOneClient(http, "tok", "https://api.example.com")
            with pytest.raises(UpstreamUnavailableError):
                await client.fetch_accounts()


class TestCapitalOneClient:
    async def test_fetch_transactions_requests_page_limit(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["limit"] = request.url.params["limit"]
            return httpx.Response(200, json={"transactions": [{"transactionId": "t1"}]})

        async with _http(handler) as http:
            client = CapitalOneClient(http, "tok", "https://api.example.com")
            transactions = await client.fetch_transactions("acc-1")

        assert transactions == [{"transactionId": "t1"}]
        assert seen == {"path": "/accounts/acc-1/transactions", "limit": "100"}


class TestQuickBooksClient:
    async def test_query_uses_realm_and_since_date(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["query"] = request.url.params["query"]
            return httpx.Response(200, json={"QueryResponse": {"Invoice": [{"Id": "9"}]}})

        async with _http(handler) as http:
            client = QuickBooksClient(http, "tok", "https://qb.example.com", realm_id="4620")
            invoices = await client.fetch_invoices(date(2024, 1, 1))

        assert invoices == [{"Id": "9"}]
        assert seen["path"] == "/v3/company/4620/query"
        assert "FROM Invoice WHERE TxnDate >= '2024-01-01'" in seen["query"]

    async def test_empty_query_response(self):
        async with _http(lambda request: httpx.Response(200, json={"QueryResponse": {}})) as http:
            client = QuickBooksClient(http, "tok", "https://qb.example.com", realm_id="1")
            assert await client.fetch_purchases(date(2024, 1, 1)) == []


class TestGoogleFitClient:
    async def test_aggregates_one_utc_day(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"bucket": [{"dataset": [{"point": [{"value": [{"intVal": 4200}]}]}]}]},
            )

        async with _http(handler) as http:
            client = GoogleFitClient(http, "tok", "https://fit.example.com")
            steps = await client.fetch_step_count(date(2024, 3, 5))

        assert steps == 4200
        assert seen["method"] == "POST"
        body = seen["body"]
        assert body["endTimeMillis"] - body["startTimeMillis"] == 86_400_000
        assert body["startTimeMillis"] == int(
            datetime(2024, 3, 5, tzinfo=timezone.utc).timestamp() * 1000
        )


class TestBuildClient:
    def _connection(self, provider: str, realm_id: str | None = None) -> ProviderConnection:
        return ProviderConnection(provider=provider, access_token="tok", realm_id=realm_id)

    async def test_builds_each_provider(self):
        async with _http(lambda request: httpx.Response(200, json={})) as http:
            assert isinstance(build_client(http, self._connection("capitalone")), CapitalOneClient)
            assert isinstance(build_client(http, self._connection("dexcom")), DexcomClient)
            assert isinstance(build_client(http, self._connection("google_fit")), GoogleFitClient)
            client = build_client(http, self._connection("quickbooks", realm_id="77"))
            assert isinstance(client, QuickBooksClient)
            assert client.realm_id == "77"

    async def test_quickbooks_requires_realm(self):
        async with _http(lambda request: httpx.Response(200, json={})) as http:
            with pytest.raises(ValidationError) as exc_info:
                build_client(http, self._connection("quickbooks"))
        assert exc_info.value.error_code == "SYNC_001"

    async def test_unknown_provider(self):
        async with _http(lambda request: httpx.Response(200, json={})) as http:
            with pytest.raises(ValidationError) as exc_info:
                build_client(http, self._connection("myspace"))
        assert exc_info.value.error_code == "VAL_004"


class TestRefreshAccessToken:
    @pytest.fixture
    def google_client(self, monkeypatch):
        monkeypatch.setattr(settings, "google_fit_client_id", "fit-client")
        monkeypatch.setattr(settings, "google_fit_client_secret", "fit-secret")

    async def test_google_sends_credentials_in_form(self, google_client):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(200, json={"access_token": "new-token", "expires_in": 3599})

        async with _http(handler) as http:
            tokens = await refresh_access_token(http, "google_fit", "refresh-1")

        assert seen["url"] == "https://oauth2.googleapis.com/token"
        assert seen["auth"] is None
        assert seen["form"] == {
            "grant_type": ["refresh_token"],
            "refresh_token": ["refresh-1"],
            "client_id": ["fit-client"],
            "client_secret": ["fit-secret"],
        }
        assert tokens.access_token == "new-token"
        assert tokens.refresh_token == "refresh-1"
        assert tokens.expires_in == 3599

    async def test_unconfigured_client_cannot_refresh(self, monkeypatch):
        monkeypatch.setattr(settings, "capitalone_client_id", None)
        calls = []

        async with _http(lambda request: calls.append(request) or httpx.Response(200, json={})) as http:
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await refresh_access_token(http, "capitalone", "refresh-1")

        assert exc_info.value.error_code == "SYNC_003"
        assert exc_info.value.http_status == 400
        assert calls == []

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(401, json={"error": "invalid_grant"}),
            httpx.Response(200, text="<html>"),
            httpx.Response(200, json={"token_type": "Bearer"}),
        ],
    )
    async def test_failed_grant_asks_to_reconnect(self, google_client, response):
        async with _http(lambda request: response) as http:
            with pytest.raises(UpstreamUnavailableError) as exc_info:
                await refresh_access_token(http, "google_fit", "refresh-1")

        assert exc_info.value.error_code == "SYNC_003"
