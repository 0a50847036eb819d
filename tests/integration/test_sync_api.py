"""Integration tests for provider connections and pull-sync."""
import base64
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from urllib.parse import parse_qs

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.config import settings
from lifedash.core.months import current_month, today
from lifedash.models.user import User
from lifedash.repositories.budget_category import BudgetCategoryRepository
from lifedash.repositories.health_data import HealthDataRepository
from lifedash.repositories.provider_connection import ProviderConnectionRepository
from lifedash.repositories.transaction import TransactionRepository
from lifedash.services.connections import as_utc


def _json(payload: dict, status_code: int = 200):
    return lambda request: httpx.Response(status_code, json=payload)


async def _connect(client: AsyncClient, headers: dict, provider: str, **extra) -> None:
    response = await client.put(
        f"/api/v1/connections/{provider}",
        json={"access_token": f"{provider}-token", **extra},
        headers=headers,
    )
    assert response.status_code == 200


@pytest.fixture
def capitalone_routes(provider_routes: dict) -> dict:
    day = today().isoformat()
    provider_routes[("GET", "/accounts")] = _json(
        {"accounts": [{"accountId": "acc-1", "nickname": "Everyday Card"}]}
    )
    provider_routes[("GET", "/accounts/acc-1/transactions")] = _json(
        {
            "transactions": [
                {"transactionId": "c1", "amount": -45.5, "transactionDate": day, "description": "Corner Restaurant"},
                {"transactionId": "c2", "amount": -15.99, "transactionDate": day, "description": "NETFLIX.COM"},
                {"transactionId": "c3", "amount": 2000, "transactionDate": day, "description": "Payroll"},
            ]
        }
    )
    return provider_routes


class TestConnections:
    async def test_list_defaults_to_disconnected(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/v1/connections", headers=auth_headers)

        assert response.status_code == 200
        statuses = {c["provider"]: c for c in response.json()}
        assert set(statuses) == {"google_fit", "dexcom", "capitalone", "quickbooks"}
        assert not any(c["connected"] for c in statuses.values())

    async def test_save_tokens(self, client: AsyncClient, auth_headers: dict):
        response = await client.put(
            "/api/v1/connections/dexcom",
            json={"access_token": "secret-access", "refresh_token": "secret-refresh", "expires_in": 3600},
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["connected"] is True
        assert body["expires_at"] is not None
        assert "secret" not in response.text

        listed = (await client.get("/api/v1/connections", headers=auth_headers)).text
        assert "secret" not in listed

    async def test_unsupported_provider(self, client: AsyncClient, auth_headers: dict):
        response = await client.put(
            "/api/v1/connections/myspace", json={"access_token": "tok"}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VAL_004"


class TestProviderSync:
    async def test_not_connected(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/v1/sync/dexcom", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "SYNC_001"

    async def test_unsupported_provider(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/v1/sync/myspace", headers=auth_headers)
        assert response.json()["error_code"] == "VAL_004"

    async def test_expired_token(
        self, client: AsyncClient, auth_headers: dict, db_session: AsyncSession, test_user: User
    ):
        await ProviderConnectionRepository(db_session).save_tokens(
            test_user.id,
            "google_fit",
            access_token="tok",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        await db_session.commit()

        response = await client.post("/api/v1/sync/google_fit", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "SYNC_003"

    async def test_expired_token_is_refreshed(
        self, client: AsyncClient, auth_headers: dict, provider_routes: dict, db_session: AsyncSession,
        test_user: User, monkeypatch
    ):
        monkeypatch.setattr(settings, "dexcom_client_id", "dexcom-client")
        monkeypatch.setattr(settings, "dexcom_client_secret", "dexcom-secret")
        user_id = test_user.id
        await ProviderConnectionRepository(db_session).save_tokens(
            user_id,
            "dexcom",
            access_token="stale",
            refresh_token="refresh-1",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
        )
        await db_session.commit()

        grants = []

        def token(request: httpx.Request) -> httpx.Response:
            grants.append((request.headers["Authorization"], parse_qs(request.content.decode())))
            return httpx.Response(200, json={"access_token": "fresh", "refresh_token": "refresh-2", "expires_in": 7200})

        def egvs(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer fresh"
            return httpx.Response(200, json={"egvs": []})

        provider_routes[("POST", "/v2/oauth2/token")] = token
        provider_routes[("GET", "/v2/users/self/egvs")] = egvs

        response = await client.post("/api/v1/sync/dexcom", headers=auth_headers)

        assert response.status_code == 200
        basic, form = grants[0]
        assert basic == "Basic " + base64.b64encode(b"dexcom-client:dexcom-secret").decode()
        assert form == {"grant_type": ["refresh_token"], "refresh_token": ["refresh-1"]}

        connection = await ProviderConnectionRepository(db_session).get_for_user(user_id, "dexcom")
        assert connection.access_token == "fresh"
        assert connection.refresh_token == "refresh-2"
        assert as_utc(connection.expires_at) > datetime.now(timezone.utc)
        assert connection.last_synced_at is not None

    async def test_rejected_refresh_asks_to_reconnect(
        self, client: AsyncClient, auth_headers: dict, provider_routes: dict, db_session: AsyncSession,
        test_user: User, monkeypatch
    ):
        monkeypatch.setattr(settings, "quickbooks_client_id", "qb-client")
        monkeypatch.setattr(settings, "quickbooks_client_secret", "qb-secret")
        user_id = test_user.id
        await ProviderConnectionRepository(db_session).save_tokens(
            user_id,
            "quickbooks",
            access_token="stale",
            refresh_token="revoked",
            expires_at=datetime.now(timezone.utc) - timedelta(minutes=1),
            realm_id="4620",
        )
        await db_session.commit()
        provider_routes[("POST", "/oauth2/v1/tokens/bearer")] = _json({"error": "invalid_grant"}, status_code=400)

        response = await client.post("/api/v1/sync/quickbooks", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "SYNC_003"
        connection = await ProviderConnectionRepository(db_session).get_for_user(user_id, "quickbooks")
        assert connection.access_token == "stale"

    async def test_capitalone_debits_enter_pipeline(
        self, client: AsyncClient, auth_headers: dict, capitalone_routes, db_session: AsyncSession, test_user: User
    ):
        await _connect(client, auth_headers, "capitalone")

        response = await client.post("/api/v1/sync/capitalone", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["transactions_synced"] == 2

        stored = await TransactionRepository(db_session).get_by_natural_key("capitalone", "c1")
        assert stored.amount == Decimal("45.50")
        assert stored.account_name == "Everyday Card"
        assert stored.category == "Food & Groceries"

        budget = BudgetCategoryRepository(db_session)
        food = await budget.get_by_key(test_user.id, "Food & Groceries", current_month())
        assert food.spent_amount == Decimal("45.50")

        connections = {c["provider"]: c for c in (await client.get("/api/v1/connections", headers=auth_headers)).json()}
        assert connections["capitalone"]["last_synced_at"] is not None

    async def test_resync_does_not_double_count(
        self, client: AsyncClient, auth_headers: dict, capitalone_routes, db_session: AsyncSession, test_user: User
    ):
        await _connect(client, auth_headers, "capitalone")

        await client.post("/api/v1/sync/capitalone", headers=auth_headers)
        await client.post("/api/v1/sync/capitalone", headers=auth_headers)

        budget = BudgetCategoryRepository(db_session)
        entertainment = await budget.get_by_key(test_user.id, "Entertainment", current_month())
        assert entertainment.spent_amount == Decimal("15.99")
        assert await TransactionRepository(db_session).count_for_user(test_user.id) == 2

    async def test_quickbooks_expenses_and_income(
        self, client: AsyncClient, auth_headers: dict, provider_routes: dict, db_session: AsyncSession, test_user: User
    ):
        day = today().isoformat()

        def query(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v3/company/4620/query"
            if "FROM Purchase" in request.url.params["query"]:
                return httpx.Response(
                    200,
                    json={"QueryResponse": {"Purchase": [{
                        "Id": "31",
                        "TxnDate": day,
                        "EntityRef": {"name": "Staples"},
                        "Line": [{
                            "Id": "1",
                            "Amount": 80,
                            "DetailType": "AccountBasedExpenseLineDetail",
                            "AccountBasedExpenseLineDetail": {"AccountRef": {"name": "Office Supplies"}},
                        }],
                    }]}},
                )
            return httpx.Response(
                200, json={"QueryResponse": {"Invoice": [{"TxnDate": day, "TotalAmt": 2500}]}}
            )

        provider_routes[("GET", "/v3/company/4620/query")] = query
        await _connect(client, auth_headers, "quickbooks", realm_id="4620")

        response = await client.post("/api/v1/sync/quickbooks", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["transactions_synced"] == 1

        stored = await TransactionRepository(db_session).get_by_natural_key("quickbooks", "qb_31_1")
        assert stored.category == "Office & Supplies"
        assert stored.merchant == "Staples"

        budget = BudgetCategoryRepository(db_session)
        income = await budget.get_by_key(test_user.id, "Business Income", current_month())
        assert income.target_amount == Decimal("2500")
        assert income.spent_amount == Decimal("0")

    async def test_quickbooks_requires_realm(self, client: AsyncClient, auth_headers: dict):
        await _connect(client, auth_headers, "quickbooks")

        response = await client.post("/api/v1/sync/quickbooks", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "SYNC_001"

    async def test_dexcom_latest_reading_per_day(
        self, client: AsyncClient, auth_headers: dict, provider_routes: dict, db_session: AsyncSession, test_user: User
    ):
        now = datetime.now(timezone.utc).replace(microsecond=0)
        yesterday = now - timedelta(days=1)
        provider_routes[("GET", "/v2/users/self/egvs")] = _json({"egvs": [
            {"systemTime": yesterday.replace(hour=1).isoformat(), "value": 150},
            {"systemTime": yesterday.replace(hour=23).isoformat(), "value": 99},
            {"systemTime": now.replace(hour=0, minute=0, second=1).isoformat(), "value": 112},
        ]})
        await _connect(client, auth_headers, "dexcom")

        response = await client.post("/api/v1/sync/dexcom", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["days_updated"] == 2

        repo = HealthDataRepository(db_session)
        assert (await repo.get_for_day(test_user.id, yesterday.date())).glucose == Decimal("99")
        assert (await repo.get_for_day(test_user.id, now.date())).glucose == Decimal("112")

    async def test_google_fit_steps(
        self, client: AsyncClient, auth_headers: dict, provider_routes: dict
    ):
        provider_routes[("POST", "/fitness/v1/users/me/dataset:aggregate")] = _json(
            {"bucket": [{"dataset": [{"point": [{"value": [{"intVal": 6543}]}]}]}]}
        )
        await _connect(client, auth_headers, "google_fit")

        response = await client.post("/api/v1/sync/google_fit", headers=auth_headers)

        assert response.status_code == 200
        today_data = (await client.get("/api/v1/health-data/today", headers=auth_headers)).json()
        assert today_data["steps"] == 6543

    async def test_upstream_failure(
        self, client: AsyncClient, auth_headers: dict, provider_routes: dict, db_session: AsyncSession, test_user: User
    ):
        provider_routes[("GET", "/accounts")] = _json({"error": "down"}, status_code=503)
        await _connect(client, auth_headers, "capitalone")

        response = await client.post("/api/v1/sync/capitalone", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["error_code"] == "SYNC_002"
        assert response.json()["retry_allowed"] is True
        connection = await ProviderConnectionRepository(db_session).get_for_user(test_user.id, "capitalone")
        assert connection.last_synced_at is None


class TestSyncAll:
    async def test_collects_outcomes(
        self, client: AsyncClient, auth_headers: dict, provider_routes: dict
    ):
        provider_routes[("POST", "/fitness/v1/users/me/dataset:aggregate")] = _json({"bucket": []})
        await _connect(client, auth_headers, "google_fit")

        response = await client.post("/api/v1/sync", json={}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["summary"] == "1/4 services synced successfully"
        assert body["results"]["google_fit"]["success"] is True
        assert body["results"]["dexcom"]["success"] is False
        assert body["results"]["dexcom"]["error"]

    async def test_selected_services_without_connections(self, client: AsyncClient, auth_headers: dict):
        response = await client.post(
            "/api/v1/sync", json={"services": ["dexcom", "quickbooks"]}, headers=auth_headers
        )

        body = response.json()
        assert body["success"] is False
        assert body["summary"] == "0/2 services synced successfully"
        assert set(body["results"]) == {"dexcom", "quickbooks"}

    async def test_no_body(self, client: AsyncClient, auth_headers: dict):
        response = await client.post("/api/v1/sync", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["summary"] == "0/4 services synced successfully"

    async def test_malformed_payloads_are_reported_per_provider(
        self, client: AsyncClient, auth_headers: dict, provider_routes: dict
    ):
        day = today().isoformat()
        provider_routes[("GET", "/accounts")] = _json({"accounts": [{"accountId": "acc-1"}, {"nickname": "no id"}]})
        provider_routes[("GET", "/accounts/acc-1/transactions")] = _json(
            {
                "transactions": [
                    {"transactionId": "c1", "amount": -12, "transactionDate": day, "description": "d" * 600},
                    {"amount": -3, "transactionDate": day},
                    {"transactionId": "c3", "amount": -3, "transactionDate": "not a date"},
                ]
            }
        )
        provider_routes[("POST", "/fitness/v1/users/me/dataset:aggregate")] = (
            lambda request: httpx.Response(200, json=[1, 2, 3])
        )
        await _connect(client, auth_headers, "capitalone")
        await _connect(client, auth_headers, "google_fit")

        response = await client.post("/api/v1/sync", json={"services": ["capitalone", "google_fit"]}, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["summary"] == "1/2 services synced successfully"
        assert body["results"]["capitalone"]["data"]["transactions_synced"] == 1
        assert body["results"]["google_fit"]["success"] is False
