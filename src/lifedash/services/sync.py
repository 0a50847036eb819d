"""Provider pull-sync.

Each provider sync fetches recent data with the user's stored token and feeds
it into the same paths used by direct ingestion: debits go through the
transaction pipeline, daily metrics through the health service. Every
transaction commits on its own, so an upstream failure part way through a
sync leaves only complete categorize/record/accumulate triples behind.
"""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.core.errors import get_error, is_retryable
from lifedash.core.exceptions import DashboardError, UpstreamUnavailableError, ValidationError
from lifedash.core.months import current_month, today
from lifedash.db.guard import run_atomic
from lifedash.models.provider_connection import SUPPORTED_PROVIDERS, ProviderConnection
from lifedash.providers import build_client
from lifedash.providers.base import skip_record
from lifedash.providers.capitalone import CapitalOneClient, debit_transactions
from lifedash.providers.dexcom import LOOKBACK_DAYS as DEXCOM_LOOKBACK_DAYS
from lifedash.providers.dexcom import DexcomClient, latest_glucose_by_day
from lifedash.providers.google_fit import GoogleFitClient
from lifedash.providers.oauth import refresh_access_token
from lifedash.providers.quickbooks import (
    BUSINESS_INCOME_CATEGORY,
    LOOKBACK_DAYS as QUICKBOOKS_LOOKBACK_DAYS,
    QuickBooksClient,
    expense_lines,
    income_for_month,
)
from lifedash.repositories.provider_connection import ProviderConnectionRepository
from lifedash.schemas.sync import ProviderSyncResult, ServiceSyncOutcome, SyncAllResult
from lifedash.services.budget import BudgetService
from lifedash.services.connections import ConnectionService, as_utc, ensure_supported
from lifedash.services.health import HealthService
from lifedash.services.ingestion import TransactionPipeline

logger = logging.getLogger(__name__)


class SyncService:
    """Pulls provider data for one user into the dashboard tables."""

    def __init__(self, db: AsyncSession, http: httpx.AsyncClient):
        self.db = db
        self.http = http
        self.connection_repo = ProviderConnectionRepository(db)
        self.connection_service = ConnectionService(db)
        self.pipeline = TransactionPipeline(db)
        self.budget_service = BudgetService(db)
        self.health_service = HealthService(db)

    async def _load_connection(self, user_id: UUID, provider: str) -> ProviderConnection:
        connection = await run_atomic(
            self.db,
            lambda: self.connection_repo.get_for_user(user_id, provider),
            label="sync.connection",
            commit=False,
        )
        if connection is None:
            raise ValidationError("SYNC_001", details={"provider": provider})

        expires_at = as_utc(connection.expires_at)
        if expires_at is not None and expires_at <= datetime.now(timezone.utc):
            connection = await self._refresh(user_id, connection)
        return connection

    async def _refresh(self, user_id: UUID, connection: ProviderConnection) -> ProviderConnection:
        """Swap an expired access token for a fresh one and store it."""
        provider = connection.provider
        if not connection.refresh_token:
            raise UpstreamUnavailableError(
                "SYNC_003", details={"provider": provider, "reason": "no refresh token"}, http_status=400
            )

        tokens = await refresh_access_token(self.http, provider, connection.refresh_token)
        tokens = tokens.model_copy(update={"realm_id": connection.realm_id})
        refreshed = await self.connection_service.save_tokens(user_id, provider, tokens)
        logger.info("Provider token refreshed", extra={"user_id": str(user_id), "provider": provider})
        return refreshed

    async def sync(self, user_id: UUID, provider: str) -> ProviderSyncResult:
        """
        Run one provider sync for a user.

        Raises:
            ValidationError: Unsupported provider or no stored connection
            UpstreamUnavailableError: Provider API failure, or an expired token
                that could not be refreshed
            StorageError: Persistence failure
        """
        ensure_supported(provider)
        connection = await self._load_connection(user_id, provider)
        client = build_client(self.http, connection)

        logger.info("Provider sync started", extra={"user_id": str(user_id), "provider": provider})
        if isinstance(client, CapitalOneClient):
            result = await self._sync_capitalone(user_id, client)
        elif isinstance(client, QuickBooksClient):
            result = await self._sync_quickbooks(user_id, client)
        elif isinstance(client, DexcomClient):
            result = await self._sync_dexcom(user_id, client)
        else:
            result = await self._sync_google_fit(user_id, client)

        synced_at = datetime.now(timezone.utc)
        await run_atomic(
            self.db,
            lambda: self.connection_repo.mark_synced(user_id, provider, synced_at),
            label="sync.mark_synced",
        )
        logger.info(
            "Provider sync completed",
            extra={
                "user_id": str(user_id),
                "provider": provider,
                "transactions_synced": result.transactions_synced,
                "days_updated": result.days_updated,
            },
        )
        return result

    async def _sync_capitalone(self, user_id: UUID, client: CapitalOneClient) -> ProviderSyncResult:
        synced = 0
        for account in await client.fetch_accounts():
            if not isinstance(account, dict) or not account.get("accountId"):
                skip_record(client.provider, "account", "missing accountId")
                continue
            raw = await client.fetch_transactions(str(account["accountId"]))
            for record in debit_transactions(account, raw):
                await self.pipeline.ingest(user_id, record, provider=client.provider)
                synced += 1

        return ProviderSyncResult(
            provider=client.provider,
            transactions_synced=synced,
            message=f"Synced {synced} Capital One transactions",
        )

    async def _sync_quickbooks(self, user_id: UUID, client: QuickBooksClient) -> ProviderSyncResult:
        since = today() - timedelta(days=QUICKBOOKS_LOOKBACK_DAYS)

        synced = 0
        for record, category in expense_lines(await client.fetch_purchases(since)):
            await self.pipeline.ingest(user_id, record, provider=client.provider, category=category)
            synced += 1

        month = current_month()
        income = income_for_month(await client.fetch_invoices(since), month)
        if income > 0:
            # Income is tracked as the target of its own category.
            await self.budget_service.set_target(user_id, BUSINESS_INCOME_CATEGORY, month, income)

        return ProviderSyncResult(
            provider=client.provider,
            transactions_synced=synced,
            message=f"Synced {synced} QuickBooks expense lines",
        )

    async def _sync_dexcom(self, user_id: UUID, client: DexcomClient) -> ProviderSyncResult:
        end = datetime.now(timezone.utc)
        readings = await client.fetch_egvs(end - timedelta(days=DEXCOM_LOOKBACK_DAYS), end)
        by_day = latest_glucose_by_day(readings)

        for day, glucose in sorted(by_day.items()):
            await self.health_service.record_metrics(user_id, {"glucose": glucose}, day=day)

        message = "Dexcom glucose data synced" if readings else "No glucose data available"
        return ProviderSyncResult(provider=client.provider, days_updated=len(by_day), message=message)

    async def _sync_google_fit(self, user_id: UUID, client: GoogleFitClient) -> ProviderSyncResult:
        day = today()
        steps = await client.fetch_step_count(day)
        await self.health_service.record_metrics(user_id, {"steps": steps}, day=day)
        return ProviderSyncResult(
            provider=client.provider,
            days_updated=1,
            message=f"Google Fit data synced. Steps: {steps}",
        )

    async def sync_many(self, user_id: UUID, services: list[str] | None = None) -> SyncAllResult:
        """Sync several providers, collecting a per-provider outcome."""
        results: dict[str, ServiceSyncOutcome] = {}
        for provider in services or list(SUPPORTED_PROVIDERS):
            try:
                data = await self.sync(user_id, provider)
            except DashboardError as exc:
                logger.warning(
                    "Provider sync failed",
                    extra={
                        "provider": provider,
                        "error_code": exc.error_code,
                        "retryable": is_retryable(exc.error_code),
                    },
                )
                results[provider] = ServiceSyncOutcome(
                    success=False, error=get_error(exc.error_code)["user_message"]
                )
            else:
                results[provider] = ServiceSyncOutcome(success=True, data=data)

        succeeded = sum(1 for outcome in results.values() if outcome.success)
        return SyncAllResult(
            success=succeeded > 0,
            results=results,
            summary=f"{succeeded}/{len(results)} services synced successfully",
        )
