"""Provider sync request/response schemas."""

from pydantic import BaseModel, Field


class SyncRequest(BaseModel):
    services: list[str] | None = Field(
        None, description="Providers to sync; all supported providers when omitted"
    )


class ProviderSyncResult(BaseModel):
    provider: str
    transactions_synced: int = 0
    days_updated: int = 0
    message: str


class ServiceSyncOutcome(BaseModel):
    success: bool
    data: ProviderSyncResult | None = None
    error: str | None = None


class SyncAllResult(BaseModel):
    success: bool
    results: dict[str, ServiceSyncOutcome]
    summary: str
