"""Provider connection schemas. Tokens are accepted, never returned."""

from datetime import datetime

from pydantic import BaseModel, Field


class ConnectionTokens(BaseModel):
    """Tokens obtained by the external OAuth flow for one provider."""

    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None
    expires_in: int | None = Field(None, gt=0, description="Access token lifetime in seconds")
    realm_id: str | None = Field(None, description="QuickBooks company id")


class ConnectionStatus(BaseModel):
    provider: str
    connected: bool
    expires_at: datetime | None = None
    last_synced_at: datetime | None = None
