"""Provider connection storage."""

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.core.exceptions import ValidationError
from lifedash.core.security import mask_secret
from lifedash.db.guard import run_atomic
from lifedash.models.provider_connection import SUPPORTED_PROVIDERS, ProviderConnection
from lifedash.repositories.provider_connection import ProviderConnectionRepository
from lifedash.schemas.connection import ConnectionStatus, ConnectionTokens

logger = logging.getLogger(__name__)


def ensure_supported(provider: str) -> str:
    if provider not in SUPPORTED_PROVIDERS:
        raise ValidationError("VAL_004", details={"provider": provider})
    return provider


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ConnectionService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.connection_repo = ProviderConnectionRepository(db)

    async def save_tokens(
        self, user_id: UUID, provider: str, tokens: ConnectionTokens
    ) -> ProviderConnection:
        """Store tokens obtained by the provider's OAuth flow."""
        ensure_supported(provider)
        expires_at = None
        if tokens.expires_in:
            expires_at = datetime.now(timezone.utc) + timedelta(seconds=tokens.expires_in)

        connection = await run_atomic(
            self.db,
            lambda: self.connection_repo.save_tokens(
                user_id,
                provider,
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                expires_at=expires_at,
                realm_id=tokens.realm_id,
            ),
            label="connections.save",
        )
        logger.info(
            "Provider connected",
            extra={
                "user_id": str(user_id),
                "provider": provider,
                "access_token": mask_secret(tokens.access_token),
            },
        )
        return connection

    async def list_status(self, user_id: UUID) -> list[ConnectionStatus]:
        """Connection status for every supported provider."""
        connections = await run_atomic(
            self.db,
            lambda: self.connection_repo.list_for_user(user_id),
            label="connections.list",
            commit=False,
        )
        by_provider = {c.provider: c for c in connections}

        statuses = []
        for provider in SUPPORTED_PROVIDERS:
            connection = by_provider.get(provider)
            if connection is None:
                statuses.append(ConnectionStatus(provider=provider, connected=False))
                continue
            statuses.append(
                ConnectionStatus(
                    provider=provider,
                    connected=True,
                    expires_at=as_utc(connection.expires_at),
                    last_synced_at=as_utc(connection.last_synced_at),
                )
            )
        return statuses
