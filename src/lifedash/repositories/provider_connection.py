"""Provider connection repository (stored OAuth tokens per user)."""
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.models.base import utcnow
from lifedash.models.provider_connection import ProviderConnection
from lifedash.repositories.base import BaseRepository


class ProviderConnectionRepository(BaseRepository[ProviderConnection]):
    """Repository for ProviderConnection model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, ProviderConnection)

    async def get_for_user(self, user_id: UUID, provider: str) -> ProviderConnection | None:
        result = await self.db.execute(
            select(ProviderConnection)
            .where(
                ProviderConnection.user_id == user_id,
                ProviderConnection.provider == provider,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: UUID) -> list[ProviderConnection]:
        result = await self.db.execute(
            select(ProviderConnection)
            .where(ProviderConnection.user_id == user_id)
            .order_by(ProviderConnection.provider)
        )
        return list(result.scalars().all())

    async def save_tokens(
        self,
        user_id: UUID,
        provider: str,
        access_token: str,
        refresh_token: str | None = None,
        expires_at: datetime | None = None,
        realm_id: str | None = None,
    ) -> ProviderConnection:
        """Store or replace the tokens for (user, provider). Does not commit."""
        now = utcnow()
        stmt = self.upsert_statement().values(
            id=uuid4(),
            user_id=user_id,
            provider=provider,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
            realm_id=realm_id,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "provider"],
            set_={
                "access_token": stmt.excluded.access_token,
                "refresh_token": stmt.excluded.refresh_token,
                "expires_at": stmt.excluded.expires_at,
                "realm_id": stmt.excluded.realm_id,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)
        return await self.get_for_user(user_id, provider)

    async def mark_synced(self, user_id: UUID, provider: str, synced_at: datetime) -> None:
        """Stamp last_synced_at. Does not commit."""
        await self.db.execute(
            update(ProviderConnection)
            .where(
                ProviderConnection.user_id == user_id,
                ProviderConnection.provider == provider,
            )
            .values(last_synced_at=synced_at, updated_at=synced_at)
        )
