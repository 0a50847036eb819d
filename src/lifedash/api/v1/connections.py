"""Provider connection endpoints. Tokens come from the external OAuth flow."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.api.deps import get_current_user
from lifedash.db.session import get_db
from lifedash.models.user import User
from lifedash.schemas.connection import ConnectionStatus, ConnectionTokens
from lifedash.services.connections import ConnectionService, as_utc

router = APIRouter(prefix="/connections", tags=["connections"])


@router.get("", response_model=list[ConnectionStatus])
async def list_connections(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[ConnectionStatus]:
    return await ConnectionService(db).list_status(current_user.id)


@router.put("/{provider}", response_model=ConnectionStatus)
async def save_connection(
    provider: str,
    tokens: ConnectionTokens,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ConnectionStatus:
    """Store or replace the caller's tokens for one provider."""
    connection = await ConnectionService(db).save_tokens(current_user.id, provider, tokens)
    return ConnectionStatus(
        provider=connection.provider,
        connected=True,
        expires_at=as_utc(connection.expires_at),
        last_synced_at=as_utc(connection.last_synced_at),
    )
