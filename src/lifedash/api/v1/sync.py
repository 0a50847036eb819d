"""Provider sync endpoints."""

import httpx
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.api.deps import get_current_user, get_http_client
from lifedash.db.session import get_db
from lifedash.models.user import User
from lifedash.schemas.sync import ProviderSyncResult, SyncAllResult, SyncRequest
from lifedash.services.sync import SyncService

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("", response_model=SyncAllResult, summary="Sync several providers")
async def sync_all(
    payload: SyncRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> SyncAllResult:
    """Run each requested provider sync and report a per-provider outcome."""
    services = payload.services if payload else None
    return await SyncService(db, http).sync_many(current_user.id, services)


@router.post("/{provider}", response_model=ProviderSyncResult, summary="Sync one provider")
async def sync_provider(
    provider: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    http: httpx.AsyncClient = Depends(get_http_client),
) -> ProviderSyncResult:
    return await SyncService(db, http).sync(current_user.id, provider)
