"""Daily health metric read endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.api.deps import get_current_user
from lifedash.db.session import get_db
from lifedash.models.user import User
from lifedash.schemas.health import HealthDataResponse
from lifedash.services.health import HealthService

router = APIRouter(prefix="/health-data", tags=["health-data"])


@router.get("/today", response_model=HealthDataResponse)
async def get_today(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> HealthDataResponse:
    """Today's metrics; all null when nothing was recorded."""
    return await HealthService(db).get_today(current_user.id)


@router.get("", response_model=list[HealthDataResponse])
async def list_recent(
    days: Annotated[int, Query(ge=1, le=366, description="Number of days to include")] = 7,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[HealthDataResponse]:
    """Daily rows for the last ``days`` days, newest first."""
    rows = await HealthService(db).list_recent(current_user.id, days)
    return [HealthDataResponse.model_validate(row) for row in rows]
