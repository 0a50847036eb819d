"""Budget overview endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.api.deps import get_current_user
from lifedash.core.months import MONTH_PATTERN, current_month
from lifedash.db.session import get_db
from lifedash.models.user import User
from lifedash.schemas.budget import BudgetOverview
from lifedash.services.budget import BudgetService

router = APIRouter(prefix="/budget", tags=["budget"])


@router.get("", response_model=BudgetOverview, summary="Monthly budget overview")
async def get_budget(
    month: Annotated[
        str | None, Query(pattern=MONTH_PATTERN, description="Month (YYYY-MM); current month by default")
    ] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> BudgetOverview:
    """Categories sorted by name with remaining/percent/status and KPI totals."""
    return await BudgetService(db).get_overview(current_user.id, month or current_month())
