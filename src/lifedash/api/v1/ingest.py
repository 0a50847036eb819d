"""Health/budget ingestion endpoint."""

from typing import Annotated

from fastapi import APIRouter, Body, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.api.deps import get_current_user
from lifedash.db.session import get_db
from lifedash.models.user import User
from lifedash.schemas.budget import BudgetCategoryResponse
from lifedash.schemas.health import HealthDataResponse
from lifedash.schemas.ingest import BudgetIngest, IngestRequest, IngestResponse
from lifedash.services.budget import BudgetService
from lifedash.services.health import HealthService

router = APIRouter(prefix="/ingest", tags=["ingest"])


@router.post(
    "",
    response_model=IngestResponse,
    summary="Submit a budget or health record",
    description="""
    Accepts `{"type": "budget" | "health", "data": {...}}`.

    ## Budget
    - **action** `"set"` overwrites the month's target, keeping the spent total
    - any other action (or none) adds **amount** to the month's spent total

    ## Health
    Only the metrics present in the payload are written to today's row;
    metrics recorded earlier today are kept.
    """,
)
async def ingest(
    payload: Annotated[IngestRequest, Body(discriminator="type")],
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> IngestResponse:
    """
    Route one ingestion record to the budget or health store.

    Args:
        payload: Discriminated budget/health record
        current_user: Caller resolved from x-user-id
        db: Database session

    Returns:
        The stored record
    """
    if isinstance(payload, BudgetIngest):
        record = payload.data
        budget_service = BudgetService(db)
        if record.is_set_target:
            row = await budget_service.set_target(
                current_user.id, record.category, record.month, record.amount
            )
        else:
            row = await budget_service.accumulate(
                current_user.id, record.category, record.month, record.amount
            )
        return IngestResponse(data=BudgetCategoryResponse.model_validate(row))

    metrics = payload.data.model_dump(exclude_none=True)
    row = await HealthService(db).record_metrics(current_user.id, metrics)
    return IngestResponse(data=HealthDataResponse.model_validate(row))
