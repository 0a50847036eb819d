"""Raw transaction ingestion and query endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.api.deps import get_current_user
from lifedash.core.months import MONTH_PATTERN
from lifedash.db.guard import run_atomic
from lifedash.db.session import get_db
from lifedash.models.user import User
from lifedash.repositories.transaction import TransactionRepository
from lifedash.schemas.budget import BudgetCategoryResponse
from lifedash.schemas.transaction import (
    IngestedTransactionResponse,
    PaginationMeta,
    TransactionCreate,
    TransactionListResult,
    TransactionResponse,
)
from lifedash.services.ingestion import MANUAL_PROVIDER, TransactionPipeline

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post(
    "",
    response_model=IngestedTransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ingest one debit",
    description="""
    Runs a raw debit through categorize -> record -> accumulate.

    Re-sending the same **transaction_id** replaces the stored row and moves
    its amount between budget categories instead of counting it twice.
    """,
)
async def create_transaction(
    payload: TransactionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> IngestedTransactionResponse:
    result = await TransactionPipeline(db).ingest(current_user.id, payload, provider=MANUAL_PROVIDER)
    return IngestedTransactionResponse(
        transaction=TransactionResponse.model_validate(result.transaction),
        budget=BudgetCategoryResponse.model_validate(result.budget),
        replaced=result.replaced,
    )


@router.get(
    "",
    response_model=TransactionListResult,
    summary="List transactions with filters",
)
async def list_transactions(
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Items per page (1-100)")] = 20,
    month: Annotated[
        str | None, Query(pattern=MONTH_PATTERN, description="Filter by month (YYYY-MM)")
    ] = None,
    category: Annotated[str | None, Query(description="Filter by category")] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> TransactionListResult:
    """
    List the caller's transactions, newest first.

    Args:
        page: Page number (1-indexed)
        limit: Items per page
        month: Optional month filter
        category: Optional category filter
        current_user: Caller resolved from x-user-id
        db: Database session

    Returns:
        Paginated list of transactions
    """
    repo = TransactionRepository(db)

    async def _query():
        total = await repo.count_for_user(current_user.id, month, category)
        rows = await repo.list_for_user(
            current_user.id, month, category, skip=(page - 1) * limit, limit=limit
        )
        return total, rows

    total, rows = await run_atomic(db, _query, label="transactions.list", commit=False)

    return TransactionListResult(
        transactions=[TransactionResponse.model_validate(row) for row in rows],
        pagination=PaginationMeta(
            page=page,
            limit=limit,
            total=total,
            total_pages=(total + limit - 1) // limit if total > 0 else 0,
        ),
    )
