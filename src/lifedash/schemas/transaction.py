"""Transaction request/response schemas."""

import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from lifedash.schemas.budget import BudgetCategoryResponse

MANUAL_ACCOUNT_ID = "manual"


class TransactionCreate(BaseModel):
    """One expense to run through categorize -> record -> accumulate.

    Credits must be filtered out by the caller; ``amount`` is the
    non-negative magnitude of the debit.
    """

    transaction_id: str = Field(..., min_length=1, max_length=255)
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2, allow_inf_nan=False)
    date: datetime.date
    description: str | None = Field(None, max_length=500)
    merchant: str | None = Field(None, max_length=255)
    account_id: str = Field(MANUAL_ACCOUNT_ID, min_length=1, max_length=255)
    account_name: str | None = Field(None, max_length=255)


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    provider: str
    account_id: str
    transaction_id: str
    amount: Decimal
    description: str | None
    merchant: str | None
    account_name: str | None
    category: str
    date: datetime.date = Field(validation_alias="txn_date")


class IngestedTransactionResponse(BaseModel):
    """Result of ingesting one transaction."""

    transaction: TransactionResponse
    budget: BudgetCategoryResponse
    replaced: bool = Field(
        description="True when an earlier version of this transaction id was replaced"
    )


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TransactionListResult(BaseModel):
    transactions: list[TransactionResponse]
    pagination: PaginationMeta
