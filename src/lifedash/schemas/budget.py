"""Budget request/response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

BudgetStatus = Literal["on_track", "warning", "over"]


class BudgetCategoryResponse(BaseModel):
    """Stored budget row for one (user, category, month)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    name: str
    month: str = Field(description="Budget month (YYYY-MM)")
    target_amount: Decimal
    spent_amount: Decimal
    updated_at: datetime


class BudgetCategoryProgress(BudgetCategoryResponse):
    """Budget row with the progress figures shown on the dashboard."""

    remaining: Decimal = Field(description="target - spent (negative when over budget)")
    percent_spent: float = Field(description="spent / target * 100; 0 when no target is set")
    status: BudgetStatus


class BudgetOverview(BaseModel):
    """All of a user's categories for one month plus KPI totals."""

    month: str
    currency: str
    categories: list[BudgetCategoryProgress]
    total_target: Decimal
    total_spent: Decimal
    total_remaining: Decimal
