"""Schemas for the health/budget ingestion boundary.

Budget submissions with ``action="set"`` overwrite the month's target; any
other action (or none) adds ``amount`` to the month's spent total.
"""

from decimal import Decimal
from typing import Literal, Union

from pydantic import BaseModel, Field, model_validator

from lifedash.core.months import MONTH_PATTERN
from lifedash.schemas.budget import BudgetCategoryResponse
from lifedash.schemas.health import HealthDataResponse, HealthMetrics


class BudgetRecord(BaseModel):
    category: str = Field(..., min_length=1, max_length=255, description="Budget category label")
    amount: Decimal = Field(
        ...,
        max_digits=12,
        decimal_places=2,
        allow_inf_nan=False,
        description="Amount to add, or the new target",
    )
    month: str = Field(..., pattern=MONTH_PATTERN, description="Budget month (YYYY-MM)")
    action: str | None = Field(None, description='"set" to overwrite the target; anything else adds')

    @property
    def is_set_target(self) -> bool:
        return self.action == "set"

    @model_validator(mode="after")
    def _target_not_negative(self) -> "BudgetRecord":
        if self.is_set_target and self.amount < 0:
            raise ValueError("target amount must not be negative")
        return self


class BudgetIngest(BaseModel):
    type: Literal["budget"]
    data: BudgetRecord


class HealthIngest(BaseModel):
    type: Literal["health"]
    data: HealthMetrics


# Discriminated on "type" at the API boundary.
IngestRequest = Union[BudgetIngest, HealthIngest]


class IngestResponse(BaseModel):
    success: bool = True
    data: BudgetCategoryResponse | HealthDataResponse
