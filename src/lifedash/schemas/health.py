"""Health metric schemas."""

import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

# Upper bound of the INTEGER columns.
MAX_INT_METRIC = 2_147_483_647


class HealthMetrics(BaseModel):
    """Optional daily metrics. Only the fields sent are written."""

    sleep_hours: Decimal | None = Field(
        None, ge=0, le=24, max_digits=4, decimal_places=2, description="Hours slept"
    )
    steps: int | None = Field(None, ge=0, le=MAX_INT_METRIC, description="Step count")
    glucose: Decimal | None = Field(
        None, ge=0, max_digits=5, decimal_places=2, description="Glucose (mg/dL)"
    )
    calories: int | None = Field(None, ge=0, le=MAX_INT_METRIC, description="Calories consumed")
    protein: Decimal | None = Field(
        None, ge=0, max_digits=6, decimal_places=2, description="Protein (g)"
    )


class HealthDataResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: datetime.date
    sleep_hours: Decimal | None = None
    steps: int | None = None
    glucose: Decimal | None = None
    calories: int | None = None
    protein: Decimal | None = None
