"""Daily health metrics service."""

import logging
from datetime import date, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.core.months import today
from lifedash.db.guard import run_atomic
from lifedash.models.health_data import HealthData
from lifedash.repositories.health_data import HealthDataRepository
from lifedash.schemas.health import HealthDataResponse

logger = logging.getLogger(__name__)


class HealthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.health_repo = HealthDataRepository(db)

    async def record_metrics(
        self, user_id: UUID, metrics: dict[str, Any], day: date | None = None
    ) -> HealthData:
        """Merge the given metrics into the user's row for ``day`` (today by default)."""
        day = day or today()
        row = await run_atomic(
            self.db,
            lambda: self.health_repo.upsert_metrics(user_id, day, metrics),
            label="health.record",
        )
        logger.info(
            "Health metrics recorded",
            extra={"user_id": str(user_id), "day": day.isoformat(), "metrics": sorted(metrics)},
        )
        return row

    async def get_today(self, user_id: UUID) -> HealthDataResponse:
        """Today's metrics; every metric is null when nothing was recorded yet."""
        day = today()
        row = await run_atomic(
            self.db,
            lambda: self.health_repo.get_for_day(user_id, day),
            label="health.today",
            commit=False,
        )
        if row is None:
            return HealthDataResponse(date=day)
        return HealthDataResponse.model_validate(row)

    async def list_recent(self, user_id: UUID, days: int) -> list[HealthData]:
        since = today() - timedelta(days=days - 1)
        return await run_atomic(
            self.db,
            lambda: self.health_repo.list_since(user_id, since),
            label="health.recent",
            commit=False,
        )
