"""Health data repository with per-day metric merging."""
from datetime import date
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.models.base import utcnow
from lifedash.models.health_data import HEALTH_METRICS, HealthData
from lifedash.repositories.base import BaseRepository


class HealthDataRepository(BaseRepository[HealthData]):
    """Repository for HealthData model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, HealthData)

    async def get_for_day(self, user_id: UUID, day: date) -> HealthData | None:
        result = await self.db.execute(
            select(HealthData)
            .where(HealthData.user_id == user_id, HealthData.date == day)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert_metrics(
        self, user_id: UUID, day: date, metrics: dict[str, Any]
    ) -> HealthData:
        """
        Write the given metrics for (user, day). Metrics not present in
        ``metrics`` keep their stored values. Does not commit.
        """
        unknown = set(metrics) - set(HEALTH_METRICS)
        if unknown:
            raise ValueError(f"Unknown health metrics: {sorted(unknown)}")

        now = utcnow()
        stmt = self.upsert_statement().values(
            id=uuid4(), user_id=user_id, date=day, created_at=now, updated_at=now, **metrics
        )
        if metrics:
            stmt = stmt.on_conflict_do_update(
                index_elements=["user_id", "date"],
                set_={
                    **{name: getattr(stmt.excluded, name) for name in metrics},
                    "updated_at": stmt.excluded.updated_at,
                },
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=["user_id", "date"])
        await self.db.execute(stmt)
        return await self.get_for_day(user_id, day)

    async def list_since(self, user_id: UUID, since: date) -> list[HealthData]:
        """Get daily rows from ``since`` onwards, newest first."""
        result = await self.db.execute(
            select(HealthData)
            .where(HealthData.user_id == user_id, HealthData.date >= since)
            .order_by(HealthData.date.desc())
        )
        return list(result.scalars().all())
