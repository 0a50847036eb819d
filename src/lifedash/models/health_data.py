"""Daily health metrics, one row per user per day."""
import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lifedash.models.base import BaseModel

# Metric columns that ingestion and provider syncs may write.
HEALTH_METRICS = ("sleep_hours", "steps", "glucose", "calories", "protein")


class HealthData(BaseModel):
    __tablename__ = "health_data"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    sleep_hours: Mapped[Decimal | None] = mapped_column(Numeric(4, 2), nullable=True)
    steps: Mapped[int | None] = mapped_column(Integer, nullable=True)
    glucose: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    calories: Mapped[int | None] = mapped_column(Integer, nullable=True)
    protein: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_health_data_user_date"),
    )

    def __repr__(self) -> str:
        return f"<HealthData(user_id={self.user_id}, date={self.date})>"
