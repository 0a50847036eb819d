"""Monthly spend aggregate for one user and one category label."""
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lifedash.models.base import BaseModel


class BudgetCategory(BaseModel):
    """Budget row keyed by (user_id, name, month).

    target_amount and spent_amount are written by separate statements so
    neither can clobber the other.
    """

    __tablename__ = "budget_categories"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    target_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    spent_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))

    __table_args__ = (
        UniqueConstraint("user_id", "name", "month", name="uq_budget_user_name_month"),
    )

    def __repr__(self) -> str:
        return (
            f"<BudgetCategory(user_id={self.user_id}, name={self.name}, month={self.month}, "
            f"target={self.target_amount}, spent={self.spent_amount})>"
        )
