"""Budget category repository.

Spent totals and targets are each written by a single INSERT ... ON CONFLICT
statement that touches only its own column. The increment is computed by the
database (``spent_amount = spent_amount + excluded.spent_amount``), so
concurrent accumulations on the same (user, name, month) key never lose a
delta the way an application-level read-then-write would.
"""
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.models.base import utcnow
from lifedash.models.budget_category import BudgetCategory
from lifedash.repositories.base import BaseRepository

_KEY_COLUMNS = ["user_id", "name", "month"]


class BudgetCategoryRepository(BaseRepository[BudgetCategory]):
    """Repository for BudgetCategory model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, BudgetCategory)

    async def get_by_key(self, user_id: UUID, name: str, month: str) -> BudgetCategory | None:
        result = await self.db.execute(
            select(BudgetCategory)
            .where(
                BudgetCategory.user_id == user_id,
                BudgetCategory.name == name,
                BudgetCategory.month == month,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    def _insert_row(self, user_id: UUID, name: str, month: str, target: Decimal, spent: Decimal):
        now = utcnow()
        return self.upsert_statement().values(
            id=uuid4(),
            user_id=user_id,
            name=name,
            month=month,
            target_amount=target,
            spent_amount=spent,
            created_at=now,
            updated_at=now,
        )

    async def add_spent(
        self, user_id: UUID, name: str, month: str, delta: Decimal
    ) -> BudgetCategory:
        """
        Atomically add a signed delta to spent_amount, creating the row with
        target_amount 0 when absent. target_amount is never modified.
        Does not commit.
        """
        stmt = self._insert_row(user_id, name, month, Decimal("0"), delta)
        stmt = stmt.on_conflict_do_update(
            index_elements=_KEY_COLUMNS,
            set_={
                "spent_amount": BudgetCategory.spent_amount + stmt.excluded.spent_amount,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)
        return await self.get_by_key(user_id, name, month)

    async def set_target(
        self, user_id: UUID, name: str, month: str, target: Decimal
    ) -> BudgetCategory:
        """
        Overwrite target_amount, creating the row with spent_amount 0 when
        absent. spent_amount is never modified. Does not commit.
        """
        stmt = self._insert_row(user_id, name, month, target, Decimal("0"))
        stmt = stmt.on_conflict_do_update(
            index_elements=_KEY_COLUMNS,
            set_={
                "target_amount": stmt.excluded.target_amount,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.db.execute(stmt)
        return await self.get_by_key(user_id, name, month)

    async def list_for_month(self, user_id: UUID, month: str) -> list[BudgetCategory]:
        """Get all of a user's categories for a month, ordered by name."""
        result = await self.db.execute(
            select(BudgetCategory)
            .where(BudgetCategory.user_id == user_id, BudgetCategory.month == month)
            .order_by(BudgetCategory.name)
        )
        return list(result.scalars().all())
