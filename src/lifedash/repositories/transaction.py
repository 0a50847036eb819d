"""Transaction repository: deduplicating upsert plus listing queries."""
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.core.months import month_bounds
from lifedash.models.base import utcnow
from lifedash.models.transaction import Transaction
from lifedash.repositories.base import BaseRepository

# Columns replaced wholesale when a (provider, transaction_id) is re-ingested.
# The owner is never replaced.
REPLACED_COLUMNS = (
    "account_id",
    "amount",
    "description",
    "merchant",
    "account_name",
    "category",
    "txn_date",
    "updated_at",
)


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    async def get_by_natural_key(
        self, provider: str, transaction_id: str, for_update: bool = False
    ) -> Transaction | None:
        """Get the stored version of a provider transaction, if any.

        With ``for_update`` the row stays locked until the surrounding
        transaction ends (SQLite serializes writers instead).
        """
        query = (
            select(Transaction)
            .where(
                Transaction.provider == provider,
                Transaction.transaction_id == transaction_id,
            )
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def claim(self, values: dict[str, Any]) -> bool:
        """
        Insert a transaction only if its (provider, transaction_id) is new.

        Returns True when this call created the row. A concurrent claim of the
        same key waits on the unique index until the first one commits, then
        sees the existing row. Does not commit.
        """
        now = utcnow()
        stmt = (
            self.upsert_statement()
            .values(id=uuid4(), created_at=now, updated_at=now, **values)
            .on_conflict_do_nothing(index_elements=["provider", "transaction_id"])
            .returning(Transaction.id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def upsert(self, values: dict[str, Any]) -> Transaction:
        """
        Insert a transaction or fully replace the row with the same
        (provider, transaction_id). Does not commit.
        """
        now = utcnow()
        stmt = self.upsert_statement().values(
            id=uuid4(), created_at=now, updated_at=now, **values
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["provider", "transaction_id"],
            set_={column: getattr(stmt.excluded, column) for column in REPLACED_COLUMNS},
        )
        await self.db.execute(stmt)

        return await self.get_by_natural_key(values["provider"], values["transaction_id"])

    def _user_query(self, user_id: UUID, month: str | None, category: str | None):
        query = select(Transaction).where(Transaction.user_id == user_id)
        if month:
            start_date, end_date = month_bounds(month)
            query = query.where(
                Transaction.txn_date >= start_date, Transaction.txn_date < end_date
            )
        if category:
            query = query.where(Transaction.category == category)
        return query

    async def list_for_user(
        self,
        user_id: UUID,
        month: str | None = None,
        category: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Transaction]:
        """Get a user's transactions, newest first."""
        result = await self.db.execute(
            self._user_query(user_id, month, category)
            .order_by(Transaction.txn_date.desc(), Transaction.transaction_id)
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_for_user(
        self, user_id: UUID, month: str | None = None, category: str | None = None
    ) -> int:
        query = self._user_query(user_id, month, category)
        result = await self.db.execute(select(func.count()).select_from(query.subquery()))
        return result.scalar() or 0
