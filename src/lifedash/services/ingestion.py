"""Transaction ingestion pipeline: categorize -> record -> accumulate.

Each ingested transaction is applied in a single database transaction:
either the stored transaction and its budget contribution both become
visible, or neither does.

Re-ingesting a (provider, transaction_id) replaces the stored row and moves
its budget contribution: the previous amount is subtracted from the previous
(category, month) before the new amount is added. A month's spent total
therefore always equals the sum of its stored transactions, no matter how
many times a provider re-sends the same history.

The natural key is claimed with an insert-if-absent before anything is read,
so two concurrent first ingestions of one id cannot both count as new. A
transaction id already recorded for another user is rejected, never taken over.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.categorization.rules import categorize
from lifedash.core.exceptions import ValidationError
from lifedash.core.months import month_of
from lifedash.db.guard import run_atomic
from lifedash.models.budget_category import BudgetCategory
from lifedash.models.transaction import Transaction
from lifedash.repositories.budget_category import BudgetCategoryRepository
from lifedash.repositories.transaction import TransactionRepository
from lifedash.schemas.transaction import TransactionCreate

logger = logging.getLogger(__name__)

MANUAL_PROVIDER = "manual"


@dataclass
class IngestedTransaction:
    transaction: Transaction
    budget: BudgetCategory
    replaced: bool


class TransactionPipeline:
    """Runs one raw transaction through categorize, record and accumulate."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transaction_repo = TransactionRepository(db)
        self.budget_repo = BudgetCategoryRepository(db)

    @staticmethod
    def _validate(record: TransactionCreate) -> str:
        transaction_id = (record.transaction_id or "").strip()
        if not transaction_id:
            raise ValidationError("VAL_003", details={"field": "transaction_id"})
        if record.amount is None or record.amount < 0:
            raise ValidationError("VAL_003", details={"field": "amount"})
        if record.date is None:
            raise ValidationError("VAL_003", details={"field": "date"})
        return transaction_id

    async def ingest(
        self,
        user_id: UUID,
        record: TransactionCreate,
        provider: str = MANUAL_PROVIDER,
        category: str | None = None,
    ) -> IngestedTransaction:
        """
        Categorize, store and account for one debit.

        Args:
            user_id: Owner of the transaction
            record: Raw transaction (credits already filtered out)
            provider: Source system; part of the dedup key
            category: Pre-assigned label (business sources); the personal
                categorizer is applied to the description when omitted

        Returns:
            The stored transaction, the updated budget row and whether an
            earlier version was replaced

        Raises:
            ValidationError: Missing id/date or negative amount, or the id
                belongs to another user (nothing written)
            StorageError: Persistence failure or timeout (nothing written)
        """
        transaction_id = self._validate(record)
        label = category or categorize(record.description)
        month = month_of(record.date)

        values = {
            "user_id": user_id,
            "provider": provider,
            "account_id": record.account_id,
            "transaction_id": transaction_id,
            "amount": record.amount,
            "description": record.description,
            "merchant": record.merchant,
            "account_name": record.account_name,
            "category": label,
            "txn_date": record.date,
        }

        async def _apply() -> IngestedTransaction:
            if await self.transaction_repo.claim(values):
                reversal = None
                stored = await self.transaction_repo.get_by_natural_key(provider, transaction_id)
            else:
                previous = await self.transaction_repo.get_by_natural_key(
                    provider, transaction_id, for_update=True
                )
                if previous.user_id != user_id:
                    raise ValidationError(
                        "VAL_005",
                        details={"provider": provider, "transaction_id": transaction_id},
                    )
                # Snapshot before the upsert refreshes the same identity-mapped row.
                reversal = (previous.category, previous.month, previous.amount)
                stored = await self.transaction_repo.upsert(values)

                prev_category, prev_month, prev_amount = reversal
                await self.budget_repo.add_spent(user_id, prev_category, prev_month, -prev_amount)

            budget = await self.budget_repo.add_spent(user_id, label, month, record.amount)
            return IngestedTransaction(transaction=stored, budget=budget, replaced=reversal is not None)

        result = await run_atomic(self.db, _apply, label="transactions.ingest")
        logger.info(
            "Transaction ingested",
            extra={
                "user_id": str(user_id),
                "provider": provider,
                "category": label,
                "month": month,
                "replaced": result.replaced,
            },
        )
        return result
