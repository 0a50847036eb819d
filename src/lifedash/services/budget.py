"""Budget accumulation service.

Spent totals and targets are the only two mutations on a budget row and are
kept apart: accumulating never rewrites the target, setting a target never
rewrites the spent total.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from lifedash.config import settings
from lifedash.core.exceptions import ValidationError
from lifedash.core.months import is_valid_month
from lifedash.db.guard import run_atomic
from lifedash.models.budget_category import BudgetCategory
from lifedash.repositories.budget_category import BudgetCategoryRepository
from lifedash.schemas.budget import BudgetCategoryProgress, BudgetOverview

logger = logging.getLogger(__name__)

WARNING_PERCENT = 70.0
OVER_PERCENT = 90.0

# Largest magnitude a Numeric(12, 2) column holds.
MAX_AMOUNT = Decimal("9999999999.99")


def _to_amount(value: Any, field: str) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError("VAL_002", details={"field": field})
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("VAL_002", details={"field": field}) from None
    if not amount.is_finite() or abs(amount) > MAX_AMOUNT:
        raise ValidationError("VAL_002", details={"field": field})
    return amount


def _validate_key(category: str | None, month: str | None) -> tuple[str, str]:
    if not category or not category.strip():
        raise ValidationError("VAL_002", details={"field": "category"})
    if not is_valid_month(month):
        raise ValidationError("VAL_002", details={"field": "month"})
    return category.strip(), month


def budget_progress(row: BudgetCategory) -> BudgetCategoryProgress:
    """Compute remaining/percent/status for one budget row."""
    target = row.target_amount or Decimal("0")
    spent = row.spent_amount or Decimal("0")
    percent = float(spent / target * 100) if target > 0 else 0.0

    if percent <= WARNING_PERCENT:
        status = "on_track"
    elif percent <= OVER_PERCENT:
        status = "warning"
    else:
        status = "over"

    return BudgetCategoryProgress(
        id=row.id,
        user_id=row.user_id,
        name=row.name,
        month=row.month,
        target_amount=target,
        spent_amount=spent,
        updated_at=row.updated_at,
        remaining=target - spent,
        percent_spent=round(percent, 1),
        status=status,
    )


class BudgetService:
    """Service layer for monthly budget categories."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.budget_repo = BudgetCategoryRepository(db)

    async def accumulate(
        self, user_id: UUID, category: str, month: str, delta_amount: Any
    ) -> BudgetCategory:
        """Add a signed amount to the (user, category, month) spent total.

        Raises:
            ValidationError: Missing/malformed category, month or amount
            StorageError: Persistence failure or timeout (nothing written)
        """
        name, month = _validate_key(category, month)
        delta = _to_amount(delta_amount, "amount")

        row = await run_atomic(
            self.db,
            lambda: self.budget_repo.add_spent(user_id, name, month, delta),
            label="budget.accumulate",
        )
        logger.info(
            "Budget spent accumulated",
            extra={"user_id": str(user_id), "category": name, "month": month},
        )
        return row

    async def set_target(
        self, user_id: UUID, category: str, month: str, target_amount: Any
    ) -> BudgetCategory:
        """Overwrite the (user, category, month) target, keeping spent as is.

        Raises:
            ValidationError: Missing/malformed fields or a negative target
            StorageError: Persistence failure or timeout (nothing written)
        """
        name, month = _validate_key(category, month)
        target = _to_amount(target_amount, "amount")
        if target < 0:
            raise ValidationError("VAL_002", details={"field": "amount"})

        row = await run_atomic(
            self.db,
            lambda: self.budget_repo.set_target(user_id, name, month, target),
            label="budget.set_target",
        )
        logger.info(
            "Budget target set",
            extra={"user_id": str(user_id), "category": name, "month": month},
        )
        return row

    async def get_overview(self, user_id: UUID, month: str) -> BudgetOverview:
        """Get a user's categories for a month with dashboard totals."""
        if not is_valid_month(month):
            raise ValidationError("VAL_002", details={"field": "month"})

        rows = await run_atomic(
            self.db,
            lambda: self.budget_repo.list_for_month(user_id, month),
            label="budget.overview",
            commit=False,
        )
        categories = [budget_progress(row) for row in rows]
        total_target = sum((c.target_amount for c in categories), Decimal("0"))
        total_spent = sum((c.spent_amount for c in categories), Decimal("0"))

        return BudgetOverview(
            month=month,
            currency=settings.currency,
            categories=categories,
            total_target=total_target,
            total_spent=total_spent,
            total_remaining=total_target - total_spent,
        )
