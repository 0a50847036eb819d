"""Transaction model representing one expense pulled from an external account."""
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Numeric, String, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from lifedash.models.base import BaseModel


class Transaction(BaseModel):
    """A categorized debit, deduplicated by (provider, transaction_id)."""

    __tablename__ = "transactions"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(32), nullable=False, default="manual")
    account_id: Mapped[str] = mapped_column(String(255), nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    merchant: Mapped[str | None] = mapped_column(String(255), nullable=True)
    account_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    txn_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("provider", "transaction_id", name="uq_transactions_provider_txn_id"),
        Index("ix_transactions_user_id_txn_date", "user_id", "txn_date"),
    )

    @property
    def month(self) -> str:
        return self.txn_date.strftime("%Y-%m")

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, provider={self.provider}, "
            f"transaction_id={self.transaction_id}, amount={self.amount})>"
        )
