"""Capital One accounts and transactions."""

from datetime import date
from decimal import Decimal
from typing import Any

from lifedash.providers.base import (
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    RECORD_ERRORS,
    ProviderClient,
    clip,
    records_of,
    skip_record,
)
from lifedash.schemas.transaction import TransactionCreate

TRANSACTIONS_PAGE_LIMIT = 100
CENTS = Decimal("0.01")


class CapitalOneClient(ProviderClient):
    provider = "capitalone"

    async def fetch_accounts(self) -> list[dict[str, Any]]:
        data = await self.request("GET", "/accounts")
        return records_of(data, "accounts")

    async def fetch_transactions(self, account_id: str) -> list[dict[str, Any]]:
        data = await self.request(
            "GET",
            f"/accounts/{account_id}/transactions",
            params={"limit": TRANSACTIONS_PAGE_LIMIT},
        )
        return records_of(data, "transactions")


def _debit(raw: dict[str, Any], account_id: str, account_name: str | None) -> TransactionCreate | None:
    amount = Decimal(str(raw.get("amount")))
    if not amount.is_finite() or amount >= 0:
        return None

    return TransactionCreate(
        transaction_id=str(raw["transactionId"]),
        amount=abs(amount).quantize(CENTS),
        date=date.fromisoformat(raw["transactionDate"][:10]),
        description=clip(raw.get("description"), DESCRIPTION_MAX_LENGTH),
        merchant=clip(raw.get("merchantName"), NAME_MAX_LENGTH),
        account_id=account_id,
        account_name=account_name,
    )


def debit_transactions(
    account: dict[str, Any], transactions: list[dict[str, Any]]
) -> list[TransactionCreate]:
    """
    Convert raw account transactions to pipeline records.

    Negative amounts are debits (expenses); credits and deposits are
    dropped. Stored amounts are the positive magnitude. Malformed
    transactions are logged and skipped.
    """
    account_id = clip(account.get("accountId"), NAME_MAX_LENGTH)
    account_name = clip(account.get("nickname") or account.get("productName"), NAME_MAX_LENGTH)

    records = []
    for raw in transactions:
        try:
            record = _debit(raw, account_id, account_name)
        except RECORD_ERRORS as exc:
            skip_record(CapitalOneClient.provider, "transaction", type(exc).__name__)
            continue
        if record is not None:
            records.append(record)
    return records
