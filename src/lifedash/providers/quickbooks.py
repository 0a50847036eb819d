"""QuickBooks purchases (business expenses) and invoices (business income)."""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from lifedash.categorization.rules import categorize_business_account
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

QUERY_MAX_RESULTS = 100
LOOKBACK_DAYS = 90
EXPENSE_LINE_TYPE = "AccountBasedExpenseLineDetail"
QUICKBOOKS_ACCOUNT_ID = "quickbooks"
QUICKBOOKS_ACCOUNT_NAME = "QuickBooks"
BUSINESS_INCOME_CATEGORY = "Business Income"
CENTS = Decimal("0.01")


def _decimal(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value if value is not None else 0))
        return amount.quantize(CENTS) if amount.is_finite() else Decimal("0")
    except (InvalidOperation, ValueError):
        return Decimal("0")


class QuickBooksClient(ProviderClient):
    provider = "quickbooks"

    def __init__(self, *args: Any, realm_id: str, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.realm_id = realm_id

    async def _query(self, entity: str, since: date) -> list[dict[str, Any]]:
        query = (
            f"SELECT * FROM {entity} WHERE TxnDate >= '{since.isoformat()}' "
            f"MAXRESULTS {QUERY_MAX_RESULTS}"
        )
        data = await self.request(
            "GET", f"/v3/company/{self.realm_id}/query", params={"query": query}
        )
        response = data.get("QueryResponse")
        return records_of(response, entity) if isinstance(response, dict) else []

    async def fetch_purchases(self, since: date) -> list[dict[str, Any]]:
        return await self._query("Purchase", since)

    async def fetch_invoices(self, since: date) -> list[dict[str, Any]]:
        return await self._query("Invoice", since)


def _purchase_lines(purchase: dict[str, Any]) -> list[tuple[TransactionCreate, str]]:
    txn_date = date.fromisoformat(purchase["TxnDate"][:10])
    merchant = clip((purchase.get("EntityRef") or {}).get("name") or "Unknown", NAME_MAX_LENGTH)

    records = []
    for line in records_of(purchase, "Line"):
        amount = _decimal(line.get("Amount"))
        if line.get("DetailType") != EXPENSE_LINE_TYPE or amount <= 0:
            continue

        account_ref = (line.get(EXPENSE_LINE_TYPE) or {}).get("AccountRef") or {}
        category = categorize_business_account(account_ref.get("name") or "Other")
        record = TransactionCreate(
            transaction_id=f"qb_{purchase['Id']}_{line.get('Id')}",
            amount=amount,
            date=txn_date,
            description=clip(
                line.get("Description") or purchase.get("PrivateNote") or "QuickBooks Expense",
                DESCRIPTION_MAX_LENGTH,
            ),
            merchant=merchant,
            account_id=QUICKBOOKS_ACCOUNT_ID,
            account_name=QUICKBOOKS_ACCOUNT_NAME,
        )
        records.append((record, category))
    return records


def expense_lines(purchases: list[dict[str, Any]]) -> list[tuple[TransactionCreate, str]]:
    """
    Flatten purchases into one record per positive expense line.

    A malformed purchase is logged and skipped as a whole.

    Returns:
        (record, business category) pairs; the category comes from the
        line's expense account name.
    """
    records = []
    for purchase in purchases:
        try:
            records.extend(_purchase_lines(purchase))
        except RECORD_ERRORS as exc:
            skip_record(QuickBooksClient.provider, "purchase", type(exc).__name__)
    return records


def income_for_month(invoices: list[dict[str, Any]], month: str) -> Decimal:
    """Sum invoice totals dated within ``month`` (YYYY-MM)."""
    return sum(
        (
            _decimal(invoice.get("TotalAmt"))
            for invoice in invoices
            if isinstance(invoice, dict) and str(invoice.get("TxnDate", "")).startswith(month)
        ),
        Decimal("0"),
    )
