"""Deterministic transaction categorization.

Two fixed taxonomies map free text to a budget category label:

- personal: matched against the transaction description (bank/card feeds)
- business: matched against the expense account name (bookkeeping feeds)

Matching is a case-insensitive substring test. Rules are evaluated in
declaration order and the first match wins, so a description containing both
"grocery" and "netflix" is "Food & Groceries". The keyword tables are the
product contract; do not reorder them to "improve" a match.
"""

from __future__ import annotations

PERSONAL_FALLBACK = "Other"
BUSINESS_FALLBACK = "Business Expenses"

# Ordering matters: earlier matches win.
_PERSONAL_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("Food & Groceries", ("grocery", "food", "restaurant")),
    ("Transportation", ("gas", "fuel", "exxon", "shell")),
    ("Shopping", ("amazon", "target", "walmart")),
    ("Entertainment", ("netflix", "spotify", "subscription")),
    ("Utilities", ("electric", "water", "internet", "phone")),
    ("Housing", ("rent", "mortgage")),
]

_BUSINESS_RULES: list[tuple[str, tuple[str, ...]]] = [
    ("Office & Supplies", ("office", "supplies")),
    ("Travel & Entertainment", ("travel", "meals", "entertainment")),
    ("Marketing", ("advertising", "marketing")),
    ("Utilities", ("utilities", "phone", "internet")),
    ("Rent & Leases", ("rent", "lease")),
    ("Insurance", ("insurance",)),
    ("Professional Services", ("professional", "legal")),
    ("Software & Subscriptions", ("software", "subscriptions")),
    ("Vehicle Expenses", ("vehicle", "auto", "gas")),
]

CATEGORIES: tuple[str, ...] = tuple(label for label, _ in _PERSONAL_RULES) + (PERSONAL_FALLBACK,)
BUSINESS_CATEGORIES: tuple[str, ...] = tuple(label for label, _ in _BUSINESS_RULES) + (
    BUSINESS_FALLBACK,
)


def _first_match(
    text: str | None, rules: list[tuple[str, tuple[str, ...]]], fallback: str
) -> str:
    lowered = (text or "").lower()
    if not lowered:
        return fallback

    for label, keywords in rules:
        if any(keyword in lowered for keyword in keywords):
            return label

    return fallback


def categorize(description: str | None) -> str:
    """Infer a personal budget category from a transaction description.

    Args:
        description: Free-text description; may be empty.

    Returns:
        A label from CATEGORIES ("Other" when nothing matches).
    """
    return _first_match(description, _PERSONAL_RULES, PERSONAL_FALLBACK)


def categorize_business_account(account_name: str | None) -> str:
    """Map a bookkeeping expense account name to a business budget category.

    Returns:
        A label from BUSINESS_CATEGORIES ("Business Expenses" when nothing matches).
    """
    return _first_match(account_name, _BUSINESS_RULES, BUSINESS_FALLBACK)

