"""Transaction categorization utilities.

Deterministic, local, keyword-based categorization (no network calls), so
ingestion stays fast and results are auditable.
"""

from .rules import categorize, categorize_business_account

__all__ = ["categorize", "categorize_business_account"]
