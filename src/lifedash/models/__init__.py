"""Database models."""
from lifedash.models.user import User
from lifedash.models.transaction import Transaction
from lifedash.models.budget_category import BudgetCategory
from lifedash.models.health_data import HealthData
from lifedash.models.provider_connection import ProviderConnection

__all__ = ["User", "Transaction", "BudgetCategory", "HealthData", "ProviderConnection"]
