"""Error codes and user-friendly messages.

This module defines the error catalog for ingestion, budgeting and provider
sync. Each error has:
- code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the caller
- retry_allowed: Whether resubmitting the same request can succeed
"""

ERROR_CATALOG: dict[str, dict] = {
    # Validation (400-class, fixable by the caller)
    "VAL_001": {
        "code": "VAL_001",
        "message": "Request payload failed validation",
        "user_message": "Invalid input data",
        "suggestion": "Please check your input and try again",
        "retry_allowed": False,
    },
    "VAL_002": {
        "code": "VAL_002",
        "message": "Budget record is missing a required field",
        "user_message": "Budget data requires: category, amount, month",
        "suggestion": "Send category, amount and a YYYY-MM month.",
        "retry_allowed": False,
    },
    "VAL_003": {
        "code": "VAL_003",
        "message": "Transaction record is invalid",
        "user_message": "The transaction is missing an id, date or has a negative amount.",
        "suggestion": "Only debits with a non-negative amount can be recorded.",
        "retry_allowed": False,
    },
    "VAL_004": {
        "code": "VAL_004",
        "message": "Unsupported provider",
        "user_message": "That data source isn't supported.",
        "suggestion": "Use one of: google_fit, dexcom, capitalone, quickbooks.",
        "retry_allowed": False,
    },
    "VAL_005": {
        "code": "VAL_005",
        "message": "Transaction id is already recorded for another user",
        "user_message": "This transaction belongs to a different account.",
        "suggestion": "Check the transaction id and provider, then try again.",
        "retry_allowed": False,
    },
    # Authentication (401)
    "AUTH_001": {
        "code": "AUTH_001",
        "message": "Missing or invalid API key",
        "user_message": "Unauthorized",
        "suggestion": "Send the shared key in the x-api-key header.",
        "retry_allowed": False,
    },
    "AUTH_002": {
        "code": "AUTH_002",
        "message": "Unknown or inactive user",
        "user_message": "Unknown user",
        "suggestion": "Send the id of an active user in the x-user-id header.",
        "retry_allowed": False,
    },
    # Storage (500-class, transient)
    "DB_001": {
        "code": "DB_001",
        "message": "Database operation failed",
        "user_message": "We couldn't save your data due to a database error.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    "DB_002": {
        "code": "DB_002",
        "message": "Database operation timed out",
        "user_message": "The database took too long to respond.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    # Provider sync
    "SYNC_001": {
        "code": "SYNC_001",
        "message": "Provider is not connected for this user",
        "user_message": "This data source isn't connected yet.",
        "suggestion": "Connect the account first, then sync again.",
        "retry_allowed": False,
    },
    "SYNC_002": {
        "code": "SYNC_002",
        "message": "Provider API request failed",
        "user_message": "The data source is unavailable right now.",
        "suggestion": "Please try syncing again later.",
        "retry_allowed": True,
    },
    "SYNC_003": {
        "code": "SYNC_003",
        "message": "Stored provider token has expired and could not be refreshed",
        "user_message": "Your connection to this data source has expired.",
        "suggestion": "Reconnect the account and sync again.",
        "retry_allowed": False,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details; a generic entry for unknown codes
    """
    if error_code not in ERROR_CATALOG:
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable."""
    return get_error(error_code)["retry_allowed"]
