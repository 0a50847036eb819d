"""Security utilities for the shared-secret ingestion credential."""

import hmac
import logging

from lifedash.config import settings

logger = logging.getLogger(__name__)


def verify_api_key(api_key: str | None, expected_key: str | None = None) -> bool:
    """
    Check a caller-supplied API key against the configured secret.

    Args:
        api_key: Value of the x-api-key header
        expected_key: Secret to compare against (defaults to settings)

    Returns:
        True if the key matches, False otherwise (including when no
        secret is configured)
    """
    if expected_key is None:
        expected_key = settings.api_secret_key

    if not expected_key:
        logger.error("API_SECRET_KEY not configured; rejecting request")
        return False

    if not api_key:
        return False

    return hmac.compare_digest(api_key.encode(), expected_key.encode())


def mask_secret(value: str | None, visible: int = 4) -> str:
    """
    Mask a token for display or logging, keeping only the last characters.

    Args:
        value: Secret value
        visible: Number of trailing characters to keep

    Returns:
        Masked representation, e.g. "****abcd"
    """
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
