"""Third-party provider API clients."""

import httpx

from lifedash.config import settings
from lifedash.core.exceptions import ValidationError
from lifedash.models.provider_connection import ProviderConnection
from lifedash.providers.base import ProviderClient
from lifedash.providers.capitalone import CapitalOneClient
from lifedash.providers.dexcom import DexcomClient
from lifedash.providers.google_fit import GoogleFitClient
from lifedash.providers.quickbooks import QuickBooksClient


def build_client(http: httpx.AsyncClient, connection: ProviderConnection) -> ProviderClient:
    """Create the API client for a stored provider connection."""
    token = connection.access_token
    if connection.provider == "capitalone":
        return CapitalOneClient(http, token, settings.capitalone_api_url)
    if connection.provider == "quickbooks":
        if not connection.realm_id:
            raise ValidationError("SYNC_001", details={"provider": "quickbooks", "reason": "realm_id"})
        return QuickBooksClient(
            http, token, settings.quickbooks_api_url, realm_id=connection.realm_id
        )
    if connection.provider == "dexcom":
        return DexcomClient(http, token, settings.dexcom_api_url)
    if connection.provider == "google_fit":
        return GoogleFitClient(http, token, settings.google_fit_api_url)
    raise ValidationError("VAL_004", details={"provider": connection.provider})


__all__ = [
    "CapitalOneClient",
    "DexcomClient",
    "GoogleFitClient",
    "ProviderClient",
    "QuickBooksClient",
    "build_client",
]
