"""OAuth refresh-token grant for stored provider connections.

Capital One, QuickBooks and Dexcom authenticate the client with HTTP Basic
credentials; Google takes them in the form body.
"""

import logging
from dataclasses import dataclass

import httpx

from lifedash.config import settings
from lifedash.core.exceptions import UpstreamUnavailableError
from lifedash.schemas.connection import ConnectionTokens

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenEndpoint:
    url: str
    client_id: str | None
    client_secret: str | None
    basic_auth: bool = True


def token_endpoint(provider: str) -> TokenEndpoint:
    """Token URL and client credentials for a provider, read from settings."""
    return TokenEndpoint(
        url=getattr(settings, f"{provider}_token_url"),
        client_id=getattr(settings, f"{provider}_client_id"),
        client_secret=getattr(settings, f"{provider}_client_secret"),
        basic_auth=provider != "google_fit",
    )


def _refresh_failed(provider: str, reason: str) -> UpstreamUnavailableError:
    logger.warning("Provider token refresh failed", extra={"provider": provider, "reason": reason})
    return UpstreamUnavailableError("SYNC_003", details={"provider": provider}, http_status=400)


async def refresh_access_token(
    http: httpx.AsyncClient, provider: str, refresh_token: str
) -> ConnectionTokens:
    """
    Exchange a refresh token for a new access token.

    Providers that do not rotate refresh tokens keep the one passed in.

    Raises:
        UpstreamUnavailableError: SYNC_003 when the client is not configured
            or the provider rejects the grant
    """
    endpoint = token_endpoint(provider)
    if not endpoint.client_id or not endpoint.client_secret:
        raise _refresh_failed(provider, "client credentials not configured")

    form = {"grant_type": "refresh_token", "refresh_token": refresh_token}
    auth = None
    if endpoint.basic_auth:
        auth = (endpoint.client_id, endpoint.client_secret)
    else:
        form.update(client_id=endpoint.client_id, client_secret=endpoint.client_secret)

    try:
        response = await http.post(
            endpoint.url,
            data=form,
            auth=auth,
            headers={"Accept": "application/json"},
            timeout=settings.http_timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPStatusError as exc:
        raise _refresh_failed(provider, f"status {exc.response.status_code}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise _refresh_failed(provider, type(exc).__name__) from exc

    try:
        return ConnectionTokens(
            access_token=payload.get("access_token"),
            refresh_token=payload.get("refresh_token") or refresh_token,
            expires_in=payload.get("expires_in"),
        )
    except (AttributeError, ValueError) as exc:
        raise _refresh_failed(provider, "unexpected token response") from exc
