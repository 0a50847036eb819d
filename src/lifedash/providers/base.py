"""Shared HTTP plumbing for third-party data providers."""

import logging
from typing import Any

import httpx

from lifedash.config import settings
from lifedash.core.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

# Column limits for provider free text.
DESCRIPTION_MAX_LENGTH = 500
NAME_MAX_LENGTH = 255

# Raised by per-record conversion of malformed provider data.
RECORD_ERRORS = (AttributeError, KeyError, TypeError, ValueError, ArithmeticError)


def clip(value: Any, limit: int) -> str | None:
    """Provider text as a string no longer than ``limit``, or None."""
    if value is None:
        return None
    return str(value)[:limit]


def records_of(data: dict[str, Any], key: str) -> list[Any]:
    """The list stored under ``key``; anything else reads as empty."""
    value = data.get(key)
    return value if isinstance(value, list) else []


def skip_record(provider: str, kind: str, reason: str) -> None:
    logger.warning(
        "Skipping malformed provider record",
        extra={"provider": provider, "record": kind, "reason": reason},
    )


class ProviderClient:
    """Bearer-token JSON client for one provider API.

    Transport errors, timeouts and non-2xx answers are all reported as
    UpstreamUnavailableError so sync jobs can fail the provider cleanly.
    """

    provider: str = "provider"

    def __init__(self, http: httpx.AsyncClient, access_token: str, base_url: str):
        self.http = http
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            response = await self.http.request(
                method,
                url,
                headers=headers,
                timeout=settings.http_timeout_seconds,
                **kwargs,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Provider API returned an error",
                extra={"provider": self.provider, "status_code": exc.response.status_code},
            )
            raise UpstreamUnavailableError(
                "SYNC_002",
                details={"provider": self.provider, "status_code": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(
                "Provider API request failed",
                extra={"provider": self.provider, "error_type": type(exc).__name__},
            )
            raise UpstreamUnavailableError(
                "SYNC_002", details={"provider": self.provider}
            ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamUnavailableError(
                "SYNC_002", details={"provider": self.provider, "reason": "invalid JSON"}
            ) from exc
        if not isinstance(data, dict):
            raise UpstreamUnavailableError(
                "SYNC_002", details={"provider": self.provider, "reason": "unexpected payload"}
            )
        return data
