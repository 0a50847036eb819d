"""Dexcom continuous glucose monitor readings."""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from lifedash.providers.base import RECORD_ERRORS, ProviderClient, records_of, skip_record
from lifedash.schemas.health import HealthMetrics

LOOKBACK_DAYS = 7


class DexcomClient(ProviderClient):
    provider = "dexcom"

    async def fetch_egvs(self, start: datetime, end: datetime) -> list[dict[str, Any]]:
        """Estimated glucose values between ``start`` and ``end``."""
        data = await self.request(
            "GET",
            "/v2/users/self/egvs",
            params={
                "startDate": start.strftime("%Y-%m-%dT%H:%M:%S"),
                "endDate": end.strftime("%Y-%m-%dT%H:%M:%S"),
            },
        )
        return records_of(data, "egvs")


def _parse_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _reading(reading: dict[str, Any]) -> tuple[datetime, Decimal] | None:
    if reading.get("value") is None or not reading.get("systemTime"):
        return None
    taken_at = _parse_time(reading["systemTime"])
    # Same bounds as a directly ingested glucose value.
    glucose = HealthMetrics(glucose=Decimal(str(reading["value"]))).glucose
    return taken_at, glucose


def latest_glucose_by_day(egvs: list[dict[str, Any]]) -> dict[date, Decimal]:
    """Keep the most recent reading of each UTC day. Malformed readings are skipped."""
    latest: dict[date, tuple[datetime, Decimal]] = {}
    for raw in egvs:
        try:
            reading = _reading(raw)
        except RECORD_ERRORS as exc:
            skip_record(DexcomClient.provider, "egv", type(exc).__name__)
            continue
        if reading is None:
            continue

        taken_at, glucose = reading
        day = taken_at.date()
        if day not in latest or taken_at > latest[day][0]:
            latest[day] = (taken_at, glucose)
    return {day: value for day, (_, value) in latest.items()}
