"""Google Fit daily step counts."""

from datetime import date, datetime, time, timezone
from typing import Any

from lifedash.providers.base import RECORD_ERRORS, ProviderClient, records_of, skip_record
from lifedash.schemas.health import MAX_INT_METRIC

STEP_COUNT_TYPE = "com.google.step_count.delta"
STEP_COUNT_SOURCE = "derived:com.google.step_count.delta:com.google.android.gms:estimated_steps"
DAY_MILLIS = 86_400_000


class GoogleFitClient(ProviderClient):
    provider = "google_fit"

    async def fetch_step_count(self, day: date) -> int:
        """Total steps recorded on ``day`` (UTC)."""
        start = int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp() * 1000)
        data = await self.request(
            "POST",
            "/users/me/dataset:aggregate",
            json={
                "aggregateBy": [
                    {"dataTypeName": STEP_COUNT_TYPE, "dataSourceId": STEP_COUNT_SOURCE}
                ],
                "bucketByTime": {"durationMillis": DAY_MILLIS},
                "startTimeMillis": start,
                "endTimeMillis": start + DAY_MILLIS,
            },
        )
        return total_steps(data)


def _point_steps(point: dict[str, Any]) -> int:
    values = point.get("value") or []
    if not values:
        return 0
    steps = int(values[0].get("intVal") or 0)
    if steps < 0:
        raise ValueError("negative step count")
    return steps


def total_steps(data: dict[str, Any]) -> int:
    """Sum the step points of the first bucket's first dataset.

    Malformed points are skipped; the total is capped at the column limit.
    """
    buckets = records_of(data, "bucket")
    if not buckets or not isinstance(buckets[0], dict):
        return 0
    datasets = records_of(buckets[0], "dataset")
    if not datasets or not isinstance(datasets[0], dict):
        return 0
    steps = 0
    for point in records_of(datasets[0], "point"):
        try:
            steps += _point_steps(point)
        except RECORD_ERRORS as exc:
            skip_record(GoogleFitClient.provider, "point", type(exc).__name__)
    return min(steps, MAX_INT_METRIC)
