from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from beacon.exceptions import PlanNotFound
from beacon.services.result_store import ResultStore, as_utc

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

UP = "UP"
DOWN = "DOWN"
UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class EndpointStatus:
    status: str
    last_checked_at: Optional[datetime] = None
    response_ms: Optional[int] = None
    status_code: Optional[int] = None


@dataclass(frozen=True)
class UptimeReport:
    uptime_percent: Optional[float]
    total_checks: int
    up_checks: int
    window_hrs: int


def retention_cutoff(retention_hrs: int, now: datetime) -> datetime:
    """Start of the uptime window; 0 hours means all history."""
    if not retention_hrs:
        return EPOCH
    return now - timedelta(hours=retention_hrs)


def compute_uptime(results: Iterable, window_hrs: int) -> UptimeReport:
    total = 0
    up = 0
    for result in results:
        total += 1
        if result.is_up:
            up += 1

    if total == 0:
        return UptimeReport(uptime_percent=None, total_checks=0, up_checks=0, window_hrs=window_hrs)

    return UptimeReport(
        uptime_percent=round(100 * up / total, 2),
        total_checks=total,
        up_checks=up,
        window_hrs=window_hrs,
    )


async def get_current_status(endpoint_id, store: Optional[ResultStore] = None) -> EndpointStatus:
    store = store or ResultStore()
    latest = await store.latest_result(endpoint_id)
    if latest is None:
        return EndpointStatus(status=UNKNOWN)

    return EndpointStatus(
        status=UP if latest.is_up else DOWN,
        last_checked_at=as_utc(latest.checked_at),
        response_ms=latest.response_ms,
        status_code=latest.status_code,
    )


async def get_uptime(
    endpoint_id,
    store: Optional[ResultStore] = None,
    now: Optional[datetime] = None,
) -> UptimeReport:
    """Uptime over the owner's plan retention window."""
    store = store or ResultStore()
    now = now or datetime.now(timezone.utc)

    _, plan = await store.get_endpoint_with_plan(endpoint_id)
    if plan is None:
        raise PlanNotFound(f"No active subscription for endpoint {endpoint_id}")

    cutoff = retention_cutoff(plan.retention_hrs, now)
    results = await store.results_since(endpoint_id, cutoff)
    return compute_uptime(results, plan.retention_hrs)
