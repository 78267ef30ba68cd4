import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from beacon.config import CHECK_TIMEOUT_MS, SCHEDULER_MAX_CONCURRENCY
from beacon.exceptions import StorageError
from beacon.models import CheckResult, Endpoint, Plan
from beacon.services.checker import probe_endpoint
from beacon.services.result_store import ResultStore, as_utc

logger = logging.getLogger(__name__)


@dataclass
class TickSummary:
    total: int = 0
    due: int = 0
    checked: int = 0
    failed: int = 0
    skipped_no_plan: int = 0


def is_due(endpoint: Endpoint, plan: Optional[Plan], now: datetime) -> bool:
    """
    An endpoint is due when its owner has a plan and it was either never
    checked or last checked at least one plan interval ago.
    """
    if plan is None:
        return False

    last_checked = as_utc(endpoint.last_checked_at)
    if last_checked is None:
        return True

    return now - last_checked >= timedelta(minutes=plan.check_interval)


async def check_one(
    endpoint: Endpoint,
    store: Optional[ResultStore] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> CheckResult:
    """
    Probes a single endpoint and records the outcome.
    Raises StorageError if the result could not be persisted.
    """
    store = store or ResultStore()
    outcome = await probe_endpoint(endpoint, client=client)
    result = await store.record_check(endpoint.id, outcome)
    logger.debug(
        f"Endpoint {endpoint.id} checked: status={outcome.status_code} "
        f"up={outcome.is_up} {outcome.response_ms}ms"
    )
    return result


async def run_scheduler_tick(
    store: Optional[ResultStore] = None,
    now: Optional[datetime] = None,
    client: Optional[httpx.AsyncClient] = None,
    max_concurrency: int = SCHEDULER_MAX_CONCURRENCY,
) -> TickSummary:
    """
    Checks every active endpoint that is due under its owner's plan.
    Due checks run concurrently, capped at max_concurrency in flight.
    """
    store = store or ResultStore()
    now = now or datetime.now(timezone.utc)
    summary = TickSummary()

    endpoints = await store.list_active_endpoints_with_plan()
    summary.total = len(endpoints)

    due = []
    for endpoint, plan in endpoints:
        if plan is None:
            summary.skipped_no_plan += 1
            logger.debug(f"Endpoint {endpoint.id} skipped: owner has no plan")
            continue
        if is_due(endpoint, plan, now):
            due.append(endpoint)
    summary.due = len(due)

    if not due:
        logger.debug("No endpoints due for checking.")
        return summary

    semaphore = asyncio.Semaphore(max_concurrency)

    async def _guarded_check(endpoint: Endpoint, shared_client: httpx.AsyncClient) -> bool:
        async with semaphore:
            try:
                await check_one(endpoint, store, client=shared_client)
                return True
            except StorageError:
                logger.exception(f"Check for endpoint {endpoint.id} lost: result not persisted")
                return False
            except Exception:
                # One endpoint's failure never aborts the rest of the tick.
                logger.exception(f"Check for endpoint {endpoint.id} failed unexpectedly")
                return False

    async def _fan_out(shared_client: httpx.AsyncClient) -> list:
        return await asyncio.gather(*(_guarded_check(endpoint, shared_client) for endpoint in due))

    if client is None:
        async with httpx.AsyncClient(
            timeout=CHECK_TIMEOUT_MS / 1000,
            follow_redirects=True,
            limits=httpx.Limits(max_connections=max_concurrency),
        ) as tick_client:
            outcomes = await _fan_out(tick_client)
    else:
        outcomes = await _fan_out(client)

    summary.checked = sum(1 for ok in outcomes if ok)
    summary.failed = summary.due - summary.checked

    logger.info(
        f"Scheduler tick: {summary.checked} checked, {summary.failed} failed, "
        f"{summary.due}/{summary.total} due, {summary.skipped_no_plan} without plan"
    )
    return summary
