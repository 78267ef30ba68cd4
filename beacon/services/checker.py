import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import httpx

from beacon.config import CHECK_TIMEOUT_MS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckOutcome:
    """Normalized result of one probe attempt."""

    started_at: datetime
    status_code: int  # 0 when no response was received
    response_ms: int
    is_up: bool
    error_message: Optional[str] = None


def is_up_status(status_code: int) -> bool:
    return 200 <= status_code < 400


def _describe_error(exc: BaseException, timeout_ms: int) -> str:
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        return f"Timed out after {timeout_ms}ms"
    if isinstance(exc, httpx.ConnectError):
        return f"Connection error: {exc}"
    return f"{type(exc).__name__}: {exc}"


async def probe_endpoint(
    endpoint,
    client: Optional[httpx.AsyncClient] = None,
    timeout_ms: int = CHECK_TIMEOUT_MS,
) -> CheckOutcome:
    """
    Issues one request against endpoint.url using endpoint.method.
    Transport failures come back as a status_code=0 outcome, never as an exception.
    """
    started_at = datetime.now(timezone.utc)
    t0 = time.perf_counter()
    timeout = timeout_ms / 1000

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                response = await asyncio.wait_for(
                    own_client.request(endpoint.method, endpoint.url), timeout
                )
        else:
            response = await asyncio.wait_for(
                client.request(endpoint.method, endpoint.url, timeout=timeout), timeout
            )
    except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError, OSError) as exc:
        elapsed = int(round((time.perf_counter() - t0) * 1000))
        error_message = _describe_error(exc, timeout_ms)
        logger.info(f"Endpoint {endpoint.id} unreachable: {error_message}")
        return CheckOutcome(
            started_at=started_at,
            status_code=0,
            response_ms=elapsed,
            is_up=False,
            error_message=error_message,
        )

    elapsed = int(round((time.perf_counter() - t0) * 1000))
    return CheckOutcome(
        started_at=started_at,
        status_code=response.status_code,
        response_ms=elapsed,
        is_up=is_up_status(response.status_code),
    )
