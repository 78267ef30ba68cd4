import asyncio
from beacon.config import SCHEDULER_TICK_SECONDS
from beacon.services.monitor_service import run_scheduler_tick
import logging

logger = logging.getLogger(__name__)


def _log_tick_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Error in scheduler tick", exc_info=exc)


async def start_scheduler(period_seconds: float = SCHEDULER_TICK_SECONDS, tick=run_scheduler_tick):
    """
    Fires a tick every period_seconds without waiting on the previous one,
    so a slow tick can overlap the next. Runs until cancelled.
    """
    logger.info(f"Starting monitoring scheduler (every {period_seconds}s)...")
    in_flight: set[asyncio.Task] = set()
    loop = asyncio.get_running_loop()
    next_run = loop.time()
    try:
        while True:
            task = asyncio.create_task(tick())
            in_flight.add(task)
            task.add_done_callback(in_flight.discard)
            task.add_done_callback(_log_tick_failure)

            next_run += period_seconds
            await asyncio.sleep(max(0.0, next_run - loop.time()))
    finally:
        for task in in_flight:
            task.cancel()
        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)
