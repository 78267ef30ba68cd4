from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import asyncio
import logging
from beacon.config import SCHEDULER_ENABLED
from beacon.database.init_db import init_db
from beacon.exceptions import EndpointNotFound, PlanLimitReached, PlanNotFound
from beacon.routers import endpoints
from beacon.services.scheduler import start_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()

    # Start the scheduler in the background
    scheduler_task = asyncio.create_task(start_scheduler()) if SCHEDULER_ENABLED else None

    yield

    # Cancel the scheduler on shutdown
    if scheduler_task is not None:
        scheduler_task.cancel()
        try:
            await scheduler_task
        except asyncio.CancelledError:
            pass


app = FastAPI(lifespan=lifespan)


@app.exception_handler(EndpointNotFound)
async def endpoint_not_found_handler(request: Request, exc: EndpointNotFound):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": "Endpoint not found"})


@app.exception_handler(PlanNotFound)
async def plan_not_found_handler(request: Request, exc: PlanNotFound):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": "No active subscription"})


@app.exception_handler(PlanLimitReached)
async def plan_limit_handler(request: Request, exc: PlanLimitReached):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


@app.get("/")
async def read_root():
    return {"message": "Welcome to the Beacon Uptime API"}


@app.get("/health")
async def get_health():
    return {"status": "ok"}


app.include_router(endpoints.router)
