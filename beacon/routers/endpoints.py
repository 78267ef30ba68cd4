import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from beacon.database.connection import get_db
from beacon.exceptions import PlanLimitReached, StorageError
from beacon.models import Endpoint, Subscription, User
from beacon.schemas.checks import CheckResultResponse, StatusResponse, UptimeResponse
from beacon.schemas.endpoint import EndpointCreate, EndpointResponse
from beacon.security import require_api_key
from beacon.services.monitor_service import check_one
from beacon.services.result_store import ResultStore, get_store
from beacon.services.stats_service import get_current_status, get_uptime

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/endpoints",
    tags=["endpoints"],
    dependencies=[Depends(require_api_key)]
)


async def _get_owned_endpoint(db: AsyncSession, endpoint_id: uuid.UUID, user_id: uuid.UUID) -> Endpoint:
    endpoint = await db.get(Endpoint, endpoint_id)
    if not endpoint or endpoint.owner_id != user_id:
        raise HTTPException(status_code=404, detail="Endpoint not found")
    return endpoint


@router.post("", response_model=EndpointResponse, status_code=status.HTTP_201_CREATED)
async def create_endpoint(
    endpoint_in: EndpointCreate,
    db: AsyncSession = Depends(get_db),
    store: ResultStore = Depends(get_store),
):
    user_query = await db.execute(
        select(User)
        .where(User.id == endpoint_in.user_id)
        .options(selectinload(User.subscription).selectinload(Subscription.plan))
    )
    user = user_query.scalars().first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    plan = user.plan
    if plan is None:
        raise HTTPException(status_code=403, detail="No active subscription")

    count_query = await db.execute(select(func.count(Endpoint.id)).where(Endpoint.owner_id == user.id))
    if (count_query.scalar() or 0) >= plan.max_endpoints:
        raise PlanLimitReached(plan.name, plan.max_endpoints)

    new_endpoint = Endpoint(
        owner_id=user.id,
        name=endpoint_in.name,
        url=str(endpoint_in.url),
        method=endpoint_in.method,
    )
    db.add(new_endpoint)
    await db.commit()
    await db.refresh(new_endpoint)

    # Immediate first data point; the scheduler retries on its next tick if this is lost.
    try:
        await check_one(new_endpoint, store)
    except StorageError:
        logger.exception(f"Initial check for endpoint {new_endpoint.id} not recorded")
    await db.refresh(new_endpoint)
    return new_endpoint


@router.get("", response_model=list[EndpointResponse])
async def list_endpoints(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    endpoints_query = await db.execute(
        select(Endpoint).where(Endpoint.owner_id == user_id).order_by(Endpoint.created_at.desc())
    )
    return endpoints_query.scalars().all()


@router.delete("/{endpoint_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_endpoint(endpoint_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    endpoint = await _get_owned_endpoint(db, endpoint_id, user_id)
    await db.delete(endpoint)
    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


## Recent uptime check results, newest first.
@router.get("/{endpoint_id}/checks", response_model=list[CheckResultResponse])
async def get_endpoint_checks(
    endpoint_id: uuid.UUID,
    user_id: uuid.UUID,
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    store: ResultStore = Depends(get_store),
):
    await _get_owned_endpoint(db, endpoint_id, user_id)
    return await store.recent_results(endpoint_id, limit)


@router.get("/{endpoint_id}/status", response_model=StatusResponse)
async def get_endpoint_status(
    endpoint_id: uuid.UUID,
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: ResultStore = Depends(get_store),
):
    await _get_owned_endpoint(db, endpoint_id, user_id)
    return await get_current_status(endpoint_id, store)


@router.get("/{endpoint_id}/uptime", response_model=UptimeResponse)
async def get_endpoint_uptime(
    endpoint_id: uuid.UUID,
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    store: ResultStore = Depends(get_store),
):
    await _get_owned_endpoint(db, endpoint_id, user_id)
    return await get_uptime(endpoint_id, store)
