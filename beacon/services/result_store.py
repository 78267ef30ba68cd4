"""
Durable, append-only log of check outcomes, plus the endpoint reads and
last_checked_at writes the scheduler and status engine depend on.
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload

from beacon.database.connection import async_session
from beacon.exceptions import EndpointNotFound, StorageError
from beacon.models import CheckResult, Endpoint, Plan, Subscription, User
from beacon.services.checker import CheckOutcome

logger = logging.getLogger(__name__)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Backends such as SQLite hand timestamps back naive; they are stored as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _plan_loader():
    return selectinload(Endpoint.owner).selectinload(User.subscription).selectinload(Subscription.plan)


class ResultStore:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or async_session

    # --- writes ---

    @staticmethod
    def _new_result(endpoint_id, outcome: CheckOutcome, timestamp: datetime) -> CheckResult:
        return CheckResult(
            endpoint_id=endpoint_id,
            checked_at=timestamp,
            status_code=outcome.status_code,
            response_ms=outcome.response_ms,
            is_up=outcome.is_up,
            error_message=outcome.error_message,
        )

    @staticmethod
    async def _advance_last_checked(session, endpoint_id, timestamp: datetime) -> None:
        stmt = (
            update(Endpoint)
            .where(
                Endpoint.id == endpoint_id,
                or_(Endpoint.last_checked_at.is_(None), Endpoint.last_checked_at < timestamp),
            )
            .values(last_checked_at=timestamp)
            .execution_options(synchronize_session=False)
        )
        await session.execute(stmt)

    async def append(self, endpoint_id, outcome: CheckOutcome, timestamp: datetime) -> CheckResult:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = self._new_result(endpoint_id, outcome, timestamp)
                    session.add(result)
                return result
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"Failed to append result for endpoint {endpoint_id}: {exc}") from exc

    async def update_last_checked(self, endpoint_id, timestamp: datetime) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await self._advance_last_checked(session, endpoint_id, timestamp)
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"Failed to update last_checked_at for endpoint {endpoint_id}: {exc}") from exc

    async def record_check(self, endpoint_id, outcome: CheckOutcome) -> CheckResult:
        """
        Appends the outcome and advances last_checked_at to the check's start
        time in a single transaction.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    endpoint = await session.get(Endpoint, endpoint_id)
                    if endpoint is None:
                        raise StorageError(f"Endpoint {endpoint_id} no longer exists")
                    result = self._new_result(endpoint_id, outcome, outcome.started_at)
                    session.add(result)
                    await self._advance_last_checked(session, endpoint_id, outcome.started_at)
                return result
        except (SQLAlchemyError, OSError) as exc:
            raise StorageError(f"Failed to record check for endpoint {endpoint_id}: {exc}") from exc

    # --- reads ---

    async def recent_results(self, endpoint_id, limit: int = 100) -> Sequence[CheckResult]:
        async with self.session_factory() as session:
            stmt = (
                select(CheckResult)
                .where(CheckResult.endpoint_id == endpoint_id)
                .order_by(CheckResult.checked_at.desc())
                .limit(limit)
            )
            result = await session.execute(stmt)
            return result.scalars().all()

    async def results_since(self, endpoint_id, cutoff: datetime) -> Sequence[CheckResult]:
        async with self.session_factory() as session:
            stmt = select(CheckResult).where(
                CheckResult.endpoint_id == endpoint_id,
                CheckResult.checked_at >= cutoff,
            )
            result = await session.execute(stmt)
            return result.scalars().all()

    async def latest_result(self, endpoint_id) -> Optional[CheckResult]:
        results = await self.recent_results(endpoint_id, limit=1)
        return results[0] if results else None

    async def list_active_endpoints_with_plan(self) -> list[tuple[Endpoint, Optional[Plan]]]:
        async with self.session_factory() as session:
            stmt = select(Endpoint).where(Endpoint.is_active == True).options(_plan_loader())
            result = await session.execute(stmt)
            return [(endpoint, endpoint.owner.plan) for endpoint in result.scalars().all()]

    async def get_endpoint_with_plan(self, endpoint_id) -> tuple[Endpoint, Optional[Plan]]:
        async with self.session_factory() as session:
            stmt = select(Endpoint).where(Endpoint.id == endpoint_id).options(_plan_loader())
            result = await session.execute(stmt)
            endpoint = result.scalars().first()
            if endpoint is None:
                raise EndpointNotFound(endpoint_id)
            return endpoint, endpoint.owner.plan


## Define Dependency for FastAPI
def get_store() -> ResultStore:
    return ResultStore()
