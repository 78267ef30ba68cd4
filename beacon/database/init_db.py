import asyncio
import logging

from sqlalchemy.future import select

from beacon.database.connection import engine, async_session
from beacon.models import Base, Plan

logger = logging.getLogger(__name__)

DEFAULT_PLANS = (
    {"name": "Free", "price": 0, "max_endpoints": 1, "check_interval": 5, "retention_hrs": 24},
    {"name": "Pro", "price": 1500, "max_endpoints": 999, "check_interval": 1, "retention_hrs": 0},
)


async def seed_plans(session_factory=async_session):
    """Inserts the default plans; existing plans with the same name are left untouched."""
    async with session_factory() as session:
        async with session.begin():
            result = await session.execute(select(Plan.name))
            existing = set(result.scalars().all())
            for plan in DEFAULT_PLANS:
                if plan["name"] not in existing:
                    session.add(Plan(**plan))
                    logger.info(f"Seeded {plan['name']} plan")


async def init_db(bind=engine, session_factory=async_session):
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_plans(session_factory)
    logger.info("Database tables created.")


if __name__ == "__main__":
    asyncio.run(init_db())
