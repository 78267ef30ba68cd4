import logging

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from beacon.config import DATABASE_URL, DB_ECHO

logger = logging.getLogger(__name__)

_SSL_ON = {"true", "require", "verify-ca", "verify-full"}
_SSL_OFF = {"false", "disable"}


def engine_options(database_url: str) -> tuple[URL, dict]:
    """
    Resolves a DATABASE_URL into the URL and connect_args handed to the engine.

    Hosted Postgres providers hand out postgres:// URLs with libpq flags
    (sslmode, channel_binding). These are upgraded to the asyncpg driver, and
    the TLS flag moves into connect_args since asyncpg does not read it from
    the query string.
    """
    url = make_url(database_url)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername="postgresql+asyncpg")

    connect_args = {}
    if url.drivername != "postgresql+asyncpg":
        return url, connect_args

    ssl_flag = url.query.get("sslmode", url.query.get("ssl"))
    if ssl_flag is not None:
        lowered = ssl_flag.lower()
        if lowered in _SSL_ON:
            connect_args["ssl"] = True
        elif lowered in _SSL_OFF:
            connect_args["ssl"] = False
        else:
            connect_args["ssl"] = ssl_flag

    channel_binding = url.query.get("channel_binding")
    if channel_binding is not None and channel_binding.lower() not in {"prefer", "disable"}:
        logger.warning(f"Ignoring channel_binding={channel_binding} in DATABASE_URL: asyncpg does not support it")

    url = url.difference_update_query(["sslmode", "ssl", "channel_binding"])
    return url, connect_args


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless each connection turns it on."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    url, connect_args = engine_options(database_url)
    engine = create_async_engine(url, connect_args=connect_args, **kwargs)
    if url.get_backend_name() == "sqlite":
        enable_sqlite_foreign_keys(engine)
    return engine


## Create Async Engine
engine = build_engine(DATABASE_URL, echo=DB_ECHO)


# Create Session Factory

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


## Define Dependency for FastAPI
async def get_db():
    async with async_session() as session:
        yield session
