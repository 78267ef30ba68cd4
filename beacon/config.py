from dotenv import load_dotenv
import os
from pathlib import Path
import logging

# Explicitly find the .env file in the project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path, override=True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


def _as_bool(value: str) -> bool:
    return value.lower() in {"1", "true", "yes", "on"}


# Driver and TLS query flags are resolved in beacon.database.connection.
DATABASE_URL = os.getenv("DATABASE_URL")
API_ACCESS_TOKEN = os.getenv("API_ACCESS_TOKEN")

DB_ECHO = _as_bool(os.getenv("DB_ECHO", "false"))

# Check Executor
CHECK_TIMEOUT_MS = int(os.getenv("CHECK_TIMEOUT_MS", "5000"))

# Scheduler
SCHEDULER_TICK_SECONDS = int(os.getenv("SCHEDULER_TICK_SECONDS", "60"))
SCHEDULER_MAX_CONCURRENCY = int(os.getenv("SCHEDULER_MAX_CONCURRENCY", "20"))
SCHEDULER_ENABLED = _as_bool(os.getenv("SCHEDULER_ENABLED", "true"))

if not DATABASE_URL:
    raise ValueError("DATABASE_URL is not set in .env file or environment variables")

if not API_ACCESS_TOKEN:
    raise ValueError("API_ACCESS_TOKEN must be set before running the API server")

if SCHEDULER_MAX_CONCURRENCY < 1:
    raise ValueError("SCHEDULER_MAX_CONCURRENCY must be at least 1")
