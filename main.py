import os

import uvicorn


def run() -> None:
    port = int(os.getenv("PORT", "8000"))
    reload_flag = os.getenv("UVICORN_RELOAD", "false").lower() in {"1", "true", "yes", "on"}
    log_level = os.getenv("LOG_LEVEL", "info").lower()
    # The scheduler runs inside the app lifespan, so a single worker process owns the timer.
    uvicorn.run(app="beacon.app:app", host="0.0.0.0", port=port, reload=reload_flag, log_level=log_level, workers=1)


if __name__ == "__main__":
    run()
