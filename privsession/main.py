"""FastAPI application entry point for the session keeper."""

import os
import threading
from contextlib import asynccontextmanager
from typing import cast

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.types import ExceptionHandler

from privsession import __version__
from privsession.api.routes import limiter, router
from privsession.config import KeeperSettings
from privsession.models.events import Startup
from privsession.services.presentation import StatusBoard, send_desktop_notification
from privsession.services.session_service import SessionKeeper
from privsession.services.state_store import StateStore
from privsession.services.toggle import AppleScriptToggle
from privsession.services.watchers import AppWatcher, SleepWatcher


def build_keeper(settings: KeeperSettings, app_watcher: AppWatcher) -> SessionKeeper:
    """Wire the keeper to its real collaborators."""
    return SessionKeeper(
        settings=settings,
        toggle=AppleScriptToggle(settings.app_name, settings.menu_item),
        store=StateStore(settings.state_file),
        sink=StatusBoard(
            notifier=send_desktop_notification if settings.notifications else None
        ),
        is_app_running=app_watcher.is_running,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the keeper and its watchers for the lifetime of the server."""
    if os.getenv("PRIVSESSION_DISABLE_KEEPER", "").strip():
        yield
        return

    settings = KeeperSettings.from_env()
    app_watcher = AppWatcher(
        settings.app_name, poll_interval_seconds=settings.app_poll_interval
    )
    sleep_watcher = SleepWatcher(
        poll_interval_seconds=settings.sleep_poll_interval,
        gap_threshold_seconds=settings.sleep_gap_threshold,
    )
    keeper = build_keeper(settings, app_watcher)
    stop_event = threading.Event()

    threads = [
        threading.Thread(
            target=keeper.run,
            args=(stop_event,),
            daemon=True,
            name="privsession-keeper",
        ),
        threading.Thread(
            target=app_watcher.run_monitor,
            args=(stop_event, keeper.post),
            daemon=True,
            name="privsession-app-watcher",
        ),
        threading.Thread(
            target=sleep_watcher.run_monitor,
            args=(stop_event, keeper.post),
            daemon=True,
            name="privsession-sleep-watcher",
        ),
    ]
    keeper.post(Startup())
    for thread in threads:
        thread.start()

    app.state.keeper = keeper

    try:
        yield
    finally:
        stop_event.set()
        for thread in threads:
            thread.join(timeout=2.0)
        keeper.shutdown()
        app.state.keeper = None


# Create FastAPI app
app = FastAPI(
    title="Private Session Keeper",
    description="Keeps a time-bound private-mode permission renewed",
    version=__version__,
    lifespan=lifespan,
)

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(
    RateLimitExceeded, cast(ExceptionHandler, _rate_limit_exceeded_handler)
)

app.include_router(router, prefix="/api")


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


def main() -> None:
    """Run the keeper server."""
    import uvicorn

    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8765"))

    uvicorn.run("privsession.main:app", host=host, port=port)


if __name__ == "__main__":
    main()
