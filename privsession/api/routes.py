"""FastAPI routes for the keeper status API."""

import os
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from privsession.models.events import ManualCheck
from privsession.models.session import StatusSnapshot
from privsession.services.session_service import SessionKeeper

router = APIRouter()

# Manual checks run UI automation in the target app, keep them rare
_check_rate_limit = os.environ.get("PRIVSESSION_CHECK_RATE_LIMIT", "10/minute")
limiter = Limiter(key_func=get_remote_address)


def get_keeper(request: Request) -> SessionKeeper:
    """Dependency for the keeper attached by the app lifespan.

    Raises:
        HTTPException: If the keeper is not running in this process.
    """
    keeper = getattr(request.app.state, "keeper", None)
    if keeper is None:
        raise HTTPException(status_code=503, detail="Keeper is not running")
    return keeper


@router.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint for API availability."""
    return {"status": "healthy", "api": "ready"}


@router.get("/status", response_model=StatusSnapshot)
def get_status(
    keeper: Annotated[SessionKeeper, Depends(get_keeper)],
) -> StatusSnapshot:
    """Current session status and time until expiry."""
    return keeper.snapshot()


@router.post("/check")
@limiter.limit(_check_rate_limit)
def request_check(
    request: Request,
    keeper: Annotated[SessionKeeper, Depends(get_keeper)],
) -> dict[str, bool]:
    """Queue a manual check of the private session."""
    keeper.post(ManualCheck())
    return {"queued": True}
