from __future__ import annotations

import secrets
from functools import lru_cache
from typing import Optional

from fastapi import Header, HTTPException

from ..config import settings
from ..database import get_engine
from ..services.poll import PollService


@lru_cache(maxsize=1)
def get_service() -> PollService:
    """
    FastAPI dependency: the process-wide PollService bound to the app engine.
    Tests override this with app.dependency_overrides.
    """
    return PollService(
        get_engine(),
        poll_timezone=settings.poll_timezone,
        retry_attempts=settings.store_retry_attempts,
        retry_base_delay=settings.store_retry_base_delay,
    )


def require_admin(x_admin_password: Optional[str] = Header(default=None)) -> None:
    """
    Admin gate: X-Admin-Password must match ADMIN_PASSWORD.
    With no ADMIN_PASSWORD configured every admin request is refused.
    """
    expected = settings.admin_password
    if not expected:
        raise HTTPException(status_code=403, detail="Admin access is not configured")
    if not x_admin_password or not secrets.compare_digest(x_admin_password, expected):
        raise HTTPException(status_code=401, detail="Invalid admin password")
