# showings/deps.py

from typing import AsyncIterator, Optional

from fastapi import HTTPException

from showings.notifications import LoggingNotifier, Notifier
from showings.routing import RateLimitedTravelTimeOracle, open_travel_oracle

_notifier = LoggingNotifier()


def require_role(user: dict, role: str):
    if user["role"] != role:
        raise HTTPException(status_code=403, detail="Forbidden")


# Dependency: one oracle per availability computation, throttled process-wide
async def get_travel_oracle() -> AsyncIterator[Optional[RateLimitedTravelTimeOracle]]:
    async with open_travel_oracle() as oracle:
        yield oracle


def get_notifier() -> Notifier:
    return _notifier
