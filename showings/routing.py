"""
Travel-time lookups between properties.

OpenRouteService provides geocoding and driving directions. Every lookup goes
through RateLimitedTravelTimeOracle, which bounds each call with a timeout and
turns any failure into "no travel constraint known". Provider calls from all
requests share one RateLimiter that respects the provider's rate limit.
"""

import asyncio
import logging
import math
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import lru_cache
from typing import AsyncIterator, Optional, Protocol

import httpx

from showings.config import settings
from showings.core import PropertyLocation

logger = logging.getLogger(__name__)


class RoutingError(Exception):
    """The routing provider could not produce a travel time."""


@dataclass(frozen=True)
class TravelTime:
    duration_minutes: int
    distance_km: float


class TravelTimeOracle(Protocol):
    async def travel_time(
        self, origin: PropertyLocation, destination: PropertyLocation
    ) -> TravelTime: ...


class OpenRouteServiceClient:
    """Driving time between two properties via the OpenRouteService API."""

    def __init__(self, http: httpx.AsyncClient, api_key: str):
        self.http = http
        self.api_key = api_key
        self._coordinates: dict[str, tuple[float, float]] = {}

    async def _coordinates_for(self, location: PropertyLocation) -> tuple[float, float]:
        if location.latitude is not None and location.longitude is not None:
            return float(location.longitude), float(location.latitude)

        address = location.address
        if address in self._coordinates:
            return self._coordinates[address]

        response = await self.http.get(
            "/geocode/search",
            params={"api_key": self.api_key, "text": address, "size": 1},
        )
        if response.status_code != 200:
            raise RoutingError(f"Geocoding failed for {address!r}: HTTP {response.status_code}")

        features = response.json().get("features") or []
        if not features:
            raise RoutingError(f"No geocoding result for {address!r}")

        lon, lat = features[0]["geometry"]["coordinates"][:2]
        self._coordinates[address] = (lon, lat)
        return lon, lat

    async def travel_time(
        self, origin: PropertyLocation, destination: PropertyLocation
    ) -> TravelTime:
        start = await self._coordinates_for(origin)
        end = await self._coordinates_for(destination)

        response = await self.http.post(
            "/v2/directions/driving-car",
            json={"coordinates": [list(start), list(end)]},
            headers={"Authorization": self.api_key},
        )
        if response.status_code != 200:
            raise RoutingError(f"Directions request failed: HTTP {response.status_code}")

        routes = response.json().get("routes") or []
        if not routes:
            raise RoutingError("No route found")

        summary = routes[0]["summary"]
        return TravelTime(
            duration_minutes=math.ceil(summary.get("duration", 0) / 60),
            distance_km=round(summary.get("distance", 0) / 1000, 1),
        )


class RateLimiter:
    """
    Process-wide throttle in front of the routing provider.

    Callers are serialised by a lock and spaced at least ``min_interval``
    seconds apart, whichever request they belong to.
    """

    def __init__(self, min_interval: float = 1.0):
        self.min_interval = min_interval
        self._lock = asyncio.Lock()
        self._last_call: Optional[float] = None

    async def _wait_turn(self) -> None:
        if self._last_call is None or self.min_interval <= 0:
            return
        remaining = self.min_interval - (time.monotonic() - self._last_call)
        if remaining > 0:
            await asyncio.sleep(remaining)

    @asynccontextmanager
    async def turn(self) -> AsyncIterator[None]:
        async with self._lock:
            await self._wait_turn()
            try:
                yield
            finally:
                self._last_call = time.monotonic()


@lru_cache(maxsize=1)
def shared_rate_limiter() -> RateLimiter:
    return RateLimiter(settings.routing.min_interval_sec)


class RateLimitedTravelTimeOracle:
    """
    Single-concurrency front for a travel-time oracle.

    Provider calls go through ``limiter``; pass the shared one so concurrent
    requests are throttled together. Each call is bounded by ``timeout``
    seconds. Errors and timeouts are logged and reported as None. Answers are
    memoised for the lifetime of the instance, so one instance should serve
    one computation.
    """

    def __init__(
        self,
        oracle: TravelTimeOracle,
        min_interval: float = 1.0,
        timeout: float = 10.0,
        limiter: Optional[RateLimiter] = None,
    ):
        self.oracle = oracle
        self.timeout = timeout
        self.limiter = limiter if limiter is not None else RateLimiter(min_interval)
        self._answers: dict[tuple[str, str], Optional[TravelTime]] = {}

    async def travel_time(
        self, origin: PropertyLocation, destination: PropertyLocation
    ) -> Optional[TravelTime]:
        key = (origin.address, destination.address)
        if key in self._answers:
            return self._answers[key]

        async with self.limiter.turn():
            try:
                answer = await asyncio.wait_for(
                    self.oracle.travel_time(origin, destination), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Travel time lookup timed out after %.1fs (%s -> %s)",
                    self.timeout, origin.address, destination.address,
                )
                answer = None
            except (RoutingError, httpx.HTTPError, KeyError, ValueError) as e:
                logger.warning(
                    "Travel time lookup failed (%s -> %s): %s",
                    origin.address, destination.address, e,
                )
                answer = None

        self._answers[key] = answer
        return answer


@asynccontextmanager
async def open_travel_oracle(
    limiter: Optional[RateLimiter] = None,
) -> AsyncIterator[Optional[RateLimitedTravelTimeOracle]]:
    """Build the configured oracle, or yield None when routing is not configured."""
    routing = settings.routing
    if not routing.api_key:
        yield None
        return

    async with httpx.AsyncClient(base_url=routing.base_url, timeout=routing.timeout_sec) as http:
        yield RateLimitedTravelTimeOracle(
            OpenRouteServiceClient(http, routing.api_key),
            timeout=routing.timeout_sec,
            limiter=limiter if limiter is not None else shared_rate_limiter(),
        )
