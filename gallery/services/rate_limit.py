"""Per-client request counting over a fixed-length window.

Each client address owns a ``(count, window_start)`` pair. The window starts
with the client's first request and the count resets once it has elapsed.
State lives in process memory and is mutated without awaits, so a single
event loop never interleaves two updates.
"""
import math
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import HTTPException, Request, Response
from loguru import logger

RATE_LIMITED_MESSAGE = "Too many upload requests, please try again later."


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(math.ceil(self.reset_after)),
        }


class RateLimiter:
    def __init__(self, max_requests: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, tuple[int, float]] = {}
        self._last_sweep = clock()

    def record(self, address: str) -> RateLimitDecision:
        now = self._clock()
        self._sweep(now)

        count, window_start = self._hits.get(address, (0, now))
        if now - window_start >= self.window_seconds:
            count, window_start = 0, now
        count += 1
        self._hits[address] = (count, window_start)

        return RateLimitDecision(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(self.max_requests - count, 0),
            reset_after=max(window_start + self.window_seconds - now, 0.0),
        )

    def reset(self, address: str | None = None) -> None:
        if address is None:
            self._hits.clear()
        else:
            self._hits.pop(address, None)

    def tracked_clients(self) -> int:
        return len(self._hits)

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window_seconds:
            return
        expired = [
            address
            for address, (_, window_start) in self._hits.items()
            if now - window_start >= self.window_seconds
        ]
        for address in expired:
            del self._hits[address]
        self._last_sweep = now
        if expired:
            logger.debug("Rate limiter swept expired_clients={} tracked_clients={}", len(expired), len(self._hits))


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def enforce_upload_rate_limit(request: Request, response: Response) -> RateLimitDecision:
    limiter: RateLimiter = request.app.state.upload_limiter
    address = client_address(request)
    decision = limiter.record(address)
    if not decision.allowed:
        logger.warning(
            "Upload rate limited client={} limit={} reset_after={:.0f}",
            address,
            decision.limit,
            decision.reset_after,
        )
        headers = decision.headers()
        headers["Retry-After"] = str(math.ceil(decision.reset_after))
        raise HTTPException(status_code=429, detail=RATE_LIMITED_MESSAGE, headers=headers)
    response.headers.update(decision.headers())
    return decision
