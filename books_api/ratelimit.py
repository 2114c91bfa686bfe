import time
from collections import deque

from fastapi import Request, status
from fastapi.responses import JSONResponse


class RateLimitExceeded(Exception):
    def __init__(self, retry_after: int):
        super().__init__("Rate limit exceeded")
        self.retry_after = retry_after


class SlidingWindowLimiter:
    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.buckets: dict[str, deque[float]] = {}
        self._last_sweep = time.monotonic()

    def _sweep(self, window_start: float) -> None:
        idle = [key for key, bucket in self.buckets.items() if not bucket or bucket[-1] < window_start]
        for key in idle:
            del self.buckets[key]

    def check(self, key: str) -> None:
        now = time.monotonic()
        window_start = now - self.window_seconds
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(window_start)
            self._last_sweep = now
        bucket = self.buckets.setdefault(key, deque())
        while bucket and bucket[0] < window_start:
            bucket.popleft()
        if len(bucket) >= self.max_requests:
            raise RateLimitExceeded(retry_after=max(1, int(bucket[0] - window_start)))
        bucket.append(now)


def rate_limit_middleware(limiter: SlidingWindowLimiter):
    async def middleware(request: Request, call_next):
        key = request.client.host if request.client else "unknown"
        try:
            limiter.check(key)
        except RateLimitExceeded as exc:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": str(exc)},
                headers={"Retry-After": str(exc.retry_after)},
            )
        return await call_next(request)

    return middleware
