import redis

from ...application.ports.rate_limiter import RateLimiter


class RedisRateLimiter(RateLimiter):
    """Fixed window counter shared by every worker."""

    def __init__(self, url: str, prefix: str = "intelliconsult:rl:") -> None:
        self.client = redis.Redis.from_url(url)
        self.prefix = prefix

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        redis_key = f"{self.prefix}{key}:{window_seconds}"
        pipe = self.client.pipeline()
        pipe.incr(redis_key, 1)
        # Only the first hit of a window sets the expiry
        pipe.expire(redis_key, window_seconds, nx=True)
        count, _ = pipe.execute()
        return int(count) <= int(max_requests)
