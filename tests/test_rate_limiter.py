import pytest

from intelliconsult.infrastructure.rate_limit.memory_rate_limiter import InMemoryRateLimiter


def test_memory_rate_limiter_allows_then_blocks():
    rl = InMemoryRateLimiter()
    key = "login:1.2.3.4"
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is True
    assert rl.allow(key, max_requests=2, window_seconds=60) is False
    # Other keys have their own window
    assert rl.allow("login:5.6.7.8", max_requests=2, window_seconds=60) is True


def test_memory_rate_limiter_window_slides(monkeypatch):
    from intelliconsult.infrastructure.rate_limit import memory_rate_limiter as mod

    clock = {"now": 1000.0}
    monkeypatch.setattr(mod.time, "monotonic", lambda: clock["now"])
    rl = InMemoryRateLimiter()
    assert rl.allow("k", 1, 60) is True
    assert rl.allow("k", 1, 60) is False
    clock["now"] += 61
    assert rl.allow("k", 1, 60) is True


def test_memory_rate_limiter_reset():
    rl = InMemoryRateLimiter()
    assert rl.allow("k", 1, 60) is True
    rl.reset()
    assert rl.allow("k", 1, 60) is True


def test_redis_rate_limiter_with_fake(monkeypatch):
    pytest.importorskip("redis")

    class FakePipe:
        def __init__(self, client):
            self.client = client
            self.ops = []

        def incr(self, k, n):
            self.ops.append(("incr", k, n))
            return self

        def expire(self, k, s, nx=False):
            self.ops.append(("expire", k, s, nx))
            return self

        def execute(self):
            results = []
            for op in self.ops:
                if op[0] == "incr":
                    self.client.store[op[1]] = self.client.store.get(op[1], 0) + op[2]
                    results.append(self.client.store[op[1]])
                else:
                    if op[3] and op[1] in self.client.ttls:
                        results.append(False)
                    else:
                        self.client.ttls[op[1]] = op[2]
                        results.append(True)
            return results

    class FakeRedis:
        def __init__(self):
            self.store = {}
            self.ttls = {}

        @classmethod
        def from_url(cls, url):
            return cls()

        def pipeline(self):
            return FakePipe(self)

    from intelliconsult.infrastructure.rate_limit import redis_rate_limiter as mod
    monkeypatch.setattr(mod.redis, "Redis", FakeRedis)

    rl = mod.RedisRateLimiter(url="redis://fake")
    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is True
    assert rl.allow("k1", 2, 60) is False
    assert rl.client.store == {"intelliconsult:rl:k1:60": 3}
    assert rl.client.ttls == {"intelliconsult:rl:k1:60": 60}
