import asyncio

import pytest
from redis.exceptions import LockError

from infrastructure.locks import InMemoryKeyedLock, RedisKeyedLock


async def _track(lock, key, counters, name):
    async with lock.hold(key):
        counters[name] = counters.get(name, 0) + 1
        counters["max_" + name] = max(counters.get("max_" + name, 0), counters[name])
        await asyncio.sleep(0.01)
        counters[name] -= 1


@pytest.mark.asyncio
async def test_same_key_is_serialized():
    lock = InMemoryKeyedLock()
    counters: dict = {}
    await asyncio.gather(*[_track(lock, "sofort:1", counters, "a") for _ in range(5)])
    assert counters["max_a"] == 1


@pytest.mark.asyncio
async def test_different_keys_run_concurrently():
    lock = InMemoryKeyedLock()
    inside = asyncio.Event()
    release = asyncio.Event()

    async def first():
        async with lock.hold("sofort:1"):
            inside.set()
            await release.wait()

    task = asyncio.create_task(first())
    await inside.wait()
    async with lock.hold("sofort:2"):
        assert lock.active_keys() == 2
    release.set()
    await task


@pytest.mark.asyncio
async def test_idle_keys_are_dropped():
    lock = InMemoryKeyedLock()
    async with lock.hold("sofort:1"):
        assert lock.active_keys() == 1
    assert lock.active_keys() == 0


@pytest.mark.asyncio
async def test_key_released_on_error():
    lock = InMemoryKeyedLock()
    with pytest.raises(RuntimeError):
        async with lock.hold("sofort:1"):
            raise RuntimeError("boom")
    assert lock.active_keys() == 0
    async with lock.hold("sofort:1"):
        pass


class FakeRedisLock:
    def __init__(self, acquired=True, release_error=None):
        self.acquired = acquired
        self.release_error = release_error
        self.released = False

    async def acquire(self):
        return self.acquired

    async def release(self):
        self.released = True
        if self.release_error is not None:
            raise self.release_error


class FakeRedis:
    def __init__(self, lock: FakeRedisLock):
        self._lock = lock
        self.calls: list[tuple[str, dict]] = []

    def lock(self, name, **kwargs):
        self.calls.append((name, kwargs))
        return self._lock


@pytest.mark.asyncio
async def test_redis_lock_uses_namespaced_key():
    fake_lock = FakeRedisLock()
    client = FakeRedis(fake_lock)
    lock = RedisKeyedLock(client, namespace="shop", timeout=5, blocking_timeout=2)
    async with lock.hold("sofort:123"):
        assert not fake_lock.released
    assert fake_lock.released
    assert client.calls == [("lock:shop:sofort:123", {"timeout": 5, "blocking_timeout": 2})]


@pytest.mark.asyncio
async def test_redis_lock_without_namespace():
    client = FakeRedis(FakeRedisLock())
    async with RedisKeyedLock(client, namespace="").hold("k"):
        pass
    assert client.calls[0][0] == "lock:k"


@pytest.mark.asyncio
async def test_redis_lock_not_acquired_raises_timeout():
    fake_lock = FakeRedisLock(acquired=False)
    entered = False
    with pytest.raises(TimeoutError):
        async with RedisKeyedLock(FakeRedis(fake_lock), namespace="shop").hold("sofort:123"):
            entered = True
    assert not entered
    assert not fake_lock.released


@pytest.mark.asyncio
async def test_redis_lock_release_failure_is_logged(monkeypatch):
    from infrastructure.locks import redis as redis_lock

    errors = []

    class RecordingLogger:
        def error(self, event, **kw):
            errors.append((event, kw))

    monkeypatch.setattr(redis_lock, "logger", RecordingLogger())
    fake_lock = FakeRedisLock(release_error=LockError("expired"))
    async with RedisKeyedLock(FakeRedis(fake_lock), namespace="shop").hold("sofort:123"):
        pass
    assert errors[0][0] == "lock_release_failed"
    assert errors[0][1]["lock_key"] == "lock:shop:sofort:123"


@pytest.mark.asyncio
async def test_redis_lock_with_injected_client_keeps_connection(monkeypatch):
    from infrastructure.locks import redis as redis_lock

    async def fail():
        raise AssertionError("shared client must not be closed")

    monkeypatch.setattr(redis_lock, "shutdown_redis", fail)
    await RedisKeyedLock(FakeRedis(FakeRedisLock()), namespace="shop").aclose()
