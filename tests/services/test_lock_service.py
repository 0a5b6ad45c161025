"""Tests for the Redis merge lock against an in-process client double."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError, ResponseError

from storefront.services.lock_service import LockService


class FakeRedis:
    def __init__(self, failures=0, error=RedisConnectionError):
        self.store = {}
        self.failures = failures
        self.error = error
        self.calls = 0

    def _maybe_fail(self):
        self.calls += 1
        if self.failures:
            self.failures -= 1
            raise self.error("redis unavailable")

    def set(self, name, value, nx=False, ex=None):
        self._maybe_fail()
        if nx and name in self.store:
            return None
        self.store[name] = value
        return True

    def eval(self, script, numkeys, key, owner):
        self._maybe_fail()
        if self.store.get(key) == owner:
            del self.store[key]
            return 1
        return 0


class TestMergeLock:
    def test_second_acquire_is_refused(self):
        locks = LockService(client=FakeRedis())

        assert locks.acquire_merge_lock("sess-1", "user-1", ttl=10) is True
        assert locks.acquire_merge_lock("sess-1", "user-2", ttl=10) is False

    def test_only_owner_releases(self):
        locks = LockService(client=FakeRedis())
        locks.acquire_merge_lock("sess-1", "user-1", ttl=10)

        assert locks.release_merge_lock("sess-1", "user-2") is False
        assert locks.release_merge_lock("sess-1", "user-1") is True
        assert locks.acquire_merge_lock("sess-1", "user-2", ttl=10) is True

    def test_connection_errors_are_retried(self):
        client = FakeRedis(failures=1)

        assert LockService(client=client).acquire_merge_lock("sess-1", "user-1", ttl=10) is True
        assert client.calls == 2

    def test_gives_up_after_repeated_connection_errors(self):
        client = FakeRedis(failures=10)

        with pytest.raises(RedisConnectionError):
            LockService(client=client).acquire_merge_lock("sess-1", "user-1", ttl=10)
        assert client.calls == 3

    def test_response_errors_are_not_retried(self):
        client = FakeRedis(failures=1, error=ResponseError)

        with pytest.raises(ResponseError):
            LockService(client=client).release_merge_lock("sess-1", "user-1")
        assert client.calls == 1
