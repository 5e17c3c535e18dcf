# tests/test_locks.py

"""
Lock Manager Tests - local threading locks and Redis locks (mocked client)
"""

import threading
from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import LockError

from app.core.exceptions import LockConflict
from app.services.locks import LocalLockManager, RedisLockManager


class TestLocalLockManager:

    def test_busy_key_raises_conflict(self):
        locks = LocalLockManager(blocking_timeout=0.05)
        held = threading.Event()
        release = threading.Event()

        def holder():
            with locks.hold("sample:1"):
                held.set()
                release.wait(2)

        t = threading.Thread(target=holder)
        t.start()
        held.wait(2)
        try:
            with pytest.raises(LockConflict) as exc_info:
                with locks.hold("sample:1"):
                    pass
            assert exc_info.value.retryable
            assert exc_info.value.details == {"lock_key": "sample:1"}
        finally:
            release.set()
            t.join()

    def test_different_keys_do_not_block(self):
        locks = LocalLockManager(blocking_timeout=0.05)
        with locks.hold("sample:1"):
            with locks.hold("sample:2"):
                pass

    def test_released_after_exception(self):
        locks = LocalLockManager(blocking_timeout=0.05)
        with pytest.raises(ValueError):
            with locks.hold("counter:sample:x"):
                raise ValueError("boom")
        with locks.hold("counter:sample:x"):
            pass

    def test_released_keys_are_forgotten(self):
        locks = LocalLockManager(blocking_timeout=0.05)
        for n in range(100):
            with locks.hold(f"sample:{n}"):
                assert f"sample:{n}" in locks._locks
        assert locks._locks == {}

    def test_waiter_gets_the_same_lock(self):
        locks = LocalLockManager(blocking_timeout=2)
        held = threading.Event()
        release = threading.Event()
        order = []

        def holder():
            with locks.hold("session:1"):
                held.set()
                release.wait(2)
                order.append("holder")

        t = threading.Thread(target=holder)
        t.start()
        held.wait(2)
        threading.Timer(0.1, release.set).start()
        with locks.hold("session:1"):
            order.append("waiter")
        t.join()
        assert order == ["holder", "waiter"]
        assert locks._locks == {}

    def test_conflict_does_not_leak_entry(self):
        locks = LocalLockManager(blocking_timeout=0.05)
        held = threading.Event()
        release = threading.Event()

        def holder():
            with locks.hold("sample:1"):
                held.set()
                release.wait(2)

        t = threading.Thread(target=holder)
        t.start()
        held.wait(2)
        try:
            with pytest.raises(LockConflict):
                with locks.hold("sample:1"):
                    pass
            assert locks._locks["sample:1"].users == 1
        finally:
            release.set()
            t.join()
        assert locks._locks == {}


class TestRedisLockManager:

    @pytest.fixture
    def client(self):
        return MagicMock()

    def test_acquire_and_release(self, client):
        lock = client.lock.return_value
        lock.acquire.return_value = True

        with RedisLockManager(client).hold("sample:42"):
            lock.release.assert_not_called()

        key = client.lock.call_args.args[0]
        assert key.endswith("sample:42")
        assert client.lock.call_args.kwargs["blocking_timeout"] is not None
        lock.release.assert_called_once()

    def test_not_acquired_raises_conflict(self, client):
        client.lock.return_value.acquire.return_value = False
        body = MagicMock()

        with pytest.raises(LockConflict):
            with RedisLockManager(client).hold("sample:42"):
                body()
        body.assert_not_called()

    def test_expired_lease_on_release_is_logged(self, client, caplog):
        lock = client.lock.return_value
        lock.acquire.return_value = True
        lock.release.side_effect = LockError("Cannot release an unlocked lock")

        with RedisLockManager(client).hold("sample:42"):
            pass

        assert "lock_lease_expired" in caplog.text

    def test_client_built_from_settings(self):
        with patch("app.services.locks.redis.from_url") as from_url:
            manager = RedisLockManager()
        from_url.assert_called_once()
        assert manager.client is from_url.return_value
