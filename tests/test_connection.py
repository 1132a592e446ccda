from __future__ import annotations

import time

from deta_mongo.connection import IdleClient


class FakeClient:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class CountingFactory:
    def __init__(self):
        self.clients = []

    def __call__(self):
        client = FakeClient()
        self.clients.append(client)
        return client


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_client_is_created_lazily_and_reused():
    factory = CountingFactory()
    idle = IdleClient(factory)
    assert not idle.is_open

    with idle.lease() as first:
        pass
    with idle.lease() as second:
        pass

    assert first is second
    assert len(factory.clients) == 1
    assert not first.closed


def test_idle_client_closes_and_reopens():
    factory = CountingFactory()
    idle = IdleClient(factory, idle_timeout=0.05)

    with idle.lease() as first:
        pass

    assert _wait_for(lambda: first.closed)
    assert not idle.is_open

    with idle.lease() as second:
        assert second is not first
        assert not second.closed
    idle.close()


def test_never_closes_while_leased():
    factory = CountingFactory()
    idle = IdleClient(factory, idle_timeout=0.05)

    with idle.lease() as client:
        with idle.lease():
            pass
        # inner release leaves one lease outstanding, so no timer is armed
        assert idle.active_leases == 1
        time.sleep(0.15)
        assert not client.closed

    assert _wait_for(lambda: client.closed)


def test_new_lease_defers_pending_close():
    factory = CountingFactory()
    idle = IdleClient(factory, idle_timeout=0.2)

    with idle.lease() as client:
        pass
    time.sleep(0.1)
    with idle.lease():
        time.sleep(0.2)
        assert not client.closed
    idle.close()
    assert client.closed


def test_timer_from_before_close_does_not_touch_new_client():
    factory = CountingFactory()
    idle = IdleClient(factory, idle_timeout=60)

    with idle.lease():
        pass
    stale_generation = idle._generation
    idle.close()

    with idle.lease() as client:
        pass
    idle._last_release -= 120
    idle._on_timer(stale_generation)
    assert not client.closed
    idle.close()


def test_close_without_client_is_safe():
    idle = IdleClient(CountingFactory(), idle_timeout=0.05)
    idle.close()
    assert not idle.is_open


def test_sequential_leases_share_one_timer():
    idle = IdleClient(CountingFactory(), idle_timeout=30)
    timers = set()

    for _ in range(20):
        with idle.lease():
            pass
        timers.add(id(idle._timer))

    assert len(timers) == 1
    assert idle._timer is not None
    idle.close()
    assert idle._timer is None


def test_timer_firing_early_waits_for_remaining_idle_time():
    factory = CountingFactory()
    idle = IdleClient(factory, idle_timeout=0.2)

    with idle.lease() as client:
        pass
    time.sleep(0.12)
    # moves the deadline; the pending timer still fires at ~0.2s
    with idle.lease():
        pass
    time.sleep(0.15)
    assert not client.closed
    assert idle.is_open

    assert _wait_for(lambda: client.closed)
    assert len(factory.clients) == 1
