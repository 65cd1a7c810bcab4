import threading

from sse_relay.server.session_registry import SessionRegistry


def test_lookup_unknown_session_returns_none(registry: SessionRegistry):
    assert registry.lookup(42) is None
    assert 42 not in registry


def test_register_then_lookup_returns_same_channel(registry: SessionRegistry):
    channel = registry.register(7)

    assert registry.lookup(7) is channel
    assert 7 in registry
    assert len(registry) == 1
    assert registry.total_registrations == 1


def test_register_overwrites_without_closing_displaced_channel(registry: SessionRegistry):
    first = registry.register(7)
    second = registry.register(7)

    assert registry.lookup(7) is second
    assert first is not second
    assert not first.closed
    assert len(registry) == 1
    assert registry.overwritten_registrations == 1


def test_deregister_with_stale_channel_keeps_successor(registry: SessionRegistry):
    first = registry.register(7)
    second = registry.register(7)

    assert registry.deregister(7, first) is False
    assert registry.lookup(7) is second

    assert registry.deregister(7, second) is True
    assert registry.lookup(7) is None


def test_deregister_without_channel_removes_entry(registry: SessionRegistry):
    registry.register(1)

    assert registry.deregister(1) is True
    assert registry.deregister(1) is False


def test_close_all_closes_every_channel(registry: SessionRegistry):
    channels = [registry.register(i) for i in range(5)]

    assert registry.close_all() == 5
    assert len(registry) == 0
    assert all(channel.closed for channel in channels)


def test_concurrent_registration_from_threads(registry: SessionRegistry):
    def worker(offset: int):
        for i in range(200):
            session_id = offset * 1000 + i
            registry.register(session_id)
            assert registry.lookup(session_id) is not None

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(registry) == 8 * 200
    assert registry.total_registrations == 8 * 200
