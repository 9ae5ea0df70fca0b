"""Tests for the NDA preview cache and its sweeper."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

from casework.services.preview_cache import PreviewCache, PreviewSweeper, SigningSession

T0 = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _session(pin: str = "NS-1", created_at: datetime = T0, name: str = "a") -> SigningSession:
    return SigningSession(
        case_manager_pin=pin,
        case_manager_name=f"Manager {pin}",
        preview_path=Path(f"/tmp/{pin}-{name}.pdf"),
        signature_data=b"sig",
        created_at=created_at,
    )


def test_session_is_live_until_ttl_passes():
    cache = PreviewCache(ttl=timedelta(minutes=10))
    session = _session()
    cache.put(session)

    assert cache.get("NS-1", T0 + timedelta(minutes=9)) is session
    assert cache.get("NS-1", T0 + timedelta(minutes=10)) is session
    assert cache.get("NS-1", T0 + timedelta(minutes=11)) is None
    assert len(cache) == 0


def test_put_replaces_and_evicts_previous_session():
    evicted = []
    cache = PreviewCache(on_evict=evicted.append)
    first = _session(name="first")
    second = _session(name="second")

    cache.put(first)
    cache.put(second)

    assert cache.get("NS-1", T0) is second
    assert evicted == [first]
    assert len(cache) == 1


def test_delete_with_expected_only_removes_matching_session():
    cache = PreviewCache()
    first = _session(name="first")
    second = _session(name="second")
    cache.put(first)
    cache.put(second)

    assert not cache.delete("NS-1", expected=first)
    assert cache.get("NS-1", T0) is second
    assert cache.delete("NS-1", expected=second)
    assert cache.get("NS-1", T0) is None
    assert not cache.delete("NS-1")


def test_sweep_removes_only_expired_sessions():
    evicted = []
    cache = PreviewCache(ttl=timedelta(minutes=10), on_evict=evicted.append)
    old = _session("NS-OLD", created_at=T0 - timedelta(minutes=15))
    fresh = _session("NS-FRESH", created_at=T0 - timedelta(minutes=2))
    cache.put(old)
    cache.put(fresh)

    removed = cache.sweep_expired(T0)

    assert removed == 1
    assert evicted == [old]
    assert cache.get("NS-FRESH", T0) is fresh
    assert cache.get("NS-OLD", T0) is None


def test_eviction_cleanup_errors_are_not_raised():
    def fail(session):
        raise OSError("read-only filesystem")

    cache = PreviewCache(ttl=timedelta(minutes=10), on_evict=fail)
    cache.put(_session(created_at=T0 - timedelta(hours=1)))

    assert cache.sweep_expired(T0) == 1
    assert len(cache) == 0


def test_sweeper_run_once_uses_clock():
    cache = PreviewCache(ttl=timedelta(minutes=10))
    cache.put(_session(created_at=T0))
    sweeper = PreviewSweeper(cache, interval_seconds=60, clock=lambda: T0 + timedelta(minutes=20))

    assert sweeper.run_once() == 1
    assert len(cache) == 0


def test_sweeper_thread_starts_and_stops():
    cache = PreviewCache()
    sweeper = PreviewSweeper(cache, interval_seconds=0.01, clock=lambda: T0)

    sweeper.start()
    sweeper.stop(timeout=1)

    assert sweeper._thread is None
