import pytest

from conftest import SAMPLE_QUESTIONS, InMemoryStorage
from exam_portal.core.models import SessionContext
from exam_portal.core.services.session_registry import SessionNotFound, SessionRegistry


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def _registry(storage, scheduler, clock):
    return SessionRegistry(storage, scheduler=scheduler, retention_seconds=60, clock=clock)


def test_submitted_sessions_are_evicted_after_retention(scheduler, clock):
    registry = _registry(InMemoryStorage(SAMPLE_QUESTIONS), scheduler, clock)
    for index in range(50):
        registry.open_session(SessionContext(f"Student {index}", str(index))).submit()
    assert registry.session_count() == 50

    clock.now += 61
    latest = registry.open_session(SessionContext("Late", "51"))

    assert registry.session_count() == 1
    assert registry.get(latest.session_id) is latest


def test_finished_session_stays_readable_within_retention(scheduler, clock):
    registry = _registry(InMemoryStorage(SAMPLE_QUESTIONS), scheduler, clock)
    session = registry.open_session(SessionContext("Asha", "R-17"))
    session.submit()

    clock.now += 30
    assert registry.evict_finished() == 0
    assert registry.get(session.session_id).submitted


def test_in_progress_sessions_are_never_evicted(scheduler, clock):
    registry = _registry(InMemoryStorage(SAMPLE_QUESTIONS), scheduler, clock)
    session = registry.open_session(SessionContext("Asha", "R-17"))

    clock.now += 10_000
    assert registry.evict_finished() == 0
    assert registry.get(session.session_id) is session


def test_failed_loads_are_evicted(scheduler, clock):
    storage = InMemoryStorage(SAMPLE_QUESTIONS)
    storage.fail_fetch = True
    registry = _registry(storage, scheduler, clock)
    failed = registry.open_session(SessionContext("Asha", "R-17"))
    empty_storage = InMemoryStorage([])
    empty = _registry(empty_storage, scheduler, clock).open_session(SessionContext("Ravi", "R-18"))
    assert failed.finished_at == clock.now
    assert empty.finished_at == clock.now

    clock.now += 61
    assert registry.evict_finished() == 1
    with pytest.raises(SessionNotFound):
        registry.get(failed.session_id)


def test_close_session_stops_timer(scheduler, clock):
    registry = _registry(InMemoryStorage(SAMPLE_QUESTIONS), scheduler, clock)
    session = registry.open_session(SessionContext("Asha", "R-17"))
    registry.close_session(session.session_id)
    assert scheduler.pending == []
    with pytest.raises(SessionNotFound):
        registry.close_session(session.session_id)
