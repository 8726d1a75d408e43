"""
Tests for the idle lock around a vault engine.
"""
import pytest

from passvault.exceptions import AuthenticationError, VaultLockedError
from passvault.session import IdleTimer, VaultSession

from .conftest import MASTER_PASSWORD


@pytest.fixture
def session(engine, fake_timer):
    engine.create(MASTER_PASSWORD)
    sess = VaultSession(engine, idle_timeout=60, timer_factory=fake_timer)
    yield sess
    sess.close()


def live_timers(fake_timer):
    return [t for t in fake_timer.instances if t.started and not t.cancelled]


class TestIdleTimer:
    """The restartable countdown."""

    def test_disabled_with_zero_timeout(self, fake_timer):
        timer = IdleTimer(0, lambda: None, fake_timer)
        timer.start()
        assert not timer.enabled
        assert fake_timer.instances == []

    def test_reset_replaces_running_timer(self, fake_timer):
        timer = IdleTimer(5, lambda: None, fake_timer)
        timer.start()
        timer.reset()
        first, second = fake_timer.instances
        assert first.cancelled
        assert second.started and not second.cancelled
        assert second.interval == 5

    def test_fire_marks_expired(self, fake_timer):
        fired = []
        timer = IdleTimer(5, lambda: fired.append(True), fake_timer)
        timer.start()
        fake_timer.instances[-1].fire()
        assert fired == [True]
        assert timer.expired

    def test_cancelled_timer_never_fires(self, fake_timer):
        fired = []
        timer = IdleTimer(5, lambda: fired.append(True), fake_timer)
        timer.start()
        timer.cancel()
        fake_timer.instances[-1].fire()
        assert fired == []


class TestVaultSession:
    """Inactivity re-locks the engine."""

    def test_unlock_starts_countdown(self, session, fake_timer):
        assert live_timers(fake_timer) == []
        session.unlock(MASTER_PASSWORD)
        assert len(live_timers(fake_timer)) == 1

    def test_every_call_resets_countdown(self, session, fake_timer):
        session.unlock(MASTER_PASSWORD)
        session.list_credentials()
        session.credential_count()
        assert len(fake_timer.instances) == 3
        assert len(live_timers(fake_timer)) == 1

    def test_expiry_locks_engine(self, session, fake_timer):
        session.unlock(MASTER_PASSWORD)
        live_timers(fake_timer)[0].fire()
        assert session.is_locked()
        assert session.idle_locked
        with pytest.raises(VaultLockedError):
            session.list_credentials()

    def test_expiry_notifies(self, session, fake_timer):
        calls = []
        session.on_lock = lambda: calls.append(session.is_locked())
        session.unlock(MASTER_PASSWORD)
        live_timers(fake_timer)[0].fire()
        assert calls == [True]

    def test_failed_unlock_does_not_start_countdown(self, session, fake_timer):
        with pytest.raises(AuthenticationError):
            session.unlock("Wr0ng!Password")
        assert live_timers(fake_timer) == []

    def test_explicit_lock_cancels_countdown(self, session, fake_timer):
        session.unlock(MASTER_PASSWORD)
        session.lock()
        assert live_timers(fake_timer) == []
        assert session.is_locked()
        assert not session.idle_locked

    def test_unlock_after_idle_lock(self, session, fake_timer):
        session.unlock(MASTER_PASSWORD)
        live_timers(fake_timer)[0].fire()
        session.unlock(MASTER_PASSWORD)
        assert not session.is_locked()
        assert not session.idle_locked

    def test_zero_timeout_never_locks(self, engine, fake_timer):
        engine.create(MASTER_PASSWORD)
        sess = VaultSession(engine, idle_timeout=0, timer_factory=fake_timer)
        sess.unlock(MASTER_PASSWORD)
        sess.list_credentials()
        assert fake_timer.instances == []
        assert not sess.is_locked()
