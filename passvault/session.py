"""
Idle locking for an interactive vault session.

The engine stays synchronous and timer-agnostic; :class:`VaultSession`
owns a cancellable :class:`IdleTimer` that locks the engine when no
engine call has succeeded for ``idle_timeout`` seconds.
"""

import logging
import threading
from typing import Callable, Optional, Tuple

from . import config
from .storage import Credential
from .vault import VaultEngine

logger = logging.getLogger(__name__)


class IdleTimer:
    """Restartable one-shot timer. A timeout of 0 or less disables it."""

    def __init__(self, timeout: float, on_expire: Callable[[], None],
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        self.timeout = timeout
        self._on_expire = on_expire
        self._timer_factory = timer_factory
        self._timer = None
        self._guard = threading.Lock()
        self.expired = False

    @property
    def enabled(self) -> bool:
        return self.timeout > 0

    def start(self) -> None:
        """Start or restart the countdown."""
        if not self.enabled:
            return
        with self._guard:
            if self._timer is not None:
                self._timer.cancel()
            self.expired = False
            self._timer = self._timer_factory(self.timeout, self._fire)
            self._timer.daemon = True
            self._timer.start()

    reset = start

    def cancel(self) -> None:
        with self._guard:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self) -> None:
        with self._guard:
            self._timer = None
            self.expired = True
        self._on_expire()


class VaultSession:
    """Engine facade that re-locks the vault after a period of inactivity.

    Every successful call resets the idle countdown. When it elapses the
    engine is locked, discarding the key, before any further call runs.
    """

    def __init__(self, engine: VaultEngine,
                 idle_timeout: float = config.IDLE_TIMEOUT_SECONDS,
                 on_lock: Optional[Callable[[], None]] = None,
                 timer_factory: Callable[..., threading.Timer] = threading.Timer):
        self.engine = engine
        self.on_lock = on_lock
        self.timer = IdleTimer(idle_timeout, self._idle_expired, timer_factory)

    @property
    def idle_locked(self) -> bool:
        """True when the last lock was caused by inactivity."""
        return self.timer.expired

    def _idle_expired(self) -> None:
        logger.info(f"Idle for {self.timer.timeout} seconds, locking vault")
        self.engine.lock()
        if self.on_lock is not None:
            self.on_lock()

    def _touch(self) -> None:
        if not self.engine.is_locked():
            self.timer.reset()

    def _call(self, method, *args):
        result = method(*args)
        self._touch()
        return result

    def vault_exists(self) -> bool:
        return self.engine.vault_exists()

    def is_locked(self) -> bool:
        return self.engine.is_locked()

    def create(self, master_password: str) -> None:
        self.engine.create(master_password)

    def unlock(self, master_password: str) -> None:
        self._call(self.engine.unlock, master_password)

    def lock(self) -> None:
        self.timer.cancel()
        self.engine.lock()

    def close(self) -> None:
        self.timer.cancel()
        self.engine.close()

    def list_credentials(self) -> Tuple[Credential, ...]:
        return self._call(self.engine.list_credentials)

    def credential_count(self) -> int:
        return self._call(self.engine.credential_count)

    def get_credential(self, identifier: str) -> Credential:
        return self._call(self.engine.get_credential, identifier)

    def add_credential(self, credential: Credential) -> None:
        self._call(self.engine.add_credential, credential)

    def remove_credential(self, identifier: str) -> Credential:
        return self._call(self.engine.remove_credential, identifier)

    def check_current_password(self, password: str) -> bool:
        return self._call(self.engine.check_current_password, password)

    def change_master_password(self, new_password: str) -> None:
        self._call(self.engine.change_master_password, new_password)

    def backup(self, destination: Optional[str] = None) -> str:
        return self._call(self.engine.backup, destination)
