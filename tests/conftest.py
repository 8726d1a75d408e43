"""
Shared fixtures for the vault test-suite.

Argon2 runs with reduced work factors so the suite stays fast; the
production parameters are exercised by a single test in test_crypto.py.
"""
import pytest

from passvault.crypto import CryptoManager, KdfParams
from passvault.storage import Credential
from passvault.vault import VaultEngine

MASTER_PASSWORD = "Str0ng!Pass123"
NEW_MASTER_PASSWORD = "N3w&Better!Pass"

FAST_KDF = KdfParams(time_cost=1, memory_cost=1024, parallelism=1)


class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to."""

    instances = []

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if self.started and not self.cancelled:
            self.function()


@pytest.fixture
def crypto():
    return CryptoManager(kdf=FAST_KDF)


@pytest.fixture
def vault_path(tmp_path):
    return str(tmp_path / "vault" / "vault.json")


@pytest.fixture
def engine(vault_path, crypto):
    """A locked engine over a not-yet-created vault."""
    eng = VaultEngine(vault_path, crypto=crypto)
    yield eng
    eng.close()


@pytest.fixture
def unlocked(engine):
    """An engine over a fresh vault, unlocked with MASTER_PASSWORD."""
    engine.create(MASTER_PASSWORD)
    engine.unlock(MASTER_PASSWORD)
    return engine


@pytest.fixture
def amazon():
    return Credential(identifier="amazon", key="bob", secret="s3cret", website="amazon.com")


@pytest.fixture
def fake_timer():
    FakeTimer.instances = []
    return FakeTimer
