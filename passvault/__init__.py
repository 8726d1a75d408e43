"""
PassVault Credential Store

THREAT MODEL:
A single trusted operator on a single local machine. Credentials are kept in
one file, encrypted under a key derived from the master password. Decrypted
credentials and the session key exist in process memory only while the vault
is unlocked; a memory dump of an unlocked session can expose them.
"""

from .config import APP_VERSION as __version__
from .exceptions import (
    AuthenticationError,
    CredentialNotFoundError,
    DuplicateIdentifierError,
    StorageError,
    VaultError,
    VaultLockedError,
    VaultNotFoundError,
    WeakPasswordError,
)
from .generator import generate_password
from .policy import check_strength, is_strong
from .storage import Credential
from .vault import VaultEngine, VaultState

__all__ = [
    "AuthenticationError",
    "Credential",
    "CredentialNotFoundError",
    "DuplicateIdentifierError",
    "StorageError",
    "VaultEngine",
    "VaultError",
    "VaultLockedError",
    "VaultNotFoundError",
    "VaultState",
    "WeakPasswordError",
    "check_strength",
    "generate_password",
    "is_strong",
]
