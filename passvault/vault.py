"""
Vault engine: the lock/unlock state machine over the encrypted vault file.

While unlocked the engine holds exactly one decrypted credential collection
and one session key. Every mutation is sealed under a fresh nonce and written
before the in-memory state changes, so memory never runs ahead of disk.

Security Note:
    Never log master passwords, keys or secrets. Identifiers and counts only.
"""

import enum
import logging
import os
import threading
import weakref
from typing import List, Optional, Tuple

from argon2.exceptions import Argon2Error

from . import config
from . import policy
from .crypto import CryptoManager, KdfParams
from .exceptions import (
    AuthenticationError,
    CredentialNotFoundError,
    DecryptionError,
    DuplicateIdentifierError,
    InvalidCredentialError,
    PasswordReuseError,
    StorageError,
    VaultExistsError,
    VaultInUseError,
    VaultLockedError,
    WeakPasswordError,
)
from .storage import Credential, Envelope, VaultStore, decode_collection, encode_collection

logger = logging.getLogger(__name__)

_registry_lock = threading.Lock()
_open_vaults: "weakref.WeakValueDictionary[str, VaultEngine]" = weakref.WeakValueDictionary()


class VaultState(enum.Enum):
    LOCKED = "locked"
    UNLOCKED = "unlocked"


def _vault_id(filepath: str) -> str:
    return os.path.normcase(os.path.realpath(filepath))


class VaultEngine:
    """Owns the session state of one vault file.

    Only one engine per vault file may be open in a process at a time;
    call :meth:`close` (or use the engine as a context manager) to release it.
    """

    def __init__(self, filepath: str, crypto: Optional[CryptoManager] = None):
        """
        Args:
            filepath: Path to the encrypted vault file
            crypto: Crypto manager; its KDF parameters apply to new vaults
                    and password changes
        """
        self.filepath = os.path.abspath(filepath)
        self._vault_id = _vault_id(self.filepath)
        with _registry_lock:
            if self._vault_id in _open_vaults:
                raise VaultInUseError(f"Vault {self.filepath} is already open in this process")
            _open_vaults[self._vault_id] = self

        self.store = VaultStore(self.filepath)
        self.crypto = crypto or CryptoManager()
        self._lock = threading.Lock()
        self._state = VaultState.LOCKED
        self._key: Optional[bytearray] = None
        self._salt: Optional[bytes] = None
        self._kdf: Optional[KdfParams] = None
        self._credentials: List[Credential] = []

    def __enter__(self) -> 'VaultEngine':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Lock the vault and release the file for another engine."""
        self.lock()
        with _registry_lock:
            if _open_vaults.get(self._vault_id) is self:
                del _open_vaults[self._vault_id]

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> VaultState:
        return self._state

    def is_locked(self) -> bool:
        return self._state is VaultState.LOCKED

    def vault_exists(self) -> bool:
        return self.store.exists()

    def _require_unlocked(self) -> None:
        if self._state is not VaultState.UNLOCKED or self._key is None:
            raise VaultLockedError()

    def _discard_session(self) -> None:
        if self._key is not None:
            self.crypto.clear_bytes(self._key)
        self._key = None
        self._salt = None
        self._kdf = None
        self._credentials = []
        self._state = VaultState.LOCKED

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, master_password: str) -> None:
        """
        Create a new, empty vault protected by master_password.

        The engine stays locked; the vault must be unlocked explicitly.

        Raises:
            VaultExistsError: If a vault file already exists.
            WeakPasswordError: If the password fails the password policy.
            StorageError: If the vault file could not be written.
        """
        with self._lock:
            if self.store.exists():
                raise VaultExistsError(f"A vault already exists at {self.filepath}")
            is_strong, message = policy.check_strength(master_password)
            if not is_strong:
                raise WeakPasswordError(message)

            self._discard_session()
            salt = self.crypto.generate_salt()
            kdf = self.crypto.kdf
            key = bytearray(self.crypto.derive_key(master_password, salt, kdf))
            try:
                self.store.write_envelope(self._seal([], key, salt, kdf))
            finally:
                self.crypto.clear_bytes(key)
            logger.info(f"Vault created at {self.filepath}")

    def unlock(self, master_password: str) -> None:
        """
        Unlock the vault, bringing its contents into memory.

        Raises:
            AuthenticationError: On a wrong password, a tampered, corrupted or
                                 missing vault file. The cause is not disclosed.
        """
        with self._lock:
            self._discard_session()
            try:
                envelope = self.store.read_envelope()
                key = bytearray(self.crypto.derive_key(master_password, envelope.salt, envelope.kdf))
                try:
                    plaintext = self.crypto.decrypt(
                        envelope.ciphertext, key, envelope.nonce, envelope.tag,
                        envelope.associated_data,
                    )
                    credentials = decode_collection(plaintext)
                except (DecryptionError, ValueError):
                    self.crypto.clear_bytes(key)
                    raise
            except StorageError as e:
                logger.debug(f"Unlock failed: vault file unavailable ({type(e).__name__})")
                raise AuthenticationError("Wrong password or corrupted vault file") from None
            except (DecryptionError, ValueError, Argon2Error):
                logger.debug("Unlock failed: envelope did not authenticate")
                raise AuthenticationError("Wrong password or corrupted vault file") from None

            self._key = key
            self._salt = envelope.salt
            self._kdf = envelope.kdf
            self._credentials = credentials
            self._state = VaultState.UNLOCKED
            if envelope.version < config.ENVELOPE_VERSION:
                logger.info(f"Legacy vault format v{envelope.version} will be upgraded on next write")
            logger.info(f"Vault unlocked ({len(credentials)} credential(s))")

    def lock(self) -> None:
        """Discard the in-memory collection and session key."""
        with self._lock:
            if self._state is VaultState.UNLOCKED:
                logger.info("Vault locked")
            self._discard_session()

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def list_credentials(self) -> Tuple[Credential, ...]:
        """Return an immutable snapshot of the stored credentials."""
        with self._lock:
            self._require_unlocked()
            return tuple(self._credentials)

    def credential_count(self) -> int:
        with self._lock:
            self._require_unlocked()
            return len(self._credentials)

    def get_credential(self, identifier: str) -> Credential:
        with self._lock:
            self._require_unlocked()
            for credential in self._credentials:
                if credential.identifier == identifier:
                    return credential
            raise CredentialNotFoundError(identifier)

    def add_credential(self, credential: Credential) -> None:
        """
        Store a new credential and persist the vault.

        Raises:
            VaultLockedError: If the vault is locked.
            InvalidCredentialError: If the identifier is too short.
            DuplicateIdentifierError: If the identifier is already in use.
            StorageError: If persisting failed; nothing is changed.
        """
        with self._lock:
            self._require_unlocked()
            if len(credential.identifier) < config.IDENTIFIER_MIN_LENGTH:
                raise InvalidCredentialError(
                    f"Identifier must be at least {config.IDENTIFIER_MIN_LENGTH} characters long"
                )
            if any(c.identifier == credential.identifier for c in self._credentials):
                raise DuplicateIdentifierError(credential.identifier)

            updated = self._credentials + [credential]
            self._persist(updated)
            self._credentials = updated
            logger.debug(f"Credential '{credential.identifier}' added")

    def remove_credential(self, identifier: str) -> Credential:
        """
        Remove a credential and persist the vault.

        Returns:
            The removed credential.

        Raises:
            VaultLockedError: If the vault is locked.
            CredentialNotFoundError: If no credential has that identifier.
            StorageError: If persisting failed; nothing is changed.
        """
        with self._lock:
            self._require_unlocked()
            removed = None
            updated = []
            for credential in self._credentials:
                if removed is None and credential.identifier == identifier:
                    removed = credential
                else:
                    updated.append(credential)
            if removed is None:
                raise CredentialNotFoundError(identifier)

            self._persist(updated)
            self._credentials = updated
            logger.debug(f"Credential '{identifier}' removed")
            return removed

    # ------------------------------------------------------------------
    # Master password
    # ------------------------------------------------------------------

    def check_current_password(self, password: str) -> bool:
        """Whether password derives the live session key."""
        with self._lock:
            self._require_unlocked()
            return self._matches_session_key(password)

    def change_master_password(self, new_password: str) -> None:
        """
        Re-encrypt the vault under a key derived from new_password.

        A fresh salt is generated and the default KDF applies. The session
        switches to the new key only once the new envelope is on disk.

        Raises:
            VaultLockedError: If the vault is locked.
            WeakPasswordError: If the password fails the password policy.
            PasswordReuseError: If the password is the current one.
            StorageError: If persisting failed; the old key stays active.
        """
        with self._lock:
            self._require_unlocked()
            is_strong, message = policy.check_strength(new_password)
            if not is_strong:
                raise WeakPasswordError(message)
            if self._matches_session_key(new_password):
                raise PasswordReuseError("The new password cannot be the same as the current password")

            salt = self.crypto.generate_salt()
            kdf = self.crypto.kdf
            key = bytearray(self.crypto.derive_key(new_password, salt, kdf))
            try:
                self._persist(self._credentials, key, salt, kdf)
            except StorageError:
                self.crypto.clear_bytes(key)
                raise

            self.crypto.clear_bytes(self._key)
            self._key = key
            self._salt = salt
            self._kdf = kdf
            logger.info("Master password changed")

    def backup(self, destination: Optional[str] = None) -> str:
        """Copy the encrypted vault file. See :meth:`VaultStore.backup`."""
        with self._lock:
            return self.store.backup(destination)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _matches_session_key(self, password: str) -> bool:
        candidate = self.crypto.derive_key(password, self._salt, self._kdf)
        return self.crypto.secure_compare(candidate, self._key)

    def _seal(self, credentials: List[Credential], key: bytearray, salt: bytes,
              kdf: KdfParams) -> Envelope:
        version = config.ENVELOPE_VERSION
        ciphertext, nonce, tag = self.crypto.encrypt(
            encode_collection(credentials), key, Envelope.header(version, kdf),
        )
        return Envelope(ciphertext=ciphertext, nonce=nonce, tag=tag, salt=salt,
                        kdf=kdf, version=version)

    def _persist(self, credentials: List[Credential], key: Optional[bytearray] = None,
                 salt: Optional[bytes] = None, kdf: Optional[KdfParams] = None) -> None:
        """Seal credentials under a fresh nonce and replace the vault file."""
        envelope = self._seal(
            credentials,
            key if key is not None else self._key,
            salt if salt is not None else self._salt,
            kdf if kdf is not None else self._kdf,
        )
        self.store.write_envelope(envelope)
