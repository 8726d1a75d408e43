"""
Cryptographic operations for the credential vault.

Key derivation turns the master password and a per-vault salt into a 256-bit
key; the authenticated cipher (AES-256-GCM) seals the serialized credential
collection under that key.

Security Note:
    Never log passwords, derived keys, plaintext or ciphertext values.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import constant_time, hashes
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from . import config
from .exceptions import DecryptionError


@dataclass(frozen=True)
class KdfParams:
    """Key derivation scheme and work factors, persisted with every envelope."""
    name: str = config.KDF_ARGON2ID
    time_cost: int = config.ARGON2_TIME_COST
    memory_cost: int = config.ARGON2_MEMORY_COST
    parallelism: int = config.ARGON2_PARALLELISM
    iterations: int = 0

    @classmethod
    def legacy(cls) -> 'KdfParams':
        """Parameters of vault files written without an envelope version."""
        return cls(
            name=config.KDF_PBKDF2_SHA256,
            time_cost=0,
            memory_cost=0,
            parallelism=0,
            iterations=config.LEGACY_PBKDF2_ITERATIONS,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        if self.name == config.KDF_PBKDF2_SHA256:
            return {'name': self.name, 'iterations': self.iterations}
        return {
            'name': self.name,
            'time_cost': self.time_cost,
            'memory_cost': self.memory_cost,
            'parallelism': self.parallelism,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'KdfParams':
        """
        Create from dictionary.

        Raises:
            ValueError: For unknown schemes or work factors outside sane bounds.
        """
        name = data['name']
        if name == config.KDF_PBKDF2_SHA256:
            iterations = int(data['iterations'])
            _check_range('iterations', iterations, 1, 10_000_000)
            return cls(name=name, time_cost=0, memory_cost=0, parallelism=0,
                       iterations=iterations)
        if name == config.KDF_ARGON2ID:
            params = cls(
                name=name,
                time_cost=int(data['time_cost']),
                memory_cost=int(data['memory_cost']),
                parallelism=int(data['parallelism']),
            )
            _check_range('time_cost', params.time_cost, 1, 100)
            _check_range('parallelism', params.parallelism, 1, 64)
            # argon2 requires at least 8 KiB per lane
            _check_range('memory_cost', params.memory_cost, 8 * params.parallelism, config.ARGON2_MAX_MEMORY_COST)
            return params
        raise ValueError(f"Unsupported key derivation scheme: {name}")


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValueError(f"KDF parameter {name}={value} outside [{low}, {high}]")


class CryptoManager:
    """Handles all cryptographic operations for the vault."""

    SALT_SIZE = config.SALT_SIZE
    KEY_SIZE = config.KEY_SIZE
    NONCE_SIZE = config.NONCE_SIZE
    TAG_SIZE = config.TAG_SIZE

    def __init__(self, kdf: Optional[KdfParams] = None):
        """
        Initialize the crypto manager.

        Args:
            kdf: Scheme used for new vaults and password changes.
                 Defaults to Argon2id with the configured work factors.
        """
        self.kdf = kdf or KdfParams()

    def generate_salt(self) -> bytes:
        """Generate a cryptographically secure random salt."""
        return os.urandom(self.SALT_SIZE)

    def derive_key(self, password: str, salt: bytes, kdf: Optional[KdfParams] = None) -> bytes:
        """
        Derive an encryption key from a password.

        Args:
            password: The master password
            salt: Salt persisted with the vault
            kdf: Scheme recorded in the envelope; the manager default if omitted

        Returns:
            32-byte encryption key
        """
        kdf = kdf or self.kdf
        secret = password.encode('utf-8')
        if kdf.name == config.KDF_ARGON2ID:
            return hash_secret_raw(
                secret=secret,
                salt=salt,
                time_cost=kdf.time_cost,
                memory_cost=kdf.memory_cost,
                parallelism=kdf.parallelism,
                hash_len=self.KEY_SIZE,
                type=Type.ID
            )
        if kdf.name == config.KDF_PBKDF2_SHA256:
            pbkdf2 = PBKDF2HMAC(
                algorithm=hashes.SHA256(),
                length=self.KEY_SIZE,
                salt=salt,
                iterations=kdf.iterations,
            )
            return pbkdf2.derive(secret)
        raise ValueError(f"Unsupported key derivation scheme: {kdf.name}")

    def encrypt(self, plaintext: bytes, key: bytes,
                associated_data: Optional[bytes] = None) -> Tuple[bytes, bytes, bytes]:
        """
        Encrypt data using AES-256-GCM with a fresh random nonce.

        Args:
            plaintext: Data to encrypt
            key: 32-byte encryption key
            associated_data: Authenticated but unencrypted header bytes

        Returns:
            Tuple of (ciphertext, nonce, tag)
        """
        nonce = os.urandom(self.NONCE_SIZE)
        encryptor = Cipher(algorithms.AES(bytes(key)), modes.GCM(nonce)).encryptor()
        if associated_data:
            encryptor.authenticate_additional_data(associated_data)
        ciphertext = encryptor.update(plaintext) + encryptor.finalize()
        return ciphertext, nonce, encryptor.tag

    def decrypt(self, ciphertext: bytes, key: bytes, nonce: bytes, tag: bytes,
                associated_data: Optional[bytes] = None) -> bytes:
        """
        Decrypt data using AES-256-GCM.

        The tag is verified before any plaintext is returned.

        Raises:
            DecryptionError: If authentication fails or the inputs are malformed.
                             Wrong keys and tampered data are not distinguished.
        """
        try:
            decryptor = Cipher(algorithms.AES(bytes(key)), modes.GCM(nonce, tag)).decryptor()
            if associated_data:
                decryptor.authenticate_additional_data(associated_data)
            return decryptor.update(ciphertext) + decryptor.finalize()
        except (InvalidTag, ValueError):
            raise DecryptionError("Authenticated decryption failed") from None

    def secure_compare(self, a: bytes, b: bytes) -> bool:
        """Constant-time comparison to prevent timing attacks."""
        return constant_time.bytes_eq(bytes(a), bytes(b))

    def clear_bytes(self, data: bytearray) -> None:
        """Overwrite sensitive bytes in place."""
        for i in range(len(data)):
            data[i] = 0
