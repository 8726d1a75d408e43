"""
Storage management for the credential vault.

The vault file holds a single ciphertext envelope. The store never sees
decrypted data; it reads and replaces the envelope as a whole.
"""

import os
import json
import base64
import binascii
import datetime
import logging
import shutil
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence

from . import config
from .crypto import KdfParams
from .exceptions import EnvelopeFormatError, StorageError, VaultNotFoundError
from .utils import set_owner_only_permissions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """Represents a single stored credential."""
    identifier: str
    key: str
    secret: str
    website: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Credential':
        """Create from dictionary."""
        return cls(
            identifier=str(data['identifier']),
            key=str(data.get('key') or ""),
            secret=str(data['secret']),
            website=str(data.get('website') or ""),
        )


def encode_collection(credentials: Sequence[Credential]) -> bytes:
    """Serialize a credential collection to the plaintext sealed in the vault."""
    data = {
        'totalItems': len(credentials),
        'credentials': [c.to_dict() for c in credentials],
    }
    return json.dumps(data).encode('utf-8')


def decode_collection(plaintext: bytes) -> List[Credential]:
    """
    Parse a decrypted collection.

    Raises:
        ValueError: If the document is malformed, the count disagrees with
                    the entries, or two entries share an identifier.
    """
    data = json.loads(plaintext.decode('utf-8'))
    if not isinstance(data, dict) or not isinstance(data.get('credentials'), list):
        raise ValueError("Collection document has no credential list")
    try:
        credentials = [Credential.from_dict(c) for c in data['credentials']]
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed credential entry: {e!r}") from e
    if data.get('totalItems', len(credentials)) != len(credentials):
        raise ValueError("Collection count does not match its entries")
    if len({c.identifier for c in credentials}) != len(credentials):
        raise ValueError("Collection contains duplicate identifiers")
    return credentials


def _b64decode(value: Any) -> bytes:
    return base64.b64decode(value, validate=True)


def _b64encode(value: bytes) -> str:
    return base64.b64encode(value).decode('ascii')


@dataclass(frozen=True)
class Envelope:
    """The on-disk ciphertext package."""
    ciphertext: bytes
    nonce: bytes
    tag: bytes
    salt: bytes
    kdf: KdfParams
    version: int = config.ENVELOPE_VERSION

    @staticmethod
    def header(version: int, kdf: KdfParams) -> Optional[bytes]:
        """Associated data authenticated alongside the ciphertext.

        Legacy envelopes were sealed without associated data.
        """
        if version < 1:
            return None
        return json.dumps({'version': version, 'kdf': kdf.to_dict()},
                          sort_keys=True, separators=(',', ':')).encode('utf-8')

    @property
    def associated_data(self) -> Optional[bytes]:
        return self.header(self.version, self.kdf)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the versioned JSON document."""
        return {
            'version': self.version,
            'kdf': self.kdf.to_dict(),
            'salt': _b64encode(self.salt),
            'nonce': _b64encode(self.nonce),
            'authTag': _b64encode(self.tag),
            'ciphertext': _b64encode(self.ciphertext),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Envelope':
        """
        Create from a vault document.

        Documents without a version field are legacy files whose fields are
        named encryptedData/iv and whose key comes from PBKDF2.
        """
        envelope = cls._parse(data)
        if len(envelope.salt) < config.SALT_MIN_SIZE:
            raise EnvelopeFormatError(f"Vault salt is shorter than {config.SALT_MIN_SIZE} bytes")
        return envelope

    @classmethod
    def _parse(cls, data: Dict[str, Any]) -> 'Envelope':
        try:
            if 'version' not in data:
                return cls(
                    ciphertext=_b64decode(data['encryptedData']),
                    nonce=_b64decode(data['iv']),
                    tag=_b64decode(data['authTag']),
                    salt=_b64decode(data['salt']),
                    kdf=KdfParams.legacy(),
                    version=0,
                )
            version = int(data['version'])
            if version != config.ENVELOPE_VERSION:
                raise EnvelopeFormatError(f"Unsupported vault format version: {version}")
            return cls(
                ciphertext=_b64decode(data['ciphertext']),
                nonce=_b64decode(data['nonce']),
                tag=_b64decode(data['authTag']),
                salt=_b64decode(data['salt']),
                kdf=KdfParams.from_dict(data['kdf']),
                version=version,
            )
        except (KeyError, TypeError, ValueError, binascii.Error) as e:
            raise EnvelopeFormatError(f"Malformed vault envelope: {e}") from e


class VaultStore:
    """Reads and atomically replaces the envelope stored in the vault file."""

    def __init__(self, filepath: str):
        """
        Args:
            filepath: Path to the encrypted vault file
        """
        self.filepath = filepath

    def exists(self) -> bool:
        return os.path.isfile(self.filepath)

    def read_envelope(self) -> Envelope:
        """
        Load the envelope from disk.

        Raises:
            VaultNotFoundError: If the vault file does not exist.
            EnvelopeFormatError: If the file is not a valid envelope document.
            StorageError: On any other read failure.
        """
        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise VaultNotFoundError(f"No vault found at {self.filepath}") from None
        except json.JSONDecodeError as e:
            raise EnvelopeFormatError(f"Vault file is not valid JSON: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read vault file {self.filepath}: {e}") from e

        if not isinstance(data, dict):
            raise EnvelopeFormatError("Vault file does not hold an envelope object")
        return Envelope.from_dict(data)

    def write_envelope(self, envelope: Envelope) -> None:
        """
        Replace the vault file with the given envelope.

        The document is written to a temporary sibling and renamed over the
        vault file, so the previous content survives any failure.

        Raises:
            StorageError: If the envelope could not be written.
        """
        tmp_path = self.filepath + '.tmp'
        try:
            folder = os.path.dirname(os.path.abspath(self.filepath))
            os.makedirs(folder, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(envelope.to_dict(), f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.filepath)
        except OSError as e:
            logger.error(f"Error saving vault file {self.filepath}: {e}")
            self._remove_quietly(tmp_path)
            raise StorageError(f"Could not write vault file {self.filepath}: {e}") from e

        if not set_owner_only_permissions(self.filepath):
            logger.warning(f"Failed to set secure file permissions for vault: {self.filepath}")
        logger.debug(f"Vault envelope written to {self.filepath}")

    def backup(self, destination: Optional[str] = None) -> str:
        """
        Copy the vault file as-is; the copy stays encrypted.

        Args:
            destination: Target path. Defaults to a timestamped file next to the vault.

        Returns:
            Path of the backup file.
        """
        if not self.exists():
            raise VaultNotFoundError(f"No vault found at {self.filepath}")
        if destination is None:
            timestamp = datetime.datetime.now().strftime('%Y%m%d_%H%M%S')
            destination = os.path.join(
                os.path.dirname(os.path.abspath(self.filepath)),
                config.BACKUP_FILE_TEMPLATE.format(timestamp=timestamp),
            )
        try:
            shutil.copy2(self.filepath, destination)
        except OSError as e:
            raise StorageError(f"Failed to create backup {destination}: {e}") from e
        set_owner_only_permissions(destination)
        logger.info(f"Vault backed up to {destination}")
        return destination

    @staticmethod
    def _remove_quietly(path: str) -> None:
        if not os.path.exists(path):
            return
        try:
            os.remove(path)
        except OSError as e:
            logger.warning(f"Could not remove temporary file {path}: {e}")
