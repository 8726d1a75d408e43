"""
Exception classes raised by the vault engine and its collaborators.
"""


class VaultError(Exception):
    """Base exception for vault operations"""
    pass


class StorageError(VaultError):
    """Raised when the vault file cannot be read or written"""
    pass


class VaultNotFoundError(StorageError):
    """Raised when no vault file exists where one is expected"""
    pass


class EnvelopeFormatError(StorageError):
    """Raised when the vault file is not a well-formed envelope"""
    pass


class VaultExistsError(VaultError):
    """Raised when creating a vault over an existing vault file"""
    pass


class VaultInUseError(VaultError):
    """Raised when a second engine is opened over the same vault file"""
    pass


class DecryptionError(VaultError):
    """Raised when authenticated decryption fails (wrong key or tampered data)"""
    pass


class AuthenticationError(VaultError):
    """Raised when the vault cannot be unlocked.

    Wrong password, a tampered or corrupted file and a missing file all
    surface as this error without further detail.
    """
    pass


class VaultLockedError(VaultError):
    """Raised when an operation requires an unlocked vault"""

    def __init__(self, message: str = "The vault is locked"):
        super().__init__(message)


class InvalidCredentialError(VaultError, ValueError):
    """Raised when a credential does not satisfy the vault rules"""
    pass


class DuplicateIdentifierError(VaultError):
    """Raised when a credential identifier is already used in the vault"""

    def __init__(self, identifier: str):
        super().__init__(f"A credential with identifier '{identifier}' already exists")
        self.identifier = identifier


class CredentialNotFoundError(VaultError, KeyError):
    """Raised when no credential matches the requested identifier"""

    def __init__(self, identifier: str):
        super().__init__(f"No credential with identifier '{identifier}'")
        self.identifier = identifier

    def __str__(self) -> str:
        return self.args[0]


class WeakPasswordError(VaultError):
    """Raised when a master password does not satisfy the password policy"""
    pass


class PasswordReuseError(VaultError):
    """Raised when the new master password equals the current one"""
    pass


class ClipboardUnavailableError(VaultError):
    """Raised when the system clipboard cannot be reached"""
    pass
