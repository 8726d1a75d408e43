"""
Configuration constants for the PassVault credential store.
"""

import os

# Application Metadata
APP_VERSION = "2.0.0"  # Use: Current version of the application. Type: str. Range: Semantic versioning string (e.g., "1.0.0")
APP_NAME = "PassVault"  # Use: Name of the application shown in banners and prompts. Type: str. Range: Any valid string.

# Security Settings
SALT_SIZE = 16  # Use: Size of the cryptographic salt in bytes for key derivation. Type: int. Range: Recommended to be at least 16 bytes (128 bits) for security.
SALT_MIN_SIZE = 8  # Use: Smallest salt accepted when reading a vault file. Shorter salts are rejected as malformed. Type: int. Range: 8 bytes, the Argon2 minimum.
KEY_SIZE = 32  # Use: Size of the encryption key in bytes. Corresponds to AES-256. Type: int. Range: 32 bytes (AES-256) only.
NONCE_SIZE = 12  # Use: Size of the Nonce (Number used once) in bytes for AES-GCM. Type: int. Range: 12 bytes (96 bits) is the recommended size for GCM.
TAG_SIZE = 16  # Use: Size of the authentication tag in bytes for AES-GCM. Type: int. Range: 16 bytes (128 bits).
ARGON2_TIME_COST = 2  # Use: Argon2id time cost parameter. Controls the number of iterations. Type: int. Range: Typically 1 to 10. Higher values increase security but also computation time.
ARGON2_MEMORY_COST = 65536  # Use: Argon2id memory cost parameter in KiB. Type: int. Range: Recommended to be at least 65536 (64 MB).
ARGON2_PARALLELISM = 4  # Use: Argon2id parallelism parameter (lanes). Type: int. Range: Typically 1 to 8.
ARGON2_MAX_MEMORY_COST = 16 * ARGON2_MEMORY_COST  # Use: Largest Argon2id memory cost in KiB accepted from a vault file header. Type: int. Range: Derived value (1 GiB).
LEGACY_PBKDF2_ITERATIONS = 1000  # Use: PBKDF2-HMAC-SHA256 iterations used by vault files written before the envelope carried a version. Read-only compatibility. Type: int. Range: Fixed at 1000.
PASSWORD_MIN_LENGTH = 12  # Use: Minimum required length for master passwords, applied on creation and on password change. Type: int. Range: 12.
IDENTIFIER_MIN_LENGTH = 2  # Use: Minimum length of a credential identifier. Type: int. Range: Positive integer.

# Vault File Format
ENVELOPE_VERSION = 1  # Use: Version written into every envelope. Files without a version are legacy (0). Type: int. Range: Positive integer.
KDF_ARGON2ID = "argon2id"  # Use: Envelope name of the default key derivation scheme. Type: str.
KDF_PBKDF2_SHA256 = "pbkdf2-sha256"  # Use: Envelope name of the legacy key derivation scheme. Type: str.

# Session Settings
IDLE_TIMEOUT_SECONDS = 60  # Use: Inactivity period after which an unlocked vault is locked again. Type: int. Range: 0 (disabled) or positive integer.
CLIPBOARD_CLEAR_TIMEOUT_SECONDS = 30  # Use: Seconds after which a copied secret is cleared from the clipboard. Type: int. Range: Positive integer.
TABLE_PASSWORD_HIDDEN_TEXT = "******"  # Use: Placeholder displayed instead of secrets when listing credentials. Type: str. Range: Any string.

# Password Generator Settings
PASSWORD_GENERATOR_DEFAULT_LENGTH = 18  # Use: Default length for generated passwords. Type: int. Range: PASSWORD_GENERATOR_MIN_LENGTH to PASSWORD_GENERATOR_MAX_LENGTH.
PASSWORD_GENERATOR_MIN_LENGTH = 4  # Use: Minimum length offered by the interactive generator. Type: int. Range: Positive integer.
PASSWORD_GENERATOR_MAX_LENGTH = 128  # Use: Maximum length offered by the interactive generator. Type: int. Range: Positive integer.
PASSWORD_GENERATOR_AMBIGUOUS_CHARS = "0O1lI"  # Use: Characters considered ambiguous and can be excluded from generated passwords. Type: str. Range: Any string of characters.

# File and Directory Names
HOME_ENV_VAR = "PASSVAULT_HOME"  # Use: Environment variable overriding the directory holding the vault file. Type: str.
CONFIG_DIR_NAME = ".passvault"  # Use: Name of the hidden directory within the user's home directory where the vault lives. Type: str. Range: Any valid directory name.
DEFAULT_VAULT_FILE = "vault.json"  # Use: Default filename for the encrypted vault. Type: str. Range: Any valid filename.
BACKUP_FILE_TEMPLATE = "vault_backup_{timestamp}.json"  # Use: Filename of vault backups, created next to the vault file. Type: str. Range: Must contain {timestamp}.


def get_vault_dir() -> str:
    """Directory holding the vault file, honouring PASSVAULT_HOME."""
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return os.path.expanduser(override)
    return os.path.join(os.path.expanduser("~"), CONFIG_DIR_NAME)


def get_default_vault_path() -> str:
    """Full path of the default vault file."""
    return os.path.join(get_vault_dir(), DEFAULT_VAULT_FILE)
