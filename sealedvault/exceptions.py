"""Exceptions raised by the secure store."""


class SecureStoreError(Exception):
    """Base class for every error raised by sealedvault."""


class StoreIOError(SecureStoreError):
    """Raised when a vault or key file cannot be opened, read or written."""


class VaultExistsError(StoreIOError):
    """Raised when creating a vault at a path that is already taken."""


class VaultFormatError(SecureStoreError):
    """Raised when a vault file is not a valid vault document."""


class MissingSaltError(SecureStoreError):
    """Raised when password derivation is attempted against an unsalted vault."""


class DecryptionError(SecureStoreError):
    """Raised when a secret cannot be authenticated or decrypted.

    The message is deliberately the same for a wrong key, tampered data
    and corrupted records.
    """

    def __init__(self, message: str = "Unable to decrypt secret"):
        super().__init__(message)


class SecretNotFoundError(SecureStoreError):
    """Raised when a secret name is not present in the vault."""


class SerializationError(SecureStoreError):
    """Raised when a secret value cannot be encoded or decoded."""


class RandomSourceError(SecureStoreError):
    """Raised when the OS random source is unavailable.

    This indicates a broken execution environment and is not recoverable.
    """
