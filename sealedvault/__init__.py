"""SealedVault — Encrypted, authenticated secret storage in a single file.

Security Note (Threat Model):
    Session keys and decrypted values live in process memory while a
    ``SecretsManager`` is open. ``close()`` zeroes the key buffers, but
    copies made by the interpreter cannot be scrubbed. Protecting a
    running process from memory inspection is out of scope.
"""

from .config import StoreConfig
from .exceptions import (
    DecryptionError,
    MissingSaltError,
    RandomSourceError,
    SecretNotFoundError,
    SecureStoreError,
    SerializationError,
    StoreIOError,
    VaultExistsError,
    VaultFormatError,
)
from .keys import FromFile, FromPassword, Generate, KeyMaterial, KeySource, resolve_keys
from .manager import SecretsManager
from .vault import Vault, VaultEntry
from .version import __version__

__all__ = [
    "SecretsManager",
    "KeyMaterial",
    "KeySource",
    "FromFile",
    "FromPassword",
    "Generate",
    "resolve_keys",
    "Vault",
    "VaultEntry",
    "StoreConfig",
    "SecureStoreError",
    "StoreIOError",
    "VaultExistsError",
    "VaultFormatError",
    "MissingSaltError",
    "DecryptionError",
    "SecretNotFoundError",
    "SerializationError",
    "RandomSourceError",
    "__version__",
]
