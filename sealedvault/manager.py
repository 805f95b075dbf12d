"""
SecretsManager — The public API of the secure store.

Provides:
- ``SecretsManager.new(path, key_source)`` — create a vault (unsaved)
- ``SecretsManager.load(path, key_source)`` — open an existing vault
- ``set(name, value)`` / ``retrieve(name, type_)`` / ``delete(name)``
- ``keys()`` / ``exists(name)`` — enumerate and check secret names
- ``save()`` — persist the vault atomically
- ``export_keys(path)`` — write the session keys to a key file

Security Note:
    Never log values or key material. Only log secret names and paths.
    A manager is single-writer: concurrent processes must coordinate access
    to the same vault file themselves.
"""
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from .config import StoreConfig
from .crypto import deserialize_value, serialize_value
from .exceptions import (
    DecryptionError,
    SecretNotFoundError,
    SecureStoreError,
    SerializationError,
    VaultExistsError,
)
from .keys import KeyMaterial, KeySource, resolve_keys
from .vault import Vault

logger = logging.getLogger("sealedvault")


class SecretsManager:
    """Owns one vault and one set of session keys.

    Build instances with :meth:`new` or :meth:`load`. Close the manager (or
    use it as a context manager) to wipe the keys from memory.
    """

    def __init__(
        self,
        path: str | Path,
        vault: Vault,
        keys: KeyMaterial,
        config: Optional[StoreConfig] = None,
    ):
        self._path = Path(path)
        self._vault = vault
        self._keys: Optional[KeyMaterial] = keys
        self._config = config or StoreConfig()

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def new(
        cls,
        path: str | Path,
        key_source: KeySource,
        config: Optional[StoreConfig] = None,
    ) -> "SecretsManager":
        """Create a new, unsaved vault at ``path``.

        The salt is generated before keys are resolved so a password source
        can derive against it.

        Raises:
            VaultExistsError: If a file already exists at ``path``.
        """
        if Path(path).exists():
            raise VaultExistsError(f"Vault already exists: {path}")
        vault = Vault.create()
        keys = resolve_keys(key_source, vault.salt)
        vault.seal_sentinel(keys)
        logger.info("Created new vault for %s", path)
        return cls(path, vault, keys, config)

    @classmethod
    def load(
        cls,
        path: str | Path,
        key_source: KeySource,
        config: Optional[StoreConfig] = None,
    ) -> "SecretsManager":
        """Open the vault stored at ``path``.

        Raises:
            StoreIOError: If the vault (or key file) cannot be read.
            VaultFormatError: If the vault file is malformed.
            MissingSaltError: If a password is used on an unsalted vault.
            DecryptionError: If the keys do not match the vault.
        """
        vault = Vault.from_file(path)
        keys = resolve_keys(key_source, vault.salt)
        try:
            vault.check_sentinel(keys)
            if vault.sentinel is None:
                # Only bind a sentinel to keys that open the existing entries.
                for name in vault:
                    vault.decrypt(name, keys)
                    break
                vault.seal_sentinel(keys)
        except DecryptionError:
            logger.warning("Key verification failed for vault %s", path)
            keys.wipe()
            raise
        return cls(path, vault, keys, config)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _session_keys(self) -> KeyMaterial:
        if self._keys is None:
            raise SecureStoreError("SecretsManager is closed")
        return self._keys

    def _validate_name(self, name: str) -> None:
        """Validate a secret name.

        Raises:
            ValueError: If name is empty, not a string or too long.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Secret name must be a non-empty string")
        if len(name) > self._config.max_name_length:
            raise ValueError(
                f"Secret name cannot exceed {self._config.max_name_length} characters"
            )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def salt(self) -> Optional[bytes]:
        return self._vault.salt

    def save(self) -> None:
        """Persist the vault to its path, replacing the previous file."""
        self._session_keys()
        self._vault.save(self._path, self._config.file_mode)

    def set(self, name: str, value: Any) -> None:
        """Encrypt ``value`` and store it under ``name``.

        Raises:
            ValueError: If the name is invalid.
            SerializationError: If the value cannot be serialized.
        """
        self._validate_name(name)
        keys = self._session_keys()
        self._vault.encrypt(name, serialize_value(value), keys)
        logger.debug("Vault set: key=%s", name)

    def retrieve(self, name: str, type_: Any = None) -> Any:
        """Decrypt and return the secret stored under ``name``.

        Args:
            name: Secret name.
            type_: Optional type the value is validated and coerced into.

        Raises:
            SecretNotFoundError: If ``name`` is absent.
            DecryptionError: If the entry fails authentication.
            SerializationError: If the value does not match ``type_``.
        """
        keys = self._session_keys()
        if name not in self._vault:
            raise SecretNotFoundError(f"Secret '{name}' not found")
        value = deserialize_value(self._vault.decrypt(name, keys))
        if type_ is None:
            return value
        try:
            return TypeAdapter(type_).validate_python(value)
        except ValidationError as err:
            raise SerializationError(
                f"Secret '{name}' does not match the requested type: {err}"
            ) from err

    def delete(self, name: str) -> None:
        """Remove ``name`` from the vault.

        Raises:
            SecretNotFoundError: If ``name`` is absent.
        """
        self._session_keys()
        if name not in self._vault:
            raise SecretNotFoundError(f"Secret '{name}' not found")
        self._vault.remove(name)
        logger.debug("Vault delete: key=%s", name)

    def keys(self) -> list[str]:
        """List secret names in the vault."""
        return self._vault.names()

    def exists(self, name: str) -> bool:
        return name in self._vault

    def export_keys(self, path: str | Path) -> None:
        """Write the session keys to ``path`` as a portable key file.

        Works for any key source, so password-derived or generated keys can
        be turned into a key file usable with ``FromFile``.
        """
        self._session_keys().export(path, self._config.file_mode)

    def close(self) -> None:
        """Wipe the session keys. The manager is unusable afterwards."""
        if self._keys is not None:
            self._keys.wipe()
            self._keys = None

    def __contains__(self, name: object) -> bool:
        return name in self._vault

    def __len__(self) -> int:
        return len(self._vault)

    def __enter__(self) -> "SecretsManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<SecretsManager path={str(self._path)!r} secrets={len(self)}>"
