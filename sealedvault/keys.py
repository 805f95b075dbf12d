"""
Key Material — Key sources and the session's encryption/authentication keys.

A vault session holds one ``KeyMaterial``: a 32-byte AES key and a 32-byte
HMAC key. It is obtained by resolving one of three key sources:

- ``FromFile(path)`` — read 64 raw bytes from a key file
- ``FromPassword(password)`` — PBKDF2 over the password and the vault salt
- ``Generate()`` — fresh bytes from the OS random source

Key file layout: ``[encryption key 32B][auth key 32B]``, no header.

Security Note:
    Never log key bytes or passwords.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path

from cryptography.hazmat.primitives import constant_time

from . import crypto
from .crypto import KEY_COUNT, KEY_LENGTH
from .exceptions import MissingSaltError, StoreIOError
from .files import atomic_write

logger = logging.getLogger("sealedvault")

KEY_FILE_SIZE = KEY_COUNT * KEY_LENGTH


class KeyMaterial:
    """Encryption and authentication keys for one vault session.

    The key bytes are held in private buffers so ``wipe()`` can zero them
    when the session ends; there is no other way to change them.
    """

    __slots__ = ("_encryption", "_auth")

    def __init__(self, encryption_key: bytes, auth_key: bytes):
        if len(encryption_key) != KEY_LENGTH or len(auth_key) != KEY_LENGTH:
            raise ValueError(f"Keys must be exactly {KEY_LENGTH} bytes each")
        self._encryption = bytearray(encryption_key)
        self._auth = bytearray(auth_key)

    @classmethod
    def from_bytes(cls, data: bytes) -> "KeyMaterial":
        """Split a ``KEY_FILE_SIZE`` block into encryption and auth keys."""
        if len(data) != KEY_FILE_SIZE:
            raise ValueError(
                f"Key block must be {KEY_FILE_SIZE} bytes, got {len(data)}"
            )
        return cls(data[:KEY_LENGTH], data[KEY_LENGTH:])

    @property
    def encryption_key(self) -> bytes:
        return bytes(self._encryption)

    @property
    def auth_key(self) -> bytes:
        return bytes(self._auth)

    def to_bytes(self) -> bytes:
        """Return the flat key-file representation."""
        return bytes(self._encryption) + bytes(self._auth)

    def export(self, path: str | Path, file_mode: int = 0o600) -> None:
        """Write the keys to ``path`` in the key-file layout.

        Raises:
            StoreIOError: If the file cannot be written.
        """
        atomic_write(path, self.to_bytes(), file_mode)
        logger.info("Exported vault keys to %s", path)

    def wipe(self) -> None:
        """Overwrite both key buffers with zeros."""
        for buf in (self._encryption, self._auth):
            for i in range(len(buf)):
                buf[i] = 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeyMaterial):
            return NotImplemented
        return constant_time.bytes_eq(self.to_bytes(), other.to_bytes())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return "<KeyMaterial [redacted]>"


# ---------------------------------------------------------------------------
# Key sources
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FromFile:
    """Load keys from a binary key file on disk."""
    path: str | Path


@dataclass(frozen=True)
class FromPassword:
    """Derive keys from a password and the vault salt."""
    password: str | bytes = field(repr=False)


@dataclass(frozen=True)
class Generate:
    """Generate new keys from the OS random source."""


KeySource = FromFile | FromPassword | Generate


def _read_key_file(path: str | Path) -> bytes:
    try:
        with open(path, "rb") as f:
            data = f.read(KEY_FILE_SIZE)
    except OSError as err:
        raise StoreIOError(f"Cannot read key file {path}: {err}") from err
    if len(data) < KEY_FILE_SIZE:
        raise StoreIOError(
            f"Key file {path} is truncated: expected {KEY_FILE_SIZE} bytes, "
            f"got {len(data)}"
        )
    return data


def resolve_keys(source: KeySource, salt: bytes | None) -> KeyMaterial:
    """Produce the session ``KeyMaterial`` for a key source.

    Args:
        source: One of ``FromFile``, ``FromPassword`` or ``Generate``.
        salt: The vault salt, required only by ``FromPassword``.

    Returns:
        A new ``KeyMaterial``.

    Raises:
        StoreIOError: If a key file is missing, unreadable or too short.
        MissingSaltError: If password derivation is requested without a salt.
        RandomSourceError: If key generation cannot reach the random source.
        TypeError: If ``source`` is not a known key source.
    """
    if isinstance(source, Generate):
        logger.debug("Generating new vault keys")
        return KeyMaterial.from_bytes(crypto.random_bytes(KEY_FILE_SIZE))
    if isinstance(source, FromFile):
        logger.debug("Loading vault keys from %s", source.path)
        return KeyMaterial.from_bytes(_read_key_file(source.path))
    if isinstance(source, FromPassword):
        if not salt:
            raise MissingSaltError(
                "Vault has no salt; password-derived keys are unavailable"
            )
        logger.debug("Deriving vault keys from password")
        block = crypto.derive_key(
            source.password, salt, crypto.PBKDF2_ROUNDS, KEY_FILE_SIZE
        )
        return KeyMaterial.from_bytes(block)
    raise TypeError(f"Unsupported key source: {type(source).__name__}")
