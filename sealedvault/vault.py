"""
Vault — On-disk container of encrypted, authenticated secrets.

Every entry is sealed with encrypt-then-MAC:
    AES-256-CBC(enc_key, iv) → payload
    HMAC-SHA256(auth_key, iv ‖ payload) → hmac

Document layout (JSON, binary fields base64):
    {"version": 1, "iv": <salt|null>, "sentinel": <entry|null>,
     "secrets": {name: {"iv", "hmac", "payload"}}}

Security Note:
    The MAC is always verified before decryption, and every decryption
    failure surfaces as the same generic ``DecryptionError``.
"""
import base64
import binascii
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import orjson
from pydantic import BaseModel, Field, ValidationError, field_validator

from . import crypto
from .crypto import FORMAT_VERSION, IV_SIZE, MAC_SIZE
from .exceptions import DecryptionError, StoreIOError, VaultFormatError
from .files import atomic_write
from .keys import KeyMaterial

logger = logging.getLogger("sealedvault")

_SENTINEL_SIZE = 32


def _b64decode(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as err:
        raise ValueError(f"invalid base64 data: {err}") from err


def _b64encode(value: bytes) -> str:
    return base64.b64encode(value).decode("ascii")


# ---------------------------------------------------------------------------
# Document schema
# ---------------------------------------------------------------------------

class EntryDocument(BaseModel):
    """Serialized form of a ``VaultEntry``."""

    iv: str
    hmac: str
    payload: str

    @field_validator("iv")
    @classmethod
    def validate_iv(cls, v: str) -> str:
        if len(_b64decode(v)) != IV_SIZE:
            raise ValueError(f"entry iv must be {IV_SIZE} bytes")
        return v

    @field_validator("hmac")
    @classmethod
    def validate_hmac(cls, v: str) -> str:
        if len(_b64decode(v)) != MAC_SIZE:
            raise ValueError(f"entry hmac must be {MAC_SIZE} bytes")
        return v

    @field_validator("payload")
    @classmethod
    def validate_payload(cls, v: str) -> str:
        _b64decode(v)
        return v


class VaultDocument(BaseModel):
    """Validated vault file contents."""

    version: int = Field(default=FORMAT_VERSION)
    iv: Optional[str] = None
    sentinel: Optional[EntryDocument] = None
    secrets: dict[str, EntryDocument] = Field(default_factory=dict)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: int) -> int:
        if v != FORMAT_VERSION:
            raise ValueError(f"Unsupported vault format version: {v}")
        return v

    @field_validator("iv")
    @classmethod
    def validate_salt(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(_b64decode(v)) != IV_SIZE:
            raise ValueError(f"vault salt must be {IV_SIZE} bytes")
        return v


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VaultEntry:
    """One encrypted and authenticated secret."""

    iv: bytes
    payload: bytes
    hmac: bytes

    @classmethod
    def from_document(cls, doc: EntryDocument) -> "VaultEntry":
        return cls(
            iv=_b64decode(doc.iv),
            payload=_b64decode(doc.payload),
            hmac=_b64decode(doc.hmac),
        )

    def to_document(self) -> EntryDocument:
        return EntryDocument(
            iv=_b64encode(self.iv),
            hmac=_b64encode(self.hmac),
            payload=_b64encode(self.payload),
        )


def encrypt_entry(plaintext: bytes, keys: KeyMaterial) -> VaultEntry:
    """Seal plaintext under the session keys with a fresh IV."""
    iv = crypto.random_bytes(IV_SIZE)
    payload = crypto.encrypt(keys.encryption_key, iv, plaintext)
    tag = crypto.compute_mac(keys.auth_key, iv, payload)
    return VaultEntry(iv=iv, payload=payload, hmac=tag)


def decrypt_entry(entry: VaultEntry, keys: KeyMaterial) -> bytes:
    """Authenticate and then decrypt an entry.

    Raises:
        DecryptionError: If the MAC does not match or decryption fails.
    """
    if not crypto.verify_mac(keys.auth_key, entry.hmac, entry.iv, entry.payload):
        raise DecryptionError()
    try:
        return crypto.decrypt(keys.encryption_key, entry.iv, entry.payload)
    except ValueError as err:
        raise DecryptionError() from err


# ---------------------------------------------------------------------------
# Vault
# ---------------------------------------------------------------------------

class Vault:
    """In-memory vault: salt, sentinel and named entries.

    Use :meth:`create` for a new vault and :meth:`from_file` to open one.
    Changes stay in memory until :meth:`save` is called.
    """

    def __init__(
        self,
        salt: Optional[bytes] = None,
        entries: Optional[dict[str, VaultEntry]] = None,
        sentinel: Optional[VaultEntry] = None,
    ):
        self._salt = salt
        self._entries: dict[str, VaultEntry] = dict(entries or {})
        self.sentinel = sentinel

    @classmethod
    def create(cls) -> "Vault":
        """Return an empty vault with a freshly generated salt."""
        return cls(salt=crypto.random_bytes(IV_SIZE))

    @classmethod
    def from_file(cls, path: str | Path) -> "Vault":
        """Load a vault document from disk.

        Raises:
            StoreIOError: If the file is missing or unreadable.
            VaultFormatError: If the contents are not a valid vault.
        """
        try:
            with open(path, "rb") as f:
                raw = f.read()
        except OSError as err:
            raise StoreIOError(f"Cannot open vault {path}: {err}") from err
        try:
            doc = VaultDocument.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError) as err:
            raise VaultFormatError(f"Invalid vault file {path}: {err}") from err
        vault = cls(
            salt=_b64decode(doc.iv) if doc.iv is not None else None,
            entries={
                name: VaultEntry.from_document(entry)
                for name, entry in doc.secrets.items()
            },
            sentinel=(
                VaultEntry.from_document(doc.sentinel) if doc.sentinel else None
            ),
        )
        logger.info("Vault loaded from %s: %d secret(s)", path, len(vault))
        return vault

    def to_document(self) -> VaultDocument:
        return VaultDocument(
            version=FORMAT_VERSION,
            iv=_b64encode(self._salt) if self._salt is not None else None,
            sentinel=self.sentinel.to_document() if self.sentinel else None,
            secrets={
                name: entry.to_document() for name, entry in self._entries.items()
            },
        )

    def save(self, path: str | Path, file_mode: int = 0o600) -> None:
        """Atomically write the vault document to ``path``."""
        data = orjson.dumps(
            self.to_document().model_dump(),
            option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS,
        )
        atomic_write(path, data, file_mode)
        logger.info("Vault saved to %s: %d secret(s)", path, len(self))

    # ------------------------------------------------------------------
    # Sentinel
    # ------------------------------------------------------------------

    def seal_sentinel(self, keys: KeyMaterial) -> None:
        """Store a random sentinel encrypted under ``keys``."""
        self.sentinel = encrypt_entry(crypto.random_bytes(_SENTINEL_SIZE), keys)

    def check_sentinel(self, keys: KeyMaterial) -> None:
        """Verify ``keys`` against the sentinel, if the vault has one.

        Raises:
            DecryptionError: If the keys do not open the sentinel.
        """
        if self.sentinel is not None:
            decrypt_entry(self.sentinel, keys)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    @property
    def salt(self) -> Optional[bytes]:
        return self._salt

    def encrypt(self, name: str, plaintext: bytes, keys: KeyMaterial) -> None:
        """Encrypt ``plaintext`` and store it under ``name``, replacing any entry."""
        self._entries[name] = encrypt_entry(plaintext, keys)

    def decrypt(self, name: str, keys: KeyMaterial) -> bytes:
        """Decrypt the entry stored under ``name``.

        Raises:
            KeyError: If ``name`` is not in the vault.
            DecryptionError: If the entry fails authentication.
        """
        return decrypt_entry(self._entries[name], keys)

    def get(self, name: str) -> Optional[VaultEntry]:
        return self._entries.get(name)

    def remove(self, name: str) -> None:
        del self._entries[name]

    def names(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)
