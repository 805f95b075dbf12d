"""
Vault Crypto Core — Random source, key derivation, cipher, MAC and serialization.

This is the narrow provider interface the key and vault layers call into:
- ``random_bytes(size)`` — OS CSPRNG
- ``derive_key(password, salt, rounds, length)`` — PBKDF2-HMAC-SHA256
- ``encrypt`` / ``decrypt`` — AES-256-CBC with PKCS7 padding
- ``compute_mac`` / ``verify_mac`` — HMAC-SHA256, constant-time verification

Format version 1 parameters are fixed here; changing any of them breaks every
vault and key file written before.

Security Note:
    Never log plaintext, ciphertext or key material.
"""
import os
import base64
import binascii
import logging
from typing import Any

import orjson
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import RandomSourceError, SerializationError

logger = logging.getLogger("sealedvault")

FORMAT_VERSION = 1
KEY_LENGTH = 32  # AES-256 / HMAC-SHA256 key
KEY_COUNT = 2  # encryption key + authentication key
IV_SIZE = 16  # AES block size, also used for the vault salt
MAC_SIZE = 32  # HMAC-SHA256 digest
PBKDF2_ROUNDS = 600_000  # OWASP 2023 recommendation for SHA-256

_BLOCK_BITS = algorithms.AES.block_size
_TYPE_JSON = "json"
_TYPE_BYTES = "bytes"


# ---------------------------------------------------------------------------
# Random source and key derivation
# ---------------------------------------------------------------------------

def random_bytes(size: int) -> bytes:
    """Return ``size`` bytes from the OS cryptographically secure RNG.

    Raises:
        RandomSourceError: If the random source is unavailable.
    """
    try:
        return os.urandom(size)
    except (OSError, NotImplementedError) as err:
        logger.critical("OS random source unavailable: %s", err)
        raise RandomSourceError(f"Random source unavailable: {err}") from err


def derive_key(
    password: str | bytes,
    salt: bytes,
    rounds: int = PBKDF2_ROUNDS,
    length: int = KEY_COUNT * KEY_LENGTH,
) -> bytes:
    """Derive ``length`` bytes from a password using PBKDF2-HMAC-SHA256.

    Args:
        password: Password text (UTF-8 encoded) or raw bytes.
        salt: Vault salt.
        rounds: PBKDF2 iteration count.
        length: Number of bytes to derive.

    Returns:
        Derived key block.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=length,
        salt=salt,
        iterations=rounds,
    )
    return kdf.derive(password)


# ---------------------------------------------------------------------------
# Symmetric cipher (AES-256-CBC)
# ---------------------------------------------------------------------------

def encrypt(key: bytes, iv: bytes, plaintext: bytes) -> bytes:
    """Pad and encrypt plaintext with AES-CBC under ``key`` and ``iv``."""
    padder = padding.PKCS7(_BLOCK_BITS).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt(key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
    """Decrypt and unpad AES-CBC ciphertext.

    Only call this on ciphertext whose MAC has already been verified.

    Raises:
        ValueError: If the ciphertext length or padding is invalid.
    """
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
    return unpadder.update(padded) + unpadder.finalize()


# ---------------------------------------------------------------------------
# Message authentication (HMAC-SHA256)
# ---------------------------------------------------------------------------

def compute_mac(key: bytes, *parts: bytes) -> bytes:
    """Compute HMAC-SHA256 over the concatenation of ``parts``."""
    mac = hmac.HMAC(key, hashes.SHA256())
    for part in parts:
        mac.update(part)
    return mac.finalize()


def verify_mac(key: bytes, tag: bytes, *parts: bytes) -> bool:
    """Check ``tag`` against HMAC-SHA256 of ``parts`` in constant time."""
    mac = hmac.HMAC(key, hashes.SHA256())
    for part in parts:
        mac.update(part)
    try:
        mac.verify(tag)
    except InvalidSignature:
        return False
    return True


# ---------------------------------------------------------------------------
# Value serialization
# ---------------------------------------------------------------------------

def serialize_value(value: Any) -> bytes:
    """Serialize a Python value to bytes for encryption.

    Supports: str, int, float, dict, list, bytes, bool, None, plus anything
    orjson encodes natively (datetime, UUID, dataclasses).
    Every value is wrapped in a typed envelope, {"t": "json", "v": <value>}
    or {"t": "bytes", "v": "<base64>"}, so no user value can be mistaken
    for encoded bytes.

    Raises:
        SerializationError: If the value cannot be encoded.
    """
    if isinstance(value, (bytes, bytearray)):
        envelope = {"t": _TYPE_BYTES, "v": base64.b64encode(value).decode("ascii")}
    else:
        envelope = {"t": _TYPE_JSON, "v": value}
    try:
        return orjson.dumps(envelope)
    except TypeError as err:
        raise SerializationError(
            f"Cannot serialize value of type {type(value).__name__}: {err}"
        ) from err


def deserialize_value(data: bytes) -> Any:
    """Deserialize bytes produced by :func:`serialize_value`.

    Raises:
        SerializationError: If the bytes are not a valid value envelope.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise SerializationError(f"Cannot deserialize secret value: {err}") from err
    if not isinstance(parsed, dict) or set(parsed) != {"t", "v"}:
        raise SerializationError("Cannot deserialize secret value: invalid envelope")
    kind, value = parsed["t"], parsed["v"]
    if kind == _TYPE_JSON:
        return value
    if kind == _TYPE_BYTES and isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as err:
            raise SerializationError(
                f"Cannot deserialize secret value: {err}"
            ) from err
    raise SerializationError(f"Cannot deserialize secret value: unknown type {kind!r}")
