"""Tests for sealedvault.keys module."""
import os
import stat

import pytest

from sealedvault import crypto
from sealedvault.exceptions import MissingSaltError, RandomSourceError, StoreIOError
from sealedvault.keys import (
    KEY_FILE_SIZE,
    FromFile,
    FromPassword,
    Generate,
    KeyMaterial,
    resolve_keys,
)


class TestKeyMaterial:
    def test_from_bytes_splits_halves(self):
        data = bytes(range(KEY_FILE_SIZE))
        keys = KeyMaterial.from_bytes(data)
        assert keys.encryption_key == data[:32]
        assert keys.auth_key == data[32:]
        assert keys.to_bytes() == data

    def test_rejects_wrong_key_lengths(self):
        with pytest.raises(ValueError):
            KeyMaterial(b"a" * 16, b"b" * 32)
        with pytest.raises(ValueError):
            KeyMaterial.from_bytes(b"x" * (KEY_FILE_SIZE - 1))

    def test_equality(self):
        data = os.urandom(KEY_FILE_SIZE)
        assert KeyMaterial.from_bytes(data) == KeyMaterial.from_bytes(data)
        assert KeyMaterial.from_bytes(data) != KeyMaterial.from_bytes(os.urandom(KEY_FILE_SIZE))

    def test_repr_hides_keys(self, key_material):
        assert key_material.encryption_key.hex() not in repr(key_material)
        assert "redacted" in repr(key_material)

    def test_wipe_zeroes_keys(self, key_material):
        key_material.wipe()
        assert key_material.to_bytes() == bytes(KEY_FILE_SIZE)

    def test_returned_keys_are_copies(self, key_material):
        before = key_material.to_bytes()
        _ = bytearray(key_material.encryption_key)
        assert key_material.to_bytes() == before

    def test_export_writes_flat_layout(self, tmp_path, key_material):
        path = tmp_path / "exported.key"
        key_material.export(path)
        assert path.read_bytes() == key_material.encryption_key + key_material.auth_key
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


class TestGenerate:
    def test_generates_random_keys(self):
        k1 = resolve_keys(Generate(), None)
        k2 = resolve_keys(Generate(), None)
        assert len(k1.to_bytes()) == KEY_FILE_SIZE
        assert k1 != k2

    def test_rng_failure_is_reported(self, monkeypatch):
        def broken(size):
            raise OSError("getrandom failed")

        monkeypatch.setattr(crypto.os, "urandom", broken)
        with pytest.raises(RandomSourceError):
            resolve_keys(Generate(), None)


class TestFromFile:
    def test_reads_key_file(self, key_file):
        path, data = key_file
        keys = resolve_keys(FromFile(path), None)
        assert keys.encryption_key == data[:32]
        assert keys.auth_key == data[32:]

    def test_accepts_string_path(self, key_file):
        path, data = key_file
        assert resolve_keys(FromFile(str(path)), None).to_bytes() == data

    def test_missing_file(self, tmp_path):
        with pytest.raises(StoreIOError, match="Cannot read key file"):
            resolve_keys(FromFile(tmp_path / "missing.key"), None)

    def test_short_file_is_not_padded(self, tmp_path):
        path = tmp_path / "short.key"
        path.write_bytes(os.urandom(KEY_FILE_SIZE - 1))
        with pytest.raises(StoreIOError, match="truncated"):
            resolve_keys(FromFile(path), None)

    def test_trailing_bytes_are_ignored(self, tmp_path):
        data = os.urandom(KEY_FILE_SIZE)
        path = tmp_path / "long.key"
        path.write_bytes(data + b"trailing")
        assert resolve_keys(FromFile(path), None).to_bytes() == data


class TestFromPassword:
    def test_missing_salt(self):
        with pytest.raises(MissingSaltError):
            resolve_keys(FromPassword("secret"), None)

    def test_same_password_and_salt_give_same_keys(self):
        salt = os.urandom(crypto.IV_SIZE)
        assert resolve_keys(FromPassword("samepw"), salt) == resolve_keys(FromPassword("samepw"), salt)

    def test_different_password_gives_different_keys(self):
        salt = os.urandom(crypto.IV_SIZE)
        assert resolve_keys(FromPassword("samepw"), salt) != resolve_keys(FromPassword("otherpw"), salt)

    def test_split_matches_single_derivation(self):
        salt = os.urandom(crypto.IV_SIZE)
        block = crypto.derive_key("pw", salt, crypto.PBKDF2_ROUNDS, KEY_FILE_SIZE)
        keys = resolve_keys(FromPassword("pw"), salt)
        assert keys.encryption_key == block[:32]
        assert keys.auth_key == block[32:]

    def test_password_not_in_repr(self):
        assert "hunter2" not in repr(FromPassword("hunter2"))


def test_unknown_source_raises_type_error():
    with pytest.raises(TypeError, match="Unsupported key source"):
        resolve_keys("generate", None)
