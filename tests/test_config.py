"""Tests for sealedvault.config module."""
import pytest
from pydantic import ValidationError

from sealedvault.config import StoreConfig


class TestStoreConfig:
    def test_defaults(self):
        config = StoreConfig()
        assert config.file_mode == 0o600
        assert config.max_name_length == 255

    @pytest.mark.parametrize("mode", [0o400, 0o200, 0o1777, -1])
    def test_invalid_file_mode(self, mode):
        with pytest.raises(ValidationError):
            StoreConfig(file_mode=mode)

    def test_invalid_name_length(self):
        with pytest.raises(ValidationError):
            StoreConfig(max_name_length=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SEALEDVAULT_FILE_MODE", "640")
        monkeypatch.setenv("SEALEDVAULT_MAX_NAME_LENGTH", "64")
        config = StoreConfig.from_env()
        assert config.file_mode == 0o640
        assert config.max_name_length == 64

    def test_from_env_defaults(self, monkeypatch):
        monkeypatch.delenv("SEALEDVAULT_FILE_MODE", raising=False)
        monkeypatch.delenv("SEALEDVAULT_MAX_NAME_LENGTH", raising=False)
        assert StoreConfig.from_env() == StoreConfig()

    def test_from_env_rejects_garbage(self, monkeypatch):
        monkeypatch.setenv("SEALEDVAULT_FILE_MODE", "rw-------")
        with pytest.raises(ValueError):
            StoreConfig.from_env()
