import os

import pytest

from sealedvault.keys import KeyMaterial, KEY_FILE_SIZE


@pytest.fixture
def vault_path(tmp_path):
    """Path for a vault file that does not exist yet."""
    return tmp_path / "v.db"


@pytest.fixture
def key_material():
    """Random session keys."""
    return KeyMaterial.from_bytes(os.urandom(KEY_FILE_SIZE))


@pytest.fixture
def key_file(tmp_path):
    """A valid key file and the raw bytes written to it."""
    data = os.urandom(KEY_FILE_SIZE)
    path = tmp_path / "vault.key"
    path.write_bytes(data)
    return path, data
