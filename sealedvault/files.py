"""File helpers shared by the vault and key-file writers."""
import os
import tempfile
from pathlib import Path

from .exceptions import StoreIOError


def atomic_write(path: str | Path, data: bytes, file_mode: int = 0o600) -> None:
    """Replace ``path`` with ``data`` using write-then-rename.

    The payload is written to a temporary file in the destination directory,
    flushed to disk and renamed over the target, so readers never observe a
    half-written file.

    Raises:
        StoreIOError: If any step of the write fails.
    """
    path = Path(path)
    dir_name = path.parent.resolve()
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=dir_name, prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as err:
        raise StoreIOError(f"Cannot write to {dir_name}: {err}") from err
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, file_mode)
        os.replace(tmp_path, path)
    except BaseException as err:
        # Clean up temp file on failure
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        if isinstance(err, OSError):
            raise StoreIOError(f"Failed to write {path}: {err}") from err
        raise
