# hostcert/utils/files.py

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union
import fcntl
import grp
import os
import pwd
import stat
import tempfile
import time

from hostcert.services.errors import FilesystemError, LockError

StrPath = Union[str, Path]

def read_bytes(path: StrPath) -> bytes:
    """Read a file as bytes; raises FilesystemError on failure."""
    file_path = Path(path)

    try:
        return file_path.read_bytes()
    except FileNotFoundError as e:
        raise FilesystemError(f"File '{file_path}' not found.") from e
    except PermissionError as e:
        raise FilesystemError(f"Permission denied for file '{file_path}'.") from e
    except OSError as err:
        raise FilesystemError(f"I/O error while reading file '{file_path}': {err}") from err

def read_bytes_if_exists(path: StrPath) -> Optional[bytes]:
    """ Return the file contents, or None when the file does not exist """
    file_path = Path(path)

    if not file_path.exists():
        return None

    return read_bytes(file_path)

def ensure_dir(path: StrPath, mode: Optional[int] = None) -> Path:
    """
    Create a directory (and parents) if missing.

    Args:
        path: Directory to create.
        mode: Permission mode applied when the directory is created.

    Returns:
        The directory Path.
    """
    dir_path = Path(path)

    try:
        if not dir_path.is_dir():
            dir_path.mkdir(parents=True, exist_ok=True)
            if mode is not None:
                os.chmod(dir_path, mode)
    except OSError as err:
        raise FilesystemError(f"Unable to create directory '{dir_path}': {err}") from err

    return dir_path

@contextmanager
def atomic_output(path: StrPath, mode: int = 0o600) -> Iterator[Path]:
    """
    Yield a temporary path next to `path`; on success it replaces `path`.

    The temp file is created with mode 0600 so external tools writing into it
    never expose key material. On any exception the temp file is removed and
    the target is left untouched.
    """
    file_path = Path(path)
    parent = file_path.parent

    try:
        fd, tmp_name = tempfile.mkstemp(dir=str(parent), prefix=f".{file_path.name}.", suffix=".tmp")
        os.close(fd)
    except OSError as err:
        raise FilesystemError(f"Unable to create temp file in '{parent}': {err}") from err

    tmp_path = Path(tmp_name)

    try:
        yield tmp_path

        os.chmod(tmp_path, mode)
        os.replace(tmp_path, file_path)
        _fsync_dir(parent)
    except OSError as err:
        raise FilesystemError(f"I/O error while writing file '{file_path}': {err}") from err
    finally:
        if tmp_path.exists():
            tmp_path.unlink()

def write_bytes(
    path: StrPath,
    data: bytes,
    *,
    overwrite: bool = False,
    create_dirs: bool = False,
    mode: int = 0o600,
) -> Path:
    """
    Atomically write bytes to a file.

    Args:
        path: Destination file path.
        data: Bytes to write.
        overwrite: If False and path exists, raise FilesystemError.
        create_dirs: Create parent directories if needed.
        mode: File permission mode to apply to the written file.

    Returns:
        The Path of the written file.
    """
    file_path = Path(path)

    if file_path.exists() and not overwrite:
        raise FilesystemError(f"File '{file_path}' already exists. Aborting.")

    if create_dirs:
        ensure_dir(file_path.parent)
    elif not file_path.parent.is_dir():
        raise FilesystemError(f"Path '{file_path.parent}' not found.")

    with atomic_output(file_path, mode=mode) as tmp:
        with open(tmp, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())

    return file_path

def set_permissions(
    path: StrPath,
    mode: int,
    owner: Optional[str] = None,
    group: Optional[str] = None,
) -> bool:
    """
    Enforce mode, owner and group on a file.

    Args:
        path: The file to act on.
        mode: Permission bits, e.g. 0o600.
        owner: User name, or None to leave ownership alone.
        group: Group name, or None to leave the group alone.

    Returns:
        bool: True if anything had to be changed.
    """
    file_path = Path(path)

    try:
        st = file_path.stat()
        changed = False

        uid = _lookup_uid(owner) if owner else -1
        gid = _lookup_gid(group) if group else -1

        if (uid != -1 and st.st_uid != uid) or (gid != -1 and st.st_gid != gid):
            os.chown(file_path, uid, gid)
            changed = True

        if stat.S_IMODE(st.st_mode) != mode:
            os.chmod(file_path, mode)
            changed = True

        return changed

    except FileNotFoundError as e:
        raise FilesystemError(f"File '{file_path}' not found.") from e
    except PermissionError as e:
        raise FilesystemError(f"Permission denied setting ownership of '{file_path}'.") from e
    except OSError as err:
        raise FilesystemError(f"I/O error while setting permissions on '{file_path}': {err}") from err

def _lookup_uid(owner: str) -> int:
    try:
        return pwd.getpwnam(owner).pw_uid
    except KeyError as e:
        raise FilesystemError(f"Unknown user {owner!r}.") from e

def _lookup_gid(group: str) -> int:
    try:
        return grp.getgrnam(group).gr_gid
    except KeyError as e:
        raise FilesystemError(f"Unknown group {group!r}.") from e

def _fsync_dir(directory: Path) -> None:
    # fsync the containing directory so the rename is durable
    dir_fd = os.open(str(directory), os.O_DIRECTORY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)

@contextmanager
def file_lock(path: StrPath, timeout: float = 30.0, poll_interval: float = 0.1) -> Iterator[Path]:
    """
    Hold an exclusive advisory lock on `path` for the duration of the block.

    Args:
        path: Lock file; created if missing.
        timeout: Seconds to wait for the lock before giving up.
        poll_interval: Seconds between attempts.

    Raises:
        LockError: The lock is still held elsewhere after `timeout` seconds.
    """
    lock_path = Path(path)

    try:
        fd = os.open(str(lock_path), os.O_RDWR | os.O_CREAT, 0o600)
    except OSError as err:
        raise FilesystemError(f"Unable to open lock file '{lock_path}': {err}") from err

    deadline = time.monotonic() + timeout

    try:
        while True:
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    raise LockError(f"Timed out after {timeout}s waiting for lock '{lock_path}'.")
                time.sleep(poll_interval)

        try:
            yield lock_path
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
    finally:
        os.close(fd)
