"""
Filesystem access for generated files and cache state.

The sync orchestrator only talks to a ``FileSystem``; tests substitute an
in-memory implementation.
"""

import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import Protocol, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _target_mode(path: Path) -> int:
    """Mode for the written file: the existing file's mode, else 0666 minus the umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        pass
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_text_atomic(path: Path, content: str) -> None:
    """
    Write text to ``path`` through a temporary file in the same directory.

    Readers never observe a half-written file; on failure the previous
    content is left in place. The result gets the permissions a plain
    ``open()`` would give it, not the private mode of the temporary file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _target_mode(path)
    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise


class FileSystem(Protocol):
    """Write and delete operations used by the sync orchestrator."""

    def write_text(self, path: PathLike, content: str) -> None:
        ...

    def delete(self, path: PathLike) -> bool:
        """Delete ``path`` if present; return whether a file was removed."""
        ...


class LocalFileSystem:
    """``FileSystem`` backed by the local disk."""

    def write_text(self, path: PathLike, content: str) -> None:
        target = Path(path)
        write_text_atomic(target, content)
        logger.debug(f"Wrote {target}")

    def delete(self, path: PathLike) -> bool:
        target = Path(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        logger.debug(f"Deleted {target}")
        return True
