"""Write-then-rename file helper and the JSON repository base."""
import json
import logging
import os
import tempfile
from typing import Any, BinaryIO, Callable, TypeVar

T = TypeVar('T')


def atomic_write(path: str, writer: Callable[[BinaryIO], T], suffix: str = '.tmp') -> T:
    """Run *writer* on a sibling temp file, then rename it over *path*.

    Returns whatever *writer* returns. On any exception, including ones that
    are not ``OSError`` such as a dropped client connection, the temp file is
    unlinked and the exception propagates; *path* is left untouched.
    """
    dir_name = os.path.dirname(os.path.abspath(path))
    os.makedirs(dir_name, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix=suffix)
    try:
        with os.fdopen(fd, 'wb') as fh:
            result = writer(fh)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return result


class BaseRepository:
    """A single JSON file on disk, read with :meth:`_load` and written with :meth:`_save`."""

    def __init__(self, file_path: str) -> None:
        self._path = file_path
        self._log = logging.getLogger(f'gamehub.repository.{type(self).__name__}')

    def _load(self, default: Any) -> Any:
        if not os.path.exists(self._path):
            return default
        try:
            with open(self._path, 'r') as fh:
                return json.load(fh)
        except (json.JSONDecodeError, IOError) as exc:
            self._log.warning("Ignoring unreadable %s: %s", self._path, exc)
            return default

    def _save(self, data: Any) -> None:
        payload = json.dumps(data).encode('utf-8')
        atomic_write(self._path, lambda fh: fh.write(payload))
