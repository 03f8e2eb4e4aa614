"""Filesystem-backed object storage for listing images and avatars."""
import io
import logging
import os
from typing import BinaryIO, Callable, Iterable, Optional, Union
from urllib.parse import quote, unquote, urlparse

from .base import atomic_write

DEFAULT_BUCKETS = ('images', 'avatars', 'games')
CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[int], None]


class StorageError(Exception):
    """Raised for invalid buckets/paths or failed writes."""


class ObjectStorage:
    """Stores binary objects as files under ``<root>/<bucket>/<path>``.

    Objects are written to a temp file and renamed into place, so a reader
    never sees a partial object. Public references are
    ``<public_base_url>/<bucket>/<path>``; the web app serves them read-only.
    """

    def __init__(self, root_dir: str, public_base_url: str = '/storage',
                 buckets: Iterable[str] = DEFAULT_BUCKETS) -> None:
        self.root_dir = os.path.abspath(root_dir)
        self.public_base_url = public_base_url.rstrip('/')
        self.buckets = tuple(buckets)
        self._log = logging.getLogger('gamehub.repository.ObjectStorage')

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def object_path(self, bucket: str, path: str) -> str:
        """Absolute filesystem path for an object; rejects escapes from the bucket."""
        if bucket not in self.buckets:
            raise StorageError(f"Unknown bucket: {bucket}")
        clean = (path or '').replace('\\', '/').lstrip('/')
        if not clean or any(part in ('', '.', '..') for part in clean.split('/')):
            raise StorageError(f"Invalid object path: {path!r}")
        bucket_dir = os.path.join(self.root_dir, bucket)
        full = os.path.abspath(os.path.join(bucket_dir, *clean.split('/')))
        if not full.startswith(bucket_dir + os.sep):
            raise StorageError(f"Invalid object path: {path!r}")
        return full

    def get_public_url(self, bucket: str, path: str) -> str:
        """Stable public reference for an object (the object need not exist)."""
        self.object_path(bucket, path)
        return f"{self.public_base_url}/{bucket}/{quote(path.lstrip('/'))}"

    def path_from_public_url(self, bucket: str, url: str) -> Optional[str]:
        """Inverse of :meth:`get_public_url`; ``None`` if *url* is not in *bucket*."""
        if not url:
            return None
        pathname = urlparse(url).path if '://' in url else url
        marker = f'/{bucket}/'
        if marker not in pathname:
            return None
        tail = unquote(pathname.split(marker, 1)[1])
        return tail or None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def upload(self, bucket: str, path: str, data: Union[bytes, BinaryIO],
               total_size: Optional[int] = None,
               on_progress: Optional[ProgressCallback] = None,
               upsert: bool = True) -> str:
        """Store *data* at *bucket*/*path* and return the object's path.

        *data* may be ``bytes`` or a readable binary stream. When
        *on_progress* is given it receives integer percentages (0-100),
        computed as bytes written / *total_size*, never decreasing and
        always ending at 100.
        """
        target = self.object_path(bucket, path)
        if not upsert and os.path.exists(target):
            raise StorageError(f"Object already exists: {bucket}/{path}")

        if isinstance(data, (bytes, bytearray)):
            total_size = len(data)
            stream: BinaryIO = io.BytesIO(data)
        else:
            stream = data

        last_reported = -1

        def report(percent: int) -> None:
            nonlocal last_reported
            if on_progress is None or percent <= last_reported:
                return
            last_reported = percent
            on_progress(percent)

        def copy(fh: BinaryIO) -> int:
            written = 0
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    return written
                fh.write(chunk)
                written += len(chunk)
                if total_size:
                    report(min(100, int(written * 100 / total_size)))

        report(0)
        try:
            written = atomic_write(target, copy, suffix='.part')
        except OSError as exc:
            self._log.error("Upload to %s/%s failed: %s", bucket, path, exc)
            raise StorageError(f"Could not store {bucket}/{path}: {exc}")

        report(100)
        self._log.info("Stored %s/%s (%d bytes)", bucket, path, written)
        return path

    def remove(self, bucket: str, paths: Iterable[str]) -> int:
        """Delete objects; missing ones are ignored. Returns the number removed."""
        removed = 0
        for path in paths:
            try:
                os.remove(self.object_path(bucket, path))
                removed += 1
            except FileNotFoundError:
                continue
            except (OSError, StorageError) as exc:
                self._log.warning("Could not remove %s/%s: %s", bucket, path, exc)
        return removed

    def exists(self, bucket: str, path: str) -> bool:
        try:
            return os.path.isfile(self.object_path(bucket, path))
        except StorageError:
            return False
