"""Download action: resolve a listing's file reference and count the download."""
import logging
import re
from dataclasses import dataclass
from typing import Optional

DRIVE_FILE_RE = re.compile(r'drive\.google\.com/file/d/([^/?#]+)')
DRIVE_DIRECT_URL = 'https://drive.google.com/uc?export=download&id={file_id}'


def resolve_download_link(file_url: str) -> str:
    """Rewrite a Google Drive share link to its direct-download form.

    Any other reference (storage URL, plain link) is returned unchanged.
    """
    if not file_url or 'drive.google.com' not in file_url:
        return file_url
    match = DRIVE_FILE_RE.search(file_url)
    if not match:
        return file_url
    return DRIVE_DIRECT_URL.format(file_id=match.group(1))


@dataclass
class DownloadResult:
    game_id: str
    title: str
    download_url: str
    download_count: int
    counted: bool


class DownloadService:
    """Counts a download and hands back the link to open."""

    def __init__(self, db_module) -> None:
        self._db = db_module
        self._log = logging.getLogger('gamehub.catalog.DownloadService')

    def download(self, db, game_id: str) -> Optional[DownloadResult]:
        """Bump the counter and resolve the link for *game_id*.

        Returns ``None`` when the listing does not exist. A failed counter
        write is logged but does not stop the download; ``download_count``
        is always the previously read value plus one.
        """
        game = self._db.get_game(db, game_id)
        if game is None:
            return None
        previous = game.download_count or 0
        link = resolve_download_link(game.file_url)
        title = game.title

        counted = self._db.increment_download_count(db, game_id)
        if not counted:
            self._log.error("Error updating download count for %s", game_id)

        self._log.info("Download of %s (%s)", game_id, title)
        return DownloadResult(
            game_id=game_id,
            title=title,
            download_url=link,
            download_count=previous + 1,
            counted=counted,
        )
