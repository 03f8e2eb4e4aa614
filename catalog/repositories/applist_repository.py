"""Repository caching the Steam app list ({fetched_at, apps}) on disk."""
import time
from typing import Dict, List, Optional

from .base import BaseRepository


class AppListRepository(BaseRepository):
    """Persists the (large) Steam app list so searches survive restarts.

    Schema::

        {
            "fetched_at": <unix timestamp float>,
            "apps":       [{"appid": <int>, "name": <str>}, ...]
        }
    """

    def __init__(self, file_path: str = '.gamehub_applist.json') -> None:
        super().__init__(file_path)
        self.data: Dict = self._load({})

    def get_apps(self, max_age_hours: float = 24) -> Optional[List[Dict]]:
        """Return the cached app list, or ``None`` when missing or stale."""
        apps = self.data.get('apps')
        fetched_at = self.data.get('fetched_at', 0)
        if not isinstance(apps, list):
            return None
        if time.time() - float(fetched_at or 0) > max_age_hours * 3600:
            return None
        return apps

    def store_apps(self, apps: List[Dict]) -> None:
        """Replace the cached list and persist it."""
        self.data = {'fetched_at': time.time(), 'apps': apps}
        try:
            self._save(self.data)
        except OSError as exc:
            self._log.warning("Could not persist app list cache: %s", exc)
