"""Catalog query, client-side text filter and the catalog view model."""
import logging
from typing import Dict, List, Optional, Sequence

SORT_KEYS = ('created_at', 'rating', 'downloads')
SORT_LABELS = {
    'created_at': 'Newest',
    'rating': 'Highest Rated',
    'downloads': 'Most Downloaded',
}
VIEW_MODES = ('grid', 'list')


def normalize_sort(sort: Optional[str]) -> str:
    return sort if sort in SORT_KEYS else 'created_at'


def filter_listings(listings: Sequence[Dict], term: Optional[str]) -> List[Dict]:
    """Keep listings whose title or description contains *term* (case-insensitive).

    An empty term keeps every listing, in order. Any other term, spaces
    included, is matched as-is.
    """
    if not term:
        return list(listings)
    needle = term.lower()
    return [
        listing for listing in listings
        if needle in (listing.get('title') or '').lower()
        or needle in (listing.get('description') or '').lower()
    ]


class CatalogService:
    """Issues the server-side listing query.

    The text filter is not part of the query; it runs on the
    fetched rows via :func:`filter_listings`.
    """

    def __init__(self, db_module) -> None:
        """
        Args:
            db_module: The imported ``database`` module (or any object that
                exposes ``list_games``, ``game_to_dict`` and ``CATEGORIES``).
        """
        self._db = db_module
        self._log = logging.getLogger('gamehub.catalog.CatalogService')

    @property
    def categories(self) -> Sequence[str]:
        return self._db.CATEGORIES

    def normalize_category(self, category: Optional[str]) -> str:
        return category if category in self._db.CATEGORIES else 'all'

    def fetch(self, db, category: str = 'all', sort: str = 'created_at') -> Optional[List[Dict]]:
        """Return listings for *category* ordered by *sort*, or ``None`` on failure."""
        rows = self._db.list_games(db, self.normalize_category(category), normalize_sort(sort))
        if rows is None:
            self._log.error("Catalog query failed (category=%s, sort=%s)", category, sort)
            return None
        return [self._db.game_to_dict(row) for row in rows]

    def search(self, db, category: str = 'all', sort: str = 'created_at',
               term: str = '') -> Optional[List[Dict]]:
        """Server query followed by the text filter."""
        listings = self.fetch(db, category, sort)
        if listings is None:
            return None
        return filter_listings(listings, term)


class CatalogView:
    """State behind the catalog page.

    Changing category or sort re-issues the server query; changing the
    search term only re-filters what was already fetched. A failed query
    leaves the previous listings in place.
    """

    def __init__(self, service: CatalogService, db, category: str = 'all',
                 sort_by: str = 'created_at', search_term: str = '',
                 view_mode: str = 'grid') -> None:
        self._service = service
        self._db = db
        self.category = service.normalize_category(category)
        self.sort_by = normalize_sort(sort_by)
        self.search_term = search_term or ''
        self.view_mode = view_mode if view_mode in VIEW_MODES else 'grid'
        self.listings: List[Dict] = []
        self.loading = False

    def refresh(self) -> bool:
        """Re-run the server query. Returns False when it failed."""
        self.loading = True
        try:
            fetched = self._service.fetch(self._db, self.category, self.sort_by)
        finally:
            self.loading = False
        if fetched is None:
            return False
        self.listings = fetched
        return True

    def set_category(self, category: str) -> bool:
        self.category = self._service.normalize_category(category)
        return self.refresh()

    def set_sort(self, sort_by: str) -> bool:
        self.sort_by = normalize_sort(sort_by)
        return self.refresh()

    def set_search_term(self, term: str) -> None:
        self.search_term = term or ''

    def set_view_mode(self, mode: str) -> None:
        if mode in VIEW_MODES:
            self.view_mode = mode

    @property
    def visible(self) -> List[Dict]:
        return filter_listings(self.listings, self.search_term)

    @property
    def is_empty(self) -> bool:
        return not self.visible

    def record_download(self, game_id: str) -> None:
        """Optimistically bump the local download counter of one listing."""
        for listing in self.listings:
            if listing.get('id') == game_id:
                listing['download_count'] = (listing.get('download_count') or 0) + 1
                break

    def to_dict(self) -> Dict:
        return {
            'category': self.category,
            'sort': self.sort_by,
            'search_term': self.search_term,
            'view_mode': self.view_mode,
            'games': self.visible,
            'empty': self.is_empty,
        }
