#!/usr/bin/env python3
"""
Steam store client used by the metadata autofill proxies.

Three operations, each a thin translation over a public Steam endpoint:

* :meth:`SteamStoreClient.search` - substring search over the full app list.
* :meth:`SteamStoreClient.resolve_url` - turn a store page URL into basic
  listing fields.
* :meth:`SteamStoreClient.get_details` - rich store details (about text,
  screenshots, PC requirements, genres).
"""

import logging
import re
import time
from typing import Dict, List, Optional

import requests

STORE_URL_RE = re.compile(r'store\.steampowered\.com/app/(\d+)')

SEARCH_RESULT_LIMIT = 20


class SteamStoreError(Exception):
    """Raised when a store request cannot be completed."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SteamNotFoundError(SteamStoreError):
    """The store reports no app for the requested id."""


def is_store_url(text: str) -> bool:
    """Return True if *text* looks like a Steam store app page URL."""
    return bool(text) and bool(STORE_URL_RE.search(text))


def extract_app_id(url: str) -> Optional[int]:
    """Return the numeric app id from a store URL, or ``None``."""
    match = STORE_URL_RE.search(url or '')
    if not match:
        return None
    return int(match.group(1))


class SteamStoreClient:
    """Client for the Steam store and app-list endpoints."""

    APP_LIST_URL = "https://api.steampowered.com/ISteamApps/GetAppList/v2/"
    APP_DETAILS_URL = "https://store.steampowered.com/api/appdetails"

    def __init__(self, country: str = 'us', language: str = 'english', timeout: int = 10,
                 applist_cache=None, applist_max_age_hours: float = 24):
        self.session = requests.Session()
        self.country = country
        self.language = language
        self.timeout = timeout
        self.applist_cache = applist_cache
        self.applist_max_age_hours = applist_max_age_hours
        self._log = logging.getLogger('gamehub.steam')
        self._apps: Optional[List[Dict]] = None
        self._apps_fetched_at = 0.0

    # ------------------------------------------------------------------
    # App list
    # ------------------------------------------------------------------

    def _app_list_is_fresh(self) -> bool:
        max_age = self.applist_max_age_hours * 3600
        return self._apps is not None and (time.time() - self._apps_fetched_at) < max_age

    def get_app_list(self) -> List[Dict]:
        """Return the Steam app list, using the memory and file caches first."""
        if self._app_list_is_fresh():
            return self._apps

        if self.applist_cache is not None:
            cached = self.applist_cache.get_apps(max_age_hours=self.applist_max_age_hours)
            if cached is not None:
                self._apps = cached
                self._apps_fetched_at = time.time()
                return cached

        try:
            response = self.session.get(self.APP_LIST_URL, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            self._log.error("Error fetching Steam app list: %s", e)
            raise SteamStoreError('Could not fetch the Steam app list.')
        except ValueError as e:
            self._log.error("Steam app list was not valid JSON: %s", e)
            raise SteamStoreError('Could not fetch the Steam app list.')

        apps = data.get('applist', {}).get('apps', []) if isinstance(data, dict) else []
        self._apps = apps
        self._apps_fetched_at = time.time()
        if self.applist_cache is not None:
            self.applist_cache.store_apps(apps)
        return apps

    def search(self, term: str, limit: int = SEARCH_RESULT_LIMIT) -> List[Dict]:
        """Case-insensitive substring search over app names.

        Apps without a name are skipped. At most *limit* results are
        returned, in app-list order.
        """
        if not term or not term.strip():
            raise SteamStoreError('Search term must not be empty.')
        needle = term.strip().lower()
        results = []
        for app in self.get_app_list():
            name = app.get('name')
            if name and needle in name.lower():
                results.append({'appid': app.get('appid'), 'name': name})
                if len(results) >= limit:
                    break
        self._log.debug("Steam search %r returned %d results", term, len(results))
        return results

    # ------------------------------------------------------------------
    # Store details
    # ------------------------------------------------------------------

    def _fetch_app_data(self, app_id: int) -> Dict:
        params = {'appids': app_id, 'cc': self.country, 'l': self.language}
        try:
            response = self.session.get(self.APP_DETAILS_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            self._log.warning("Could not fetch store details for app %s: %s", app_id, e)
            raise SteamStoreError('Could not fetch details from the Steam store.')
        except ValueError as e:
            self._log.warning("Store details for app %s were not valid JSON: %s", app_id, e)
            raise SteamStoreError('Could not fetch details from the Steam store.')

        entry = data.get(str(app_id)) if isinstance(data, dict) else None
        if not entry or not entry.get('success') or not entry.get('data'):
            raise SteamNotFoundError('Game not found in store.')
        return entry['data']

    def resolve_url(self, url: str) -> Dict:
        """Resolve a store page URL into basic listing fields."""
        if not url:
            raise SteamStoreError('URL is required.')
        app_id = extract_app_id(url)
        if app_id is None:
            raise SteamStoreError('Invalid Steam app URL.')

        data = self._fetch_app_data(app_id)
        genres = data.get('genres') or []
        category = genres[0].get('description') if genres and genres[0].get('description') else 'Action'
        return {
            'success': True,
            'appid': data.get('steam_appid', app_id),
            'title': data.get('name', ''),
            'description': data.get('short_description', ''),
            'image_url': data.get('header_image'),
            'category': category,
        }

    def get_details(self, app_id) -> Dict:
        """Return normalised store details for *app_id*."""
        try:
            app_id_int = int(app_id)
        except (TypeError, ValueError):
            raise SteamStoreError('App id (appId) is required.')

        data = self._fetch_app_data(app_id_int)
        requirements = data.get('pc_requirements') or {}
        # Steam sends an empty list instead of a dict when there are none
        if not isinstance(requirements, dict):
            requirements = {}
        return {
            'success': True,
            'appid': data.get('steam_appid', app_id_int),
            'title': data.get('name', ''),
            'about_the_game': data.get('about_the_game', ''),
            'short_description': data.get('short_description', ''),
            'screenshots': [
                {'id': shot.get('id'), 'url': shot.get('path_full')}
                for shot in (data.get('screenshots') or [])
            ],
            'pc_requirements': {
                'minimum': requirements.get('minimum', ''),
                'recommended': requirements.get('recommended'),
            },
            'header_image': data.get('header_image'),
            'genres': data.get('genres') or [],
        }
