"""Business logic for the admin panel: moderation, roles, statistics."""
import logging
from typing import Dict, List, Optional, Tuple

from steam_store import SteamStoreError


class AdminService:
    """Moderation operations, delegating persistence to the ``database``
    module's helper functions.

    Callers are expected to have checked the admin flag already; this layer
    only enforces data rules.
    """

    def __init__(self, db_module, steam_client=None) -> None:
        self._db = db_module
        self._steam = steam_client
        self._log = logging.getLogger('gamehub.catalog.AdminService')

    # ------------------------------------------------------------------
    # Games tab
    # ------------------------------------------------------------------

    def list_games(self, db) -> List[Dict]:
        rows = self._db.list_games(db, 'all', 'created_at')
        return [self._db.game_to_dict(g) for g in rows or []]

    def delete_game(self, db, game_id: str) -> bool:
        deleted = self._db.delete_game(db, game_id)
        if deleted:
            self._log.info('Deleted game %s', game_id)
        return deleted

    def update_game(self, db, game_id: str, **fields) -> Tuple[bool, str, Optional[Dict]]:
        """Edit listing scalars, including the stored ``rating``."""
        if 'category' in fields and fields['category'] not in self._db.CATEGORIES:
            return False, 'Invalid category', None
        if 'rating' in fields:
            try:
                fields['rating'] = float(fields['rating'])
            except (TypeError, ValueError):
                return False, 'rating must be a number', None
            if not 0 <= fields['rating'] <= 5:
                return False, 'rating must be between 0 and 5', None
        for required in ('title', 'description', 'file_url'):
            if required not in fields:
                continue
            value = fields[required]
            if not isinstance(value, str) or not value.strip():
                return False, f'{required} must be a non-empty string', None
        if fields.get('image_url') is not None and not isinstance(fields['image_url'], str):
            return False, 'image_url must be a string', None
        game = self._db.update_game(db, game_id, **fields)
        if game is None:
            return False, 'Game not found', None
        return True, 'Game updated', self._db.game_to_dict(game)

    def refresh_metadata(self, db, game_id: str) -> Tuple[bool, str, Optional[Dict]]:
        """Re-pull description, cover and screenshots from the Steam store."""
        game = self._db.get_game(db, game_id)
        if game is None:
            return False, 'Game not found', None
        if not game.steam_appid:
            return False, 'Game has no Steam app id', None
        if self._steam is None:
            return False, 'Steam store is not configured', None
        try:
            details = self._steam.get_details(game.steam_appid)
        except SteamStoreError as e:
            self._log.warning('Metadata refresh failed for %s: %s', game_id, e)
            return False, e.message, None

        fields = {}
        if details.get('short_description'):
            fields['description'] = details['short_description']
        if details.get('header_image'):
            fields['image_url'] = details['header_image']
        screenshots = [s['url'] for s in details.get('screenshots', []) if s.get('url')]
        if screenshots:
            fields['screenshots'] = screenshots
        updated = self._db.update_game(db, game_id, **fields)
        if updated is None:
            return False, 'Could not save refreshed metadata', None
        return True, 'Metadata refreshed', self._db.game_to_dict(updated)

    # ------------------------------------------------------------------
    # Users tab
    # ------------------------------------------------------------------

    def list_profiles(self, db) -> List[Dict]:
        return [self._db.profile_to_dict(p) for p in self._db.get_all_profiles(db)]

    def toggle_admin(self, db, user_id: str) -> Tuple[bool, str, Optional[bool]]:
        """Flip a profile's admin flag.

        Returns:
            ``(ok, message, new_flag)``.
        """
        profile = self._db.get_profile(db, user_id)
        if profile is None:
            return False, 'User not found', None
        new_flag = not bool(profile.is_admin)
        if not self._db.set_admin_flag(db, user_id, new_flag):
            return False, 'Failed to update user', None
        self._log.info('Admin flag for %s set to %s', user_id, new_flag)
        return True, 'User updated', new_flag

    # ------------------------------------------------------------------
    # Statistics tab
    # ------------------------------------------------------------------

    def stats(self, db) -> Dict:
        return self._db.get_stats(db)
