"""Business logic for the profile page (username, avatar, own activity)."""
import logging
from typing import Dict, Optional, Tuple

from werkzeug.utils import secure_filename

from ..repositories.object_storage import StorageError

AVATAR_BUCKET = 'avatars'


class ProfileService:
    """Reads and updates the signed-in user's own profile.

    All methods accept a *db* SQLAlchemy session as the first argument so
    that callers (Flask route handlers) control the session lifecycle.
    """

    def __init__(self, db_module, storage) -> None:
        """
        Args:
            db_module: The imported ``database`` module.
            storage:   :class:`~catalog.repositories.object_storage.ObjectStorage`
                holding the ``avatars`` bucket.
        """
        self._db = db_module
        self._storage = storage
        self._log = logging.getLogger('gamehub.catalog.ProfileService')

    def get_overview(self, db, user_id: str) -> Optional[Dict]:
        """Return the profile with the user's comments and, for admins, uploads.

        Returns:
            ``None`` when the profile does not exist.
        """
        profile = self._db.get_profile(db, user_id)
        if profile is None:
            return None
        overview = {
            'profile': self._db.profile_to_dict(profile),
            'comments': self._db.get_comments_for_user(db, user_id),
            'games': [],
        }
        if profile.is_admin:
            overview['games'] = [self._db.game_to_dict(g)
                                 for g in self._db.get_games_by_creator(db, user_id)]
        return overview

    def update_profile(self, db, user_id: str, username: str,
                       avatar_data: Optional[bytes] = None,
                       avatar_filename: Optional[str] = None) -> Tuple[bool, str]:
        """Change username and optionally replace the avatar.

        The previous avatar object is removed before the new one is stored
        at ``<user_id>/<filename>``.

        Returns:
            ``(ok, message)``.
        """
        profile = self._db.get_profile(db, user_id)
        if profile is None:
            return False, 'Profile not found'
        username = (username or '').strip()
        if len(username) < 3:
            return False, 'Username must be at least 3 characters'

        avatar_url = profile.avatar_url
        if avatar_data:
            filename = secure_filename(avatar_filename or 'avatar.png') or 'avatar.png'
            new_path = f"{user_id}/{filename}"
            old_path = self._storage.path_from_public_url(AVATAR_BUCKET, profile.avatar_url)
            if old_path and old_path != new_path:
                self._storage.remove(AVATAR_BUCKET, [old_path])
            try:
                self._storage.upload(AVATAR_BUCKET, new_path, avatar_data)
            except StorageError as e:
                self._log.error("Avatar upload failed for %s: %s", user_id, e)
                return False, f'Error updating profile: {e}'
            avatar_url = self._storage.get_public_url(AVATAR_BUCKET, new_path)

        if not self._db.update_profile(db, user_id, username=username, avatar_url=avatar_url):
            return False, 'Error updating profile'
        self._log.info('Updated profile %s', user_id)
        return True, 'Profile updated successfully!'
