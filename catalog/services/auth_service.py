"""Sign-up, sign-in and bearer tokens on top of the profiles table."""
import logging
import re
from typing import Dict, Optional, Tuple

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
TOKEN_SALT = 'gamehub-auth'


class AuthService:
    """Password accounts backed by the ``profiles`` table.

    The first profile ever created becomes an admin so a fresh install can
    be moderated without touching the database by hand.
    """

    def __init__(self, db_module, secret_key: str, token_max_age: int = 7 * 24 * 3600) -> None:
        self._db = db_module
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)
        self._token_max_age = token_max_age
        self._log = logging.getLogger('gamehub.catalog.AuthService')

    def sign_up(self, db, email: str, password: str,
                username: str = '', is_admin: Optional[bool] = None) -> Tuple[bool, str, Optional[Dict]]:
        """Register a new profile.

        Returns:
            ``(ok, message, profile_dict)``.
        """
        email = (email or '').strip()
        username = (username or '').strip() or email.split('@')[0]
        if not EMAIL_RE.match(email):
            return False, 'A valid email address is required', None
        if len(username) < 3:
            return False, 'Username must be at least 3 characters', None
        if len(password or '') < 6:
            return False, 'Password must be at least 6 characters', None
        if self._db.get_profile_by_email(db, email) is not None:
            return False, 'Email already registered', None

        if is_admin is None:
            is_admin = self._db.get_profile_count(db) == 0
        profile = self._db.create_profile(db, email, username,
                                          generate_password_hash(password), is_admin=is_admin)
        if profile is None:
            return False, 'Registration failed', None
        self._log.info('Registered new profile: %s (admin: %s)', email, is_admin)
        return True, 'User registered successfully', self._db.profile_to_dict(profile)

    def sign_in(self, db, email: str, password: str) -> Tuple[bool, str, Optional[Dict]]:
        profile = self._db.get_profile_by_email(db, (email or '').strip())
        if profile is None or not check_password_hash(profile.password_hash, password or ''):
            return False, 'Invalid email or password', None
        return True, 'Login successful', self._db.profile_to_dict(profile)

    def issue_token(self, user_id: str) -> str:
        return self._serializer.dumps({'uid': user_id})

    def verify_token(self, token: str) -> Optional[str]:
        """Return the user id carried by *token*, or ``None`` if invalid/expired."""
        if not token:
            return None
        try:
            payload = self._serializer.loads(token, max_age=self._token_max_age)
        except SignatureExpired:
            self._log.info('Rejected expired token')
            return None
        except BadSignature:
            return None
        return payload.get('uid') if isinstance(payload, dict) else None
