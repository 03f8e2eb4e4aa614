"""Current-identity context and the view access guard."""
import logging
from enum import Enum
from typing import Dict, List, Optional


class View(Enum):
    HOME = 'home'
    LOGIN = 'login'
    REGISTER = 'register'
    GAME_DETAILS = 'game-details'
    UPLOAD = 'upload'
    PROFILE = 'profile'
    ADMIN = 'admin'


# view -> (requires identity, requires admin flag); views not listed are public
VIEW_ACCESS = {
    View.PROFILE: (True, False),
    View.UPLOAD: (True, True),
    View.ADMIN: (True, True),
}

NAV_ITEMS = (
    (View.HOME, 'Games'),
    (View.UPLOAD, 'Upload'),
    (View.ADMIN, 'Admin'),
    (View.PROFILE, 'Profile'),
)


class SessionContext:
    """The one place that knows who is signed in.

    Call :meth:`init` once with the identity carried by the request; call
    :meth:`sign_out` to clear it. Handlers read ``identity``, ``loading``
    and ``is_admin`` and never look at cookies or tokens themselves.
    """

    def __init__(self, db_module) -> None:
        self._db = db_module
        self._log = logging.getLogger('gamehub.catalog.SessionContext')
        self.identity: Optional[Dict] = None
        self.loading = True

    def init(self, db, user_id: Optional[str]) -> Optional[Dict]:
        """Load the profile for *user_id* (if any) and finish loading."""
        self.identity = None
        if user_id:
            profile = self._db.get_profile(db, user_id)
            if profile is not None:
                self.identity = self._db.profile_to_dict(profile)
            else:
                self._log.info("Session refers to unknown profile %s", user_id)
        self.loading = False
        return self.identity

    def sign_out(self) -> None:
        self.identity = None

    @property
    def user_id(self) -> Optional[str]:
        return self.identity['id'] if self.identity else None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.identity and self.identity.get('is_admin'))

    def to_dict(self) -> Dict:
        return {
            'user': self.identity,
            'loading': self.loading,
            'is_admin': self.is_admin,
        }


def can_access(view: View, ctx: SessionContext) -> bool:
    needs_identity, needs_admin = VIEW_ACCESS.get(view, (False, False))
    if needs_identity and not ctx.is_authenticated:
        return False
    if needs_admin and not ctx.is_admin:
        return False
    return True


def guard_view(view: View, ctx: SessionContext) -> View:
    """Return *view* if *ctx* may see it, otherwise the home view."""
    return view if can_access(view, ctx) else View.HOME


def nav_items(ctx: SessionContext) -> List[Dict]:
    """Navigation entries visible to *ctx*."""
    return [
        {'view': view.value, 'label': label}
        for view, label in NAV_ITEMS
        if can_access(view, ctx)
    ]
