"""Business logic for listing comments and star ratings."""
import logging
from typing import Dict, List, Tuple

MIN_RATING = 1
MAX_RATING = 5
DEFAULT_RATING = 5


class CommentService:
    """Validates and applies comment operations, delegating persistence to
    the ``database`` module's helper functions.

    Rules
    -----
    * ``content`` must be non-empty after trimming; otherwise submission is
      a no-op and nothing is inserted.
    * ``rating`` must be an integer in the range **1–5** (inclusive),
      defaulting to 5.
    * A user may comment on the same listing any number of times.
    * After a successful insert the full comment list is re-fetched.
    * The listing's own ``rating`` column is never touched here.
    """

    def __init__(self, db_module) -> None:
        self._db = db_module
        self._log = logging.getLogger('gamehub.catalog.CommentService')

    def submit(self, db, game_id: str, user_id: str, content: str,
               rating=DEFAULT_RATING) -> Tuple[bool, str, List[Dict]]:
        """Add a comment.

        Returns:
            ``(ok, message, comments)`` where *comments* is the re-fetched
            list on success and an empty list otherwise.
        """
        text = content.strip() if isinstance(content, str) else ''
        if not user_id or not text:
            return False, 'Comment must not be empty', []
        try:
            rating = int(rating)
        except (TypeError, ValueError):
            return False, 'rating must be an integer', []
        if not MIN_RATING <= rating <= MAX_RATING:
            return False, f'rating must be between {MIN_RATING} and {MAX_RATING}', []

        comment = self._db.insert_comment(db, game_id, user_id, text, rating)
        if comment is None:
            self._log.error("Error submitting comment on %s", game_id)
            return False, 'Could not submit comment', []
        return True, 'Comment added', self.list_for_game(db, game_id)

    def list_for_game(self, db, game_id: str) -> List[Dict]:
        return self._db.get_comments_for_game(db, game_id)

    def list_for_user(self, db, user_id: str) -> List[Dict]:
        return self._db.get_comments_for_user(db, user_id)

    def rating_summary(self, db, game_id: str) -> Dict:
        """Mean of submitted star ratings, kept apart from the listing's own rating."""
        return self._db.get_comment_rating_summary(db, game_id)
