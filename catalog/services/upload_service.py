"""Upload orchestration: metadata autofill, cover image upload, listing insert."""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from werkzeug.utils import secure_filename

from steam_store import SteamStoreError, is_store_url
from ..repositories.object_storage import StorageError

IMAGE_BUCKET = 'images'
DEFAULT_CATEGORY = 'action'


@dataclass
class UploadForm:
    """Fields of the upload form, manual or autofilled."""
    title: str = ''
    description: str = ''
    category: str = DEFAULT_CATEGORY
    file_url: str = ''
    image_data: Optional[bytes] = None
    image_filename: Optional[str] = None
    image_url: Optional[str] = None
    screenshots: List[str] = field(default_factory=list)
    steam_appid: Optional[int] = None

    def missing_fields(self) -> List[str]:
        """Names of required fields that are empty after trimming."""
        missing = []
        for name in ('title', 'description', 'file_url'):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                missing.append(name)
        return missing

    def is_submittable(self) -> bool:
        return not self.missing_fields()


@dataclass
class AutofillResult:
    success: bool
    message: str = ''
    fields: Dict = field(default_factory=dict)
    candidates: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'success': self.success,
            'message': self.message,
            'fields': self.fields,
            'candidates': self.candidates,
        }


@dataclass
class UploadResult:
    success: bool
    message: str
    game: Optional[Dict] = None


def _category_from_genres(genres) -> str:
    if genres:
        first = genres[0]
        name = first.get('description') if isinstance(first, dict) else first
        if name:
            return str(name).lower()
    return DEFAULT_CATEGORY


class UploadService:
    """Drives the upload form.

    Every step returns a result value; nothing here raises to the caller.
    Proxy failures come back as messages so the user can keep typing the
    fields in by hand.
    """

    def __init__(self, db_module, storage, steam_client) -> None:
        self._db = db_module
        self._storage = storage
        self._steam = steam_client
        self._log = logging.getLogger('gamehub.catalog.UploadService')

    # ------------------------------------------------------------------
    # Autofill
    # ------------------------------------------------------------------

    def _coerce_category(self, category: str) -> str:
        return category if category in self._db.CATEGORIES else DEFAULT_CATEGORY

    def _fields_from_details(self, details: Dict, fallback_title: str = '') -> Dict:
        return {
            'title': details.get('title') or fallback_title,
            'description': details.get('short_description') or details.get('about_the_game') or '',
            'category': self._coerce_category(_category_from_genres(details.get('genres'))),
            'image_url': details.get('header_image'),
            'screenshots': [s['url'] for s in details.get('screenshots', []) if s.get('url')],
            'steam_appid': details.get('appid'),
            'about_the_game': details.get('about_the_game', ''),
            'pc_requirements': details.get('pc_requirements', {}),
        }

    def autofill(self, text: str) -> AutofillResult:
        """Resolve a store URL, or search the store by name.

        A store URL goes through resolve-then-details and returns filled
        fields; anything else returns up to 20 name/id candidates.
        """
        text = (text or '').strip()
        if not text:
            return AutofillResult(success=False, message='Enter a game name or Steam store link.')

        if is_store_url(text):
            try:
                resolved = self._steam.resolve_url(text)
            except SteamStoreError as e:
                return AutofillResult(success=False, message=f'Error: {e.message}')
            fields = {
                'title': resolved.get('title', ''),
                'description': resolved.get('description', ''),
                'category': self._coerce_category(str(resolved.get('category', '')).lower()),
                'image_url': resolved.get('image_url'),
                'screenshots': [],
                'steam_appid': resolved.get('appid'),
            }
            try:
                details = self._steam.get_details(resolved.get('appid'))
            except SteamStoreError as e:
                self._log.warning("Store details unavailable for %s: %s", resolved.get('appid'), e)
                return AutofillResult(success=True, message='Game details loaded successfully!',
                                      fields=fields)
            merged = self._fields_from_details(details, fallback_title=fields['title'])
            fields.update({k: v for k, v in merged.items() if v})
            return AutofillResult(success=True, message='Game details loaded successfully!',
                                  fields=fields)

        try:
            candidates = self._steam.search(text)
        except SteamStoreError as e:
            return AutofillResult(success=False, message=f'Error: {e.message}')
        message = f'{len(candidates)} results found.' if candidates else 'No results found.'
        return AutofillResult(success=True, message=message, candidates=candidates)

    def select_candidate(self, appid, name: str = '') -> AutofillResult:
        """Fetch store details for a picked search result."""
        try:
            details = self._steam.get_details(appid)
        except SteamStoreError:
            fields = {'title': name, 'description': '', 'category': DEFAULT_CATEGORY}
            return AutofillResult(
                success=False,
                message=f'Could not find store details for "{name}". Please fill in manually.',
                fields=fields,
            )
        return AutofillResult(success=True, message='Game details loaded successfully!',
                              fields=self._fields_from_details(details, fallback_title=name))

    # ------------------------------------------------------------------
    # Submit
    # ------------------------------------------------------------------

    def submit(self, db, user_id: str, form: UploadForm,
               on_progress: Optional[Callable[[int], None]] = None) -> UploadResult:
        """Validate, upload the cover image, then insert the listing."""
        if not user_id:
            return UploadResult(False, 'You must be signed in to upload.')
        if form.missing_fields():
            return UploadResult(False, 'Game title, description, and a download link are required.')
        if form.category not in self._db.CATEGORIES:
            return UploadResult(False, f'Invalid category: {form.category}')

        image_url = form.image_url
        stored_path = None
        if form.image_data:
            filename = secure_filename(form.image_filename or 'cover.jpg') or 'cover.jpg'
            stored_path = f"{user_id}_{int(time.time() * 1000)}_{filename}"
            try:
                self._storage.upload(IMAGE_BUCKET, stored_path, form.image_data,
                                     on_progress=on_progress)
                image_url = self._storage.get_public_url(IMAGE_BUCKET, stored_path)
            except StorageError as e:
                self._log.error("Image upload failed for %s: %s", user_id, e)
                return UploadResult(False, f'Error: {e}')

        game = self._db.insert_game(
            db,
            title=form.title.strip(),
            description=form.description.strip(),
            category=form.category,
            file_url=form.file_url.strip(),
            image_url=image_url,
            screenshots=form.screenshots or None,
            steam_appid=form.steam_appid,
            created_by=user_id,
            download_count=0,
            rating=0.0,
        )
        if game is None:
            if stored_path:
                self._storage.remove(IMAGE_BUCKET, [stored_path])
                self._log.info("Removed orphaned image %s after failed insert", stored_path)
            return UploadResult(False, 'Error: could not save the game.')

        self._log.info("Game uploaded: %s by %s", game.id, user_id)
        return UploadResult(True, 'Game uploaded successfully!', self._db.game_to_dict(game))
