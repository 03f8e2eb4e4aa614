#!/usr/bin/env python3
"""
Tests for upload orchestration: form validation, Steam autofill, image
upload with progress, and listing insert.

Run with:
    python -m pytest tests/test_upload.py
"""
import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import database
from catalog.repositories import ObjectStorage
from catalog.services import UploadForm, UploadService
from steam_store import SteamNotFoundError, SteamStoreError
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


def _make_session():
    engine = create_engine('sqlite:///:memory:', connect_args={"check_same_thread": False})
    database.Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)()


DETAILS = {
    'success': True,
    'appid': 620,
    'title': 'Portal 2',
    'about_the_game': '<p>About</p>',
    'short_description': 'Think with portals.',
    'screenshots': [{'id': 0, 'url': 'https://cdn/ss0.jpg'}, {'id': 1, 'url': 'https://cdn/ss1.jpg'}],
    'pc_requirements': {'minimum': 'min', 'recommended': None},
    'header_image': 'https://cdn/header.jpg',
    'genres': [{'id': '9', 'description': 'Puzzle'}],
}


def _valid_form(**overrides):
    fields = dict(title='Portal 2', description='Puzzles', category='puzzle',
                  file_url='https://example.com/portal.zip')
    fields.update(overrides)
    return UploadForm(**fields)


class TestUploadForm(unittest.TestCase):

    def test_missing_fields(self):
        form = UploadForm(title='  ', description='x', file_url='')
        self.assertEqual(form.missing_fields(), ['title', 'file_url'])
        self.assertFalse(form.is_submittable())

    def test_non_string_fields_count_as_missing(self):
        form = UploadForm(title=5, description=['x'], file_url='https://example.com/g.zip')
        self.assertEqual(form.missing_fields(), ['title', 'description'])

    def test_complete_form_is_submittable(self):
        self.assertTrue(_valid_form().is_submittable())


class TestAutofill(unittest.TestCase):

    def setUp(self):
        self.steam = MagicMock()
        self.service = UploadService(database, MagicMock(), self.steam)

    def test_store_url_resolves_then_loads_details_without_search(self):
        self.steam.resolve_url.return_value = {
            'success': True, 'appid': 620, 'title': 'Portal 2',
            'description': 'Short', 'image_url': 'https://cdn/header.jpg', 'category': 'Puzzle',
        }
        self.steam.get_details.return_value = DETAILS
        result = self.service.autofill('https://store.steampowered.com/app/620/Portal_2/')

        self.assertTrue(result.success)
        self.steam.search.assert_not_called()
        self.steam.get_details.assert_called_once_with(620)
        self.assertEqual(result.fields['title'], 'Portal 2')
        self.assertEqual(result.fields['category'], 'puzzle')
        self.assertEqual(result.fields['screenshots'], ['https://cdn/ss0.jpg', 'https://cdn/ss1.jpg'])
        self.assertEqual(result.message, 'Game details loaded successfully!')

    def test_unknown_genre_falls_back_to_action(self):
        self.steam.resolve_url.return_value = {'appid': 1, 'title': 'X', 'description': 'd',
                                               'image_url': None, 'category': 'Indie'}
        self.steam.get_details.side_effect = SteamNotFoundError('Game not found in store.')
        result = self.service.autofill('https://store.steampowered.com/app/1/')
        self.assertTrue(result.success)
        self.assertEqual(result.fields['category'], 'action')

    def test_resolve_failure_surfaces_message(self):
        self.steam.resolve_url.side_effect = SteamNotFoundError('Game not found in store.')
        result = self.service.autofill('https://store.steampowered.com/app/999/')
        self.assertFalse(result.success)
        self.assertEqual(result.message, 'Error: Game not found in store.')

    def test_plain_text_searches(self):
        self.steam.search.return_value = [{'appid': 620, 'name': 'Portal 2'}]
        result = self.service.autofill('portal')
        self.steam.resolve_url.assert_not_called()
        self.assertEqual(result.candidates, [{'appid': 620, 'name': 'Portal 2'}])
        self.assertEqual(result.message, '1 results found.')

    def test_search_without_hits(self):
        self.steam.search.return_value = []
        self.assertEqual(self.service.autofill('zzzz').message, 'No results found.')

    def test_search_error_allows_manual_entry(self):
        self.steam.search.side_effect = SteamStoreError('Could not fetch the Steam app list.')
        result = self.service.autofill('portal')
        self.assertFalse(result.success)
        self.assertTrue(result.message.startswith('Error:'))

    def test_empty_text(self):
        self.assertFalse(self.service.autofill('   ').success)
        self.steam.search.assert_not_called()

    def test_select_candidate(self):
        self.steam.get_details.return_value = DETAILS
        result = self.service.select_candidate(620, 'Portal 2')
        self.assertTrue(result.success)
        self.assertEqual(result.fields['description'], 'Think with portals.')
        self.assertEqual(result.fields['image_url'], 'https://cdn/header.jpg')

    def test_select_candidate_without_details(self):
        self.steam.get_details.side_effect = SteamNotFoundError('Game not found in store.')
        result = self.service.select_candidate(5, 'Obscure')
        self.assertFalse(result.success)
        self.assertEqual(result.message,
                         'Could not find store details for "Obscure". Please fill in manually.')
        self.assertEqual(result.fields['title'], 'Obscure')


class TestSubmit(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.db = _make_session()
        self.owner = database.create_profile(self.db, 'a@example.com', 'admin', 'hash', is_admin=True)
        self.storage = ObjectStorage(os.path.join(self.tmp, 'storage'))
        self.service = UploadService(database, self.storage, MagicMock())

    def tearDown(self):
        self.db.close()
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _stored_images(self):
        bucket = os.path.join(self.storage.root_dir, 'images')
        if not os.path.isdir(bucket):
            return []
        return os.listdir(bucket)

    def test_invalid_form_never_reaches_store(self):
        with patch.object(database, 'insert_game') as insert:
            result = self.service.submit(self.db, self.owner.id,
                                         _valid_form(file_url='', image_data=b'img'))
        self.assertFalse(result.success)
        self.assertEqual(result.message,
                         'Game title, description, and a download link are required.')
        insert.assert_not_called()
        self.assertEqual(self._stored_images(), [])

    def test_invalid_category_rejected(self):
        result = self.service.submit(self.db, self.owner.id, _valid_form(category='racing'))
        self.assertFalse(result.success)

    def test_anonymous_submit_rejected(self):
        self.assertFalse(self.service.submit(self.db, None, _valid_form()).success)

    def test_submit_without_image(self):
        result = self.service.submit(self.db, self.owner.id,
                                     _valid_form(image_url='https://cdn/header.jpg',
                                                 screenshots=['https://cdn/ss0.jpg'],
                                                 steam_appid=620))
        self.assertTrue(result.success)
        self.assertEqual(result.message, 'Game uploaded successfully!')
        game = result.game
        self.assertEqual(game['download_count'], 0)
        self.assertEqual(game['rating'], 0.0)
        self.assertEqual(game['created_by'], self.owner.id)
        self.assertEqual(game['image_url'], 'https://cdn/header.jpg')
        self.assertEqual(game['steam_appid'], 620)

    def test_submit_with_image_reports_progress(self):
        progress = []
        data = b'x' * (300 * 1024)
        result = self.service.submit(self.db, self.owner.id,
                                     _valid_form(image_data=data, image_filename='cover art.png'),
                                     on_progress=progress.append)
        self.assertTrue(result.success)
        self.assertEqual(progress[-1], 100)
        self.assertEqual(progress, sorted(progress))

        stored = self._stored_images()
        self.assertEqual(len(stored), 1)
        name = stored[0]
        self.assertTrue(name.startswith(f'{self.owner.id}_'))
        self.assertTrue(name.endswith('_cover_art.png'))
        self.assertTrue(result.game['image_url'].startswith('/storage/images/'))

    def test_failed_insert_removes_uploaded_image(self):
        with patch.object(database, 'insert_game', return_value=None):
            result = self.service.submit(self.db, self.owner.id,
                                         _valid_form(image_data=b'img', image_filename='c.png'))
        self.assertFalse(result.success)
        self.assertEqual(self._stored_images(), [])


if __name__ == '__main__':
    unittest.main()
