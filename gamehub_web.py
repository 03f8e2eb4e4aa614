#!/usr/bin/env python3
"""
GameHub web application.

JSON API plus a handful of server-rendered pages. Build the app with
:func:`create_app`; ``gamehub serve`` does this for you.
"""

import json
import logging
import os
import queue as _queue
import threading
import time
from collections import OrderedDict
from functools import wraps
from typing import Dict, Optional

from flask import (
    Flask, Response, g, jsonify, redirect, render_template, request,
    send_from_directory, session, stream_with_context, url_for,
)
from werkzeug.exceptions import RequestEntityTooLarge

import database
import gamehub
from steam_store import SteamNotFoundError, SteamStoreError
from catalog.repositories import StorageError
from catalog.services import (
    CatalogView, SessionContext, UploadForm, View, guard_view, nav_items,
)
from catalog.services.catalog_service import SORT_LABELS

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'catalog', 'templates')

web_logger = logging.getLogger('gamehub.web')

# Browser views behind the identity gate: endpoint -> view
VIEW_ENDPOINTS = {
    'index': View.HOME,
    'login_page': View.LOGIN,
    'register_page': View.REGISTER,
    'game_details_page': View.GAME_DETAILS,
    'upload_page': View.UPLOAD,
    'profile_page': View.PROFILE,
    'admin_page': View.ADMIN,
}

# API endpoints that work without a database session
DB_FREE_ENDPOINTS = {
    'api_steam_search', 'api_steam_resolve_url', 'api_steam_get_details',
    'api_openapi_spec', 'api_swagger_ui', 'api_upload_progress',
    'api_upload_events', 'storage_object', 'static',
}

# ---------------------------------------------------------------------------
# Upload progress (SSE)
# ---------------------------------------------------------------------------

# upload_id -> list of queue.Queue
_progress_subscribers: Dict[str, list] = {}
# upload_id -> last published state
_progress_state: Dict[str, Dict] = {}
# upload_id -> time.monotonic() at completion, oldest first
_progress_completed: 'OrderedDict[str, float]' = OrderedDict()
_progress_lock = threading.Lock()

# Finished uploads stay pollable this long, and at most this many are kept
PROGRESS_TTL_SECONDS = 300
PROGRESS_MAX_COMPLETED = 100


def _prune_progress(now: float) -> None:
    """Drop finished uploads past the TTL or beyond the cap. Caller holds the lock."""
    while _progress_completed:
        upload_id, finished_at = next(iter(_progress_completed.items()))
        if (now - finished_at < PROGRESS_TTL_SECONDS
                and len(_progress_completed) <= PROGRESS_MAX_COMPLETED):
            break
        _progress_completed.popitem(last=False)
        _progress_state.pop(upload_id, None)


def _progress_publish(upload_id: str, event_type: str, data: Dict) -> None:
    """Record *data* as the latest state of *upload_id* and push it to subscribers."""
    payload = json.dumps({'event': event_type, 'data': data})
    now = time.monotonic()
    with _progress_lock:
        state = dict(_progress_state.get(upload_id, {'percent': 0, 'done': False}))
        state.update(data)
        _progress_state[upload_id] = state
        _progress_completed.pop(upload_id, None)
        if event_type == 'complete':
            _progress_completed[upload_id] = now
        _prune_progress(now)

        alive = []
        for q in _progress_subscribers.get(upload_id, []):
            try:
                q.put_nowait(payload)
                alive.append(q)
            except _queue.Full:
                pass
        if alive:
            _progress_subscribers[upload_id] = alive
        else:
            _progress_subscribers.pop(upload_id, None)


def _progress_subscribe(upload_id: str):
    """Snapshot the state of *upload_id* and register a queue for later events.

    Both happen under one lock so no event can fall between them. A finished
    upload gets no queue.

    Returns:
        ``(initial_state, queue_or_None)``.
    """
    with _progress_lock:
        state = _progress_state.get(upload_id)
        initial = dict(state) if state is not None else {'percent': 0, 'done': False}
        if initial.get('done'):
            return initial, None
        sub_queue: _queue.Queue = _queue.Queue(maxsize=64)
        _progress_subscribers.setdefault(upload_id, []).append(sub_queue)
        return initial, sub_queue


def _progress_unsubscribe(upload_id: str, sub_queue) -> None:
    with _progress_lock:
        subscribers = _progress_subscribers.get(upload_id, [])
        if sub_queue in subscribers:
            subscribers.remove(sub_queue)
        if not subscribers:
            _progress_subscribers.pop(upload_id, None)


def _progress_callback(upload_id: Optional[str]):
    if not upload_id:
        return None

    def on_progress(percent: int) -> None:
        _progress_publish(upload_id, 'progress', {'percent': percent})
    return on_progress


def get_progress(upload_id: str) -> Optional[Dict]:
    with _progress_lock:
        state = _progress_state.get(upload_id)
        return dict(state) if state is not None else None


# ---------------------------------------------------------------------------
# Identity helpers
# ---------------------------------------------------------------------------

def _bearer_token() -> Optional[str]:
    header = request.headers.get('Authorization', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip() or None
    return None


def require_login(f):
    """Decorator to require user to be logged in"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not g.session_ctx.is_authenticated:
            return jsonify({'error': 'Not logged in'}), 401
        return f(*args, **kwargs)
    return decorated_function


def require_admin(f):
    """Decorator to require admin privileges"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not g.session_ctx.is_authenticated:
            return jsonify({'error': 'Not logged in'}), 401
        if not g.session_ctx.is_admin:
            return jsonify({'error': 'Admin privileges required'}), 403
        return f(*args, **kwargs)
    return decorated_function


def _json_body() -> Dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _json_str(data, key: str, default: str = '') -> str:
    """String field of a request body; anything that is not a string reads as *default*."""
    value = data.get(key)
    return value if isinstance(value, str) else default


def _optional_int(value) -> Optional[int]:
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _upload_form_from_request() -> UploadForm:
    """Build an :class:`UploadForm` from a multipart or JSON request."""
    if request.mimetype == 'multipart/form-data' or request.form:
        data = request.form
        screenshots = [s for s in data.getlist('screenshots') if s.strip()]
        image = request.files.get('image')
        image_data = image.read() if image and image.filename else None
        image_filename = image.filename if image_data else None
    else:
        data = _json_body()
        raw_shots = data.get('screenshots')
        screenshots = [s for s in (raw_shots if isinstance(raw_shots, list) else [])
                       if isinstance(s, str) and s.strip()]
        image_data = None
        image_filename = None
    return UploadForm(
        title=_json_str(data, 'title'),
        description=_json_str(data, 'description'),
        category=_json_str(data, 'category') or 'action',
        file_url=_json_str(data, 'file_url'),
        image_data=image_data,
        image_filename=image_filename,
        image_url=_json_str(data, 'image_url') or None,
        screenshots=screenshots,
        steam_appid=_optional_int(data.get('steam_appid')),
    )


def _configure_file_logging(level: str) -> None:
    numeric = getattr(logging, str(level).upper(), logging.INFO)
    web_logger.setLevel(numeric)
    if any(isinstance(h, logging.FileHandler) for h in web_logger.handlers):
        return
    try:
        os.makedirs('logs', exist_ok=True)
        fh = logging.FileHandler('logs/gamehub_web.log')
        fh.setFormatter(logging.Formatter('[%(asctime)s] %(levelname)s %(name)s: %(message)s'))
        fh.setLevel(numeric)
        web_logger.addHandler(fh)
    except OSError:
        web_logger.warning('Could not create log file handler')


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(config: Optional[Dict] = None, hub: Optional['gamehub.GameHub'] = None,
               steam_client=None) -> Flask:
    """Build the Flask application.

    Args:
        config: Config dict as returned by :func:`gamehub.load_config`.
            Ignored when *hub* is given.
        hub: An existing :class:`gamehub.GameHub` to serve.
        steam_client: Replacement Steam client (tests pass a fake).
    """
    if hub is None:
        if config is None:
            config = gamehub.load_config()
        else:
            config = {**gamehub.DEFAULT_CONFIG, **config}
            if not config.get('secret_key'):
                config['secret_key'] = os.urandom(24).hex()
        hub = gamehub.GameHub(config, steam_client=steam_client)
    config = hub.config

    gamehub.setup_logging(config.get('log_level', 'INFO'))
    _configure_file_logging(config.get('log_level', 'INFO'))

    app = Flask(__name__, template_folder=TEMPLATE_DIR)
    app.secret_key = config['secret_key']
    app.config['MAX_CONTENT_LENGTH'] = int(config.get('max_upload_mb', 16)) * 1024 * 1024
    app.extensions['gamehub'] = hub

    # -----------------------------------------------------------------------
    # Request lifecycle
    # -----------------------------------------------------------------------

    @app.before_request
    def open_request_context():
        g.db = hub.session()
        g.token_user_id = hub.auth_service.verify_token(_bearer_token())
        user_id = g.token_user_id or session.get('user_id')
        g.session_ctx = SessionContext(database)
        g.session_ctx.init(g.db, user_id)
        if user_id and not g.session_ctx.is_authenticated and g.db is not None:
            session.pop('user_id', None)

        endpoint = request.endpoint
        if endpoint in VIEW_ENDPOINTS:
            view = VIEW_ENDPOINTS[endpoint]
            if guard_view(view, g.session_ctx) is not view:
                return redirect(url_for('index'))
            return None

        if (g.db is None and request.path.startswith('/api/')
                and endpoint not in DB_FREE_ENDPOINTS):
            return jsonify({'error': 'Database not available'}), 503
        return None

    @app.teardown_request
    def close_request_context(exc):
        db = g.pop('db', None)
        if db is not None:
            db.close()

    @app.context_processor
    def inject_identity():
        ctx = g.get('session_ctx')
        if ctx is None:
            return {}
        return {
            'current_user': ctx.identity,
            'is_admin': ctx.is_admin,
            'nav': nav_items(ctx),
        }

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        return jsonify({'error': f"Upload exceeds {config.get('max_upload_mb', 16)} MB"}), 413

    # -----------------------------------------------------------------------
    # Browser views
    # -----------------------------------------------------------------------

    @app.route('/')
    def index():
        """Catalog page"""
        view = CatalogView(hub.catalog_service, g.db,
                           category=request.args.get('category', 'all'),
                           sort_by=request.args.get('sort', 'created_at'),
                           search_term=request.args.get('q', ''),
                           view_mode=request.args.get('view', 'grid'))
        ok = view.refresh()
        if not ok:
            web_logger.error('Error fetching games for the catalog page')
        return render_template('index.html', catalog=view.to_dict(), loaded=ok,
                               categories=database.CATEGORIES, sort_labels=SORT_LABELS)

    @app.route('/login')
    def login_page():
        return render_template('login.html', mode='login')

    @app.route('/register')
    def register_page():
        return render_template('login.html', mode='register')

    @app.route('/games/<game_id>')
    def game_details_page(game_id: str):
        detail = _game_detail(game_id)
        if detail is None:
            return render_template('game.html', game=None), 404
        return render_template('game.html', game=detail)

    @app.route('/games/<game_id>/download')
    def game_download_redirect(game_id: str):
        result = hub.download_service.download(g.db, game_id)
        if result is None:
            return render_template('game.html', game=None), 404
        return redirect(result.download_url)

    @app.route('/upload')
    def upload_page():
        return render_template('upload.html', categories=database.CATEGORIES)

    @app.route('/profile')
    def profile_page():
        overview = hub.profile_service.get_overview(g.db, g.session_ctx.user_id)
        return render_template('profile.html', overview=overview)

    @app.route('/admin')
    def admin_page():
        return render_template('admin.html',
                               games=hub.admin_service.list_games(g.db),
                               users=hub.admin_service.list_profiles(g.db),
                               stats=hub.admin_service.stats(g.db),
                               categories=database.CATEGORIES)

    @app.route('/storage/<bucket>/<path:object_path>')
    def storage_object(bucket: str, object_path: str):
        """Serve a stored object read-only."""
        try:
            full_path = hub.storage.object_path(bucket, object_path)
        except StorageError:
            return jsonify({'error': 'Not found'}), 404
        if not os.path.isfile(full_path):
            return jsonify({'error': 'Not found'}), 404
        return send_from_directory(os.path.dirname(full_path), os.path.basename(full_path))

    # -----------------------------------------------------------------------
    # Authentication
    # -----------------------------------------------------------------------

    def _signed_in_response(message: str, profile: Dict, status: int = 200):
        session['user_id'] = profile['id']
        return jsonify({
            'message': message,
            'user': profile,
            'token': hub.auth_service.issue_token(profile['id']),
        }), status

    @app.route('/api/auth/register', methods=['POST'])
    def api_auth_register():
        """Register a new user"""
        data = _json_body()
        email = _json_str(data, 'email').strip()
        web_logger.info('Register endpoint called for email=%s', email)
        ok, message, profile = hub.auth_service.sign_up(
            g.db, email, _json_str(data, 'password'), _json_str(data, 'username'))
        if not ok:
            return jsonify({'error': message}), 400
        return _signed_in_response(message, profile, 201)

    @app.route('/api/auth/login', methods=['POST'])
    def api_auth_login():
        """Log in a user"""
        data = _json_body()
        email = _json_str(data, 'email').strip()
        password = _json_str(data, 'password')
        if not email or not password:
            return jsonify({'error': 'Email and password required'}), 400
        ok, message, profile = hub.auth_service.sign_in(g.db, email, password)
        if not ok:
            return jsonify({'error': message}), 401
        web_logger.info('User logged in: %s', email)
        return _signed_in_response(message, profile)

    @app.route('/api/auth/logout', methods=['POST'])
    def api_auth_logout():
        """Log out the current user"""
        web_logger.info('User logged out: %s', g.session_ctx.user_id)
        session.pop('user_id', None)
        g.session_ctx.sign_out()
        return jsonify({'message': 'Logged out successfully'})

    @app.route('/api/auth/current', methods=['GET'])
    def api_auth_current():
        """Get current logged-in user"""
        ctx = g.session_ctx
        body = ctx.to_dict()
        body['nav'] = nav_items(ctx)
        if not ctx.is_authenticated:
            return jsonify(body), 401
        return jsonify(body)

    # -----------------------------------------------------------------------
    # Catalog and downloads
    # -----------------------------------------------------------------------

    @app.route('/api/games', methods=['GET'])
    def api_games():
        """List listings filtered by category, ordered by sort, narrowed by ``q``."""
        view = CatalogView(hub.catalog_service, g.db,
                           category=request.args.get('category', 'all'),
                           sort_by=request.args.get('sort', 'created_at'),
                           search_term=request.args.get('q', ''),
                           view_mode=request.args.get('view', 'grid'))
        if not view.refresh():
            return jsonify({'error': 'Error fetching games'}), 500
        return jsonify(view.to_dict())

    @app.route('/api/games/<game_id>/download', methods=['POST'])
    def api_game_download(game_id: str):
        result = hub.download_service.download(g.db, game_id)
        if result is None:
            return jsonify({'error': 'Game not found'}), 404
        return jsonify({
            'game_id': result.game_id,
            'download_url': result.download_url,
            'download_count': result.download_count,
            'counted': result.counted,
        })

    def _game_detail(game_id: str) -> Optional[Dict]:
        game = database.get_game(g.db, game_id)
        if game is None:
            return None
        detail = database.game_to_dict(game)
        detail['comments'] = hub.comment_service.list_for_game(g.db, game_id)
        detail['comment_rating'] = hub.comment_service.rating_summary(g.db, game_id)
        detail['steam'] = None
        if game.steam_appid:
            try:
                detail['steam'] = hub.steam_client.get_details(game.steam_appid)
            except SteamStoreError as e:
                web_logger.warning('Store details unavailable for %s: %s', game_id, e)
        return detail

    @app.route('/api/games/<game_id>', methods=['GET'])
    def api_game_detail(game_id: str):
        detail = _game_detail(game_id)
        if detail is None:
            return jsonify({'error': 'Game not found'}), 404
        return jsonify(detail)

    @app.route('/api/games/<game_id>/comments', methods=['GET', 'POST'])
    def api_game_comments(game_id: str):
        if database.get_game(g.db, game_id) is None:
            return jsonify({'error': 'Game not found'}), 404
        if request.method == 'GET':
            return jsonify({'comments': hub.comment_service.list_for_game(g.db, game_id)})

        if not g.session_ctx.is_authenticated:
            return jsonify({'error': 'Not logged in'}), 401
        data = _json_body()
        ok, message, comments = hub.comment_service.submit(
            g.db, game_id, g.session_ctx.user_id, _json_str(data, 'content'),
            data.get('rating', 5))
        if not ok:
            return jsonify({'error': message}), 400
        return jsonify({'message': message, 'comments': comments}), 201

    # -----------------------------------------------------------------------
    # Upload orchestration
    # -----------------------------------------------------------------------

    @app.route('/api/steam/search', methods=['POST'])
    def api_steam_search():
        term = _json_str(_json_body(), 'searchTerm')
        try:
            return jsonify(hub.steam_client.search(term))
        except SteamStoreError as e:
            return jsonify({'error': e.message}), 400

    @app.route('/api/steam/resolve-url', methods=['POST'])
    def api_steam_resolve_url():
        try:
            return jsonify(hub.steam_client.resolve_url(_json_str(_json_body(), 'url')))
        except SteamNotFoundError as e:
            return jsonify({'success': False, 'message': e.message}), 404
        except SteamStoreError as e:
            return jsonify({'error': e.message}), 400

    @app.route('/api/steam/get-details', methods=['POST'])
    def api_steam_get_details():
        try:
            return jsonify(hub.steam_client.get_details(_json_body().get('appId')))
        except SteamNotFoundError as e:
            return jsonify({'success': False, 'message': e.message}), 404
        except SteamStoreError as e:
            return jsonify({'error': e.message}), 400

    @app.route('/api/autofill', methods=['POST'])
    @require_admin
    def api_autofill():
        """Autofill from a store link or search text, or load a picked candidate."""
        data = _json_body()
        if data.get('appid') is not None:
            result = hub.upload_service.select_candidate(data['appid'], _json_str(data, 'name'))
        else:
            result = hub.upload_service.autofill(_json_str(data, 'text'))
        return jsonify(result.to_dict())

    @app.route('/api/games', methods=['POST'])
    @require_admin
    def api_game_create():
        """Create a listing; pass ``upload_id`` to follow image progress."""
        form = _upload_form_from_request()
        upload_id = (request.form.get('upload_id') if request.form
                     else _json_str(_json_body(), 'upload_id'))
        if upload_id:
            _progress_publish(upload_id, 'progress', {'percent': 0, 'done': False})

        result = None
        try:
            result = hub.upload_service.submit(g.db, g.session_ctx.user_id, form,
                                               on_progress=_progress_callback(upload_id))
        finally:
            if upload_id:
                _progress_publish(upload_id, 'complete', {
                    'done': True,
                    'success': bool(result and result.success),
                    'message': result.message if result else 'Upload failed',
                })
        if not result.success:
            return jsonify({'error': result.message}), 400
        return jsonify({'message': result.message, 'game': result.game}), 201

    @app.route('/api/uploads/<upload_id>/progress', methods=['GET'])
    def api_upload_progress(upload_id: str):
        state = get_progress(upload_id)
        if state is None:
            return jsonify({'error': 'Unknown upload'}), 404
        return jsonify({'upload_id': upload_id, **state})

    @app.route('/api/uploads/<upload_id>/events')
    def api_upload_events(upload_id: str):
        """Server-Sent Events stream of upload progress.

        The current state is sent immediately; the stream ends once the
        upload completes. A ``heartbeat`` event is sent every 25 seconds.
        """
        initial, sub_queue = _progress_subscribe(upload_id)

        def _generate():
            try:
                yield f"event: progress\ndata: {json.dumps(initial)}\n\n"
                if sub_queue is None:
                    return
                while True:
                    try:
                        payload = sub_queue.get(timeout=25)
                    except _queue.Empty:
                        yield "event: heartbeat\ndata: {}\n\n"
                        continue
                    parsed = json.loads(payload)
                    yield f"event: {parsed['event']}\ndata: {json.dumps(parsed['data'])}\n\n"
                    if parsed['event'] == 'complete':
                        break
            finally:
                if sub_queue is not None:
                    _progress_unsubscribe(upload_id, sub_queue)

        return Response(
            stream_with_context(_generate()),
            mimetype='text/event-stream',
            headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'},
        )

    @app.route('/api/storage/<bucket>/<path:object_path>', methods=['PUT'])
    def api_storage_put(bucket: str, object_path: str):
        """Raw binary upload authenticated by a bearer token.

        Non-admins may only write below ``avatars/<their id>/``.
        """
        user_id = g.token_user_id
        if not user_id or not g.session_ctx.is_authenticated:
            return jsonify({'error': 'Bearer token required'}), 401
        if not g.session_ctx.is_admin and not (
                bucket == 'avatars' and object_path.startswith(f'{user_id}/')):
            return jsonify({'error': 'Admin privileges required'}), 403

        upload_id = request.args.get('upload_id')
        stored = False
        message = 'Upload interrupted'
        try:
            hub.storage.upload(bucket, object_path, request.stream,
                               total_size=request.content_length,
                               on_progress=_progress_callback(upload_id))
            stored = True
            message = 'Upload complete'
        except StorageError as e:
            message = str(e)
            return jsonify({'error': message}), 400
        finally:
            if upload_id:
                _progress_publish(upload_id, 'complete',
                                  {'done': True, 'success': stored, 'message': message})
        return jsonify({
            'path': object_path,
            'public_url': hub.storage.get_public_url(bucket, object_path),
        }), 201

    # -----------------------------------------------------------------------
    # Profile
    # -----------------------------------------------------------------------

    @app.route('/api/profile', methods=['GET'])
    @require_login
    def api_profile():
        overview = hub.profile_service.get_overview(g.db, g.session_ctx.user_id)
        if overview is None:
            return jsonify({'error': 'Profile not found'}), 404
        return jsonify(overview)

    @app.route('/api/profile', methods=['POST'])
    @require_login
    def api_profile_update():
        if request.form or request.files:
            username = request.form.get('username', '')
            avatar = request.files.get('avatar')
            avatar_data = avatar.read() if avatar and avatar.filename else None
            avatar_filename = avatar.filename if avatar_data else None
        else:
            username = _json_str(_json_body(), 'username')
            avatar_data = avatar_filename = None
        ok, message = hub.profile_service.update_profile(
            g.db, g.session_ctx.user_id, username, avatar_data, avatar_filename)
        if not ok:
            return jsonify({'error': message}), 400
        return jsonify({'message': message,
                        'profile': hub.profile_service.get_overview(g.db, g.session_ctx.user_id)['profile']})

    # -----------------------------------------------------------------------
    # Admin panel
    # -----------------------------------------------------------------------

    @app.route('/api/admin/games', methods=['GET'])
    @require_admin
    def api_admin_games():
        return jsonify({'games': hub.admin_service.list_games(g.db)})

    @app.route('/api/admin/games/<game_id>', methods=['DELETE'])
    @require_admin
    def api_admin_delete_game(game_id: str):
        if not hub.admin_service.delete_game(g.db, game_id):
            return jsonify({'error': 'Game not found'}), 404
        return jsonify({'message': 'Game deleted'})

    @app.route('/api/admin/games/<game_id>', methods=['PATCH'])
    @require_admin
    def api_admin_update_game(game_id: str):
        fields = {k: v for k, v in _json_body().items() if k in database.EDITABLE_GAME_FIELDS}
        ok, message, game = hub.admin_service.update_game(g.db, game_id, **fields)
        if not ok:
            status = 404 if message == 'Game not found' else 400
            return jsonify({'error': message}), status
        return jsonify({'message': message, 'game': game})

    @app.route('/api/admin/games/<game_id>/refresh', methods=['POST'])
    @require_admin
    def api_admin_refresh_game(game_id: str):
        ok, message, game = hub.admin_service.refresh_metadata(g.db, game_id)
        if not ok:
            status = 404 if message == 'Game not found' else 400
            return jsonify({'error': message}), status
        return jsonify({'message': message, 'game': game})

    @app.route('/api/admin/users', methods=['GET'])
    @require_admin
    def api_admin_users():
        return jsonify({'users': hub.admin_service.list_profiles(g.db)})

    @app.route('/api/admin/users/<user_id>/toggle-admin', methods=['POST'])
    @require_admin
    def api_admin_toggle_admin(user_id: str):
        ok, message, new_flag = hub.admin_service.toggle_admin(g.db, user_id)
        if not ok:
            status = 404 if message == 'User not found' else 500
            return jsonify({'error': message}), status
        return jsonify({'message': message, 'is_admin': new_flag})

    @app.route('/api/admin/stats', methods=['GET'])
    @require_admin
    def api_admin_stats():
        return jsonify(hub.admin_service.stats(g.db))

    # -----------------------------------------------------------------------
    # API documentation
    # -----------------------------------------------------------------------

    @app.route('/api/openapi.json')
    def api_openapi_spec():
        """Serve the OpenAPI 3.0 specification as JSON."""
        from openapi_spec import build_spec
        return jsonify(build_spec(server_url=request.url_root.rstrip('/')))

    @app.route('/api/docs')
    def api_swagger_ui():
        """Serve an interactive Swagger UI for the GameHub API."""
        return render_template('docs.html', openapi_url=url_for('api_openapi_spec'))

    return app


if __name__ == '__main__':
    gamehub.main(['serve'])
