#!/usr/bin/env python3
"""
GameHub - a browsable catalog of uploaded games with ratings, comments and
Steam metadata autofill.

This module holds the pieces shared by the web app and the command line:
logging setup, configuration loading and the ``GameHub`` object that wires
repositories and services together.
"""

import argparse
import json
import logging
import os
import secrets
import sys
from typing import Dict, Optional

from colorama import init, Fore, Style
from dotenv import load_dotenv

import database
from steam_store import SteamStoreClient, SteamStoreError
from catalog.repositories import AppListRepository, ObjectStorage
from catalog.services import (
    AdminService, AuthService, CatalogService, CommentService, DownloadService,
    ProfileService, UploadService,
)

load_dotenv()

# Initialize colorama for cross-platform colored terminal output
init(autoreset=True)

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def setup_logging(level: str = 'WARNING') -> logging.Logger:
    """Configure the root GameHub logger.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to WARNING so normal use is quiet.

    Returns:
        Configured logger instance.
    """
    numeric = getattr(logging, str(level).upper(), logging.WARNING)
    logger = logging.getLogger('gamehub')
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('[%(levelname)s] %(name)s: %(message)s'))
        logger.addHandler(handler)
    logger.setLevel(numeric)
    return logger


logger = setup_logging()

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_CONFIG: Dict = {
    'database_url': database.DATABASE_URL,
    'storage_dir': 'storage',
    'public_storage_url': '/storage',
    'secret_key': None,
    'log_level': 'INFO',
    'steam_country': 'us',
    'steam_language': 'english',
    'steam_timeout': 10,
    'applist_cache_path': '.gamehub_applist.json',
    'applist_max_age_hours': 24,
    'token_max_age': 7 * 24 * 3600,
    'max_upload_mb': 16,
}

# config key -> (environment variable, type)
ENV_OVERRIDES = {
    'database_url': ('DATABASE_URL', str),
    'storage_dir': ('GAMEHUB_STORAGE_DIR', str),
    'public_storage_url': ('GAMEHUB_PUBLIC_STORAGE_URL', str),
    'secret_key': ('GAMEHUB_SECRET_KEY', str),
    'log_level': ('GAMEHUB_LOG_LEVEL', str),
    'steam_country': ('STEAM_COUNTRY', str),
    'steam_language': ('STEAM_LANGUAGE', str),
    'steam_timeout': ('STEAM_TIMEOUT', float),
    'applist_cache_path': ('GAMEHUB_APPLIST_CACHE', str),
    'applist_max_age_hours': ('GAMEHUB_APPLIST_MAX_AGE_HOURS', float),
    'token_max_age': ('GAMEHUB_TOKEN_MAX_AGE', int),
    'max_upload_mb': ('GAMEHUB_MAX_UPLOAD_MB', int),
}


def load_config(config_path: Optional[str] = 'config.json') -> Dict:
    """Load configuration from an optional JSON file with environment overrides.

    Environment variables take precedence over config file values (see
    ``ENV_OVERRIDES``). A missing config file is not an error; a corrupt one
    is logged and ignored. Numeric overrides that do not parse keep the
    default.
    """
    config = dict(DEFAULT_CONFIG)
    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                file_config = json.load(f)
            if isinstance(file_config, dict):
                config.update(file_config)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read config file %s: %s", config_path, e)

    for key, (env_name, cast) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw.strip() == '':
            continue
        try:
            config[key] = cast(raw.strip())
        except ValueError:
            logger.warning("Ignoring invalid %s=%r; using %r", env_name, raw, config[key])

    if not config.get('secret_key'):
        config['secret_key'] = secrets.token_hex(32)
    return config


# ---------------------------------------------------------------------------
# Integration object
# ---------------------------------------------------------------------------

class GameHub:
    """Creates the repositories and services and exposes them as attributes.

    Route handlers and CLI commands use ``hub.catalog_service``,
    ``hub.upload_service`` and friends directly.
    """

    def __init__(self, config: Optional[Dict] = None, steam_client=None):
        self._log = logging.getLogger('gamehub.hub')
        self.config = config if config is not None else load_config()

        self.db = database
        self.db_available = database.init_db(self.config['database_url'])
        if not self.db_available:
            self._log.warning("Database not available at startup")

        self.storage = ObjectStorage(self.config['storage_dir'],
                                     public_base_url=self.config['public_storage_url'])
        self.applist_repository = AppListRepository(self.config['applist_cache_path'])
        self.steam_client = steam_client or SteamStoreClient(
            country=self.config['steam_country'],
            language=self.config['steam_language'],
            timeout=self.config['steam_timeout'],
            applist_cache=self.applist_repository,
            applist_max_age_hours=self.config['applist_max_age_hours'],
        )

        self.auth_service = AuthService(database, self.config['secret_key'],
                                        token_max_age=self.config['token_max_age'])
        self.catalog_service = CatalogService(database)
        self.download_service = DownloadService(database)
        self.upload_service = UploadService(database, self.storage, self.steam_client)
        self.comment_service = CommentService(database)
        self.profile_service = ProfileService(database, self.storage)
        self.admin_service = AdminService(database, self.steam_client)

    def ensure_db_available(self) -> bool:
        """Try to (re)initialize the DB if it was previously unavailable."""
        if self.db_available:
            return True
        self.db_available = database.init_db(self.config['database_url'])
        if self.db_available:
            self._log.info('Database reconnected successfully')
        return self.db_available

    def session(self):
        """Open a new SQLAlchemy session (caller closes it)."""
        if not self.ensure_db_available() or database.SessionLocal is None:
            return None
        return database.SessionLocal()


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def _cmd_init_db(hub: GameHub, args) -> int:
    if hub.db_available:
        print(f"{Fore.GREEN}✓ Database tables created")
        return 0
    print(f"{Fore.RED}✗ Could not initialize the database at {hub.config['database_url']}")
    return 1


def _cmd_create_admin(hub: GameHub, args) -> int:
    db = hub.session()
    if db is None:
        print(f"{Fore.RED}✗ Database not available")
        return 1
    try:
        ok, message, profile = hub.auth_service.sign_up(
            db, args.email, args.password, args.username, is_admin=True)
    finally:
        db.close()
    if not ok:
        print(f"{Fore.RED}✗ {message}")
        return 1
    print(f"{Fore.GREEN}✓ Admin created: {profile['username']} <{profile['email']}>")
    return 0


def _cmd_search(hub: GameHub, args) -> int:
    try:
        results = hub.steam_client.search(args.term)
    except SteamStoreError as e:
        print(f"{Fore.RED}Error: {e.message}")
        return 1
    if not results:
        print(f"{Fore.YELLOW}No results found.")
        return 0
    for app in results:
        print(f"{Fore.CYAN}{app['appid']:>10}{Style.RESET_ALL}  {app['name']}")
    print(f"\n{len(results)} results found.")
    return 0


def _cmd_serve(hub: GameHub, args) -> int:
    import gamehub_web
    app = gamehub_web.create_app(hub=hub)
    print("\n" + "=" * 60)
    print(f"{Fore.GREEN}🎮 GameHub is starting...")
    print("=" * 60)
    print(f"\nOpen your browser and go to:\n  http://{args.host}:{args.port}")
    print("\nPress Ctrl+C to stop the server")
    print("=" * 60 + "\n")
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0


def main(argv=None) -> int:
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description='GameHub - game catalog with Steam metadata autofill',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gamehub init-db
  gamehub create-admin --email admin@example.com --username admin --password secret123
  gamehub search "portal"
  gamehub serve --port 5000
        """
    )
    parser.add_argument('--config', '-c', default='config.json',
                        help='Path to config file (default: config.json)')
    parser.add_argument('--log-level', default=None,
                        help='Override the log level (DEBUG, INFO, WARNING, ...)')
    sub = parser.add_subparsers(dest='command')

    sub.add_parser('init-db', help='Create database tables')

    admin = sub.add_parser('create-admin', help='Create an admin profile')
    admin.add_argument('--email', required=True)
    admin.add_argument('--username', required=True)
    admin.add_argument('--password', required=True)

    search = sub.add_parser('search', help='Search the Steam app list')
    search.add_argument('term')

    serve = sub.add_parser('serve', help='Run the web application')
    serve.add_argument('--host', default='127.0.0.1')
    serve.add_argument('--port', type=int, default=5000)
    serve.add_argument('--debug', action='store_true')

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    config = load_config(args.config)
    setup_logging(args.log_level or ('INFO' if args.command == 'serve' else 'WARNING'))
    hub = GameHub(config)

    handlers = {
        'init-db': _cmd_init_db,
        'create-admin': _cmd_create_admin,
        'search': _cmd_search,
        'serve': _cmd_serve,
    }
    return handlers[args.command](hub, args)


if __name__ == "__main__":
    sys.exit(main())
