"""Services package - expose all concrete services from one import."""
from .admin_service import AdminService
from .auth_service import AuthService
from .catalog_service import CatalogService, CatalogView, filter_listings
from .comment_service import CommentService
from .download_service import DownloadService, resolve_download_link
from .profile_service import ProfileService
from .session_service import SessionContext, View, guard_view, nav_items
from .upload_service import UploadForm, UploadService

__all__ = [
    'AdminService',
    'AuthService',
    'CatalogService',
    'CatalogView',
    'CommentService',
    'DownloadService',
    'ProfileService',
    'SessionContext',
    'UploadForm',
    'UploadService',
    'View',
    'filter_listings',
    'guard_view',
    'nav_items',
    'resolve_download_link',
]
