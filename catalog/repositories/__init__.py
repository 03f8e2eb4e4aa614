"""Repository package - expose all concrete repositories from one import."""
from .applist_repository import AppListRepository
from .object_storage import ObjectStorage, StorageError

__all__ = [
    'AppListRepository',
    'ObjectStorage',
    'StorageError',
]
