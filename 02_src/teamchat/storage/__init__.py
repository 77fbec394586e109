"""Storage module."""

from .files import FileStore, IFileStore
from .storage import IStorage, Storage

__all__ = ["FileStore", "IFileStore", "IStorage", "Storage"]
