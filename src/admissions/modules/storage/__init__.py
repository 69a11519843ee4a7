"""
Storage module - Owner-scoped file storage for uploaded documents.
"""

from admissions.modules.storage.file_store import (
    FileStore,
    InvalidFileNameError,
    StoredFileInfo,
    StoredFileNotFoundError,
    get_file_store,
)

__all__ = [
    "FileStore",
    "InvalidFileNameError",
    "StoredFileInfo",
    "StoredFileNotFoundError",
    "get_file_store",
]
