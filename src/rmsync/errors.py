"""Error types raised by rmsync operations."""

from pathlib import Path
from typing import Optional


class RmSyncError(Exception):
    """Base class for all rmsync failures."""


class ScanError(RmSyncError):
    """Raised when the metadata tree cannot be walked or a record cannot be parsed."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class FetchError(RmSyncError):
    """Raised when document content cannot be retrieved from its source URL."""

    def __init__(self, message: str, url: str):
        super().__init__(message)
        self.url = url


class UploadError(RmSyncError):
    """Raised when a document cannot be delivered to the tablet."""

    def __init__(self, message: str, filename: str):
        super().__init__(message)
        self.filename = filename
