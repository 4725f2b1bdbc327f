"""
app/connectors package marker.
"""

from app.connectors.base import DownloadedFile, HTTPDownloader, MediaRequestError
from app.connectors.media_library import MediaAcquisitionError, MediaLibrary

__all__ = [
    "DownloadedFile",
    "HTTPDownloader",
    "MediaAcquisitionError",
    "MediaLibrary",
    "MediaRequestError",
]
