"""
app/services/media_acquisition.py

Turns a featured-image reference into an attached primary visual.

Steps: trim and validate the reference as an http(s) URL, rewrite cloud-drive
share links to their direct-download form, fetch and attach the file, then
mark it as the entity's primary visual. Nothing here fails the entity; every
problem is logged and reported as `None`.
"""

from __future__ import annotations

import logging
import re

from app.repositories.contracts import MediaGateway
from app.validators.row_validator import is_valid_http_url

logger = logging.getLogger(__name__)

DRIVE_SHARE_PATTERN = re.compile(
    r"(?:https?://)?(?:drive\.google\.com/(?:file/d/|open\?id=)"
    r"|docs\.google\.com/(?:document|spreadsheets)/d/)([a-zA-Z0-9_-]+)"
)
DRIVE_DOWNLOAD_URL = "https://drive.google.com/uc?export=download&id={file_id}"


def resolve_download_url(reference: str | None) -> str | None:
    """
    Return the URL to fetch for `reference`, or None when it is not a usable URL.
    """

    url = (reference or "").strip()
    if not url or not is_valid_http_url(url):
        return None

    match = DRIVE_SHARE_PATTERN.search(url)
    if match:
        return DRIVE_DOWNLOAD_URL.format(file_id=match.group(1))
    return url


class MediaAcquisition:
    def __init__(self, *, gateway: MediaGateway) -> None:
        self._gateway = gateway

    def acquire(self, *, entity_id: int, title: str, reference: str | None) -> int | None:
        if not reference or not reference.strip():
            return None

        url = resolve_download_url(reference)
        if url is None:
            logger.warning(
                "Featured image skipped entity_id=%s reason=invalid_url reference=%r",
                entity_id,
                reference,
            )
            return None

        try:
            attachment_id = self._gateway.fetch_and_attach(url, entity_id, title)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Featured image download failed entity_id=%s url=%s error=%s",
                entity_id,
                url,
                exc,
            )
            return None

        try:
            self._gateway.set_primary_visual(entity_id, attachment_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Primary visual not set entity_id=%s attachment_id=%s error=%s",
                entity_id,
                attachment_id,
                exc,
            )
            return None

        logger.info("Featured image set entity_id=%s attachment_id=%s", entity_id, attachment_id)
        return attachment_id
