"""
app/connectors/base.py

Shared HTTP mechanics for outbound media downloads.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import requests

from app.config import MediaHTTPSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class MediaRequestError(RuntimeError):
    """
    Raised when a download cannot be completed after retries.
    """


@dataclass(frozen=True)
class DownloadedFile:
    """
    Body and response metadata of one completed download.
    """

    url: str
    content: bytes
    content_type: str | None
    content_disposition: str | None = None


class HTTPDownloader:
    """
    Bounded-timeout GET with exponential backoff and a response size cap.

    `timeout_seconds` bounds each connect and socket read and also the total
    time spent reading the body.
    """

    def __init__(
        self,
        *,
        http_settings: MediaHTTPSettings,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._session = session or requests.Session()
        self._clock = clock
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier
        self._max_bytes = http_settings.max_bytes
        self._headers = {"User-Agent": http_settings.user_agent}

    def download(self, url: str) -> DownloadedFile:
        response = self._request(url=url)
        try:
            content = self._read_limited(response)
        finally:
            response.close()

        content_type = response.headers.get("Content-Type")
        if content_type:
            content_type = content_type.split(";", 1)[0].strip().lower()
        return DownloadedFile(
            url=response.url or url,
            content=content,
            content_type=content_type or None,
            content_disposition=response.headers.get("Content-Disposition"),
        )

    def _read_limited(self, response: requests.Response) -> bytes:
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > self._max_bytes:
            raise MediaRequestError(f"Response exceeds {self._max_bytes} bytes.")

        deadline = self._clock() + self._timeout_seconds
        chunks: list[bytes] = []
        received = 0
        for chunk in response.iter_content(chunk_size=64 * 1024):
            if self._clock() > deadline:
                raise MediaRequestError(f"Response body not received within {self._timeout_seconds}s.")
            if not chunk:
                continue
            received += len(chunk)
            if received > self._max_bytes:
                raise MediaRequestError(f"Response exceeds {self._max_bytes} bytes.")
            chunks.append(chunk)
        return b"".join(chunks)

    def _request(self, *, url: str) -> requests.Response:
        """
        Execute a streaming GET with exponential backoff on transient failures.
        """

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                response = self._session.get(
                    url,
                    headers=self._headers,
                    timeout=self._timeout_seconds,
                    stream=True,
                    allow_redirects=True,
                )
                if response.status_code in RETRYABLE_STATUS_CODES:
                    response.close()
                    raise requests.HTTPError(
                        f"Retryable HTTP status code: {response.status_code}",
                        response=response,
                    )
                response.raise_for_status()
                return response
            except requests.HTTPError as exc:
                last_error = exc
                status_code = exc.response.status_code if exc.response is not None else None
                if status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(
                        "Media download failed status=%s url=%s error=%s",
                        status_code,
                        url,
                        exc,
                    )
                    raise MediaRequestError(f"Non-retryable download failure (status={status_code}).") from exc
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            except requests.RequestException as exc:
                raise MediaRequestError(f"Download request was rejected: {exc}") from exc

            if attempt >= self._max_retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Media download retry attempt=%s/%s wait_seconds=%.2f url=%s",
                attempt + 1,
                self._max_retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)

        logger.error("Media download exhausted retries url=%s error=%s", url, last_error)
        raise MediaRequestError("Download failed after retries.") from last_error
