"""
Video Resolver
==============

Narrow client for the third-party URL-to-video resolution service.

The resolver is an untrusted, best-effort collaborator: its availability
and response shape are outside our control. Only two things are relied
upon: a JSON object comes back, and it contains a direct download link.
Everything else (title, duration) is optional.

Design Rules:
    - Every failure surfaces as ExternalServiceError
    - The underlying cause is logged here, never returned to users
    - Downloads are streamed and capped at max_download_bytes
"""

import logging
from typing import Any, Dict, Optional

import requests

from ascii_video.errors import ExternalServiceError, ValidationError
from ascii_video.models.output import DownloadInfo


logger = logging.getLogger(__name__)


# Keys seen in the wild for the same concept, checked in order
_LINK_KEYS = ("url", "downloadUrl", "dlink", "link")
_TITLE_KEYS = ("title", "filename")
_DURATION_KEYS = ("duration", "t")

_CHUNK_SIZE = 64 * 1024


class VideoResolver:
    """
    Resolves a source page URL into a downloadable video link.

    Attributes:
        api_url: Resolver endpoint (receives a JSON POST)
        timeout_seconds: Per-request timeout
        max_download_bytes: Upper bound on fetched video payloads

    Example:
        resolver = VideoResolver("https://resolver.example/api/json")
        info = resolver.resolve("https://video.example/watch?v=abc")
        data = resolver.fetch(info.download_url)
    """

    def __init__(
        self,
        api_url: str,
        timeout_seconds: float = 30.0,
        max_download_bytes: int = 100 * 1024 * 1024,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = api_url
        self.timeout_seconds = timeout_seconds
        self.max_download_bytes = max_download_bytes
        self._session = session or requests.Session()

    def resolve(self, url: str) -> DownloadInfo:
        """
        Ask the resolver for a direct download link.

        Args:
            url: Source page URL

        Returns:
            DownloadInfo with title, download_url and duration

        Raises:
            ValidationError: If url is empty
            ExternalServiceError: On any resolver failure
        """
        if not url or not url.strip():
            raise ValidationError("URL is required")

        try:
            response = self._session.post(
                self.api_url,
                json={"url": url.strip(), "vQuality": "720", "isAudioOnly": False},
                headers={"Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Resolver request failed for {url}: {e}")
            raise ExternalServiceError("Video resolver request failed") from e
        except ValueError as e:
            logger.error(f"Resolver returned non-JSON body for {url}: {e}")
            raise ExternalServiceError("Video resolver returned an invalid response") from e

        return self._parse(url, data)

    def _parse(self, url: str, data: Any) -> DownloadInfo:
        if not isinstance(data, dict):
            logger.error(f"Unexpected resolver payload type for {url}: {type(data).__name__}")
            raise ExternalServiceError("Video resolver returned an invalid response")

        status = data.get("status")
        if status in ("error", "fail", "rate-limit"):
            logger.error(f"Resolver reported status={status} for {url}: {data.get('text') or data.get('mess')}")
            raise ExternalServiceError("Video resolver could not handle this URL")

        link = _first(data, _LINK_KEYS)
        if not isinstance(link, str) or not link:
            logger.error(f"Resolver payload for {url} has no download link: keys={sorted(data)}")
            raise ExternalServiceError("Video resolver returned no download link")

        title = _first(data, _TITLE_KEYS)
        duration = _first(data, _DURATION_KEYS)
        try:
            duration = float(duration) if duration is not None else None
        except (TypeError, ValueError):
            duration = None

        return DownloadInfo(
            title=str(title) if title else "",
            download_url=link,
            duration=duration,
        )

    def fetch(self, download_url: str) -> bytes:
        """
        Download a video payload.

        Args:
            download_url: Direct link returned by resolve()

        Returns:
            Raw video bytes

        Raises:
            ExternalServiceError: On network failure or oversized payload
        """
        try:
            with self._session.get(
                download_url,
                stream=True,
                timeout=self.timeout_seconds,
            ) as response:
                response.raise_for_status()

                declared = response.headers.get("Content-Length")
                if declared and declared.isdigit() and int(declared) > self.max_download_bytes:
                    logger.error(f"Download too large: {declared} bytes from {download_url}")
                    raise ExternalServiceError("Video is too large")

                chunks = []
                total = 0
                for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                    total += len(chunk)
                    if total > self.max_download_bytes:
                        logger.error(f"Download exceeded {self.max_download_bytes} bytes: {download_url}")
                        raise ExternalServiceError("Video is too large")
                    chunks.append(chunk)

        except requests.RequestException as e:
            logger.error(f"Video download failed from {download_url}: {e}")
            raise ExternalServiceError("Video download failed") from e

        logger.info(f"Downloaded {total} bytes from {download_url}")
        return b"".join(chunks)

    def close(self) -> None:
        self._session.close()


def _first(data: Dict[str, Any], keys) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None
