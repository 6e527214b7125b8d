"""Download firmware images over HTTP(S)."""

import logging
from collections.abc import Callable
from urllib.parse import urljoin

import requests

from timepod.exceptions import DownloadError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


class FirmwareFetcher:
    """
    Streams a firmware image into memory.

    Redirects are followed by hand so the hop count can be capped and
    logged; ``requests``' own redirect handling is disabled.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        max_redirects: int = 5,
        chunk_size: int = 4096,
        timeout: float = 30.0,
    ):
        """
        Initialize fetcher.

        Args:
            session: HTTP session (a new one is created if None)
            max_redirects: Redirect hops allowed before giving up
            chunk_size: Bytes per streamed chunk
            timeout: Connect/read timeout in seconds
        """
        self._session = session or requests.Session()
        self.max_redirects = max_redirects
        self.chunk_size = chunk_size
        self.timeout = timeout

    def fetch(self, url: str, on_progress: ProgressCallback | None = None) -> bytes:
        """
        Download ``url`` and return its body.

        With a Content-Length header, progress is reported after every chunk
        as ``received / total``; without one it is reported once, as 1.0, when
        the body is complete. Reported values are strictly increasing and end
        at 1.0.

        Args:
            url: Firmware URL
            on_progress: Optional callback receiving a fraction in [0, 1]

        Returns:
            The response body

        Raises:
            DownloadError: On a non-200 final status, too many redirects or a
                network error
        """
        current_url = url
        redirects = 0

        try:
            while True:
                logger.debug(f"GET {current_url}")
                with self._session.get(
                    current_url, stream=True, allow_redirects=False, timeout=self.timeout
                ) as response:
                    if response.status_code in REDIRECT_STATUSES:
                        location = response.headers.get("Location")
                        if not location:
                            raise DownloadError(url, status_code=response.status_code)
                        redirects += 1
                        if redirects > self.max_redirects:
                            raise DownloadError(
                                url, cause=f"Too many redirects (more than {self.max_redirects})"
                            )
                        current_url = urljoin(current_url, location)
                        logger.info(f"Redirected ({response.status_code}) to {current_url}")
                        continue

                    if response.status_code != 200:
                        raise DownloadError(url, status_code=response.status_code)

                    data = self._read_body(response, on_progress)
                    logger.info(f"Downloaded {len(data)} bytes from {current_url}")
                    return data

        except requests.RequestException as e:
            logger.error(f"Network error downloading {url}: {e}")
            raise DownloadError(url, cause=str(e)) from e

    def _read_body(self, response: requests.Response, on_progress: ProgressCallback | None) -> bytes:
        total = self._content_length(response)
        received = 0
        last_reported = 0.0
        chunks: list[bytes] = []

        for chunk in response.iter_content(chunk_size=self.chunk_size):
            if not chunk:
                continue
            chunks.append(chunk)
            received += len(chunk)
            if on_progress and total:
                fraction = min(1.0, received / total)
                if fraction > last_reported:
                    on_progress(fraction)
                    last_reported = fraction

        if on_progress and last_reported < 1.0:
            on_progress(1.0)

        return b"".join(chunks)

    @staticmethod
    def _content_length(response: requests.Response) -> int | None:
        value = response.headers.get("Content-Length")
        if value is None:
            return None
        try:
            length = int(value)
        except ValueError:
            logger.warning(f"Ignoring invalid Content-Length: {value!r}")
            return None
        return length if length > 0 else None
