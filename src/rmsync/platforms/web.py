"""Download document content from remote URLs."""

import time
from loguru import logger
import requests

from rmsync.errors import FetchError

DEFAULT_TIMEOUT = 300  # seconds, deadline for one whole transfer
CHUNK_SIZE = 64 * 1024


def read_before(response: requests.Response, deadline: float) -> bytes:
    """Read a streamed response body, giving up once the deadline has passed.

    Each socket read is still bounded by the request's own timeout; the
    deadline is checked after the headers and after every chunk.

    Raises:
        requests.exceptions.Timeout: If the deadline passes before the body is complete
    """
    chunks = []
    received = 0
    if time.monotonic() > deadline:
        raise requests.exceptions.Timeout("Deadline passed before the response body was read")

    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
        chunks.append(chunk)
        received += len(chunk)
        if time.monotonic() > deadline:
            raise requests.exceptions.Timeout(f"Deadline passed after {received} bytes")

    return b"".join(chunks)


class ContentFetcher:
    """Retrieve raw document bytes over HTTP."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout
        logger.debug("ContentFetcher initialized: timeout={}s", timeout)

    def fetch(self, url: str) -> bytes:
        """Download the full response body from a URL.

        The status code is not checked; whatever body the server returns is
        taken as the document content.

        Args:
            url: Source location of the document

        Returns:
            Response body as bytes

        Raises:
            FetchError: On any connection or transport failure, or when the
                whole download takes longer than the timeout
        """
        logger.debug("Fetching: {}", url)
        deadline = time.monotonic() + self.timeout

        try:
            response = requests.get(url, timeout=self.timeout, stream=True)
            try:
                content = read_before(response, deadline)
            finally:
                response.close()
        except requests.exceptions.RequestException as e:
            logger.error("Failed to fetch {}: {}", url, e)
            raise FetchError(f"Failed to fetch {url}: {e}", url) from e

        if not response.ok:
            logger.warning("Source returned HTTP {} for {}", response.status_code, url)

        logger.debug("Fetched {} bytes from {}", len(content), url)
        return content
