"""Client for the tablet's USB web interface upload endpoint."""

import time
from loguru import logger
import requests

from rmsync.errors import UploadError
from rmsync.platforms.web import read_before

DEFAULT_UPLOAD_URL = "http://10.11.99.1/upload"
DEFAULT_TIMEOUT = 300  # seconds
FILE_FIELD = "file"
FILE_CONTENT_TYPE = "application/octet-stream"


class TabletClient:
    """Push documents onto the tablet through its upload endpoint."""

    def __init__(self, upload_url: str = DEFAULT_UPLOAD_URL, timeout: float = DEFAULT_TIMEOUT):
        self.upload_url = upload_url
        self.timeout = timeout
        self.session = requests.Session()
        logger.debug("TabletClient initialized: upload_url={}", upload_url)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def close(self):
        """Release pooled connections to the tablet."""
        self.session.close()

    def upload(self, content: bytes, filename: str):
        """Upload raw bytes to the tablet under the given filename.

        Any response that arrives without a transport error counts as success,
        including non-2xx statuses (logged as a warning).

        Args:
            content: Document bytes, sent unchanged
            filename: Filename reported in the multipart file field

        Raises:
            UploadError: If the request cannot be built or sent, or when the
                exchange takes longer than the timeout
        """
        request = self._prepare(content, filename)
        logger.debug("Uploading {} ({:.2f} MB) to {}", filename,
                     len(content) / (1024 * 1024), self.upload_url)
        deadline = time.monotonic() + self.timeout

        try:
            response = self.session.send(request, timeout=self.timeout, stream=True)
            try:
                body = read_before(response, deadline)
            finally:
                response.close()
        except requests.exceptions.RequestException as e:
            logger.error("Failed to upload {}: {}", filename, e)
            raise UploadError(f"Failed to upload {filename}: {e}", filename) from e

        if not response.ok:
            logger.warning("Tablet returned HTTP {} for {}: {}", response.status_code,
                           filename, body[:200].decode('utf-8', errors='replace'))
        else:
            logger.debug("Upload accepted: {} (HTTP {})", filename, response.status_code)

    def _prepare(self, content: bytes, filename: str) -> requests.PreparedRequest:
        """Build the multipart POST request for one file."""
        headers = {
            "Accept": "*/*",
            "Connection": "keep-alive",
        }
        files = {FILE_FIELD: (filename, content, FILE_CONTENT_TYPE)}

        try:
            return self.session.prepare_request(
                requests.Request("POST", self.upload_url, headers=headers, files=files)
            )
        except (requests.exceptions.RequestException, ValueError, TypeError) as e:
            logger.error("Failed to build upload request for {}: {}", filename, e)
            raise UploadError(f"Failed to build upload request for {filename}: {e}", filename) from e
