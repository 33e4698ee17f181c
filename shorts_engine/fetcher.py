"""
Remote video retrieval.
"""

import logging
from pathlib import Path
from typing import Optional

import requests

from .errors import NetworkError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1 << 16


class MediaFetcher:
    """Downloads a remote asset in full to a local path."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 120,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, url: str, dest: Path) -> Path:
        """
        Download ``url`` to ``dest``.

        Args:
            url: Remote video URL
            dest: Local file to create

        Returns:
            dest, fully written

        Raises:
            NetworkError: If the request fails or returns a non-2xx status.
                A partially written file is removed before raising.
        """
        logger.info(f"Downloading video: {url}")
        written = 0
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with open(dest, "wb") as f:
                    for chunk in response.iter_content(CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            written += len(chunk)
        except requests.RequestException as e:
            Path(dest).unlink(missing_ok=True)
            raise NetworkError(f"Failed to download video: {e}", url=url) from e

        if written == 0:
            Path(dest).unlink(missing_ok=True)
            raise NetworkError("Downloaded video is empty", url=url)

        logger.info(f"Downloaded {written} bytes to {dest}")
        return Path(dest)
