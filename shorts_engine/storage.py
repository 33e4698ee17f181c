"""
Storage backend abstraction for the Shorts Engine.

Provides:
- MediaAsset: a handle to bytes in the output namespace
- StorageBackend: Abstract base class
- LocalStorageBackend: Output directory on the local filesystem, served via static mount

Usage:
    backend = LocalStorageBackend(config)
    asset = backend.asset("audio", "voiceover", ".mp3")
    ...write to asset.local_path...
    url = asset.url
"""

import abc
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .config import Config, get_config

OUTPUT_MOUNT = "/output"


@dataclass
class MediaAsset:
    """A generated file in the output namespace."""
    kind: str
    filename: str
    local_path: Path
    url: str
    token: int

    def exists(self) -> bool:
        return self.local_path.is_file()


class StorageBackend(abc.ABC):
    """Abstract base class for storage backends."""

    @abc.abstractmethod
    def new_token(self) -> int:
        """Return a token that no earlier call in this process has returned."""
        pass

    @abc.abstractmethod
    def asset(
        self,
        kind: str,
        prefix: str,
        suffix: str,
        token: Optional[int] = None,
    ) -> MediaAsset:
        """
        Allocate a uniquely-named asset.

        Args:
            kind: Asset kind ("audio", "video", "subtitles", ...)
            prefix: Filename prefix (e.g. "voiceover")
            suffix: Filename extension including the dot
            token: Reuse a token so related files of one job share it

        Returns:
            MediaAsset whose file does not exist yet
        """
        pass

    @abc.abstractmethod
    def resolve(self, reference: str) -> Path:
        """Map a filename, /output path or public URL to a local path."""
        pass


class LocalStorageBackend(StorageBackend):
    """
    Local filesystem storage backend.

    Saves files to:
        {output_dir}/{prefix}_{token}{suffix}

    URLs are constructed as:
        /output/{prefix}_{token}{suffix}

    The token is the creation time in epoch milliseconds, bumped past the
    last issued token when two requests land in the same millisecond.
    """

    _lock = threading.Lock()
    _last_token = 0

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize local storage backend.

        Args:
            config: Configuration instance. Uses global config if not provided.
        """
        self.config = config or get_config()

    @property
    def root(self) -> Path:
        return self.config.output_dir

    def new_token(self) -> int:
        with LocalStorageBackend._lock:
            token = max(int(time.time() * 1000), LocalStorageBackend._last_token + 1)
            LocalStorageBackend._last_token = token
        return token

    def asset(
        self,
        kind: str,
        prefix: str,
        suffix: str,
        token: Optional[int] = None,
    ) -> MediaAsset:
        if token is None:
            token = self.new_token()
        filename = f"{prefix}_{token}{suffix}"
        return MediaAsset(
            kind=kind,
            filename=filename,
            local_path=self.root / filename,
            url=f"{OUTPUT_MOUNT}/{filename}",
            token=token,
        )

    def resolve(self, reference: str) -> Path:
        """
        Resolve a media reference to a path inside the output directory.

        Accepts "voiceover_1.mp3", "/output/voiceover_1.mp3" or
        "http://host/output/voiceover_1.mp3". Only the final path
        component is used, so references cannot escape the namespace.
        """
        path = urlparse(reference).path or reference
        filename = Path(path.replace("\\", "/")).name
        return self.root / filename

    def public_url(self, asset: MediaAsset) -> str:
        return f"{self.config.public_base_url}{asset.url}"
