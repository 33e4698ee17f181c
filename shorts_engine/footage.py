"""
Stock footage search.

The pipeline only needs ``search(keyword) -> list[FootageResult]``; any
provider can sit behind the FootageSearch protocol. PexelsFootageSearch
is the stock implementation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import requests

from .config import ConfigError
from .errors import NetworkError

logger = logging.getLogger(__name__)

PEXELS_SEARCH_URL = "https://api.pexels.com/videos/search"


@dataclass
class FootageFile:
    link: str
    width: int = 0
    height: int = 0
    quality: str = ""

    @property
    def is_portrait(self) -> bool:
        return self.height > self.width


@dataclass
class FootageResult:
    id: int
    duration: float
    files: List[FootageFile] = field(default_factory=list)
    preview_image: str = ""

    def best_file(self) -> Optional[FootageFile]:
        """Prefer a portrait HD rendition, else whatever is listed first."""
        for f in self.files:
            if f.is_portrait and f.quality == "hd":
                return f
        return self.files[0] if self.files else None

    @classmethod
    def from_pexels(cls, data: Dict[str, Any]) -> "FootageResult":
        return cls(
            id=data["id"],
            duration=float(data.get("duration") or 0),
            preview_image=data.get("image", ""),
            files=[
                FootageFile(
                    link=f["link"],
                    width=f.get("width") or 0,
                    height=f.get("height") or 0,
                    quality=f.get("quality") or "",
                )
                for f in data.get("video_files", [])
            ],
        )


class FootageSearch(Protocol):
    def search(self, keyword: str) -> List[FootageResult]:
        ...


class PexelsFootageSearch:
    """Portrait video search against the Pexels API."""

    def __init__(
        self,
        api_key: Optional[str],
        session: Optional[requests.Session] = None,
        per_page: int = 4,
        timeout: float = 30,
    ):
        if not api_key:
            raise ConfigError("PEXELS_API_KEY is missing")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.per_page = per_page
        self.timeout = timeout

    def search(self, keyword: str) -> List[FootageResult]:
        try:
            response = self.session.get(
                PEXELS_SEARCH_URL,
                params={"query": keyword, "orientation": "portrait", "per_page": self.per_page},
                headers={"Authorization": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"Failed to fetch videos from Pexels: {e}", url=PEXELS_SEARCH_URL) from e

        if response.status_code == 401:
            raise ConfigError("Invalid Pexels API key")
        if not response.ok:
            raise NetworkError(
                f"Failed to fetch videos from Pexels: HTTP {response.status_code}",
                url=PEXELS_SEARCH_URL,
            )

        videos = response.json().get("videos") or []
        logger.info(f"Pexels returned {len(videos)} videos for {keyword!r}")
        return [FootageResult.from_pexels(v) for v in videos]
