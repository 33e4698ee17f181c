"""
End-to-end short production against a running server.

Steps run one after another and none is retried; the first failure is
raised to the caller, who decides whether to re-run.

    config -> package -> footage search -> voiceover -> assembly -> (upload)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Sequence

from .client import ShortsClient
from .errors import NotFoundError, ServiceUnavailableError
from .footage import FootageSearch
from .models import ContentPackage, GeneratorConfig

logger = logging.getLogger(__name__)


class PackageGenerator(Protocol):
    def generate(self, config: GeneratorConfig) -> ContentPackage:
        ...


@dataclass
class PipelineResult:
    package: ContentPackage
    footage_url: str
    audio: Dict[str, Any]
    video: Dict[str, Any]
    upload: Optional[Dict[str, Any]] = None


class ShortsPipeline:
    def __init__(
        self,
        client: ShortsClient,
        generator: PackageGenerator,
        footage: FootageSearch,
    ):
        self.client = client
        self.generator = generator
        self.footage = footage

    def find_footage(self, keywords: Sequence[str]) -> str:
        """Return the first usable video link, trying keywords in order."""
        for keyword in keywords:
            for result in self.footage.search(keyword):
                best = result.best_file()
                if best is not None:
                    logger.info(f"Using footage {result.id} for {keyword!r}")
                    return best.link
        raise NotFoundError(f"No stock footage found for keywords: {', '.join(keywords)}")

    def run(
        self,
        config: Optional[GeneratorConfig] = None,
        voice: Optional[str] = None,
        upload: bool = False,
    ) -> PipelineResult:
        if not self.client.health():
            raise ServiceUnavailableError(
                f"Backend server is not running at {self.client.base_url}"
            )

        package = self.generator.generate(config or GeneratorConfig())
        logger.info(f"Generated package: {package.title!r}")

        footage_url = self.find_footage(package.stock_video_keywords)
        audio = self.client.synthesize_voice(package.voiceover, voice)
        video = self.client.assemble(
            footage_url,
            audio["audioUrl"],
            subtitles=package.subtitles,
            title=package.title,
        )
        result = PipelineResult(package=package, footage_url=footage_url, audio=audio, video=video)

        if upload:
            result.upload = self.client.upload(
                video["videoUrl"],
                package.title,
                description=package.description,
                tags=package.hashtags,
            )
        return result
