"""
Tests for the end-to-end pipeline, driven through fakes.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from shorts_engine.errors import AuthRequired, NotFoundError, ServiceUnavailableError
from shorts_engine.footage import FootageFile, FootageResult
from shorts_engine.models import ContentPackage, GeneratorConfig
from shorts_engine.pipeline import ShortsPipeline

PACKAGE = {
    "idea": "Discipline over motivation",
    "script": "Full script that is never spoken.",
    "voiceover": "Motivation fades. Discipline stays.",
    "stock_video_keywords": ["mountain climb", "sunrise run"],
    "subtitles": ["Motivation fades", "Discipline stays"],
    "title": "Discipline beats motivation #Shorts",
    "description": "Daily reminder #Shorts",
    "hashtags": ["#discipline", "#shorts"],
    "metadata": {
        "estimated_duration_seconds": 20,
        "category": "Education",
        "posting_time_suggestion": "18:00",
    },
}


class FakeGenerator:
    def __init__(self):
        self.configs = []

    def generate(self, config):
        self.configs.append(config)
        return ContentPackage(**PACKAGE)


class FakeFootage:
    def __init__(self, by_keyword=None):
        self.by_keyword = by_keyword or {}
        self.keywords = []

    def search(self, keyword):
        self.keywords.append(keyword)
        return self.by_keyword.get(keyword, [])


class FakeClient:
    base_url = "http://localhost:3001"

    def __init__(self, healthy=True, upload_error=None):
        self.healthy = healthy
        self.upload_error = upload_error
        self.calls = []

    def health(self):
        return self.healthy

    def synthesize_voice(self, text, voice=None):
        self.calls.append(("tts", text, voice))
        return {"audioUrl": "/output/voiceover_1.mp3", "filename": "voiceover_1.mp3"}

    def assemble(self, video_url, audio_file, subtitles=None, title=""):
        self.calls.append(("assemble", video_url, audio_file, subtitles, title))
        return {"videoUrl": "/output/final_2.mp4", "filename": "final_2.mp4"}

    def upload(self, video_url, title, description="", tags=None):
        self.calls.append(("upload", video_url, title, description, tags))
        if self.upload_error:
            raise self.upload_error
        return {"videoId": "abc", "videoUrl": "https://youtube.com/shorts/abc"}


def sunrise_footage():
    return FakeFootage({
        "sunrise run": [FootageResult(id=7, duration=12, files=[
            FootageFile(link="https://videos.pexels.com/7.mp4", width=1080, height=1920,
                        quality="hd"),
        ])],
    })


def test_full_run_uses_voiceover_not_script():
    client = FakeClient()
    footage = sunrise_footage()

    result = ShortsPipeline(client, FakeGenerator(), footage).run(voice="en-US-GuyNeural")

    assert footage.keywords == ["mountain climb", "sunrise run"]
    assert result.footage_url == "https://videos.pexels.com/7.mp4"
    assert client.calls[0] == ("tts", PACKAGE["voiceover"], "en-US-GuyNeural")
    assert client.calls[1] == (
        "assemble",
        "https://videos.pexels.com/7.mp4",
        "/output/voiceover_1.mp3",
        PACKAGE["subtitles"],
        PACKAGE["title"],
    )
    assert result.video["videoUrl"] == "/output/final_2.mp4"
    assert result.upload is None


def test_run_with_upload():
    client = FakeClient()

    result = ShortsPipeline(client, FakeGenerator(), sunrise_footage()).run(upload=True)

    assert client.calls[-1] == (
        "upload", "/output/final_2.mp4", PACKAGE["title"], PACKAGE["description"],
        PACKAGE["hashtags"],
    )
    assert result.upload["videoId"] == "abc"


def test_default_generator_config():
    generator = FakeGenerator()
    ShortsPipeline(FakeClient(), generator, sunrise_footage()).run()
    assert generator.configs == [GeneratorConfig()]


def test_server_down_stops_before_generation():
    generator = FakeGenerator()

    with pytest.raises(ServiceUnavailableError):
        ShortsPipeline(FakeClient(healthy=False), generator, sunrise_footage()).run()
    assert generator.configs == []


def test_no_footage():
    client = FakeClient()

    with pytest.raises(NotFoundError, match="mountain climb"):
        ShortsPipeline(client, FakeGenerator(), FakeFootage()).run()
    assert client.calls == []


def test_upload_auth_required_propagates():
    client = FakeClient(upload_error=AuthRequired("https://accounts.google.com/auth"))

    with pytest.raises(AuthRequired):
        ShortsPipeline(client, FakeGenerator(), sunrise_footage()).run(upload=True)


def test_incomplete_package_rejected():
    data = dict(PACKAGE)
    del data["voiceover"]
    with pytest.raises(PydanticValidationError):
        ContentPackage(**data)


def test_empty_title_rejected():
    with pytest.raises(PydanticValidationError):
        ContentPackage(**dict(PACKAGE, title=""))
