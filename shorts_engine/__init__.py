"""
Shorts Engine - asset assembly for vertical short-form video.

Package structure:
    shorts_engine/
        __init__.py         - Package exports
        config.py           - Configuration, paths, encode/upload policy
        errors.py           - Step failure taxonomy
        models.py           - Content package models
        captions.py         - Caption timing and SRT output
        storage.py          - Output namespace (uniquely named media assets)
        tools.py            - External tool runner (ffmpeg, edge-tts)
        fetcher.py          - Remote video download
        voice.py            - Voice synthesis
        media.py            - Duration probing
        assembler.py        - Video + voiceover + captions assembly
        upload.py           - YouTube OAuth and upload
        footage.py          - Stock footage search
        client.py           - HTTP client for the API
        pipeline.py         - End-to-end orchestration
        engine.py           - Step wiring from one Config
    api/
        __init__.py
        main.py             - FastAPI application
"""

from .assembler import Assembler, AssemblyJob, JobState
from .captions import CaptionCue, format_srt_time, time_captions, write_srt
from .config import Config, ConfigError, get_config
from .engine import ShortsEngine
from .models import ContentPackage, GeneratorConfig
from .storage import LocalStorageBackend, MediaAsset, StorageBackend
from .upload import UploadCoordinator
from .voice import VoiceSynthesizer

__all__ = [
    "Assembler",
    "AssemblyJob",
    "CaptionCue",
    "Config",
    "ConfigError",
    "ContentPackage",
    "GeneratorConfig",
    "JobState",
    "LocalStorageBackend",
    "MediaAsset",
    "ShortsEngine",
    "StorageBackend",
    "UploadCoordinator",
    "VoiceSynthesizer",
    "format_srt_time",
    "get_config",
    "time_captions",
    "write_srt",
]
