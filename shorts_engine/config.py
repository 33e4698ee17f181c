"""
Configuration module for the Shorts Engine.

Handles:
- Environment variable loading
- Path configuration (OUTPUT_DIR, client secrets, persisted token)
- External tool locations (ffmpeg, edge-tts interpreter)
- Fixed encode/upload policy for the vertical-short preset
"""

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import imageio_ffmpeg
from dotenv import load_dotenv

load_dotenv()


class ConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


class Config:
    """
    Centralized configuration for the shorts engine.

    All paths and settings are configurable via environment variables
    with sensible defaults for local development.
    """

    # Caption timing - approximate speaking rate
    WORDS_PER_SECOND: float = 2.5

    # Vertical-short encode preset
    OUTPUT_WIDTH: int = 1080
    OUTPUT_HEIGHT: int = 1920
    VIDEO_CODEC: str = "libx264"
    AUDIO_CODEC: str = "aac"
    PIXEL_FORMAT: str = "yuv420p"

    # Burned-in caption style (ASS force_style keys)
    SUBTITLE_STYLE: Dict[str, str] = {
        "FontSize": "24",
        "PrimaryColour": "&HFFFFFF",
        "OutlineColour": "&H000000",
        "Outline": "2",
        "Alignment": "2",
    }

    # Upload policy
    TITLE_MAX_LENGTH: int = 100
    YOUTUBE_CATEGORY_ID: str = "22"  # People & Blogs
    PRIVACY_STATUS: str = "private"
    YOUTUBE_SCOPES: List[str] = ["https://www.googleapis.com/auth/youtube.upload"]

    # Edge TTS voices offered to callers
    DEFAULT_VOICE: str = "en-US-ChristopherNeural"
    SUPPORTED_VOICES: Dict[str, str] = {
        "en-US-ChristopherNeural": "Christopher (US Male)",
        "en-US-GuyNeural": "Guy (US Male)",
        "en-US-JennyNeural": "Jenny (US Female)",
        "en-US-AriaNeural": "Aria (US Female)",
        "en-GB-RyanNeural": "Ryan (UK Male)",
        "en-GB-SoniaNeural": "Sonia (UK Female)",
        "en-AU-WilliamNeural": "William (AU Male)",
        "en-IN-PrabhatNeural": "Prabhat (IN Male)",
    }

    def __init__(
        self,
        base_dir: Optional[Path] = None,
        output_dir: Optional[Path] = None,
        public_base_url: Optional[str] = None,
        ffmpeg_path: Optional[str] = None,
        tts_python: Optional[str] = None,
        client_secrets_path: Optional[Path] = None,
        token_path: Optional[Path] = None,
        oauth_redirect_uri: Optional[str] = None,
        pexels_api_key: Optional[str] = None,
        download_timeout: Optional[float] = None,
        encode_preset: Optional[str] = None,
    ):
        """
        Initialize configuration.

        Args:
            base_dir: Base directory for relative paths. Defaults to current working directory.
            output_dir: Path to output folder. Overrides OUTPUT_DIR env var.
            public_base_url: Public URL base for generated media URLs. Overrides PUBLIC_BASE_URL env var.
            ffmpeg_path: ffmpeg executable. Overrides FFMPEG_PATH / IMAGEIO_FFMPEG_EXE env vars.
            tts_python: Interpreter used to run ``-m edge_tts``. Overrides TTS_PYTHON env var.
            client_secrets_path: OAuth client secrets JSON. Overrides YOUTUBE_CLIENT_SECRETS env var.
            token_path: Persisted OAuth token JSON. Overrides YOUTUBE_TOKEN_PATH env var.
            oauth_redirect_uri: Redirect URI registered for the OAuth client.
            pexels_api_key: API key for stock-footage search. Overrides PEXELS_API_KEY env var.
            download_timeout: Seconds allowed for a remote video download.
            encode_preset: x264 preset used by the assembler.
        """
        self.base_dir = base_dir or Path(os.getcwd())

        # Resolve paths from args, env vars, or defaults
        self.output_dir = self._resolve_path(
            output_dir,
            os.environ.get("OUTPUT_DIR"),
            self.base_dir / "output"
        )

        self.client_secrets_path = self._resolve_path(
            client_secrets_path,
            os.environ.get("YOUTUBE_CLIENT_SECRETS"),
            self.base_dir / "client_secret.json"
        )

        self.token_path = self._resolve_path(
            token_path,
            os.environ.get("YOUTUBE_TOKEN_PATH"),
            self.base_dir / "tokens.json"
        )

        # External tools
        self.ffmpeg_path = (
            ffmpeg_path
            or os.environ.get("FFMPEG_PATH")
            or os.environ.get("IMAGEIO_FFMPEG_EXE")
            or imageio_ffmpeg.get_ffmpeg_exe()
        )
        self.tts_python = tts_python or os.environ.get("TTS_PYTHON") or sys.executable

        self.oauth_redirect_uri = (
            oauth_redirect_uri
            or os.environ.get("OAUTH_REDIRECT_URI")
            or "http://localhost:3000"
        )
        self.pexels_api_key = pexels_api_key or os.environ.get("PEXELS_API_KEY")

        self.download_timeout = float(
            download_timeout
            if download_timeout is not None
            else os.environ.get("DOWNLOAD_TIMEOUT", 120)
        )
        self.encode_preset = encode_preset or os.environ.get("ENCODE_PRESET", "veryfast")

        # Public URL for API responses
        self.public_base_url = (
            public_base_url
            or os.environ.get("PUBLIC_BASE_URL")
            or "http://localhost:3001"
        )
        # Ensure no trailing slash
        self.public_base_url = self.public_base_url.rstrip("/")

    def _resolve_path(
        self,
        explicit: Optional[Path],
        env_value: Optional[str],
        default: Path
    ) -> Path:
        """Resolve a path from explicit value, env var, or default."""
        if explicit is not None:
            return Path(explicit)
        if env_value is not None:
            return Path(env_value)
        return default

    def is_supported_voice(self, voice: str) -> bool:
        return voice in self.SUPPORTED_VOICES

    def subtitle_force_style(self) -> str:
        """Render SUBTITLE_STYLE as the comma-separated force_style value."""
        return ",".join(f"{key}={value}" for key, value in self.SUBTITLE_STYLE.items())

    def validate(self) -> None:
        """
        Validate that all required paths exist.

        Raises:
            ConfigError: If any required path is missing
        """
        errors = []

        if not self.client_secrets_path.is_file():
            errors.append(
                f"OAuth client secrets not found: {self.client_secrets_path} "
                "(download OAuth 2.0 client credentials from Google Cloud Console)"
            )

        if self.output_dir.exists() and not self.output_dir.is_dir():
            errors.append(f"Output path is not a directory: {self.output_dir}")

        if errors:
            raise ConfigError("\n".join(errors))

    def ensure_output_dir(self) -> None:
        """Create output directory if it doesn't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def available_voices(cls) -> List[str]:
        """Return list of supported voice identifiers."""
        return list(cls.SUPPORTED_VOICES.keys())


# Global config instance (lazy-loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global Config instance.

    Creates a new instance on first call, reuses it thereafter.
    For testing, you can set _config directly or use init_config().
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def init_config(**kwargs) -> Config:
    """
    Initialize and return a new global Config instance.

    Use this to override the default configuration.
    """
    global _config
    _config = Config(**kwargs)
    return _config
