"""
Voice synthesis through the edge-tts command line.

edge-tts is run as ``<python> -m edge_tts`` in its own process so a
broken or missing install surfaces as a SynthesisError instead of taking
the server down.
"""

import logging
from typing import List, Optional

from .config import Config, get_config
from .errors import SynthesisError, ValidationError
from .storage import LocalStorageBackend, MediaAsset, StorageBackend
from .tools import SubprocessToolRunner, ToolRunner

logger = logging.getLogger(__name__)

INSTALL_HINT = "Make sure edge-tts is installed: pip install edge-tts"


def parse_voice_list(output: str) -> List[str]:
    """
    Extract voice names from ``edge_tts --list-voices`` output.

    Older releases print ``Name: <voice>`` records, newer ones print a
    table whose first column is the voice name.
    """
    voices: List[str] = []
    in_table = False
    for raw in output.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith("Name:"):
            voices.append(line[len("Name:"):].strip())
        elif line.startswith("---"):
            in_table = True
        elif in_table:
            voices.append(line.split()[0])
    return voices


class VoiceSynthesizer:
    """Turns script text into an audio asset in the output namespace."""

    def __init__(
        self,
        config: Optional[Config] = None,
        storage: Optional[StorageBackend] = None,
        runner: Optional[ToolRunner] = None,
    ):
        self.config = config or get_config()
        self.storage = storage or LocalStorageBackend(self.config)
        self.runner = runner or SubprocessToolRunner()

    def _edge_tts_args(self, *args: str) -> List[str]:
        return ["-m", "edge_tts", *args]

    def synthesize(self, text: Optional[str], voice: Optional[str] = None) -> MediaAsset:
        """
        Synthesize ``text`` with ``voice``.

        Args:
            text: Spoken text; must contain something other than whitespace
            voice: One of Config.SUPPORTED_VOICES. Defaults to Config.DEFAULT_VOICE.

        Returns:
            MediaAsset for the written mp3

        Raises:
            ValidationError: Empty text or unsupported voice (engine not invoked)
            SynthesisError: Engine missing or exited non-zero
        """
        if not text or not text.strip():
            raise ValidationError("Text is required")

        voice = voice or self.config.DEFAULT_VOICE
        if not self.config.is_supported_voice(voice):
            raise ValidationError(
                f"Unsupported voice '{voice}'. "
                f"Available: {', '.join(self.config.available_voices())}"
            )

        self.config.ensure_output_dir()
        asset = self.storage.asset("audio", "voiceover", ".mp3")

        logger.info(f"Synthesizing {len(text.split())} words with {voice}")
        args = self._edge_tts_args(
            "--voice", voice,
            "--text", text,
            "--write-media", str(asset.local_path),
        )
        try:
            result = self.runner.run(self.config.tts_python, args)
        except OSError as e:
            raise SynthesisError(f"Speech engine unavailable: {e}. {INSTALL_HINT}") from e

        if not result.ok:
            asset.local_path.unlink(missing_ok=True)
            logger.error(f"edge-tts failed ({result.exit_code}): {result.stderr_tail()}")
            raise SynthesisError(
                f"edge-tts exited with code {result.exit_code}. {INSTALL_HINT}"
            )

        if not asset.exists():
            raise SynthesisError("edge-tts reported success but wrote no audio")

        logger.info(f"Voiceover written: {asset.filename}")
        return asset

    def list_voices(self, supported_only: bool = True) -> List[str]:
        """
        Ask the engine which voices it has installed.

        Args:
            supported_only: Keep only voices synthesize() accepts

        Raises:
            SynthesisError: Engine missing or exited non-zero
        """
        try:
            result = self.runner.run(self.config.tts_python, self._edge_tts_args("--list-voices"))
        except OSError as e:
            raise SynthesisError(f"Speech engine unavailable: {e}") from e

        if not result.ok:
            raise SynthesisError(f"Failed to get voices: {result.stderr_tail(5)}")

        voices = parse_voice_list(result.stdout)
        if supported_only:
            voices = [v for v in voices if self.config.is_supported_voice(v)]
        return voices
