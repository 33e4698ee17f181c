"""
Video assembly.

Combines a remote stock video, a synthesized voiceover and caption lines
into one vertical short with burned-in captions.

Main entry point:
    Assembler.assemble(video_url, audio_file, subtitles, title) -> AssemblyJob

Each job moves through IDLE -> PREREQUISITES_CHECKED -> ASSEMBLING and
ends in SUCCEEDED or FAILED. Everything a job downloads or writes on the
way (raw video, subtitle file, partial output) is owned by the job and
deleted when it ends, whatever the outcome. Only the final output
survives, and it only appears under its public name once ffmpeg has
exited cleanly.
"""

import enum
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path, PurePath, PureWindowsPath
from typing import Callable, List, Optional, Sequence, Union

from .captions import time_captions, write_srt
from .config import Config, get_config
from .errors import EncodeError, PreconditionError
from .fetcher import MediaFetcher
from .media import probe_duration
from .storage import LocalStorageBackend, MediaAsset, StorageBackend
from .tools import SubprocessToolRunner, ToolRunner

logger = logging.getLogger(__name__)


class JobState(str, enum.Enum):
    IDLE = "idle"
    PREREQUISITES_CHECKED = "prerequisites_checked"
    ASSEMBLING = "assembling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class AssemblyJob:
    """Working set of one assembly request."""
    video_url: Optional[str]
    audio_file: Optional[str]
    subtitles: List[str] = field(default_factory=list)
    title: str = ""
    state: JobState = JobState.IDLE
    audio_path: Optional[Path] = None
    temp_paths: List[Path] = field(default_factory=list)
    output: Optional[MediaAsset] = None
    duration: Optional[float] = None
    error: Optional[str] = None

    def own(self, path: Path) -> Path:
        """Register a temp file to be deleted when the job ends."""
        self.temp_paths.append(path)
        return path

    def release(self) -> None:
        for path in self.temp_paths:
            if path.exists():
                path.unlink()
                logger.debug(f"Removed temp file {path}")
        self.temp_paths.clear()

    @property
    def finished(self) -> bool:
        return self.state in (JobState.SUCCEEDED, JobState.FAILED)


def escape_filter_path(path: Union[str, PurePath]) -> str:
    """
    Escape a path for use inside a single-quoted ffmpeg filter option.

    The value is unescaped twice: the filtergraph parser strips the
    quotes, then the option parser treats backslash, colon and quote as
    special. Windows paths are written with forward slashes first; on
    POSIX a backslash is an ordinary filename character and is kept.
    """
    if isinstance(path, PureWindowsPath):
        value = path.as_posix()
    else:
        value = str(path)
    value = value.replace("\\", "\\\\")
    value = value.replace(":", "\\:")
    # Close the quote, emit \' for the option parser, reopen
    return value.replace("'", "'\\\\\\''")


def build_video_filter(config: Config, subtitles_path: Optional[Path] = None) -> str:
    """Scale and center-crop to the vertical preset, then burn in captions."""
    width, height = config.OUTPUT_WIDTH, config.OUTPUT_HEIGHT
    filters = [
        f"scale={width}:{height}:force_original_aspect_ratio=increase",
        f"crop={width}:{height}",
        "setsar=1",
    ]
    if subtitles_path is not None:
        filters.append(
            f"subtitles='{escape_filter_path(subtitles_path)}'"
            f":force_style='{config.subtitle_force_style()}'"
        )
    return ",".join(filters)


def build_encode_args(
    video_path: Path,
    audio_path: Path,
    output_path: Path,
    config: Config,
    subtitles_path: Optional[Path] = None,
) -> List[str]:
    """
    Build ffmpeg arguments that mux one video and one audio input.

    Streams are mapped explicitly (video from input 0, audio from input 1)
    and the output stops at the shorter of the two.
    """
    return [
        "-y",
        "-i", str(video_path),
        "-i", str(audio_path),
        "-map", "0:v:0",
        "-map", "1:a:0",
        "-vf", build_video_filter(config, subtitles_path),
        "-c:v", config.VIDEO_CODEC,
        "-preset", config.encode_preset,
        "-pix_fmt", config.PIXEL_FORMAT,
        "-c:a", config.AUDIO_CODEC,
        "-shortest",
        str(output_path),
    ]


class Assembler:
    """Runs assembly jobs against the output namespace."""

    def __init__(
        self,
        config: Optional[Config] = None,
        storage: Optional[StorageBackend] = None,
        fetcher: Optional[MediaFetcher] = None,
        runner: Optional[ToolRunner] = None,
        probe: Callable[[Path], Optional[float]] = probe_duration,
    ):
        self.config = config or get_config()
        self.storage = storage or LocalStorageBackend(self.config)
        self.fetcher = fetcher or MediaFetcher(timeout=self.config.download_timeout)
        self.runner = runner or SubprocessToolRunner()
        self.probe = probe

    def assemble(
        self,
        video_url: Optional[str],
        audio_file: Optional[str],
        subtitles: Optional[Sequence[str]] = None,
        title: str = "",
    ) -> AssemblyJob:
        """
        Assemble one short.

        Args:
            video_url: Remote stock video
            audio_file: Voiceover reference in the output namespace
            subtitles: Caption lines; empty means no burned-in captions
            title: Video title (logged, not rendered)

        Returns:
            The SUCCEEDED job, with ``output`` set

        Raises:
            PreconditionError: Missing video or audio (nothing is written)
            NetworkError: The video could not be downloaded
            EncodeError: ffmpeg could not be started or exited non-zero
        """
        job = AssemblyJob(
            video_url=video_url,
            audio_file=audio_file,
            subtitles=list(subtitles or []),
            title=title or "",
        )
        self.check_prerequisites(job)
        return self.run(job)

    def check_prerequisites(self, job: AssemblyJob) -> None:
        if not job.video_url or not job.audio_file:
            raise PreconditionError("Video URL and audio file are required")

        audio_path = self.storage.resolve(job.audio_file)
        if not audio_path.is_file():
            raise PreconditionError(f"Audio file not found: {audio_path.name}")

        job.audio_path = audio_path
        job.state = JobState.PREREQUISITES_CHECKED

    def run(self, job: AssemblyJob) -> AssemblyJob:
        if job.state is not JobState.PREREQUISITES_CHECKED:
            raise ValueError(f"Job cannot start assembling from state {job.state.value}")

        job.state = JobState.ASSEMBLING
        self.config.ensure_output_dir()

        token = self.storage.new_token()
        output = self.storage.asset("video", "final", ".mp4", token=token)
        temp_video = job.own(self.storage.asset("video", "temp_video", ".mp4", token=token).local_path)
        partial = job.own(output.local_path.with_name(f"final_{token}.part.mp4"))

        logger.info(f"Assembling job {token}: title={job.title!r}, captions={len(job.subtitles)}")
        try:
            self.fetcher.fetch(job.video_url, temp_video)

            subtitles_path = None
            cues = time_captions(job.subtitles, self.config.WORDS_PER_SECOND)
            if cues:
                subtitles_path = job.own(
                    self.storage.asset("subtitles", "subtitles", ".srt", token=token).local_path
                )
                write_srt(cues, subtitles_path)

            self._encode(temp_video, job.audio_path, partial, subtitles_path)
            os.replace(partial, output.local_path)
        except Exception as e:
            job.state = JobState.FAILED
            job.error = str(e)
            logger.error(f"Assembly job {token} failed: {e}")
            raise
        finally:
            job.release()

        job.state = JobState.SUCCEEDED
        job.output = output
        job.duration = self.probe(output.local_path)
        logger.info(f"Assembly job {token} finished: {output.filename} ({job.duration}s)")
        return job

    def _encode(
        self,
        video_path: Path,
        audio_path: Path,
        output_path: Path,
        subtitles_path: Optional[Path],
    ) -> None:
        args = build_encode_args(video_path, audio_path, output_path, self.config, subtitles_path)
        logger.debug(f"Spawning ffmpeg: {self.config.ffmpeg_path} {' '.join(args)}")
        try:
            result = self.runner.run(self.config.ffmpeg_path, args)
        except OSError as e:
            raise EncodeError(f"Could not start ffmpeg: {e}") from e

        if not result.ok:
            raise EncodeError(
                result.stderr_tail() or f"ffmpeg exited with code {result.exit_code}",
                exit_code=result.exit_code,
            )
        if not output_path.is_file():
            raise EncodeError("ffmpeg exited cleanly but wrote no output")
