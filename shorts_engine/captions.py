"""
Caption timing and SRT serialization.

Caption lines carry no timing of their own. Each line is given a
duration proportional to its word count at a fixed speaking rate, and
cues are laid end to end starting at zero.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

logger = logging.getLogger(__name__)

DEFAULT_WORDS_PER_SECOND = 2.5


@dataclass(frozen=True)
class CaptionCue:
    """A caption line with its [start, end) interval in seconds."""

    index: int  # 1-based, as written to SRT
    text: str
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_srt_block(self) -> str:
        return (
            f"{self.index}\n"
            f"{format_srt_time(self.start)} --> {format_srt_time(self.end)}\n"
            f"{self.text}\n\n"
        )


def format_srt_time(seconds: float) -> str:
    """Format seconds as HH:MM:SS,mmm."""
    total_ms = int(round(seconds * 1000))
    hours, rest = divmod(total_ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs, ms = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}"


def word_count(line: str) -> int:
    # An empty line still occupies screen time.
    return max(1, len(line.split()))


def time_captions(
    lines: Sequence[str],
    words_per_second: float = DEFAULT_WORDS_PER_SECOND,
) -> List[CaptionCue]:
    """
    Derive contiguous cues from plain caption lines.

    Args:
        lines: Caption lines in display order
        words_per_second: Approximate speaking rate

    Returns:
        Cues where cue[0].start == 0 and cue[i].end == cue[i + 1].start
    """
    if words_per_second <= 0:
        raise ValueError(f"words_per_second must be positive, got {words_per_second}")

    cues: List[CaptionCue] = []
    current = 0.0
    for i, line in enumerate(lines):
        duration = word_count(line) / words_per_second
        end = current + duration
        cues.append(CaptionCue(index=i + 1, text=line.strip(), start=current, end=end))
        current = end
    return cues


def render_srt(cues: Sequence[CaptionCue]) -> str:
    return "".join(cue.to_srt_block() for cue in cues)


def write_srt(cues: Sequence[CaptionCue], path: Path) -> Path:
    """Write cues to an SRT file and return its path."""
    path = Path(path)
    path.write_text(render_srt(cues), encoding="utf-8")
    logger.debug(f"Wrote {len(cues)} cues to {path}")
    return path
