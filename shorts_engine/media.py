"""
Media inspection helpers.
"""

import logging
from pathlib import Path
from typing import Optional

from moviepy import VideoFileClip

logger = logging.getLogger(__name__)


def probe_duration(path: Path) -> Optional[float]:
    """
    Return the duration of a video file in seconds.

    Returns None when the file cannot be read; this is informational
    only and never fails the caller's step.
    """
    try:
        with VideoFileClip(str(path), audio=False) as clip:
            return float(clip.duration)
    except (OSError, KeyError, ValueError) as e:
        logger.warning(f"Could not probe duration of {path}: {e}")
        return None
