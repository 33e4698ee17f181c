"""
External tool invocation.

The encoder and the speech engine are separate OS processes. Callers go
through a ToolRunner so the orchestration logic can be exercised with a
fake that never spawns anything.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def stderr_tail(self, lines: int = 20) -> str:
        """Last lines of stderr, where ffmpeg puts the actual error."""
        return "\n".join(self.stderr.strip().splitlines()[-lines:])


class ToolRunner(Protocol):
    def run(self, command: str, args: Sequence[str]) -> ToolResult:
        """
        Run ``command`` with ``args`` to completion.

        Raises:
            OSError: If the command cannot be spawned
        """
        ...


class SubprocessToolRunner:
    """Runs tools with subprocess.run, blocking until they exit."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def run(self, command: str, args: Sequence[str]) -> ToolResult:
        cmd: List[str] = [command, *map(str, args)]
        logger.debug(f"Running: {' '.join(cmd)}")
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=False,
        )
        if proc.returncode != 0:
            logger.debug(f"{command} exited with code {proc.returncode}")
        return ToolResult(exit_code=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
