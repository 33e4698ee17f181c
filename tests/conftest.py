"""
Shared fixtures and fakes. Nothing here spawns processes or touches the network.
"""

from pathlib import Path

import pytest
import requests

from shorts_engine.config import Config
from shorts_engine.storage import LocalStorageBackend
from shorts_engine.tools import ToolResult


class FakeRunner:
    """Stands in for ffmpeg and edge-tts."""

    def __init__(self, exit_code=0, stdout="", stderr="", error=None,
                 write_output=True, partial_on_failure=False, on_run=None):
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.write_output = write_output
        self.partial_on_failure = partial_on_failure
        self.on_run = on_run
        self.calls = []

    def _target(self, args):
        if "--write-media" in args:
            return Path(args[args.index("--write-media") + 1])
        if "-shortest" in args:
            return Path(args[-1])
        return None

    def run(self, command, args):
        args = list(args)
        self.calls.append((command, args))
        if self.on_run:
            self.on_run(command, args)
        if self.error:
            raise self.error

        target = self._target(args)
        if target is not None:
            if self.exit_code == 0 and self.write_output:
                target.write_bytes(b"encoded-media")
            elif self.exit_code != 0 and self.partial_on_failure:
                target.write_bytes(b"half-written")
        return ToolResult(exit_code=self.exit_code, stdout=self.stdout, stderr=self.stderr)


class FakeResponse:
    def __init__(self, status_code=200, chunks=(b"raw-video-bytes",), json_data=None):
        self.status_code = status_code
        self.chunks = list(chunks)
        self.json_data = json_data

    @property
    def ok(self):
        return self.status_code < 400

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def iter_content(self, chunk_size=1):
        yield from self.chunks

    def json(self):
        if self.json_data is None:
            raise ValueError("No JSON body")
        return self.json_data

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    """Serves canned responses keyed by URL suffix; falls back to ``default``."""

    def __init__(self, default=None, routes=None, error=None):
        self.default = default if default is not None else FakeResponse()
        self.routes = routes or {}
        self.error = error
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if self.error:
            raise self.error
        for suffix, response in self.routes.items():
            if url.endswith(suffix):
                return response
        return self.default

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)


@pytest.fixture
def config(tmp_path):
    cfg = Config(
        base_dir=tmp_path,
        output_dir=tmp_path / "output",
        public_base_url="http://testserver",
        ffmpeg_path="ffmpeg",
        tts_python="python",
        client_secrets_path=tmp_path / "client_secret.json",
        token_path=tmp_path / "tokens.json",
    )
    cfg.ensure_output_dir()
    return cfg


@pytest.fixture
def storage(config):
    return LocalStorageBackend(config)


@pytest.fixture
def voiceover(config):
    """An existing voiceover in the output namespace."""
    path = config.output_dir / "voiceover_1700000000000.mp3"
    path.write_bytes(b"mp3-bytes")
    return path


def output_files(config):
    return sorted(p.name for p in config.output_dir.iterdir())
