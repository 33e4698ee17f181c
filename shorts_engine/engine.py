"""
Wires the pipeline steps from a single Config.

The API builds one ShortsEngine at startup; tests build their own with
fake runners, sessions and credential stores.
"""

from dataclasses import dataclass
from typing import Optional

import requests

from .assembler import Assembler
from .config import Config, get_config
from .fetcher import MediaFetcher
from .storage import LocalStorageBackend
from .tools import SubprocessToolRunner, ToolRunner
from .upload import CredentialStore, FileCredentialStore, UploadCoordinator
from .voice import VoiceSynthesizer


@dataclass
class ShortsEngine:
    config: Config
    storage: LocalStorageBackend
    synthesizer: VoiceSynthesizer
    assembler: Assembler
    uploader: UploadCoordinator

    @classmethod
    def from_config(
        cls,
        config: Optional[Config] = None,
        runner: Optional[ToolRunner] = None,
        session: Optional[requests.Session] = None,
        credential_store: Optional[CredentialStore] = None,
        uploader: Optional[UploadCoordinator] = None,
        **assembler_kwargs,
    ) -> "ShortsEngine":
        config = config or get_config()
        storage = LocalStorageBackend(config)
        runner = runner or SubprocessToolRunner()
        fetcher = MediaFetcher(session=session, timeout=config.download_timeout)

        return cls(
            config=config,
            storage=storage,
            synthesizer=VoiceSynthesizer(config, storage, runner),
            assembler=Assembler(config, storage, fetcher, runner, **assembler_kwargs),
            uploader=uploader or UploadCoordinator(
                config,
                storage,
                credential_store or FileCredentialStore(config.token_path),
            ),
        )
