"""
YouTube upload with out-of-band OAuth.

Provides:
- CredentialStore: where the platform token lives (FileCredentialStore, MemoryCredentialStore)
- GoogleOAuth: authorization URL + code exchange via google-auth-oauthlib
- YouTubePublisher: videos.insert via google-api-python-client
- UploadCoordinator: the per-attempt flow tying them together

Flow:
    1. upload() with no stored token -> AuthRequired(auth_url), nothing is published
    2. caller visits auth_url, then calls complete_authorization(code)
    3. the token is persisted; the caller re-invokes upload()
"""

import enum
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload
from oauthlib.oauth2.rfc6749.errors import OAuth2Error

from .config import Config, ConfigError, get_config
from .errors import (
    AuthExchangeError,
    AuthRequired,
    NotFoundError,
    PublishError,
    ShortsEngineError,
    ValidationError,
)
from .storage import LocalStorageBackend, StorageBackend

logger = logging.getLogger(__name__)

SHORTS_URL = "https://youtube.com/shorts/{video_id}"


class AuthState(str, enum.Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    AUTHENTICATED = "authenticated"


class UploadState(str, enum.Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    AUTH_REQUIRED = "auth_required"


# =============================================================================
# Credential storage
# =============================================================================

class CredentialStore(Protocol):
    def load(self) -> Optional[Dict[str, Any]]:
        ...

    def save(self, token: Dict[str, Any]) -> None:
        ...


class FileCredentialStore:
    """Token persisted as JSON on disk. Absent until the first exchange."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Optional[Dict[str, Any]]:
        if not self.path.is_file():
            return None
        return json.loads(self.path.read_text(encoding="utf-8"))

    def save(self, token: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(token), encoding="utf-8")
        logger.info(f"Saved OAuth token to {self.path}")


class MemoryCredentialStore:
    def __init__(self, token: Optional[Dict[str, Any]] = None):
        self.token = token

    def load(self) -> Optional[Dict[str, Any]]:
        return self.token

    def save(self, token: Dict[str, Any]) -> None:
        self.token = dict(token)


# =============================================================================
# Platform adapters
# =============================================================================

class GoogleOAuth:
    """OAuth web flow for the YouTube upload scope."""

    def __init__(
        self,
        client_secrets_path: Path,
        redirect_uri: str,
        scopes: Sequence[str] = tuple(Config.YOUTUBE_SCOPES),
    ):
        self.client_secrets_path = Path(client_secrets_path)
        self.redirect_uri = redirect_uri
        self.scopes = list(scopes)

    def _flow(self) -> Flow:
        if not self.client_secrets_path.is_file():
            raise ConfigError(
                f"Missing client_secret.json at {self.client_secrets_path}. "
                "Download OAuth 2.0 Client Credentials from Google Cloud Console."
            )
        # The URL and the exchange happen in different requests, so no PKCE verifier.
        return Flow.from_client_secrets_file(
            str(self.client_secrets_path),
            scopes=self.scopes,
            redirect_uri=self.redirect_uri,
            autogenerate_code_verifier=False,
        )

    def authorization_url(self) -> str:
        url, _state = self._flow().authorization_url(
            access_type="offline",
            prompt="consent",
        )
        return url

    def exchange_code(self, code: str) -> Dict[str, Any]:
        flow = self._flow()
        try:
            flow.fetch_token(code=code)
        except (OAuth2Error, requests.RequestException) as e:
            raise AuthExchangeError(f"Failed to retrieve access token: {e}") from e
        return json.loads(flow.credentials.to_json())


class YouTubePublisher:
    """Inserts a video through the YouTube Data API v3."""

    def __init__(self, scopes: Sequence[str] = tuple(Config.YOUTUBE_SCOPES)):
        self.scopes = list(scopes)

    def publish(self, token: Dict[str, Any], video_path: Path, body: Dict[str, Any]) -> str:
        try:
            credentials = Credentials.from_authorized_user_info(token, self.scopes)
        except ValueError as e:
            raise PublishError("Stored YouTube credential is invalid", details=str(e)) from e

        youtube = build("youtube", "v3", credentials=credentials, cache_discovery=False)
        media = MediaFileUpload(str(video_path), chunksize=-1, resumable=True, mimetype="video/*")
        request = youtube.videos().insert(part="snippet,status", body=body, media_body=media)

        response = None
        try:
            while response is None:
                _status, response = request.next_chunk()
        except HttpError as e:
            raise PublishError("Failed to upload to YouTube", details=str(e)) from e
        except GoogleAuthError as e:
            raise PublishError("YouTube authorization failed", details=str(e)) from e

        if "id" not in response:
            raise PublishError("Upload finished without a video id", details=json.dumps(response))
        return response["id"]


# =============================================================================
# Coordinator
# =============================================================================

@dataclass
class UploadResult:
    video_id: str
    video_url: str


@dataclass
class UploadAttempt:
    video_ref: str
    title: str
    state: UploadState = UploadState.IDLE
    result: Optional[UploadResult] = None
    auth_url: Optional[str] = None
    body: Dict[str, Any] = field(default_factory=dict)


class UploadCoordinator:
    """
    Publishes finished videos as private shorts.

    The credential store is read fresh on every attempt, so a token saved
    by complete_authorization() is picked up by the next upload() call.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        storage: Optional[StorageBackend] = None,
        credential_store: Optional[CredentialStore] = None,
        oauth: Optional[GoogleOAuth] = None,
        publisher: Optional[YouTubePublisher] = None,
    ):
        self.config = config or get_config()
        self.storage = storage or LocalStorageBackend(self.config)
        self.credential_store = credential_store or FileCredentialStore(self.config.token_path)
        self.oauth = oauth or GoogleOAuth(
            self.config.client_secrets_path,
            self.config.oauth_redirect_uri,
            self.config.YOUTUBE_SCOPES,
        )
        self.publisher = publisher or YouTubePublisher(self.config.YOUTUBE_SCOPES)
        self.last_attempt: Optional[UploadAttempt] = None

    @property
    def auth_state(self) -> AuthState:
        if self.credential_store.load() is None:
            return AuthState.NOT_AUTHENTICATED
        return AuthState.AUTHENTICATED

    def build_request_body(
        self,
        title: str,
        description: str = "",
        tags: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        return {
            "snippet": {
                "title": title[: self.config.TITLE_MAX_LENGTH],
                "description": description or "",
                "tags": list(tags or []),
                "categoryId": self.config.YOUTUBE_CATEGORY_ID,
            },
            "status": {
                "privacyStatus": self.config.PRIVACY_STATUS,
                "selfDeclaredMadeForKids": False,
            },
        }

    def upload(
        self,
        video_ref: Optional[str],
        title: Optional[str],
        description: str = "",
        tags: Optional[List[str]] = None,
    ) -> UploadResult:
        """
        Upload a finished video.

        Args:
            video_ref: Filename, /output path or URL of a video in the output namespace
            title: Video title, truncated to Config.TITLE_MAX_LENGTH
            description: Video description
            tags: Passed through unmodified

        Raises:
            ValidationError: Missing video reference or title
            AuthRequired: No stored credential; carries the URL to visit
            NotFoundError: The video is not in the output namespace
            PublishError: The platform rejected the upload
        """
        if not video_ref or not title:
            raise ValidationError("Video URL and title are required")

        attempt = UploadAttempt(video_ref=video_ref, title=title)
        self.last_attempt = attempt

        token = self.credential_store.load()
        if token is None:
            attempt.state = UploadState.AUTH_REQUIRED
            attempt.auth_url = self.oauth.authorization_url()
            logger.info("No stored YouTube credential, authorization required")
            raise AuthRequired(attempt.auth_url)

        video_path = self.storage.resolve(video_ref)
        if not video_path.is_file():
            attempt.state = UploadState.FAILED
            raise NotFoundError("Video file not found on server")

        attempt.body = self.build_request_body(title, description, tags)
        attempt.state = UploadState.UPLOADING
        logger.info(f"Uploading {video_path.name} to YouTube...")
        try:
            video_id = self.publisher.publish(token, video_path, attempt.body)
        except ShortsEngineError:
            attempt.state = UploadState.FAILED
            raise

        attempt.state = UploadState.SUCCEEDED
        attempt.result = UploadResult(video_id=video_id, video_url=SHORTS_URL.format(video_id=video_id))
        logger.info(f"Upload complete: {video_id}")
        return attempt.result

    def complete_authorization(self, code: Optional[str]) -> str:
        """
        Exchange an authorization code and persist the resulting token.

        Returns:
            Human-readable confirmation

        Raises:
            ValidationError: Empty code
            AuthExchangeError: The platform refused the code
            ConfigError: Client secrets are missing
        """
        if not code or not code.strip():
            raise ValidationError("Authorization code is required")

        token = self.oauth.exchange_code(code.strip())
        self.credential_store.save(token)
        return "Authentication successful! You can now upload."
