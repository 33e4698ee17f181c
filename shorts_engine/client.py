"""
HTTP client for the Shorts Engine API.

Mirrors the server's endpoints and turns error responses back into the
exceptions in ``shorts_engine.errors``, so scripts can drive a running
server with the same error handling as in-process code.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import (
    AuthExchangeError,
    AuthRequired,
    EncodeError,
    NetworkError,
    NotFoundError,
    PreconditionError,
    PublishError,
    ServiceUnavailableError,
    ShortsEngineError,
    SynthesisError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:3001"

# Server error codes, tried before falling back to the HTTP status
_CODE_ERRORS = {
    cls.error: cls
    for cls in (
        ValidationError,
        PreconditionError,
        ServiceUnavailableError,
        NetworkError,
        SynthesisError,
        EncodeError,
        AuthExchangeError,
        NotFoundError,
        PublishError,
    )
}

_STATUS_ERRORS = {
    400: ValidationError,
    404: NotFoundError,
    503: ServiceUnavailableError,
}


class ShortsClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def absolute_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}{path}"

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise ServiceUnavailableError(
                f"Backend server not reachable at {self.base_url}: {e}"
            ) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.ok:
            return data
        raise self._error_from(response.status_code, data)

    @staticmethod
    def _error_from(status: int, data: Dict[str, Any]) -> ShortsEngineError:
        message = data.get("detail") or data.get("error") or f"HTTP {status}"
        if status == 401 and data.get("authUrl"):
            return AuthRequired(data["authUrl"])
        error_cls = _CODE_ERRORS.get(data.get("error")) or _STATUS_ERRORS.get(
            status, ShortsEngineError
        )
        if error_cls is PublishError:
            return PublishError(message, details=data.get("details"))
        return error_cls(message)

    def health(self) -> bool:
        """True if the server answers its health check."""
        try:
            return self._request("GET", "/api/health").get("status") == "ok"
        except ServiceUnavailableError:
            return False

    def list_voices(self) -> List[str]:
        return self._request("GET", "/api/tts/voices")["voices"]

    def synthesize_voice(self, text: str, voice: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"text": text}
        if voice:
            payload["voice"] = voice
        return self._request("POST", "/api/tts", json=payload)

    def assemble(
        self,
        video_url: str,
        audio_file: str,
        subtitles: Optional[List[str]] = None,
        title: str = "",
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/api/assemble",
            json={
                "videoUrl": video_url,
                "audioFile": audio_file,
                "subtitles": list(subtitles or []),
                "title": title,
            },
        )

    def upload(
        self,
        video_url: str,
        title: str,
        description: str = "",
        tags: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/api/youtube/upload",
            json={
                "videoUrl": video_url,
                "title": title,
                "description": description,
                "tags": list(tags or []),
            },
        )

    def submit_auth_code(self, code: str) -> str:
        return self._request("POST", "/api/youtube/auth-callback", json={"code": code})["message"]
