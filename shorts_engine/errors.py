"""
Error taxonomy for the Shorts Engine.

Every step-level failure is raised as a subclass of ShortsEngineError.
The API layer turns these into structured JSON responses using the
``error`` code and ``status_code`` carried by each class.
"""

from typing import Optional


class ShortsEngineError(Exception):
    """Base exception for all pipeline step failures."""

    error: str = "SHORTS_ENGINE_ERROR"
    status_code: int = 500


class ValidationError(ShortsEngineError):
    """Bad or missing caller input. Raised before any external call."""

    error = "VALIDATION_ERROR"
    status_code = 400


class PreconditionError(ShortsEngineError):
    """Assembly attempted without its required assets."""

    error = "PRECONDITION_FAILED"
    status_code = 400


class ServiceUnavailableError(ShortsEngineError):
    """A dependency process or service could not be reached."""

    error = "SERVICE_UNAVAILABLE"
    status_code = 503


class NetworkError(ShortsEngineError):
    """A remote fetch did not succeed."""

    error = "NETWORK_ERROR"
    status_code = 500

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)


class SynthesisError(ShortsEngineError):
    """The text-to-speech engine failed or is unavailable."""

    error = "SYNTHESIS_FAILED"
    status_code = 500


class EncodeError(ShortsEngineError):
    """The encode subprocess exited non-zero or could not be spawned."""

    error = "ASSEMBLY_FAILED"
    status_code = 500

    def __init__(self, message: str, exit_code: Optional[int] = None):
        self.exit_code = exit_code
        super().__init__(message)


class AuthRequired(ShortsEngineError):
    """Upload blocked until the caller completes out-of-band authorization."""

    error = "AUTHENTICATION_REQUIRED"
    status_code = 401

    def __init__(self, auth_url: str):
        self.auth_url = auth_url
        super().__init__("Authentication Required")


class AuthExchangeError(ShortsEngineError):
    """An authorization code could not be exchanged for a credential."""

    error = "AUTH_EXCHANGE_FAILED"
    status_code = 500


class NotFoundError(ShortsEngineError):
    """A referenced local file does not exist."""

    error = "NOT_FOUND"
    status_code = 404


class PublishError(ShortsEngineError):
    """The video platform rejected the publish call."""

    error = "UPLOAD_FAILED"
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        self.details = details
        super().__init__(message)
