"""
Typed exceptions for Justice Lab.

AI-backed features with no offline equivalent (audience scenes, judging
suggestions, remote scoring, appeals) raise these to the caller so the
UI can tell "reconnect and retry" apart from a generic failure.
"""

from typing import Optional


class JusticeLabError(Exception):
    """Base exception for Justice Lab"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class AIServiceError(JusticeLabError):
    """Raised when a remote AI call fails for any reason."""
    status_code: Optional[int] = None

    def __init__(self, message: str = "AI service unavailable", status_code: Optional[int] = None):
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class MissingCredentialError(AIServiceError):
    """No bearer token is available for the AI backend."""

    def __init__(self, message: str = "AUTH_TOKEN_MISSING"):
        super().__init__(message, status_code=401)


class AITimeoutError(AIServiceError):
    """The request lost its race against the deadline."""

    def __init__(self, seconds: float):
        self.seconds = seconds
        super().__init__(f"AI request timed out after {seconds}s")


class AIResponseError(AIServiceError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str = ""):
        self.body = body
        super().__init__(f"AI backend returned HTTP {status_code}", status_code=status_code)


class MalformedPayloadError(AIServiceError):
    """The response body is not the JSON shape we expect."""


class StorageUnavailableError(JusticeLabError):
    """The durable key-value backend cannot be read or written."""
