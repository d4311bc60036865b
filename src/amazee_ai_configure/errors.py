"""
Error types for amazee-ai-configure.

Every error raised by this package derives from AmazeeAiError, so the
CLI wizard can catch a single base class per step.
"""

from typing import Optional


class AmazeeAiError(RuntimeError):
    """Base error for amazee-ai-configure."""


class AmazeeAiApiError(AmazeeAiError):
    """An amazee.ai API request failed."""

    def __init__(
        self,
        message: str,
        http_status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ):
        super().__init__(message)
        self.http_status_code = http_status_code
        self.response_body = response_body


class EnvFileError(AmazeeAiError):
    """The env file could not be read or written."""


class SecretsCommandError(AmazeeAiError):
    """The secrets command exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        key: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.key = key
        self.returncode = returncode
        self.stderr = stderr


class VerificationCodeError(AmazeeAiError):
    """Too many invalid verification code entries."""
