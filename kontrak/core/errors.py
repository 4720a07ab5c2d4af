# ------------------------------------------------------------------------
# File: errors.py
# Location: kontrak/core/errors.py
# Description:
#     Exception classes raised by the contract core and auth helpers.
# ------------------------------------------------------------------------


class DocumentGenerationError(RuntimeError):
    """Raised when a contract PDF could not be built. No partial output exists."""


class InvalidSignatureError(ValueError):
    """Raised when a signature payload is not a decodable image data URI."""


class AuthError(Exception):
    """Raised when a request cannot be authenticated or authorized."""

    def __init__(self, message: str, status_code: int = 401) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
