"""
Shared error handling for the CodyVerse API client.
"""

from typing import Dict, Any, Optional


class ClientException(Exception):
    """Base exception for the API client."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(ClientException):
    """Invalid caller input, reported as a 400 failure envelope."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class BatchRequestError(ClientException):
    """Raised when one operation of an all-or-nothing batch fails."""

    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(
            "BATCH_REQUEST_ERROR",
            f"Batch operation {index} failed: {cause}",
            {"index": index, "error": str(cause)}
        )
