"""
Domain types for the API client: response envelopes, typed payloads and
call-state tracking.
"""

from .envelope import (
    ApiFailure,
    ApiResponse,
    ApiSuccess,
    ResponseMetadata,
    parse_envelope,
)
from .operation import ApiOperation, LoadingState

__all__ = [
    "ApiFailure",
    "ApiResponse",
    "ApiSuccess",
    "ResponseMetadata",
    "parse_envelope",
    "ApiOperation",
    "LoadingState",
]
