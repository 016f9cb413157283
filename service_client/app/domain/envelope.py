"""
Response envelope types shared by every API interaction.

Every call resolves to exactly one of two shapes:

    {"success": true, "data": <T>, "message"?: str, "metadata"?: {...}}
    {"success": false, "error": str, "code"?: int, "details"?: any}

Callers must branch on ``success`` before touching ``data``.
"""

from typing import Any, Dict, Generic, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, PrivateAttr, ValidationError

from shared.errors import ClientException
from shared.logging import get_logger

T = TypeVar("T")

DEFAULT_FAILURE_CODE = 500
NETWORK_ERROR_MESSAGE = "Network error"

logger = get_logger("client.envelope")


class ResponseMetadata(BaseModel):
    """Pagination and timing metadata attached to a success envelope."""

    model_config = ConfigDict(extra="allow")

    page: Optional[int] = None
    limit: Optional[int] = None
    total: Optional[int] = None
    timestamp: Optional[str] = None


class ApiSuccess(BaseModel, Generic[T]):
    """Success envelope.

    ``data`` is the typed view of the payload; ``raw_data`` is the payload
    exactly as the server sent it.
    """

    success: Literal[True] = True
    data: T
    message: Optional[str] = None
    metadata: Optional[ResponseMetadata] = None

    _raw_data: Any = PrivateAttr(default=None)
    _has_raw: bool = PrivateAttr(default=False)

    @property
    def raw_data(self) -> Any:
        if self._has_raw:
            return self._raw_data
        dumped = self.model_dump(mode="json", by_alias=True, exclude_unset=True, include={"data"})
        return dumped.get("data")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the JSON wire shape, omitting unset optional fields."""
        payload: Dict[str, Any] = {"success": True, "data": self.raw_data}
        if self.message is not None:
            payload["message"] = self.message
        if self.metadata is not None:
            payload["metadata"] = self.metadata.model_dump(mode="json", exclude_none=True)
        return payload


class ApiFailure(BaseModel):
    """Failure envelope."""

    success: Literal[False] = False
    error: str
    code: Optional[int] = None
    details: Optional[Any] = None

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the JSON wire shape, omitting unset optional fields."""
        payload = self.model_dump(mode="json")
        for key in ("code", "details"):
            if payload[key] is None:
                del payload[key]
        return payload

    @classmethod
    def from_exception(cls, exc: BaseException, code: int = DEFAULT_FAILURE_CODE) -> "ApiFailure":
        """Build a failure envelope from a raised exception."""
        if isinstance(exc, ClientException):
            return cls(error=exc.message, code=exc.status_code, details=exc.details or None)
        return cls(error=str(exc) or NETWORK_ERROR_MESSAGE, code=code)


# Subscripted only inside annotations; modules using it defer evaluation.
ApiResponse = Union[ApiSuccess[T], ApiFailure]


def parse_envelope(body: Any, status_code: int, data_model: Optional[Type[Any]] = None) -> Union[ApiSuccess[Any], ApiFailure]:
    """Normalize a decoded response body into an envelope.

    Non-2xx responses always become failures, using whatever error fields
    the body carries. 2xx bodies without a ``success`` discriminant are
    wrapped whole as ``data``. ``data_model`` types the success payload;
    a payload that does not fit is passed through untyped rather than
    turning a server success into a failure.
    """
    ok = 200 <= status_code < 300

    if not ok:
        return _failure_from_body(body, fallback_code=status_code)

    if isinstance(body, dict) and "success" in body:
        if body["success"] is not True:
            return _failure_from_body(body, fallback_code=None)
        envelope = {**body, "data": body.get("data")}
    else:
        envelope = {"success": True, "data": body}

    parsed: Optional[ApiSuccess[Any]] = None
    if data_model is not None:
        try:
            parsed = ApiSuccess[data_model].model_validate(envelope)
        except ValidationError as exc:
            logger.warning(
                "Response data does not match model, passing it through untyped",
                model=getattr(data_model, "__name__", str(data_model)),
                error_count=exc.error_count(),
            )

    if parsed is None:
        try:
            parsed = ApiSuccess[Any].model_validate(envelope)
        except ValidationError as exc:
            return ApiFailure(
                error=f"Invalid response envelope: {exc.error_count()} validation error(s)",
                code=DEFAULT_FAILURE_CODE,
                details=exc.errors(include_url=False, include_context=False, include_input=False),
            )

    parsed._raw_data = envelope["data"]
    parsed._has_raw = True
    return parsed


def _failure_from_body(body: Any, fallback_code: Optional[int]) -> ApiFailure:
    if not isinstance(body, dict):
        return ApiFailure(error=f"HTTP {fallback_code}", code=fallback_code)

    default_error = f"HTTP {fallback_code}" if fallback_code is not None else "Request failed"
    error = body.get("error") or body.get("message") or default_error
    code = body.get("code")
    if not isinstance(code, int) or isinstance(code, bool):
        code = fallback_code
    return ApiFailure(error=str(error), code=code, details=body.get("details"))
