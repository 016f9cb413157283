"""
Loading-state tracking for a single API call.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar, Union

from shared.logging import get_logger

from .envelope import ApiFailure, ApiSuccess

T = TypeVar("T")

EnvelopeCall = Callable[[], Awaitable[Union[ApiSuccess[Any], ApiFailure]]]


class LoadingState(str, Enum):
    """Lifecycle of a tracked call."""
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class ApiOperation(Generic[T]):
    """Runs an envelope-returning call and exposes its data, error and state.

    ``execute`` never raises: a failure envelope or an exception raised by the
    call both end in ``LoadingState.ERROR`` with a readable ``error``.
    """

    def __init__(self, call: EnvelopeCall):
        self._call = call
        self.logger = get_logger("client.operation")
        self.data: Optional[T] = None
        self.error: Optional[str] = None
        self.state = LoadingState.IDLE

    @property
    def loading(self) -> bool:
        return self.state is LoadingState.LOADING

    async def execute(self) -> Optional[T]:
        """Run the call and record its outcome."""
        self.state = LoadingState.LOADING
        self.error = None

        try:
            result = await self._call()
        except Exception as exc:
            self.logger.error("Tracked API call raised", error=str(exc))
            self.error = str(exc) or "Network error"
            self.state = LoadingState.ERROR
            return None

        if result.success:
            self.data = result.data
            self.state = LoadingState.SUCCESS
            return self.data

        self.error = result.error or "An error occurred"
        self.state = LoadingState.ERROR
        return None

    def reset(self) -> None:
        """Return to the idle state, forgetting data and error."""
        self.data = None
        self.error = None
        self.state = LoadingState.IDLE
