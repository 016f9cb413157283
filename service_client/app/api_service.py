"""
Typed façade over the CodyVerse REST API.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar, Union

import httpx

from shared.config import ClientSettings, get_settings
from shared.errors import BatchRequestError, ValidationError
from shared.logging import get_logger
from .adapters import RequestExecutor
from .caching import TTLCache
from .domain.envelope import ApiFailure, ApiResponse
from .domain.models import (
    CodyInteraction,
    CodyReply,
    Course,
    GamificationData,
    HealthStatus,
    Lesson,
    LessonCompletion,
    LessonCompletionRequest,
    LessonCompletionResult,
    LessonProgressResult,
    LessonProgressUpdate,
    UserStats,
)

T = TypeVar("T")


def user_scope(user_id: str) -> str:
    """Cache tag shared by every read scoped to one user."""
    return f"user:{user_id}"


class ApiService:
    """One method per API operation, all resolving to envelopes.

    Reads go through the executor's GET cache. Mutations that affect a
    user's stats or dashboard drop that user's cached reads before the
    write is issued. Invalid arguments (empty ids, progress outside
    0..100, malformed lesson data) resolve to a code 400 failure envelope
    without a request being made.
    """

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        cache: Optional[TTLCache] = None,
        executor: Optional[RequestExecutor] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.logger = get_logger("client.api_service")

        if executor is not None:
            self.cache = executor.cache
            self.executor = executor
        else:
            self.cache = cache or TTLCache(default_ttl=self.settings.cache_ttl_seconds)
            self.executor = RequestExecutor(
                self.settings.api_base_url,
                self.cache,
                timeout=self.settings.request_timeout,
                default_headers={"User-Agent": self.settings.user_agent},
                transport=transport,
            )

    async def __aenter__(self) -> "ApiService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Tear down the cache."""
        self.cache.teardown()

    # Courses

    async def get_courses(self) -> ApiResponse[List[Course]]:
        """List the course catalogue."""
        return await self.executor.request("/courses", data_model=List[Course])

    async def get_course(self, course_id: str) -> ApiResponse[Course]:
        """Get a single course."""
        invalid = _require_ids(course_id=course_id)
        if invalid is not None:
            return invalid
        return await self.executor.request(f"/courses/{course_id}", data_model=Course)

    async def get_course_lessons(self, course_id: str) -> ApiResponse[List[Lesson]]:
        """List the lessons of a course."""
        invalid = _require_ids(course_id=course_id)
        if invalid is not None:
            return invalid
        return await self.executor.request(f"/courses/{course_id}/lessons", data_model=List[Lesson])

    # User progress

    async def get_user_stats(self, user_id: str) -> ApiResponse[UserStats]:
        """Get progress counters for a user."""
        invalid = _require_ids(user_id=user_id)
        if invalid is not None:
            return invalid
        return await self.executor.request(
            f"/users/{user_id}/stats",
            data_model=UserStats,
            cache_tags=(user_scope(user_id),),
        )

    async def update_lesson_progress(
        self,
        user_id: str,
        lesson_id: str,
        progress: float,
    ) -> ApiResponse[Optional[LessonProgressResult]]:
        """Record progress (0-100) on a lesson."""
        invalid = _require_ids(user_id=user_id, lesson_id=lesson_id)
        if invalid is not None:
            return invalid
        try:
            body = LessonProgressUpdate(progress=progress)
        except ValueError:
            return _rejected("Progress must be between 0 and 100", progress=progress)

        self.invalidate_user_cache(user_id)
        return await self.executor.request(
            f"/users/{user_id}/lessons/{lesson_id}/progress",
            method="PUT",
            json=body.to_wire(),
            data_model=Optional[LessonProgressResult],
        )

    # Gamification

    async def get_gamification_dashboard(self, user_id: str) -> ApiResponse[GamificationData]:
        """Get the gamification dashboard for a user."""
        invalid = _require_ids(user_id=user_id)
        if invalid is not None:
            return invalid
        return await self.executor.request(
            f"/gamification/dashboard/{user_id}",
            data_model=GamificationData,
            cache_tags=(user_scope(user_id),),
        )

    async def process_lesson_completion(
        self,
        user_id: str,
        lesson: Union[LessonCompletion, Mapping[str, Any]],
    ) -> ApiResponse[LessonCompletionResult]:
        """Report a finished lesson and collect its rewards."""
        invalid = _require_ids(user_id=user_id)
        if invalid is not None:
            return invalid
        lesson_data = lesson.model_dump() if isinstance(lesson, LessonCompletion) else dict(lesson)
        try:
            body = LessonCompletionRequest.model_validate({**lesson_data, "user_id": user_id})
        except ValueError:
            return _rejected("Invalid lesson completion data", lesson=lesson_data)

        self.invalidate_user_cache(user_id)
        return await self.executor.request(
            "/gamification/lesson-completion",
            method="POST",
            json=body.to_wire(),
            data_model=LessonCompletionResult,
        )

    # Cody assistant

    async def send_cody_message(
        self,
        user_id: str,
        message: str,
        interaction_type: str = "chat",
        context: Optional[Dict[str, Any]] = None,
    ) -> ApiResponse[CodyReply]:
        """Send a message to the Cody assistant."""
        invalid = _require_ids(user_id=user_id)
        if invalid is not None:
            return invalid
        body = CodyInteraction(
            user_id=user_id,
            message=message,
            interaction_type=interaction_type,
            context=context or {},
        )
        return await self.executor.request(
            "/cody/interact",
            method="POST",
            json=body.to_wire(),
            data_model=CodyReply,
        )

    # Cache management

    def invalidate_cache(self, pattern: Optional[str] = None) -> int:
        """Drop cached responses whose key contains ``pattern``, or all of them."""
        return self.cache.invalidate(pattern)

    def invalidate_user_cache(self, user_id: str) -> int:
        """Drop every cached read scoped to ``user_id``."""
        removed = self.cache.invalidate_tags(user_scope(user_id))
        # untagged reads under the user's path; trailing slash keeps user 4 from matching 42
        removed += self.cache.invalidate(f"/users/{user_id}/")
        self.logger.debug("Invalidated user cache", user_id=user_id, removed=removed)
        return removed

    # Health

    async def health_check(self) -> ApiResponse[HealthStatus]:
        """Check API availability."""
        return await self.executor.request("/health", data_model=HealthStatus)

    # Batch operations

    async def batch_request(self, requests: Sequence[Callable[[], Awaitable[T]]]) -> List[T]:
        """Run operations concurrently; results in input order, or fail as a whole."""

        async def _run(index: int, request: Callable[[], Awaitable[T]]) -> T:
            try:
                return await request()
            except Exception as exc:
                raise BatchRequestError(index, exc) from exc

        results = await asyncio.gather(*(_run(index, request) for index, request in enumerate(requests)))
        return list(results)


def _rejected(message: str, **details: Any) -> ApiFailure:
    return ApiFailure.from_exception(ValidationError(message, details=details))


def _require_ids(**ids: Any) -> Optional[ApiFailure]:
    """Failure envelope for the first empty id, if any."""
    for name, value in ids.items():
        if value is None or value == "":
            return _rejected(f"{name} is required", **{name: value})
    return None
