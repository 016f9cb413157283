"""
Unit tests for the ApiService façade.
"""

import asyncio
import json
from typing import Any, Dict

import httpx
import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_client.app import ApiService
from service_client.app.caching import TTLCache
from service_client.app.domain.models import (
    CodyReply,
    Course,
    CourseDifficulty,
    GamificationData,
    LessonCompletion,
    LessonCompletionResult,
)
from shared.config import ClientSettings
from shared.errors import BatchRequestError


COURSE = {
    "id": "1",
    "title": "IA Básica",
    "description": "Fundamentos de inteligência artificial",
    "difficulty": "beginner",
    "duration": 120,
    "lessons": 8,
    "completedLessons": 2,
    "progress": 25,
    "thumbnail": "/img/ia-basica.png",
    "category": "ai-basics",
    "rating": 4.8,
    "enrolledUsers": 1520,
    "isUnlocked": True,
    "estimatedTime": "2h",
}

LESSON = {
    "id": "7",
    "courseId": "1",
    "title": "O que é IA?",
    "description": "Introdução",
    "duration": 15,
    "type": "video",
    "difficulty": "easy",
    "xpReward": 50,
    "isCompleted": False,
    "isUnlocked": True,
    "order": 1,
}


def stats_for(xp: int) -> Dict[str, Any]:
    return {
        "totalXp": xp,
        "level": 1 + xp // 1000,
        "streak": 1,
        "completedLessons": xp // 100,
        "badges": 0,
        "coins": xp // 10,
    }


class FakeApi:
    """In-memory stand-in for the CodyVerse REST API."""

    def __init__(self):
        self.xp: Dict[str, int] = {}
        self.requests = []

    def calls_to(self, method: str, path: str) -> int:
        return sum(1 for request in self.requests if request.method == method and request.url.path == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        parts = path.strip("/").split("/")

        if path == "/api/courses":
            return httpx.Response(200, json={"success": True, "data": [COURSE]})
        if path == "/api/courses/1":
            return httpx.Response(200, json={"success": True, "data": COURSE})
        if path == "/api/courses/1/lessons":
            return httpx.Response(200, json={"success": True, "data": [LESSON]})
        if parts[:2] == ["api", "users"] and parts[-1] == "stats":
            user_id = parts[2]
            return httpx.Response(200, json={"success": True, "data": stats_for(self.xp.get(user_id, 0))})
        if parts[:2] == ["api", "users"] and parts[-1] == "progress" and request.method == "PUT":
            user_id, lesson_id = parts[2], parts[4]
            self.xp[user_id] = self.xp.get(user_id, 0) + 100
            body = json.loads(request.content)
            return httpx.Response(200, json={"success": True, "data": {"lessonId": lesson_id, **body}})
        if path.startswith("/api/gamification/dashboard/"):
            user_id = parts[-1]
            return httpx.Response(200, json={
                "success": True,
                "data": {
                    "user": {
                        "id": user_id,
                        "name": "Ana",
                        "email": "ana@example.com",
                        "ageGroup": "teen",
                        "theme": "teen",
                        "createdAt": "2024-01-01T00:00:00Z",
                        "lastActive": "2024-01-02T00:00:00Z",
                    },
                    "stats": stats_for(self.xp.get(user_id, 0)),
                    "badges": [],
                    "achievements": [],
                    "notifications": [],
                },
            })
        if path == "/api/gamification/lesson-completion":
            body = json.loads(request.content)
            self.xp[body["userId"]] = self.xp.get(body["userId"], 0) + 150
            return httpx.Response(200, json={
                "success": True,
                "data": {"xpAwarded": 150, "coinsAwarded": 25, "newBadges": [], "streakUpdated": True},
            })
        if path == "/api/cody/interact":
            body = json.loads(request.content)
            return httpx.Response(200, json={
                "success": True,
                "data": {
                    "response": f"Olá! Você disse: {body['message']}",
                    "emotion": "happy",
                    "suggestions": ["Continue aprendendo"],
                },
            })
        if path == "/api/health":
            return httpx.Response(200, json={"status": "ok", "database": "connected"})
        return httpx.Response(404, json={"success": False, "error": "Not found"})


class TestApiService:
    """Test cases for ApiService."""

    @pytest.fixture
    def fake_api(self):
        return FakeApi()

    @pytest.fixture
    def settings(self):
        return ClientSettings(api_origin="http://testserver", api_base_path="/api")

    @pytest.fixture
    def service(self, settings, fake_api):
        return ApiService(settings, transport=httpx.MockTransport(fake_api.handler))

    @pytest.mark.asyncio
    async def test_get_courses_cached_within_ttl(self, service, fake_api):
        first = await service.get_courses()
        second = await service.get_courses()

        assert first.success is True
        assert isinstance(first.data[0], Course)
        assert first.data[0].title == "IA Básica"
        assert second is first
        assert fake_api.calls_to("GET", "/api/courses") == 1

    def test_response_annotations_are_deferred(self):
        assert ApiService.get_courses.__annotations__["return"] == "ApiResponse[List[Course]]"
        assert ApiService.get_user_stats.__annotations__["return"] == "ApiResponse[UserStats]"

    @pytest.mark.asyncio
    async def test_get_course_and_lessons(self, service):
        course = await service.get_course("1")
        lessons = await service.get_course_lessons("1")

        assert course.data.id == "1"
        assert course.data.enrolled_users == 1520
        assert lessons.data[0].course_id == "1"
        assert lessons.data[0].xp_reward == 50

    @pytest.mark.asyncio
    async def test_unknown_course_is_failure_envelope(self, service):
        result = await service.get_course("does-not-exist")

        assert result.success is False
        assert result.error == "Not found"
        assert result.code == 404

    @pytest.mark.asyncio
    async def test_cache_expiry_triggers_refetch(self, settings, fake_api):
        now = [0.0]
        cache = TTLCache(default_ttl=300.0, clock=lambda: now[0])
        service = ApiService(settings, cache=cache, transport=httpx.MockTransport(fake_api.handler))

        first = await service.get_courses()
        now[0] += 301
        second = await service.get_courses()

        assert fake_api.calls_to("GET", "/api/courses") == 2
        assert second is not first

    @pytest.mark.asyncio
    async def test_update_progress_then_stats_is_fresh(self, service, fake_api):
        before = await service.get_user_stats("42")
        update = await service.update_lesson_progress("42", "7", 80)
        after = await service.get_user_stats("42")

        assert before.data.total_xp == 0
        assert update.success is True
        assert update.data.lesson_id == "7"
        assert update.data.progress == 80
        assert after.data.total_xp == 100
        assert fake_api.calls_to("GET", "/api/users/42/stats") == 2

        put = [request for request in fake_api.requests if request.method == "PUT"][0]
        assert put.url.path == "/api/users/42/lessons/7/progress"
        assert json.loads(put.content) == {"progress": 80}

    @pytest.mark.asyncio
    async def test_lesson_completion_invalidates_stats_and_dashboard(self, service, fake_api):
        await service.get_user_stats("42")
        await service.get_gamification_dashboard("42")
        await service.get_courses()

        result = await service.process_lesson_completion("42", {"lessonId": "7", "timeSpent": 20, "score": 90})

        assert isinstance(result.data, LessonCompletionResult)
        assert result.data.xp_awarded == 150

        dashboard = await service.get_gamification_dashboard("42")
        stats = await service.get_user_stats("42")
        await service.get_courses()

        assert dashboard.data.stats.total_xp == 150
        assert stats.data.total_xp == 150
        assert fake_api.calls_to("GET", "/api/gamification/dashboard/42") == 2
        assert fake_api.calls_to("GET", "/api/users/42/stats") == 2
        # Unrelated reads stay cached
        assert fake_api.calls_to("GET", "/api/courses") == 1

    @pytest.mark.asyncio
    async def test_lesson_completion_body(self, service, fake_api):
        lesson = LessonCompletion(lesson_id="7", time_spent=30, quizAnswers=[1, 2])

        await service.process_lesson_completion("42", lesson)

        post = [request for request in fake_api.requests if request.method == "POST"][0]
        body = json.loads(post.content)
        assert body["userId"] == "42"
        assert body["lessonId"] == "7"
        assert body["timeSpent"] == 30
        assert body["score"] == 100
        assert body["quizAnswers"] == [1, 2]

    @pytest.mark.asyncio
    async def test_invalidation_is_scoped_to_one_user(self, service, fake_api):
        await service.get_user_stats("4")
        await service.get_user_stats("42")

        await service.update_lesson_progress("42", "7", 10)
        await service.get_user_stats("4")
        await service.get_user_stats("42")

        assert fake_api.calls_to("GET", "/api/users/4/stats") == 1
        assert fake_api.calls_to("GET", "/api/users/42/stats") == 2

    @pytest.mark.asyncio
    async def test_send_cody_message(self, service, fake_api):
        result = await service.send_cody_message("42", "O que é um prompt?", context={"lessonId": "7"})

        assert isinstance(result.data, CodyReply)
        assert result.data.emotion == "happy"

        post = [request for request in fake_api.requests if request.url.path == "/api/cody/interact"][0]
        assert json.loads(post.content) == {
            "userId": "42",
            "message": "O que é um prompt?",
            "interactionType": "chat",
            "context": {"lessonId": "7"},
        }

    @pytest.mark.asyncio
    async def test_cody_messages_are_never_cached(self, service, fake_api):
        await service.send_cody_message("42", "oi")
        await service.send_cody_message("42", "oi")

        assert fake_api.calls_to("POST", "/api/cody/interact") == 2

    @pytest.mark.asyncio
    async def test_health_check(self, service):
        result = await service.health_check()

        assert result.success is True
        assert result.data.status == "ok"

    @pytest.mark.asyncio
    async def test_invalidate_cache_pattern_and_all(self, service, fake_api):
        await service.get_courses()
        await service.get_user_stats("42")

        assert service.invalidate_cache("/users/42/stats") == 1
        await service.get_courses()
        assert fake_api.calls_to("GET", "/api/courses") == 1

        assert service.invalidate_cache() == 1
        await service.get_courses()
        assert fake_api.calls_to("GET", "/api/courses") == 2

    @pytest.mark.asyncio
    async def test_network_failure_resolves_to_envelope(self, settings):
        def handler(request):
            raise httpx.ConnectError("Connection refused", request=request)

        service = ApiService(settings, transport=httpx.MockTransport(handler))

        result = await service.get_user_stats("42")

        assert result.success is False
        assert result.error == "Connection refused"
        assert result.code == 500

    @pytest.mark.asyncio
    async def test_invalid_progress_rejected_before_request(self, service, fake_api):
        result = await service.update_lesson_progress("42", "7", 150)

        assert result.success is False
        assert result.code == 400
        assert result.details == {"progress": 150}
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_missing_ids_rejected_as_envelopes(self, service, fake_api):
        stats = await service.get_user_stats("")
        lessons = await service.get_course_lessons("")
        cody = await service.send_cody_message("", "oi")

        for result in (stats, lessons, cody):
            assert result.success is False
            assert result.code == 400
        assert stats.error == "user_id is required"
        assert lessons.error == "course_id is required"
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_invalid_lesson_completion_rejected(self, service, fake_api):
        result = await service.process_lesson_completion("42", {"lessonId": "7", "score": 250})

        assert result.success is False
        assert result.code == 400
        assert result.error == "Invalid lesson completion data"
        assert fake_api.requests == []

    @pytest.mark.asyncio
    async def test_invalid_input_inside_batch_does_not_raise(self, service):
        stats, update = await service.batch_request([
            lambda: service.get_user_stats("42"),
            lambda: service.update_lesson_progress("42", "7", -5),
        ])

        assert stats.success is True
        assert update.success is False
        assert update.code == 400

    @pytest.mark.asyncio
    async def test_batch_request_preserves_order(self, service):
        async def slow(value, delay):
            await asyncio.sleep(delay)
            return value

        results = await service.batch_request([
            lambda: slow("a", 0.03),
            lambda: slow("b", 0.0),
            lambda: slow("c", 0.01),
        ])

        assert results == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_batch_request_of_api_calls(self, service):
        courses, stats, health = await service.batch_request([
            service.get_courses,
            lambda: service.get_user_stats("42"),
            service.health_check,
        ])

        assert courses.data[0].id == "1"
        assert stats.data.total_xp == 0
        assert health.data.status == "ok"

    @pytest.mark.asyncio
    async def test_batch_request_fails_as_a_whole(self, service):
        async def ok():
            return "ok"

        async def broken():
            raise RuntimeError("lesson service down")

        with pytest.raises(BatchRequestError) as exc_info:
            await service.batch_request([ok, broken, ok])

        assert exc_info.value.index == 1
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_batch_request_empty(self, service):
        assert await service.batch_request([]) == []

    @pytest.mark.asyncio
    async def test_context_manager_tears_down_cache(self, settings, fake_api):
        async with ApiService(settings, transport=httpx.MockTransport(fake_api.handler)) as service:
            await service.get_courses()
            assert len(service.cache) == 1

        assert len(service.cache) == 0


SERVER_COURSES = {
    "success": True,
    "data": [
        {
            "id": 1,
            "title": "JavaScript Fundamentals",
            "description": "Learn the basics of JavaScript programming",
            "difficulty": "Iniciante",
            "duration": "4 weeks",
            "total_xp": 500,
            "lesson_count": 12,
            "order_index": 1,
            "is_active": True,
            "instructor": "Cody",
        },
        {
            "id": 2,
            "title": "Python for Beginners",
            "difficulty": "beginner",
            "duration": 120,
        },
    ],
}

SERVER_DASHBOARD = {
    "success": True,
    "data": {
        "user": {
            "id": 42,
            "name": "User 42",
            "totalXP": 1340,
            "level": 6,
            "levelName": "Explorador",
            "xpToNext": 60,
        },
        "wallet": {"id": 42, "user_id": 42, "coins": 320, "gems": 12},
        "badges": [
            {
                "id": 1,
                "name": "First Steps",
                "description": "Complete your first lesson",
                "icon": "🎯",
                "rarity": "common",
                "unlocked_at": "2024-01-01T00:00:00Z",
            },
        ],
        "streak": {"current_streak": 4, "longest_streak": 12},
        "goals": [{"id": 1, "goal_type": "daily_xp", "target_value": 100}],
        "notifications": [
            {
                "id": 1,
                "notification_type": "level_up",
                "title": "Level Up!",
                "is_read": False,
                "created_at": "2024-01-02T00:00:00Z",
                "timeAgo": "1 hora atrás",
            },
        ],
    },
}


class TestServerPayloads:
    """Payload shapes as served by the Express backend."""

    @pytest.fixture
    def requests(self):
        return []

    @pytest.fixture
    def service(self, requests):
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.path == "/api/courses":
                return httpx.Response(200, json=SERVER_COURSES)
            if request.url.path == "/api/gamification/dashboard/42":
                return httpx.Response(200, json=SERVER_DASHBOARD)
            return httpx.Response(200, json={"success": False, "message": "Internal server error"})

        settings = ClientSettings(api_origin="http://testserver", api_base_path="/api")
        return ApiService(settings, transport=httpx.MockTransport(handler))

    @pytest.mark.asyncio
    async def test_courses_with_server_field_names(self, service):
        result = await service.get_courses()

        assert result.success is True
        first, second = result.data
        assert isinstance(first, Course)
        assert first.id == 1
        assert first.difficulty == "Iniciante"
        assert first.duration == "4 weeks"
        assert first.lesson_count == 12
        assert first.total_xp == 500
        assert second.difficulty is CourseDifficulty.BEGINNER

    @pytest.mark.asyncio
    async def test_undeclared_fields_survive_to_wire(self, service):
        result = await service.get_courses()

        assert result.raw_data == SERVER_COURSES["data"]
        assert result.to_wire() == SERVER_COURSES
        assert result.data[0].instructor == "Cody"

    @pytest.mark.asyncio
    async def test_dashboard_with_server_field_names(self, service):
        result = await service.get_gamification_dashboard("42")

        assert result.success is True
        assert isinstance(result.data, GamificationData)
        assert result.data.user.id == 42
        assert result.data.user.total_xp == 1340
        assert result.data.user.email is None
        assert result.data.wallet["coins"] == 320
        assert result.data.badges[0].unlocked_at == "2024-01-01T00:00:00Z"
        assert result.data.notifications[0].type == "level_up"
        assert result.data.notifications[0].is_read is False
        assert result.to_wire() == SERVER_DASHBOARD

    @pytest.mark.asyncio
    async def test_failure_envelope_with_ok_status_is_cached(self, service, requests):
        first = await service.get_user_stats("42")
        second = await service.get_user_stats("42")

        assert first.success is False
        assert first.error == "Internal server error"
        assert second is first
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_cached_failure_dropped_by_user_invalidation(self, service, requests):
        await service.get_user_stats("42")
        service.invalidate_user_cache("42")
        await service.get_user_stats("42")

        assert len(requests) == 2
