"""
Typed payloads for the CodyVerse API.

Wire fields are camelCase; models accept either the wire alias or the
Python field name, and keep any field they do not declare. Server
payloads vary between endpoints (integer or string ids, localized
difficulty labels, snake_case keys), so response fields are optional
and enum fields fall back to the raw string.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Type, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Id = Union[int, str]


class CamelModel(BaseModel):
    """Base model mapping snake_case fields to camelCase wire names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with wire aliases, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def enum_or_str(enum: Type[Enum]) -> Any:
    """Prefer the enum member, keep unknown labels as plain strings."""
    return Annotated[Union[enum, str], Field(union_mode="left_to_right")]


class AgeGroup(str, Enum):
    CHILD = "child"
    TEEN = "teen"
    ADULT = "adult"


class Theme(str, Enum):
    CHILD = "child"
    TEEN = "teen"
    ADULT = "adult"
    PROFESSIONAL = "professional"
    DARK = "dark"


class CourseDifficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class LessonType(str, Enum):
    VIDEO = "video"
    INTERACTIVE = "interactive"
    QUIZ = "quiz"
    CODING = "coding"


class LessonDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class BadgeRarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class AchievementType(str, Enum):
    COURSE = "course"
    STREAK = "streak"
    XP = "xp"
    TIME = "time"
    SOCIAL = "social"


class NotificationType(str, Enum):
    XP = "xp"
    BADGE = "badge"
    LEVEL = "level"
    STREAK = "streak"
    GOAL = "goal"
    ACHIEVEMENT = "achievement"


class User(CamelModel):
    """Platform user profile."""

    id: Id
    name: Optional[str] = None
    email: Optional[str] = None
    avatar: Optional[str] = None
    age: Optional[int] = None
    age_group: Optional[enum_or_str(AgeGroup)] = None
    theme: Optional[enum_or_str(Theme)] = None
    level: Optional[int] = None
    total_xp: Optional[int] = Field(default=None, validation_alias=AliasChoices("totalXp", "totalXP", "total_xp"))
    created_at: Optional[str] = None
    last_active: Optional[str] = None


class UserStats(CamelModel):
    """Aggregated progress counters for a user."""

    total_xp: Optional[int] = Field(default=None, validation_alias=AliasChoices("totalXp", "totalXP", "total_xp"))
    level: Optional[int] = None
    streak: Optional[int] = None
    completed_lessons: Optional[int] = None
    badges: Optional[int] = None
    coins: Optional[int] = None
    weekly_goal: Optional[int] = None
    weekly_progress: Optional[int] = None


class Course(CamelModel):
    """Course summary as listed in the catalogue."""

    id: Id
    title: str
    description: Optional[str] = None
    difficulty: Optional[enum_or_str(CourseDifficulty)] = None
    duration: Optional[Union[int, str]] = None
    lessons: Optional[int] = None
    lesson_count: Optional[int] = None
    completed_lessons: Optional[int] = None
    progress: Optional[float] = None
    thumbnail: Optional[str] = None
    category: Optional[str] = None
    rating: Optional[float] = None
    enrolled_users: Optional[int] = None
    total_xp: Optional[int] = None
    order_index: Optional[int] = None
    is_unlocked: Optional[bool] = None
    is_active: Optional[bool] = None
    estimated_time: Optional[str] = None


class Lesson(CamelModel):
    """A single lesson within a course."""

    id: Id
    course_id: Optional[Id] = None
    title: str
    description: Optional[str] = None
    duration: Optional[Union[int, str]] = None
    type: Optional[enum_or_str(LessonType)] = None
    difficulty: Optional[enum_or_str(LessonDifficulty)] = None
    xp_reward: Optional[int] = None
    is_completed: Optional[bool] = None
    is_unlocked: Optional[bool] = None
    order: Optional[int] = None
    prerequisites: Optional[List[Id]] = None


class Badge(CamelModel):
    id: Id
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None
    rarity: Optional[enum_or_str(BadgeRarity)] = None
    category: Optional[str] = None
    unlocked_at: Optional[str] = None
    progress: Optional[float] = None
    target: Optional[float] = None


class Achievement(CamelModel):
    id: Id
    title: str
    description: Optional[str] = None
    icon: Optional[str] = None
    type: Optional[enum_or_str(AchievementType)] = None
    points: Optional[int] = None
    unlocked_at: Optional[str] = None
    progress: Optional[float] = None
    target: Optional[float] = None
    is_completed: Optional[bool] = None


class Notification(CamelModel):
    id: Id
    type: Optional[enum_or_str(NotificationType)] = Field(
        default=None, validation_alias=AliasChoices("type", "notificationType", "notification_type")
    )
    title: Optional[str] = None
    message: Optional[str] = None
    icon: Optional[str] = None
    timestamp: Optional[str] = None
    created_at: Optional[str] = None
    is_read: Optional[bool] = None
    action_url: Optional[str] = None


class LeaderboardEntry(CamelModel):
    user_id: Id
    username: Optional[str] = None
    avatar: Optional[str] = None
    xp: Optional[int] = None
    level: Optional[int] = None
    rank: Optional[int] = None
    streak: Optional[int] = None


class GamificationData(CamelModel):
    """Everything the gamification dashboard renders for one user."""

    user: Optional[User] = None
    stats: Optional[UserStats] = None
    wallet: Optional[Dict[str, Any]] = None
    streak: Optional[Dict[str, Any]] = None
    goals: List[Dict[str, Any]] = Field(default_factory=list)
    badges: List[Badge] = Field(default_factory=list)
    achievements: List[Achievement] = Field(default_factory=list)
    notifications: List[Notification] = Field(default_factory=list)
    leaderboard: Optional[List[LeaderboardEntry]] = None


# Request bodies

class LessonProgressUpdate(CamelModel):
    """Body of ``PUT /users/{id}/lessons/{lessonId}/progress``."""

    progress: float = Field(ge=0, le=100)


class LessonCompletion(CamelModel):
    """Lesson data sent with a completion; unknown extra fields pass through."""

    lesson_id: Id
    time_spent: int = 15
    score: int = Field(default=100, ge=0, le=100)


class LessonCompletionRequest(LessonCompletion):
    """Body of ``POST /gamification/lesson-completion``."""

    user_id: Id


class LessonCompletionResult(CamelModel):
    """Rewards granted for a completed lesson."""

    xp_awarded: Optional[int] = None
    coins_awarded: Optional[int] = None
    new_badges: List[Badge] = Field(default_factory=list)
    streak_updated: bool = False


class LessonProgressResult(CamelModel):
    """Acknowledgement of a progress update."""

    lesson_id: Optional[Id] = None
    progress: Optional[float] = None


class CodyInteraction(CamelModel):
    """Body of ``POST /cody/interact``."""

    user_id: Id
    message: str
    interaction_type: str = "chat"
    context: Dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> Dict[str, Any]:
        # context is always sent, even when empty
        return self.model_dump(mode="json", by_alias=True)


class CodyReply(CamelModel):
    """Assistant reply."""

    response: str
    emotion: Optional[str] = None
    suggestions: List[str] = Field(default_factory=list)


class HealthStatus(BaseModel):
    """Free-form health payload; ``status`` when the server reports one."""

    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None
