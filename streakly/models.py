"""
Models - Record types for Streakly

Tasks, habits, statistics bundles and daily challenges as validated
dataclasses. Records are built from the loosely-typed dicts the REST layer
and the database hand around (``from_dict``) and turned back into
JSON-friendly dicts (``to_dict``).

Both snake_case and the camelCase keys used by the web client are accepted
when building records.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

PRIORITIES = ("low", "medium", "high")
FREQUENCIES = ("daily", "weekly")
RARITIES = ("common", "rare", "epic", "legendary")
CHALLENGE_TYPES = ("tasks", "habits", "productivity")
ACHIEVEMENT_CATEGORIES = ("tasks", "habits", "streaks", "consistency", "productivity")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO timestamp (or pass a datetime through).

    Args:
        value: datetime, ISO 8601 string, or None

    Returns:
        datetime or None for empty values

    Raises:
        ValueError: If the string is not a valid ISO timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        # fromisoformat() only accepts a trailing "Z" on newer interpreters
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        return datetime.fromisoformat(value)
    raise ValueError(f"Invalid timestamp: {value!r}")


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in data (snake_case or camelCase)."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def _require_text(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{name} must be a non-empty string")


def _optional_text(name: str, value: Any) -> None:
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{name} must be a string, got {value!r}")


def _flag(name: str, value: Any) -> bool:
    """Accept real booleans (or the 0/1 SQLite stores) for a flag field."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueError(f"{name} must be true or false, got {value!r}")


def _require_choice(name: str, value: str, choices) -> None:
    if value not in choices:
        raise ValueError(f"Invalid {name}: {value!r} (expected one of {', '.join(choices)})")


@dataclass(frozen=True)
class Task:
    """A unit of work owned by one user."""

    id: str
    text: str
    completed: bool = False
    priority: str = "medium"
    category: Optional[str] = None
    created_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        _require_text("Task text", self.text)
        _optional_text("category", self.category)
        _require_choice("priority", self.priority, PRIORITIES)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Task":
        return cls(
            id=str(data.get("id", "")),
            text=data.get("text") or "",
            completed=_flag("completed", data.get("completed")),
            priority=data.get("priority") or "medium",
            category=data.get("category"),
            created_at=parse_timestamp(_pick(data, "created_at", "createdAt")),
            due_date=parse_timestamp(_pick(data, "due_date", "dueDate")),
            completed_at=parse_timestamp(_pick(data, "completed_at", "completedAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "priority": self.priority,
            "category": self.category,
            "created_at": format_timestamp(self.created_at),
            "due_date": format_timestamp(self.due_date),
            "completed_at": format_timestamp(self.completed_at),
        }


@dataclass(frozen=True)
class Habit:
    """
    A recurring behavior being tracked.

    ``streak`` counts consecutive completions. ``completed_today`` is cleared
    at day boundaries by the host (see streaks.reset_for_new_day).
    """

    id: str
    name: str
    streak: int = 0
    completed_today: bool = False
    target_frequency: str = "daily"
    category: Optional[str] = None
    last_completed: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        _require_text("Habit name", self.name)
        _optional_text("category", self.category)
        if self.streak < 0:
            raise ValueError(f"Habit streak must be non-negative, got {self.streak}")
        _require_choice("target frequency", self.target_frequency, FREQUENCIES)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Habit":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            streak=int(data.get("streak") or 0),
            completed_today=_flag("completed_today", _pick(data, "completed_today", "completedToday")),
            target_frequency=_pick(data, "target_frequency", "targetFrequency") or "daily",
            category=data.get("category"),
            last_completed=parse_timestamp(_pick(data, "last_completed", "lastCompleted")),
            created_at=parse_timestamp(_pick(data, "created_at", "createdAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "streak": self.streak,
            "completed_today": self.completed_today,
            "target_frequency": self.target_frequency,
            "category": self.category,
            "last_completed": format_timestamp(self.last_completed),
            "created_at": format_timestamp(self.created_at),
        }


@dataclass(frozen=True)
class StatisticsBundle:
    """
    Derived aggregate view of a user's tasks and habits.

    Never stored as such; rebuilt on every evaluation pass from the current
    snapshots plus the persisted point total and perfect-day count.
    """

    completed_tasks: int = 0
    total_tasks: int = 0
    completion_rate: float = 0.0
    max_streak: int = 0
    total_habits: int = 0
    habits_completed_today: int = 0
    all_habits_completed: bool = False
    perfect_days: int = 0
    total_points: int = 0

    def get(self, name: str, default: Any = 0) -> Any:
        return getattr(self, name, default)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StatisticsBundle":
        """Build a bundle, defaulting any missing or null field."""
        values = {}
        for f in fields(cls):
            value = data.get(f.name)
            if value is None:
                continue
            if f.name == "all_habits_completed":
                values[f.name] = bool(value)
            elif f.name == "completion_rate":
                values[f.name] = float(value)
            else:
                values[f.name] = int(value)
        return cls(**values)


@dataclass
class DailyChallenge:
    """
    A single-day challenge.

    Lifecycle: active (progress < target) -> completed (progress reached
    target) -> claimed (reward credited). ``completed`` and ``claimed`` never
    revert for a given instance.
    """

    id: str
    title: str
    description: str
    type: str
    target: float
    points: int
    expires_at: datetime
    progress: float = 0
    completed: bool = False
    claimed: bool = False

    def __post_init__(self):
        _require_choice("challenge type", self.type, CHALLENGE_TYPES)
        if self.points < 0:
            raise ValueError(f"Challenge points must be non-negative, got {self.points}")

    @property
    def state(self) -> str:
        if self.claimed:
            return "claimed"
        if self.completed:
            return "completed"
        return "active"

    def copy(self, **changes) -> "DailyChallenge":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DailyChallenge":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            description=data.get("description", ""),
            type=data["type"],
            target=data["target"],
            points=int(data.get("points", 0)),
            expires_at=parse_timestamp(_pick(data, "expires_at", "expiresAt")),
            progress=data.get("progress", 0) or 0,
            completed=bool(data.get("completed", False)),
            claimed=bool(data.get("claimed", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "target": self.target,
            "progress": round(self.progress, 1),
            "points": self.points,
            "expires_at": format_timestamp(self.expires_at),
            "completed": self.completed,
            "claimed": self.claimed,
            "state": self.state,
        }


@dataclass(frozen=True)
class Profile:
    """Display details a user keeps about themselves. Not an account or a login."""

    user_id: str
    username: str
    email: Optional[str] = None
    date_of_birth: Optional[str] = None
    mobile_number: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        _require_text("username", self.username)
        for name in ("email", "date_of_birth", "mobile_number"):
            _optional_text(name, getattr(self, name))
        if self.email and "@" not in self.email:
            raise ValueError(f"Invalid email: {self.email!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Profile":
        return cls(
            user_id=str(_pick(data, "user_id", "userId", default="")),
            username=data.get("username") or "",
            email=data.get("email") or None,
            date_of_birth=_pick(data, "date_of_birth", "dateOfBirth") or None,
            mobile_number=_pick(data, "mobile_number", "mobileNumber") or None,
            created_at=parse_timestamp(_pick(data, "created_at", "createdAt")),
            updated_at=parse_timestamp(_pick(data, "updated_at", "updatedAt")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "email": self.email,
            "date_of_birth": self.date_of_birth,
            "mobile_number": self.mobile_number,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
        }


@dataclass(frozen=True)
class Activity:
    """An entry in the user's activity feed."""

    type: str
    message: str
    icon: str

    def __post_init__(self):
        _require_text("Activity type", self.type)
        _require_text("Activity message", self.message)
        _require_text("Activity icon", self.icon)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Activity":
        return cls(type=data.get("type"), message=data.get("message"), icon=data.get("icon"))


__all__ = [
    "PRIORITIES",
    "FREQUENCIES",
    "RARITIES",
    "CHALLENGE_TYPES",
    "ACHIEVEMENT_CATEGORIES",
    "Task",
    "Habit",
    "StatisticsBundle",
    "DailyChallenge",
    "Profile",
    "Activity",
    "parse_timestamp",
    "format_timestamp",
]
