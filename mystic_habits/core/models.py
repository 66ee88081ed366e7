#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mystic Habits - Core Data Models
Модели привычек, задач, журналов активности и состояния пользователя

Версия: 1.0.0
"""

import math
import uuid
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional

import logging

from mystic_habits.utils.datetime_utils import is_valid_day

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class HabitDifficulty(Enum):
    """Сложность привычки"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

class HabitFrequency(Enum):
    """Периодичность (только информативно)"""
    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"

class TaskPriority(Enum):
    """Приоритеты задач"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class Weekday(Enum):
    """Дни повтора задачи"""
    MON = "mon"
    TUE = "tue"
    WED = "wed"
    THU = "thu"
    FRI = "fri"
    SAT = "sat"
    SUN = "sun"

class Theme(Enum):
    """Темы оформления"""
    CYBER = "cyber"
    MIDNIGHT = "midnight"
    SUNSET = "sunset"

# ===== EXCEPTIONS =====

class MysticError(Exception):
    """Базовое исключение приложения"""
    pass

class ValidationError(MysticError):
    """Ошибка валидации данных"""
    pass

class NotFoundError(MysticError):
    """Привычка или задача не найдена"""
    pass

class AuthError(MysticError):
    """Ошибка входа"""
    pass

# ===== XP & LEVELS =====

HABIT_XP = {
    HabitDifficulty.HARD.value: 18,
    HabitDifficulty.MEDIUM.value: 12,
    HabitDifficulty.EASY.value: 8,
}

TASK_XP = {
    TaskPriority.HIGH.value: 16,
    TaskPriority.MEDIUM.value: 10,
    TaskPriority.LOW.value: 6,
}

LEVEL_EXPONENT = 0.6

STREAK_DECAY = 0.7

GRACE_DAYS_RANGE = (0, 3)
AUTO_PAUSE_RANGE = (0, 7)


def xp_for_difficulty(difficulty: str) -> int:
    return HABIT_XP.get(difficulty, HABIT_XP[HabitDifficulty.EASY.value])


def xp_for_priority(priority: str) -> int:
    return TASK_XP.get(priority, TASK_XP[TaskPriority.LOW.value])


def level_for_xp(xp: int) -> int:
    """Уровень как функция XP: max(1, floor(1 + (xp/100)^0.6))"""
    return max(1, math.floor(1 + math.pow(max(0, xp) / 100, LEVEL_EXPONENT)))


def xp_for_level(level: int) -> int:
    """Минимальный XP, при котором достигается уровень"""
    if level <= 1:
        return 0
    xp = math.ceil(100 * math.pow(level - 1, 1 / LEVEL_EXPONENT))
    # поправка на погрешность float у границы
    while level_for_xp(xp) < level:
        xp += 1
    while xp > 0 and level_for_xp(xp - 1) >= level:
        xp -= 1
    return xp


def clamp(value: int, low: int, high: int) -> int:
    return min(high, max(low, value))

# ===== VALIDATION HELPERS =====

def validate_text(text: str, min_length: int = 1, max_length: int = 200, field_name: str = "text") -> str:
    """Валидация текстовых полей"""
    if not isinstance(text, str):
        raise ValidationError(f"{field_name} must be a string")

    text = text.strip()
    if len(text) < min_length:
        raise ValidationError(f"{field_name} must not be empty")

    if len(text) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")

    return text

def validate_enum_value(value: str, enum_class: type, field_name: str = "value") -> str:
    """Валидация значений enum"""
    try:
        enum_class(value)
        return value
    except ValueError:
        valid_values = [e.value for e in enum_class]
        raise ValidationError(f"{field_name} must be one of: {valid_values}")

def validate_day(value: Optional[str], field_name: str = "day", optional: bool = True) -> Optional[str]:
    if value is None or value == "":
        if optional:
            return None
        raise ValidationError(f"{field_name} is required")
    if not is_valid_day(value):
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD date, got {value!r}")
    return value

def new_id() -> str:
    return str(uuid.uuid4())

# ===== CORE MODELS =====

@dataclass
class Habit:
    """Привычка со стриком, прощением пропусков и паузой"""
    habit_id: str
    name: str
    start: str
    frequency: str = HabitFrequency.DAILY.value
    difficulty: str = HabitDifficulty.EASY.value
    streak: int = 0
    paused: bool = False
    history: Dict[str, bool] = field(default_factory=dict)
    misses_in_row: int = 0
    last_completion_date: Optional[str] = None
    xp_awarded_today: int = 0

    def __post_init__(self):
        self.name = validate_text(self.name, field_name="name")
        self.frequency = validate_enum_value(self.frequency, HabitFrequency, "frequency")
        self.difficulty = validate_enum_value(self.difficulty, HabitDifficulty, "difficulty")
        self.start = validate_day(self.start, "start", optional=False)
        self.streak = max(0, int(self.streak))
        self.misses_in_row = max(0, int(self.misses_in_row))
        self.xp_awarded_today = max(0, int(self.xp_awarded_today))
        self.history = {day: True for day, done in self.history.items() if done}

    @property
    def xp_value(self) -> int:
        """XP за выполнение"""
        return xp_for_difficulty(self.difficulty)

    def is_done_on(self, day: str) -> bool:
        return bool(self.history.get(day))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Habit":
        try:
            return cls(
                habit_id=data["habit_id"],
                name=data["name"],
                start=data["start"],
                frequency=data.get("frequency", HabitFrequency.DAILY.value),
                difficulty=data.get("difficulty", HabitDifficulty.EASY.value),
                streak=data.get("streak", 0),
                paused=bool(data.get("paused", False)),
                history=dict(data.get("history") or {}),
                misses_in_row=data.get("misses_in_row", 0),
                last_completion_date=data.get("last_completion_date"),
                xp_awarded_today=data.get("xp_awarded_today", 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Failed to load habit: {e}")

    @classmethod
    def create(cls, name: str, start: str, frequency: str = HabitFrequency.DAILY.value,
               difficulty: str = HabitDifficulty.EASY.value) -> "Habit":
        """Создание новой привычки"""
        return cls(
            habit_id=new_id(),
            name=name,
            start=start,
            frequency=frequency,
            difficulty=difficulty,
        )

@dataclass
class Task:
    """Разовая задача с приоритетом и сроком"""
    task_id: str
    title: str
    created: str
    due: Optional[str] = None
    repeat: List[str] = field(default_factory=list)
    priority: str = TaskPriority.MEDIUM.value
    done: bool = False
    last_completion_date: Optional[str] = None
    xp_awarded_today: int = 0

    def __post_init__(self):
        self.title = validate_text(self.title, field_name="title")
        self.priority = validate_enum_value(self.priority, TaskPriority, "priority")
        self.created = validate_day(self.created, "created", optional=False)
        self.due = validate_day(self.due, "due")
        self.repeat = validate_repeat(self.repeat)
        self.xp_awarded_today = max(0, int(self.xp_awarded_today))

    @property
    def xp_value(self) -> int:
        """XP за выполнение"""
        return xp_for_priority(self.priority)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        try:
            return cls(
                task_id=data["task_id"],
                title=data["title"],
                created=data["created"],
                due=data.get("due"),
                repeat=list(data.get("repeat") or []),
                priority=data.get("priority", TaskPriority.MEDIUM.value),
                done=bool(data.get("done", False)),
                last_completion_date=data.get("last_completion_date"),
                xp_awarded_today=data.get("xp_awarded_today", 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Failed to load task: {e}")

    @classmethod
    def create(cls, title: str, created: str, due: Optional[str] = None,
               repeat: Optional[List[str]] = None,
               priority: str = TaskPriority.MEDIUM.value) -> "Task":
        """Создание новой задачи"""
        return cls(
            task_id=new_id(),
            title=title,
            created=created,
            due=due,
            repeat=repeat or [],
            priority=priority,
        )

def validate_repeat(days: Optional[List[str]]) -> List[str]:
    """Дни повтора без дублей, в порядке недели"""
    if not days:
        return []
    if isinstance(days, str):
        raise ValidationError("repeat must be a list of weekdays")
    values = {validate_enum_value(d, Weekday, "repeat") for d in days}
    return [w.value for w in Weekday if w.value in values]

@dataclass
class DailyLogs:
    """Разреженные счётчики событий по дням"""
    habit_daily: Dict[str, int] = field(default_factory=dict)
    task_added: Dict[str, int] = field(default_factory=dict)
    task_completed: Dict[str, int] = field(default_factory=dict)
    forgiven_misses: int = 0

    @staticmethod
    def _bump(counter: Dict[str, int], day: str, delta: int) -> int:
        value = max(0, counter.get(day, 0) + delta)
        counter[day] = value
        return value

    def log_habit_completion(self, day: str) -> int:
        return self._bump(self.habit_daily, day, 1)

    def unlog_habit_completion(self, day: str) -> int:
        return self._bump(self.habit_daily, day, -1)

    def log_task_added(self, day: str) -> int:
        return self._bump(self.task_added, day, 1)

    def log_task_completed(self, day: str) -> int:
        return self._bump(self.task_completed, day, 1)

    def unlog_task_completed(self, day: str) -> int:
        return self._bump(self.task_completed, day, -1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "habit_daily": dict(self.habit_daily),
            "task_daily": {
                "added": dict(self.task_added),
                "completed": dict(self.task_completed),
            },
            "forgiven_misses": self.forgiven_misses,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DailyLogs":
        data = data or {}
        task_daily = data.get("task_daily") or {}
        return cls(
            habit_daily={k: int(v) for k, v in (data.get("habit_daily") or {}).items()},
            task_added={k: int(v) for k, v in (task_daily.get("added") or {}).items()},
            task_completed={k: int(v) for k, v in (task_daily.get("completed") or {}).items()},
            forgiven_misses=max(0, int(data.get("forgiven_misses", 0))),
        )

@dataclass
class ProgressSettings:
    """Настройки прощения пропусков и автопаузы"""
    grace_days: int = 1
    auto_pause_after: int = 3
    theme: str = Theme.CYBER.value

    def __post_init__(self):
        try:
            self.grace_days = clamp(int(self.grace_days), *GRACE_DAYS_RANGE)
        except (TypeError, ValueError):
            self.grace_days = 1
        try:
            self.auto_pause_after = clamp(int(self.auto_pause_after), *AUTO_PAUSE_RANGE)
        except (TypeError, ValueError):
            self.auto_pause_after = 3
        try:
            Theme(self.theme)
        except ValueError:
            self.theme = Theme.CYBER.value

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ProgressSettings":
        data = data or {}
        return cls(
            grace_days=data.get("grace_days", 1),
            auto_pause_after=data.get("auto_pause_after", 3),
            theme=data.get("theme", Theme.CYBER.value),
        )

@dataclass
class UserProfile:
    """Учётная запись на устройстве"""
    username: str
    pin_hash: str
    remember: bool = False

    def __post_init__(self):
        self.username = validate_text(self.username, max_length=64, field_name="username")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        return cls(
            username=data["username"],
            pin_hash=data.get("pin_hash", ""),
            remember=bool(data.get("remember", False)),
        )

@dataclass
class ProgressState:
    """Полное состояние пользователя; сохраняется снимком целиком"""
    user: Optional[UserProfile] = None
    settings: ProgressSettings = field(default_factory=ProgressSettings)
    habits: List[Habit] = field(default_factory=list)
    tasks: List[Task] = field(default_factory=list)
    logs: DailyLogs = field(default_factory=DailyLogs)
    xp: int = 0
    last_swept_day: Optional[str] = None

    def __post_init__(self):
        self.xp = max(0, int(self.xp))

    @property
    def level(self) -> int:
        """Уровень всегда вычисляется из XP"""
        return level_for_xp(self.xp)

    @property
    def best_streak(self) -> int:
        return max((h.streak for h in self.habits), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user": self.user.to_dict() if self.user else None,
            "settings": self.settings.to_dict(),
            "habits": [h.to_dict() for h in self.habits],
            "tasks": [t.to_dict() for t in self.tasks],
            "logs": self.logs.to_dict(),
            "xp": self.xp,
            "level": self.level,
            "last_swept_day": self.last_swept_day,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressState":
        """Десериализация снимка; сохранённый level игнорируется"""
        try:
            user_data = data.get("user")
            return cls(
                user=UserProfile.from_dict(user_data) if user_data else None,
                settings=ProgressSettings.from_dict(data.get("settings")),
                habits=[Habit.from_dict(h) for h in data.get("habits") or []],
                tasks=[Task.from_dict(t) for t in data.get("tasks") or []],
                logs=DailyLogs.from_dict(data.get("logs")),
                xp=data.get("xp", 0),
                last_swept_day=data.get("last_swept_day"),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Snapshot deserialization failed: {e}")
            raise ValidationError(f"Failed to load snapshot: {e}")

    @classmethod
    def fresh(cls, user: Optional[UserProfile] = None,
              settings: Optional[ProgressSettings] = None) -> "ProgressState":
        return cls(user=user, settings=settings or ProgressSettings())
