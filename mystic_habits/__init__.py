#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mystic Habits
Трекер привычек и задач с XP, уровнями, прощением пропусков и графиками

Версия: 1.0.0
"""

__version__ = "1.0.0"

from .core.models import (
    HabitDifficulty,
    HabitFrequency,
    TaskPriority,
    Weekday,
    Theme,
    MysticError,
    ValidationError,
    NotFoundError,
    AuthError,
    Habit,
    Task,
    DailyLogs,
    ProgressSettings,
    UserProfile,
    ProgressState,
    level_for_xp,
)

from .core.database import (
    DatabaseError,
    SnapshotStore,
    MemoryStore,
    JsonFileStore
)

from .core.engine import (
    ProgressEngine,
    SweepReport
)

from .core.session import Session

from .utils.datetime_utils import (
    Clock,
    SystemClock,
    FixedClock
)

__all__ = [
    '__version__',

    # Enums
    'HabitDifficulty',
    'HabitFrequency',
    'TaskPriority',
    'Weekday',
    'Theme',

    # Errors
    'MysticError',
    'ValidationError',
    'NotFoundError',
    'AuthError',
    'DatabaseError',

    # Models
    'Habit',
    'Task',
    'DailyLogs',
    'ProgressSettings',
    'UserProfile',
    'ProgressState',
    'level_for_xp',

    # Storage
    'SnapshotStore',
    'MemoryStore',
    'JsonFileStore',

    # Engine
    'ProgressEngine',
    'SweepReport',
    'Session',

    # Clock
    'Clock',
    'SystemClock',
    'FixedClock'
]
