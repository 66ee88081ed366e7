#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mystic Habits - Session
Вход по имени и PIN, «запомнить меня», выход, сброс и демо-данные

Версия: 1.0.0
"""

import hashlib
import random
from typing import List, Optional

import logging

from mystic_habits.config import AppSettings, get_settings
from mystic_habits.core.database import SnapshotStore
from mystic_habits.core.engine import ProgressEngine, SweepReport
from mystic_habits.core.models import (
    AuthError, Habit, ProgressSettings, ProgressState, Task, UserProfile,
    ValidationError, validate_text, new_id,
)
from mystic_habits.utils.datetime_utils import Clock

logger = logging.getLogger(__name__)

PIN_LENGTH = 4

DEMO_USERNAME = "demo"
DEMO_PIN = "0000"


def hash_pin(pin: str) -> str:
    """SHA-256 от PIN в hex"""
    return hashlib.sha256(pin.encode("utf-8")).hexdigest()


def validate_pin(pin: str) -> str:
    if not isinstance(pin, str):
        raise ValidationError("PIN must be a string")
    pin = pin.strip()
    if len(pin) != PIN_LENGTH or not pin.isdigit():
        raise ValidationError(f"PIN must be {PIN_LENGTH} digits")
    return pin


class Session:
    """Сессия активного пользователя; владеет состоянием и движком"""

    def __init__(self, store: SnapshotStore, clock: Clock,
                 settings: Optional[AppSettings] = None):
        self.store = store
        self.clock = clock
        self.settings = settings or get_settings()
        self.engine: Optional[ProgressEngine] = None
        self.last_sweep: Optional[SweepReport] = None

    # ===== PROPERTIES =====

    @property
    def is_active(self) -> bool:
        return self.engine is not None

    @property
    def username(self) -> Optional[str]:
        if self.engine is None or self.engine.state.user is None:
            return None
        return self.engine.state.user.username

    def require_engine(self) -> ProgressEngine:
        if self.engine is None:
            raise AuthError("No user is logged in")
        return self.engine

    def known_users(self) -> List[str]:
        prefix = self.settings.STORAGE_PREFIX
        return [k[len(prefix):] for k in self.store.keys() if k.startswith(prefix)]

    # ===== SNAPSHOTS =====

    def _load_state(self, username: str) -> Optional[ProgressState]:
        data = self.store.load_snapshot(self.settings.storage_key(username))
        if data is None:
            return None
        try:
            return ProgressState.from_dict(data)
        except ValidationError as e:
            logger.error(f"Snapshot for {username} is unreadable, starting fresh: {e}")
            return None

    def _default_settings(self) -> ProgressSettings:
        return ProgressSettings(
            grace_days=self.settings.DEFAULT_GRACE_DAYS,
            auto_pause_after=self.settings.DEFAULT_AUTO_PAUSE_AFTER,
        )

    def _enter(self, state: ProgressState) -> ProgressEngine:
        self.engine = ProgressEngine(
            state=state,
            clock=self.clock,
            store=self.store,
            storage_key=self.settings.storage_key(state.user.username),
        )
        self.last_sweep = self.engine.run_forgiveness_sweep()
        logger.info(f"✅ Session started for {state.user.username} (level {state.level}, xp {state.xp})")
        return self.engine

    # ===== AUTH =====

    def login(self, username: str, pin: str, remember: bool = False) -> ProgressEngine:
        """Вход или регистрация; AuthError при неверном PIN"""
        username = validate_text(username, max_length=64, field_name="username")
        hashed = hash_pin(validate_pin(pin))

        state = self._load_state(username)
        if state is not None and state.user is not None:
            if state.user.pin_hash != hashed:
                logger.warning(f"Incorrect PIN for {username}")
                raise AuthError("Incorrect PIN")
            state.user.remember = bool(remember)
        else:
            logger.info(f"Creating new profile for {username}")
            state = ProgressState.fresh(
                user=UserProfile(username=username, pin_hash=hashed, remember=bool(remember)),
                settings=self._default_settings(),
            )

        self.store.save_snapshot(self.settings.storage_key(username), state.to_dict())
        if remember:
            self.store.set_value(self.settings.LAST_USER_KEY, username)

        return self._enter(state)

    def resume_remembered(self) -> Optional[ProgressEngine]:
        """Автовход запомненного пользователя"""
        last_user = self.store.get_value(self.settings.LAST_USER_KEY)
        if not isinstance(last_user, str) or not last_user:
            return None

        state = self._load_state(last_user)
        if state is None or state.user is None or not state.user.remember:
            return None

        logger.info(f"Resuming remembered user {last_user}")
        return self._enter(state)

    def _forget_if_last(self, username: Optional[str]) -> None:
        if username and self.store.get_value(self.settings.LAST_USER_KEY) == username:
            self.store.remove_value(self.settings.LAST_USER_KEY)

    def forget_remembered(self) -> Optional[str]:
        """Забыть запомненного пользователя без входа в сессию"""
        last_user = self.store.get_value(self.settings.LAST_USER_KEY)
        if last_user is not None:
            self.store.remove_value(self.settings.LAST_USER_KEY)
            logger.info(f"Forgot remembered user {last_user}")
        return last_user if isinstance(last_user, str) else None

    def logout(self) -> None:
        username = self.username
        self._forget_if_last(username)
        self.engine = None
        self.last_sweep = None
        logger.info(f"Logged out {username}")

    def reset_all(self) -> None:
        """Удалить все данные текущего пользователя"""
        username = self.username
        if username is None:
            return
        self.store.delete_snapshot(self.settings.storage_key(username))
        self._forget_if_last(username)
        self.engine = None
        self.last_sweep = None
        logger.warning(f"All data removed for {username}")

    # ===== DEMO =====

    def seed_demo(self, seed: Optional[int] = None) -> ProgressEngine:
        """Демо-профиль с привычками, задачами и журналом за 12 дней"""
        rng = random.Random(seed)
        today = self.clock.today()

        habits = [
            Habit(habit_id=new_id(), name="Morning stretch", start=today, difficulty="easy",
                  streak=3, history={today: True}, last_completion_date=today, xp_awarded_today=8),
            Habit(habit_id=new_id(), name="Code for 60 min", start=today, difficulty="hard",
                  streak=7, misses_in_row=1),
            Habit(habit_id=new_id(), name="Read 10 pages", start=today, difficulty="medium",
                  streak=5, misses_in_row=2),
        ]
        tasks = [
            Task(task_id=new_id(), title="Ship UI polish", created=today, due=today,
                 repeat=["mon", "wed", "fri"], priority="high"),
            Task(task_id=new_id(), title="Email testers", created=today, priority="medium"),
            Task(task_id=new_id(), title="Refactor storage", created=today, due=today, priority="low",
                 done=True, last_completion_date=today, xp_awarded_today=6),
        ]

        state = ProgressState.fresh(
            user=UserProfile(username=DEMO_USERNAME, pin_hash=hash_pin(DEMO_PIN), remember=True),
            settings=self._default_settings(),
        )
        state.habits = habits
        state.tasks = tasks
        for i in range(12):
            day = self.clock.days_ago(i)
            state.logs.habit_daily[day] = rng.randint(0, 3)
            state.logs.task_added[day] = rng.randint(0, 2)
            state.logs.task_completed[day] = rng.randint(0, 2)
        state.xp = 120
        # демо уже "прошло" проверку за сегодня
        state.last_swept_day = today

        self.store.save_snapshot(self.settings.storage_key(DEMO_USERNAME), state.to_dict())
        self.store.set_value(self.settings.LAST_USER_KEY, DEMO_USERNAME)
        logger.info("Demo profile seeded")
        return self._enter(state)
