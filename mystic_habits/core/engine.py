#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mystic Habits - Progress Engine
Переходы состояний привычек и задач, XP-леджер, стрики, прощение и автопауза

Версия: 1.0.0
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import logging

from mystic_habits.core.database import SnapshotStore
from mystic_habits.core.models import (
    Habit, Task, ProgressState, ValidationError, NotFoundError,
    HabitDifficulty, HabitFrequency, TaskPriority, Theme,
    STREAK_DECAY, GRACE_DAYS_RANGE, AUTO_PAUSE_RANGE,
    validate_text, validate_enum_value, validate_day, validate_repeat,
    level_for_xp, xp_for_level, clamp,
)
from mystic_habits.utils.datetime_utils import Clock

logger = logging.getLogger(__name__)

HABIT_EDITABLE_FIELDS = ("name", "frequency", "difficulty", "start", "paused")
TASK_EDITABLE_FIELDS = ("title", "due", "priority", "repeat")

HABIT_VIEWS = ("all", "today")
HABIT_SORTS = ("created", "streak", "name", "difficulty")
TASK_VIEWS = ("all", "today", "upcoming")
TASK_SORTS = ("created", "priority", "due", "name")

DIFFICULTY_RANK = {"hard": 3, "medium": 2, "easy": 1}
PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}


@dataclass
class SweepReport:
    """Итог ежедневной проверки пропусков"""
    day: str
    skipped: bool = False
    forgiven: List[str] = field(default_factory=list)
    decayed: List[str] = field(default_factory=list)
    paused: List[str] = field(default_factory=list)


class ProgressEngine:
    """
    Движок прогресса для одного пользователя

    Все операции синхронны, читают текущий день из clock и после
    успешной мутации сохраняют полный снимок состояния в store.
    """

    def __init__(self, state: ProgressState, clock: Clock,
                 store: Optional[SnapshotStore] = None,
                 storage_key: Optional[str] = None):
        self.state = state
        self.clock = clock
        self.store = store
        self.storage_key = storage_key

    # ===== PERSISTENCE =====

    def save(self) -> None:
        if self.store is None or not self.storage_key:
            return
        self.store.save_snapshot(self.storage_key, self.state.to_dict())

    @property
    def today(self) -> str:
        return self.clock.today()

    # ===== XP LEDGER =====

    @property
    def xp(self) -> int:
        return self.state.xp

    @property
    def level(self) -> int:
        return self.state.level

    def _add_xp(self, amount: int) -> None:
        old_level = self.state.level
        self.state.xp += amount
        if self.state.level > old_level:
            logger.info(f"🎉 Level up: {old_level} -> {self.state.level} (xp={self.state.xp})")

    def _remove_xp(self, amount: int) -> None:
        self.state.xp = max(0, self.state.xp - amount)

    def level_progress(self) -> Dict[str, int]:
        """XP и границы текущего уровня"""
        level = level_for_xp(self.state.xp)
        return {
            "xp": self.state.xp,
            "level": level,
            "level_floor_xp": xp_for_level(level),
            "next_level_xp": xp_for_level(level + 1),
        }

    # ===== LOOKUPS =====

    def get_habit(self, habit_id: str) -> Habit:
        for habit in self.state.habits:
            if habit.habit_id == habit_id:
                return habit
        raise NotFoundError(f"Habit {habit_id} not found")

    def get_task(self, task_id: str) -> Task:
        for task in self.state.tasks:
            if task.task_id == task_id:
                return task
        raise NotFoundError(f"Task {task_id} not found")

    # ===== HABITS =====

    def add_habit(self, name: str, frequency: str = HabitFrequency.DAILY.value,
                  difficulty: str = HabitDifficulty.EASY.value,
                  start: Optional[str] = None) -> Habit:
        """Создание привычки; ValidationError при пустом имени"""
        habit = Habit.create(
            name=name,
            start=start or self.today,
            frequency=frequency,
            difficulty=difficulty,
        )
        self.state.habits.append(habit)
        logger.info(f"Habit added: {habit.habit_id} '{habit.name}' ({habit.difficulty})")
        self.save()
        return habit

    def toggle_habit(self, habit_id: str, checked: bool) -> bool:
        """
        Отметка выполнения привычки за сегодня

        checked=True начисляет XP не более одного раза в день.
        checked=False отменяет только сегодняшнее выполнение.
        Возвращает True, если состояние изменилось.
        """
        try:
            habit = self.get_habit(habit_id)
        except NotFoundError as e:
            logger.warning(f"toggle_habit ignored: {e}")
            return False

        today = self.today
        changed = False

        if checked:
            if habit.last_completion_date != today:
                habit.history[today] = True
                habit.last_completion_date = today
                habit.streak += 1
                habit.misses_in_row = 0
                xp_gain = habit.xp_value
                self._add_xp(xp_gain)
                habit.xp_awarded_today = xp_gain
                self.state.logs.log_habit_completion(today)
                changed = True
                logger.info(f"Habit {habit_id} done on {today}: +{xp_gain} xp, streak={habit.streak}")
        else:
            if habit.last_completion_date == today:
                habit.history.pop(today, None)
                habit.last_completion_date = None
                habit.streak = max(habit.streak - 1, 0)
                if habit.xp_awarded_today > 0:
                    self._remove_xp(habit.xp_awarded_today)
                    logger.info(f"Habit {habit_id} undone on {today}: -{habit.xp_awarded_today} xp")
                    habit.xp_awarded_today = 0
                    self.state.logs.unlog_habit_completion(today)
                changed = True

        if changed:
            self.save()
        return changed

    def edit_habit(self, habit_id: str, **patch) -> bool:
        """Изменение метаданных привычки без затрагивания стрика и истории"""
        unknown = set(patch) - set(HABIT_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {sorted(unknown)}")

        try:
            habit = self.get_habit(habit_id)
        except NotFoundError as e:
            logger.warning(f"edit_habit ignored: {e}")
            return False

        # сначала валидируем всё, потом применяем
        updates: Dict[str, Any] = {}
        if "name" in patch:
            updates["name"] = validate_text(patch["name"], field_name="name")
        if "frequency" in patch:
            updates["frequency"] = validate_enum_value(patch["frequency"], HabitFrequency, "frequency")
        if "difficulty" in patch:
            updates["difficulty"] = validate_enum_value(patch["difficulty"], HabitDifficulty, "difficulty")
        if "start" in patch:
            updates["start"] = validate_day(patch["start"], "start", optional=False)
        if "paused" in patch:
            updates["paused"] = bool(patch["paused"])

        for key, value in updates.items():
            setattr(habit, key, value)

        logger.info(f"Habit {habit_id} edited: {sorted(updates)}")
        self.save()
        return True

    def pause_habit(self, habit_id: str) -> bool:
        return self.edit_habit(habit_id, paused=True)

    def resume_habit(self, habit_id: str) -> bool:
        return self.edit_habit(habit_id, paused=False)

    def delete_habit(self, habit_id: str) -> bool:
        """Удаление привычки; журналы не откатываются"""
        try:
            habit = self.get_habit(habit_id)
        except NotFoundError as e:
            logger.warning(f"delete_habit ignored: {e}")
            return False

        self.state.habits.remove(habit)
        logger.info(f"Habit deleted: {habit_id}")
        self.save()
        return True

    def run_forgiveness_sweep(self) -> SweepReport:
        """
        Ежедневная проверка пропусков

        Для каждой активной привычки без отметки сегодня и вчера:
        пропуск прощается в пределах grace_days, иначе стрик затухает
        (x0.7). При auto_pause_after > 0 и достаточной серии пропусков
        привычка ставится на паузу. Выполняется не более раза в день.
        """
        today = self.today
        report = SweepReport(day=today)

        if self.state.last_swept_day == today:
            report.skipped = True
            logger.debug(f"Forgiveness sweep already ran for {today}")
            return report

        yesterday = self.clock.yesterday()
        settings = self.state.settings

        for habit in self.state.habits:
            if habit.paused:
                continue
            if habit.is_done_on(today) or habit.is_done_on(yesterday):
                continue

            habit.misses_in_row += 1
            if habit.misses_in_row <= settings.grace_days:
                self.state.logs.forgiven_misses += 1
                report.forgiven.append(habit.habit_id)
            else:
                habit.streak = max(0, math.floor(habit.streak * STREAK_DECAY))
                report.decayed.append(habit.habit_id)

            if settings.auto_pause_after > 0 and habit.misses_in_row >= settings.auto_pause_after:
                habit.paused = True
                report.paused.append(habit.habit_id)
                logger.info(f"⏸ Habit {habit.habit_id} auto-paused after {habit.misses_in_row} misses")

        self.state.last_swept_day = today
        logger.info(
            f"Forgiveness sweep {today}: forgiven={len(report.forgiven)} "
            f"decayed={len(report.decayed)} paused={len(report.paused)}"
        )
        self.save()
        return report

    # ===== TASKS =====

    def add_task(self, title: str, due: Optional[str] = None,
                 repeat: Optional[List[str]] = None,
                 priority: Optional[str] = None) -> Task:
        """Создание задачи; увеличивает счётчик добавленных за сегодня"""
        today = self.today
        task = Task.create(
            title=title,
            created=today,
            due=due,
            repeat=repeat,
            priority=priority or TaskPriority.MEDIUM.value,
        )
        self.state.tasks.append(task)
        self.state.logs.log_task_added(today)
        logger.info(f"Task added: {task.task_id} '{task.title}' ({task.priority})")
        self.save()
        return task

    def toggle_task(self, task_id: str, checked: bool) -> bool:
        """
        Отметка задачи выполненной или невыполненной

        XP начисляется не более одного раза в день на задачу; откат XP
        и счётчика выполненных только для сегодняшнего выполнения.
        """
        try:
            task = self.get_task(task_id)
        except NotFoundError as e:
            logger.warning(f"toggle_task ignored: {e}")
            return False

        today = self.today
        changed = task.done != bool(checked)
        task.done = bool(checked)

        if checked:
            if task.last_completion_date != today:
                xp_gain = task.xp_value
                self._add_xp(xp_gain)
                task.last_completion_date = today
                task.xp_awarded_today = xp_gain
                self.state.logs.log_task_completed(today)
                changed = True
                logger.info(f"Task {task_id} done on {today}: +{xp_gain} xp")
        else:
            if task.last_completion_date == today:
                task.last_completion_date = None
                if task.xp_awarded_today > 0:
                    self._remove_xp(task.xp_awarded_today)
                    logger.info(f"Task {task_id} undone on {today}: -{task.xp_awarded_today} xp")
                    task.xp_awarded_today = 0
                    self.state.logs.unlog_task_completed(today)
                changed = True

        if changed:
            self.save()
        return changed

    def edit_task(self, task_id: str, **patch) -> bool:
        """Изменение заголовка, срока, приоритета и дней повтора"""
        unknown = set(patch) - set(TASK_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {sorted(unknown)}")

        try:
            task = self.get_task(task_id)
        except NotFoundError as e:
            logger.warning(f"edit_task ignored: {e}")
            return False

        updates: Dict[str, Any] = {}
        if "title" in patch:
            updates["title"] = validate_text(patch["title"], field_name="title")
        if "due" in patch:
            updates["due"] = validate_day(patch["due"], "due")
        if "priority" in patch:
            updates["priority"] = validate_enum_value(patch["priority"], TaskPriority, "priority")
        if "repeat" in patch:
            updates["repeat"] = validate_repeat(patch["repeat"])

        for key, value in updates.items():
            setattr(task, key, value)

        logger.info(f"Task {task_id} edited: {sorted(updates)}")
        self.save()
        return True

    def delete_task(self, task_id: str) -> bool:
        """Удаление задачи; журналы не откатываются"""
        try:
            task = self.get_task(task_id)
        except NotFoundError as e:
            logger.warning(f"delete_task ignored: {e}")
            return False

        self.state.tasks.remove(task)
        logger.info(f"Task deleted: {task_id}")
        self.save()
        return True

    # ===== SETTINGS =====

    def update_settings(self, grace_days: Optional[int] = None,
                        auto_pause_after: Optional[int] = None,
                        theme: Optional[str] = None) -> None:
        settings = self.state.settings
        updates: Dict[str, Any] = {}
        if grace_days is not None:
            updates["grace_days"] = clamp(_as_int(grace_days, "grace_days"), *GRACE_DAYS_RANGE)
        if auto_pause_after is not None:
            updates["auto_pause_after"] = clamp(_as_int(auto_pause_after, "auto_pause_after"), *AUTO_PAUSE_RANGE)
        if theme is not None:
            updates["theme"] = validate_enum_value(theme, Theme, "theme")

        for key, value in updates.items():
            setattr(settings, key, value)

        logger.info(f"Settings updated: {updates}")
        self.save()

    # ===== QUERIES =====

    def list_habits(self, view: str = "all", sort: str = "created") -> List[Habit]:
        if view not in HABIT_VIEWS:
            raise ValidationError(f"view must be one of: {list(HABIT_VIEWS)}")
        if sort not in HABIT_SORTS:
            raise ValidationError(f"sort must be one of: {list(HABIT_SORTS)}")

        habits = list(self.state.habits)
        if view == "today":
            habits = [h for h in habits if not h.paused]

        if sort == "streak":
            habits.sort(key=lambda h: -h.streak)
        elif sort == "name":
            habits.sort(key=lambda h: h.name.casefold())
        elif sort == "difficulty":
            habits.sort(key=lambda h: -DIFFICULTY_RANK.get(h.difficulty, 0))
        return habits

    def list_tasks(self, view: str = "all", sort: str = "created") -> List[Task]:
        if view not in TASK_VIEWS:
            raise ValidationError(f"view must be one of: {list(TASK_VIEWS)}")
        if sort not in TASK_SORTS:
            raise ValidationError(f"sort must be one of: {list(TASK_SORTS)}")

        today = self.today
        tasks = list(self.state.tasks)
        if view == "today":
            tasks = [t for t in tasks if t.due is None or t.due == today]
        elif view == "upcoming":
            tasks = [t for t in tasks if t.due is not None and t.due >= today]

        if sort == "priority":
            tasks.sort(key=lambda t: -PRIORITY_RANK.get(t.priority, 0))
        elif sort == "due":
            tasks.sort(key=lambda t: t.due or "")
        elif sort == "name":
            tasks.sort(key=lambda t: t.title.casefold())
        return tasks

    # ===== SERIES FOR CHARTS =====

    def habit_series(self, days: List[str]) -> List[int]:
        daily = self.state.logs.habit_daily
        return [daily.get(d, 0) for d in days]

    def task_series(self, days: List[str]) -> Tuple[List[int], List[int]]:
        """(выполнено, добавлено) по дням"""
        logs = self.state.logs
        completed = [logs.task_completed.get(d, 0) for d in days]
        added = [logs.task_added.get(d, 0) for d in days]
        return completed, added

    def streak_trend(self, days: List[str]) -> List[int]:
        best = self.state.best_streak
        return [best for _ in days]


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
