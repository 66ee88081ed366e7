#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mystic Habits - Command Line Interface
Использование: mystic-habits [--user NAME --pin 1234 [--remember]] <команда> ...

Версия: 1.0.0
"""

import argparse
import getpass
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from mystic_habits import __version__
from mystic_habits.config import AppSettings, get_settings
from mystic_habits.core.database import DatabaseError, JsonFileStore
from mystic_habits.core.engine import (
    HABIT_SORTS, HABIT_VIEWS, TASK_SORTS, TASK_VIEWS, ProgressEngine, SweepReport,
)
from mystic_habits.core.models import (
    AuthError, HabitDifficulty, HabitFrequency, MysticError, TaskPriority, Theme,
)
from mystic_habits.core.session import DEMO_PIN, Session
from mystic_habits.services.stats_service import StatsService
from mystic_habits.utils.datetime_utils import SystemClock
from mystic_habits.utils.logger import configure_logging, setup_logger

logger = logging.getLogger(__name__)

SHORT_ID = 8


def _choices(enum_class) -> List[str]:
    return [e.value for e in enum_class]


def _split_days(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [d.strip().lower() for d in value.split(",") if d.strip()]


def resolve_id(item_ids: Sequence[str], ref: str) -> str:
    """Полный ID по уникальному префиксу; иначе ref как есть"""
    if ref in item_ids:
        return ref
    matches = [i for i in item_ids if i.startswith(ref)]
    return matches[0] if len(matches) == 1 else ref


class MysticCLI:
    """Команды поверх Session и ProgressEngine"""

    def __init__(self, settings: AppSettings, out=None):
        self.settings = settings
        self.out = out or sys.stdout
        self.session = Session(
            store=JsonFileStore(settings.DATA_DIR),
            clock=SystemClock(settings.TIMEZONE),
            settings=settings,
        )

    def echo(self, text: str = "") -> None:
        print(text, file=self.out)

    # ===== ВХОД =====

    def enter(self, args) -> ProgressEngine:
        if args.user:
            pin = args.pin if args.pin is not None else getpass.getpass("PIN: ")
            engine = self.session.login(args.user, pin, remember=args.remember)
        else:
            engine = self.session.resume_remembered()
            if engine is None:
                raise AuthError("No remembered user; log in with --user and --pin")
        self.report_sweep(self.session.last_sweep)
        return engine

    def report_sweep(self, report: Optional[SweepReport]) -> None:
        if report is None or report.skipped:
            return
        if report.forgiven or report.decayed or report.paused:
            self.echo(
                f"🕯 Daily check {report.day}: forgiven {len(report.forgiven)}, "
                f"decayed {len(report.decayed)}, paused {len(report.paused)}"
            )

    # ===== ПРИВЫЧКИ =====

    def cmd_add_habit(self, engine: ProgressEngine, args) -> int:
        habit = engine.add_habit(args.name, frequency=args.frequency,
                                 difficulty=args.difficulty, start=args.start)
        self.echo(f"✅ Habit {habit.habit_id[:SHORT_ID]} '{habit.name}' added")
        return 0

    def _habit_id(self, engine: ProgressEngine, ref: str) -> str:
        return resolve_id([h.habit_id for h in engine.state.habits], ref)

    def cmd_habit_done(self, engine: ProgressEngine, args) -> int:
        changed = engine.toggle_habit(self._habit_id(engine, args.id), not args.undo)
        self.echo(f"{'✅' if changed else '·'} xp={engine.xp} level={engine.level}")
        return 0

    def cmd_edit_habit(self, engine: ProgressEngine, args) -> int:
        patch = {k: v for k, v in (
            ("name", args.name), ("frequency", args.frequency),
            ("difficulty", args.difficulty), ("start", args.start),
        ) if v is not None}
        return self._result(engine.edit_habit(self._habit_id(engine, args.id), **patch))

    def cmd_pause(self, engine: ProgressEngine, args) -> int:
        habit_id = self._habit_id(engine, args.id)
        if args.resume:
            return self._result(engine.resume_habit(habit_id))
        return self._result(engine.pause_habit(habit_id))

    def cmd_delete_habit(self, engine: ProgressEngine, args) -> int:
        return self._result(engine.delete_habit(self._habit_id(engine, args.id)))

    # ===== ЗАДАЧИ =====

    def cmd_add_task(self, engine: ProgressEngine, args) -> int:
        task = engine.add_task(args.title, due=args.due, repeat=_split_days(args.repeat),
                               priority=args.priority)
        self.echo(f"✅ Task {task.task_id[:SHORT_ID]} '{task.title}' added")
        return 0

    def _task_id(self, engine: ProgressEngine, ref: str) -> str:
        return resolve_id([t.task_id for t in engine.state.tasks], ref)

    def cmd_task_done(self, engine: ProgressEngine, args) -> int:
        changed = engine.toggle_task(self._task_id(engine, args.id), not args.undo)
        self.echo(f"{'✅' if changed else '·'} xp={engine.xp} level={engine.level}")
        return 0

    def cmd_edit_task(self, engine: ProgressEngine, args) -> int:
        patch = {}
        if args.title is not None:
            patch["title"] = args.title
        if args.priority is not None:
            patch["priority"] = args.priority
        if args.repeat is not None:
            patch["repeat"] = _split_days(args.repeat)
        if args.no_due:
            patch["due"] = None
        elif args.due is not None:
            patch["due"] = args.due
        return self._result(engine.edit_task(self._task_id(engine, args.id), **patch))

    def cmd_delete_task(self, engine: ProgressEngine, args) -> int:
        return self._result(engine.delete_task(self._task_id(engine, args.id)))

    # ===== ОБЩЕЕ =====

    def _result(self, ok: bool) -> int:
        if ok:
            self.echo("✅ Done")
            return 0
        self.echo("❌ Not found")
        return 1

    def cmd_sweep(self, engine: ProgressEngine, args) -> int:
        report = engine.run_forgiveness_sweep()
        if report.skipped:
            self.echo(f"· Daily check already ran for {report.day}")
        else:
            self.echo(
                f"🕯 Daily check {report.day}: forgiven {len(report.forgiven)}, "
                f"decayed {len(report.decayed)}, paused {len(report.paused)}"
            )
        return 0

    def cmd_list(self, engine: ProgressEngine, args) -> int:
        today = engine.today
        progress = engine.level_progress()
        self.echo(
            f"⚡ {self.session.username}: level {progress['level']}, "
            f"xp {progress['xp']}/{progress['next_level_xp']}"
        )
        if args.what in ("all", "habits"):
            self.echo("Habits:")
            for h in engine.list_habits(view=args.habit_view, sort=args.habit_sort):
                mark = "x" if h.is_done_on(today) else " "
                flag = " (paused)" if h.paused else ""
                self.echo(
                    f"  [{mark}] {h.habit_id[:SHORT_ID]} {h.name} "
                    f"<{h.difficulty}> streak={h.streak}{flag}"
                )
        if args.what in ("all", "tasks"):
            self.echo("Tasks:")
            for t in engine.list_tasks(view=args.task_view, sort=args.task_sort):
                mark = "x" if t.done else " "
                due = f" due {t.due}" if t.due else ""
                repeat = f" every {','.join(t.repeat)}" if t.repeat else ""
                self.echo(f"  [{mark}] {t.task_id[:SHORT_ID]} {t.title} <{t.priority}>{due}{repeat}")
        return 0

    def cmd_settings(self, engine: ProgressEngine, args) -> int:
        if args.grace_days is not None or args.auto_pause is not None or args.theme is not None:
            engine.update_settings(grace_days=args.grace_days,
                                   auto_pause_after=args.auto_pause,
                                   theme=args.theme)
        s = engine.state.settings
        self.echo(f"grace_days={s.grace_days} auto_pause_after={s.auto_pause_after} theme={s.theme}")
        return 0

    def cmd_stats(self, engine: ProgressEngine, args) -> int:
        service = StatsService(engine, self.settings)
        out_dir = Path(args.out) if args.out else self.settings.EXPORT_DIR
        for path in service.export_svg(out_dir, days=args.days):
            self.echo(f"📊 {path}")
        for key, value in service.summary().items():
            self.echo(f"  {key}: {value}")
        return 0

    def cmd_logout(self, args) -> int:
        if self.session.forget_remembered() is None:
            self.echo("· Nobody is remembered")
        else:
            self.echo("👋 Logged out")
        return 0

    def cmd_reset(self, engine: ProgressEngine, args) -> int:
        if not args.yes:
            self.echo("❌ Pass --yes to remove all data for this user")
            return 1
        self.session.reset_all()
        self.echo("🗑 All data removed")
        return 0

    # ===== ЗАПУСК =====

    def run(self, args) -> int:
        if args.command == "demo":
            engine = self.session.seed_demo(seed=args.seed)
            self.echo(f"✨ Demo profile ready: user '{self.session.username}', PIN {DEMO_PIN}")
            return self.cmd_list(engine, argparse.Namespace(
                what="all", habit_view="all", habit_sort="created",
                task_view="all", task_sort="created",
            ))
        if args.command == "logout":
            return self.cmd_logout(args)

        engine = self.enter(args)
        return getattr(self, f"cmd_{args.command.replace('-', '_')}")(engine, args)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mystic-habits", description="Трекер привычек и задач с XP и уровнями")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--user", help="Имя пользователя")
    parser.add_argument("--pin", help="PIN из 4 цифр (иначе будет запрошен)")
    parser.add_argument("--remember", action="store_true", help="Запомнить пользователя")
    parser.add_argument("--data-dir", help="Каталог данных")
    parser.add_argument("--log-file", help="Дополнительно писать лог в файл с ротацией")
    parser.add_argument("--dev", action="store_true", help="Режим разработки (DEBUG)")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add-habit", help="Добавить привычку")
    p.add_argument("name")
    p.add_argument("--difficulty", choices=_choices(HabitDifficulty), default="easy")
    p.add_argument("--frequency", choices=_choices(HabitFrequency), default="daily")
    p.add_argument("--start", help="YYYY-MM-DD")

    p = sub.add_parser("habit-done", help="Отметить привычку за сегодня")
    p.add_argument("id")
    p.add_argument("--undo", action="store_true", help="Снять отметку")

    p = sub.add_parser("edit-habit", help="Изменить привычку")
    p.add_argument("id")
    p.add_argument("--name")
    p.add_argument("--difficulty", choices=_choices(HabitDifficulty))
    p.add_argument("--frequency", choices=_choices(HabitFrequency))
    p.add_argument("--start")

    p = sub.add_parser("pause", help="Пауза привычки")
    p.add_argument("id")
    p.add_argument("--resume", action="store_true", help="Снять с паузы")

    p = sub.add_parser("delete-habit", help="Удалить привычку")
    p.add_argument("id")

    p = sub.add_parser("add-task", help="Добавить задачу")
    p.add_argument("title")
    p.add_argument("--priority", choices=_choices(TaskPriority), default="medium")
    p.add_argument("--due", help="YYYY-MM-DD")
    p.add_argument("--repeat", help="Дни недели через запятую: mon,wed,fri")

    p = sub.add_parser("task-done", help="Отметить задачу выполненной")
    p.add_argument("id")
    p.add_argument("--undo", action="store_true", help="Снять отметку")

    p = sub.add_parser("edit-task", help="Изменить задачу")
    p.add_argument("id")
    p.add_argument("--title")
    p.add_argument("--priority", choices=_choices(TaskPriority))
    p.add_argument("--due")
    p.add_argument("--no-due", action="store_true", help="Убрать срок")
    p.add_argument("--repeat")

    p = sub.add_parser("delete-task", help="Удалить задачу")
    p.add_argument("id")

    sub.add_parser("sweep", help="Ежедневная проверка пропусков")

    p = sub.add_parser("list", help="Показать привычки и задачи")
    p.add_argument("what", nargs="?", choices=["all", "habits", "tasks"], default="all")
    p.add_argument("--habit-view", choices=HABIT_VIEWS, default="all")
    p.add_argument("--habit-sort", choices=HABIT_SORTS, default="created")
    p.add_argument("--task-view", choices=TASK_VIEWS, default="all")
    p.add_argument("--task-sort", choices=TASK_SORTS, default="created")

    p = sub.add_parser("settings", help="Показать или изменить настройки")
    p.add_argument("--grace-days", type=int)
    p.add_argument("--auto-pause", type=int)
    p.add_argument("--theme", choices=_choices(Theme))

    p = sub.add_parser("stats", help="Сохранить графики в SVG")
    p.add_argument("--out", help="Каталог (по умолчанию EXPORT_DIR)")
    p.add_argument("--days", type=int, help="Сколько дней (по умолчанию CHART_DAYS)")

    p = sub.add_parser("demo", help="Создать демо-профиль")
    p.add_argument("--seed", type=int)

    sub.add_parser("logout", help="Выйти и забыть пользователя")

    p = sub.add_parser("reset", help="Удалить все данные пользователя")
    p.add_argument("--yes", action="store_true")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Главная функция запуска"""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.data_dir:
        settings = settings.model_copy(update={"DATA_DIR": Path(args.data_dir)})

    configure_logging(settings)
    if args.log_file:
        setup_logger(args.log_file, level=settings.LOG_LEVEL, fmt=settings.LOG_FORMAT)
    if args.dev:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.info("🔧 Development mode enabled")

    try:
        return MysticCLI(settings).run(args)
    except MysticError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except DatabaseError as e:
        logger.error(f"💥 Storage failure: {e}")
        return 2
    except KeyboardInterrupt:
        logger.info("👋 Bye!")
        return 130


if __name__ == "__main__":
    sys.exit(main())
