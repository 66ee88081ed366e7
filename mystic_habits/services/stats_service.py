# services/stats_service.py

"""
Сервис статистики: серии за последние дни и построение графиков

Движок и рендерер друг о друге не знают; этот сервис читает журналы
движка и передаёт массивы чисел и дней в рендерер.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from mystic_habits.charts.renderer import ChartLayout, ChartStyle, bar_dual, line_chart
from mystic_habits.charts.surface import Surface, SvgSurface
from mystic_habits.config import AppSettings, get_settings
from mystic_habits.core.engine import ProgressEngine

logger = logging.getLogger(__name__)


@dataclass
class StatsCharts:
    days: List[str]
    habit_surface: Surface
    task_surface: Surface
    habit_layout: ChartLayout
    task_layout: ChartLayout


class StatsService:
    """Графики привычек и задач для активного пользователя"""

    def __init__(self, engine: ProgressEngine, settings: Optional[AppSettings] = None):
        self.engine = engine
        self.settings = settings or get_settings()

    def chart_days(self, days: Optional[int] = None) -> List[str]:
        result = self.engine.clock.range_days(days or self.settings.CHART_DAYS)
        if self.settings.CHART_RTL:
            result.reverse()
        return result

    def styles(self) -> Tuple[ChartStyle, ChartStyle]:
        colors = self.settings.CHART_COLORS
        habit_style = ChartStyle(
            color=colors.get("habits", ChartStyle.color),
            overlay_color=colors.get("streak", ChartStyle.overlay_color),
            grid_color=colors.get("grid", ChartStyle.grid_color),
            label_color=colors.get("label", ChartStyle.label_color),
        )
        task_style = ChartStyle(
            color_a=colors.get("completed", ChartStyle.color_a),
            color_b=colors.get("added", ChartStyle.color_b),
            grid_color=colors.get("grid", ChartStyle.grid_color),
            label_color=colors.get("label", ChartStyle.label_color),
        )
        return habit_style, task_style

    def new_surface(self, day_count: int) -> SvgSurface:
        return SvgSurface(self.settings.chart_width(day_count), self.settings.CHART_HEIGHT)

    def render(self, habit_surface: Optional[Surface] = None,
               task_surface: Optional[Surface] = None,
               days: Optional[int] = None) -> StatsCharts:
        day_ids = self.chart_days(days)
        habit_surface = habit_surface or self.new_surface(len(day_ids))
        task_surface = task_surface or self.new_surface(len(day_ids))
        habit_style, task_style = self.styles()

        habit_layout = line_chart(
            habit_surface,
            self.engine.habit_series(day_ids),
            day_ids,
            habit_style,
            overlay=self.engine.streak_trend(day_ids),
        )
        completed, added = self.engine.task_series(day_ids)
        task_layout = bar_dual(task_surface, completed, added, day_ids, task_style)

        logger.debug(f"Rendered stats for {len(day_ids)} days")
        return StatsCharts(day_ids, habit_surface, task_surface, habit_layout, task_layout)

    def export_svg(self, out_dir: Path, days: Optional[int] = None) -> List[Path]:
        """Сохранить habits.svg и tasks.svg"""
        charts = self.render(days=days)
        out_dir = Path(out_dir)
        paths = [
            charts.habit_surface.save(out_dir / "habits.svg"),
            charts.task_surface.save(out_dir / "tasks.svg"),
        ]
        logger.info(f"📊 Charts exported to {out_dir}")
        return paths

    def summary(self) -> Dict[str, Any]:
        """Итоговая статистика за всё время"""
        state = self.engine.state
        logs = state.logs
        return {
            "xp": state.xp,
            "level": state.level,
            "habits": len(state.habits),
            "paused_habits": sum(1 for h in state.habits if h.paused),
            "best_streak": state.best_streak,
            "tasks": len(state.tasks),
            "open_tasks": sum(1 for t in state.tasks if not t.done),
            "habit_completions": sum(logs.habit_daily.values()),
            "tasks_added": sum(logs.task_added.values()),
            "tasks_completed": sum(logs.task_completed.values()),
            "forgiven_misses": logs.forgiven_misses,
        }
