#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mystic Habits - Chart Renderer
Линейные и парные столбчатые графики по дням с «красивыми» делениями оси

Версия: 1.0.0
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from mystic_habits.charts.surface import Surface
from mystic_habits.utils.datetime_utils import short_label

Point = Tuple[float, float]

# ===== STYLE & LAYOUT =====

@dataclass(frozen=True)
class ChartStyle:
    """Параметры оформления графика"""
    pad: float = 36
    color: str = "#59f0ff"
    overlay_color: str = "#59f0ff"
    point: float = 2.5
    line_width: float = 2
    color_a: str = "#6cf09a"
    color_b: str = "#ffb36b"
    grid_color: str = "rgba(255,255,255,0.08)"
    label_color: str = "rgba(255,255,255,0.6)"
    font: str = "12px system-ui"
    bar_ratio: float = 0.36
    bar_gap: float = 4
    bar_radius: float = 4
    max_labels: int = 6

@dataclass(frozen=True)
class AxisRange:
    """Диапазон оси Y с шагом делений"""
    min: float
    max: float
    step: float

    @property
    def ticks(self) -> List[float]:
        values = []
        v = self.min
        while v <= self.max:
            values.append(v)
            v += self.step
        return values

@dataclass
class ChartLayout:
    """Геометрия построенного графика"""
    axis: AxisRange
    y_labels: List[Tuple[float, str]] = field(default_factory=list)
    x_labels: List[Tuple[float, str]] = field(default_factory=list)
    points: List[Point] = field(default_factory=list)
    overlay_points: List[Point] = field(default_factory=list)
    bars_a: List[Tuple[float, float, float, float]] = field(default_factory=list)
    bars_b: List[Tuple[float, float, float, float]] = field(default_factory=list)

# ===== AXIS MATH =====

def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def nice_range(lo: float, hi: float) -> AxisRange:
    """Расширить [lo, hi] до границ, кратных шагу (4 интервала, шаг >= 1)"""
    if lo == hi:
        return AxisRange(0, hi or 1, 1)
    step = max(1, round_half_up((hi - lo) / 4))
    return AxisRange(
        math.floor(lo / step) * step,
        math.ceil(hi / step) * step,
        step,
    )


def scale_y(value: float, axis: AxisRange, height: float, pad: float) -> float:
    span = (axis.max - axis.min) or 1
    return height - pad - ((value - axis.min) / span) * (height - pad * 2)


def x_at(index: int, count: int, width: float, pad: float) -> float:
    return pad + (index * (width - pad * 2)) / max(1, count - 1)


def label_stride(count: int, max_labels: int = 6) -> int:
    return max(1, math.ceil(count / max(1, max_labels)))

# ===== SHARED DRAWING =====

def _draw_grid(surface: Surface, axis: AxisRange, style: ChartStyle) -> None:
    w, h, pad = surface.width, surface.height, style.pad
    for v in axis.ticks:
        y = scale_y(v, axis, h, pad)
        surface.line(pad, y, w - pad, y, style.grid_color, 1)
    # оси
    surface.line(pad, h - pad, w - pad, h - pad, style.grid_color, 1)
    surface.line(pad, pad, pad, h - pad, style.grid_color, 1)


def _format_tick(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _draw_y_labels(surface: Surface, axis: AxisRange, style: ChartStyle) -> List[Tuple[float, str]]:
    labels = []
    for v in axis.ticks:
        y = scale_y(v, axis, surface.height, style.pad)
        text = _format_tick(v)
        surface.text(6, y + 4, text, style.label_color, style.font)
        labels.append((y, text))
    return labels


def _draw_x_labels(surface: Surface, days: Sequence[str], style: ChartStyle) -> List[Tuple[float, str]]:
    labels = []
    n = len(days)
    for i in range(0, n, label_stride(n, style.max_labels)):
        x = x_at(i, n, surface.width, style.pad)
        text = short_label(days[i])
        surface.text(x - 16, surface.height - 6, text, style.label_color, style.font)
        labels.append((x, text))
    return labels


def _series_points(surface: Surface, values: Sequence[float], axis: AxisRange, pad: float) -> List[Point]:
    n = len(values)
    return [
        (x_at(i, n, surface.width, pad), scale_y(v, axis, surface.height, pad))
        for i, v in enumerate(values)
    ]

# ===== CHARTS =====

def line_chart(surface: Surface, values: Sequence[float], days: Sequence[str],
               style: Optional[ChartStyle] = None,
               overlay: Optional[Sequence[float]] = None) -> ChartLayout:
    """
    Линейный график одной серии (и, при необходимости, второй поверх)

    Обе серии строятся на общей оси. Диапазон всегда включает 0 и 1,
    поэтому пустая или нулевая серия даёт видимую ось.
    """
    style = style or ChartStyle()
    combined = list(values) + list(overlay or [])
    axis = nice_range(min(combined + [0]), max(combined + [1]))

    surface.clear()
    _draw_grid(surface, axis, style)
    layout = ChartLayout(axis=axis)
    layout.y_labels = _draw_y_labels(surface, axis, style)
    layout.x_labels = _draw_x_labels(surface, days, style)

    layout.points = _series_points(surface, values, axis, style.pad)
    if layout.points:
        surface.polyline(layout.points, style.color, style.line_width)
    if style.point > 0:
        for x, y in layout.points:
            surface.fill_circle(x, y, style.point, style.color)

    if overlay:
        layout.overlay_points = _series_points(surface, overlay, axis, style.pad)
        surface.polyline(layout.overlay_points, style.overlay_color, style.line_width)

    return layout


def bar_dual(surface: Surface, series_a: Sequence[float], series_b: Sequence[float],
             days: Sequence[str], style: Optional[ChartStyle] = None) -> ChartLayout:
    """Парные столбцы по дням: A слева от центра слота, B справа"""
    style = style or ChartStyle()
    axis = nice_range(0, max(list(series_a) + list(series_b) + [0]))

    surface.clear()
    _draw_grid(surface, axis, style)
    layout = ChartLayout(axis=axis)
    layout.y_labels = _draw_y_labels(surface, axis, style)
    layout.x_labels = _draw_x_labels(surface, days, style)

    w, h, pad = surface.width, surface.height, style.pad
    n = max(len(series_a), len(series_b))
    slot = (w - pad * 2) / max(1, n)
    bar_w = slot * style.bar_ratio
    base = h - pad

    for i in range(n):
        center = pad + (i + 0.5) * slot
        a = series_a[i] if i < len(series_a) else 0
        b = series_b[i] if i < len(series_b) else 0

        y_a = scale_y(a, axis, h, pad)
        bar = (center - style.bar_gap / 2 - bar_w, y_a, bar_w, base - y_a)
        surface.fill_rect(*bar, style.color_a, style.bar_radius)
        layout.bars_a.append(bar)

        y_b = scale_y(b, axis, h, pad)
        bar = (center + style.bar_gap / 2, y_b, bar_w, base - y_b)
        surface.fill_rect(*bar, style.color_b, style.bar_radius)
        layout.bars_b.append(bar)

    return layout
