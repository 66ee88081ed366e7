# charts/__init__.py

"""
Графики: линейный и парный столбчатый поверх абстрактной поверхности
"""

from .surface import Surface, RecordingSurface, SvgSurface
from .renderer import ChartStyle, AxisRange, ChartLayout, nice_range, line_chart, bar_dual

__all__ = [
    'Surface',
    'RecordingSurface',
    'SvgSurface',
    'ChartStyle',
    'AxisRange',
    'ChartLayout',
    'nice_range',
    'line_chart',
    'bar_dual'
]
