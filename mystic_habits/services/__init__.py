# services/__init__.py

"""
Сервисы поверх движка прогресса
"""

from .stats_service import StatsService, StatsCharts

__all__ = ['StatsService', 'StatsCharts']
