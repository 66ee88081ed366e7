#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mystic Habits - Configuration
Настройки приложения из переменных окружения (префикс MYSTIC_) и .env

Версия: 1.0.0
"""

import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import pytz
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mystic_habits.core.models import GRACE_DAYS_RANGE, AUTO_PAUSE_RANGE, clamp


class AppSettings(BaseSettings):
    """Настройки Mystic Habits"""

    model_config = SettingsConfigDict(
        env_prefix="MYSTIC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ===== ОСНОВНЫЕ НАСТРОЙКИ =====

    APP_NAME: str = Field(
        default="Mystic Habits",
        description="Название приложения"
    )

    ENVIRONMENT: str = Field(
        default="development",
        description="Среда выполнения (development/production/testing)"
    )

    # ===== ДИРЕКТОРИИ =====

    DATA_DIR: Path = Field(
        default=Path("data"),
        description="Каталог снимков состояния"
    )

    LOG_DIR: Path = Field(
        default=Path("logs"),
        description="Каталог логов"
    )

    EXPORT_DIR: Path = Field(
        default=Path("exports"),
        description="Каталог для SVG-графиков"
    )

    # ===== ЛОГИРОВАНИЕ =====

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Уровень логирования"
    )

    LOG_TO_FILE: bool = Field(
        default=False,
        description="Писать лог в файл с ротацией"
    )

    LOG_FORMAT: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        description="Формат строк лога"
    )

    # ===== ВРЕМЯ =====

    TIMEZONE: Optional[str] = Field(
        default=None,
        description="Часовой пояс pytz; по умолчанию локальное время устройства"
    )

    # ===== ХРАНИЛИЩЕ =====

    STORAGE_PREFIX: str = Field(
        default="cyberMysticData_",
        description="Префикс ключа снимка пользователя"
    )

    LAST_USER_KEY: str = Field(
        default="cm_lastUser",
        description="Ключ запомненного пользователя"
    )

    # ===== ПРОГРЕСС =====

    DEFAULT_GRACE_DAYS: int = Field(
        default=1,
        description="Прощаемых пропусков подряд для новых пользователей (0-3)"
    )

    DEFAULT_AUTO_PAUSE_AFTER: int = Field(
        default=3,
        description="Пропусков до автопаузы для новых пользователей (0-7, 0 - выкл.)"
    )

    # ===== ГРАФИКИ =====

    CHART_DAYS: int = Field(
        default=60,
        description="Сколько последних дней показывать"
    )

    CHART_MIN_WIDTH: int = Field(
        default=1200,
        description="Минимальная ширина графика, px"
    )

    CHART_DAY_WIDTH: int = Field(
        default=28,
        description="Ширина одного дня, px"
    )

    CHART_HEIGHT: int = Field(
        default=220,
        description="Высота графика, px"
    )

    CHART_RTL: bool = Field(
        default=True,
        description="Обратный порядок дней (сегодня слева)"
    )

    CHART_COLORS: Dict[str, str] = Field(
        default={
            "habits": "#6cf09a",
            "streak": "#59f0ff",
            "completed": "#c48dff",
            "added": "#ffb36b",
            "grid": "rgba(255,255,255,0.08)",
            "label": "rgba(255,255,255,0.6)",
        },
        description="Цвета графиков"
    )

    # ===== ВАЛИДАТОРЫ =====

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Валидация среды выполнения"""
        allowed_envs = ["development", "production", "testing"]
        if v.lower() not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of {allowed_envs}")
        return v.lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Валидация уровня логирования"""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"LOG_LEVEL must be one of {allowed_levels}")
        return v.upper()

    @field_validator("TIMEZONE")
    @classmethod
    def validate_timezone(cls, v):
        if v in (None, ""):
            return None
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown TIMEZONE {v!r}")
        return v

    @field_validator("DEFAULT_GRACE_DAYS")
    @classmethod
    def clamp_grace_days(cls, v):
        return clamp(v, *GRACE_DAYS_RANGE)

    @field_validator("DEFAULT_AUTO_PAUSE_AFTER")
    @classmethod
    def clamp_auto_pause(cls, v):
        return clamp(v, *AUTO_PAUSE_RANGE)

    @field_validator("CHART_DAYS", "CHART_MIN_WIDTH", "CHART_DAY_WIDTH", "CHART_HEIGHT")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("chart dimensions must be positive")
        return v

    # ===== МЕТОДЫ КОНФИГУРАЦИИ =====

    @property
    def is_testing(self) -> bool:
        return self.ENVIRONMENT == "testing"

    def storage_key(self, username: str) -> str:
        return f"{self.STORAGE_PREFIX}{username}"

    def chart_width(self, days: int) -> int:
        return max(self.CHART_MIN_WIDTH, days * self.CHART_DAY_WIDTH)

    def get_logging_config(self) -> Dict[str, Any]:
        """Конфигурация для logging.config.dictConfig"""
        handlers = ["console"]
        handler_defs: Dict[str, Any] = {
            "console": {
                "class": "logging.StreamHandler",
                "level": self.LOG_LEVEL,
                "formatter": "default",
                "stream": sys.stderr,
            }
        }
        if self.LOG_TO_FILE:
            handlers.append("file")
            handler_defs["file"] = {
                "class": "logging.handlers.RotatingFileHandler",
                "level": self.LOG_LEVEL,
                "formatter": "default",
                "filename": str(self.LOG_DIR / f"mystic_{self.ENVIRONMENT}.log"),
                "maxBytes": 10485760,  # 10MB
                "backupCount": 5,
                "encoding": "utf-8",
            }

        return {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": self.LOG_FORMAT,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": handler_defs,
            "loggers": {
                "": {
                    "level": self.LOG_LEVEL,
                    "handlers": handlers,
                    "propagate": False,
                },
            },
        }


@lru_cache()
def get_settings() -> AppSettings:
    return AppSettings()
