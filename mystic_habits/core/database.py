#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mystic Habits - Snapshot Store
Ключ-значение хранилище снимков состояния (JSON-файлы, атомарная запись)

Версия: 1.0.0
"""

import json
import shutil
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote, unquote

import logging

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class DatabaseError(Exception):
    """Ошибка записи в хранилище"""
    pass

# ===== STORES =====

class SnapshotStore(ABC):
    """Непрозрачное ключ-значение хранилище"""

    @abstractmethod
    def get_value(self, key: str) -> Optional[Any]:
        ...

    @abstractmethod
    def set_value(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove_value(self, key: str) -> bool:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...

    def load_snapshot(self, key: str) -> Optional[Dict[str, Any]]:
        value = self.get_value(key)
        if value is not None and not isinstance(value, dict):
            logger.warning(f"Snapshot {key} is not an object, ignoring it")
            return None
        return value

    def save_snapshot(self, key: str, state: Dict[str, Any]) -> None:
        self.set_value(key, state)

    def delete_snapshot(self, key: str) -> bool:
        return self.remove_value(key)

class MemoryStore(SnapshotStore):
    """Хранилище в памяти процесса"""

    def __init__(self):
        self.data: Dict[str, Any] = {}
        self.save_count = 0

    def get_value(self, key: str) -> Optional[Any]:
        value = self.data.get(key)
        return deepcopy(value) if value is not None else None

    def set_value(self, key: str, value: Any) -> None:
        # копия через JSON, как при записи в файл
        self.data[key] = json.loads(json.dumps(value, ensure_ascii=False))
        self.save_count += 1

    def remove_value(self, key: str) -> bool:
        return self.data.pop(key, None) is not None

    def keys(self) -> List[str]:
        return sorted(self.data)

class JsonFileStore(SnapshotStore):
    """Один ключ - один файл <key>.json в data_dir"""

    SUFFIX = ".json"

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.save_count = 0

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{quote(key, safe='')}{self.SUFFIX}"

    def get_value(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Snapshot file {path} is corrupted: {e}")
            return None
        except OSError as e:
            logger.error(f"Failed to read {path}: {e}")
            return None

    def set_value(self, key: str, value: Any) -> None:
        path = self._path(key)
        temp_file = path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(value, f, ensure_ascii=False, indent=2)

            # Проверяем целостность записанного файла
            with open(temp_file, "r", encoding="utf-8") as f:
                json.load(f)

            shutil.move(str(temp_file), str(path))

            self.save_count += 1
            logger.debug(f"Saved {key} to {path}")

        except (OSError, TypeError, ValueError) as e:
            if temp_file.exists():
                temp_file.unlink()
            logger.error(f"Failed to save {key}: {e}")
            raise DatabaseError(f"Failed to save {key}: {e}")

    def remove_value(self, key: str) -> bool:
        path = self._path(key)
        if path.exists():
            path.unlink()
            logger.info(f"Removed {path}")
            return True
        return False

    def keys(self) -> List[str]:
        return sorted(
            unquote(p.name[: -len(self.SUFFIX)])
            for p in self.data_dir.glob(f"*{self.SUFFIX}")
        )
