# core/__init__.py

"""
Ядро Mystic Habits: модели, хранилище снимков, движок прогресса и сессия
"""
