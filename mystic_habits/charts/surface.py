# charts/surface.py

"""
Поверхности рисования для графиков

Рендерер знает только этот интерфейс; создание и размер поверхности
задаёт вызывающий код.
"""

import html
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence, Tuple

Point = Tuple[float, float]


def _font_size(font: str) -> str:
    head = font.split()[0] if font else ""
    return head[:-2] if head.endswith("px") else "12"


def _font_family(font: str) -> str:
    parts = font.split(maxsplit=1)
    return parts[1] if len(parts) > 1 else "sans-serif"


def _num(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


class Surface(ABC):
    """Примитивы рисования с фиксированными шириной и высотой"""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def line(self, x1: float, y1: float, x2: float, y2: float, color: str, width: float = 1) -> None:
        ...

    @abstractmethod
    def polyline(self, points: Sequence[Point], color: str, width: float = 2) -> None:
        ...

    @abstractmethod
    def fill_circle(self, cx: float, cy: float, r: float, color: str) -> None:
        ...

    @abstractmethod
    def fill_rect(self, x: float, y: float, w: float, h: float, color: str, radius: float = 0) -> None:
        ...

    @abstractmethod
    def text(self, x: float, y: float, value: str, color: str, font: str = "12px system-ui") -> None:
        ...


class RecordingSurface(Surface):
    """Записывает вызовы рисования кортежами"""

    def __init__(self, width: int, height: int):
        super().__init__(width, height)
        self.calls: List[tuple] = []

    def clear(self) -> None:
        self.calls = [("clear", 0, 0, self.width, self.height)]

    def line(self, x1, y1, x2, y2, color, width=1) -> None:
        self.calls.append(("line", x1, y1, x2, y2, color, width))

    def polyline(self, points, color, width=2) -> None:
        self.calls.append(("polyline", tuple(points), color, width))

    def fill_circle(self, cx, cy, r, color) -> None:
        self.calls.append(("circle", cx, cy, r, color))

    def fill_rect(self, x, y, w, h, color, radius=0) -> None:
        self.calls.append(("rect", x, y, w, h, color, radius))

    def text(self, x, y, value, color, font="12px system-ui") -> None:
        self.calls.append(("text", x, y, value, color, font))

    def of_kind(self, kind: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == kind]


class SvgSurface(Surface):
    """Собирает SVG-документ"""

    def __init__(self, width: int, height: int, background: str = "none"):
        super().__init__(width, height)
        self.background = background
        self.elements: List[str] = []

    def clear(self) -> None:
        self.elements = []

    def line(self, x1, y1, x2, y2, color, width=1) -> None:
        self.elements.append(
            f'<line x1="{_num(x1)}" y1="{_num(y1)}" x2="{_num(x2)}" y2="{_num(y2)}" '
            f'stroke="{html.escape(color)}" stroke-width="{_num(width)}"/>'
        )

    def polyline(self, points, color, width=2) -> None:
        if not points:
            return
        coords = " ".join(f"{_num(x)},{_num(y)}" for x, y in points)
        self.elements.append(
            f'<polyline points="{coords}" fill="none" '
            f'stroke="{html.escape(color)}" stroke-width="{_num(width)}"/>'
        )

    def fill_circle(self, cx, cy, r, color) -> None:
        self.elements.append(
            f'<circle cx="{_num(cx)}" cy="{_num(cy)}" r="{_num(r)}" fill="{html.escape(color)}"/>'
        )

    def fill_rect(self, x, y, w, h, color, radius=0) -> None:
        if h < 0:
            y, h = y + h, -h
        if w < 0:
            x, w = x + w, -w
        r = min(radius, w / 2, h / 2)
        self.elements.append(
            f'<rect x="{_num(x)}" y="{_num(y)}" width="{_num(w)}" height="{_num(h)}" '
            f'rx="{_num(r)}" fill="{html.escape(color)}"/>'
        )

    def text(self, x, y, value, color, font="12px system-ui") -> None:
        self.elements.append(
            f'<text x="{_num(x)}" y="{_num(y)}" fill="{html.escape(color)}" '
            f'font-size="{_font_size(font)}" font-family="{html.escape(_font_family(font))}">'
            f"{html.escape(str(value))}</text>"
        )

    def to_svg(self) -> str:
        body = "\n  ".join(self.elements)
        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}" height="{self.height}" '
            f'viewBox="0 0 {self.width} {self.height}">\n'
            f'  <rect width="100%" height="100%" fill="{html.escape(self.background)}"/>\n'
            f"  {body}\n"
            "</svg>\n"
        )

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_svg(), encoding="utf-8")
        return path
