"""Модели данных атласа: упакованные регионы и восстановленные спрайты.

Принципы:
- SRP: только структура данных и простые производные свойства.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class AtlasRegion:
    """Один упакованный спрайт на странице атласа.

    Fields:
        name: Уникальное имя спрайта (ключ).
        page_name: Имя файла страницы, на которой лежит регион.
        x, y, width, height: Упакованный прямоугольник в пикселях страницы (начало слева сверху).
        offset_x, offset_y: Смещения обрезки от левого нижнего угла исходного спрайта.
        original_width, original_height: Полный (необрезанный) размер спрайта.
        rotated: Содержимое хранится повёрнутым на 90°.
    """
    name: str
    page_name: str
    x: int
    y: int
    width: int
    height: int
    offset_x: int = 0
    offset_y: int = 0
    original_width: int = 0
    original_height: int = 0
    rotated: bool = False

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Имя региона не может быть пустым")
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Отрицательный размер региона: {self.name}")
        # без явного исходного размера регион считается необрезанным
        if self.original_width <= 0:
            object.__setattr__(self, "original_width", self.height if self.rotated else self.width)
        if self.original_height <= 0:
            object.__setattr__(self, "original_height", self.width if self.rotated else self.height)

    @property
    def packed_span(self) -> int:
        """Вертикальный размер упакованных данных в исходной ориентации."""
        return self.width if self.rotated else self.height

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AtlasRegion":
        """Создаёт регион из словаря (допускаются ключи в camelCase)."""
        def pick(*keys: str, default: Any = 0) -> Any:
            for key in keys:
                if key in data:
                    return data[key]
            return default

        return cls(
            name=str(pick("name", default="")),
            page_name=str(pick("page_name", "pageName", default="")),
            x=int(pick("x")),
            y=int(pick("y")),
            width=int(pick("width")),
            height=int(pick("height")),
            offset_x=int(pick("offset_x", "offsetX")),
            offset_y=int(pick("offset_y", "offsetY")),
            original_width=int(pick("original_width", "originalWidth")),
            original_height=int(pick("original_height", "originalHeight")),
            rotated=bool(pick("rotated", "rotate", default=False)),
        )


@dataclass(frozen=True)
class Placement:
    """Явное преобразование для одной операции копирования региона на холст.

    Вычисляется заранее вместо изменения состояния трансформаций холста.
    `dest_x`, `dest_y` — левый верхний угол занимаемой области на холсте,
    `rotated` — повернуть ли упакованные данные на 90° против часовой стрелки.
    """
    dest_x: int
    dest_y: int
    width: int
    height: int
    rotated: bool


@dataclass(frozen=True)
class ReconstructedSprite:
    """Восстановленный спрайт в исходной ориентации и исходном размере.

    Для спрайтов из атласа `source_width/source_height` совпадают с
    `width/height`: восстановленный размер и есть физический.
    """
    name: str
    width: int
    height: int
    data: bytes
    source_width: int
    source_height: int
