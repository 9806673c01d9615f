"""Модели данных для изображений и плана оптимизации.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class LoadedImage:
    """Изображение, загруженное в память, и его размеры.

    Fields:
        path: Исходный относительный путь (для вывода и имени в архиве).
        width: Каноническая (логическая) ширина, px.
        height: Каноническая (логическая) высота, px.
        data: Байты изображения.
        source_width: Физическая ширина загруженных байтов, если известна.
        source_height: Физическая высота загруженных байтов, если известна.
    """
    path: str
    width: int
    height: int
    data: bytes
    source_width: Optional[int] = None
    source_height: Optional[int] = None

    @property
    def physical_width(self) -> int:
        return self.source_width if self.source_width is not None else self.width

    @property
    def physical_height(self) -> int:
        return self.source_height if self.source_height is not None else self.height


@dataclass(frozen=True)
class GlobalAssetStat:
    """Агрегированное требование к одному спрайту по всем анимациям.

    `max_render_width/height` уже учитывают пользовательское переопределение,
    если `is_overridden` истинно.
    """
    lookup_key: str
    max_render_width: float
    max_render_height: float
    max_scale_x: float = 1.0
    max_scale_y: float = 1.0
    is_overridden: bool = False
    override_percentage: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GlobalAssetStat":
        """Создаёт запись из словаря (допускаются ключи в camelCase)."""
        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return default

        key = pick("lookup_key", "lookupKey", "path")
        if not key:
            raise ValueError("У записи статистики нет ключа (lookupKey)")
        override = pick("override_percentage", "overridePercentage")
        return cls(
            lookup_key=str(key),
            max_render_width=float(pick("max_render_width", "maxRenderWidth", default=0)),
            max_render_height=float(pick("max_render_height", "maxRenderHeight", default=0)),
            max_scale_x=float(pick("max_scale_x", "maxScaleX", default=1.0)),
            max_scale_y=float(pick("max_scale_y", "maxScaleY", default=1.0)),
            is_overridden=bool(pick("is_overridden", "isOverridden", default=False)),
            override_percentage=None if override is None else float(override),
        )


@dataclass(frozen=True)
class OptimizationTask:
    """Одна единица плана: что и в каком размере положить в архив.

    `original_width/height` — физические размеры загруженного изображения.
    """
    file_name: str
    relative_path: str
    original_width: int
    original_height: int
    target_width: int
    target_height: int
    data: bytes
    max_scale_used: float
    is_resize: bool
    override_percentage: Optional[float] = None


@dataclass(frozen=True)
class OptimizationSummary:
    total: int
    resized_count: int
    original_pixels: int
    target_pixels: int
    reduction_percent: float
