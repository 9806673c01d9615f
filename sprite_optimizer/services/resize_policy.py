"""Расчёт целевых размеров спрайтов по статистике использования.

Принципы:
- SRP: только арифметика плана, без декодирования и записи файлов.
- Входные таблицы воспринимаются как снимки: план — чистая функция своих аргументов.
"""
from __future__ import annotations

import logging
import math
from fractions import Fraction
from types import MappingProxyType
from typing import Iterable, List, Mapping, Tuple

from sprite_optimizer.models.image_model import GlobalAssetStat, LoadedImage, OptimizationSummary, OptimizationTask

logger = logging.getLogger(__name__)

OUTPUT_EXTENSION = ".png"


def output_file_name(source_path: str, extension: str = OUTPUT_EXTENSION) -> str:
    """Нормализует имя выходного файла.

    Расширение отрезается, только если последняя точка стоит после последнего
    разделителя пути (точки в именах папок не считаются расширением).
    """
    last_separator = max(source_path.rfind("/"), source_path.rfind("\\"))
    last_dot = source_path.rfind(".")
    base = source_path[:last_dot] if last_dot > last_separator else source_path
    return f"{base}{extension}"


class ResizePolicy:
    def __init__(self, output_extension: str = OUTPUT_EXTENSION) -> None:
        self._output_extension = output_extension

    def required_size(self, stat: GlobalAssetStat, buffer_percent: float) -> Tuple[int, int]:
        """Требуемый размер до ограничения физическим размером."""
        if stat.is_overridden:
            # процент переопределения уже учтён в max_render_*
            return int(stat.max_render_width), int(stat.max_render_height)
        # без погрешности float: ceil(50 * 110%) == 55
        multiplier = (100 + Fraction(buffer_percent)) / 100
        return (
            math.ceil(Fraction(stat.max_render_width) * multiplier),
            math.ceil(Fraction(stat.max_render_height) * multiplier),
        )

    def plan(
        self,
        stats: Iterable[GlobalAssetStat],
        loaded: Mapping[str, LoadedImage],
        buffer_percent: float = 0.0,
    ) -> List[OptimizationTask]:
        """Строит новый список задач оптимизации.

        Args:
            stats: Агрегированная статистика; ключ — `lookup_key`.
            loaded: Загруженные изображения по нормализованному ключу.
            buffer_percent: Запас в процентах к требуемому размеру (без переопределений).

        Returns:
            Задачи: сначала те, что требуют уменьшения, затем остальные; внутри
            групп сохраняется порядок `loaded`.
        """
        stats_by_key = MappingProxyType({stat.lookup_key: stat for stat in stats})
        snapshot = tuple(loaded.items())

        resized: List[OptimizationTask] = []
        unchanged: List[OptimizationTask] = []
        for key, image in snapshot:
            stat = stats_by_key.get(key)
            if stat is None:
                # не используется ни одной анимацией
                logger.debug("Нет статистики для %s, изображение исключено", key)
                continue
            task = self._task_for(stat, image, buffer_percent)
            (resized if task.is_resize else unchanged).append(task)
        return resized + unchanged

    def _task_for(self, stat: GlobalAssetStat, image: LoadedImage, buffer_percent: float) -> OptimizationTask:
        physical_w, physical_h = image.physical_width, image.physical_height
        required_w, required_h = self.required_size(stat, buffer_percent)

        # никогда не увеличиваем, даже при переопределении
        target_w = max(1, min(required_w, physical_w))
        target_h = max(1, min(required_h, physical_h))

        return OptimizationTask(
            file_name=output_file_name(image.path, self._output_extension),
            relative_path=image.path,
            original_width=physical_w,
            original_height=physical_h,
            target_width=target_w,
            target_height=target_h,
            data=image.data,
            max_scale_used=max(stat.max_scale_x, stat.max_scale_y),
            is_resize=target_w != physical_w or target_h != physical_h,
            override_percentage=stat.override_percentage,
        )


def summarize(tasks: Iterable[OptimizationTask]) -> OptimizationSummary:
    """Сводка по плану: сколько задач уменьшается и какая экономия пикселей."""
    total = resized = original_pixels = target_pixels = 0
    for task in tasks:
        total += 1
        resized += int(task.is_resize)
        original_pixels += task.original_width * task.original_height
        target_pixels += task.target_width * task.target_height
    reduction = 0.0
    if original_pixels > 0:
        reduction = round((original_pixels - target_pixels) / original_pixels * 100, 1)
    return OptimizationSummary(
        total=total,
        resized_count=resized,
        original_pixels=original_pixels,
        target_pixels=target_pixels,
        reduction_percent=reduction,
    )
