"""Сборка архива с оптимизированными изображениями.

Принципы:
- SRP: сервис только решает, какие байты положить в архив, и пишет его.
- Сбой уменьшения одного изображения не убирает его из архива: используется оригинал.
"""
from __future__ import annotations

import logging
import zipfile
from io import BytesIO
from typing import Callable, Optional, Sequence

from sprite_optimizer.models.diagnostic_model import Diagnostic, DiagnosticKind
from sprite_optimizer.models.image_model import OptimizationTask
from sprite_optimizer.services.diagnostics import Reporter, log_diagnostic
from sprite_optimizer.services.resample_service import ResampleService

logger = logging.getLogger(__name__)

ARCHIVE_ROOT = "images_optimized"

ProgressCallback = Callable[[int, int], None]


class PackagingError(RuntimeError):
    """Архив не удалось собрать целиком."""


class PackageService:
    def __init__(
        self,
        resampler: Optional[ResampleService] = None,
        archive_root: str = ARCHIVE_ROOT,
        reporter: Reporter = log_diagnostic,
    ) -> None:
        self._reporter = reporter
        self._resampler = resampler if resampler is not None else ResampleService()
        self._archive_root = archive_root.strip("/")

    def render_task(self, task: OptimizationTask) -> bytes:
        """Возвращает байты, которые попадут в архив для задачи."""
        if not task.is_resize:
            return task.data
        resized = self._resampler.resample(task.data, task.target_width, task.target_height, task.file_name)
        if resized is None:
            logger.warning("Используется оригинал для %s", task.file_name)
            return task.data
        return resized

    def entry_name(self, task: OptimizationTask) -> str:
        # вложенные папки в имени сохраняются как есть
        relative = task.file_name.replace("\\", "/").lstrip("/")
        return f"{self._archive_root}/{relative}"

    def pack(self, tasks: Sequence[OptimizationTask], on_progress: Optional[ProgressCallback] = None) -> bytes:
        """Собирает ZIP-архив из задач в заданном порядке.

        Args:
            tasks: Задачи плана или любое их подмножество.
            on_progress: Вызывается как `(0, total)` в начале и `(completed, total)` после
                каждой задачи, в том числе заменённой дубликатом.

        Returns:
            Байты ZIP-архива с одной корневой папкой.

        Raises:
            PackagingError: если архив не удалось записать.
        """
        total = len(tasks)
        names = [self.entry_name(task) for task in tasks]
        # при совпадении имён в архив попадает последняя задача
        last_index = {name: index for index, name in enumerate(names)}

        if on_progress is not None:
            on_progress(0, total)

        buffer = BytesIO()
        try:
            with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                for completed, (name, task) in enumerate(zip(names, tasks), start=1):
                    if last_index[name] == completed - 1:
                        archive.writestr(name, self.render_task(task))
                    else:
                        self._reporter(Diagnostic(
                            DiagnosticKind.DUPLICATE_ENTRY, task.relative_path,
                            f"заменено более поздним файлом с тем же именем {name}",
                        ))
                    logger.debug("Упаковано: %d/%d", completed, total)
                    if on_progress is not None:
                        on_progress(completed, total)
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile, MemoryError) as exc:
            raise PackagingError(f"Не удалось собрать архив: {exc}") from exc
        return buffer.getvalue()
