"""Настройки оптимизации."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OptimizerSettings:
    """Неизменяемые параметры одного запуска.

    Fields:
        buffer_percent: Запас к требуемому размеру, %.
        archive_root: Корневая папка внутри архива.
        output_extension: Расширение выходных файлов (кодек всегда PNG).
    """
    buffer_percent: float = 0.0
    archive_root: str = "images_optimized"
    output_extension: str = ".png"

    def __post_init__(self) -> None:
        if self.buffer_percent < 0:
            raise ValueError(f"Запас не может быть отрицательным: {self.buffer_percent}")
        if not self.archive_root.strip("/"):
            raise ValueError("Корневая папка архива не может быть пустой")
