"""Пересэмплирование спрайта до целевого размера.

Фильтр Lanczos; Pillow сам переводит RGBA в предумноженную альфу на время
ресэмплинга, поэтому прозрачные пиксели не окрашивают края.
"""
from __future__ import annotations

import math
from io import BytesIO
from typing import Optional

from PIL import Image

from sprite_optimizer.models.diagnostic_model import Diagnostic, DiagnosticKind
from sprite_optimizer.services.diagnostics import Reporter, log_diagnostic
from sprite_optimizer.services.image_service import decode_rgba

RESAMPLE_FILTER = Image.Resampling.LANCZOS


class ResampleService:
    def __init__(self, reporter: Reporter = log_diagnostic) -> None:
        self._reporter = reporter

    def resample(self, data: bytes, width: float, height: float, name: str = "<bytes>") -> Optional[bytes]:
        """Уменьшает изображение и кодирует результат в PNG.

        Returns:
            PNG-байты размера `floor(width) x floor(height)` или `None` при ошибке
            декодирования, создания поверхности или кодирования.
        """
        target = (math.floor(width), math.floor(height))
        if target[0] <= 0 or target[1] <= 0:
            self._report(DiagnosticKind.SURFACE_FAILURE, name, f"недопустимый размер {target[0]}x{target[1]}")
            return None

        try:
            source = decode_rgba(data, name)
        except ValueError as exc:
            self._report(DiagnosticKind.DECODE_FAILURE, name, str(exc))
            return None

        with source:
            try:
                resized = source.resize(target, RESAMPLE_FILTER)
                buffer = BytesIO()
                resized.save(buffer, format="PNG")
            except (ValueError, OSError, MemoryError) as exc:
                self._report(DiagnosticKind.SURFACE_FAILURE, name, f"не удалось пересэмплировать: {exc}")
                return None
        return buffer.getvalue()

    def _report(self, kind: DiagnosticKind, name: str, message: str) -> None:
        self._reporter(Diagnostic(kind, name, message))
