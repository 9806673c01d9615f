"""Восстановление отдельных спрайтов из страниц атласа.

Принципы:
- SRP: класс только вырезает регион, разворачивает его и кладёт на холст исходного размера.
- Преобразование координат вычисляется заранее (`Placement`) и применяется
  одним явным копированием массива, без состояния трансформаций холста.
"""
from __future__ import annotations

from io import BytesIO
from typing import Optional

import numpy as np
from PIL import Image

from sprite_optimizer.models.atlas_model import AtlasRegion, Placement, ReconstructedSprite
from sprite_optimizer.models.diagnostic_model import Diagnostic, DiagnosticKind
from sprite_optimizer.services.diagnostics import Reporter, log_diagnostic


class RegionExtractor:
    def __init__(self, reporter: Reporter = log_diagnostic) -> None:
        self._reporter = reporter

    def placement_for(self, region: AtlasRegion) -> Placement:
        """Вычисляет, куда и как лечь упакованным данным на холсте.

        Смещения заданы от левого нижнего угла, а холст адресуется от левого
        верхнего, поэтому Y пересчитывается через высоту исходного спрайта.
        При повороте вертикальный размер в исходной ориентации — это `region.width`,
        а занимаемая область имеет размер `height x width`.
        """
        dest_x = region.offset_x
        dest_y = region.original_height - (region.offset_y + region.packed_span)
        if region.rotated:
            return Placement(dest_x=dest_x, dest_y=dest_y, width=region.height, height=region.width, rotated=True)
        return Placement(dest_x=dest_x, dest_y=dest_y, width=region.width, height=region.height, rotated=False)

    def extract(self, page: Image.Image, region: AtlasRegion) -> Optional[ReconstructedSprite]:
        """Восстанавливает один спрайт со страницы атласа.

        Args:
            page: Декодированная страница атласа.
            region: Описание упакованного региона.

        Returns:
            `ReconstructedSprite` с PNG-байтами размера `original_width x original_height`
            или `None`, если холст не удалось создать или закодировать.
        """
        width, height = region.original_width, region.original_height
        if width <= 0 or height <= 0:
            self._report(region, f"недопустимый размер холста {width}x{height}")
            return None

        try:
            canvas = np.zeros((height, width, 4), dtype=np.uint8)
        except (ValueError, MemoryError) as exc:
            self._report(region, f"не удалось создать холст: {exc}")
            return None

        placement = self.placement_for(region)
        piece = self._packed_pixels(page, region)
        if placement.rotated:
            # упакованные данные повёрнуты по часовой стрелке, возвращаем против
            piece = np.rot90(piece, k=1)
        try:
            self._blit(canvas, piece, placement)
        except ValueError as exc:
            self._report(region, str(exc))
            return None

        try:
            data = self._encode_png(canvas)
        except (ValueError, OSError, MemoryError) as exc:
            self._report(region, f"не удалось закодировать PNG: {exc}")
            return None

        return ReconstructedSprite(
            name=region.name,
            width=width,
            height=height,
            data=data,
            source_width=width,
            source_height=height,
        )

    # ---------- Вспомогательные функции ----------
    def _packed_pixels(self, page: Image.Image, region: AtlasRegion) -> np.ndarray:
        """Возвращает RGBA-массив упакованного прямоугольника (вне страницы — прозрачный)."""
        box = (region.x, region.y, region.x + region.width, region.y + region.height)
        crop = page.crop(box)
        if crop.mode != "RGBA":
            crop = crop.convert("RGBA")
        return np.asarray(crop, dtype=np.uint8)

    @staticmethod
    def _blit(canvas: np.ndarray, piece: np.ndarray, placement: Placement) -> None:
        """Копирует `piece` в область `placement` на `canvas` с отсечением по границам.

        Raises:
            ValueError: если размер данных не совпадает с занимаемой областью.
        """
        piece_h, piece_w = piece.shape[:2]
        if (piece_w, piece_h) != (placement.width, placement.height):
            raise ValueError(
                f"данные {piece_w}x{piece_h} не совпадают с областью {placement.width}x{placement.height}"
            )
        canvas_h, canvas_w = canvas.shape[:2]
        dest_x, dest_y = placement.dest_x, placement.dest_y

        left, top = max(dest_x, 0), max(dest_y, 0)
        right, bottom = min(dest_x + piece_w, canvas_w), min(dest_y + piece_h, canvas_h)
        if right <= left or bottom <= top:
            return
        canvas[top:bottom, left:right] = piece[top - dest_y:bottom - dest_y, left - dest_x:right - dest_x]

    @staticmethod
    def _encode_png(canvas: np.ndarray) -> bytes:
        buffer = BytesIO()
        Image.fromarray(canvas).save(buffer, format="PNG")
        return buffer.getvalue()

    def _report(self, region: AtlasRegion, message: str) -> None:
        self._reporter(Diagnostic(DiagnosticKind.SURFACE_FAILURE, region.name, message))
