"""Распаковка страниц атласа в набор восстановленных спрайтов.

Каждая страница декодируется один раз и освобождается до перехода к следующей,
в том числе если её регионы не удалось обработать.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from sprite_optimizer.models.atlas_model import AtlasRegion, ReconstructedSprite
from sprite_optimizer.models.diagnostic_model import Diagnostic, DiagnosticKind
from sprite_optimizer.services.diagnostics import Reporter, log_diagnostic
from sprite_optimizer.services.image_service import decode_rgba
from sprite_optimizer.services.region_extractor import RegionExtractor

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def group_by_page(regions: Iterable[AtlasRegion]) -> Dict[str, List[AtlasRegion]]:
    """Группирует регионы по имени страницы, сохраняя порядок первого появления."""
    grouped: Dict[str, List[AtlasRegion]] = {}
    for region in regions:
        grouped.setdefault(region.page_name, []).append(region)
    return grouped


class PageUnpacker:
    def __init__(self, extractor: Optional[RegionExtractor] = None, reporter: Reporter = log_diagnostic) -> None:
        self._reporter = reporter
        self._extractor = extractor if extractor is not None else RegionExtractor(reporter)

    def unpack(
        self,
        pages: Mapping[str, bytes],
        regions: Iterable[AtlasRegion] | Mapping[str, AtlasRegion],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, ReconstructedSprite]:
        """Восстанавливает все регионы со всех страниц.

        Args:
            pages: Байты страниц по имени файла страницы.
            regions: Регионы (или словарь имя -> регион).
            on_progress: Вызывается как `(current, total)` после каждого региона,
                в том числе пропущенного из-за недоступной страницы.

        Returns:
            Словарь имя региона -> `ReconstructedSprite`; неудачные регионы отсутствуют.
        """
        if isinstance(regions, Mapping):
            regions = regions.values()
        grouped = group_by_page(regions)
        total = sum(len(page_regions) for page_regions in grouped.values())
        processed = 0
        unpacked: Dict[str, ReconstructedSprite] = {}

        def advance() -> None:
            nonlocal processed
            processed += 1
            logger.debug("Распаковано регионов: %d/%d", processed, total)
            if on_progress is not None:
                on_progress(processed, total)

        if on_progress is not None:
            on_progress(0, total)

        for page_name, page_regions in grouped.items():
            data = pages.get(page_name)
            if data is None:
                self._reporter(Diagnostic(
                    DiagnosticKind.MISSING_SOURCE, page_name,
                    "страница атласа не найдена, регионы пропущены", affected=len(page_regions),
                ))
                for _ in page_regions:
                    advance()
                continue

            try:
                page = decode_rgba(data, page_name)
            except ValueError as exc:
                self._reporter(Diagnostic(
                    DiagnosticKind.DECODE_FAILURE, page_name, str(exc), affected=len(page_regions),
                ))
                for _ in page_regions:
                    advance()
                continue

            with page:
                for region in page_regions:
                    sprite = self._extractor.extract(page, region)
                    if sprite is not None:
                        unpacked[region.name] = sprite
                    advance()

        return unpacked
