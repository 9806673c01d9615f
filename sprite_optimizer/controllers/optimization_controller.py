"""Контроллер оптимизации: оркестрация сервисов от распаковки до архива.

SOLID:
- SRP: класс управляет связями между сервисами (без логики обработки изображений).
- DIP: зависит от сервисов как от ролей; конкретные реализации подставляются снаружи.
Clean Code:
- Методы компактны; тяжёлая логика вынесена в сервисы.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple

from sprite_optimizer.models.atlas_model import AtlasRegion
from sprite_optimizer.models.image_model import GlobalAssetStat, LoadedImage, OptimizationSummary, OptimizationTask
from sprite_optimizer.models.settings_model import OptimizerSettings
from sprite_optimizer.services.diagnostics import Reporter, log_diagnostic
from sprite_optimizer.services.image_service import ImageService
from sprite_optimizer.services.package_service import PackageService, PackagingError
from sprite_optimizer.services.page_unpacker import PageUnpacker
from sprite_optimizer.services.resample_service import ResampleService
from sprite_optimizer.services.resize_policy import ResizePolicy, summarize

logger = logging.getLogger(__name__)

StageProgress = Callable[[str, int, int], None]


@dataclass
class OptimizationController:
    """Связывает загрузку, распаковку, планирование и упаковку.

    Ответственности:
    - Загрузка сырых изображений и распаковка атласов через сервисы.
    - Построение плана для текущего запаса (каждый раз новый список).
    - Экспорт всего плана или выбранного подмножества в архив.
    """
    settings: OptimizerSettings = field(default_factory=OptimizerSettings)
    reporter: Reporter = log_diagnostic
    on_progress: Optional[StageProgress] = None

    _loaded: Mapping[str, LoadedImage] = field(default_factory=lambda: MappingProxyType({}), init=False)
    _stats: Tuple[GlobalAssetStat, ...] = field(default=(), init=False)
    _tasks: List[OptimizationTask] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self._image_service = ImageService(self.reporter)
        self._unpacker = PageUnpacker(reporter=self.reporter)
        self._policy = ResizePolicy(self.settings.output_extension)
        self._packager = PackageService(ResampleService(self.reporter), self.settings.archive_root, self.reporter)

    @property
    def loaded(self) -> Mapping[str, LoadedImage]:
        return self._loaded

    @property
    def tasks(self) -> List[OptimizationTask]:
        return list(self._tasks)

    # ---- Stages ----
    def load(
        self,
        images_dir: str | Path | None = None,
        regions: Iterable[AtlasRegion] = (),
        pages: Optional[Mapping[str, bytes]] = None,
    ) -> Mapping[str, LoadedImage]:
        """Загружает сырые изображения и распаковывает атласы в одну таблицу.

        Если `pages` не заданы, страницы читаются из `images_dir` по именам из регионов.
        """
        regions = list(regions)
        page_names = list(dict.fromkeys(region.page_name for region in regions))

        raw_images: List[LoadedImage] = []
        if images_dir is not None:
            raw_images = self._image_service.load_directory(images_dir)
            if pages is None:
                pages = self._image_service.read_pages(images_dir, page_names)

        sprites = {}
        if regions:
            sprites = self._unpacker.unpack(pages or {}, regions, self._stage("unpack"))

        self._loaded = self._image_service.build_loaded_table(raw_images, sprites, page_names)
        logger.info("Загружено изображений: %d (из атласов: %d)", len(self._loaded), len(sprites))
        return self._loaded

    def plan(self, stats: Optional[Iterable[GlobalAssetStat]] = None, buffer_percent: Optional[float] = None) -> List[OptimizationTask]:
        """Строит новый план; без аргументов пересчитывает по последней статистике."""
        if stats is not None:
            self._stats = tuple(stats)
        buffer = self.settings.buffer_percent if buffer_percent is None else buffer_percent
        self._tasks = self._policy.plan(self._stats, self._loaded, buffer)
        return self.tasks

    def summary(self) -> OptimizationSummary:
        return summarize(self._tasks)

    def export(self, output_path: str | Path | None = None, tasks: Optional[Sequence[OptimizationTask]] = None) -> bytes:
        """Собирает архив для плана (или подмножества) и при необходимости пишет его на диск.

        Raises:
            PackagingError: если архив не удалось собрать или записать.
        """
        selected = self._tasks if tasks is None else list(tasks)
        archive = self._packager.pack(selected, self._stage("pack"))
        if output_path is not None:
            path = Path(output_path)
            try:
                path.write_bytes(archive)
            except OSError as exc:
                raise PackagingError(f"Не удалось записать архив {path}: {exc}") from exc
            logger.info("Архив сохранён: %s (%d файлов)", path, len(selected))
        return archive

    def export_one(self, task: OptimizationTask) -> bytes:
        """Байты одного изображения в том виде, в каком оно попадёт в архив."""
        return self._packager.render_task(task)

    # ---- Helpers ----
    def _stage(self, stage: str) -> Optional[Callable[[int, int], None]]:
        if self.on_progress is None:
            return None
        callback = self.on_progress
        return lambda current, total: callback(stage, current, total)
