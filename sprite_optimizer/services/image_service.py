"""Загрузка изображений и входных данных с диска, сборка таблицы загруженных изображений.

Принципы:
- SRP: класс отвечает только за загрузку, декодирование и базовое извлечение свойств.
- OCP: новые источники (архив, URL) можно добавить отдельными методами.
- LSP/ISP: возвращает `LoadedImage` с предсказуемыми полями; интерфейс узкий и конкретный.
"""
from __future__ import annotations

import json
import logging
from io import BytesIO
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from sprite_optimizer.models.atlas_model import AtlasRegion, ReconstructedSprite
from sprite_optimizer.models.diagnostic_model import Diagnostic, DiagnosticKind
from sprite_optimizer.models.image_model import GlobalAssetStat, LoadedImage
from sprite_optimizer.services.diagnostics import Reporter, log_diagnostic

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif", ".tga"}


def normalize_lookup_key(path: str) -> str:
    """Ключ поиска статистики: прямые слэши и нижний регистр."""
    return path.replace("\\", "/").lower()


def decode_rgba(data: bytes, name: str = "<bytes>") -> Image.Image:
    """Декодирует байты изображения в RGBA.

    Raises:
        ValueError: если байты не распознаны как изображение или повреждены.
    """
    try:
        with Image.open(BytesIO(data)) as source:
            return source.convert("RGBA")
    except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
        raise ValueError(f"Файл не является изображением: {name}") from exc
    except (OSError, ValueError) as exc:
        raise ValueError(f"Не удалось декодировать изображение {name}: {exc}") from exc


def measure(data: bytes, name: str = "<bytes>") -> Tuple[int, int]:
    """Возвращает физический размер изображения без полного декодирования."""
    try:
        with Image.open(BytesIO(data)) as source:
            return source.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ValueError(f"Файл не является изображением: {name}") from exc


class ImageService:
    def __init__(self, reporter: Reporter = log_diagnostic) -> None:
        self._reporter = reporter

    def load_image(self, file_path: str | Path, root: str | Path | None = None) -> LoadedImage:
        """Загружает изображение с диска и возвращает его вместе с размерами.

        Args:
            file_path: Путь до файла изображения.
            root: Корень проекта; относительный путь от него становится именем изображения.

        Returns:
            `LoadedImage` с исходными байтами; канонический и физический размер совпадают.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            ValueError: если файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")

        data = path.read_bytes()
        width, height = measure(data, str(path))
        name = path.relative_to(root).as_posix() if root is not None else path.name
        return LoadedImage(
            path=name,
            width=width,
            height=height,
            data=data,
            source_width=width,
            source_height=height,
        )

    def load_directory(self, root: str | Path) -> List[LoadedImage]:
        """Загружает все поддерживаемые изображения из папки (рекурсивно).

        Нераспознанные файлы пропускаются с диагностикой DecodeFailure.
        """
        root_path = Path(root)
        if not root_path.is_dir():
            raise FileNotFoundError(f"Папка не найдена: {root_path}")

        images: List[LoadedImage] = []
        for path in sorted(root_path.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                continue
            try:
                images.append(self.load_image(path, root_path))
            except ValueError as exc:
                self._reporter(Diagnostic(DiagnosticKind.DECODE_FAILURE, path.name, str(exc)))
        logger.debug("Загружено изображений: %d из %s", len(images), root_path)
        return images

    def build_loaded_table(
        self,
        raw_images: Iterable[LoadedImage] = (),
        sprites: Optional[Mapping[str, ReconstructedSprite]] = None,
        page_names: Iterable[str] = (),
    ) -> Mapping[str, LoadedImage]:
        """Собирает неизменяемый снимок таблицы загруженных изображений.

        Страницы атласа исключаются, чтобы не считаться отдельными ассетами.
        Восстановленные спрайты заменяют одноимённые сырые изображения.
        """
        pages = {Path(name).name.lower() for name in page_names}
        table: Dict[str, LoadedImage] = {}
        for image in raw_images:
            if Path(image.path).name.lower() in pages:
                continue
            table[normalize_lookup_key(image.path)] = image

        for name, sprite in (sprites or {}).items():
            table[normalize_lookup_key(name)] = LoadedImage(
                path=name,
                width=sprite.width,
                height=sprite.height,
                data=sprite.data,
                source_width=sprite.source_width,
                source_height=sprite.source_height,
            )
        return MappingProxyType(table)

    def read_pages(self, root: str | Path, page_names: Iterable[str]) -> Dict[str, bytes]:
        """Читает байты страниц атласа; отсутствующие страницы просто не попадают в результат."""
        root_path = Path(root)
        pages: Dict[str, bytes] = {}
        for name in page_names:
            path = root_path / name
            if path.is_file():
                pages[name] = path.read_bytes()
        return pages

    def load_regions(self, file_path: str | Path) -> List[AtlasRegion]:
        """Читает JSON-список регионов атласа."""
        return [AtlasRegion.from_dict(item) for item in self._load_json_list(file_path)]

    def load_stats(self, file_path: str | Path) -> List[GlobalAssetStat]:
        """Читает JSON-список агрегированной статистики."""
        return [GlobalAssetStat.from_dict(item) for item in self._load_json_list(file_path)]

    @staticmethod
    def _load_json_list(file_path: str | Path) -> List[dict]:
        path = Path(file_path)
        if not path.is_file():
            raise FileNotFoundError(f"Файл не найден: {path}")
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Некорректный JSON в {path}: {exc}") from exc
        if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
            raise ValueError(f"{path} должен содержать JSON-массив объектов")
        return payload
