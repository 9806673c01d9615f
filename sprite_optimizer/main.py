"""Точка входа в приложение."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from sprite_optimizer.controllers.optimization_controller import OptimizationController
from sprite_optimizer.models.settings_model import OptimizerSettings
from sprite_optimizer.services.image_service import ImageService
from sprite_optimizer.services.package_service import PackagingError

logger = logging.getLogger("sprite_optimizer")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sprite-optimizer",
        description="Уменьшает спрайты до минимального безопасного размера и упаковывает их в ZIP.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--images", help="Папка с изображениями и страницами атласов")
    parser.add_argument("--regions", help="JSON-список регионов атласа")
    parser.add_argument("--stats", required=True, help="JSON-список статистики использования")
    parser.add_argument("--buffer", type=float, default=0.0, help="Запас к требуемому размеру, %%")
    parser.add_argument("--output", default="images_resized.zip", help="Путь к выходному архиву")
    parser.add_argument("--dry-run", action="store_true", help="Только показать план, без архива")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Подробный лог")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Только ошибки")
    return parser


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _print_plan(controller: OptimizationController) -> None:
    for task in controller.tasks:
        marker = "resize" if task.is_resize else "keep"
        print(
            f"{marker:6} {task.file_name}: {task.original_width}x{task.original_height}"
            f" -> {task.target_width}x{task.target_height}"
        )
    summary = controller.summary()
    print(f"Задач: {summary.total}, уменьшается: {summary.resized_count}, экономия пикселей: {summary.reduction_percent}%")


def main(argv: Optional[List[str]] = None) -> int:
    """Разбирает аргументы, строит план и собирает архив."""
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose, args.quiet)

    try:
        settings = OptimizerSettings(buffer_percent=args.buffer)
        loader = ImageService()
        regions = loader.load_regions(args.regions) if args.regions else []
        stats = loader.load_stats(args.stats)

        controller = OptimizationController(settings=settings)
        controller.load(args.images, regions)
        controller.plan(stats)
        _print_plan(controller)
        if not args.dry_run:
            controller.export(args.output)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    except PackagingError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
