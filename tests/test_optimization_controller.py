from __future__ import annotations

import zipfile
from io import BytesIO

import pytest
from PIL import Image

from conftest import encode_png
from sprite_optimizer.controllers.optimization_controller import OptimizationController
from sprite_optimizer.models.atlas_model import AtlasRegion
from sprite_optimizer.models.image_model import GlobalAssetStat
from sprite_optimizer.models.settings_model import OptimizerSettings
from sprite_optimizer.services.diagnostics import DiagnosticCollector


@pytest.fixture
def project(tmp_path, make_png):
    (tmp_path / "ui").mkdir()
    (tmp_path / "ui" / "button.png").write_bytes(make_png(40, 20))
    (tmp_path / "unused.png").write_bytes(make_png(10, 10))
    (tmp_path / "hero.png").write_bytes(encode_png(Image.new("RGBA", (64, 64), (0, 128, 0, 255))))
    regions = [
        AtlasRegion(name="hero/arm", page_name="hero.png", x=0, y=0, width=32, height=16,
                    original_width=32, original_height=16),
        AtlasRegion(name="hero/leg", page_name="hero.png", x=32, y=0, width=16, height=32, rotated=True),
    ]
    return tmp_path, regions


def test_full_flow(project, tmp_path):
    root, regions = project
    stages = []
    controller = OptimizationController(
        settings=OptimizerSettings(buffer_percent=0),
        reporter=DiagnosticCollector(),
        on_progress=lambda stage, c, t: stages.append((stage, c, t)),
    )

    loaded = controller.load(root, regions)
    assert sorted(loaded) == ["hero/arm", "hero/leg", "ui/button.png", "unused.png"]

    tasks = controller.plan([
        GlobalAssetStat("hero/arm", 16, 8),
        GlobalAssetStat("hero/leg", 100, 100),
        GlobalAssetStat("ui/button.png", 20, 10),
    ])
    assert [task.file_name for task in tasks] == ["ui/button.png", "hero/arm.png", "hero/leg.png"]
    assert (tasks[2].target_width, tasks[2].target_height) == (32, 16)

    output = tmp_path / "out.zip"
    archive = controller.export(output)
    assert output.read_bytes() == archive
    with zipfile.ZipFile(BytesIO(archive)) as zf:
        assert sorted(zf.namelist()) == [
            "images_optimized/hero/arm.png",
            "images_optimized/hero/leg.png",
            "images_optimized/ui/button.png",
        ]
        with Image.open(BytesIO(zf.read("images_optimized/hero/arm.png"))) as image:
            assert image.size == (16, 8)

    assert ("unpack", 2, 2) in stages
    assert stages[-1] == ("pack", 3, 3)


def test_replanning_with_new_buffer_replaces_tasks(project):
    root, regions = project
    controller = OptimizationController(reporter=DiagnosticCollector())
    controller.load(root, regions)

    first = controller.plan([GlobalAssetStat("ui/button.png", 20, 10)])
    second = controller.plan(buffer_percent=50)

    assert first[0].target_width == 20
    assert second[0].target_width == 30
    assert controller.tasks == second
    assert controller.summary().resized_count == 1


def test_export_subset(project):
    root, regions = project
    controller = OptimizationController(reporter=DiagnosticCollector())
    controller.load(root, regions)
    tasks = controller.plan([GlobalAssetStat("ui/button.png", 20, 10), GlobalAssetStat("hero/arm", 32, 16)])

    with zipfile.ZipFile(BytesIO(controller.export(tasks=tasks[:1]))) as zf:
        assert zf.namelist() == ["images_optimized/ui/button.png"]

    with Image.open(BytesIO(controller.export_one(tasks[0]))) as image:
        assert image.size == (20, 10)


def test_missing_page_is_reported_not_fatal(tmp_path, make_png):
    (tmp_path / "loose.png").write_bytes(make_png(4, 4))
    collector = DiagnosticCollector()
    controller = OptimizationController(reporter=collector)

    loaded = controller.load(tmp_path, [AtlasRegion(name="a", page_name="gone.png", x=0, y=0, width=2, height=2)])

    assert list(loaded) == ["loose.png"]
    assert collector.subjects() == ["gone.png"]


def test_negative_buffer_is_rejected():
    with pytest.raises(ValueError):
        OptimizerSettings(buffer_percent=-1)
