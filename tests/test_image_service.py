from __future__ import annotations

import json

import pytest

from sprite_optimizer.models.atlas_model import ReconstructedSprite
from sprite_optimizer.models.diagnostic_model import DiagnosticKind
from sprite_optimizer.services.image_service import ImageService, decode_rgba, normalize_lookup_key


def test_normalize_lookup_key():
    assert normalize_lookup_key("Characters\\Hero.PNG") == "characters/hero.png"


def test_decode_rgba_rejects_garbage():
    with pytest.raises(ValueError):
        decode_rgba(b"nope", "nope.png")


def test_load_image_uses_relative_path(tmp_path, make_png):
    (tmp_path / "chars").mkdir()
    (tmp_path / "chars" / "hero.png").write_bytes(make_png(12, 7))

    image = ImageService().load_image(tmp_path / "chars" / "hero.png", tmp_path)

    assert image.path == "chars/hero.png"
    assert (image.physical_width, image.physical_height) == (12, 7)


def test_load_image_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ImageService().load_image(tmp_path / "absent.png")


def test_load_directory_skips_undecodable_files(tmp_path, make_png, collector):
    (tmp_path / "ok.png").write_bytes(make_png(4, 4))
    (tmp_path / "broken.png").write_bytes(b"not a png")
    (tmp_path / "notes.txt").write_text("ignored")

    images = ImageService(collector).load_directory(tmp_path)

    assert [image.path for image in images] == ["ok.png"]
    assert [e.kind for e in collector.events] == [DiagnosticKind.DECODE_FAILURE]


def test_build_loaded_table_merges_and_excludes_pages(tmp_path, make_png):
    service = ImageService()
    (tmp_path / "raw.png").write_bytes(make_png(4, 4))
    (tmp_path / "hero.png").write_bytes(make_png(64, 64))
    raw = service.load_directory(tmp_path)
    sprite = ReconstructedSprite(name="Hero/Arm", width=8, height=6, data=b"png", source_width=8, source_height=6)

    table = service.build_loaded_table(raw, {"Hero/Arm": sprite}, page_names=["hero.png"])

    assert sorted(table) == ["hero/arm", "raw.png"]
    assert table["hero/arm"].path == "Hero/Arm"
    assert (table["hero/arm"].physical_width, table["hero/arm"].physical_height) == (8, 6)
    with pytest.raises(TypeError):
        table["x"] = table["raw.png"]


def test_load_regions_and_stats(tmp_path):
    regions_file = tmp_path / "regions.json"
    regions_file.write_text(json.dumps([
        {"name": "arm", "pageName": "hero.png", "x": 0, "y": 0, "width": 4, "height": 2,
         "originalWidth": 4, "originalHeight": 2},
    ]))
    stats_file = tmp_path / "stats.json"
    stats_file.write_text(json.dumps([
        {"lookupKey": "arm", "maxRenderWidth": 2, "maxRenderHeight": 1, "isOverridden": True,
         "overridePercentage": 50},
    ]))

    service = ImageService()
    [region] = service.load_regions(regions_file)
    [stat] = service.load_stats(stats_file)

    assert region.page_name == "hero.png"
    assert stat.is_overridden is True
    assert stat.override_percentage == 50


def test_load_stats_rejects_bad_payloads(tmp_path):
    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{")
    not_list = tmp_path / "object.json"
    not_list.write_text("{}")
    no_key = tmp_path / "nokey.json"
    no_key.write_text(json.dumps([{"maxRenderWidth": 1}]))

    service = ImageService()
    for path in (bad_json, not_list, no_key):
        with pytest.raises(ValueError):
            service.load_stats(path)
