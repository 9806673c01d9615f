from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image

from conftest import decode_array, encode_png
from sprite_optimizer.models.diagnostic_model import DiagnosticKind
from sprite_optimizer.services.resample_service import ResampleService


def test_resample_to_target_size(make_png):
    data = ResampleService().resample(make_png(64, 32), 16, 8)

    assert data is not None
    with Image.open(BytesIO(data)) as image:
        assert image.format == "PNG"
        assert image.size == (16, 8)
        assert image.mode == "RGBA"


def test_fractional_target_is_floored(make_png):
    data = ResampleService().resample(make_png(64, 64), 10.9, 5.2)
    with Image.open(BytesIO(data)) as image:
        assert image.size == (10, 5)


def test_transparent_edges_do_not_bleed_color():
    source = Image.new("RGBA", (64, 64), (255, 255, 255, 0))
    source.paste(Image.new("RGBA", (32, 64), (0, 0, 255, 255)), (0, 0))

    arr = decode_array(ResampleService().resample(encode_png(source), 16, 16))

    visible = arr[arr[..., 3] > 0]
    assert visible.size > 0
    # белые прозрачные пиксели не должны осветлять синий
    assert np.all(visible[:, 0] < 8)
    assert np.all(arr[:, -1, 3] == 0)


def test_undecodable_bytes_return_none(collector):
    assert ResampleService(collector).resample(b"garbage", 4, 4, name="bad.png") is None
    assert [e.kind for e in collector.events] == [DiagnosticKind.DECODE_FAILURE]
    assert collector.subjects() == ["bad.png"]


def test_degenerate_target_returns_none(make_png, collector):
    assert ResampleService(collector).resample(make_png(4, 4), 0.5, 4) is None
    assert [e.kind for e in collector.events] == [DiagnosticKind.SURFACE_FAILURE]
