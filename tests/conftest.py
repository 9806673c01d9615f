from __future__ import annotations

from io import BytesIO
from typing import Callable, Tuple

import numpy as np
import pytest
from PIL import Image

from sprite_optimizer.services.diagnostics import DiagnosticCollector


def encode_png(image: Image.Image) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def decode_array(data: bytes) -> np.ndarray:
    with Image.open(BytesIO(data)) as image:
        return np.asarray(image.convert("RGBA"))


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """Фабрика однотонных PNG."""
    def factory(width: int, height: int, color: Tuple[int, int, int, int] = (255, 0, 0, 255)) -> bytes:
        return encode_png(Image.new("RGBA", (width, height), color))
    return factory


@pytest.fixture
def collector() -> DiagnosticCollector:
    return DiagnosticCollector()
