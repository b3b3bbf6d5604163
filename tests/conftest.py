"""Shared synthetic buffers and service wiring for the test-suite."""

from __future__ import annotations

import numpy as np
import pytest

from watermark_remover.models.inpaint_engine import InpaintEngine
from watermark_remover.models.pixel_buffer import PixelBuffer
from watermark_remover.repositories.image_repository import ImageRepository
from watermark_remover.services.background_service import BackgroundService
from watermark_remover.services.region_processor import RegionProcessor
from watermark_remover.services.segmentation_service import SegmentationService
from watermark_remover.services.session_service import SessionService

WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)


def make_noise(width: int = 80, height: int = 60, seed: int = 7) -> PixelBuffer:
    rng = np.random.RandomState(seed)
    pixels = rng.randint(0, 256, (height, width, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return PixelBuffer(pixels)


def make_png(buffer: PixelBuffer) -> bytes:
    return ImageRepository.encode(buffer, "PNG")


def centre_square_segmenter(buffer, progress=None):
    """Stub capability: the middle half of the frame is 'person'."""
    if progress:
        progress("compute", 100)
    mask = np.zeros((buffer.height, buffer.width), dtype=np.uint8)
    h, w = buffer.height, buffer.width
    mask[h // 4: 3 * h // 4, w // 4: 3 * w // 4] = 255
    return mask


@pytest.fixture(autouse=True)
def _fresh_engine_probe():
    InpaintEngine.reset_probe()
    yield
    InpaintEngine.reset_probe()


@pytest.fixture
def white_buffer() -> PixelBuffer:
    return PixelBuffer.blank(100, 100, WHITE)


@pytest.fixture
def noise_buffer() -> PixelBuffer:
    return make_noise()


@pytest.fixture
def processor() -> RegionProcessor:
    """Native algorithms only, so results do not depend on OpenCV."""
    return RegionProcessor(probe_engine=False)


@pytest.fixture
def session_service(processor) -> SessionService:
    segmentation = SegmentationService(segmenter=centre_square_segmenter)
    return SessionService(
        processor=processor,
        background_service=BackgroundService(segmentation),
    )
