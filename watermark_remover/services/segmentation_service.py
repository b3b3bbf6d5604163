# services/segmentation_service.py
from __future__ import annotations
from typing import Callable, Optional
import logging
import os

import numpy as np
from dotenv import load_dotenv

from ..models.pixel_buffer import PixelBuffer
from ..models.segmentation_engine import ProgressCallback
from ..repositories.segmentation_repository import SegmentationRepository

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# segment(buffer, progress) -> (H, W) uint8 alpha mask, 255 = keep
Segmenter = Callable[[PixelBuffer, Optional[ProgressCallback]], np.ndarray]


class SegmentationService:
    """
    Foreground masks at the business‑logic layer.

    `segmenter` injects any foreground/background capability; by default the
    MediaPipe-backed SegmentationRepository is used.
    """

    def __init__(self, segmenter: Segmenter | None = None) -> None:
        self.threshold = float(os.getenv("SEGMENTATION_THRESHOLD", "0.5"))
        self._segmenter = segmenter
        self._repo: SegmentationRepository | None = None

    def _default_segmenter(self, buffer: PixelBuffer, progress: Optional[ProgressCallback]) -> np.ndarray:
        if self._repo is None:
            self._repo = SegmentationRepository()
        return self._repo.retrieve_mask(buffer.pixels[..., :3], self.threshold, progress)

    def mask_foreground(
        self,
        buffer: PixelBuffer,
        progress: Optional[ProgressCallback] = None,
    ) -> np.ndarray:
        segment = self._segmenter or self._default_segmenter
        mask = np.asarray(segment(buffer, progress), dtype=np.uint8)
        if mask.shape != (buffer.height, buffer.width):
            raise ValueError(
                f"Segmenter returned mask {mask.shape}, expected {(buffer.height, buffer.width)}"
            )
        logger.debug(f"Foreground covers {(mask > 127).mean():.1%} of {buffer.width}x{buffer.height}")
        return mask
