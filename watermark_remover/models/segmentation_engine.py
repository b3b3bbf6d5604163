# models/segmentation_engine.py
"""
Singleton wrapper around MediaPipe Selfie Segmentation.

• Loads the TFLite graph once per Python process.
• Exposes .predict(rgb)  →  float mask (H, W) in [0, 1].
• Reports ("fetch-model" | "compute", percent) through an optional callback.
"""
from __future__ import annotations
from typing import Callable, Optional
import logging

import numpy as np

from ..exceptions import CapabilityUnavailableError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int], None]


class SegmentationEngine:
    _instance: "SegmentationEngine" | None = None

    def __new__(cls, progress: Optional[ProgressCallback] = None):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._init_runtime(progress)
            cls._instance = instance
        return cls._instance

    # --------------------------------------------------
    def _init_runtime(self, progress: Optional[ProgressCallback]) -> None:
        if progress:
            progress("fetch-model", 0)
        try:
            import mediapipe as mp
            # model_selection=1  → landscape / selfie quality
            self._mp_seg = mp.solutions.selfie_segmentation.SelfieSegmentation(
                model_selection=1
            )
        except (ImportError, AttributeError, RuntimeError) as err:
            raise CapabilityUnavailableError(f"MediaPipe segmentation unavailable: {err}") from err
        if progress:
            progress("fetch-model", 100)
        logger.info("MediaPipe selfie segmentation loaded")

    # --------------------------------------------------
    def predict(self, rgb: np.ndarray, progress: Optional[ProgressCallback] = None) -> np.ndarray:
        """
        Args
        ----
        rgb : np.ndarray  (H, W, 3)  uint8  RGB order

        Returns
        -------
        mask : np.ndarray  (H, W)  float32  [0, 1]
        """
        if progress:
            progress("compute", 0)
        results = self._mp_seg.process(np.ascontiguousarray(rgb))
        if progress:
            progress("compute", 100)
        return results.segmentation_mask.astype("float32")
