# repositories/segmentation_repository.py
from __future__ import annotations
from typing import Optional

import cv2
import numpy as np

from ..models.segmentation_engine import ProgressCallback, SegmentationEngine


class SegmentationRepository:
    """
    One‑image inference + mask cleanup.

    • Calls MediaPipe engine (loaded lazily on first use).
    • Post‑processes raw mask to sharpen hair / shoulder edges.
    """

    def __init__(self) -> None:
        self._engine: SegmentationEngine | None = None

    def _get_engine(self, progress: Optional[ProgressCallback]) -> SegmentationEngine:
        if self._engine is None:
            self._engine = SegmentationEngine(progress)
        elif progress:
            progress("fetch-model", 100)
        return self._engine

    # ---------- private helpers ----------
    @staticmethod
    def clean_mask(mask_u8: np.ndarray) -> np.ndarray:
        """
        1) Close small holes
        2) Erode 1 px fringe
        3) Feather edge, re‑threshold
        """
        kernel = np.ones((5, 5), np.uint8)

        closed = cv2.morphologyEx(mask_u8, cv2.MORPH_CLOSE, kernel, iterations=2)
        eroded = cv2.erode(closed, np.ones((2, 2), np.uint8), iterations=1)

        blur = cv2.GaussianBlur(eroded, (0, 0), sigmaX=3, sigmaY=3)
        return (blur > 20).astype("uint8") * 255   # keep soft tail

    # ---------- public API ----------
    def retrieve_mask(
        self,
        rgb: np.ndarray,
        thr: float = 0.5,
        progress: Optional[ProgressCallback] = None,
    ) -> np.ndarray:
        """
        Returns uint8 mask (H, W) with 0‑255 values, 255 = foreground.
        thr : soft‑mask threshold in [0,1]
        """
        soft = self._get_engine(progress).predict(rgb, progress)   # float32 0‑1
        raw = (soft > thr).astype("uint8") * 255
        return self.clean_mask(raw)
