from __future__ import annotations
from typing import Dict, Optional, Sequence, Union
import logging

import cv2
import numpy as np

from ..models.pixel_buffer import PixelBuffer
from ..models.segmentation_engine import ProgressCallback
from ..models.strategy import RGBA, parse_color
from .segmentation_service import SegmentationService

logger = logging.getLogger(__name__)


class BackgroundService:
    """
    Business‑level helper for ID‑photo background replacement.

    • Uses SegmentationService to get the foreground mask.
    • Returns a **new** PixelBuffer containing the composited result;
      the input buffer is never touched.
    """

    PRESET_COLORS: Dict[str, str] = {
        "white": "#FFFFFF",
        "red": "#FF0000",
        "blue": "#438EDB",
        "gray": "#C0C0C0",
        "light-blue": "#E0F0FF",
    }

    def __init__(self, seg_service: SegmentationService | None = None):
        self.seg_service = seg_service or SegmentationService()

    @classmethod
    def resolve_color(cls, color: Union[str, Sequence[int]]) -> RGBA:
        """Preset name ('blue') or any colour parse_color understands."""
        if isinstance(color, str) and color.lower() in cls.PRESET_COLORS:
            color = cls.PRESET_COLORS[color.lower()]
        return parse_color(color)

    @staticmethod
    def _compose(
            fg: np.ndarray,
            alpha_u8: np.ndarray,
            bg: np.ndarray,
            radius: int = 0  # ←  edge‑softness control
    ) -> np.ndarray:
        """
        Alpha‑blend foreground over background with adjustable feather radius.

        • radius = 0    ‑‑ hard cut, like the original tool
        • radius = 4‑6  ‑‑ typical studio fade
        """
        if radius > 0:
            alpha_u8 = cv2.GaussianBlur(alpha_u8, (0, 0),
                                        sigmaX=radius, sigmaY=radius)

        alpha = alpha_u8.astype("float32")[..., None] / 255.0   # (H,W,1)

        return np.rint(fg.astype("float32") * alpha +
                       bg.astype("float32") * (1.0 - alpha)).astype("uint8")

    # --------------------------------------------------------------
    def replace_with_color(
            self,
            buffer: PixelBuffer,
            color: Union[str, Sequence[int]] = "white",
            feather: int = 0,
            progress: Optional[ProgressCallback] = None,
    ) -> PixelBuffer:
        """
        Keep the segmented subject, paint everything else `color`.
        The result is fully opaque.
        """
        rgba = self.resolve_color(color)
        mask = self.seg_service.mask_foreground(buffer, progress)

        # Transparent source pixels count as background too.
        alpha = (mask.astype("uint16") * buffer.pixels[..., 3] // 255).astype("uint8")

        bg = np.empty_like(buffer.pixels)
        bg[:, :] = rgba
        bg[..., 3] = 255
        fg = buffer.pixels.copy()
        fg[..., 3] = 255

        out = self._compose(fg, alpha, bg, radius=feather)
        logger.info(f"Background replaced with {rgba} on {buffer.width}x{buffer.height} image")
        return PixelBuffer(out)
