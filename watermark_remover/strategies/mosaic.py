from __future__ import annotations
import logging
import os

import numpy as np
from dotenv import load_dotenv

from ..models.pixel_buffer import PixelBuffer
from ..models.region import WorkingWindow
from ..models.strategy import StrategyKind, StrategyParams
from .base import ReconstructionStrategy
from .blur import BlurStrategy
from .inpaint import InpaintStrategy

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def source_patch_origins(window: WorkingWindow, patch_size: int, stride: int) -> np.ndarray:
    """
    Window-relative (x, y) origins of every patch_size² block that lies
    entirely outside the region, scanned on a `stride` grid.
    """
    mask = window.mask()
    # Integral image: masked-pixel count of any block in O(1).
    integral = np.zeros((window.height + 1, window.width + 1), dtype=np.int64)
    integral[1:, 1:] = mask.cumsum(axis=0).cumsum(axis=1)

    ys = np.arange(0, window.height - patch_size, stride)
    xs = np.arange(0, window.width - patch_size, stride)
    if ys.size == 0 or xs.size == 0:
        return np.empty((0, 2), dtype=np.int64)

    gy, gx = np.meshgrid(ys, xs, indexing="ij")
    covered = (integral[gy + patch_size, gx + patch_size]
               - integral[gy, gx + patch_size]
               - integral[gy + patch_size, gx]
               + integral[gy, gx])
    free = covered == 0
    return np.stack([gx[free], gy[free]], axis=1)


class MosaicStrategy(ReconstructionStrategy):
    """
    Texture synthesis: every region pixel copies the matching offset of a
    randomly chosen clean patch from the margin, then one light blur hides
    the seams. No clean patch → inpaint that region instead.
    """
    kind = StrategyKind.MOSAIC
    margin = int(os.getenv("MOSAIC_MARGIN", "30"))

    def __init__(self, inpaint: InpaintStrategy | None = None, blur: BlurStrategy | None = None):
        self.inpaint = inpaint or InpaintStrategy()
        self.blur = blur or BlurStrategy()

    def apply(self, buffer: PixelBuffer, window: WorkingWindow, params: StrategyParams) -> None:
        region = window.region
        origins = source_patch_origins(window, params.patch_size, params.patch_stride)

        if len(origins) == 0:
            logger.info(f"No clean {params.patch_size}px source patch around {region}, "
                        f"falling back to inpaint")
            fallback = WorkingWindow.around(region, self.inpaint.margin, buffer.width, buffer.height)
            self.inpaint.apply(buffer, fallback, params)
            return

        win = buffer.pixels[window.slices]
        snapshot = win.copy()
        rows, cols = window.region_slices
        ty, tx = np.mgrid[rows, cols]
        ty, tx = ty.ravel(), tx.ravel()

        rng = np.random.default_rng(params.seed)
        picks = origins[rng.integers(0, len(origins), size=ty.size)]
        sx = picks[:, 0] + tx % params.patch_size
        sy = picks[:, 1] + ty % params.patch_size
        win[ty, tx, :3] = snapshot[sy, sx, :3]

        seam_window = WorkingWindow.around(region, self.blur.margin, buffer.width, buffer.height)
        self.blur.blur(buffer, seam_window, params.seam_blur_strength)
