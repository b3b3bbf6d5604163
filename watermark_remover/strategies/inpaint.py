from __future__ import annotations
import logging
import os

import numpy as np
from dotenv import load_dotenv

from ..models.inpaint_engine import InpaintEngine
from ..models.pixel_buffer import PixelBuffer
from ..models.region import WorkingWindow
from ..models.strategy import StrategyKind, StrategyParams
from .base import ReconstructionStrategy

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def boundary_diffusion(rgba: np.ndarray, mask: np.ndarray, iterations: int) -> int:
    """
    Fill masked pixels of `rgba` in place from their unmasked 8-neighbours.

    Each pass walks the still-masked pixels in raster order. A pixel with at
    least one unmasked neighbour takes their mean colour, becomes opaque and
    is unmasked at once, so pixels later in the same pass can build on it.
    Pixels with no unmasked neighbour wait for the next pass.

    Returns the number of pixels left masked after `iterations` passes.
    """
    h, w = mask.shape
    pending = [tuple(p) for p in np.argwhere(mask)]

    for _ in range(iterations):
        if not pending:
            break
        waiting = []
        for y, x in pending:
            y0, y1 = max(0, y - 1), min(h, y + 2)
            x0, x1 = max(0, x - 1), min(w, x + 2)
            known = ~mask[y0:y1, x0:x1]
            if not known.any():
                waiting.append((y, x))
                continue
            neighbours = rgba[y0:y1, x0:x1, :3][known].astype(np.float64)
            rgba[y, x, :3] = np.rint(neighbours.mean(axis=0))
            rgba[y, x, 3] = 255
            mask[y, x] = False
        pending = waiting

    return len(pending)


class InpaintStrategy(ReconstructionStrategy):
    """
    Inpainting from the region boundary inwards.

    `engine` is the optional professional capability, resolved once by
    whoever builds the strategy; None means native diffusion only. Any
    engine failure drops back to the native algorithm for that region.
    """
    kind = StrategyKind.INPAINT
    margin = int(os.getenv("INPAINT_MARGIN", "15"))

    def __init__(self, engine: InpaintEngine | None = None):
        self.engine = engine

    def apply(self, buffer: PixelBuffer, window: WorkingWindow, params: StrategyParams) -> None:
        win = buffer.pixels[window.slices]
        mask = window.mask()

        if self.engine is not None:
            try:
                win[...] = self.engine.inpaint(win.copy(), mask, params.inpaint_radius)
                return
            except Exception as err:
                logger.info(f"Professional inpaint failed on {window.region}, "
                            f"using native diffusion: {err}")

        left = boundary_diffusion(win, mask, params.inpaint_iterations)
        if left:
            logger.debug(f"{left} px of {window.region} still unfilled after "
                         f"{params.inpaint_iterations} passes")
