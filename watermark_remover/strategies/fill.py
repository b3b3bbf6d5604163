from __future__ import annotations

from ..models.pixel_buffer import PixelBuffer
from ..models.region import WorkingWindow
from ..models.strategy import StrategyKind, StrategyParams
from .base import ReconstructionStrategy


class FillStrategy(ReconstructionStrategy):
    """Flat colour fill, meant for solid backgrounds."""
    kind = StrategyKind.FILL
    margin = 0

    def apply(self, buffer: PixelBuffer, window: WorkingWindow, params: StrategyParams) -> None:
        r = window.region
        buffer.pixels[r.y:r.bottom, r.x:r.right] = params.fill_color
