"""Interchangeable reconstruction strategies, one per StrategyKind."""
from __future__ import annotations
from typing import Dict

from ..models.inpaint_engine import InpaintEngine
from ..models.strategy import StrategyKind
from .base import ReconstructionStrategy
from .blur import BlurStrategy
from .fill import FillStrategy
from .inpaint import InpaintStrategy
from .mosaic import MosaicStrategy


def build_strategies(engine: InpaintEngine | None = None) -> Dict[StrategyKind, ReconstructionStrategy]:
    """
    Wire the four strategies. `engine` is the already-probed professional
    inpainting capability (or None) and is shared by Inpaint and Mosaic.
    """
    blur = BlurStrategy()
    inpaint = InpaintStrategy(engine)
    return {
        StrategyKind.BLUR: blur,
        StrategyKind.FILL: FillStrategy(),
        StrategyKind.INPAINT: inpaint,
        StrategyKind.MOSAIC: MosaicStrategy(inpaint=inpaint, blur=blur),
    }


__all__ = [
    "ReconstructionStrategy",
    "BlurStrategy",
    "FillStrategy",
    "InpaintStrategy",
    "MosaicStrategy",
    "build_strategies",
]
