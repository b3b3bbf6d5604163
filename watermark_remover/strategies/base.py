from __future__ import annotations
from abc import ABC, abstractmethod

from ..models.pixel_buffer import PixelBuffer
from ..models.region import WorkingWindow
from ..models.strategy import StrategyKind, StrategyParams


class ReconstructionStrategy(ABC):
    """
    One way of synthesising replacement pixels for a region.

    The processor builds the WorkingWindow from `margin`; implementations
    read and write `buffer.pixels` only inside that window.
    """
    kind: StrategyKind
    margin: int = 0

    @abstractmethod
    def apply(self, buffer: PixelBuffer, window: WorkingWindow, params: StrategyParams) -> None:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(margin={self.margin})"
