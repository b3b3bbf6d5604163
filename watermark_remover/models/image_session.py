from __future__ import annotations
from dataclasses import dataclass, field
from typing import List
import threading

from .pixel_buffer import PixelBuffer
from .region import Region


@dataclass
class ImageSession:
    """
    Per-image editing state.
    `original` is never mutated; `current` is replaced by each removal pass.
    """
    id: str
    original: PixelBuffer
    current: PixelBuffer
    name: str = ""
    regions: List[Region] = field(default_factory=list)
    # Serialises removal passes on this image.
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def reset(self) -> None:
        """Discard every reconstruction and every selected region."""
        self.current = self.original.copy()
        self.regions.clear()

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "width": self.original.width,
            "height": self.original.height,
            "regions": [r.to_dict() for r in self.regions],
        }
