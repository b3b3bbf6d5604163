from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass
class PixelBuffer:
    """
    Simple data object: RGBA pixels, row-major.
    Every strategy reads and writes `pixels` in place.
    """
    pixels: np.ndarray  # Shape (H, W, 4), dtype uint8, RGBA order.

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"PixelBuffer needs (H, W, 4) pixels, got {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"PixelBuffer needs uint8 pixels, got {self.pixels.dtype}")

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def copy(self) -> PixelBuffer:
        return PixelBuffer(self.pixels.copy())

    @classmethod
    def blank(cls, width: int, height: int, color=(255, 255, 255, 255)) -> PixelBuffer:
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :] = color
        return cls(pixels)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> PixelBuffer:
        """
        Accepts grayscale (H, W), RGB (H, W, 3) or RGBA (H, W, 4) uint8 arrays.
        Missing alpha becomes fully opaque.
        """
        arr = np.asarray(arr, dtype=np.uint8)
        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported pixel array shape {arr.shape}")
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=-1)
        return cls(np.ascontiguousarray(arr))
