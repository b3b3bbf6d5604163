from __future__ import annotations
import math
import os

import numpy as np
from dotenv import load_dotenv

from ..models.pixel_buffer import PixelBuffer
from ..models.region import WorkingWindow
from ..models.strategy import StrategyKind, StrategyParams
from .base import ReconstructionStrategy

# Load environment variables
load_dotenv()


def kernel_radius(strength: int) -> int:
    """max(3, round(strength / 2)), rounding halves away from zero."""
    return max(3, int(math.floor(strength / 2 + 0.5)))


def _gaussian_weights(radius: int) -> np.ndarray:
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    return np.exp(-(offsets ** 2) / (2.0 * radius * radius))


def _normalised_pass_1d(src: np.ndarray, weights: np.ndarray, axis: int) -> np.ndarray:
    """
    Weighted average along one axis, ignoring neighbours past the edge.

    Off-edge taps contribute to neither the sum nor the normaliser, so
    border pixels keep their brightness instead of fading to black.
    """
    radius = len(weights) // 2
    n = src.shape[axis]
    pad = [(0, 0)] * src.ndim
    pad[axis] = (radius, radius)
    padded = np.pad(src, pad)
    valid = np.pad(np.ones(n), (radius, radius))

    acc = np.zeros_like(src)
    norm = np.zeros(n)
    for i, w in enumerate(weights):
        acc += w * np.take(padded, np.arange(i, i + n), axis=axis)
        norm += w * valid[i:i + n]

    shape = [1] * src.ndim
    shape[axis] = n
    return acc / norm.reshape(shape)


def gaussian_smooth(rgb: np.ndarray, radius: int, iterations: int) -> np.ndarray:
    """
    Normalised Gaussian average of an (h, w, 3) float array, `iterations` times.

    The 2-D kernel exp(-d²/2r²) over the square (2r+1)² neighbourhood
    factorises into a row pass and a column pass; with edge-aware
    normalisation on both passes the result equals the direct 2-D sum.
    Each pass is quantised to uint8 like the buffer it would be stored in.
    """
    weights = _gaussian_weights(radius)
    out = rgb.astype(np.float64)
    for _ in range(iterations):
        out = _normalised_pass_1d(out, weights, axis=1)
        out = _normalised_pass_1d(out, weights, axis=0)
        out = np.clip(np.rint(out), 0, 255)
    return out


class BlurStrategy(ReconstructionStrategy):
    """
    Edge-diffusion smoothing.

    The whole working window (region + untouched margin) is blurred so the
    region is informed by real surrounding content; only region pixels are
    written back. Alpha is left alone.
    """
    kind = StrategyKind.BLUR
    margin = int(os.getenv("BLUR_MARGIN", "20"))

    def apply(self, buffer: PixelBuffer, window: WorkingWindow, params: StrategyParams) -> None:
        self.blur(buffer, window, params.blur_strength, params.blur_iterations)

    @staticmethod
    def blur(buffer: PixelBuffer, window: WorkingWindow, strength: int, iterations: int = 2) -> None:
        radius = kernel_radius(strength)
        win_rgb = buffer.pixels[window.slices][..., :3]
        smoothed = gaussian_smooth(win_rgb, radius, iterations)

        r = window.region
        rows, cols = window.region_slices
        buffer.pixels[r.y:r.bottom, r.x:r.right, :3] = smoothed[rows, cols].astype(np.uint8)
