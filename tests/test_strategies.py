"""Behaviour of the four reconstruction strategies in isolation."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import RED, make_noise
from watermark_remover.models.pixel_buffer import PixelBuffer
from watermark_remover.models.region import Region, WorkingWindow
from watermark_remover.models.strategy import StrategyParams
from watermark_remover.strategies import (
    BlurStrategy,
    FillStrategy,
    InpaintStrategy,
    MosaicStrategy,
)
from watermark_remover.strategies.blur import gaussian_smooth, kernel_radius
from watermark_remover.strategies.inpaint import boundary_diffusion
from watermark_remover.strategies.mosaic import source_patch_origins


def _window(buffer: PixelBuffer, region: Region, margin: int) -> WorkingWindow:
    return WorkingWindow.around(region, margin, buffer.width, buffer.height)


def _outside(buffer: PixelBuffer, region: Region) -> np.ndarray:
    keep = np.ones((buffer.height, buffer.width), dtype=bool)
    keep[region.y:region.bottom, region.x:region.right] = False
    return buffer.pixels[keep]


# ---------------------------------------------------------------------------
# Fill
# ---------------------------------------------------------------------------


def test_fill_sets_exact_color(noise_buffer):
    region = Region(10, 5, 30, 20)
    before = noise_buffer.copy()
    FillStrategy().apply(noise_buffer, _window(noise_buffer, region, 0),
                         StrategyParams(fill_color="#12345678"))

    block = noise_buffer.pixels[5:25, 10:40]
    assert (block == (0x12, 0x34, 0x56, 0x78)).all()
    assert np.array_equal(_outside(noise_buffer, region), _outside(before, region))


# ---------------------------------------------------------------------------
# Blur
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("strength, radius", [(0, 3), (6, 3), (7, 4), (10, 5), (30, 15)])
def test_kernel_radius(strength, radius):
    assert kernel_radius(strength) == radius


def _direct_smooth(rgb: np.ndarray, radius: int) -> np.ndarray:
    expected = np.zeros_like(rgb)
    h, w = rgb.shape[:2]
    for y in range(h):
        for x in range(w):
            acc = np.zeros(3)
            total = 0.0
            for dy in range(-radius, radius + 1):
                for dx in range(-radius, radius + 1):
                    ny, nx = y + dy, x + dx
                    if 0 <= ny < h and 0 <= nx < w:
                        weight = np.exp(-(dx * dx + dy * dy) / (2 * radius * radius))
                        acc += rgb[ny, nx] * weight
                        total += weight
            expected[y, x] = np.rint(acc / total)
    return expected


def test_gaussian_smooth_matches_direct_2d_sum():
    rng = np.random.RandomState(3)
    rgb = rng.randint(0, 256, (9, 11, 3)).astype(np.float64)

    got = gaussian_smooth(rgb, 3, iterations=1)
    assert np.abs(got - _direct_smooth(rgb, 3)).max() <= 1


def test_second_pass_reads_rounded_first_pass():
    rng = np.random.RandomState(5)
    rgb = rng.randint(0, 256, (10, 12, 3)).astype(np.float64)

    expected = _direct_smooth(_direct_smooth(rgb, 4), 4)
    got = gaussian_smooth(rgb, 4, iterations=2)
    assert np.abs(got - expected).max() <= 1


def test_blur_touching_image_edge_does_not_darken():
    buf = PixelBuffer.blank(40, 40, (200, 150, 100, 255))
    region = Region(0, 0, 15, 15)
    BlurStrategy().apply(buf, _window(buf, region, BlurStrategy.margin), StrategyParams(blur_strength=20))
    assert (buf.pixels[..., :3] == (200, 150, 100)).all()


def test_blur_writes_region_only_and_keeps_alpha(noise_buffer):
    noise_buffer.pixels[..., 3] = 77
    before = noise_buffer.copy()
    region = Region(20, 15, 25, 20)

    BlurStrategy().apply(noise_buffer, _window(noise_buffer, region, 20), StrategyParams())

    assert np.array_equal(_outside(noise_buffer, region), _outside(before, region))
    assert (noise_buffer.pixels[..., 3] == 77).all()
    inside = noise_buffer.pixels[15:35, 20:45, :3].astype(float)
    # Noise is flattened towards its mean.
    assert inside.std() < before.pixels[15:35, 20:45, :3].astype(float).std() / 2


def test_blur_pulls_region_towards_surroundings(white_buffer):
    white_buffer.pixels[40:60, 40:60] = RED
    region = Region(40, 40, 20, 20)
    BlurStrategy().apply(white_buffer, _window(white_buffer, region, 20), StrategyParams(blur_strength=20))
    corner = white_buffer.pixels[40, 40]
    # Corner pixel now mixes in the white margin.
    assert corner[1] > 0 and corner[2] > 0


# ---------------------------------------------------------------------------
# Inpaint
# ---------------------------------------------------------------------------


def test_native_inpaint_converges_on_uniform_background(white_buffer):
    white_buffer.pixels[45:55, 45:55] = RED
    region = Region(45, 45, 10, 10)
    InpaintStrategy().apply(white_buffer, _window(white_buffer, region, 15), StrategyParams())
    assert (white_buffer.pixels == 255).all()


def test_boundary_diffusion_reports_unfilled_pixels():
    rgba = np.zeros((5, 5, 4), dtype=np.uint8)
    mask = np.ones((5, 5), dtype=bool)
    # Nothing known anywhere: nothing can be filled.
    assert boundary_diffusion(rgba, mask, 20) == 25
    mask[0, 0] = False
    rgba[0, 0] = (10, 20, 30, 255)
    assert boundary_diffusion(rgba, mask, 20) == 0
    assert (rgba[..., :3] == (10, 20, 30)).all()
    assert not mask.any()


def test_boundary_diffusion_waits_for_neighbours_at_image_corner():
    # Region glued to the top-left corner: first pixels have no known neighbour.
    rgba = np.zeros((8, 8, 4), dtype=np.uint8)
    rgba[..., :3] = 90
    rgba[..., 3] = 255
    mask = np.zeros((8, 8), dtype=bool)
    mask[:5, :5] = True
    rgba[:5, :5] = RED
    left = boundary_diffusion(rgba, mask, 20)
    assert left == 0
    assert (rgba[..., :3] == 90).all()


def test_inpaint_only_touches_region(noise_buffer):
    before = noise_buffer.copy()
    region = Region(30, 20, 12, 9)
    InpaintStrategy().apply(noise_buffer, _window(noise_buffer, region, 15), StrategyParams())
    assert np.array_equal(_outside(noise_buffer, region), _outside(before, region))


class _PaintEngine:
    """Fake professional engine that paints masked pixels a marker colour."""

    def __init__(self):
        self.calls = []

    def inpaint(self, rgba, mask, radius):
        self.calls.append((rgba.shape, int(mask.sum()), radius))
        out = rgba.copy()
        out[mask] = (1, 2, 3, 255)
        return out


class _BrokenEngine:
    def inpaint(self, rgba, mask, radius):
        raise RuntimeError("engine crashed")


def test_inpaint_uses_injected_engine(white_buffer):
    engine = _PaintEngine()
    region = Region(10, 10, 8, 6)
    InpaintStrategy(engine).apply(white_buffer, _window(white_buffer, region, 15),
                                  StrategyParams(inpaint_radius=7))
    assert engine.calls == [((31, 33, 4), 48, 7)]
    assert (white_buffer.pixels[10:16, 10:18] == (1, 2, 3, 255)).all()


def test_inpaint_falls_back_when_engine_raises(white_buffer):
    white_buffer.pixels[20:30, 20:30] = RED
    region = Region(20, 20, 10, 10)
    InpaintStrategy(_BrokenEngine()).apply(white_buffer, _window(white_buffer, region, 15),
                                           StrategyParams())
    assert (white_buffer.pixels == 255).all()


# ---------------------------------------------------------------------------
# Mosaic
# ---------------------------------------------------------------------------


def _two_tone_noise(size: int = 120, seed: int = 11) -> PixelBuffer:
    rng = np.random.RandomState(seed)
    tone = rng.randint(0, 2, (size, size)).astype(np.uint8) * 255
    return PixelBuffer.from_array(tone)


def test_source_patches_never_overlap_region():
    buf = PixelBuffer.blank(100, 100)
    region = Region(40, 40, 20, 20)
    window = _window(buf, region, 30)
    origins = source_patch_origins(window, 7, 2)
    assert len(origins) > 0
    rows, cols = window.region_slices
    for x, y in origins:
        overlap_x = x < cols.stop and x + 7 > cols.start
        overlap_y = y < rows.stop and y + 7 > rows.start
        assert not (overlap_x and overlap_y)
        assert x + 7 < window.width and y + 7 < window.height


def test_mosaic_synthesises_from_margin_statistics():
    buf = _two_tone_noise()
    buf.pixels[50:70, 50:70] = RED
    region = Region(50, 50, 20, 20)
    MosaicStrategy().apply(buf, _window(buf, region, 30), StrategyParams(seed=5))

    block = buf.pixels[50:70, 50:70, :3].astype(float)
    # Sources are gray, so every synthesised pixel is gray: the red is gone.
    assert np.array_equal(block[..., 0], block[..., 1])
    assert np.array_equal(block[..., 1], block[..., 2])
    assert 80 < block.mean() < 175


def test_mosaic_runs_are_statistically_similar():
    means = []
    for seed in (1, 2, 3):
        buf = _two_tone_noise()
        region = Region(50, 50, 20, 20)
        MosaicStrategy().apply(buf, _window(buf, region, 30), StrategyParams(seed=seed))
        means.append(buf.pixels[50:70, 50:70, :3].mean())
    assert max(means) - min(means) < 40


def test_mosaic_same_seed_is_reproducible():
    results = []
    for _ in range(2):
        buf = make_noise(90, 90, seed=4)
        region = Region(35, 35, 15, 15)
        MosaicStrategy().apply(buf, _window(buf, region, 30), StrategyParams(seed=42))
        results.append(buf.pixels.copy())
    assert np.array_equal(results[0], results[1])


def test_mosaic_without_source_patches_falls_back_to_inpaint():
    buf = PixelBuffer.blank(20, 20, (30, 60, 90, 255))
    buf.pixels[1:19, 1:19] = RED
    region = Region(1, 1, 18, 18)
    MosaicStrategy().apply(buf, _window(buf, region, 30), StrategyParams())
    assert (buf.pixels[..., :3] == (30, 60, 90)).all()
