# pipeline/background_replacer.py
from __future__ import annotations
from typing import List, Sequence, Union

from ..models.pixel_buffer import PixelBuffer
from ..services.background_service import BackgroundService


def replace_background(
    gallery: List[PixelBuffer],
    *,
    background_service: BackgroundService | None = None,
    color: Union[str, Sequence[int]] = "white",
    feather: int = 0,
) -> List[PixelBuffer]:
    """
    For every buffer in *gallery*:
        • generate foreground mask
        • composite onto a solid background (default white ID-photo backdrop)
    Returns new buffers; the inputs are left untouched.
    """
    background_service = background_service or BackgroundService()
    return [
        background_service.replace_with_color(buffer, color, feather=feather)
        for buffer in gallery
    ]
