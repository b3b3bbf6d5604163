"""Region-based watermark removal: blur, fill, inpaint and mosaic reconstruction."""

from __future__ import annotations

from .exceptions import (
    CapabilityUnavailableError,
    DecodeError,
    InvalidRegionError,
    ProcessingFailure,
    SessionNotFoundError,
    WatermarkRemoverError,
)
from .models.pixel_buffer import PixelBuffer
from .models.region import Region, WorkingWindow
from .models.removal_report import RemovalReport
from .models.strategy import StrategyKind, StrategyParams, parse_color
from .services.region_processor import RegionProcessor

__all__ = [
    "CapabilityUnavailableError",
    "DecodeError",
    "InvalidRegionError",
    "PixelBuffer",
    "ProcessingFailure",
    "Region",
    "RegionProcessor",
    "RemovalReport",
    "SessionNotFoundError",
    "StrategyKind",
    "StrategyParams",
    "WatermarkRemoverError",
    "WorkingWindow",
    "parse_color",
]
