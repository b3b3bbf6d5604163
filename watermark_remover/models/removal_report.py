from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

from .pixel_buffer import PixelBuffer


@dataclass
class RemovalReport:
    """
    Outcome of one processor call.
    Region indices refer to positions in the sequence that was passed in.
    """
    buffer: PixelBuffer
    processed: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)   # invalid / out of bounds
    failed: List[int] = field(default_factory=list)    # strategy raised, window restored
    warnings: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def partial(self) -> bool:
        return bool(self.failed) and bool(self.processed)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "partial": self.partial,
            "processed": list(self.processed),
            "skipped": list(self.skipped),
            "failed": list(self.failed),
            "warnings": list(self.warnings),
        }
