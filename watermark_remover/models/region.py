from __future__ import annotations
from dataclasses import dataclass
import os

import numpy as np
from dotenv import load_dotenv

from ..exceptions import InvalidRegionError

# Load environment variables
load_dotenv()
MIN_REGION_SIZE = int(os.getenv("MIN_REGION_SIZE", "5"))


@dataclass(frozen=True)
class Region:
    """
    Axis-aligned rectangle in source-image pixel coordinates.
    Immutable: delete and re-add instead of editing in place.
    """
    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_selection(
        cls,
        start_x: float,
        start_y: float,
        end_x: float,
        end_y: float,
        min_size: int = MIN_REGION_SIZE,
    ) -> Region:
        """
        Build a region from a drag gesture (start corner → end corner).

        Dragging up/left is normalised, coordinates are rounded, and
        selections with a side of `min_size` px or less are rejected.
        """
        x0, x1 = sorted((start_x, end_x))
        y0, y1 = sorted((start_y, end_y))
        region = cls(round(x0), round(y0), round(x1 - x0), round(y1 - y0))
        if region.width <= min_size or region.height <= min_size:
            raise InvalidRegionError(
                f"Selection {region.width}x{region.height} is below the "
                f"{min_size}px minimum"
            )
        return region

    @classmethod
    def from_dict(cls, data: dict) -> Region:
        """Accepts {x, y, width, height} or the short {x, y, w, h} form."""
        try:
            width = data["width"] if "width" in data else data["w"]
            height = data["height"] if "height" in data else data["h"]
            return cls(int(data["x"]), int(data["y"]), int(width), int(height))
        except (KeyError, TypeError, ValueError) as err:
            raise InvalidRegionError(f"Malformed region payload {data!r}: {err}") from err

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def is_valid(self) -> bool:
        return self.width > 0 and self.height > 0

    def contains(self, x: int, y: int) -> bool:
        return self.x <= x < self.right and self.y <= y < self.bottom

    def clip(self, width: int, height: int) -> Region | None:
        """Intersection with [0,width) x [0,height); None when empty."""
        x0, y0 = max(0, self.x), max(0, self.y)
        x1, y1 = min(width, self.right), min(height, self.bottom)
        if x1 <= x0 or y1 <= y0:
            return None
        return Region(x0, y0, x1 - x0, y1 - y0)


@dataclass(frozen=True)
class WorkingWindow:
    """
    A region grown by a margin and clipped to the buffer.
    Recomputed for every strategy call, never stored.
    """
    region: Region
    x0: int
    y0: int
    x1: int
    y1: int

    @classmethod
    def around(cls, region: Region, margin: int, width: int, height: int) -> WorkingWindow:
        return cls(
            region=region,
            x0=max(0, region.x - margin),
            y0=max(0, region.y - margin),
            x1=min(width, region.right + margin),
            y1=min(height, region.bottom + margin),
        )

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) after clipping."""
        return self.width, self.height

    @property
    def slices(self) -> tuple[slice, slice]:
        """(rows, cols) of the window inside the full buffer."""
        return slice(self.y0, self.y1), slice(self.x0, self.x1)

    @property
    def region_slices(self) -> tuple[slice, slice]:
        """(rows, cols) of the region relative to the window origin."""
        r = self.region
        return (
            slice(r.y - self.y0, r.bottom - self.y0),
            slice(r.x - self.x0, r.right - self.x0),
        )

    def mask(self) -> np.ndarray:
        """Boolean (h, w) grid, True where pixels need reconstruction."""
        m = np.zeros((self.height, self.width), dtype=bool)
        m[self.region_slices] = True
        return m
