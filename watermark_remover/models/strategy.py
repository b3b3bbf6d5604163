from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

RGBA = Tuple[int, int, int, int]


class StrategyKind(str, Enum):
    """Closed set of reconstruction strategies, selected by tag."""
    BLUR = "blur"
    FILL = "fill"
    INPAINT = "inpaint"
    MOSAIC = "mosaic"


def parse_color(value: Union[str, Sequence[int]]) -> RGBA:
    """
    '#fff', '#FF0000', '#FF000080' or an (r, g, b[, a]) sequence → RGBA tuple.
    """
    if isinstance(value, str):
        hex_str = value.strip().lstrip("#")
        if len(hex_str) == 3:
            hex_str = "".join(c * 2 for c in hex_str)
        if len(hex_str) not in (6, 8):
            raise ValueError(f"Unrecognised color {value!r}")
        try:
            channels = [int(hex_str[i:i + 2], 16) for i in range(0, len(hex_str), 2)]
        except ValueError as err:
            raise ValueError(f"Unrecognised color {value!r}") from err
    else:
        channels = [int(c) for c in value]
        if len(channels) not in (3, 4):
            raise ValueError(f"Color needs 3 or 4 channels, got {len(channels)}")
        if any(c < 0 or c > 255 for c in channels):
            raise ValueError(f"Color channels must be in [0, 255], got {channels}")
    if len(channels) == 3:
        channels.append(255)
    return tuple(channels)


@dataclass
class StrategyParams:
    """
    Value-object holding every knob the four strategies understand.
    Each strategy reads only the fields it needs.
    """
    fill_color: RGBA = (255, 255, 255, 255)
    blur_strength: int = 10            # kernel radius = max(3, round(strength / 2))
    blur_iterations: int = 2
    inpaint_radius: int = 5            # Telea neighbourhood, professional engine only
    inpaint_iterations: int = 20
    patch_size: int = 7
    patch_stride: int = 2
    seam_blur_strength: int = 4
    seed: Optional[int] = None
    extra: dict = field(default_factory=dict)

    def __post_init__(self):
        self.fill_color = parse_color(self.fill_color)
        if self.blur_strength < 0:
            raise ValueError("blur_strength must be >= 0")
        if self.inpaint_radius <= 0:
            raise ValueError("inpaint_radius must be a positive integer")
        if self.patch_size <= 0 or self.patch_stride <= 0:
            raise ValueError("patch_size and patch_stride must be positive")

    @classmethod
    def from_dict(cls, data: dict | None) -> StrategyParams:
        """
        Build params from a loose JSON payload. Accepts the short aliases
        `color`, `strength` and `radius` used by the API and CLI.
        """
        data = dict(data or {})
        aliases = {"color": "fill_color", "strength": "blur_strength", "radius": "inpaint_radius"}
        for short, full in aliases.items():
            if short in data:
                data.setdefault(full, data.pop(short))
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        kwargs = {k: v for k, v in data.items() if k in known}
        for key in ("blur_strength", "blur_iterations", "inpaint_radius",
                    "inpaint_iterations", "patch_size", "patch_stride", "seam_blur_strength"):
            if key in kwargs:
                kwargs[key] = int(kwargs[key])
        extra = {k: v for k, v in data.items() if k not in known}
        return cls(**kwargs, extra=extra)
