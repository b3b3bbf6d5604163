from __future__ import annotations
from io import BytesIO
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple, Union
import logging
import os

import numpy as np
from PIL import Image as PILImage, UnidentifiedImageError
from dotenv import load_dotenv

from ..exceptions import DecodeError
from ..models.pixel_buffer import PixelBuffer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

# Pillow format names that cannot carry an alpha channel.
_OPAQUE_FORMATS = {"JPEG", "JPG", "BMP"}


class ImageRepository:
    """
    Codec boundary: container bytes / files ↔ PixelBuffer.
    Nothing above this layer touches Pillow.
    """
    def __init__(self):
        exts = os.getenv("VALID_IMAGE_EXTENSIONS", ".png,.jpg,.jpeg,.bmp,.webp,.gif,.tif,.tiff")
        self.VALID_EXTS = {ext.strip().lower() for ext in exts.split(",") if ext.strip()}

    # ---------- bytes ----------
    @staticmethod
    def decode(data: bytes) -> PixelBuffer:
        """Any Pillow-readable container → RGBA PixelBuffer."""
        if not data:
            raise DecodeError("Empty image payload")
        try:
            with PILImage.open(BytesIO(data)) as pil_img:
                pil_img.load()
                rgba = pil_img.convert("RGBA")
        except (UnidentifiedImageError, OSError, ValueError) as err:
            raise DecodeError(f"Unreadable image data: {err}") from err
        return PixelBuffer(np.array(rgba, dtype=np.uint8))

    @staticmethod
    def output_format(fmt: str) -> str:
        """'jpg' / '.png' style names → Pillow save format. ValueError if Pillow can't write it."""
        fmt = fmt.upper().lstrip(".")
        if fmt == "JPG":
            fmt = "JPEG"
        PILImage.init()
        if fmt not in PILImage.SAVE:
            raise ValueError(f"Unsupported output format {fmt!r}")
        return fmt

    @classmethod
    def encode(cls, buffer: PixelBuffer, fmt: str = "PNG", quality: int = 95) -> bytes:
        fmt = cls.output_format(fmt)
        pil_img = PILImage.fromarray(np.ascontiguousarray(buffer.pixels))
        if fmt in _OPAQUE_FORMATS:
            pil_img = pil_img.convert("RGB")
        out = BytesIO()
        save_kwargs = {"quality": quality} if fmt == "JPEG" else {}
        pil_img.save(out, format=fmt, **save_kwargs)
        return out.getvalue()

    # ---------- files ----------
    def load(self, path: Union[str, Path]) -> PixelBuffer:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        return self.decode(path.read_bytes())

    def save(self, buffer: PixelBuffer, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fmt = PILImage.registered_extensions().get(path.suffix.lower(), "PNG")
        path.write_bytes(self.encode(buffer, fmt))
        return path

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Tuple[Path, PixelBuffer | DecodeError]]:
        """
        Yield (path, buffer) one file at a time. Nothing accumulates in memory.
        Undecodable files yield (path, DecodeError) so callers can report them.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if p.suffix.lower() not in allowed or not p.is_file():
                logger.debug(f"Skipping {p}")
                continue
            try:
                yield p, self.load(p)
            except DecodeError as err:
                logger.warning(f"Skipping {p.name}: {err}")
                yield p, err

    def load_dir(
        self, folder: Union[str, Path], *, recursive=False, exts=None
    ) -> List[Tuple[Path, PixelBuffer]]:
        """
        Eager helper: decodable images only.
        """
        return [(p, buf) for p, buf in self.iter_dir(folder, recursive=recursive, exts=exts)
                if isinstance(buf, PixelBuffer)]
