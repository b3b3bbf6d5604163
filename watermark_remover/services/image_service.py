from __future__ import annotations
from pathlib import Path
from typing import Iterable, Iterator, Tuple, Union
import base64
import os

from dotenv import load_dotenv

from ..exceptions import DecodeError
from ..models.pixel_buffer import PixelBuffer
from ..repositories.image_repository import ImageRepository

# Load environment variables
load_dotenv()


class ImageService:
    """I/O helpers.  No reconstruction logic, no Pillow imports."""
    def __init__(self):
        self.OUTPUT_FORMAT = os.getenv("OUTPUT_IMG_FORMAT", "PNG")
        self.image_repository = ImageRepository()

    def decode(self, data: bytes) -> PixelBuffer:
        """Container bytes (PNG, JPEG, ...) → RGBA buffer. Raises DecodeError."""
        return self.image_repository.decode(data)

    def encode(self, buffer: PixelBuffer, fmt: str | None = None) -> bytes:
        return self.image_repository.encode(buffer, fmt or self.OUTPUT_FORMAT)

    def check_format(self, fmt: str) -> str:
        """Raises ValueError for formats the codec cannot write."""
        return self.image_repository.output_format(fmt)

    def to_data_url(self, buffer: PixelBuffer, fmt: str | None = None) -> str:
        """Inline a buffer for JSON responses."""
        fmt = (fmt or self.OUTPUT_FORMAT).lower()
        payload = base64.b64encode(self.encode(buffer, fmt)).decode("utf-8")
        mime = "jpeg" if fmt in ("jpg", "jpeg") else fmt
        return f"data:image/{mime};base64,{payload}"

    def load(self, path: str | Path) -> PixelBuffer:
        """Load a single image from disk into a PixelBuffer."""
        return self.image_repository.load(path)

    def save(self, buffer: PixelBuffer, path: str | Path) -> Path:
        """Write a buffer; the container format follows the file suffix."""
        return self.image_repository.save(buffer, path)

    def stream_gallery(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Tuple[Path, PixelBuffer | DecodeError]]:
        """
        Yield images lazily instead of returning a gigantic list.
        """
        return self.image_repository.iter_dir(folder,
                                              recursive=recursive,
                                              exts=exts)

