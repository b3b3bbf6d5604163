from __future__ import annotations
from typing import List, Optional, Sequence, Union
import logging
import os
import uuid

from dotenv import load_dotenv

from ..exceptions import InvalidRegionError
from ..models.image_session import ImageSession
from ..models.pixel_buffer import PixelBuffer
from ..models.region import MIN_REGION_SIZE, Region
from ..models.removal_report import RemovalReport
from ..models.segmentation_engine import ProgressCallback
from ..models.strategy import StrategyKind, StrategyParams
from ..repositories.session_repository import SessionRepository
from .background_service import BackgroundService
from .image_service import ImageService
from .region_processor import RegionProcessor

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class SessionService:
    """
    Business API over the in-memory session store.

    *   Every mutation of one image (region edits, removal, background swap)
        holds that session's lock, so edits are serialised per image.
    *   Removal runs on a copy of `current` that is swapped in at the end:
        readers see the old buffer or the finished one, never a half-done one.
    """

    def __init__(
        self,
        repository: SessionRepository | None = None,
        processor: RegionProcessor | None = None,
        image_service: ImageService | None = None,
        background_service: BackgroundService | None = None,
    ):
        self.repository = repository or SessionRepository()
        self.processor = processor or RegionProcessor()
        self.image_service = image_service or ImageService()
        self.background_service = background_service or BackgroundService()
        self.min_region_size = int(os.getenv("MIN_REGION_SIZE", str(MIN_REGION_SIZE)))

    # ─── Images ────────────────────────────────────────────────────
    def add_image(self, data: bytes, name: str = "") -> ImageSession:
        """Decode an upload and register it. DecodeError aborts this image only."""
        buffer = self.image_service.decode(data)
        return self.add_buffer(buffer, name)

    def add_buffer(self, buffer: PixelBuffer, name: str = "") -> ImageSession:
        session = ImageSession(
            id=uuid.uuid4().hex,
            name=name,
            original=buffer.copy(),
            current=buffer.copy(),
        )
        self.repository.add(session)
        logger.info(f"Registered image {session.id} ({name or 'unnamed'}, "
                    f"{buffer.width}x{buffer.height})")
        return session

    def get(self, image_id: str) -> ImageSession:
        return self.repository.get(image_id)

    def list_sessions(self) -> List[ImageSession]:
        return self.repository.list()

    def active(self) -> Optional[ImageSession]:
        return self.repository.retrieve_active()

    def select(self, image_id: str) -> ImageSession:
        return self.repository.select(image_id)

    def reset(self, image_id: str) -> ImageSession:
        session = self.get(image_id)
        with session.lock:
            session.reset()
        logger.info(f"Image {image_id} reset to original")
        return session

    def remove(self, image_id: str) -> None:
        self.repository.remove(image_id)
        logger.info(f"Image {image_id} removed")

    def clear(self) -> None:
        count = len(self.repository)
        self.repository.clear()
        logger.info(f"Cleared {count} image sessions")

    # ─── Regions ───────────────────────────────────────────────────
    def add_region(self, image_id: str, region: Region) -> Region:
        """
        Store a user selection. Degenerate selections are rejected here and
        never reach the region list.
        """
        return self.add_regions(image_id, [region])[0]

    def add_regions(self, image_id: str, regions: Sequence[Region]) -> List[Region]:
        """All or nothing: one undersized region rejects the whole batch."""
        regions = list(regions)
        for i, region in enumerate(regions):
            if region.width <= self.min_region_size or region.height <= self.min_region_size:
                raise InvalidRegionError(
                    f"Selection #{i} {region.width}x{region.height} is below the "
                    f"{self.min_region_size}px minimum"
                )
        session = self.get(image_id)
        with session.lock:
            session.regions.extend(regions)
        return regions

    def add_selection(self, image_id: str, start_x: float, start_y: float,
                      end_x: float, end_y: float) -> Region:
        region = Region.from_selection(start_x, start_y, end_x, end_y, self.min_region_size)
        return self.add_region(image_id, region)

    def remove_region(self, image_id: str, index: int) -> Region:
        session = self.get(image_id)
        with session.lock:
            if not 0 <= index < len(session.regions):
                raise IndexError(f"Image {image_id} has no region #{index}")
            return session.regions.pop(index)

    def clear_regions(self, image_id: str) -> None:
        session = self.get(image_id)
        with session.lock:
            session.regions.clear()

    # ─── Processing ────────────────────────────────────────────────
    def apply_removal(
        self,
        image_id: str,
        strategy: Union[StrategyKind, str],
        params: StrategyParams | None = None,
        *,
        regions: Sequence[Region] | None = None,
        from_original: bool = False,
    ) -> RemovalReport:
        """
        Run the processor over the session's regions (or `regions`).

        from_original=True rebuilds from the untouched upload instead of
        compounding on the current result.
        """
        session = self.get(image_id)
        with session.lock:
            targets = list(regions if regions is not None else session.regions)
            work = (session.original if from_original else session.current).copy()
            report = self.processor.process(work, targets, strategy, params)
            session.current = work

        logger.info(f"Image {image_id}: {StrategyKind(strategy).value} on {len(targets)} region(s), "
                    f"{len(report.processed)} done, {len(report.skipped)} skipped, "
                    f"{len(report.failed)} failed")
        return report

    def replace_background(
        self,
        image_id: str,
        color: Union[str, Sequence[int]] = "white",
        feather: int = 0,
        progress: Optional[ProgressCallback] = None,
    ) -> PixelBuffer:
        """Segment the subject out of `current` and paint the rest `color`."""
        session = self.get(image_id)
        with session.lock:
            session.current = self.background_service.replace_with_color(
                session.current, color, feather=feather, progress=progress
            )
            return session.current

    def export(self, image_id: str, fmt: str | None = None) -> bytes:
        session = self.get(image_id)
        with session.lock:
            current = session.current
        return self.image_service.encode(current, fmt)
