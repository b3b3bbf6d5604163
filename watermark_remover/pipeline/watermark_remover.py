# pipeline/watermark_remover.py
from __future__ import annotations
from typing import Iterable, List, Sequence, Union
import logging

from ..models.pixel_buffer import PixelBuffer
from ..models.region import Region
from ..models.removal_report import RemovalReport
from ..models.strategy import StrategyKind, StrategyParams
from ..services.region_processor import RegionProcessor

logger = logging.getLogger(__name__)


def remove_watermarks(
    gallery: Iterable[PixelBuffer],
    regions: Sequence[Region],
    strategy: Union[StrategyKind, str] = StrategyKind.INPAINT,
    *,
    params: StrategyParams | None = None,
    processor: RegionProcessor | None = None,
) -> List[RemovalReport]:
    """
    For every buffer in *gallery*:
        • apply `strategy` over the same ordered `regions`
        • mutate the buffer in place
    Returns one RemovalReport per buffer, in gallery order.
    """
    processor = processor or RegionProcessor()
    params = params or StrategyParams()

    reports = []
    for i, buffer in enumerate(gallery, 1):
        report = processor.process(buffer, regions, strategy, params)
        if not report.success:
            logger.warning(f"Image {i}: regions {report.failed} failed")
        reports.append(report)
    return reports
