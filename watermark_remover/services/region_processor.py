from __future__ import annotations
from typing import Dict, Sequence, Union
import logging
import time

from ..exceptions import InvalidRegionError, ProcessingFailure
from ..models.inpaint_engine import InpaintEngine
from ..models.pixel_buffer import PixelBuffer
from ..models.region import Region, WorkingWindow
from ..models.removal_report import RemovalReport
from ..models.strategy import StrategyKind, StrategyParams
from ..strategies import ReconstructionStrategy, build_strategies

logger = logging.getLogger(__name__)


class RegionProcessor:
    """
    Applies one reconstruction strategy over an ordered list of regions.

    *   Regions run strictly in order on the same buffer, so overlapping
        regions compound.
    *   Invalid / off-image regions are skipped with a warning.
    *   A strategy that raises has its working window restored; the rest of
        the batch carries on.
    """

    def __init__(
        self,
        engine: InpaintEngine | None = None,
        *,
        probe_engine: bool = True,
        strategies: Dict[StrategyKind, ReconstructionStrategy] | None = None,
    ):
        """
        Args:
            engine: Professional inpainting capability to inject. When None and
                `probe_engine` is set, the process-wide probe result is used.
            probe_engine: False forces native inpainting.
            strategies: Full override of the StrategyKind → strategy table.
        """
        if strategies is None:
            if engine is None and probe_engine:
                engine = InpaintEngine.probe()
            strategies = build_strategies(engine)
        self.strategies = strategies

    @property
    def professional_inpaint(self) -> bool:
        inpaint = self.strategies.get(StrategyKind.INPAINT)
        return getattr(inpaint, "engine", None) is not None

    # ─── Public API ────────────────────────────────────────────────
    def apply(
        self,
        buffer: PixelBuffer,
        regions: Sequence[Region],
        strategy: Union[StrategyKind, str],
        params: StrategyParams | None = None,
    ) -> PixelBuffer:
        """Mutates `buffer` in place and returns it."""
        return self.process(buffer, regions, strategy, params).buffer

    def process(
        self,
        buffer: PixelBuffer,
        regions: Sequence[Region],
        strategy: Union[StrategyKind, str],
        params: StrategyParams | None = None,
    ) -> RemovalReport:
        """
        Same as `apply`, but returns the per-region bookkeeping as well.
        """
        kind = StrategyKind(strategy)
        impl = self.strategies[kind]
        params = params or StrategyParams()
        report = RemovalReport(buffer=buffer)

        for idx, region in enumerate(regions):
            try:
                window = self.working_window(buffer, region, impl.margin)
            except InvalidRegionError as err:
                msg = f"Skipping region #{idx}: {err}"
                logger.warning(msg)
                report.skipped.append(idx)
                report.warnings.append(msg)
                continue

            snapshot = buffer.pixels[window.slices].copy()
            started = time.perf_counter()
            try:
                impl.apply(buffer, window, params)
            except Exception as err:
                buffer.pixels[window.slices] = snapshot
                failure = ProcessingFailure(idx, err)
                logger.warning(f"{kind.value}: {failure}; region left untouched")
                report.failed.append(idx)
                report.warnings.append(str(failure))
                continue

            report.processed.append(idx)
            logger.debug(f"{kind.value} region #{idx} {window.region} done in "
                         f"{(time.perf_counter() - started) * 1000:.1f} ms")

        return report

    # ─── Internal helpers ──────────────────────────────────────────
    @staticmethod
    def working_window(buffer: PixelBuffer, region: Region, margin: int) -> WorkingWindow:
        """
        Clip `region` to the buffer, then grow it by `margin` (clipped again).
        Raises InvalidRegionError for empty or fully off-image regions.
        """
        if not region.is_valid:
            raise InvalidRegionError(f"{region} has non-positive size")
        clipped = region.clip(buffer.width, buffer.height)
        if clipped is None:
            raise InvalidRegionError(
                f"{region} lies outside the {buffer.width}x{buffer.height} image"
            )
        return WorkingWindow.around(clipped, margin, buffer.width, buffer.height)
