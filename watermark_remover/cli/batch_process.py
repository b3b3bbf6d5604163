"""
Batch watermark removal: apply one region list to every image in a folder.

    watermark-remover-batch data/in data/out --region 40,40,20,20 --method inpaint
"""
from __future__ import annotations
import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from tqdm import tqdm

from ..exceptions import DecodeError
from ..models.region import Region
from ..models.strategy import StrategyKind, StrategyParams
from ..services.image_service import ImageService
from ..services.region_processor import RegionProcessor

# Load environment variables first
load_dotenv()

logger = logging.getLogger(__name__)


def parse_region(text: str) -> Region:
    """'x,y,w,h' → Region."""
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError(f"Region must be x,y,w,h, got {text!r}")
    try:
        x, y, w, h = (int(p) for p in parts)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Region values must be integers, got {text!r}") from None
    return Region(x, y, w, h)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="watermark-remover-batch",
        description="Remove watermarks at fixed regions from every image in a folder.",
    )
    parser.add_argument("input_dir", type=Path)
    parser.add_argument("output_dir", type=Path)
    parser.add_argument("--region", dest="regions", type=parse_region, action="append",
                        required=True, help="x,y,w,h; repeat for several regions (applied in order)")
    parser.add_argument("--method", choices=[k.value for k in StrategyKind], default="inpaint")
    parser.add_argument("--color", default="#ffffff", help="fill colour (#RRGGBB)")
    parser.add_argument("--strength", type=int, default=10, help="blur strength")
    parser.add_argument("--radius", type=int, default=int(os.getenv("INPAINT_RADIUS", "5")),
                        help="professional inpaint radius")
    parser.add_argument("--iterations", type=int, default=int(os.getenv("INPAINT_ITERATIONS", "20")),
                        help="native inpaint passes")
    seed = os.getenv("RANDOM_SEED")
    parser.add_argument("--seed", type=int, default=int(seed) if seed else None,
                        help="mosaic sampling seed")
    parser.add_argument("--native", action="store_true", help="never use OpenCV inpainting")
    parser.add_argument("--recursive", action="store_true")
    parser.add_argument("--format", default=os.getenv("OUTPUT_IMG_FORMAT", "png"))
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    try:
        params = StrategyParams(
            fill_color=args.color,
            blur_strength=args.strength,
            inpaint_radius=args.radius,
            inpaint_iterations=args.iterations,
            seed=args.seed,
        )
    except ValueError as err:
        logger.error(f"Invalid parameters: {err}")
        return 2

    for region in args.regions:
        if not region.is_valid:
            logger.error(f"Invalid region {region}")
            return 2

    image_service = ImageService()
    try:
        image_service.check_format(args.format)
    except ValueError as err:
        logger.error(str(err))
        return 2

    processor = RegionProcessor(probe_engine=not args.native)
    ext = args.format.lower().lstrip(".")

    failures = 0
    processed = 0
    gallery = image_service.stream_gallery(args.input_dir, recursive=args.recursive)
    for path, buffer in tqdm(gallery, desc="images", ncols=70, unit="img"):
        if isinstance(buffer, DecodeError):
            failures += 1
            continue
        report = processor.process(buffer, args.regions, args.method, params)
        out_path = args.output_dir / f"removed_watermark_{path.stem}.{ext}"
        image_service.save(buffer, out_path)
        processed += 1
        if not report.success:
            failures += 1
            logger.warning(f"{path.name}: regions {report.failed} failed")
        if report.skipped:
            logger.warning(f"{path.name}: regions {report.skipped} skipped")

    print(f"Processed {processed} image(s), {failures} with errors → {args.output_dir}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
