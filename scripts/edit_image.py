"""Run the edit pipeline on a local photo and save the result."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from maskmagic.config.settings import get_settings
from maskmagic.errors import PipelineError
from maskmagic.imgproc import MaskShape, RasterImage
from maskmagic.monitoring.logging import configure_logging
from maskmagic.services.pipeline import EditPipeline


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("image", type=Path, help="Source photo.")
    parser.add_argument("prompt", help="Describe the edit for the masked region.")
    parser.add_argument(
        "--shape",
        choices=[shape.value for shape in MaskShape],
        default=MaskShape.CIRCLE.value,
    )
    parser.add_argument("--coverage", type=float, default=0.5)
    parser.add_argument("--scale", type=float, default=1.0, help="Pixel density of the source photo.")
    parser.add_argument("-o", "--output", type=Path, default=Path("edited.png"))
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    pipeline = EditPipeline(settings)
    try:
        source = RasterImage.from_path(args.image, scale=args.scale)
        result = pipeline.generate(source, args.prompt, MaskShape(args.shape), coverage=args.coverage)
    except PipelineError as exc:
        print(f"❌ {exc}", file=sys.stderr)
        return 1
    finally:
        pipeline.close()

    args.output.write_bytes(result.encode("PNG"))
    print(f"✅ Saved {result.width}x{result.height} image to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
