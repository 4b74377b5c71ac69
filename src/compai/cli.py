"""Command line interface for the CompAI compositor.

Usage:
    compai templates
    compai generate photos/*.jpg --fixed house.jpg --template hero-left \\
        --aspect 16:9 --quality 2k --count 20 --seed 42 --zip
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from compai import __version__
from compai.common.presets import (
    DEFAULT_JOB_COUNT,
    DEFAULT_POOL_CEILING,
    EXPORT_JPEG_QUALITY,
    AspectRatioPreset,
    OutputQuality,
    parse_aspect_ratio,
    parse_quality,
)
from compai.composer import BuildError, ComposerConfig, build_variations
from compai.composer.templates import TemplateLoadError, get_registry

logger = logging.getLogger("compai")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Configure the root logger once for command line use."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    # PIL logs every plugin import at DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _aspect_arg(value: str) -> float:
    try:
        return parse_aspect_ratio(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _quality_arg(value: str) -> OutputQuality:
    try:
        return parse_quality(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="compai",
        description="Generate photo composite variations from an image pool.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("templates", help="List available templates")

    presets = ", ".join(p.value for p in AspectRatioPreset)
    gen = sub.add_parser(
        "generate",
        help="Generate composite variations",
        description=f"Aspect ratio presets: {presets}. Any W:H, WxH or number also works.",
    )
    gen.add_argument("images", nargs="+", type=Path, help="Variable pool images")
    gen.add_argument("--fixed", type=Path, help="Image pinned to the hero slot of every composite")
    gen.add_argument("--template", default=None, help="Template id (default: first template)")
    gen.add_argument("--aspect", type=_aspect_arg, default=1.0, help="Composite aspect ratio (default 1:1)")
    gen.add_argument(
        "--quality", type=_quality_arg, default=OutputQuality.K1,
        help="Output width tier: 1k, 2k or 4k (default 1k)",
    )
    gen.add_argument("--count", type=int, default=DEFAULT_JOB_COUNT, help="Number of variations")
    gen.add_argument("--seed", type=int, default=None, help="Random seed for reproducible output")
    gen.add_argument("--pool-ceiling", type=int, default=DEFAULT_POOL_CEILING, help="Maximum pool size")
    gen.add_argument("-o", "--output-dir", type=Path, default=Path("output"), help="Output base directory")
    gen.add_argument("--jpeg-quality", type=int, default=EXPORT_JPEG_QUALITY, help="JPEG quality 1-100")
    gen.add_argument("--zip", action="store_true", help="Also write composites.zip")
    gen.add_argument("--packages", action="store_true", help="Also write one package ZIP per composite")
    gen.add_argument("--previews", action="store_true", help="Also write gallery-sized previews")
    gen.add_argument("--no-images", action="store_true", help="Do not write individual composite files")
    gen.add_argument("--no-analysis", action="store_true", help="Skip vision analysis of the fixed image")
    gen.add_argument("--vision-model", default=None, help="Ollama vision model (default: $COMPAI_VISION_MODEL)")
    gen.add_argument("--ollama-host", default=None, help="Ollama server URL (default: $OLLAMA_HOST)")
    gen.add_argument("--workers", type=int, default=1, help="Render threads")
    return parser


def _cmd_templates() -> int:
    registry = get_registry()
    for template in registry.values():
        hero = ""
        if template.hero_rule is not None:
            hero = f" [hero: {template.hero_rule.slot_id}, prefers {template.hero_rule.preferred_category}]"
        print(f"{template.id:<18} {template.slot_count} slots  {template.name}{hero}")
        print(f"{'':<18} {template.description}")
    return 0


def _cmd_generate(args: argparse.Namespace) -> int:
    template_id = args.template or get_registry().default.id
    try:
        config = ComposerConfig(
            images=list(args.images),
            fixed_image=args.fixed,
            template_id=template_id,
            aspect_ratio=args.aspect,
            quality=args.quality,
            count=args.count,
            seed=args.seed,
            pool_ceiling=args.pool_ceiling,
            output_dir=args.output_dir,
            export_images=not args.no_images,
            export_zip=args.zip,
            export_packages=args.packages,
            export_previews=args.previews,
            jpeg_quality=args.jpeg_quality,
            analyze_fixed=not args.no_analysis,
            vision_model=args.vision_model,
            ollama_host=args.ollama_host,
            max_workers=args.workers,
        )
    except ValueError as e:
        logger.error(f"Invalid options: {e}")
        return 2

    try:
        result = build_variations(config)
    except BuildError as e:
        logger.error(f"Build failed: {e}")
        return 1

    for warning in result.warnings:
        logger.warning(warning)
    print(f"Generated {len(result.jobs)} composites in {result.output_dir}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.command == "templates":
            return _cmd_templates()
        return _cmd_generate(args)
    except TemplateLoadError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
