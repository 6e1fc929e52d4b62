"""Command-line interface for animation rescaling."""

import argparse
import logging
import sys
from pathlib import Path

from anim_rescaler.asset_io.json_asset_store import load_asset
from anim_rescaler.rescale_api import AssetStatus, rescale_assets
from anim_rescaler.rescale_core.rescale_config import DEFAULT_SCALE_FACTOR, RescaleConfig

logger = logging.getLogger(__name__)


def cmd_inspect(*, args: argparse.Namespace) -> int:
    """Show the skeleton and key count of an asset."""
    asset = load_asset(Path(args.input))
    clip = asset.clip
    logger.info(f"Name:       {clip.name}")
    logger.info(f"Keys:       {clip.key_count} @ {clip.frame_rate} fps ({clip.duration:.3f}s)")
    logger.info(f"Bones:      {clip.bone_count}")
    for index, bone in enumerate(clip.skeleton.bones):
        position = bone.reference_transform.position
        logger.info(f"  {index:3d} {bone.name:<32s} ref=({position[0]:.4f}, {position[1]:.4f}, {position[2]:.4f})")
    return 0


def build_config(*, args: argparse.Namespace) -> RescaleConfig:
    """File config (if any) overridden by explicit command-line flags."""
    settings: dict = {}
    if args.config:
        logger.info(f"Loading config from: {args.config}")
        settings = RescaleConfig.load(Path(args.config)).model_dump()

    if args.scale is not None:
        settings["scale_factor"] = args.scale
    if args.unrotate_root:
        settings["unrotate_root"] = True
    if args.root_relative:
        settings["root_relative"] = True
    if args.chain_length is not None:
        settings["chain_length"] = args.chain_length
    if args.start_bone is not None:
        settings["start_bone_name"] = args.start_bone
    if args.suffix is not None:
        settings["output_suffix"] = args.suffix
    if args.overwrite:
        settings["overwrite_existing"] = True
    return RescaleConfig(**settings)


def cmd_rescale(*, args: argparse.Namespace) -> int:
    """Rescale one or more assets."""
    config = build_config(args=args)
    report = rescale_assets(
        input_paths=[Path(p) for p in args.inputs],
        config=config,
        write_csv=args.csv,
    )

    for outcome in report.outcomes:
        line = f"  {outcome.status.value:<9s} {outcome.input_path}"
        if outcome.output_path is not None and outcome.status != AssetStatus.FAILED:
            line += f" -> {outcome.output_path}"
        if outcome.message:
            line += f" ({outcome.message})"
        logger.info(line)

    return 1 if report.has_failures else 0


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""

    parser = argparse.ArgumentParser(
        description="Rescale skeletal animation relative to its reference pose",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

  # Show skeleton and key count
  anim-rescaler inspect walk.json

  # Inches -> meters (default scale), writes walk_Scaled.json
  anim-rescaler rescale walk.json

  # Double size, fix root facing, extract root motion against jx_c_start
  anim-rescaler rescale walk.json run.json --scale 2.0 \\
      --unrotate-root --root-relative --start-bone jx_c_start

  # Settings from a TOML file ([rescale] table)
  anim-rescaler rescale walk.json --config rescale.toml
        """
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-bone progress")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Show asset skeleton and key count")
    inspect_parser.add_argument("input", help="Animation asset JSON")

    # Rescale command
    rescale_parser = subparsers.add_parser("rescale", help="Rescale animation assets")
    rescale_parser.add_argument("inputs", nargs="+", help="Animation asset JSON files")
    rescale_parser.add_argument("--config", help="TOML or JSON config file")
    rescale_parser.add_argument("--scale", type=float, default=None,
                                help=f"Displacement scale factor (default: {DEFAULT_SCALE_FACTOR}; values below 1e-4 use the default)")
    rescale_parser.add_argument("--unrotate-root", action="store_true",
                                help="Rotate the root bone by -90 degrees about Z")
    rescale_parser.add_argument("--root-relative", action="store_true",
                                help="Rewrite the root track relative to the root/delta/start chain")
    rescale_parser.add_argument("--chain-length", type=int, default=None,
                                help="Bones in the root-motion chain (default: 3)")
    rescale_parser.add_argument("--start-bone", default=None,
                                help="Last bone of the root-motion chain (overrides --chain-length)")
    rescale_parser.add_argument("--suffix", default=None, help="Duplicate name suffix (default: _Scaled)")
    rescale_parser.add_argument("--overwrite", action="store_true", help="Replace existing duplicates")
    rescale_parser.add_argument("--csv", action="store_true", help="Also write a tidy CSV beside each duplicate")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s | %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    if args.command == "inspect":
        return cmd_inspect(args=args)
    return cmd_rescale(args=args)


if __name__ == "__main__":
    sys.exit(main())
