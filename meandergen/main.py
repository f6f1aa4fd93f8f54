"""
Meander Generator - parametric folded microstrip trace

CLI entry point with three modes:
  --init : Write a default config YAML
  -e     : Edit mode - generate from config YAML values
  (none) : Random mode - randomize parameters within valid ranges
"""

import argparse
import sys
from pathlib import Path
from typing import Optional
import logging

from .config import Config, create_default_config
from .generator import (
    GenerationResult,
    GenerationStatus,
    generate_meander,
    save_generation_log,
)
from .kernel import RecordingKernel


logger = logging.getLogger(__name__)


def _run(config: Config, output_dir: Path, turns: Optional[int],
         dry_run: bool, plot: bool) -> GenerationResult:
    """Generate one meander from a loaded config and write the outputs."""
    params = config.meander_params()
    settings = config.generation
    turns = turns if turns is not None else settings.turns

    output_dir.mkdir(parents=True, exist_ok=True)
    kernel = RecordingKernel(params.parameter_set()) if dry_run else None
    output_path = None if dry_run else output_dir / "meander.stp"

    result = generate_meander(
        params,
        turns=turns,
        kernel=kernel,
        settings=settings,
        output_path=output_path,
    )
    save_generation_log([result], output_dir / "generation_log.json")

    if plot and result.build is not None:
        from .visualizer import plot_meander
        image_path = output_dir / "meander.png"
        plot_meander(result.build.segments, params.parameter_set(), image_path,
                     result.build.chamfered)
        logger.info(f"Layout image saved to: {image_path}")

    return result


def _report(title: str, result: GenerationResult, output_dir: Path) -> int:
    if result.status == GenerationStatus.FAILED:
        logger.error(f"  -> FAILED: {result.error_message}")
    else:
        logger.info(f"  -> {result.status.value} ({result.generation_time_ms:.1f}ms)")

    build = result.build
    print(f"\n[{title}]")
    if build is not None:
        print(f"  Segments: {len(build.segments)}")
        print(f"  Chamfered: {len(build.chamfered)}")
        print(f"  Capped: {len(build.capped)}")
        if build.pick_failures:
            print(f"  Pick failures: {', '.join(build.pick_failures)}")
        if build.chamfer_failures:
            print(f"  Chamfer failures: {', '.join(build.chamfer_failures)}")
    print(f"  Output: {output_dir}")

    return 0 if result.status != GenerationStatus.FAILED else 1


def run_init_mode(config_path: Path) -> int:
    """Init mode (--init): write the reference parameters to a config YAML."""
    logger.info("=== Init Mode ===")

    if config_path.exists():
        logger.error(f"Config file already exists: {config_path}")
        return 1

    create_default_config().save(config_path)
    logger.info(f"Config saved to: {config_path}")

    print(f"\n[Init Complete]")
    print(f"  Config file: {config_path}")
    print(f"\nEdit the config file to set desired parameter values,")
    print(f"then run with -e option to generate the meander.")
    return 0


def run_edit_mode(config_path: Path, output_dir: Path, turns: Optional[int] = None,
                  dry_run: bool = False, plot: bool = False) -> int:
    """
    Edit mode (-e): Generate the meander from config YAML values.
    """
    logger.info("=== Edit Mode ===")

    if not config_path.exists():
        logger.error(f"Config file not found: {config_path}")
        logger.error("Run with --init first to generate a config file.")
        return 1

    config = Config.load(config_path)
    logger.info(f"Loaded config from: {config_path}")

    result = _run(config, output_dir, turns, dry_run, plot)
    return _report("Edit Complete", result, output_dir)


def run_random_mode(config_path: Path, output_dir: Path, turns: Optional[int] = None,
                    dry_run: bool = False, plot: bool = False,
                    seed: Optional[int] = None) -> int:
    """
    Random mode (no option): Randomize parameters within valid ranges.
    """
    logger.info("=== Random Mode ===")

    config = Config.load(config_path) if config_path.exists() else create_default_config()
    config.randomize_parameters(seed)

    # Save the drawn values next to the outputs for reference
    used_path = output_dir / config_path.name
    config.save(used_path)
    logger.info(f"Randomized config saved to: {used_path}")

    result = _run(config, output_dir, turns, dry_run, plot)
    return _report("Random Generation Complete", result, output_dir)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Parametric meander trace generator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  --init Write config.yaml with the reference parameters
  -e     Edit mode: generate the meander from config.yaml
  (none) Random mode: randomize parameters within valid ranges

Examples:
  python -m meandergen.main --init       # Generate config.yaml
  python -m meandergen.main -e --plot    # Build meander.stp + meander.png
  python -m meandergen.main --dry-run    # Random parameters, no STEP
"""
    )

    parser.add_argument(
        '--init',
        action='store_true',
        help='Write a default config file and exit'
    )
    parser.add_argument(
        '-e', '--edit',
        action='store_true',
        help='Edit mode: apply config values to generate the meander'
    )
    parser.add_argument(
        '--turns',
        type=int,
        default=None,
        help='Number of segments (default: value from config)'
    )
    parser.add_argument(
        '--output-dir',
        type=Path,
        default=Path('output'),
        help='Output directory (default: output/)'
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=Path('config.yaml'),
        help='Config file path (default: config.yaml)'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Resolve and pick on an in-memory kernel; no STEP output'
    )
    parser.add_argument(
        '--plot',
        action='store_true',
        help='Write a top view image of the layout'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Random seed for random mode'
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
    args = parse_args(argv)

    if args.init and args.edit:
        logger.error("Cannot use --init and -e together")
        return 1
    if args.turns is not None and args.turns < 1:
        logger.error(f"--turns must be positive, got {args.turns}")
        return 1

    if args.init:
        return run_init_mode(args.config)
    elif args.edit:
        return run_edit_mode(args.config, args.output_dir, args.turns,
                             args.dry_run, args.plot)
    else:
        return run_random_mode(args.config, args.output_dir, args.turns,
                               args.dry_run, args.plot, args.seed)


if __name__ == '__main__':
    sys.exit(main())
