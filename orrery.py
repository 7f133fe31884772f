# orrery.py
"""Command line entry point: computes a system layout and prints it as JSON.

Examples:
    orrery --system sol --mode navigational
    orrery --input my_system.json --mode scientific --focus earth
    orrery --system sol --partial jupiter --repeat 3 --profile
"""
import argparse
import asyncio
import cProfile
import io
import json
import logging
import pstats
import sys
from typing import List, Optional, Sequence

from celestial import CelestialObject, celestial_objects_from_records
from layout_config import VIEW_MODES, ConfigurationError, LayoutConfig
from layout_utils import LayoutError
from orbital_calculation_service import OrbitalCalculationService, create_calculation_service
from sample_systems import SAMPLE_SYSTEMS, load_sample_system
from view_mode_strategy import build_layout_info, create_system_context

PROFILE_STATS_FILE = "orrery_profile.prof"
PROFILE_TOP_N = 20


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='orrery', description="Compute the visual layout of an orbital system.")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--system", choices=sorted(SAMPLE_SYSTEMS), default='sol',
                        help="Built-in sample system to lay out (default: sol).")
    source.add_argument("--input", metavar="FILE",
                        help="JSON file holding a list of object records, or {'objects': [...]}.")
    parser.add_argument("--mode", default='explorational',
                        help=f"View mode, one of {', '.join(VIEW_MODES)}. Unknown modes fall back to explorational.")
    parser.add_argument("--focus", metavar="ID", help="Also print the camera framing for this object.")
    parser.add_argument("--partial", nargs='+', metavar="ID",
                        help="Only lay out these objects, their parent chain and their direct children.")
    parser.add_argument("--repeat", type=int, default=1,
                        help="Run the calculation N times; later runs are served from the cache.")
    parser.add_argument("--profile", action="store_true",
                        help=f"Enable cProfile. Statistics are saved to '{PROFILE_STATS_FILE}'.")
    parser.add_argument("--log-level", default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help="Root logger level (default: INFO).")
    return parser


def load_objects(args: argparse.Namespace) -> List[CelestialObject]:
    """Objects from `--input` when given, otherwise the named sample system.

    Raises:
        InputError: If the records are malformed.
        OSError, ValueError: If the file cannot be read or is not valid JSON.
    """
    if not args.input:
        return load_sample_system(args.system)
    with open(args.input, 'r', encoding='utf-8') as f:
        payload = json.load(f)
    records = payload.get('objects', []) if isinstance(payload, dict) else payload
    return celestial_objects_from_records(records)


async def run(service: OrbitalCalculationService, objects: Sequence[CelestialObject],
              args: argparse.Namespace) -> dict:
    layout = None
    for _ in range(max(1, args.repeat)):
        if args.partial:
            layout = await service.calculate_partial_layout(objects, args.partial, args.mode)
        else:
            layout = await service.calculate_system_layout(objects, args.mode)
        logging.info(f"Run finished (cache hit: {layout.metadata.cache_hit}).")

    output = {'layout': layout.to_dict(), 'statistics': service.get_statistics()}
    if args.focus:
        strategy = service.registry.get_strategy(layout.metadata.view_mode)
        layout_info = build_layout_info(layout, objects, args.focus)
        camera = strategy.calculate_camera_position(layout_info, create_system_context(objects))
        output['camera'] = camera.to_dict()
    return output


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.getLogger().setLevel(args.log_level)

    profiler = None
    if args.profile:
        profiler = cProfile.Profile()
        profiler.enable()
        logging.info(f"cProfile profiling enabled. Output will be saved to {PROFILE_STATS_FILE} upon completion.")

    exit_code = 0
    try:
        service = create_calculation_service(LayoutConfig())
        objects = load_objects(args)
        output = asyncio.run(run(service, objects, args))
        print(json.dumps(output, indent=2))
    except ConfigurationError as e:
        logging.critical(f"Layout could not be computed due to a ConfigurationError: {e}", exc_info=True)
        exit_code = 1
    except (LayoutError, OSError, ValueError) as e:
        logging.critical(f"Layout could not be computed from the given input: {e}")
        exit_code = 1
    finally:
        if profiler:
            profiler.disable()
            try:
                profiler.dump_stats(PROFILE_STATS_FILE)
                logging.info(f"Profiling data successfully saved to {PROFILE_STATS_FILE}")
                stream = io.StringIO()
                pstats.Stats(profiler, stream=stream).sort_stats('cumulative').print_stats(PROFILE_TOP_N)
                logging.info(f"\n--- Top {PROFILE_TOP_N} Profiled Functions (Cumulative Time) ---\n{stream.getvalue()}")
            except OSError as e:
                logging.error(f"Failed to save profiling data to {PROFILE_STATS_FILE}: {e}", exc_info=True)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
