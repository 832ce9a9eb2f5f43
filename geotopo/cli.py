"""Command line interface for geographic topology synthesis."""

from __future__ import annotations

import argparse
import json
import random
import sys
import time
from contextlib import contextmanager
from pathlib import Path

from geotopo.config import GeoTopoConfig
from geotopo.log_config import get_logger

logger = get_logger(__name__)


@contextmanager
def Timer(description: str):
    """Context manager for timing operations with both print and log output.

    Args:
        description: Operation description for timing messages.

    Yields:
        None: Context manager yields nothing.
    """
    print(f"🔄 {description}...")
    logger.info(f"Starting {description}")
    start = time.time()
    try:
        yield
        elapsed = time.time() - start
        print(f"✅ {description} (completed in {elapsed:.1f}s)")
        logger.info(f"Completed {description} in {elapsed:.1f}s")
    except Exception as e:
        elapsed = time.time() - start
        print(f"❌ {description} (failed after {elapsed:.1f}s)")
        logger.error(f"Failed {description} after {elapsed:.1f}s: {e}")
        raise


def _load_config(config_path: Path) -> GeoTopoConfig:
    """Load and validate configuration.

    Args:
        config_path: Path to YAML configuration file.

    Returns:
        Loaded and validated configuration object.

    Raises:
        SystemExit: If configuration loading or validation fails.
    """
    try:
        config = GeoTopoConfig.from_yaml(config_path)
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except FileNotFoundError:
        print(f"❌ Configuration file not found: {config_path}")
        logger.error(f"Configuration file not found: {config_path}")
        sys.exit(2)  # Config problem
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"❌ Configuration error: {e}")
        print(f"💡 Check YAML syntax in: {config_path}")
        sys.exit(2)  # Config problem


def generate_command(args: argparse.Namespace) -> None:
    """Synthesize a topology from an inventory JSON file.

    Args:
        args: Parsed command line arguments.
    """
    from geotopo.export import load_inventory, save_inventory, save_topology_json
    from geotopo.gazetteer import shared_gazetteer
    from geotopo.resolver import LocationResolver
    from geotopo.synthesizer import TopologySynthesizer, validate_topology

    config = _load_config(Path(args.config))
    if args.seed is not None:
        config.synthesis.seed = args.seed

    try:
        inventory_path = Path(args.inventory)
        output_path = Path(args.output) if args.output else Path.cwd() / "topology.json"
        if output_path.suffix.lower() != ".json":
            output_path = output_path / "topology.json"

        with Timer("Topology generation"):
            devices = load_inventory(inventory_path)
            gazetteer = shared_gazetteer(config.data_sources.gazetteer)
            synthesizer = TopologySynthesizer(
                LocationResolver(gazetteer),
                config.synthesis,
                rng=random.Random(config.synthesis.seed),
            )
            topology = synthesizer.generate(devices)

        if topology is None:
            print("⚠️  Inventory contains no devices to render; nothing written")
            return

        topology.topology_id = config.service.topology_id
        issues = validate_topology(topology)
        save_topology_json(topology, output_path, config.output.json_indent)
        print(f"📄 Topology → {output_path}")

        if args.devices_out:
            save_inventory(devices, Path(args.devices_out), config.output.json_indent)
            print(f"📄 Devices with links → {args.devices_out}")

        if args.map:
            from geotopo.projection import MapProjector
            from geotopo.visualization import export_topology_map

            projector = MapProjector.from_config(
                config.projection, config.data_sources.map_descriptor
            )
            export_topology_map(topology, projector, Path(args.map), config.output.dpi)
            print(f"🗺️  Map preview → {args.map}")

        stats = topology.statistics
        print(
            f"Nodes: {stats.total_nodes} ({stats.active_nodes} active), "
            f"edges: {len(topology.edges)}, "
            f"health: {topology.health.level.value} ({topology.health.score:.1f})"
        )
        if issues:
            print(f"⚠️  {len(issues)} validation issues (see log)")
        if args.print:
            print(json.dumps(topology.to_dict(), indent=config.output.json_indent))

    except Exception as e:
        print(f"❌ ERROR: {e}")
        sys.exit(1)


def locate_command(args: argparse.Namespace) -> None:
    """Resolve location strings against the gazetteer.

    Args:
        args: Parsed command line arguments.
    """
    from geotopo.gazetteer import shared_gazetteer
    from geotopo.geo_utils import geographic_region
    from geotopo.resolver import LocationResolver, parse_location

    config = _load_config(Path(args.config))
    resolver = LocationResolver(shared_gazetteer(config.data_sources.gazetteer))

    for text in args.locations:
        city, country = parse_location(text)
        record = resolver.find(text)
        if record is None:
            print(f"❌ {text!r}: not found (city={city!r}, country={country!r})")
            continue
        print(
            f"✅ {text!r}: {record.city}, {record.country} "
            f"({record.latitude:.4f}, {record.longitude:.4f}) "
            f"[{geographic_region(record.latitude, record.longitude)}]"
        )


def project_command(args: argparse.Namespace) -> None:
    """Print viewport coordinates for a latitude/longitude pair.

    Args:
        args: Parsed command line arguments.
    """
    from geotopo.projection import MapProjector

    config = _load_config(Path(args.config))
    projector = MapProjector.from_config(
        config.projection, config.data_sources.map_descriptor
    )
    point = projector.convert(args.latitude, args.longitude)
    print(f"x={point.x:.2f} y={point.y:.2f}")
    if projector.override_for(args.latitude, args.longitude) is not None:
        print("source: hand-placed override")
    else:
        region = projector.region_for(args.latitude, args.longitude)
        if region is not None:
            print(f"boundary adjustment: {region.name}")


def info_command(args: argparse.Namespace) -> None:
    """Show configuration and data source information.

    Args:
        args: Parsed command line arguments containing config file path.
    """
    config = _load_config(Path(args.config))
    print(config.summary())


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "config",
        nargs="?",
        default="geotopo.yml",
        help="Configuration file path (default: geotopo.yml)",
    )


def main() -> None:
    """Parse command line arguments and execute the appropriate subcommand.

    Configures logging, parses CLI arguments, and dispatches to the correct
    command function (generate, locate, project, or info).
    """
    parser = argparse.ArgumentParser(
        prog="geotopo",
        description="Synthesize geographic network topologies from device inventories.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Global options
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress console output (logs only)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    generate_parser = subparsers.add_parser(
        "generate", help="Build a topology from an inventory JSON file"
    )
    _add_config_argument(generate_parser)
    generate_parser.add_argument(
        "-i", "--inventory", required=True, help="Inventory JSON file"
    )
    generate_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output topology JSON file or directory. Defaults to ./topology.json.",
    )
    generate_parser.add_argument(
        "--seed", type=int, default=None, help="Seed for edge and link generation"
    )
    generate_parser.add_argument(
        "--map", default=None, help="Optional map preview image path"
    )
    generate_parser.add_argument(
        "--devices-out",
        default=None,
        help="Optional JSON file for devices with resolved coordinates and links",
    )
    generate_parser.add_argument(
        "--print",
        action="store_true",
        help="Print generated topology JSON to stdout",
    )
    generate_parser.set_defaults(func=generate_command)

    locate_parser = subparsers.add_parser(
        "locate", help="Resolve location strings to coordinates"
    )
    locate_parser.add_argument("--config", dest="config", default="geotopo.yml")
    locate_parser.add_argument("locations", nargs="+", help="Location strings")
    locate_parser.set_defaults(func=locate_command)

    project_parser = subparsers.add_parser(
        "project", help="Convert latitude/longitude to map coordinates"
    )
    project_parser.add_argument("--config", dest="config", default="geotopo.yml")
    project_parser.add_argument("latitude", type=float)
    project_parser.add_argument("longitude", type=float)
    project_parser.set_defaults(func=project_command)

    info_parser = subparsers.add_parser(
        "info", help="Show configuration and data source information"
    )
    _add_config_argument(info_parser)
    info_parser.set_defaults(func=info_command)

    # Parse arguments and dispatch
    args = parser.parse_args()

    import logging

    from geotopo.log_config import set_global_log_level

    if args.verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.INFO

    set_global_log_level(log_level)

    # Suppress print output if --quiet is set
    if args.quiet:
        import builtins

        builtins.print = lambda *args, **kwargs: None

    if not hasattr(args, "func") or args.func is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
