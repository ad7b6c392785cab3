"""CLI interface for dbquery_exporter."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time

from . import __version__
from .config import ConfigError, ExporterConfig, load_config

logger = logging.getLogger(__name__)


def _load(args: argparse.Namespace) -> ExporterConfig:
    try:
        return load_config(args.config)
    except ConfigError as exc:
        logger.error("Failed to load config: %s", exc)
        sys.exit(1)


def _build_registry(cfg: ExporterConfig, **kwargs: object):
    from .exporter.server import build_registry

    try:
        return build_registry(cfg, **kwargs)
    except ValueError as exc:
        # duplicate metric names in the registry
        logger.error("Failed to register metrics: %s", exc)
        sys.exit(1)


def _cmd_serve(args: argparse.Namespace) -> None:
    """Serve /metrics until interrupted."""
    cfg = _load(args)
    bind = args.bind or cfg.server.bind

    from .exporter.server import MetricsServer

    registry = _build_registry(cfg)
    try:
        server = MetricsServer(registry, bind)
    except ValueError as exc:
        logger.error("Invalid bind address: %s", exc)
        sys.exit(1)

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        server.start()
    except OSError as exc:
        logger.error("Failed to start http server: %s", exc)
        sys.exit(1)

    print(f"dbquery_exporter serving {len(cfg.metrics)} metric(s) on {bind}")
    print("Press Ctrl+C to stop.\n")
    try:
        while not stop:
            time.sleep(0.5)
    finally:
        server.shutdown()
    print("\nExporter stopped.")


def _cmd_scrape(args: argparse.Namespace) -> None:
    """Run a single scrape and print the exposition text."""
    cfg = _load(args)

    from .exporter.server import render

    registry = _build_registry(cfg, process_metrics=False)
    sys.stdout.write(render(registry))


def _cmd_check_config(args: argparse.Namespace) -> None:
    """Validate the configuration and list exported metrics."""
    cfg = _load(args)

    from .collector.descriptors import build_descriptor

    for name, spec in cfg.metrics.items():
        descriptor = build_descriptor(cfg.namespace, spec)
        if descriptor is None:
            print(f"  {name:<30} INVALID type {spec.type_name!r}")
            continue
        labels = ", ".join(descriptor.labels) or "-"
        print(f"  {descriptor.name:<30} {descriptor.kind.value:<8} labels: {labels}")

    invalid = cfg.invalid_metrics()
    if invalid:
        print(f"\n{len(invalid)} metric(s) have an unsupported type")
        sys.exit(1)
    print(f"\n{len(cfg.metrics)} metric(s) OK")


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"dbquery_exporter {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the dbquery-exporter CLI."""
    parser = argparse.ArgumentParser(
        prog="dbquery-exporter",
        description="Export SQL query results as Prometheus metrics",
    )
    parser.add_argument("--config", "-c", default="config.yml", help="Path to the configuration file")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    sub = parser.add_subparsers(dest="command")

    # serve
    serve_p = sub.add_parser("serve", help="Serve metrics over HTTP")
    serve_p.add_argument("--bind", "-b", default=None, help="Listen address (default 0.0.0.0:9104)")
    serve_p.set_defaults(func=_cmd_serve)

    # scrape
    scrape_p = sub.add_parser("scrape", help="Run the queries once and print the metrics")
    scrape_p.set_defaults(func=_cmd_scrape)

    # check-config
    check_p = sub.add_parser("check-config", help="Validate the configuration")
    check_p.set_defaults(func=_cmd_check_config)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
