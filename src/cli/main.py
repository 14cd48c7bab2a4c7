"""Sensorlog CLI entry points.
This module exposes commands to ingest testbed telemetry into SQLite.
It maps argparse commands onto the ingest pipeline.
"""

from __future__ import annotations

import argparse
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Sequence

from core.config import SensorlogConfig
from core.errors import SensorlogError
from core.logging_config import get_logger
from core.types import IngestOptions, IngestStats
from ingest.pipeline import ingest_testbed, initialize_store

_LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="sensorlog", description="Load sensor-network testbed logs into SQLite"
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        help="Override SENSORLOG_CHUNK_SIZE (decompressed bytes per chunk)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_ingest_command(subparsers)
    _add_init_db_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Sensorlog CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.chunk_size is not None and args.chunk_size <= 0:
        parser.error("--chunk-size must be a positive integer")
    try:
        if args.command == "ingest":
            return _run_ingest_command(_build_config(args.chunk_size), args)
        if args.command == "init-db":
            return _run_init_db_command(args)
    except SensorlogError as error:
        _LOGGER.error("command_failed", command=args.command, error=str(error))
        print(f"{args.command}_error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(chunk_size: int | None) -> SensorlogConfig:
    """Build runtime config with optional chunk-size override.

    Args:
        chunk_size: Optional override in bytes.

    Returns:
        Validated config.
    """
    config = SensorlogConfig.from_env()
    if chunk_size is not None:
        config = replace(config, chunk_size=chunk_size)
    return config


def _add_ingest_command(subparsers: Any) -> None:
    """Register ingest subcommand."""
    parser = subparsers.add_parser("ingest", help="Ingest serial and server logs")
    parser.add_argument("output", help="Destination SQLite database path")
    parser.add_argument("input_serial", help="Zstandard-compressed serial log")
    parser.add_argument("input_server", help="Zstandard-compressed server log")
    parser.add_argument(
        "--no-vacuum",
        action="store_true",
        help="Skip compacting the database after ingestion",
    )


def _add_init_db_command(subparsers: Any) -> None:
    """Register init-db subcommand."""
    parser = subparsers.add_parser("init-db", help="Create empty destination tables")
    parser.add_argument("output", help="Destination SQLite database path")


def _run_ingest_command(config: SensorlogConfig, args: argparse.Namespace) -> int:
    """Handle ingest command.

    Args:
        config: Runtime configuration.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = IngestOptions(
        database_path=Path(args.output).expanduser(),
        serial_path=Path(args.input_serial).expanduser(),
        server_path=Path(args.input_server).expanduser(),
        vacuum=not args.no_vacuum,
    )
    report = ingest_testbed(options, config)
    _print_stats("serial", report.serial)
    _print_stats("server", report.server)
    return 0


def _run_init_db_command(args: argparse.Namespace) -> int:
    """Handle init-db command."""
    initialize_store(Path(args.output).expanduser())
    print(args.output)
    return 0


def _print_stats(stream: str, stats: IngestStats) -> None:
    counters = "\t".join(f"{name}={value}" for name, value in asdict(stats).items())
    print(f"{stream}\t{counters}")
