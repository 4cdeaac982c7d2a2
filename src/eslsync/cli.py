"""
Command-line interface for the ESL sync service.

Provides commands for running the webhook receiver and pushing item files.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import structlog
import uvicorn
from pydantic import ValidationError

from eslsync import __version__
from eslsync.config import SyncConfig, clean_store_mappings, set_config
from eslsync.core.errors import ConfigurationError
from eslsync.core.records import decode_records
from eslsync.core.store_map import StoreMap
from eslsync.service.orchestrator import SyncOrchestrator
from eslsync.service.server import create_app
from eslsync.sink.client import SinkClient

logger = structlog.get_logger(__name__)


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stdout,
    )


def parse_store_mappings(values: Optional[List[str]]) -> Dict[str, str]:
    """
    Parse repeated SRC=DEST arguments.

    Raises:
        ConfigurationError: If an argument is not of the form SRC=DEST
    """
    mappings = {}
    for value in values or []:
        source, sep, dest = value.partition("=")
        if not sep or not source.strip():
            raise ConfigurationError(f"Invalid store mapping '{value}', expected SRC=DEST")
        mappings[source.strip()] = dest.strip()
    return mappings


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--env-file",
        help="Path to a .env file with ESL_* settings (default: .env)",
    )
    parser.add_argument(
        "--store",
        action="append",
        metavar="SRC=DEST",
        help="Map a source store number to a sink store id (repeatable)",
    )
    parser.add_argument(
        "--api-key",
        help="Sink API subscription key",
    )
    parser.add_argument(
        "--base-url",
        help="Sink API base URL",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=None,
        help="Output logs in JSON format",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="esl-sync",
        description="Republish point-of-sale item updates to an ESL API",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the webhook receiver")
    _add_config_arguments(serve_parser)
    serve_parser.add_argument(
        "--host",
        help="Address to bind (default: 127.0.0.1)",
    )
    serve_parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (default: 8080)",
    )

    # Push command (one-time delivery of a JSON file)
    push_parser = subparsers.add_parser("push", help="Process a JSON file of items once")
    _add_config_arguments(push_parser)
    push_parser.add_argument(
        "file",
        type=Path,
        help="JSON array of source items",
    )

    # Stores command
    stores_parser = subparsers.add_parser("stores", help="Show configured store mappings")
    _add_config_arguments(stores_parser)

    return parser


def build_config(args: argparse.Namespace) -> SyncConfig:
    """
    Build configuration from the environment, .env file and CLI overrides.

    Raises:
        ConfigurationError: If settings are invalid
    """
    overrides = {
        "sink_api_key": getattr(args, "api_key", None),
        "sink_base_url": getattr(args, "base_url", None),
        "server_host": getattr(args, "host", None),
        "server_port": getattr(args, "port", None),
        "log_level": getattr(args, "log_level", None),
        "log_json": getattr(args, "log_json", None),
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}

    try:
        if getattr(args, "env_file", None):
            config = SyncConfig(_env_file=args.env_file, **overrides)
        else:
            config = SyncConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    store_args = parse_store_mappings(getattr(args, "store", None))
    if store_args:
        mappings = dict(config.store_mappings)
        mappings.update(store_args)
        config = config.model_copy(update={"store_mappings": clean_store_mappings(mappings)})

    return config


class SyncServer(uvicorn.Server):
    """Uvicorn server that aborts retry backoffs as soon as a signal arrives."""

    def __init__(self, config: uvicorn.Config, orchestrator: SyncOrchestrator):
        super().__init__(config)
        self.orchestrator = orchestrator

    def handle_exit(self, sig, frame) -> None:
        logger.info("shutdown_signal_received", signal=sig)
        self.orchestrator.begin_shutdown()
        super().handle_exit(sig, frame)


def build_orchestrator(config: SyncConfig) -> SyncOrchestrator:
    """Wire the store map, sink client and orchestrator."""
    store_map = StoreMap.from_config(config)
    client = SinkClient(config)
    return SyncOrchestrator(store_map, client, config)


def run_server(config: SyncConfig) -> None:
    """Run the webhook receiver until interrupted."""
    config.require_api_key()
    orchestrator = build_orchestrator(config)
    app = create_app(orchestrator, config)

    print(f"Starting ESL Sync v{__version__}")
    print(f"Listening on: http://{config.server_host}:{config.server_port}{config.webhook_path}")
    print(f"Sink API: {config.sink_base_url}")
    print(f"Configured stores: {', '.join(config.store_mappings) or 'none'}")
    print()

    server = SyncServer(
        uvicorn.Config(
            app,
            host=config.server_host,
            port=config.server_port,
            log_config=None,
            timeout_graceful_shutdown=max(1, int(config.shutdown_grace_seconds)),
        ),
        orchestrator,
    )
    server.run()


async def push_file(config: SyncConfig, path: Path) -> int:
    """
    Process one JSON file of items through the pipeline.

    Returns:
        Exit code: 0 on success, 1 if any error was recorded
    """
    try:
        records = decode_records(path.read_bytes())
    except ValidationError as e:
        print(f"Invalid item file {path}: {e}")
        return 1

    orchestrator = build_orchestrator(config)
    await orchestrator.client.connect()
    try:
        outcome, status = await orchestrator.handle(records)
    finally:
        await orchestrator.shutdown(grace_seconds=0)

    print(outcome.summary())
    for error in outcome.errors:
        print(f"  {error}")
    return 0 if status == 200 else 1


def show_stores(config: SyncConfig) -> None:
    """Print the configured store mappings."""
    if not config.store_mappings:
        print("No store mappings configured. All items will be ignored.")
        return
    print(f"{len(config.store_mappings)} store mapping(s):")
    for source, dest in config.store_mappings.items():
        print(f"  {source} -> {dest}")


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)

    set_config(config)
    setup_logging(config.log_level, config.log_json)

    try:
        if args.command == "serve":
            run_server(config)
        elif args.command == "push":
            sys.exit(asyncio.run(push_file(config, args.file)))
        elif args.command == "stores":
            show_stores(config)
    except ConfigurationError as e:
        logger.error("configuration_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
