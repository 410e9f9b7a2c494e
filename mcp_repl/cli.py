"""
Command line entry point for mcp-repl.

    mcp-repl [working-directory] [--config PATH] [--log-level LEVEL]
"""

import argparse
import asyncio
import sys
from pathlib import Path

from . import __version__
from .core.config import ConfigManager
from .core.exceptions import McpReplError
from .core.logging import get_logger, setup_logging
from .server import create_server

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-repl",
        description="MCP REPL - Code execution and semantic search server",
    )
    parser.add_argument(
        "working_dir",
        nargs="?",
        default=None,
        metavar="working-directory",
        help="Directory code runs in and search defaults to (default: current directory)",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=__version__,
        help="Show version",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML or JSON config file (default: <working-directory>/mcp_repl.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level for stderr output (default: WARNING)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the server; returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        working_dir = Path(args.working_dir) if args.working_dir else Path.cwd()
        config = ConfigManager(working_dir, config_path=args.config).load_config()
        if args.log_level:
            config.server.log_level = args.log_level
        setup_logging(config.server.log_level)
        logger.debug(f"Effective configuration: {config.to_dict()}")
        server = create_server(config)
    except McpReplError as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1

    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1
    return 0


def run() -> None:
    sys.exit(main())
