"""Command-line entry point: run a fixed command on a remote host over SSH."""

import argparse
import asyncio
import io
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

import asyncssh

from .config import Settings, load_settings
from .errors import AgentError, ConfigError, ConnectionStringError
from .relay import SessionResult, StreamRelay
from .ssh_client import SSHClient
from .target import parse_connection_string

REMOTE_COMMAND = "ls -l"

EXIT_USAGE = 2
EXIT_CONNECTION = 255

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ssh-relay",
        description=(
            f"Run '{REMOTE_COMMAND}' on a remote host, authenticating with the "
            "local SSH agent"
        ),
    )
    parser.add_argument(
        "connection",
        nargs="?",
        default=None,
        metavar="USER@HOST[:PORT]",
        help="Connection string (takes precedence over --conn)",
    )
    parser.add_argument(
        "--conn",
        default="",
        help="Connection string in the format 'username@hostname:port'",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a YAML settings file (omit for defaults)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr; repeat for debug output",
    )
    return parser


def configure_logging(verbosity: int) -> None:
    """Set up stderr logging; -v for info, -vv adds asyncssh debug output."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    asyncssh.set_log_level(level if verbosity >= 2 else logging.WARNING)
    if verbosity >= 2:
        asyncssh.set_debug_level(2)


async def run_remote(
    conn_str: str, settings: Settings, relay: StreamRelay
) -> SessionResult:
    """Parse the connection string, connect and run the fixed command."""
    target = parse_connection_string(conn_str, default_port=settings.default_port)
    async with SSHClient(target, settings) as client:
        return await client.run(REMOTE_COMMAND, relay)


def exit_code_for(result: SessionResult) -> int:
    """Map a session outcome to this process's exit status."""
    if result.exit_signal is not None or result.exit_status is None:
        return EXIT_CONNECTION
    return result.exit_status


def console_stdin() -> TextIO:
    """Local stdin, decoding undecodable bytes as U+FFFD like remote output."""
    stdin = sys.stdin
    if isinstance(stdin, io.TextIOWrapper):
        stdin.reconfigure(errors="replace")
    return stdin


def _error(message: str) -> None:
    print(f"ERROR: {message}", file=sys.stderr)


def main(argv: Optional[list[str]] = None) -> int:
    """Run the client; returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    conn_str = args.connection or args.conn
    if not conn_str:
        parser.error(
            "Connection string not provided. Please use '--conn' flag or "
            "positional argument 'username@hostname:port'."
        )

    configure_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except ConfigError as e:
        _error(str(e))
        return EXIT_USAGE

    relay = StreamRelay(stdin=console_stdin(), queue_size=settings.stdin_queue_size)

    try:
        result = asyncio.run(run_remote(conn_str, settings, relay))
    except ConnectionStringError as e:
        _error(str(e))
        return EXIT_USAGE
    except AgentError as e:
        _error(str(e))
        return EXIT_CONNECTION
    except (OSError, asyncio.TimeoutError, asyncssh.Error) as e:
        _error(f"SSH connection to {conn_str} failed: {e}")
        return EXIT_CONNECTION

    if not result.succeeded:
        print(result.describe(), file=sys.stderr)
    return exit_code_for(result)


if __name__ == "__main__":
    sys.exit(main())
