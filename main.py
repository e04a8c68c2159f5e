"""
Proxy Publisher - Main Entry Point
Deploys one contract behind an ERC1967 proxy and prints a JSON report
"""

import asyncio
import os
import sys
from typing import List, Optional
from loguru import logger

from publisher.config import parse_config
from publisher.runner import publish_one
from utils.exceptions import PublishError

COMMAND = 'publish-one'
DEFAULT_LOG_FILE = 'data/logs/publish.log'


def configure_logging(verbose: bool):
    """stderr stays a single error line unless --verbose is given"""
    logger.remove()
    if verbose:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
            level="DEBUG"
        )

    log_file = os.getenv('LOG_FILE', DEFAULT_LOG_FILE)
    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
            level="DEBUG"
        )


def print_usage():
    print("Usage:")
    print(f"  proxy-publisher {COMMAND} --contract <name> [flags]")
    print()
    print("Core flags/env: --rpc-url(RPC_URL) --chain-id(CHAIN_ID) --private-key(PRIVATE_KEY) [--public-address(PUBLIC_ADDRESS)]")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    argv = sys.argv[1:] if argv is None else argv

    if not argv or argv[0] != COMMAND:
        print_usage()
        return 2

    try:
        cfg = parse_config(argv[1:])
        configure_logging(cfg.verbose)
        report = asyncio.run(publish_one(cfg))
    except PublishError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.opt(exception=e).error("Unexpected failure")
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(report.to_json())
    return 0


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
