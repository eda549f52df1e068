"""CLI entry point."""

import asyncio
import os
import sys
from typing import List

from common.logging_config import setup_logging
from cli.commands import close_filesystem, get_filesystem
from cli.constants import HELP_TEXT
from cli.parser import ParseError
from cli.repl import repl_loop, run_line
from filesystem.exceptions import HookFSError


async def run_batch(lines: List[str], fs) -> int:
    """
    Run each argument as one command line, stopping at the first failure.

    Returns:
        Process exit code
    """
    for line in lines:
        if line.strip() == "help":
            print(HELP_TEXT)
            continue
        try:
            print(await run_line(line, fs))
        except (ParseError, HookFSError, OSError) as e:
            print(f"Error: {e}")
            return 1
    return 0


async def run(args: List[str]) -> int:
    try:
        fs = await get_filesystem()
    except (ValueError, HookFSError, OSError) as e:
        print(f"Error: {e}")
        return 1

    try:
        if args:
            return await run_batch(args, fs)
        await repl_loop(fs)
        return 0
    finally:
        await close_filesystem()


def main() -> None:
    """Entry point for CLI."""
    log_level = 'DEBUG' if '--debug' in sys.argv else os.getenv('LOG_LEVEL', 'WARNING')

    logger = setup_logging('cli', log_level=log_level)

    if '--debug' in sys.argv:
        logger.info("Debug logging enabled")
        sys.argv.remove('--debug')

    logger.info("CLI starting...")
    try:
        exit_code = asyncio.run(run(sys.argv[1:]))
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
