"""CLI entry point."""

import asyncio
import os
import sys

from dotenv import load_dotenv

from common.exceptions import ConfigError
from common.logging_config import setup_logging
from cli.commands import CommandContext, execute_command
from cli.config import Config
from cli.models import CommandRequest
from cli.parser import ParseError, parse_tokens
from cli.repl import render_result, run_repl
from crudfs.settings import Settings


async def run_once(cmd: CommandRequest, context: CommandContext) -> int:
    """Run a single command and return the process exit code."""
    try:
        result = await execute_command(cmd, context)
    finally:
        await context.close()
    print(render_result(result))
    return 0 if result.success else 1


def main() -> None:
    """Entry point for CLI. With arguments runs one command, without starts the REPL."""
    load_dotenv()

    args = sys.argv[1:]
    debug = '--debug' in args
    if debug:
        args = [a for a in args if a != '--debug']

    log_level = 'DEBUG' if debug else os.getenv('CRUDFS_LOG_LEVEL', 'WARNING')
    logger = setup_logging('cli', log_level=log_level)
    if debug:
        logger.info("Debug logging enabled")

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    context = CommandContext(settings, Config())

    if args:
        try:
            cmd = parse_tokens(args)
        except ParseError as e:
            print(f"Error: {e}")
            sys.exit(1)
        sys.exit(asyncio.run(run_once(cmd, context)))

    logger.info("CLI starting...")
    try:
        run_repl(context)
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
