"""REPL with prompt_toolkit for user interaction."""

import asyncio
import os
import sys

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from cli.commands import CommandContext, execute_command
from cli.completer import CrudFsCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import CommandResult
from cli.parser import ParseError, parse_command


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_logo() -> None:
    """Display CrudFs logo with ANSI colors."""
    print(LOGO)


def render_result(result: CommandResult) -> str:
    return result.message if result.success else f"Error: {result.message}"


async def repl_loop(context: CommandContext) -> None:
    """Start interactive REPL with prompt_toolkit."""
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=CrudFsCompleter(), history=history, style=STYLE
    )

    clear_screen()
    show_logo()
    print(WELCOME_TITLE)
    print(WELCOME_HELP)

    try:
        while True:
            try:
                user_input = await session.prompt_async([("class:prompt", PROMPT_TEXT)])

                if not user_input.strip():
                    continue

                if user_input.strip() == "exit":
                    print("Goodbye!")
                    break

                if user_input.strip() == "help":
                    print(HELP_TEXT)
                    continue

                if user_input.strip() == "clear":
                    clear_screen()
                    show_logo()
                    print(WELCOME_TITLE)
                    print(WELCOME_HELP)
                    continue

                cmd_obj = parse_command(user_input)
                result = await execute_command(cmd_obj, context)
                print(render_result(result))

            except ParseError as e:
                print(f"Error: {e}")
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break
    finally:
        await context.close()


def run_repl(context: CommandContext) -> None:
    asyncio.run(repl_loop(context))
