"""Interactive prompt for the PSD converter."""

import os
import sys
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, InMemoryHistory

from common.logging_config import get_logger
from cli.commands import (
    CliContext,
    handle_abort,
    handle_config,
    handle_convert,
    handle_set,
    handle_status,
    handle_upload,
)
from cli.completer import PsdCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    AbortCommand,
    CommandRequest,
    ConfigCommand,
    ConvertCommand,
    SetCommand,
    StatusCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command

logger = get_logger(__name__)

HANDLERS = {
    UploadCommand: handle_upload,
    ConvertCommand: handle_convert,
    StatusCommand: handle_status,
    AbortCommand: handle_abort,
    SetCommand: handle_set,
    ConfigCommand: handle_config,
}


class ExitRepl(Exception):
    """Raised by the 'exit' builtin to leave the loop."""


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    os.system("cls" if sys.platform == "win32" else "clear")


def show_welcome(ctx: CliContext) -> None:
    print(LOGO)
    print(WELCOME_TITLE)
    if ctx.api is None:
        print("Running offline with the mock backend; upload, status and abort are disabled.")
    print(WELCOME_HELP)


def dispatch_command(cmd_obj: CommandRequest, ctx: CliContext) -> str:
    """Dispatch parsed command to appropriate handler."""
    handler = HANDLERS.get(type(cmd_obj))
    if handler is None:
        return f"Unknown command type: {type(cmd_obj).__name__}"
    return handler(cmd_obj, ctx)


def handle_line(line: str, ctx: CliContext) -> Optional[str]:
    """
    Run one line of user input.

    Builtins (help, clear, exit) are handled here; everything else is
    parsed and dispatched.

    Returns:
        Text to print, or None when there is nothing to show

    Raises:
        ExitRepl: On 'exit'
    """
    text = line.strip()
    if not text:
        return None
    if text == "exit":
        raise ExitRepl()
    if text == "help":
        return HELP_TEXT
    if text == "clear":
        clear_screen()
        show_welcome(ctx)
        return None

    try:
        cmd_obj = parse_command(text)
    except ParseError as e:
        return f"Error: {e}"
    logger.debug(f"Dispatching {cmd_obj.command}")
    return dispatch_command(cmd_obj, ctx)


def repl_loop(ctx: CliContext) -> None:
    """Start interactive REPL with prompt_toolkit."""
    history_path = ctx.config.config_path.parent / "history"
    try:
        history = FileHistory(str(history_path))
    except OSError:
        history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=PsdCompleter(), history=history, style=STYLE
    )

    clear_screen()
    show_welcome(ctx)

    while True:
        try:
            output = handle_line(session.prompt([("class:prompt", PROMPT_TEXT)]), ctx)
        except KeyboardInterrupt:
            continue
        except (EOFError, ExitRepl):
            print("Goodbye!")
            break
        if output:
            print(output)
