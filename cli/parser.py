"""Command parser for CLI input."""

import shlex
from typing import Optional

from cli.constants import FRAMEWORK_CHOICES
from cli.models import (
    AbortCommand,
    CommandRequest,
    ConfigCommand,
    ConvertCommand,
    SetCommand,
    StatusCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "upload":
        return _parse_upload(tokens[1:])
    elif command_name == "convert":
        return _parse_convert(tokens[1:])
    elif command_name == "status":
        return _parse_status(tokens[1:])
    elif command_name == "abort":
        return _parse_abort(tokens[1:])
    elif command_name == "set":
        return _parse_set(tokens[1:])
    elif command_name == "config":
        if tokens[1:]:
            raise ParseError("config takes no arguments")
        return ConfigCommand()
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _take_value(args: list[str], i: int, flag: str) -> str:
    """Return the value following a flag at position i."""
    if i + 1 >= len(args):
        raise ParseError(f"{flag} requires a value")
    return args[i + 1]


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <file> [--chunk-kib N] [--gzip]' command."""
    file_path: Optional[str] = None
    chunk_kib: Optional[int] = None
    use_gzip = False

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--chunk-kib":
            raw = _take_value(args, i, arg)
            try:
                chunk_kib = int(raw)
            except ValueError:
                raise ParseError(f"--chunk-kib expects an integer, got '{raw}'")
            if chunk_kib <= 0:
                raise ParseError("--chunk-kib must be positive")
            i += 2
            continue
        if arg == "--gzip":
            use_gzip = True
        elif arg.startswith("--"):
            raise ParseError(f"Unknown option for upload: {arg}")
        elif file_path is None:
            file_path = arg
        else:
            raise ParseError("upload takes exactly one file")
        i += 1

    if file_path is None:
        raise ParseError("upload requires a file")

    return UploadCommand(file_path=file_path, chunk_kib=chunk_kib, gzip=use_gzip)


def _parse_convert(args: list[str]) -> ConvertCommand:
    """Parse 'convert <file> [options]' command."""
    file_path: Optional[str] = None
    framework: Optional[str] = None
    threshold: Optional[float] = None
    output_dir: Optional[str] = None
    toggles = {
        "--no-responsive": "responsive",
        "--no-semantic": "semantic",
        "--no-accessibility": "accessibility",
        "--no-validate": "validate",
    }
    enabled = {name: True for name in toggles.values()}

    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--framework":
            framework = _take_value(args, i, arg).lower()
            if framework not in FRAMEWORK_CHOICES:
                raise ParseError(
                    f"Unknown framework '{framework}'. Choose from: {', '.join(FRAMEWORK_CHOICES)}"
                )
            i += 2
            continue
        if arg == "--threshold":
            raw = _take_value(args, i, arg)
            try:
                threshold = float(raw)
            except ValueError:
                raise ParseError(f"--threshold expects a number, got '{raw}'")
            if not 0.0 <= threshold <= 1.0:
                raise ParseError("--threshold must be between 0 and 1")
            i += 2
            continue
        if arg == "--output":
            output_dir = _take_value(args, i, arg)
            i += 2
            continue
        if arg in toggles:
            enabled[toggles[arg]] = False
        elif arg.startswith("--"):
            raise ParseError(f"Unknown option for convert: {arg}")
        elif file_path is None:
            file_path = arg
        else:
            raise ParseError("convert takes exactly one file")
        i += 1

    if file_path is None:
        raise ParseError("convert requires a file")

    return ConvertCommand(
        file_path=file_path,
        framework=framework,
        threshold=threshold,
        output_dir=output_dir,
        **enabled,
    )


def _parse_status(args: list[str]) -> StatusCommand:
    """Parse 'status <upload-id>' command."""
    if len(args) != 1:
        raise ParseError("status requires exactly one upload id")
    return StatusCommand(upload_id=args[0])


def _parse_abort(args: list[str]) -> AbortCommand:
    """Parse 'abort [upload-id]' command."""
    if len(args) > 1:
        raise ParseError("abort takes at most one upload id")
    return AbortCommand(upload_id=args[0] if args else None)


def _parse_set(args: list[str]) -> SetCommand:
    """Parse 'set <key> <value>' command."""
    if len(args) != 2:
        raise ParseError("set requires a key and a value")
    return SetCommand(key=args[0], value=args[1])
