"""Custom completer for the PSD converter CLI with file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import (
    COMMANDS,
    CONVERT_FLAGS,
    FRAMEWORK_CHOICES,
    SUPPORTED_FILE_EXTENSIONS,
    UPLOAD_FLAGS,
)

FILE_COMMANDS = ("upload", "convert")


class PsdCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - PSD file completion for 'upload' and 'convert'
    - Flag and framework name completion for their options
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command not in FILE_COMMANDS:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        previous = tokens[-1] if is_typing_new_token else (tokens[-2] if len(tokens) > 1 else "")

        if previous == "--framework":
            yield from self._complete_words(FRAMEWORK_CHOICES, current_word)
            return

        if current_word.startswith("-"):
            flags = CONVERT_FLAGS if command == "convert" else UPLOAD_FLAGS
            used = set(tokens[1:-1]) if not is_typing_new_token else set(tokens[1:])
            yield from self._complete_words([f for f in flags if f not in used], current_word)
            return

        yield from self._complete_psd_files(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_words(self, words: Iterable[str], partial: str) -> Iterable[Completion]:
        for word in words:
            if word.startswith(partial):
                yield Completion(word, start_position=-len(partial))

    def _complete_psd_files(self, partial: str) -> Iterable[Completion]:
        """
        Complete PSD paths relative to the current directory.

        Directories are offered too so nested files can be reached.
        """
        base = Path(partial).parent if partial and not partial.endswith("/") else Path(partial or ".")
        search_dir = Path.cwd() / base

        if not search_dir.is_dir():
            return

        candidates = []
        for item in search_dir.iterdir():
            if item.name.startswith("."):
                continue
            rel = Path(item.name) if base == Path(".") else base / item.name
            if item.is_dir():
                candidates.append(f"{rel.as_posix()}/")
            elif item.name.lower().endswith(SUPPORTED_FILE_EXTENSIONS):
                candidates.append(rel.as_posix())

        partial_lower = partial.lower()
        for candidate in sorted(candidates):
            if candidate.lower().startswith(partial_lower):
                yield Completion(candidate, start_position=-len(partial))
