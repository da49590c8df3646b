"""Custom completer for CrudFs CLI with flag and path autocompletion."""

import os
from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMAND_FLAGS, COMMANDS, PATH_FLAGS


class CrudFsCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Flag completion for the command's flags
    - File path completion after --path, --output and --manifest
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.

        For the first token, completes command names.
        After a path flag, completes entries of the working directory.
        Otherwise completes the flags the command accepts.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        flags = COMMAND_FLAGS.get(command)
        if flags is None:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        previous = tokens[-1] if is_typing_new_token else (tokens[-2] if len(tokens) > 1 else "")

        if previous in PATH_FLAGS:
            yield from self._complete_paths(current_word)
            return

        already_used = set(t for t in tokens[1:] if t.startswith("--"))
        already_used.discard(current_word)
        for flag in flags:
            if flag.startswith(current_word) and flag not in already_used:
                yield Completion(flag, start_position=-len(current_word))

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_paths(self, partial: str) -> Iterable[Completion]:
        """
        Complete file and directory names relative to the working directory.

        Directories are suggested with a trailing separator.
        """
        directory, prefix = os.path.split(partial)
        base = Path.cwd() / directory if directory else Path.cwd()

        if not base.is_dir():
            return

        for item in sorted(base.iterdir()):
            if not item.name.startswith(prefix):
                continue
            if item.name.startswith(".") and not prefix.startswith("."):
                continue
            candidate = os.path.join(directory, item.name) if directory else item.name
            if item.is_dir():
                candidate += os.sep
            yield Completion(candidate, start_position=-len(partial))
