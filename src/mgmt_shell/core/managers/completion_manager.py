# src/mgmt_shell/core/managers/completion_manager.py
import logging
from typing import Dict, Any, Iterable

from prompt_toolkit.completion import Completion
from prompt_toolkit.document import Document
from prompt_toolkit.history import History

from mgmt_shell.core.context.shell_context import ShellContext
from mgmt_shell.core.managers.config_manager import config_manager
from mgmt_shell.core.parser import split_commands

logger = logging.getLogger(__name__)


class CompletionManager:
    """
    Manages logic for generating command completion suggestions for the
    sub-command under the cursor.
    """

    def __init__(
        self,
        shell_context: ShellContext,
        history: History,
        command_hierarchy: Dict[str, Any]
    ):
        self.ctx = shell_context
        self.history = history
        self.command_hierarchy = command_hierarchy

    def _current_segment(self, text_before_cursor: str) -> str:
        """The text of the last (unfinished) sub-command before the cursor."""
        separators = self.ctx.settings.command_separators
        parts = split_commands(text_before_cursor + "\0", separators)
        if not parts:
            return ""
        last = parts[-1]
        return last[:-1] if last.endswith("\0") else ""

    def generate_completions(self, document: Document) -> Iterable[Completion]:
        text_before_cursor = document.text_before_cursor

        if text_before_cursor.endswith('!h'):
            yield from self._get_history_completions()
            return

        relevant_text = self._current_segment(text_before_cursor)
        words_in_segment = relevant_text.split()
        word_before_cursor = document.get_word_before_cursor(WORD=True)

        if "$" in word_before_cursor:
            yield from self._get_variable_completions(word_before_cursor[word_before_cursor.rfind("$"):])
            return

        num_words_in_segment = len(words_in_segment)
        is_completing_first_word = (
            num_words_in_segment == 0 or
            (num_words_in_segment == 1 and not relevant_text.endswith(" "))
        )
        is_completing_second_word = (
            (num_words_in_segment == 1 and relevant_text.endswith(" ")) or
            (num_words_in_segment == 2 and not relevant_text.endswith(" "))
        )

        if is_completing_first_word:
            yield from self._get_main_command_completions(word_before_cursor)

        elif is_completing_second_word:
            hierarchy_entry = self.command_hierarchy.get(words_in_segment[0])
            if isinstance(hierarchy_entry, dict):
                if num_words_in_segment == 2 and not relevant_text.endswith(" "):
                    sub_word_to_complete = words_in_segment[1]
                else:
                    sub_word_to_complete = ""
                yield from self._get_sub_command_completions(hierarchy_entry.keys(), sub_word_to_complete)

    # --- Helper methods for different completion types ---

    def _get_main_command_completions(self, word_before_cursor: str) -> Iterable[Completion]:
        start_pos = -len(word_before_cursor)
        for command_name in sorted(self.command_hierarchy.keys()):
            if command_name.startswith(word_before_cursor):
                yield Completion(command_name, start_position=start_pos, display_meta="Main Command")

    def _get_history_completions(self) -> Iterable[Completion]:
        max_len = config_manager.get_nested("autocomplete.h_max_len", 5)
        logger.debug("History completion (!h) triggered. Max items: %s", max_len)
        recent_commands, seen = [], set()
        for command in reversed(self.history.get_strings()):
            command_stripped = command.strip()
            if command_stripped and command_stripped != '!h' and command_stripped not in seen:
                seen.add(command_stripped)
                recent_commands.append(command_stripped)
                if len(recent_commands) >= max_len:
                    break
        for command in recent_commands:
            yield Completion(command, start_position=-2, display_meta="Command History")

    def _get_variable_completions(self, prefix: str) -> Iterable[Completion]:
        """Yields `$name` variables and `${name}` properties matching the typed prefix."""
        start_pos = -len(prefix)
        suggestions = [(f"${name}", "Variable") for name in self.ctx.variables]
        suggestions += [(f"${{{name}}}", "Property") for name in self.ctx.properties]
        for suggestion, meta in sorted(suggestions):
            if suggestion.startswith(prefix):
                yield Completion(suggestion, start_position=start_pos, display_meta=meta)

    def _get_sub_command_completions(self, subcommands: Iterable[str], word_before_cursor: str) -> Iterable[Completion]:
        start_pos = -len(word_before_cursor)
        for sub in sorted(subcommands):
            if sub.startswith(word_before_cursor):
                yield Completion(sub, start_position=start_pos)
