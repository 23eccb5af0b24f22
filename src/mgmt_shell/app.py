# src/mgmt_shell/app.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer
from prompt_toolkit.document import Document
from prompt_toolkit.history import FileHistory
from prompt_toolkit.validation import ValidationError, Validator

from mgmt_shell.core.command_registry import (
    COMMAND_HIERARCHY,
    WHOLE_LINE_COMMANDS,
    CommandRegistry,
    register_all_commands,
)
from mgmt_shell.core.context.shell_context import ShellContext
from mgmt_shell.core.core import XNGINE
from mgmt_shell.core.managers.config_manager import config_manager
from mgmt_shell.core.managers.completion_manager import CompletionManager
from mgmt_shell.core.parser import parse_command_line
from mgmt_shell.core.parsing.errors import CommandSyntaxError
from mgmt_shell.core.parsing.parse_result import ParseResult
from mgmt_shell.core.services.render_service import render_address
from mgmt_shell.core.services.script_service import run_script
from mgmt_shell.core.utils.configure_logging import configure_logger
from mgmt_shell.core.utils.path_utils import PathUtils
from mgmt_shell.core.xngine import QUIT_CODE

# Initialize logging based on configuration
configure_logger(
    config_manager.get_nested("debug.level", "WARNING"),
    config_manager.get_nested("debug.modules"),
    config_manager.get_nested("silenced_loggers"),
)
logger = logging.getLogger(__name__)


class PromptToolkitCompleter(Completer):
    """
    A wrapper that uses the CompletionManager to generate suggestions
    in a way that prompt_toolkit expects.
    """

    def __init__(self, manager: CompletionManager):
        self.manager = manager

    def get_completions(self, document: Document, complete_event):
        yield from self.manager.generate_completions(document)


class OperationLineValidator(Validator):
    """
    Checks operation requests before the line is accepted, so syntax errors
    are shown at their offset while the line can still be edited.
    Shell built-ins are left to their handlers.
    """

    def __init__(self, ctx: ShellContext):
        self.ctx = ctx

    def validate(self, document: Document) -> None:
        if not self.ctx.settings.validation:
            return
        text = document.text
        offset = 0
        segments = parse_command_line(
            text, CommandRegistry, self.ctx.settings.command_separators, WHOLE_LINE_COMMANDS)
        for name, _args, part in segments:
            start = text.find(part, offset)
            offset = start + len(part)
            if name is not None:
                continue
            result = ParseResult(self.ctx.current_address, validation=True)
            try:
                self.ctx.operation_parser().parse(part, result)
            except CommandSyntaxError as e:
                position = start + max(e.offset, 0)
                raise ValidationError(cursor_position=min(position, len(text)), message=e.message)


def _build_session(ctx: ShellContext) -> PromptSession:
    history_path = PathUtils.get_shell_history_file()
    history = FileHistory(str(history_path))
    completion_manager = CompletionManager(ctx, history, COMMAND_HIERARCHY)
    logger.info("Shell startup; history file at: %s", history_path)
    return PromptSession(
        history=history,
        completer=PromptToolkitCompleter(completion_manager),
        complete_while_typing=True,
        validator=OperationLineValidator(ctx),
        validate_while_typing=False,
    )


def start_shell(ctx: ShellContext) -> None:
    """Starts the interactive REPL (Read-Eval-Print Loop)."""
    print("Welcome to the Management Shell (type 'help' for commands)")
    session = _build_session(ctx)
    ctx.prompt_session = session
    prompt_template = config_manager.get_nested("shell.prompt", "[{address}]> ")

    try:
        while True:
            try:
                prompt = prompt_template.format(address=render_address(ctx.current_address))
                line = session.prompt(prompt).strip()
            except KeyboardInterrupt:
                continue
            except EOFError:
                break

            if not line:
                continue

            if XNGINE.execute_line(line, ctx) == QUIT_CODE:
                break
    finally:
        print("Bye!")


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mgmt-shell", description="Management operation request shell.")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--file", "-f", type=Path, help="Run the commands of a script file and exit.")
    group.add_argument("--command", "-c", help="Run one command line and exit.")
    parser.add_argument("--resolve-parameter-values", action="store_true",
                        help="Resolve ${...} expressions inside parameter values.")
    parser.add_argument("--no-validate", action="store_true",
                        help="Accept partial input instead of failing on unbalanced quotes and brackets.")
    parser.add_argument("--no-progress", action="store_true", help="Hide the script progress bar.")
    parser.add_argument("--debug", metavar="LEVEL", help="Override debug.level from settings.json.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for running the shell from the command line."""
    args = _build_arg_parser().parse_args(argv)

    if args.debug:
        configure_logger(args.debug, config_manager.get_nested("debug.modules"),
                         config_manager.get_nested("silenced_loggers"))
    if args.resolve_parameter_values:
        config_manager.set_nested("parsing.resolve_parameter_values", True)
    if args.no_validate:
        config_manager.set_nested("parsing.validation", False)

    register_all_commands()
    ctx = ShellContext()

    if args.command is not None:
        code = XNGINE.execute_line(args.command, ctx)
        return 0 if code == QUIT_CODE else code
    if args.file is not None:
        show_progress = config_manager.get_nested("shell.script_progress", True) and not args.no_progress
        return run_script(args.file, ctx, XNGINE, show_progress)

    start_shell(ctx)
    return 0


if __name__ == "__main__":
    sys.exit(main())
