# src/mgmt_shell/core/xngine.py
from __future__ import annotations

import base64
import inspect
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from mgmt_shell.core.context.shell_context import ShellContext
from mgmt_shell.core.managers.config_manager import config_manager
from mgmt_shell.core.parser import parse_command_line
from mgmt_shell.core.parsing.errors import CommandSyntaxError, format_syntax_error
from mgmt_shell.core.parsing.parse_result import ParseResult
from mgmt_shell.model import OperationRequest

QUIT_CODE = 130

Segment = Tuple[Optional[str], List[str], str]


def _json_default(obj: Any) -> Any:
    if isinstance(obj, bytes):
        return {"BYTES_VALUE": base64.b64encode(obj).decode("ascii")}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def request_to_json(request: OperationRequest, indent: Optional[int] = 2) -> str:
    return json.dumps(request.to_python(), indent=indent, default=_json_default)


class ExecuteEngine:
    """
    Core engine responsible for command execution: every sub-command of a
    line is either a shell built-in or an operation request.
    """

    def __init__(
            self,
            *,
            command_registry: Dict[str, Callable[..., int]],
            whole_line_commands: Iterable[str] = (),
            parse_fn: Optional[Callable[..., List[Segment]]] = None,
            logger: Optional[logging.Logger] = None,
    ) -> None:
        self._commands = command_registry
        self._whole_line = whole_line_commands
        self._parse = parse_fn or parse_command_line
        self._log = logger or logging.getLogger(__name__)

    def execute_line(self, line: str, ctx: ShellContext) -> int:
        """Splits `line` into sub-commands and runs them in order."""
        separators: Iterable[str] = ctx.settings.command_separators
        commands = self._parse(line, self._commands.keys(), separators, self._whole_line)
        return self.execute_sequence(commands, ctx)

    def execute_sequence(self, commands: List[Segment], context: Optional[ShellContext] = None) -> int:
        """
        Executes the segments in order and stops at the first failure.
        Returns the exit code of the last segment that ran; 130 means quit.
        """
        ctx = context or ShellContext()
        last_exit = 0

        for name, args, raw in commands:
            if name is None:
                last_exit = self.execute_operation(raw, ctx)
            else:
                handler = self._commands.get(name)
                last_exit = self._call_handler(handler, args, ctx)

            if last_exit == QUIT_CODE:
                return QUIT_CODE
            if last_exit != 0:
                self._log.debug("Stopping after '%s' failed with exit code %d", raw, last_exit)
                break

        return last_exit

    def execute_operation(self, line: str, ctx: ShellContext) -> int:
        """Parses `line` against the current address and prints the typed request."""
        result = ParseResult(ctx.current_address, validation=ctx.settings.validation)
        try:
            ctx.operation_parser().parse(line, result)
        except CommandSyntaxError as e:
            self._log.debug("Syntax error in %r", line, exc_info=True)
            print(format_syntax_error(e, line))
            return 1

        try:
            request = ctx.request_builder().build(result)
        except CommandSyntaxError as e:
            self._log.debug("Cannot build a request from %r", line, exc_info=True)
            print(f"Error: {e}")
            return 1

        output = request_to_json(request, config_manager.get_nested("shell.json_indent", 2))
        if request.output_target:
            path = Path(request.output_target).expanduser()
            try:
                with open(path, "w", encoding="utf-8") as f:
                    f.write(output + "\n")
            except OSError as e:
                self._log.error("Could not write to %s: %s", path, e)
                print(f"❌ Error: Could not write to '{path}': {e}")
                return 1
            print(f"Request written to {path}")
        else:
            print(output)
        return 0

    def _call_handler(self, handler, args, ctx):
        if handler is None:
            return 127
        sig = inspect.signature(handler)
        if len(sig.parameters) >= 3:
            return int(handler(args, ctx, None))
        return int(handler(args, ctx))
