# src/mgmt_shell/core/core.py
from __future__ import annotations

import logging

from mgmt_shell.core.command_registry import WHOLE_LINE_COMMANDS, CommandRegistry
from mgmt_shell.core.parser import parse_command_line
from mgmt_shell.core.xngine import ExecuteEngine

logger = logging.getLogger(__name__)

# Registration is handled in app.py; the registry is filled before the first line runs.
XNGINE = ExecuteEngine(
    command_registry=CommandRegistry,
    whole_line_commands=WHOLE_LINE_COMMANDS,
    parse_fn=parse_command_line,
    logger=logger,
)

# Export core functionality for use by the main application layer.
execute_line = XNGINE.execute_line
execute_sequence = XNGINE.execute_sequence

__all__ = ["execute_line", "execute_sequence", "parse_command_line"]
