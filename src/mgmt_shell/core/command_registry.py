# src/mgmt_shell/core/command_registry.py
import logging
from typing import Any, Callable, Dict, Set

from mgmt_shell.core.discovery import discover_handlers

logger = logging.getLogger(__name__)

# Filled by register_all_commands(); every other line is an operation request.
CommandRegistry: Dict[str, Callable[..., int]] = {}
COMMAND_HIERARCHY: Dict[str, Any] = {}
COMMAND_HELP_TEXTS: Dict[str, str] = {}
# Built-ins that take the rest of the line as one argument, separators included.
WHOLE_LINE_COMMANDS: Set[str] = set()


def register_command(name: str, handler: Callable[..., int], whole_line: bool = False) -> None:
    """Adds a built-in; a whole-line built-in ends sub-command splitting."""
    CommandRegistry[name] = handler
    if whole_line:
        WHOLE_LINE_COMMANDS.add(name)
    else:
        WHOLE_LINE_COMMANDS.discard(name)
    logger.debug("Registered built-in '%s' (whole line: %s)", name, whole_line)


def register_all_commands() -> None:
    """
    Discovers the handler modules and registers their built-ins, help texts
    and completion hierarchies. Built-ins registered earlier are kept.
    """
    handlers, hierarchies, help_texts, whole_line = discover_handlers()

    for name, handler in handlers.items():
        if name not in CommandRegistry:
            register_command(name, handler, whole_line=name in whole_line)

    COMMAND_HIERARCHY.update(hierarchies)
    COMMAND_HELP_TEXTS.update(help_texts)
    for name in CommandRegistry:
        COMMAND_HIERARCHY.setdefault(name, None)

    logger.debug(
        "Registered %d built-ins, %d of them whole-line: %s",
        len(CommandRegistry), len(WHOLE_LINE_COMMANDS), sorted(WHOLE_LINE_COMMANDS),
    )
