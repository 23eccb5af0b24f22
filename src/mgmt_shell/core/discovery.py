# src/mgmt_shell/core/discovery.py
import importlib
import logging
from typing import Dict, Any, Set, Tuple

from mgmt_shell.core.utils.path_utils import PathUtils

logger = logging.getLogger(__name__)

HANDLERS_PACKAGE = "mgmt_shell.core.handlers"


def discover_handlers() -> Tuple[Dict[str, Any], Dict[str, Any], Dict[str, str], Set[str]]:
    """
    Scans the handler directory, loads modules, and returns:
    1. A map of command names to their handler function.
    2. A map of command names to their hierarchy definition.
    3. A map of command names to their help text string.
    4. The names of commands whose module sets `WHOLE_LINE = True`.
    """
    discovered_handlers: Dict[str, Any] = {}
    discovered_hierarchies: Dict[str, Any] = {}
    discovered_help_texts: Dict[str, str] = {}
    whole_line: Set[str] = set()

    handlers_dir = PathUtils.get_handlers_dir()
    logger.debug("Scanning for handlers in: '%s'", handlers_dir)

    if not handlers_dir.is_dir():
        logger.warning("Handlers directory not found, skipping: %s", handlers_dir)
        return discovered_handlers, discovered_hierarchies, discovered_help_texts, whole_line

    for file_path in sorted(handlers_dir.glob("**/*_handler.py")):
        relative_parts = list(file_path.relative_to(handlers_dir).with_suffix("").parts)
        module_name = ".".join([HANDLERS_PACKAGE] + relative_parts)
        try:
            module = importlib.import_module(module_name)
        except ImportError as e:
            logger.error("Failed to load handler module %s: %s", file_path.name, e, exc_info=True)
            continue

        hierarchy = getattr(module, "COMMAND_HIERARCHY", None)
        takes_whole_line = getattr(module, "WHOLE_LINE", False) is True

        for attr_name in dir(module):
            if attr_name.startswith("handle_"):
                handler_func = getattr(module, attr_name)
                if callable(handler_func):
                    command_name = attr_name.replace("handle_", "")
                    discovered_handlers[command_name] = handler_func
                    if hierarchy is not None:
                        discovered_hierarchies[command_name] = hierarchy
                    if takes_whole_line:
                        whole_line.add(command_name)
                    logger.debug("Discovered command '%s'", command_name)

            elif attr_name.endswith("_help_text"):
                help_text_var = getattr(module, attr_name)
                if isinstance(help_text_var, str):
                    command_name = attr_name.replace("_help_text", "")
                    discovered_help_texts[command_name] = help_text_var
                    logger.debug("Discovered help '%s'", command_name)

    return discovered_handlers, discovered_hierarchies, discovered_help_texts, whole_line
