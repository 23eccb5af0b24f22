# src/mgmt_shell/core/handlers/value_handler.py
import json
import logging
from typing import List, Optional

from mgmt_shell.core.context.shell_context import ShellContext
from mgmt_shell.core.managers.config_manager import config_manager
from mgmt_shell.core.parsing.errors import CommandSyntaxError, format_syntax_error
from mgmt_shell.core.parsing.value_grammar import parse_value
from mgmt_shell.core.services.render_service import render_value

logger = logging.getLogger(__name__)

COMMAND_HIERARCHY = {
    "--render": None,
}

# The rest of the line is one argument; ',' and ';' do not split it.
WHOLE_LINE = True

value_help_text = """
  value [--render] <text>
                      Type a parameter value and print the typed tree as JSON
                      (string, list, object, property_list or bytes).
                      --render prints the canonical text form instead.
""".strip("\n")


def handle_value(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    text = " ".join(args).strip()
    render = text == "--render" or text.startswith("--render ")
    if render:
        text = text[len("--render"):].strip()

    settings = ctx.settings
    resolver = ctx.resolver() if settings.resolve_parameter_values else None
    try:
        value = parse_value(text, resolver=resolver, max_depth=settings.max_value_depth)
    except CommandSyntaxError as e:
        logger.debug("Cannot type %r", text, exc_info=True)
        print(format_syntax_error(e, text))
        return 1

    if render:
        print(render_value(value))
    else:
        print(json.dumps(value.model_dump(), indent=config_manager.get_nested("shell.json_indent", 2)))
    return 0
