# src/mgmt_shell/core/handlers/core/echo_handler.py
import logging
from typing import List, Optional

from mgmt_shell.core.context.shell_context import ShellContext
from mgmt_shell.core.parsing.errors import CommandSyntaxError, format_syntax_error

logger = logging.getLogger(__name__)

# The rest of the line is one argument; ',' and ';' do not split it.
WHOLE_LINE = True

echo_help_text = """
  echo <text>         Print text after $variable and ${expression} substitution.
""".strip("\n")


def _unquote(text: str) -> str:
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


def handle_echo(args: List[str], ctx: ShellContext, stdin: Optional[str] = None) -> int:
    """
    Handles the 'echo' command.

    Args:
        args (List[str]): The rest of the sub-command as a single argument.
        ctx (ShellContext): Supplies variables and expression properties.
        stdin (Optional[str]): Printed when no text is given.

    Returns:
        int: 0, or 1 when an expression cannot be resolved.
    """
    text = _unquote(" ".join(args)) if args else (stdin or "")
    try:
        print(ctx.expand(text))
    except CommandSyntaxError as e:
        logger.debug("Cannot expand %r", text, exc_info=True)
        print(format_syntax_error(e, text))
        return 1
    return 0
