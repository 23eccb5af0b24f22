# src/mgmt_shell/core/handlers/resolve_handler.py
import logging
from typing import List, Optional

from mgmt_shell.core.context.shell_context import ShellContext
from mgmt_shell.core.parsing.errors import CommandSyntaxError, format_syntax_error

logger = logging.getLogger(__name__)

COMMAND_HIERARCHY = {
    "--lax": None,
    "--original": None,
}

# The rest of the line is one argument; ',' and ';' do not split it.
WHOLE_LINE = True

resolve_help_text = """
  resolve [--lax|--original] <text>
                      Resolve ${name}, ${name:default} and ${a,b} expressions
                      against the -D properties and the environment (env.NAME).
                      --lax keeps unresolvable expressions, --original returns
                      the text unchanged when any of them fails.
""".strip("\n")


def handle_resolve(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    text = " ".join(args).strip()
    mode = None
    for flag in COMMAND_HIERARCHY:
        if text == flag or text.startswith(flag + " "):
            mode, text = flag, text[len(flag):].strip()
            break

    if not text:
        print("Usage: resolve [--lax|--original] <text>")
        return 1

    resolver = ctx.resolver()
    try:
        if mode == "--lax":
            print(resolver.resolve_lax(text))
        elif mode == "--original":
            print(resolver.resolve_or_original(text))
        else:
            print(resolver.resolve(text))
    except CommandSyntaxError as e:
        logger.debug("Cannot resolve %r", text, exc_info=True)
        print(format_syntax_error(e, text))
        return 1
    return 0
