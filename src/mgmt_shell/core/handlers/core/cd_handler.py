# src/mgmt_shell/core/handlers/core/cd_handler.py
import logging
from typing import List, Optional

from mgmt_shell.core.context.shell_context import ShellContext
from mgmt_shell.core.parsing.errors import CommandSyntaxError, format_syntax_error
from mgmt_shell.core.parsing.parse_result import ParseResult
from mgmt_shell.core.services.render_service import render_address

logger = logging.getLogger(__name__)

cd_help_text = """
  cd [<address>]      Change the current node. The address is relative unless
                      it starts with '/'; '..' goes up, '.type' drops the name.
                      Without an address, go back to the root.
""".strip("\n")


def handle_cd(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """
    Handles the 'cd' command.

    Args:
        args (List[str]): Address words; joined back into one address.
        ctx (ShellContext): Holds the current address that is replaced on success.
        _stdin (Optional[str]): Standard input (unused here).

    Returns:
        int: 0 on success, 1 when the address is invalid.
    """
    line = " ".join(args).strip()
    if not line:
        ctx.current_address.reset()
        return 0

    result = ParseResult(ctx.current_address, validation=True)
    try:
        ctx.operation_parser().parse(line, result)
    except CommandSyntaxError as e:
        logger.debug("Invalid address %r", line, exc_info=True)
        print(format_syntax_error(e, line))
        return 1

    if result.has_operation_name or result.has_properties or result.has_output_target:
        print(f"Error: '{line}' is not a node address.")
        return 1
    if result.ends_on_type:
        print(f"Error: Node type '{result.address.node_type}' has no node name.")
        return 1

    ctx.current_address = result.address.copy() if result.address is not None else ctx.current_address
    logger.debug("Current address is now %s", render_address(ctx.current_address))
    return 0
