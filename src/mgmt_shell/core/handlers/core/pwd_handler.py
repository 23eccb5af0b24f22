# src/mgmt_shell/core/handlers/core/pwd_handler.py
from typing import List, Optional

from mgmt_shell.core.context.shell_context import ShellContext
from mgmt_shell.core.services.render_service import render_address

pwd_help_text = """
  pwd                 Print the current node address.
""".strip("\n")


def handle_pwd(_args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    print(render_address(ctx.current_address))
    return 0
