# src/mgmt_shell/core/handlers/core/unset_handler.py
from typing import List, Optional

from mgmt_shell.core.context.shell_context import ShellContext

unset_help_text = """
  unset <name>        Remove a variable (or -D<name> for a property).
""".strip("\n")


def handle_unset(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    if not args:
        print("Usage: unset <name> | unset -D<name>")
        return 1

    missing = []
    for name in args:
        if name.startswith("-D"):
            if ctx.properties.pop(name[2:], None) is None:
                missing.append(name)
        elif not ctx.unset(name):
            missing.append(name)

    if missing:
        print(f"Not set: {', '.join(missing)}")
        return 1
    return 0
