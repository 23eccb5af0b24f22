# src/mgmt_shell/core/handlers/core/set_handler.py
import re
from typing import List, Optional

from mgmt_shell.core.context.shell_context import ShellContext

# name=value, or -Dname=value for an expression property
_SET_PATTERN = re.compile(r"^(-D)?([A-Za-z_][\w.\-]*)\s*=(.*)$", re.DOTALL)
_VARIABLE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

# The rest of the line is one argument; ',' and ';' do not split it.
WHOLE_LINE = True

set_help_text = """
  set <name>=<value>  Create or overwrite a variable, used as $name.
  set -D<name>=<value>
                      Set an expression property, used as ${name}.
  set                 List variables and properties.
                      The value runs to the end of the line:
                      "set v=a,b" stores "a,b".
""".strip("\n")


def handle_set(args: List[str], ctx: ShellContext, _stdin: Optional[str] = None) -> int:
    """
    Handles the 'set' command.

    Args:
        args (List[str]): The rest of the sub-command as a single argument.
        ctx (ShellContext): The current shell context where the value will be stored.
        _stdin (Optional[str]): Standard input (unused here).

    Returns:
        int: Exit code (0 for success, 1 for usage error).
    """
    if not args:
        for key in sorted(ctx.variables):
            print(f"{key}={ctx.variables[key]}")
        for key in sorted(ctx.properties):
            print(f"-D{key}={ctx.properties[key]}")
        return 0

    m = _SET_PATTERN.match(" ".join(args).strip())
    if not m:
        print("Usage: set <name>=<value> | set -D<name>=<value>")
        return 1

    is_property, key, value = m.group(1), m.group(2), m.group(3).strip()

    # Simple unquoting of the value if it starts and ends with double quotes
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]

    if is_property:
        ctx.set_property(key, value)
        return 0

    if not _VARIABLE_NAME.fullmatch(key):
        print(f"Invalid variable name '{key}': use letters, digits and '_'.")
        return 1
    ctx.set(key, value)
    return 0
