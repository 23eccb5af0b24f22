# src/mgmt_shell/core/handlers/core/quit_handler.py
from mgmt_shell.core.context.shell_context import ShellContext

quit_help_text = """
  quit                Exit the shell.
""".strip("\n")


def handle_quit(_args, _ctx: ShellContext, _stdin=None) -> int:
    """Signals the shell to stop."""
    return 130  # Special exit code for 'quit'
