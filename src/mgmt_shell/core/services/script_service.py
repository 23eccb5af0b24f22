# src/mgmt_shell/core/services/script_service.py
import logging
from pathlib import Path
from typing import List, Tuple

from tqdm import tqdm

from mgmt_shell.core.context.shell_context import ShellContext
from mgmt_shell.core.xngine import QUIT_CODE, ExecuteEngine

logger = logging.getLogger(__name__)


def _continues(line: str) -> bool:
    """True when the line ends in an unescaped backslash."""
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def read_script_lines(path: Path) -> List[Tuple[int, str]]:
    """
    Reads a script into (line_number, command) pairs. Blank lines and '#'
    comments are skipped; a trailing backslash joins the next line.
    """
    commands: List[Tuple[int, str]] = []
    pending = ""
    pending_start = 0

    with open(path, "r", encoding="utf-8") as f:
        for number, raw in enumerate(f, start=1):
            line = raw.rstrip("\r\n")
            if not pending:
                stripped = line.strip()
                if not stripped or stripped.startswith("#"):
                    continue
                pending_start = number
            if _continues(line):
                pending += line[:-1]
                continue
            commands.append((pending_start, (pending + line).strip()))
            pending = ""

    if pending.strip():
        commands.append((pending_start, pending.strip()))
    return commands


def run_script(path: Path, ctx: ShellContext, engine: ExecuteEngine, show_progress: bool = True) -> int:
    """
    Executes a script file line by line and stops at the first failure.

    Returns:
        int: 0 when every line succeeded, otherwise the failing exit code.
    """
    try:
        commands = read_script_lines(path)
    except OSError as e:
        logger.error("Cannot read script %s: %s", path, e)
        print(f"❌ Error: Cannot read script '{path}': {e}")
        return 1

    logger.info("Running %d commands from %s", len(commands), path)
    with tqdm(total=len(commands), desc=path.name, unit="cmd", leave=False, disable=not show_progress) as bar:
        for number, line in commands:
            code = engine.execute_line(line, ctx)
            bar.update(1)
            if code == QUIT_CODE:
                logger.info("Script quit at line %d", number)
                return 0
            if code != 0:
                logger.warning("Script %s failed at line %d: %s", path, number, line)
                print(f"❌ {path.name}:{number}: command failed with exit code {code}")
                return code
    return 0
