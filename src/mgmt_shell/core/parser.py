# src/mgmt_shell/core/parser.py
from __future__ import annotations
import logging
import shlex
from typing import Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_SEPARATORS: Tuple[str, ...] = (",", ";")

# Opening -> closing character of the pairs that protect separators.
_PAIRS = {"(": ")", "[": "]", "{": "}"}


def _command_spans(line: str, separators: Iterable[str]) -> List[Tuple[int, int]]:
    """Returns (start, end) of every sub-command, separators excluded."""
    seps = set(separators)
    spans: list[tuple[int, int]] = []
    closers: list[str] = []
    in_quotes = False
    start = 0
    i = 0
    n = len(line)

    while i < n:
        ch = line[i]
        if ch == "\\":
            # The escaped character never counts, inside or outside quotes.
            i += 2
            continue
        if in_quotes:
            if ch == '"':
                in_quotes = False
        elif ch == '"':
            in_quotes = True
        elif ch in _PAIRS:
            closers.append(_PAIRS[ch])
        elif closers and ch == closers[-1]:
            closers.pop()
        elif not closers and ch in seps:
            spans.append((start, i))
            start = i + 1
        i += 1

    spans.append((start, n))
    return spans


def split_commands(line: str, separators: Iterable[str] = DEFAULT_SEPARATORS) -> List[str]:
    """
    Splits a line into sub-commands on top-level separators.

    Separators inside (), [], {} or double quotes do not split; a backslash
    protects the character after it.

    Args:
        line (str): The raw input line.
        separators (Iterable[str]): Single-character separators.

    Returns:
        List[str]: The stripped, non-empty sub-commands.
    """
    parts = [line[s:e].strip() for s, e in _command_spans(line or "", separators)]
    return [p for p in parts if p]


def _shell_words(text: str) -> List[str]:
    lexer = shlex.shlex(text, posix=False)
    lexer.whitespace_split = True
    lexer.commenters = ""
    try:
        return list(lexer)
    except ValueError:
        # Fallback for unbalanced quotes
        return text.split()


def parse_command_line(
        line: str,
        known_commands: Iterable[str] = (),
        separators: Iterable[str] = DEFAULT_SEPARATORS,
        whole_line_commands: Iterable[str] = (),
) -> List[Tuple[Optional[str], List[str], str]]:
    """
    Parses the user input into a list of command segments (tuples).

    A command segment is (command_name, args, raw_text). command_name is
    None when the sub-command is an operation request; it is then handed to
    the operation grammar as raw_text. A built-in in `whole_line_commands`
    takes the rest of the line as its single argument, so splitting stops
    there: `set v=a,b` stores "a,b".

    Args:
        line (str): The raw input string from the shell.
        known_commands (Iterable[str]): Names of the shell built-ins.
        separators (Iterable[str]): Sub-command separators.
        whole_line_commands (Iterable[str]): Built-ins that end the splitting.

    Returns:
        List[Tuple[Optional[str], List[str], str]]: List of command segments.
    """
    known = set(known_commands)
    whole_line = set(whole_line_commands)
    line = line or ""
    out: list[tuple[str | None, list[str], str]] = []

    for start, end in _command_spans(line, separators):
        raw = line[start:end].strip()
        if not raw:
            continue
        name = raw.split(None, 1)[0]
        if name not in known:
            out.append((None, [], raw))
            continue
        if name in whole_line:
            raw = line[start:].strip()
            rest = raw[len(name):].strip()
            out.append((name, [rest] if rest else [], raw))
            break
        rest = raw[len(name):].strip()
        args = _shell_words(rest) if rest else []
        out.append((name, args, raw))

    logger.debug("Segments of %r: %s", line, out)
    return out
