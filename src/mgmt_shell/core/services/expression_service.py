# src/mgmt_shell/core/services/expression_service.py
"""
Resolution of `${name}` / `${name:default}` expressions.

    ${a}            value of a
    ${a,b}          value of a, else b
    ${a:fallback}   value of a, else the (resolved) fallback
    ${${a}}         value of the name stored in a
    ${/} ${:}       platform path and path-list separators
    $${a}           the literal text ${a}
"""
from __future__ import annotations

import logging
import os
from typing import Callable, Mapping, Optional, Union

from mgmt_shell.core.parsing.errors import ResolutionError

logger = logging.getLogger(__name__)

Lookup = Union[Mapping[str, str], Callable[[str], Optional[str]]]

DEFAULT_MAX_DEPTH = 32
ENV_PREFIX = "env."


def system_lookup(properties: Mapping[str, str], environ: Optional[Mapping[str, str]] = None) -> Callable[[str], Optional[str]]:
    """
    Read-only lookup over shell properties; `env.NAME` reads the environment.
    Names without the prefix fall back to the environment as well.
    """
    env = os.environ if environ is None else environ

    def lookup(name: str) -> Optional[str]:
        if name.startswith(ENV_PREFIX):
            return env.get(name[len(ENV_PREFIX):])
        value = properties.get(name)
        return value if value is not None else env.get(name)

    return lookup


class ExpressionResolver:
    """Resolves expressions against a read-only lookup, bounded by `max_depth`."""

    def __init__(self, lookup: Lookup, max_depth: int = DEFAULT_MAX_DEPTH):
        self._lookup = lookup.get if isinstance(lookup, Mapping) else lookup
        self.max_depth = max_depth

    # --- Public API ---

    def resolve(self, text: str) -> str:
        """Strict: an expression that cannot be resolved raises ResolutionError."""
        return self._resolve(text, True, 0, False, -1)

    def resolve_lax(self, text: str) -> str:
        """Unresolvable expressions are left as typed; the rest is resolved."""
        return self._resolve(text, False, 0, False, -1)

    def resolve_or_original(self, text: str) -> str:
        """All or nothing: `text` unchanged when any expression cannot be resolved."""
        try:
            return self.resolve(text)
        except ResolutionError as e:
            logger.debug("Keeping %r unresolved: %s", text, e)
            return text

    @staticmethod
    def find_expression_end(text: str, index: int) -> int:
        """
        Returns the offset of the '}' closing the `${` at `index`, or -1.
        Nested braces are counted.
        """
        depth = 0
        i = index + 1
        while i < len(text):
            ch = text[i]
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return i
            i += 1
        return -1

    # --- Internals ---

    def _resolve(self, text: str, strict: bool, depth: int, in_expression: bool, origin: int) -> str:
        out = []
        i = 0
        n = len(text)
        while i < n:
            ch = text[i]
            if ch != "$":
                out.append(ch)
                i += 1
                continue

            nxt = text[i + 1] if i + 1 < n else ""
            if nxt == "$":
                # '$$' escapes the next expression; inside a body it is kept unless an expression follows.
                if in_expression and text[i + 2:i + 3] != "{":
                    out.append("$$")
                else:
                    out.append("$")
                i += 2
            elif nxt == "{":
                start = origin if origin >= 0 else i
                end = self.find_expression_end(text, i)
                if end < 0:
                    if strict:
                        raise ResolutionError(f"Unterminated expression '{text[i:]}'", start)
                    out.append(text[i:])
                    break
                value = self._resolve_body(text[i + 2:end], strict, depth, start)
                out.append(text[i:end + 1] if value is None else value)
                i = end + 1
            else:
                out.append(ch)
                i += 1
        return "".join(out)

    def _resolve_body(self, body: str, strict: bool, depth: int, origin: int) -> Optional[str]:
        if depth >= self.max_depth:
            raise ResolutionError(f"Expression recursion exceeds {self.max_depth} levels", origin)
        if body == "/":
            return os.sep
        if body == ":":
            return os.pathsep

        split = self._top_level_colon(body)
        names_part = body if split < 0 else body[:split]
        default = None if split < 0 else body[split + 1:]

        names = self._resolve(names_part, strict, depth + 1, True, origin)
        for name in names.split(","):
            name = name.strip()
            if not name:
                continue
            value = self._lookup(name)
            if value is not None:
                logger.debug("Resolved %r to %r", name, value)
                return self._resolve(value, strict, depth + 1, False, origin)

        if default is not None:
            return self._resolve(default, strict, depth + 1, True, origin)
        if strict:
            raise ResolutionError(f"Cannot resolve expression '${{{body}}}'", origin)
        return None

    def _top_level_colon(self, body: str) -> int:
        i = 0
        while i < len(body):
            ch = body[i]
            if ch == "$" and body[i + 1:i + 2] == "{":
                end = self.find_expression_end(body, i)
                if end < 0:
                    return -1
                i = end + 1
                continue
            if ch == ":":
                return i
            i += 1
        return -1
