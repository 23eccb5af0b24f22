# src/mgmt_shell/core/parsing/context.py
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Mapping, Optional, Tuple

from mgmt_shell.core.parsing.errors import ResolutionError, StructuralError

if TYPE_CHECKING:
    from mgmt_shell.core.parsing.engine import CallbackHandler, ParsingState
    from mgmt_shell.core.services.expression_service import ExpressionResolver

logger = logging.getLogger(__name__)

# Upper bound for the state stack; deeper input is rejected instead of recursing on.
MAX_STATE_DEPTH = 256

VARIABLE_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class Substitution:
    offset: int
    original: str
    replacement: str


class SubstitutedLine:
    """Tracks in-place substitutions so offsets can be mapped back to the typed line."""

    def __init__(self, original: str):
        self.original = original
        self.substituted = original
        self.substitutions: List[Substitution] = []

    def replace(self, offset: int, length: int, replacement: str) -> None:
        original = self.substituted[offset:offset + length]
        self.substituted = self.substituted[:offset] + replacement + self.substituted[offset + length:]
        self.substitutions.append(Substitution(offset, original, replacement))

    def original_offset(self, offset: int) -> int:
        """Maps an offset in the substituted text to the original text."""
        for sub in reversed(self.substitutions):
            if offset >= sub.offset + len(sub.replacement):
                offset += len(sub.original) - len(sub.replacement)
            elif offset > sub.offset:
                offset = sub.offset
        return offset

    def substituted_offset(self, offset: int) -> int:
        """Maps an offset in the original text to the substituted text."""
        for sub in self.substitutions:
            if offset >= sub.offset + len(sub.original):
                offset += len(sub.replacement) - len(sub.original)
            elif offset > sub.offset:
                offset = sub.offset
        return offset

    @property
    def changed(self) -> bool:
        return bool(self.substitutions)


class ParsingContext:
    """
    The cursor of one parse pass: input, offset, current character and the
    stack of active states. The initial state sits at the bottom of the
    stack and is never left.
    """

    def __init__(
            self,
            text: str,
            handler: CallbackHandler,
            initial_state: ParsingState,
            *,
            strict: bool = True,
            resolver: Optional[ExpressionResolver] = None,
            variables: Optional[Mapping[str, str]] = None,
            resolve_values: bool = False,
            resolve_names: bool = False,
    ) -> None:
        self.line = SubstitutedLine(text)
        self.location = 0
        self.character = ""
        self.escaped = False
        self.handler = handler
        self.strict = strict
        self.resolver = resolver
        self.variables = variables
        self.resolve_values = resolve_values
        self.resolve_names = resolve_names
        self.error: Optional[Exception] = None
        self._stack: List[ParsingState] = [initial_state]
        self._entered_at: List[int] = [0]
        self._resolved_upto = 0

    # --- Cursor ---

    @property
    def input(self) -> str:
        return self.line.substituted

    @property
    def original_input(self) -> str:
        return self.line.original

    @property
    def is_end_of_content(self) -> bool:
        return self.location >= len(self.line.substituted)

    def peek(self, distance: int = 1) -> str:
        """Returns the character `distance` positions ahead, or '' past the end."""
        i = self.location + distance
        text = self.line.substituted
        return text[i] if 0 <= i < len(text) else ""

    def advance_location(self, count: int = 1) -> None:
        self.location = min(self.location + count, len(self.line.substituted))
        self.character = self.peek(0)

    # --- State stack ---

    @property
    def state(self) -> ParsingState:
        return self._stack[-1]

    @property
    def states(self) -> Tuple[ParsingState, ...]:
        return tuple(self._stack)

    @property
    def depth(self) -> int:
        """Number of states entered above the initial one."""
        return len(self._stack) - 1

    @property
    def state_start(self) -> int:
        """Offset at which the current state was entered."""
        return self._entered_at[-1]

    def enter_state(self, state: ParsingState) -> None:
        if len(self._stack) > MAX_STATE_DEPTH:
            raise StructuralError("Input is nested too deeply", self.location)
        self._stack.append(state)
        self._entered_at.append(self.location)
        self.handler.entered_state(self)
        if state.enter_handler is not None:
            state.enter_handler(self)

    def leave_state(self) -> None:
        state = self._stack[-1]
        if state.leave_handler is not None:
            state.leave_handler(self)
        self.handler.leaving_state(self)
        self._stack.pop()
        self._entered_at.pop()
        parent = self._stack[-1]
        if parent.return_handler is not None:
            parent.return_handler(self)

    # --- Events ---

    def content(self, ch: Optional[str] = None, escaped: bool = False) -> None:
        """Fires the `character` event, optionally for a translated character."""
        if ch is not None:
            self.character = ch
        self.escaped = escaped
        try:
            self.handler.character(self)
        finally:
            self.escaped = False

    def set_error(self, error: Exception) -> None:
        """Records a deferred error; only the first one is kept."""
        if self.error is None:
            self.error = error

    # --- Substitution ---

    def substitute_at_location(self, value_position: bool) -> bool:
        """
        Replaces the `$name` variable or `${...}` expression starting at the
        current location. Returns True when the input changed and the
        current character must be dispatched again.

        `$$` is kept as two plain characters and shields whatever follows
        it, so `$${x}` and `$$name` reach the grammar unchanged.
        """
        if self.location < self._resolved_upto:
            return False
        text = self.line.substituted
        start = self.location

        if self.peek() == "$":
            self._resolved_upto = start + 2
            return False
        if self.peek() == "{":
            enabled = self.resolve_values if value_position else self.resolve_names
            if not enabled or self.resolver is None:
                return False
            end = self.resolver.find_expression_end(text, start)
            if end < 0:
                if self.strict:
                    raise ResolutionError("Unterminated expression", start)
                self._resolved_upto = len(text)
                return False
            token = text[start:end + 1]
            try:
                replacement = self.resolver.resolve(token)
            except ResolutionError as e:
                if self.strict:
                    raise ResolutionError(e.message, start + max(e.offset, 0)) from e
                self._resolved_upto = end + 1
                return False
        else:
            if self.variables is None:
                return False
            match = VARIABLE_NAME.match(text, start + 1)
            if not match:
                return False
            token = text[start:match.end()]
            replacement = self.variables.get(match.group(0))
            if replacement is None:
                if self.strict:
                    raise ResolutionError(f"Unrecognized variable '{match.group(0)}'", start)
                self._resolved_upto = match.end()
                return False

        logger.debug("Substituting %r with %r at offset %d", token, replacement, start)
        self.line.replace(start, len(token), replacement)
        self._resolved_upto = start + len(replacement)
        self.character = self.peek(0)
        return True
