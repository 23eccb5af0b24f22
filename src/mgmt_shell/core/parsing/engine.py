# src/mgmt_shell/core/parsing/engine.py
"""
Generic, grammar-agnostic state engine.

A grammar is a set of ParsingState objects. Each state maps characters to
transition handlers (stay, enter a child, leave to the parent, leave and
let the parent reprocess the character) and the engine walks the input
one character at a time, firing `entered`, `character` and `leaving`
events to a callback handler.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Optional, Protocol, Type

from mgmt_shell.core.parsing.context import ParsingContext
from mgmt_shell.core.parsing.errors import CommandSyntaxError, StructuralError

logger = logging.getLogger(__name__)

CharacterHandler = Callable[[ParsingContext], None]

WHITESPACE = " \t\r\n\f\v"


class CallbackHandler(Protocol):
    def entered_state(self, ctx: ParsingContext) -> None: ...

    def leaving_state(self, ctx: ParsingContext) -> None: ...

    def character(self, ctx: ParsingContext) -> None: ...


# --- Transition handlers ---

def content(ctx: ParsingContext) -> None:
    """Stay in the current state and report the character."""
    ctx.content()


def skip(ctx: ParsingContext) -> None:
    """Stay in the current state without reporting the character."""


def enter(state: ParsingState) -> CharacterHandler:
    def handle(ctx: ParsingContext) -> None:
        ctx.enter_state(state)
    return handle


def enter_with_content(state: ParsingState) -> CharacterHandler:
    """Enter `state` and hand it the current character."""
    def handle(ctx: ParsingContext) -> None:
        ctx.enter_state(state)
        ctx.state.handler_for(ctx.character)(ctx)
    return handle


def enter_and_report(state: ParsingState) -> CharacterHandler:
    """Enter `state` and report the current character as its first content."""
    def handle(ctx: ParsingContext) -> None:
        ctx.enter_state(state)
        ctx.content()
    return handle


def leave(ctx: ParsingContext) -> None:
    """Leave the current state; the character is consumed."""
    ctx.leave_state()


def leave_with_content(ctx: ParsingContext) -> None:
    """Report the character, then leave the current state."""
    ctx.content()
    ctx.leave_state()


def leave_and_reprocess(ctx: ParsingContext) -> None:
    """Leave the current state and offer the character to the parent."""
    ctx.leave_state()
    ctx.state.handler_for(ctx.character)(ctx)


def error(error_type: Type[CommandSyntaxError], message: str) -> CharacterHandler:
    """Fail with `message`; '{char}' is replaced with the offending character."""
    def handle(ctx: ParsingContext) -> None:
        raise error_type(message.format(char=ctx.character), ctx.location)
    return handle


def skip_line_continuation(ctx: ParsingContext) -> bool:
    if ctx.peek() == "\n":
        ctx.advance_location(1)
        return True
    if ctx.peek() == "\r" and ctx.peek(2) == "\n":
        ctx.advance_location(2)
        return True
    return False


def escape_raw(ctx: ParsingContext) -> None:
    """Keep the backslash and the escaped character; both are protected from trimming."""
    if not ctx.peek():
        ctx.content(escaped=True)
        ctx.set_error(StructuralError("Escape character at the end of input", ctx.location))
        return
    ctx.content(escaped=True)
    ctx.advance_location(1)
    ctx.content(escaped=True)


def escape_literal(ctx: ParsingContext) -> None:
    """Deliver the escaped character as a literal, dropping the backslash."""
    if skip_line_continuation(ctx):
        return
    if not ctx.peek():
        ctx.set_error(StructuralError("Escape character at the end of input", ctx.location))
        return
    ctx.advance_location(1)
    ctx.content(escaped=True)


def resolving(handler: CharacterHandler, value_position: bool = False) -> CharacterHandler:
    """
    Wraps the handler of '$': substitutes a variable or expression at the
    current location when the context allows it, otherwise falls through.
    """
    def handle(ctx: ParsingContext) -> None:
        if ctx.substitute_at_location(value_position):
            if not ctx.is_end_of_content:
                ctx.state.handler_for(ctx.character)(ctx)
        else:
            handler(ctx)
    return handle


class ParsingState:
    """
    One grammar state with an explicit per-character transition table.

    `must_end` holds the message reported when input ends while the state
    is still open; states without it tolerate partial input.
    """

    def __init__(
            self,
            state_id: str,
            *,
            default: Optional[CharacterHandler] = None,
            enter_handler: Optional[CharacterHandler] = None,
            leave_handler: Optional[CharacterHandler] = None,
            return_handler: Optional[CharacterHandler] = None,
            end_of_content_handler: Optional[CharacterHandler] = None,
            literal_content: bool = False,
            must_end: Optional[str] = None,
    ) -> None:
        self.id = state_id
        self.default_handler: CharacterHandler = default or content
        self.enter_handler = enter_handler
        self.leave_handler = leave_handler
        self.return_handler = return_handler
        self.end_of_content_handler = end_of_content_handler
        self.literal_content = literal_content
        self.must_end = must_end
        self._handlers: Dict[str, CharacterHandler] = {}

    def on(self, chars: str, handler: CharacterHandler) -> ParsingState:
        for ch in chars:
            self._handlers[ch] = handler
        return self

    def on_whitespace(self, handler: CharacterHandler) -> ParsingState:
        return self.on(WHITESPACE, handler)

    def handler_for(self, ch: str) -> CharacterHandler:
        return self._handlers.get(ch, self.default_handler)

    @property
    def transitions(self) -> Mapping[str, CharacterHandler]:
        return dict(self._handlers)

    def __repr__(self) -> str:
        return f"<ParsingState {self.id}>"


class StateParser:
    """Runs a grammar, starting from `initial_state`, over one line of input."""

    def __init__(self, initial_state: ParsingState):
        self.initial_state = initial_state

    def parse(
            self,
            text: str,
            handler: CallbackHandler,
            *,
            strict: bool = True,
            **resolution,
    ) -> ParsingContext:
        """
        Walks `text` once and returns the finished context.

        In strict mode the first deferred error (an unterminated state, a
        dangling escape) is raised after every open state has been left,
        so the handler keeps whatever it collected. Errors raised by
        handlers abort the pass immediately. Offsets always refer to the
        text as typed, before any substitution.
        """
        ctx = ParsingContext(text, handler, self.initial_state, strict=strict, **resolution)
        logger.debug("Parsing %r from state %s (strict=%s)", text, self.initial_state.id, strict)
        try:
            self._walk(ctx)
            if ctx.error is not None and strict:
                raise ctx.error
        except CommandSyntaxError as e:
            if e.offset >= 0 and ctx.line.changed:
                e.offset = ctx.line.original_offset(e.offset)
            logger.debug("Parse of %r failed: %s", text, e)
            raise
        return ctx

    @staticmethod
    def _walk(ctx: ParsingContext) -> None:
        while ctx.location < len(ctx.input):
            ctx.character = ctx.input[ctx.location]
            ctx.state.handler_for(ctx.character)(ctx)
            ctx.location += 1

        ctx.location = len(ctx.input)
        ctx.character = ""
        while ctx.depth > 0:
            state = ctx.state
            if state.must_end:
                ctx.set_error(StructuralError(state.must_end, ctx.state_start))
            if state.end_of_content_handler is not None:
                state.end_of_content_handler(ctx)
            ctx.leave_state()

        initial = ctx.state
        if initial.end_of_content_handler is not None:
            initial.end_of_content_handler(ctx)
