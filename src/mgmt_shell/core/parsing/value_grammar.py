# src/mgmt_shell/core/parsing/value_grammar.py
"""
Argument value grammar.

Turns one raw parameter value into a typed value tree. The form is picked
from the first significant character of every element:

    [a,b]            -> ListValue (PropertyListValue when every entry is name=value)
    {a=b}            -> ObjectValue (the raw text as StringValue when an entry has no name)
    bytes{1,0x02}    -> BytesValue
    a=b,c=d          -> ObjectValue
    a,b              -> ListValue
    anything else    -> StringValue

The bracket, quote and expression spans defined here are also used by the
operation grammar to find where a raw property value ends.
"""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Callable, List, Optional

from mgmt_shell.core.parsing.context import ParsingContext
from mgmt_shell.core.parsing.engine import (
    CharacterHandler,
    ParsingState,
    StateParser,
    enter,
    enter_and_report,
    enter_with_content,
    leave,
    leave_and_reprocess,
    leave_with_content,
    skip,
    skip_line_continuation,
)
from mgmt_shell.core.parsing.errors import StructuralError, ValueRangeError
from mgmt_shell.core.parsing.token_buffer import TokenBuffer
from mgmt_shell.model import (
    BytesValue,
    ListValue,
    ObjectValue,
    PropertyListValue,
    StringValue,
    TypedValue,
)

if TYPE_CHECKING:
    from mgmt_shell.core.services.expression_service import ExpressionResolver

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

BYTES_PREFIX = re.compile(r"bytes\s*\{")
_HEX_BYTE = re.compile(r"0[xX][0-9a-fA-F]+")
_DEC_BYTE = re.compile(r"[+-]?[0-9]+")
_ESCAPES = {"n": "\n", "t": "\t", "b": "\b", "r": "\r", "f": "\f"}


def escape_value(ctx: ParsingContext) -> None:
    """
    Backslash inside a value: control escapes, a literal backslash or quote,
    a deactivated structural character, or a line continuation.
    """
    if skip_line_continuation(ctx):
        return
    nxt = ctx.peek()
    if not nxt:
        raise StructuralError("Escape character at the end of the value", ctx.location)
    if nxt in _ESCAPES:
        ch = _ESCAPES[nxt]
    elif nxt.isalnum():
        raise StructuralError(f"Unsupported escape sequence '\\{nxt}'", ctx.location)
    else:
        ch = nxt
    ctx.advance_location(1)
    ctx.content(ch, escaped=True)


def enter_expression(expression: ParsingState) -> CharacterHandler:
    """'$' starts an atomic `${...}` span; '$$' is kept as two plain characters."""
    def handle(ctx: ParsingContext) -> None:
        nxt = ctx.peek()
        if nxt == "$":
            ctx.content()
            ctx.advance_location(1)
            ctx.content()
        elif nxt == "{":
            ctx.enter_state(expression)
            ctx.content()
            ctx.advance_location(1)
            ctx.content()
        else:
            ctx.content()
    return handle


class ValueSpans:
    """
    Quote, bracket and expression spans. They keep their text as content
    and only decide where a value ends: a comma or closing bracket inside
    a span does not end the value.
    """

    def __init__(
            self,
            prefix: str,
            escape_handler: CharacterHandler,
            track_parens: bool = False,
            wrap_dollar: Optional[Callable[[CharacterHandler], CharacterHandler]] = None,
    ) -> None:
        self._escape = escape_handler
        self._wrap = wrap_dollar or (lambda handler: handler)

        self.quoted = ParsingState(f"{prefix}_QUOTED", literal_content=True, must_end="Missing closing quote")
        self.quoted.on('"', leave).on("\\", escape_handler).on("$", self._wrap(lambda ctx: ctx.content()))

        self.expression = ParsingState(
            f"{prefix}_EXPRESSION", literal_content=True, must_end="Missing closing '}' of the expression")
        self.expression_braces = ParsingState(
            f"{prefix}_EXPRESSION_BRACES", literal_content=True, must_end="Missing closing '}' of the expression")
        for state in (self.expression, self.expression_braces):
            state.on("}", leave_with_content)
            state.on("{", enter_and_report(self.expression_braces))
            state.on("$", enter_expression(self.expression))

        self.braces = ParsingState(f"{prefix}_BRACES", must_end="Missing closing '}'")
        self.brackets = ParsingState(f"{prefix}_BRACKETS", must_end="Missing closing ']'")
        self.parens = ParsingState(f"{prefix}_PARENS", must_end="Missing closing ')'") if track_parens else None
        for span, closer in ((self.braces, "}"), (self.brackets, "]"), (self.parens, ")")):
            if span is not None:
                span.on(closer, leave_with_content)
                self.wire(span)

    def wire(self, state: ParsingState) -> ParsingState:
        """Makes `state` open the spans on their opening characters."""
        state.on('"', enter(self.quoted))
        state.on("{", enter_and_report(self.braces))
        state.on("[", enter_and_report(self.brackets))
        if self.parens is not None:
            state.on("(", enter_and_report(self.parens))
        state.on("$", self._wrap(enter_expression(self.expression)))
        state.on("\\", self._escape)
        return state


# --- Grammar ---

SPANS = ValueSpans("VALUE", escape_value)

ROOT = ParsingState("VALUE")
LIST = ParsingState("LIST", must_end="Missing closing ']'")
OBJECT = ParsingState("OBJECT", must_end="Missing closing '}'")
BYTES = ParsingState("BYTES", default=skip, must_end="Missing closing '}' of the bytes value")
BYTES.on("}", leave)


def _dispatch(text_state: ParsingState) -> CharacterHandler:
    """Picks the value form from the first significant character."""
    def handle(ctx: ParsingContext) -> None:
        ch = ctx.character
        if ch == "[":
            ctx.enter_state(LIST)
            return
        if ch == "{":
            ctx.enter_state(OBJECT)
            return
        if ch == "b":
            match = BYTES_PREFIX.match(ctx.input, ctx.location)
            if match:
                ctx.advance_location(match.end() - 1 - ctx.location)
                ctx.enter_state(BYTES)
                return
        ctx.enter_state(text_state)
        ctx.state.handler_for(ch)(ctx)
    return handle


def _continuation_or(handler: CharacterHandler) -> CharacterHandler:
    def handle(ctx: ParsingContext) -> None:
        if not skip_line_continuation(ctx):
            handler(ctx)
    return handle


def _arrow_or(handler: CharacterHandler) -> CharacterHandler:
    """The '>' of a `name=>value` separator is dropped."""
    def handle(ctx: ParsingContext) -> None:
        if ctx.location > 0 and ctx.input[ctx.location - 1] == "=":
            return
        handler(ctx)
    return handle


_ELEMENTS = set()
_VALUE_STARTS = set()
_VALUE_TEXTS = set()


def _wire_container(container: ParsingState, closer: Optional[str]) -> None:
    element = ParsingState(f"{container.id}_ELEMENT")
    value_start = ParsingState(f"{container.id}_VALUE_START")
    value_text = ParsingState(f"{container.id}_VALUE_TEXT")

    container.on_whitespace(skip)
    container.on("\\", _continuation_or(enter_with_content(element)))
    container.default_handler = _dispatch(element)

    # Name position: brackets are plain characters, the first '=' starts the value.
    element.on("=", enter(value_start)).on(",", leave)
    element.on('"', enter(SPANS.quoted))
    element.on("$", enter_expression(SPANS.expression))
    element.on("\\", escape_value)

    value_start.on_whitespace(skip)
    value_start.on(",", leave_and_reprocess)
    value_start.on(">", _arrow_or(enter_with_content(value_text)))
    value_start.on("\\", _continuation_or(enter_with_content(value_text)))
    value_start.default_handler = _dispatch(value_text)

    # Value position: '=' is plain, brackets are tracked to find the end only.
    SPANS.wire(value_text)
    value_text.on(",", leave_and_reprocess)

    if closer:
        container.on(closer, leave)
        for state in (element, value_start, value_text):
            state.on(closer, leave_and_reprocess)

    _ELEMENTS.add(element)
    _VALUE_STARTS.add(value_start)
    _VALUE_TEXTS.add(value_text)


_wire_container(ROOT, None)
_wire_container(LIST, "]")
_wire_container(OBJECT, "}")


# --- Typed value assembly ---

def parse_bytes(raw: str, offset: int) -> BytesValue:
    """Parses the inside of `bytes{...}`; `offset` is where `raw` starts in the input."""
    if not raw.strip():
        return BytesValue(values=[])
    values = []
    position = offset
    for part in raw.split(","):
        token = part.strip()
        at = position + len(part) - len(part.lstrip())
        if not token:
            raise ValueRangeError("Empty bytes entry", at)
        values.append(_parse_byte(token, at))
        position += len(part) + 1
    return BytesValue(values=values)


def _parse_byte(token: str, offset: int) -> int:
    if _HEX_BYTE.fullmatch(token):
        value = int(token, 16)
        if value > 0xFF:
            raise ValueRangeError(f"Byte value {token} is out of range 0x00..0xFF", offset)
        return value - 0x100 if value > 0x7F else value
    if _DEC_BYTE.fullmatch(token):
        value = int(token)
        if not -128 <= value <= 127:
            raise ValueRangeError(f"Byte value {token} is out of range -128..127", offset)
        return value
    raise ValueRangeError(f"Malformed byte value '{token}'", offset)


class _Entry:
    """One element of a container: a bare value or a name=value pair."""

    def __init__(self, start: int):
        self.start = start
        self.end = start
        self.name: Optional[str] = None
        self.value: Optional[TypedValue] = None
        self.text = TokenBuffer()
        self.in_value = False
        self.quoted = False


class _Frame:
    def __init__(self, state: ParsingState, start: int):
        self.state = state
        self.start = start
        self.entries: List[_Entry] = []
        self.current: Optional[_Entry] = None
        self.needs_separator = False


class ValueCallbackHandler:
    """Builds the typed value tree from the events of the value grammar."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth
        self._frames: List[_Frame] = [_Frame(ROOT, 0)]
        self._kept_quotes: List[bool] = []
        self._bytes_start = -1

    def entered_state(self, ctx: ParsingContext) -> None:
        state = ctx.state
        frame = self._frames[-1]

        if state is LIST or state is OBJECT or state is BYTES:
            self._check_value_slot(frame, ctx)
            if state is BYTES:
                self._bytes_start = ctx.location
                return
            if len(self._frames) > self.max_depth:
                raise StructuralError(f"Value is nested deeper than {self.max_depth} levels", ctx.location)
            self._frames.append(_Frame(state, ctx.location))

        elif state in _ELEMENTS:
            if frame.needs_separator:
                if ctx.character != ",":
                    raise StructuralError(f"Missing ',' before '{ctx.character}'", ctx.location)
                frame.needs_separator = False
            frame.current = _Entry(ctx.location)

        elif state in _VALUE_STARTS:
            entry = frame.current
            name = entry.text.text()
            if not name and not entry.quoted:
                raise StructuralError("Name is missing before '='", ctx.location)
            entry.name = name
            entry.text = TokenBuffer()
            entry.in_value = True
            entry.quoted = False

        elif state in _VALUE_TEXTS:
            if frame.current.value is not None:
                raise StructuralError(
                    f"Unexpected '{ctx.character}' after the value of '{frame.current.name}'", ctx.location)

        elif state is SPANS.quoted:
            entry = frame.current
            opening = entry.text.is_blank() and not entry.quoted
            if opening:
                entry.quoted = True
            else:
                entry.text.append('"', ctx.location, literal=True)
            self._kept_quotes.append(not opening)

    def character(self, ctx: ParsingContext) -> None:
        entry = self._frames[-1].current
        if entry is not None:
            entry.text.append(ctx.character, ctx.location, literal=ctx.escaped or ctx.state.literal_content)

    def leaving_state(self, ctx: ParsingContext) -> None:
        state = ctx.state
        if state in _ELEMENTS:
            self._finish_entry(ctx)
        elif state is SPANS.quoted:
            if self._kept_quotes.pop() and not ctx.is_end_of_content:
                self._frames[-1].current.text.append('"', ctx.location, literal=True)
        elif state is LIST or state is OBJECT:
            frame = self._frames.pop()
            self._attach(self._close(frame, ctx), frame.start, ctx)
        elif state is BYTES:
            start = self._bytes_start
            self._attach(parse_bytes(ctx.input[start + 1:ctx.location], start + 1), start, ctx)

    def finish(self, ctx: ParsingContext) -> TypedValue:
        return self._close(self._frames[0], ctx)

    # --- Helpers ---

    @staticmethod
    def _check_value_slot(frame: _Frame, ctx: ParsingContext) -> None:
        entry = frame.current
        if entry is not None and entry.in_value:
            if entry.value is not None:
                raise StructuralError(f"Unexpected '{ctx.character}' after the value of '{entry.name}'",
                                      ctx.location)
        elif frame.needs_separator:
            raise StructuralError(f"Missing ',' before '{ctx.character}'", ctx.location)

    def _finish_entry(self, ctx: ParsingContext) -> None:
        frame = self._frames[-1]
        entry = frame.current
        frame.current = None
        entry.end = ctx.location
        if entry.in_value:
            if entry.value is None:
                entry.value = StringValue(text=entry.text.text())
        else:
            text = entry.text.text()
            if not text and not entry.quoted:
                return
            entry.value = StringValue(text=text)
        frame.entries.append(entry)

    def _attach(self, value: TypedValue, start: int, ctx: ParsingContext) -> None:
        frame = self._frames[-1]
        entry = frame.current
        if entry is not None and entry.in_value:
            entry.value = value
            return
        bare = _Entry(start)
        bare.value = value
        bare.end = ctx.location + 1
        frame.entries.append(bare)
        frame.needs_separator = True

    @staticmethod
    def _opaque(entry: _Entry, ctx: ParsingContext) -> TypedValue:
        if entry.name is None:
            return entry.value
        return StringValue(text=ctx.input[entry.start:entry.end].strip())

    def _close(self, frame: _Frame, ctx: ParsingContext) -> TypedValue:
        entries = frame.entries
        all_named = all(e.name is not None for e in entries)

        if frame.state is OBJECT:
            if all_named:
                return ObjectValue(entries={e.name: e.value for e in entries})
            return StringValue(text=ctx.input[frame.start:ctx.location + 1])

        if frame.state is LIST:
            if entries and all_named:
                return PropertyListValue(properties=[(e.name, e.value) for e in entries])
            return ListValue(items=[self._opaque(e, ctx) for e in entries])

        if not entries:
            return StringValue(text="")
        if len(entries) == 1 and entries[0].name is None:
            return entries[0].value
        if all_named:
            return ObjectValue(entries={e.name: e.value for e in entries})
        return ListValue(items=[self._opaque(e, ctx) for e in entries])


_PARSER = StateParser(ROOT)


def resolve_leaves(value: TypedValue, resolver: ExpressionResolver) -> TypedValue:
    """Runs every string leaf of `value` through `resolver` (strict)."""
    if isinstance(value, StringValue):
        return StringValue(text=resolver.resolve(value.text))
    if isinstance(value, ListValue):
        return ListValue(items=[resolve_leaves(item, resolver) for item in value.items])
    if isinstance(value, ObjectValue):
        return ObjectValue(entries={k: resolve_leaves(v, resolver) for k, v in value.entries.items()})
    if isinstance(value, PropertyListValue):
        return PropertyListValue(properties=[(k, resolve_leaves(v, resolver)) for k, v in value.properties])
    return value


def parse_value(
        text: str,
        resolver: Optional[ExpressionResolver] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
) -> TypedValue:
    """
    Parses one raw parameter value into a typed value tree.

    Args:
        text (str): The raw value as it appeared in the property list.
        resolver (Optional[ExpressionResolver]): When given, `${...}` in
            string leaves is resolved after typing.
        max_depth (int): Maximum nesting of lists and objects.

    Returns:
        TypedValue: The typed tree.

    Raises:
        StructuralError: Unbalanced quotes/brackets, bad escapes, too deep nesting.
        ValueRangeError: Malformed or out of range bytes entries.
        ResolutionError: Unresolvable expression when a resolver is given.
    """
    handler = ValueCallbackHandler(max_depth)
    ctx = _PARSER.parse(text, handler, strict=True)
    value = handler.finish(ctx)
    logger.debug("Typed %r as %s", text, value.kind)
    if resolver is not None:
        value = resolve_leaves(value, resolver)
    return value
